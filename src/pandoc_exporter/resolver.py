"""Recursive resolution of rendered notes into portable HTML.

A single pass walks the rendered tree of a note and writes a new tree:
embedded notes are resolved recursively and grafted in place, internal
links are rewritten according to the configured :class:`LinkPolicy`, image
placeholders become real images and, for anything but HTML output, SVG
diagrams are rasterized to PNG.
"""

from __future__ import annotations

import base64
import html
import logging
import math
import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from urllib.parse import quote, unquote

from .errors import ExportError
from .frontmatter import document_title, read_frontmatter
from .rendering import APP_PREFIX, Rasterizer, Renderer, Vault
from .tree import DocumentTree, Node, NodeKind, TreeBuilder, with_attr
from .utils import run_sync

logger = logging.getLogger(__name__)

IMAGE_SUFFIXES = (".png", ".jpg", ".jpeg", ".gif", ".svg", ".webp", ".bmp")
NOTE_SUFFIXES = (".md", ".markdown")
HTML_FORMAT = "html"
SVG_NAMESPACE = "http://www.w3.org/2000/svg"
_LENGTH_RE = re.compile(r"^\s*([0-9]*\.?[0-9]+)\s*(px)?\s*$")
MERMAID_MARKER_ID = "mermaid_arrowhead"
_ARROWHEAD_RE = re.compile(r"app://obsidian\.md/index\.html#arrowhead\d*")


class LinkPolicy(str, Enum):
    LINK = "link"
    STRIP = "strip"
    TEXT = "text"
    UNCHANGED = "unchanged"


@dataclass(slots=True)
class ResolverOptions:
    link_policy: LinkPolicy = LinkPolicy.LINK
    internal_link_extension: str = ""
    display_frontmatter: bool = False
    high_dpi_diagrams: bool = False
    custom_css: str = ""


def standalone_html(body: str, title: str, css: str = "") -> str:
    return (
        "<!doctype html>\n"
        "<html>\n"
        "    <head>\n"
        f"        <title>{html.escape(title)}</title>\n"
        "        <meta charset='utf-8'/>\n"
        f"        <style>\n{css}\n</style>\n"
        "    </head>\n"
        "    <body>\n"
        f"{body}\n"
        "    </body>\n"
        "</html>"
    )


def load_custom_css(css_file: str | None, root_dir: Path) -> str:
    """Read the configured CSS file, trying it as given and then vault-relative."""

    if not css_file:
        return ""
    for candidate in (Path(css_file), root_dir / css_file):
        try:
            return candidate.read_text(encoding="utf-8")
        except OSError:
            continue
    logger.warning("Failed to load custom CSS file %s", css_file)
    return ""


def rewrite_internal_href(target: str, note_dir: Path, extension: str = "") -> str:
    """Turn an ``app://`` link target into a path next to the exported note.

    ``Note#Heading`` with extension ``html`` becomes ``<dir>/Note.html#Heading``.
    The result stays URL-encoded: ``My%20Note`` keeps its ``%20``.
    """

    base, hash_sign, anchor = target.partition("#")
    fragment = f"{hash_sign}{anchor}"
    if not base:
        return fragment
    if extension and not Path(unquote(base)).suffix:
        base = f"{base}.{extension.lstrip('.')}"
    return f"{quote(note_dir.as_posix(), safe='/:')}/{base}{fragment}"


def _is_image_source(src: str | None) -> bool:
    return bool(src) and src.lower().endswith(IMAGE_SUFFIXES)


def _svg_length(value: str | None) -> float | None:
    if not value:
        return None
    match = _LENGTH_RE.match(value)
    return float(match.group(1)) if match else None


def diagram_size(attrs: dict[str, str]) -> tuple[float, float] | None:
    width = _svg_length(attrs.get("width"))
    height = _svg_length(attrs.get("height"))
    if width and height:
        return width, height
    view_box = (attrs.get("viewbox") or attrs.get("viewBox") or "").replace(",", " ").split()
    if len(view_box) == 4:
        try:
            box_width, box_height = float(view_box[2]), float(view_box[3])
        except ValueError:
            return None
        if box_width > 0 and box_height > 0:
            return width or box_width, height or box_height
    return None


def _retarget(value: str) -> str:
    return _ARROWHEAD_RE.sub(f"#{MERMAID_MARKER_ID}", value)


def _copy_retargeted(tree: DocumentTree, index: int, out: TreeBuilder) -> int:
    node = tree.node(index)
    children = tuple(_copy_retargeted(tree, child, out) for child in node.children)
    attrs = tuple((key, _retarget(value)) for key, value in node.attrs)
    return out.add(
        Node(node.kind, tag=node.tag, attrs=attrs, children=children, text=_retarget(node.text))
    )


def repair_arrowheads(tree: DocumentTree, index: int) -> DocumentTree:
    """Copy the svg at *index* with a local arrowhead marker for Mermaid edges.

    Rendered Mermaid diagrams reference ``app://.../index.html#arrowhead`` which
    does not exist outside the host application.
    """

    source = tree.node(index)
    out = TreeBuilder()
    children = [_copy_retargeted(tree, child, out) for child in source.children]
    path = out.element(
        "path",
        (
            ("d", "M 0 0 L 10 5 L 0 10 z"),
            ("class", "arrowheadPath"),
            ("style", "stroke-width: 1; stroke-dasharray: 1, 0;"),
        ),
    )
    marker = out.element(
        "marker",
        (
            ("id", MERMAID_MARKER_ID),
            ("viewbox", "0 0 10 10"),
            ("refx", "9"),
            ("refy", "5"),
            ("markerunits", "strokeWidth"),
            ("markerwidth", "8"),
            ("markerheight", "6"),
            ("orient", "auto"),
        ),
        [path],
    )
    attrs = tuple((key, _retarget(value)) for key, value in source.attrs)
    root = out.element(source.tag, attrs, [*children, marker])
    return out.build(root)


class ContentResolver:
    def __init__(
        self,
        renderer: Renderer,
        vault: Vault,
        rasterizer: Rasterizer | None = None,
        options: ResolverOptions | None = None,
    ) -> None:
        self._renderer = renderer
        self._vault = vault
        self._rasterizer = rasterizer
        self._options = options or ResolverOptions()

    async def resolve(
        self,
        path: Path,
        output_format: str,
        ancestors: tuple[Path, ...] = (),
        *,
        markdown: str | None = None,
    ) -> str:
        """Resolve the note at *path* into HTML.

        Only a top-level note (no *ancestors*) is wrapped into a standalone
        document; embedded notes are returned as bare fragments.
        """

        path = path.resolve()
        if markdown is None:
            markdown = await run_sync(self._vault.read, path)
        tree = await self.resolve_tree(markdown, path, output_format, ancestors)
        body = tree.to_html()
        if ancestors:
            return body
        title = document_title(read_frontmatter(markdown), path)
        return standalone_html(body, title, self._options.custom_css)

    async def resolve_tree(
        self,
        markdown: str,
        path: Path,
        output_format: str,
        ancestors: tuple[Path, ...] = (),
    ) -> DocumentTree:
        source = self._renderer.render(markdown, path)
        resolution = _Resolution(self, path.resolve(), output_format, tuple(ancestors))
        out = TreeBuilder()
        children: list[int] = []
        for child in source.children(source.root):
            children.extend(await resolution.visit(source, child, out))
        return out.build(out.fragment(children))


class _Resolution:
    """State of resolving one note; never shared between notes."""

    def __init__(
        self,
        resolver: ContentResolver,
        path: Path,
        output_format: str,
        ancestors: tuple[Path, ...],
    ) -> None:
        self.resolver = resolver
        self.path = path
        self.output_format = output_format
        self.ancestors = ancestors
        self.options = resolver._options
        self.is_html = output_format == HTML_FORMAT

    async def visit(self, tree: DocumentTree, index: int, out: TreeBuilder) -> list[int]:
        node = tree.node(index)
        if node.kind is not NodeKind.ELEMENT:
            return [out.copy_leaf(node)]

        if node.tag == "span" and _is_image_source(node.attr("src")):
            return [out.element("img", node.attrs)]
        if node.tag == "span" and node.has_class("internal-embed") and node.attr("src"):
            return await self._embed(tree, index, out)
        if node.tag == "a" and (node.attr("href") or "").startswith(APP_PREFIX):
            return await self._link(tree, index, out)
        if not self.options.display_frontmatter and (
            node.has_class("frontmatter") or node.has_class("frontmatter-container")
        ):
            return []
        if node.tag == "svg":
            return await self._diagram(tree, index, out)

        attrs = node.attrs
        if node.tag == "img" and not self.is_html:
            attrs = self._touch_image(attrs)
        children = await self._visit_children(tree, index, out)
        return [out.element(node.tag, attrs, children)]

    async def _visit_children(self, tree: DocumentTree, index: int, out: TreeBuilder) -> list[int]:
        children: list[int] = []
        for child in tree.children(index):
            children.extend(await self.visit(tree, child, out))
        return children

    async def _embed(self, tree: DocumentTree, index: int, out: TreeBuilder) -> list[int]:
        node = tree.node(index)
        src = node.attr("src") or ""
        target = await run_sync(self.resolver._vault.resolve_link, src, self.path)
        if target is None:
            logger.error("Could not resolve embedded note %r in %s", src, self.path)
            return []
        target = target.resolve()
        if target == self.path or target in self.ancestors:
            logger.debug("Embed cycle on %s; linking instead of inlining", target)
            return await self._cycle_link(tree, index, src, out)
        if target.suffix.lower() not in NOTE_SUFFIXES:
            logger.error("Cannot embed %s in %s: not a note", target, self.path)
            return []

        try:
            fragment = await self._resolve_embedded(target)
        except (OSError, UnicodeDecodeError, ExportError) as exc:
            logger.error("Failed to load embedded note %s: %s", target, exc)
            return []
        return out.graft_children(fragment, fragment.root)

    async def _resolve_embedded(self, target: Path) -> DocumentTree:
        markdown = await run_sync(self.resolver._vault.read, target)
        return await self.resolver.resolve_tree(
            markdown, target, self.output_format, self.ancestors + (self.path,)
        )

    async def _cycle_link(self, tree: DocumentTree, index: int, src: str, out: TreeBuilder) -> list[int]:
        scratch = TreeBuilder()
        label = [scratch.graft(tree, child) for child in tree.children(index)] or [scratch.text(src)]
        anchor = scratch.element(
            "a",
            (("class", "internal-link"), ("href", APP_PREFIX + quote(src, safe="/#"))),
            label,
        )
        return await self._link(scratch.build(anchor), anchor, out)

    async def _link(self, tree: DocumentTree, index: int, out: TreeBuilder) -> list[int]:
        node = tree.node(index)
        policy = LinkPolicy.LINK if self.is_html else self.options.link_policy
        if policy is LinkPolicy.STRIP:
            return []
        if policy is LinkPolicy.TEXT:
            return [out.text(tree.text_content(index))]
        if policy is LinkPolicy.UNCHANGED:
            return [out.text("[["), out.graft(tree, index), out.text("]]")]

        href = rewrite_internal_href(
            (node.attr("href") or "")[len(APP_PREFIX) :],
            self.path.parent,
            self.options.internal_link_extension,
        )
        children = await self._visit_children(tree, index, out)
        return [out.element("a", with_attr(node.attrs, "href", href), children)]

    def _touch_image(self, attrs: tuple[tuple[str, str], ...]) -> tuple[tuple[str, str], ...]:
        lookup = dict(attrs)
        src = lookup.get("src") or ""
        if not src.startswith(APP_PREFIX) or lookup.get("data-touched") == "true":
            return attrs
        full_path = self.resolver._vault.full_path(unquote(src[len(APP_PREFIX) :]))
        return with_attr(with_attr(attrs, "src", str(full_path)), "data-touched", "true")

    async def _diagram(self, tree: DocumentTree, index: int, out: TreeBuilder) -> list[int]:
        diagram = repair_arrowheads(tree, index)
        if self.is_html:
            return [out.graft(diagram, diagram.root)]

        node = diagram.node(diagram.root)
        rasterizer = self.resolver._rasterizer
        size = diagram_size(dict(node.attrs))
        if rasterizer is None or size is None:
            logger.warning("Leaving SVG diagram in %s as vector markup", self.path)
            return [out.graft(diagram, diagram.root)]

        attrs = node.attrs if node.attr("xmlns") else with_attr(node.attrs, "xmlns", SVG_NAMESPACE)
        scratch = TreeBuilder()
        children = [scratch.graft(diagram, child) for child in node.children]
        markup = scratch.build(scratch.element("svg", attrs, children)).to_html()
        width, height = size
        scale = 2 if self.options.high_dpi_diagrams else 1
        try:
            png = await run_sync(rasterizer.rasterize, markup, width, height, scale)
        except ExportError as exc:
            logger.warning("Could not rasterize diagram in %s: %s", self.path, exc)
            return [out.graft(diagram, diagram.root)]

        data_uri = "data:image/png;base64," + base64.b64encode(png).decode("ascii")
        return [
            out.element(
                "img",
                (
                    ("src", data_uri),
                    ("width", str(math.ceil(width))),
                    ("height", str(math.ceil(height))),
                ),
            )
        ]


__all__ = [
    "ContentResolver",
    "LinkPolicy",
    "ResolverOptions",
    "diagram_size",
    "load_custom_css",
    "repair_arrowheads",
    "rewrite_internal_href",
    "standalone_html",
]
