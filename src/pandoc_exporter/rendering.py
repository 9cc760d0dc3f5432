"""Collaborators used by the content resolver.

The resolver only depends on the protocols. The default implementations
render notes with markdown-it-py, read notes from a vault directory and
rasterize SVG through ``rsvg-convert``.
"""

from __future__ import annotations

import html
import math
import subprocess
from pathlib import Path
from typing import Protocol
from urllib.parse import quote

from markdown_it import MarkdownIt
from markdown_it.rules_inline import StateInline

from .errors import RasterizeError
from .frontmatter import frontmatter_block
from .tree import DocumentTree, parse_html

APP_PREFIX = "app://obsidian.md/"
NOTE_SUFFIX = ".md"


class Renderer(Protocol):
    def render(self, markdown: str, path: Path) -> DocumentTree:  # pragma: no cover - interface
        ...


class Vault(Protocol):
    root: Path

    def resolve_link(self, link: str, source: Path) -> Path | None:  # pragma: no cover - interface
        ...

    def read(self, path: Path) -> str:  # pragma: no cover - interface
        ...

    def full_path(self, vault_path: str) -> Path:  # pragma: no cover - interface
        ...


class Rasterizer(Protocol):
    def rasterize(self, svg: str, width: float, height: float, scale: float) -> bytes:  # pragma: no cover - interface
        ...


def link_target(link: str) -> str:
    """Strip the ``#heading`` and ``|alias`` parts from a wikilink target."""

    return link.split("|", 1)[0].split("#", 1)[0].strip()


class FileSystemVault:
    def __init__(self, root: Path) -> None:
        self.root = root.resolve()

    def resolve_link(self, link: str, source: Path) -> Path | None:
        target = link_target(link)
        if not target:
            return None
        names = [target] if Path(target).suffix else [target + NOTE_SUFFIX, target]
        for name in names:
            for base in (source.parent, self.root):
                candidate = (base / name).resolve()
                if candidate.is_file():
                    return candidate
        # shortest-path links only carry the file name
        for name in names:
            matches = sorted(self.root.rglob(Path(name).name))
            for match in matches:
                if match.is_file():
                    return match.resolve()
        return None

    def read(self, path: Path) -> str:
        return path.read_text(encoding="utf-8")

    def full_path(self, vault_path: str) -> Path:
        return self.root / vault_path


def _wikilink_html(target: str, embed: bool) -> str:
    link, _, alias = target.partition("|")
    link = link.strip()
    label = html.escape(alias.strip() or link)
    if embed:
        return (
            f'<span class="internal-embed" src="{html.escape(link)}" '
            f'alt="{label}"></span>'
        )
    href = APP_PREFIX + quote(link, safe="/#")
    return (
        f'<a class="internal-link" data-href="{html.escape(link)}" '
        f'href="{html.escape(href)}">{label}</a>'
    )


def _wikilink_rule(state: StateInline, silent: bool) -> bool:
    start = state.pos
    embed = state.src.startswith("![[", start)
    if not embed and not state.src.startswith("[[", start):
        return False
    opening = 3 if embed else 2
    end = state.src.find("]]", start + opening)
    if end == -1:
        return False
    target = state.src[start + opening : end]
    if not target.strip() or "\n" in target:
        return False
    if not silent:
        token = state.push("html_inline", "", 0)
        token.content = _wikilink_html(target, embed)
    state.pos = end + 2
    return True


class MarkdownRenderer:
    """Render note Markdown into the element shapes the resolver expects.

    Wikilinks become ``a.internal-link`` anchors with an ``app://`` href and
    embeds become ``span.internal-embed`` placeholders. The frontmatter is
    rendered as a ``pre.frontmatter`` block.
    """

    def __init__(self) -> None:
        self._md = MarkdownIt("commonmark", {"html": True}).enable("table").enable("strikethrough")
        self._md.inline.ruler.before("link", "wikilink", _wikilink_rule)

    def render(self, markdown: str, path: Path) -> DocumentTree:
        header, body = frontmatter_block(markdown)
        parts: list[str] = []
        if header is not None and header.strip():
            parts.append(f'<pre class="frontmatter"><code>{html.escape(header)}</code></pre>')
        parts.append(self._md.render(body))
        return parse_html("".join(parts))


class RsvgRasterizer:
    def __init__(self, binary: str = "rsvg-convert", timeout_s: float = 20) -> None:
        self._binary = binary
        self._timeout_s = timeout_s

    def rasterize(self, svg: str, width: float, height: float, scale: float) -> bytes:
        command = [
            self._binary,
            "--format=png",
            "--background-color=transparent",
            f"--width={math.ceil(width * scale)}",
            f"--height={math.ceil(height * scale)}",
        ]
        try:
            result = subprocess.run(
                command,
                input=svg.encode("utf-8"),
                capture_output=True,
                check=False,
                timeout=self._timeout_s,
            )
        except FileNotFoundError as exc:
            raise RasterizeError(f"{self._binary} not found in PATH") from exc
        except subprocess.TimeoutExpired as exc:
            raise RasterizeError("Diagram rasterization timed out") from exc
        if result.returncode != 0 or not result.stdout:
            details = result.stderr.decode("utf-8", errors="replace").strip()
            raise RasterizeError(f"Diagram rasterization failed: {details or result.returncode}")
        return result.stdout


__all__ = [
    "APP_PREFIX",
    "FileSystemVault",
    "MarkdownRenderer",
    "Rasterizer",
    "Renderer",
    "RsvgRasterizer",
    "Vault",
    "link_target",
]
