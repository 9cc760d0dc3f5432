"""Arena-backed HTML document tree.

Nodes are immutable and refer to their children by index into the owning
:class:`DocumentTree`. Transformations never mutate a tree; they write a new
one through :class:`TreeBuilder`, copying (grafting) any sub-tree they keep.
"""

from __future__ import annotations

import html
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterator, Sequence

from bs4 import BeautifulSoup, Comment, Doctype, NavigableString, Tag

VOID_ELEMENTS = frozenset(
    {
        "area",
        "base",
        "br",
        "col",
        "embed",
        "hr",
        "img",
        "input",
        "link",
        "meta",
        "source",
        "track",
        "wbr",
    }
)
RAW_TEXT_ELEMENTS = frozenset({"script", "style"})

# html.parser lowercases everything; SVG is case-sensitive XML.
SVG_TAG_CASE = {
    name.lower(): name
    for name in (
        "clipPath",
        "feGaussianBlur",
        "feOffset",
        "feBlend",
        "foreignObject",
        "linearGradient",
        "radialGradient",
        "textPath",
    )
}
SVG_ATTR_CASE = {
    name.lower(): name
    for name in (
        "viewBox",
        "preserveAspectRatio",
        "gradientUnits",
        "gradientTransform",
        "markerHeight",
        "markerWidth",
        "markerUnits",
        "patternUnits",
        "refX",
        "refY",
        "stdDeviation",
        "textLength",
        "lengthAdjust",
    )
}


class NodeKind(str, Enum):
    FRAGMENT = "fragment"
    ELEMENT = "element"
    TEXT = "text"
    COMMENT = "comment"


@dataclass(frozen=True, slots=True)
class Node:
    kind: NodeKind
    tag: str = ""
    attrs: tuple[tuple[str, str], ...] = ()
    children: tuple[int, ...] = ()
    text: str = ""

    def attr(self, name: str, default: str | None = None) -> str | None:
        for key, value in self.attrs:
            if key == name:
                return value
        return default

    @property
    def classes(self) -> tuple[str, ...]:
        return tuple((self.attr("class") or "").split())

    def has_class(self, name: str) -> bool:
        return name in self.classes

    def is_element(self, tag: str | None = None) -> bool:
        if self.kind is not NodeKind.ELEMENT:
            return False
        return tag is None or self.tag == tag


def with_attr(attrs: Sequence[tuple[str, str]], name: str, value: str) -> tuple[tuple[str, str], ...]:
    """Return *attrs* with *name* set to *value*, keeping attribute order."""

    updated = [(key, value if key == name else current) for key, current in attrs]
    if all(key != name for key, _ in attrs):
        updated.append((name, value))
    return tuple(updated)


class DocumentTree:
    def __init__(self, nodes: Sequence[Node], root: int) -> None:
        self._nodes = tuple(nodes)
        self.root = root

    def __len__(self) -> int:
        return len(self._nodes)

    def node(self, index: int) -> Node:
        return self._nodes[index]

    def children(self, index: int) -> tuple[int, ...]:
        return self._nodes[index].children

    def walk(self, index: int | None = None) -> Iterator[int]:
        """Yield *index* and all of its descendants in document order."""

        stack = [self.root if index is None else index]
        while stack:
            current = stack.pop()
            yield current
            stack.extend(reversed(self._nodes[current].children))

    def find_all(self, predicate: Callable[[Node], bool], index: int | None = None) -> list[int]:
        return [current for current in self.walk(index) if predicate(self._nodes[current])]

    def text_content(self, index: int | None = None) -> str:
        return "".join(
            self._nodes[current].text
            for current in self.walk(index)
            if self._nodes[current].kind is NodeKind.TEXT
        )

    def to_html(self, index: int | None = None) -> str:
        return serialize(self, self.root if index is None else index)


class TreeBuilder:
    def __init__(self) -> None:
        self._nodes: list[Node] = []

    def add(self, node: Node) -> int:
        self._nodes.append(node)
        return len(self._nodes) - 1

    def element(
        self,
        tag: str,
        attrs: Sequence[tuple[str, str]] = (),
        children: Sequence[int] = (),
    ) -> int:
        return self.add(Node(NodeKind.ELEMENT, tag=tag, attrs=tuple(attrs), children=tuple(children)))

    def text(self, text: str) -> int:
        return self.add(Node(NodeKind.TEXT, text=text))

    def comment(self, text: str) -> int:
        return self.add(Node(NodeKind.COMMENT, text=text))

    def fragment(self, children: Sequence[int] = ()) -> int:
        return self.add(Node(NodeKind.FRAGMENT, children=tuple(children)))

    def copy_leaf(self, node: Node) -> int:
        if node.children:
            raise ValueError("copy_leaf only accepts nodes without children")
        return self.add(node)

    def graft(self, tree: DocumentTree, index: int) -> int:
        """Copy the sub-tree rooted at *index* of *tree* into this builder."""

        node = tree.node(index)
        children = tuple(self.graft(tree, child) for child in node.children)
        return self.add(
            Node(node.kind, tag=node.tag, attrs=node.attrs, children=children, text=node.text)
        )

    def graft_children(self, tree: DocumentTree, index: int) -> list[int]:
        source = tree.node(index)
        if source.kind is NodeKind.FRAGMENT:
            return [self.graft(tree, child) for child in source.children]
        return [self.graft(tree, index)]

    def build(self, root: int) -> DocumentTree:
        return DocumentTree(self._nodes, root)


def parse_html(markup: str) -> DocumentTree:
    soup = BeautifulSoup(markup, "html.parser")
    builder = TreeBuilder()
    children = [index for index in (_convert(child, builder) for child in soup.contents) if index is not None]
    return builder.build(builder.fragment(children))


def _convert(element: object, builder: TreeBuilder) -> int | None:
    if isinstance(element, Doctype):
        return None
    if isinstance(element, Comment):
        return builder.comment(str(element))
    if isinstance(element, NavigableString):
        return builder.text(str(element))
    if isinstance(element, Tag):
        attrs = []
        for key, value in element.attrs.items():
            if isinstance(value, (list, tuple)):
                value = " ".join(value)
            attrs.append((key, "" if value is None else str(value)))
        children = [index for index in (_convert(child, builder) for child in element.contents) if index is not None]
        return builder.element(element.name, attrs, children)
    return None


def serialize(tree: DocumentTree, index: int, *, _in_svg: bool = False) -> str:
    node = tree.node(index)
    if node.kind is NodeKind.TEXT:
        return html.escape(node.text, quote=False)
    if node.kind is NodeKind.COMMENT:
        return f"<!--{node.text}-->"
    if node.kind is NodeKind.FRAGMENT:
        return "".join(serialize(tree, child, _in_svg=_in_svg) for child in node.children)

    in_svg = _in_svg or node.tag == "svg"
    tag = SVG_TAG_CASE.get(node.tag, node.tag) if in_svg else node.tag
    parts = [f"<{tag}"]
    for key, value in node.attrs:
        name = SVG_ATTR_CASE.get(key, key) if in_svg else key
        parts.append(f' {name}="{html.escape(value, quote=True)}"')

    if node.tag in VOID_ELEMENTS and not node.children:
        parts.append("/>" if in_svg else ">")
        return "".join(parts)
    parts.append(">")
    if node.tag in RAW_TEXT_ELEMENTS:
        parts.append("".join(tree.node(child).text for child in node.children))
    else:
        parts.extend(serialize(tree, child, _in_svg=in_svg) for child in node.children)
    parts.append(f"</{tag}>")
    return "".join(parts)


__all__ = [
    "DocumentTree",
    "Node",
    "NodeKind",
    "TreeBuilder",
    "parse_html",
    "serialize",
    "with_attr",
]
