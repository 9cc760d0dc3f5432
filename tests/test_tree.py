from pandoc_exporter.tree import NodeKind, TreeBuilder, parse_html, with_attr


def test_round_trip_keeps_structure() -> None:
    markup = '<p class="a b">x &amp; y<br>z</p><!--note-->'
    assert parse_html(markup).to_html() == markup


def test_svg_case_is_restored() -> None:
    tree = parse_html('<svg viewBox="0 0 10 10"><clipPath id="c"></clipPath></svg>')
    assert tree.to_html() == '<svg viewBox="0 0 10 10"><clipPath id="c"></clipPath></svg>'


def test_children_are_indices() -> None:
    tree = parse_html("<ul><li>one</li><li>two</li></ul>")
    (ul,) = tree.children(tree.root)
    items = tree.children(ul)
    assert [tree.text_content(item) for item in items] == ["one", "two"]
    assert tree.find_all(lambda node: node.is_element("li")) == list(items)


def test_graft_copies_without_touching_source() -> None:
    source = parse_html("<div><em>hi</em></div>")
    builder = TreeBuilder()
    (div,) = source.children(source.root)
    copied = builder.graft(source, div)
    wrapper = builder.element("section", (("id", "s"),), [copied])
    result = builder.build(wrapper)
    assert result.to_html() == '<section id="s"><div><em>hi</em></div></section>'
    assert source.to_html() == "<div><em>hi</em></div>"


def test_graft_children_unwraps_fragments() -> None:
    source = parse_html("<p>a</p><p>b</p>")
    builder = TreeBuilder()
    indices = builder.graft_children(source, source.root)
    assert len(indices) == 2
    assert builder.build(builder.fragment(indices)).to_html() == "<p>a</p><p>b</p>"


def test_with_attr_replaces_or_appends() -> None:
    attrs = (("src", "a.png"), ("alt", "x"))
    assert with_attr(attrs, "src", "b.png") == (("src", "b.png"), ("alt", "x"))
    assert with_attr(attrs, "width", "3")[-1] == ("width", "3")


def test_node_helpers() -> None:
    tree = parse_html('<span class="internal-embed big" src="Note">t</span>')
    node = tree.node(tree.children(tree.root)[0])
    assert node.kind is NodeKind.ELEMENT
    assert node.has_class("internal-embed")
    assert node.attr("src") == "Note"
    assert node.attr("missing") is None
