import asyncio
from pathlib import Path

import pytest

from pandoc_exporter.errors import FrontmatterError
from pandoc_exporter.frontmatter import (
    compile_frontmatter,
    document_title,
    read_frontmatter,
    split_frontmatter,
)
from pandoc_exporter.options import OptionKind, iter_options


def compile_fields(fields, root: Path, custom=None):
    return asyncio.run(compile_frontmatter(fields, root, root, custom))


def test_flag_only_true_emits_bare_switch(tmp_path: Path) -> None:
    compiled = compile_fields({"pandoc-toc": True}, tmp_path)
    assert compiled.arguments == ["--toc"]
    assert not any(arg.startswith("--toc=") for arg in compiled.arguments)


def test_every_flag_only_option_emits_bare_switch(tmp_path: Path) -> None:
    for spec in iter_options(OptionKind.BOOLEAN):
        compiled = compile_fields({f"pandoc-{spec.name}": True}, tmp_path)
        expected = f"--{spec.name}" if spec.flag_only else f"--{spec.name}=true"
        assert compiled.arguments == [expected]


def test_false_and_null_emit_nothing(tmp_path: Path) -> None:
    compiled = compile_fields(
        {"pandoc-standalone": False, "pandoc-toc": False, "pandoc-template": None}, tmp_path
    )
    assert compiled.arguments == []
    assert compiled.diagnostics == []


def test_sequences_emit_one_token_per_element(tmp_path: Path) -> None:
    compiled = compile_fields({"pandoc-variable": ["a=1", "b=2", "c=3"]}, tmp_path)
    assert compiled.arguments == ["--variable=a=1", "--variable=b=2", "--variable=c=3"]


def test_invalid_sequence_element_keeps_siblings(tmp_path: Path) -> None:
    compiled = compile_fields({"pandoc-variable": ["a=1", 5, "c=3"]}, tmp_path)
    assert compiled.arguments == ["--variable=a=1", "--variable=c=3"]
    assert len(compiled.diagnostics) == 1


def test_invalid_number_is_dropped_with_diagnostic(tmp_path: Path) -> None:
    compiled = compile_fields({"pandoc-toc-depth": "not-a-number"}, tmp_path)
    assert compiled.arguments == []
    assert len(compiled.diagnostics) == 1
    assert "number" in compiled.diagnostics[0]
    assert "pandoc-toc-depth" in compiled.diagnostics[0]


def test_choice_outside_set(tmp_path: Path) -> None:
    compiled = compile_fields({"pandoc-pdf-engine": "invalid-engine"}, tmp_path)
    assert compiled.arguments == []
    assert len(compiled.diagnostics) == 1
    assert "xelatex" in compiled.diagnostics[0]

    compiled = compile_fields({"pandoc-pdf-engine": "xelatex"}, tmp_path)
    assert compiled.arguments == ["--pdf-engine=xelatex"]


def test_values_with_spaces_stay_one_token(tmp_path: Path) -> None:
    compiled = compile_fields({"pandoc-metadata": "subtitle=A long one"}, tmp_path)
    assert compiled.arguments == ["--metadata=subtitle=A long one"]


def test_numbers_render_plainly(tmp_path: Path) -> None:
    compiled = compile_fields({"pandoc-toc-depth": 2}, tmp_path)
    assert compiled.arguments == ["--toc-depth=2"]


def test_file_reference_resolution(tmp_path: Path) -> None:
    custom = tmp_path / "tpl"
    custom.mkdir()
    (custom / "refs.bib").write_text("", encoding="utf-8")
    compiled = asyncio.run(
        compile_frontmatter({"pandoc-bibliography": "refs.bib"}, tmp_path / "notes", tmp_path, "tpl")
    )
    assert compiled.arguments == [f"--bibliography={custom / 'refs.bib'}"]

    compiled = asyncio.run(
        compile_frontmatter({"pandoc-bibliography": "refs.bib"}, tmp_path / "notes", tmp_path)
    )
    assert compiled.arguments == ["--bibliography=refs.bib"]


def test_empty_or_invalid_directive_name_is_reported(tmp_path: Path) -> None:
    compiled = compile_fields({"pandoc-": True, "pandoc-x": 1, "pandoc--bad": "y"}, tmp_path)
    assert compiled.arguments == ["--x=1"]
    assert len(compiled.diagnostics) == 2
    assert "'' is not a valid option name" in compiled.diagnostics[0]
    assert "'-bad' is not a valid option name" in compiled.diagnostics[1]


def test_file_option_sequence_resolves_each_element(tmp_path: Path) -> None:
    (tmp_path / "a.css").write_text("a{}", encoding="utf-8")
    compiled = compile_fields({"pandoc-css": ["a.css", "missing.css"]}, tmp_path)
    assert compiled.arguments == [f"--css={tmp_path / 'a.css'}", "--css=missing.css"]
    assert compiled.diagnostics == []


def test_metadata_passthrough_keeps_order(tmp_path: Path) -> None:
    compiled = compile_fields(
        {"title": "Report", "pandoc-toc": True, "author": "Me", "tags": ["a"]}, tmp_path
    )
    assert list(compiled.metadata) == ["title", "author", "tags"]
    assert compiled.metadata["tags"] == ["a"]


def test_mapping_directive_is_reported(tmp_path: Path) -> None:
    compiled = compile_fields({"pandoc-variable": {"a": 1}}, tmp_path)
    assert compiled.arguments == []
    assert "unsupported value" in compiled.diagnostics[0]


def test_unknown_directive_is_passed_on(tmp_path: Path) -> None:
    compiled = compile_fields({"pandoc-brand-new": "x"}, tmp_path)
    assert compiled.arguments == ["--brand-new=x"]


def test_split_frontmatter() -> None:
    fields, body = split_frontmatter("---\ntitle: Hi\npandoc-toc: true\n---\n# Body\n")
    assert fields == {"title": "Hi", "pandoc-toc": True}
    assert body == "# Body\n"
    assert read_frontmatter("# No header\n") == {}


def test_invalid_frontmatter_raises() -> None:
    with pytest.raises(FrontmatterError):
        split_frontmatter("---\ntitle: [unclosed\n---\n")
    with pytest.raises(FrontmatterError):
        split_frontmatter("---\n- a\n- b\n---\n")


def test_document_title_defaults_to_base_name() -> None:
    assert document_title({}, "/vault/notes/Obsidian.md") == "Obsidian"
    assert document_title({"title": "Given"}, "/vault/x.md") == "Given"
