from pandoc_exporter.validation import validate_element, validate_option
from pandoc_exporter.values import BoolValue, NullValue, NumberValue, SequenceValue, StringValue


def test_unknown_option_is_always_valid() -> None:
    assert validate_option("made-up", NumberValue(1)).valid
    assert validate_option("made-up", StringValue("x")).valid


def test_flag_only_boolean() -> None:
    assert validate_option("toc", BoolValue(True)).valid
    # false simply leaves the flag off
    assert validate_option("toc", BoolValue(False)).valid
    result = validate_option("toc", StringValue("true"))
    assert not result.valid
    assert "flag-only" in result.diagnostic


def test_plain_boolean_rejects_other_types() -> None:
    result = validate_option("standalone", NumberValue(1))
    assert not result.valid
    assert "boolean" in result.diagnostic


def test_choice_lists_allowed_values() -> None:
    assert validate_option("pdf-engine", StringValue("xelatex")).valid
    result = validate_option("pdf-engine", StringValue("invalid-engine"))
    assert not result.valid
    assert "lualatex" in result.diagnostic
    assert "invalid-engine" in result.diagnostic


def test_number_accepts_numeric_strings() -> None:
    assert validate_option("toc-depth", NumberValue(2)).valid
    assert validate_option("toc-depth", StringValue("3")).valid
    result = validate_option("toc-depth", StringValue("not-a-number"))
    assert not result.valid
    assert "number" in result.diagnostic


def test_string_and_file_options_require_strings() -> None:
    assert validate_option("template", StringValue("t.tex")).valid
    assert not validate_option("template", NumberValue(3)).valid
    assert not validate_option("highlight-style", BoolValue(True)).valid


def test_null_and_sequences_pass_whole_value_check() -> None:
    assert validate_option("toc-depth", NullValue()).valid
    assert validate_option("css", SequenceValue((NumberValue(1),))).valid


def test_elements_validated_individually() -> None:
    assert validate_element("css", StringValue("a.css")).valid
    assert not validate_element("css", NumberValue(1)).valid
    assert not validate_element("css", SequenceValue((StringValue("a"),))).valid
