import datetime as dt

import pytest

from pandoc_exporter.errors import DirectiveValueError
from pandoc_exporter.values import (
    BoolValue,
    NullValue,
    NumberValue,
    SequenceValue,
    StringValue,
    describe,
    directive_value,
)


def test_scalars_are_tagged() -> None:
    assert directive_value(None) == NullValue()
    assert directive_value(True) == BoolValue(True)
    assert directive_value(3) == NumberValue(3)
    assert directive_value("x") == StringValue("x")


def test_bool_is_not_a_number() -> None:
    assert isinstance(directive_value(False), BoolValue)


def test_sequences_keep_order() -> None:
    value = directive_value(["a.css", "b.css"])
    assert value == SequenceValue((StringValue("a.css"), StringValue("b.css")))
    assert describe(value) == "sequence"


def test_dates_become_strings() -> None:
    assert directive_value(dt.date(2024, 1, 2)) == StringValue("2024-01-02")


def test_number_rendering() -> None:
    assert NumberValue(2.0).render() == "2"
    assert NumberValue(1.5).render() == "1.5"


def test_mappings_and_non_finite_numbers_are_rejected() -> None:
    with pytest.raises(DirectiveValueError):
        directive_value({"a": 1})
    with pytest.raises(DirectiveValueError):
        directive_value(float("nan"))
