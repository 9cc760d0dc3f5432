"""Tagged representation of frontmatter directive values.

YAML gives us arbitrary Python objects. Directive handling only ever deals
with the variants below, so every consumer can dispatch on the concrete
class and treat anything else as a programming error.
"""

from __future__ import annotations

import datetime as dt
import math
from dataclasses import dataclass
from typing import Union

from .errors import DirectiveValueError


@dataclass(frozen=True, slots=True)
class NullValue:
    def render(self) -> str:
        return ""


@dataclass(frozen=True, slots=True)
class BoolValue:
    value: bool

    def render(self) -> str:
        return "true" if self.value else "false"


@dataclass(frozen=True, slots=True)
class NumberValue:
    value: int | float

    def render(self) -> str:
        if isinstance(self.value, float) and self.value.is_integer():
            return str(int(self.value))
        return str(self.value)


@dataclass(frozen=True, slots=True)
class StringValue:
    value: str

    def render(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class SequenceValue:
    items: tuple["DirectiveValue", ...]

    def render(self) -> str:
        return ",".join(item.render() for item in self.items)


DirectiveValue = Union[NullValue, BoolValue, NumberValue, StringValue, SequenceValue]
ScalarValue = Union[BoolValue, NumberValue, StringValue]


def directive_value(raw: object) -> DirectiveValue:
    """Convert a parsed YAML value into a :data:`DirectiveValue`."""

    if raw is None:
        return NullValue()
    # bool is an int subclass, so it must be checked first
    if isinstance(raw, bool):
        return BoolValue(raw)
    if isinstance(raw, (int, float)):
        if isinstance(raw, float) and not math.isfinite(raw):
            raise DirectiveValueError(f"unsupported number {raw!r}")
        return NumberValue(raw)
    if isinstance(raw, str):
        return StringValue(raw)
    if isinstance(raw, (dt.date, dt.datetime)):
        return StringValue(raw.isoformat())
    if isinstance(raw, (list, tuple)):
        return SequenceValue(tuple(directive_value(item) for item in raw))
    raise DirectiveValueError(f"unsupported value of type '{type(raw).__name__}'")


def describe(value: DirectiveValue) -> str:
    if isinstance(value, NullValue):
        return "null"
    if isinstance(value, BoolValue):
        return "boolean"
    if isinstance(value, NumberValue):
        return "number"
    if isinstance(value, StringValue):
        return "string"
    if isinstance(value, SequenceValue):
        return "sequence"
    raise TypeError(f"Not a directive value: {value!r}")


__all__ = [
    "BoolValue",
    "DirectiveValue",
    "NullValue",
    "NumberValue",
    "ScalarValue",
    "SequenceValue",
    "StringValue",
    "describe",
    "directive_value",
]
