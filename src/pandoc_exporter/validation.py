from __future__ import annotations

import math
from dataclasses import dataclass

from .options import OptionKind, OptionSpec, get_option
from .values import (
    BoolValue,
    DirectiveValue,
    NullValue,
    NumberValue,
    SequenceValue,
    StringValue,
    describe,
)


@dataclass(frozen=True, slots=True)
class ValidationResult:
    valid: bool
    diagnostic: str | None = None

    @classmethod
    def ok(cls) -> "ValidationResult":
        return cls(True)

    @classmethod
    def error(cls, diagnostic: str) -> "ValidationResult":
        return cls(False, diagnostic)


def validate_option(name: str, value: DirectiveValue) -> ValidationResult:
    """Check *value* against the registered schema for option *name*.

    Unknown options are always accepted. Sequences are accepted as a whole;
    callers validate each element with :func:`validate_element`.
    """

    spec = get_option(name)
    if spec is None or isinstance(value, NullValue):
        return ValidationResult.ok()
    if isinstance(value, SequenceValue):
        return ValidationResult.ok()
    return _validate_scalar(spec, value)


def validate_element(name: str, value: DirectiveValue) -> ValidationResult:
    spec = get_option(name)
    if isinstance(value, SequenceValue):
        return ValidationResult.error(f"Option '{name}' does not accept nested sequences")
    if spec is None or isinstance(value, NullValue):
        return ValidationResult.ok()
    return _validate_scalar(spec, value)


def _validate_scalar(spec: OptionSpec, value: DirectiveValue) -> ValidationResult:
    if spec.kind is OptionKind.BOOLEAN:
        return _validate_boolean(spec, value)
    if spec.kind is OptionKind.CHOICE:
        return _validate_choice(spec, value)
    if spec.kind is OptionKind.NUMBER:
        return _validate_number(spec, value)
    if spec.kind in {OptionKind.STRING, OptionKind.FILE}:
        if isinstance(value, StringValue):
            return ValidationResult.ok()
        return ValidationResult.error(
            f"Option '{spec.name}' expects a string, got '{describe(value)}'"
        )
    raise ValueError(f"Unhandled option kind {spec.kind!r}")


def _validate_boolean(spec: OptionSpec, value: DirectiveValue) -> ValidationResult:
    if isinstance(value, BoolValue):
        # false on a flag-only option just leaves the flag off
        return ValidationResult.ok()
    if spec.flag_only:
        return ValidationResult.error(
            f"Option '{spec.name}' is flag-only and should be set to true, not '{value.render()}'"
        )
    return ValidationResult.error(
        f"Option '{spec.name}' expects a boolean value, got '{describe(value)}'"
    )


def _validate_choice(spec: OptionSpec, value: DirectiveValue) -> ValidationResult:
    if isinstance(value, StringValue) and value.value in spec.choices:
        return ValidationResult.ok()
    choices = ", ".join(sorted(spec.choices))
    return ValidationResult.error(
        f"Option '{spec.name}' must be one of: {choices}. Got '{value.render()}'"
    )


def _validate_number(spec: OptionSpec, value: DirectiveValue) -> ValidationResult:
    if isinstance(value, NumberValue):
        return ValidationResult.ok()
    if isinstance(value, StringValue) and _parses_as_number(value.value):
        return ValidationResult.ok()
    return ValidationResult.error(
        f"Option '{spec.name}' expects a number, got '{value.render()}'"
    )


def _parses_as_number(text: str) -> bool:
    try:
        number = float(text)
    except ValueError:
        return False
    return math.isfinite(number)


__all__ = ["ValidationResult", "validate_element", "validate_option"]
