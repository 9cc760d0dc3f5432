"""Compile YAML frontmatter into pandoc metadata and command-line arguments.

Fields whose key starts with ``pandoc-`` are directives: the prefix is
stripped, the value is validated against :mod:`pandoc_exporter.options` and
turned into ``--name`` / ``--name=value`` tokens. Everything else is
passthrough metadata handed to pandoc through a metadata file.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

import yaml

from .errors import DirectiveValueError, FrontmatterError
from .options import is_flag_only, resolves_path
from .paths import resolve_file_path
from .utils import file_base_name
from .validation import validate_element, validate_option
from .values import (
    BoolValue,
    DirectiveValue,
    NullValue,
    NumberValue,
    SequenceValue,
    StringValue,
    directive_value,
)

logger = logging.getLogger(__name__)

DIRECTIVE_PREFIX = "pandoc-"
_OPTION_NAME_RE = re.compile(r"[A-Za-z0-9][A-Za-z0-9-]*")
FRONTMATTER_DELIMITER = "---"


@dataclass(slots=True)
class CompiledFrontmatter:
    metadata: dict[str, Any] = field(default_factory=dict)
    arguments: list[str] = field(default_factory=list)
    diagnostics: list[str] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class _CompileContext:
    current_dir: Path
    root_dir: Path
    custom_dir: str | Path | None


def frontmatter_block(markdown: str) -> tuple[str | None, str]:
    """Return the raw header text (or ``None``) and the body of *markdown*."""

    lines = markdown.lstrip().splitlines(keepends=True)
    if not lines or lines[0].rstrip() != FRONTMATTER_DELIMITER:
        return None, markdown
    for index in range(1, len(lines)):
        if lines[index].rstrip() == FRONTMATTER_DELIMITER:
            return "".join(lines[1:index]), "".join(lines[index + 1 :])
    return None, markdown


def split_frontmatter(markdown: str) -> tuple[dict[str, Any], str]:
    """Split *markdown* into its parsed header fields and the remaining body."""

    header, body = frontmatter_block(markdown)
    if header is None:
        return {}, markdown

    try:
        data = yaml.safe_load(header)
    except yaml.YAMLError as exc:
        raise FrontmatterError(f"Invalid YAML frontmatter: {exc}") from exc
    if data is None:
        return {}, body
    if not isinstance(data, dict):
        raise FrontmatterError(
            f"Frontmatter must be a mapping, got {type(data).__name__}"
        )
    return {str(key): value for key, value in data.items()}, body


def read_frontmatter(markdown: str) -> dict[str, Any]:
    fields, _ = split_frontmatter(markdown)
    return fields


def document_title(metadata: Mapping[str, Any], path: str | Path) -> str:
    title = metadata.get("title")
    if title is None or title == "":
        return file_base_name(path)
    return str(title)


async def compile_frontmatter(
    fields: Mapping[str, Any],
    current_dir: Path,
    root_dir: Path,
    custom_dir: str | Path | None = None,
) -> CompiledFrontmatter:
    compiled = CompiledFrontmatter()
    context = _CompileContext(current_dir, root_dir, custom_dir)

    for key, raw in fields.items():
        if not key.startswith(DIRECTIVE_PREFIX):
            compiled.metadata[key] = raw
            continue

        name = key[len(DIRECTIVE_PREFIX) :]
        if not _OPTION_NAME_RE.fullmatch(name):
            _report(compiled, key, f"'{name}' is not a valid option name")
            continue
        try:
            value = directive_value(raw)
        except DirectiveValueError as exc:
            _report(compiled, key, f"Option '{name}' has an {exc}")
            continue

        result = validate_option(name, value)
        if not result.valid:
            _report(compiled, key, result.diagnostic)
            continue

        if isinstance(value, SequenceValue):
            for item in value.items:
                item_result = validate_element(name, item)
                if not item_result.valid:
                    _report(compiled, f"{key}[]", item_result.diagnostic)
                    continue
                compiled.arguments.extend(await _emit(name, item, context))
        else:
            compiled.arguments.extend(await _emit(name, value, context))

    return compiled


async def _emit(name: str, value: DirectiveValue, context: _CompileContext) -> list[str]:
    if isinstance(value, NullValue):
        return []
    if isinstance(value, BoolValue):
        if not value.value:
            return []
        if is_flag_only(name):
            return [f"--{name}"]
        return [f"--{name}=true"]
    if isinstance(value, (NumberValue, StringValue)):
        rendered = value.render()
        if resolves_path(name):
            rendered = await resolve_file_path(
                rendered, context.current_dir, context.root_dir, context.custom_dir
            )
        return [f"--{name}={rendered}"]
    raise TypeError(f"Cannot emit {value!r} for option '{name}'")


def _report(compiled: CompiledFrontmatter, key: str, diagnostic: str | None) -> None:
    message = f"Pandoc argument validation error for {key}: {diagnostic}"
    logger.warning(message)
    compiled.diagnostics.append(message)


__all__ = [
    "CompiledFrontmatter",
    "DIRECTIVE_PREFIX",
    "compile_frontmatter",
    "frontmatter_block",
    "document_title",
    "read_frontmatter",
    "split_frontmatter",
]
