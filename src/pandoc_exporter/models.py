"""Domain models for pandoc exports."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from .logging import StageTimings


class ExportStatus(str, Enum):
    SUCCEEDED = "succeeded"
    WARNINGS = "warnings"
    FAILED = "failed"


@dataclass(slots=True)
class ExportPlan:
    """Everything needed to invoke pandoc for one note."""

    input_file: Path
    output_file: Path
    output_format: str
    payload: str
    metadata: dict[str, Any]
    arguments: list[str]
    default_arguments: list[str] = field(default_factory=list)
    document_arguments: list[str] = field(default_factory=list)
    diagnostics: list[str] = field(default_factory=list)
    timings: StageTimings = field(default_factory=StageTimings)


@dataclass(slots=True)
class ExportResult:
    """Outcome reported back to the user."""

    run_id: str
    status: ExportStatus
    output_path: Path | None
    message: str
    warnings: str = ""
    command: str | None = None
    diagnostics: list[str] = field(default_factory=list)
    error_code: str | None = None

    @property
    def ok(self) -> bool:
        return self.status is not ExportStatus.FAILED


__all__ = ["ExportPlan", "ExportResult", "ExportStatus"]
