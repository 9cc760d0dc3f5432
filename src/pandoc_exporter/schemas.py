from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class HealthStatus(BaseModel):
    status: str
    pandoc: bool
    pdf: bool


class CompileRequest(BaseModel):
    markdown: str
    path: str | None = Field(default=None, description="Note path, used to resolve relative files")


class CompileResponse(BaseModel):
    metadata: dict[str, Any]
    arguments: list[str]
    diagnostics: list[str]


class ExportRequest(BaseModel):
    path: str = Field(description="Note path, absolute or relative to the vault root")
    format: str = Field(description="Pandoc output format, e.g. docx")
    output_path: str | None = None


class ExportResponse(BaseModel):
    run_id: str
    status: str
    output_path: str | None
    message: str
    warnings: str = ""
    command: str | None = None
    diagnostics: list[str] = Field(default_factory=list)
