from __future__ import annotations

from pathlib import Path

from fastapi import FastAPI, HTTPException

from .core import ExportService
from .errors import FrontmatterError
from .frontmatter import compile_frontmatter, read_frontmatter
from .models import ExportStatus
from .pandoc import detect_capabilities, get_output_format
from .schemas import CompileRequest, CompileResponse, ExportRequest, ExportResponse, HealthStatus
from .settings import resolve_config


def create_app(config_path: Path | None = None, *, require_enabled: bool = True) -> FastAPI:
    config = resolve_config(config_path)
    if require_enabled and not config.runtime.enable_local_api:
        raise RuntimeError("Local API is disabled. Enable it via config.runtime.enable_local_api")
    capabilities = detect_capabilities(config.export.pandoc, config.export.pdflatex)
    service = ExportService(config, capabilities)
    vault_root = config.vault.root.resolve()
    app = FastAPI(title="Pandoc Exporter", version="0.1.0")

    def _note_path(raw: str) -> Path:
        path = Path(raw).expanduser()
        return path if path.is_absolute() else vault_root / path

    @app.get("/health", response_model=HealthStatus)
    async def health() -> HealthStatus:
        return HealthStatus(
            status="ok",
            pandoc=capabilities.pandoc is not None,
            pdf=bool(capabilities.pdflatex or capabilities.pdf_engine),
        )

    @app.post("/compile", response_model=CompileResponse)
    async def compile_(request: CompileRequest) -> CompileResponse:
        current_dir = _note_path(request.path).parent if request.path else vault_root
        try:
            fields = read_frontmatter(request.markdown)
        except FrontmatterError as exc:
            raise HTTPException(status_code=400, detail=exc.code) from exc
        compiled = await compile_frontmatter(
            fields, current_dir, vault_root, config.export.template_folder
        )
        return CompileResponse(
            metadata=compiled.metadata,
            arguments=compiled.arguments,
            diagnostics=compiled.diagnostics,
        )

    @app.post("/export", response_model=ExportResponse)
    async def export(request: ExportRequest) -> ExportResponse:
        try:
            get_output_format(request.format)
        except KeyError as exc:
            raise HTTPException(status_code=400, detail="UNKNOWN_FORMAT") from exc
        path = _note_path(request.path)
        if not path.is_file():
            raise HTTPException(status_code=404, detail="NOT_FOUND")
        output_path = _note_path(request.output_path) if request.output_path else None
        result = await service.export(path, request.format, output_path=output_path)
        if result.status is ExportStatus.FAILED and result.error_code == "UNSUPPORTED":
            raise HTTPException(status_code=400, detail=result.error_code)
        return ExportResponse(
            run_id=result.run_id,
            status=result.status.value,
            output_path=str(result.output_path) if result.output_path else None,
            message=result.message,
            warnings=result.warnings,
            command=result.command,
            diagnostics=result.diagnostics,
        )

    return app


__all__ = ["create_app"]
