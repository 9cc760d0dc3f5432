from __future__ import annotations

import logging
import tempfile
import time
from pathlib import Path
from typing import Callable, Sequence

import yaml

from .config import AppConfig
from .errors import ExportError, PandocError
from .frontmatter import compile_frontmatter, document_title, read_frontmatter
from .logging import ExportLogEntry, RunLogger, StageTimings
from .models import ExportPlan, ExportResult, ExportStatus
from .pandoc import (
    INPUT_EXTENSIONS,
    STDIN,
    Capabilities,
    PandocInput,
    PandocOutput,
    PandocResult,
    get_output_format,
    needs_latex,
    needs_pandoc,
    parse_default_arguments,
    run_pandoc,
)
from .rendering import FileSystemVault, MarkdownRenderer, Rasterizer, Renderer, RsvgRasterizer, Vault
from .resolver import ContentResolver, ResolverOptions, load_custom_css
from .utils import atomic_write, generate_run_id, replace_file_extension, run_sync

logger = logging.getLogger(__name__)

PandocRunner = Callable[
    [PandocInput, PandocOutput, Sequence[str], Capabilities | None, float | None],
    PandocResult,
]


class ExportService:
    """Runs one note through content resolution, frontmatter compilation and pandoc."""

    def __init__(
        self,
        config: AppConfig,
        capabilities: Capabilities,
        *,
        renderer: Renderer | None = None,
        vault: Vault | None = None,
        rasterizer: Rasterizer | None = None,
        runner: PandocRunner = run_pandoc,
        run_logger: RunLogger | None = None,
    ) -> None:
        self._config = config
        self._capabilities = capabilities
        self._renderer = renderer or MarkdownRenderer()
        self._vault = vault or FileSystemVault(config.vault.root)
        self._rasterizer = rasterizer if rasterizer is not None else RsvgRasterizer()
        self._runner = runner
        self._run_logger = run_logger or RunLogger(config.runtime.log_path)

    @property
    def capabilities(self) -> Capabilities:
        return self._capabilities

    @property
    def run_logger(self) -> RunLogger:
        return self._run_logger

    def default_arguments(self) -> list[str]:
        return parse_default_arguments(self._config.export.extra_arguments)

    def can_export(self, path: Path, output_format: str) -> bool:
        try:
            get_output_format(output_format)
        except KeyError:
            return False
        if needs_pandoc(output_format) and not self._capabilities.pandoc:
            return False
        if needs_latex(output_format) and not (
            self._capabilities.pdflatex or self._capabilities.pdf_engine
        ):
            return False
        return path.suffix.lstrip(".").lower() in INPUT_EXTENSIONS

    def output_path_for(self, path: Path, output_format: str) -> Path:
        output = replace_file_extension(path, get_output_format(output_format).extension)
        if self._config.export.output_folder:
            output = self._config.export.output_folder / output.name
        return output

    def _content_resolver(self) -> ContentResolver:
        export = self._config.export
        options = ResolverOptions(
            link_policy=export.link_policy,
            internal_link_extension=export.internal_link_extension,
            display_frontmatter=export.display_frontmatter,
            high_dpi_diagrams=export.high_dpi_diagrams,
            custom_css=load_custom_css(export.custom_css_file, self._vault.root),
        )
        return ContentResolver(self._renderer, self._vault, self._rasterizer, options)

    async def prepare(
        self,
        path: Path,
        output_format: str,
        *,
        output_path: Path | None = None,
    ) -> ExportPlan:
        path = path.resolve()
        markdown = await run_sync(self._vault.read, path)
        timings = StageTimings()

        payload = ""
        resolve_start = time.perf_counter()
        if self._config.export.export_from == "html":
            payload = await self._content_resolver().resolve(path, output_format, markdown=markdown)
        timings.resolve_ms = (time.perf_counter() - resolve_start) * 1000

        compile_start = time.perf_counter()
        compiled = await compile_frontmatter(
            read_frontmatter(markdown),
            path.parent,
            self._vault.root,
            self._config.export.template_folder,
        )
        timings.compile_ms = (time.perf_counter() - compile_start) * 1000

        metadata = dict(compiled.metadata)
        metadata["title"] = document_title(metadata, path)
        defaults = self.default_arguments()
        return ExportPlan(
            input_file=path,
            output_file=output_path or self.output_path_for(path, output_format),
            output_format=output_format,
            payload=payload,
            metadata=metadata,
            arguments=[*defaults, *compiled.arguments],
            default_arguments=defaults,
            document_arguments=list(compiled.arguments),
            diagnostics=list(compiled.diagnostics),
            timings=timings,
        )

    async def export(
        self,
        path: Path,
        output_format: str,
        *,
        output_path: Path | None = None,
    ) -> ExportResult:
        """Export *path*; never raises, failures come back as a failed result."""

        run_id = generate_run_id()
        plan: ExportPlan | None = None
        try:
            if not self.can_export(path, output_format):
                raise ExportError(
                    f"Cannot export {path.name} to {output_format}: unsupported input or missing tools",
                    code="UNSUPPORTED",
                )
            plan = await self.prepare(path, output_format, output_path=output_path)
            result = await self._invoke(run_id, plan)
        except PandocError as exc:
            result = self._failure(run_id, exc, plan, warnings=exc.stderr, command=exc.command)
        except ExportError as exc:
            result = self._failure(run_id, exc, plan)
        except Exception as exc:
            logger.exception("Unexpected error exporting %s", path)
            result = self._failure(run_id, exc, plan, code="UNEXPECTED")
        try:
            self._record(result, path, output_format, plan)
        except OSError:
            logger.exception("Could not append export %s to %s", run_id, self._run_logger.log_file)
        return result

    async def _invoke(self, run_id: str, plan: ExportPlan) -> ExportResult:
        export = self._config.export
        plan.output_file.parent.mkdir(parents=True, exist_ok=True)

        if plan.output_format == "html" and export.export_from == "html":
            await run_sync(atomic_write, plan.output_file, plan.payload)
            return ExportResult(
                run_id=run_id,
                status=ExportStatus.SUCCEEDED,
                output_path=plan.output_file,
                message=f"Successfully exported to {plan.output_file}",
                diagnostics=plan.diagnostics,
            )

        metadata_file = self._write_metadata_file(plan.metadata)
        try:
            source = self._pandoc_input(plan, metadata_file)
            output = PandocOutput(file=str(plan.output_file), format=plan.output_format)
            pandoc_start = time.perf_counter()
            pandoc_result = await run_sync(
                self._runner,
                source,
                output,
                plan.default_arguments,
                self._capabilities,
                float(self._config.runtime.convert_timeout_s),
            )
            plan.timings.pandoc_ms = (time.perf_counter() - pandoc_start) * 1000
        finally:
            metadata_file.unlink(missing_ok=True)

        if pandoc_result.stderr.strip():
            status = ExportStatus.WARNINGS
            message = f"Exported via Pandoc to {plan.output_file} with warnings"
        else:
            status = ExportStatus.SUCCEEDED
            message = f"Successfully exported via Pandoc to {plan.output_file}"
        return ExportResult(
            run_id=run_id,
            status=status,
            output_path=plan.output_file,
            message=message,
            warnings=pandoc_result.stderr,
            command=pandoc_result.command,
            diagnostics=plan.diagnostics,
        )

    def _pandoc_input(self, plan: ExportPlan, metadata_file: Path) -> PandocInput:
        export = self._config.export
        common = {
            "directory": plan.input_file.parent,
            "metadata_file": str(metadata_file),
            "pandoc": export.pandoc or self._capabilities.pandoc,
            "pdflatex": export.pdflatex or self._capabilities.pdflatex,
            "document_args": plan.document_arguments,
        }
        if export.export_from == "html":
            return PandocInput(file=STDIN, format="html", contents=plan.payload, **common)
        return PandocInput(file=str(plan.input_file), format="markdown", **common)

    @staticmethod
    def _write_metadata_file(metadata: dict[str, object]) -> Path:
        with tempfile.NamedTemporaryFile(
            "w", suffix=".yaml", prefix="pandoc-metadata-", delete=False, encoding="utf-8"
        ) as handle:
            yaml.safe_dump(metadata, handle, allow_unicode=True, sort_keys=False)
        return Path(handle.name)

    def _failure(
        self,
        run_id: str,
        exc: Exception,
        plan: ExportPlan | None,
        *,
        code: str | None = None,
        warnings: str = "",
        command: str | None = None,
    ) -> ExportResult:
        return ExportResult(
            run_id=run_id,
            status=ExportStatus.FAILED,
            output_path=None,
            message=f"Pandoc export failed: {exc}",
            warnings=warnings,
            command=command,
            diagnostics=plan.diagnostics if plan else [],
            error_code=code or getattr(exc, "code", None),
        )

    def _record(
        self,
        result: ExportResult,
        path: Path,
        output_format: str,
        plan: ExportPlan | None,
    ) -> None:
        self._run_logger.append(
            ExportLogEntry(
                run_id=result.run_id,
                source=str(path),
                output_format=output_format,
                status=result.status.value,
                output_path=str(result.output_path) if result.output_path else None,
                warnings=result.warnings,
                diagnostics=result.diagnostics,
                error_code=result.error_code,
                command=result.command,
                timings=plan.timings if plan else StageTimings(),
            )
        )


__all__ = ["ExportService", "PandocRunner"]
