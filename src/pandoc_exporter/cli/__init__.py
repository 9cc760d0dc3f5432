from __future__ import annotations

import asyncio
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ..config import AppConfig
from ..core import ExportService
from ..errors import ExportError
from ..frontmatter import compile_frontmatter, read_frontmatter
from ..logging import configure_logging
from ..models import ExportStatus
from ..options import OptionKind, iter_options
from ..pandoc import OUTPUT_FORMATS, detect_capabilities
from ..settings import resolve_config

console = Console()

app = typer.Typer(help="Export vault notes through pandoc")


def _load_config(path: Path | None) -> AppConfig:
    return resolve_config(path)


def _service(config: AppConfig) -> ExportService:
    capabilities = detect_capabilities(config.export.pandoc, config.export.pdflatex)
    return ExportService(config, capabilities)


@app.command()
def export(
    file: Path,
    to: str = typer.Option(..., "--to", "-t", help="Pandoc output format, e.g. docx or pdf"),
    output: Path | None = typer.Option(None, "--output", "-o", help="Output file path"),
    config: Path | None = typer.Option(None, "--config", help="Path to config.toml"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    configure_logging(verbose)
    cfg = _load_config(config)
    result = asyncio.run(_service(cfg).export(file, to, output_path=output))
    for diagnostic in result.diagnostics:
        console.print(f"[yellow]{escape(diagnostic)}[/yellow]")
    if cfg.export.show_cli_commands and result.command:
        console.print(f"Command: {escape(result.command)}")
    if result.status is ExportStatus.FAILED:
        console.print(f"[red]Export failed[/red]: {result.error_code} - {escape(result.message)}")
        if result.warnings:
            console.print(escape(result.warnings))
        raise typer.Exit(1)
    if result.status is ExportStatus.WARNINGS:
        console.print(f"[yellow]Warnings[/yellow]: {escape(result.warnings.strip())}")
    console.print(f"[green]Success[/green]: {result.message}")


@app.command()
def args(
    file: Path,
    config: Path | None = typer.Option(None, "--config", help="Path to config.toml"),
) -> None:
    """Show the pandoc arguments a note's frontmatter compiles to."""

    cfg = _load_config(config)
    path = file.resolve()
    try:
        fields = read_frontmatter(path.read_text(encoding="utf-8"))
    except (OSError, ExportError) as exc:
        console.print(f"[red]Cannot read frontmatter[/red]: {escape(str(exc))}")
        raise typer.Exit(1) from exc
    compiled = asyncio.run(
        compile_frontmatter(fields, path.parent, cfg.vault.root.resolve(), cfg.export.template_folder)
    )
    console.print(" ".join(compiled.arguments) or "(no arguments)")
    for diagnostic in compiled.diagnostics:
        console.print(f"[yellow]{escape(diagnostic)}[/yellow]")
    if compiled.diagnostics:
        raise typer.Exit(2)


@app.command()
def formats() -> None:
    table = Table(title="Output formats")
    table.add_column("Format")
    table.add_column("Name")
    table.add_column("Extension")
    for output_format in OUTPUT_FORMATS:
        table.add_row(output_format.pandoc_name, output_format.pretty_name, output_format.extension)
    console.print(table)


@app.command()
def options(
    kind: OptionKind | None = typer.Option(None, "--kind", help="Only list options of this kind"),
) -> None:
    table = Table(title="Frontmatter directives")
    table.add_column("Directive")
    table.add_column("Kind")
    table.add_column("Description")
    for spec in iter_options(kind):
        label = f"{spec.kind.value} (flag)" if spec.flag_only else spec.kind.value
        table.add_row(f"pandoc-{spec.name}", label, spec.description)
    console.print(table)


@app.command()
def serve(
    config: Path | None = typer.Option(None, "--config", help="Path to config.toml"),
) -> None:
    """Run the local API (requires runtime.enable_local_api)."""

    import uvicorn

    from ..api import create_app

    cfg = _load_config(config)
    try:
        api = create_app(config, require_enabled=True)
    except RuntimeError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(1) from exc
    uvicorn.run(api, host=cfg.api.host, port=cfg.api.port)


if __name__ == "__main__":
    app()
