import asyncio
from pathlib import Path

import yaml

from pandoc_exporter.config import AppConfig, ExportConfig, RuntimeConfig, VaultConfig
from pandoc_exporter.core import ExportService
from pandoc_exporter.errors import PandocError
from pandoc_exporter.logging import RunLogger
from pandoc_exporter.models import ExportStatus
from pandoc_exporter.pandoc import STDIN, Capabilities, PandocResult

CAPS = Capabilities(pandoc="pandoc", pdflatex=None, pdf_engine=None)


class FakeRunner:
    def __init__(self, stderr: str = "", error: Exception | None = None) -> None:
        self.stderr = stderr
        self.error = error
        self.calls = []
        self.metadata = None

    def __call__(self, source, output, default_args, capabilities, timeout_s):
        self.calls.append((source, output, list(default_args)))
        self.metadata = yaml.safe_load(Path(source.metadata_file).read_text(encoding="utf-8"))
        if self.error is not None:
            raise self.error
        Path(output.file).write_text("artifact", encoding="utf-8")
        return PandocResult(stdout="", stderr=self.stderr, command="pandoc ...")


def build_config(tmp_path: Path, **export) -> AppConfig:
    return AppConfig(
        vault=VaultConfig(root=tmp_path),
        export=ExportConfig(**export),
        runtime=RuntimeConfig(log_dir=tmp_path / "logs"),
    )


def build_service(tmp_path: Path, runner=None, capabilities=CAPS, **export) -> ExportService:
    return ExportService(build_config(tmp_path, **export), capabilities, runner=runner or FakeRunner())


def write_note(tmp_path: Path, text: str, name: str = "Note.md") -> Path:
    path = tmp_path / name
    path.write_text(text, encoding="utf-8")
    return path


def test_defaults_precede_document_arguments(tmp_path: Path) -> None:
    note = write_note(tmp_path, "---\npandoc-toc: true\npandoc-toc-depth: 2\n---\nBody\n")
    service = build_service(tmp_path, extra_arguments=("--standalone --number-sections",))
    plan = asyncio.run(service.prepare(note, "docx"))
    assert plan.arguments == ["--standalone", "--number-sections", "--toc", "--toc-depth=2"]
    assert plan.metadata == {"title": "Note"}
    assert plan.output_file == note.resolve().with_name("Note.docx")


def test_html_export_writes_payload(tmp_path: Path) -> None:
    note = write_note(tmp_path, "# Hello\n")
    runner = FakeRunner()
    service = build_service(tmp_path, runner)
    result = asyncio.run(service.export(note, "html"))
    assert result.status is ExportStatus.SUCCEEDED
    assert result.output_path.read_text(encoding="utf-8").startswith("<!doctype html>")
    assert runner.calls == []


def test_pandoc_export_uses_stdin_and_metadata_file(tmp_path: Path) -> None:
    note = write_note(tmp_path, "---\ntitle: Report\nauthor: Me\npandoc-toc: true\n---\nBody\n")
    runner = FakeRunner()
    service = build_service(tmp_path, runner, extra_arguments=("--standalone",))
    result = asyncio.run(service.export(note, "docx"))
    assert result.ok
    assert result.status is ExportStatus.SUCCEEDED
    source, output, defaults = runner.calls[0]
    assert source.file == STDIN
    assert source.format == "html"
    assert "<p>Body</p>" in source.contents
    assert source.document_args == ["--toc"]
    assert defaults == ["--standalone"]
    assert output.format == "docx"
    assert runner.metadata == {"title": "Report", "author": "Me"}
    # metadata file is temporary
    assert not Path(source.metadata_file).exists()


def test_markdown_mode_feeds_the_source_file(tmp_path: Path) -> None:
    note = write_note(tmp_path, "Body\n")
    runner = FakeRunner()
    service = build_service(tmp_path, runner, export_from="md")
    asyncio.run(service.export(note, "docx"))
    source, _, _ = runner.calls[0]
    assert source.file == str(note.resolve())
    assert source.format == "markdown"


def test_stderr_means_warnings(tmp_path: Path) -> None:
    note = write_note(tmp_path, "Body\n")
    service = build_service(tmp_path, FakeRunner(stderr="[WARNING] missing image"))
    result = asyncio.run(service.export(note, "docx"))
    assert result.status is ExportStatus.WARNINGS
    assert result.ok
    assert "missing image" in result.warnings


def test_pandoc_failure_is_a_failed_result(tmp_path: Path) -> None:
    note = write_note(tmp_path, "Body\n")
    error = PandocError("pandoc: bad option", stderr="pandoc: bad option", command="pandoc -x")
    service = build_service(tmp_path, FakeRunner(error=error))
    result = asyncio.run(service.export(note, "docx"))
    assert result.status is ExportStatus.FAILED
    assert result.error_code == "PANDOC"
    assert result.warnings == "pandoc: bad option"
    assert result.command == "pandoc -x"


def test_unexpected_errors_never_escape(tmp_path: Path) -> None:
    note = write_note(tmp_path, "Body\n")
    service = build_service(tmp_path, FakeRunner(error=ValueError("kaboom")))
    result = asyncio.run(service.export(note, "docx"))
    assert result.status is ExportStatus.FAILED
    assert result.error_code == "UNEXPECTED"
    assert "kaboom" in result.message


def test_invalid_frontmatter_fails_export(tmp_path: Path) -> None:
    note = write_note(tmp_path, "---\ntitle: [broken\n---\nBody\n")
    result = asyncio.run(build_service(tmp_path).export(note, "docx"))
    assert result.status is ExportStatus.FAILED
    assert result.error_code == "FRONTMATTER"


def test_diagnostics_are_reported(tmp_path: Path) -> None:
    note = write_note(tmp_path, "---\npandoc-pdf-engine: invalid-engine\n---\nBody\n")
    result = asyncio.run(build_service(tmp_path).export(note, "docx"))
    assert result.ok
    assert len(result.diagnostics) == 1


def test_can_export_checks_capabilities(tmp_path: Path) -> None:
    no_pandoc = build_service(tmp_path, capabilities=Capabilities())
    assert no_pandoc.can_export(tmp_path / "a.md", "html")
    assert not no_pandoc.can_export(tmp_path / "a.md", "docx")
    service = build_service(tmp_path)
    assert not service.can_export(tmp_path / "a.md", "pdf")
    assert not service.can_export(tmp_path / "a.png", "docx")
    latex = build_service(tmp_path, capabilities=Capabilities(pandoc="pandoc", pdf_engine="xelatex"))
    assert latex.can_export(tmp_path / "a.md", "pdf")


def test_unsupported_export_is_failed(tmp_path: Path) -> None:
    note = write_note(tmp_path, "Body\n")
    result = asyncio.run(build_service(tmp_path).export(note, "pdf"))
    assert result.status is ExportStatus.FAILED
    assert result.error_code == "UNSUPPORTED"


def test_output_folder(tmp_path: Path) -> None:
    service = build_service(tmp_path, output_folder=tmp_path / "out")
    assert service.output_path_for(tmp_path / "Note.md", "markdown") == tmp_path / "out" / "Note.pandoc.md"


def test_exports_are_logged(tmp_path: Path) -> None:
    note = write_note(tmp_path, "Body\n")
    service = build_service(tmp_path)
    asyncio.run(service.export(note, "docx"))
    asyncio.run(service.export(note, "pdf"))
    entries = RunLogger(tmp_path / "logs" / "exports.jsonl").read()
    assert [entry["status"] for entry in entries] == ["succeeded", "failed"]
    assert entries[0]["output_format"] == "docx"
    assert set(entries[0]["timings"]) == {"resolve_ms", "compile_ms", "pandoc_ms"}


def test_apostrophe_in_extra_arguments(tmp_path: Path) -> None:
    note = write_note(tmp_path, "Body\n")
    runner = FakeRunner()
    service = build_service(tmp_path, runner=runner, extra_arguments=("--metadata=author:O'Brien",))
    result = asyncio.run(service.export(note, "docx"))
    assert result.status is ExportStatus.SUCCEEDED
    assert runner.calls[0][2] == ["--metadata=author:O'Brien"]


def test_unwritable_log_does_not_fail_export(tmp_path: Path) -> None:
    note = write_note(tmp_path, "Body\n")
    (tmp_path / "blocker").write_text("", encoding="utf-8")
    config = AppConfig(
        vault=VaultConfig(root=tmp_path),
        export=ExportConfig(),
        runtime=RuntimeConfig(log_dir=tmp_path / "blocker" / "logs"),
    )
    service = ExportService(config, CAPS, runner=FakeRunner())
    result = asyncio.run(service.export(note, "docx"))
    assert result.status is ExportStatus.SUCCEEDED
    assert result.output_path == note.resolve().with_name("Note.docx")
