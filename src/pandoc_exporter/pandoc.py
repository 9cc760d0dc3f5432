"""Spawning pandoc with a fully built argument vector.

The call is a single request/response exchange: the whole input goes to
stdin (or pandoc reads the source file itself), and the outcome is either an
artifact on disk (plus optional warnings on stderr) or a :class:`PandocError`.
"""

from __future__ import annotations

import logging
import os
import re
import shlex
import shutil
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Literal, Sequence

from .errors import PandocError

logger = logging.getLogger(__name__)

STDIN: Literal["STDIN"] = "STDIN"
STDOUT: Literal["STDOUT"] = "STDOUT"

INPUT_EXTENSIONS = ("md", "docx", "csv", "html", "tex", "odt")


@dataclass(frozen=True, slots=True)
class OutputFormat:
    pretty_name: str
    pandoc_name: str
    extension: str
    short_name: str


OUTPUT_FORMATS: tuple[OutputFormat, ...] = (
    OutputFormat("AsciiDoc (adoc)", "asciidoc", "adoc", "AsciiDoc"),
    OutputFormat("Word Document (docx)", "docx", "docx", "Word"),
    # X.md -> X.pandoc.md so the source is not overwritten
    OutputFormat("Pandoc Markdown", "markdown", "pandoc.md", "markdown"),
    OutputFormat("HTML (without Pandoc)", "html", "html", "HTML"),
    OutputFormat("LaTeX", "latex", "tex", "LaTeX"),
    OutputFormat("OpenDocument (odt)", "odt", "odt", "OpenDocument"),
    OutputFormat("PowerPoint (pptx)", "pptx", "pptx", "PowerPoint"),
    OutputFormat("ePub", "epub", "epub", "ePub"),
    OutputFormat("PDF (via LaTeX)", "pdf", "pdf", "PDF"),
    OutputFormat("Reveal.js Slides", "revealjs", "reveal.html", "Reveal.js"),
    OutputFormat("Beamer Slides", "beamer", "beamer.tex", "Beamer"),
    OutputFormat("reStructured Text (RST)", "rst", "rst", "RST"),
    OutputFormat("DokuWiki", "dokuwiki", "txt", "DokuWiki"),
    OutputFormat("MediaWiki", "mediawiki", "mediawiki", "MediaWiki"),
)

_UNICODE_STRIP_RE = re.compile("[\u21a9\ufe0e]")


def get_output_format(name: str) -> OutputFormat:
    for output_format in OUTPUT_FORMATS:
        if output_format.pandoc_name == name:
            return output_format
    known = ", ".join(fmt.pandoc_name for fmt in OUTPUT_FORMATS)
    raise KeyError(f"Unknown output format '{name}'. Known formats: {known}")


@dataclass(frozen=True, slots=True)
class Capabilities:
    """What was found on this machine, detected once per session."""

    pandoc: str | None = None
    pdflatex: str | None = None
    pdf_engine: str | None = None


def detect_capabilities(pandoc: str | None = None, pdflatex: str | None = None) -> Capabilities:
    pdf_engine = None
    for engine in ("lualatex", "xelatex"):
        if shutil.which(engine):
            pdf_engine = engine
            break
    return Capabilities(
        pandoc=pandoc or shutil.which("pandoc"),
        pdflatex=pdflatex or shutil.which("pdflatex"),
        pdf_engine=pdf_engine,
    )


@dataclass(slots=True)
class PandocInput:
    file: str  # absolute path, URL or STDIN
    directory: Path
    format: str | None = None
    contents: str | None = None
    metadata_file: str | None = None
    pandoc: str | None = None
    pdflatex: str | None = None
    document_args: list[str] = field(default_factory=list)


@dataclass(slots=True)
class PandocOutput:
    file: str  # absolute path or STDOUT
    format: str | None = None


@dataclass(slots=True)
class PandocResult:
    stdout: str
    stderr: str
    command: str


def needs_latex(output_format: str) -> bool:
    return output_format == "pdf"


def needs_pandoc(output_format: str) -> bool:
    return output_format != "html"


def needs_standalone_flag(output: PandocOutput) -> bool:
    return output.file.endswith("html") or output.format in {"html", "revealjs", "latex", "beamer"}


def strip_unicode(contents: str) -> str:
    # only footnote back-arrows and the text presentation selector
    return _UNICODE_STRIP_RE.sub("", contents)


def parse_argument_string(line: str) -> list[str]:
    """Split one line of extra arguments, honouring shell quoting.

    ``--css="my file.css" --toc`` -> ``["--css=my file.css", "--toc"]``
    """

    lexer = shlex.shlex(line, posix=True)
    lexer.whitespace_split = True
    lexer.commenters = ""
    # backslashes stay literal so Windows paths survive
    lexer.escape = ""
    try:
        return [token for token in lexer if token]
    except ValueError:
        logger.warning("Unbalanced quotes in extra arguments %r; splitting on whitespace", line)
        return line.split()


def parse_default_arguments(lines: Iterable[str]) -> list[str]:
    arguments: list[str] = []
    for line in lines:
        arguments.extend(parse_argument_string(line))
    return arguments


def build_arguments(
    source: PandocInput,
    output: PandocOutput,
    default_args: Sequence[str] = (),
    capabilities: Capabilities | None = None,
) -> list[str]:
    args: list[str] = []
    if source.format:
        args.extend(["--from", source.format])
    if output.format:
        args.extend(["--to", output.format])
    if needs_standalone_flag(output):
        args.append("-s")
    args.extend(["-o", "-" if output.file == STDOUT else output.file])
    if output.format == "pdf" and capabilities and capabilities.pdf_engine:
        user_engine = any("--pdf-engine" in arg for arg in [*default_args, *source.document_args])
        if not user_engine:
            args.append(f"--pdf-engine={capabilities.pdf_engine}")
    if source.file != STDIN:
        args.append(source.file)
    # metadata goes through a file so titles cannot inject arguments
    if source.metadata_file:
        args.extend(["--metadata-file", source.metadata_file])
    # global defaults first, per-document arguments last so they win
    args.extend(default_args)
    args.extend(source.document_args)
    return args


def _environment(source: PandocInput) -> dict[str, str]:
    env = dict(os.environ)
    if source.pdflatex:
        env["PATH"] = env.get("PATH", "") + os.pathsep + str(Path(source.pdflatex).parent)
    return env


def run_pandoc(
    source: PandocInput,
    output: PandocOutput,
    default_args: Sequence[str] = (),
    capabilities: Capabilities | None = None,
    timeout_s: float | None = None,
) -> PandocResult:
    stdin = source.file == STDIN
    if not stdin and not Path(source.file).is_file():
        raise PandocError("Input file does not exist")
    if stdin and source.contents is None:
        raise PandocError("STDIN input requires contents")

    binary = source.pandoc or "pandoc"
    args = build_arguments(source, output, default_args, capabilities)
    command = " ".join([binary, *(shlex.quote(arg) for arg in args)])
    try:
        completed = subprocess.run(
            [binary, *args],
            input=strip_unicode(source.contents) if stdin else None,
            capture_output=True,
            text=True,
            encoding="utf-8",
            cwd=source.directory,
            env=_environment(source),
            timeout=timeout_s,
            check=False,
        )
    except FileNotFoundError as exc:
        raise PandocError(f"Pandoc binary not found: {binary}", command=command) from exc
    except subprocess.TimeoutExpired as exc:
        raise PandocError(f"Pandoc timed out after {timeout_s}s", command=command) from exc

    stderr = completed.stderr or ""
    stdout = completed.stdout or ""
    if output.file == STDOUT:
        produced = bool(stdout)
    else:
        produced = Path(output.file).is_file()
    if completed.returncode != 0 or not produced:
        raise PandocError(
            stderr.strip() or f"Pandoc exited with status {completed.returncode}",
            stderr=stderr,
            command=command,
        )
    return PandocResult(stdout=stdout, stderr=stderr, command=command)


__all__ = [
    "Capabilities",
    "INPUT_EXTENSIONS",
    "OUTPUT_FORMATS",
    "OutputFormat",
    "PandocInput",
    "PandocOutput",
    "PandocResult",
    "STDIN",
    "STDOUT",
    "build_arguments",
    "detect_capabilities",
    "get_output_format",
    "needs_latex",
    "needs_pandoc",
    "needs_standalone_flag",
    "parse_argument_string",
    "parse_default_arguments",
    "run_pandoc",
    "strip_unicode",
]
