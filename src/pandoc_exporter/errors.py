from __future__ import annotations


class ExportError(RuntimeError):
    code = "EXPORT"

    def __init__(self, message: str, *, code: str | None = None) -> None:
        super().__init__(message)
        if code is not None:
            self.code = code


class DirectiveValueError(ExportError):
    """Raised when a frontmatter value has no directive representation."""

    code = "DIRECTIVE"


class FrontmatterError(ExportError):
    code = "FRONTMATTER"


class RasterizeError(ExportError):
    code = "RASTERIZE"


class PandocError(ExportError):
    code = "PANDOC"

    def __init__(self, message: str, *, stderr: str = "", command: str = "") -> None:
        super().__init__(message)
        self.stderr = stderr
        self.command = command


__all__ = [
    "DirectiveValueError",
    "ExportError",
    "FrontmatterError",
    "PandocError",
    "RasterizeError",
]
