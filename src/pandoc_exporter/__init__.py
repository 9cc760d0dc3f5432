"""Export vault notes to other document formats through pandoc."""

from .config import AppConfig, load_config
from .core import ExportService
from .errors import ExportError, FrontmatterError, PandocError
from .frontmatter import CompiledFrontmatter, compile_frontmatter
from .models import ExportResult, ExportStatus
from .pandoc import Capabilities, detect_capabilities

__all__ = [
    "AppConfig",
    "Capabilities",
    "CompiledFrontmatter",
    "ExportError",
    "ExportResult",
    "ExportService",
    "ExportStatus",
    "FrontmatterError",
    "PandocError",
    "compile_frontmatter",
    "detect_capabilities",
    "load_config",
]

__version__ = "0.1.0"
