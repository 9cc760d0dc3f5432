"""Search-path resolution for file-valued pandoc options."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from .utils import path_exists

logger = logging.getLogger(__name__)

CONVENTIONAL_DIRS: tuple[str, ...] = ("templates", "Templates", "_templates", "pandoc", "assets")


def _absolute(path: Path) -> Path:
    # lexical only, no filesystem access on the event loop
    return Path(os.path.abspath(path))


def candidate_paths(
    reference: str,
    current_dir: Path,
    root_dir: Path,
    custom_dir: str | Path | None = None,
) -> list[Path]:
    """Return the ordered locations tried for a relative *reference*."""

    candidates = [_absolute(current_dir / reference), _absolute(root_dir / reference)]
    if custom_dir:
        custom = Path(custom_dir)
        base = custom if custom.is_absolute() else root_dir / custom
        candidates.append(_absolute(base / reference))
    candidates.extend(_absolute(root_dir / name / reference) for name in CONVENTIONAL_DIRS)
    return candidates


async def resolve_file_path(
    reference: str,
    current_dir: Path,
    root_dir: Path,
    custom_dir: str | Path | None = None,
) -> str:
    """Return the first existing location for *reference*.

    Absolute references are trusted as-is. When nothing matches the original
    reference is returned so pandoc can report the missing file itself.
    """

    if Path(reference).is_absolute():
        return reference
    for candidate in candidate_paths(reference, current_dir, root_dir, custom_dir):
        if await path_exists(candidate):
            logger.debug("Resolved %s -> %s", reference, candidate)
            return str(candidate)
    logger.debug("No search location contains %s; passing it through", reference)
    return reference


__all__ = ["CONVENTIONAL_DIRS", "candidate_paths", "resolve_file_path"]
