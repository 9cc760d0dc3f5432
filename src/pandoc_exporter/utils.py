from __future__ import annotations

import asyncio
import hashlib
import os
import tempfile
import time
from collections.abc import Callable
from pathlib import Path
from typing import Any, TypeVar

T = TypeVar("T")


async def run_sync(func: Callable[..., T], /, *args: Any, **kwargs: Any) -> T:
    """Execute *func* in a worker thread and return the result."""

    return await asyncio.to_thread(func, *args, **kwargs)


async def path_exists(path: Path) -> bool:
    return await run_sync(path.exists)


def generate_run_id(prefix: str = "export") -> str:
    epoch_ms = int(time.time() * 1000)
    random_bits = hashlib.sha256(os.urandom(16)).hexdigest()[:8]
    return f"{prefix}-{epoch_ms}-{random_bits}"


def atomic_write(path: Path, data: str, encoding: str = "utf-8") -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with tempfile.NamedTemporaryFile("w", delete=False, dir=path.parent, encoding=encoding) as tmp:
        tmp.write(data)
        tmp.flush()
        os.fsync(tmp.fileno())
    os.replace(tmp.name, path)


def file_base_name(path: str | Path) -> str:
    """'/vault/notes/Obsidian.md' -> 'Obsidian'"""

    return Path(path).stem


def replace_file_extension(path: Path, extension: str) -> Path:
    # pandoc.md style extensions are appended after the stem, not via with_suffix
    return path.with_name(f"{path.stem}.{extension}")


__all__ = [
    "atomic_write",
    "file_base_name",
    "generate_run_id",
    "path_exists",
    "replace_file_extension",
    "run_sync",
]
