"""
JSON Storage
============
Reading cached inputs and writing output artifacts.

Reads are synchronous and let errors propagate: a missing or malformed
source file aborts the run. Writes are pushed to worker threads so that
many files can be written concurrently from the event loop.
"""

import asyncio
import json
import shutil
from pathlib import Path
from typing import Any, Union

from quran_json.errors import DataExportError

PathLike = Union[str, Path]


def read_json(path: PathLike) -> Any:
    """
    Load a JSON file.

    Args:
        path: File to read

    Returns:
        Decoded JSON data
    """
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def dump_json(path: PathLike, data: Any, pretty: bool = False) -> Path:
    """
    Write data as JSON, creating parent directories as needed.

    Args:
        path: Destination file
        data: JSON-serializable data
        pretty: Indent output instead of writing it compact

    Returns:
        Path written

    Raises:
        DataExportError: If the file cannot be written
    """
    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            if pretty:
                json.dump(data, f, ensure_ascii=False, indent=2)
            else:
                json.dump(data, f, ensure_ascii=False, separators=(",", ":"))
    except (IOError, OSError) as e:
        raise DataExportError(f"Failed to write {path}: {e}")
    return path


async def write_json(path: PathLike, data: Any, pretty: bool = False) -> Path:
    """Async wrapper around :func:`dump_json`."""
    return await asyncio.to_thread(dump_json, path, data, pretty)


def empty_dir(path: PathLike) -> Path:
    """Make sure ``path`` exists and holds nothing."""
    path = Path(path)
    if path.exists():
        shutil.rmtree(path)
    path.mkdir(parents=True)
    return path
