#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/imagemin/inputs.py
"""Input file matching.

Expands the file arguments of a run (paths, shell-style globs and
directories) into the concrete files to minify.
"""

from __future__ import annotations

import glob
import logging
import os
from pathlib import Path
from typing import Iterable, Optional, Sequence, Union

from imagemin.constants import GLOB_CHARS, JUNK_PATTERNS

logger = logging.getLogger(__name__)

InputPattern = Union[str, "os.PathLike[str]"]


def is_junk(path: Path) -> bool:
    """Return True for OS and editor droppings such as ``.DS_Store``."""
    return any(pattern.search(path.name) for pattern in JUNK_PATTERNS)


def is_glob_pattern(value: str) -> bool:
    """Return True when ``value`` contains glob metacharacters."""
    return any(char in value for char in GLOB_CHARS)


def _match_argument(raw_argument: str) -> list[Path]:
    input_path = Path(raw_argument)

    if is_glob_pattern(raw_argument):
        return [Path(match) for match in sorted(glob.glob(raw_argument, recursive=True))]
    if input_path.is_file():
        return [input_path]
    if input_path.is_dir():
        return sorted(child for child in input_path.rglob("*") if child.is_file())

    logger.warning(f"Path does not exist: {input_path}")
    return []


def _deduplicate(candidates: Iterable[Path]) -> list[Path]:
    unique: dict[str, Path] = {}
    for candidate in candidates:
        try:
            key = str(candidate.resolve())
        except OSError:
            key = str(candidate)
        unique.setdefault(key, candidate)
    return list(unique.values())


def expand_inputs(patterns: Sequence[InputPattern], ignore_junk: bool = True) -> list[Path]:
    """Expand file arguments into a sorted list of unique files.

    Parameters
    ----------
    patterns : Sequence[str | PathLike]
        Paths, glob patterns (``*``, ``?``, ``[...]``, ``**``) or directories.
        Directories are searched recursively.
    ignore_junk : bool, default True
        Skip files such as ``.DS_Store`` and ``Thumbs.db``

    Returns
    -------
    list[Path]
        Matched files, deduplicated by resolved path and sorted

    Notes
    -----
    Arguments that match nothing are logged and skipped; an empty result is
    not an error here.

    """
    candidates: list[Path] = []
    for raw in patterns:
        candidates.extend(path for path in _match_argument(os.fspath(raw)) if path.is_file())

    if ignore_junk:
        junk = [path for path in candidates if is_junk(path)]
        for path in junk:
            logger.debug(f"Skipping junk file: {path}")
        candidates = [path for path in candidates if not is_junk(path)]

    files = sorted(_deduplicate(candidates))
    logger.debug(f"Matched {len(files)} file(s) from {len(patterns)} argument(s)")
    return files


def common_base_dir(paths: Sequence[Path]) -> Optional[Path]:
    """Return the deepest directory containing every path, or None."""
    parents: list[str] = []
    for path in paths:
        try:
            parents.append(str(path.parent.resolve()))
        except OSError:
            parents.append(str(path.parent.absolute()))

    if not parents:
        return None

    try:
        return Path(os.path.commonpath(parents))
    except ValueError:
        # Different drives on Windows
        return None


def relative_output_path(path: Path, base_dir: Optional[Path]) -> Path:
    """Return ``path`` relative to ``base_dir``, falling back to its name.

    Only the parent directory is resolved, matching :func:`common_base_dir`,
    so a symlinked file keeps its own name and location.
    """
    if base_dir is None:
        return Path(path.name)
    try:
        return path.parent.resolve().relative_to(base_dir) / path.name
    except (ValueError, OSError):
        return Path(path.name)


__all__ = ["InputPattern", "common_base_dir", "expand_inputs", "is_glob_pattern", "is_junk", "relative_output_path"]
