#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/imagemin/api.py
"""Library entry points for minifying images without the CLI.

Examples
--------
Minify bytes:

    >>> from imagemin import minify_buffer
    >>> small = minify_buffer(Path("logo.png").read_bytes(), plugins=["optipng"])

Minify files into a directory:

    >>> from imagemin import minify_files
    >>> files = minify_files(["images/*.png"], destination="build", plugins=[{"pngquant": {"quality": [0.6, 0.8]}}])
    >>> for f in files:
    ...     print(f.destination_path, f.saved)

"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Optional, Sequence, Union

from imagemin.constants import DEFAULT_PLUGINS
from imagemin.inputs import InputPattern, expand_inputs
from imagemin.pipeline import MinifiedFile, Pipeline
from imagemin.plugins import PluginHandle, PluginRegistry, load_plugins, normalize_plugin_options

logger = logging.getLogger(__name__)


def resolve_plugins(plugins: Any = None, registry: Optional[PluginRegistry] = None) -> list[PluginHandle]:
    """Turn a plugin selection into loaded handles.

    Parameters
    ----------
    plugins : optional
        Already loaded :class:`PluginHandle` objects, or any selection
        accepted by :func:`normalize_plugin_options`. ``None`` selects the
        default plugins.
    registry : PluginRegistry, optional
        Registry to resolve names against

    Returns
    -------
    list[PluginHandle]
        Loaded plugins in pipeline order

    """
    if plugins is None:
        plugins = list(DEFAULT_PLUGINS)

    if isinstance(plugins, (list, tuple)) and plugins and all(isinstance(p, PluginHandle) for p in plugins):
        return list(plugins)

    return load_plugins(normalize_plugin_options(plugins), registry=registry)


def minify_buffer(data: bytes, plugins: Any = None) -> bytes:
    """Minify a single image held in memory.

    Parameters
    ----------
    data : bytes
        Image bytes
    plugins : optional
        Plugin selection or loaded handles, see :func:`resolve_plugins`

    Returns
    -------
    bytes
        Minified image bytes

    """
    return Pipeline(resolve_plugins(plugins)).run_buffer(data)


def minify_files(
    inputs: Union[InputPattern, Sequence[InputPattern]],
    destination: Optional[Union[str, Path]] = None,
    plugins: Any = None,
    jobs: Optional[int] = None,
) -> list[MinifiedFile]:
    """Minify files matched by paths, globs or directories.

    Parameters
    ----------
    inputs : str, PathLike or sequence of those
        File arguments to expand
    destination : str or Path, optional
        Directory receiving the results, mirroring the inputs' relative
        layout. When omitted nothing is written.
    plugins : optional
        Plugin selection or loaded handles, see :func:`resolve_plugins`
    jobs : int, optional
        Maximum number of files processed concurrently

    Returns
    -------
    list[MinifiedFile]
        One result per matched file

    """
    if isinstance(inputs, (str, os.PathLike)):
        inputs = [inputs]

    handles = resolve_plugins(plugins)
    files = expand_inputs(inputs)
    out_dir = Path(destination) if destination is not None else None
    return Pipeline(handles, max_workers=jobs).run_files(files, destination=out_dir)


__all__ = ["minify_buffer", "minify_files", "resolve_plugins"]
