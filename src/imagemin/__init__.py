"""imagemin - minify images through a chain of plugins.

imagemin reads images from files, glob patterns, directories or an
in-memory buffer, runs them through an ordered chain of minification
plugins and writes the results to standard output, a destination
directory or back over the originals.

Plugins are installed separately as ``imagemin-<name>`` distributions and
advertise a factory in the ``imagemin.plugins`` entry point group. A
factory receives the plugin's options as keyword arguments and returns a
callable that maps image bytes to minified bytes.

Examples
--------
Minify a buffer:

    >>> from imagemin import minify_buffer
    >>> small = minify_buffer(data, plugins=["optipng"])

Minify files into a directory:

    >>> from imagemin import minify_files
    >>> files = minify_files("images/*.png", destination="build")

Register a plugin without packaging it:

    >>> from imagemin import plugin_registry
    >>> plugin_registry.register_factory("noop", lambda **options: lambda data: data)

"""

#  Copyright (c) 2025 Tom Villani, Ph.D.

from imagemin.api import minify_buffer, minify_files
from imagemin.exceptions import (
    ConfigError,
    FileAccessError,
    ImageminError,
    OutputConflictError,
    OutputWriteError,
    PipelineError,
    PluginResolutionError,
    TransformError,
    UsageError,
)
from imagemin.pipeline import MinifiedFile, Pipeline
from imagemin.plugins import PluginHandle, PluginSpec, load_plugins, normalize_plugin_options, plugin_registry
from imagemin.router import InputKind, Router, RunConfig, RunMode, RunResult, select_mode

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "minify_buffer",
    "minify_files",
    "MinifiedFile",
    "Pipeline",
    "PluginHandle",
    "PluginSpec",
    "load_plugins",
    "normalize_plugin_options",
    "plugin_registry",
    "InputKind",
    "Router",
    "RunConfig",
    "RunMode",
    "RunResult",
    "select_mode",
    "ImageminError",
    "UsageError",
    "ConfigError",
    "PluginResolutionError",
    "TransformError",
    "PipelineError",
    "OutputConflictError",
    "FileAccessError",
    "OutputWriteError",
]
