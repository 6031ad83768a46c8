#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/imagemin/plugins/__init__.py
"""Plugin selection, registration and loading.

A run turns the user's plugin selection into callable transforms in three
steps:

1. :func:`normalize_plugin_options` folds names and ``name -> options``
   mappings into ordered :class:`PluginSpec` values
2. :data:`plugin_registry` maps each name to a factory, discovered through
   the ``imagemin.plugins`` entry point group or configured references
3. :func:`load_plugins` instantiates all of them concurrently and returns
   :class:`PluginHandle` objects for the pipeline

Examples
--------
    >>> from imagemin.plugins import load_plugins, normalize_plugin_options
    >>> handles = load_plugins(normalize_plugin_options(["optipng", {"svgo": {"multipass": True}}]))

"""

from imagemin.plugins.loader import load_plugins
from imagemin.plugins.metadata import PluginFactory, PluginHandle, PluginMetadata, Transform
from imagemin.plugins.options import PluginSelection, PluginSpec, normalize_plugin_options
from imagemin.plugins.registry import PluginRegistry, plugin_registry

__all__ = [
    "PluginFactory",
    "PluginHandle",
    "PluginMetadata",
    "PluginRegistry",
    "PluginSelection",
    "PluginSpec",
    "Transform",
    "load_plugins",
    "normalize_plugin_options",
    "plugin_registry",
]
