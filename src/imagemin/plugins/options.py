#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/imagemin/plugins/options.py
"""Plugin selection normalization.

Users select plugins with a mix of bare names and ``name -> options``
mappings (from repeated ``--plugin`` flags, dotted ``--plugin.name.key``
options, or a configuration file). This module folds that input into an
ordered list of :class:`PluginSpec` values, one per distinct plugin name.

Folding goes through a name-keyed dict, so a repeated name replaces the
earlier options but keeps its original position.

Examples
--------
    >>> normalize_plugin_options(["gifsicle", {"pngquant": {"quality": [0.6, 0.8]}}, "gifsicle"])
    [PluginSpec(name='gifsicle', options={}), PluginSpec(name='pngquant', options={'quality': [0.6, 0.8]})]

"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, Union

from imagemin.exceptions import UsageError

PluginSelection = Union[str, Mapping[str, Any], "PluginSpec"]


@dataclass(frozen=True)
class PluginSpec:
    """A plugin name paired with the options used to instantiate it.

    Parameters
    ----------
    name : str
        Plugin name (e.g. ``"optipng"``)
    options : dict
        Keyword options passed to the plugin factory

    """

    name: str
    options: dict[str, Any] = field(default_factory=dict)

    def as_mapping(self) -> dict[str, dict[str, Any]]:
        """Return the single-key mapping form ``{name: options}``."""
        return {self.name: dict(self.options)}


def _options_for(name: str, options: Any) -> dict[str, Any]:
    if options is None:
        return {}
    if not isinstance(options, Mapping):
        raise UsageError(f"Options for plugin '{name}' must be a mapping, got {type(options).__name__}")
    return dict(options)


def _iter_selections(plugin: Any) -> Iterable[Any]:
    # A lone name, mapping or spec counts as a one-element selection
    if plugin is None:
        return []
    if isinstance(plugin, (str, Mapping, PluginSpec)):
        return [plugin]
    if isinstance(plugin, Iterable):
        return plugin
    raise UsageError(f"Invalid plugin selection: {plugin!r}")


def normalize_plugin_options(plugin: Any) -> list[PluginSpec]:
    """Flatten a heterogeneous plugin selection into ordered specs.

    Parameters
    ----------
    plugin : str, Mapping, PluginSpec, iterable of those, or None
        Plugin selection. Bare names receive empty options.

    Returns
    -------
    list[PluginSpec]
        One spec per distinct name, in first-insertion order

    Raises
    ------
    UsageError
        If an item is not a name, mapping or PluginSpec, or if a plugin's
        options are not a mapping

    """
    folded: dict[str, dict[str, Any]] = {}

    for item in _iter_selections(plugin):
        if isinstance(item, PluginSpec):
            folded[item.name] = dict(item.options)
        elif isinstance(item, str):
            folded[item] = {}
        elif isinstance(item, Mapping):
            for name, options in item.items():
                folded[str(name)] = _options_for(str(name), options)
        else:
            raise UsageError(f"Invalid plugin selection: {item!r}")

    return [PluginSpec(name=name, options=options) for name, options in folded.items()]


__all__ = ["PluginSpec", "PluginSelection", "normalize_plugin_options"]
