#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/imagemin/plugins/metadata.py
"""Metadata classes for minification plugins.

A plugin is published as a *factory*: a callable that takes the plugin's
options as keyword arguments and returns the transform, a callable mapping
image bytes to minified bytes.

Examples
--------
Expose a plugin from a package's ``pyproject.toml``::

    [project.entry-points."imagemin.plugins"]
    optipng = "imagemin_optipng:METADATA"

with::

    >>> def optipng(optimization_level: int = 3):
    ...     def transform(data: bytes) -> bytes:
    ...         ...
    ...     return transform
    >>>
    >>> METADATA = PluginMetadata(name="optipng", factory=optipng, description="Lossless PNG optimizer")

A bare factory is accepted as the entry point target too.

"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from imagemin.plugins.options import PluginSpec

logger = logging.getLogger(__name__)

Transform = Callable[[bytes], Any]
PluginFactory = Callable[..., Transform]


@dataclass
class PluginMetadata:
    """Registration record for a plugin.

    Parameters
    ----------
    name : str
        Name users select the plugin by
    factory : callable
        ``factory(**options) -> transform``
    description : str, optional
        One-line description
    package : str, optional
        Distribution providing the plugin, when known

    """

    name: str
    factory: PluginFactory
    description: str = ""
    package: Optional[str] = None

    def create_transform(self, options: dict[str, Any]) -> Transform:
        """Invoke the factory with ``options`` and check the result.

        Raises
        ------
        TypeError
            If the factory does not return a callable

        """
        transform = self.factory(**options)
        if not callable(transform):
            raise TypeError(
                f"Plugin factory for '{self.name}' returned {type(transform).__name__}, expected a callable"
            )
        return transform


@dataclass
class PluginHandle:
    """A resolved, instantiated plugin bound to its spec.

    Handles are created per run by :func:`imagemin.plugins.load_plugins`
    and owned by the pipeline executing them.
    """

    spec: PluginSpec
    transform: Transform = field(repr=False)

    @property
    def name(self) -> str:
        """Name of the plugin."""
        return self.spec.name

    def __call__(self, data: bytes) -> Any:
        """Run the transform on ``data``."""
        return self.transform(data)


__all__ = ["PluginMetadata", "PluginHandle", "PluginFactory", "Transform"]
