#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/imagemin/plugins/registry.py
"""Plugin registry for resolving plugin names to factories.

Plugins are looked up by name in a registry populated from:

- the ``imagemin.plugins`` entry point group of installed distributions
- references from the configuration file (``name = "module:attr"``)
- direct :meth:`PluginRegistry.register` calls (tests, embedders)

Entry points and references are only imported when a plugin is actually
requested, so a broken plugin cannot affect runs that do not use it.

Examples
--------
    >>> from imagemin.plugins import plugin_registry, PluginSpec
    >>> plugin_registry.register_reference("mozjpeg", "my_plugins.jpeg:mozjpeg")
    >>> handle = plugin_registry.create(PluginSpec("mozjpeg", {"quality": 80}))

"""

from __future__ import annotations

import importlib.metadata
import logging
import threading
from typing import Any, Optional

from imagemin.constants import PLUGIN_ENTRY_POINT_GROUP
from imagemin.exceptions import PluginResolutionError
from imagemin.plugins.metadata import PluginHandle, PluginMetadata
from imagemin.plugins.options import PluginSpec

logger = logging.getLogger(__name__)


class PluginRegistry:
    """Registry mapping plugin names to factories.

    This singleton class provides the central lookup used by the plugin
    loader, handling:
    - Plugin registration and lazy entry point discovery
    - Configuration-driven ``module:attr`` references
    - Instantiation of plugins with their options

    Notes
    -----
    Import the global ``plugin_registry`` instance rather than
    instantiating this class directly.

    """

    _instance: Optional[PluginRegistry] = None
    _plugins: dict[str, PluginMetadata]
    _references: dict[str, importlib.metadata.EntryPoint]
    _initialized: bool
    _lock: threading.RLock

    def __new__(cls) -> PluginRegistry:
        """Create or return singleton instance."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._plugins = {}
            cls._instance._references = {}
            cls._instance._initialized = False
            cls._instance._lock = threading.RLock()
        return cls._instance

    def _ensure_initialized(self) -> None:
        """Ensure entry point discovery has been run."""
        with self._lock:
            if not self._initialized:
                self.discover_plugins()
                self._initialized = True

    def register(self, metadata: PluginMetadata) -> None:
        """Register a plugin with its metadata.

        If a plugin with the same name is already registered it is
        overwritten and a warning is logged.
        """
        with self._lock:
            if metadata.name in self._plugins or metadata.name in self._references:
                logger.warning(f"Plugin '{metadata.name}' already registered, overwriting")
            self._references.pop(metadata.name, None)
            self._plugins[metadata.name] = metadata
        logger.debug(f"Registered plugin: {metadata.name}")

    def register_factory(self, name: str, factory: Any, description: str = "") -> None:
        """Register a bare factory callable under ``name``."""
        self.register(PluginMetadata(name=name, factory=factory, description=description))

    def register_reference(self, name: str, reference: str) -> None:
        """Register a lazily imported ``module:attr`` reference under ``name``.

        Parameters
        ----------
        name : str
            Plugin name
        reference : str
            Import reference, e.g. ``"my_package.plugins:optipng"``. The
            target may be a :class:`PluginMetadata` or a factory callable.

        """
        with self._lock:
            if name in self._plugins or name in self._references:
                logger.warning(f"Plugin '{name}' already registered, overwriting")
            self._plugins.pop(name, None)
            self._references[name] = importlib.metadata.EntryPoint(
                name=name, value=reference, group=PLUGIN_ENTRY_POINT_GROUP
            )
        logger.debug(f"Registered plugin reference: {name} -> {reference}")

    def unregister(self, name: str) -> bool:
        """Unregister a plugin.

        Returns
        -------
        bool
            True if the plugin was unregistered, False if not found

        """
        with self._lock:
            found = self._plugins.pop(name, None) is not None
            found = self._references.pop(name, None) is not None or found
        if found:
            logger.debug(f"Unregistered plugin: {name}")
        return found

    def has_plugin(self, name: str) -> bool:
        """Check if a plugin is registered (imported or not)."""
        self._ensure_initialized()
        with self._lock:
            return name in self._plugins or name in self._references

    def list_plugins(self) -> list[str]:
        """List all registered plugin names, sorted alphabetically."""
        self._ensure_initialized()
        with self._lock:
            return sorted(set(self._plugins) | set(self._references))

    def get_metadata(self, name: str) -> PluginMetadata:
        """Get metadata for a plugin, importing its reference if needed.

        Raises
        ------
        PluginResolutionError
            If the plugin is not registered, its reference cannot be
            imported, or the reference target is not a plugin

        """
        self._ensure_initialized()

        with self._lock:
            if name in self._plugins:
                return self._plugins[name]
            entry_point = self._references.get(name)
        if entry_point is None:
            raise PluginResolutionError(name)

        # Import outside the lock so concurrent loads of different plugins overlap
        try:
            target = entry_point.load()
        except Exception as e:
            logger.debug(f"Failed to import plugin '{name}' from {entry_point.value}", exc_info=True)
            raise PluginResolutionError(
                name, reason=f"cannot import {entry_point.value}: {e}", original_error=e
            ) from e

        metadata = self._coerce_metadata(name, target)
        if metadata is None:
            raise PluginResolutionError(
                name, reason=f"{entry_point.value} is not a plugin factory ({type(target).__name__})"
            )

        with self._lock:
            if name in self._plugins:
                return self._plugins[name]
            if self._references.get(name) is entry_point:
                del self._references[name]
                self._plugins[name] = metadata
        return metadata

    @staticmethod
    def _coerce_metadata(name: str, target: Any) -> Optional[PluginMetadata]:
        if isinstance(target, PluginMetadata):
            if target.name != name:
                logger.debug(f"Plugin metadata name '{target.name}' registered as '{name}'")
                return PluginMetadata(
                    name=name, factory=target.factory, description=target.description, package=target.package
                )
            return target
        if callable(target):
            return PluginMetadata(name=name, factory=target)
        return None

    def create(self, spec: PluginSpec) -> PluginHandle:
        """Instantiate the plugin described by ``spec``.

        Parameters
        ----------
        spec : PluginSpec
            Plugin name and options

        Returns
        -------
        PluginHandle
            Handle wrapping the instantiated transform

        Raises
        ------
        PluginResolutionError
            If the plugin cannot be found or its factory rejects the options

        """
        metadata = self.get_metadata(spec.name)
        try:
            transform = metadata.create_transform(dict(spec.options))
        except Exception as e:
            logger.debug(f"Plugin factory for '{spec.name}' failed", exc_info=True)
            raise PluginResolutionError(spec.name, reason=f"incompatible plugin: {e}", original_error=e) from e
        return PluginHandle(spec=spec, transform=transform)

    def discover_plugins(self) -> int:
        """Index plugins advertised through entry points.

        Entry points are recorded, not imported. Names already registered
        directly keep their registration.

        Returns
        -------
        int
            Number of plugins discovered

        """
        discovered_count = 0

        try:
            plugin_eps = importlib.metadata.entry_points().select(group=PLUGIN_ENTRY_POINT_GROUP)
        except Exception as e:
            logger.warning(f"Failed to discover plugins: {e}")
            return 0

        with self._lock:
            for ep in plugin_eps:
                if ep.name in self._plugins or ep.name in self._references:
                    logger.debug(f"Plugin '{ep.name}' already registered, ignoring entry point {ep.value}")
                    continue
                self._references[ep.name] = ep
                discovered_count += 1
                logger.debug(f"Discovered plugin from entry point: {ep.name} -> {ep.value}")

        logger.info(f"Discovered {discovered_count} plugin(s) from entry points")
        return discovered_count

    def clear(self) -> None:
        """Clear all registered plugins.

        This is primarily useful for testing.
        """
        with self._lock:
            self._plugins.clear()
            self._references.clear()
            self._initialized = False
        logger.debug("Cleared plugin registry")


# Global registry instance (preferred access pattern)
plugin_registry = PluginRegistry()

__all__ = ["PluginRegistry", "plugin_registry"]
