#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/imagemin/plugins/loader.py
"""Concurrent plugin loading.

All plugins of a run are resolved at the same time and joined before any
image is touched. One failing plugin does not stop the others from being
tried, but any failure fails the whole load: callers never receive a
partial pipeline.
"""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Optional, Sequence

from imagemin.exceptions import PluginResolutionError
from imagemin.plugins.metadata import PluginHandle
from imagemin.plugins.options import PluginSpec
from imagemin.plugins.registry import PluginRegistry, plugin_registry

logger = logging.getLogger(__name__)


def load_plugins(specs: Sequence[PluginSpec], registry: Optional[PluginRegistry] = None) -> list[PluginHandle]:
    """Resolve and instantiate every plugin in ``specs``.

    Parameters
    ----------
    specs : Sequence[PluginSpec]
        Normalized plugin specs, in pipeline order
    registry : PluginRegistry, optional
        Registry to resolve against. Defaults to the global registry.

    Returns
    -------
    list[PluginHandle]
        Handles in the same order as ``specs``

    Raises
    ------
    PluginResolutionError
        If one or more plugins could not be resolved. The error names the
        first failing plugin in pipeline order and lists all of them in
        ``unresolved``.

    """
    registry = registry or plugin_registry
    if not specs:
        return []

    with ThreadPoolExecutor(max_workers=len(specs), thread_name_prefix="imagemin-load") as executor:
        futures: list[Future[PluginHandle]] = [executor.submit(registry.create, spec) for spec in specs]

    handles: list[PluginHandle] = []
    failures: list[PluginResolutionError] = []
    for spec, future in zip(specs, futures):
        error = future.exception()
        if error is None:
            handles.append(future.result())
            continue
        if not isinstance(error, PluginResolutionError):
            error = PluginResolutionError(spec.name, reason=str(error), original_error=error)
        logger.debug(f"Plugin '{spec.name}' failed to load: {error}")
        failures.append(error)

    if failures:
        first = failures[0]
        raise PluginResolutionError(
            first.plugin_name,
            unresolved=[failure.plugin_name for failure in failures],
            reason=first.reason,
            original_error=first.original_error,
        )

    logger.debug(f"Loaded {len(handles)} plugin(s): {', '.join(h.name for h in handles)}")
    return handles


__all__ = ["load_plugins"]
