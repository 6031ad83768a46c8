#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/imagemin/progress.py
"""Progress callback system for image minification.

The pipeline reports what it is doing through plain callbacks so that
embedders (and the CLI) can display per-file results without the pipeline
knowing anything about terminals.

Examples
--------
    >>> from imagemin.pipeline import Pipeline
    >>> from imagemin.progress import ProgressEvent
    >>>
    >>> def report(event: ProgressEvent):
    ...     if event.event_type == "item_done":
    ...         print(f"{event.metadata['path']} -> {event.metadata['bytes']} bytes")
    >>>
    >>> pipeline = Pipeline(plugins, progress_callback=report)

"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Literal

EventType = Literal["started", "item_done", "finished", "error"]


@dataclass
class ProgressEvent:
    """Progress event emitted while minifying a batch.

    Parameters
    ----------
    event_type : EventType
        - "started": a batch has begun; ``total`` is the number of items
        - "item_done": one item finished; ``metadata`` holds ``path``
          (may be None for buffers), ``bytes`` (output size) and
          ``original_bytes``
        - "error": one item failed; ``metadata`` holds ``path`` and ``error``
        - "finished": the batch completed
    message : str
        Human-readable description of the event
    current : int, default 0
        Number of items completed so far
    total : int, default 0
        Total items in the batch. 0 if unknown.
    metadata : dict, default empty
        Event-specific information

    """

    event_type: EventType
    message: str
    current: int = 0
    total: int = 0
    metadata: dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        """Return human-readable string representation."""
        progress = f"({self.current}/{self.total})" if self.total > 0 else ""
        return f"[{self.event_type.upper()}] {self.message} {progress}".strip()


ProgressCallback = Callable[[ProgressEvent], None]
"""Type alias for progress callback functions.

Callbacks are invoked from the thread that joins the batch, never from
worker threads, so they may write to shared streams without locking.
"""
