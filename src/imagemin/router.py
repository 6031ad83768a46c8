#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/imagemin/router.py
"""Input/output routing for a minification run.

Every run executes in exactly one :class:`RunMode`, selected from the kind
of input and the output flags by :func:`select_mode`:

=========  =======  =========  ===========
input      out_dir  overwrite  mode
=========  =======  =========  ===========
buffer     any      any        BUFFER
files      set      any        DESTINATION
files      unset    set        OVERWRITE
files      unset    unset      DESTINATION (single result to stdout)
=========  =======  =========  ===========

The :class:`Router` then drives the pipeline for that mode and writes the
results to the matching sink: standard output, a destination directory, or
the input files themselves.
"""

from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, BinaryIO, Callable, ContextManager, Optional, Sequence, TextIO, Union

from imagemin.exceptions import OutputConflictError, UsageError
from imagemin.inputs import InputPattern, expand_inputs
from imagemin.pipeline import MinifiedFile, Pipeline
from imagemin.plugins.metadata import PluginHandle
from imagemin.plugins.options import PluginSpec
from imagemin.progress import ProgressEvent

logger = logging.getLogger(__name__)

Payload = Union[bytes, Sequence[InputPattern]]


class InputKind(str, Enum):
    """Kind of input a run operates on."""

    BUFFER = "buffer"
    FILES = "files"


class RunMode(str, Enum):
    """Execution mode of a run."""

    BUFFER = "buffer"
    DESTINATION = "destination"
    OVERWRITE = "overwrite"


def select_mode(input_kind: InputKind, has_out_dir: bool, overwrite: bool) -> RunMode:
    """Select the run mode from the input kind and output flags.

    Raw bytes always run in buffer mode, whatever the flags say. For files,
    an output directory takes precedence over ``overwrite``.
    """
    if input_kind is InputKind.BUFFER:
        return RunMode.BUFFER
    if has_out_dir:
        return RunMode.DESTINATION
    if overwrite:
        return RunMode.OVERWRITE
    return RunMode.DESTINATION


def input_kind_for(payload: Payload) -> InputKind:
    """Return the input kind matching ``payload``."""
    if isinstance(payload, (bytes, bytearray, memoryview)):
        return InputKind.BUFFER
    return InputKind.FILES


@dataclass(frozen=True)
class RunConfig:
    """Explicit settings for one run.

    Parameters
    ----------
    plugins : tuple[PluginSpec, ...]
        Normalized plugin chain
    input_kind : InputKind
        Whether the run reads a buffer or files
    out_dir : Path, optional
        Destination directory
    overwrite : bool
        Rewrite input files in place
    jobs : int, optional
        Maximum number of files processed concurrently

    """

    plugins: tuple[PluginSpec, ...] = ()
    input_kind: InputKind = InputKind.FILES
    out_dir: Optional[Path] = None
    overwrite: bool = False
    jobs: Optional[int] = None

    @property
    def mode(self) -> RunMode:
        """Mode this configuration runs in."""
        return select_mode(self.input_kind, self.out_dir is not None, self.overwrite)


@dataclass
class RunResult:
    """Outcome of a run.

    ``data`` is set in buffer mode and when a single file was written to
    standard output; ``files`` lists every processed file.
    """

    mode: RunMode
    files: list[MinifiedFile] = field(default_factory=list)
    data: Optional[bytes] = None

    @property
    def count(self) -> int:
        """Number of images minified."""
        if self.mode is RunMode.BUFFER:
            return 1
        return len(self.files)


def pluralize(word: str, count: int) -> str:
    """Return ``word`` with a trailing ``s`` unless ``count`` is 1."""
    return word if count == 1 else f"{word}s"


def format_summary(count: int) -> str:
    """Return the summary line reported after a directory run."""
    return f"{count} {pluralize('image', count)} minified"


class NullProgress:
    """Progress indicator that shows nothing and logs plain lines."""

    def __init__(self, description: str = "", stream: Optional[TextIO] = None):
        """Initialize with the stream that receives log lines."""
        self.description = description
        self.stream = stream

    def __enter__(self) -> NullProgress:
        """Enter the context; nothing is displayed."""
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Exit the context."""
        return None

    def log(self, message: str) -> None:
        """Write ``message`` to the stream."""
        print(message, file=self.stream or sys.stderr)


ProgressFactory = Callable[[str], ContextManager[Any]]


class Router:
    """Run a loaded plugin chain in the mode selected by a :class:`RunConfig`.

    Parameters
    ----------
    config : RunConfig
        Run settings
    plugins : Sequence[PluginHandle]
        Loaded plugins for ``config.plugins``
    stdout : BinaryIO
        Binary stream receiving image bytes
    stderr : TextIO, optional
        Text stream receiving per-file lines and the summary. Defaults to
        ``sys.stderr`` at call time.
    progress_factory : callable, optional
        ``progress_factory(description)`` returns a context manager whose
        value has a ``log(message)`` method. It is entered while files are
        minified into a directory or in place, and always exited before an
        error propagates.

    """

    def __init__(
        self,
        config: RunConfig,
        plugins: Sequence[PluginHandle],
        stdout: BinaryIO,
        stderr: Optional[TextIO] = None,
        progress_factory: Optional[ProgressFactory] = None,
    ):
        """Initialize the router."""
        self.config = config
        self.plugins = list(plugins)
        self.stdout = stdout
        self.stderr = stderr
        self.progress_factory = progress_factory

    def _progress(self, description: str) -> ContextManager[Any]:
        if self.progress_factory is None:
            return NullProgress(description, stream=self.stderr)
        return self.progress_factory(description)

    def _report(self, message: str) -> None:
        print(message, file=self.stderr or sys.stderr)

    def _write_stdout(self, data: bytes) -> None:
        self.stdout.write(data)
        self.stdout.flush()

    def run(self, payload: Payload) -> RunResult:
        """Minify ``payload`` and write the results.

        Parameters
        ----------
        payload : bytes or Sequence[str | PathLike]
            Raw image bytes for buffer runs, file arguments otherwise

        Returns
        -------
        RunResult
            What was minified and where it went

        Raises
        ------
        UsageError
            If ``payload`` does not match ``config.input_kind``
        OutputConflictError
            If several files would be written to standard output
        TransformError
            If a plugin fails (``PipelineError`` for overwrite runs)

        """
        if isinstance(payload, (str, os.PathLike)):
            payload = [payload]

        if input_kind_for(payload) is not self.config.input_kind:
            raise UsageError(
                f"Run configured for {self.config.input_kind.value} input but received "
                f"{input_kind_for(payload).value} input"
            )

        mode = self.config.mode
        logger.debug(f"Running in {mode.value} mode with {len(self.plugins)} plugin(s)")

        if mode is RunMode.BUFFER:
            return self._run_buffer(bytes(payload))  # type: ignore[arg-type]

        files = expand_inputs(payload)  # type: ignore[arg-type]
        if mode is RunMode.OVERWRITE:
            return self._run_overwrite(files)
        return self._run_destination(files)

    def _run_buffer(self, data: bytes) -> RunResult:
        result = Pipeline(self.plugins).run_buffer(data)
        self._write_stdout(result)
        return RunResult(RunMode.BUFFER, data=result)

    def _run_destination(self, files: list[Path]) -> RunResult:
        out_dir = self.config.out_dir
        pipeline = Pipeline(self.plugins, max_workers=self.config.jobs)

        if out_dir is None:
            if not files:
                logger.debug("No files matched, nothing to write")
                return RunResult(RunMode.DESTINATION)
            if len(files) > 1:
                raise OutputConflictError("Cannot write multiple files to stdout, specify `--out-dir`")

            minified = pipeline.run_files(files)
            self._write_stdout(minified[0].data)
            return RunResult(RunMode.DESTINATION, files=minified, data=minified[0].data)

        with self._progress("Minifying images"):
            minified = pipeline.run_files(files, destination=out_dir)

        self._report(format_summary(len(minified)))
        return RunResult(RunMode.DESTINATION, files=minified)

    def _run_overwrite(self, files: list[Path]) -> RunResult:
        with self._progress("Minifying images") as progress:

            def report(event: ProgressEvent) -> None:
                if event.event_type == "item_done":
                    progress.log(f"{event.metadata['path']} -> {event.metadata['bytes']} bytes")

            pipeline = Pipeline(self.plugins, max_workers=self.config.jobs, progress_callback=report)
            minified = pipeline.run_in_place(files)

        return RunResult(RunMode.OVERWRITE, files=minified)


__all__ = [
    "InputKind",
    "NullProgress",
    "Payload",
    "ProgressFactory",
    "RunConfig",
    "RunMode",
    "RunResult",
    "Router",
    "format_summary",
    "input_kind_for",
    "pluralize",
    "select_mode",
]
