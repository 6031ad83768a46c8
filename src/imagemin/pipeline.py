#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/imagemin/pipeline.py
"""Pipeline execution for image minification.

A :class:`Pipeline` runs image bytes through an ordered chain of plugin
handles: the output of plugin *i* is the input of plugin *i+1*. It offers
three ways of running a batch:

- :meth:`Pipeline.run_buffer` - a single in-memory buffer
- :meth:`Pipeline.run_files` - files, optionally written beneath a
  destination directory that mirrors their relative layout
- :meth:`Pipeline.run_in_place` - files rewritten over themselves

Examples
--------
    >>> from imagemin.pipeline import Pipeline
    >>> from imagemin.plugins import load_plugins, normalize_plugin_options
    >>> pipeline = Pipeline(load_plugins(normalize_plugin_options(["optipng"])))
    >>> files = pipeline.run_files([Path("logo.png")], destination=Path("build"))
    >>> files[0].destination_path
    PosixPath('build/logo.png')

"""

from __future__ import annotations

import contextlib
import logging
import os
import shutil
import tempfile
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Sequence

from imagemin.exceptions import (
    FileAccessError,
    ImageminError,
    OutputConflictError,
    OutputWriteError,
    PipelineError,
    TransformError,
)
from imagemin.inputs import common_base_dir, relative_output_path
from imagemin.plugins.metadata import PluginHandle
from imagemin.progress import EventType, ProgressCallback, ProgressEvent

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MinifiedFile:
    """Result of minifying one file.

    Parameters
    ----------
    source_path : Path
        File that was read
    destination_path : Path or None
        File that was written, None when the result was only kept in memory
    data : bytes
        Minified bytes
    original_size : int
        Size of the source in bytes

    """

    source_path: Path
    destination_path: Optional[Path]
    data: bytes
    original_size: int = 0

    @property
    def size(self) -> int:
        """Size of the minified data in bytes."""
        return len(self.data)

    @property
    def saved(self) -> int:
        """Bytes saved relative to the source."""
        return self.original_size - self.size


class Pipeline:
    """Ordered chain of plugins applied to image bytes.

    Parameters
    ----------
    plugins : Sequence[PluginHandle]
        Loaded plugins in composition order
    max_workers : int, optional
        Maximum number of files processed concurrently. Defaults to the
        ``ThreadPoolExecutor`` default.
    progress_callback : ProgressCallback, optional
        Receives a :class:`ProgressEvent` per finished or failed file

    """

    def __init__(
        self,
        plugins: Sequence[PluginHandle],
        max_workers: Optional[int] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ):
        """Initialize the pipeline."""
        self.plugins = list(plugins)
        self.max_workers = max_workers
        self.progress_callback = progress_callback

    def _emit(self, event_type: EventType, message: str, current: int = 0, total: int = 0, **metadata: Any) -> None:
        if self.progress_callback is None:
            return
        self.progress_callback(ProgressEvent(event_type, message, current=current, total=total, metadata=metadata))

    def process(self, data: bytes, source: Optional[Path] = None) -> bytes:
        """Run ``data`` through every plugin in order.

        Parameters
        ----------
        data : bytes
            Input image bytes
        source : Path, optional
            File the bytes came from, used in error messages

        Returns
        -------
        bytes
            Output of the last plugin (``data`` unchanged if there are none)

        Raises
        ------
        TransformError
            If a plugin raises or returns something other than bytes

        """
        location = f" on {source}" if source is not None else ""
        file_path = str(source) if source is not None else None

        for handle in self.plugins:
            try:
                result = handle(data)
            except Exception as e:
                logger.debug(f"Plugin '{handle.name}' failed{location}", exc_info=True)
                raise TransformError(
                    f"Plugin '{handle.name}' failed{location}: {e}",
                    plugin_name=handle.name,
                    file_path=file_path,
                    original_error=e,
                ) from e

            if isinstance(result, (bytearray, memoryview)):
                result = bytes(result)
            if not isinstance(result, bytes):
                raise TransformError(
                    f"Plugin '{handle.name}' must return bytes, got {type(result).__name__}",
                    plugin_name=handle.name,
                    file_path=file_path,
                )

            logger.debug(f"Plugin '{handle.name}'{location}: {len(data)} -> {len(result)} bytes")
            data = result

        return data

    def run_buffer(self, data: bytes) -> bytes:
        """Minify a single in-memory buffer."""
        result = self.process(bytes(data))
        self._emit(
            "item_done",
            f"{len(result)} bytes",
            current=1,
            total=1,
            path=None,
            bytes=len(result),
            original_bytes=len(data),
        )
        return result

    def _read(self, path: Path) -> bytes:
        try:
            return path.read_bytes()
        except OSError as e:
            raise FileAccessError(str(path), original_error=e) from e

    def _minify_file(self, path: Path) -> tuple[bytes, int]:
        original = self._read(path)
        return self.process(original, source=path), len(original)

    @staticmethod
    def _write(path: Path, data: bytes) -> None:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        except OSError as e:
            raise OutputWriteError(str(path), original_error=e) from e

    @staticmethod
    def _replace(path: Path, data: bytes) -> None:
        # Symlinks are followed so the file they point to is rewritten and the link is kept
        try:
            target = path.resolve(strict=True)
        except OSError as e:
            raise OutputWriteError(str(path), original_error=e) from e
        if not os.access(target, os.W_OK):
            raise OutputWriteError(str(path), f"File is not writable: {path}")

        # Write a sibling temp file and swap it in so a failed write never truncates the original
        temp_name: Optional[str] = None
        try:
            fd, temp_name = tempfile.mkstemp(dir=target.parent, prefix=f".{target.name}.", suffix=".tmp")
            with os.fdopen(fd, "wb") as handle:
                handle.write(data)
            shutil.copymode(target, temp_name)
            os.replace(temp_name, target)
        except OSError as e:
            if temp_name is not None:
                with contextlib.suppress(FileNotFoundError):
                    os.unlink(temp_name)
            raise OutputWriteError(str(path), original_error=e) from e

    @staticmethod
    def _output_paths(paths: list[Path], destination: Optional[Path]) -> list[Optional[Path]]:
        """Map each input to its path beneath ``destination``.

        Raises
        ------
        OutputConflictError
            If two inputs would be written to the same output file

        """
        if destination is None:
            return [None] * len(paths)

        base_dir = common_base_dir(paths)
        output_paths: list[Optional[Path]] = []
        claimed: dict[Path, Path] = {}
        for path in paths:
            output_path = Path(destination) / relative_output_path(path, base_dir)
            previous = claimed.setdefault(output_path, path)
            if previous is not path:
                raise OutputConflictError(f"{previous} and {path} would both be written to {output_path}")
            output_paths.append(output_path)
        return output_paths

    def run_files(self, paths: Sequence[Path], destination: Optional[Path] = None) -> list[MinifiedFile]:
        """Minify files, optionally writing them beneath ``destination``.

        Every file is read and transformed first; nothing is written until
        all of them succeeded.

        Parameters
        ----------
        paths : Sequence[Path]
            Files to minify
        destination : Path, optional
            Output directory. Each file is written at its path relative to
            the common parent directory of ``paths``. When omitted, results
            are only returned.

        Returns
        -------
        list[MinifiedFile]
            Results in the order of ``paths``

        Raises
        ------
        TransformError
            If any plugin fails on any file; remaining files are cancelled
        FileAccessError
            If an input cannot be read
        OutputWriteError
            If an output cannot be written
        OutputConflictError
            If two inputs map to the same file beneath ``destination``;
            raised before any file is read

        """
        paths = [Path(p) for p in paths]
        total = len(paths)
        output_paths = self._output_paths(paths, destination)
        self._emit("started", f"Minifying {total} image(s)", total=total)

        processed: dict[int, tuple[bytes, int]] = {}
        if paths:
            with ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="imagemin") as executor:
                futures: dict[Future[tuple[bytes, int]], int] = {
                    executor.submit(self._minify_file, path): index for index, path in enumerate(paths)
                }
                try:
                    for future in as_completed(futures):
                        processed[futures[future]] = future.result()
                except ImageminError as e:
                    for pending in futures:
                        pending.cancel()
                    self._emit(
                        "error",
                        str(e),
                        current=len(processed),
                        total=total,
                        path=getattr(e, "file_path", None),
                        error=str(e),
                    )
                    raise

        results: list[MinifiedFile] = []
        for index, path in enumerate(paths):
            data, original_size = processed[index]
            output_path = output_paths[index]
            if output_path is not None:
                self._write(output_path, data)
            results.append(MinifiedFile(path, output_path, data, original_size))
            self._emit(
                "item_done",
                f"{path} -> {len(data)} bytes",
                current=index + 1,
                total=total,
                path=path,
                bytes=len(data),
                original_bytes=original_size,
            )

        self._emit("finished", f"Minified {total} image(s)", current=total, total=total)
        return results

    def _rewrite(self, path: Path) -> MinifiedFile:
        data, original_size = self._minify_file(path)
        self._replace(path, data)
        return MinifiedFile(path, path, data, original_size)

    def run_in_place(self, paths: Sequence[Path]) -> list[MinifiedFile]:
        """Minify files and overwrite each one with its result.

        Files are independent: every file is attempted, and the call returns
        only after all reads, transforms and writes have finished.

        Parameters
        ----------
        paths : Sequence[Path]
            Files to rewrite

        Returns
        -------
        list[MinifiedFile]
            Results in the order of ``paths``

        Raises
        ------
        PipelineError
            If one or more files failed. Successfully rewritten files are
            kept and available on ``PipelineError.results``.

        """
        paths = [Path(p) for p in paths]
        total = len(paths)
        self._emit("started", f"Minifying {total} image(s)", total=total)

        order = {path: index for index, path in enumerate(paths)}
        results: list[MinifiedFile] = []
        failures: list[tuple[Path, Exception]] = []

        if paths:
            with ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="imagemin") as executor:
                futures = {executor.submit(self._rewrite, path): path for path in paths}
                for completed, future in enumerate(as_completed(futures), start=1):
                    path = futures[future]
                    try:
                        result = future.result()
                    except ImageminError as e:
                        logger.error(f"Failed to minify {path}: {e}")
                        failures.append((path, e))
                        self._emit("error", str(e), current=completed, total=total, path=path, error=str(e))
                        continue
                    results.append(result)
                    self._emit(
                        "item_done",
                        f"{path} -> {result.size} bytes",
                        current=completed,
                        total=total,
                        path=path,
                        bytes=result.size,
                        original_bytes=result.original_size,
                    )

        results.sort(key=lambda result: order[result.source_path])
        failures.sort(key=lambda failure: order[failure[0]])

        if failures:
            raise PipelineError(failures, results=results, total=total)

        self._emit("finished", f"Minified {total} image(s)", current=total, total=total)
        return results


__all__ = ["MinifiedFile", "Pipeline"]
