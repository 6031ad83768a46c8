#  Copyright (c) 2025 Tom Villani, Ph.D.
"""Custom exceptions for imagemin.

This module defines specialized exception classes for the error conditions
that can occur while resolving plugins and minifying images. These
exceptions provide more specific error information than generic built-ins.

Exception Hierarchy
-------------------
- ImageminError (base exception)

  - UsageError (no input, conflicting or malformed options)
    - ConfigError (configuration file problems)

  - PluginResolutionError (plugin not installed or incompatible)

  - TransformError (a plugin failed on specific bytes)
    - PipelineError (aggregated per-file failures)

  - OutputConflictError (several results but a single output stream or path)

  - FileError (file access and I/O)
    - FileAccessError (input cannot be read)
    - OutputWriteError (output cannot be written)

"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Sequence

from imagemin.constants import PLUGIN_PACKAGE_PREFIX

if TYPE_CHECKING:
    from imagemin.pipeline import MinifiedFile


class ImageminError(Exception):
    """Base exception class for all imagemin-specific errors.

    Parameters
    ----------
    message : str
        Human-readable description of the error
    original_error : Exception, optional
        The original exception that caused this error, if applicable

    Attributes
    ----------
    message : str
        The error message
    original_error : Exception or None
        The wrapped original exception, if any

    """

    def __init__(self, message: str, original_error: Exception | None = None):
        """Initialize the error with a message and optional original exception."""
        super().__init__(message)
        self.message = message
        self.original_error = original_error


class UsageError(ImageminError):
    """Exception raised for invalid invocations.

    Covers a missing input, conflicting flags and malformed plugin options.
    No work is attempted once this is raised.
    """


class ConfigError(UsageError):
    """Exception raised when a configuration file cannot be used.

    Parameters
    ----------
    message : str
        Description of the problem
    config_path : str, optional
        Path to the offending configuration file
    original_error : Exception, optional
        The original exception that caused this error

    """

    def __init__(self, message: str, config_path: str | None = None, original_error: Exception | None = None):
        """Initialize the config error."""
        super().__init__(message, original_error=original_error)
        self.config_path = config_path


class PluginResolutionError(ImageminError):
    """Exception raised when a named plugin cannot be resolved.

    Parameters
    ----------
    plugin_name : str
        Name of the first plugin that failed to resolve
    unresolved : Sequence[str], optional
        Every plugin name that failed to resolve in the same load, in
        pipeline order. Defaults to ``[plugin_name]``
    reason : str, optional
        Short description of why resolution failed
    message : str, optional
        Custom error message. If not provided, generates a helpful message
    original_error : Exception, optional
        The original exception that caused this error

    Attributes
    ----------
    plugin_name : str
        The plugin that could not be resolved
    unresolved : list[str]
        All plugins that could not be resolved
    reason : str or None
        Why resolution failed

    """

    def __init__(
        self,
        plugin_name: str,
        unresolved: Sequence[str] | None = None,
        reason: str | None = None,
        message: str | None = None,
        original_error: Exception | None = None,
    ):
        """Initialize the resolution error with the failing plugin name."""
        if message is None:
            message = f"Unknown plugin: {plugin_name}"
            if reason:
                message += f" ({reason})"
        super().__init__(message, original_error=original_error)
        self.plugin_name = plugin_name
        self.unresolved = list(unresolved) if unresolved else [plugin_name]
        self.reason = reason

    @staticmethod
    def install_command_for(plugin_name: str) -> str:
        """Return the command that installs the named plugin."""
        return f"pip install {PLUGIN_PACKAGE_PREFIX}{plugin_name}"

    @property
    def install_command(self) -> str:
        """Install command for the first unresolved plugin."""
        return self.install_command_for(self.plugin_name)

    @staticmethod
    def remediation_for(plugin_name: str) -> str:
        """Render the user-facing remediation block for one plugin."""
        return "\n".join(
            [
                f"Unknown plugin: {plugin_name}",
                "",
                "Did you forget to install the plugin?",
                "You can install it with:",
                "",
                f"  $ {PluginResolutionError.install_command_for(plugin_name)}",
            ]
        )

    @property
    def remediation(self) -> str:
        """Remediation text for every unresolved plugin, in pipeline order."""
        return "\n\n".join(self.remediation_for(name) for name in self.unresolved)


class TransformError(ImageminError):
    """Exception raised when a plugin fails on specific bytes.

    Parameters
    ----------
    message : str
        Description of the transform failure
    plugin_name : str, optional
        Name of the plugin that failed
    file_path : str, optional
        File being processed when the failure occurred
    original_error : Exception, optional
        The underlying exception raised by the plugin

    """

    def __init__(
        self,
        message: str,
        plugin_name: str | None = None,
        file_path: str | None = None,
        original_error: Exception | None = None,
    ):
        """Initialize the transform error."""
        super().__init__(message, original_error)
        self.plugin_name = plugin_name
        self.file_path = file_path


class PipelineError(TransformError):
    """Exception raised after a batch finished with one or more failed files.

    Parameters
    ----------
    failures : Sequence[tuple[Path, Exception]]
        Each failed file with the error it raised
    results : Sequence[MinifiedFile], optional
        Files that were processed successfully
    total : int, optional
        Number of files in the batch

    """

    def __init__(
        self,
        failures: Sequence[tuple[Path, Exception]],
        results: Sequence["MinifiedFile"] | None = None,
        total: int | None = None,
    ):
        """Initialize the aggregated error."""
        self.failures = list(failures)
        self.results = list(results or [])
        self.total = total if total is not None else len(self.failures) + len(self.results)

        lines = [f"Failed to minify {len(self.failures)} of {self.total} image(s):"]
        for path, error in self.failures:
            lines.append(f"  {path}: {error}")

        first_error = self.failures[0][1] if self.failures else None
        super().__init__("\n".join(lines), original_error=first_error)


class OutputConflictError(ImageminError):
    """Exception raised when several results would be written to one stream or file."""


class FileError(ImageminError):
    """Base exception for file access and I/O errors.

    Parameters
    ----------
    message : str
        Description of the file error
    file_path : str, optional
        Path to the problematic file
    original_error : Exception, optional
        The original exception that caused this error

    """

    def __init__(self, message: str, file_path: str | None = None, original_error: Exception | None = None):
        """Initialize the file error with path and message."""
        super().__init__(message, original_error=original_error)
        self.file_path = file_path


class FileAccessError(FileError):
    """Exception raised when an input file cannot be read."""

    def __init__(self, file_path: str, message: str | None = None, original_error: Exception | None = None):
        """Initialize the file access error."""
        if message is None:
            message = f"Cannot read file: {file_path}"
            if original_error is not None:
                message += f" ({original_error})"
        super().__init__(message, file_path=file_path, original_error=original_error)


class OutputWriteError(FileError):
    """Exception raised when writing an output file fails."""

    def __init__(self, file_path: str, message: str | None = None, original_error: Exception | None = None):
        """Initialize the output write error."""
        if message is None:
            message = f"Failed to write output file: {file_path}"
            if original_error is not None:
                message += f" ({original_error})"
        super().__init__(message, file_path=file_path, original_error=original_error)


__all__ = [
    "ImageminError",
    "UsageError",
    "ConfigError",
    "PluginResolutionError",
    "TransformError",
    "PipelineError",
    "OutputConflictError",
    "FileError",
    "FileAccessError",
    "OutputWriteError",
]
