#  Copyright (c) 2025 Tom Villani, Ph.D.
"""Argument parser and exit codes for the imagemin CLI."""

from __future__ import annotations

import argparse
from importlib.metadata import PackageNotFoundError, version

from imagemin.cli.custom_actions import (
    TrackingAppendAction,
    TrackingPositiveIntAction,
    TrackingStoreAction,
    TrackingStoreTrueAction,
)
from imagemin.constants import DEFAULT_PLUGINS

EXIT_SUCCESS = 0
EXIT_ERROR = 1
EXIT_INTERRUPTED = 130

USAGE = """\
imagemin <path|glob> ... --out-dir=build [--plugin=<name> ...]
       imagemin <file> > <output>
       cat <file> | imagemin > <output>"""

EPILOG = f"""
Default plugins:
  {", ".join(DEFAULT_PLUGINS)}

Plugin options:
  --plugin.NAME.KEY=VALUE passes KEY=VALUE to plugin NAME. Repeating a key
  builds a list, nested keys use further dots. Values "true" and "false"
  become booleans, numbers become ints or floats.

Examples:
  $ imagemin images/* --out-dir=build
  $ imagemin foo.png > foo-optimized.png
  $ cat foo.png | imagemin > foo-optimized.png
  $ imagemin foo.png --plugin=pngquant > foo-optimized.png
  $ imagemin foo.png --plugin.pngquant.quality=0.1 --plugin.pngquant.quality=0.2 > foo-optimized.png
  # Non-Windows shells may support the brace syntax for list options
  $ imagemin foo.png --plugin.pngquant.quality={{0.1,0.2}} > foo-optimized.png
  $ imagemin foo.png --plugin.webp.quality=95 --plugin.webp.preset=icon > foo-icon.webp
  $ imagemin --overwrite foo.png

Environment variables:
  IMAGEMIN_PLUGIN=a,b, IMAGEMIN_OUT_DIR, IMAGEMIN_OVERWRITE=true and
  IMAGEMIN_JOBS provide defaults for the matching options.
  IMAGEMIN_CONFIG selects a configuration file.
"""


def get_version() -> str:
    """Get the installed version of imagemin."""
    try:
        return version("imagemin-cli")
    except PackageNotFoundError:
        from imagemin import __version__

        return __version__


def create_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser.

    Dotted ``--plugin.NAME.KEY`` options are not declared here; they are
    split out of the command line by
    :func:`imagemin.cli.custom_actions.extract_plugin_option_args` before
    parsing.
    """
    parser = argparse.ArgumentParser(
        prog="imagemin",
        usage=USAGE,
        description="Minify images",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=EPILOG,
    )

    parser.add_argument("input", nargs="*", help="Files, glob patterns or directories. Omit to read from stdin.")

    parser.add_argument(
        "--plugin",
        "-p",
        action=TrackingAppendAction,
        metavar="NAME",
        help="Override the default plugins (can be specified multiple times)",
    )
    parser.add_argument(
        "--out-dir",
        "-o",
        action=TrackingStoreAction,
        type=str,
        metavar="DIR",
        help="Output directory",
    )
    parser.add_argument(
        "--overwrite",
        action=TrackingStoreTrueAction,
        help="Overwrite the original file with a minified version",
    )
    parser.add_argument(
        "--jobs",
        "-j",
        action=TrackingPositiveIntAction,
        metavar="N",
        help="Maximum number of images minified concurrently",
    )

    config_group = parser.add_argument_group("Configuration")
    config_group.add_argument(
        "--config",
        metavar="PATH",
        help="Path to a configuration file (TOML, YAML or JSON). If not specified, searches for "
        ".imagemin.toml/.yaml/.yml/.json or pyproject.toml [tool.imagemin] from the current "
        "directory upwards, then in the home directory.",
    )
    config_group.add_argument(
        "--no-config",
        action="store_true",
        dest="no_config",
        help="Disable loading of configuration files. Ignores auto-discovered configs, "
        "IMAGEMIN_CONFIG environment variable, and any --config flag.",
    )

    logging_group = parser.add_argument_group("Logging")
    logging_group.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose output with detailed logging (equivalent to --log-level DEBUG)",
    )
    logging_group.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="WARNING",
        help="Set logging level for debugging (default: WARNING). Overrides --verbose if both are specified.",
    )
    logging_group.add_argument(
        "--log-file",
        type=str,
        metavar="PATH",
        help="Write log messages to specified file in addition to console output",
    )

    parser.add_argument("--version", "-V", action="version", version=f"imagemin {get_version()}")

    return parser


def get_exit_code_for_exception(exception: BaseException) -> int:
    """Map an exception to a CLI exit code.

    Parameters
    ----------
    exception : BaseException
        The exception to map to an exit code

    Returns
    -------
    int
        ``EXIT_INTERRUPTED`` for keyboard interrupts, ``EXIT_ERROR`` otherwise

    """
    if isinstance(exception, KeyboardInterrupt):
        return EXIT_INTERRUPTED
    return EXIT_ERROR
