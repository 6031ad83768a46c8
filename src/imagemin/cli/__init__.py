"""Command-line interface for imagemin.

Minify images from files, globs, directories or standard input through a
chain of plugins.

Environment Variable Support
----------------------------
Options support environment variable defaults using the pattern
IMAGEMIN_<OPTION_NAME> where option names are converted to uppercase with
hyphens replaced by underscores. CLI arguments always override environment
variables, which override the configuration file.

Examples
--------
Minify into a directory::

    $ imagemin images/* --out-dir=build

Minify a single file to stdout::

    $ imagemin foo.png > foo-optimized.png
    $ cat foo.png | imagemin > foo-optimized.png

Select plugins and pass them options::

    $ imagemin foo.png --plugin=pngquant --plugin.pngquant.quality=0.6 > foo-optimized.png

Rewrite files in place::

    $ imagemin --overwrite foo.png

"""

#  Copyright (c) 2025 Tom Villani, Ph.D.
import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Any, Optional

from imagemin.cli.builder import (
    EXIT_ERROR,
    EXIT_INTERRUPTED,
    EXIT_SUCCESS,
    create_parser,
    get_exit_code_for_exception,
)
from imagemin.cli.config import load_config_with_priority, register_config_factories
from imagemin.cli.custom_actions import env_key_for, extract_plugin_option_args
from imagemin.cli.progress import Spinner
from imagemin.constants import DEFAULT_PLUGINS, ENV_PREFIX
from imagemin.exceptions import ImageminError, OutputConflictError, PluginResolutionError, UsageError
from imagemin.logging_utils import configure_logging
from imagemin.plugins import PluginSpec, load_plugins, normalize_plugin_options
from imagemin.router import InputKind, Router, RunConfig

logger = logging.getLogger(__name__)

__all__ = ["main", "create_parser", "build_run_config", "resolve_plugin_selection"]


def _setup_logging_level(parsed_args: argparse.Namespace) -> None:
    """Set up logging level based on command-line arguments.

    ``--log-level`` wins over ``--verbose`` when both are given.
    """
    if parsed_args.verbose and parsed_args.log_level == "WARNING":
        log_level = logging.DEBUG
    else:
        log_level = getattr(logging, parsed_args.log_level.upper())

    configure_logging(log_level, log_file=parsed_args.log_file)


def _load_config(parsed_args: argparse.Namespace) -> dict[str, Any]:
    if parsed_args.no_config:
        return {}
    return load_config_with_priority(parsed_args.config, os.environ.get(f"{ENV_PREFIX}CONFIG"))


def _from_cli_or_env(parsed_args: argparse.Namespace, dest: str) -> bool:
    """Whether ``dest`` was set on the command line or through its environment variable."""
    provided = getattr(parsed_args, "_provided_args", set())
    return dest in provided or os.environ.get(env_key_for(dest)) is not None


def _setting(parsed_args: argparse.Namespace, config: dict[str, Any], dest: str, default: Any = None) -> Any:
    """Resolve a setting with CLI > environment > config file > default priority."""
    if _from_cli_or_env(parsed_args, dest):
        value = getattr(parsed_args, dest)
        if value is not None:
            return value
    return config.get(dest, default)


def resolve_plugin_selection(
    parsed_args: argparse.Namespace, config: dict[str, Any], dotted_options: list[dict[str, Any]]
) -> list[PluginSpec]:
    """Combine plugin names and dotted options into normalized specs.

    Names come from ``--plugin`` (or ``IMAGEMIN_PLUGIN``), else from the
    configuration file. Dotted ``--plugin.NAME.KEY`` options are appended
    after the names, so their options win for a repeated name. The default
    plugins are used only when neither names nor dotted options are given.
    """
    names = parsed_args.plugin if _from_cli_or_env(parsed_args, "plugin") and parsed_args.plugin else None
    if names is None:
        names = config.get("plugins")

    selection: list[Any] = list(names or [])
    selection.extend(dotted_options)
    if not selection:
        selection = list(DEFAULT_PLUGINS)

    return normalize_plugin_options(selection)


def build_run_config(
    parsed_args: argparse.Namespace,
    config: dict[str, Any],
    plugins: list[PluginSpec],
    input_kind: InputKind,
) -> RunConfig:
    """Build the explicit run settings from arguments, environment and config."""
    out_dir = _setting(parsed_args, config, "out_dir")
    return RunConfig(
        plugins=tuple(plugins),
        input_kind=input_kind,
        out_dir=Path(out_dir) if out_dir else None,
        overwrite=bool(_setting(parsed_args, config, "overwrite", False)),
        jobs=_setting(parsed_args, config, "jobs"),
    )


def _stdin_is_interactive() -> bool:
    return sys.stdin is None or sys.stdin.isatty()


def _run(parsed_args: argparse.Namespace, dotted_options: list[dict[str, Any]]) -> int:
    config = _load_config(parsed_args)
    register_config_factories(config)

    inputs: list[str] = list(parsed_args.input)
    overwrite = bool(_setting(parsed_args, config, "overwrite", False))
    if not inputs and (overwrite or _stdin_is_interactive()):
        raise UsageError("Specify at least one file path")

    specs = resolve_plugin_selection(parsed_args, config, dotted_options)
    logger.debug(f"Plugin chain: {', '.join(spec.name for spec in specs)}")
    handles = load_plugins(specs)

    input_kind = InputKind.FILES if inputs else InputKind.BUFFER
    run_config = build_run_config(parsed_args, config, specs, input_kind)
    router = Router(run_config, handles, stdout=sys.stdout.buffer, stderr=sys.stderr, progress_factory=Spinner)

    payload: Any = inputs if inputs else sys.stdin.buffer.read()
    router.run(payload)
    return EXIT_SUCCESS


def main(args: Optional[list[str]] = None) -> int:
    """Execute the imagemin command line.

    Parameters
    ----------
    args : list[str], optional
        Command line arguments, defaults to ``sys.argv[1:]``

    Returns
    -------
    int
        Process exit code

    """
    argv = list(sys.argv[1:] if args is None else args)

    try:
        argv, dotted_options = extract_plugin_option_args(argv)
    except UsageError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_ERROR

    parser = create_parser()
    parsed_args = parser.parse_args(argv)

    _setup_logging_level(parsed_args)

    try:
        return _run(parsed_args, dotted_options)
    except PluginResolutionError as e:
        logger.debug(f"Plugin resolution failed: {e}")
        print(e.remediation, file=sys.stderr)
        return get_exit_code_for_exception(e)
    except (UsageError, OutputConflictError) as e:
        print(e, file=sys.stderr)
        return get_exit_code_for_exception(e)
    except ImageminError as e:
        logger.debug("Run failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return get_exit_code_for_exception(e)
    except KeyboardInterrupt:
        print("Interrupted", file=sys.stderr)
        return EXIT_INTERRUPTED


if __name__ == "__main__":
    sys.exit(main())
