"""Custom argparse actions and dotted plugin option parsing.

This module provides custom actions that track which arguments were
explicitly provided and read defaults from ``IMAGEMIN_<DEST>`` environment
variables, plus the parser for ``--plugin.NAME.KEY=VALUE`` options.
"""

from __future__ import annotations

#  Copyright (c) 2025 Tom Villani, Ph.D.
import argparse
import logging
import os
from typing import Any, Callable, Optional, Sequence, Union

from imagemin.constants import ENV_PREFIX
from imagemin.exceptions import UsageError

PLUGIN_OPTION_PREFIX = "--plugin."

TRUE_VALUES = ("true", "1", "yes", "on")


def env_key_for(dest: str) -> str:
    """Return the environment variable that provides the default for ``dest``."""
    return f"{ENV_PREFIX}{dest.upper().replace('-', '_').replace('.', '_')}"


def _mark_provided(namespace: argparse.Namespace, dest: str) -> None:
    if not hasattr(namespace, "_provided_args"):
        namespace._provided_args = set()
    namespace._provided_args.add(dest)


class TrackingStoreAction(argparse.Action):
    """Custom action that tracks whether an argument was explicitly provided.

    This action stores the value and records the destination in
    ``namespace._provided_args`` so callers can tell a user-provided value
    from a default that happens to match it.

    Also supports environment variable defaults using the pattern
    IMAGEMIN_DEST_NAME.
    """

    def __init__(
        self,
        option_strings: Sequence[str],
        dest: str,
        nargs: Optional[Union[int, str]] = None,
        const: Optional[Any] = None,
        default: Optional[Any] = None,
        type: Optional[Callable[[str], Any]] = None,
        choices: Optional[Sequence[Any]] = None,
        required: bool = False,
        help: Optional[str] = None,
        metavar: Optional[Union[str, tuple[str, ...]]] = None,
    ) -> None:
        """Initialize the tracking store action.

        Parameters
        ----------
        option_strings : Sequence[str]
            The option strings for this action
        dest : str
            The attribute name to store the value
        nargs : Optional[Union[int, str]]
            Number of arguments to consume
        const : Optional[Any]
            Constant value for special cases
        default : Optional[Any]
            Default value if not provided
        type : Optional[Any]
            Type conversion function
        choices : Optional[Sequence[Any]]
            Valid choices for the argument
        required : bool
            Whether this argument is required
        help : Optional[str]
            Help text for the argument
        metavar : Optional[Union[str, tuple[str, ...]]]
            Display name for the argument value

        """
        env_key = env_key_for(dest)
        env_value = os.environ.get(env_key)
        if env_value is not None:
            try:
                default = type(env_value) if type is not None else env_value
            except (ValueError, TypeError) as e:
                logging.warning(f"Invalid environment variable {env_key}={env_value}: {e}")

        super().__init__(
            option_strings=option_strings,
            dest=dest,
            nargs=nargs,
            const=const,
            default=default,
            type=type,
            choices=choices,
            required=required,
            help=help,
            metavar=metavar,
        )

    def __call__(
        self,
        parser: argparse.ArgumentParser,
        namespace: argparse.Namespace,
        values: Union[str, Sequence[Any], None],
        option_string: Optional[str] = None,
    ) -> None:
        """Store the value and mark it as explicitly provided."""
        setattr(namespace, self.dest, values)
        _mark_provided(namespace, self.dest)


class TrackingStoreTrueAction(argparse.Action):
    """Custom store_true action that tracks whether the flag was explicitly provided.

    Also supports environment variable defaults using the pattern
    IMAGEMIN_DEST_NAME (``true``, ``1``, ``yes`` or ``on`` enable the flag).
    """

    def __init__(
        self,
        option_strings: Sequence[str],
        dest: str,
        default: bool = False,
        required: bool = False,
        help: Optional[str] = None,
    ) -> None:
        """Initialize the tracking store_true action."""
        env_value = os.environ.get(env_key_for(dest))
        if env_value is not None:
            default = env_value.lower() in TRUE_VALUES

        super().__init__(
            option_strings=option_strings, dest=dest, nargs=0, const=True, default=default, required=required, help=help
        )

    def __call__(
        self,
        parser: argparse.ArgumentParser,
        namespace: argparse.Namespace,
        values: Union[str, Sequence[Any], None],
        option_string: Optional[str] = None,
    ) -> None:
        """Store True and mark as explicitly provided."""
        setattr(namespace, self.dest, True)
        _mark_provided(namespace, self.dest)


class TrackingAppendAction(argparse.Action):
    """Custom append action that tracks explicitly provided arguments.

    Also supports environment variable defaults using the pattern
    IMAGEMIN_DEST_NAME. Environment values are split on commas. The first
    explicit use on the command line replaces the environment default
    instead of appending to it.
    """

    def __init__(
        self,
        option_strings: Sequence[str],
        dest: str,
        nargs: Optional[Union[int, str]] = None,
        const: Optional[Any] = None,
        default: Optional[list] = None,
        type: Optional[Callable[[str], Any]] = None,
        choices: Optional[Sequence[Any]] = None,
        required: bool = False,
        help: Optional[str] = None,
        metavar: Optional[Union[str, tuple[str, ...]]] = None,
    ) -> None:
        """Initialize the tracking append action.

        Parameters
        ----------
        option_strings : Sequence[str]
            The option strings for this action
        dest : str
            The attribute name to store the value
        nargs : Optional[Union[int, str]]
            Number of arguments to consume
        const : Optional[Any]
            Constant value for special cases
        default : Optional[list]
            Default value if not provided
        type : Optional[Any]
            Type conversion function
        choices : Optional[Sequence[Any]]
            Valid choices for the argument
        required : bool
            Whether this argument is required
        help : Optional[str]
            Help text for the argument
        metavar : Optional[Union[str, tuple[str, ...]]]
            Display name for the argument value

        """
        env_key = env_key_for(dest)
        env_value = os.environ.get(env_key)
        if env_value is not None:
            default = [item.strip() for item in env_value.split(",") if item.strip()]
            if type is not None:
                try:
                    default = [type(item) for item in default]
                except (ValueError, TypeError) as e:
                    logging.warning(f"Invalid type conversion for {env_key}={env_value}: {e}")
                    default = None

        super().__init__(
            option_strings=option_strings,
            dest=dest,
            nargs=nargs,
            const=const,
            default=default,
            type=type,
            choices=choices,
            required=required,
            help=help,
            metavar=metavar,
        )

    def __call__(
        self,
        parser: argparse.ArgumentParser,
        namespace: argparse.Namespace,
        values: Union[str, Sequence[Any], None],
        option_string: Optional[str] = None,
    ) -> None:
        """Append the value and mark as explicitly provided.

        For nargs lists the values are extended rather than appended as a
        nested list.
        """
        provided = getattr(namespace, "_provided_args", set())
        items = getattr(namespace, self.dest, None) if self.dest in provided else None
        items = list(items) if isinstance(items, list) else []

        if isinstance(values, (list, tuple)):
            items.extend(values)
        else:
            items.append(values)

        setattr(namespace, self.dest, items)
        _mark_provided(namespace, self.dest)


class TrackingPositiveIntAction(argparse.Action):
    """Action that validates positive integers with tracking and environment variable support."""

    def __init__(
        self,
        option_strings: Sequence[str],
        dest: str,
        nargs: Optional[Union[int, str]] = None,
        const: Optional[Any] = None,
        default: Optional[int] = None,
        required: bool = False,
        help: Optional[str] = None,
        metavar: Optional[Union[str, tuple[str, ...]]] = None,
    ) -> None:
        """Initialize the tracking positive int action."""
        env_key = env_key_for(dest)
        env_value = os.environ.get(env_key)
        if env_value is not None:
            try:
                ivalue = int(env_value)
                if ivalue <= 0:
                    logging.warning(f"Environment variable {env_key}: {env_value} is not a positive integer")
                else:
                    default = ivalue
            except ValueError:
                logging.warning(f"Environment variable {env_key}: {env_value} is not a valid integer")

        super().__init__(
            option_strings=option_strings,
            dest=dest,
            nargs=nargs,
            const=const,
            default=default,
            required=required,
            help=help,
            metavar=metavar,
        )

    def __call__(
        self,
        parser: argparse.ArgumentParser,
        namespace: argparse.Namespace,
        values: Union[str, Sequence[Any], None],
        option_string: Optional[str] = None,
    ) -> None:
        """Validate and convert to positive integer."""
        try:
            ivalue = int(str(values))
        except ValueError:
            parser.error(f"argument {option_string}: {values} is not a valid integer")
        if ivalue <= 0:
            parser.error(f"argument {option_string}: {values} is not a positive integer")

        setattr(namespace, self.dest, ivalue)
        _mark_provided(namespace, self.dest)


def parse_dot_notation(dot_string: str, value: Any) -> dict:
    """Parse a dot notation string into a nested dictionary.

    Parameters
    ----------
    dot_string : str
        Dot notation string (e.g., "pngquant.quality")
    value : Any
        The value to store at the nested location

    Returns
    -------
    dict
        Nested dictionary with the value at the specified path

    Examples
    --------
    >>> parse_dot_notation("pngquant.quality", 0.6)
    {'pngquant': {'quality': 0.6}}
    >>> parse_dot_notation("svgo.plugins.removeViewBox", False)
    {'svgo': {'plugins': {'removeViewBox': False}}}

    """
    parts = dot_string.split(".")
    result: dict[str, Any] = {}
    current = result

    for part in parts[:-1]:
        current[part] = {}
        current = current[part]

    current[parts[-1]] = value
    return result


def merge_option_dicts(base: dict, update: dict) -> dict:
    """Recursively merge option dictionaries, accumulating repeated leaves.

    Nested mappings are merged key by key. When a leaf key is set twice the
    values are collected into a list, so repeating an option builds an array.

    Examples
    --------
    >>> merge_option_dicts({'pngquant': {'quality': 0.1}}, {'pngquant': {'quality': 0.2}})
    {'pngquant': {'quality': [0.1, 0.2]}}
    >>> merge_option_dicts({'webp': {'quality': 95}}, {'webp': {'preset': 'icon'}})
    {'webp': {'quality': 95, 'preset': 'icon'}}

    """
    result: dict = base.copy()

    for key, value in update.items():
        if key not in result:
            result[key] = value
        elif isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = merge_option_dicts(result[key], value)
        elif isinstance(result[key], list):
            result[key] = [*result[key], value]
        else:
            result[key] = [result[key], value]

    return result


def coerce_option_value(raw: str) -> Any:
    """Convert a command line string to a bool, int, float or string.

    Examples
    --------
    >>> coerce_option_value("true"), coerce_option_value("95"), coerce_option_value("0.6")
    (True, 95, 0.6)
    >>> coerce_option_value("icon")
    'icon'

    """
    lowered = raw.lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    try:
        return int(raw)
    except ValueError:
        pass
    try:
        return float(raw)
    except ValueError:
        return raw


def _is_option_token(token: str) -> bool:
    if not token.startswith("-") or token == "-":
        return False
    try:
        float(token)
    except ValueError:
        return True
    return False


def extract_plugin_option_args(argv: Sequence[str]) -> tuple[list[str], list[dict[str, dict[str, Any]]]]:
    """Split ``--plugin.NAME.KEY[=VALUE]`` arguments out of ``argv``.

    Argparse cannot declare options whose names are only known at run time,
    so dotted plugin options are pulled out before parsing. A value is taken
    from ``=VALUE`` or from the following argument; a dotted option followed
    by another option (or nothing) is a boolean flag.

    Parameters
    ----------
    argv : Sequence[str]
        Raw command line arguments

    Returns
    -------
    tuple[list[str], list[dict]]
        The remaining arguments for argparse, and one ``{name: options}``
        mapping per plugin in first-mention order with repeated keys
        accumulated into lists

    Raises
    ------
    UsageError
        If a dotted option names no plugin or no key

    Examples
    --------
    >>> extract_plugin_option_args(["a.png", "--plugin.pngquant.quality=0.1", "--plugin.pngquant.quality", "0.2"])
    (['a.png'], [{'pngquant': {'quality': [0.1, 0.2]}}])

    """
    remaining: list[str] = []
    options: dict[str, dict[str, Any]] = {}

    tokens = list(argv)
    index = 0
    while index < len(tokens):
        token = tokens[index]
        index += 1

        if token == "--":
            remaining.extend(tokens[index - 1 :])
            break
        if not token.startswith(PLUGIN_OPTION_PREFIX):
            remaining.append(token)
            continue

        path, has_value, raw_value = token[len(PLUGIN_OPTION_PREFIX) :].partition("=")
        parts = path.split(".")
        if len(parts) < 2 or not all(parts):
            raise UsageError(f"Invalid plugin option '{token}', expected --plugin.NAME.KEY=VALUE")

        value: Any
        if has_value:
            value = coerce_option_value(raw_value)
        elif index < len(tokens) and not _is_option_token(tokens[index]):
            value = coerce_option_value(tokens[index])
            index += 1
        else:
            value = True

        options = merge_option_dicts(options, parse_dot_notation(path, value))

    return remaining, [{name: plugin_options} for name, plugin_options in options.items()]
