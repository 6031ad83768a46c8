#  Copyright (c) 2025 Tom Villani, Ph.D.
"""Unit tests for custom argparse actions and dotted plugin options."""

import argparse

import pytest

from imagemin.cli.custom_actions import (
    TrackingAppendAction,
    TrackingPositiveIntAction,
    TrackingStoreAction,
    TrackingStoreTrueAction,
    coerce_option_value,
    env_key_for,
    extract_plugin_option_args,
    merge_option_dicts,
    parse_dot_notation,
)
from imagemin.exceptions import UsageError


def build_parser():
    parser = argparse.ArgumentParser()
    parser.add_argument("--out-dir", action=TrackingStoreAction)
    parser.add_argument("--overwrite", action=TrackingStoreTrueAction)
    parser.add_argument("--plugin", "-p", action=TrackingAppendAction)
    parser.add_argument("--jobs", action=TrackingPositiveIntAction)
    return parser


@pytest.mark.unit
@pytest.mark.cli
class TestTrackingActions:
    """Tests for the tracking actions."""

    def test_env_key(self):
        """Test environment variable names are derived from the destination."""
        assert env_key_for("out_dir") == "IMAGEMIN_OUT_DIR"
        assert env_key_for("plugin") == "IMAGEMIN_PLUGIN"

    def test_provided_args_tracked(self, clean_env):
        """Test only explicitly given arguments are recorded."""
        args = build_parser().parse_args(["--out-dir", "build", "--overwrite"])

        assert args.out_dir == "build"
        assert args.overwrite is True
        assert args._provided_args == {"out_dir", "overwrite"}

    def test_defaults_not_tracked(self, clean_env):
        """Test defaults do not mark arguments as provided."""
        args = build_parser().parse_args([])

        assert args.out_dir is None
        assert args.overwrite is False
        assert args.plugin is None
        assert not getattr(args, "_provided_args", set())

    def test_env_defaults(self, clean_env):
        """Test IMAGEMIN_* variables provide defaults."""
        clean_env.setenv("IMAGEMIN_OUT_DIR", "dist")
        clean_env.setenv("IMAGEMIN_OVERWRITE", "yes")
        clean_env.setenv("IMAGEMIN_PLUGIN", "gifsicle, svgo")
        clean_env.setenv("IMAGEMIN_JOBS", "4")

        args = build_parser().parse_args([])

        assert args.out_dir == "dist"
        assert args.overwrite is True
        assert args.plugin == ["gifsicle", "svgo"]
        assert args.jobs == 4

    def test_cli_overrides_env_list(self, clean_env):
        """Test --plugin replaces the environment list instead of extending it."""
        clean_env.setenv("IMAGEMIN_PLUGIN", "gifsicle,svgo")

        args = build_parser().parse_args(["-p", "pngquant", "-p", "mozjpeg"])

        assert args.plugin == ["pngquant", "mozjpeg"]

    def test_invalid_env_jobs_ignored(self, clean_env):
        """Test an invalid IMAGEMIN_JOBS is ignored."""
        clean_env.setenv("IMAGEMIN_JOBS", "zero")

        assert build_parser().parse_args([]).jobs is None

    @pytest.mark.parametrize("value", ["0", "-2", "many"])
    def test_jobs_must_be_positive(self, clean_env, value):
        """Test --jobs rejects non-positive and non-integer values."""
        with pytest.raises(SystemExit):
            build_parser().parse_args(["--jobs", value])


@pytest.mark.unit
@pytest.mark.cli
class TestDotNotation:
    """Tests for dotted option helpers."""

    def test_parse_dot_notation(self):
        """Test dotted paths become nested dictionaries."""
        assert parse_dot_notation("pngquant.quality", 0.6) == {"pngquant": {"quality": 0.6}}
        assert parse_dot_notation("svgo.plugins.removeViewBox", False) == {
            "svgo": {"plugins": {"removeViewBox": False}}
        }

    def test_merge_accumulates_repeated_leaves(self):
        """Test repeated keys collect into a list."""
        merged = merge_option_dicts({"q": {"a": 1}}, {"q": {"a": 2}})
        merged = merge_option_dicts(merged, {"q": {"a": 3, "b": "x"}})

        assert merged == {"q": {"a": [1, 2, 3], "b": "x"}}

    @pytest.mark.parametrize(
        "raw,expected",
        [("true", True), ("False", False), ("95", 95), ("-3", -3), ("0.6", 0.6), ("icon", "icon"), ("", "")],
    )
    def test_coerce_option_value(self, raw, expected):
        """Test command line strings are coerced to scalars."""
        assert coerce_option_value(raw) == expected
        assert type(coerce_option_value(raw)) is type(expected)


@pytest.mark.unit
@pytest.mark.cli
class TestExtractPluginOptionArgs:
    """Tests for extract_plugin_option_args."""

    def test_no_dotted_options(self):
        """Test unrelated arguments pass through untouched."""
        assert extract_plugin_option_args(["a.png", "-p", "svgo", "--plugin=x"]) == (
            ["a.png", "-p", "svgo", "--plugin=x"],
            [],
        )

    def test_equals_form(self):
        """Test --plugin.NAME.KEY=VALUE."""
        remaining, options = extract_plugin_option_args(
            ["foo.png", "--plugin.webp.quality=95", "--plugin.webp.preset=icon"]
        )

        assert remaining == ["foo.png"]
        assert options == [{"webp": {"quality": 95, "preset": "icon"}}]

    def test_separate_value_form(self):
        """Test --plugin.NAME.KEY VALUE."""
        remaining, options = extract_plugin_option_args(["--plugin.pngquant.speed", "3", "foo.png"])

        assert remaining == ["foo.png"]
        assert options == [{"pngquant": {"speed": 3}}]

    def test_repeated_key_builds_list(self):
        """Test repeating an option accumulates its values."""
        _, options = extract_plugin_option_args(["--plugin.pngquant.quality=0.1", "--plugin.pngquant.quality=0.2"])

        assert options == [{"pngquant": {"quality": [0.1, 0.2]}}]

    def test_nested_keys(self):
        """Test further dots create nested options."""
        _, options = extract_plugin_option_args(["--plugin.svgo.plugins.removeViewBox=false"])

        assert options == [{"svgo": {"plugins": {"removeViewBox": False}}}]

    def test_flag_without_value(self):
        """Test a dotted option followed by another option is a boolean flag."""
        remaining, options = extract_plugin_option_args(["--plugin.gifsicle.interlaced", "--overwrite", "a.gif"])

        assert remaining == ["--overwrite", "a.gif"]
        assert options == [{"gifsicle": {"interlaced": True}}]

    def test_negative_number_value(self):
        """Test a negative number is taken as the value."""
        _, options = extract_plugin_option_args(["--plugin.x.offset", "-1"])

        assert options == [{"x": {"offset": -1}}]

    def test_plugins_in_first_mention_order(self):
        """Test one mapping per plugin in order of first mention."""
        _, options = extract_plugin_option_args(["--plugin.b.k=1", "--plugin.a.k=2", "--plugin.b.j=3"])

        assert options == [{"b": {"k": 1, "j": 3}}, {"a": {"k": 2}}]

    def test_double_dash_stops_extraction(self):
        """Test arguments after -- are left alone."""
        remaining, options = extract_plugin_option_args(["--", "--plugin.a.k=1"])

        assert remaining == ["--", "--plugin.a.k=1"]
        assert options == []

    @pytest.mark.parametrize(
        "arg", ["--plugin.pngquant", "--plugin.pngquant=1", "--plugin..quality=1", "--plugin.a.=1"]
    )
    def test_malformed(self, arg):
        """Test dotted options without a plugin and key are rejected."""
        with pytest.raises(UsageError, match="Invalid plugin option"):
            extract_plugin_option_args([arg])
