#  Copyright (c) 2025 Tom Villani, Ph.D.
"""Unit tests for the pipeline executor."""

import os
from pathlib import Path

import pytest
from utils import write_files

from imagemin.exceptions import (
    FileAccessError,
    OutputConflictError,
    OutputWriteError,
    PipelineError,
    TransformError,
)
from imagemin.pipeline import MinifiedFile, Pipeline
from imagemin.plugins import load_plugins, normalize_plugin_options


def make_pipeline(*selection, **kwargs):
    return Pipeline(load_plugins(normalize_plugin_options(list(selection))), **kwargs)


@pytest.mark.unit
class TestProcess:
    """Tests for Pipeline.process and run_buffer."""

    def test_no_plugins_is_identity(self, registry):
        """Test an empty chain returns the input unchanged."""
        assert Pipeline([]).process(b"data") == b"data"

    def test_composition_order(self, registry):
        """Test plugins run left to right."""
        pipeline = make_pipeline({"append": {"suffix": "x"}}, "upper")

        assert pipeline.run_buffer(b"a") == b"AX"

    def test_reversed_order_differs(self, registry):
        """Test order matters for non-commuting plugins."""
        pipeline = make_pipeline("upper", {"append": {"suffix": "x"}})

        assert pipeline.run_buffer(b"a") == b"Ax"

    def test_plugin_exception_becomes_transform_error(self, registry):
        """Test a raising plugin fails with TransformError naming it."""
        pipeline = make_pipeline("identity", {"failing": {"message": "corrupt"}})

        with pytest.raises(TransformError, match="corrupt") as exc_info:
            pipeline.run_buffer(b"a")

        assert exc_info.value.plugin_name == "failing"
        assert isinstance(exc_info.value.original_error, ValueError)

    def test_non_bytes_result(self, registry):
        """Test a plugin returning non-bytes is rejected."""
        with pytest.raises(TransformError, match="must return bytes"):
            make_pipeline("not-bytes").run_buffer(b"a")

    def test_bytearray_result_accepted(self, registry):
        """Test bytearray results are converted to bytes."""
        registry.register_factory("to-bytearray", lambda **options: lambda data: bytearray(data))

        result = make_pipeline("to-bytearray").run_buffer(b"abc")

        assert result == b"abc"
        assert type(result) is bytes

    def test_run_buffer_emits_item_done(self, registry):
        """Test run_buffer reports the finished buffer."""
        events = []
        pipeline = make_pipeline("upper", progress_callback=events.append)

        pipeline.run_buffer(b"abc")

        assert [event.event_type for event in events] == ["item_done"]
        assert events[0].metadata["bytes"] == 3


@pytest.mark.unit
class TestRunFiles:
    """Tests for Pipeline.run_files."""

    def test_results_in_input_order(self, registry, tmp_path):
        """Test results follow the order of the given paths."""
        paths = write_files(tmp_path, {"b.png": b"bb", "a.png": b"a", "c.png": b"ccc"})

        results = make_pipeline("upper").run_files(paths)

        assert [result.source_path for result in results] == paths
        assert [result.data for result in results] == [b"BB", b"A", b"CCC"]
        assert all(result.destination_path is None for result in results)

    def test_destination_mirrors_layout(self, registry, tmp_path):
        """Test outputs keep their path relative to the common parent."""
        src = tmp_path / "src"
        paths = write_files(src, {"a.png": b"a", "icons/b.svg": b"b", "icons/deep/c.gif": b"c"})
        out = tmp_path / "build"

        results = make_pipeline("upper").run_files(paths, destination=out)

        assert (out / "a.png").read_bytes() == b"A"
        assert (out / "icons" / "b.svg").read_bytes() == b"B"
        assert (out / "icons" / "deep" / "c.gif").read_bytes() == b"C"
        assert results[1].destination_path == out / "icons" / "b.svg"

    def test_single_file_destination_uses_name(self, registry, tmp_path):
        """Test a single file is written under its own name."""
        paths = write_files(tmp_path / "nested" / "dir", {"logo.png": b"logo"})

        make_pipeline("upper").run_files(paths, destination=tmp_path / "out")

        assert (tmp_path / "out" / "logo.png").read_bytes() == b"LOGO"

    def test_failure_writes_nothing(self, registry, tmp_path):
        """Test a failing file aborts the batch before any output is written."""
        paths = write_files(tmp_path / "src", {"a.png": b"good", "b.png": b"bad", "c.png": b"good"})
        out = tmp_path / "out"

        with pytest.raises(TransformError, match="refusing bad") as exc_info:
            make_pipeline("fail-on").run_files(paths, destination=out)

        assert exc_info.value.file_path == str(paths[1])
        assert not out.exists()

    def test_unreadable_input(self, registry, tmp_path):
        """Test a missing input raises FileAccessError."""
        with pytest.raises(FileAccessError) as exc_info:
            make_pipeline("identity").run_files([tmp_path / "missing.png"])

        assert exc_info.value.file_path == str(tmp_path / "missing.png")

    def test_unwritable_destination(self, registry, tmp_path):
        """Test an output path blocked by a file raises OutputWriteError."""
        paths = write_files(tmp_path / "src", {"a.png": b"a"})
        blocker = tmp_path / "out"
        blocker.write_bytes(b"not a directory")

        with pytest.raises(OutputWriteError):
            make_pipeline("identity").run_files(paths, destination=blocker)

    @pytest.mark.skipif(os.name == "nt", reason="POSIX symlinks")
    def test_symlinks_with_same_target_name_mirror_layout(self, registry, tmp_path):
        """Test symlinked inputs are written at their own paths, not their targets' names."""
        targets = write_files(tmp_path / "elsewhere", {"one/logo.png": b"one", "two/logo.png": b"two"})
        src = tmp_path / "src"
        links = [src / "a" / "logo.png", src / "b" / "logo.png"]
        for link, target in zip(links, targets):
            link.parent.mkdir(parents=True)
            link.symlink_to(target)
        out = tmp_path / "build"

        results = make_pipeline("upper").run_files(links, destination=out)

        assert (out / "a" / "logo.png").read_bytes() == b"ONE"
        assert (out / "b" / "logo.png").read_bytes() == b"TWO"
        assert [result.destination_path for result in results] == [out / "a" / "logo.png", out / "b" / "logo.png"]

    @pytest.mark.skipif(os.name == "nt", reason="POSIX symlinks")
    def test_colliding_outputs_conflict_before_writing(self, registry, tmp_path):
        """Test two inputs mapping to one output file fail before anything is processed."""
        (real,) = write_files(tmp_path / "src" / "real", {"x.png": b"x"})
        (tmp_path / "src" / "alias").symlink_to(real.parent, target_is_directory=True)
        out = tmp_path / "build"
        events = []

        with pytest.raises(OutputConflictError, match="would both be written to"):
            make_pipeline("upper", progress_callback=events.append).run_files(
                [real, tmp_path / "src" / "alias" / "x.png"], destination=out
            )

        assert not out.exists()
        assert events == []

    def test_empty(self, registry):
        """Test no paths yields no results."""
        assert make_pipeline("identity").run_files([]) == []

    def test_progress_events(self, registry, tmp_path):
        """Test started, one item_done per file and finished are emitted."""
        events = []
        paths = write_files(tmp_path, {"a.png": b"a", "b.png": b"b"})

        make_pipeline("identity", progress_callback=events.append).run_files(paths)

        assert [event.event_type for event in events] == ["started", "item_done", "item_done", "finished"]
        assert events[-1].current == 2

    def test_max_workers(self, registry, tmp_path):
        """Test a bounded pool still processes every file."""
        paths = write_files(tmp_path, {f"{i}.png": bytes([97 + i]) for i in range(6)})

        results = make_pipeline("upper", max_workers=1).run_files(paths)

        assert [result.data for result in results] == [bytes([65 + i]) for i in range(6)]


@pytest.mark.unit
class TestRunInPlace:
    """Tests for Pipeline.run_in_place."""

    def test_rewrites_files(self, registry, tmp_path):
        """Test every file is replaced by its minified bytes."""
        paths = write_files(tmp_path, {"a.png": b"  a  ", "b.png": b" b "})

        results = make_pipeline("strip").run_in_place(paths)

        assert paths[0].read_bytes() == b"a"
        assert paths[1].read_bytes() == b"b"
        assert [result.size for result in results] == [1, 1]
        assert results[0].saved == 4

    def test_aggregates_failures_and_keeps_successes(self, registry, tmp_path):
        """Test all files are attempted and failures are reported together."""
        paths = write_files(
            tmp_path, {"a.png": b"good-a", "b.png": b"bad-b", "c.png": b"good-c", "d.png": b"bad-d"}
        )
        pipeline = Pipeline(
            load_plugins(normalize_plugin_options([{"fail-on": {"marker": "bad"}}, "upper"])), max_workers=2
        )

        with pytest.raises(PipelineError) as exc_info:
            pipeline.run_in_place(paths)

        error = exc_info.value
        assert [path for path, _ in error.failures] == [paths[1], paths[3]]
        assert [result.source_path for result in error.results] == [paths[0], paths[2]]
        assert "Failed to minify 2 of 4 image(s)" in str(error)
        assert paths[0].read_bytes() == b"GOOD-A"
        assert paths[1].read_bytes() == b"bad-b"
        assert paths[2].read_bytes() == b"GOOD-C"
        assert paths[3].read_bytes() == b"bad-d"

    def test_no_temp_files_left(self, registry, tmp_path):
        """Test atomic replacement leaves only the original files."""
        paths = write_files(tmp_path, {"a.png": b"a", "b.png": b"b"})

        make_pipeline("upper").run_in_place(paths)

        assert sorted(p.name for p in tmp_path.iterdir()) == ["a.png", "b.png"]

    @pytest.mark.skipif(os.name == "nt", reason="POSIX permissions")
    def test_preserves_mode(self, registry, tmp_path):
        """Test the rewritten file keeps its permission bits."""
        (path,) = write_files(tmp_path, {"a.png": b"a"})
        path.chmod(0o640)

        make_pipeline("upper").run_in_place([path])

        assert path.stat().st_mode & 0o777 == 0o640

    @pytest.mark.skipif(os.name == "nt", reason="POSIX symlinks")
    def test_symlink_rewrites_target_and_keeps_link(self, registry, tmp_path):
        """Test a symlinked input rewrites the file it points to."""
        (real,) = write_files(tmp_path, {"real.png": b"abc"})
        link = tmp_path / "link.png"
        link.symlink_to(real)

        results = make_pipeline("upper").run_in_place([link])

        assert link.is_symlink()
        assert real.read_bytes() == b"ABC"
        assert results[0].source_path == link
        assert sorted(p.name for p in tmp_path.iterdir()) == ["link.png", "real.png"]

    @pytest.mark.skipif(os.name == "nt" or os.geteuid() == 0, reason="POSIX permissions as non-root")
    def test_read_only_file_is_not_replaced(self, registry, tmp_path):
        """Test a read-only file fails instead of being swapped out."""
        (path,) = write_files(tmp_path, {"a.png": b"a"})
        path.chmod(0o444)

        with pytest.raises(PipelineError) as exc_info:
            make_pipeline("upper").run_in_place([path])

        assert isinstance(exc_info.value.failures[0][1], OutputWriteError)
        assert "not writable" in str(exc_info.value)
        assert path.read_bytes() == b"a"

    def test_events_per_file(self, registry, tmp_path):
        """Test an item_done event with byte counts is emitted per file."""
        events = []
        paths = write_files(tmp_path, {"a.png": b"aa", "b.png": b"bbb"})

        make_pipeline("identity", progress_callback=events.append).run_in_place(paths)

        done = {event.metadata["path"]: event.metadata["bytes"] for event in events if event.event_type == "item_done"}
        assert done == {paths[0]: 2, paths[1]: 3}


@pytest.mark.unit
class TestMinifiedFile:
    """Tests for the MinifiedFile result type."""

    def test_size_and_saved(self):
        """Test size and saved are derived from the data."""
        result = MinifiedFile(Path("a.png"), None, b"abc", original_size=10)

        assert result.size == 3
        assert result.saved == 7
