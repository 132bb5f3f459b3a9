"""Tests for the batch runner."""

import logging
import threading
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from factories import FakeBackend, make_media, make_video

from muxmaster.config.models import DisplayConfig, MuxmasterConfig, RunConfig
from muxmaster.domain.enums import Container
from muxmaster.domain.models import FormatInfo, MediaDescriptor
from muxmaster.executor.interface import AttemptResult
from muxmaster.introspector.interface import MediaIntrospectionError
from muxmaster.naming import CollisionResolver, YearVariantIndex
from muxmaster.pipeline.runner import BatchRunner
from muxmaster.pipeline.stats import FileStatus, RunStats

EDGE_SAFE_HEVC = make_video(codec="hevc", profile="Main 10", pix_fmt="yuv420p10le")


def _config(**run_overrides) -> MuxmasterConfig:
    return MuxmasterConfig(
        run=RunConfig(**run_overrides),
        display=DisplayConfig(show_ffmpeg_fps=False),
    )


def _runner(config=None, media=None, backend=None, cancel_event=None):
    introspector = MagicMock()
    introspector.get_file_info.return_value = media or make_media()
    return BatchRunner(
        config or _config(),
        introspector=introspector,
        backend=backend or FakeBackend(),
        cancel_event=cancel_event,
    )


@pytest.fixture
def dirs(media_file: Path) -> tuple[Path, Path]:
    input_dir = media_file.parent.parent
    return input_dir, input_dir.parent / "out"


EXPECTED_OUTPUT = Path("Show") / "Season 01" / "Show - S01E02.mkv"


class TestBatchRunner:
    """Tests for BatchRunner.run()."""

    def test_encode(self, dirs):
        input_dir, output_dir = dirs
        backend = FakeBackend([AttemptResult(success=True)], output_sizes=[1024])
        runner = _runner(backend=backend)

        stats = runner.run(input_dir, output_dir)

        assert stats.total == 1
        assert stats.encoded == 1
        assert stats.input_bytes == 4096
        assert stats.output_bytes == 1024
        assert stats.space_saved == 3072
        assert not stats.interrupted
        assert len(backend.states) == 1
        assert (output_dir / EXPECTED_OUTPUT).parent.is_dir()

    def test_remux(self, dirs):
        input_dir, output_dir = dirs
        runner = _runner(media=make_media(video=EDGE_SAFE_HEVC))
        stats = runner.run(input_dir, output_dir)
        assert stats.remuxed == 1
        assert stats.encoded == 0

    def test_dry_run_executes_nothing(self, dirs):
        input_dir, output_dir = dirs
        backend = FakeBackend()
        runner = _runner(config=_config(dry_run=True), backend=backend)

        stats = runner.run(input_dir, output_dir)

        assert stats.encoded == 1
        assert stats.space_saved == 0
        assert backend.states == []
        assert not output_dir.exists()

    def test_skip_existing(self, dirs):
        input_dir, output_dir = dirs
        existing = output_dir / EXPECTED_OUTPUT
        existing.parent.mkdir(parents=True)
        existing.write_bytes(b"done")
        backend = FakeBackend()

        stats = _runner(backend=backend).run(input_dir, output_dir)

        assert stats.skipped == 1
        assert backend.states == []

    def test_overwrite_when_skip_existing_disabled(self, dirs):
        input_dir, output_dir = dirs
        existing = output_dir / EXPECTED_OUTPUT
        existing.parent.mkdir(parents=True)
        existing.write_bytes(b"done")

        stats = _runner(config=_config(skip_existing=False)).run(input_dir, output_dir)
        assert stats.encoded == 1

    def test_failed_encode_discards_output(self, dirs):
        input_dir, output_dir = dirs
        backend = FakeBackend([AttemptResult(success=False, diagnostics="boom")])

        stats = _runner(backend=backend).run(input_dir, output_dir)

        assert stats.failed == 1
        assert stats.output_bytes == 0
        assert backend.discards == 1

    def test_aborted_attempt_leaves_no_partial_output(self, dirs):
        """A second Ctrl+C mid-encode must not leave a file the next run skips."""
        input_dir, output_dir = dirs

        class AbortingBackend(FakeBackend):
            def execute(self, plan, state):
                plan.output_path.write_bytes(b"partial")
                raise KeyboardInterrupt

            def discard_output(self, plan):
                super().discard_output(plan)
                plan.output_path.unlink(missing_ok=True)

        backend = AbortingBackend()
        with pytest.raises(KeyboardInterrupt):
            _runner(backend=backend).run(input_dir, output_dir)

        assert backend.discards == 1
        assert not (output_dir / EXPECTED_OUTPUT).exists()

        stats = _runner().run(input_dir, output_dir)
        assert stats.encoded == 1
        assert stats.skipped == 0

    def test_probe_failure(self, dirs):
        input_dir, output_dir = dirs
        runner = _runner()
        runner.introspector.get_file_info.side_effect = MediaIntrospectionError("bad")

        stats = runner.run(input_dir, output_dir)
        assert stats.failed == 1

    def test_no_video_skipped(self, dirs):
        input_dir, output_dir = dirs
        audio_only = MediaDescriptor(video=None, format=FormatInfo())
        stats = _runner(media=audio_only).run(input_dir, output_dir)
        assert stats.skipped == 1

    def test_too_small_file(self, tmp_path):
        tiny = tmp_path / "in" / "tiny.mkv"
        tiny.parent.mkdir()
        tiny.write_bytes(b"\0" * 10)
        runner = _runner()

        stats = runner.run(tmp_path / "in", tmp_path / "out")

        assert stats.failed == 1
        runner.introspector.get_file_info.assert_not_called()

    def test_cancelled_before_start(self, dirs):
        input_dir, output_dir = dirs
        event = threading.Event()
        event.set()
        backend = FakeBackend()

        stats = _runner(backend=backend, cancel_event=event).run(input_dir, output_dir)

        assert stats.interrupted
        assert stats.processed == 0
        assert backend.states == []

    def test_request_cancel(self):
        runner = _runner()
        assert not runner.cancelled
        runner.request_cancel()
        assert runner.cancelled

    def test_dry_run_logs_intent(self, dirs, caplog):
        input_dir, output_dir = dirs
        caplog.set_level(logging.INFO)

        _runner(config=_config(dry_run=True)).run(input_dir, output_dir)

        assert any("[DRY] Would encode" in r.getMessage() for r in caplog.records)
        assert "Total space saved: n/a (dry run)" in caplog.text


class TestProcessFile:
    def test_records_status(self, media_file, tmp_path):
        stats = RunStats()
        status = _runner(config=_config(dry_run=True)).process_file(
            media_file, tmp_path / "out", stats
        )
        assert status is FileStatus.ENCODED
        assert stats.processed == 1


class TestResolveOutputPath:
    """Output naming inside a batch."""

    def test_collisions_get_suffix(self, tmp_path):
        runner = _runner()
        resolver = CollisionResolver()
        index = YearVariantIndex()
        out = tmp_path / "out"

        first = runner.resolve_output_path(
            Path("/in/a/Show.S01E02.mkv"), out, index, resolver
        )
        second = runner.resolve_output_path(
            Path("/in/b/Show.S01E02.mkv"), out, index, resolver
        )

        assert first == out / EXPECTED_OUTPUT
        assert second.name == "Show - S01E02 - dup1.mkv"

    def test_show_name_harmonized(self, tmp_path):
        index = YearVariantIndex()
        index.register("Show (2019)")
        path = _runner().resolve_output_path(
            Path("/in/Show/Show.S01E02.mkv"),
            tmp_path,
            index,
            CollisionResolver(),
        )
        assert path == tmp_path / "Show (2019)" / "Season 01" / (
            "Show (2019) - S01E02.mkv"
        )

    def test_container_extension(self, tmp_path):
        runner = _runner(config=_config(output_container=Container.MP4))
        path = runner.resolve_output_path(
            Path("/in/Show.S01E02.mkv"),
            tmp_path,
            YearVariantIndex(),
            CollisionResolver(),
        )
        assert path.suffix == ".mp4"
