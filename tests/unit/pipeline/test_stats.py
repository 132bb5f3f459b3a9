"""Tests for run statistics and bitrate tiers."""

from muxmaster.domain.enums import Action
from muxmaster.pipeline.stats import (
    FileStatus,
    RunStats,
    bitrate_tier,
    classify_bitrate,
)


class TestRunStats:
    def test_record(self):
        stats = RunStats(total=5)
        stats.record(FileStatus.ENCODED, 1000, 400)
        stats.record(FileStatus.REMUXED, 500, 500)
        stats.record(FileStatus.SKIPPED)
        stats.record(FileStatus.FAILED)
        stats.record(FileStatus.CANCELLED)

        assert stats.processed == 5
        assert (stats.encoded, stats.remuxed, stats.skipped) == (1, 1, 1)
        assert (stats.failed, stats.cancelled) == (1, 1)
        assert stats.succeeded == 2
        assert stats.space_saved == 600

    def test_negative_savings(self):
        stats = RunStats()
        stats.record(FileStatus.ENCODED, 100, 150)
        assert stats.space_saved == -50

    def test_status_for_action(self):
        assert FileStatus.for_action(Action.REMUX) is FileStatus.REMUXED
        assert FileStatus.for_action(Action.ENCODE) is FileStatus.ENCODED


class TestBitrateTiers:
    def test_tier_lookup(self):
        assert bitrate_tier(640 * 360).label == "<=360p"
        assert bitrate_tier(1920 * 1080).label == "<=1080p"
        assert bitrate_tier(1920 * 1080 + 1).label == "<=1440p"
        assert bitrate_tier(7680 * 4320).label == ">2160p"

    def test_classify(self):
        pixels = 1920 * 1080
        assert classify_bitrate(pixels, 2000) == "low"
        assert classify_bitrate(pixels, 8000) == "normal"
        assert classify_bitrate(pixels, 12000) == "high"

    def test_unknown_is_normal(self):
        assert classify_bitrate(0, 50000) == "normal"
        assert classify_bitrate(1920 * 1080, 0) == "normal"
