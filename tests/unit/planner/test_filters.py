"""Tests for video filter and color planning."""

from factories import make_video

from muxmaster.config.models import RunConfig
from muxmaster.domain.enums import EncoderMode, HDRMode
from muxmaster.planner.filters import (
    DEINTERLACE_FILTER,
    TONEMAP_FILTER,
    build_color_opts,
    build_video_filters,
)

HDR_VIDEO = make_video(
    codec="hevc",
    color_transfer="smpte2084",
    color_primaries="bt2020",
    color_space="bt2020nc",
)


class TestBuildVideoFilters:
    """Tests for build_video_filters()."""

    def test_vaapi_uploads_frames(self):
        assert build_video_filters(make_video(), RunConfig()) == "format=p010,hwupload"

    def test_cpu_progressive_has_no_filters(self):
        config = RunConfig(encoder_mode=EncoderMode.CPU)
        assert build_video_filters(make_video(), config) == ""

    def test_interlaced_source_deinterlaced(self):
        config = RunConfig(encoder_mode=EncoderMode.CPU)
        video = make_video(field_order="tt")
        assert build_video_filters(video, config) == DEINTERLACE_FILTER

    def test_deinterlace_disabled(self):
        config = RunConfig(encoder_mode=EncoderMode.CPU, deinterlace_auto=False)
        assert build_video_filters(make_video(field_order="tt"), config) == ""

    def test_filter_order(self):
        """Deinterlace, then tonemap, then hardware upload."""
        config = RunConfig(hdr_mode=HDRMode.TONEMAP)
        video = make_video(field_order="bb", color_transfer="smpte2084")
        assert build_video_filters(video, config) == ",".join(
            (DEINTERLACE_FILTER, TONEMAP_FILTER, "format=p010", "hwupload")
        )

    def test_tonemap_ignored_for_sdr(self):
        config = RunConfig(encoder_mode=EncoderMode.CPU, hdr_mode=HDRMode.TONEMAP)
        assert build_video_filters(make_video(), config) == ""


class TestBuildColorOpts:
    """Tests for build_color_opts()."""

    def test_preserve_hdr(self):
        assert build_color_opts(HDR_VIDEO, RunConfig()) == (
            "-color_trc",
            "smpte2084",
            "-color_primaries",
            "bt2020",
            "-colorspace",
            "bt2020nc",
        )

    def test_only_reported_tags(self):
        video = make_video(color_primaries="bt2020")
        assert build_color_opts(video, RunConfig()) == ("-color_primaries", "bt2020")

    def test_sdr_has_no_color_opts(self):
        assert build_color_opts(make_video(), RunConfig()) == ()

    def test_tonemap_drops_color_opts(self):
        config = RunConfig(hdr_mode=HDRMode.TONEMAP)
        assert build_color_opts(HDR_VIDEO, config) == ()
