"""Tests for plan building."""

from dataclasses import replace
from pathlib import Path

import pytest
from factories import make_audio, make_media, make_video

from muxmaster.config.models import RunConfig
from muxmaster.domain.enums import Action, Container, EncoderMode
from muxmaster.domain.models import FormatInfo, MediaDescriptor
from muxmaster.planner import build_plan
from muxmaster.planner.builder import decide_action
from muxmaster.planner.disposition import build_dispositions
from muxmaster.planner.types import MUX_QUEUE_DEFAULT

EDGE_SAFE_HEVC = make_video(
    codec="hevc",
    profile="Main 10",
    pix_fmt="yuv420p10le",
    color_transfer="smpte2084",
    color_primaries="bt2020",
)
REXT_HEVC = make_video(codec="hevc", profile="Rext", pix_fmt="yuv444p10le")


class TestDecideAction:
    """Tests for decide_action()."""

    def test_edge_safe_hevc_remuxed(self):
        action, note = decide_action(make_media(video=EDGE_SAFE_HEVC), RunConfig())
        assert action is Action.REMUX
        assert note == ""

    def test_incompatible_hevc_reencoded(self):
        action, note = decide_action(make_media(video=REXT_HEVC), RunConfig())
        assert action is Action.ENCODE
        assert "re-encoding" in note
        assert "Rext" in note

    def test_skip_hevc_disabled_always_encodes(self):
        config = RunConfig(skip_hevc=False)
        action, _ = decide_action(make_media(video=EDGE_SAFE_HEVC), config)
        assert action is Action.ENCODE

    def test_non_hevc_encoded(self):
        action, note = decide_action(make_media(), RunConfig())
        assert action is Action.ENCODE
        assert note == ""

    def test_no_video_rejected(self):
        with pytest.raises(ValueError):
            decide_action(MediaDescriptor(video=None, format=FormatInfo()), RunConfig())


class TestBuildPlan:
    """Tests for build_plan()."""

    def test_remux_plan_copies_video(self):
        plan = build_plan(make_media(video=EDGE_SAFE_HEVC), RunConfig())
        assert plan.action is Action.REMUX
        assert plan.video_codec == "copy"
        assert plan.video_filters == ""
        assert plan.color_opts == ()

    def test_incompatible_hevc_encode_plan(self):
        plan = build_plan(make_media(video=REXT_HEVC), RunConfig())
        assert plan.action is Action.ENCODE
        assert plan.video_codec == "hevc_vaapi"
        assert "re-encoding" in plan.action_note

    def test_encoder_per_mode(self):
        config = RunConfig(encoder_mode=EncoderMode.CPU)
        plan = build_plan(make_media(), config)
        assert plan.video_codec == "libx265"
        assert plan.encoder_mode is EncoderMode.CPU

    def test_hdr_encode_preserves_color(self):
        config = RunConfig(skip_hevc=False)
        plan = build_plan(make_media(video=EDGE_SAFE_HEVC), config)
        assert plan.color_opts == (
            "-color_trc",
            "smpte2084",
            "-color_primaries",
            "bt2020",
        )

    def test_remux_invariant_enforced(self):
        plan = build_plan(make_media(video=EDGE_SAFE_HEVC), RunConfig())
        with pytest.raises(ValueError):
            replace(plan, video_codec="hevc_vaapi")
        with pytest.raises(ValueError):
            replace(plan, video_filters="format=p010,hwupload")
        with pytest.raises(ValueError):
            replace(plan, color_opts=("-color_trc", "smpte2084"))

    def test_mp4_container_options(self):
        config = RunConfig(output_container=Container.MP4)
        plan = build_plan(make_media(), config)
        assert plan.container_opts == ("-movflags", "+faststart")
        assert plan.tag_opts == ("-tag:v", "hvc1")
        assert not plan.attachments.include

    def test_mkv_has_no_container_options(self):
        plan = build_plan(make_media(), RunConfig())
        assert plan.container_opts == ()
        assert plan.tag_opts == ()

    def test_retry_seed(self):
        config = RunConfig(clean_timestamps=False, keep_subtitles=False)
        plan = build_plan(make_media(), config)
        assert plan.seed.mux_queue_size == MUX_QUEUE_DEFAULT
        assert not plan.seed.timestamp_fix
        assert not plan.seed.include_subtitles
        assert plan.seed.include_attachments

    def test_paths_recorded(self):
        plan = build_plan(
            make_media(),
            RunConfig(),
            input_path=Path("/in/a.mkv"),
            output_path=Path("/out/a.mkv"),
        )
        assert plan.input_path == Path("/in/a.mkv")
        assert plan.output_path == Path("/out/a.mkv")

    def test_video_stream_index(self):
        plan = build_plan(make_media(video=make_video(index=1)), RunConfig())
        assert plan.video_stream_index == 1

    def test_deterministic(self):
        media = make_media(
            video=make_video(field_order="tt"),
            audio=(make_audio(1), make_audio(2, codec="ac3", channels=6)),
        )
        config = RunConfig(encoder_mode=EncoderMode.CPU)
        assert build_plan(media, config) == build_plan(media, config)

    def test_no_video_rejected(self):
        with pytest.raises(ValueError):
            build_plan(MediaDescriptor(video=None, format=FormatInfo()), RunConfig())


class TestBuildDispositions:
    """Tests for build_dispositions()."""

    def test_no_audio(self):
        assert build_dispositions(0) == ("-disposition:v:0", "default")

    def test_first_audio_default_rest_cleared(self):
        assert build_dispositions(3) == (
            "-disposition:v:0",
            "default",
            "-disposition:a:0",
            "default",
            "-disposition:a:1",
            "0",
            "-disposition:a:2",
            "0",
        )
