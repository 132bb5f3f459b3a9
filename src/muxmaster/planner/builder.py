"""Plan builder.

Composes the action decision, quality resolution and stream planners into
a single immutable Plan per file. ``build_plan`` is a pure function of its
inputs: the same media and configuration always produce an equal Plan.
"""

from __future__ import annotations

from pathlib import Path

from muxmaster.config.models import RunConfig
from muxmaster.domain.enums import Action, Container, EncoderMode
from muxmaster.domain.models import MediaDescriptor
from muxmaster.planner.audio import plan_audio
from muxmaster.planner.disposition import build_dispositions
from muxmaster.planner.filters import build_color_opts, build_video_filters
from muxmaster.planner.quality import resolve_quality
from muxmaster.planner.subtitle import plan_attachments, plan_subtitles
from muxmaster.planner.types import MUX_QUEUE_DEFAULT, Plan, RetrySeed

TARGET_VIDEO_CODEC = "hevc"

VIDEO_ENCODERS = {
    EncoderMode.VAAPI: "hevc_vaapi",
    EncoderMode.CPU: "libx265",
}

MP4_CONTAINER_OPTS = ("-movflags", "+faststart")
# Apple players only accept HEVC tagged hvc1
MP4_TAG_OPTS = ("-tag:v", "hvc1")


def decide_action(media: MediaDescriptor, config: RunConfig) -> tuple[Action, str]:
    """Choose between remux and encode for a file with video.

    Args:
        media: Probed media; must have a primary video stream.
        config: Run configuration.

    Returns:
        Tuple of (action, note). The note is empty unless an HEVC source
        was rejected as not edge-safe.

    Raises:
        ValueError: If the media has no video stream.
    """
    video = media.video
    if video is None:
        raise ValueError("Cannot plan a file without a video stream")

    if not config.skip_hevc or video.codec != TARGET_VIDEO_CODEC:
        return Action.ENCODE, ""
    if video.is_edge_safe_hevc:
        return Action.REMUX, ""
    return (
        Action.ENCODE,
        f"HEVC profile '{video.profile}' not compatible; re-encoding",
    )


def build_plan(
    media: MediaDescriptor,
    config: RunConfig,
    input_path: Path | None = None,
    output_path: Path | None = None,
) -> Plan:
    """Build the transcode plan for one file.

    Args:
        media: Probed media description. Files without video must be
            skipped by the caller.
        config: Run configuration.
        input_path: Source path, recorded on the plan as given.
        output_path: Destination path, recorded on the plan as given.

    Returns:
        Immutable Plan.
    """
    video = media.video
    if video is None:
        raise ValueError("Cannot plan a file without a video stream")
    action, action_note = decide_action(media, config)

    quality = resolve_quality(media, config)
    container = config.output_container

    if action is Action.REMUX:
        video_codec = "copy"
        video_filters = ""
        color_opts: tuple[str, ...] = ()
    else:
        video_codec = VIDEO_ENCODERS[config.encoder_mode]
        video_filters = build_video_filters(video, config)
        color_opts = build_color_opts(video, config)

    if container is Container.MP4:
        container_opts, tag_opts = MP4_CONTAINER_OPTS, MP4_TAG_OPTS
    else:
        container_opts, tag_opts = (), ()

    return Plan(
        input_path=input_path,
        output_path=output_path,
        action=action,
        encoder_mode=config.encoder_mode,
        container=container,
        video_codec=video_codec,
        video_stream_index=video.index,
        vaapi_qp=quality.vaapi_qp,
        cpu_crf=quality.cpu_crf,
        quality_note=quality.note,
        action_note=action_note,
        video_filters=video_filters,
        color_opts=color_opts,
        audio=plan_audio(media.audio, config),
        subtitles=plan_subtitles(media.subtitles, container, config.keep_subtitles),
        attachments=plan_attachments(container, config.keep_attachments),
        container_opts=container_opts,
        tag_opts=tag_opts,
        disposition_opts=build_dispositions(len(media.audio)),
        seed=RetrySeed(
            mux_queue_size=MUX_QUEUE_DEFAULT,
            timestamp_fix=config.clean_timestamps,
            include_subtitles=config.keep_subtitles,
            include_attachments=config.keep_attachments,
        ),
    )
