"""FFmpeg command building.

This module constructs the ffmpeg argument list for one attempt. The list
is re-derived from the Plan and the current RetryState on every attempt,
so fallback fixes take effect without touching the Plan.
"""

from __future__ import annotations

from pathlib import Path

from muxmaster.config.models import DisplayConfig, RunConfig
from muxmaster.domain.enums import Action, Container, EncoderMode
from muxmaster.executor.retry import RetryState
from muxmaster.planner.types import AudioPlan, Plan

X265_PARAMS = "log-level=error:open-gop=0"


def build_audio_args(audio: AudioPlan, encoder: str) -> list[str]:
    """Build audio map and codec arguments.

    Args:
        audio: Audio plan for the file.
        encoder: ffmpeg audio encoder used for transcoded streams.

    Returns:
        List of ffmpeg arguments.
    """
    if audio.no_audio:
        return ["-an"]
    if audio.copy_all:
        return ["-map", "0:a", "-c:a", "copy"]

    args: list[str] = []
    for stream in audio.streams:
        n = stream.stream_index
        args.extend(["-map", f"0:a:{n}"])
        if stream.copy:
            args.extend([f"-c:a:{n}", "copy"])
            continue
        args.extend(
            [
                f"-c:a:{n}",
                encoder,
                f"-ac:a:{n}",
                str(stream.channels),
                f"-ar:a:{n}",
                str(stream.sample_rate),
                f"-b:a:{n}",
                stream.bitrate,
            ]
        )
        if stream.filter:
            args.extend([f"-filter:a:{n}", stream.filter])
    return args


def build_subtitle_args(plan: Plan, state: RetryState) -> list[str]:
    """Build subtitle arguments, honoring a dropped-subtitles fix."""
    subtitles = plan.subtitles
    if not subtitles.include or not state.include_subtitles:
        return []

    args: list[str] = []
    if subtitles.skip_bitmap and subtitles.text_indices:
        for index in subtitles.text_indices:
            args.extend(["-map", f"0:{index}"])
    else:
        args.extend(["-map", "0:s?"])
    if subtitles.codec:
        args.extend(["-c:s", subtitles.codec])
    return args


def build_attachment_args(plan: Plan, state: RetryState) -> list[str]:
    """Build attachment arguments, honoring a dropped-attachments fix."""
    if not plan.attachments.include or not state.include_attachments:
        return []
    if plan.container is Container.MP4:
        return []
    return ["-map", "0:t?", "-c:t", "copy"]


def build_video_codec_args(
    plan: Plan, state: RetryState, config: RunConfig
) -> list[str]:
    """Build video codec arguments using the state's current quality."""
    if plan.action is Action.REMUX:
        return ["-c:v", "copy"]

    if plan.encoder_mode is EncoderMode.VAAPI:
        return [
            "-c:v",
            plan.video_codec,
            "-qp",
            str(state.vaapi_qp),
            "-profile:v",
            config.vaapi_profile,
            "-g",
            str(config.keyframe_interval),
        ]
    return [
        "-c:v",
        plan.video_codec,
        "-crf",
        str(state.cpu_crf),
        "-preset",
        config.cpu_preset,
        "-profile:v",
        config.cpu_profile,
        "-pix_fmt",
        config.cpu_pix_fmt,
        "-g",
        str(config.keyframe_interval),
        "-x265-params",
        X265_PARAMS,
    ]


def build_ffmpeg_args(
    plan: Plan,
    state: RetryState,
    config: RunConfig,
    display: DisplayConfig | None = None,
    ffmpeg_path: Path | str = "ffmpeg",
) -> list[str]:
    """Build the complete ffmpeg command for one attempt.

    Args:
        plan: Immutable plan for the file. Must carry input and output paths.
        state: Current retry state (fix flags and quality values).
        config: Run configuration for encoder tuning.
        display: Display settings controlling log level and live stats.
        ffmpeg_path: ffmpeg executable.

    Returns:
        Full argument list, starting with the executable.

    Raises:
        ValueError: If the plan has no input or output path.
    """
    if plan.input_path is None or plan.output_path is None:
        raise ValueError("Plan must have input and output paths to build a command")
    display = display or DisplayConfig()

    cmd: list[str] = [str(ffmpeg_path), "-hide_banner", "-nostdin", "-y"]
    cmd.extend(["-loglevel", "info" if display.verbose else "error"])
    if display.verbose or display.show_ffmpeg_fps:
        cmd.extend(["-stats", "-stats_period", "1"])

    cmd.extend(
        [
            "-probesize",
            config.ffmpeg_probesize,
            "-analyzeduration",
            config.ffmpeg_analyzeduration,
            "-ignore_unknown",
        ]
    )
    if state.timestamp_fix:
        cmd.extend(["-fflags", "+genpts+discardcorrupt"])

    if plan.action is Action.ENCODE and plan.encoder_mode is EncoderMode.VAAPI:
        cmd.extend(
            [
                "-init_hw_device",
                f"vaapi=va:{config.vaapi_device}",
                "-filter_hw_device",
                "va",
            ]
        )

    cmd.extend(["-i", str(plan.input_path)])

    if plan.action is Action.ENCODE and plan.video_filters:
        cmd.extend(["-vf", plan.video_filters])

    cmd.extend(["-map", f"0:{plan.video_stream_index}"])
    cmd.extend(build_audio_args(plan.audio, config.audio_encoder))
    cmd.extend(build_subtitle_args(plan, state))
    cmd.extend(build_attachment_args(plan, state))

    cmd.extend(
        [
            "-dn",
            "-max_muxing_queue_size",
            str(state.mux_queue_size),
            "-max_interleave_delta",
            "0",
        ]
    )

    cmd.extend(build_video_codec_args(plan, state, config))
    cmd.extend(plan.tag_opts)
    cmd.extend(plan.color_opts)
    cmd.extend(plan.disposition_opts)
    cmd.extend(["-map_metadata", "0", "-map_chapters", "0"])

    if state.timestamp_fix:
        cmd.extend(["-avoid_negative_ts", "make_zero"])

    cmd.extend(plan.container_opts)
    cmd.append(str(plan.output_path))
    return cmd
