"""Audio stream planning."""

from __future__ import annotations

from muxmaster.config.models import RunConfig
from muxmaster.domain.models import AudioStream
from muxmaster.planner.types import AudioPlan, AudioStreamPlan

PASSTHROUGH_CODEC = "aac"
# AAC at or above this bitrate is re-encoded to the configured target
AUDIO_COPY_MAX_BITRATE = 320_000

_RESAMPLE_FILTER = "aresample=async=1:first_pts=0:min_hard_comp=0.100"


def is_passthrough(stream: AudioStream) -> bool:
    """Return True if the stream can be copied as-is.

    An unknown bitrate (0) counts as acceptable.
    """
    if stream.codec.lower() != PASSTHROUGH_CODEC:
        return False
    return stream.bitrate == 0 or stream.bitrate < AUDIO_COPY_MAX_BITRATE


def clamp_channels(source: int, maximum: int) -> int:
    if source < 1:
        return 1
    return min(source, maximum)


def layout_for_channels(channels: int) -> str:
    """Return the canonical layout name for mono/stereo, else empty."""
    if channels == 1:
        return "mono"
    if channels == 2:
        return "stereo"
    return ""


def build_audio_filter(channels: int, sample_rate: int) -> str:
    """Build the resample filter, pinning the layout for mono or stereo."""
    base = f"{_RESAMPLE_FILTER},aformat=sample_rates={sample_rate}"
    layout = layout_for_channels(channels)
    if layout:
        return f"{base}:channel_layouts={layout}"
    return base


def plan_audio(streams: tuple[AudioStream, ...], config: RunConfig) -> AudioPlan:
    """Decide how each audio stream is carried into the output.

    Args:
        streams: Source audio streams in order.
        config: Run configuration supplying the transcode target.

    Returns:
        AudioPlan in exactly one of its three modes.
    """
    if not streams:
        return AudioPlan(no_audio=True)

    if all(is_passthrough(s) for s in streams):
        return AudioPlan(copy_all=True)

    plans: list[AudioStreamPlan] = []
    for position, stream in enumerate(streams):
        channels = clamp_channels(stream.channels, config.audio_channels)
        if is_passthrough(stream):
            plans.append(
                AudioStreamPlan(
                    stream_index=position,
                    copy=True,
                    channels=channels,
                    bitrate=config.audio_bitrate,
                    sample_rate=config.audio_sample_rate,
                )
            )
            continue

        layout = ""
        audio_filter = ""
        if config.match_audio_layout:
            layout = layout_for_channels(channels)
            audio_filter = build_audio_filter(channels, config.audio_sample_rate)

        plans.append(
            AudioStreamPlan(
                stream_index=position,
                copy=False,
                channels=channels,
                bitrate=config.audio_bitrate,
                sample_rate=config.audio_sample_rate,
                layout=layout,
                filter=audio_filter,
            )
        )
    return AudioPlan(streams=tuple(plans))
