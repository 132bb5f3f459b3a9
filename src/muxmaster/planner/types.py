"""Plan types produced by the planner.

Every type here is a frozen dataclass with tuple-valued collections, so a
Plan built from the same inputs compares equal and can be shared safely.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from muxmaster.domain.enums import Action, Container, EncoderMode

# Initial and escalated values for ffmpeg's -max_muxing_queue_size
MUX_QUEUE_DEFAULT = 4096
MUX_QUEUE_ESCALATED = 16384


@dataclass(frozen=True)
class QualityResult:
    """Resolved quality values for both encoder scales."""

    vaapi_qp: int
    cpu_crf: int
    note: str


@dataclass(frozen=True)
class BitrateEstimate:
    """Predicted output bitrate range.

    Display-only data; never used for planning decisions.
    """

    known: bool
    low_kbps: int = 0
    high_kbps: int = 0
    low_pct: int = 0
    high_pct: int = 0

    def describe(self) -> str:
        """Return a one-line human-readable summary."""
        if not self.known:
            return "unknown (source bitrate unavailable)"
        return (
            f"~{self.low_kbps}-{self.high_kbps} kbps "
            f"({self.low_pct}-{self.high_pct}% of source)"
        )


@dataclass(frozen=True)
class AudioStreamPlan:
    """Handling for one audio stream.

    ``stream_index`` is the position among audio streams (the ``N`` in
    ``0:a:N``), not the absolute stream index.
    """

    stream_index: int
    copy: bool
    channels: int = 0
    bitrate: str = ""
    sample_rate: int = 0
    layout: str = ""
    filter: str = ""


@dataclass(frozen=True)
class AudioPlan:
    """Audio handling for a file.

    Exactly one mode holds: ``no_audio``, ``copy_all``, or a non-empty
    ``streams`` tuple.
    """

    no_audio: bool = False
    copy_all: bool = False
    streams: tuple[AudioStreamPlan, ...] = ()

    def __post_init__(self) -> None:
        """Validate that exactly one mode is selected."""
        modes = (self.no_audio, self.copy_all, bool(self.streams))
        if sum(modes) != 1:
            raise ValueError(
                "AudioPlan must be exactly one of no_audio, copy_all or per-stream"
            )


@dataclass(frozen=True)
class SubtitlePlan:
    """Subtitle handling for a file."""

    include: bool
    codec: str = ""
    skip_bitmap: bool = False
    # Absolute stream indices to map when bitmap streams are dropped
    text_indices: tuple[int, ...] = ()


@dataclass(frozen=True)
class AttachmentPlan:
    include: bool


@dataclass(frozen=True)
class RetrySeed:
    """Initial values for the per-file retry state."""

    mux_queue_size: int
    timestamp_fix: bool
    include_subtitles: bool
    include_attachments: bool


@dataclass(frozen=True)
class Plan:
    """Complete transcode decision for one file.

    Built once by :func:`muxmaster.planner.build_plan` and read-only
    afterwards. Fallback adjustments made during retries live in
    ``RetryState``, never here.
    """

    input_path: Path | None
    output_path: Path | None
    action: Action
    encoder_mode: EncoderMode
    container: Container
    video_codec: str
    video_stream_index: int
    vaapi_qp: int
    cpu_crf: int
    quality_note: str
    action_note: str
    video_filters: str
    color_opts: tuple[str, ...]
    audio: AudioPlan
    subtitles: SubtitlePlan
    attachments: AttachmentPlan
    container_opts: tuple[str, ...]
    tag_opts: tuple[str, ...]
    disposition_opts: tuple[str, ...]
    seed: RetrySeed

    def __post_init__(self) -> None:
        """Enforce the remux invariant."""
        if self.action is Action.REMUX and (
            self.video_codec != "copy" or self.video_filters or self.color_opts
        ):
            raise ValueError("Remux plans must copy video without filters or color")

    @property
    def is_encode(self) -> bool:
        return self.action is Action.ENCODE
