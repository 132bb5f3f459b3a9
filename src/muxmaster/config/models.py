"""Configuration data models for Muxmaster.

All run-level configuration is immutable. A single MuxmasterConfig is built
per invocation by the loader and threaded through the pipeline.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path

from muxmaster.domain.enums import Container, EncoderMode, HDRMode

# Valid quality ranges per encoder scale
VAAPI_QP_MIN = 14
VAAPI_QP_MAX = 36
CPU_CRF_MIN = 16
CPU_CRF_MAX = 30

# Range accepted when parsing a raw --quality value
QUALITY_PARSE_MIN = 0
QUALITY_PARSE_MAX = 51

_AUDIO_BITRATE_PATTERN = re.compile(r"^(\d+)(k|kbps)?$", re.IGNORECASE)


def normalize_audio_bitrate(value: str) -> str:
    """Normalize an audio bitrate string to ffmpeg's ``<n>k`` form.

    Accepts ``"256"``, ``"256k"`` and ``"256kbps"``.

    Args:
        value: Raw bitrate string.

    Returns:
        Normalized string such as ``"256k"``.

    Raises:
        ValueError: If the value is not a positive kilobit count.
    """
    match = _AUDIO_BITRATE_PATTERN.match(value.strip())
    if not match or int(match.group(1)) <= 0:
        raise ValueError(f"Invalid audio bitrate: {value!r} (expected e.g. 256k)")
    return f"{int(match.group(1))}k"


@dataclass(frozen=True)
class RunConfig:
    """Settings that drive planning and encoding for one run.

    This dataclass is immutable (frozen) so the same instance can be shared
    by every file in the batch without risk of drift.
    """

    # Encoder selection
    encoder_mode: EncoderMode = EncoderMode.VAAPI
    output_container: Container = Container.MKV
    hdr_mode: HDRMode = HDRMode.PRESERVE

    # Quality defaults per scale (VAAPI QP, CPU CRF)
    vaapi_qp: int = 19
    cpu_crf: int = 19
    # Active-mode manual override; when set, smart quality is bypassed
    quality_override: int | None = None
    smart_quality: bool = True
    smart_quality_bias: int = -1
    quality_retry_step: int = 2

    # VAAPI encoder tuning
    vaapi_device: str = "/dev/dri/renderD128"
    vaapi_profile: str = "main10"
    vaapi_sw_format: str = "p010"

    # CPU encoder tuning
    cpu_preset: str = "slow"
    cpu_profile: str = "main10"
    cpu_pix_fmt: str = "yuv420p10le"
    keyframe_interval: int = 48

    # Audio target
    audio_encoder: str = "libfdk_aac"
    audio_channels: int = 2
    audio_bitrate: str = "256k"
    audio_sample_rate: int = 48000

    # Feature toggles
    skip_existing: bool = True
    skip_hevc: bool = True
    strict_mode: bool = False
    clean_timestamps: bool = True
    match_audio_layout: bool = True
    keep_subtitles: bool = True
    keep_attachments: bool = True
    deinterlace_auto: bool = True

    # Probe sizing passed to ffmpeg
    ffmpeg_probesize: str = "100M"
    ffmpeg_analyzeduration: str = "100M"

    dry_run: bool = False

    def __post_init__(self) -> None:
        """Validate configuration."""
        if not VAAPI_QP_MIN <= self.vaapi_qp <= VAAPI_QP_MAX:
            raise ValueError(
                f"vaapi_qp must be between {VAAPI_QP_MIN} and {VAAPI_QP_MAX}, "
                f"got {self.vaapi_qp}"
            )
        if not CPU_CRF_MIN <= self.cpu_crf <= CPU_CRF_MAX:
            raise ValueError(
                f"cpu_crf must be between {CPU_CRF_MIN} and {CPU_CRF_MAX}, "
                f"got {self.cpu_crf}"
            )
        if self.quality_override is not None and self.quality_override != (
            self.active_quality
        ):
            raise ValueError(
                "quality_override must match the active encoder's quality value"
            )
        if self.quality_retry_step < 1:
            raise ValueError(
                f"quality_retry_step must be >= 1, got {self.quality_retry_step}"
            )
        if self.audio_channels < 1:
            raise ValueError(f"audio_channels must be >= 1, got {self.audio_channels}")
        if self.audio_sample_rate <= 0:
            raise ValueError(
                f"audio_sample_rate must be positive, got {self.audio_sample_rate}"
            )
        if self.keyframe_interval <= 0:
            raise ValueError(
                f"keyframe_interval must be positive, got {self.keyframe_interval}"
            )
        # Normalize here so every consumer sees "<n>k"
        object.__setattr__(
            self, "audio_bitrate", normalize_audio_bitrate(self.audio_bitrate)
        )

    @property
    def active_quality(self) -> int:
        """Return the quality value for the active encoder mode."""
        if self.encoder_mode is EncoderMode.VAAPI:
            return self.vaapi_qp
        return self.cpu_crf

    @property
    def mode_label(self) -> str:
        """Return the label of the active quality scale."""
        return "VAAPI_QP" if self.encoder_mode is EncoderMode.VAAPI else "CPU_CRF"


@dataclass(frozen=True)
class DisplayConfig:
    """Presentation settings, built once per run.

    Passed explicitly to formatters and the pipeline instead of being held
    in module-level state.
    """

    color: bool = False
    verbose: bool = False
    show_file_stats: bool = True
    show_ffmpeg_fps: bool = True


@dataclass
class LoggingConfig:
    """Configuration for structured logging."""

    # Log level: debug, info, warning, error
    level: str = "info"

    # Log file path (None = stderr only)
    file: Path | None = None

    # Log format: text or json
    format: str = "text"

    # Also log to stderr when file is set
    include_stderr: bool = False

    # Rotation threshold in bytes (default 10MB)
    max_bytes: int = 10_485_760

    # Number of rotated files to keep
    backup_count: int = 5

    def __post_init__(self) -> None:
        """Validate configuration."""
        valid_levels = {"debug", "info", "warning", "error"}
        if self.level.lower() not in valid_levels:
            raise ValueError(f"level must be one of {valid_levels}, got {self.level}")
        valid_formats = {"text", "json"}
        if self.format.lower() not in valid_formats:
            raise ValueError(
                f"format must be one of {valid_formats}, got {self.format}"
            )


@dataclass
class ToolPathsConfig:
    """Paths to external tools. None means look up on PATH."""

    ffmpeg: Path | None = None
    ffprobe: Path | None = None


@dataclass(frozen=True)
class MuxmasterConfig:
    """Complete configuration for one invocation."""

    run: RunConfig = field(default_factory=RunConfig)
    display: DisplayConfig = field(default_factory=DisplayConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    tools: ToolPathsConfig = field(default_factory=ToolPathsConfig)
