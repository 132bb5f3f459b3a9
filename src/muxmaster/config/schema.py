"""Pydantic models for config file and profile validation.

Both the TOML config file and YAML profiles share this schema. Every field
is optional: a missing value means "not set in this source" and falls
through to lower-precedence sources.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from muxmaster.config.models import (
    CPU_CRF_MAX,
    CPU_CRF_MIN,
    VAAPI_QP_MAX,
    VAAPI_QP_MIN,
    normalize_audio_bitrate,
)
from muxmaster.domain.enums import Container, EncoderMode, HDRMode

VALID_CPU_PRESETS = frozenset(
    {
        "ultrafast",
        "superfast",
        "veryfast",
        "faster",
        "fast",
        "medium",
        "slow",
        "slower",
        "veryslow",
        "placebo",
    }
)


def _enum_values(enum_type: type) -> list[str]:
    return [member.value for member in enum_type]


class EncodingSectionModel(BaseModel):
    """Pydantic model for the [encoding] section."""

    model_config = ConfigDict(extra="forbid")

    encoder_mode: str | None = None
    output_container: str | None = None
    hdr_mode: str | None = None

    vaapi_qp: int | None = Field(default=None, ge=VAAPI_QP_MIN, le=VAAPI_QP_MAX)
    cpu_crf: int | None = Field(default=None, ge=CPU_CRF_MIN, le=CPU_CRF_MAX)
    smart_quality: bool | None = None
    smart_quality_bias: int | None = Field(default=None, ge=-10, le=10)
    quality_retry_step: int | None = Field(default=None, ge=1, le=10)

    vaapi_device: str | None = None
    vaapi_profile: str | None = None
    vaapi_sw_format: str | None = None
    cpu_preset: str | None = None
    cpu_profile: str | None = None
    cpu_pix_fmt: str | None = None
    keyframe_interval: int | None = Field(default=None, ge=1)

    audio_encoder: str | None = None
    audio_channels: int | None = Field(default=None, ge=1, le=8)
    audio_bitrate: str | None = None
    audio_sample_rate: int | None = Field(default=None, ge=8000, le=192000)

    skip_existing: bool | None = None
    skip_hevc: bool | None = None
    strict_mode: bool | None = None
    clean_timestamps: bool | None = None
    match_audio_layout: bool | None = None
    keep_subtitles: bool | None = None
    keep_attachments: bool | None = None
    deinterlace_auto: bool | None = None

    ffmpeg_probesize: str | None = None
    ffmpeg_analyzeduration: str | None = None

    @field_validator("encoder_mode")
    @classmethod
    def validate_encoder_mode(cls, v: str | None) -> str | None:
        """Validate encoder mode."""
        if v is not None and v.casefold() not in _enum_values(EncoderMode):
            raise ValueError(
                f"Invalid encoder mode '{v}'. "
                f"Must be one of: {', '.join(_enum_values(EncoderMode))}"
            )
        return v.casefold() if v is not None else None

    @field_validator("output_container")
    @classmethod
    def validate_container(cls, v: str | None) -> str | None:
        """Validate output container."""
        if v is not None and v.casefold() not in _enum_values(Container):
            raise ValueError(
                f"Invalid container '{v}'. "
                f"Must be one of: {', '.join(_enum_values(Container))}"
            )
        return v.casefold() if v is not None else None

    @field_validator("hdr_mode")
    @classmethod
    def validate_hdr_mode(cls, v: str | None) -> str | None:
        """Validate HDR mode."""
        if v is not None and v.casefold() not in _enum_values(HDRMode):
            raise ValueError(
                f"Invalid HDR mode '{v}'. "
                f"Must be one of: {', '.join(_enum_values(HDRMode))}"
            )
        return v.casefold() if v is not None else None

    @field_validator("cpu_preset")
    @classmethod
    def validate_preset(cls, v: str | None) -> str | None:
        """Validate x265 preset."""
        if v is not None and v not in VALID_CPU_PRESETS:
            raise ValueError(
                f"Invalid preset '{v}'. "
                f"Must be one of: {', '.join(sorted(VALID_CPU_PRESETS))}"
            )
        return v

    @field_validator("audio_bitrate")
    @classmethod
    def validate_audio_bitrate(cls, v: str | None) -> str | None:
        """Normalize audio bitrate to ``<n>k``."""
        if v is None:
            return None
        return normalize_audio_bitrate(str(v))


class DisplaySectionModel(BaseModel):
    """Pydantic model for the [display] section."""

    model_config = ConfigDict(extra="forbid")

    color: bool | None = None
    verbose: bool | None = None
    show_file_stats: bool | None = None
    show_ffmpeg_fps: bool | None = None


class LoggingSectionModel(BaseModel):
    """Pydantic model for the [logging] section."""

    model_config = ConfigDict(extra="forbid")

    level: str | None = None
    file: str | None = None
    format: str | None = None
    include_stderr: bool | None = None
    max_bytes: int | None = Field(default=None, ge=1024)
    backup_count: int | None = Field(default=None, ge=0)

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str | None) -> str | None:
        """Validate log level."""
        valid = ("debug", "info", "warning", "error")
        if v is not None and v.casefold() not in valid:
            raise ValueError(f"Invalid log level '{v}'. Must be one of: {valid}")
        return v

    @field_validator("format")
    @classmethod
    def validate_format(cls, v: str | None) -> str | None:
        """Validate log format."""
        if v is not None and v.casefold() not in ("text", "json"):
            raise ValueError(f"Invalid log format '{v}'. Must be 'text' or 'json'.")
        return v


class ToolsSectionModel(BaseModel):
    """Pydantic model for the [tools] section."""

    model_config = ConfigDict(extra="forbid")

    ffmpeg: str | None = None
    ffprobe: str | None = None


class ConfigFileModel(BaseModel):
    """Pydantic model for a complete config file or profile."""

    model_config = ConfigDict(extra="forbid")

    # Profile metadata (ignored for the config file)
    name: str | None = None
    description: str | None = None

    encoding: EncodingSectionModel = Field(default_factory=EncodingSectionModel)
    display: DisplaySectionModel = Field(default_factory=DisplaySectionModel)
    logging: LoggingSectionModel = Field(default_factory=LoggingSectionModel)
    tools: ToolsSectionModel = Field(default_factory=ToolsSectionModel)


def format_validation_error(error: ValidationError) -> str:
    """Format a Pydantic validation error into a user-friendly message."""
    errors = error.errors()
    if errors:
        first_error = errors[0]
        loc = ".".join(str(x) for x in first_error.get("loc", []))
        msg = first_error.get("msg", str(error))
        if loc:
            return f"{loc}: {msg}"
        return msg
    return str(error)


def section_values(model: BaseModel) -> dict[str, Any]:
    """Return only the fields explicitly set to a non-None value."""
    return {k: v for k, v in model.model_dump().items() if v is not None}
