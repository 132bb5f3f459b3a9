"""Core utilities shared across Muxmaster."""

from muxmaster.core.formatting import (
    format_bitrate_label,
    format_bytes,
    format_bytes_with_sign,
    format_duration,
    style,
)

__all__ = [
    "format_bitrate_label",
    "format_bytes",
    "format_bytes_with_sign",
    "format_duration",
    "style",
]
