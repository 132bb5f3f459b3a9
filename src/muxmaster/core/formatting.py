"""Formatting utilities.

Pure functions for formatting sizes, bitrates and durations for display.
"""

from __future__ import annotations

import click

from muxmaster.config.models import DisplayConfig

_BYTE_UNITS = ("KiB", "MiB", "GiB", "TiB", "PiB", "EiB")


def format_bytes(size_bytes: int) -> str:
    """Format a byte count with binary units.

    Args:
        size_bytes: Size in bytes.

    Returns:
        Formatted string (e.g., "512 B", "1.5 KiB", "4.2 GiB").
    """
    if size_bytes < 1024:
        return f"{size_bytes} B"
    value = float(size_bytes)
    for unit in _BYTE_UNITS:
        value /= 1024
        if value < 1024 or unit == _BYTE_UNITS[-1]:
            return f"{value:.1f} {unit}"
    return f"{size_bytes} B"


def format_bytes_with_sign(size_bytes: int) -> str:
    """Format a size delta as "+ 1.2 GiB" or "- 1.2 GiB"."""
    if size_bytes > 0:
        return "+ " + format_bytes(size_bytes)
    if size_bytes < 0:
        return "- " + format_bytes(-size_bytes)
    return format_bytes(0)


def format_bitrate_label(kbps: int) -> str:
    """Format a bitrate given in kbps, e.g. "800 kbps" or "1.2 Mbps"."""
    if kbps < 1000:
        return f"{kbps} kbps"
    return f"{kbps / 1000:.1f} Mbps"


def format_duration(seconds: float) -> str:
    """Format seconds as HH:MM:SS."""
    total = max(0, int(seconds))
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


def style(text: str, fg: str, display: DisplayConfig | None = None) -> str:
    """Color ``text`` when the display has color enabled."""
    if display is None or not display.color:
        return text
    return click.style(text, fg=fg)
