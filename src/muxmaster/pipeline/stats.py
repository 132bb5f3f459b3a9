"""Batch statistics and per-resolution bitrate expectations."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from muxmaster.domain.enums import Action


class FileStatus(Enum):
    """Terminal status of one file in a batch."""

    ENCODED = "encoded"
    REMUXED = "remuxed"
    SKIPPED = "skipped"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @classmethod
    def for_action(cls, action: Action) -> FileStatus:
        return cls.REMUXED if action is Action.REMUX else cls.ENCODED


@dataclass
class RunStats:
    """Aggregate counters and byte totals across a batch run."""

    total: int = 0
    processed: int = 0
    encoded: int = 0
    remuxed: int = 0
    skipped: int = 0
    failed: int = 0
    cancelled: int = 0
    input_bytes: int = 0
    output_bytes: int = 0
    interrupted: bool = False

    @property
    def succeeded(self) -> int:
        return self.encoded + self.remuxed

    @property
    def space_saved(self) -> int:
        """Bytes saved; negative when outputs grew."""
        return self.input_bytes - self.output_bytes

    def record(
        self, status: FileStatus, input_bytes: int = 0, output_bytes: int = 0
    ) -> None:
        """Count one finished file."""
        self.processed += 1
        if status is FileStatus.ENCODED:
            self.encoded += 1
        elif status is FileStatus.REMUXED:
            self.remuxed += 1
        elif status is FileStatus.SKIPPED:
            self.skipped += 1
        elif status is FileStatus.FAILED:
            self.failed += 1
        else:
            self.cancelled += 1
        self.input_bytes += input_bytes
        self.output_bytes += output_bytes


@dataclass(frozen=True)
class BitrateTier:
    """Expected video bitrate range for a resolution class."""

    max_pixels: int | None
    low_kbps: int
    high_kbps: int
    label: str


BITRATE_TIERS: tuple[BitrateTier, ...] = (
    BitrateTier(640 * 360, 250, 1800, "<=360p"),
    BitrateTier(854 * 480, 500, 2500, "<=480p"),
    BitrateTier(1280 * 720, 1000, 5000, "<=720p"),
    BitrateTier(1920 * 1080, 2500, 10000, "<=1080p"),
    BitrateTier(2560 * 1440, 5000, 18000, "<=1440p"),
    BitrateTier(3840 * 2160, 10000, 45000, "<=2160p"),
    BitrateTier(None, 15000, 65000, ">2160p"),
)


def bitrate_tier(pixels: int) -> BitrateTier:
    """Return the tier for a frame size in pixels."""
    for tier in BITRATE_TIERS:
        if tier.max_pixels is None or pixels <= tier.max_pixels:
            return tier
    return BITRATE_TIERS[-1]


def classify_bitrate(pixels: int, kbps: int) -> str:
    """Classify a video bitrate against its resolution tier.

    Returns:
        "low", "high" or "normal". Unknown size or bitrate is "normal".
    """
    if pixels <= 0 or kbps <= 0:
        return "normal"
    tier = bitrate_tier(pixels)
    if kbps < tier.low_kbps:
        return "low"
    if kbps > tier.high_kbps:
        return "high"
    return "normal"
