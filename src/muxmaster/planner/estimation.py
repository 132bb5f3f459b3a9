"""Output bitrate estimation.

Predicts the output bitrate range of an encode from the chosen quality and
the source's codec, resolution and bitrate. The result is shown to the
operator only; it never feeds back into planning or retries.
"""

from __future__ import annotations

from muxmaster.domain.enums import EncoderMode
from muxmaster.planner.quality import PIXELS_480P, PIXELS_720P, PIXELS_2160P, clamp
from muxmaster.planner.types import BitrateEstimate

# Output/input ratio in per-mille, indexed from the scale's floor upward.
# Values beyond the table use the trailing value.
VAAPI_RATIO_FLOOR = 14
VAAPI_RATIO_TABLE: tuple[int, ...] = (
    930, 900, 860, 820, 770, 730, 680, 640, 590, 550, 510, 470, 430, 390,
)  # fmt: skip

CPU_RATIO_FLOOR = 16
CPU_RATIO_TABLE: tuple[int, ...] = (
    900, 820, 740, 660, 590, 520, 460, 410, 360, 320, 290, 260, 230,
)  # fmt: skip

MODERN_CODECS = frozenset({"h264", "avc", "avc1", "hevc", "h265", "vp9", "av1"})
LEGACY_CODECS = frozenset({"mpeg2video", "mpeg4", "wmv3", "vc1"})

RATIO_MIN = 220
RATIO_MAX = 1050
LOW_MULTIPLIER_PCT = 75
HIGH_MULTIPLIER_PCT = 145


def quality_ratio_per_mille(mode: EncoderMode, quality: int) -> int:
    """Return the base output/input ratio for a quality value."""
    if mode is EncoderMode.VAAPI:
        floor, table = VAAPI_RATIO_FLOOR, VAAPI_RATIO_TABLE
    else:
        floor, table = CPU_RATIO_FLOOR, CPU_RATIO_TABLE
    offset = max(0, quality - floor)
    return table[min(offset, len(table) - 1)]


def codec_bias(codec: str) -> int:
    codec = codec.lower()
    if codec in MODERN_CODECS:
        return 110
    if codec in LEGACY_CODECS:
        return -60
    return 0


def resolution_bias(pixels: int) -> int:
    if pixels <= 0:
        return 0
    if pixels <= PIXELS_480P:
        return 80
    if pixels <= PIXELS_720P:
        return 40
    if pixels >= PIXELS_2160P:
        return -40
    return 0


def bitrate_bias(kbps: int) -> int:
    if kbps < 1500:
        return 120
    if kbps < 3000:
        return 70
    if kbps > 30000:
        return -50
    if kbps > 15000:
        return -20
    return 0


def estimate_bitrate(
    quality: int,
    input_bps: int,
    codec: str,
    width: int,
    height: int,
    mode: EncoderMode,
) -> BitrateEstimate:
    """Estimate the output bitrate range for an encode.

    Args:
        quality: Quality value on the active encoder's scale.
        input_bps: Source video bitrate in bits per second.
        codec: Source video codec name.
        width: Source width in pixels (0 if unknown).
        height: Source height in pixels (0 if unknown).
        mode: Active encoder mode.

    Returns:
        BitrateEstimate; ``known`` is False when the source bitrate is
        unavailable.
    """
    if input_bps <= 0:
        return BitrateEstimate(known=False)
    input_kbps = (input_bps + 500) // 1000

    ratio = quality_ratio_per_mille(mode, quality)
    ratio += codec_bias(codec)
    if width > 0 and height > 0:
        ratio += resolution_bias(width * height)
    ratio += bitrate_bias(input_kbps)
    ratio = clamp(ratio, RATIO_MIN, RATIO_MAX)

    low_ratio = ratio * LOW_MULTIPLIER_PCT // 100
    high_ratio = ratio * HIGH_MULTIPLIER_PCT // 100

    return BitrateEstimate(
        known=True,
        low_kbps=(input_kbps * low_ratio + 500) // 1000,
        high_kbps=(input_kbps * high_ratio + 500) // 1000,
        low_pct=(low_ratio + 5) // 10,
        high_pct=(high_ratio + 5) // 10,
    )
