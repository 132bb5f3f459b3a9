"""Per-file quality resolution.

Computes VAAPI QP and CPU CRF values from resolution and bitrate curves
plus a configurable bias. The curve tables are tuned constants and are
kept as data so they can be audited line by line.
"""

from __future__ import annotations

from muxmaster.config.models import (
    CPU_CRF_MAX,
    CPU_CRF_MIN,
    VAAPI_QP_MAX,
    VAAPI_QP_MIN,
    RunConfig,
)
from muxmaster.domain.models import MediaDescriptor
from muxmaster.planner.types import QualityResult

PIXELS_360P = 640 * 360
PIXELS_480P = 854 * 480
PIXELS_720P = 1280 * 720
PIXELS_1080P = 1920 * 1080
PIXELS_1440P = 2560 * 1440
PIXELS_2160P = 3840 * 2160

# (comparison, threshold, adjustment); first match wins.
# "le" rules test pixels <= threshold, "ge" rules test pixels >= threshold.
CPU_RESOLUTION_CURVE: tuple[tuple[str, int, int], ...] = (
    ("le", PIXELS_360P, 4),
    ("le", PIXELS_480P, 3),
    ("le", PIXELS_720P, 2),
    ("le", PIXELS_1080P, 1),
    ("ge", PIXELS_2160P, -2),
    ("ge", PIXELS_1440P, -1),
)

VAAPI_RESOLUTION_CURVE: tuple[tuple[str, int, int], ...] = (
    ("le", PIXELS_360P, 6),
    ("le", PIXELS_480P, 4),
    ("le", PIXELS_720P, 3),
    ("le", PIXELS_1080P, 1),
    ("ge", PIXELS_2160P, -1),
)

# "lt" tests kbps < threshold, "gt" tests kbps > threshold.
CPU_BITRATE_CURVE: tuple[tuple[str, int, int], ...] = (
    ("lt", 1200, 2),
    ("lt", 2500, 1),
    ("gt", 35000, -2),
    ("gt", 18000, -1),
)

VAAPI_BITRATE_CURVE: tuple[tuple[str, int, int], ...] = (
    ("lt", 1200, 3),
    ("lt", 2500, 2),
    ("gt", 30000, -2),
    ("gt", 16000, -1),
)

_COMPARATORS = {
    "le": lambda value, threshold: value <= threshold,
    "ge": lambda value, threshold: value >= threshold,
    "lt": lambda value, threshold: value < threshold,
    "gt": lambda value, threshold: value > threshold,
}


def curve_adjustment(curve: tuple[tuple[str, int, int], ...], value: int) -> int:
    """Look up the adjustment for ``value`` in an ordered curve.

    Args:
        curve: Ordered (comparison, threshold, adjustment) rules.
        value: Pixel count or kbps. Non-positive means unknown.

    Returns:
        The adjustment of the first matching rule, or 0.
    """
    if value <= 0:
        return 0
    for comparison, threshold, adjustment in curve:
        if _COMPARATORS[comparison](value, threshold):
            return adjustment
    return 0


def clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


def clamp_vaapi_qp(value: int) -> int:
    return clamp(value, VAAPI_QP_MIN, VAAPI_QP_MAX)


def clamp_cpu_crf(value: int) -> int:
    return clamp(value, CPU_CRF_MIN, CPU_CRF_MAX)


def resolve_quality(media: MediaDescriptor, config: RunConfig) -> QualityResult:
    """Resolve VAAPI QP and CPU CRF for a file.

    Precedence:
    1. Manual override: configured values are returned unchanged.
    2. Smart quality disabled: configured defaults are returned.
    3. Smart quality: default + resolution curve + bitrate curve + bias,
       clamped to each scale's range. Both scales are always computed.

    Args:
        media: Probed media description.
        config: Run configuration.

    Returns:
        QualityResult with both scale values and an explanatory note.
    """
    if config.quality_override is not None:
        return QualityResult(
            vaapi_qp=config.vaapi_qp,
            cpu_crf=config.cpu_crf,
            note=(
                f"manual fixed override ({config.mode_label}="
                f"{config.quality_override})"
            ),
        )

    if not config.smart_quality:
        return QualityResult(
            vaapi_qp=config.vaapi_qp,
            cpu_crf=config.cpu_crf,
            note="smart quality disabled",
        )

    pixels = media.video.pixels if media.video is not None else 0
    kbps = media.video_bitrate // 1000
    bitrate_label = f"{kbps}kb/s" if kbps > 0 else "unknown"

    cpu_adj = curve_adjustment(CPU_RESOLUTION_CURVE, pixels) + curve_adjustment(
        CPU_BITRATE_CURVE, kbps
    )
    vaapi_adj = curve_adjustment(VAAPI_RESOLUTION_CURVE, pixels) + curve_adjustment(
        VAAPI_BITRATE_CURVE, kbps
    )
    bias = config.smart_quality_bias

    cpu_crf = clamp_cpu_crf(config.cpu_crf + cpu_adj + bias)
    vaapi_qp = clamp_vaapi_qp(config.vaapi_qp + vaapi_adj + bias)

    note = (
        f"smart ({media.resolution_label}, {bitrate_label}, "
        f"cpu_adj={cpu_adj}, vaapi_adj={vaapi_adj}, "
        f"smart_bias={bias}, cpu_crf={cpu_crf}, vaapi_qp={vaapi_qp}, "
        f"mode={config.encoder_mode.value})"
    )
    return QualityResult(vaapi_qp=vaapi_qp, cpu_crf=cpu_crf, note=note)
