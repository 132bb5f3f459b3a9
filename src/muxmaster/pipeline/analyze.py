"""Library analysis: per-file codec and bitrate report with outliers.

Bitrates are compared across the probed set using the interquartile
range: values beyond 1.5x IQR are outliers, beyond 3x IQR extreme.
"""

from __future__ import annotations

import logging
import math
import threading
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path

from muxmaster.config.models import DisplayConfig, RunConfig
from muxmaster.core.formatting import format_bitrate_label, style
from muxmaster.domain.models import MediaDescriptor
from muxmaster.introspector.interface import (
    MediaIntrospectionError,
    MediaIntrospector,
)
from muxmaster.planner.builder import decide_action

logger = logging.getLogger(__name__)

MIN_SAMPLES = 4
OUTLIER_FACTOR = 1.5
EXTREME_FACTOR = 3.0
MAX_NAME_WIDTH = 45

NORMAL = ""
OUTLIER = "outlier"
EXTREME = "extreme"

_FLAG_MARKS = {OUTLIER: "[*]", EXTREME: "[!]"}
_FLAG_COLORS = {OUTLIER: "yellow", EXTREME: "red"}


@dataclass(frozen=True)
class AnalysisRow:
    """Probed facts about one file."""

    name: str
    resolution: str = ""
    video_codec: str = ""
    video_kbps: int = 0
    hdr: bool = False
    audio_desc: str = ""
    audio_count: int = 0
    audio_kbps: int = 0
    action: str = "skip"

    @classmethod
    def from_media(
        cls, path: Path, media: MediaDescriptor, config: RunConfig
    ) -> AnalysisRow:
        video = media.video
        first_audio = media.audio[0] if media.audio else None
        action = "skip"
        if video is not None:
            action = decide_action(media, config)[0].value
        return cls(
            name=path.name,
            resolution=media.resolution_label if video is not None else "",
            video_codec=video.codec if video is not None else "",
            video_kbps=media.video_bitrate // 1000 if video is not None else 0,
            hdr=video.is_hdr if video is not None else False,
            audio_desc=(
                f"{first_audio.codec} {first_audio.channels}ch" if first_audio else ""
            ),
            audio_count=len(media.audio),
            audio_kbps=first_audio.bitrate // 1000 if first_audio else 0,
            action=action,
        )


@dataclass(frozen=True)
class IQRBounds:
    """Outlier thresholds derived from a sample."""

    q1: float = 0.0
    q3: float = 0.0
    outlier_low: float = 0.0
    outlier_high: float = 0.0
    extreme_low: float = 0.0
    extreme_high: float = 0.0
    valid: bool = False

    def classify(self, value: float) -> str:
        """Return NORMAL, OUTLIER or EXTREME for ``value``.

        Non-positive values (unknown bitrate) are never flagged.
        """
        if not self.valid or value <= 0:
            return NORMAL
        if value < self.extreme_low or value > self.extreme_high:
            return EXTREME
        if value < self.outlier_low or value > self.outlier_high:
            return OUTLIER
        return NORMAL


def percentile(sorted_values: Sequence[float], p: float) -> float:
    """Compute the p-th percentile of sorted data with linear interpolation."""
    if not sorted_values:
        return 0.0
    rank = (p / 100) * (len(sorted_values) - 1)
    lo = math.floor(rank)
    hi = math.ceil(rank)
    if lo == hi or hi >= len(sorted_values):
        return sorted_values[lo]
    frac = rank - lo
    return sorted_values[lo] * (1 - frac) + sorted_values[hi] * frac


def compute_bounds(values: Sequence[float]) -> IQRBounds:
    """Compute IQR bounds; fewer than four samples yields invalid bounds."""
    if len(values) < MIN_SAMPLES:
        return IQRBounds()
    ordered = sorted(values)
    q1 = percentile(ordered, 25)
    q3 = percentile(ordered, 75)
    iqr = q3 - q1
    return IQRBounds(
        q1=q1,
        q3=q3,
        outlier_low=q1 - OUTLIER_FACTOR * iqr,
        outlier_high=q3 + OUTLIER_FACTOR * iqr,
        extreme_low=q1 - EXTREME_FACTOR * iqr,
        extreme_high=q3 + EXTREME_FACTOR * iqr,
        valid=iqr > 0,
    )


def worst_flag(*flags: str) -> str:
    if EXTREME in flags:
        return EXTREME
    if OUTLIER in flags:
        return OUTLIER
    return NORMAL


@dataclass
class AnalysisReport:
    """Rows plus the statistics used to flag them."""

    rows: list[AnalysisRow] = field(default_factory=list)
    skipped: int = 0
    video_bounds: IQRBounds = field(default_factory=IQRBounds)
    audio_bounds: IQRBounds = field(default_factory=IQRBounds)
    interrupted: bool = False

    def flag_for(self, row: AnalysisRow) -> str:
        return worst_flag(
            self.video_bounds.classify(row.video_kbps),
            self.audio_bounds.classify(row.audio_kbps),
        )

    @property
    def outlier_count(self) -> int:
        return sum(1 for row in self.rows if self.flag_for(row) == OUTLIER)

    @property
    def extreme_count(self) -> int:
        return sum(1 for row in self.rows if self.flag_for(row) == EXTREME)


def analyze_files(
    files: Sequence[Path],
    introspector: MediaIntrospector,
    config: RunConfig,
    cancel_event: threading.Event | None = None,
) -> AnalysisReport:
    """Probe every file and compute outlier statistics.

    Args:
        files: Media files to analyze.
        introspector: Media prober.
        config: Run configuration used to predict each file's action.
        cancel_event: Optional cooperative cancellation signal.

    Returns:
        AnalysisReport. Files that fail to probe are counted as skipped.
    """
    report = AnalysisReport()
    for path in files:
        if cancel_event is not None and cancel_event.is_set():
            logger.warning("Interrupted")
            report.interrupted = True
            break
        try:
            media = introspector.get_file_info(path)
        except MediaIntrospectionError as e:
            logger.warning("Skip (probe failed): %s: %s", path.name, e)
            report.skipped += 1
            continue
        report.rows.append(AnalysisRow.from_media(path, media, config))

    report.video_bounds = compute_bounds(
        [row.video_kbps for row in report.rows if row.video_kbps > 0]
    )
    report.audio_bounds = compute_bounds(
        [row.audio_kbps for row in report.rows if row.audio_kbps > 0]
    )
    return report


def _kbps_cell(kbps: int) -> str:
    return format_bitrate_label(kbps) if kbps > 0 else "-"


def render_table(
    report: AnalysisReport, display: DisplayConfig | None = None
) -> list[str]:
    """Render the report as aligned text lines.

    Flagged bitrate cells are padded before coloring so escape codes do not
    break alignment.
    """
    headers = (
        "File",
        "Resolution",
        "Video",
        "Video Kbps",
        "HDR",
        "Audio",
        "Audio Kbps",
        "Action",
    )
    cells = [
        (
            row.name,
            row.resolution,
            row.video_codec,
            _kbps_cell(row.video_kbps),
            "yes" if row.hdr else "no",
            f"{row.audio_desc} ({row.audio_count})" if row.audio_count else "-",
            _kbps_cell(row.audio_kbps),
            row.action,
        )
        for row in report.rows
    ]
    widths = [len(h) for h in headers]
    for values in cells:
        widths = [max(w, len(v)) for w, v in zip(widths, values)]
    widths[0] = min(widths[0], MAX_NAME_WIDTH)

    def line(values: Sequence[str]) -> str:
        return "  " + "  ".join(v.ljust(w) for v, w in zip(values, widths)).rstrip()

    header = line(headers)
    separator = "  " + "-" * (len(header) - 2)
    lines = [header, separator]

    for row, values in zip(report.rows, cells):
        name = values[0]
        if len(name) > widths[0]:
            name = name[: widths[0] - 1] + "~"
        padded = [name.ljust(widths[0])]
        padded.extend(v.ljust(w) for v, w in zip(values[1:], widths[1:]))

        video_flag = report.video_bounds.classify(row.video_kbps)
        audio_flag = report.audio_bounds.classify(row.audio_kbps)
        if video_flag:
            padded[3] = style(padded[3], _FLAG_COLORS[video_flag], display)
        if audio_flag:
            padded[6] = style(padded[6], _FLAG_COLORS[audio_flag], display)

        flag = worst_flag(video_flag, audio_flag)
        mark = style(_FLAG_MARKS[flag], _FLAG_COLORS[flag], display) if flag else ""
        lines.append(("  " + "  ".join(padded) + "  " + mark).rstrip())

    lines.append(separator)
    lines.append(f"  {len(report.rows)} file(s)")
    return lines


def log_report_summary(report: AnalysisReport) -> None:
    """Log quartiles and outlier counts."""
    logger.info("Results: %d probed, %d skipped", len(report.rows), report.skipped)
    for label, bounds in (
        ("Video", report.video_bounds),
        ("Audio", report.audio_bounds),
    ):
        if bounds.valid:
            logger.info(
                "  %s kbps: Q1 %.0f  Q3 %.0f  (outlier < %.0f or > %.0f)",
                label,
                bounds.q1,
                bounds.q3,
                bounds.outlier_low,
                bounds.outlier_high,
            )
    if not report.video_bounds.valid and not report.audio_bounds.valid:
        logger.info(
            "  Not enough data for outlier detection (need >= %d files)", MIN_SAMPLES
        )
        return

    outliers = report.outlier_count
    extremes = report.extreme_count
    if outliers:
        logger.warning("  %d outlier(s) flagged [*]", outliers)
    if extremes:
        logger.error("  %d extreme outlier(s) flagged [!]", extremes)
    if not outliers and not extremes:
        logger.info("  No outliers detected")
    logger.info("  Legend: [*] outlier (1.5x IQR)  [!] extreme (3x IQR)")
