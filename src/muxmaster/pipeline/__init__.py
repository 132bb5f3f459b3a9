"""Batch pipeline: discovery, per-file processing, stats and analysis."""

from muxmaster.pipeline.analyze import (
    AnalysisReport,
    AnalysisRow,
    IQRBounds,
    analyze_files,
    compute_bounds,
    log_report_summary,
    percentile,
    render_table,
)
from muxmaster.pipeline.discover import VIDEO_EXTENSIONS, discover_media_files
from muxmaster.pipeline.runner import MIN_FILE_SIZE, BatchRunner
from muxmaster.pipeline.stats import (
    BITRATE_TIERS,
    FileStatus,
    RunStats,
    bitrate_tier,
    classify_bitrate,
)

__all__ = [
    "AnalysisReport",
    "AnalysisRow",
    "BITRATE_TIERS",
    "BatchRunner",
    "FileStatus",
    "IQRBounds",
    "MIN_FILE_SIZE",
    "RunStats",
    "VIDEO_EXTENSIONS",
    "analyze_files",
    "bitrate_tier",
    "classify_bitrate",
    "compute_bounds",
    "discover_media_files",
    "log_report_summary",
    "percentile",
    "render_table",
]
