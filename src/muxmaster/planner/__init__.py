"""Transcode planning.

Turns a probed MediaDescriptor and the run configuration into an immutable
Plan. Everything in this package is pure: no I/O, no clocks, no randomness.

Public API:
- build_plan: Compose a full Plan for one file
- decide_action: Encode vs remux decision
- resolve_quality: Smart quality resolution
- estimate_bitrate: Display-only output bitrate estimate
"""

from muxmaster.planner.builder import build_plan, decide_action
from muxmaster.planner.estimation import estimate_bitrate
from muxmaster.planner.quality import resolve_quality
from muxmaster.planner.types import (
    MUX_QUEUE_DEFAULT,
    MUX_QUEUE_ESCALATED,
    AttachmentPlan,
    AudioPlan,
    AudioStreamPlan,
    BitrateEstimate,
    Plan,
    QualityResult,
    RetrySeed,
    SubtitlePlan,
)

__all__ = [
    "build_plan",
    "decide_action",
    "estimate_bitrate",
    "resolve_quality",
    "MUX_QUEUE_DEFAULT",
    "MUX_QUEUE_ESCALATED",
    "AttachmentPlan",
    "AudioPlan",
    "AudioStreamPlan",
    "BitrateEstimate",
    "Plan",
    "QualityResult",
    "RetrySeed",
    "SubtitlePlan",
]
