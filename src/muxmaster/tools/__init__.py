"""External tool detection and test encodes."""

from muxmaster.tools.check import (
    CheckItem,
    CheckReport,
    DependencyError,
    check_dependencies,
    find_render_device,
    list_hevc_encoders,
    run_system_check,
    probe_vaapi,
)

__all__ = [
    "CheckItem",
    "CheckReport",
    "DependencyError",
    "check_dependencies",
    "find_render_device",
    "list_hevc_encoders",
    "run_system_check",
    "probe_vaapi",
]
