"""External tool checks.

Provides the system report behind ``muxmaster check`` and the fail-fast
dependency check that runs before a batch: ffmpeg and ffprobe must be
present and the configured encoder must complete a tiny test encode.
"""

from __future__ import annotations

import glob
import logging
import subprocess  # nosec B404 - subprocess is required for tool detection
from dataclasses import dataclass, field
from pathlib import Path

from muxmaster.config.models import MuxmasterConfig
from muxmaster.domain.enums import EncoderMode
from muxmaster.executor.interface import get_tool_path, require_tool

logger = logging.getLogger(__name__)

# Timeout for version queries and test encodes (seconds)
CHECK_TIMEOUT = 30

RENDER_DEVICE_GLOB = "/dev/dri/renderD*"

_LAVFI_VIDEO = ["-f", "lavfi", "-i", "color=black:s=256x256:d=0.1"]
_LAVFI_AUDIO = ["-f", "lavfi", "-i", "sine=frequency=1000:duration=0.1"]
_QUIET = ["-hide_banner", "-nostdin", "-loglevel", "error"]
_NULL_OUTPUT = ["-f", "null", "-"]


class DependencyError(RuntimeError):
    """A tool or encoder required for the configured mode is unusable."""

    pass


@dataclass(frozen=True)
class CheckItem:
    """One line of the system report."""

    name: str
    ok: bool
    detail: str = ""
    required: bool = True


@dataclass
class CheckReport:
    """Result of the system check."""

    items: list[CheckItem] = field(default_factory=list)
    hevc_encoders: list[str] = field(default_factory=list)

    def add(self, name: str, ok: bool, detail: str = "", required: bool = True) -> None:
        self.items.append(CheckItem(name, ok, detail, required))

    @property
    def ok(self) -> bool:
        """True when every required item passed."""
        return all(item.ok for item in self.items if item.required)


def run_quiet(args: list[str], timeout: int = CHECK_TIMEOUT) -> bool:
    """Run a command discarding output; True when it exits 0."""
    try:
        result = subprocess.run(  # nosec B603 - tool path and fixed flags
            args,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired:
        logger.warning("Command timed out: %s", " ".join(args))
        return False
    except OSError as e:
        logger.debug("Command failed to start: %s: %s", args[0], e)
        return False
    return result.returncode == 0


def run_capture(args: list[str], timeout: int = CHECK_TIMEOUT) -> str | None:
    """Run a command and return stdout, or None on failure."""
    try:
        result = subprocess.run(  # nosec B603 - tool path and fixed flags
            args,
            stdin=subprocess.DEVNULL,
            capture_output=True,
            text=True,
            errors="replace",
            timeout=timeout,
        )
    except (subprocess.TimeoutExpired, OSError) as e:
        logger.debug("Command failed: %s: %s", " ".join(args), e)
        return None
    if result.returncode != 0:
        return None
    return result.stdout


def find_render_device(configured: str | None = None) -> str | None:
    """Return the configured render node if present, else the first found."""
    if configured and Path(configured).exists():
        return configured
    for candidate in sorted(glob.glob(RENDER_DEVICE_GLOB)):
        if Path(candidate).exists():
            return candidate
    return None


def vaapi_test_args(
    ffmpeg: Path, device: str, sw_format: str, profile: str
) -> list[str]:
    return [
        str(ffmpeg),
        *_QUIET,
        "-init_hw_device",
        f"vaapi=va:{device}",
        "-filter_hw_device",
        "va",
        *_LAVFI_VIDEO,
        "-vf",
        f"format={sw_format},hwupload",
        "-c:v",
        "hevc_vaapi",
        "-profile:v",
        profile,
        *_NULL_OUTPUT,
    ]


def cpu_test_args(ffmpeg: Path) -> list[str]:
    return [str(ffmpeg), *_QUIET, *_LAVFI_VIDEO, "-c:v", "libx265", *_NULL_OUTPUT]


def aac_test_args(ffmpeg: Path, encoder: str) -> list[str]:
    return [str(ffmpeg), *_QUIET, *_LAVFI_AUDIO, "-c:a", encoder, *_NULL_OUTPUT]


def probe_vaapi(ffmpeg: Path, device: str) -> str | None:
    """Try a 10-bit then an 8-bit VAAPI encode.

    Returns:
        "main10", "main", or None when neither works.
    """
    if run_quiet(vaapi_test_args(ffmpeg, device, "p010", "main10")):
        return "main10"
    if run_quiet(vaapi_test_args(ffmpeg, device, "nv12", "main")):
        return "main"
    return None


def tool_version(tool: Path) -> str | None:
    """Return the first line of ``<tool> -version``."""
    output = run_capture([str(tool), "-version"])
    if not output:
        return None
    return output.strip().splitlines()[0]


def list_hevc_encoders(ffmpeg: Path) -> list[str]:
    output = run_capture([str(ffmpeg), "-hide_banner", "-encoders"])
    if output is None:
        return []
    return [
        line.strip()
        for line in output.splitlines()
        if "hevc" in line.lower() or "265" in line
    ]


def run_system_check(config: MuxmasterConfig) -> CheckReport:
    """Collect the system report.

    Components needed by the configured encoder mode are marked required;
    the other mode's test is informational.
    """
    report = CheckReport()
    run = config.run

    ffmpeg = get_tool_path("ffmpeg", config.tools.ffmpeg)
    ffprobe = get_tool_path("ffprobe", config.tools.ffprobe)

    for name, tool in (("ffmpeg", ffmpeg), ("ffprobe", ffprobe)):
        if tool is None:
            report.add(name, False, "not found")
        else:
            version = tool_version(tool)
            report.add(name, version is not None, version or "-version failed")

    if ffmpeg is None:
        return report

    report.hevc_encoders = list_hevc_encoders(ffmpeg)

    vaapi_required = run.encoder_mode is EncoderMode.VAAPI
    device = find_render_device(run.vaapi_device)
    if device is None:
        report.add("VAAPI", False, "no render device found", required=vaapi_required)
    else:
        profile = probe_vaapi(ffmpeg, device)
        if profile == "main10":
            detail = f"works on {device} (main10)"
        elif profile == "main":
            detail = f"works on {device} (main/8-bit only)"
        else:
            detail = f"test encode failed on {device}"
        report.add("VAAPI", profile is not None, detail, required=vaapi_required)

    x265_ok = run_quiet(cpu_test_args(ffmpeg))
    report.add(
        "CPU x265",
        x265_ok,
        "works" if x265_ok else "test encode failed",
        required=not vaapi_required,
    )

    aac_ok = run_quiet(aac_test_args(ffmpeg, run.audio_encoder))
    report.add(
        f"AAC ({run.audio_encoder})",
        aac_ok,
        "works" if aac_ok else "test encode failed",
    )
    return report


def check_dependencies(config: MuxmasterConfig) -> None:
    """Fail fast when the configured encoder cannot work.

    Raises:
        ToolNotFoundError: If ffmpeg or ffprobe is missing.
        DependencyError: If the configured encoder fails its test encode.
    """
    ffmpeg = require_tool("ffmpeg", config.tools.ffmpeg)
    require_tool("ffprobe", config.tools.ffprobe)

    run = config.run
    if run.encoder_mode is EncoderMode.CPU:
        if not run_quiet(cpu_test_args(ffmpeg)):
            raise DependencyError("CPU mode selected but libx265 test encode failed")
        return

    device = find_render_device(run.vaapi_device)
    if device is None:
        raise DependencyError("No VAAPI render device found in /dev/dri/")
    if probe_vaapi(ffmpeg, device) is None:
        raise DependencyError(
            "VAAPI test encode failed (device exists but hevc_vaapi unusable)"
        )
