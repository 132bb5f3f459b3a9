"""ffmpeg execution backend.

Runs one attempt per call, capturing stderr for failure classification
and optionally mirroring it live to the terminal.
"""

from __future__ import annotations

import logging
import subprocess  # nosec B404 - subprocess is required for FFmpeg invocation
import sys
from pathlib import Path

from muxmaster.config.models import DisplayConfig, RunConfig
from muxmaster.executor.command import build_ffmpeg_args
from muxmaster.executor.interface import AttemptResult, require_tool
from muxmaster.executor.retry import RetryState
from muxmaster.planner.types import Plan

logger = logging.getLogger(__name__)

# Seconds to wait after SIGTERM before killing an interrupted ffmpeg
TERMINATE_TIMEOUT = 5.0


def cleanup_output_file(path: Path) -> None:
    """Remove a partial output file, logging any errors.

    Args:
        path: Path to the file to remove.
    """
    if path.exists():
        try:
            path.unlink()
            logger.debug("Removed partial output: %s", path)
        except OSError as e:
            logger.warning("Could not remove partial output %s: %s", path, e)


def stop_process(
    process: subprocess.Popen, timeout: float = TERMINATE_TIMEOUT
) -> None:
    """Terminate ``process``, killing it if it ignores SIGTERM."""
    process.terminate()
    try:
        process.wait(timeout=timeout)
    except subprocess.TimeoutExpired:
        process.kill()
        process.wait()  # Clean up zombie process


class FFmpegBackend:
    """ExecutionBackend implementation that shells out to ffmpeg."""

    def __init__(
        self,
        config: RunConfig,
        display: DisplayConfig | None = None,
        ffmpeg_path: Path | None = None,
    ) -> None:
        """Initialize the backend.

        Args:
            config: Run configuration used to build commands.
            display: Display settings; live stderr is mirrored when
                verbose or show_ffmpeg_fps is set.
            ffmpeg_path: Explicit ffmpeg path. None searches PATH lazily.
        """
        self._config = config
        self._display = display or DisplayConfig()
        self._configured_path = ffmpeg_path
        self._tool_path: Path | None = None

    @property
    def tool_path(self) -> Path:
        """Get path to ffmpeg, verifying availability.

        Raises:
            ToolNotFoundError: If ffmpeg is not available.
        """
        if self._tool_path is None:
            self._tool_path = require_tool("ffmpeg", self._configured_path)
        return self._tool_path

    @property
    def _mirror_stderr(self) -> bool:
        return self._display.verbose or self._display.show_ffmpeg_fps

    def build_command(self, plan: Plan, state: RetryState) -> list[str]:
        return build_ffmpeg_args(
            plan, state, self._config, self._display, ffmpeg_path=self.tool_path
        )

    def execute(self, plan: Plan, state: RetryState) -> AttemptResult:
        """Run ffmpeg once for the plan under the current retry state.

        Args:
            plan: Plan for the file.
            state: Current retry state.

        Returns:
            AttemptResult with captured stderr.
        """
        cmd = self.build_command(plan, state)
        logger.debug("Running: %s", " ".join(cmd))

        try:
            process = subprocess.Popen(  # nosec B603 - args built from validated plan
                cmd,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.PIPE,
                text=True,
                errors="replace",
            )
        except OSError as e:
            logger.error("Failed to start ffmpeg: %s", e)
            return AttemptResult(success=False, diagnostics=str(e), return_code=-1)

        stderr_lines: list[str] = []
        assert process.stderr is not None
        try:
            # Universal newlines turn ffmpeg's carriage-return progress into lines
            for line in process.stderr:
                stderr_lines.append(line)
                if self._mirror_stderr:
                    sys.stderr.write(line)
                    sys.stderr.flush()
        except BaseException:
            logger.warning("Stopping ffmpeg (pid %d)", process.pid)
            stop_process(process)
            raise
        process.wait()

        return AttemptResult(
            success=process.returncode == 0,
            diagnostics="".join(stderr_lines),
            return_code=process.returncode,
        )

    def discard_output(self, plan: Plan) -> None:
        if plan.output_path is not None:
            cleanup_output_file(plan.output_path)

    def output_size(self, plan: Plan) -> int | None:
        if plan.output_path is None:
            return None
        try:
            return plan.output_path.stat().st_size
        except OSError:
            return None

    def input_size(self, plan: Plan) -> int:
        if plan.input_path is None:
            return 0
        try:
            return plan.input_path.stat().st_size
        except OSError:
            return 0
