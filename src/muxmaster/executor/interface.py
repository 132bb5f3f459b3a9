"""Execution backend protocol and tool resolution.

This module defines the contract between the retry engine and whatever
actually runs ffmpeg, plus helpers to locate external tools.
"""

from __future__ import annotations

import os
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from muxmaster.executor.retry import RetryState
    from muxmaster.planner.types import Plan


class ToolNotFoundError(RuntimeError):
    """Raised when a required external tool cannot be located."""

    pass


@dataclass(frozen=True)
class AttemptResult:
    """Result of a single ffmpeg attempt."""

    success: bool
    """True if the tool exited cleanly."""

    diagnostics: str = ""
    """Captured stderr, used for failure classification."""

    return_code: int = 0


class ExecutionBackend(Protocol):
    """Protocol for running one encode/remux attempt.

    The retry engine only reads ``AttemptResult.diagnostics``; everything
    about how the tool is invoked belongs to the backend.
    """

    def execute(self, plan: Plan, state: RetryState) -> AttemptResult:
        """Run one attempt built from the plan and the current retry state."""
        ...

    def discard_output(self, plan: Plan) -> None:
        """Delete any (partial) output left by the previous attempt."""
        ...

    def output_size(self, plan: Plan) -> int | None:
        """Return the output size in bytes, or None if it does not exist."""
        ...

    def input_size(self, plan: Plan) -> int:
        """Return the source size in bytes (0 if unknown)."""
        ...


# =============================================================================
# Tool Resolution Functions
# =============================================================================


def get_tool_path(tool_name: str, configured: Path | None = None) -> Path | None:
    """Get path to a tool, or None if not available.

    A configured path wins when it points at an executable file; otherwise
    the system PATH is searched.

    Args:
        tool_name: Name of the tool (e.g. "ffmpeg").
        configured: Optional explicit path from configuration.

    Returns:
        Path to the tool or None if not available.
    """
    if configured is not None:
        candidate = Path(configured).expanduser()
        if candidate.is_file() and os.access(candidate, os.X_OK):
            return candidate
    found = shutil.which(tool_name)
    return Path(found) if found else None


def require_tool(tool_name: str, configured: Path | None = None) -> Path:
    """Get path to a required tool, raising an error if not available.

    Args:
        tool_name: Name of the tool to find.
        configured: Optional explicit path from configuration.

    Returns:
        Path to the tool executable.

    Raises:
        ToolNotFoundError: If the tool is not available.
    """
    path = get_tool_path(tool_name, configured)
    if path is None:
        raise ToolNotFoundError(
            f"Required tool not available: {tool_name}. "
            f"Install ffmpeg or set MUXMASTER_{tool_name.upper()}_PATH."
        )
    return path
