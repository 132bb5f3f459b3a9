"""Execution layer: ffmpeg invocation and the retry state machine.

Public API:
- RetryState, RetryPhase: Per-file retry state
- RetryEngine, run_with_retry: Drive attempts to a terminal outcome
- FAILURE_PATTERNS, classify_failure: Ordered failure classification
- build_ffmpeg_args: Build one attempt's command line
- FFmpegBackend: subprocess-based ExecutionBackend
"""

from muxmaster.executor.command import build_ffmpeg_args
from muxmaster.executor.engine import (
    OutcomeStatus,
    RetryEngine,
    RetryOutcome,
    run_with_retry,
)
from muxmaster.executor.errors import (
    FAILURE_PATTERNS,
    RetryAction,
    classify_failure,
    diagnostic_tail,
)
from muxmaster.executor.ffmpeg import FFmpegBackend
from muxmaster.executor.interface import (
    AttemptResult,
    ExecutionBackend,
    ToolNotFoundError,
    get_tool_path,
    require_tool,
)
from muxmaster.executor.retry import RetryPhase, RetryState

__all__ = [
    "AttemptResult",
    "ExecutionBackend",
    "FAILURE_PATTERNS",
    "FFmpegBackend",
    "OutcomeStatus",
    "RetryAction",
    "RetryEngine",
    "RetryOutcome",
    "RetryPhase",
    "RetryState",
    "ToolNotFoundError",
    "build_ffmpeg_args",
    "classify_failure",
    "diagnostic_tail",
    "get_tool_path",
    "require_tool",
    "run_with_retry",
]
