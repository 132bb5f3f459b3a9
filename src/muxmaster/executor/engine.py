"""Retry engine.

Drives one file's encode/remux attempts to a terminal phase:

- Inner loop: on failure, classify stderr and apply one fallback fix,
  up to the attempt ceiling. Strict mode fails on the first error.
- Outer loop (encode only): when the output exceeds the size ceiling,
  bump quality and re-encode, up to the quality-pass ceiling. An output
  that is still oversized after the last pass is accepted.

Cancellation is cooperative and checked before every attempt.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from enum import Enum

from muxmaster.executor.errors import RetryAction, diagnostic_tail
from muxmaster.executor.interface import AttemptResult, ExecutionBackend
from muxmaster.executor.retry import RetryPhase, RetryState
from muxmaster.planner.types import Plan

logger = logging.getLogger(__name__)

# Output larger than this percentage of the source triggers a quality bump
SIZE_CEILING_PCT = 105


class OutcomeStatus(Enum):
    """Terminal status of a file."""

    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"  # Not completed; not a failure


@dataclass(frozen=True)
class RetryOutcome:
    """Summary of a finished retry run."""

    status: OutcomeStatus
    attempts: int
    quality_passes: int
    fixes: tuple[RetryAction, ...] = ()
    diagnostics_tail: tuple[str, ...] = ()
    output_size: int | None = None
    vaapi_qp: int | None = None
    cpu_crf: int | None = None

    @property
    def completed(self) -> bool:
        return self.status is OutcomeStatus.COMPLETED


def exceeds_size_ceiling(output_size: int | None, input_size: int) -> bool:
    """Return True when the output is larger than the allowed ceiling."""
    if output_size is None or input_size <= 0:
        return False
    return output_size > input_size * SIZE_CEILING_PCT // 100


class RetryEngine:
    """State machine driving one file through its attempts.

    Each call to :meth:`step` performs exactly one transition and returns
    the new phase; :meth:`run` steps until a terminal phase is reached.
    """

    def __init__(
        self,
        plan: Plan,
        backend: ExecutionBackend,
        *,
        quality_step: int = 2,
        strict: bool = False,
        cancel_event: threading.Event | None = None,
        state: RetryState | None = None,
    ) -> None:
        """Initialize the engine.

        Args:
            plan: Plan for the file.
            backend: Backend that runs attempts.
            quality_step: Quality increase per bump.
            strict: Fail on the first error without classification.
            cancel_event: Set to request cooperative cancellation.
            state: Pre-built state, mainly for tests. Seeded from the plan
                when omitted.
        """
        self.plan = plan
        self.backend = backend
        self.strict = strict
        self.state = state or RetryState.from_plan(plan, quality_step)
        self._cancel_event = cancel_event or threading.Event()
        self._executions = 0
        self._last_result: AttemptResult | None = None
        self._pending_fix = RetryAction.NONE

    @property
    def phase(self) -> RetryPhase:
        return self.state.phase

    @property
    def cancelled(self) -> bool:
        return self._cancel_event.is_set()

    def step(self) -> RetryPhase:
        """Perform one transition.

        Returns:
            The phase after the transition.
        """
        phase = self.state.phase
        if phase.is_terminal:
            return phase

        handler = {
            RetryPhase.READY: self._on_ready,
            RetryPhase.EXECUTING: self._on_executing,
            RetryPhase.CLASSIFY_FAILURE: self._on_classify_failure,
            RetryPhase.APPLY_FIX: self._on_apply_fix,
            RetryPhase.SIZE_CHECK: self._on_size_check,
            RetryPhase.BUMP_QUALITY: self._on_bump_quality,
        }[phase]
        self.state.phase = handler()
        return self.state.phase

    def run(self) -> RetryOutcome:
        """Step until a terminal phase and summarize the result."""
        while not self.state.phase.is_terminal:
            self.step()
        return self._outcome()

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    def _on_ready(self) -> RetryPhase:
        if self.cancelled:
            logger.info("Cancelled before attempt %d", self.state.attempt + 1)
            return RetryPhase.CANCELLED
        return RetryPhase.EXECUTING

    def _on_executing(self) -> RetryPhase:
        self._executions += 1
        result = self.backend.execute(self.plan, self.state)
        self._last_result = result

        if result.success:
            if self.plan.is_encode:
                return RetryPhase.SIZE_CHECK
            return RetryPhase.ACCEPTED

        if self.cancelled:
            return RetryPhase.CANCELLED
        if self.strict:
            logger.error("ffmpeg failed (strict mode, no retries)")
            self._log_tail(result.diagnostics)
            return RetryPhase.FAILED
        return RetryPhase.CLASSIFY_FAILURE

    def _on_classify_failure(self) -> RetryPhase:
        diagnostics = self._last_result.diagnostics if self._last_result else ""
        action = self.state.advance(diagnostics)
        if action is RetryAction.NONE:
            logger.error(
                "ffmpeg failed after %d attempt(s); no applicable fix",
                self.state.attempt,
                extra={"attempt": self.state.attempt},
            )
            self._log_tail(diagnostics)
            return RetryPhase.FAILED
        self._pending_fix = action
        return RetryPhase.APPLY_FIX

    def _on_apply_fix(self) -> RetryPhase:
        self.backend.discard_output(self.plan)
        logger.warning(
            "Retry %d/%d: %s",
            self.state.attempt,
            self.state.max_attempts - 1,
            self._pending_fix.label,
            extra={
                "retry_action": self._pending_fix.label,
                "attempt": self.state.attempt,
                "mux_queue_size": self.state.mux_queue_size,
            },
        )
        self._pending_fix = RetryAction.NONE
        return RetryPhase.READY

    def _on_size_check(self) -> RetryPhase:
        input_size = self.backend.input_size(self.plan)
        output_size = self.backend.output_size(self.plan)
        if exceeds_size_ceiling(output_size, input_size):
            return RetryPhase.BUMP_QUALITY
        return RetryPhase.ACCEPTED

    def _on_bump_quality(self) -> RetryPhase:
        if not self.state.bump_quality():
            logger.warning(
                "Output still larger than source after %d quality pass(es); "
                "keeping result",
                self.state.quality_pass + 1,
            )
            return RetryPhase.ACCEPTED

        self.backend.discard_output(self.plan)
        logger.warning(
            "Output larger than %d%% of source; retrying with "
            "VAAPI_QP=%d CPU_CRF=%d",
            SIZE_CEILING_PCT,
            self.state.vaapi_qp,
            self.state.cpu_crf,
            extra={
                "quality_pass": self.state.quality_pass,
                "vaapi_qp": self.state.vaapi_qp,
                "cpu_crf": self.state.cpu_crf,
            },
        )
        return RetryPhase.READY

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _log_tail(self, diagnostics: str) -> None:
        for line in diagnostic_tail(diagnostics):
            logger.error("  %s", line)

    def _outcome(self) -> RetryOutcome:
        phase = self.state.phase
        if phase is RetryPhase.ACCEPTED:
            status = OutcomeStatus.COMPLETED
        elif phase is RetryPhase.CANCELLED:
            status = OutcomeStatus.CANCELLED
        else:
            status = OutcomeStatus.FAILED

        tail: tuple[str, ...] = ()
        if status is OutcomeStatus.FAILED and self._last_result is not None:
            tail = tuple(diagnostic_tail(self._last_result.diagnostics))

        output_size = None
        if status is OutcomeStatus.COMPLETED:
            output_size = self.backend.output_size(self.plan)

        return RetryOutcome(
            status=status,
            attempts=self._executions,
            quality_passes=self.state.quality_pass,
            fixes=tuple(self.state.applied_fixes),
            diagnostics_tail=tail,
            output_size=output_size,
            vaapi_qp=self.state.vaapi_qp,
            cpu_crf=self.state.cpu_crf,
        )


def run_with_retry(
    plan: Plan,
    backend: ExecutionBackend,
    *,
    quality_step: int = 2,
    strict: bool = False,
    cancel_event: threading.Event | None = None,
) -> RetryOutcome:
    """Drive a plan through the retry engine until it terminates.

    Args:
        plan: Plan for the file.
        backend: Backend that runs attempts.
        quality_step: Quality increase per bump.
        strict: Fail on the first error.
        cancel_event: Cooperative cancellation signal.

    Returns:
        RetryOutcome describing the terminal state.
    """
    engine = RetryEngine(
        plan,
        backend,
        quality_step=quality_step,
        strict=strict,
        cancel_event=cancel_event,
    )
    return engine.run()
