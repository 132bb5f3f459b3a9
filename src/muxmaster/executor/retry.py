"""Per-file retry state.

RetryState carries the fallback flags and quality values for one file's
sequence of ffmpeg attempts. It is created from a Plan, mutated only
through :meth:`RetryState.advance` and :meth:`RetryState.bump_quality`,
and discarded when the file reaches a terminal phase.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from muxmaster.domain.enums import EncoderMode
from muxmaster.executor.errors import RetryAction, classify_failure
from muxmaster.planner.quality import clamp_cpu_crf, clamp_vaapi_qp
from muxmaster.planner.types import MUX_QUEUE_DEFAULT, MUX_QUEUE_ESCALATED, Plan

MAX_ATTEMPTS = 4
MAX_QUALITY_PASSES = 2


class RetryPhase(Enum):
    """Named phases of the retry state machine."""

    READY = "ready"
    EXECUTING = "executing"
    CLASSIFY_FAILURE = "classify_failure"
    APPLY_FIX = "apply_fix"
    SIZE_CHECK = "size_check"
    BUMP_QUALITY = "bump_quality"
    ACCEPTED = "accepted"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_PHASES


TERMINAL_PHASES = frozenset(
    {RetryPhase.ACCEPTED, RetryPhase.FAILED, RetryPhase.CANCELLED}
)


@dataclass
class RetryState:
    """Mutable retry state for one file."""

    vaapi_qp: int
    cpu_crf: int
    include_attachments: bool = True
    include_subtitles: bool = True
    mux_queue_size: int = MUX_QUEUE_DEFAULT
    timestamp_fix: bool = False
    quality_step: int = 2

    attempt: int = 0
    max_attempts: int = MAX_ATTEMPTS
    quality_pass: int = 0
    max_quality_passes: int = MAX_QUALITY_PASSES

    phase: RetryPhase = RetryPhase.READY
    applied_fixes: list[RetryAction] = field(default_factory=list)

    @classmethod
    def from_plan(cls, plan: Plan, quality_step: int) -> RetryState:
        """Seed a fresh state from a plan."""
        return cls(
            vaapi_qp=plan.vaapi_qp,
            cpu_crf=plan.cpu_crf,
            include_attachments=plan.seed.include_attachments,
            include_subtitles=plan.seed.include_subtitles,
            mux_queue_size=plan.seed.mux_queue_size,
            timestamp_fix=plan.seed.timestamp_fix,
            quality_step=quality_step,
        )

    def quality_for(self, mode: EncoderMode) -> int:
        """Return the current quality value on ``mode``'s scale."""
        return self.vaapi_qp if mode is EncoderMode.VAAPI else self.cpu_crf

    def is_pending(self, action: RetryAction) -> bool:
        """Return True if ``action`` has not been applied yet."""
        if action is RetryAction.DROP_ATTACHMENTS:
            return self.include_attachments
        if action is RetryAction.DROP_SUBTITLES:
            return self.include_subtitles
        if action is RetryAction.INCREASE_MUX_QUEUE:
            return self.mux_queue_size < MUX_QUEUE_ESCALATED
        if action is RetryAction.FIX_TIMESTAMPS:
            return not self.timestamp_fix
        return False

    def apply(self, action: RetryAction) -> None:
        """Toggle the flag behind ``action``."""
        if action is RetryAction.DROP_ATTACHMENTS:
            self.include_attachments = False
        elif action is RetryAction.DROP_SUBTITLES:
            self.include_subtitles = False
        elif action is RetryAction.INCREASE_MUX_QUEUE:
            self.mux_queue_size = MUX_QUEUE_ESCALATED
        elif action is RetryAction.FIX_TIMESTAMPS:
            self.timestamp_fix = True
        else:
            return
        self.applied_fixes.append(action)

    def advance(self, diagnostics: str) -> RetryAction:
        """Record a failed attempt and choose the fix for the next one.

        The attempt counter is incremented first; once it reaches the
        ceiling no fix is returned. Otherwise the first pending category
        matching the diagnostics is applied. At most one fix is applied
        per call and a category is never applied twice.

        Args:
            diagnostics: Captured ffmpeg stderr of the failed attempt.

        Returns:
            The applied action, or RetryAction.NONE if the file should fail.
        """
        self.attempt += 1
        if self.attempt >= self.max_attempts:
            return RetryAction.NONE

        action = classify_failure(diagnostics, self.is_pending)
        self.apply(action)
        return action

    def bump_quality(self) -> bool:
        """Raise both quality values by one step for another encode pass.

        Fix flags persist across passes; only the attempt counter resets.

        Returns:
            True if a bump was applied, False if the pass ceiling is reached
            (state unchanged).
        """
        if self.quality_pass + 1 >= self.max_quality_passes:
            return False
        self.quality_pass += 1
        self.vaapi_qp = clamp_vaapi_qp(self.vaapi_qp + self.quality_step)
        self.cpu_crf = clamp_cpu_crf(self.cpu_crf + self.quality_step)
        self.attempt = 0
        return True
