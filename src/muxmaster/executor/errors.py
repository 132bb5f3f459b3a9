"""Classification of ffmpeg failures into fixable categories.

The pattern table is ordered: when several categories match the same
stderr, the first applicable entry wins. The phrases mirror ffmpeg's own
diagnostic vocabulary, so the order and wording are kept stable.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from enum import Enum


class RetryAction(Enum):
    """Fallback fix applied before the next attempt."""

    NONE = "none"
    DROP_ATTACHMENTS = "skip attachments"
    DROP_SUBTITLES = "skip subtitles"
    INCREASE_MUX_QUEUE = "increase mux queue"
    FIX_TIMESTAMPS = "fix timestamps"

    @property
    def label(self) -> str:
        return self.value


ATTACHMENT_TAG_PATTERN = re.compile(
    r"Attachment stream \d+ has no (filename|mimetype) tag", re.IGNORECASE
)

SUBTITLE_PATTERN = re.compile(
    r"Subtitle codec .* is not supported"
    r"|Could not find tag for codec .* in stream .*subtitle"
    r"|Error initializing output stream .*subtitle"
    r"|Error while opening encoder for output stream .*subtitle"
    r"|Subtitle encoding currently only possible from text to text or bitmap to bitmap"
    r"|Unknown encoder"
    r"|Codec .* is not supported",
    re.IGNORECASE,
)

MUX_QUEUE_PATTERN = re.compile(
    r"Too many packets buffered for output stream", re.IGNORECASE
)

TIMESTAMP_PATTERN = re.compile(
    r"Non-monotonous DTS"
    r"|non monotonically increasing dts"
    r"|invalid, non monotonically increasing dts"
    r"|DTS .*out of order"
    r"|PTS .*out of order"
    r"|pts has no value"
    r"|missing PTS"
    r"|Timestamps are unset",
    re.IGNORECASE,
)

# Priority order: attachments, subtitles, mux queue, timestamps
FAILURE_PATTERNS: tuple[tuple[re.Pattern[str], RetryAction], ...] = (
    (ATTACHMENT_TAG_PATTERN, RetryAction.DROP_ATTACHMENTS),
    (SUBTITLE_PATTERN, RetryAction.DROP_SUBTITLES),
    (MUX_QUEUE_PATTERN, RetryAction.INCREASE_MUX_QUEUE),
    (TIMESTAMP_PATTERN, RetryAction.FIX_TIMESTAMPS),
)

DIAGNOSTIC_TAIL_LINES = 20


def classify_failure(
    diagnostics: str,
    is_pending: Callable[[RetryAction], bool] = lambda action: True,
) -> RetryAction:
    """Pick the fix for a failed attempt.

    Args:
        diagnostics: Captured ffmpeg stderr.
        is_pending: Predicate telling whether a fix can still be applied.
            Categories already applied are skipped.

    Returns:
        The first pending, matching action, or RetryAction.NONE.
    """
    for pattern, action in FAILURE_PATTERNS:
        if is_pending(action) and pattern.search(diagnostics):
            return action
    return RetryAction.NONE


def diagnostic_tail(diagnostics: str, count: int = DIAGNOSTIC_TAIL_LINES) -> list[str]:
    """Return the last ``count`` non-blank lines of stderr."""
    lines = [line for line in diagnostics.splitlines() if line.strip()]
    return lines[-count:]
