"""Tests for ffmpeg failure classification."""

from muxmaster.executor.errors import (
    FAILURE_PATTERNS,
    RetryAction,
    classify_failure,
    diagnostic_tail,
)

ATTACHMENT_ERR = "[matroska @ 0x55] Attachment stream 3 has no filename tag"
SUBTITLE_ERR = "Subtitle codec 94213 is not supported"
MUX_ERR = "Too many packets buffered for output stream 0:1."
TIMESTAMP_ERR = "Application provided invalid, non monotonically increasing dts"


class TestClassifyFailure:
    """Tests for classify_failure()."""

    def test_each_category(self):
        assert classify_failure(ATTACHMENT_ERR) is RetryAction.DROP_ATTACHMENTS
        assert classify_failure(SUBTITLE_ERR) is RetryAction.DROP_SUBTITLES
        assert classify_failure(MUX_ERR) is RetryAction.INCREASE_MUX_QUEUE
        assert classify_failure(TIMESTAMP_ERR) is RetryAction.FIX_TIMESTAMPS

    def test_unclassifiable(self):
        assert classify_failure("Conversion failed!") is RetryAction.NONE
        assert classify_failure("") is RetryAction.NONE

    def test_priority_order(self):
        diagnostics = "\n".join([TIMESTAMP_ERR, MUX_ERR, ATTACHMENT_ERR])
        assert classify_failure(diagnostics) is RetryAction.DROP_ATTACHMENTS

    def test_case_insensitive(self):
        assert (
            classify_failure("too many PACKETS buffered for output stream 0:0")
            is RetryAction.INCREASE_MUX_QUEUE
        )
        assert classify_failure("NON-MONOTONOUS DTS") is RetryAction.FIX_TIMESTAMPS

    def test_applied_categories_are_skipped(self):
        diagnostics = "\n".join([ATTACHMENT_ERR, MUX_ERR])

        def pending(action):
            return action is not RetryAction.DROP_ATTACHMENTS

        assert classify_failure(diagnostics, pending) is RetryAction.INCREASE_MUX_QUEUE

    def test_nothing_pending(self):
        assert classify_failure(ATTACHMENT_ERR, lambda a: False) is RetryAction.NONE

    def test_subtitle_phrasings(self):
        for text in (
            "Could not find tag for codec hdmv_pgs_subtitle in stream #2, "
            "codec not currently supported in container: subtitle",
            "Subtitle encoding currently only possible from text to text "
            "or bitmap to bitmap",
            "Unknown encoder 'foo'",
        ):
            assert classify_failure(text) is RetryAction.DROP_SUBTITLES


class TestFailurePatterns:
    def test_table_order_is_fixed(self):
        assert [action for _, action in FAILURE_PATTERNS] == [
            RetryAction.DROP_ATTACHMENTS,
            RetryAction.DROP_SUBTITLES,
            RetryAction.INCREASE_MUX_QUEUE,
            RetryAction.FIX_TIMESTAMPS,
        ]


class TestDiagnosticTail:
    def test_keeps_last_non_blank_lines(self):
        text = "\n".join(f"line {i}" for i in range(30)) + "\n\n  \n"
        tail = diagnostic_tail(text)
        assert len(tail) == 20
        assert tail[0] == "line 10"
        assert tail[-1] == "line 29"

    def test_short_input(self):
        assert diagnostic_tail("a\n\nb") == ["a", "b"]

    def test_custom_count(self):
        assert diagnostic_tail("a\nb\nc", count=1) == ["c"]
