"""Per-file context for structured logging.

Uses contextvars so every log record emitted while a file is processed
carries its position in the batch and its path.
"""

from __future__ import annotations

import contextvars
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Generator

_file_index: contextvars.ContextVar[int | None] = contextvars.ContextVar(
    "file_index", default=None
)
_file_total: contextvars.ContextVar[int | None] = contextvars.ContextVar(
    "file_total", default=None
)
_file_path: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "file_path", default=None
)


def set_file_context(
    index: int,
    total: int | None = None,
    file_path: Path | str | None = None,
) -> None:
    """Set the current file context.

    Args:
        index: 1-based position of the file in the batch.
        total: Number of files in the batch.
        file_path: Full path to the file being processed, or None.
    """
    _file_index.set(index)
    _file_total.set(total)
    _file_path.set(str(file_path) if file_path is not None else None)


def clear_file_context() -> None:
    """Clear the current file context."""
    _file_index.set(None)
    _file_total.set(None)
    _file_path.set(None)


def get_file_context() -> tuple[int | None, int | None, str | None]:
    """Get current file context.

    Returns:
        Tuple of (index, total, file_path), any may be None.
    """
    return _file_index.get(), _file_total.get(), _file_path.get()


@contextmanager
def file_context(
    index: int,
    total: int | None = None,
    file_path: Path | str | None = None,
) -> Generator[None, None, None]:
    """Context manager that tags log records with the file being processed.

    The previous context is restored on exit.

    Example:
        with file_context(3, 120, "/media/in/show.mkv"):
            logger.info("Encoding")  # "[F003/120] ..."
    """
    previous = get_file_context()
    try:
        set_file_context(index, total, file_path)
        yield
    finally:
        _file_index.set(previous[0])
        _file_total.set(previous[1])
        _file_path.set(previous[2])


def format_file_tag(index: int | None, total: int | None) -> str:
    """Build the compact text tag, e.g. ``[F003/120] `` or ``[F003] ``."""
    if index is None:
        return ""
    if total:
        return f"[F{index:03d}/{total}] "
    return f"[F{index:03d}] "


class FileContextFilter(logging.Filter):
    """Logging filter that injects file context into log records.

    Adds file_index, file_total and file_path for JSON output, plus a
    formatted file_tag for the text format.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        index, total, file_path = get_file_context()

        record.file_index = index
        record.file_total = total
        record.file_path = file_path
        record.file_tag = format_file_tag(index, total)

        return True
