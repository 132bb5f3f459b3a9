"""Structured logging module for Muxmaster.

Provides configurable logging with JSON format support and file rotation.
Log records carry the batch position of the file being processed.
"""

from muxmaster.logging.config import configure_logging
from muxmaster.logging.context import (
    FileContextFilter,
    clear_file_context,
    file_context,
    format_file_tag,
    get_file_context,
    set_file_context,
)
from muxmaster.logging.handlers import JSONFormatter

__all__ = [
    "FileContextFilter",
    "JSONFormatter",
    "clear_file_context",
    "configure_logging",
    "file_context",
    "format_file_tag",
    "get_file_context",
    "set_file_context",
]
