"""Centralized exit codes for all CLI commands."""

from enum import IntEnum


class ExitCode(IntEnum):
    """Exit codes for Muxmaster CLI commands."""

    SUCCESS = 0
    GENERAL_ERROR = 1

    # Invalid config file, profile or option combination
    CONFIG_ERROR = 2

    # ffmpeg/ffprobe missing or the configured encoder unusable
    TOOL_NOT_AVAILABLE = 3

    TARGET_NOT_FOUND = 4

    # The batch completed but at least one file failed
    PARTIAL_FAILURE = 5

    # Ctrl+C / SIGINT
    INTERRUPTED = 130
