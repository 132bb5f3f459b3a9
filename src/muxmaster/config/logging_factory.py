"""Logging configuration factory.

Merges CLI logging options over the configured LoggingConfig.
"""

from __future__ import annotations

from pathlib import Path

from muxmaster.config.models import LoggingConfig


def build_logging_config(
    base: LoggingConfig,
    *,
    level: str | None = None,
    file: Path | None = None,
    format: str | None = None,
    include_stderr: bool | None = None,
) -> LoggingConfig:
    """Build LoggingConfig by merging base config with CLI overrides.

    Args:
        base: Base logging configuration (config file, profile, env).
        level: Override log level. If None, uses base.level.
        file: Override log file path. If None, uses base.file.
        format: Override log format ("text" or "json"). If None, uses base.format.
        include_stderr: Override stderr inclusion.

    Returns:
        New LoggingConfig with overrides applied.

    Raises:
        ValueError: If an override is invalid.
    """
    return LoggingConfig(
        level=level if level is not None else base.level,
        file=file if file is not None else base.file,
        format=format if format is not None else base.format,
        include_stderr=(
            include_stderr if include_stderr is not None else base.include_stderr
        ),
        max_bytes=base.max_bytes,
        backup_count=base.backup_count,
    )


def configure_logging_from_cli(
    base: LoggingConfig,
    *,
    level: str | None = None,
    file: Path | None = None,
    format: str | None = None,
    include_stderr: bool | None = None,
) -> LoggingConfig:
    """Apply CLI overrides to ``base`` and configure logging.

    Returns:
        The LoggingConfig that was applied.
    """
    from muxmaster.logging import configure_logging

    final_config = build_logging_config(
        base,
        level=level,
        file=file,
        format=format,
        include_stderr=include_stderr,
    )
    configure_logging(final_config)
    return final_config
