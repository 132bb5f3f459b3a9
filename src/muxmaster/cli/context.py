"""Per-invocation configuration loading for CLI commands.

The group callback stores global options in ``ctx.obj``; each command
calls :func:`load_command_config` with its own overrides so a single
MuxmasterConfig is built and logging is configured exactly once.
"""

from __future__ import annotations

import logging
from pathlib import Path

import click

from muxmaster.cli.exit_codes import ExitCode
from muxmaster.cli.output import error_exit
from muxmaster.config import (
    ConfigError,
    ConfigSource,
    MuxmasterConfig,
    ProfileError,
    configure_logging_from_cli,
    get_config,
)

logger = logging.getLogger(__name__)


def load_command_config(
    ctx: click.Context,
    cli_source: ConfigSource | None = None,
    *,
    quality: int | None = None,
    vaapi_qp: int | None = None,
    cpu_crf: int | None = None,
    verbose: bool = False,
) -> MuxmasterConfig:
    """Build the effective configuration and configure logging.

    Args:
        ctx: Click context carrying the global options.
        cli_source: Command-line overrides for this command.
        quality: Generic --quality override for the active mode.
        vaapi_qp: --vaapi-qp override.
        cpu_crf: --cpu-crf override.
        verbose: Lower the log level to debug unless --log-level is given.

    Returns:
        The merged configuration. Exits with CONFIG_ERROR when invalid.
    """
    obj = ctx.ensure_object(dict)
    config_path: Path | None = obj.get("config_path")
    strict = config_path is not None
    if strict and not config_path.exists():
        error_exit(f"Config file not found: {config_path}", ExitCode.CONFIG_ERROR)

    try:
        config = get_config(
            config_path=config_path,
            profile=obj.get("profile"),
            cli_source=cli_source,
            quality=quality,
            vaapi_qp=vaapi_qp,
            cpu_crf=cpu_crf,
            env_reader=obj.get("env_reader"),
            strict=strict,
        )
    except (ConfigError, ProfileError) as e:
        error_exit(str(e), ExitCode.CONFIG_ERROR)

    level = obj.get("log_level")
    if level is None and verbose:
        level = "debug"
    try:
        configure_logging_from_cli(
            config.logging,
            level=level,
            file=obj.get("log_file"),
            format="json" if obj.get("log_json") else None,
        )
    except ValueError as e:
        error_exit(f"Invalid logging configuration: {e}", ExitCode.CONFIG_ERROR)

    profile = obj.get("profile")
    if profile:
        logger.debug("Using profile: %s", profile)
    return config
