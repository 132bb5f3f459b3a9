"""CLI module for Muxmaster."""

from pathlib import Path

import click


@click.group()
@click.version_option(package_name="muxmaster")
@click.option(
    "--log-level",
    type=click.Choice(["debug", "info", "warning", "error"], case_sensitive=False),
    default=None,
    help="Override log level (default: info).",
)
@click.option(
    "--log-file",
    type=click.Path(path_type=Path),
    default=None,
    help="Override log file path.",
)
@click.option(
    "--log-json",
    is_flag=True,
    default=False,
    help="Use JSON log format.",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(path_type=Path),
    default=None,
    help="Config file (default: ~/.muxmaster/config.toml).",
)
@click.option(
    "--profile",
    default=None,
    help="Named profile from ~/.muxmaster/profiles/.",
)
@click.pass_context
def main(
    ctx: click.Context,
    log_level: str | None,
    log_file: Path | None,
    log_json: bool,
    config_path: Path | None,
    profile: str | None,
) -> None:
    """Muxmaster - Batch HEVC transcoding with adaptive retry."""
    ctx.ensure_object(dict)
    ctx.obj["log_level"] = log_level.lower() if log_level else None
    ctx.obj["log_file"] = log_file
    ctx.obj["log_json"] = log_json
    ctx.obj["config_path"] = config_path
    ctx.obj["profile"] = profile


# Defer import to avoid circular dependency
def _register_commands():
    from muxmaster.cli.analyze import analyze_command
    from muxmaster.cli.check import check_command
    from muxmaster.cli.run import run_command

    main.add_command(run_command)
    main.add_command(analyze_command)
    main.add_command(check_command)


_register_commands()
