"""CLI command for checking the encoding toolchain."""

from __future__ import annotations

import sys

import click

from muxmaster.cli.context import load_command_config
from muxmaster.cli.exit_codes import ExitCode
from muxmaster.cli.output import format_status
from muxmaster.config import ConfigSource
from muxmaster.tools import run_system_check


@click.command("check")
@click.option(
    "--mode",
    type=click.Choice(["vaapi", "cpu"], case_sensitive=False),
    default=None,
    help="Encoder mode whose components are required.",
)
@click.option("--vaapi-device", default=None, help="VAAPI render node to test.")
@click.pass_context
def check_command(
    ctx: click.Context,
    mode: str | None,
    vaapi_device: str | None,
) -> None:
    """Check ffmpeg, ffprobe and encoder availability.

    Runs tiny test encodes for VAAPI, libx265 and the configured AAC
    encoder. Exits non-zero when a component required by the encoder mode
    is missing.
    """
    source = ConfigSource()
    if mode is not None:
        source.encoding["encoder_mode"] = mode
    if vaapi_device is not None:
        source.encoding["vaapi_device"] = vaapi_device
    config = load_command_config(ctx, source)

    report = run_system_check(config)

    click.echo("Muxmaster System Check")
    click.echo("=" * 40)
    click.echo()
    for item in report.items:
        suffix = "" if item.required else " (optional)"
        click.echo(f"  {format_status(item.ok)} {item.name}: {item.detail}{suffix}")

    if report.hevc_encoders:
        click.echo()
        click.echo("HEVC Encoders:")
        click.echo("-" * 20)
        for line in report.hevc_encoders:
            click.echo(f"  {line}")

    click.echo()
    if not report.ok:
        click.echo(
            f"⚠ Required components for {config.run.encoder_mode.value} mode "
            "are missing."
        )
        sys.exit(ExitCode.TOOL_NOT_AVAILABLE)
    click.echo("✓ Ready to encode.")
