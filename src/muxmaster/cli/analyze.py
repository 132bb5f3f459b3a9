"""CLI command for library analysis."""

from __future__ import annotations

import sys
import threading
from pathlib import Path

import click

from muxmaster.cli.context import load_command_config
from muxmaster.cli.exit_codes import ExitCode
from muxmaster.cli.output import error_exit
from muxmaster.cli.run import cancel_on_interrupt
from muxmaster.config import ConfigSource
from muxmaster.executor.interface import get_tool_path
from muxmaster.introspector import FFprobeIntrospector
from muxmaster.pipeline import (
    analyze_files,
    discover_media_files,
    log_report_summary,
    render_table,
)


@click.command("analyze")
@click.argument("input_path", type=click.Path(path_type=Path))
@click.option("--color/--no-color", default=None, help="Colorize flagged cells.")
@click.pass_context
def analyze_command(
    ctx: click.Context,
    input_path: Path,
    color: bool | None,
) -> None:
    """Report codecs and bitrates with statistical outliers.

    Probes every media file under INPUT_PATH and prints one row per file
    with resolution, codecs, bitrates, HDR, audio stream count and the
    action a run would take. Bitrates beyond 1.5x IQR are flagged [*],
    beyond 3x IQR [!].
    """
    source = ConfigSource()
    if color is not None:
        source.display["color"] = color
    config = load_command_config(ctx, source)

    try:
        files = discover_media_files(input_path)
    except FileNotFoundError as e:
        error_exit(str(e), ExitCode.TARGET_NOT_FOUND)
    if not files:
        click.echo(f"No media files found in {input_path}", err=True)
        return

    if get_tool_path("ffprobe", config.tools.ffprobe) is None:
        error_exit("ffprobe not found on PATH", ExitCode.TOOL_NOT_AVAILABLE)

    introspector = FFprobeIntrospector(config.tools.ffprobe)
    cancel_event = threading.Event()
    with cancel_on_interrupt(cancel_event):
        report = analyze_files(files, introspector, config.run, cancel_event)

    if not report.rows:
        click.echo("No files could be probed", err=True)
    else:
        click.echo()
        for line in render_table(report, config.display):
            click.echo(line)
        click.echo()
        log_report_summary(report)

    if report.interrupted:
        sys.exit(ExitCode.INTERRUPTED)
