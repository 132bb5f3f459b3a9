"""CLI command for batch transcoding.

This module provides the 'muxmaster run' command that discovers media under
an input directory and encodes, remuxes or skips each file into a mirrored
Show/Season or Movie layout under the output directory.
"""

from __future__ import annotations

import logging
import signal
import sys
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

import click

from muxmaster.cli.context import load_command_config
from muxmaster.cli.exit_codes import ExitCode
from muxmaster.cli.output import error_exit
from muxmaster.config import ConfigSource, validate_run_paths
from muxmaster.executor.interface import ToolNotFoundError
from muxmaster.introspector.interface import MediaIntrospectionError
from muxmaster.pipeline import BatchRunner
from muxmaster.tools import DependencyError, check_dependencies

logger = logging.getLogger(__name__)

QUALITY_RANGE = click.IntRange(0, 51)

CANCEL_SIGNALS = (signal.SIGINT, signal.SIGTERM)

# (option name, RunConfig field, help)
RUN_TOGGLES = (
    ("smart-quality", "smart_quality", "Per-file quality adaptation."),
    ("skip-existing", "skip_existing", "Skip files whose output already exists."),
    ("skip-hevc", "skip_hevc", "Remux sources that are already HEVC."),
    ("clean-timestamps", "clean_timestamps", "Regenerate timestamps on input."),
    (
        "match-audio-layout",
        "match_audio_layout",
        "Keep the source channel layout when re-encoding audio.",
    ),
    ("subtitles", "keep_subtitles", "Keep subtitle streams."),
    ("attachments", "keep_attachments", "Keep attachments (fonts, images)."),
    ("deinterlace", "deinterlace_auto", "Deinterlace interlaced sources."),
)

DISPLAY_TOGGLES = (
    ("file-stats", "show_file_stats", "Log per-file stream statistics."),
    ("show-fps", "show_ffmpeg_fps", "Show ffmpeg progress and fps."),
)


def _toggle_options(toggles: tuple[tuple[str, str, str], ...]):
    """Attach --name/--no-name flags that default to None (not given)."""

    def decorator(func):
        for name, dest, help_text in reversed(toggles):
            func = click.option(
                f"--{name}/--no-{name}",
                dest,
                default=None,
                help=help_text,
            )(func)
        return func

    return decorator


def build_cli_source(
    options: dict[str, Any],
    *,
    verbose: bool,
    color: bool | None,
) -> ConfigSource:
    """Translate command options into a ConfigSource.

    Options left unset (None or False flags) do not override lower layers.
    """
    source = ConfigSource()
    encoding = source.encoding
    for key, dest in (
        ("mode", "encoder_mode"),
        ("container", "output_container"),
        ("hdr", "hdr_mode"),
        ("vaapi_device", "vaapi_device"),
        ("cpu_preset", "cpu_preset"),
        ("audio_bitrate", "audio_bitrate"),
        ("audio_channels", "audio_channels"),
    ):
        if options.get(key) is not None:
            encoding[dest] = options[key]
    if options.get("dry_run"):
        encoding["dry_run"] = True
    if options.get("strict"):
        encoding["strict_mode"] = True
    for _, dest, _ in RUN_TOGGLES:
        if options.get(dest) is not None:
            encoding[dest] = options[dest]

    for _, dest, _ in DISPLAY_TOGGLES:
        if options.get(dest) is not None:
            source.display[dest] = options[dest]
    if verbose:
        source.display["verbose"] = True
    if color is not None:
        source.display["color"] = color
    return source


@contextmanager
def cancel_on_interrupt(event: threading.Event) -> Iterator[None]:
    """Route SIGINT and SIGTERM to ``event`` while the block runs.

    The first signal requests cancellation; a second one aborts at once.
    """

    def handler(signum: int, frame) -> None:
        if event.is_set():
            raise KeyboardInterrupt
        logger.warning("Interrupt received; stopping after the current file")
        event.set()

    old_handlers = {sig: signal.signal(sig, handler) for sig in CANCEL_SIGNALS}
    try:
        yield
    finally:
        for sig, old_handler in old_handlers.items():
            signal.signal(sig, old_handler)


@click.command("run")
@click.argument("input_path", type=click.Path(path_type=Path))
@click.argument("output_dir", type=click.Path(path_type=Path))
@click.option(
    "--mode",
    type=click.Choice(["vaapi", "cpu"], case_sensitive=False),
    default=None,
    help="Encoder backend (default: vaapi).",
)
@click.option(
    "--container",
    type=click.Choice(["mkv", "mp4"], case_sensitive=False),
    default=None,
    help="Output container (default: mkv).",
)
@click.option(
    "--quality",
    type=QUALITY_RANGE,
    default=None,
    help="Fixed quality for the active mode (disables smart quality).",
)
@click.option("--vaapi-qp", type=QUALITY_RANGE, default=None, help="Fixed VAAPI QP.")
@click.option("--cpu-crf", type=QUALITY_RANGE, default=None, help="Fixed x265 CRF.")
@click.option(
    "--hdr",
    type=click.Choice(["preserve", "tonemap"], case_sensitive=False),
    default=None,
    help="HDR handling (default: preserve).",
)
@click.option("--vaapi-device", default=None, help="VAAPI render node.")
@click.option("--cpu-preset", default=None, help="x265 preset (default: slow).")
@click.option(
    "--audio-bitrate",
    default=None,
    help="AAC bitrate when re-encoding, e.g. 256k.",
)
@click.option(
    "--audio-channels",
    type=click.IntRange(min=1),
    default=None,
    help="Channel count when not matching the source layout.",
)
@_toggle_options(RUN_TOGGLES)
@_toggle_options(DISPLAY_TOGGLES)
@click.option(
    "--dry-run",
    "-n",
    is_flag=True,
    default=False,
    help="Plan and log every file without writing anything.",
)
@click.option(
    "--strict",
    is_flag=True,
    default=False,
    help="Disable automatic retries.",
)
@click.option("--verbose", "-v", is_flag=True, default=False, help="Debug output.")
@click.option("--color/--no-color", default=None, help="Colorize output.")
@click.pass_context
def run_command(
    ctx: click.Context,
    input_path: Path,
    output_dir: Path,
    quality: int | None,
    vaapi_qp: int | None,
    cpu_crf: int | None,
    verbose: bool,
    color: bool | None,
    **options: Any,
) -> None:
    """Transcode a media library.

    INPUT_PATH is a directory (or single file) to process. OUTPUT_DIR
    receives the organized library and must not be inside INPUT_PATH.

    \b
    Exit codes:
      0   - All files succeeded or were skipped
      2   - Invalid configuration
      3   - ffmpeg/ffprobe missing or encoder unusable
      4   - Input path not found or output inside input
      5   - At least one file failed
      130 - Interrupted
    """
    source = build_cli_source(options, verbose=verbose, color=color)
    config = load_command_config(
        ctx,
        source,
        quality=quality,
        vaapi_qp=vaapi_qp,
        cpu_crf=cpu_crf,
        verbose=verbose,
    )

    errors = validate_run_paths(input_path, output_dir)
    if errors:
        error_exit("; ".join(errors), ExitCode.TARGET_NOT_FOUND)

    if not config.run.dry_run:
        try:
            check_dependencies(config)
        except (ToolNotFoundError, DependencyError) as e:
            error_exit(str(e), ExitCode.TOOL_NOT_AVAILABLE)
        try:
            output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            error_exit(
                f"Cannot create output directory {output_dir}: {e}",
                ExitCode.GENERAL_ERROR,
            )

    cancel_event = threading.Event()
    try:
        runner = BatchRunner(config, cancel_event=cancel_event)
    except MediaIntrospectionError as e:
        error_exit(str(e), ExitCode.TOOL_NOT_AVAILABLE)
    with cancel_on_interrupt(cancel_event):
        try:
            stats = runner.run(input_path, output_dir)
        except KeyboardInterrupt:
            logger.warning("Aborted")
            sys.exit(ExitCode.INTERRUPTED)
        except FileNotFoundError as e:
            error_exit(str(e), ExitCode.TARGET_NOT_FOUND)

    if stats.interrupted:
        sys.exit(ExitCode.INTERRUPTED)
    if stats.failed:
        sys.exit(ExitCode.PARTIAL_FAILURE)
