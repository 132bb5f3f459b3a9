"""Batch runner.

Processes discovered files one at a time: validate, probe, name, plan and
execute with retries. Cancellation is cooperative through a shared
``threading.Event`` that a SIGINT handler sets.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import replace
from pathlib import Path

from muxmaster.config.models import MuxmasterConfig
from muxmaster.core.formatting import (
    format_bitrate_label,
    format_bytes,
    format_duration,
)
from muxmaster.domain.enums import Action, Container, EncoderMode, HDRMode
from muxmaster.domain.models import MediaDescriptor
from muxmaster.executor.engine import OutcomeStatus, run_with_retry
from muxmaster.executor.ffmpeg import FFmpegBackend
from muxmaster.executor.interface import ExecutionBackend
from muxmaster.introspector.ffprobe import FFprobeIntrospector
from muxmaster.introspector.interface import (
    MediaIntrospectionError,
    MediaIntrospector,
)
from muxmaster.logging import file_context
from muxmaster.naming import (
    CollisionResolver,
    YearVariantIndex,
    get_output_path,
    parse_filename,
)
from muxmaster.pipeline.discover import discover_media_files
from muxmaster.pipeline.stats import (
    FileStatus,
    RunStats,
    bitrate_tier,
    classify_bitrate,
)
from muxmaster.planner.builder import build_plan
from muxmaster.planner.estimation import estimate_bitrate
from muxmaster.planner.types import Plan

logger = logging.getLogger(__name__)

# Files smaller than this are treated as corrupt
MIN_FILE_SIZE = 1000


class BatchRunner:
    """Runs a batch of files through planning and execution."""

    def __init__(
        self,
        config: MuxmasterConfig,
        introspector: MediaIntrospector | None = None,
        backend: ExecutionBackend | None = None,
        cancel_event: threading.Event | None = None,
    ) -> None:
        """Initialize the runner.

        Args:
            config: Full configuration.
            introspector: Media prober. Defaults to ffprobe.
            backend: Execution backend. Defaults to ffmpeg.
            cancel_event: Shared cancellation signal.
        """
        self.config = config
        self.introspector = introspector or FFprobeIntrospector(config.tools.ffprobe)
        self.backend = backend or FFmpegBackend(
            config.run, config.display, config.tools.ffmpeg
        )
        self.cancel_event = cancel_event or threading.Event()

    def request_cancel(self) -> None:
        """Ask the runner to stop after the current attempt."""
        self.cancel_event.set()

    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set()

    def run(self, input_path: Path, output_dir: Path) -> RunStats:
        """Process every media file under ``input_path``.

        Args:
            input_path: Input directory or single file.
            output_dir: Output root directory.

        Returns:
            RunStats for the batch.
        """
        stats = RunStats()
        files = discover_media_files(input_path)
        stats.total = len(files)

        year_index = YearVariantIndex.from_files(files)
        resolver = CollisionResolver()
        self._log_batch_header(stats.total)

        for index, path in enumerate(files, start=1):
            if self.cancelled:
                logger.warning(
                    "Interrupted; %d file(s) not processed", stats.total - index + 1
                )
                stats.interrupted = True
                break
            with file_context(index, stats.total, path):
                self.process_file(path, output_dir, stats, year_index, resolver)

        if self.cancelled:
            stats.interrupted = True
        self._log_summary(stats)
        return stats

    def process_file(
        self,
        path: Path,
        output_dir: Path,
        stats: RunStats,
        year_index: YearVariantIndex | None = None,
        resolver: CollisionResolver | None = None,
    ) -> FileStatus:
        """Process one file and record its outcome in ``stats``.

        Returns:
            The file's terminal status.
        """
        status, input_bytes, output_bytes = self._process(
            path,
            output_dir,
            year_index or YearVariantIndex(),
            resolver or CollisionResolver(),
        )
        stats.record(status, input_bytes, output_bytes)
        return status

    def _process(
        self,
        path: Path,
        output_dir: Path,
        year_index: YearVariantIndex,
        resolver: CollisionResolver,
    ) -> tuple[FileStatus, int, int]:
        run = self.config.run
        logger.info("Processing %s", path.name)

        try:
            input_size = path.stat().st_size
        except OSError:
            logger.error("File not found: %s", path)
            return FileStatus.FAILED, 0, 0
        if input_size < MIN_FILE_SIZE:
            logger.error("File too small (possibly corrupt): %s", path)
            return FileStatus.FAILED, 0, 0

        try:
            media = self.introspector.get_file_info(path)
        except MediaIntrospectionError as e:
            logger.error("Cannot probe file (possibly corrupt): %s", e)
            return FileStatus.FAILED, 0, 0

        if not media.has_video:
            logger.warning("No video stream found, skipping")
            return FileStatus.SKIPPED, 0, 0

        output_path = self.resolve_output_path(path, output_dir, year_index, resolver)

        if self.config.display.show_file_stats:
            log_file_stats(media)
        log_bitrate_outlier(media)

        plan = build_plan(media, run, input_path=path, output_path=output_path)
        if plan.action_note:
            logger.warning("  %s", plan.action_note)
        logger.debug("  Quality: %s", plan.quality_note)
        if plan.is_encode and self.config.display.show_file_stats:
            log_estimate(media, plan)

        if run.skip_existing and output_path.exists():
            logger.warning("Skip (exists): %s", output_path.name)
            return FileStatus.SKIPPED, 0, 0

        if plan.action is Action.REMUX:
            logger.info(
                "Remuxing (copy HEVC, encode non-AAC audio via %s): %s",
                run.audio_encoder,
                path.name,
            )
        else:
            logger.info("Encoding: %s", path.name)
        logger.info("  -> %s", output_path)
        log_audio_plan(media, plan)

        if run.dry_run:
            verb = "remux" if plan.action is Action.REMUX else "encode"
            logger.info("[DRY] Would %s", verb)
            return FileStatus.for_action(plan.action), 0, 0

        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error("Cannot create output directory: %s", e)
            return FileStatus.FAILED, 0, 0

        start = time.monotonic()
        try:
            outcome = run_with_retry(
                plan,
                self.backend,
                quality_step=run.quality_retry_step,
                strict=run.strict_mode,
                cancel_event=self.cancel_event,
            )
        except BaseException:
            # No partial output may survive an aborted attempt
            self.backend.discard_output(plan)
            raise

        if outcome.status is OutcomeStatus.CANCELLED:
            self.backend.discard_output(plan)
            logger.warning("Interrupted: %s", path.name)
            return FileStatus.CANCELLED, 0, 0
        if outcome.status is OutcomeStatus.FAILED:
            self.backend.discard_output(plan)
            label = "Remux" if plan.action is Action.REMUX else "Encode"
            logger.error("%s failed", label)
            return FileStatus.FAILED, 0, 0

        output_size = outcome.output_size or 0
        ratio = output_size * 100 // input_size if input_size > 0 else 100
        logger.info(
            "%s in %s (%d%% of original)",
            "Remuxed" if plan.action is Action.REMUX else "Encoded",
            format_duration(time.monotonic() - start),
            ratio,
            extra={
                "attempts": outcome.attempts,
                "quality_passes": outcome.quality_passes,
            },
        )
        return FileStatus.for_action(plan.action), input_size, output_size

    def resolve_output_path(
        self,
        path: Path,
        output_dir: Path,
        year_index: YearVariantIndex,
        resolver: CollisionResolver,
    ) -> Path:
        """Derive the unique output path for ``path``."""
        parsed = parse_filename(path)
        if parsed.is_tv:
            harmonized = year_index.harmonize(parsed.show_name)
            if harmonized != parsed.show_name:
                logger.debug(
                    "Harmonized show name: '%s' -> '%s'", parsed.show_name, harmonized
                )
                parsed = replace(parsed, show_name=harmonized)
        container = self.config.run.output_container
        requested = get_output_path(parsed, output_dir, container)
        return resolver.resolve(path, requested)

    def _log_batch_header(self, total: int) -> None:
        run = self.config.run
        logger.info("Found %d files", total)
        if run.encoder_mode is EncoderMode.VAAPI:
            profile = run.vaapi_profile
        else:
            profile = run.cpu_profile
        logger.info(
            "Mode: %s (HEVC %s), QP/CRF: %d",
            run.encoder_mode.value,
            profile,
            run.active_quality,
        )
        if run.quality_override is not None:
            logger.info(
                "Quality mode: manual fixed override (%s=%d)",
                run.mode_label,
                run.quality_override,
            )
        elif run.smart_quality:
            logger.info("Quality mode: smart per-file adaptation")
        else:
            logger.info("Quality mode: fixed defaults")

        logger.info("Container: %s", run.output_container.value.upper())
        logger.info(
            "Audio: AAC passthrough below 320 kbps, otherwise %s at %s",
            run.audio_encoder,
            run.audio_bitrate,
        )
        if run.hdr_mode is HDRMode.PRESERVE:
            logger.info("HDR: Preserve metadata when present")
        else:
            logger.info("HDR: Tonemap to SDR")
        if run.keep_subtitles:
            if run.output_container is Container.MP4:
                logger.info("Subtitles: Text subs only (mov_text for MP4)")
            else:
                logger.info("Subtitles: Copy all streams")
        if run.keep_attachments and run.output_container is not Container.MP4:
            logger.info("Attachments: Copy fonts/images")
        if run.strict_mode:
            logger.info("Retry policy: Strict mode (no auto-retry)")
        if run.dry_run:
            logger.info("Dry run: no files will be written")

    def _log_summary(self, stats: RunStats) -> None:
        logger.info(
            "Done: %d encoded, %d remuxed, %d skipped, %d failed, %d cancelled",
            stats.encoded,
            stats.remuxed,
            stats.skipped,
            stats.failed,
            stats.cancelled,
        )
        logger.info("Total files processed: %d of %d", stats.processed, stats.total)
        if self.config.run.dry_run:
            logger.info("Total space saved: n/a (dry run)")
            return
        saved = stats.space_saved
        if saved >= 0:
            logger.info(
                "Total space saved: %s (input %s -> output %s)",
                format_bytes(saved),
                format_bytes(stats.input_bytes),
                format_bytes(stats.output_bytes),
            )
        else:
            logger.warning(
                "Total space saved: -%s (overall output is larger)",
                format_bytes(-saved),
            )


def log_file_stats(media: MediaDescriptor) -> None:
    """Log a one-line summary of the source streams."""
    video = media.video
    if video is None:
        return
    suffix = ""
    if video.is_hdr:
        suffix += " [HDR]"
    if video.is_interlaced:
        suffix += " [Interlaced]"
    logger.info(
        "  Video: %s | %s | %s%s",
        media.resolution_label,
        format_bitrate_label(media.video_bitrate // 1000),
        video.codec or "unknown",
        suffix,
    )
    logger.info(
        "  Streams: %d audio, %d subtitle, %d attachment",
        len(media.audio),
        len(media.subtitles),
        media.attachment_count,
    )


def log_bitrate_outlier(media: MediaDescriptor) -> None:
    """Warn when the video bitrate falls outside its resolution tier."""
    video = media.video
    if video is None:
        return
    kbps = media.video_bitrate // 1000
    verdict = classify_bitrate(video.pixels, kbps)
    if verdict == "normal":
        return
    tier = bitrate_tier(video.pixels)
    logger.warning(
        "  Bitrate outlier (%s): %d kb/s for %s; expected %d-%d kb/s (%s)",
        verdict,
        kbps,
        media.resolution_label,
        tier.low_kbps,
        tier.high_kbps,
        tier.label,
    )


def log_estimate(media: MediaDescriptor, plan: Plan) -> None:
    """Log the display-only output bitrate estimate."""
    video = media.video
    if video is None:
        return
    quality = plan.vaapi_qp if plan.encoder_mode is EncoderMode.VAAPI else plan.cpu_crf
    estimate = estimate_bitrate(
        quality,
        media.video_bitrate,
        video.codec,
        video.width,
        video.height,
        plan.encoder_mode,
    )
    logger.info("  Estimated output: %s", estimate.describe())


def log_audio_plan(media: MediaDescriptor, plan: Plan) -> None:
    """Log input and planned output bitrate for each audio stream."""
    audio = plan.audio
    if audio.no_audio:
        return
    planned = {s.stream_index: s for s in audio.streams}
    for position, stream in enumerate(media.audio):
        in_label = f"{stream.bitrate // 1000} kbps" if stream.bitrate > 0 else "unknown"
        stream_plan = planned.get(position)
        if audio.copy_all or (stream_plan is not None and stream_plan.copy):
            out_label = "copy"
        elif stream_plan is not None:
            out_label = stream_plan.bitrate
        else:
            out_label = "n/a"
        logger.info(
            "  Audio[%d]: %s | in: %s | out: %s",
            stream.index,
            stream.codec,
            in_label,
            out_label,
        )
