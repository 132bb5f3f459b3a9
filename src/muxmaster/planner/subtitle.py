"""Subtitle and attachment planning."""

from __future__ import annotations

from muxmaster.domain.enums import Container
from muxmaster.domain.models import SubtitleStream
from muxmaster.planner.types import AttachmentPlan, SubtitlePlan

# MP4 only carries text subtitles, as mov_text
MP4_SUBTITLE_CODEC = "mov_text"


def plan_subtitles(
    streams: tuple[SubtitleStream, ...],
    container: Container,
    keep_subtitles: bool,
) -> SubtitlePlan:
    """Decide which subtitle streams are carried and with which codec.

    MKV carries any subtitle codec, so everything is copied. MP4 needs
    text subtitles: bitmap streams are dropped (never converted) and, when
    present, only the text streams are mapped explicitly.

    Args:
        streams: Source subtitle streams in order.
        container: Output container.
        keep_subtitles: Whether subtitles are wanted at all.

    Returns:
        SubtitlePlan describing inclusion.
    """
    if not keep_subtitles or not streams:
        return SubtitlePlan(include=False)

    if container is Container.MKV:
        return SubtitlePlan(include=True, codec="copy")

    if not any(s.is_bitmap for s in streams):
        return SubtitlePlan(include=True, codec=MP4_SUBTITLE_CODEC)

    text_indices = tuple(s.index for s in streams if not s.is_bitmap)
    if not text_indices:
        return SubtitlePlan(include=False)
    return SubtitlePlan(
        include=True,
        codec=MP4_SUBTITLE_CODEC,
        skip_bitmap=True,
        text_indices=text_indices,
    )


def plan_attachments(container: Container, keep_attachments: bool) -> AttachmentPlan:
    """Attachments (fonts, cover art) survive only in MKV."""
    return AttachmentPlan(include=keep_attachments and container is Container.MKV)
