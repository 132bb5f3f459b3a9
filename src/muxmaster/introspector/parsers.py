"""Pure parsing functions for ffprobe JSON output.

These functions transform ffprobe JSON data into Muxmaster domain objects.
All functions are pure (no I/O, no side effects) for easy testing.
"""

from __future__ import annotations

import logging
from typing import Any

from muxmaster.domain.models import (
    AudioStream,
    FormatInfo,
    MediaDescriptor,
    SubtitleStream,
    VideoStream,
)

logger = logging.getLogger(__name__)


def parse_int(value: Any) -> int:
    """Parse an ffprobe numeric field, returning 0 when absent or invalid.

    ffprobe reports most numbers as strings ("128000"), some as ints.
    """
    if value is None:
        return 0
    try:
        return int(str(value).strip())
    except ValueError:
        return 0


def parse_float(value: Any) -> float:
    if value is None:
        return 0.0
    try:
        return float(str(value).strip())
    except ValueError:
        return 0.0


def _tags(stream: dict[str, Any]) -> dict[str, str]:
    tags = stream.get("tags") or {}
    return {str(k).lower(): str(v) for k, v in tags.items()}


def _disposition(stream: dict[str, Any], key: str) -> bool:
    return (stream.get("disposition") or {}).get(key) == 1


def parse_video_stream(stream: dict[str, Any]) -> VideoStream:
    return VideoStream(
        index=parse_int(stream.get("index")),
        codec=stream.get("codec_name") or "",
        profile=stream.get("profile") or "",
        pix_fmt=stream.get("pix_fmt") or "",
        width=parse_int(stream.get("width")),
        height=parse_int(stream.get("height")),
        bitrate=parse_int(stream.get("bit_rate")),
        field_order=stream.get("field_order") or "",
        color_transfer=stream.get("color_transfer") or "",
        color_primaries=stream.get("color_primaries") or "",
        color_space=stream.get("color_space") or "",
    )


def parse_audio_stream(stream: dict[str, Any]) -> AudioStream:
    return AudioStream(
        index=parse_int(stream.get("index")),
        codec=stream.get("codec_name") or "",
        channels=parse_int(stream.get("channels")),
        sample_rate=parse_int(stream.get("sample_rate")),
        bitrate=parse_int(stream.get("bit_rate")),
        language=_tags(stream).get("language", ""),
        is_default=_disposition(stream, "default"),
    )


def parse_subtitle_stream(stream: dict[str, Any]) -> SubtitleStream:
    return SubtitleStream(
        index=parse_int(stream.get("index")),
        codec=stream.get("codec_name") or "",
        language=_tags(stream).get("language", ""),
    )


def parse_format(data: dict[str, Any]) -> FormatInfo:
    return FormatInfo(
        format_name=data.get("format_name") or "",
        duration=parse_float(data.get("duration")),
        size=parse_int(data.get("size")),
        bitrate=parse_int(data.get("bit_rate")),
    )


def parse_ffprobe_output(data: dict[str, Any]) -> MediaDescriptor:
    """Build a MediaDescriptor from ffprobe JSON.

    The primary video stream is the first video stream that is not an
    attached picture (cover art).

    Args:
        data: Parsed ``ffprobe -show_streams -show_format`` JSON.

    Returns:
        MediaDescriptor with streams in source order.
    """
    video: VideoStream | None = None
    audio: list[AudioStream] = []
    subtitles: list[SubtitleStream] = []
    attachments = 0

    for stream in data.get("streams", []):
        codec_type = stream.get("codec_type")
        if codec_type == "video":
            if video is None and not _disposition(stream, "attached_pic"):
                video = parse_video_stream(stream)
        elif codec_type == "audio":
            audio.append(parse_audio_stream(stream))
        elif codec_type == "subtitle":
            subtitles.append(parse_subtitle_stream(stream))
        elif codec_type == "attachment":
            attachments += 1
        else:
            logger.debug("Ignoring stream of type %s", codec_type)

    return MediaDescriptor(
        video=video,
        audio=tuple(audio),
        subtitles=tuple(subtitles),
        attachment_count=attachments,
        format=parse_format(data.get("format") or {}),
    )
