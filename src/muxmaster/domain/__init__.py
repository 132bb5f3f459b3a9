"""Domain models and enums for Muxmaster.

This package contains the core types shared across layers:

- Media models: MediaDescriptor, VideoStream, AudioStream, SubtitleStream,
  FormatInfo
- Enums: Action, EncoderMode, Container, HDRMode, HDRType

Usage:
    from muxmaster.domain import MediaDescriptor, VideoStream
    from muxmaster.domain import Action, EncoderMode
"""

from .enums import Action, Container, EncoderMode, HDRMode, HDRType
from .models import (
    BITMAP_SUBTITLE_CODECS,
    AudioStream,
    FormatInfo,
    MediaDescriptor,
    SubtitleStream,
    VideoStream,
)

__all__ = [
    # Models
    "AudioStream",
    "FormatInfo",
    "MediaDescriptor",
    "SubtitleStream",
    "VideoStream",
    "BITMAP_SUBTITLE_CODECS",
    # Enums
    "Action",
    "Container",
    "EncoderMode",
    "HDRMode",
    "HDRType",
]
