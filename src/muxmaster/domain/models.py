"""Domain models for Muxmaster.

These models describe a probed media file. They are produced by the
introspector and never mutated afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from muxmaster.domain.enums import HDRType

# Profiles that every HEVC-capable client decodes
EDGE_SAFE_HEVC_PROFILES = frozenset({"main", "main 10", "main10"})
EDGE_SAFE_PIXEL_FORMATS = frozenset({"yuv420p", "yuv420p10le"})

HDR_TRANSFERS = frozenset({"smpte2084", "arib-std-b67"})
HDR_PRIMARIES = "bt2020"

INTERLACED_FIELD_ORDERS = frozenset({"tt", "bb", "tb", "bt"})

# Image-based subtitle codecs that MP4 cannot carry as mov_text
BITMAP_SUBTITLE_CODECS = frozenset(
    {"hdmv_pgs_subtitle", "dvd_subtitle", "dvb_subtitle", "xsub"}
)


@dataclass(frozen=True)
class VideoStream:
    """Primary video stream characteristics."""

    index: int
    codec: str = ""
    profile: str = ""
    pix_fmt: str = ""
    width: int = 0
    height: int = 0
    bitrate: int = 0  # bits per second, 0 when unknown
    field_order: str = ""
    color_transfer: str = ""
    color_primaries: str = ""
    color_space: str = ""

    @property
    def pixels(self) -> int:
        """Return the frame area in pixels, or 0 when unknown."""
        if self.width <= 0 or self.height <= 0:
            return 0
        return self.width * self.height

    @property
    def hdr_type(self) -> HDRType:
        """Classify the stream as HDR or SDR from its color metadata."""
        if self.color_transfer in HDR_TRANSFERS:
            return HDRType.HDR10
        if self.color_primaries == HDR_PRIMARIES:
            return HDRType.HDR10
        return HDRType.SDR

    @property
    def is_hdr(self) -> bool:
        return self.hdr_type is not HDRType.SDR

    @property
    def is_interlaced(self) -> bool:
        """Return True when the field order marks an interlaced source."""
        return self.field_order.strip().lower() in INTERLACED_FIELD_ORDERS

    @property
    def is_edge_safe_hevc(self) -> bool:
        """Return True when profile and pixel format are universally decodable."""
        profile = self.profile.strip().lower()
        return (
            profile in EDGE_SAFE_HEVC_PROFILES
            and self.pix_fmt.strip().lower() in EDGE_SAFE_PIXEL_FORMATS
        )


@dataclass(frozen=True)
class AudioStream:
    """An audio stream in the source file."""

    index: int
    codec: str = ""
    channels: int = 0
    sample_rate: int = 0
    bitrate: int = 0
    language: str = ""
    is_default: bool = False


@dataclass(frozen=True)
class SubtitleStream:
    """A subtitle stream in the source file."""

    index: int
    codec: str = ""
    language: str = ""

    @property
    def is_bitmap(self) -> bool:
        """Return True for image-based subtitle formats."""
        return self.codec in BITMAP_SUBTITLE_CODECS


@dataclass(frozen=True)
class FormatInfo:
    """Container-level information."""

    format_name: str = ""
    duration: float = 0.0
    size: int = 0
    bitrate: int = 0


@dataclass(frozen=True)
class MediaDescriptor:
    """Probed description of one media file.

    Audio and subtitle streams keep source order. ``video`` is None when
    the file has no usable video stream; callers skip such files before
    planning.
    """

    video: VideoStream | None
    audio: tuple[AudioStream, ...] = ()
    subtitles: tuple[SubtitleStream, ...] = ()
    attachment_count: int = 0
    format: FormatInfo = field(default_factory=FormatInfo)

    @property
    def has_video(self) -> bool:
        return self.video is not None

    @property
    def video_bitrate(self) -> int:
        """Return the video bitrate, falling back to the container bitrate."""
        if self.video is not None and self.video.bitrate > 0:
            return self.video.bitrate
        return self.format.bitrate

    @property
    def has_bitmap_subtitles(self) -> bool:
        return any(s.is_bitmap for s in self.subtitles)

    @property
    def resolution_label(self) -> str:
        """Return ``WxH`` or ``unknown``."""
        if self.video is None or self.video.pixels == 0:
            return "unknown"
        return f"{self.video.width}x{self.video.height}"
