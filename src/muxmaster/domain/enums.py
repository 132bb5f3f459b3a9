"""Domain enums for Muxmaster.

This module contains enums shared by the planner, executor and pipeline
layers.
"""

from enum import Enum


class Action(Enum):
    """What to do with a source file."""

    ENCODE = "encode"  # Re-encode video to HEVC
    REMUX = "remux"  # Copy compressed streams into the target container
    SKIP = "skip"  # Leave the file alone


class EncoderMode(Enum):
    """Video encoder backend.

    Each mode has its own quality scale: VAAPI uses QP, CPU uses CRF.
    """

    VAAPI = "vaapi"  # Hardware encoding via hevc_vaapi
    CPU = "cpu"  # Software encoding via libx265


class Container(Enum):
    """Output container format."""

    MKV = "mkv"
    MP4 = "mp4"

    @property
    def extension(self) -> str:
        """Return the file extension including the leading dot."""
        return f".{self.value}"


class HDRMode(Enum):
    """How HDR sources are handled."""

    PRESERVE = "preserve"  # Keep HDR color metadata
    TONEMAP = "tonemap"  # Convert to SDR with a tonemap filter chain


class HDRType(Enum):
    """Type of dynamic range detected in a video stream."""

    SDR = "sdr"
    """Standard dynamic range."""

    HDR10 = "hdr10"
    """PQ or HLG transfer, or BT.2020 primaries."""
