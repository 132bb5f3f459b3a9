"""Muxmaster: batch HEVC transcoding with adaptive retry."""

__version__ = "0.1.0"
