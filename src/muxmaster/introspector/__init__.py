"""Media introspection via ffprobe."""

from muxmaster.introspector.ffprobe import FFprobeIntrospector
from muxmaster.introspector.interface import (
    MediaIntrospectionError,
    MediaIntrospector,
)
from muxmaster.introspector.parsers import parse_ffprobe_output

__all__ = [
    "FFprobeIntrospector",
    "MediaIntrospectionError",
    "MediaIntrospector",
    "parse_ffprobe_output",
]
