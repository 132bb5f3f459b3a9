"""Output naming: filename parsing, output paths and collision handling."""

from muxmaster.naming.collision import CollisionResolver
from muxmaster.naming.harmonize import YearVariantIndex, split_show_year
from muxmaster.naming.outputpath import get_output_path
from muxmaster.naming.parser import (
    PARSE_RULES,
    MediaType,
    ParsedName,
    parse_filename,
    resolve_parent_context,
)

__all__ = [
    "CollisionResolver",
    "MediaType",
    "PARSE_RULES",
    "ParsedName",
    "YearVariantIndex",
    "get_output_path",
    "parse_filename",
    "resolve_parent_context",
    "split_show_year",
]
