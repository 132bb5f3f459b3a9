"""Name cleaning applied after rule extraction.

Strips release tags and bracket groups, title-cases, and applies season
hints taken from the parent directory.
"""

import re

# First known release tag through end of string is dropped
RELEASE_TAG_PATTERN = re.compile(
    r"(^|[\s._\-])("
    r"720p|1080p|2160p|4K|UHD|"
    r"WEB-DL|WEBRip|BluRay|BDRip|BD|DVDRip|HDTV|"
    r"x264|x265|HEVC|H\.?264|H\.?265|"
    r"AAC|AC3|DTS|DTS-HD|TrueHD|FLAC|EAC3|DD\+?|Atmos|"
    r"10bit|HDR|HDR10|HDR10\+|DV|DoVi|"
    r"Dual\.?Audio|MULTI|REMUX|PROPER|REPACK|"
    r"EMBER|NF|AMZN|DSNP|HMAX|ATVP"
    r")([\s._\-]|$)",
    re.IGNORECASE,
)

BRACKET_PATTERN = re.compile(r"\[[^\]]*\]")

SEASON_HINT_FULL = re.compile(
    r"(^|[^a-z0-9])season[\s_.\-]*([0-9]{1,2})([^a-z0-9]|$)", re.IGNORECASE
)
SEASON_HINT_SHORT = re.compile(
    r"(^|[^a-z0-9])s([0-9]{1,2})([^a-z0-9]|$)", re.IGNORECASE
)

_SEPARATORS = str.maketrans("._", "  ")


def seps_to_spaces(value: str) -> str:
    """Replace dots and underscores with spaces."""
    return value.translate(_SEPARATORS)


def clean_name(value: str) -> str:
    """Convert separators to spaces and trim trailing dashes and whitespace."""
    return seps_to_spaces(value).rstrip(" -").strip()


def strip_release_tags(value: str) -> str:
    """Remove the first release tag and everything after it."""
    match = RELEASE_TAG_PATTERN.search(value)
    if match is None:
        return value
    return value[: match.start()].strip()


def strip_brackets(value: str) -> str:
    """Remove all ``[bracketed]`` groups."""
    return BRACKET_PATTERN.sub("", value).strip()


def title_case(value: str) -> str:
    """Capitalize letters that follow a space, hyphen or underscore.

    Unlike ``str.title`` the rest of each word is left untouched, so
    "DanMachi" and "x-men" become "DanMachi" and "X-Men".
    """
    result = []
    prev = " "
    for char in value:
        if char.isalpha() and prev in " -_":
            result.append(char.upper())
        else:
            result.append(char)
        prev = char
    return "".join(result)


def parent_season_hint(parent: str) -> int:
    """Extract a season number from a directory like "Season 02" or "S2".

    Returns:
        The season number, or 0 when the name carries no hint.
    """
    match = SEASON_HINT_FULL.search(parent) or SEASON_HINT_SHORT.search(parent)
    if match is None:
        return 0
    return int(match.group(2))


def polish(value: str) -> str:
    """Apply tag stripping, bracket removal and title-casing."""
    return title_case(strip_brackets(strip_release_tags(value)).strip())
