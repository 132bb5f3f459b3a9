"""Filename parsing for output naming.

An ordered table of regex rules maps media filenames to a ParsedName. The
first matching rule wins; anything unmatched is treated as a movie titled
after the cleaned file stem.

Specials are numbered within season 0 using fixed offsets:
openings 100+, endings 200+, PVs 300+, specials 400+, menus 500+ and
named extras (recaps, panels) 601-604.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass, replace
from enum import Enum
from pathlib import Path

from muxmaster.naming.cleaning import (
    clean_name,
    parent_season_hint,
    polish,
    seps_to_spaces,
    strip_brackets,
)

SPECIALS_FOLDERS = frozenset(
    {"extras", "extra", "specials", "bonus", "featurettes", "nc"}
)


class MediaType(Enum):
    """Kind of media a filename describes."""

    TV = "tv"
    MOVIE = "movie"


@dataclass(frozen=True)
class ParsedName:
    """Structured naming components parsed from a filename."""

    media_type: MediaType
    show_name: str = ""
    season: int = 0
    episode: int = 0
    movie_name: str = ""
    year: str = ""

    @property
    def is_tv(self) -> bool:
        return self.media_type is MediaType.TV


# Show-name extraction helpers for the SxxExx and 1x01 rules
_STRIP_SXXEXX = re.compile(
    r"[\s._\-]*[Ss][0-9]{1,2}[Ee][0-9]{1,3}([Vv][0-9]+)?[^\s]*.*", re.IGNORECASE
)
_STRIP_1X01 = re.compile(r"[\s._\-]*[0-9]{1,2}[xX][0-9]{1,3}([Vv][0-9]+)?[^\s]*.*")
_STRIP_PARENT_SEASON = re.compile(
    r"[\s._\-]*(season[\s_.\-]*[0-9]{1,2}|s[0-9]{1,2}e[0-9]{1,3}(v[0-9]+)?|s[0-9]{1,2})"
    r"(\s.*)?$",
    re.IGNORECASE,
)
_GREEDY_RECOVERY = re.compile(r"^(.+)\s-\s([0-9]{1,3})$")
_TRAILING_YEAR = re.compile(r"^(.+?)\s+(19[0-9]{2}|20[0-9]{2})$")
_PARENT_YEAR = re.compile(r"\(([0-9]{4}(-[0-9]{4})?)\)")

_SPECIAL_OFFSETS = {"OP": 100, "ED": 200, "PV": 300, "SPECIAL": 400, "MENU": 500}
_NAMED_EXTRAS = {
    "recap": 601,
    "day breakers": 602,
    "bts documentary": 603,
    "convention panel": 604,
}


def _show_from_base(base: str, strip: re.Pattern[str]) -> str:
    return clean_name(strip.sub("", base, count=1))


def _show_from_parent(parent: str) -> str:
    name = _STRIP_PARENT_SEASON.sub("", seps_to_spaces(parent), count=1)
    return name.rstrip(" -").strip()


def _tv(show: str, season: int, episode: int) -> ParsedName:
    return ParsedName(MediaType.TV, show_name=show, season=season, episode=episode)


def _extract_sxxexx(base: str, m: re.Match[str], parent: str) -> ParsedName:
    show = _show_from_base(base, _STRIP_SXXEXX) or _show_from_parent(parent)
    return _tv(show, int(m.group(2)), int(m.group(3)))


def _extract_1x01(base: str, m: re.Match[str], parent: str) -> ParsedName:
    show = _show_from_base(base, _STRIP_1X01) or _show_from_parent(parent)
    return _tv(show, int(m.group(2)), int(m.group(3)))


def _extract_season_episode(base: str, m: re.Match[str], parent: str) -> ParsedName:
    show = clean_name(m.group(1)) or _show_from_parent(parent)
    return _tv(show, int(m.group(2)), int(m.group(3)))


def _extract_season_oped(base: str, m: re.Match[str], parent: str) -> ParsedName:
    number = int(m.group(5)) if m.group(5) else 1
    offset = 200 if m.group(4).upper() == "ED" else 100
    show = clean_name(m.group(1)) or _show_from_parent(parent)
    return _tv(show, int(m.group(2)), offset + number)


def _extract_creditless(base: str, m: re.Match[str], parent: str) -> ParsedName:
    offset = 200 if "ending" in m.group(4).lower() else 100
    return _tv(clean_name(m.group(2)), 0, offset + int(m.group(3)))


def _extract_episode_keyword(base: str, m: re.Match[str], parent: str) -> ParsedName:
    # "Episode 5.5" is a special: season 0, episode 55
    if m.group(5):
        return _tv(clean_name(m.group(2)), 0, int(m.group(3) + m.group(5)))
    return _tv(clean_name(m.group(2)), 1, int(m.group(3)))


def _extract_named_special(base: str, m: re.Match[str], parent: str) -> ParsedName:
    show = clean_name(m.group(1)).replace(" - ", " ")
    offset = _SPECIAL_OFFSETS.get(m.group(2).upper(), 900)
    return _tv(show, 0, offset + int(m.group(3)))


def _extract_bare_special(base: str, m: re.Match[str], parent: str) -> ParsedName:
    show = clean_name(m.group(1)).replace(" - ", " ")
    return _tv(show, 0, _NAMED_EXTRAS.get(m.group(2).lower(), 699))


def _extract_movie_part(base: str, m: re.Match[str], parent: str) -> ParsedName:
    name = strip_brackets(seps_to_spaces(f"{m.group(1)} {m.group(2)} - {m.group(3)}"))
    return ParsedName(MediaType.MOVIE, movie_name=name.strip())


def _extract_anime_dash(base: str, m: re.Match[str], parent: str) -> ParsedName:
    show = m.group(2).strip()
    episode = int(m.group(3))
    recovered = _GREEDY_RECOVERY.match(show)
    if recovered:
        show = recovered.group(1).strip()
        episode = int(recovered.group(2))
    return _tv(clean_name(show), 1, episode)


def _extract_episodic_title(base: str, m: re.Match[str], parent: str) -> ParsedName:
    return _tv(seps_to_spaces(m.group(2)).strip(), 1, int(m.group(3)))


def _extract_bare_number(base: str, m: re.Match[str], parent: str) -> ParsedName:
    return _tv(seps_to_spaces(parent).strip(), 1, int(m.group(1)))


def _extract_group_release(base: str, m: re.Match[str], parent: str) -> ParsedName:
    show = seps_to_spaces(m.group(2)).rstrip(" -").strip()
    trailing = _TRAILING_YEAR.match(show)
    if trailing:
        show = trailing.group(1).strip()
        parent_year = _PARENT_YEAR.search(parent)
        if parent_year:
            show = f"{show} ({parent_year.group(1)})"
    return _tv(show, 1, int(m.group(3)))


def _extract_underscore_anime(base: str, m: re.Match[str], parent: str) -> ParsedName:
    return _tv(m.group(2).replace("_", " ").strip(), 1, int(m.group(3)))


def _extract_movie_year(base: str, m: re.Match[str], parent: str) -> ParsedName:
    return ParsedName(
        MediaType.MOVIE,
        movie_name=seps_to_spaces(m.group(1)).strip(),
        year=m.group(2),
    )


Extractor = Callable[[str, re.Match[str], str], ParsedName]

# Ordered rule table: (name, pattern, extractor). First match wins.
PARSE_RULES: tuple[tuple[str, re.Pattern[str], Extractor], ...] = (
    (
        "sxxexx",
        re.compile(
            r"(^|[^A-Za-z0-9])[Ss]([0-9]{1,2})[Ee]([0-9]{1,3})([Vv][0-9]+)?"
            r"([^A-Za-z0-9]|$)"
        ),
        _extract_sxxexx,
    ),
    (
        "1x01",
        re.compile(r"(^|[^0-9])([0-9]{1,2})[xX]([0-9]{1,3})([Vv][0-9]+)?([^0-9]|$)"),
        _extract_1x01,
    ),
    (
        "season_episode",
        re.compile(
            r"^(.*?)[\s_.\-]*season[\s_.\-]*([0-9]{1,2})"
            r"[\s_.\-]*episode[\s_.\-]*([0-9]{1,3})",
            re.IGNORECASE,
        ),
        _extract_season_episode,
    ),
    (
        "season_op_ed",
        re.compile(
            r"^(.*?)[\s_.\-]*s([0-9]{1,2})[\s_.\-]*(NC)?(OP|ED)([0-9]{0,2})"
            r"([^A-Za-z0-9]|$)",
            re.IGNORECASE,
        ),
        _extract_season_oped,
    ),
    (
        "creditless",
        re.compile(
            r"^(\[.+\]\s*)?(.+)[\s_.\-]+([0-9]{1,3})\s*-\s+.*"
            r"\[(Creditless\s+Opening|Creditless\s+Ending)\]",
            re.IGNORECASE,
        ),
        _extract_creditless,
    ),
    (
        "episode_keyword",
        re.compile(
            r"^(\[.+\]\s*)?(.+)[\s_.\-]+episode[\s_.\-]+"
            r"([0-9]{1,3})([._]([0-9]{1,2}))?"
            r"(\s[^-]*)?\s*-\s+(.+)$",
            re.IGNORECASE,
        ),
        _extract_episode_keyword,
    ),
    (
        "named_special_index",
        re.compile(
            r"^(.+)[\s_.\-]+(OP|ED|PV|Special|Menu)[\s_.\-]*-\s*([0-9]{1,3})"
            r"([^A-Za-z0-9]|$)",
            re.IGNORECASE,
        ),
        _extract_named_special,
    ),
    (
        "named_special_bare",
        re.compile(
            r"^(.+)\s*-\s*(Recap|Day\s+Breakers|BTS\s+Documentary|Convention\s+Panel)$",
            re.IGNORECASE,
        ),
        _extract_bare_special,
    ),
    (
        "movie_part",
        re.compile(r"^(.+\s+The\s+Movie)\s+([0-9]{1,2})\s*-\s*(.+)$", re.IGNORECASE),
        _extract_movie_part,
    ),
    (
        "anime_dash",
        re.compile(r"^(\[.+\])?\s*(.+)\s+-\s*([0-9]{1,3})(\s|\[|v[0-9]|$)"),
        _extract_anime_dash,
    ),
    (
        "episodic_title",
        re.compile(r"^(\[.+\]\s*)?(.+)[\s_.\-]+([0-9]{1,3})'?\s+-\s+(.+)$"),
        _extract_episodic_title,
    ),
    (
        "bare_number_dash",
        re.compile(r"^([0-9]{1,3})'?\s*-\s*(.+)$"),
        _extract_bare_number,
    ),
    (
        "group_release",
        re.compile(r"^(\[[^\]]+\]\s+)(.+)[\s_.\-]+([0-9]{1,3})'?([Vv][0-9]+)?(\s.*)?$"),
        _extract_group_release,
    ),
    (
        "underscore_anime",
        re.compile(r"^(\[.+\])?(.+)_([0-9]{2,3})(_[^.]*)?$"),
        _extract_underscore_anime,
    ),
    (
        "movie_year",
        re.compile(r"(.+)[._\s]\(?((19[0-9]{2}|20[0-9]{2}))\)?"),
        _extract_movie_year,
    ),
)


def is_specials_folder(name: str) -> bool:
    """True for folders holding extras, specials or creditless OP/ED."""
    lower = name.lower()
    return lower in SPECIALS_FOLDERS or lower.startswith(("ncop", "nced"))


def resolve_parent_context(parent_path: Path | str) -> str:
    """Return the directory name used as naming context.

    When the immediate parent is a specials-like folder the grandparent's
    name is used instead.
    """
    path = Path(parent_path)
    if is_specials_folder(path.name):
        grandparent = path.parent.name
        if grandparent:
            return grandparent
    return path.name


def _post_process(parsed: ParsedName, parent: str) -> ParsedName:
    show = polish(parsed.show_name)
    movie = polish(parsed.movie_name)
    season = parsed.season

    if parsed.is_tv and season == 1:
        hint = parent_season_hint(parent)
        if hint > 1:
            season = hint

    if parsed.is_tv and not show:
        show = "Unknown"
    if not parsed.is_tv and not movie:
        movie = "Unknown"
    return replace(parsed, show_name=show, movie_name=movie, season=season)


def parse_filename(path: Path) -> ParsedName:
    """Parse a media file path into naming components.

    Args:
        path: Path to the media file. The parent directory supplies show
            names and season hints when the filename lacks them.

    Returns:
        ParsedName describing a TV episode or a movie.
    """
    base = path.stem
    parent = resolve_parent_context(path.parent)

    for _name, pattern, extract in PARSE_RULES:
        match = pattern.search(base)
        if match is not None:
            return _post_process(extract(base, match, parent), parent)

    fallback = ParsedName(MediaType.MOVIE, movie_name=seps_to_spaces(base).strip())
    return _post_process(fallback, parent)
