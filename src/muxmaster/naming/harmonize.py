"""Show-name harmonization across a batch.

When a show appears only as "Show (2019)" somewhere in the batch, bare
"Show" references elsewhere are upgraded to the year-tagged name so all
episodes land in one folder.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from pathlib import Path

from muxmaster.naming.parser import parse_filename

SHOW_YEAR_TAG = re.compile(r"^(.+)\s+\((19[0-9]{2}|20[0-9]{2})(-[0-9]{4})?\)$")


def split_show_year(show_name: str) -> tuple[str, str]:
    """Split "Show (2019)" into ("Show", "2019").

    Returns:
        (base, year_tag); year_tag is empty when the name has none.
    """
    match = SHOW_YEAR_TAG.match(show_name)
    if match is None:
        return show_name, ""
    return match.group(1).strip(), match.group(2) + (match.group(3) or "")


class YearVariantIndex:
    """Maps bare show names to the year-tagged variants seen in a batch."""

    def __init__(self) -> None:
        self._variants: dict[str, list[str]] = {}

    @classmethod
    def from_files(cls, files: Iterable[Path]) -> YearVariantIndex:
        index = cls()
        for path in files:
            parsed = parse_filename(path)
            if parsed.is_tv and parsed.show_name:
                index.register(parsed.show_name)
        return index

    def register(self, show_name: str) -> None:
        base, year_tag = split_show_year(show_name)
        if not year_tag or not base:
            return
        variants = self._variants.setdefault(base, [])
        if show_name not in variants:
            variants.append(show_name)

    def variants(self, base: str) -> list[str]:
        return list(self._variants.get(base, []))

    def harmonize(self, show_name: str) -> str:
        """Upgrade a bare show name when exactly one year variant exists."""
        _, year_tag = split_show_year(show_name)
        if year_tag:
            return show_name
        variants = self._variants.get(show_name, [])
        if len(variants) == 1:
            return variants[0]
        return show_name
