"""Output path construction."""

from __future__ import annotations

from pathlib import Path

from muxmaster.domain.enums import Container
from muxmaster.naming.parser import ParsedName


def get_output_path(parsed: ParsedName, output_dir: Path, container: Container) -> Path:
    """Build the canonical output path for a parsed name.

    TV:    <out>/<Show>/Season XX/<Show> - SXXEXX.<ext>
    Movie: <out>/<Name (Year)>/<Name (Year)>.<ext>, or <Name>/<Name>.<ext>
           without a year.

    Args:
        parsed: Parsed naming components.
        output_dir: Output root directory.
        container: Output container, which supplies the extension.

    Returns:
        Output file path.
    """
    ext = container.extension
    if parsed.is_tv:
        season = f"{parsed.season:02d}"
        episode = f"{parsed.episode:02d}"
        folder = output_dir / parsed.show_name / f"Season {season}"
        return folder / f"{parsed.show_name} - S{season}E{episode}{ext}"

    name = parsed.movie_name
    if parsed.year:
        name = f"{name} ({parsed.year})"
    return output_dir / name / f"{name}{ext}"
