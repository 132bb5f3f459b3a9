"""Tests for filename parsing."""

from pathlib import Path

import pytest

from muxmaster.naming.parser import (
    MediaType,
    is_specials_folder,
    parse_filename,
    resolve_parent_context,
)


class TestParseFilename:
    """Tests for parse_filename() across the rule table."""

    def test_sxxexx(self):
        parsed = parse_filename(
            Path("/in/Breaking Bad/Season 01/Breaking.Bad.S01E02.720p.mkv")
        )
        assert parsed.media_type is MediaType.TV
        assert parsed.show_name == "Breaking Bad"
        assert (parsed.season, parsed.episode) == (1, 2)

    def test_sxxexx_show_from_parent(self):
        parsed = parse_filename(Path("/in/The Wire/S03E07.mkv"))
        assert parsed.show_name == "The Wire"
        assert (parsed.season, parsed.episode) == (3, 7)

    def test_1x01(self):
        parsed = parse_filename(Path("/in/Show Name 2x05.mkv"))
        assert parsed.show_name == "Show Name"
        assert (parsed.season, parsed.episode) == (2, 5)

    def test_season_episode_words(self):
        parsed = parse_filename(Path("/in/My Show Season 2 Episode 14.mkv"))
        assert parsed.show_name == "My Show"
        assert (parsed.season, parsed.episode) == (2, 14)

    def test_group_anime_dash(self):
        parsed = parse_filename(
            Path("/in/Frieren/[SubsPlease] Frieren - 05 (1080p) [ABCD1234].mkv")
        )
        assert parsed.show_name == "Frieren"
        assert (parsed.season, parsed.episode) == (1, 5)

    def test_parent_season_hint(self):
        parsed = parse_filename(Path("/in/Show/Season 2/Show - 03.mkv"))
        assert (parsed.season, parsed.episode) == (2, 3)

    def test_named_special(self):
        parsed = parse_filename(Path("/in/Show/Extras/Show - OP - 1.mkv"))
        assert parsed.show_name == "Show"
        assert (parsed.season, parsed.episode) == (0, 101)

    def test_creditless_ending(self):
        parsed = parse_filename(
            Path("/in/[Group] Show Name 01 - Title [Creditless Ending].mkv")
        )
        assert parsed.show_name == "Show Name"
        assert (parsed.season, parsed.episode) == (0, 201)

    def test_fractional_episode_is_special(self):
        parsed = parse_filename(Path("/in/Show Episode 5.5 - Interlude.mkv"))
        assert parsed.show_name == "Show"
        assert (parsed.season, parsed.episode) == (0, 55)

    def test_movie_with_year(self):
        parsed = parse_filename(Path("/in/The.Matrix.1999.1080p.BluRay.mkv"))
        assert parsed.media_type is MediaType.MOVIE
        assert parsed.movie_name == "The Matrix"
        assert parsed.year == "1999"

    def test_fallback_movie(self):
        parsed = parse_filename(Path("/in/home_video.mkv"))
        assert parsed.media_type is MediaType.MOVIE
        assert parsed.movie_name == "Home Video"
        assert parsed.year == ""

    def test_deterministic(self):
        path = Path("/in/Show/Season 2/Show - 03.mkv")
        assert parse_filename(path) == parse_filename(path)


class TestParentContext:
    @pytest.mark.parametrize(
        "name", ["Extras", "specials", "Featurettes", "NC", "NCOP", "nced 1080p"]
    )
    def test_specials_folders(self, name):
        assert is_specials_folder(name)

    def test_regular_folder(self):
        assert not is_specials_folder("Season 1")

    def test_specials_folder_uses_grandparent(self):
        assert resolve_parent_context(Path("/in/Show/Extras")) == "Show"

    def test_regular_parent(self):
        assert resolve_parent_context(Path("/in/Show")) == "Show"
