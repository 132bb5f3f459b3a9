"""Tests for EnvReader."""

from pathlib import Path

from muxmaster.config.env import EnvReader


class TestEnvReader:
    def test_get_str(self):
        reader = EnvReader(env={"A": "value", "EMPTY": ""})
        assert reader.get_str("A") == "value"
        assert reader.get_str("EMPTY", "fallback") == "fallback"
        assert reader.get_str("MISSING") is None

    def test_get_int(self):
        reader = EnvReader(env={"N": "42", "BAD": "forty"})
        assert reader.get_int("N") == 42
        assert reader.get_int("BAD", 7) == 7
        assert reader.get_int("MISSING") is None

    def test_get_bool(self):
        reader = EnvReader(env={"T": "Yes", "ONE": "1", "F": "off"})
        assert reader.get_bool("T") is True
        assert reader.get_bool("ONE") is True
        assert reader.get_bool("F") is False
        assert reader.get_bool("MISSING", True) is True

    def test_get_path(self, tmp_path):
        existing = tmp_path / "ffmpeg"
        existing.touch()
        reader = EnvReader(
            env={"P": str(existing), "GONE": str(tmp_path / "missing")}
        )
        assert reader.get_path("P") == existing
        assert reader.get_path("GONE") is None
        assert reader.get_path("GONE", must_exist=False) == tmp_path / "missing"

    def test_get_path_expands_user(self):
        reader = EnvReader(env={"P": "~/logs/run.log"})
        path = reader.get_path("P", must_exist=False)
        assert path == Path("~/logs/run.log").expanduser()
