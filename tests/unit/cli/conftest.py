"""Fixtures for CLI command tests."""

import logging

import pytest
from click.testing import CliRunner

from muxmaster.config.env import EnvReader


@pytest.fixture(autouse=True)
def reset_root_logger():
    """Commands configure the root logger; undo it after each test."""
    root = logging.getLogger()
    original_handlers = root.handlers[:]
    original_level = root.level
    yield
    for handler in root.handlers:
        if handler not in original_handlers:
            handler.close()
    root.handlers[:] = original_handlers
    root.setLevel(original_level)


@pytest.fixture
def cli_runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def cli_obj(tmp_path):
    """Context object isolating config lookup from the real environment."""
    data_dir = tmp_path / "muxmaster-data"
    data_dir.mkdir()
    return {"env_reader": EnvReader(env={"MUXMASTER_DATA_DIR": str(data_dir)})}
