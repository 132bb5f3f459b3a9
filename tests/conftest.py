"""Shared test fixtures for Muxmaster."""

from __future__ import annotations

from pathlib import Path

import pytest
from factories import make_media

from muxmaster.config.models import (
    DisplayConfig,
    LoggingConfig,
    MuxmasterConfig,
    RunConfig,
)
from muxmaster.domain.enums import Container, EncoderMode
from muxmaster.domain.models import MediaDescriptor


@pytest.fixture
def run_config() -> RunConfig:
    """Return default run settings."""
    return RunConfig()


@pytest.fixture
def cpu_config() -> RunConfig:
    return RunConfig(encoder_mode=EncoderMode.CPU)


@pytest.fixture
def mp4_config() -> RunConfig:
    return RunConfig(output_container=Container.MP4)


@pytest.fixture
def muxmaster_config() -> MuxmasterConfig:
    """Full configuration with quiet display settings."""
    return MuxmasterConfig(
        run=RunConfig(),
        display=DisplayConfig(show_file_stats=True, show_ffmpeg_fps=False),
        logging=LoggingConfig(),
    )


@pytest.fixture
def media() -> MediaDescriptor:
    return make_media()


@pytest.fixture
def media_file(tmp_path: Path) -> Path:
    """A fake media file large enough to pass the size check."""
    path = tmp_path / "in" / "Show" / "Show.S01E02.mkv"
    path.parent.mkdir(parents=True)
    path.write_bytes(b"\0" * 4096)
    return path
