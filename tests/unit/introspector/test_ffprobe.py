"""Tests for the ffprobe introspector."""

import json
import subprocess
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from muxmaster.introspector.ffprobe import FFprobeIntrospector
from muxmaster.introspector.interface import MediaIntrospectionError

FFPROBE = Path("/usr/bin/ffprobe")

VALID_OUTPUT = {
    "streams": [
        {"index": 0, "codec_type": "video", "codec_name": "h264"},
        {"index": 1, "codec_type": "audio", "codec_name": "aac", "channels": 2},
    ],
    "format": {"format_name": "matroska,webm", "size": "1000"},
}


@pytest.fixture
def introspector():
    with patch("muxmaster.introspector.ffprobe.get_tool_path", return_value=FFPROBE):
        yield FFprobeIntrospector()


@pytest.fixture
def media_path(tmp_path):
    path = tmp_path / "movie.mkv"
    path.write_bytes(b"\0" * 16)
    return path


class TestFFprobeIntrospector:
    """Tests for FFprobeIntrospector."""

    def test_ffprobe_missing(self):
        with patch("muxmaster.introspector.ffprobe.get_tool_path", return_value=None):
            with pytest.raises(MediaIntrospectionError, match="ffprobe"):
                FFprobeIntrospector()

    def test_ffprobe_path(self, introspector):
        assert introspector.ffprobe_path == FFPROBE

    @patch("muxmaster.introspector.ffprobe.subprocess.run")
    def test_get_file_info(self, mock_run, introspector, media_path):
        mock_run.return_value = MagicMock(stdout=json.dumps(VALID_OUTPUT))

        media = introspector.get_file_info(media_path)

        assert media.video is not None
        assert media.video.codec == "h264"
        assert media.audio[0].channels == 2
        cmd = mock_run.call_args[0][0]
        assert cmd[0] == str(FFPROBE)
        assert cmd[-1] == str(media_path)
        assert mock_run.call_args.kwargs["timeout"] == 60

    def test_missing_file(self, introspector, tmp_path):
        with pytest.raises(MediaIntrospectionError, match="File not found"):
            introspector.get_file_info(tmp_path / "nope.mkv")

    @patch("muxmaster.introspector.ffprobe.subprocess.run")
    def test_timeout(self, mock_run, introspector, media_path):
        mock_run.side_effect = subprocess.TimeoutExpired(cmd="ffprobe", timeout=60)
        with pytest.raises(MediaIntrospectionError, match="timed out"):
            introspector.get_file_info(media_path)

    @patch("muxmaster.introspector.ffprobe.subprocess.run")
    def test_nonzero_exit(self, mock_run, introspector, media_path):
        mock_run.side_effect = subprocess.CalledProcessError(
            1, "ffprobe", stderr="Invalid data found when processing input"
        )
        with pytest.raises(MediaIntrospectionError, match="Invalid data found"):
            introspector.get_file_info(media_path)

    @patch("muxmaster.introspector.ffprobe.subprocess.run")
    def test_invalid_json(self, mock_run, introspector, media_path):
        mock_run.return_value = MagicMock(stdout="not json")
        with pytest.raises(MediaIntrospectionError, match="Invalid ffprobe output"):
            introspector.get_file_info(media_path)

    @patch("muxmaster.introspector.ffprobe.subprocess.run")
    def test_missing_streams(self, mock_run, introspector, media_path):
        mock_run.return_value = MagicMock(stdout=json.dumps({"format": {}}))
        with pytest.raises(MediaIntrospectionError, match="Missing 'streams'"):
            introspector.get_file_info(media_path)
