"""FFprobe-based implementation of MediaIntrospector protocol."""

import json
import subprocess  # nosec B404 - subprocess is required for ffprobe invocation
from pathlib import Path

from muxmaster.domain.models import MediaDescriptor
from muxmaster.executor.interface import get_tool_path
from muxmaster.introspector.interface import MediaIntrospectionError
from muxmaster.introspector.parsers import parse_ffprobe_output

PROBE_TIMEOUT_SECONDS = 60


class FFprobeIntrospector:
    """ffprobe-based implementation of MediaIntrospector protocol.

    Extracts stream-level metadata from media files using ffprobe.
    """

    def __init__(self, ffprobe_path: Path | None = None) -> None:
        """Initialize the introspector.

        Args:
            ffprobe_path: Optional explicit path to ffprobe. If not usable,
                the system PATH is searched.

        Raises:
            MediaIntrospectionError: If ffprobe is not available.
        """
        self._ffprobe_path = get_tool_path("ffprobe", ffprobe_path)

        if self._ffprobe_path is None:
            raise MediaIntrospectionError(
                "ffprobe is not installed or not in PATH. "
                "Install ffmpeg to probe media files. "
                "You can also configure a custom path via MUXMASTER_FFPROBE_PATH "
                "environment variable or ~/.muxmaster/config.toml"
            )

    @property
    def ffprobe_path(self) -> Path | None:
        return self._ffprobe_path

    def get_file_info(self, path: Path) -> MediaDescriptor:
        """Extract metadata from a media file.

        Args:
            path: Path to the media file.

        Returns:
            MediaDescriptor for the file.

        Raises:
            MediaIntrospectionError: If the file cannot be introspected.
        """
        if not path.exists():
            raise MediaIntrospectionError(f"File not found: {path}")

        try:
            ffprobe_output = self._run_ffprobe(path)
        except subprocess.TimeoutExpired as e:
            raise MediaIntrospectionError(
                f"ffprobe timed out for {path} after {e.timeout}s"
            ) from e
        except subprocess.CalledProcessError as e:
            raise MediaIntrospectionError(
                f"ffprobe failed for {path}: {e.stderr or e}"
            ) from e
        except json.JSONDecodeError as e:
            raise MediaIntrospectionError(
                f"Invalid ffprobe output for {path}: {e}"
            ) from e

        return parse_ffprobe_output(ffprobe_output)

    def _run_ffprobe(self, path: Path) -> dict:
        """Run ffprobe and return parsed JSON output.

        Raises:
            subprocess.CalledProcessError: If ffprobe returns non-zero.
            json.JSONDecodeError: If output is not valid JSON.
            MediaIntrospectionError: If output is missing required keys.
        """
        result = subprocess.run(  # nosec B603 - ffprobe path is validated
            [
                str(self._ffprobe_path),
                "-v",
                "error",
                "-print_format",
                "json",
                "-show_streams",
                "-show_format",
                str(path),
            ],
            capture_output=True,
            text=True,
            errors="replace",  # Handle non-UTF8 characters by replacing them
            check=True,
            timeout=PROBE_TIMEOUT_SECONDS,
        )
        data = json.loads(result.stdout)

        if "streams" not in data:
            raise MediaIntrospectionError(
                f"Missing 'streams' in ffprobe output for {path}. "
                "File may be corrupted or not a valid media file."
            )
        return data
