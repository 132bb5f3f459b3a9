"""Media file discovery."""

from __future__ import annotations

import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)

VIDEO_EXTENSIONS = frozenset(
    {
        ".mkv",
        ".mp4",
        ".avi",
        ".m4v",
        ".mov",
        ".wmv",
        ".flv",
        ".webm",
        ".ts",
        ".m2ts",
        ".mpg",
        ".mpeg",
        ".vob",
        ".ogv",
    }
)

# Supplemental content that is never batch-encoded. Specials and NCOP/NCED
# folders are kept; naming reads the show from their parent.
PRUNED_DIRECTORIES = frozenset({"extras", "extra", "bonus", "featurettes"})


def is_media_file(path: Path) -> bool:
    return path.suffix.lower() in VIDEO_EXTENSIONS


def is_pruned_directory(name: str) -> bool:
    return name.lower() in PRUNED_DIRECTORIES


def discover_media_files(input_path: Path) -> list[Path]:
    """Find media files under ``input_path``.

    Args:
        input_path: Directory to walk recursively, or a single media file.

    Returns:
        Media file paths sorted lexicographically.

    Raises:
        FileNotFoundError: If ``input_path`` does not exist.
    """
    if not input_path.exists():
        raise FileNotFoundError(f"Input not found: {input_path}")
    if input_path.is_file():
        return [input_path] if is_media_file(input_path) else []

    files: list[Path] = []
    for root, dirnames, filenames in os.walk(input_path):
        dirnames[:] = [d for d in dirnames if not is_pruned_directory(d)]
        for filename in filenames:
            path = Path(root) / filename
            if is_media_file(path):
                files.append(path)

    files.sort(key=str)
    logger.debug("Discovered %d media file(s) under %s", len(files), input_path)
    return files
