"""MediaIntrospector interface for media metadata extraction."""

from pathlib import Path
from typing import Protocol

from muxmaster.domain.models import MediaDescriptor


class MediaIntrospectionError(Exception):
    """Raised when media introspection fails."""

    pass


class MediaIntrospector(Protocol):
    """Protocol for media introspection implementations.

    Implementations turn a file on disk into a MediaDescriptor. A failure
    excludes the file from processing; it never aborts the batch.
    """

    def get_file_info(self, path: Path) -> MediaDescriptor:
        """Extract metadata from a media file.

        Args:
            path: Path to the media file.

        Returns:
            MediaDescriptor for the file.

        Raises:
            MediaIntrospectionError: If the file cannot be introspected.
        """
        ...
