"""Output path collision handling within one run."""

from __future__ import annotations

import threading
from pathlib import Path


class CollisionResolver:
    """Assigns unique output paths to input files.

    When two inputs map to the same output path, later ones receive a
    " - dupN" suffix. Resolving the same input twice returns the same path.
    Thread-safe.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._owners: dict[Path, Path] = {}
        self._counters: dict[Path, int] = {}

    def resolve(self, input_path: Path, requested: Path) -> Path:
        """Return the final output path for ``input_path``.

        Args:
            input_path: Source file.
            requested: Output path derived from the file name.

        Returns:
            ``requested`` if unclaimed or owned by this input, otherwise the
            first free " - dupN" variant.
        """
        with self._lock:
            owner = self._owners.get(requested)
            if owner is None or owner == input_path:
                self._owners[requested] = input_path
                return requested

            counter = self._counters.get(requested, 1)
            while True:
                candidate = requested.with_name(
                    f"{requested.stem} - dup{counter}{requested.suffix}"
                )
                candidate_owner = self._owners.get(candidate)
                if candidate_owner is None or candidate_owner == input_path:
                    self._counters[requested] = counter + 1
                    self._owners[candidate] = input_path
                    return candidate
                counter += 1
