"""Environment variable reader with dependency injection support.

This module provides the EnvReader class for reading and parsing
environment variables with type conversion. It accepts an optional env
mapping so tests never need to touch os.environ.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path

logger = logging.getLogger(__name__)


class EnvReader:
    """Environment variable reader with type conversion.

    Example:
        # Production usage (reads from os.environ)
        reader = EnvReader()
        mode = reader.get_str("MUXMASTER_MODE")

        # Testing usage (inject custom env)
        reader = EnvReader(env={"MUXMASTER_MODE": "cpu"})
    """

    def __init__(self, env: Mapping[str, str] | None = None) -> None:
        """Initialize the environment reader.

        Args:
            env: Optional mapping to use instead of os.environ.
        """
        self._env: Mapping[str, str] = env if env is not None else os.environ

    def get_str(self, var: str, default: str | None = None) -> str | None:
        """Get a string from environment variable.

        Empty values are treated as unset.
        """
        value = self._env.get(var)
        if not value:
            return default
        return value

    def get_int(self, var: str, default: int | None = None) -> int | None:
        """Get an integer from environment variable.

        Logs a warning and returns ``default`` if the value cannot be parsed.
        """
        value = self._env.get(var)
        if not value:
            return default
        try:
            return int(value)
        except ValueError:
            logger.warning("Invalid integer value for %s: %s", var, value)
            return default

    def get_bool(self, var: str, default: bool | None = None) -> bool | None:
        """Get a boolean from environment variable.

        Recognizes "true", "1", "yes", "on" (case-insensitive) as true; any
        other non-empty value is false.
        """
        value = self._env.get(var)
        if not value:
            return default
        return value.lower() in ("true", "1", "yes", "on")

    def get_path(
        self, var: str, must_exist: bool = True, default: Path | None = None
    ) -> Path | None:
        """Get a path from environment variable.

        Args:
            var: Environment variable name.
            must_exist: If True, ignore (with a warning) paths that don't exist.
            default: Default value if not set or missing.

        Returns:
            Path object, or default.
        """
        value = self._env.get(var)
        if not value:
            return default

        path = Path(value).expanduser()
        if must_exist and not path.exists():
            logger.warning(
                "Environment variable %s points to non-existent path: %s",
                var,
                value,
            )
            return default
        return path
