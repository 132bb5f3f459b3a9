"""Configuration profile management.

Profiles let operators store named settings for different libraries
(movies, TV, anime...) and apply them with ``--profile``. A profile is a
YAML file with the same sections as the TOML config file.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path

import yaml
from pydantic import ValidationError

from muxmaster.config.schema import ConfigFileModel, format_validation_error

PROFILE_NAME_PATTERN = re.compile(r"^[a-zA-Z0-9_-]+$")


class ProfileError(Exception):
    """Error loading or validating a profile."""

    pass


class ProfileNotFoundError(ProfileError):
    """Profile does not exist."""

    pass


@dataclass(frozen=True)
class Profile:
    """Named configuration profile."""

    name: str
    description: str | None
    settings: ConfigFileModel


def get_profiles_directory(data_dir: Path) -> Path:
    """Return the profiles directory under ``data_dir``."""
    return data_dir / "profiles"


def list_profiles(data_dir: Path) -> list[str]:
    """List available profile names (without .yaml extension)."""
    profiles_dir = get_profiles_directory(data_dir)
    if not profiles_dir.exists():
        return []
    return sorted(
        p.stem
        for p in profiles_dir.glob("*.yaml")
        if p.is_file() and not p.name.startswith(".")
    )


def load_profile(name: str, data_dir: Path) -> Profile:
    """Load a profile by name.

    Args:
        name: Profile name (without .yaml extension).
        data_dir: Muxmaster data directory.

    Returns:
        Loaded Profile.

    Raises:
        ProfileNotFoundError: If profile doesn't exist.
        ProfileError: If profile is invalid.
    """
    if not PROFILE_NAME_PATTERN.match(name):
        raise ProfileError(f"Profile name must be alphanumeric (with - or _): {name}")

    profile_path = get_profiles_directory(data_dir) / f"{name}.yaml"
    if not profile_path.exists():
        raise ProfileNotFoundError(f"Profile not found: {name}")

    try:
        with open(profile_path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ProfileError(f"Invalid YAML in profile {name}: {e}") from e

    if not isinstance(data, dict):
        raise ProfileError(f"Profile {name} must be a YAML mapping")

    try:
        settings = ConfigFileModel.model_validate(data)
    except ValidationError as e:
        raise ProfileError(
            f"Invalid profile '{name}': {format_validation_error(e)}"
        ) from e

    return Profile(
        name=settings.name or name,
        description=settings.description,
        settings=settings,
    )
