"""Configuration loader with precedence handling.

Configuration is loaded with the following precedence (highest to lowest):
1. CLI arguments
2. Environment variables (MUXMASTER_*)
3. Named profile (~/.muxmaster/profiles/<name>.yaml)
4. Config file (~/.muxmaster/config.toml)
5. Default values

Environment variables:
- MUXMASTER_CONFIG_PATH: Path to config file (overrides default location)
- MUXMASTER_DATA_DIR: Path to data directory (overrides ~/.muxmaster/)
- MUXMASTER_FFMPEG_PATH: Path to ffmpeg executable
- MUXMASTER_FFPROBE_PATH: Path to ffprobe executable
- MUXMASTER_MODE: Encoder mode (vaapi or cpu)
- MUXMASTER_CONTAINER: Output container (mkv or mp4)
- MUXMASTER_VAAPI_DEVICE: VAAPI render node
- MUXMASTER_LOG_LEVEL: Log level
- MUXMASTER_LOG_FILE: Log file path
"""

from __future__ import annotations

import logging
import tomllib
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from muxmaster.config.env import EnvReader
from muxmaster.config.models import (
    DisplayConfig,
    LoggingConfig,
    MuxmasterConfig,
    RunConfig,
    ToolPathsConfig,
)
from muxmaster.config.profiles import load_profile
from muxmaster.config.schema import (
    ConfigFileModel,
    format_validation_error,
    section_values,
)
from muxmaster.domain.enums import Container, EncoderMode, HDRMode

logger = logging.getLogger(__name__)

DEFAULT_DATA_DIR = Path.home() / ".muxmaster"
CONFIG_FILE_NAME = "config.toml"

SECTIONS = ("encoding", "display", "logging", "tools")

_ENUM_FIELDS: dict[str, type] = {
    "encoder_mode": EncoderMode,
    "output_container": Container,
    "hdr_mode": HDRMode,
}


class ConfigError(Exception):
    """Invalid configuration from any source."""

    pass


def get_data_dir(env_reader: EnvReader | None = None) -> Path:
    """Get the Muxmaster data directory.

    Can be overridden by MUXMASTER_DATA_DIR. Supports tilde expansion.
    """
    reader = env_reader or EnvReader()
    env_path = reader.get_str("MUXMASTER_DATA_DIR")
    if env_path:
        return Path(env_path).expanduser()
    return DEFAULT_DATA_DIR


def get_default_config_path(env_reader: EnvReader | None = None) -> Path:
    """Get the config file path, honoring MUXMASTER_CONFIG_PATH."""
    reader = env_reader or EnvReader()
    env_path = reader.get_str("MUXMASTER_CONFIG_PATH")
    if env_path:
        return Path(env_path).expanduser()
    return get_data_dir(reader) / CONFIG_FILE_NAME


def load_config_file(path: Path, *, strict: bool = False) -> ConfigFileModel:
    """Load and validate the TOML config file.

    Args:
        path: Path to the config file. A missing file yields defaults.
        strict: If True, raise ConfigError on parse or validation failures.
            If False, log a warning and ignore the file.

    Returns:
        Validated ConfigFileModel.

    Raises:
        ConfigError: When strict=True and the file is invalid.
    """
    if not path.exists():
        return ConfigFileModel()

    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
        return ConfigFileModel.model_validate(data)
    except tomllib.TOMLDecodeError as e:
        message = f"Invalid TOML in config file {path}: {e}"
    except ValidationError as e:
        message = f"Invalid config file {path}: {format_validation_error(e)}"
    except OSError as e:
        message = f"Could not read config file {path}: {e}"

    if strict:
        raise ConfigError(message)
    logger.warning("%s; using defaults", message)
    return ConfigFileModel()


@dataclass
class ConfigSource:
    """Configuration values from a single source.

    Missing keys mean "not specified in this source" and never override
    values from lower-precedence sources.
    """

    encoding: dict[str, Any] = field(default_factory=dict)
    display: dict[str, Any] = field(default_factory=dict)
    logging: dict[str, Any] = field(default_factory=dict)
    tools: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_model(cls, model: ConfigFileModel) -> ConfigSource:
        return cls(**{name: section_values(getattr(model, name)) for name in SECTIONS})


def source_from_env(reader: EnvReader) -> ConfigSource:
    """Create a ConfigSource from MUXMASTER_* environment variables."""
    source = ConfigSource()
    for key, var in (
        ("encoder_mode", "MUXMASTER_MODE"),
        ("output_container", "MUXMASTER_CONTAINER"),
        ("vaapi_device", "MUXMASTER_VAAPI_DEVICE"),
    ):
        value = reader.get_str(var)
        if value is not None:
            source.encoding[key] = value.casefold() if key in _ENUM_FIELDS else value

    for key, var in (("ffmpeg", "MUXMASTER_FFMPEG_PATH"),
                     ("ffprobe", "MUXMASTER_FFPROBE_PATH")):  # fmt: skip
        path = reader.get_path(var)
        if path is not None:
            source.tools[key] = path

    level = reader.get_str("MUXMASTER_LOG_LEVEL")
    if level is not None:
        source.logging["level"] = level
    log_file = reader.get_path("MUXMASTER_LOG_FILE", must_exist=False)
    if log_file is not None:
        source.logging["file"] = log_file
    return source


def apply_quality_precedence(
    encoding: dict[str, Any],
    mode: EncoderMode,
    quality: int | None = None,
    vaapi_qp: int | None = None,
    cpu_crf: int | None = None,
) -> None:
    """Apply CLI quality overrides to ``encoding`` in place.

    Precedence: mode-specific override (--vaapi-qp / --cpu-crf) beats the
    generic --quality, which beats configured defaults. Only the override
    for the active mode takes effect.

    Args:
        encoding: Layered encoding values to update.
        mode: Active encoder mode.
        quality: Generic override for the active mode.
        vaapi_qp: VAAPI-specific override.
        cpu_crf: CPU-specific override.
    """
    specific = vaapi_qp if mode is EncoderMode.VAAPI else cpu_crf
    value = specific if specific is not None else quality
    if value is None:
        return
    key = "vaapi_qp" if mode is EncoderMode.VAAPI else "cpu_crf"
    encoding[key] = value
    encoding["quality_override"] = value


class ConfigBuilder:
    """Builds MuxmasterConfig by layering ConfigSources with precedence.

    Later sources override earlier ones. The source name of each value is
    kept so the CLI can report where a setting came from.

    Example:
        builder = ConfigBuilder()
        builder.apply(file_source, source_name="file")
        builder.apply(env_source, source_name="env")
        builder.apply(cli_source, source_name="cli")
        config = builder.build()
    """

    def __init__(self) -> None:
        self._values: dict[str, dict[str, Any]] = {name: {} for name in SECTIONS}
        self._origins: dict[str, str] = {}

    def apply(self, source: ConfigSource, source_name: str = "unknown") -> None:
        """Apply a configuration source, overriding existing values."""
        for name in SECTIONS:
            for key, value in getattr(source, name).items():
                if value is None:
                    continue
                self._values[name][key] = value
                self._origins[f"{name}.{key}"] = source_name

    def origin(self, dotted_key: str) -> str:
        """Return which source set ``section.key`` ("default" if none)."""
        return self._origins.get(dotted_key, "default")

    @property
    def encoding(self) -> dict[str, Any]:
        return self._values["encoding"]

    def build(self) -> MuxmasterConfig:
        """Build the final configuration.

        Raises:
            ConfigError: If any value fails validation.
        """
        encoding = dict(self._values["encoding"])
        for key, enum_type in _ENUM_FIELDS.items():
            if key in encoding and not isinstance(encoding[key], enum_type):
                try:
                    encoding[key] = enum_type(str(encoding[key]).casefold())
                except ValueError as e:
                    raise ConfigError(f"Invalid {key}: {encoding[key]}") from e

        run_fields = {f.name for f in fields(RunConfig)}
        unknown = set(encoding) - run_fields
        if unknown:
            raise ConfigError(f"Unknown encoding settings: {sorted(unknown)}")

        logging_values = dict(self._values["logging"])
        if logging_values.get("file") is not None:
            logging_values["file"] = Path(logging_values["file"]).expanduser()

        tools_values = {
            key: Path(value).expanduser()
            for key, value in self._values["tools"].items()
        }

        try:
            return MuxmasterConfig(
                run=RunConfig(**encoding),
                display=DisplayConfig(**self._values["display"]),
                logging=LoggingConfig(**logging_values),
                tools=ToolPathsConfig(**tools_values),
            )
        except (TypeError, ValueError) as e:
            raise ConfigError(str(e)) from e


def get_config(
    config_path: Path | None = None,
    profile: str | None = None,
    cli_source: ConfigSource | None = None,
    *,
    quality: int | None = None,
    vaapi_qp: int | None = None,
    cpu_crf: int | None = None,
    env_reader: EnvReader | None = None,
    strict: bool = False,
) -> MuxmasterConfig:
    """Get Muxmaster configuration with full precedence handling.

    Args:
        config_path: Path to config file (overrides MUXMASTER_CONFIG_PATH).
        profile: Optional profile name to layer over the config file.
        cli_source: Values given on the command line.
        quality: Generic --quality override for the active mode.
        vaapi_qp: --vaapi-qp override.
        cpu_crf: --cpu-crf override.
        env_reader: Optional EnvReader for testing.
        strict: Raise ConfigError on an invalid config file.

    Returns:
        MuxmasterConfig with merged configuration.

    Raises:
        ConfigError: If the merged configuration is invalid.
        ProfileError: If the profile cannot be loaded.
    """
    reader = env_reader or EnvReader()
    path = config_path or get_default_config_path(reader)

    builder = ConfigBuilder()
    builder.apply(
        ConfigSource.from_model(load_config_file(path, strict=strict)), "file"
    )
    if profile:
        loaded = load_profile(profile, get_data_dir(reader))
        builder.apply(ConfigSource.from_model(loaded.settings), "profile")
    builder.apply(source_from_env(reader), "env")
    if cli_source is not None:
        builder.apply(cli_source, "cli")

    mode_value = builder.encoding.get("encoder_mode", EncoderMode.VAAPI)
    try:
        mode = EncoderMode(mode_value) if isinstance(mode_value, str) else mode_value
    except ValueError as e:
        raise ConfigError(f"Invalid encoder_mode: {mode_value}") from e

    overrides: dict[str, Any] = {}
    apply_quality_precedence(overrides, mode, quality, vaapi_qp, cpu_crf)
    if overrides:
        builder.apply(ConfigSource(encoding=overrides), "cli")

    return builder.build()


def is_within(child: Path, parent: Path) -> bool:
    """Return True if ``child`` equals or is nested inside ``parent``."""
    try:
        child.resolve().relative_to(parent.resolve())
    except ValueError:
        return False
    return True


def validate_run_paths(input_path: Path, output_dir: Path) -> list[str]:
    """Validate the input/output directory pair for a run.

    Args:
        input_path: Input directory or single file.
        output_dir: Output directory.

    Returns:
        List of error strings. Empty list means the paths are usable.
    """
    errors: list[str] = []
    if not input_path.exists():
        errors.append(f"Input does not exist: {input_path}")
        return errors
    if input_path.is_dir() and is_within(output_dir, input_path):
        errors.append(
            f"Output directory {output_dir} must not be inside input directory "
            f"{input_path}"
        )
    return errors
