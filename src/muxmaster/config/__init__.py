"""Configuration for Muxmaster.

Public API:
- get_config: Load configuration with file < profile < env < CLI precedence
- MuxmasterConfig, RunConfig, DisplayConfig, LoggingConfig, ToolPathsConfig
- EnvReader: Injectable environment variable reader
- load_profile, list_profiles: Named YAML profiles
"""

from muxmaster.config.env import EnvReader
from muxmaster.config.loader import (
    ConfigBuilder,
    ConfigError,
    ConfigSource,
    apply_quality_precedence,
    get_config,
    get_data_dir,
    get_default_config_path,
    load_config_file,
    source_from_env,
    validate_run_paths,
)
from muxmaster.config.logging_factory import (
    build_logging_config,
    configure_logging_from_cli,
)
from muxmaster.config.models import (
    DisplayConfig,
    LoggingConfig,
    MuxmasterConfig,
    RunConfig,
    ToolPathsConfig,
)
from muxmaster.config.profiles import (
    Profile,
    ProfileError,
    ProfileNotFoundError,
    list_profiles,
    load_profile,
)

__all__ = [
    "ConfigBuilder",
    "ConfigError",
    "ConfigSource",
    "DisplayConfig",
    "EnvReader",
    "LoggingConfig",
    "MuxmasterConfig",
    "Profile",
    "ProfileError",
    "ProfileNotFoundError",
    "RunConfig",
    "ToolPathsConfig",
    "apply_quality_precedence",
    "build_logging_config",
    "configure_logging_from_cli",
    "get_config",
    "get_data_dir",
    "get_default_config_path",
    "list_profiles",
    "load_config_file",
    "load_profile",
    "source_from_env",
    "validate_run_paths",
]
