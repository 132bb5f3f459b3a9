"""Tests for layered configuration loading."""

from pathlib import Path

import pytest

from muxmaster.config.env import EnvReader
from muxmaster.config.loader import (
    ConfigBuilder,
    ConfigError,
    ConfigSource,
    apply_quality_precedence,
    get_config,
    get_data_dir,
    get_default_config_path,
    is_within,
    load_config_file,
    source_from_env,
    validate_run_paths,
)
from muxmaster.config.profiles import ProfileNotFoundError
from muxmaster.domain.enums import Container, EncoderMode


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text(
        "[encoding]\n"
        'encoder_mode = "cpu"\n'
        "cpu_crf = 21\n"
        'output_container = "mp4"\n'
        "\n"
        "[display]\n"
        "color = true\n"
        "\n"
        "[logging]\n"
        'level = "warning"\n'
    )
    return path


@pytest.fixture
def empty_env(tmp_path):
    return EnvReader(env={"MUXMASTER_DATA_DIR": str(tmp_path)})


class TestPaths:
    def test_data_dir_from_env(self, tmp_path):
        reader = EnvReader(env={"MUXMASTER_DATA_DIR": str(tmp_path)})
        assert get_data_dir(reader) == tmp_path

    def test_config_path_override(self, tmp_path):
        reader = EnvReader(env={"MUXMASTER_CONFIG_PATH": str(tmp_path / "x.toml")})
        assert get_default_config_path(reader) == tmp_path / "x.toml"

    def test_config_path_under_data_dir(self, tmp_path):
        reader = EnvReader(env={"MUXMASTER_DATA_DIR": str(tmp_path)})
        assert get_default_config_path(reader) == tmp_path / "config.toml"


class TestLoadConfigFile:
    """Tests for load_config_file()."""

    def test_missing_file_gives_defaults(self, tmp_path):
        model = load_config_file(tmp_path / "none.toml")
        assert model.encoding.encoder_mode is None

    def test_valid_file(self, config_file):
        model = load_config_file(config_file)
        assert model.encoding.encoder_mode == "cpu"
        assert model.display.color is True

    def test_invalid_toml_lenient(self, tmp_path):
        path = tmp_path / "bad.toml"
        path.write_text("[encoding\n")
        assert load_config_file(path).encoding.cpu_crf is None

    def test_invalid_toml_strict(self, tmp_path):
        path = tmp_path / "bad.toml"
        path.write_text("[encoding\n")
        with pytest.raises(ConfigError, match="Invalid TOML"):
            load_config_file(path, strict=True)

    def test_validation_error_strict(self, tmp_path):
        path = tmp_path / "bad.toml"
        path.write_text("[encoding]\nvaapi_qp = 99\n")
        with pytest.raises(ConfigError, match="vaapi_qp"):
            load_config_file(path, strict=True)


class TestSourceFromEnv:
    def test_reads_known_variables(self, tmp_path):
        ffmpeg = tmp_path / "ffmpeg"
        ffmpeg.touch()
        reader = EnvReader(
            env={
                "MUXMASTER_MODE": "CPU",
                "MUXMASTER_CONTAINER": "mp4",
                "MUXMASTER_VAAPI_DEVICE": "/dev/dri/renderD129",
                "MUXMASTER_FFMPEG_PATH": str(ffmpeg),
                "MUXMASTER_FFPROBE_PATH": str(tmp_path / "missing"),
                "MUXMASTER_LOG_LEVEL": "debug",
                "MUXMASTER_LOG_FILE": str(tmp_path / "logs" / "run.log"),
            }
        )
        source = source_from_env(reader)

        assert source.encoding == {
            "encoder_mode": "cpu",
            "output_container": "mp4",
            "vaapi_device": "/dev/dri/renderD129",
        }
        assert source.tools == {"ffmpeg": ffmpeg}
        assert source.logging == {
            "level": "debug",
            "file": tmp_path / "logs" / "run.log",
        }

    def test_empty_environment(self):
        source = source_from_env(EnvReader(env={}))
        assert source == ConfigSource()


class TestApplyQualityPrecedence:
    """Mode-specific beats generic; only the active mode is touched."""

    def test_generic_quality(self):
        encoding = {}
        apply_quality_precedence(encoding, EncoderMode.CPU, quality=24)
        assert encoding == {"cpu_crf": 24, "quality_override": 24}

    def test_specific_beats_generic(self):
        encoding = {}
        apply_quality_precedence(encoding, EncoderMode.VAAPI, quality=24, vaapi_qp=22)
        assert encoding == {"vaapi_qp": 22, "quality_override": 22}

    def test_inactive_mode_override_ignored(self):
        encoding = {}
        apply_quality_precedence(encoding, EncoderMode.VAAPI, cpu_crf=22)
        assert encoding == {}


class TestConfigBuilder:
    def test_later_sources_win(self):
        builder = ConfigBuilder()
        builder.apply(ConfigSource(encoding={"cpu_crf": 20, "vaapi_qp": 20}), "file")
        builder.apply(ConfigSource(encoding={"cpu_crf": 25, "vaapi_qp": None}), "cli")
        config = builder.build()

        assert config.run.cpu_crf == 25
        assert config.run.vaapi_qp == 20
        assert builder.origin("encoding.cpu_crf") == "cli"
        assert builder.origin("encoding.vaapi_qp") == "file"
        assert builder.origin("encoding.skip_hevc") == "default"

    def test_enum_strings_converted(self):
        builder = ConfigBuilder()
        builder.apply(ConfigSource(encoding={"encoder_mode": "CPU"}))
        assert builder.build().run.encoder_mode is EncoderMode.CPU

    def test_invalid_enum(self):
        builder = ConfigBuilder()
        builder.apply(ConfigSource(encoding={"output_container": "avi"}))
        with pytest.raises(ConfigError, match="output_container"):
            builder.build()

    def test_unknown_setting(self):
        builder = ConfigBuilder()
        builder.apply(ConfigSource(encoding={"turbo": True}))
        with pytest.raises(ConfigError, match="turbo"):
            builder.build()

    def test_invalid_value(self):
        builder = ConfigBuilder()
        builder.apply(ConfigSource(encoding={"cpu_crf": 99}))
        with pytest.raises(ConfigError, match="cpu_crf"):
            builder.build()

    def test_paths_expanded(self):
        builder = ConfigBuilder()
        builder.apply(
            ConfigSource(
                logging={"file": "~/mm.log"}, tools={"ffprobe": "~/bin/ffprobe"}
            )
        )
        config = builder.build()
        assert config.logging.file == Path("~/mm.log").expanduser()
        assert config.tools.ffprobe == Path("~/bin/ffprobe").expanduser()


class TestGetConfig:
    """Tests for get_config() precedence: file < profile < env < cli."""

    def test_defaults(self, tmp_path, empty_env):
        config = get_config(tmp_path / "none.toml", env_reader=empty_env)
        assert config.run.encoder_mode is EncoderMode.VAAPI
        assert config.run.quality_override is None
        assert config.logging.level == "info"

    def test_file_values(self, config_file, empty_env):
        config = get_config(config_file, env_reader=empty_env)
        assert config.run.encoder_mode is EncoderMode.CPU
        assert config.run.cpu_crf == 21
        assert config.run.output_container is Container.MP4
        assert config.display.color is True
        assert config.logging.level == "warning"

    def test_profile_over_file(self, tmp_path, config_file):
        profiles = tmp_path / "profiles"
        profiles.mkdir()
        (profiles / "tv.yaml").write_text("encoding:\n  cpu_crf: 23\n")
        reader = EnvReader(env={"MUXMASTER_DATA_DIR": str(tmp_path)})

        config = get_config(config_file, "tv", env_reader=reader)
        assert config.run.cpu_crf == 23
        assert config.run.encoder_mode is EncoderMode.CPU

    def test_missing_profile(self, tmp_path, empty_env):
        with pytest.raises(ProfileNotFoundError):
            get_config(tmp_path / "none.toml", "nope", env_reader=empty_env)

    def test_env_over_file(self, tmp_path, config_file):
        reader = EnvReader(
            env={"MUXMASTER_DATA_DIR": str(tmp_path), "MUXMASTER_MODE": "vaapi"}
        )
        config = get_config(config_file, env_reader=reader)
        assert config.run.encoder_mode is EncoderMode.VAAPI

    def test_cli_over_env(self, tmp_path, config_file):
        reader = EnvReader(
            env={"MUXMASTER_DATA_DIR": str(tmp_path), "MUXMASTER_CONTAINER": "mkv"}
        )
        cli = ConfigSource(encoding={"output_container": Container.MP4})
        config = get_config(config_file, cli_source=cli, env_reader=reader)
        assert config.run.output_container is Container.MP4

    def test_quality_override_uses_final_mode(self, config_file, empty_env):
        config = get_config(config_file, quality=25, env_reader=empty_env)
        assert config.run.cpu_crf == 25
        assert config.run.quality_override == 25
        assert config.run.vaapi_qp == 19

    def test_override_out_of_range(self, tmp_path, empty_env):
        with pytest.raises(ConfigError):
            get_config(tmp_path / "none.toml", quality=50, env_reader=empty_env)

    def test_strict_invalid_file(self, tmp_path, empty_env):
        path = tmp_path / "bad.toml"
        path.write_text("not = [valid")
        with pytest.raises(ConfigError):
            get_config(path, env_reader=empty_env, strict=True)


class TestValidateRunPaths:
    def test_valid(self, tmp_path):
        source = tmp_path / "in"
        source.mkdir()
        assert validate_run_paths(source, tmp_path / "out") == []

    def test_missing_input(self, tmp_path):
        errors = validate_run_paths(tmp_path / "missing", tmp_path / "out")
        assert errors and "does not exist" in errors[0]

    def test_output_inside_input(self, tmp_path):
        source = tmp_path / "in"
        source.mkdir()
        errors = validate_run_paths(source, source / "encoded")
        assert errors and "must not be inside" in errors[0]

    def test_single_file_input(self, tmp_path):
        source = tmp_path / "movie.mkv"
        source.touch()
        assert validate_run_paths(source, tmp_path) == []

    def test_is_within(self, tmp_path):
        assert is_within(tmp_path / "a" / "b", tmp_path)
        assert is_within(tmp_path, tmp_path)
        assert not is_within(tmp_path, tmp_path / "a")
