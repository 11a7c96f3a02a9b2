"""
Tests for settings loading (defaults, YAML file, environment).
"""

import pytest
import yaml

from ibvault.config import CONFIG_ENV_VAR, Settings, env_overrides, load_settings, load_yaml_file, parse_color
from ibvault.errors import ConfigError


def write_yaml(path, data):
    path.write_text(yaml.safe_dump(data), encoding="utf-8")
    return str(path)


class TestDefaults:
    def test_defaults(self):
        settings = load_settings(env={})
        assert settings == Settings()
        assert settings.log_level == "WARNING"
        assert settings.json_logs is False
        assert (settings.image_width, settings.image_height) == (1200, 675)
        assert settings.background_rgb == (0x0B, 0x12, 0x20)


class TestYamlFile:
    """Test YAML config files."""

    def test_file_values(self, tmp_path):
        path = write_yaml(tmp_path / "ibvault.yaml", {
            "log_level": "debug",
            "json_logs": True,
            "image_width": 640,
            "background": "#FFFFFF",
        })
        settings = load_settings(path, env={})
        assert settings.log_level == "DEBUG"
        assert settings.json_logs is True
        assert settings.image_width == 640
        assert settings.image_height == 675
        assert settings.background_rgb == (255, 255, 255)

    def test_path_from_env(self, tmp_path):
        path = write_yaml(tmp_path / "c.yaml", {"output_dir": "out"})
        assert load_settings(env={CONFIG_ENV_VAR: path}).output_dir == "out"

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")
        assert load_yaml_file(str(path)) == {}

    def test_unknown_key(self, tmp_path):
        path = write_yaml(tmp_path / "c.yaml", {"schema": "IB_V2_RESULT"})
        with pytest.raises(ConfigError, match="Unknown setting"):
            load_settings(path, env={})

    def test_not_a_mapping(self, tmp_path):
        path = write_yaml(tmp_path / "c.yaml", [1, 2, 3])
        with pytest.raises(ConfigError, match="mapping"):
            load_settings(path, env={})

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("log_level: [unclosed", encoding="utf-8")
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_settings(str(path), env={})

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match="Cannot read"):
            load_settings(str(tmp_path / "missing.yaml"), env={})


class TestEnvironment:
    """Test IBVAULT_* overrides."""

    def test_env_overrides(self):
        env = {"IBVAULT_LOG_LEVEL": "info", "IBVAULT_JSON_LOGS": "yes", "IBVAULT_IMAGE_HEIGHT": "100", "OTHER": "x"}
        assert env_overrides(env) == {"log_level": "info", "json_logs": "yes", "image_height": "100"}
        settings = load_settings(env=env)
        assert settings.log_level == "INFO"
        assert settings.json_logs is True
        assert settings.image_height == 100

    def test_env_beats_file(self, tmp_path):
        path = write_yaml(tmp_path / "c.yaml", {"image_width": 10, "log_level": "ERROR"})
        settings = load_settings(path, env={"IBVAULT_IMAGE_WIDTH": "20"})
        assert settings.image_width == 20
        assert settings.log_level == "ERROR"

    @pytest.mark.parametrize("key,value", [
        ("IBVAULT_JSON_LOGS", "maybe"),
        ("IBVAULT_IMAGE_WIDTH", "wide"),
        ("IBVAULT_IMAGE_WIDTH", "0"),
        ("IBVAULT_LOG_LEVEL", "LOUD"),
        ("IBVAULT_BACKGROUND", "red"),
    ])
    def test_invalid_values(self, key, value):
        with pytest.raises(ConfigError):
            load_settings(env={key: value})


class TestParseColor:
    def test_valid(self):
        assert parse_color("#0b1220") == (11, 18, 32)
        assert parse_color(" #AbCdEf ") == (0xAB, 0xCD, 0xEF)

    @pytest.mark.parametrize("value", ["0b1220", "#0b122", "#0b12200", "#gggggg", ""])
    def test_invalid(self, value):
        with pytest.raises(ConfigError):
            parse_color(value)
