"""
Configuration for ibvault.

Resolution order (later wins):
    1. Built-in defaults (Settings field defaults)
    2. YAML file given explicitly or via $IBVAULT_CONFIG
    3. IBVAULT_* environment variables

Only presentation and logging are configurable. Wire constants
(schema tag, chunk keyword, sentence banks) are never configurable.
"""

import os
import re
from dataclasses import dataclass, fields, replace
from typing import Any, Dict, Mapping, Optional, Tuple

import yaml

from ibvault.errors import ConfigError


CONFIG_ENV_VAR = "IBVAULT_CONFIG"
ENV_PREFIX = "IBVAULT_"

_COLOR_RE = re.compile(r"^#([0-9a-fA-F]{6})$")
_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
_TRUE = ("1", "true", "yes", "on")
_FALSE = ("0", "false", "no", "off")


@dataclass(frozen=True)
class Settings:
    """
    Runtime settings.

    Properties:
        log_level: Root log level name
        json_logs: Emit structured JSON log lines instead of plain text
        image_width / image_height: Size of the default vault image
        background: Default vault image colour as #rrggbb
        output_dir: Directory exported images are written to
    """

    log_level: str = "WARNING"
    json_logs: bool = False
    image_width: int = 1200
    image_height: int = 675
    background: str = "#0b1220"
    output_dir: str = "."

    @property
    def background_rgb(self) -> Tuple[int, int, int]:
        return parse_color(self.background)


def parse_color(value: str) -> Tuple[int, int, int]:
    """Parse "#rrggbb" into an (r, g, b) tuple."""
    match = _COLOR_RE.match(str(value).strip())
    if not match:
        raise ConfigError(f"Invalid colour {value!r}; expected #rrggbb")
    hex_digits = match.group(1)
    return tuple(int(hex_digits[i:i + 2], 16) for i in (0, 2, 4))


def _coerce(name: str, value: Any) -> Any:
    if name == "json_logs":
        if isinstance(value, bool):
            return value
        text = str(value).strip().lower()
        if text in _TRUE:
            return True
        if text in _FALSE:
            return False
        raise ConfigError(f"Invalid boolean for {name}: {value!r}")
    if name in ("image_width", "image_height"):
        try:
            number = int(value)
        except (TypeError, ValueError):
            raise ConfigError(f"Invalid integer for {name}: {value!r}")
        if number <= 0:
            raise ConfigError(f"{name} must be positive, got {number}")
        return number
    if name == "log_level":
        level = str(value).strip().upper()
        if level not in _LOG_LEVELS:
            raise ConfigError(f"Invalid log level {value!r}; expected one of {', '.join(_LOG_LEVELS)}")
        return level
    if name == "background":
        parse_color(value)
        return str(value).strip()
    return str(value)


def _apply(settings: Settings, overrides: Mapping[str, Any]) -> Settings:
    known = {f.name for f in fields(Settings)}
    unknown = sorted(set(overrides) - known)
    if unknown:
        raise ConfigError(f"Unknown setting(s): {', '.join(unknown)}")
    return replace(settings, **{k: _coerce(k, v) for k, v in overrides.items()})


def load_yaml_file(path: str) -> Dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except OSError as e:
        raise ConfigError(f"Cannot read config file {path}: {e}")
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}")
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")
    return data


def env_overrides(env: Mapping[str, str]) -> Dict[str, str]:
    overrides = {}
    for f in fields(Settings):
        key = ENV_PREFIX + f.name.upper()
        if key in env:
            overrides[f.name] = env[key]
    return overrides


def load_settings(path: Optional[str] = None, env: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Build Settings from defaults, an optional YAML file and the environment.

    Args:
        path: YAML config path; falls back to $IBVAULT_CONFIG
        env: Environment mapping (defaults to os.environ)

    Raises:
        ConfigError: on unreadable files, unknown keys or invalid values
    """
    env = os.environ if env is None else env
    settings = Settings()
    path = path or env.get(CONFIG_ENV_VAR)
    if path:
        settings = _apply(settings, load_yaml_file(path))
    return _apply(settings, env_overrides(env))
