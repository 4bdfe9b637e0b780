"""
Configuration manager.
Built-in defaults, deep-merged with an optional YAML file, then with
command-line overrides. Provides dot-notation access and validation.
"""

import copy
import re
import yaml
import logging

from temp_throttle.core.types import ConfigError
from temp_throttle.modules.thermal.temperature_reader import DEFAULT_CANDIDATES

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "/etc/temp-throttle/config.yaml"

_DEFAULTS = {
    "governor": {
        "max_temp": None,
        "max_freq": None,
        "hysteresis": 5,
        "poll_interval": 3.0,
        "restore_on_exit": True,
    },
    "cpufreq": {
        "sysfs_root": "/sys/devices/system/cpu",
        "step_khz": 100000,
        "fallback_command": "cpufreq-set",
        "command_timeout": 5.0,
    },
    "thermal": {
        "candidates": list(DEFAULT_CANDIDATES),
    },
    "logging": {
        "level": "INFO",
        "file": None,
        "max_size_mb": 10,
        "backup_count": 3,
        "color": True,
    },
}

# Schema: sections and the expected types of their fields
_CONFIG_SCHEMA = {
    "governor": {
        "hysteresis": int,
        "poll_interval": float,
        "restore_on_exit": bool,
    },
    "cpufreq": {
        "sysfs_root": str,
        "step_khz": int,
        "fallback_command": str,
        "command_timeout": float,
    },
    "thermal": {
        "candidates": list,
    },
    "logging": {
        "level": str,
        "max_size_mb": int,
        "backup_count": int,
        "color": bool,
    },
}

# Fields where null is a valid value
_NULLABLE_FIELDS = {("cpufreq", "command_timeout")}

_DIGITS = re.compile(r"^[0-9]+$")


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge override into base dict."""
    merged = base.copy()
    for key, value in override.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


class Config:
    """Layered configuration: defaults < YAML file < overrides."""

    def __init__(self, data: dict = None):
        self._data = _deep_merge(copy.deepcopy(_DEFAULTS), data or {})

    def load(self, config_path=None):
        """Merge a YAML file on top of the current values.

        An explicit path must exist; the default system path is optional.
        """
        path = config_path or DEFAULT_CONFIG_PATH
        try:
            with open(path, "r") as f:
                file_data = yaml.safe_load(f) or {}
        except FileNotFoundError:
            if config_path:
                raise ConfigError(f"Config file not found: {config_path}")
            logger.debug("No config file at %s, using defaults", path)
            return self
        except OSError as e:
            raise ConfigError(f"Could not read config file {path}: {e}") from e
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}") from e

        if not isinstance(file_data, dict):
            raise ConfigError(f"Config file {path} must contain a mapping")

        self._data = _deep_merge(self._data, file_data)
        logger.info("Loaded config from %s", path)
        self._validate()
        return self

    def override(self, key_path: str, value):
        """Set a nested value using dot notation, ignoring None."""
        if value is None:
            return
        keys = key_path.split(".")
        section = self._data
        for key in keys[:-1]:
            section = section.setdefault(key, {})
        section[keys[-1]] = value

    def _validate(self):
        """Validate config fields against schema, logging mismatches."""
        warnings = []
        for section_name, fields in _CONFIG_SCHEMA.items():
            section = self._data.get(section_name)
            if not isinstance(section, dict):
                warnings.append(f"Section '{section_name}' should be a dict, got {type(section).__name__}")
                continue
            for field_name, expected_type in fields.items():
                if field_name in section:
                    value = section[field_name]
                    if value is None and (section_name, field_name) in _NULLABLE_FIELDS:
                        continue
                    # Allow int where float is expected
                    if expected_type is float and isinstance(value, (int, float)):
                        continue
                    if not isinstance(value, expected_type):
                        warnings.append(
                            f"{section_name}.{field_name}: expected {expected_type.__name__}, "
                            f"got {type(value).__name__} ({value!r})"
                        )

        if warnings:
            for w in warnings:
                logger.warning("Config validation: %s", w)
        else:
            logger.debug("Config validation passed")

    def validate_required(self):
        """Check the settings the governor cannot start without.

        Normalizes max_temp to int and max_freq to "auto" or int.
        """
        max_temp = self.get("governor.max_temp")
        if max_temp is None or not _DIGITS.match(str(max_temp)):
            raise ConfigError("Please provide a valid --max-temp=65 (in celsius).")
        self._data["governor"]["max_temp"] = int(max_temp)

        max_freq = self.get("governor.max_freq")
        if max_freq is None:
            raise ConfigError("Please provide a --max-freq=auto (use auto or frequency in kHz).")
        if str(max_freq) == "auto":
            self._data["governor"]["max_freq"] = "auto"
        elif _DIGITS.match(str(max_freq)):
            self._data["governor"]["max_freq"] = int(max_freq)
        else:
            raise ConfigError(
                "Invalid format for --max-freq. Please provide a valid frequency or 'auto'."
            )

        hysteresis = self.get("governor.hysteresis")
        if not isinstance(hysteresis, int) or isinstance(hysteresis, bool) or hysteresis <= 0:
            raise ConfigError(f"governor.hysteresis must be a positive integer, got {hysteresis!r}")

        interval = self.get("governor.poll_interval")
        if not _is_number(interval) or interval <= 0:
            raise ConfigError(f"governor.poll_interval must be a positive number, got {interval!r}")

        step = self.get("cpufreq.step_khz")
        if not isinstance(step, int) or isinstance(step, bool) or step <= 0:
            raise ConfigError(f"cpufreq.step_khz must be a positive integer, got {step!r}")

        timeout = self.get("cpufreq.command_timeout")
        if timeout is not None and (not _is_number(timeout) or timeout <= 0):
            raise ConfigError(
                f"cpufreq.command_timeout must be a positive number or null, got {timeout!r}"
            )
        return self

    def get(self, key_path: str, default=None):
        """Get nested config value using dot notation: 'governor.max_temp'."""
        keys = key_path.split(".")
        value = self._data
        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default
        return value

    def get_section(self, section: str) -> dict:
        """Get an entire config section."""
        return self._data.get(section, {})

    @property
    def governor(self) -> dict:
        return self._data.get("governor", {})

    @property
    def cpufreq(self) -> dict:
        return self._data.get("cpufreq", {})

    @property
    def thermal(self) -> dict:
        return self._data.get("thermal", {})
