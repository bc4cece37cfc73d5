"""Configuration management for Tempered Tuner components.

Each section is stored as ``<section>.json`` in the configuration directory
and passed to the matching component constructor as keyword arguments by
:class:`tempered_tuner.core.factory.ComponentFactory`.
"""

from typing import Dict, Any, Optional
import copy
import json
import os
from pathlib import Path

from ..logger import get_logger

logger = get_logger(__name__)

CONFIG_DIR_ENV = "TEMPERED_TUNER_CONFIG_DIR"

DEFAULT_CONFIGS: Dict[str, Dict[str, Any]] = {
    "pitch_estimator": {
        "silence_threshold": 0.01,
        "trim_threshold": 0.2,
        "peak_tolerance": 0.9,
    },
    "band_filter": {
        "min_frequency": 30.0,
        "max_frequency": 2500.0,
    },
    "audio_input": {
        "device_id": None,
        "sample_rate": 44100,
        "frames_per_buffer": 2048,
        "channels": 1,
    },
    "tuning": {
        "a4": 440.0,
        "temperament": "equal",
    },
}


def default_config_dir() -> Path:
    """``$TEMPERED_TUNER_CONFIG_DIR`` if set, else ``~/.config/tempered_tuner``."""
    override = os.environ.get(CONFIG_DIR_ENV)
    if override:
        return Path(override).expanduser()
    return Path.home() / ".config" / "tempered_tuner"


def _coerce(section: str, key: str, value: Any, default: Any) -> Any:
    """Convert a loaded value to the type of its default, or return the default."""
    if default is None or value is None or isinstance(default, str):
        return value
    try:
        # bool is an int subclass, so check the default's exact type
        if type(default) is int:
            return int(value)
        if type(default) is float:
            return float(value)
    except (TypeError, ValueError):
        logger.warning(f"Invalid {section}.{key}={value!r}, using {default!r}")
        return default
    return value


class ConfigManager:
    """JSON-file backed configuration, one file per section."""

    def __init__(self, config_dir: Optional[str] = None):
        """Initialize the configuration manager.

        Args:
            config_dir: Directory to store configuration files, or None for
                :func:`default_config_dir`
        """
        self.config_dir = Path(config_dir) if config_dir is not None else default_config_dir()
        self.config_dir.mkdir(parents=True, exist_ok=True)

        self.default_configs = copy.deepcopy(DEFAULT_CONFIGS)

        self.configs: Dict[str, Dict[str, Any]] = {}
        for name, default_config in self.default_configs.items():
            self.configs[name] = self.load_config(name, default_config)

    def _path(self, name: str) -> Path:
        return self.config_dir / f"{name}.json"

    def load_config(self, name: str, default_config: Dict[str, Any]) -> Dict[str, Any]:
        """Load a section from disk, writing the defaults if the file is missing.

        Keys the section does not define are dropped, since the section is
        unpacked into a constructor. Missing keys take their defaults.

        Args:
            name: Section name
            default_config: Defaults for the section

        Returns:
            Configuration dictionary
        """
        config_file = self._path(name)

        if not config_file.exists():
            config = dict(default_config)
            self.save_config(name, config)
            return config

        try:
            with open(config_file, "r") as f:
                stored = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Error loading configuration from {config_file}: {e}")
            return dict(default_config)

        if not isinstance(stored, dict):
            logger.error(f"Configuration in {config_file} is not an object, using defaults")
            return dict(default_config)

        unknown = sorted(set(stored) - set(default_config))
        if unknown:
            logger.warning(f"Ignoring unknown keys in {config_file}: {', '.join(unknown)}")

        logger.info(f"Loaded configuration from {config_file}")
        return {
            key: _coerce(name, key, stored[key], default) if key in stored else default
            for key, default in default_config.items()
        }

    def save_config(self, name: str, config: Dict[str, Any]) -> bool:
        """Write a section to disk.

        Returns:
            True if saved successfully, False otherwise
        """
        config_file = self._path(name)

        try:
            with open(config_file, "w") as f:
                json.dump(config, f, indent=2)
        except (OSError, TypeError) as e:
            logger.error(f"Error saving configuration to {config_file}: {e}")
            return False
        logger.info(f"Saved configuration to {config_file}")
        return True

    def get_config(self, name: str) -> Dict[str, Any]:
        """A copy of a section; empty for unknown names."""
        return dict(self.configs.get(name, {}))

    def update_config(self, name: str, updates: Dict[str, Any]) -> bool:
        """Apply ``updates`` to a section and persist it.

        Returns:
            False for an unknown section, an unknown key, or a failed save
        """
        if name not in self.configs:
            logger.error(f"Unknown configuration: {name}")
            return False

        unknown = sorted(set(updates) - set(self.default_configs[name]))
        if unknown:
            logger.error(f"Unknown keys for {name}: {', '.join(unknown)}")
            return False

        self.configs[name].update(updates)
        return self.save_config(name, self.configs[name])

    def reset_config(self, name: str) -> bool:
        """Restore a section to its defaults and persist it."""
        if name not in self.default_configs:
            logger.error(f"Unknown configuration: {name}")
            return False

        self.configs[name] = dict(self.default_configs[name])
        return self.save_config(name, self.configs[name])
