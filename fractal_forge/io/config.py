"""
Configuration files and environment overrides.

Configuration files are JSON objects whose ``"render"`` section (or the top
level, when there is no such section) maps ForgeConfig field names to values.
Environment variables named ``FRACTAL_FORGE_<FIELD>`` override both.
"""

import json
import os
from dataclasses import asdict, fields
from pathlib import Path
from typing import Any, Dict, List, Optional, Union
import logging

from ..config import ENV_PREFIX

logger = logging.getLogger(__name__)


def _forge_config_class():
    # Deferred: api imports this module
    from ..api import ForgeConfig
    return ForgeConfig


def _parse_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in ('1', 'true', 'yes', 'on'):
        return True
    if lowered in ('0', 'false', 'no', 'off'):
        return False
    raise ValueError(f"Not a boolean: {value!r}")


class ConfigManager:
    """Loads, validates and saves JSON configuration files."""

    def __init__(self, config_path: Optional[Union[str, Path]] = None):
        self.config_path = Path(config_path) if config_path else None

    def load_config(self, config_path: Optional[Union[str, Path]] = None) -> Dict[str, Any]:
        """
        Load a configuration file.

        Args:
            config_path: File to load (defaults to the manager's path)

        Returns:
            Parsed configuration, empty when no file is configured
        """
        path = Path(config_path) if config_path else self.config_path
        if path is None:
            return {}

        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"Configuration file {path} must contain a JSON object")

        logger.debug(f"Loaded configuration from {path}")
        return data

    @staticmethod
    def render_section(config_dict: Dict[str, Any]) -> Dict[str, Any]:
        return config_dict.get('render', config_dict)

    def validate_config(self, config_dict: Dict[str, Any]) -> List[str]:
        """
        Check a configuration dictionary.

        Returns:
            List of error messages, empty when the configuration is valid
        """
        errors = []
        known = {f.name for f in fields(_forge_config_class())}
        section = self.render_section(config_dict)

        for key in section:
            if key not in known:
                errors.append(f"Unknown option '{key}'")

        if not errors:
            try:
                self.create_forge_config(config_dict)
            except (TypeError, ValueError) as e:
                errors.append(str(e))

        return errors

    def create_forge_config(self, config_dict: Dict[str, Any]):
        """Build and validate a ForgeConfig from a configuration dictionary."""
        forge_config_class = _forge_config_class()
        known = {f.name for f in fields(forge_config_class)}
        section = self.render_section(config_dict)

        config = forge_config_class(**{k: v for k, v in section.items() if k in known})
        config.validate()
        return config

    def save_config(self, config, config_path: Union[str, Path]) -> None:
        """Write a ForgeConfig as a JSON configuration file."""
        path = Path(config_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w', encoding='utf-8') as f:
            json.dump({'render': asdict(config)}, f, indent=2)
        logger.info(f"Saved configuration: {path}")


class EnvironmentConfig:
    """Applies ``FRACTAL_FORGE_*`` environment variables to a configuration."""

    @staticmethod
    def get_overrides(environ: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
        """
        Collect typed overrides from the environment.

        Args:
            environ: Mapping to read (defaults to ``os.environ``)

        Returns:
            Field name to converted value
        """
        environ = os.environ if environ is None else environ
        overrides = {}

        for config_field in fields(_forge_config_class()):
            raw = environ.get(ENV_PREFIX + config_field.name.upper())
            if raw is None:
                continue

            default = config_field.default
            try:
                if isinstance(default, bool):
                    value = _parse_bool(raw)
                elif isinstance(default, int) or config_field.name in ('seed', 'workers'):
                    value = int(raw)
                else:
                    value = raw
            except ValueError as e:
                raise ValueError(f"Invalid value for {ENV_PREFIX}{config_field.name.upper()}: {e}")

            overrides[config_field.name] = value

        return overrides

    @classmethod
    def apply(cls, config, environ: Optional[Dict[str, str]] = None):
        """Set every overridden field on ``config`` and revalidate it."""
        for key, value in cls.get_overrides(environ).items():
            logger.debug(f"Environment override: {key}={value!r}")
            setattr(config, key, value)
        config.validate()
        return config


def load_config_from_args(config_file: Optional[Union[str, Path]] = None,
                          environ: Optional[Dict[str, str]] = None):
    """
    Build the effective configuration for a command.

    Defaults are overlaid by the configuration file and then by the
    environment.
    """
    manager = ConfigManager(config_file)
    config = manager.create_forge_config(manager.load_config())
    return EnvironmentConfig.apply(config, environ)
