#!/usr/bin/env python3

import os
import json
import tomllib
from pathlib import Path

import logging
import sys

import yaml

from .exit_codes import ConfigurationError

logger = logging.getLogger("obsenv")

# Below DEBUG; enabled with --log-level trace
TRACE = 5
logging.addLevelName(TRACE, "TRACE")

LOG_LEVELS = {
    "trace": TRACE,
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}

CONFIG_FILENAMES = ['config.yaml', 'config.yml', 'config.toml', 'config.json']


def setup_logging(level="debug", fmt="%(levelname)s: %(message)s"):
    """Configure the root logger to write to stderr at the given level."""
    if isinstance(level, str):
        level = LOG_LEVELS.get(level.lower(), logging.INFO)
    logging.basicConfig(
        level=level,
        format=fmt,
        handlers=[
            logging.StreamHandler(sys.stderr)
        ],
        force=True,
    )
    logger.setLevel(level)


def get_config_path():
    """Get the path to the configuration file.

    Checks in order:
    1. OBSENV_CONFIG environment variable
    2. ~/.obsenv/ directory
    """
    if 'OBSENV_CONFIG' in os.environ:
        path = Path(os.environ['OBSENV_CONFIG'])
        if path.exists():
            return path

    obsenv_dir = Path.home() / '.obsenv'
    for filename in CONFIG_FILENAMES:
        path = obsenv_dir / filename
        if path.exists():
            return path

    # If no file exists, return default path
    return obsenv_dir / 'config.yaml'


def get_default_config():
    """Get default configuration."""
    return {
        "general": {
            "env_path": "/net/obs-env/auto_base_packages",
        },
        "base_env": {
            "descriptor_remote": "https://github.com/lsst-ts/ts_observing_environment.git",
            "manifest_file": "base_env_versions.yaml",
            "default_branch": "main",
        },
        "git": {
            "timeout_seconds": 300,
        },
        "logging": {
            "level": "debug",
            "format": "%(levelname)s: %(message)s",
        },
    }


def _read_config_file(config_path):
    suffix = config_path.suffix.lower()
    try:
        if suffix == '.toml':
            with open(config_path, 'rb') as f:
                return tomllib.load(f)
        if suffix in ('.yaml', '.yml'):
            with open(config_path, 'r') as f:
                return yaml.safe_load(f) or {}
        with open(config_path, 'r') as f:
            return json.load(f)
    except (OSError, tomllib.TOMLDecodeError, yaml.YAMLError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Error loading config from {config_path}: {e}") from e


def load_config(config_path=None):
    """Load configuration from file.

    Args:
        config_path: Explicit config file. When given it must exist.

    Returns:
        dict: Defaults merged with the file and environment overrides.

    Raises:
        ConfigurationError: If the file cannot be read or parsed.
    """
    if config_path is not None:
        config_path = Path(config_path).expanduser()
        if not config_path.exists():
            raise ConfigurationError(f"Config file not found: {config_path}")
    else:
        config_path = get_config_path()

    config = get_default_config()

    if config_path.exists():
        file_config = _read_config_file(config_path)
        if not isinstance(file_config, dict):
            raise ConfigurationError(f"Config file {config_path} must contain a mapping")
        config = merge_configs(config, file_config)
        logger.log(TRACE, f"Loaded config from {config_path}")

    return apply_env_overrides(config)


def merge_configs(base_config, override_config):
    """
    Recursively merge two configuration dictionaries.

    Args:
        base_config (dict): Base configuration
        override_config (dict): Configuration to merge/override with

    Returns:
        dict: Merged configuration
    """
    merged = base_config.copy()

    for key, value in override_config.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = merge_configs(merged[key], value)
        else:
            merged[key] = value

    return merged


def apply_env_overrides(config):
    """
    Apply environment variable overrides to configuration.
    Environment variables follow the pattern: OBSENV_SECTION_KEY
    For example: OBSENV_BASE_ENV_MANIFEST_FILE=versions.yaml
    """
    for section, values in config.items():
        if not isinstance(values, dict):
            continue
        for key, current in values.items():
            env_key = f"OBSENV_{section}_{key}".upper()
            if env_key not in os.environ:
                continue
            value = os.environ[env_key]
            if isinstance(current, int):
                try:
                    value = int(value)
                except ValueError as e:
                    raise ConfigurationError(f"{env_key} must be an integer, got {value!r}") from e
            values[key] = value

    return config
