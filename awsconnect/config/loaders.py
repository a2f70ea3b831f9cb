"""
Configuration loading for awsconnect.

The config file is optional; without one every setting has a working default.

Search order:
1. An explicit path (``--config``)
2. ``$AWSCONNECT_CONFIG``
3. ``.awsconnect.yaml`` in the working directory or up to 3 parent directories
4. ``~/.config/awsconnect/config.yaml``
"""

import os
from pathlib import Path

import yaml
from pydantic import ValidationError

from awsconnect.any.log import get_logger
from awsconnect.config.schemas import AwsConnectConfig
from awsconnect.exceptions import AwsConnectConfigurationError

LOGGER = get_logger("awsconnect.config.loaders")

CONFIG_ENV_VAR = "AWSCONNECT_CONFIG"
PROJECT_CONFIG_NAME = ".awsconnect.yaml"


def user_config_path() -> Path:
    """Path of the per-user config file."""
    return Path.home() / ".config" / "awsconnect" / "config.yaml"


def find_config_file(start: Path | None = None) -> Path | None:
    """
    Find the config file to use.

    Args:
    ----
        start: Directory to start the project search from (defaults to cwd)

    Returns:
    -------
        Path to the config file, or None if there is none

    Raises:
    ------
        AwsConnectConfigurationError: If $AWSCONNECT_CONFIG points to a missing file

    """
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        path = Path(env_path).expanduser()
        if not path.exists():
            raise AwsConnectConfigurationError(f"${CONFIG_ENV_VAR} points to a missing file: {path}")
        return path

    # Check current directory
    current = start or Path.cwd()
    config_file = current / PROJECT_CONFIG_NAME
    if config_file.exists():
        return config_file

    # Check parent directories (up to 3 levels)
    for _ in range(3):
        current = current.parent
        config_file = current / PROJECT_CONFIG_NAME
        if config_file.exists():
            return config_file

    user_file = user_config_path()
    if user_file.exists():
        return user_file

    return None


def load_config_file(config_file: Path) -> AwsConnectConfig:
    """
    Load and validate a config file.

    Args:
    ----
        config_file: Path to a YAML config file

    Returns:
    -------
        Validated AwsConnectConfig

    Raises:
    ------
        AwsConnectConfigurationError: If file not found, not YAML, or fails validation

    """
    if not config_file.exists():
        raise AwsConnectConfigurationError(f"Config file not found: {config_file}")

    try:
        with open(config_file) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise AwsConnectConfigurationError(f"Invalid YAML in {config_file}\nError: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise AwsConnectConfigurationError(f"Config file must contain a YAML dictionary: {config_file}")

    try:
        config = AwsConnectConfig(**data)
    except ValidationError as e:
        raise AwsConnectConfigurationError(f"Invalid configuration in {config_file}:\n{e}") from e

    LOGGER.debug(f"Loaded configuration from {config_file}")
    return config


def load_config(path: Path | None = None) -> AwsConnectConfig:
    """
    Load configuration, falling back to defaults when no file exists.

    Args:
    ----
        path: Explicit config file path (takes precedence over the search)

    Returns:
    -------
        Validated AwsConnectConfig

    """
    config_file = path or find_config_file()
    if config_file is None:
        LOGGER.debug("No config file found, using defaults")
        return AwsConnectConfig()
    return load_config_file(config_file)
