"""awsconnect configuration management."""

from awsconnect.config.loaders import find_config_file, load_config, load_config_file
from awsconnect.config.schemas import (
    AwsConnectConfig,
    RetryPolicy,
    TransportConfig,
    VaultConfig,
    VaultExportFormat,
)

__all__ = [
    "AwsConnectConfig",
    "RetryPolicy",
    "TransportConfig",
    "VaultConfig",
    "VaultExportFormat",
    "find_config_file",
    "load_config",
    "load_config_file",
]
