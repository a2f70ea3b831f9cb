"""
awsconnect - Shell access to running ECS containers.

This library provides the pieces behind the ``awsconnect`` command:
- Credential broker: temporary credentials from aws-vault, never written to disk
- Cluster catalog: read-only ECS discovery (clusters, services, tasks, containers)
- Target resolver: narrows a partial target to one running container, prompting when needed
- Session launcher: runs ``aws ecs execute-command`` attached to the terminal
"""

from importlib.metadata import PackageNotFoundError, version

from awsconnect.exceptions import (
    AuthenticationFailed,
    AwsConnectConfigurationError,
    AwsConnectError,
    CatalogError,
    CredentialError,
    CredentialsExpiringImminently,
    LaunchError,
    NoClustersFound,
    NoRunningTasks,
    ResolutionError,
    TransportUnavailable,
    VaultUnavailable,
)

try:
    __version__ = version("awsconnect")
except PackageNotFoundError:
    __version__ = "0.0.0.dev0"

__all__ = [
    # Exceptions
    "AwsConnectError",
    "AwsConnectConfigurationError",
    "ResolutionError",
    "NoClustersFound",
    "NoRunningTasks",
    "CredentialError",
    "AuthenticationFailed",
    "VaultUnavailable",
    "LaunchError",
    "TransportUnavailable",
    "CredentialsExpiringImminently",
    "CatalogError",
    # Version
    "__version__",
]
