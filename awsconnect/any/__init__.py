"""
Any - Shared building blocks for awsconnect.

Protocols, logging, subprocess utilities and the boto3 session factory used by every
command. The dependency injection container lives in ``awsconnect.any.container`` and
is imported from there directly, since it depends on the modules built on this package.
"""

from awsconnect.any.cloud_sessions import Boto3SessionFactory
from awsconnect.any.log import configure_logging, get_logger
from awsconnect.any.protocols import (
    CloudSessionFactory,
    ClusterCatalog,
    CredentialBroker,
    ProcessRunner,
    UserChooser,
)
from awsconnect.any.utils import find_executable, run_command

__all__ = [
    # Protocols
    "UserChooser",
    "CredentialBroker",
    "ClusterCatalog",
    "CloudSessionFactory",
    "ProcessRunner",
    # Logging
    "configure_logging",
    "get_logger",
    # Utils
    "run_command",
    "find_executable",
    # Cloud Sessions
    "Boto3SessionFactory",
]
