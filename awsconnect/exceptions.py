"""
awsconnect exception classes.

This module defines custom exceptions for awsconnect so that discovery, credential and
launch failures never masquerade as built-in Python errors.

Every exception carries an ``exit_code`` that the command surface returns to the shell.
Codes are distinct per failure so scripts can tell them apart from each other and from
the exit status of a remote session.
"""

from collections.abc import Sequence


class AwsConnectError(Exception):
    """
    Base exception for all awsconnect errors.

    All awsconnect exceptions inherit from this, allowing callers to catch every
    tool-specific error with a single except clause while not catching unrelated
    Python errors.
    """

    exit_code: int = 1


class AwsConnectConfigurationError(AwsConnectError):
    """
    Raised when configuration cannot be loaded or is incomplete.

    This includes malformed config files, unknown signal names, no region available,
    and no AWS profiles to choose from.
    """

    exit_code = 3


# ============================================================================
# DISCOVERY
# ============================================================================


class ResolutionError(AwsConnectError):
    """
    Raised when a partial target cannot be resolved to a single runnable container.

    Discovery errors carry the candidates the operator can pick from, when there are any.
    """

    exit_code = 4

    def __init__(self, message: str, candidates: Sequence[str] = ()) -> None:
        self.candidates = tuple(candidates)
        if self.candidates:
            message = f"{message}\nCandidates: {', '.join(self.candidates)}"
        super().__init__(message)


class NoClustersFound(ResolutionError):
    """Raised when the profile can see no ECS clusters in the region."""

    exit_code = 10


class ClusterNotFound(ResolutionError):
    """Raised when the named cluster does not exist in the region."""

    exit_code = 11


class ServiceNotFound(ResolutionError):
    """Raised when the named service does not exist, or the cluster has no services."""

    exit_code = 12


class NoRunningTasks(ResolutionError):
    """
    Raised when no task is running after the retry budget is spent.

    Example:
    -------
        A service was just deployed and its only task is still PROVISIONING
        after every polling attempt:
        >>> resolver.resolve(PartialTarget(cluster="staging"))
        NoRunningTasks: No running tasks in cluster 'staging' after 5 attempts...

    """

    exit_code = 13


class TaskNotFound(ResolutionError):
    """Raised when a task id or ARN given by the operator is unknown to the cluster."""

    exit_code = 14


class ContainerNotFound(ResolutionError):
    """Raised when no running container in the task matches the requested name."""

    exit_code = 15


class AmbiguousTarget(ResolutionError):
    """Raised when a choice is required but prompting is disabled."""

    exit_code = 16


class SelectionCancelled(ResolutionError):
    """Raised when the operator aborts an interactive prompt."""

    exit_code = 130


# ============================================================================
# CREDENTIALS
# ============================================================================


class CredentialError(AwsConnectError):
    """Raised when the credential vault returns output that cannot be used."""

    exit_code = 20


class AuthenticationFailed(CredentialError):
    """
    Raised when the credential vault rejects the login.

    Login failures are user-actionable (re-authenticate with the identity provider,
    check the MFA device) and are never retried automatically.
    """

    exit_code = 21


class VaultUnavailable(CredentialError):
    """Raised when the credential vault binary is not installed or cannot be executed."""

    exit_code = 22


# ============================================================================
# LAUNCH
# ============================================================================


class LaunchError(AwsConnectError):
    """Raised when the remote-exec session cannot be started."""

    exit_code = 30


class TransportUnavailable(LaunchError):
    """Raised when the remote-exec transport binary is missing or not executable."""

    exit_code = 31


class CredentialsExpiringImminently(LaunchError):
    """Raised when the credentials would expire before the session could be used."""

    exit_code = 32


# ============================================================================
# CONTROL PLANE
# ============================================================================


class CatalogError(AwsConnectError):
    """Raised when the ECS control plane returns an error or an unusable payload."""

    exit_code = 40
