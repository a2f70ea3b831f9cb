"""
Capabilities the core components are written against.

Concrete classes satisfy them structurally; nothing inherits from these. Tests
substitute in-memory fakes for each one.
"""

from collections.abc import Mapping, Sequence
from typing import Any, Protocol, runtime_checkable

from awsconnect.models import ClusterRef, CredentialSet, ServiceRef, TaskListing


@runtime_checkable
class UserChooser(Protocol):
    """
    Protocol for asking the operator to pick one of several candidates.

    Implementations:
    - prompts.QuestionaryChooser - Interactive terminal menu
    - prompts.NonInteractiveChooser - Fails with the candidate list
    """

    def choose(self, prompt: str, options: Sequence[str]) -> int:
        """
        Ask for a single selection.

        Args:
        ----
            prompt: Question shown above the options (e.g., "Pick your task")
            options: Labels in presentation order (at least two)

        Returns:
        -------
            Index into ``options`` of the chosen label

        Raises:
        ------
            SelectionCancelled: If the operator aborts the prompt
            AmbiguousTarget: If prompting is not possible

        """
        ...


@runtime_checkable
class CredentialBroker(Protocol):
    """
    Protocol for exchanging a profile name for temporary credentials.

    Implementations:
    - security/vault.py - AwsVaultBroker (aws-vault subprocess)
    """

    def login(self, profile: str) -> CredentialSet:
        """
        Mint credentials for a profile.

        Raises
        ------
            VaultUnavailable: If the vault is not installed or not executable
            AuthenticationFailed: If the vault rejects the login
            CredentialError: If the vault output cannot be parsed

        """
        ...

    def open_console(self, profile: str) -> None:
        """Open the cloud provider's web console for a profile."""
        ...


@runtime_checkable
class ClusterCatalog(Protocol):
    """
    Protocol for read-only discovery of clusters, services and tasks.

    Implementations:
    - cal/ecs.py - EcsClusterCatalog (boto3 ECS client)
    """

    @property
    def region(self) -> str:
        """Region the catalog reads from."""
        ...

    def list_clusters(self) -> list[ClusterRef]:
        """List the active clusters visible to the credentials."""
        ...

    def list_services(self, cluster: ClusterRef) -> list[ServiceRef]:
        """List the services of a cluster."""
        ...

    def list_tasks(self, cluster: ClusterRef, service: str | None = None) -> TaskListing:
        """List and describe the tasks of a cluster, optionally only those of one service."""
        ...

    def describe_tasks(self, cluster: ClusterRef, task_ids: Sequence[str]) -> TaskListing:
        """Describe specific tasks by id or ARN; tasks ECS cannot describe are counted as missing."""
        ...


@runtime_checkable
class CloudSessionFactory(Protocol):
    """
    Protocol for creating cloud provider sessions from minted credentials.

    Implementations:
    - any/cloud_sessions.py - Boto3SessionFactory
    """

    def create_session(self, credentials: CredentialSet, region: str | None = None) -> Any:
        """Create a synchronous cloud session (e.g., boto3.Session)."""
        ...


@runtime_checkable
class ProcessRunner(Protocol):
    """
    Protocol for the child-process lifecycle of a remote-exec session.

    Isolates terminal attachment (platform-specific) from the launcher's state machine.

    Implementations:
    - launcher.SubprocessRunner - subprocess.Popen with inherited stdio
    """

    def start(self, argv: Sequence[str], env: Mapping[str, str]) -> Any:
        """
        Start the child attached to the controlling terminal.

        Returns
        -------
            An opaque handle passed back to ``wait`` and ``forward_signal``

        Raises
        ------
            FileNotFoundError: If the executable does not exist
            PermissionError: If the executable cannot be run

        """
        ...

    def wait(self, handle: Any) -> int:
        """Block until the child exits and return its raw return code."""
        ...

    def forward_signal(self, handle: Any, signum: int) -> None:
        """Deliver a signal to the child."""
        ...
