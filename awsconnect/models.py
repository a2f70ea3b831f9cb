"""
Data model for target resolution and session launch.

The refs form a strict tree: Cluster -> Service (optional) -> Task -> Container.
Every model is frozen; a resolution step builds its refs once and nothing mutates
them afterwards.
"""

import shlex
from collections.abc import Iterable, Mapping
from datetime import datetime, timedelta, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator, model_validator

from awsconnect.exceptions import CatalogError
from awsconnect.types import ContainerStatus, TaskStatus

# Removed from the child environment so the exported keys are the only credentials it sees
_PROFILE_ENV_VARS = ("AWS_PROFILE", "AWS_DEFAULT_PROFILE")


def _arn_suffix(identifier: str) -> str:
    """Last path segment of an ARN (``arn:...:cluster/prod`` -> ``prod``); identity for bare names."""
    return identifier.rsplit("/", 1)[-1]


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


class ClusterRef(BaseModel):
    """An ECS cluster, identified by ARN or name, in a region."""

    model_config = ConfigDict(frozen=True)

    arn: str
    name: str
    region: str

    @classmethod
    def from_identifier(cls, identifier: str, region: str) -> "ClusterRef":
        """Build from a cluster ARN or a bare cluster name."""
        return cls(arn=identifier, name=_arn_suffix(identifier), region=region)


class ServiceRef(BaseModel):
    """An ECS service belonging to exactly one cluster."""

    model_config = ConfigDict(frozen=True)

    arn: str
    name: str
    cluster_arn: str

    @classmethod
    def from_identifier(cls, identifier: str, cluster_arn: str) -> "ServiceRef":
        """Build from a service ARN or a bare service name."""
        return cls(arn=identifier, name=_arn_suffix(identifier), cluster_arn=cluster_arn)


class ContainerRef(BaseModel):
    """A single container within a task."""

    model_config = ConfigDict(frozen=True)

    name: str
    arn: str
    status: ContainerStatus
    runtime_id: str | None = None
    exec_agent_status: str | None = None

    @classmethod
    def from_api(cls, payload: Mapping[str, Any]) -> "ContainerRef":
        """Build from one entry of a ``describe_tasks`` ``containers`` list."""
        exec_agent_status = None
        for agent in payload.get("managedAgents", []):
            if agent.get("name") == "ExecuteCommandAgent":
                exec_agent_status = agent.get("lastStatus")

        return cls(
            name=payload["name"],
            arn=payload.get("containerArn", payload["name"]),
            status=ContainerStatus.from_api(payload.get("lastStatus")),
            runtime_id=payload.get("runtimeId"),
            exec_agent_status=exec_agent_status,
        )

    def pretty(self) -> str:
        """Name with a status suffix unless the container is running."""
        if self.status.is_running:
            return self.name
        return f"{self.name} {self.status.value}"


class TaskRef(BaseModel):
    """
    A task within a cluster, as reported by ``describe_tasks``.

    ``family`` is the task definition family (``web`` for
    ``arn:aws:ecs:...:task-definition/web:42``) and serves as the task's friendly name.
    """

    model_config = ConfigDict(frozen=True)

    arn: str
    id: str
    cluster_arn: str
    family: str
    status: TaskStatus
    started_at: datetime | None = None
    service_name: str | None = None
    exec_enabled: bool = False
    containers: tuple[ContainerRef, ...] = ()

    @classmethod
    def from_api(cls, payload: Mapping[str, Any]) -> "TaskRef":
        """
        Build from one entry of a ``describe_tasks`` ``tasks`` list.

        Raises
        ------
            CatalogError: If the payload lacks required fields or reports an unknown status

        """
        try:
            task_arn = payload["taskArn"]
            definition = _arn_suffix(payload["taskDefinitionArn"])
            group = payload.get("group") or ""
            return cls(
                arn=task_arn,
                id=_arn_suffix(task_arn),
                cluster_arn=payload.get("clusterArn", ""),
                family=definition.split(":", 1)[0],
                status=TaskStatus.from_string(payload["lastStatus"]),
                started_at=payload.get("startedAt"),
                service_name=group.split(":", 1)[1] if group.startswith("service:") else None,
                exec_enabled=bool(payload.get("enableExecuteCommand", False)),
                containers=tuple(ContainerRef.from_api(c) for c in payload.get("containers", [])),
            )
        except (KeyError, ValueError) as e:
            raise CatalogError(f"Unexpected task description from ECS: {e}") from e

    @property
    def running_containers(self) -> tuple[ContainerRef, ...]:
        """Containers that can accept an exec session."""
        return tuple(c for c in self.containers if c.status.is_running)

    def matches(self, identifier: str) -> bool:
        """Whether a task id or ARN given by the operator refers to this task."""
        return identifier in (self.id, self.arn)

    def label(self) -> str:
        """Menu label: ``family[ STATUS] (id) [container, container STATUS]``."""
        containers = ", ".join(c.pretty() for c in self.containers)
        return f"{self.family}{self.status.pretty()} ({self.id}) [{containers}]"

    def recency_key(self) -> tuple:
        """Sort key: most recently started first, never-started last, then family and id."""
        if self.started_at is None:
            return (1, 0.0, self.family, self.id)
        return (0, -self.started_at.timestamp(), self.family, self.id)


class TaskListing(list):
    """
    Tasks from one catalog read.

    ``missing`` counts tasks the control plane knew of but could not describe yet
    (ECS ``MISSING`` failures right after a task starts).
    """

    def __init__(self, tasks: Iterable[TaskRef] = (), missing: int = 0):
        super().__init__(tasks)
        self.missing = missing

    def __repr__(self) -> str:
        return f"TaskListing({list(self)!r}, missing={self.missing})"


class PartialTarget(BaseModel):
    """
    What the operator asked for.

    ``None`` means "not given". An empty ``service`` means "list the services and let
    me choose"; for the other fields an empty string is the same as not given.
    """

    model_config = ConfigDict(frozen=True)

    cluster: str | None = None
    service: str | None = None
    task: str | None = None
    container: str | None = None

    @property
    def wants_service_prompt(self) -> bool:
        """Whether the operator asked to choose the service interactively."""
        return self.service == ""


class ResolvedTarget(BaseModel):
    """
    The fully disambiguated (cluster, task, container) snapshot.

    Task and container report RUNNING when the snapshot is taken. The snapshot is not a
    live handle: the task can stop between resolution and launch.
    """

    model_config = ConfigDict(frozen=True)

    cluster: ClusterRef
    task: TaskRef
    container: ContainerRef

    @model_validator(mode="after")
    def validate_running(self) -> "ResolvedTarget":
        """Validate that the snapshot points at a running container of a running task."""
        if not self.task.status.is_running:
            raise ValueError(f"Task {self.task.id} is {self.task.status.value}, not RUNNING")
        if not self.container.status.is_running:
            raise ValueError(f"Container {self.container.name} is {self.container.status.value}, not RUNNING")
        if self.container not in self.task.containers:
            raise ValueError(f"Container {self.container.name} does not belong to task {self.task.id}")
        return self


class CredentialSet(BaseModel):
    """
    Short-lived AWS credentials minted by the vault for one invocation.

    Never persisted; secrets are SecretStr so they stay out of reprs and logs.
    """

    model_config = ConfigDict(frozen=True)

    profile: str
    access_key_id: str
    secret_access_key: SecretStr
    session_token: SecretStr | None = None
    expires_at: datetime
    region: str | None = None

    @field_validator("expires_at")
    @classmethod
    def ensure_aware(cls, value: datetime) -> datetime:
        """Treat naive timestamps as UTC."""
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    def expires_within(self, margin: timedelta, now: datetime | None = None) -> bool:
        """Whether the credentials expire before ``now + margin``."""
        return self.expires_at < (now or utc_now()) + margin

    def to_env(self) -> dict[str, str]:
        """Environment variables that hand these credentials to a child process."""
        env = {
            "AWS_ACCESS_KEY_ID": self.access_key_id,
            "AWS_SECRET_ACCESS_KEY": self.secret_access_key.get_secret_value(),
            "AWS_CREDENTIAL_EXPIRATION": self.expires_at.isoformat(),
        }
        if self.session_token is not None:
            env["AWS_SESSION_TOKEN"] = self.session_token.get_secret_value()
        return env


class LaunchSpec(BaseModel):
    """
    Everything needed to start one remote-exec session.

    Built once per session from a ResolvedTarget and a CredentialSet, consumed once by
    the launcher.
    """

    model_config = ConfigDict(frozen=True)

    target: ResolvedTarget
    credentials: CredentialSet
    region: str
    command: tuple[str, ...] = Field(min_length=1)
    interactive: bool = True
    transport_binary: str = "aws"

    @classmethod
    def build(
        cls,
        target: ResolvedTarget,
        credentials: CredentialSet,
        command: tuple[str, ...] | list[str],
        interactive: bool = True,
        transport_binary: str = "aws",
    ) -> "LaunchSpec":
        """Build a spec whose region is the resolved cluster's region."""
        return cls(
            target=target,
            credentials=credentials,
            region=target.cluster.region,
            command=tuple(command),
            interactive=interactive,
            transport_binary=transport_binary,
        )

    def command_string(self) -> str:
        """The in-container command as a single shell-quoted string."""
        return shlex.join(self.command)

    def argv(self) -> list[str]:
        """Transport command line."""
        argv = [
            self.transport_binary,
            "ecs",
            "execute-command",
            "--region",
            self.region,
            "--cluster",
            self.target.cluster.arn,
            "--task",
            self.target.task.arn,
            "--container",
            self.target.container.name,
            "--command",
            self.command_string(),
        ]
        if self.interactive:
            argv.append("--interactive")
        return argv

    def environment(self, base: Mapping[str, str]) -> dict[str, str]:
        """Child environment: a copy of ``base`` with the credentials layered on top."""
        env = {key: value for key, value in base.items() if key not in _PROFILE_ENV_VARS}
        env.update(self.credentials.to_env())
        env["AWS_REGION"] = self.region
        env["AWS_DEFAULT_REGION"] = self.region
        return env


class InvocationContext(BaseModel):
    """
    Per-run settings threaded through the workflow.

    ``interactive`` records whether the operator can be prompted for choices.
    """

    model_config = ConfigDict(frozen=True)

    profile: str
    region: str
    interactive: bool = True
