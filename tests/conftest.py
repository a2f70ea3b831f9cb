"""Pytest configuration and fixtures for awsconnect tests.

The fakes here stand in for the external seams (ECS control plane, operator,
child process, credential vault) so resolution and launch run without AWS,
a terminal or a clock.
"""

from collections.abc import Sequence
from datetime import datetime, timedelta, timezone

import pytest

from awsconnect.any.container import container
from awsconnect.models import ClusterRef, ContainerRef, CredentialSet, ServiceRef, TaskListing, TaskRef, utc_now
from awsconnect.types import ContainerStatus, TaskStatus

ACCOUNT = "123456789012"
REGION = "eu-west-1"
FIXED_NOW = datetime(2026, 10, 17, 12, 0, tzinfo=timezone.utc)


def _make_container(name: str = "app", status: ContainerStatus = ContainerStatus.RUNNING, **kwargs) -> ContainerRef:
    return ContainerRef(
        name=name,
        arn=f"arn:aws:ecs:{REGION}:{ACCOUNT}:container/{name}",
        status=status,
        **kwargs,
    )


def _make_task(
    task_id: str,
    family: str = "web",
    status: TaskStatus = TaskStatus.RUNNING,
    containers: Sequence[ContainerRef] | None = None,
    cluster: str = "prod",
    started_at: datetime | None = None,
    service_name: str | None = None,
    exec_enabled: bool = True,
) -> TaskRef:
    if containers is None:
        containers = [_make_container()]
    return TaskRef(
        arn=f"arn:aws:ecs:{REGION}:{ACCOUNT}:task/{cluster}/{task_id}",
        id=task_id,
        cluster_arn=f"arn:aws:ecs:{REGION}:{ACCOUNT}:cluster/{cluster}",
        family=family,
        status=status,
        started_at=started_at,
        service_name=service_name,
        exec_enabled=exec_enabled,
        containers=tuple(containers),
    )


def _make_credentials(
    profile: str = "dev",
    expires_in: timedelta = timedelta(hours=1),
    now: datetime | None = None,
    region: str | None = None,
) -> CredentialSet:
    return CredentialSet(
        profile=profile,
        access_key_id="AKIAEXAMPLEKEY",
        secret_access_key="wJalrXUtnFEMI-secret",
        session_token="FwoGZXIvYXdzEXAMPLETOKEN",
        expires_at=(now or utc_now()) + expires_in,
        region=region,
    )


class FakeCatalog:
    """
    In-memory ClusterCatalog.

    ``listings`` are the successive results of task fetches; the last one repeats
    once they run out, so a catalog can model a task that becomes RUNNING on the
    third poll. A TaskListing entry keeps its ``missing`` count.
    """

    def __init__(
        self,
        clusters: Sequence[str] = ("prod",),
        listings: Sequence[Sequence[TaskRef]] = ((),),
        services: dict[str, list[str]] | None = None,
        region: str = REGION,
    ):
        self._clusters = list(clusters)
        self._listings = [TaskListing(listing, missing=getattr(listing, "missing", 0)) for listing in listings]
        self._services = services or {}
        self._region = region
        self.fetches = 0
        self.calls: list[tuple] = []

    @property
    def region(self) -> str:
        return self._region

    def _next_listing(self) -> TaskListing:
        listing = self._listings[min(self.fetches, len(self._listings) - 1)]
        self.fetches += 1
        return listing

    def list_clusters(self) -> list[ClusterRef]:
        self.calls.append(("list_clusters",))
        return [ClusterRef.from_identifier(name, self._region) for name in self._clusters]

    def list_services(self, cluster: ClusterRef) -> list[ServiceRef]:
        self.calls.append(("list_services", cluster.name))
        return [ServiceRef.from_identifier(name, cluster.arn) for name in self._services.get(cluster.name, [])]

    def list_tasks(self, cluster: ClusterRef, service: str | None = None) -> TaskListing:
        self.calls.append(("list_tasks", cluster.name, service))
        listing = self._next_listing()
        return TaskListing((t for t in listing if service is None or t.service_name == service), listing.missing)

    def describe_tasks(self, cluster: ClusterRef, task_ids: Sequence[str]) -> TaskListing:
        self.calls.append(("describe_tasks", cluster.name, tuple(task_ids)))
        listing = self._next_listing()
        return TaskListing((t for t in listing if any(t.matches(i) for i in task_ids)), listing.missing)


class ScriptedChooser:
    """
    UserChooser that answers from a script and records every prompt.

    An int answer is an index; a str answer picks the first option containing it.
    """

    def __init__(self, *answers: int | str):
        self.answers = list(answers)
        self.prompts: list[tuple[str, list[str]]] = []

    def choose(self, prompt: str, options: Sequence[str]) -> int:
        self.prompts.append((prompt, list(options)))
        if not self.answers:
            raise AssertionError(f"Unexpected prompt: {prompt} {list(options)}")
        answer = self.answers.pop(0)
        if isinstance(answer, int):
            return answer
        return next(i for i, option in enumerate(options) if answer in option)


class FakeRunner:
    """ProcessRunner that records starts and forwarded signals instead of spawning."""

    def __init__(self, returncode: int = 0, start_error: Exception | None = None):
        self.returncode = returncode
        self.start_error = start_error
        self.started: list[tuple[list[str], dict[str, str]]] = []
        self.signals: list[int] = []
        self.on_start = None
        self.on_wait = None

    def start(self, argv: Sequence[str], env: dict[str, str]) -> str:
        if self.on_start is not None:
            self.on_start()
        if self.start_error is not None:
            raise self.start_error
        self.started.append((list(argv), dict(env)))
        return "child-handle"

    def wait(self, handle: str) -> int:
        if self.on_wait is not None:
            self.on_wait(handle)
        return self.returncode

    def forward_signal(self, handle: str, signum: int) -> None:
        self.signals.append(signum)


class FakeBroker:
    """CredentialBroker that hands out a fixed credential set."""

    def __init__(self, credentials: CredentialSet | None = None, error: Exception | None = None):
        self.credentials = credentials or _make_credentials()
        self.error = error
        self.logins: list[str] = []
        self.consoles: list[str] = []

    def login(self, profile: str) -> CredentialSet:
        self.logins.append(profile)
        if self.error is not None:
            raise self.error
        return self.credentials.model_copy(update={"profile": profile})

    def open_console(self, profile: str) -> None:
        self.consoles.append(profile)


@pytest.fixture
def make_container():
    """Build a ContainerRef (RUNNING 'app' by default)."""
    return _make_container


@pytest.fixture
def make_task():
    """Build a TaskRef in cluster 'prod' with one running 'app' container by default."""
    return _make_task


@pytest.fixture
def make_credentials():
    """Build a CredentialSet expiring an hour from now by default."""
    return _make_credentials


@pytest.fixture
def make_catalog():
    """Build a FakeCatalog."""
    return FakeCatalog


@pytest.fixture
def make_chooser():
    """Build a ScriptedChooser."""
    return ScriptedChooser


@pytest.fixture
def make_broker():
    """Build a FakeBroker."""
    return FakeBroker


@pytest.fixture
def fake_runner():
    """A FakeRunner whose child exits 0."""
    return FakeRunner()


@pytest.fixture
def make_runner():
    """Build a FakeRunner."""
    return FakeRunner


@pytest.fixture(autouse=True)
def reset_container_overrides():
    """Drop provider overrides and cached singletons left on the global container."""
    yield
    container.reset_override()
    container.reset_singletons()
