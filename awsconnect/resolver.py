"""
Target resolution.

Turns a partial target (cluster, service, task, container; any of them may be
missing) into exactly one running (cluster, task, container) snapshot:

1. Cluster: use the one given, else list clusters and auto-select or prompt.
2. Service: only when the operator asked to choose one; otherwise a given name is
   used as a task filter.
3. Task: list tasks and keep the RUNNING ones. When the only tasks are still
   starting, or ECS cannot describe them yet, poll again according to the
   RetryPolicy before giving up.
4. Container: match the given name exactly, else auto-select or prompt.

Prompts go through an injected UserChooser and waits through an injected sleep
function, so the whole pipeline runs in tests without a terminal or a clock.
"""

import time
from collections.abc import Callable, Sequence

from awsconnect.any.log import get_logger
from awsconnect.any.protocols import ClusterCatalog, UserChooser
from awsconnect.config.schemas import RetryPolicy
from awsconnect.exceptions import (
    ContainerNotFound,
    NoClustersFound,
    NoRunningTasks,
    ServiceNotFound,
    TaskNotFound,
)
from awsconnect.models import ClusterRef, ContainerRef, PartialTarget, ResolvedTarget, TaskListing, TaskRef

LOGGER = get_logger("awsconnect.resolver")


class TargetResolver:
    """
    Resolves a PartialTarget against a ClusterCatalog.

    Example:
    -------
        ```python
        resolver = TargetResolver(catalog, QuestionaryChooser(), RetryPolicy())
        target = resolver.resolve(PartialTarget(cluster="prod"))
        print(target.task.id, target.container.name)
        ```

    """

    def __init__(
        self,
        catalog: ClusterCatalog,
        chooser: UserChooser,
        retry_policy: RetryPolicy | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Initialize resolver.

        Args:
        ----
            catalog: Read-only control-plane adapter
            chooser: Asks the operator when more than one candidate remains
            retry_policy: Polling budget for tasks that are still starting
            sleep: Wait function (injected as a no-op in tests)

        """
        self._catalog = catalog
        self._chooser = chooser
        self.retry_policy = retry_policy or RetryPolicy()
        self._sleep = sleep

    def resolve(self, partial: PartialTarget) -> ResolvedTarget:
        """
        Resolve a partial target to a single running container.

        Raises
        ------
            NoClustersFound, ClusterNotFound, ServiceNotFound, NoRunningTasks,
            TaskNotFound, ContainerNotFound, AmbiguousTarget, SelectionCancelled

        """
        cluster = self._resolve_cluster(partial.cluster)
        service = self._resolve_service(cluster, partial)
        task = self._resolve_task(cluster, service, partial.task)
        container = self._resolve_container(task, partial.container)
        self._warn_if_exec_unavailable(task, container)

        LOGGER.info(f"Resolved target: cluster={cluster.name} task={task.id} container={container.name}")
        return ResolvedTarget(cluster=cluster, task=task, container=container)

    def _pick(self, prompt: str, labels: Sequence[str]) -> int:
        if len(labels) == 1:
            return 0
        return self._chooser.choose(prompt, labels)

    def _resolve_cluster(self, requested: str | None) -> ClusterRef:
        if requested:
            return ClusterRef.from_identifier(requested, self._catalog.region)

        clusters = sorted(self._catalog.list_clusters(), key=lambda c: c.name)
        if not clusters:
            raise NoClustersFound(f"No ECS clusters found in region {self._catalog.region}")

        return clusters[self._pick("Pick your cluster", [c.name for c in clusters])]

    def _resolve_service(self, cluster: ClusterRef, partial: PartialTarget) -> str | None:
        if not partial.wants_service_prompt:
            return partial.service

        services = sorted(self._catalog.list_services(cluster), key=lambda s: s.name)
        if not services:
            raise ServiceNotFound(f"Cluster '{cluster.name}' has no services")

        return services[self._pick("Pick your service", [s.name for s in services])].name

    def _poll_running_tasks(self, fetch: Callable[[], TaskListing]) -> tuple[TaskListing, int]:
        """
        Fetch tasks until one is running or nothing is left to wait for.

        A fetch is worth repeating while tasks are still starting or while ECS
        knows of tasks it cannot describe yet. Returns the last listing and the
        number of attempts made.
        """
        delays = self.retry_policy.delays()
        attempts = 0
        while True:
            attempts += 1
            tasks = fetch()
            if any(t.status.is_running for t in tasks):
                return tasks, attempts

            starting = [t for t in tasks if t.status.is_starting]
            if not starting and not tasks.missing:
                return tasks, attempts

            delay = next(delays, None)
            if delay is None:
                return tasks, attempts

            LOGGER.info(
                f"No running tasks yet ({len(starting)} starting, {tasks.missing} not visible yet); "
                f"retrying in {delay:.1f}s (attempt {attempts}/{self.retry_policy.max_attempts})"
            )
            self._sleep(delay)

    def _resolve_task(self, cluster: ClusterRef, service: str | None, task_id: str | None) -> TaskRef:
        if task_id:

            def fetch() -> TaskListing:
                described = self._catalog.describe_tasks(cluster, [task_id])
                matched = [
                    t for t in described if t.matches(task_id) and (service is None or t.service_name == service)
                ]
                # a task that was just started can be invisible for a moment
                return TaskListing(matched, missing=0 if described else 1)

        else:

            def fetch() -> TaskListing:
                return self._catalog.list_tasks(cluster, service)

        tasks, attempts = self._poll_running_tasks(fetch)
        scope = f"cluster '{cluster.name}'" + (f", service '{service}'" if service else "")

        if task_id and not tasks:
            raise TaskNotFound(f"Task '{task_id}' not found in {scope} after {attempts} attempts")

        running = sorted((t for t in tasks if t.status.is_running), key=TaskRef.recency_key)
        if not running:
            if any(t.status.is_starting for t in tasks):
                raise NoRunningTasks(
                    f"No running tasks in {scope} after {attempts} attempts; still starting: "
                    + ", ".join(t.label() for t in tasks if t.status.is_starting)
                )
            if tasks:
                raise NoRunningTasks(
                    f"No running tasks in {scope}: " + ", ".join(t.label() for t in tasks)
                )
            if tasks.missing:
                raise NoRunningTasks(
                    f"No running tasks in {scope} after {attempts} attempts; "
                    f"ECS could not describe {tasks.missing} listed tasks"
                )
            raise NoRunningTasks(f"No running tasks in {scope}")

        return running[self._pick("Pick your task", [t.label() for t in running])]

    def _resolve_container(self, task: TaskRef, requested: str | None) -> ContainerRef:
        if requested:
            match = next((c for c in task.containers if requested in (c.name, c.arn)), None)
            if match is None:
                raise ContainerNotFound(
                    f"No container named '{requested}' in task {task.id}",
                    candidates=sorted(c.name for c in task.containers),
                )
            if not match.status.is_running:
                raise ContainerNotFound(
                    f"Container '{requested}' in task {task.id} is {match.status.value}",
                    candidates=sorted(c.name for c in task.running_containers),
                )
            return match

        running = sorted(task.running_containers, key=lambda c: c.name)
        if not running:
            raise ContainerNotFound(
                f"Task {task.id} has no running containers",
                candidates=[c.pretty() for c in task.containers],
            )

        return running[self._pick("Pick your container", [c.name for c in running])]

    def _warn_if_exec_unavailable(self, task: TaskRef, container: ContainerRef) -> None:
        if not task.exec_enabled:
            LOGGER.warning(f"Task {task.id} does not have ECS Exec enabled (enableExecuteCommand); the session will likely fail")
        if container.exec_agent_status is not None and container.exec_agent_status != "RUNNING":
            LOGGER.warning(f"Exec agent in container '{container.name}' is {container.exec_agent_status}")
