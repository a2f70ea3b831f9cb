"""Lifecycle status type definitions for ECS tasks, containers and exec sessions."""

from enum import Enum


class TaskStatus(str, Enum):
    """
    ECS task lifecycle states, as reported in ``lastStatus``.

    Only RUNNING tasks are eligible exec targets. PROVISIONING, PENDING and
    ACTIVATING tasks are on their way to RUNNING, so a resolver that finds only
    those keeps polling instead of giving up.
    """

    PROVISIONING = "PROVISIONING"
    PENDING = "PENDING"
    ACTIVATING = "ACTIVATING"
    RUNNING = "RUNNING"
    DEACTIVATING = "DEACTIVATING"
    STOPPING = "STOPPING"
    DEPROVISIONING = "DEPROVISIONING"
    STOPPED = "STOPPED"

    @classmethod
    def from_string(cls, value: str) -> "TaskStatus":
        """
        Get status from string.

        Args:
        ----
            value: Status string (case-insensitive)

        Returns:
        -------
            Corresponding TaskStatus

        Raises:
        ------
            ValueError: If value doesn't match any status

        Example:
        -------
            >>> TaskStatus.from_string('running')
            <TaskStatus.RUNNING: 'RUNNING'>

        """
        try:
            return cls(value.upper().strip())
        except ValueError:
            valid = ", ".join(s.value for s in cls)
            raise ValueError(f"Invalid task status: '{value}'. Valid statuses: {valid}") from None

    @property
    def is_running(self) -> bool:
        """Whether the task can be used as an exec target."""
        return self is TaskStatus.RUNNING

    @property
    def is_starting(self) -> bool:
        """Whether the task is expected to reach RUNNING without intervention."""
        return self in (TaskStatus.PROVISIONING, TaskStatus.PENDING, TaskStatus.ACTIVATING)

    def pretty(self) -> str:
        """Status suffix for menus: empty for RUNNING, `` STATUS`` otherwise."""
        return "" if self.is_running else f" {self.value}"


class ContainerStatus(str, Enum):
    """Runtime status of a single container within a task."""

    PENDING = "PENDING"
    RUNNING = "RUNNING"
    STOPPED = "STOPPED"

    @classmethod
    def from_api(cls, value: str | None) -> "ContainerStatus":
        """
        Map a container ``lastStatus`` to a ContainerStatus.

        ECS reports a few transitional values beyond these three; anything that is not
        RUNNING or STOPPED is treated as PENDING.
        """
        normalized = (value or "").upper().strip()
        if normalized in (cls.RUNNING.value, cls.STOPPED.value):
            return cls(normalized)
        return cls.PENDING

    @property
    def is_running(self) -> bool:
        """Whether the container can accept an exec session."""
        return self is ContainerStatus.RUNNING


class LaunchState(str, Enum):
    """
    Session launcher states.

    IDLE -> LAUNCHING -> ATTACHED -> {COMPLETED, FAILED}. ATTACHED is the only
    state in which the terminal belongs to the child process.
    """

    IDLE = "idle"
    LAUNCHING = "launching"
    ATTACHED = "attached"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_final(self) -> bool:
        """Whether the launcher has finished with its session."""
        return self in (LaunchState.COMPLETED, LaunchState.FAILED)
