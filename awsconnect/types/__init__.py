"""awsconnect type definitions (enums)."""

from awsconnect.types.status import ContainerStatus, LaunchState, TaskStatus

__all__ = [
    "TaskStatus",
    "ContainerStatus",
    "LaunchState",
]
