"""
awsconnect control-plane adapters.

Read-only access to the ECS control plane (clusters, services, tasks, containers).

Example:
-------
    >>> from awsconnect.cal import EcsClusterCatalog
    >>> catalog = EcsClusterCatalog.from_credentials(Boto3SessionFactory(), creds, "eu-west-1")
    >>> [c.name for c in catalog.list_clusters()]
    ['prod', 'staging']

"""

from awsconnect.cal.ecs import DESCRIBE_BATCH_SIZE, EcsClusterCatalog

__all__ = [
    "EcsClusterCatalog",
    "DESCRIBE_BATCH_SIZE",
]
