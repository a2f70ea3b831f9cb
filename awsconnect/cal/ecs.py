"""
ECS cluster catalog.

Read-only adapter over the boto3 ECS client: lists clusters, services and tasks and
describes tasks. Listings are paginated and task descriptions are batched; tasks
that ECS reports as MISSING right after a listing (eventual consistency) are counted
instead of failing the whole call, so the resolver can poll again.
"""

from collections.abc import Iterator, Sequence
from typing import Any

from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError

from awsconnect.any.log import get_logger
from awsconnect.exceptions import CatalogError, ClusterNotFound, ServiceNotFound
from awsconnect.models import ClusterRef, CredentialSet, ServiceRef, TaskListing, TaskRef

LOGGER = get_logger("awsconnect.cal.ecs")

# describe_tasks accepts at most 100 tasks per call
DESCRIBE_BATCH_SIZE = 100


def _batches(items: Sequence[str], size: int) -> Iterator[Sequence[str]]:
    for start in range(0, len(items), size):
        yield items[start : start + size]


class EcsClusterCatalog:
    """
    ECS implementation of the ClusterCatalog protocol.

    Example:
    -------
        ```python
        catalog = EcsClusterCatalog(session.client("ecs"), region="eu-west-1")
        for cluster in catalog.list_clusters():
            for task in catalog.list_tasks(cluster):
                print(task.label())
        ```

    """

    def __init__(self, client: Any, region: str):
        """
        Initialize ECS catalog.

        Args:
        ----
            client: boto3 ECS client
            region: Region the client is bound to

        """
        self._client = client
        self._region = region

    @classmethod
    def from_credentials(cls, session_factory: Any, credentials: CredentialSet, region: str) -> "EcsClusterCatalog":
        """
        Create a catalog whose client authenticates with vault credentials.

        Args:
        ----
            session_factory: CloudSessionFactory used to build the boto3 session
            credentials: Credentials minted for this invocation
            region: Region to read from

        """
        session = session_factory.create_session(credentials, region=region)
        client_config = Config(retries={"max_attempts": 10, "mode": "standard"})
        return cls(session.client("ecs", region_name=region, config=client_config), region=region)

    @property
    def region(self) -> str:
        """Region the catalog reads from."""
        return self._region

    def _paginate(self, operation: str, result_key: str, **kwargs: Any) -> list[str]:
        paginator = self._client.get_paginator(operation)
        results: list[str] = []
        for page in paginator.paginate(**kwargs):
            results.extend(page.get(result_key, []))
        return results

    def _translate(self, error: ClientError, cluster: ClusterRef, service: str | None = None) -> Exception:
        code = error.response.get("Error", {}).get("Code", "")
        if code == "ClusterNotFoundException":
            return ClusterNotFound(f"Cluster '{cluster.name}' not found in region {self._region}")
        if code == "ServiceNotFoundException":
            return ServiceNotFound(f"Service '{service}' not found in cluster '{cluster.name}'")
        return CatalogError(f"ECS request failed for cluster '{cluster.name}': {error}")

    def list_clusters(self) -> list[ClusterRef]:
        """
        List the active clusters in the region.

        ``list_clusters`` also returns recently deleted (INACTIVE) clusters, so the
        ARNs are described and only ACTIVE ones are kept.
        """
        try:
            arns = self._paginate("list_clusters", "clusterArns")
            active: list[str] = []
            for batch in _batches(arns, DESCRIBE_BATCH_SIZE):
                response = self._client.describe_clusters(clusters=list(batch))
                active.extend(c["clusterArn"] for c in response.get("clusters", []) if c.get("status") == "ACTIVE")
        except (ClientError, BotoCoreError) as e:
            raise CatalogError(f"Failed to list ECS clusters in {self._region}: {e}") from e

        LOGGER.debug(f"Found {len(active)} active clusters in {self._region} ({len(arns) - len(active)} skipped)")
        return [ClusterRef.from_identifier(arn, self._region) for arn in active]

    def list_services(self, cluster: ClusterRef) -> list[ServiceRef]:
        """List the services of a cluster."""
        try:
            arns = self._paginate("list_services", "serviceArns", cluster=cluster.arn)
        except ClientError as e:
            raise self._translate(e, cluster) from e
        except BotoCoreError as e:
            raise CatalogError(f"Failed to list services of '{cluster.name}': {e}") from e

        return [ServiceRef.from_identifier(arn, cluster.arn) for arn in arns]

    def list_tasks(self, cluster: ClusterRef, service: str | None = None) -> TaskListing:
        """
        List and describe the tasks of a cluster.

        Only tasks whose desired status is RUNNING are listed; their last status can
        still be PROVISIONING or PENDING while they start.

        Args:
        ----
            cluster: Cluster to list
            service: Optional service name to filter by

        """
        kwargs: dict[str, Any] = {"cluster": cluster.arn, "desiredStatus": "RUNNING"}
        if service:
            kwargs["serviceName"] = service

        try:
            task_arns = self._paginate("list_tasks", "taskArns", **kwargs)
        except ClientError as e:
            raise self._translate(e, cluster, service) from e
        except BotoCoreError as e:
            raise CatalogError(f"Failed to list tasks of '{cluster.name}': {e}") from e

        LOGGER.debug(f"Listed {len(task_arns)} tasks in '{cluster.name}' (service: {service or 'any'})")
        if not task_arns:
            return TaskListing()
        return self.describe_tasks(cluster, task_arns)

    def describe_tasks(self, cluster: ClusterRef, task_ids: Sequence[str]) -> TaskListing:
        """
        Describe tasks by id or ARN.

        Tasks ECS reports as MISSING are left out and counted in ``missing``.

        Raises
        ------
            CatalogError: If ECS reports a failure other than MISSING

        """
        tasks = TaskListing()
        for batch in _batches(list(task_ids), DESCRIBE_BATCH_SIZE):
            try:
                response = self._client.describe_tasks(cluster=cluster.arn, tasks=list(batch))
            except ClientError as e:
                raise self._translate(e, cluster) from e
            except BotoCoreError as e:
                raise CatalogError(f"Failed to describe tasks in '{cluster.name}': {e}") from e

            failures = response.get("failures", [])
            missing = [f for f in failures if f.get("reason") == "MISSING"]
            other = [f for f in failures if f.get("reason") != "MISSING"]
            if missing:
                tasks.missing += len(missing)
                LOGGER.debug(f"ECS cannot describe {len(missing)} tasks yet: {[f.get('arn') for f in missing]}")
            if other:
                raise CatalogError(f"ECS failed to describe tasks in '{cluster.name}': {other}")

            tasks.extend(TaskRef.from_api(payload) for payload in response.get("tasks", []))

        return tasks

    def __repr__(self) -> str:
        """Return string representation."""
        return f"EcsClusterCatalog(region='{self._region}')"
