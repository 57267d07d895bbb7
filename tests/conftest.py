"""
Pytest configuration and shared fixtures.

``FakeCloudClient`` is an in-memory control plane that speaks the AWS status
vocabulary, so the AWS provider's state machine can be driven end to end
without boto3.
"""

from typing import Any, Dict, List, Optional, Set, Tuple

import pytest

from cloudprovision.config.settings import (
    AppSettings,
    CloudSettings,
    ProvisioningSettings,
)
from cloudprovision.providers.aws import AWSProvider
from cloudprovision.providers.base import (
    CacheDescriptor,
    CloudVendor,
    DatabaseDescriptor,
    DatabaseEngine,
    DeploymentTier,
    ProviderConfig,
    ResourceKind,
)
from cloudprovision.providers.client import CloudClient, ResourceStatus, SubmitOutcome
from cloudprovision.providers.errors import ConflictError, TransientError

FAKE_ACCOUNT = "123456789012"

DEFAULT_VERSIONS = {
    "redis": "7.1.0",
    "postgres": "15.4",
    "mysql": "8.0.35",
}

DEFAULT_PORTS = {
    "redis": 6379,
    "postgres": 5432,
    "mysql": 3306,
}

FAILED_STATUSES = {
    ResourceKind.CACHE: "create-failed",
    ResourceKind.DATABASE: "failed",
}


def _tag_list_to_dict(tags: List[Dict[str, str]]) -> Dict[str, str]:
    return {tag["Key"]: tag["Value"] for tag in tags or []}


class FakeCloudClient(CloudClient):
    """
    In-memory control plane.

    Cache clusters and database instances report ``creating`` until they
    have been described ``polls_to_ready`` times, then ``available`` (or the
    engine's failure status for identifiers in ``fail_create``). Deletions
    report ``deleting`` for ``polls_to_delete`` describes and then vanish, or
    fall back to ``available`` for identifiers in ``fail_delete``.
    Identifiers in ``stuck`` never leave ``creating``.
    """

    def __init__(self, polls_to_ready: int = 2, polls_to_delete: int = 2):
        self.polls_to_ready = polls_to_ready
        self.polls_to_delete = polls_to_delete
        self.resources: Dict[Tuple[ResourceKind, str], Dict[str, Any]] = {}
        self.calls: List[Tuple[str, Optional[ResourceKind], Optional[str]]] = []
        self.faults: Dict[str, List[Exception]] = {}
        self.fail_create: Set[str] = set()
        self.fail_delete: Set[str] = set()
        self.stuck: Set[str] = set()
        self.foreign_buckets: Set[str] = set()

    # Test helpers

    def inject_faults(self, method: str, count: int, error: Optional[Exception] = None):
        """Make the next ``count`` calls to ``method`` raise."""
        error = error or TransientError("Throttling", vendor="aws")
        self.faults.setdefault(method, []).extend([error] * count)

    def seed(self, kind: ResourceKind, identifier: str, status: str = "available", **fields):
        """Place a pre-existing resource in the control plane."""
        self.resources[(kind, identifier)] = {
            "status": ResourceStatus(identifier=identifier, status=status, **fields),
            "polls": 0,
        }

    def count(self, method: str, identifier: Optional[str] = None) -> int:
        return sum(
            1
            for name, _, ident in self.calls
            if name == method and (identifier is None or ident == identifier)
        )

    def exists(self, kind: ResourceKind, identifier: str) -> bool:
        return (kind, identifier) in self.resources

    def _record(self, method: str, kind=None, identifier=None):
        self.calls.append((method, kind, identifier))
        pending = self.faults.get(method)
        if pending:
            raise pending.pop(0)

    # CloudClient implementation

    async def authenticate(self) -> Dict[str, Any]:
        self._record("authenticate")
        return {
            "account": FAKE_ACCOUNT,
            "arn": f"arn:aws:iam::{FAKE_ACCOUNT}:user/tester",
            "region": "us-east-1",
        }

    async def create_resource(
        self, kind: ResourceKind, identifier: str, params: Dict[str, Any]
    ) -> SubmitOutcome:
        self._record("create", kind, identifier)

        if kind == ResourceKind.STORAGE and identifier in self.foreign_buckets:
            raise ConflictError(
                f"Bucket name {identifier} is owned by another account",
                vendor="aws",
                resource_id=identifier,
            )
        if (kind, identifier) in self.resources:
            return SubmitOutcome.ALREADY_EXISTS

        self.resources[(kind, identifier)] = {
            "status": self._status_from_params(kind, identifier, params),
            "polls": 0,
        }
        return SubmitOutcome.SUBMITTED

    async def describe_resource(
        self, kind: ResourceKind, identifier: str
    ) -> Optional[ResourceStatus]:
        self._record("describe", kind, identifier)

        if kind == ResourceKind.STORAGE and identifier in self.foreign_buckets:
            raise ConflictError(
                f"Bucket name {identifier} is owned by another account",
                vendor="aws",
                resource_id=identifier,
            )

        record = self.resources.get((kind, identifier))
        if record is None:
            return None

        status: ResourceStatus = record["status"]
        if status.status == "creating" and identifier not in self.stuck:
            record["polls"] += 1
            if record["polls"] >= self.polls_to_ready:
                if identifier in self.fail_create:
                    new_status = FAILED_STATUSES[kind]
                else:
                    new_status = "available"
                record["status"] = status.model_copy(
                    update={"status": new_status, "failure_reason": new_status}
                )
        elif status.status == "deleting":
            record["polls"] += 1
            if record["polls"] >= self.polls_to_delete:
                if identifier in self.fail_delete:
                    record["status"] = status.model_copy(update={"status": "available"})
                else:
                    del self.resources[(kind, identifier)]
                    return None

        return record["status"]

    async def delete_resource(
        self, kind: ResourceKind, identifier: str, params: Dict[str, Any]
    ) -> SubmitOutcome:
        self._record("delete", kind, identifier)

        record = self.resources.get((kind, identifier))
        if record is None:
            return SubmitOutcome.ALREADY_ABSENT

        if kind == ResourceKind.STORAGE:
            del self.resources[(kind, identifier)]
        else:
            record["status"] = record["status"].model_copy(update={"status": "deleting"})
            record["polls"] = 0
        return SubmitOutcome.SUBMITTED

    async def list_resources(self, kind: ResourceKind) -> List[str]:
        self._record("list", kind)
        # Reverse insertion order so callers cannot rely on it
        return [ident for (k, ident) in reversed(list(self.resources)) if k == kind]

    def _status_from_params(
        self, kind: ResourceKind, identifier: str, params: Dict[str, Any]
    ) -> ResourceStatus:
        if kind == ResourceKind.STORAGE:
            return ResourceStatus(
                identifier=identifier, status="available", tags=params.get("tags", {})
            )

        engine = params["Engine"]
        common = {
            "identifier": identifier,
            "status": "creating",
            "engine": engine,
            "engine_version": params.get("EngineVersion", DEFAULT_VERSIONS[engine]),
            "tags": _tag_list_to_dict(params.get("Tags", [])),
            "port": DEFAULT_PORTS[engine],
        }

        if kind == ResourceKind.CACHE:
            return ResourceStatus(
                **common,
                host=f"{identifier}.abc123.0001.use1.cache.amazonaws.com",
                attributes={
                    "node_type": params["CacheNodeType"],
                    "num_nodes": params["NumCacheNodes"],
                },
            )

        return ResourceStatus(
            **common,
            host=f"{identifier}.abc123.us-east-1.rds.amazonaws.com",
            credentials_ref=(
                f"arn:aws:secretsmanager:us-east-1:{FAKE_ACCOUNT}:secret:rds!{identifier}"
            ),
            attributes={
                "instance_class": params["DBInstanceClass"],
                "database_name": params["DBName"],
                "allocated_storage": params["AllocatedStorage"],
                "multi_az": params["MultiAZ"],
            },
        )


@pytest.fixture
def provider_config() -> ProviderConfig:
    """Provider configuration with millisecond poll intervals."""
    return ProviderConfig(
        vendor=CloudVendor.AWS,
        region="us-east-1",
        poll_initial_delay=0.01,
        poll_max_delay=0.05,
        poll_backoff_factor=2.0,
        operation_timeout=5.0,
        transient_retry_attempts=3,
        transient_retry_delay=0.01,
        tags={"team": "platform"},
    )


@pytest.fixture
def fake_client() -> FakeCloudClient:
    """Create an in-memory control plane."""
    return FakeCloudClient()


@pytest.fixture
def provider(provider_config, fake_client) -> AWSProvider:
    """Create an AWS provider backed by the fake control plane."""
    return AWSProvider(provider_config, client=fake_client)


@pytest.fixture
def cache_descriptor() -> CacheDescriptor:
    """Create a dev Redis cache descriptor."""
    return CacheDescriptor(cluster_name="sessions", engine_version="7.1")


@pytest.fixture
def database_descriptor() -> DatabaseDescriptor:
    """Create a dev PostgreSQL database descriptor."""
    return DatabaseDescriptor(
        cluster_name="mycluster",
        database_name="mydb",
        engine=DatabaseEngine.POSTGRES,
        engine_version="9.6",
        tier=DeploymentTier.DEV,
        retention_period_days=7,
        storage_size_gb=50,
    )


@pytest.fixture
def app_settings(monkeypatch) -> AppSettings:
    """Application settings with static test credentials."""
    monkeypatch.delenv("AWS_DEFAULT_REGION", raising=False)
    return AppSettings(
        environment="testing",
        cloud=CloudSettings(
            aws_access_key_id="AKIATESTKEY",
            aws_secret_access_key="test-secret",
            aws_session_token=None,
            aws_profile=None,
            aws_region="eu-west-1",
            aws_endpoint_url=None,
        ),
        provisioning=ProvisioningSettings(
            poll_initial_delay=0.01,
            poll_max_delay=0.05,
            operation_timeout=5.0,
            transient_retry_delay=0.01,
        ),
    )
