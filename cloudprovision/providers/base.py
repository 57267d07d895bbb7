"""
Base classes and interfaces for multi-cloud resource provisioning.

This module defines the descriptors callers pass in, the coordinates handed
back for provisioned resources, and the capability contract every vendor
backend implements.
"""

import asyncio
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from ..config.settings import AppSettings
from .errors import DescriptorValidationError


class CloudVendor(Enum):
    """Cloud vendors known to the factory."""

    AWS = "aws"
    GCP = "gcp"
    AZURE = "azure"


class ResourceKind(Enum):
    """Classes of managed infrastructure."""

    STORAGE = "storage"
    CACHE = "cache"
    DATABASE = "database"


class ProvisioningState(Enum):
    """Uniform lifecycle states every vendor status is translated into."""

    REQUESTED = "requested"
    PROVISIONING = "provisioning"
    AVAILABLE = "available"
    FAILED = "failed"
    DELETING = "deleting"
    DELETED = "deleted"
    DELETE_FAILED = "delete_failed"

    @property
    def is_terminal(self) -> bool:
        return self in (
            ProvisioningState.AVAILABLE,
            ProvisioningState.FAILED,
            ProvisioningState.DELETED,
            ProvisioningState.DELETE_FAILED,
        )


class CacheEngine(Enum):
    """Supported in-memory cache engines."""

    REDIS = "redis"


class DatabaseEngine(Enum):
    """Supported relational database engines."""

    POSTGRES = "postgres"
    MYSQL = "mysql"


class DeploymentTier(Enum):
    """Sizing and availability class of a resource."""

    DEV = "dev"
    PROD = "prod"


@dataclass(frozen=True)
class CacheDescriptor:
    """Desired state of a managed cache cluster."""

    cluster_name: str
    engine: CacheEngine = CacheEngine.REDIS
    engine_version: str = ""
    tier: DeploymentTier = DeploymentTier.DEV

    def __post_init__(self):
        if not self.cluster_name or not self.cluster_name.strip():
            raise DescriptorValidationError("cluster_name is required")

    @property
    def identifier(self) -> str:
        return self.cluster_name


@dataclass(frozen=True)
class DatabaseDescriptor:
    """Desired state of a managed relational database instance."""

    cluster_name: str
    database_name: str
    engine: DatabaseEngine = DatabaseEngine.POSTGRES
    engine_version: str = ""
    tier: DeploymentTier = DeploymentTier.DEV
    retention_period_days: int = 7
    storage_size_gb: int = 20

    def __post_init__(self):
        if not self.cluster_name or not self.cluster_name.strip():
            raise DescriptorValidationError("cluster_name is required")
        if not self.database_name or not self.database_name.strip():
            raise DescriptorValidationError(
                "database_name is required", resource_id=self.cluster_name
            )
        if self.retention_period_days < 0:
            raise DescriptorValidationError(
                "retention_period_days cannot be negative",
                resource_id=self.cluster_name,
            )
        if self.storage_size_gb <= 0:
            raise DescriptorValidationError(
                "storage_size_gb must be positive", resource_id=self.cluster_name
            )

    @property
    def identifier(self) -> str:
        return self.cluster_name


@dataclass(frozen=True)
class Coordinates:
    """
    How to reach a provisioned resource.

    ``credentials_ref`` points at where the credentials live (for example a
    secret ARN); the secret itself is never carried here.
    """

    resource_id: str
    host: str
    port: int
    credentials_ref: Optional[str] = None
    engine: str = ""

    def __str__(self) -> str:
        scheme = self.engine or "tcp"
        return (
            f"{scheme}://{self.host}:{self.port} "
            f"resource={self.resource_id} "
            f"credentials={self.credentials_ref or '-'}"
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class ProviderConfig(BaseModel):
    """Resolved configuration a backend is constructed with."""

    vendor: CloudVendor
    region: str
    credentials: Dict[str, str] = Field(default_factory=dict, repr=False)
    endpoint_url: Optional[str] = None
    poll_initial_delay: float = 5.0
    poll_max_delay: float = 60.0
    poll_backoff_factor: float = 2.0
    operation_timeout: float = 1800.0  # seconds
    transient_retry_attempts: int = 5
    transient_retry_delay: float = 1.0
    database_master_username: str = "cloudadmin"
    tags: Dict[str, str] = Field(default_factory=dict)


class CloudResourceProvider(ABC):
    """
    Capability contract every vendor backend implements.

    All create/remove operations are idempotent and block the calling task
    until the resource reaches a terminal state, the deadline passes, or
    ``cancel_event`` is set.
    """

    def __init__(self, config: ProviderConfig):
        self.config = config

    @property
    def vendor(self) -> CloudVendor:
        return self.config.vendor

    @classmethod
    @abstractmethod
    def build_config(cls, settings: AppSettings) -> ProviderConfig:
        """
        Resolve backend configuration from application settings.

        Must not contact the cloud. Raises ProviderConfigurationError when the
        region or a credentials source cannot be resolved.
        """

    # Object storage
    @abstractmethod
    async def create_storage(
        self,
        name: str,
        *,
        timeout: Optional[float] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> None:
        """Create a bucket, or succeed if this account already owns it."""

    @abstractmethod
    async def list_storage(self) -> List[str]:
        """Return bucket names owned by the account, sorted."""

    @abstractmethod
    async def remove_storage(
        self,
        name: str,
        *,
        timeout: Optional[float] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> None:
        """Remove a bucket; a missing bucket is success."""

    # Managed cache
    @abstractmethod
    async def create_cache(
        self,
        descriptor: CacheDescriptor,
        *,
        timeout: Optional[float] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> Coordinates:
        """Provision or adopt a cache cluster and wait until it is available."""

    @abstractmethod
    async def remove_cache(
        self,
        descriptor: CacheDescriptor,
        *,
        timeout: Optional[float] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> None:
        """Delete a cache cluster and wait until it is gone."""

    # Managed database
    @abstractmethod
    async def create_database(
        self,
        descriptor: DatabaseDescriptor,
        *,
        timeout: Optional[float] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> Coordinates:
        """Provision or adopt a database instance and wait until it is available."""

    @abstractmethod
    async def remove_database(
        self,
        descriptor: DatabaseDescriptor,
        *,
        timeout: Optional[float] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> None:
        """Delete a database instance and wait until it is gone."""

    @abstractmethod
    async def check_connection(self) -> Dict[str, Any]:
        """Authenticate against the vendor and describe the account."""
