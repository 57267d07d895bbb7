"""
Cloud client capability consumed by vendor backends.

A client issues the raw create / describe / delete / list calls for one
vendor and reports what the control plane said. It does not poll, retry or
interpret lifecycle states; that is the backend's job.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from .base import ResourceKind


class SubmitOutcome(Enum):
    """What the control plane did with a create or delete request."""

    SUBMITTED = "submitted"
    ALREADY_EXISTS = "already_exists"
    ALREADY_ABSENT = "already_absent"


class ResourceStatus(BaseModel):
    """Snapshot of a resource as reported by the vendor."""

    identifier: str
    status: str
    engine: Optional[str] = None
    engine_version: Optional[str] = None
    tags: Dict[str, str] = Field(default_factory=dict)
    attributes: Dict[str, Any] = Field(default_factory=dict)
    host: Optional[str] = None
    port: Optional[int] = None
    credentials_ref: Optional[str] = None
    failure_reason: Optional[str] = None


class CloudClient(ABC):
    """
    Vendor API surface a backend depends on.

    Implementations raise ``TransientError`` for recoverable faults,
    ``FatalError`` for rejected requests and ``ConflictError`` when a name is
    held by another owner.
    """

    @abstractmethod
    async def authenticate(self) -> Dict[str, Any]:
        """Verify credentials and return account details."""

    @abstractmethod
    async def create_resource(
        self, kind: ResourceKind, identifier: str, params: Dict[str, Any]
    ) -> SubmitOutcome:
        """Submit a create request."""

    @abstractmethod
    async def describe_resource(
        self, kind: ResourceKind, identifier: str
    ) -> Optional[ResourceStatus]:
        """Return the current status, or None if the resource does not exist."""

    @abstractmethod
    async def delete_resource(
        self, kind: ResourceKind, identifier: str, params: Dict[str, Any]
    ) -> SubmitOutcome:
        """Submit a delete request."""

    @abstractmethod
    async def list_resources(self, kind: ResourceKind) -> List[str]:
        """List identifiers of resources of the given kind."""
