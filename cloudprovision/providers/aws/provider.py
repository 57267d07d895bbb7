"""
AWS provider implementation of the resource provisioning contract.

This module maps descriptors onto S3, ElastiCache and RDS requests, translates
AWS lifecycle statuses into the uniform provisioning states, and drives the
submit / poll / adopt state machine behind every create and remove call.
"""

import asyncio
import logging
import os
import re
from typing import Any, Awaitable, Callable, Dict, List, Optional

from ...config.settings import AppSettings
from ..base import (
    CacheDescriptor,
    CloudResourceProvider,
    CloudVendor,
    Coordinates,
    DatabaseDescriptor,
    DeploymentTier,
    ProviderConfig,
    ProvisioningState,
    ResourceKind,
)
from ..client import CloudClient, ResourceStatus, SubmitOutcome
from ..errors import (
    ConflictError,
    DeleteFailedError,
    DescriptorValidationError,
    ProviderConfigurationError,
    ProvisioningError,
    TransientError,
)
from ..polling import BackoffPolicy, Deadline
from .client import AWSCloudClient

TIER_TAG = "cloudprovision/tier"
MANAGED_BY_TAG = "cloudprovision/managed-by"

CACHE_NODE_TYPES = {
    DeploymentTier.DEV: "cache.t3.micro",
    DeploymentTier.PROD: "cache.m5.large",
}

DB_INSTANCE_CLASSES = {
    DeploymentTier.DEV: "db.t3.micro",
    DeploymentTier.PROD: "db.m5.large",
}

# RDS limits for general purpose storage
MIN_STORAGE_GB = 20
MAX_STORAGE_GB = 65536
MAX_RETENTION_DAYS = 35

BUCKET_NAME_PATTERN = re.compile(r"^[a-z0-9][a-z0-9.-]{1,61}[a-z0-9]$")
IP_ADDRESS_PATTERN = re.compile(r"^\d+\.\d+\.\d+\.\d+$")

P = ProvisioningState

CACHE_STATES = {
    "creating": P.PROVISIONING,
    "modifying": P.PROVISIONING,
    "snapshotting": P.PROVISIONING,
    "rebooting cache cluster nodes": P.PROVISIONING,
    "available": P.AVAILABLE,
    "create-failed": P.FAILED,
    "incompatible-network": P.FAILED,
    "restore-failed": P.FAILED,
    "deleting": P.DELETING,
    "deleted": P.DELETED,
}

DATABASE_STATES = {
    "creating": P.PROVISIONING,
    "backing-up": P.PROVISIONING,
    "modifying": P.PROVISIONING,
    "rebooting": P.PROVISIONING,
    "starting": P.PROVISIONING,
    "stopping": P.PROVISIONING,
    "stopped": P.PROVISIONING,
    "upgrading": P.PROVISIONING,
    "maintenance": P.PROVISIONING,
    "renaming": P.PROVISIONING,
    "storage-optimization": P.PROVISIONING,
    "resetting-master-credentials": P.PROVISIONING,
    "available": P.AVAILABLE,
    "failed": P.FAILED,
    "incompatible-parameters": P.FAILED,
    "incompatible-network": P.FAILED,
    "incompatible-restore": P.FAILED,
    "inaccessible-encryption-credentials": P.FAILED,
    "restore-error": P.FAILED,
    "storage-full": P.FAILED,
    "deleting": P.DELETING,
}

STORAGE_STATES = {
    "available": P.AVAILABLE,
}

STATE_TABLES = {
    ResourceKind.STORAGE: STORAGE_STATES,
    ResourceKind.CACHE: CACHE_STATES,
    ResourceKind.DATABASE: DATABASE_STATES,
}


def _version_matches(actual: str, requested: str) -> bool:
    """AWS may report a more specific version than was requested."""
    return actual == requested or actual.startswith(requested + ".")


class AWSProvider(CloudResourceProvider):
    """AWS implementation of the provisioning contract (S3, ElastiCache, RDS)."""

    def __init__(self, config: ProviderConfig, client: Optional[CloudClient] = None):
        super().__init__(config)
        self.client = client or AWSCloudClient(config)
        self.logger = logging.getLogger(self.__class__.__name__)
        self.backoff = BackoffPolicy(
            initial_delay=config.poll_initial_delay,
            max_delay=config.poll_max_delay,
            factor=config.poll_backoff_factor,
        )

    @classmethod
    def build_config(cls, settings: AppSettings) -> ProviderConfig:
        """Resolve region and credentials from settings without calling AWS."""
        cloud = settings.cloud
        provisioning = settings.provisioning

        # AWS_DEFAULT_REGION wins over the configured region
        region = os.environ.get("AWS_DEFAULT_REGION") or cloud.aws_region
        if not region:
            raise ProviderConfigurationError("AWS region is not configured", vendor="aws")

        if bool(cloud.aws_access_key_id) != bool(cloud.aws_secret_access_key):
            raise ProviderConfigurationError(
                "Incomplete AWS credentials. Both access key id and secret "
                "access key are required.",
                vendor="aws",
            )

        credentials = {
            "access_key_id": cloud.aws_access_key_id,
            "secret_access_key": cloud.aws_secret_access_key,
            "session_token": cloud.aws_session_token,
            "profile": cloud.aws_profile,
        }

        return ProviderConfig(
            vendor=CloudVendor.AWS,
            region=region,
            credentials={k: v for k, v in credentials.items() if v},
            endpoint_url=cloud.aws_endpoint_url,
            poll_initial_delay=provisioning.poll_initial_delay,
            poll_max_delay=provisioning.poll_max_delay,
            poll_backoff_factor=provisioning.poll_backoff_factor,
            operation_timeout=provisioning.operation_timeout,
            transient_retry_attempts=provisioning.transient_retry_attempts,
            transient_retry_delay=provisioning.transient_retry_delay,
            database_master_username=provisioning.database_master_username,
            tags=dict(cloud.default_tags),
        )

    # Contract operations

    async def check_connection(self) -> Dict[str, Any]:
        """Authenticate with STS and report the account in use."""
        deadline = self._deadline("check_connection", None, None, None)
        identity = await self._call(deadline, "authenticate", self.client.authenticate)
        return {"vendor": self.vendor.value, **identity}

    async def create_storage(
        self,
        name: str,
        *,
        timeout: Optional[float] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> None:
        self._validate_bucket_name(name)
        deadline = self._deadline("create_storage", name, timeout, cancel_event)

        await self._ensure_created(
            ResourceKind.STORAGE,
            name,
            {"tags": self._tag_dict()},
            lambda existing: None,
            deadline,
        )
        self.logger.info(
            f"Bucket {name} is available",
            extra=self._context("create_storage", ResourceKind.STORAGE, name),
        )

    async def list_storage(self) -> List[str]:
        deadline = self._deadline("list_storage", None, None, None)
        names = await self._call(
            deadline, "list", self.client.list_resources, ResourceKind.STORAGE
        )
        names = sorted(names)

        self.logger.info(
            f"Bucket inventory: {len(names)} bucket(s)",
            extra={
                **self._context("list_storage", ResourceKind.STORAGE, None),
                "buckets": names,
            },
        )
        return names

    async def remove_storage(
        self,
        name: str,
        *,
        timeout: Optional[float] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> None:
        deadline = self._deadline("remove_storage", name, timeout, cancel_event)
        await self._ensure_deleted(ResourceKind.STORAGE, name, {}, deadline)

    async def create_cache(
        self,
        descriptor: CacheDescriptor,
        *,
        timeout: Optional[float] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> Coordinates:
        identifier = descriptor.identifier
        deadline = self._deadline("create_cache", identifier, timeout, cancel_event)

        status = await self._ensure_created(
            ResourceKind.CACHE,
            identifier,
            self._cache_params(descriptor),
            lambda existing: self._check_cache_compatible(descriptor, existing),
            deadline,
        )
        return self._coordinates(ResourceKind.CACHE, status, descriptor.engine.value)

    async def remove_cache(
        self,
        descriptor: CacheDescriptor,
        *,
        timeout: Optional[float] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> None:
        identifier = descriptor.identifier
        deadline = self._deadline("remove_cache", identifier, timeout, cancel_event)
        await self._ensure_deleted(ResourceKind.CACHE, identifier, {}, deadline)

    async def create_database(
        self,
        descriptor: DatabaseDescriptor,
        *,
        timeout: Optional[float] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> Coordinates:
        self._validate_database(descriptor)
        identifier = descriptor.identifier
        deadline = self._deadline("create_database", identifier, timeout, cancel_event)

        status = await self._ensure_created(
            ResourceKind.DATABASE,
            identifier,
            self._database_params(descriptor),
            lambda existing: self._check_database_compatible(descriptor, existing),
            deadline,
        )
        return self._coordinates(
            ResourceKind.DATABASE, status, descriptor.engine.value
        )

    async def remove_database(
        self,
        descriptor: DatabaseDescriptor,
        *,
        timeout: Optional[float] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> None:
        identifier = descriptor.identifier
        deadline = self._deadline("remove_database", identifier, timeout, cancel_event)
        await self._ensure_deleted(
            ResourceKind.DATABASE,
            identifier,
            {"SkipFinalSnapshot": True, "DeleteAutomatedBackups": True},
            deadline,
        )

    # State translation

    def translate_state(
        self, kind: ResourceKind, status: ResourceStatus
    ) -> ProvisioningState:
        """Map a raw AWS status onto the uniform provisioning states."""
        raw = status.status.lower()
        state = STATE_TABLES[kind].get(raw)
        if state is not None:
            return state

        if raw.startswith("configuring-"):
            return ProvisioningState.PROVISIONING

        self.logger.warning(
            f"Unrecognized {kind.value} status '{status.status}', treating as in progress",
            extra=self._context("translate_state", kind, status.identifier),
        )
        return ProvisioningState.PROVISIONING

    # State machine

    async def _ensure_created(
        self,
        kind: ResourceKind,
        identifier: str,
        params: Dict[str, Any],
        check_compatible: Callable[[ResourceStatus], None],
        deadline: Deadline,
    ) -> ResourceStatus:
        """Submit or adopt a create, then wait for a terminal state."""
        existing = await self._describe(kind, identifier, deadline)

        if existing is not None:
            state = self.translate_state(kind, existing)
            if state in (ProvisioningState.DELETING, ProvisioningState.DELETED):
                self.logger.info(
                    f"{kind.value} {identifier} is being deleted, waiting before re-creating",
                    extra=self._context(deadline.operation, kind, identifier, state),
                )
                await self._wait_until_deleted(kind, identifier, deadline)
                existing = None
            else:
                check_compatible(existing)
                if state == ProvisioningState.FAILED:
                    raise self._provisioning_error(kind, identifier, existing)
                self.logger.info(
                    f"Adopting existing {kind.value} {identifier}",
                    extra=self._context(deadline.operation, kind, identifier, state),
                )

        if existing is None:
            self.logger.info(
                f"Submitting create for {kind.value} {identifier}",
                extra=self._context(
                    deadline.operation, kind, identifier, ProvisioningState.REQUESTED
                ),
            )
            outcome = await self._call(
                deadline,
                "create",
                self.client.create_resource,
                kind,
                identifier,
                params,
            )
            if outcome == SubmitOutcome.ALREADY_EXISTS:
                self.logger.info(
                    f"{kind.value} {identifier} already exists, adopting it",
                    extra=self._context(deadline.operation, kind, identifier),
                )
                adopted = await self._describe(kind, identifier, deadline)
                if adopted is not None:
                    check_compatible(adopted)

        return await self._wait_until_available(kind, identifier, deadline)

    async def _ensure_deleted(
        self,
        kind: ResourceKind,
        identifier: str,
        params: Dict[str, Any],
        deadline: Deadline,
    ) -> None:
        """Submit or attach to a delete, then wait until the resource is gone."""
        status = await self._describe(kind, identifier, deadline)
        if status is None:
            self.logger.info(
                f"{kind.value} {identifier} already absent",
                extra=self._context(
                    deadline.operation, kind, identifier, ProvisioningState.DELETED
                ),
            )
            return

        state = self.translate_state(kind, status)
        if state == ProvisioningState.PROVISIONING:
            # AWS refuses to delete resources that are mid-transition
            status = await self._wait_until_settled(kind, identifier, deadline)
            if status is None:
                return
            state = self.translate_state(kind, status)

        if state not in (ProvisioningState.DELETING, ProvisioningState.DELETED):
            self.logger.info(
                f"Submitting delete for {kind.value} {identifier}",
                extra=self._context(deadline.operation, kind, identifier, state),
            )
            outcome = await self._call(
                deadline,
                "delete",
                self.client.delete_resource,
                kind,
                identifier,
                params,
            )
            if outcome == SubmitOutcome.ALREADY_ABSENT:
                self.logger.info(
                    f"{kind.value} {identifier} already absent",
                    extra=self._context(
                        deadline.operation, kind, identifier, ProvisioningState.DELETED
                    ),
                )
                return

        await self._wait_until_deleted(kind, identifier, deadline)

    async def _wait_until_available(
        self, kind: ResourceKind, identifier: str, deadline: Deadline
    ) -> ResourceStatus:
        previous = ProvisioningState.REQUESTED
        delays = self.backoff.delays()

        while True:
            status = await self._describe(kind, identifier, deadline)
            # Not yet visible right after submission
            if status is None:
                state = ProvisioningState.REQUESTED
            else:
                state = self.translate_state(kind, status)
            previous = self._transition(deadline, kind, identifier, previous, state)

            if state == ProvisioningState.AVAILABLE:
                return status
            if state == ProvisioningState.FAILED:
                raise self._provisioning_error(kind, identifier, status)
            if state in (ProvisioningState.DELETING, ProvisioningState.DELETED):
                raise ProvisioningError(
                    f"{kind.value} {identifier} was deleted while provisioning",
                    vendor=self.vendor.value,
                    resource_id=identifier,
                    reason=status.status,
                    state=ProvisioningState.FAILED.value,
                )

            await deadline.sleep(next(delays), last_state=state.value)

    async def _wait_until_settled(
        self, kind: ResourceKind, identifier: str, deadline: Deadline
    ) -> Optional[ResourceStatus]:
        """Wait for an in-flight transition to finish; None if the resource vanished."""
        delays = self.backoff.delays()

        while True:
            status = await self._describe(kind, identifier, deadline)
            if status is None:
                return None
            state = self.translate_state(kind, status)
            if state not in (ProvisioningState.REQUESTED, ProvisioningState.PROVISIONING):
                return status

            self.logger.debug(
                f"Waiting for {kind.value} {identifier} to settle before deleting",
                extra=self._context(deadline.operation, kind, identifier, state),
            )
            await deadline.sleep(next(delays), last_state=state.value)

    async def _wait_until_deleted(
        self, kind: ResourceKind, identifier: str, deadline: Deadline
    ) -> None:
        previous = ProvisioningState.DELETING
        seen_deleting = False
        delays = self.backoff.delays()

        while True:
            status = await self._describe(kind, identifier, deadline)
            if status is None:
                self._transition(
                    deadline, kind, identifier, previous, ProvisioningState.DELETED
                )
                return

            state = self.translate_state(kind, status)
            if state == ProvisioningState.DELETED:
                self._transition(deadline, kind, identifier, previous, state)
                return
            if state == ProvisioningState.DELETING:
                seen_deleting = True
            elif seen_deleting and state in (
                ProvisioningState.FAILED,
                ProvisioningState.AVAILABLE,
            ):
                # Before deleting shows up, the old status may still be reported
                self._transition(
                    deadline,
                    kind,
                    identifier,
                    previous,
                    ProvisioningState.DELETE_FAILED,
                )
                raise DeleteFailedError(
                    f"{kind.value} {identifier} failed to delete",
                    vendor=self.vendor.value,
                    resource_id=identifier,
                    reason=status.failure_reason or status.status,
                    state=ProvisioningState.DELETE_FAILED.value,
                )
            previous = self._transition(deadline, kind, identifier, previous, state)

            await deadline.sleep(next(delays), last_state=state.value)

    # Vendor calls

    async def _describe(
        self, kind: ResourceKind, identifier: str, deadline: Deadline
    ) -> Optional[ResourceStatus]:
        return await self._call(
            deadline, "describe", self.client.describe_resource, kind, identifier
        )

    async def _call(
        self,
        deadline: Deadline,
        action: str,
        func: Callable[..., Awaitable[Any]],
        *args: Any,
    ) -> Any:
        """Invoke a client call, retrying transient faults with backoff."""
        attempt = 0
        while True:
            deadline.check()
            try:
                return await func(*args)
            except TransientError as e:
                attempt += 1
                if attempt > self.config.transient_retry_attempts:
                    self.logger.error(
                        "Transient fault persisted after all retry attempts",
                        extra={
                            "vendor": self.vendor.value,
                            "operation": deadline.operation,
                            "resource_id": deadline.resource_id,
                            "action": action,
                            "phase": "retry_exhausted",
                            "total_attempts": attempt,
                            "final_error": str(e),
                        },
                    )
                    raise

                retry_delay = min(
                    self.config.transient_retry_delay * (2 ** (attempt - 1)),
                    self.config.poll_max_delay,
                )
                self.logger.warning(
                    "Transient fault, retrying",
                    extra={
                        "vendor": self.vendor.value,
                        "operation": deadline.operation,
                        "resource_id": deadline.resource_id,
                        "action": action,
                        "phase": "error_retry",
                        "attempt": attempt,
                        "max_attempts": self.config.transient_retry_attempts + 1,
                        "error_message": str(e),
                        "retry_delay": retry_delay,
                    },
                )
                await deadline.sleep(retry_delay)

    # Request construction

    def _tag_dict(self, tier: Optional[DeploymentTier] = None) -> Dict[str, str]:
        tags = {**self.config.tags, MANAGED_BY_TAG: "cloudprovision"}
        if tier is not None:
            tags[TIER_TAG] = tier.value
        return tags

    def _tag_list(self, tier: DeploymentTier) -> List[Dict[str, str]]:
        return [{"Key": k, "Value": v} for k, v in self._tag_dict(tier).items()]

    def _cache_params(self, descriptor: CacheDescriptor) -> Dict[str, Any]:
        params: Dict[str, Any] = {
            "Engine": descriptor.engine.value,
            "CacheNodeType": CACHE_NODE_TYPES[descriptor.tier],
            "NumCacheNodes": 1,
            "Tags": self._tag_list(descriptor.tier),
        }
        if descriptor.engine_version:
            params["EngineVersion"] = descriptor.engine_version
        return params

    def _database_params(self, descriptor: DatabaseDescriptor) -> Dict[str, Any]:
        params: Dict[str, Any] = {
            "DBName": descriptor.database_name,
            "Engine": descriptor.engine.value,
            "DBInstanceClass": DB_INSTANCE_CLASSES[descriptor.tier],
            "AllocatedStorage": descriptor.storage_size_gb,
            "BackupRetentionPeriod": descriptor.retention_period_days,
            "MasterUsername": self.config.database_master_username,
            # Password is generated and kept in Secrets Manager by RDS
            "ManageMasterUserPassword": True,
            "MultiAZ": descriptor.tier == DeploymentTier.PROD,
            "PubliclyAccessible": False,
            "StorageEncrypted": True,
            "Tags": self._tag_list(descriptor.tier),
        }
        if descriptor.engine_version:
            params["EngineVersion"] = descriptor.engine_version
        return params

    # Validation

    def _validate_bucket_name(self, name: str) -> None:
        if (
            not name
            or not BUCKET_NAME_PATTERN.match(name)
            or ".." in name
            or IP_ADDRESS_PATTERN.match(name)
        ):
            raise DescriptorValidationError(
                f"Invalid S3 bucket name: {name!r}",
                vendor=self.vendor.value,
                resource_id=name,
            )

    def _validate_database(self, descriptor: DatabaseDescriptor) -> None:
        errors = []
        if not MIN_STORAGE_GB <= descriptor.storage_size_gb <= MAX_STORAGE_GB:
            errors.append(
                f"storage_size_gb must be between {MIN_STORAGE_GB} and "
                f"{MAX_STORAGE_GB}, got {descriptor.storage_size_gb}"
            )
        if not 0 <= descriptor.retention_period_days <= MAX_RETENTION_DAYS:
            errors.append(
                f"retention_period_days must be between 0 and {MAX_RETENTION_DAYS}, "
                f"got {descriptor.retention_period_days}"
            )
        if errors:
            raise DescriptorValidationError(
                "; ".join(errors),
                vendor=self.vendor.value,
                resource_id=descriptor.identifier,
            )

    def _tier_mismatches(
        self,
        existing: ResourceStatus,
        tier: DeploymentTier,
        attribute: str,
        sizing: Dict[DeploymentTier, str],
    ) -> List[str]:
        existing_tier = existing.tags.get(TIER_TAG)
        if existing_tier is not None:
            if existing_tier != tier.value:
                return [f"tier {existing_tier} != {tier.value}"]
            return []

        # Not created by us; fall back to comparing the sizing class
        actual = existing.attributes.get(attribute)
        if actual and actual != sizing[tier]:
            return [f"{attribute} {actual} != {sizing[tier]}"]
        return []

    def _engine_mismatches(
        self, existing: ResourceStatus, engine: str, engine_version: str
    ) -> List[str]:
        mismatches = []
        if existing.engine and existing.engine.lower() != engine:
            mismatches.append(f"engine {existing.engine} != {engine}")
        if (
            engine_version
            and existing.engine_version
            and not _version_matches(existing.engine_version, engine_version)
        ):
            mismatches.append(
                f"engine_version {existing.engine_version} != {engine_version}"
            )
        return mismatches

    def _check_cache_compatible(
        self, descriptor: CacheDescriptor, existing: ResourceStatus
    ) -> None:
        mismatches = self._engine_mismatches(
            existing, descriptor.engine.value, descriptor.engine_version
        )
        mismatches.extend(
            self._tier_mismatches(
                existing, descriptor.tier, "node_type", CACHE_NODE_TYPES
            )
        )
        self._raise_conflict(ResourceKind.CACHE, descriptor.identifier, mismatches)

    def _check_database_compatible(
        self, descriptor: DatabaseDescriptor, existing: ResourceStatus
    ) -> None:
        mismatches = self._engine_mismatches(
            existing, descriptor.engine.value, descriptor.engine_version
        )
        mismatches.extend(
            self._tier_mismatches(
                existing, descriptor.tier, "instance_class", DB_INSTANCE_CLASSES
            )
        )
        database_name = existing.attributes.get("database_name")
        if database_name and database_name != descriptor.database_name:
            mismatches.append(
                f"database_name {database_name} != {descriptor.database_name}"
            )
        self._raise_conflict(ResourceKind.DATABASE, descriptor.identifier, mismatches)

    def _raise_conflict(
        self, kind: ResourceKind, identifier: str, mismatches: List[str]
    ) -> None:
        if not mismatches:
            return
        self.logger.error(
            f"{kind.value} {identifier} exists with incompatible parameters",
            extra={**self._context("conflict_check", kind, identifier), "mismatches": mismatches},
        )
        raise ConflictError(
            f"{kind.value} {identifier} exists with incompatible parameters: "
            + "; ".join(mismatches),
            vendor=self.vendor.value,
            resource_id=identifier,
        )

    # Helpers

    def _deadline(
        self,
        operation: str,
        identifier: Optional[str],
        timeout: Optional[float],
        cancel_event: Optional[asyncio.Event],
    ) -> Deadline:
        return Deadline(
            timeout if timeout is not None else self.config.operation_timeout,
            cancel_event=cancel_event,
            operation=operation,
            resource_id=identifier,
            vendor=self.vendor.value,
        )

    def _coordinates(
        self, kind: ResourceKind, status: ResourceStatus, engine: str
    ) -> Coordinates:
        if not status.host or not status.port:
            raise ProvisioningError(
                f"{kind.value} {status.identifier} is available but reported no endpoint",
                vendor=self.vendor.value,
                resource_id=status.identifier,
                reason="missing endpoint",
                state=ProvisioningState.AVAILABLE.value,
            )
        return Coordinates(
            resource_id=status.identifier,
            host=status.host,
            port=status.port,
            credentials_ref=status.credentials_ref,
            engine=engine,
        )

    def _provisioning_error(
        self, kind: ResourceKind, identifier: str, status: ResourceStatus
    ) -> ProvisioningError:
        return ProvisioningError(
            f"{kind.value} {identifier} failed to provision",
            vendor=self.vendor.value,
            resource_id=identifier,
            reason=status.failure_reason or status.status,
            state=ProvisioningState.FAILED.value,
        )

    def _transition(
        self,
        deadline: Deadline,
        kind: ResourceKind,
        identifier: str,
        previous: ProvisioningState,
        state: ProvisioningState,
    ) -> ProvisioningState:
        if state != previous:
            self.logger.info(
                f"{kind.value} {identifier}: {previous.value} -> {state.value}",
                extra={
                    **self._context(deadline.operation, kind, identifier, state),
                    "previous_state": previous.value,
                },
            )
        return state

    def _context(
        self,
        operation: str,
        kind: ResourceKind,
        identifier: Optional[str],
        state: Optional[ProvisioningState] = None,
    ) -> Dict[str, Any]:
        context: Dict[str, Any] = {
            "vendor": self.vendor.value,
            "operation": operation,
            "resource_kind": kind.value,
            "resource_id": identifier,
        }
        if state is not None:
            context["state"] = state.value
        return context
