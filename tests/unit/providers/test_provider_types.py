"""
Tests for descriptors, coordinates, lifecycle states and the error taxonomy.
"""

import dataclasses

import pytest

from cloudprovision.providers.base import (
    CacheDescriptor,
    CacheEngine,
    Coordinates,
    DatabaseDescriptor,
    DatabaseEngine,
    DeploymentTier,
    ProvisioningState,
)
from cloudprovision.providers.errors import (
    ConflictError,
    DeleteFailedError,
    DescriptorValidationError,
    FatalError,
    ProviderError,
    ProvisioningError,
    ProvisioningTimeoutError,
    TransientError,
    UnsupportedVendorError,
)


class TestCacheDescriptor:
    def test_defaults(self):
        descriptor = CacheDescriptor(cluster_name="sessions")

        assert descriptor.engine == CacheEngine.REDIS
        assert descriptor.engine_version == ""
        assert descriptor.tier == DeploymentTier.DEV
        assert descriptor.identifier == "sessions"

    @pytest.mark.parametrize("name", ["", "   "])
    def test_blank_cluster_name_rejected(self, name):
        with pytest.raises(DescriptorValidationError):
            CacheDescriptor(cluster_name=name)

    def test_descriptor_is_immutable(self):
        descriptor = CacheDescriptor(cluster_name="sessions")
        with pytest.raises(dataclasses.FrozenInstanceError):
            descriptor.tier = DeploymentTier.PROD


class TestDatabaseDescriptor:
    def test_defaults(self):
        descriptor = DatabaseDescriptor(cluster_name="orders", database_name="orders")

        assert descriptor.engine == DatabaseEngine.POSTGRES
        assert descriptor.retention_period_days == 7
        assert descriptor.storage_size_gb == 20
        assert descriptor.identifier == "orders"

    def test_database_name_required(self):
        with pytest.raises(DescriptorValidationError) as exc_info:
            DatabaseDescriptor(cluster_name="orders", database_name="")

        assert exc_info.value.resource_id == "orders"

    def test_negative_retention_rejected(self):
        with pytest.raises(DescriptorValidationError):
            DatabaseDescriptor(
                cluster_name="orders", database_name="orders", retention_period_days=-1
            )

    def test_zero_retention_allowed(self):
        descriptor = DatabaseDescriptor(
            cluster_name="orders", database_name="orders", retention_period_days=0
        )
        assert descriptor.retention_period_days == 0

    @pytest.mark.parametrize("size", [0, -20])
    def test_non_positive_storage_rejected(self, size):
        with pytest.raises(DescriptorValidationError):
            DatabaseDescriptor(
                cluster_name="orders", database_name="orders", storage_size_gb=size
            )


class TestCoordinates:
    def test_str_includes_endpoint_and_credentials_ref(self):
        coordinates = Coordinates(
            resource_id="orders",
            host="orders.abc.rds.amazonaws.com",
            port=5432,
            credentials_ref="arn:aws:secretsmanager:us-east-1:1:secret:rds",
            engine="postgres",
        )

        assert str(coordinates) == (
            "postgres://orders.abc.rds.amazonaws.com:5432 resource=orders "
            "credentials=arn:aws:secretsmanager:us-east-1:1:secret:rds"
        )

    def test_str_without_engine_or_credentials(self):
        coordinates = Coordinates(resource_id="c1", host="c1.local", port=6379)
        assert str(coordinates) == "tcp://c1.local:6379 resource=c1 credentials=-"

    def test_equality_and_to_dict(self):
        first = Coordinates(resource_id="c1", host="h", port=1)
        second = Coordinates(resource_id="c1", host="h", port=1)

        assert first == second
        assert first.to_dict() == {
            "resource_id": "c1",
            "host": "h",
            "port": 1,
            "credentials_ref": None,
            "engine": "",
        }


class TestProvisioningState:
    @pytest.mark.parametrize(
        "state,terminal",
        [
            (ProvisioningState.REQUESTED, False),
            (ProvisioningState.PROVISIONING, False),
            (ProvisioningState.AVAILABLE, True),
            (ProvisioningState.FAILED, True),
            (ProvisioningState.DELETING, False),
            (ProvisioningState.DELETED, True),
            (ProvisioningState.DELETE_FAILED, True),
        ],
    )
    def test_is_terminal(self, state, terminal):
        assert state.is_terminal is terminal


class TestErrors:
    def test_str_joins_non_empty_parts(self):
        error = ProviderError(
            "create cache failed",
            vendor="aws",
            resource_id="sessions",
            original_error=ValueError("boom"),
        )

        assert str(error) == (
            "create cache failed | Vendor: aws | Resource: sessions | "
            "Original error: boom"
        )

    def test_str_with_message_only(self):
        assert str(UnsupportedVendorError("nope")) == "nope"

    def test_retryable_flags(self):
        assert TransientError("x").retryable is True
        assert ProvisioningTimeoutError("x").retryable is True
        assert FatalError("x").retryable is False
        assert ConflictError("x").retryable is False
        assert ProvisioningError("x").retryable is False

    def test_provisioning_error_carries_reason(self):
        error = DeleteFailedError(
            "delete failed", vendor="aws", reason="incompatible-network", state="delete_failed"
        )

        assert isinstance(error, ProvisioningError)
        assert error.state == "delete_failed"
        assert str(error).endswith("| Reason: incompatible-network")

    def test_fatal_error_keeps_vendor_code(self):
        error = FatalError("rejected", vendor="aws", error_code="InvalidParameterValue")
        assert error.error_code == "InvalidParameterValue"

    def test_timeout_carries_last_state(self):
        error = ProvisioningTimeoutError("late", last_state="provisioning")
        assert error.last_state == "provisioning"
