"""
Configuration and fixtures for live integration tests.

These tests talk to a real S3-compatible endpoint, normally LocalStack. They
are skipped unless ENABLE_LIVE_TESTING is set.
"""

import os
import uuid

import pytest

from cloudprovision.config.settings import (
    AppSettings,
    CloudSettings,
    ProvisioningSettings,
)
from cloudprovision.providers.registry import ProviderFactory

TEST_LOCALSTACK_ENDPOINT = os.getenv("LOCALSTACK_ENDPOINT", "http://localhost:4566")


def generate_unique_name(prefix: str) -> str:
    """Generate a bucket-safe unique name for test resources."""
    return f"{prefix}-{uuid.uuid4().hex[:8]}"


def pytest_collection_modifyitems(config, items):
    """Skip live tests unless explicitly enabled."""
    if os.getenv("ENABLE_LIVE_TESTING", "").lower() in ("1", "true", "yes"):
        return

    skip_live = pytest.mark.skip(reason="Live tests require ENABLE_LIVE_TESTING=true")
    for item in items:
        if "live" in item.keywords:
            item.add_marker(skip_live)


@pytest.fixture
def live_settings(monkeypatch) -> AppSettings:
    """Settings pointing at LocalStack with its dummy credentials."""
    monkeypatch.delenv("AWS_DEFAULT_REGION", raising=False)
    return AppSettings(
        environment="testing",
        cloud=CloudSettings(
            aws_access_key_id="test",
            aws_secret_access_key="test",
            aws_region="us-east-1",
            aws_endpoint_url=TEST_LOCALSTACK_ENDPOINT,
        ),
        provisioning=ProvisioningSettings(
            poll_initial_delay=0.5,
            poll_max_delay=2.0,
            operation_timeout=60.0,
        ),
    )


@pytest.fixture
def live_provider(live_settings):
    """AWS provider built through the factory against LocalStack."""
    return ProviderFactory(live_settings).get("aws")


@pytest.fixture
def unique_name():
    """Factory for unique resource names."""
    return generate_unique_name
