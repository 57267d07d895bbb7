"""
Multi-cloud provisioning layer.

This module provides a unified interface for provisioning object storage,
managed caches and managed databases across cloud vendors.
"""

from .base import (
    CacheDescriptor,
    CacheEngine,
    CloudResourceProvider,
    CloudVendor,
    Coordinates,
    DatabaseDescriptor,
    DatabaseEngine,
    DeploymentTier,
    ProviderConfig,
    ProvisioningState,
    ResourceKind,
)
from .client import CloudClient, ResourceStatus, SubmitOutcome
from .errors import (
    ConflictError,
    DeleteFailedError,
    DescriptorValidationError,
    FatalError,
    ProviderConfigurationError,
    ProviderError,
    ProvisioningCancelledError,
    ProvisioningError,
    ProvisioningTimeoutError,
    TransientError,
    UnsupportedVendorError,
)
from .registry import ProviderFactory, get_factory, get_provider

__all__ = [
    "CloudVendor",
    "ResourceKind",
    "ProvisioningState",
    "CacheEngine",
    "DatabaseEngine",
    "DeploymentTier",
    "CacheDescriptor",
    "DatabaseDescriptor",
    "Coordinates",
    "ProviderConfig",
    "CloudResourceProvider",
    "CloudClient",
    "ResourceStatus",
    "SubmitOutcome",
    "ProviderError",
    "UnsupportedVendorError",
    "ProviderConfigurationError",
    "DescriptorValidationError",
    "ConflictError",
    "TransientError",
    "FatalError",
    "ProvisioningError",
    "DeleteFailedError",
    "ProvisioningTimeoutError",
    "ProvisioningCancelledError",
    "ProviderFactory",
    "get_factory",
    "get_provider",
]
