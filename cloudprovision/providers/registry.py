"""
Provider factory for resolving vendor backends.

This module maps vendor keys onto provider implementations and builds each
provider from the application settings.
"""

import logging
from typing import Dict, List, Optional, Type

from ..config.settings import AppSettings, get_settings
from .aws import AWSProvider
from .base import CloudResourceProvider, CloudVendor
from .client import CloudClient
from .errors import UnsupportedVendorError


class ProviderFactory:
    """Factory for cloud provider implementations."""

    def __init__(self, settings: Optional[AppSettings] = None):
        """Initialize the factory with the built-in backends registered."""
        self.settings = settings
        self._providers: Dict[CloudVendor, Type[CloudResourceProvider]] = {
            CloudVendor.AWS: AWSProvider,
        }
        self.logger = logging.getLogger(self.__class__.__name__)

    def register(
        self, vendor: CloudVendor, provider_class: Type[CloudResourceProvider]
    ) -> None:
        """
        Register a provider implementation.

        Args:
            vendor: The cloud vendor
            provider_class: The provider implementation class
        """
        self._providers[vendor] = provider_class
        self.logger.info(f"Registered provider: {vendor.value}")

    def supported_vendors(self) -> List[CloudVendor]:
        """List vendors with a registered implementation."""
        return list(self._providers.keys())

    def resolve_vendor(self, vendor_key: str) -> CloudVendor:
        """
        Match a vendor key against the known vendors.

        Raises:
            UnsupportedVendorError: If the key names no known vendor
        """
        key = (vendor_key or "").strip().lower()
        for vendor in CloudVendor:
            if vendor.value == key:
                return vendor

        supported = ", ".join(v.value for v in self.supported_vendors())
        raise UnsupportedVendorError(
            f"Unknown cloud vendor '{vendor_key}'. Supported: {supported}",
            vendor=vendor_key,
        )

    def get(
        self, vendor_key: str, client: Optional[CloudClient] = None
    ) -> CloudResourceProvider:
        """
        Create a provider for the given vendor.

        Args:
            vendor_key: Vendor name, matched case-insensitively
            client: Optional client to use instead of the vendor's default

        Returns:
            A configured provider instance

        Raises:
            UnsupportedVendorError: If the vendor is unknown or not implemented
            ProviderConfigurationError: If region or credentials do not resolve
        """
        vendor = self.resolve_vendor(vendor_key)
        provider_class = self._providers.get(vendor)
        if provider_class is None:
            supported = ", ".join(v.value for v in self.supported_vendors())
            raise UnsupportedVendorError(
                f"Cloud vendor '{vendor.value}' is not implemented. "
                f"Supported: {supported}",
                vendor=vendor.value,
            )

        settings = self.settings or get_settings()
        config = provider_class.build_config(settings)
        provider = provider_class(config, client=client)
        self.logger.debug(
            f"Created provider: {vendor.value}",
            extra={"vendor": vendor.value, "region": config.region},
        )
        return provider


# Global factory instance, created on first use
_default_factory: Optional[ProviderFactory] = None


def get_factory() -> ProviderFactory:
    """Get the global provider factory."""
    global _default_factory
    if _default_factory is None:
        _default_factory = ProviderFactory()
    return _default_factory


def get_provider(
    vendor_key: str, client: Optional[CloudClient] = None
) -> CloudResourceProvider:
    """
    Get a provider from the global factory.

    Args:
        vendor_key: Vendor name, matched case-insensitively
        client: Optional client to use instead of the vendor's default

    Returns:
        A configured provider instance
    """
    return get_factory().get(vendor_key, client=client)
