"""
Provider error taxonomy.

Every failure surfaced by a provider is a ``ProviderError`` subclass so that
callers can choose between retrying and aborting by exception type alone.
"""

from typing import Optional


class ProviderError(Exception):
    """
    Base exception for provider errors.

    Attributes:
        message: Error message
        vendor: Vendor key where the error occurred
        resource_id: Resource identifier if applicable
        original_error: Original exception if wrapped
    """

    retryable = False

    def __init__(
        self,
        message: str,
        vendor: Optional[str] = None,
        resource_id: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        self.message = message
        self.vendor = vendor
        self.resource_id = resource_id
        self.original_error = original_error
        super().__init__(self.message)

    def __str__(self) -> str:
        parts = [self.message]
        if self.vendor:
            parts.append(f"Vendor: {self.vendor}")
        if self.resource_id:
            parts.append(f"Resource: {self.resource_id}")
        if self.original_error:
            parts.append(f"Original error: {str(self.original_error)}")
        return " | ".join(parts)


class UnsupportedVendorError(ProviderError):
    """The factory was asked for a vendor it has no backend for."""


class ProviderConfigurationError(ProviderError):
    """Region or credentials for a backend could not be resolved."""


class DescriptorValidationError(ProviderError):
    """A descriptor violates generic or vendor constraints."""


class ConflictError(ProviderError):
    """The resource name is taken with incompatible parameters or by another owner."""


class TransientError(ProviderError):
    """A recoverable network, auth or rate-limit fault outlived its retry budget."""

    retryable = True


class FatalError(ProviderError):
    """The vendor rejected the request and retrying will not help."""

    def __init__(
        self,
        message: str,
        vendor: Optional[str] = None,
        resource_id: Optional[str] = None,
        original_error: Optional[Exception] = None,
        error_code: Optional[str] = None,
    ):
        super().__init__(message, vendor, resource_id, original_error)
        self.error_code = error_code


class ProvisioningError(ProviderError):
    """The vendor reported a terminal failure state for the resource."""

    def __init__(
        self,
        message: str,
        vendor: Optional[str] = None,
        resource_id: Optional[str] = None,
        reason: Optional[str] = None,
        state: Optional[str] = None,
    ):
        super().__init__(message, vendor, resource_id)
        self.reason = reason
        self.state = state

    def __str__(self) -> str:
        text = super().__str__()
        if self.reason:
            text = f"{text} | Reason: {self.reason}"
        return text


class DeleteFailedError(ProvisioningError):
    """The vendor reported a terminal failure while deleting the resource."""


class ProvisioningTimeoutError(ProviderError):
    """The operation deadline passed while the resource was still non-terminal."""

    retryable = True

    def __init__(
        self,
        message: str,
        vendor: Optional[str] = None,
        resource_id: Optional[str] = None,
        last_state: Optional[str] = None,
    ):
        super().__init__(message, vendor, resource_id)
        self.last_state = last_state


class ProvisioningCancelledError(ProviderError):
    """The caller cancelled the operation while it was waiting."""
