"""
Exception types raised by AzureBlast wrappers.
Transport failures from the Azure SDK are not wrapped; they propagate as-is.
"""

from typing import Optional


class AzureBlastError(Exception):
    """Base class for errors raised by AzureBlast itself."""


class NotConfiguredError(AzureBlastError, RuntimeError):
    """Raised when an operation runs before the wrapper was set up."""


class MessageTooLargeError(AzureBlastError):
    """Raised when a single message does not fit into an empty batch."""

    def __init__(self, index: int, max_size_in_bytes: Optional[int] = None):
        self.index = index
        self.max_size_in_bytes = max_size_in_bytes
        message = f"Message at index {index} does not fit into an empty batch"
        if max_size_in_bytes:
            message += f" (batch limit: {max_size_in_bytes} bytes)"
        super().__init__(message)


class ServiceNotRegisteredError(AzureBlastError, LookupError):
    """Raised when a required service type has no registration."""

    def __init__(self, service_type: type):
        self.service_type = service_type
        super().__init__(f"No service of type '{getattr(service_type, '__name__', service_type)}' is registered")
