# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Custom exceptions for the module registry updater.

All exceptions inherit from EcoRegistryError for consistent error handling.
Soft failures (NoVersionsError, a 404/410 UpstreamStatusError) are recorded on
module records; everything else unwinds to the caller.
"""

from typing import Optional


NOT_FOUND_STATUSES = (404, 410)


class EcoRegistryError(Exception):
    """Base exception for all registry updater errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        """
        Initialize registry error.

        Args:
            message: Human-readable error message
            details: Additional error details
        """
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict:
        """Convert error to dictionary for reports."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "details": self.details
        }


class TransportError(EcoRegistryError):
    """Connection, DNS or protocol failure talking to an upstream service."""

    def __init__(self, message: str, url: Optional[str] = None, details: Optional[dict] = None):
        """
        Initialize transport error.

        Args:
            message: Transport error message
            url: URL being fetched
            details: Additional error details
        """
        super().__init__(message, details=details)
        self.url = url


class UpstreamStatusError(EcoRegistryError):
    """Upstream answered with a non-2xx status."""

    def __init__(self, status: int, url: Optional[str] = None, details: Optional[dict] = None):
        """
        Initialize upstream status error.

        Args:
            status: Numeric HTTP status code
            url: URL that produced the status
            details: Additional error details
        """
        message = f"HTTP {status}"
        if url:
            message = f"{message} for {url}"
        super().__init__(message, details=details)
        self.status = status
        self.url = url

    @property
    def is_not_found(self) -> bool:
        """Whether the status means the resource is absent (404 or 410)."""
        return self.status in NOT_FOUND_STATUSES


class NoVersionsError(EcoRegistryError):
    """Module has no discoverable version at all."""

    def __init__(self, path: str, details: Optional[dict] = None):
        super().__init__("no versions from proxy", details=details)
        self.path = path


class ManifestParseError(EcoRegistryError):
    """Module descriptor could not be parsed."""

    def __init__(self, message: str, location: Optional[str] = None, details: Optional[dict] = None):
        """
        Initialize manifest parse error.

        Args:
            message: Parse error message
            location: Descriptor location (path@version/go.mod)
            details: Additional error details
        """
        if location:
            message = f"{location}: {message}"
        super().__init__(message, details=details)
        self.location = location


class FeedDecodeError(EcoRegistryError):
    """A feed page contained a line that is not a JSON event."""


class StorageError(EcoRegistryError):
    """Registry transaction failed and was rolled back."""

    def __init__(self, message: str, operation: Optional[str] = None, details: Optional[dict] = None):
        super().__init__(message, details=details)
        self.operation = operation


class ResolutionError(EcoRegistryError):
    """Hard failure while resolving one module; aborts the resolve phase."""

    def __init__(self, path: str, operation: str, cause: Exception):
        """
        Initialize resolution error.

        Args:
            path: Module path being resolved
            operation: Operation that failed (e.g. "latest", "info")
            cause: Underlying exception
        """
        super().__init__(
            f"{operation}({path}): {cause}",
            details={"path": path, "operation": operation}
        )
        self.path = path
        self.operation = operation
        self.cause = cause


class ConfigurationError(EcoRegistryError):
    """Configuration error."""

    def __init__(self, message: str, config_file: Optional[str] = None, details: Optional[dict] = None):
        super().__init__(message, details=details)
        self.config_file = config_file


# Error Utilities

def error_status(error: BaseException) -> int:
    """
    Get the HTTP status carried by an error.

    Args:
        error: Any exception

    Returns:
        The upstream status code, or -1 if the error is not an UpstreamStatusError
    """
    if isinstance(error, UpstreamStatusError):
        return error.status
    return -1


def sanitize_error_for_user(error: Exception, include_type: bool = False) -> str:
    """
    Bound an error message for storage on a module record.

    Args:
        error: The exception to sanitize
        include_type: Whether to include exception type

    Returns:
        Single-line error message of at most 500 characters
    """
    error_msg = " ".join(str(error).split())

    # Limit message length
    if len(error_msg) > 500:
        error_msg = error_msg[:500] + "..."

    if include_type:
        return f"{error.__class__.__name__}: {error_msg}"

    return error_msg
