"""Exception types raised by Shipnotes."""

from typing import Optional


class ShipnotesError(Exception):
    """Base class for all Shipnotes errors."""


class ConfigurationError(ShipnotesError):
    """Raised when the release notes configuration cannot be parsed."""


class UnsupportedPlatformError(ShipnotesError):
    """Raised when the requested hosting platform has no client."""

    def __init__(self, platform: str):
        super().__init__(f"The {platform} platform is not supported")
        self.platform = platform


class RepositoryError(ShipnotesError):
    """Raised when the hosting platform API fails for a given identifier.

    Args:
        identifier: Tag, ref, pull request number or endpoint that failed
        message: Human readable reason
        status: HTTP status code when known
    """

    def __init__(self, identifier: str, message: str, status: Optional[int] = None):
        super().__init__(f"{identifier}: {message}")
        self.identifier = identifier
        self.status = status

    @property
    def not_found(self) -> bool:
        return self.status == 404
