"""RegionCast exception hierarchy.

All exceptions follow a three-part message pattern: what failed,
likely cause, and suggested fix.
"""

from __future__ import annotations


class RegionCastError(Exception):
    """Base exception for all RegionCast errors.

    Args:
        what: Description of what failed.
        cause: Likely cause of the failure.
        fix: Suggested action to resolve the issue.

    Example:
        >>> raise RegionCastError(
        ...     what="Operation failed",
        ...     cause="Unexpected internal state",
        ...     fix="Please report this issue",
        ... )
    """

    def __init__(
        self,
        what: str,
        cause: str = "",
        fix: str = "",
    ) -> None:
        self.what = what
        self.cause = cause
        self.fix = fix
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Build the multi-line error message from parts."""
        parts = [self.what]
        if self.cause:
            parts.append(f"Cause: {self.cause}")
        if self.fix:
            parts.append(f"Fix: {self.fix}")
        return "\n".join(parts)


class ConfigurationError(RegionCastError):
    """Raised for invalid configuration, coordinates, or rule files.

    Example:
        >>> raise ConfigurationError(
        ...     what="Invalid latitude: 91.0",
        ...     cause="Latitude must be between -90.0 and 90.0",
        ...     fix="Provide a valid WGS84 latitude value",
        ... )
    """


class ProviderError(RegionCastError):
    """Raised by weather providers when a query cannot be completed.

    The resolver absorbs this error into a fallback observation; it only
    reaches callers that use a provider directly.

    Example:
        >>> raise ProviderError(
        ...     what="Open-Meteo request failed",
        ...     cause="HTTP 503",
        ...     fix="Check https://open-meteo.com status and try again",
        ... )
    """
