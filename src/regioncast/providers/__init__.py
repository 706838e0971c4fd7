"""Provider registry for weather data access.

Provides ``get_provider()`` to instantiate configured provider
instances by name. Supports the Open-Meteo historical archive and the
Open-Meteo forecast endpoint.
"""

from __future__ import annotations

from regioncast.config import Config
from regioncast.exceptions import ConfigurationError
from regioncast.providers.base import DataProvider

_PROVIDER_REGISTRY: dict[str, type[DataProvider]] = {}
_REGISTRY_INITIALIZED = False


def _init_registry() -> None:
    """Populate the provider registry on first use (lazy import)."""
    global _REGISTRY_INITIALIZED  # noqa: PLW0603
    if _REGISTRY_INITIALIZED:
        return

    from regioncast.providers.openmeteo import (
        OpenMeteoArchiveProvider,
        OpenMeteoForecastProvider,
    )

    _PROVIDER_REGISTRY.update(
        {
            "open-meteo-archive": OpenMeteoArchiveProvider,
            "open-meteo-forecast": OpenMeteoForecastProvider,
        }
    )
    _REGISTRY_INITIALIZED = True


def get_registered_names() -> list[str]:
    """Return sorted list of registered provider names."""
    _init_registry()
    return sorted(_PROVIDER_REGISTRY)


def get_provider(name: str, config: Config) -> DataProvider:
    """Return a configured provider instance by name.

    Provider names are case-insensitive.

    Args:
        name: Provider identifier (``"open-meteo-archive"`` or
            ``"open-meteo-forecast"``).
        config: Frozen configuration snapshot.

    Raises:
        ConfigurationError: If *name* does not match a registered provider.

    Example:
        >>> provider = get_provider("open-meteo-archive", Config())
        >>> provider.name
        'open-meteo-archive'
    """
    _init_registry()
    key = name.lower()
    if key not in _PROVIDER_REGISTRY:
        valid = ", ".join(sorted(_PROVIDER_REGISTRY))
        raise ConfigurationError(
            what=f"Unknown provider: {name!r}",
            cause=f"Valid providers are: {valid}",
            fix=f"Use one of: {valid}",
        )
    return _PROVIDER_REGISTRY[key](config=config)
