"""Provider interface contract and shared types.

Defines the ``DataProvider`` abstract base class that every weather
source implements, and the ``ProviderStatus`` health record.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Sequence

import pandas as pd
import requests

from regioncast.config import Config

if TYPE_CHECKING:
    from regioncast._types import DateRange
    from regioncast.location import Coordinate


@dataclass
class ProviderStatus:
    """Operational status of a data provider.

    Example:
        >>> status = ProviderStatus(available=True)
        >>> status.message
        ''
    """

    available: bool = False
    message: str = ""


class DataProvider(ABC):
    """Abstract base class for hourly weather data sources.

    Subclasses set the ``_name`` class attribute to a unique provider
    identifier and implement :meth:`fetch_hourly` and :meth:`check_status`.

    Args:
        config: Frozen configuration snapshot for this provider instance.
    """

    _name: str = ""

    def __init__(self, config: Config) -> None:
        self._config = config
        self._session: requests.Session | None = None

    @property
    def name(self) -> str:
        """Provider identifier used in the registry and logs."""
        return self._name

    @abstractmethod
    def fetch_hourly(
        self,
        coordinate: Coordinate,
        date_range: DateRange,
        fields: Sequence[str],
    ) -> pd.DataFrame:
        """Fetch an hourly series for a coordinate and date range.

        Args:
            coordinate: Point to query.
            date_range: Inclusive ISO date pair ``(start, end)``.
            fields: Provider variable names to request.

        Returns:
            DataFrame with a ``time`` column of naive wall-clock timestamps
            in ``config.timezone`` and one float column per returned field.
            Missing values are NaN; fields absent from the response have
            no column.

        Raises:
            ProviderError: If the query fails or the payload is malformed.
        """
        ...

    @abstractmethod
    def check_status(self) -> ProviderStatus:
        """Check provider operational status.

        Never raises; returns ``available=False`` with a message on failure.
        """
        ...
