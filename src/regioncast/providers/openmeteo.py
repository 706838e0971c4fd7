"""Open-Meteo hourly weather access.

Both the historical archive and the forecast endpoint accept the same
``start_date``/``end_date`` hourly query and return the same payload
shape, so they share one implementation.
"""

from __future__ import annotations

import logging
import random
import time
from typing import TYPE_CHECKING, Any, Sequence

import pandas as pd
import requests

from regioncast.config import Config
from regioncast.exceptions import ProviderError
from regioncast.providers.base import DataProvider, ProviderStatus

if TYPE_CHECKING:
    from regioncast._types import DateRange
    from regioncast.location import Coordinate

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Open-Meteo API constants
# ---------------------------------------------------------------------------

_ARCHIVE_URL = "https://archive-api.open-meteo.com/v1/archive"
_FORECAST_URL = "https://api.open-meteo.com/v1/forecast"

_COORDINATE_DECIMALS = 4
_STATUS_TIMEOUT = 5  # seconds

# ---------------------------------------------------------------------------
# Retry constants
# ---------------------------------------------------------------------------

_INITIAL_BACKOFF = 0.5  # seconds
_MAX_BACKOFF = 4.0  # seconds
_RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504, 408})
_SUCCESS_STATUS_CODES = frozenset({200})


class OpenMeteoArchiveProvider(DataProvider):
    """Open-Meteo historical weather provider.

    Open-Meteo is a public API and requires no authentication.

    Args:
        config: Frozen configuration snapshot.

    Example:
        >>> provider = OpenMeteoArchiveProvider(config=Config())
        >>> provider.name
        'open-meteo-archive'
    """

    _name: str = "open-meteo-archive"
    _url: str = _ARCHIVE_URL
    _status_params: dict[str, str] = {
        "latitude": "0",
        "longitude": "0",
        "hourly": "temperature_2m",
        "start_date": "2024-01-01",
        "end_date": "2024-01-01",
    }

    def __init__(self, config: Config) -> None:
        super().__init__(config)
        self._session: requests.Session = requests.Session()

    @property
    def url(self) -> str:
        return self._url

    def build_params(
        self,
        coordinate: Coordinate,
        date_range: DateRange,
        fields: Sequence[str],
    ) -> dict[str, str]:
        """Build the query string for an hourly request."""
        return {
            "latitude": f"{coordinate.lat:.{_COORDINATE_DECIMALS}f}",
            "longitude": f"{coordinate.lon:.{_COORDINATE_DECIMALS}f}",
            "start_date": date_range[0],
            "end_date": date_range[1],
            "hourly": ",".join(fields),
            "timezone": self._config.timezone,
        }

    def fetch_hourly(
        self,
        coordinate: Coordinate,
        date_range: DateRange,
        fields: Sequence[str],
    ) -> pd.DataFrame:
        """Fetch hourly values for *fields* over *date_range*.

        Raises:
            ProviderError: On network failure, non-success status, or a
                payload without an hourly time series.
        """
        params = self.build_params(coordinate, date_range, fields)
        logger.info(
            "Fetching %s hourly data for (%.4f, %.4f) %s..%s",
            self._name,
            coordinate.lat,
            coordinate.lon,
            date_range[0],
            date_range[1],
        )
        resp = self._retry_request("get", self._url, params=params)

        try:
            payload = resp.json()
        except ValueError as exc:
            raise ProviderError(
                what="Open-Meteo request failed",
                cause="Invalid JSON response",
                fix="Try again; if persistent, check Open-Meteo API status",
            ) from exc

        return self._parse_hourly(payload, fields)

    def _parse_hourly(self, payload: Any, fields: Sequence[str]) -> pd.DataFrame:
        """Convert the ``hourly`` block of a response into a DataFrame.

        Args:
            payload: Decoded JSON response.
            fields: Requested variable names.

        Returns:
            DataFrame with ``time`` plus one column per returned field.
        """
        hourly = payload.get("hourly") if isinstance(payload, dict) else None
        if not isinstance(hourly, dict) or not hourly.get("time"):
            raise ProviderError(
                what="Open-Meteo request failed",
                cause="Response has no hourly time series",
                fix="Check the requested date range is served by this endpoint",
            )

        try:
            times = pd.to_datetime(pd.Series(hourly["time"]), format="ISO8601")
        except (ValueError, TypeError) as exc:
            raise ProviderError(
                what="Open-Meteo request failed",
                cause=f"Unparseable hourly timestamps: {exc}",
                fix="Try again; if persistent, check Open-Meteo API status",
            ) from exc
        if times.dt.tz is not None:
            times = times.dt.tz_localize(None)

        frame = pd.DataFrame({"time": times})
        for name in fields:
            values = hourly.get(name)
            if not isinstance(values, list):
                logger.debug("Open-Meteo response has no %s series", name)
                continue
            if len(values) != len(frame):
                logger.warning(
                    "Open-Meteo %s series has %d values for %d timestamps, ignoring",
                    name,
                    len(values),
                    len(frame),
                )
                continue
            frame[name] = pd.to_numeric(pd.Series(values), errors="coerce").astype(
                "float64"
            )
        return frame

    def _retry_request(
        self,
        method: str,
        url: str,
        **kwargs: Any,
    ) -> requests.Response:
        """Execute HTTP request with retry and exponential backoff.

        Makes ``config.max_retries`` attempts, each bounded by
        ``config.request_timeout``.

        Raises:
            ProviderError: If all attempts fail.
        """
        kwargs.setdefault("timeout", self._config.request_timeout)
        attempts = self._config.max_retries
        last_status: int = 0
        last_exc: requests.RequestException | None = None

        for attempt in range(attempts):
            try:
                resp = self._session.request(method, url, **kwargs)

                if resp.status_code in _SUCCESS_STATUS_CODES:
                    return resp

                last_status = resp.status_code

                if resp.status_code not in _RETRYABLE_STATUS_CODES:
                    raise ProviderError(
                        what="Open-Meteo request failed",
                        cause=f"HTTP {resp.status_code}",
                        fix="Check the query parameters and Open-Meteo API status",
                    )

                if attempt < attempts - 1:
                    backoff = self._compute_backoff(attempt)
                    logger.warning(
                        "Open-Meteo request failed (HTTP %d, attempt %d/%d), "
                        "retrying in %.1fs...",
                        resp.status_code,
                        attempt + 1,
                        attempts,
                        backoff,
                    )
                    time.sleep(backoff)

            except ProviderError:
                raise
            except requests.RequestException as exc:
                last_exc = exc
                if attempt < attempts - 1:
                    backoff = self._compute_backoff(attempt)
                    logger.warning(
                        "Open-Meteo request failed (%s, attempt %d/%d), "
                        "retrying in %.1fs...",
                        type(exc).__name__,
                        attempt + 1,
                        attempts,
                        backoff,
                    )
                    time.sleep(backoff)

        if last_exc is not None:
            raise ProviderError(
                what="Open-Meteo request failed",
                cause=str(last_exc),
                fix="Check internet connection and try again",
            ) from last_exc

        raise ProviderError(
            what="Open-Meteo request failed",
            cause=f"HTTP {last_status} after {attempts} attempt(s)",
            fix="Check Open-Meteo API status at https://open-meteo.com",
        )

    @staticmethod
    def _compute_backoff(attempt: int) -> float:
        """Exponential backoff with up to 10% jitter."""
        base_delay: float = min(_INITIAL_BACKOFF * (2**attempt), _MAX_BACKOFF)
        jitter: float = random.uniform(0, base_delay * 0.1)  # noqa: S311
        return float(base_delay + jitter)

    def check_status(self) -> ProviderStatus:
        """Check that the endpoint answers a minimal query.

        Never raises.
        """
        try:
            resp = self._session.get(
                self._url,
                params=self._status_params,
                timeout=_STATUS_TIMEOUT,
            )
            if resp.status_code in _SUCCESS_STATUS_CODES:
                return ProviderStatus(available=True)
            return ProviderStatus(
                available=False,
                message=f"{self._name} returned HTTP {resp.status_code}",
            )
        except requests.RequestException as exc:
            return ProviderStatus(
                available=False,
                message=f"{self._name} unreachable: {exc}",
            )


class OpenMeteoForecastProvider(OpenMeteoArchiveProvider):
    """Open-Meteo forecast provider, serving recent and future dates.

    Example:
        >>> OpenMeteoForecastProvider(config=Config()).name
        'open-meteo-forecast'
    """

    _name: str = "open-meteo-forecast"
    _url: str = _FORECAST_URL
    _status_params: dict[str, str] = {
        "latitude": "0",
        "longitude": "0",
        "hourly": "temperature_2m",
        "forecast_days": "1",
    }
