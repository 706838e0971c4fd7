"""Internal shared types for cross-module data contracts.

These types are internal (prefixed ``_``) and NOT re-exported from
``regioncast.__init__``.
"""

from __future__ import annotations

from datetime import datetime
from typing import Tuple, Union

DateRange = Tuple[str, str]
"""ISO-8601 date pair ``(start, end)`` bounding a remote query, inclusive."""

TimeSelection = Union[datetime, Tuple[datetime, datetime]]
"""A single timestamp (point mode) or a ``(start, end)`` pair (range mode)."""
