"""Thread-safe LRU cache of daily rate tables keyed by calendar date."""

from __future__ import annotations

import threading
from collections import OrderedDict
from datetime import date
from typing import Optional

from cbr_exchange.errors import ConfigurationError
from cbr_exchange.ingestion.models import RateTable
from cbr_exchange.utils.logger import get_logger

LOGGER = get_logger(__name__)


class DailyRateCache:
    """Bounded ``date -> RateTable`` store with least-recently-used eviction.

    A hit on :meth:`get` and a :meth:`put` of an existing key both refresh
    recency. Every operation runs inside one lock section; callers must never
    hold it across network I/O.
    """

    def __init__(self, capacity: int) -> None:
        if isinstance(capacity, bool) or not isinstance(capacity, int) or capacity <= 0:
            raise ConfigurationError(f"invalid cache capacity: {capacity!r}")
        self.capacity = capacity
        self._data: "OrderedDict[date, RateTable]" = OrderedDict()
        self._lock = threading.Lock()

    def get(self, key: date) -> Optional[RateTable]:
        with self._lock:
            table = self._data.get(key)
            if table is None:
                return None
            self._data.move_to_end(key, last=True)
            return table

    def put(self, key: date, table: RateTable) -> None:
        with self._lock:
            self._data[key] = table
            self._data.move_to_end(key, last=True)
            while len(self._data) > self.capacity:
                evicted, _ = self._data.popitem(last=False)
                LOGGER.debug("Evicted rate table for %s", evicted)

    def keys(self) -> list[date]:
        """Return cached keys from least to most recently used."""
        with self._lock:
            return list(self._data)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._data

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)
