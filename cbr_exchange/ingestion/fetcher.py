"""Cache-first access to the daily rate tables."""

from __future__ import annotations

from datetime import date

from cbr_exchange.cache.lru import DailyRateCache
from cbr_exchange.ingestion.models import RateTable
from cbr_exchange.ingestion.strategy import RateSource
from cbr_exchange.utils.logger import get_logger

LOGGER = get_logger(__name__)


class DailyRateFetcher:
    """Serve rate tables from :class:`DailyRateCache`, falling back to ``source``.

    Only successful fetches populate the cache. Two concurrent misses for the
    same day may both hit the source; the later ``put`` wins and both tables
    are equal.
    """

    def __init__(self, source: RateSource, cache: DailyRateCache) -> None:
        self.source = source
        self.cache = cache

    def fetch(self, rate_date: date, timeout: float) -> RateTable:
        table = self.cache.get(rate_date)
        if table is not None:
            LOGGER.debug("Cache hit for %s", rate_date)
            return table
        table = self.source.fetch_rates(rate_date, timeout=timeout)
        self.cache.put(rate_date, table)
        LOGGER.info("Cached rate table for %s", rate_date)
        return table


__all__ = ["DailyRateFetcher"]
