"""In-memory storage for fetched rate tables."""

from __future__ import annotations

from cbr_exchange.cache.lru import DailyRateCache

__all__ = ["DailyRateCache"]
