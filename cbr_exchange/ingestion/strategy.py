"""Abstractions for pluggable rate sources."""

from __future__ import annotations

from datetime import date
from typing import Protocol

from cbr_exchange.ingestion.models import RateTable


class RateSource(Protocol):
    """Contract for fetching a day's rate table.

    Implementations must honour ``timeout`` as a hard deadline and raise
    :class:`~cbr_exchange.errors.UpstreamTimeoutError` once it elapses.
    """

    def fetch_rates(self, rate_date: date, *, timeout: float) -> RateTable:
        ...  # pragma: no cover - protocol definition


__all__ = ["RateSource"]
