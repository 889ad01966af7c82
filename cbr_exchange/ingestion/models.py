"""Data models shared across ingestion and conversion modules."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Mapping

BASE_CURRENCY = "rub"


@dataclass(slots=True, frozen=True)
class CurrencyRateRecord:
    """Representation of a single ``<Valute>`` row from the daily CBR feed."""

    char_code: str
    nominal: int
    value: float

    @property
    def unit_rate(self) -> float:
        """Rouble value of one unit of the currency."""
        return self.value / self.nominal


@dataclass(slots=True, frozen=True)
class CurrencyCodeRecord:
    """Entry of the CBR currency reference list (``XML_val.asp``)."""

    item_id: str
    name: str
    eng_name: str
    nominal: int
    parent_code: str


@dataclass(frozen=True)
class RateTable:
    """Immutable per-day mapping of currency code to its rouble value.

    ``rate_date`` is the day the caller asked for and keys the cache;
    ``feed_date`` is the day the feed actually published, which falls back to
    the previous business day on weekends and holidays.
    """

    rate_date: date
    feed_date: date
    rates: Mapping[str, float]

    @classmethod
    def from_records(
        cls,
        rate_date: date,
        records: List[CurrencyRateRecord],
        *,
        feed_date: date | None = None,
    ) -> "RateTable":
        rates: Dict[str, float] = {}
        for record in records:
            rates[record.char_code.lower()] = record.unit_rate
        rates[BASE_CURRENCY] = 1.0
        return cls(
            rate_date=rate_date,
            feed_date=feed_date or rate_date,
            rates=MappingProxyType(rates),
        )

    def rate(self, code: str) -> float:
        return self.rates[code.lower()]

    def __contains__(self, code: object) -> bool:
        return isinstance(code, str) and code.lower() in self.rates

    def __iter__(self) -> Iterator[str]:
        return iter(self.rates)

    def __len__(self) -> int:
        return len(self.rates)


@dataclass(slots=True)
class ConversionItem:
    message: str
    amounts: Dict[str, float] = field(default_factory=dict)

    def as_dict(self) -> Dict[str, Any]:
        return {"msg": self.message, "rate": dict(self.amounts)}


@dataclass(slots=True)
class ConversionResult:
    """Outcome of one resolve call; ``as_dict`` yields the JSON response shape."""

    date: str
    items: List[ConversionItem] = field(default_factory=list)

    def as_dict(self) -> Dict[str, Any]:
        return {"date": self.date, "rates": [item.as_dict() for item in self.items]}


__all__ = [
    "BASE_CURRENCY",
    "CurrencyRateRecord",
    "CurrencyCodeRecord",
    "RateTable",
    "ConversionItem",
    "ConversionResult",
]
