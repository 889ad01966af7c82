"""Date helpers shared by the CBR client and the resolver."""

from __future__ import annotations

import re
from datetime import date, datetime, timezone

ISO_DATE_FORMAT = "%Y-%m-%d"
# date_req query parameter of XML_daily.asp
CBR_REQUEST_DATE_FORMAT = "%d/%m/%Y"
# ValCurs/@Date attribute of the daily response
CBR_FEED_DATE_FORMAT = "%d.%m.%Y"

_ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def parse_date(value: str | date) -> date:
    """Parse a date string in ISO format to :class:`date`."""

    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise TypeError(f"expected ISO date string, got {type(value).__name__}")
    text = value.strip()
    if not _ISO_DATE_RE.match(text):
        raise ValueError(f"expected YYYY-MM-DD, got {value!r}")
    return datetime.strptime(text, ISO_DATE_FORMAT).date()


def utc_today() -> date:
    """Return the current calendar day in UTC."""

    return datetime.now(timezone.utc).date()


def format_request_date(day: date) -> str:
    return day.strftime(CBR_REQUEST_DATE_FORMAT)


def parse_feed_date(value: str | None) -> date | None:
    """Parse ``DD.MM.YYYY`` from the feed, returning ``None`` when absent or invalid."""

    if not value:
        return None
    try:
        return datetime.strptime(value.strip(), CBR_FEED_DATE_FORMAT).date()
    except ValueError:
        return None


__all__ = [
    "ISO_DATE_FORMAT",
    "CBR_REQUEST_DATE_FORMAT",
    "CBR_FEED_DATE_FORMAT",
    "parse_date",
    "utc_today",
    "format_request_date",
    "parse_feed_date",
]
