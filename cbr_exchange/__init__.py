"""Public interface for the cbr_exchange package."""

from __future__ import annotations

from datetime import date
from importlib import metadata as importlib_metadata
from typing import Mapping, Sequence

from cbr_exchange.cache.lru import DailyRateCache
from cbr_exchange.conversion import convert, round_half_up
from cbr_exchange.errors import (
    ConfigurationError,
    ExchangeError,
    InternalStateError,
    InvalidRequestError,
    ResolutionError,
    Severity,
    UnresolvedCurrencyError,
    UpstreamError,
    UpstreamTimeoutError,
    UpstreamUnavailableError,
)
from cbr_exchange.ingestion.cbr_requests import CBRRequestsClient
from cbr_exchange.ingestion.fetcher import DailyRateFetcher
from cbr_exchange.ingestion.models import (
    ConversionItem,
    ConversionResult,
    CurrencyCodeRecord,
    RateTable,
)
from cbr_exchange.ingestion.strategy import RateSource
from cbr_exchange.query.aliases import AliasRegistry
from cbr_exchange.query.messages import MessageParser, ParsedAmount
from cbr_exchange.settings import DEFAULT_REQUIRED_CODES, ExchangeSettings
from cbr_exchange.utils.dates import parse_date, utc_today
from cbr_exchange.utils.logger import get_logger, set_debug

__all__ = [
    "__version__",
    "DEFAULT_QUERY",
    "CurrencyExchange",
    "ExchangeSettings",
    "DEFAULT_REQUIRED_CODES",
    "AliasRegistry",
    "MessageParser",
    "ParsedAmount",
    "DailyRateCache",
    "DailyRateFetcher",
    "CBRRequestsClient",
    "RateSource",
    "RateTable",
    "ConversionItem",
    "ConversionResult",
    "CurrencyCodeRecord",
    "convert",
    "round_half_up",
    "Severity",
    "ExchangeError",
    "ConfigurationError",
    "ResolutionError",
    "InvalidRequestError",
    "UnresolvedCurrencyError",
    "UpstreamError",
    "UpstreamTimeoutError",
    "UpstreamUnavailableError",
    "InternalStateError",
]

try:
    __version__ = importlib_metadata.version("cbr-exchange")
except importlib_metadata.PackageNotFoundError:  # pragma: no cover - fallback for local runs
    __version__ = "0.1.0"

LOGGER = get_logger(__name__)

DEFAULT_QUERY = "1 rub"


class CurrencyExchange:
    """Package facade that resolves free-text currency queries.

    The instance only wires together the alias registry, the message parser,
    the daily rate cache and the rate source; all shared state lives in those
    collaborators, which are safe to use from several threads at once.
    """

    __slots__ = ("settings", "registry", "parser", "cache", "source", "fetcher")

    # Provide direct access to the package version as a class attribute.
    __version__ = __version__

    def __init__(
        self,
        settings: ExchangeSettings | None = None,
        *,
        source: RateSource | None = None,
        cache: DailyRateCache | None = None,
        registry: AliasRegistry | None = None,
    ) -> None:
        """Build the resolver from ``settings``.

        Every collaborator can be supplied explicitly, which is how tests swap
        the CBR client for an in-memory source. When ``registry`` is omitted it
        is loaded from ``settings.required_codes``; an empty mapping leaves it
        unconfigured until :meth:`set_required_codes` is called.
        """

        self.settings = settings or ExchangeSettings()
        if self.settings.debug:
            set_debug(True)
        self.registry = (
            registry
            if registry is not None
            else AliasRegistry(self.settings.required_codes or None)
        )
        self.parser = MessageParser(self.registry)
        self.cache = cache if cache is not None else DailyRateCache(self.settings.cache_size)
        self.source: RateSource = (
            source if source is not None else CBRRequestsClient(user_agent=self.settings.user_agent)
        )
        self.fetcher = DailyRateFetcher(self.source, self.cache)

    def set_required_codes(self, aliases: Mapping[str, Sequence[str]]) -> None:
        """Replace the required currencies and their aliases atomically."""

        self.registry.set_required_codes(aliases)

    def required_codes(self) -> tuple[str, ...]:
        return self.registry.codes()

    def resolve(
        self,
        rate_date: date | str | None = None,
        query: str | None = None,
    ) -> ConversionResult:
        """Convert every amount in ``query`` using the CBR rates of ``rate_date``.

        ``rate_date`` defaults to today (UTC) and ``query`` to ``"1 rub"``.
        Failures are raised as :class:`ResolutionError` subclasses whose
        ``severity`` tells the transport layer which status to answer with.
        """

        if not self.registry.configured:
            raise InternalStateError("required currencies are not configured")
        day = self._resolve_date(rate_date)
        message = (query or "").strip() or DEFAULT_QUERY
        try:
            parsed = self.parser.parse(message)
            table = self.fetcher.fetch(day, self.settings.fetch_timeout)
            items = convert(parsed, table, self.registry.codes())
        except ResolutionError:
            raise
        except Exception as exc:
            LOGGER.error("Unexpected failure resolving %r for %s: %s", message, day, exc)
            raise InternalStateError("internal error") from exc
        return ConversionResult(date=table.feed_date.isoformat(), items=items)

    def codes(self, timeout: float | None = None) -> list[CurrencyCodeRecord]:
        """Return the currency reference list published by the CBR."""

        fetch_codes = getattr(self.source, "fetch_codes", None)
        if not callable(fetch_codes):
            raise InternalStateError("rate source does not provide currency codes")
        return fetch_codes(timeout=timeout or self.settings.fetch_timeout)

    def close(self) -> None:
        closer = getattr(self.source, "close", None)
        if callable(closer):
            closer()

    @staticmethod
    def _resolve_date(rate_date: date | str | None) -> date:
        today = utc_today()
        if rate_date is None:
            return today
        try:
            day = parse_date(rate_date)
        except (TypeError, ValueError) as exc:
            raise InvalidRequestError("bad date format") from exc
        if day > today:
            raise InvalidRequestError("bad date")
        return day
