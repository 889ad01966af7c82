"""Exception hierarchy for cbr_exchange.

Components raise the narrow subclasses below. :class:`CurrencyExchange` is the
single place that turns anything else into an :class:`InternalStateError`, so
callers only ever have to handle :class:`ResolutionError` (per request) and
:class:`ConfigurationError` (at startup).
"""

from __future__ import annotations

from enum import Enum


class Severity(str, Enum):
    """Externally visible failure classes."""

    CLIENT = "client"
    UNAVAILABLE = "unavailable"
    INTERNAL = "internal"

    @property
    def status_code(self) -> int:
        return _STATUS_CODES[self]


_STATUS_CODES: dict[Severity, int] = {
    Severity.CLIENT: 400,
    Severity.UNAVAILABLE: 503,
    Severity.INTERNAL: 500,
}


class ExchangeError(Exception):
    """Root of every error raised by the package."""


class ConfigurationError(ExchangeError, ValueError):
    """Invalid settings, cache capacity or alias definitions."""


class ResolutionError(ExchangeError):
    """A classified failure of a single resolve call."""

    severity: Severity = Severity.INTERNAL

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    @property
    def status_code(self) -> int:
        return self.severity.status_code


class InvalidRequestError(ResolutionError):
    severity = Severity.CLIENT


class UnresolvedCurrencyError(ResolutionError):
    """A parsed or required currency is absent from the day's rate table."""

    severity = Severity.CLIENT

    def __init__(self, currency: str) -> None:
        super().__init__(f"unknown currency: {currency}")
        self.currency = currency


class UpstreamError(ResolutionError):
    severity = Severity.UNAVAILABLE


class UpstreamTimeoutError(UpstreamError):
    def __init__(self, timeout: float) -> None:
        super().__init__(f"rates service timed out ({timeout:g}s)")
        self.timeout = timeout


class UpstreamUnavailableError(UpstreamError):
    """Transport failure, non-success status or malformed payload."""

    def __init__(self, message: str, *, status_code_upstream: int | None = None) -> None:
        super().__init__(message)
        self.status_code_upstream = status_code_upstream


class InternalStateError(ResolutionError):
    severity = Severity.INTERNAL


__all__ = [
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
