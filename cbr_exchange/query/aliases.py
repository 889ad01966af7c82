"""Recognition patterns built from the configured currency aliases."""

from __future__ import annotations

import re
import threading
from dataclasses import dataclass
from typing import Mapping, Sequence

from cbr_exchange.errors import ConfigurationError
from cbr_exchange.utils.logger import get_logger

LOGGER = get_logger(__name__)

AMOUNT_PATTERN = r"(\d+(?:\.\d+)?)"
_CODE_RE = re.compile(r"^\w+$")


@dataclass(frozen=True)
class RecognitionPattern:
    """One directional pattern tagged with the currency it resolves to."""

    code: str
    alias: str
    pattern: re.Pattern[str]
    amount_first: bool

    def search(self, text: str) -> str | None:
        """Return the matched amount text, or ``None`` when ``text`` does not match."""
        match = self.pattern.search(text)
        return match.group(1) if match else None


def _normalise_alias(code: str, alias: object) -> str:
    if not isinstance(alias, str) or not alias.strip():
        raise ConfigurationError(f"empty alias for currency {code!r}")
    folded = alias.strip().casefold()
    if "," in folded:
        raise ConfigurationError(f"alias {alias!r} for {code!r} must not contain a comma")
    return folded


def _compile_pair(code: str, alias: str) -> tuple[RecognitionPattern, RecognitionPattern]:
    token = re.escape(alias)
    try:
        amount_first = re.compile(rf"{AMOUNT_PATTERN}\s*{token}")
        alias_first = re.compile(rf"{token}\s*{AMOUNT_PATTERN}")
    except re.error as exc:  # pragma: no cover - escaped aliases always compile
        raise ConfigurationError(f"invalid alias {alias!r} for {code!r}: {exc}") from exc
    return (
        RecognitionPattern(code=code, alias=alias, pattern=amount_first, amount_first=True),
        RecognitionPattern(code=code, alias=alias, pattern=alias_first, amount_first=False),
    )


def compile_patterns(aliases: Mapping[str, Sequence[str]]) -> tuple[RecognitionPattern, ...]:
    """Build the ordered pattern list for ``aliases``.

    Currencies keep their declared order. Within a currency the code itself
    comes first, followed by its aliases; each yields an amount-first pattern
    followed by an alias-first one.
    """

    if not aliases:
        raise ConfigurationError("at least one required currency must be configured")
    patterns: list[RecognitionPattern] = []
    seen: set[str] = set()
    for raw_code, names in aliases.items():
        if not isinstance(raw_code, str) or not _CODE_RE.match(raw_code.strip()):
            raise ConfigurationError(f"invalid currency code: {raw_code!r}")
        code = raw_code.strip().lower()
        if code in seen:
            raise ConfigurationError(f"duplicate currency code: {code!r}")
        seen.add(code)
        if isinstance(names, str):
            raise ConfigurationError(f"aliases for {code!r} must be a sequence, not a string")
        tokens = [code] + [_normalise_alias(code, name) for name in names]
        for token in tokens:
            patterns.extend(_compile_pair(code, token))
    return tuple(patterns)


class AliasRegistry:
    """Holds the compiled patterns and the ordered required currencies.

    :meth:`set_required_codes` swaps the whole pattern set atomically; on
    failure the previously installed set stays in place.
    """

    def __init__(self, aliases: Mapping[str, Sequence[str]] | None = None) -> None:
        self._lock = threading.Lock()
        self._patterns: tuple[RecognitionPattern, ...] = ()
        self._codes: tuple[str, ...] = ()
        if aliases is not None:
            self.set_required_codes(aliases)

    def set_required_codes(self, aliases: Mapping[str, Sequence[str]]) -> None:
        """Set required currency codes and their aliases.

        For example ``{"usd": ["$", "dollar"], "rub": ["руб", "rubles"]}``.
        """

        patterns = compile_patterns(aliases)
        codes = tuple(dict.fromkeys(pattern.code for pattern in patterns))
        with self._lock:
            self._patterns = patterns
            self._codes = codes
        LOGGER.debug("Installed %s recognition patterns for %s", len(patterns), ", ".join(codes))

    @property
    def configured(self) -> bool:
        with self._lock:
            return bool(self._patterns)

    def patterns(self) -> tuple[RecognitionPattern, ...]:
        with self._lock:
            return self._patterns

    def codes(self) -> tuple[str, ...]:
        """Required currency codes in declared order."""
        with self._lock:
            return self._codes


__all__ = ["AMOUNT_PATTERN", "RecognitionPattern", "AliasRegistry", "compile_patterns"]
