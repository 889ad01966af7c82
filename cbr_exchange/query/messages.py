"""Split a comma-separated query into currency amounts."""

from __future__ import annotations

from dataclasses import dataclass

from cbr_exchange.query.aliases import AliasRegistry, RecognitionPattern
from cbr_exchange.utils.logger import get_logger

LOGGER = get_logger(__name__)


@dataclass(slots=True, frozen=True)
class ParsedAmount:
    """One query segment; ``currency`` is ``None`` when nothing matched."""

    text: str
    currency: str | None
    value: float = 0.0

    @property
    def resolved(self) -> bool:
        return self.currency is not None


def _match_segment(
    text: str, folded: str, patterns: tuple[RecognitionPattern, ...]
) -> ParsedAmount:
    for pattern in patterns:
        raw_amount = pattern.search(folded)
        if raw_amount is None:
            continue
        try:
            value = float(raw_amount)
        except ValueError:
            LOGGER.warning("Cannot parse amount %r in %r for %s", raw_amount, text, pattern.code)
            continue
        LOGGER.debug("Segment %r matched %s via alias %r", text, pattern.code, pattern.alias)
        return ParsedAmount(text=text, currency=pattern.code, value=value)
    return ParsedAmount(text=text, currency=None, value=0.0)


class MessageParser:
    """First-match-wins parser over the registry's ordered patterns."""

    def __init__(self, registry: AliasRegistry) -> None:
        self.registry = registry

    def parse(self, raw_query: str) -> list[ParsedAmount]:
        # one snapshot per call, so a concurrent re-configuration never mixes pattern sets
        patterns = self.registry.patterns()
        amounts: list[ParsedAmount] = []
        for segment in raw_query.split(","):
            text = segment.strip()
            if not text:
                continue
            amounts.append(_match_segment(text, text.casefold(), patterns))
        return amounts


__all__ = ["ParsedAmount", "MessageParser"]
