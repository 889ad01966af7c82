"""Cross-currency conversion of parsed amounts against a daily rate table."""

from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal, localcontext
from typing import Iterable, Sequence

from cbr_exchange.errors import InvalidRequestError, UnresolvedCurrencyError
from cbr_exchange.ingestion.models import ConversionItem, RateTable
from cbr_exchange.query.messages import ParsedAmount


def round_half_up(value: float, places: int = 2) -> float:
    """Round ``value`` to ``places`` decimals, ties away from zero.

    The float goes through its shortest ``repr`` so that ``2.005`` rounds to
    ``2.01`` even though its binary value is slightly below the tie.
    Non-finite values are returned unchanged.
    """

    if not math.isfinite(value):
        return value
    exact = Decimal(repr(value))
    with localcontext() as ctx:
        # enough digits for every integer place plus the requested decimals
        ctx.prec = max(28, exact.adjusted() + places + 2)
        return float(exact.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP))


def _lookup(table: RateTable, code: str | None, label: str) -> float:
    if code is None or code not in table:
        raise UnresolvedCurrencyError(code or label)
    return table.rate(code)


def _finite(value: float, text: str) -> float:
    if not math.isfinite(value):
        raise InvalidRequestError(f"amount out of range: {text}")
    return value


def convert(
    parsed: Iterable[ParsedAmount],
    table: RateTable,
    required: Sequence[str],
) -> list[ConversionItem]:
    """Convert each amount into every required currency.

    Any unresolved amount, or any required currency missing from ``table``,
    aborts the whole batch with :class:`UnresolvedCurrencyError`. Amounts too
    large to represent abort it with :class:`InvalidRequestError`.
    """

    targets = [(code, _lookup(table, code, code)) for code in required]
    items: list[ConversionItem] = []
    for amount in parsed:
        base_value = _finite(amount.value * _lookup(table, amount.currency, amount.text), amount.text)
        items.append(
            ConversionItem(
                message=amount.text,
                amounts={
                    code: round_half_up(_finite(base_value / rate, amount.text))
                    for code, rate in targets
                },
            )
        )
    return items


__all__ = ["round_half_up", "convert"]
