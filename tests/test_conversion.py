from __future__ import annotations

import math
from datetime import date

import pytest

from cbr_exchange.conversion import convert, round_half_up
from cbr_exchange.errors import InvalidRequestError, Severity, UnresolvedCurrencyError
from cbr_exchange.ingestion.models import CurrencyRateRecord, RateTable
from cbr_exchange.query.messages import ParsedAmount


def _table() -> RateTable:
    return RateTable.from_records(
        date(2024, 3, 2),
        [
            CurrencyRateRecord(char_code="usd", nominal=1, value=63.91),
            CurrencyRateRecord(char_code="eur", nominal=1, value=68.5),
        ],
    )


@pytest.mark.parametrize(
    "value, expected",
    [
        (2.005, 2.01),
        (2.004, 2.0),
        (1.005, 1.01),
        (0.125, 0.13),
        (-2.005, -2.01),
        (319.55, 319.55),
        (21.436395, 21.44),
    ],
)
def test_round_half_up(value, expected) -> None:
    assert round_half_up(value) == expected


@pytest.mark.parametrize("value", [2.005, 1 / 3, 1234.5678, -0.015, 0.0])
def test_round_half_up_is_idempotent(value) -> None:
    once = round_half_up(value, 2)

    assert round_half_up(once, 2) == once


def test_round_half_up_other_precision() -> None:
    assert round_half_up(1.2345, 3) == 1.235
    assert round_half_up(7.5, 0) == 8.0


def test_convert_builds_matrix_in_input_order() -> None:
    parsed = [
        ParsedAmount(text="5 usd", currency="usd", value=5.0),
        ParsedAmount(text="20 €", currency="eur", value=20.0),
        ParsedAmount(text="100 рублей", currency="rub", value=100.0),
    ]

    items = convert(parsed, _table(), ["usd", "eur", "rub"])

    assert [item.message for item in items] == ["5 usd", "20 €", "100 рублей"]
    assert items[0].amounts == {"usd": 5.0, "eur": 4.66, "rub": 319.55}
    assert items[1].amounts == {"usd": 21.44, "eur": 20.0, "rub": 1370.0}
    assert items[2].amounts == {"usd": 1.56, "eur": 1.46, "rub": 100.0}
    assert list(items[0].amounts) == ["usd", "eur", "rub"]


def test_convert_rejects_unresolved_amount() -> None:
    parsed = [
        ParsedAmount(text="5 usd", currency="usd", value=5.0),
        ParsedAmount(text="3 zzz", currency=None),
    ]

    with pytest.raises(UnresolvedCurrencyError) as excinfo:
        convert(parsed, _table(), ["usd"])

    assert excinfo.value.currency == "3 zzz"
    assert excinfo.value.severity is Severity.CLIENT
    assert excinfo.value.status_code == 400


def test_convert_rejects_currency_missing_from_table() -> None:
    parsed = [ParsedAmount(text="3 gbp", currency="gbp", value=3.0)]

    with pytest.raises(UnresolvedCurrencyError, match="gbp"):
        convert(parsed, _table(), ["usd"])


def test_convert_rejects_missing_required_currency() -> None:
    parsed = [ParsedAmount(text="3 usd", currency="usd", value=3.0)]

    with pytest.raises(UnresolvedCurrencyError, match="cny"):
        convert(parsed, _table(), ["usd", "cny"])


def test_convert_empty_input() -> None:
    assert convert([], _table(), ["usd"]) == []


@pytest.mark.parametrize(
    "value, expected",
    [
        (1e30, 1e30),
        (1.2345678901234567e26, 1.2345678901234567e26),
        (-9.87e120, -9.87e120),
        (1.7976931348623157e308, 1.7976931348623157e308),
    ],
)
def test_round_half_up_handles_large_values(value, expected) -> None:
    assert round_half_up(value) == expected


@pytest.mark.parametrize("value", [math.inf, -math.inf])
def test_round_half_up_returns_infinity_unchanged(value) -> None:
    assert round_half_up(value) == value


def test_round_half_up_returns_nan_unchanged() -> None:
    assert math.isnan(round_half_up(math.nan))


def test_convert_handles_large_amounts() -> None:
    parsed = [ParsedAmount(text="1" + "0" * 27 + " usd", currency="usd", value=1e27)]

    items = convert(parsed, _table(), ["usd", "rub"])

    assert items[0].amounts["usd"] == round_half_up(1e27 * 63.91 / 63.91)
    assert items[0].amounts["rub"] == round_half_up(1e27 * 63.91)


def test_convert_rejects_non_finite_amounts() -> None:
    text = "1" + "0" * 400 + " usd"
    parsed = [ParsedAmount(text=text, currency="usd", value=float("1" + "0" * 400))]

    with pytest.raises(InvalidRequestError) as excinfo:
        convert(parsed, _table(), ["usd"])

    assert excinfo.value.severity is Severity.CLIENT
    assert "out of range" in excinfo.value.message
