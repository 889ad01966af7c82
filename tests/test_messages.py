from __future__ import annotations

import logging
import re

import pytest

from cbr_exchange.query.aliases import AliasRegistry, RecognitionPattern
from cbr_exchange.query.messages import MessageParser, ParsedAmount
from cbr_exchange.settings import DEFAULT_REQUIRED_CODES


@pytest.fixture()
def parser() -> MessageParser:
    return MessageParser(AliasRegistry(DEFAULT_REQUIRED_CODES))


ALIAS_CASES = [
    (code, alias) for code, aliases in DEFAULT_REQUIRED_CODES.items() for alias in [code, *aliases]
]


@pytest.mark.parametrize("code, alias", ALIAS_CASES)
@pytest.mark.parametrize("amount", ["0", "5", "1.5", "100.25"])
def test_amount_and_alias_in_either_order(parser: MessageParser, code, alias, amount) -> None:
    for text in (f"{amount} {alias}", f"{alias} {amount}"):
        (parsed,) = parser.parse(text)

        assert parsed.currency == code, text
        assert parsed.value == float(amount), text


@pytest.mark.parametrize(
    "message, currency, value",
    [
        ("100 dollars", "usd", 100.0),
        ("$1", "usd", 1.0),
        ("1 usd", "usd", 1.0),
        ("usd 1.5", "usd", 1.5),
        ("10 euros", "eur", 10.0),
        ("euro 10", "eur", 10.0),
        ("15.5 euros", "eur", 15.5),
        ("10 €", "eur", 10.0),
        ("100 рублей", "rub", 100.0),
        ("5 USD", "usd", 5.0),
    ],
)
def test_parse_common_phrases(parser: MessageParser, message, currency, value) -> None:
    assert parser.parse(message) == [ParsedAmount(text=message, currency=currency, value=value)]


def test_parse_keeps_segment_order_and_original_text(parser: MessageParser) -> None:
    parsed = parser.parse(" 5 usd, 20 € ,100 Рублей ")

    assert [(p.text, p.currency, p.value) for p in parsed] == [
        ("5 usd", "usd", 5.0),
        ("20 €", "eur", 20.0),
        ("100 Рублей", "rub", 100.0),
    ]


def test_unmatched_segment_is_unresolved(parser: MessageParser) -> None:
    (parsed,) = parser.parse("3 zzz")

    assert parsed == ParsedAmount(text="3 zzz", currency=None, value=0.0)
    assert not parsed.resolved


def test_empty_segments_are_skipped(parser: MessageParser) -> None:
    assert parser.parse("") == []
    assert parser.parse(" , ,") == []
    assert [p.text for p in parser.parse("5 usd,")] == ["5 usd"]


def test_first_declared_currency_wins() -> None:
    registry = AliasRegistry({"eur": ["x"], "usd": ["x"]})

    (parsed,) = MessageParser(registry).parse("5 x")

    assert parsed.currency == "eur"


class _StubRegistry:
    def __init__(self, patterns: tuple[RecognitionPattern, ...]) -> None:
        self._patterns = patterns

    def patterns(self) -> tuple[RecognitionPattern, ...]:
        return self._patterns


def test_numeric_failure_falls_through_to_next_pattern(caplog) -> None:
    broken = RecognitionPattern(
        code="xxx", alias="bad", pattern=re.compile(r"(bad)"), amount_first=True
    )
    good = RecognitionPattern(
        code="usd", alias="usd", pattern=re.compile(r"(\d+)\s*usd"), amount_first=True
    )
    parser = MessageParser(_StubRegistry((broken, good)))  # type: ignore[arg-type]

    with caplog.at_level(logging.WARNING, logger="cbr_exchange"):
        (parsed,) = parser.parse("bad 5 usd")

    assert parsed.currency == "usd"
    assert parsed.value == 5.0
    assert "Cannot parse amount" in caplog.text
