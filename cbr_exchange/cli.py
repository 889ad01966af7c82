"""CLI for resolving a currency query against the CBR daily rates."""

from __future__ import annotations

import argparse
import json
from dataclasses import asdict
from pathlib import Path
from typing import Sequence

from cbr_exchange import DEFAULT_QUERY, CurrencyExchange, __version__
from cbr_exchange.errors import ConfigurationError, ResolutionError, Severity
from cbr_exchange.settings import DEFAULT_CONFIG_NAME, DEFAULT_USER_AGENT, ExchangeSettings
from cbr_exchange.utils.logger import get_logger, set_debug

LOGGER = get_logger(__name__)

__all__ = ["EXIT_CODES", "parse_args", "load_settings", "main"]

EXIT_CODES: dict[Severity, int] = {
    Severity.CLIENT: 2,
    Severity.UNAVAILABLE: 3,
    Severity.INTERNAL: 4,
}


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("-q", "--query", default=DEFAULT_QUERY, help=f"Query (default '{DEFAULT_QUERY}')")
    parser.add_argument("-d", "--date", dest="rate_date", help="Date (YYYY-MM-DD, default today)")
    parser.add_argument(
        "--config",
        dest="config_path",
        help=f"Configuration file (default ./{DEFAULT_CONFIG_NAME} when present)",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser.add_argument("--codes", action="store_true", help="Print the CBR currency code list")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser.parse_args(argv)


def load_settings(config_path: str | None) -> ExchangeSettings:
    """Read ``config_path``, or ``./config.json`` when present, else use defaults."""

    default_path = Path.cwd() / DEFAULT_CONFIG_NAME
    if config_path:
        settings = ExchangeSettings.from_file(config_path)
    elif default_path.exists():
        settings = ExchangeSettings.from_file(default_path)
    else:
        settings = ExchangeSettings()
    if settings.user_agent == DEFAULT_USER_AGENT:
        settings.user_agent = f"{DEFAULT_USER_AGENT}/{__version__}"
    return settings


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    if args.debug:
        set_debug(True)
    try:
        settings = load_settings(args.config_path)
    except ConfigurationError as exc:
        LOGGER.error("configuration error: %s", exc)
        return 1
    exchange = CurrencyExchange(settings)
    try:
        if args.codes:
            payload: object = [asdict(code) for code in exchange.codes()]
        else:
            payload = exchange.resolve(args.rate_date, args.query).as_dict()
    except ResolutionError as exc:
        LOGGER.error("%s (%s)", exc.message, exc.severity.value)
        return EXIT_CODES[exc.severity]
    finally:
        exchange.close()
    print(json.dumps(payload, ensure_ascii=False, indent=2))
    return 0
