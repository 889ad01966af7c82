"""requests-based client for the Central Bank of Russia XML feeds."""

from __future__ import annotations

import threading
import warnings
from concurrent.futures import Future
from concurrent.futures import TimeoutError as FutureTimeoutError
from datetime import date
from time import monotonic
from typing import Any, Callable, Optional

import requests
from bs4 import BeautifulSoup, UnicodeDammit, XMLParsedAsHTMLWarning

from cbr_exchange.errors import UpstreamTimeoutError, UpstreamUnavailableError
from cbr_exchange.ingestion.models import CurrencyCodeRecord, CurrencyRateRecord, RateTable
from cbr_exchange.settings import DEFAULT_USER_AGENT
from cbr_exchange.utils.dates import format_request_date, parse_feed_date
from cbr_exchange.utils.logger import get_logger

LOGGER = get_logger(__name__)

CBR_RATES_URL = "https://www.cbr.ru/scripts/XML_daily.asp"
CBR_CODES_URL = "https://www.cbr.ru/scripts/XML_val.asp"


def decode_payload(payload: bytes) -> str:
    """Decode a feed body to text, honouring its declared (legacy) charset."""

    dammit = UnicodeDammit(payload, is_html=False)
    if dammit.unicode_markup is None:
        raise UpstreamUnavailableError("undecodable response from rates service")
    return dammit.unicode_markup


def parse_decimal(value: str) -> float:
    """Parse feed numbers such as ``"63,9100"`` (decimal comma) into floats."""

    cleaned = value.strip().replace("\xa0", "").replace(" ", "").replace(",", ".")
    return float(cleaned)


def _soup(payload: bytes) -> BeautifulSoup:
    text = decode_payload(payload)
    # html.parser keeps the dependency footprint small; tag and attribute
    # names come back lower-cased.
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", XMLParsedAsHTMLWarning)
        return BeautifulSoup(text, "html.parser")


def _child_text(node, name: str, context: str) -> str:
    child = node.find(name)
    text = child.get_text(strip=True) if child is not None else ""
    if not text:
        raise UpstreamUnavailableError(f"malformed {context} response: <{name}> missing")
    return text


def _parse_nominal(raw: str, context: str) -> int:
    try:
        nominal = int(raw)
    except ValueError as exc:
        raise UpstreamUnavailableError(f"malformed {context} response: bad nominal {raw!r}") from exc
    if nominal <= 0:
        raise UpstreamUnavailableError(f"malformed {context} response: bad nominal {raw!r}")
    return nominal


def _rate_record(valute) -> CurrencyRateRecord:
    char_code = _child_text(valute, "charcode", "rates")
    nominal = _parse_nominal(_child_text(valute, "nominal", "rates"), "rates")
    raw_value = _child_text(valute, "value", "rates")
    try:
        value = parse_decimal(raw_value)
    except ValueError as exc:
        raise UpstreamUnavailableError(
            f"malformed rates response: bad value {raw_value!r} for {char_code}"
        ) from exc
    if not value > 0:
        raise UpstreamUnavailableError(
            f"malformed rates response: non-positive value {raw_value!r} for {char_code}"
        )
    return CurrencyRateRecord(char_code=char_code.lower(), nominal=nominal, value=value)


def parse_rates_xml(payload: bytes, rate_date: date) -> RateTable:
    """Parse an ``XML_daily.asp`` body into a :class:`RateTable`."""

    soup = _soup(payload)
    root = soup.find("valcurs")
    if root is None:
        raise UpstreamUnavailableError("malformed rates response: missing ValCurs root")
    records = [_rate_record(valute) for valute in root.find_all("valute")]
    feed_date = parse_feed_date(root.get("date"))
    return RateTable.from_records(rate_date, records, feed_date=feed_date)


def parse_codes_xml(payload: bytes) -> list[CurrencyCodeRecord]:
    """Parse an ``XML_val.asp`` body into currency reference records."""

    soup = _soup(payload)
    root = soup.find("valuta")
    if root is None:
        raise UpstreamUnavailableError("malformed codes response: missing Valuta root")
    codes: list[CurrencyCodeRecord] = []
    for item in root.find_all("item"):
        eng_name = item.find("engname")
        parent_code = item.find("parentcode")
        codes.append(
            CurrencyCodeRecord(
                item_id=item.get("id", ""),
                name=_child_text(item, "name", "codes"),
                eng_name=eng_name.get_text(strip=True) if eng_name is not None else "",
                nominal=_parse_nominal(_child_text(item, "nominal", "codes"), "codes"),
                parent_code=parent_code.get_text(strip=True) if parent_code is not None else "",
            )
        )
    return codes


class CBRRequestsClient:
    """Deadline-bounded downloader for the CBR daily rates and code list.

    Each request runs on its own daemon thread with its own
    ``requests.Session``. The caller waits at most ``timeout`` seconds; after
    that the session is closed, the worker's payload is discarded and
    :class:`UpstreamTimeoutError` is raised. An abandoned worker never delays
    later requests and ends once the ``timeout`` handed to ``requests``
    expires. No retries are performed.
    """

    def __init__(
        self,
        *,
        user_agent: str = DEFAULT_USER_AGENT,
        rates_url: str = CBR_RATES_URL,
        codes_url: str = CBR_CODES_URL,
        session_factory: Optional[Callable[[], requests.Session]] = None,
    ) -> None:
        self.user_agent = user_agent
        self.rates_url = rates_url
        self.codes_url = codes_url
        self.session_factory = session_factory or requests.Session
        self._workers: set[threading.Thread] = set()
        self._workers_lock = threading.Lock()

    def _new_session(self) -> requests.Session:
        session = self.session_factory()
        session.headers.update(
            {
                "User-Agent": self.user_agent,
                "Accept": "application/xml,text/xml;q=0.9,*/*;q=0.8",
            }
        )
        return session

    def _download(
        self,
        session: requests.Session,
        url: str,
        params: dict[str, str],
        timeout: float,
        abandoned: threading.Event,
    ) -> bytes | None:
        try:
            response = session.get(url, params=params, timeout=timeout)
        except requests.exceptions.RequestException as exc:
            if abandoned.is_set():
                return None
            raise UpstreamUnavailableError(f"rates service request failed: {exc}") from exc
        try:
            if abandoned.is_set():
                LOGGER.debug("Discarding late response from %s", url)
                return None
            status = response.status_code
            if status != 200:
                raise UpstreamUnavailableError(
                    f"not ok response from rates service: HTTP {status}",
                    status_code_upstream=status,
                )
            return response.content
        finally:
            response.close()

    def _spawn(self, target: Callable[..., Any], *args: Any) -> Future:
        future: Future = Future()

        def run() -> None:
            try:
                if future.set_running_or_notify_cancel():
                    try:
                        future.set_result(target(*args))
                    except BaseException as exc:
                        future.set_exception(exc)
            finally:
                with self._workers_lock:
                    self._workers.discard(worker)

        worker = threading.Thread(target=run, name="cbr-fetch", daemon=True)
        with self._workers_lock:
            self._workers.add(worker)
        worker.start()
        return future

    def _get(self, url: str, params: dict[str, str], timeout: float) -> bytes:
        if timeout <= 0:
            raise ValueError("timeout must be positive")
        session = self._new_session()
        abandoned = threading.Event()
        started = monotonic()
        LOGGER.info("start request to %s %s", url, params)
        future = self._spawn(self._download, session, url, params, timeout, abandoned)
        try:
            payload = future.result(timeout=timeout)
        except FutureTimeoutError as exc:
            abandoned.set()
            LOGGER.warning("request to %s abandoned after %ss", url, timeout)
            raise UpstreamTimeoutError(timeout) from exc
        finally:
            session.close()
            LOGGER.info("done request to %s in %.3fs", url, monotonic() - started)
        if payload is None:  # pragma: no cover - only when abandoned
            raise UpstreamTimeoutError(timeout)
        return payload

    def fetch_rates(self, rate_date: date, *, timeout: float) -> RateTable:
        """Download and parse the rate table published for ``rate_date``."""

        payload = self._get(self.rates_url, {"date_req": format_request_date(rate_date)}, timeout)
        table = parse_rates_xml(payload, rate_date)
        LOGGER.info(
            "Fetched %s CBR rates for %s (feed date %s)",
            len(table) - 1,
            rate_date,
            table.feed_date,
        )
        return table

    def fetch_codes(self, *, timeout: float) -> list[CurrencyCodeRecord]:
        """Return the list of currency codes known to the CBR."""

        payload = self._get(self.codes_url, {"d": "0"}, timeout)
        return parse_codes_xml(payload)

    def pending(self) -> int:
        """Number of download threads still running, abandoned ones included."""
        with self._workers_lock:
            return len(self._workers)

    def close(self, wait: bool = False, timeout: float | None = None) -> None:
        """Release the client; with ``wait`` join outstanding download threads."""
        if not wait:
            return
        with self._workers_lock:
            workers = list(self._workers)
        for worker in workers:
            worker.join(timeout)

    def __enter__(self) -> "CBRRequestsClient":  # pragma: no cover - trivial
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:  # pragma: no cover - trivial
        self.close()


__all__ = [
    "CBR_RATES_URL",
    "CBR_CODES_URL",
    "DEFAULT_USER_AGENT",
    "CBRRequestsClient",
    "decode_payload",
    "parse_decimal",
    "parse_rates_xml",
    "parse_codes_xml",
]
