"""Service settings loaded from a JSON configuration file."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping

from cbr_exchange.errors import ConfigurationError

DEFAULT_CONFIG_NAME = "config.json"
DEFAULT_USER_AGENT = "cbr-exchange"

# Required currencies and their aliases; the declared order is the matching priority.
DEFAULT_REQUIRED_CODES: Dict[str, List[str]] = {
    "usd": ["$", "dollar", "доллар"],
    "eur": ["€", "euro", "евро"],
    "rub": ["₽", "rub", "руб"],
}


def _coerce_int(data: Mapping[str, Any], key: str, default: int) -> int:
    value = data.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigurationError(f"invalid {key} value: {value!r}")
    return value


def _coerce_bool(data: Mapping[str, Any], key: str, default: bool) -> bool:
    value = data.get(key, default)
    if not isinstance(value, bool):
        raise ConfigurationError(f"invalid {key} value: {value!r}")
    return value


@dataclass(slots=True)
class ExchangeSettings:
    """Represents the service configuration file.

    ``host``/``port`` are only consumed by the transport layer; the engine
    uses ``cache_size``, ``timeout``, ``user_agent`` and ``required_codes``.
    """

    host: str = "127.0.0.1"
    port: int = 8080
    cache_size: int = 16
    timeout: int = 5
    debug: bool = False
    user_agent: str = DEFAULT_USER_AGENT
    required_codes: Dict[str, List[str]] = field(
        default_factory=lambda: {code: list(names) for code, names in DEFAULT_REQUIRED_CODES.items()}
    )

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        """Raise :class:`ConfigurationError` when a value is out of range."""

        if isinstance(self.timeout, bool) or not isinstance(self.timeout, int) or self.timeout < 1:
            raise ConfigurationError("invalid timeout value")
        if isinstance(self.cache_size, bool) or not isinstance(self.cache_size, int) or self.cache_size <= 0:
            raise ConfigurationError("invalid cache value")
        if isinstance(self.port, bool) or not isinstance(self.port, int) or not 0 < self.port < 65536:
            raise ConfigurationError("invalid port value")
        if not self.user_agent:
            raise ConfigurationError("user_agent must not be empty")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ExchangeSettings":
        """Create settings from a decoded JSON object using the file's key names."""

        if not isinstance(data, Mapping):
            raise ConfigurationError("configuration must be a JSON object")
        codes = data.get("codes")
        if codes is not None and not isinstance(codes, Mapping):
            raise ConfigurationError("codes must map currency codes to alias lists")
        kwargs: Dict[str, Any] = {
            "host": str(data.get("host", "127.0.0.1")),
            "port": _coerce_int(data, "port", 8080),
            "cache_size": _coerce_int(data, "cache", 16),
            "timeout": _coerce_int(data, "timeout", 5),
            "debug": _coerce_bool(data, "debug", False),
            "user_agent": str(data.get("user_agent", DEFAULT_USER_AGENT)),
        }
        if codes is not None:
            if any(isinstance(names, str) or not isinstance(names, (list, tuple)) for names in codes.values()):
                raise ConfigurationError("codes must map currency codes to alias lists")
            kwargs["required_codes"] = {str(code): list(names) for code, names in codes.items()}
        return cls(**kwargs)

    @classmethod
    def from_file(cls, path: str | Path) -> "ExchangeSettings":
        full_path = Path(str(path).strip()).resolve()
        try:
            raw = full_path.read_text(encoding="utf-8")
        except OSError as exc:
            raise ConfigurationError(f"cannot read configuration file {full_path}: {exc}") from exc
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ConfigurationError(f"invalid JSON in {full_path}: {exc}") from exc
        return cls.from_mapping(data)

    @property
    def addr(self) -> str:
        return f"{self.host}:{self.port}"

    @property
    def handle_timeout(self) -> float:
        """Overall request deadline in seconds."""
        return float(self.timeout)

    @property
    def fetch_timeout(self) -> float:
        """Upstream deadline, one second inside the request deadline when possible."""
        if self.timeout >= 2:
            return float(self.timeout - 1)
        return float(self.timeout)


__all__ = ["DEFAULT_CONFIG_NAME", "DEFAULT_USER_AGENT", "DEFAULT_REQUIRED_CODES", "ExchangeSettings"]
