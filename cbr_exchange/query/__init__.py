"""Parsing of free-text currency queries."""

from __future__ import annotations

from cbr_exchange.query.aliases import AliasRegistry, RecognitionPattern
from cbr_exchange.query.messages import MessageParser, ParsedAmount

__all__ = ["AliasRegistry", "RecognitionPattern", "MessageParser", "ParsedAmount"]
