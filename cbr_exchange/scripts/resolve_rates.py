"""CLI entry point for resolving currency queries."""

from __future__ import annotations

import sys

from cbr_exchange.cli import main

if __name__ == "__main__":  # pragma: no cover - thin wrapper
    sys.exit(main())
