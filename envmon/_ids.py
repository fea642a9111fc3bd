"""Identifier allocation shared by the registry and the ledger."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime


def next_id(existing: Iterable[str], now: datetime) -> str:
    """Return a fresh id: creation time in milliseconds, bumped past every
    numeric id already in use so ids stay unique even within one tick.
    """
    candidate = int(now.timestamp() * 1000)
    numeric = [int(ident) for ident in existing if ident.isdigit()]
    if numeric:
        candidate = max(candidate, max(numeric) + 1)
    return str(candidate)
