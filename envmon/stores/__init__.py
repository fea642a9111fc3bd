"""State store adapters for the monitoring engine.

Import any store you need directly from this package::

    from envmon.stores import MemoryStore, JsonFileStore
"""

from __future__ import annotations

import importlib
from typing import Any

from envmon.stores.base import Store
from envmon.stores.factory import create_store, register_store
from envmon.stores.file import JsonFileStore
from envmon.stores.memory import MemoryStore

# DatabaseStore needs the ``database`` extra and is loaded lazily:
#   from envmon.stores.database import DatabaseStore

__all__ = [
    "JsonFileStore",
    "MemoryStore",
    "Store",
    "create_store",
    "register_store",
]


def __getattr__(name: str) -> Any:
    """Lazy-import stores that require optional dependencies."""
    if name == "DatabaseStore":
        mod = importlib.import_module("envmon.stores.database")
        return getattr(mod, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
