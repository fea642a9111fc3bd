"""Store factory - creates store instances from configuration dicts.

Used by the YAML configuration to pick the backing store declaratively::

    store:
      type: database
      connection_string: sqlite+aiosqlite:///envmon.db
"""

from __future__ import annotations

import importlib
import logging
from typing import Any

from envmon.exceptions import EnvmonConfigError
from envmon.stores.base import Store

__all__ = ["create_store", "register_store"]

logger = logging.getLogger("envmon.stores.factory")

# Registry of type names → (module_path, class_name)
_STORE_REGISTRY: dict[str, tuple[str, str]] = {
    "memory": ("envmon.stores.memory", "MemoryStore"),
    "file": ("envmon.stores.file", "JsonFileStore"),
    "database": ("envmon.stores.database", "DatabaseStore"),
}


def create_store(config: dict[str, Any]) -> Store:
    """Create a store instance from a configuration dict.

    The dict must contain a ``"type"`` key matching a registered store
    name.  All other keys are forwarded as keyword arguments to the store
    constructor.

    Example::

        store = create_store({"type": "file", "path": "/var/lib/envmon"})

    Returns:
        A constructed :class:`Store` (not yet connected).
    """
    config = dict(config)
    store_type = config.pop("type", None)

    if store_type is None:
        raise EnvmonConfigError("Store config must include a 'type' key")

    store_type = str(store_type).lower().strip()

    if store_type not in _STORE_REGISTRY:
        raise EnvmonConfigError(
            f"Unknown store type '{store_type}'.  "
            f"Available: {sorted(_STORE_REGISTRY)}"
        )

    module_path, class_name = _STORE_REGISTRY[store_type]
    module = importlib.import_module(module_path)
    cls = getattr(module, class_name)

    logger.debug("Creating %s with config: %s", class_name, config)
    try:
        return cls(**config)
    except TypeError as exc:
        raise EnvmonConfigError(f"Invalid options for store type '{store_type}': {exc}") from exc


def register_store(name: str, module_path: str, class_name: str) -> None:
    """Register a custom store type for config-driven instantiation.

    Example::

        from envmon.stores.factory import register_store
        register_store("redis", "mypackage.stores", "RedisStore")
    """
    _STORE_REGISTRY[name.lower().strip()] = (module_path, class_name)
