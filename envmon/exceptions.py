"""Error taxonomy for the monitoring engine.

Every failure surfaced by the registry, the ledger, the stores and the
service is one of the classes below.
"""

from __future__ import annotations

from typing import Any

__all__ = [
    "EnvmonError",
    "NotFound",
    "StorageError",
    "EnvmonConfigError",
    "Unauthorized",
    "ValidationError",
]


class EnvmonError(Exception):
    """Base exception for all envmon errors."""


class Unauthorized(EnvmonError):
    """Missing, malformed or rejected credential."""

    def __init__(self, message: str = "Unauthorized") -> None:
        super().__init__(message)


class NotFound(EnvmonError):
    """A referenced sensor or alert id does not exist."""

    def __init__(self, kind: str, ident: str) -> None:
        self.kind = kind
        self.ident = ident
        super().__init__(f"{kind.capitalize()} not found: {ident!r}")


class ValidationError(EnvmonError):
    """Malformed input (empty identifiers, unknown fields, bad types).

    ``errors`` holds the pydantic error dicts when the failure came from
    model validation.
    """

    def __init__(self, message: str, *, errors: list[dict[str, Any]] | None = None) -> None:
        self.errors = errors or []
        super().__init__(message)


class StorageError(EnvmonError):
    """Backing store unreachable, or it returned a corrupt payload."""

    def __init__(self, message: str, *, key: str = "") -> None:
        self.key = key
        super().__init__(message)


class EnvmonConfigError(EnvmonError):
    """Invalid or missing configuration (store, identity provider)."""
