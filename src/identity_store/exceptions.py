"""Custom exceptions for the identity_store package.

Storage faults raised by the database driver are not wrapped: an
``aiosqlite``/``sqlite3`` error reaches the caller exactly as raised.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any


class IdentityStoreError(Exception):
    """Base exception for all store-level outcomes."""


class NotFoundError(IdentityStoreError):
    """Raised when no live entity matches the given identifiers."""

    def __init__(self, kind: str, identifiers: Any) -> None:
        self.kind = kind
        self.identifiers = identifiers
        super().__init__(f"{kind} {identifiers} not found")


class ConflictError(IdentityStoreError):
    """Raised when an update carries a stale ``updated_at`` token.

    The caller read the entity before somebody else wrote it.  Reload and
    retry, or surface a 409-style response.
    """

    def __init__(
        self,
        kind: str,
        identifiers: Any,
        expected: datetime | None,
        stored: datetime | None,
    ) -> None:
        self.kind = kind
        self.identifiers = identifiers
        self.expected = expected
        self.stored = stored
        super().__init__(
            f"Concurrent write on {kind} {identifiers}: "
            f"expected updated_at {expected}, stored {stored}"
        )


class CanceledError(IdentityStoreError):
    """Raised when the request context is done before a write is issued."""

    def __init__(self, detail: str = "context canceled") -> None:
        super().__init__(detail)


class DeadlineExceededError(CanceledError):
    """Raised when the request context deadline has passed."""

    def __init__(self, deadline: datetime) -> None:
        self.deadline = deadline
        super().__init__(f"context deadline exceeded ({deadline.isoformat()})")


class InvalidArgumentError(IdentityStoreError):
    """Raised when a call is malformed and can never succeed as given."""


class FieldMaskError(InvalidArgumentError):
    """Raised when a field mask path cannot be resolved to a column."""

    def __init__(self, kind: str, path: str, detail: str = "unknown field") -> None:
        self.kind = kind
        self.path = path
        super().__init__(f"Field mask path '{path}' on {kind}: {detail}")


class InvalidIdentifiersError(InvalidArgumentError):
    """Raised when identifiers do not address any entity at all."""

    def __init__(self, kind: str, detail: str = "no identifier set") -> None:
        self.kind = kind
        super().__init__(f"Invalid {kind} identifiers: {detail}")
