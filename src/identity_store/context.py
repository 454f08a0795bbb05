"""RequestContext — the per-request state that travels into every store call."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any

from identity_store._internal.clock import Clock, SystemClock
from identity_store.exceptions import CanceledError, DeadlineExceededError


@dataclass(frozen=True)
class Pagination:
    """Page request read by ``find``.  ``limit == 0`` disables paging."""

    limit: int = 0
    offset: int = 0

    def __post_init__(self) -> None:
        if self.limit < 0 or self.offset < 0:
            raise ValueError(f"limit and offset must be >= 0, got {self.limit}, {self.offset}")


@dataclass
class RequestContext:
    """Caller-created context passed to every store operation.

    Attributes:
        deadline:        Aware datetime after which writes are refused.
        pagination:      Page requested from ``find`` calls.
        include_deleted: Let reads see soft-deleted (tombstoned) rows.
        metadata:        Request-scoped values entities may draw defaults
                         from in ``before_create``.
        total:           Total match count published by the last paginated
                         ``find``.  ``None`` until one runs.
        clock:           Clock used for deadline checks.
    """

    deadline: datetime | None = None
    pagination: Pagination = field(default_factory=Pagination)
    include_deleted: bool = False
    metadata: dict[str, Any] = field(default_factory=dict)
    total: int | None = None
    clock: Clock = field(default_factory=SystemClock, repr=False)
    _canceled: bool = field(default=False, repr=False)

    def with_pagination(self, limit: int, offset: int = 0) -> RequestContext:
        """Return a copy of this context asking for one page."""
        return replace(self, pagination=Pagination(limit=limit, offset=offset), total=None)

    def cancel(self) -> None:
        self._canceled = True

    def err(self) -> CanceledError | None:
        """Return the reason this context is done, or ``None`` while it is live."""
        if self._canceled:
            return CanceledError()
        if self.deadline is not None and self.clock.now() >= self.deadline:
            return DeadlineExceededError(self.deadline)
        return None

    def raise_for_cancel(self) -> None:
        err = self.err()
        if err is not None:
            raise err

    def set_total(self, total: int) -> None:
        """Publish the total match count of a paginated ``find``.

        Each paginated find overwrites the previous value; with several finds
        sharing one context, the last to finish wins.
        """
        self.total = total
