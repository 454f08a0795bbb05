"""Model — the base every stored entity embeds."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from identity_store.context import RequestContext

MODEL_COLUMNS: tuple[str, ...] = ("id", "created_at", "updated_at")
DELETED_AT_COLUMN = "deleted_at"

_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)


def clean_time(t: datetime) -> datetime:
    """Normalize *t* to UTC with millisecond resolution.

    Naive datetimes are taken to be UTC already.
    """
    if t.tzinfo is None:
        t = t.replace(tzinfo=UTC)
    t = t.astimezone(UTC)
    return t.replace(microsecond=t.microsecond - t.microsecond % 1000)


def to_millis(t: datetime) -> int:
    return (clean_time(t) - _EPOCH) // timedelta(milliseconds=1)


def from_millis(ms: int) -> datetime:
    return _EPOCH + timedelta(milliseconds=ms)


@dataclass(kw_only=True)
class Model:
    """Common identity and timestamp fields.

    ``created_at`` and ``updated_at`` belong to the store: whatever a caller
    puts there is ignored on create and only used as the concurrency token
    on update (``None`` meaning "write unconditionally").
    """

    id: str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None
    _ctx: RequestContext | None = field(default=None, init=False, repr=False, compare=False)

    def primary_key(self) -> str:
        return self.id

    def set_context(self, ctx: RequestContext) -> None:
        """Bind the request context.  Must be called before creating the model."""
        self._ctx = ctx

    def before_create(self) -> None:
        """Hook run by the store right before insertion.  Override to fill defaults."""
