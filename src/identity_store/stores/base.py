"""EntityStore protocol — the generic contract every kind's store honours."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from identity_store.model import Model

if TYPE_CHECKING:
    from identity_store.context import RequestContext
    from identity_store.fieldmask import FieldMask
    from identity_store.kinds import EntityKind

E = TypeVar("E", bound=Model)


@dataclass(frozen=True)
class FindResult(Generic[E]):
    """Page of entities plus the number of entities matching the filter.

    ``total_count`` ignores limit and offset, so callers can render
    "page 3 of 4" from a single call.
    """

    items: list[E] = field(default_factory=list)
    total_count: int = 0

    def __iter__(self) -> Iterator[E]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)


class EntityStore(ABC, Generic[E]):
    """Abstract base for the store of one entity kind.

    Every method takes the :class:`RequestContext` of the calling request
    first.  Identifiers are the kind's identifiers dataclass.  Field masks
    restrict both what is read and what is written.
    """

    kind: EntityKind[E]

    @abstractmethod
    async def create(self, ctx: RequestContext, entity: E) -> E:
        """Insert *entity* and return it with store-assigned fields filled."""
        ...

    @abstractmethod
    async def get(self, ctx: RequestContext, ids: Any, mask: FieldMask | None = None) -> E:
        """Return the entity addressed by *ids*.  Raises ``NotFoundError``."""
        ...

    @abstractmethod
    async def find(
        self,
        ctx: RequestContext,
        ids: Sequence[Any] | None = None,
        mask: FieldMask | None = None,
    ) -> FindResult[E]:
        """Return entities matching *ids* (all when empty), paged per ``ctx.pagination``."""
        ...

    @abstractmethod
    async def update(self, ctx: RequestContext, entity: E, mask: FieldMask | None = None) -> E:
        """Write the masked fields of *entity*.  Raises ``ConflictError`` on a stale token."""
        ...

    @abstractmethod
    async def delete(self, ctx: RequestContext, ids: Any) -> None:
        """Delete (or tombstone) exactly one entity.  Raises ``NotFoundError``."""
        ...
