"""ClientStore — the store of OAuth clients."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

from identity_store.entities import CLIENT_KIND, Client, ClientIdentifiers
from identity_store.stores.sqlite import SQLEntityStore

if TYPE_CHECKING:
    from identity_store._internal.clock import Clock
    from identity_store.context import RequestContext
    from identity_store.fieldmask import FieldMask
    from identity_store.kinds import EntityKind
    from identity_store.stores.base import FindResult
    from identity_store.stores.sqlite import Database


class ClientStore(SQLEntityStore[Client]):
    """Clients are soft-deleted: a deleted client keeps its row for audit."""

    def __init__(
        self,
        db: Database,
        *,
        kind: EntityKind[Client] = CLIENT_KIND,
        clock: Clock | None = None,
    ) -> None:
        super().__init__(db, kind, clock=clock)

    async def create_client(self, ctx: RequestContext, client: Client) -> Client:
        return await self.create(ctx, client)

    async def get_client(
        self, ctx: RequestContext, ids: ClientIdentifiers, mask: FieldMask | None = None
    ) -> Client:
        return await self.get(ctx, ids, mask)

    async def find_clients(
        self,
        ctx: RequestContext,
        ids: Sequence[ClientIdentifiers] | None = None,
        mask: FieldMask | None = None,
    ) -> FindResult[Client]:
        return await self.find(ctx, ids, mask)

    async def update_client(
        self, ctx: RequestContext, client: Client, mask: FieldMask | None = None
    ) -> Client:
        return await self.update(ctx, client, mask)

    async def delete_client(self, ctx: RequestContext, ids: ClientIdentifiers) -> None:
        await self.delete(ctx, ids)
