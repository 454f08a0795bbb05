"""GatewayStore — the store of gateways, addressable by ID or EUI."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

from identity_store.entities import GATEWAY_KIND, Gateway, GatewayIdentifiers
from identity_store.stores.sqlite import SQLEntityStore

if TYPE_CHECKING:
    from identity_store._internal.clock import Clock
    from identity_store.context import RequestContext
    from identity_store.fieldmask import FieldMask
    from identity_store.kinds import EntityKind
    from identity_store.stores.base import FindResult
    from identity_store.stores.sqlite import Database


class GatewayStore(SQLEntityStore[Gateway]):
    """Gateways are deleted outright.

    ``get_gateway`` and ``delete_gateway`` accept a ``GatewayIdentifiers``
    with only the EUI set; when both ID and EUI are set, both must match.
    """

    def __init__(
        self,
        db: Database,
        *,
        kind: EntityKind[Gateway] = GATEWAY_KIND,
        clock: Clock | None = None,
    ) -> None:
        super().__init__(db, kind, clock=clock)

    async def create_gateway(self, ctx: RequestContext, gateway: Gateway) -> Gateway:
        return await self.create(ctx, gateway)

    async def get_gateway(
        self, ctx: RequestContext, ids: GatewayIdentifiers, mask: FieldMask | None = None
    ) -> Gateway:
        return await self.get(ctx, ids, mask)

    async def find_gateways(
        self,
        ctx: RequestContext,
        ids: Sequence[GatewayIdentifiers] | None = None,
        mask: FieldMask | None = None,
    ) -> FindResult[Gateway]:
        return await self.find(ctx, ids, mask)

    async def update_gateway(
        self, ctx: RequestContext, gateway: Gateway, mask: FieldMask | None = None
    ) -> Gateway:
        return await self.update(ctx, gateway, mask)

    async def delete_gateway(self, ctx: RequestContext, ids: GatewayIdentifiers) -> None:
        await self.delete(ctx, ids)
