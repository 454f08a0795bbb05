"""IdentityStore — one database, one store per entity kind."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Mapping
from contextlib import asynccontextmanager
from dataclasses import replace
from typing import TYPE_CHECKING, Any

from identity_store.config import StoreConfig
from identity_store.entities import CLIENT_KIND, GATEWAY_KIND
from identity_store.stores.clients import ClientStore
from identity_store.stores.gateways import GatewayStore
from identity_store.stores.sqlite import Database

if TYPE_CHECKING:
    import aiosqlite

    from identity_store._internal.clock import Clock

logger = logging.getLogger(__name__)


class IdentityStore:
    """Entry point holding the stores of every shipped entity kind.

    Parameters:
        database: Database the stores share.
        config:   Store settings.  Defaults to :class:`StoreConfig` defaults.
        clock:    Clock stamping ``created_at``/``updated_at``.
    """

    def __init__(
        self,
        database: Database,
        config: StoreConfig | None = None,
        *,
        clock: Clock | None = None,
    ) -> None:
        self._db = database
        self._config = config or StoreConfig()
        policy = self._config.unknown_field_paths
        self.clients = ClientStore(
            database, kind=replace(CLIENT_KIND, unknown_paths=policy), clock=clock
        )
        self.gateways = GatewayStore(
            database, kind=replace(GATEWAY_KIND, unknown_paths=policy), clock=clock
        )

    @property
    def database(self) -> Database:
        return self._db

    @property
    def config(self) -> StoreConfig:
        return self._config

    async def setup(self) -> None:
        """Create the tables of every kind if they do not exist yet."""
        await self._db.create_schema([self.clients.kind, self.gateways.kind])

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[aiosqlite.Connection]:
        """Group several store calls into one write transaction.

        Calls made inside the block join it; any exception rolls all of
        them back.
        """
        async with self._db.transaction(write=True) as db:
            yield db

    async def close(self) -> None:
        await self._db.close()

    async def __aenter__(self) -> IdentityStore:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()


async def open_identity_store(
    config: StoreConfig | Mapping[str, Any] | None = None,
    *,
    clock: Clock | None = None,
) -> IdentityStore:
    """Open the database described by *config* and make sure its schema exists."""
    if config is None:
        config = StoreConfig()
    elif not isinstance(config, StoreConfig):
        config = StoreConfig.model_validate(config)
    logger.info(
        "Opening identity store at %s (unknown field paths: %s)",
        config.path, config.unknown_field_paths.value,
    )
    store = IdentityStore(Database(config.path, timeout=config.timeout), config, clock=clock)
    await store.setup()
    return store
