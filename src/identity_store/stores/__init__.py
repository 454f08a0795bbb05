"""Storage backends for identity entities."""

from identity_store.stores.base import EntityStore, FindResult
from identity_store.stores.clients import ClientStore
from identity_store.stores.gateways import GatewayStore
from identity_store.stores.sqlite import Database, SQLEntityStore

__all__ = [
    "ClientStore",
    "Database",
    "EntityStore",
    "FindResult",
    "GatewayStore",
    "SQLEntityStore",
]
