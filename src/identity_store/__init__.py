"""identity_store — generic persistence for network-identity entities.

Every entity kind shares one store contract: field-mask driven reads and
writes, optimistic concurrency on ``updated_at``, and paginated finds that
report the total number of matches.
"""

from identity_store.config import StoreConfig
from identity_store.context import Pagination, RequestContext
from identity_store.entities import (
    CLIENT_KIND,
    GATEWAY_KIND,
    Client,
    ClientIdentifiers,
    ClientState,
    Gateway,
    GatewayIdentifiers,
)
from identity_store.exceptions import (
    CanceledError,
    ConflictError,
    DeadlineExceededError,
    FieldMaskError,
    IdentityStoreError,
    InvalidArgumentError,
    InvalidIdentifiersError,
    NotFoundError,
)
from identity_store.fieldmask import FieldMask
from identity_store.kinds import Column, EntityKind, UnknownPathPolicy
from identity_store.manager import IdentityStore, open_identity_store
from identity_store.model import Model, clean_time
from identity_store.stores import FindResult

__all__ = [
    "CLIENT_KIND",
    "GATEWAY_KIND",
    "CanceledError",
    "Client",
    "ClientIdentifiers",
    "ClientState",
    "Column",
    "ConflictError",
    "DeadlineExceededError",
    "EntityKind",
    "FieldMask",
    "FieldMaskError",
    "FindResult",
    "Gateway",
    "GatewayIdentifiers",
    "IdentityStore",
    "IdentityStoreError",
    "InvalidArgumentError",
    "InvalidIdentifiersError",
    "Model",
    "NotFoundError",
    "Pagination",
    "RequestContext",
    "StoreConfig",
    "UnknownPathPolicy",
    "clean_time",
    "open_identity_store",
]
