"""Concrete entity kinds: API clients and gateways."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any

from identity_store.kinds import (
    Column,
    EntityKind,
    bool_column,
    json_column,
)
from identity_store.model import Model

# ── clients ──────────────────────────────────────────────────


class ClientState(StrEnum):
    REQUESTED = "requested"
    APPROVED = "approved"
    REJECTED = "rejected"


@dataclass(frozen=True)
class ClientIdentifiers:
    client_id: str


@dataclass(kw_only=True)
class Client(Model):
    """An OAuth client registered with the identity server."""

    client_id: str = ""
    name: str = ""
    description: str = ""
    secret: str = ""
    redirect_uris: list[str] = field(default_factory=list)
    state: ClientState = ClientState.REQUESTED
    skip_authorization: bool = False
    endorsed: bool = False
    grants: list[str] = field(default_factory=list)
    rights: list[str] = field(default_factory=list)
    deleted_at: datetime | None = None

    @property
    def ids(self) -> ClientIdentifiers:
        return ClientIdentifiers(client_id=self.client_id)


CLIENT_KIND: EntityKind[Client] = EntityKind(
    name="client",
    table="clients",
    entity_type=Client,
    id_column="client_id",
    identifiers_type=ClientIdentifiers,
    soft_delete=True,
    columns=(
        Column("client_id", mutable=False, unique=True),
        Column("name"),
        Column("description"),
        Column("secret"),
        json_column("redirect_uris"),
        Column("state", encode=str, decode=ClientState),
        bool_column("skip_authorization"),
        bool_column("endorsed"),
        json_column("grants"),
        json_column("rights"),
    ),
    paths={
        "ids": "client_id",
        "ids.client_id": "client_id",
        "created_at": "created_at",
        "updated_at": "updated_at",
        "name": "name",
        "description": "description",
        "secret": "secret",
        "redirect_uris": "redirect_uris",
        "state": "state",
        "skip_authorization": "skip_authorization",
        "endorsed": "endorsed",
        "grants": "grants",
        "rights": "rights",
    },
)


# ── gateways ─────────────────────────────────────────────────


def normalize_eui(eui: str) -> str:
    """Canonical form of a 64-bit EUI: 16 upper-case hex digits."""
    digits = eui.replace("-", "").replace(":", "").upper()
    if len(digits) != 16 or any(c not in "0123456789ABCDEF" for c in digits):
        raise ValueError(f"invalid EUI-64: {eui!r}")
    return digits


@dataclass(frozen=True)
class GatewayIdentifiers:
    """Addresses a gateway by ID, by EUI, or by both (both must then match)."""

    gateway_id: str = ""
    eui: str | None = None


@dataclass(kw_only=True)
class Gateway(Model):
    """A LoRaWAN gateway."""

    gateway_id: str = ""
    eui: str | None = None
    name: str = ""
    description: str = ""
    frequency_plan_id: str = ""
    gateway_server_address: str = ""
    auto_update: bool = False
    update_channel: str = ""
    status_public: bool = False
    location_public: bool = False
    attributes: dict[str, Any] = field(default_factory=dict)

    @property
    def ids(self) -> GatewayIdentifiers:
        return GatewayIdentifiers(gateway_id=self.gateway_id, eui=self.eui)

    def before_create(self) -> None:
        if not self.gateway_server_address and self._ctx is not None:
            self.gateway_server_address = self._ctx.metadata.get("gateway_server_address", "")


GATEWAY_KIND: EntityKind[Gateway] = EntityKind(
    name="gateway",
    table="gateways",
    entity_type=Gateway,
    id_column="gateway_id",
    identifiers_type=GatewayIdentifiers,
    alternate_keys=("gateway_eui",),
    columns=(
        Column("gateway_id", mutable=False, unique=True),
        Column("gateway_eui", attr="eui", unique=True, encode=normalize_eui),
        Column("name"),
        Column("description"),
        Column("frequency_plan_id"),
        Column("gateway_server_address"),
        bool_column("auto_update"),
        Column("update_channel"),
        bool_column("status_public"),
        bool_column("location_public"),
        json_column("attributes"),
    ),
    paths={
        "ids": "gateway_id",
        "ids.gateway_id": "gateway_id",
        "ids.eui": "gateway_eui",
        "created_at": "created_at",
        "updated_at": "updated_at",
        "name": "name",
        "description": "description",
        "frequency_plan_id": "frequency_plan_id",
        "gateway_server_address": "gateway_server_address",
        "auto_update": "auto_update",
        "update_channel": "update_channel",
        "status_public": "status_public",
        "location_public": "location_public",
        "attributes": "attributes",
    },
)

KINDS: dict[str, EntityKind[Any]] = {kind.name: kind for kind in (CLIENT_KIND, GATEWAY_KIND)}
