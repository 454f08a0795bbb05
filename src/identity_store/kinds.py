"""EntityKind — the descriptor a generic store is parameterised by.

A kind says everything the store needs to know about one category of
entity: which table it lives in, which columns it has and how values cross
the Python/SQL boundary, which columns identify it, how field-mask paths
translate to columns, and whether deletes are soft.
"""

from __future__ import annotations

import json
import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field, fields
from enum import StrEnum
from typing import Any, Generic, TypeVar

from identity_store.model import DELETED_AT_COLUMN, Model, from_millis, to_millis

E = TypeVar("E", bound=Model)

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class UnknownPathPolicy(StrEnum):
    """What the resolver does with a field-mask path missing from the path table."""

    REJECT = "reject"
    PASS_THROUGH = "pass_through"


def is_sql_identifier(name: str) -> bool:
    return bool(_IDENTIFIER.match(name))


# ── value codecs ─────────────────────────────────────────────


def encode_json(value: Any) -> str:
    return json.dumps(value, sort_keys=True)


def encode_bool(value: bool) -> int:
    return 1 if value else 0


def encode_time(value: Any) -> int | None:
    return None if value is None else to_millis(value)


def decode_time(value: Any) -> Any:
    return None if value is None else from_millis(value)


@dataclass(frozen=True)
class Column:
    """One physical column and the entity attribute it maps to.

    Attributes:
        name:     Column name in the table.
        attr:     Entity attribute; defaults to *name*.
        sql_type: SQLite type affinity used in ``CREATE TABLE``.
        mutable:  Whether updates may write this column.
        unique:   Adds a ``UNIQUE`` constraint.
        encode:   Python value -> stored value.
        decode:   Stored value -> Python value.
    """

    name: str
    attr: str = ""
    sql_type: str = "TEXT"
    mutable: bool = True
    unique: bool = False
    encode: Callable[[Any], Any] | None = None
    decode: Callable[[Any], Any] | None = None

    @property
    def attribute(self) -> str:
        return self.attr or self.name

    def to_db(self, value: Any) -> Any:
        if value is None or self.encode is None:
            return value
        return self.encode(value)

    def from_db(self, value: Any) -> Any:
        if value is None or self.decode is None:
            return value
        return self.decode(value)

    def ddl(self) -> str:
        parts = [f'"{self.name}"', self.sql_type]
        if self.unique:
            parts.append("UNIQUE")
        return " ".join(parts)


def json_column(name: str, **kwargs: Any) -> Column:
    return Column(name, encode=encode_json, decode=json.loads, **kwargs)


def bool_column(name: str, **kwargs: Any) -> Column:
    return Column(name, sql_type="INTEGER", encode=encode_bool, decode=bool, **kwargs)


def time_column(name: str, **kwargs: Any) -> Column:
    return Column(name, sql_type="INTEGER", encode=encode_time, decode=decode_time, **kwargs)


MODEL_COLUMN_DEFS: tuple[Column, ...] = (
    Column("id", mutable=False),
    time_column("created_at", mutable=False),
    time_column("updated_at", mutable=False),
)


@dataclass(frozen=True)
class EntityKind(Generic[E]):
    """Descriptor of one entity kind.

    Attributes:
        name:            Kind name used in errors and logs (``"client"``).
        table:           Table name.
        entity_type:     Dataclass the rows map to.
        id_column:       Column holding the human-readable identifier.
        columns:         Kind-specific columns, including *id_column* and
                         every alternate key.
        paths:           Field-mask path -> column name.
        identifiers_type: Dataclass addressing one entity of this kind.
        alternate_keys:  Other unique columns an entity can be looked up by.
        soft_delete:     Deletes tombstone the row instead of removing it.
        unknown_paths:   Resolver policy for paths missing from *paths*.
    """

    name: str
    table: str
    entity_type: type[E]
    id_column: str
    columns: tuple[Column, ...]
    paths: Mapping[str, str]
    identifiers_type: type
    alternate_keys: tuple[str, ...] = ()
    soft_delete: bool = False
    unknown_paths: UnknownPathPolicy = UnknownPathPolicy.REJECT
    _by_name: dict[str, Column] = field(default_factory=dict, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        all_columns = list(MODEL_COLUMN_DEFS) + list(self.columns)
        if self.soft_delete:
            all_columns.append(time_column(DELETED_AT_COLUMN, mutable=False))
        for column in all_columns:
            if column.name in self._by_name:
                raise ValueError(f"{self.name}: duplicate column '{column.name}'")
            self._by_name[column.name] = column

        attributes = {f.name for f in fields(self.entity_type)}
        for column in all_columns:
            if column.attribute not in attributes:
                raise ValueError(
                    f"{self.name}: column '{column.name}' maps to unknown "
                    f"attribute '{column.attribute}' of {self.entity_type.__name__}"
                )
        for key in (self.id_column, *self.alternate_keys):
            if key not in self._by_name:
                raise ValueError(f"{self.name}: identifier column '{key}' is not declared")
        for path, column_name in self.paths.items():
            if column_name not in self._by_name:
                raise ValueError(f"{self.name}: path '{path}' maps to unknown column '{column_name}'")

    # ── columns ──────────────────────────────────────────────

    @property
    def all_columns(self) -> tuple[Column, ...]:
        return tuple(self._by_name.values())

    @property
    def column_names(self) -> tuple[str, ...]:
        return tuple(self._by_name)

    @property
    def identifier_columns(self) -> tuple[str, ...]:
        return (self.id_column, *self.alternate_keys)

    def column(self, name: str) -> Column | None:
        return self._by_name.get(name)

    def mutable_columns(self) -> tuple[str, ...]:
        return tuple(
            c.name for c in self._by_name.values() if c.mutable and c.name != self.id_column
        )

    def create_table_sql(self) -> str:
        lines = ['"id" TEXT PRIMARY KEY']
        lines += [c.ddl() for c in self.all_columns if c.name != "id"]
        return f'CREATE TABLE IF NOT EXISTS "{self.table}" (\n    ' + ",\n    ".join(lines) + "\n)"

    # ── identifiers ──────────────────────────────────────────

    def lookup(self, ids: Any) -> dict[str, Any]:
        """Return ``{column: stored value}`` for every identifier set on *ids*."""
        filters: dict[str, Any] = {}
        for name in self.identifier_columns:
            column = self._by_name[name]
            value = getattr(ids, column.attribute, None)
            if value:
                filters[name] = column.to_db(value)
        return filters

    def identifiers_of(self, entity: E) -> Any:
        values = {}
        for name in self.identifier_columns:
            attribute = self._by_name[name].attribute
            values[attribute] = getattr(entity, attribute)
        return self.identifiers_type(**values)

    # ── row mapping ──────────────────────────────────────────

    def to_row(self, entity: E, columns: tuple[str, ...] | None = None) -> dict[str, Any]:
        """Encode *entity* into ``{column: value}``, optionally for *columns* only."""
        names = columns if columns is not None else self.column_names
        row: dict[str, Any] = {}
        for name in names:
            column = self._by_name[name]
            row[name] = column.to_db(getattr(entity, column.attribute))
        return row

    def from_row(self, row: Mapping[str, Any]) -> E:
        """Build an entity from the columns present in *row*.

        Columns absent from a projected row keep the entity's defaults;
        values for columns this kind does not declare are dropped.
        """
        values: dict[str, Any] = {}
        for name, value in row.items():
            column = self._by_name.get(name)
            if column is not None:
                values[column.attribute] = column.from_db(value)
        return self.entity_type(**values)
