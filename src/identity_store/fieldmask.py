"""Field masks and their translation into table columns."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from identity_store.exceptions import FieldMaskError
from identity_store.kinds import UnknownPathPolicy, is_sql_identifier
from identity_store.model import MODEL_COLUMNS

if TYPE_CHECKING:
    from identity_store.kinds import EntityKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FieldMask:
    """Ordered set of logical attribute paths.  Empty means "all fields"."""

    paths: tuple[str, ...] = ()

    def __init__(self, paths: Iterable[str] = ()) -> None:
        if isinstance(paths, str):
            paths = (paths,)
        object.__setattr__(self, "paths", tuple(dict.fromkeys(paths)))

    def __bool__(self) -> bool:
        return bool(self.paths)

    def __iter__(self):
        return iter(self.paths)


def _translate(mask: FieldMask, kind: EntityKind[Any]) -> list[str]:
    columns: list[str] = []
    for path in mask:
        column = kind.paths.get(path)
        if column is not None:
            columns.append(column)
            continue
        if kind.unknown_paths is UnknownPathPolicy.REJECT:
            raise FieldMaskError(kind.name, path)
        if not is_sql_identifier(path):
            raise FieldMaskError(kind.name, path, "not a valid column name")
        logger.debug("Passing unknown %s path %r through as a column", kind.name, path)
        columns.append(path)
    return columns


def resolve_columns(mask: FieldMask | None, kind: EntityKind[Any]) -> tuple[str, ...]:
    """Columns to select for *mask*.

    Returns an empty tuple for an empty mask, meaning "select everything".
    Otherwise the model and identifier columns always come first, followed
    by the translated paths, without duplicates.
    """
    if not mask:
        return ()
    columns = [*MODEL_COLUMNS, *kind.identifier_columns, *_translate(mask, kind)]
    if kind.soft_delete:
        columns.append("deleted_at")
    return tuple(dict.fromkeys(columns))


def writable_columns(mask: FieldMask | None, kind: EntityKind[Any]) -> tuple[str, ...]:
    """Columns an update restricted by *mask* may write.

    An empty mask allows every mutable column.  Only paths found in the
    kind's path table can be written: passed-through paths and paths
    resolving to immutable columns are dropped, so the result may be empty.
    """
    mutable = kind.mutable_columns()
    if not mask:
        return mutable
    _translate(mask, kind)  # enforces the unknown-path policy
    allowed = set(mutable)
    columns = (kind.paths[p] for p in mask if p in kind.paths)
    return tuple(dict.fromkeys(c for c in columns if c in allowed))
