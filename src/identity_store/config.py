"""Configuration schema for opening an identity store.

Accepts plain mappings (parsed YAML, JSON, environment-derived dicts)
through ``StoreConfig.model_validate``.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from identity_store.kinds import UnknownPathPolicy


class StoreConfig(BaseModel):
    """Store configuration.

    Attributes:
        path: Path to the SQLite database file, or ``":memory:"``
        timeout: Seconds to wait on a database lock held elsewhere
        unknown_field_paths: What to do with field mask paths no kind
            declares: ``"reject"`` them or ``"pass_through"`` as columns
    """

    path: str = ":memory:"
    timeout: float = Field(default=5.0, gt=0)
    unknown_field_paths: UnknownPathPolicy = UnknownPathPolicy.REJECT
