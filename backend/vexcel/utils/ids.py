"""ID helpers."""

from __future__ import annotations

import uuid


def new_id(prefix: str | None = None) -> str:
    """Compact random id, ``<prefix>_<hex>`` when a prefix is given."""
    base = uuid.uuid4().hex
    return f"{prefix}_{base}" if prefix else base


def new_uuid() -> str:
    """Canonical dashed UUID4, as Postgres ``uuid`` columns expect."""
    return str(uuid.uuid4())
