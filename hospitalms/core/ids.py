# hospitalms/core/ids.py
from __future__ import annotations

from typing import Any, Optional
from uuid import UUID


def parse_id(value: Any) -> Optional[UUID]:
    """
    Return the UUID for a client-supplied identifier, or None when it is
    missing or not a syntactically valid UUID.
    """
    if isinstance(value, UUID):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        return UUID(value.strip())
    except ValueError:
        return None
