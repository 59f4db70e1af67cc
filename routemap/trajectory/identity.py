"""
Entity identity — how a record of identifying fields becomes a dictionary key.

The identity is the compact JSON text of the record in its own field order.
Two records with the same fields in a different insertion order therefore
produce two identities. This is kept on purpose: feeds are expected to emit
their fields in a stable order.
"""

import hashlib
import json
from typing import Any, Mapping

from routemap.errors import InvalidIdentity


def compute_identity(fields: Any) -> str:
    """Serialize identifying fields into the entity identity string."""
    if not isinstance(fields, Mapping):
        raise InvalidIdentity(
            f"Identifying fields must be a mapping, got {type(fields).__name__}"
        )
    try:
        return json.dumps(
            dict(fields), separators=(",", ":"), ensure_ascii=False, allow_nan=False
        )
    except (TypeError, ValueError) as e:
        raise InvalidIdentity(f"Cannot serialize identifying fields: {e}") from e


def identity_key(identity: str) -> str:
    """Short URL-safe key for an identity."""
    return hashlib.sha256(identity.encode()).hexdigest()[:16]


def generate_title(fields: Mapping[str, Any]) -> str:
    """
    Human-readable title from identifying fields.

    {"a": "1", "b": "2"} -> "a: 1, b: 2"
    """
    title = ", ".join(f"{field}: {value}" for field, value in fields.items())
    return title or "unknown"
