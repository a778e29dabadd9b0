"""
Deterministic hashing utilities for content-based change detection.

Provides stable, reproducible SHA-256 hashes. The entity versioner builds
version tags on top of ``compute_content_hash``.

Manifesto:
    - **Deterministic:** Same inputs always produce same hash
    - **Order-dependent:** (a, b) ≠ (b, a)
    - **Unambiguous:** ``None`` never collides with the text ``"None"`` and
      delimiters inside values cannot shift field boundaries

Examples:
    >>> compute_hash("orders-db", "USERS") == compute_hash("orders-db", "USERS")
    True
    >>> compute_content_hash(["a|b", None]) != compute_content_hash(["a", "b|None"])
    True

Tags:
    hashing, change-detection, versioning, relbridge

Doc-Types:
    - API Reference
"""

import hashlib
import json
from typing import Any


def compute_hash(*values: Any, length: int = 32) -> str:
    """
    Compute deterministic hash from values.

    Joins string representations with ``|`` and hashes with SHA-256. Fine
    for identifiers; use ``compute_content_hash`` for arbitrary user data.

    Args:
        *values: Values to hash (converted to strings)
        length: Hex digest length (default 32 = 128 bits)
    """
    content = "|".join(str(v) for v in values)
    return hashlib.sha256(content.encode()).hexdigest()[:length]


def compute_content_hash(payload: Any, length: int = 64) -> str:
    """
    Compute deterministic hash of a JSON-serializable payload.

    The payload is serialized with a fixed separator set and ``ensure_ascii``
    so the byte stream is identical across platforms and locales.

    Args:
        payload: Nested lists/dicts of str, int, float, bool or None
        length: Hex digest length (default 64 = full SHA-256)
    """
    content = json.dumps(payload, separators=(",", ":"), ensure_ascii=True, sort_keys=True)
    return hashlib.sha256(content.encode("ascii")).hexdigest()[:length]


__all__ = [
    "compute_hash",
    "compute_content_hash",
]
