"""EntityVersioner: deterministic version tags for optimistic concurrency.

The tag of an entity is a SHA-256 over an unambiguous JSON encoding of the
scope identifier, the table name and the ordered ``[column, value]`` pairs.
JSON keeps ``null`` distinct from every string and escapes any delimiter
inside a value, so two different entries never share an encoding.

Examples:
    >>> v = EntityVersioner()
    >>> v.compute_tag("crm", "USERS", {"id": "1", "name": None}) == \\
    ...     v.compute_tag("crm", "USERS", {"id": "1", "name": None})
    True
    >>> v.compute_tag("crm", "USERS", {"id": "1", "name": None}) == \\
    ...     v.compute_tag("crm", "USERS", {"id": "1", "name": "None"})
    False

Tags:
    versioning, etag, optimistic-concurrency, hashing, relbridge

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from collections.abc import Mapping

from relbridge.core.hashing import compute_content_hash


class EntityVersioner:
    """Computes opaque version tags; stateless."""

    def compute_tag(self, scope_id: str, table: str, entry: Mapping[str, str | None]) -> str:
        """Tag over ``entry`` in its iteration order."""
        pairs = [[name, value] for name, value in entry.items()]
        return compute_content_hash([scope_id, table, pairs])

    def matches(self, tag: str | None, scope_id: str, table: str, entry: Mapping[str, str | None]) -> bool:
        """Whether ``tag`` is the current tag of ``entry``."""
        return tag is not None and tag == self.compute_tag(scope_id, table, entry)


__all__ = [
    "EntityVersioner",
]
