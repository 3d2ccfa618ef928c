"""Idempotent get-or-create for hash and tag rows.

Each resolution is a single ``INSERT ... ON CONFLICT DO NOTHING`` folded into
a ``SELECT`` of the pre-existing row, so concurrent callers resolving the same
value always end up with one row and the same id.

Under READ COMMITTED the fallback ``SELECT`` reads the statement snapshot. If
the conflicting row was committed by another transaction while our insert was
waiting on it, neither branch returns a row; running the statement again takes
a fresh snapshot that sees the committed row.
"""

from __future__ import annotations

import asyncpg
import structlog

from tgcd.domain.models import Blake2bHash, Tag

logger = structlog.get_logger(__name__)

MAX_RESOLVE_ATTEMPTS = 3

RESOLVE_HASH_QUERY = """
    WITH inserted AS (
        INSERT INTO hash(hash)
        VALUES ($1)
        ON CONFLICT DO NOTHING
        RETURNING id
    )
    SELECT id FROM inserted

    UNION ALL

    SELECT id FROM hash
    WHERE hash = $1
    LIMIT 1
"""

RESOLVE_TAG_QUERY = """
    WITH inserted AS (
        INSERT INTO tag(name)
        VALUES ($1)
        ON CONFLICT DO NOTHING
        RETURNING id
    )
    SELECT id FROM inserted

    UNION ALL

    SELECT id FROM tag
    WHERE name = $1
    LIMIT 1
"""


class EntityResolutionError(RuntimeError):
    """The get-or-create statement returned no row on every attempt."""


async def _resolve(conn: asyncpg.Connection, query: str, value: bytes | str, kind: str) -> int:
    for attempt in range(1, MAX_RESOLVE_ATTEMPTS + 1):
        entity_id = await conn.fetchval(query, value)
        if entity_id is not None:
            return entity_id
        logger.debug("entity resolution raced a concurrent insert", kind=kind, attempt=attempt)
    raise EntityResolutionError(f"could not resolve {kind} after {MAX_RESOLVE_ATTEMPTS} attempts")


async def resolve_hash(conn: asyncpg.Connection, hash_: Blake2bHash) -> int:
    """Return the id of the row for ``hash_``, inserting it if absent."""
    return await _resolve(conn, RESOLVE_HASH_QUERY, hash_.digest, "hash")


async def resolve_tag(conn: asyncpg.Connection, tag: Tag) -> int:
    """Return the id of the row for ``tag``, inserting it if absent."""
    return await _resolve(conn, RESOLVE_TAG_QUERY, tag.name, "tag")
