"""PostgreSQL gateway implementing TagStorePort on an asyncpg pool."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from typing import Any

import asyncpg
import structlog

from tgcd.domain.errors import StorageError
from tgcd.domain.models import Blake2bHash, Tag
from tgcd.gateway.entity_resolver import EntityResolutionError, resolve_hash, resolve_tag

logger = structlog.get_logger(__name__)

STORAGE_ERRORS: tuple[type[BaseException], ...] = (
    asyncpg.PostgresError,
    asyncpg.InterfaceError,
    EntityResolutionError,
    OSError,
    asyncio.TimeoutError,
)

GET_TAGS_QUERY = """
    SELECT tag.name
    FROM tag tag, hash_tag hash_tag, hash hash
    WHERE
        tag.id = hash_tag.tag_id
        AND hash_tag.hash_id = hash.id
        AND hash.hash = $1
"""

# Upper bound on connections one GetMultipleTags call holds at a time.
DEFAULT_BATCH_CONCURRENCY = 8

INSERT_HASH_TAG_QUERY = """
    INSERT INTO hash_tag(tag_id, hash_id)
    VALUES ($1, $2)
    ON CONFLICT DO NOTHING
"""


@asynccontextmanager
async def _storage_errors(operation: str, **context: Any) -> AsyncIterator[None]:
    """Log storage failures with their context and re-raise them as StorageError."""
    try:
        yield
    except STORAGE_ERRORS as exc:
        logger.error(
            "database operation failed",
            operation=operation,
            error=str(exc),
            error_type=type(exc).__name__,
            **context,
        )
        raise StorageError(operation) from exc


class PostgresTagStore:
    """asyncpg-based implementation of TagStorePort.

    The pool is the only shared state. Each operation checks out one
    connection for its whole duration; multi-step writes run inside a
    transaction that rolls back on any exception, cancellation included.
    """

    def __init__(self, pool: asyncpg.Pool, batch_concurrency: int = DEFAULT_BATCH_CONCURRENCY) -> None:
        self._pool = pool
        self._batch_concurrency = batch_concurrency

    async def get_tags(self, hash_: Blake2bHash) -> list[str]:
        async with _storage_errors("GetTags", hash=hash_.hex()):
            async with self._pool.acquire() as conn:
                return await self._fetch_tags(conn, hash_)

    async def add_tags_to_hash(self, hash_: Blake2bHash, tags: Sequence[Tag]) -> None:
        async with _storage_errors("AddTagsToHash", hash=hash_.hex(), tag_count=len(tags)):
            async with self._pool.acquire() as conn:
                async with conn.transaction():
                    await self._attach_tags(conn, hash_, tags)
        logger.debug("tags attached", hash=hash_.hex(), tag_count=len(tags))

    async def get_multiple_tags(self, hashes: Sequence[Blake2bHash]) -> list[list[str]]:
        if not hashes:
            return []

        limit = asyncio.Semaphore(self._batch_concurrency)

        async def fetch_one(hash_: Blake2bHash) -> list[str]:
            # A connection runs one query at a time, so each lookup borrows its own.
            async with limit, self._pool.acquire() as conn:
                return await self._fetch_tags(conn, hash_)

        async with _storage_errors("GetMultipleTags", hash_count=len(hashes)):
            try:
                async with asyncio.TaskGroup() as group:
                    tasks = [group.create_task(fetch_one(hash_)) for hash_ in hashes]
            except ExceptionGroup as failures:
                logger.debug("batch lookups failed", failed=len(failures.exceptions), hash_count=len(hashes))
                raise failures.exceptions[0] from None
        return [task.result() for task in tasks]

    async def copy_tags(self, src_hash: Blake2bHash, dest_hash: Blake2bHash) -> None:
        async with _storage_errors("CopyTags", src_hash=src_hash.hex(), dest_hash=dest_hash.hex()):
            async with self._pool.acquire() as conn:
                # The source read is outside the write transaction; tags added to
                # src concurrently may or may not be copied.
                src_tags = [Tag(name) for name in await self._fetch_tags(conn, src_hash)]
                async with conn.transaction():
                    await self._attach_tags(conn, dest_hash, src_tags)
        logger.debug(
            "tags copied",
            src_hash=src_hash.hex(),
            dest_hash=dest_hash.hex(),
            tag_count=len(src_tags),
        )

    async def ping(self) -> bool:
        try:
            async with self._pool.acquire() as conn:
                return await conn.fetchval("SELECT 1") == 1
        except STORAGE_ERRORS as exc:
            logger.warning("database ping failed", error=str(exc))
            return False

    @staticmethod
    async def _fetch_tags(conn: asyncpg.Connection, hash_: Blake2bHash) -> list[str]:
        rows = await conn.fetch(GET_TAGS_QUERY, hash_.digest)
        return [row["name"] for row in rows]

    @staticmethod
    async def _attach_tags(conn: asyncpg.Connection, hash_: Blake2bHash, tags: Sequence[Tag]) -> None:
        """Resolve the hash, then each tag, then write associations. Caller owns the transaction."""
        hash_id = await resolve_hash(conn, hash_)
        for tag in tags:
            tag_id = await resolve_tag(conn, tag)
            await conn.execute(INSERT_HASH_TAG_QUERY, tag_id, hash_id)
