"""Tag store port: abstract interface for the tag operations."""

from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from tgcd.domain.models import Blake2bHash, Tag


@runtime_checkable
class TagStorePort(Protocol):
    """Protocol for reading and writing hash/tag associations."""

    async def get_tags(self, hash_: Blake2bHash) -> list[str]:
        """Return the tags attached to ``hash_``; empty if the hash is unknown."""
        ...

    async def add_tags_to_hash(self, hash_: Blake2bHash, tags: Sequence[Tag]) -> None:
        """Attach ``tags`` to ``hash_`` atomically, creating rows as needed."""
        ...

    async def get_multiple_tags(self, hashes: Sequence[Blake2bHash]) -> list[list[str]]:
        """Return one tag list per input hash, in input order."""
        ...

    async def copy_tags(self, src_hash: Blake2bHash, dest_hash: Blake2bHash) -> None:
        """Attach every tag of ``src_hash`` to ``dest_hash``."""
        ...

    async def ping(self) -> bool:
        """Return True when the backing store answers a trivial query."""
        ...
