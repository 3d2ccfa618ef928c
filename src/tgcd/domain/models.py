"""Domain value objects for tgcd.

Value objects are immutable, equality-by-value types that reject malformed
input on construction, before it reaches the tag store.
"""

from __future__ import annotations

import hashlib
import re
from dataclasses import dataclass

from tgcd.domain.errors import InvalidHashError, InvalidTagError

HASH_SIZE = 64
MAX_TAG_LENGTH = 255

HEX_DIGEST_RE = re.compile(rf"[0-9a-fA-F]{{{HASH_SIZE * 2}}}")


@dataclass(frozen=True, slots=True)
class Blake2bHash:
    """A BLAKE2b-512 content digest."""

    digest: bytes

    def __post_init__(self) -> None:
        if not isinstance(self.digest, (bytes, bytearray)):
            raise InvalidHashError(f"hash must be bytes, got {type(self.digest).__name__}")
        if len(self.digest) != HASH_SIZE:
            raise InvalidHashError(f"hash must be {HASH_SIZE} bytes, got {len(self.digest)}")
        if isinstance(self.digest, bytearray):
            object.__setattr__(self, "digest", bytes(self.digest))

    @classmethod
    def from_hex(cls, value: str) -> Blake2bHash:
        if not isinstance(value, str) or HEX_DIGEST_RE.fullmatch(value) is None:
            raise InvalidHashError(f"hash must be {HASH_SIZE * 2} hexadecimal characters")
        return cls(bytes.fromhex(value))

    @classmethod
    def of(cls, content: bytes) -> Blake2bHash:
        """Hash ``content`` with BLAKE2b-512."""
        return cls(hashlib.blake2b(content, digest_size=HASH_SIZE).digest())

    def hex(self) -> str:
        return self.digest.hex()

    def __bytes__(self) -> bytes:
        return self.digest

    def __str__(self) -> str:
        return self.hex()


@dataclass(frozen=True, slots=True)
class Tag:
    """A tag label of 1 to 255 characters."""

    name: str

    def __post_init__(self) -> None:
        if not isinstance(self.name, str):
            raise InvalidTagError(f"tag must be a string, got {type(self.name).__name__}")
        if not self.name or len(self.name) > MAX_TAG_LENGTH:
            raise InvalidTagError(f"tag must be 1-{MAX_TAG_LENGTH} characters, got {len(self.name)}")
        if "\x00" in self.name:
            raise InvalidTagError("tag must not contain NUL characters")
        try:
            self.name.encode("utf-8")
        except UnicodeEncodeError as exc:
            raise InvalidTagError("tag must be valid UTF-8 text") from exc

    def __str__(self) -> str:
        return self.name


def parse_tags(values: list[str]) -> list[Tag]:
    """Validate raw tag strings, dropping repeats but keeping first-seen order."""
    tags = [Tag(value) for value in values]
    return list(dict.fromkeys(tags))
