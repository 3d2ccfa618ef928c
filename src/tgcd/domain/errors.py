"""Domain exception hierarchy for the tgcd service.

Two failure categories reach the transport boundary: malformed input
(``InvalidArgumentError``) and storage/connectivity failures
(``StorageError``). An unknown hash is never an error.
"""


class TgcdError(Exception):
    """Base exception for all tgcd domain errors."""


class InvalidArgumentError(TgcdError, ValueError):
    """Request carried a value that cannot be turned into a domain type."""


class InvalidHashError(InvalidArgumentError):
    """Hash bytes or hex text are not a valid BLAKE2b-512 digest."""


class InvalidTagError(InvalidArgumentError):
    """Tag text is empty or too long."""


class StorageError(TgcdError):
    """The tag database could not complete an operation.

    Every write is transactional or idempotent, so callers may retry the
    whole operation.
    """

    def __init__(self, operation: str, message: str = "db error") -> None:
        super().__init__(f"{operation}: {message}")
        self.operation = operation


class MigrationError(TgcdError):
    """A schema migration file is malformed or could not be applied."""
