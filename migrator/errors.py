"""Migration error classes.

Every error is raised where it is detected; a failed build never returns a
partial payload.
"""


class MigrationError(Exception):
    """Base error for migration building and decoding."""

    pass


class NotFoundError(MigrationError):
    """A pool or gauge could not be resolved from its repository."""

    pass


class InvalidPoolError(MigrationError):
    """Pool data is missing a field required to build the migration."""

    pass


class InvalidInputError(MigrationError):
    """Arguments are inconsistent (array lengths, indexes, amounts)."""

    pass


class MigrationDecodeError(MigrationError):
    """Relayer multicall return data does not have the expected shape."""

    pass


__all__ = [
    "MigrationError",
    "NotFoundError",
    "InvalidPoolError",
    "InvalidInputError",
    "MigrationDecodeError",
]
