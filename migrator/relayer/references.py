"""Chained references.

A chained reference is a placeholder amount: the relayer stores the output
of one call under the reference and substitutes it when a later call passes
the same reference as an amount. Nothing here resolves values; references
are plain data carried through the step list.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import structlog

from migrator.constants import (
    CHAINED_REFERENCE_PREFIX_SHIFT,
    CHAINED_REFERENCE_READONLY_PREFIX,
    CHAINED_REFERENCE_TEMP_PREFIX,
    EXIT_REFERENCE_KEY_PREFIX,
    JOIN_REFERENCE_KEY,
    SWAP_REFERENCE_KEY_PREFIX,
)
from migrator.errors import InvalidInputError

logger = structlog.get_logger()

_PREFIX_MASK = 0xFFFF << CHAINED_REFERENCE_PREFIX_SHIFT


@dataclass(frozen=True)
class ChainedReference:
    """Placeholder for an amount resolved by the relayer at execution time.

    Attributes:
        key: Decimal key identifying the stored value (e.g. "100", "999")
        temporary: Temporary references are cleared when read. The read-only
            form of the same key reads the same stored value without clearing.
    """

    key: str
    temporary: bool = True

    def __post_init__(self) -> None:
        if not self.key.isdigit():
            raise InvalidInputError(f"Chained reference key must be decimal: {self.key!r}")

    @property
    def value(self) -> int:
        """The uint256 passed to the relayer in place of an amount."""
        prefix = CHAINED_REFERENCE_TEMP_PREFIX if self.temporary else CHAINED_REFERENCE_READONLY_PREFIX
        return (prefix << CHAINED_REFERENCE_PREFIX_SHIFT) + int(self.key)

    def read_only(self) -> ChainedReference:
        return ChainedReference(self.key, temporary=False)

    def same_slot(self, other: ChainedReference) -> bool:
        """Whether both references address the same stored value."""
        return int(self.key) == int(other.key)

    def __int__(self) -> int:
        return self.value

    def __str__(self) -> str:
        return str(self.value)

    @classmethod
    def from_value(cls, value: int) -> ChainedReference:
        """Parse a uint256 back into a reference.

        Raises:
            InvalidInputError: If the value does not carry a chained reference prefix
        """
        prefix = (value & _PREFIX_MASK) >> CHAINED_REFERENCE_PREFIX_SHIFT
        if prefix not in (CHAINED_REFERENCE_TEMP_PREFIX, CHAINED_REFERENCE_READONLY_PREFIX):
            raise InvalidInputError(f"Not a chained reference: {value:#x}")
        return cls(
            key=str(value & ~_PREFIX_MASK),
            temporary=prefix == CHAINED_REFERENCE_TEMP_PREFIX,
        )


def is_chained_reference(value: int) -> bool:
    """Check if an amount is a chained reference rather than a literal."""
    prefix = (value & _PREFIX_MASK) >> CHAINED_REFERENCE_PREFIX_SHIFT
    return value >> (CHAINED_REFERENCE_PREFIX_SHIFT + 16) == 0 and prefix in (
        CHAINED_REFERENCE_TEMP_PREFIX,
        CHAINED_REFERENCE_READONLY_PREFIX,
    )


@dataclass(frozen=True)
class OutputReference:
    """Stores the amount at ``index`` of a call's asset array under ``key``."""

    index: int
    key: ChainedReference

    def as_abi(self) -> tuple[int, int]:
        return (self.index, self.key.value)


@dataclass
class ReferenceAllocator:
    """Allocates chained references for one migration.

    Keys are unique within an allocator. Every reference records the step
    that produces it, and consumers are checked against that record so a
    step can never read a reference no earlier step produced.
    """

    producers: dict[str, str] = field(default_factory=dict)
    consumers: dict[str, list[str]] = field(default_factory=dict)
    cleared: set[str] = field(default_factory=set)

    def allocate(self, key: str, producer: str) -> ChainedReference:
        """Allocate a fresh temporary reference.

        Raises:
            InvalidInputError: If the key was already allocated
        """
        if key in self.producers:
            raise InvalidInputError(
                f"Chained reference key {key} already produced by {self.producers[key]}"
            )
        self.producers[key] = producer
        logger.debug("chained_reference_allocated", key=key, producer=producer)
        return ChainedReference(key)

    def exit_output(self, slot: int) -> ChainedReference:
        return self.allocate(f"{EXIT_REFERENCE_KEY_PREFIX}{slot}", "exit")

    def swap_output(self, slot: int) -> ChainedReference:
        return self.allocate(f"{SWAP_REFERENCE_KEY_PREFIX}{slot}", "swap")

    def join_output(self) -> ChainedReference:
        return self.allocate(JOIN_REFERENCE_KEY, "join")

    def consume(self, reference: ChainedReference, consumer: str) -> ChainedReference:
        """Record that ``consumer`` reads ``reference``.

        A temporary read clears the stored value, so nothing may read the
        key after it.

        Raises:
            InvalidInputError: If no step has produced the reference yet, or
                a temporary read already cleared it
        """
        if reference.key not in self.producers:
            raise InvalidInputError(
                f"{consumer} reads chained reference {reference.key} before it is produced"
            )
        if reference.key in self.cleared:
            raise InvalidInputError(
                f"{consumer} reads chained reference {reference.key} after "
                f"{self.consumers[reference.key][-1]} cleared it"
            )
        if reference.temporary:
            self.cleared.add(reference.key)
        self.consumers.setdefault(reference.key, []).append(consumer)
        return reference

    @property
    def keys(self) -> list[str]:
        return list(self.producers)


__all__ = [
    "ChainedReference",
    "OutputReference",
    "ReferenceAllocator",
    "is_chained_reference",
]
