"""Pool topology tree.

A ``PoolNode`` is one level of a (possibly nested) pool. Leaves are plain
tokens; a node has children only when a pool was found at its address.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from migrator.errors import InvalidPoolError
from migrator.models.types import normalize_address

COMPOSABLE_STABLE = "ComposableStable"

_LINEAR_POOL_TYPE = re.compile(r".*Linear.*")


def is_linear_pool_type(pool_type: str | None) -> bool:
    """Check if a pool type is a linear (single main token wrapper) pool."""
    return pool_type is not None and _LINEAR_POOL_TYPE.fullmatch(pool_type) is not None


def token_sort_key(address: str) -> str:
    """Sort key matching the vault's token ordering."""
    return address.lower()


@dataclass(frozen=True)
class PoolNode:
    """One level of a pool token tree.

    Attributes:
        address: Token address (the pool's BPT address for nested pools)
        pool_id: Pool id, set when a pool exists at ``address``
        pool_type: e.g. "Weighted", "ComposableStable", "AaveLinear"
        pool_type_version: Factory version of the pool type
        main_index: Position of the main token among ``children`` (linear pools)
        children: Pool tokens sorted by lowercase address; empty for leaves
    """

    address: str
    pool_id: str | None = None
    pool_type: str | None = None
    pool_type_version: int | None = None
    main_index: int | None = None
    children: tuple[PoolNode, ...] = ()

    @property
    def is_leaf(self) -> bool:
        return not self.children

    @property
    def is_linear(self) -> bool:
        return is_linear_pool_type(self.pool_type)

    @property
    def is_composable_stable(self) -> bool:
        return self.pool_type == COMPOSABLE_STABLE

    @property
    def token_addresses(self) -> list[str]:
        """Addresses of the direct children, in vault order."""
        return [child.address for child in self.children]

    @property
    def main_token(self) -> PoolNode | None:
        """The wrapped main token of a nested pool, if it declares one."""
        if self.main_index is None or not self.children:
            return None
        if self.main_index >= len(self.children):
            return None
        return self.children[self.main_index]

    def index_of(self, address: str) -> int:
        """Position of a child token by address (case-insensitive), -1 if absent."""
        target = normalize_address(address)
        for idx, child in enumerate(self.children):
            if normalize_address(child.address) == target:
                return idx
        return -1

    def require_pool_data(self) -> None:
        """Ensure the node carries what a migration needs (id, tokens, type).

        Raises:
            InvalidPoolError: If any of id, tokens or pool type is missing
        """
        if not self.pool_id or not self.children or not self.pool_type:
            raise InvalidPoolError(f"Pool data is missing for {self.address}")


__all__ = [
    "COMPOSABLE_STABLE",
    "PoolNode",
    "is_linear_pool_type",
    "token_sort_key",
]
