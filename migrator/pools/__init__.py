"""Pool topology: tree nodes, repositories and the resolver."""

from migrator.pools.node import COMPOSABLE_STABLE, PoolNode, is_linear_pool_type, token_sort_key
from migrator.pools.repository import (
    GaugeRepository,
    InMemoryGaugeRepository,
    InMemoryPoolRepository,
    PoolRepository,
)
from migrator.pools.topology import resolve_pool

__all__ = [
    "COMPOSABLE_STABLE",
    "PoolNode",
    "is_linear_pool_type",
    "token_sort_key",
    "PoolRepository",
    "GaugeRepository",
    "InMemoryPoolRepository",
    "InMemoryGaugeRepository",
    "resolve_pool",
]
