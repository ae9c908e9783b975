"""Pytest configuration and fixtures."""

import asyncio

import pytest

from migrator.pools import InMemoryGaugeRepository, InMemoryPoolRepository, PoolNode, resolve_pool
from tests.helpers.pools import (
    ALL_GAUGES,
    ALL_POOLS,
    BB_A_USD_POOL,
    BB_A_USD_V2_POOL,
    META_STABLE_POOL,
    WEIGHTED_POOL,
)


@pytest.fixture
def pool_repository() -> InMemoryPoolRepository:
    """Repository holding the whole test catalogue."""
    return InMemoryPoolRepository(ALL_POOLS)


@pytest.fixture
def gauge_repository() -> InMemoryGaugeRepository:
    return InMemoryGaugeRepository(ALL_GAUGES)


def _resolve(pool_id: str, repository: InMemoryPoolRepository) -> PoolNode:
    return asyncio.run(resolve_pool(pool_id, repository))


# =============================================================================
# Resolved trees
# =============================================================================


@pytest.fixture
def meta_stable_tree(pool_repository: InMemoryPoolRepository) -> PoolNode:
    """wstETH/WETH pool of plain tokens."""
    return _resolve(META_STABLE_POOL.id, pool_repository)


@pytest.fixture
def weighted_tree(pool_repository: InMemoryPoolRepository) -> PoolNode:
    return _resolve(WEIGHTED_POOL.id, pool_repository)


@pytest.fixture
def composable_tree(pool_repository: InMemoryPoolRepository) -> PoolNode:
    """ComposableStable v1 over three linear pools."""
    return _resolve(BB_A_USD_POOL.id, pool_repository)


@pytest.fixture
def composable_v2_tree(pool_repository: InMemoryPoolRepository) -> PoolNode:
    """ComposableStable v3 over three different linear pools wrapping the same tokens."""
    return _resolve(BB_A_USD_V2_POOL.id, pool_repository)
