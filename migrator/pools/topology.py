"""Pool topology resolution.

Rebuilds the nested token tree of a pool (pools of pools) from a pool
repository. Tokens are sorted by lowercase address at every level because
the vault expects exit/join asset arrays in that order and exit output
references are assigned by position.
"""

from __future__ import annotations

import asyncio

import structlog

from migrator.errors import NotFoundError
from migrator.models.pools import PoolRecord
from migrator.models.types import normalize_address
from migrator.pools.node import PoolNode, token_sort_key
from migrator.pools.repository import PoolRepository

logger = structlog.get_logger()


async def resolve_pool(pool_id: str, pools: PoolRepository) -> PoolNode:
    """Resolve a pool id into its sorted, nested token tree.

    Args:
        pool_id: Id of the pool to resolve
        pools: Repository used for the root lookup and one lookup per token

    Returns:
        Root PoolNode carrying the pool's id, type, version and main index

    Raises:
        NotFoundError: If the pool id is unknown to the repository
    """
    pool = await pools.find(pool_id)
    if pool is None:
        raise NotFoundError(f"Pool {pool_id} not found")

    root = await _pool_node(pool, pools, ancestors=frozenset())

    logger.debug(
        "pool_resolved",
        pool_id=pool_id,
        pool_type=root.pool_type,
        token_count=len(root.children),
        nested_count=sum(1 for child in root.children if not child.is_leaf),
    )
    return root


async def _pool_node(
    pool: PoolRecord,
    pools: PoolRepository,
    ancestors: frozenset[str],
) -> PoolNode:
    # The pool itself is an ancestor of its tokens: a composable pool lists its
    # own BPT and must not be expanded again
    lineage = ancestors | {normalize_address(pool.address)}
    tokens = sorted(pool.tokens, key=lambda token: token_sort_key(token.address))

    # Siblings are independent, so their lookups run concurrently
    children = await asyncio.gather(
        *(_token_node(token.address, pools, lineage) for token in tokens)
    )

    return PoolNode(
        address=pool.address,
        pool_id=pool.id,
        pool_type=pool.pool_type,
        pool_type_version=pool.pool_type_version,
        main_index=pool.main_index,
        children=tuple(children),
    )


async def _token_node(
    address: str,
    pools: PoolRepository,
    ancestors: frozenset[str],
) -> PoolNode:
    if normalize_address(address) in ancestors:
        return PoolNode(address=address)

    nested = await pools.find_by("address", address)
    if nested is None:
        return PoolNode(address=address)

    node = await _pool_node(nested, pools, ancestors)
    # Keep the token address as listed by the parent pool
    if node.address != address:
        node = PoolNode(
            address=address,
            pool_id=node.pool_id,
            pool_type=node.pool_type,
            pool_type_version=node.pool_type_version,
            main_index=node.main_index,
            children=node.children,
        )
    return node


__all__ = ["resolve_pool"]
