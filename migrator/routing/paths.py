"""Swap path planning between two pool topologies.

For each top-level slot of the source pool that is a linear wrapper, look
for a destination slot wrapping the same main token and route
source wrapper -> main token -> destination wrapper.
"""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from migrator.errors import InvalidInputError, InvalidPoolError
from migrator.models.types import normalize_address
from migrator.pools.node import PoolNode

logger = structlog.get_logger()


@dataclass(frozen=True)
class SwapHop:
    """One hop of a batch swap route."""

    pool_id: str
    asset_in: str
    asset_out: str


# Ordered hops; empty when a slot needs no conversion
SwapPath = tuple[SwapHop, ...]


def _main_token_address(slot: PoolNode) -> str | None:
    main = slot.main_token
    return normalize_address(main.address) if main is not None else None


def build_paths(
    from_tree: PoolNode,
    to_tree: PoolNode,
    exit_token_index: int = -1,
) -> list[SwapPath]:
    """Build one swap path per source slot.

    Args:
        from_tree: Resolved source pool
        to_tree: Resolved destination pool
        exit_token_index: When >= 0 only the path of that slot is returned

    Returns:
        Paths positionally aligned with the source slots (or a single path
        for a single-token exit). Empty paths mean "no conversion".

    Raises:
        InvalidInputError: If exit_token_index is out of range
        InvalidPoolError: If a matched linear wrapper lacks id, tokens or main index
    """
    to_mains = [_main_token_address(slot) for slot in to_tree.children]

    paths: list[SwapPath] = []
    for slot in from_tree.children:
        main = _main_token_address(slot)
        if main is None or main not in to_mains:
            paths.append(())
            continue
        paths.append(_build_path(slot, to_tree.children[to_mains.index(main)]))

    if exit_token_index >= 0:
        if exit_token_index >= len(paths):
            raise InvalidInputError(
                f"Exit token index {exit_token_index} out of range for {len(paths)} tokens"
            )
        return [paths[exit_token_index]]

    return paths


def _build_path(from_slot: PoolNode, to_slot: PoolNode) -> SwapPath:
    if not (from_slot.is_linear and to_slot.is_linear):
        return ()
    return _build_linear_path(from_slot, to_slot)


def _build_linear_path(from_slot: PoolNode, to_slot: PoolNode) -> SwapPath:
    main_token = from_slot.main_token
    if (
        not from_slot.pool_id
        or not to_slot.pool_id
        or main_token is None
        or to_slot.main_token is None
    ):
        raise InvalidPoolError(
            f"Missing tokens for linear pools {from_slot.address} -> {to_slot.address}"
        )

    path = (
        SwapHop(pool_id=from_slot.pool_id, asset_in=from_slot.address, asset_out=main_token.address),
        SwapHop(pool_id=to_slot.pool_id, asset_in=main_token.address, asset_out=to_slot.address),
    )

    logger.debug(
        "linear_path_built",
        from_wrapper=from_slot.address,
        main_token=main_token.address,
        to_wrapper=to_slot.address,
    )
    return path


__all__ = ["SwapHop", "SwapPath", "build_paths"]
