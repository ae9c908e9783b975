"""Decoding of simulated migration results.

A migration built with ``peek=True`` surfaces the BPT minted by the join in
the relayer's multicall return data. Decoding it gives the minimum BPT out
for the real transaction.
"""

from __future__ import annotations

import structlog

from migrator.config import DEFAULT_MIGRATION_CONFIG, MigrationConfig
from migrator.constants import PPM
from migrator.errors import MigrationDecodeError
from migrator.relayer.encoding import decode_multicall_results, decode_return

logger = structlog.get_logger()


def min_bpt_out_buffer(amount: int, step_count: int, config: MigrationConfig) -> int:
    """Safety buffer for a simulated amount.

    Swapping out of linear pools reads the current wrapped token rate, which
    can move between the simulation and the real transaction. Multicalls of
    4 or 6 steps contain a swap and get ``min_bpt_out_buffer_ppm`` of the
    amount taken off; others get none.
    """
    if step_count not in config.buffered_step_counts:
        return 0
    return amount * config.min_bpt_out_buffer_ppm // PPM


def decode_min_bpt_out(
    return_data: str | bytes,
    config: MigrationConfig = DEFAULT_MIGRATION_CONFIG,
) -> int:
    """Extract the minted BPT from a simulated multicall, minus the safety buffer.

    Join and gauge deposit return nothing, so of the last two results exactly
    one (the peek) carries data.

    Args:
        return_data: Raw ``multicall`` return value (bytes or 0x hex)
        config: Buffer settings

    Returns:
        Minimum BPT out for the committing transaction

    Raises:
        MigrationDecodeError: If the return data does not have that shape
    """
    results = decode_multicall_results(return_data)
    if len(results) < 2:
        raise MigrationDecodeError(f"Expected at least 2 multicall results, got {len(results)}")

    candidates = [result for result in results[-2:] if result]
    if len(candidates) != 1:
        raise MigrationDecodeError(
            f"Expected exactly one non-empty result among the last two, got {len(candidates)}"
        )

    (minted,) = decode_return("peekChainedReferenceValue", candidates[0])
    buffer = min_bpt_out_buffer(minted, len(results), config)

    logger.info(
        "min_bpt_out_decoded",
        step_count=len(results),
        minted=minted,
        buffer=buffer,
    )
    return minted - buffer


__all__ = ["decode_min_bpt_out", "min_bpt_out_buffer"]
