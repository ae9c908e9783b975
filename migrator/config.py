"""Configuration for the migration builder."""

from __future__ import annotations

import os
import time
from dataclasses import dataclass, field

from migrator.constants import MAX_INT256


@dataclass(frozen=True)
class MigrationConfig:
    """Centralized configuration for building and decoding migrations.

    Attributes:
        relayer_address: Batch relayer that executes the multicall. Callers
            may also pass it explicitly; there is no per-network table here.
        rpc_url: JSON-RPC endpoint for balance queries and static calls.
        min_bpt_out_buffer_ppm: Safety buffer subtracted from a simulated
            BPT out, in parts per million (default: 1 = 0.0001%).
        buffered_step_counts: Multicall sizes that include a swap step and
            therefore receive the buffer.
        swap_deadline_seconds: Batch swap deadline relative to build time.
            None disables the deadline (max int256).
        simulation_gas_limit: Gas limit for the static peek call.
    """

    relayer_address: str | None = None
    rpc_url: str | None = None

    min_bpt_out_buffer_ppm: int = 1
    buffered_step_counts: frozenset[int] = field(default_factory=lambda: frozenset({4, 6}))

    swap_deadline_seconds: int | None = 3600
    simulation_gas_limit: int = 8_000_000

    @classmethod
    def from_env(cls) -> MigrationConfig:
        """Build a config from MIGRATOR_* environment variables."""
        deadline_raw = os.environ.get("MIGRATOR_SWAP_DEADLINE_SECONDS", "3600")
        return cls(
            relayer_address=os.environ.get("MIGRATOR_RELAYER_ADDRESS") or None,
            rpc_url=os.environ.get("MIGRATOR_RPC_URL") or None,
            min_bpt_out_buffer_ppm=int(os.environ.get("MIGRATOR_MIN_BPT_OUT_BUFFER_PPM", "1")),
            swap_deadline_seconds=int(deadline_raw) if deadline_raw.lower() != "none" else None,
            simulation_gas_limit=int(os.environ.get("MIGRATOR_SIMULATION_GAS_LIMIT", "8000000")),
        )

    def swap_deadline(self, now: float | None = None) -> int:
        """Batch swap deadline for a migration built at ``now`` (unix seconds)."""
        if self.swap_deadline_seconds is None:
            return MAX_INT256
        if now is None:
            now = time.time()
        return int(now) + self.swap_deadline_seconds


# Default configuration instance
DEFAULT_MIGRATION_CONFIG = MigrationConfig()
