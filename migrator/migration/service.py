"""Migrations service.

Resolves pools and gauges, reads the user's balance and builds the relayer
transaction. Two-phase use:

1. ``get_min_bpt_out`` builds a peek migration (no minimum), simulates it
   and decodes the BPT the join would mint.
2. ``pool2pool`` / ``gauge2gauge`` with that ``min_bpt_out`` build the
   protected transaction to send.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass

import structlog

from migrator.chain import BalanceQuery, CallSimulator, Web3BalanceQuery, Web3CallSimulator
from migrator.config import DEFAULT_MIGRATION_CONFIG, MigrationConfig
from migrator.errors import InvalidInputError, NotFoundError
from migrator.migration.builder import build_migration, parse_amount
from migrator.migration.decoder import decode_min_bpt_out
from migrator.models.pools import GaugeRecord
from migrator.pools.node import PoolNode
from migrator.pools.repository import GaugeRepository, PoolRepository
from migrator.pools.topology import resolve_pool

logger = structlog.get_logger()


@dataclass(frozen=True)
class MigrationTransaction:
    """Transaction request: send ``data`` to ``to``."""

    to: str
    data: str


class Migrations:
    """Builds liquidity migration transactions for the batch relayer.

    Example:
        migrations = Migrations(relayer, pools, gauges, Web3BalanceQuery(rpc_url))
        tx = await migrations.pool2pool(user, from_pool_id, to_pool_id)
    """

    def __init__(
        self,
        relayer_address: str,
        pools: PoolRepository,
        gauges: GaugeRepository,
        balances: BalanceQuery,
        simulator: CallSimulator | None = None,
        config: MigrationConfig = DEFAULT_MIGRATION_CONFIG,
    ) -> None:
        self.relayer_address = relayer_address
        self.pools = pools
        self.gauges = gauges
        self.balances = balances
        self.simulator = simulator
        self.config = config

    @classmethod
    def from_config(
        cls,
        config: MigrationConfig,
        pools: PoolRepository,
        gauges: GaugeRepository,
    ) -> Migrations:
        """Create a service talking to the configured relayer and RPC node.

        Raises:
            InvalidInputError: If the relayer address or RPC URL is not configured
        """
        if config.relayer_address is None or config.rpc_url is None:
            raise InvalidInputError("Relayer address and RPC URL must be configured")
        return cls(
            relayer_address=config.relayer_address,
            pools=pools,
            gauges=gauges,
            balances=Web3BalanceQuery(config.rpc_url),
            simulator=Web3CallSimulator(config.rpc_url, gas_limit=config.simulation_gas_limit),
            config=config,
        )

    async def _resolve(self, from_pool_id: str, to_pool_id: str) -> tuple[PoolNode, PoolNode]:
        from_tree, to_tree = await asyncio.gather(
            resolve_pool(from_pool_id, self.pools),
            resolve_pool(to_pool_id, self.pools),
        )
        return from_tree, to_tree

    async def _gauge(self, pool_id: str) -> GaugeRecord:
        gauge = await self.gauges.find_by("poolId", pool_id)
        if gauge is None or not gauge.pool_id:
            raise NotFoundError(f"Gauge not found for pool {pool_id}")
        return gauge

    def _build(
        self,
        user: str,
        balance: int,
        min_bpt_out: int,
        from_tree: PoolNode,
        to_tree: PoolNode,
        from_gauge: str | None = None,
        to_gauge: str | None = None,
    ) -> MigrationTransaction:
        payload = build_migration(
            user=user,
            relayer=self.relayer_address,
            bpt_amount=balance,
            min_bpt_out=min_bpt_out,
            from_tree=from_tree,
            to_tree=to_tree,
            # No minimum means a dry run: surface the minted amount
            peek=min_bpt_out == 0,
            from_gauge=from_gauge,
            to_gauge=to_gauge,
            deadline=self.config.swap_deadline(),
        )
        return MigrationTransaction(to=payload.to, data=payload.data)

    async def pool2pool(
        self,
        user: str,
        from_pool_id: str,
        to_pool_id: str,
        balance: int | str | None = None,
        min_bpt_out: int | str = 0,
    ) -> MigrationTransaction:
        """Migrate unstaked BPT from one pool to another.

        Args:
            user: Holder of the BPT
            from_pool_id: Source pool id
            to_pool_id: Destination pool id
            balance: BPT to migrate (default: the user's whole balance)
            min_bpt_out: Minimum BPT out; 0 builds a peek (dry-run) payload

        Returns:
            Transaction request for the relayer
        """
        from_tree, to_tree = await self._resolve(from_pool_id, to_pool_id)
        if balance is None:
            balance = await self.balances.balance_of(from_tree.address, user)

        logger.info("pool2pool", user=user, from_pool=from_pool_id, to_pool=to_pool_id)
        return self._build(
            user,
            parse_amount(balance, "balance"),
            parse_amount(min_bpt_out, "min_bpt_out"),
            from_tree,
            to_tree,
        )

    async def gauge2gauge(
        self,
        user: str,
        from_pool_id: str,
        to_pool_id: str,
        balance: int | str | None = None,
        min_bpt_out: int | str = 0,
    ) -> MigrationTransaction:
        """Migrate a staked position: unstake, migrate, restake.

        Gauges are looked up by the pool ids they stake.

        Raises:
            NotFoundError: If either pool has no gauge
        """
        from_gauge, to_gauge = await asyncio.gather(
            self._gauge(from_pool_id),
            self._gauge(to_pool_id),
        )
        from_tree, to_tree = await self._resolve(from_gauge.pool_id, to_gauge.pool_id)  # type: ignore[arg-type]
        if balance is None:
            balance = await self.balances.balance_of(from_gauge.id, user)

        logger.info(
            "gauge2gauge",
            user=user,
            from_gauge=from_gauge.id,
            to_gauge=to_gauge.id,
        )
        return self._build(
            user,
            parse_amount(balance, "balance"),
            parse_amount(min_bpt_out, "min_bpt_out"),
            from_tree,
            to_tree,
            from_gauge=from_gauge.id,
            to_gauge=to_gauge.id,
        )

    async def get_min_bpt_out(
        self,
        user: str,
        from_pool_id: str,
        to_pool_id: str,
        staked: bool = False,
        balance: int | str | None = None,
    ) -> int:
        """Simulate a peek migration and decode the safe minimum BPT out.

        Raises:
            InvalidInputError: If no call simulator is configured
            MigrationDecodeError: If the simulation result has an unexpected shape
        """
        if self.simulator is None:
            raise InvalidInputError("A call simulator is required to compute min BPT out")

        migrate = self.gauge2gauge if staked else self.pool2pool
        peek = await migrate(user, from_pool_id, to_pool_id, balance=balance, min_bpt_out=0)
        return_data = await self.simulator.call(peek.to, peek.data, user)
        return decode_min_bpt_out(return_data, self.config)


__all__ = ["Migrations", "MigrationTransaction"]
