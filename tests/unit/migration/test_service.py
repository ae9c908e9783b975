"""Tests for the Migrations service."""

import asyncio

import pytest

from migrator.config import MigrationConfig
from migrator.errors import InvalidInputError, NotFoundError
from migrator.migration import Migrations, build_migration
from migrator.pools import InMemoryGaugeRepository, InMemoryPoolRepository, PoolNode
from tests.helpers import (
    FakeBalanceQuery,
    FakeCallSimulator,
    RELAYER,
    USER,
    decoded_calls,
    join_user_data,
    multicall_call_names,
    multicall_return,
    uint256_result,
)
from tests.helpers.constants import BB_A_USD_GAUGE, BB_A_USD_V2_GAUGE, META_STABLE
from tests.helpers.pools import BB_A_USD_POOL, BB_A_USD_V2_POOL, META_STABLE_POOL, WEIGHTED_POOL

BALANCE = 5 * 10**18
MINTED = 4 * 10**18
# No deadline keeps calldata independent of the wall clock
CONFIG = MigrationConfig(swap_deadline_seconds=None)


@pytest.fixture
def balances() -> FakeBalanceQuery:
    return FakeBalanceQuery(default=BALANCE)


@pytest.fixture
def migrations(
    pool_repository: InMemoryPoolRepository,
    gauge_repository: InMemoryGaugeRepository,
    balances: FakeBalanceQuery,
) -> Migrations:
    return Migrations(RELAYER, pool_repository, gauge_repository, balances, config=CONFIG)


class TestFromConfig:
    def test_requires_rpc_url(
        self, pool_repository: InMemoryPoolRepository, gauge_repository: InMemoryGaugeRepository
    ) -> None:
        config = MigrationConfig(relayer_address=RELAYER)
        with pytest.raises(InvalidInputError, match="RPC URL"):
            Migrations.from_config(config, pool_repository, gauge_repository)


class TestPool2Pool:
    """Tests for Migrations.pool2pool()."""

    def test_reads_user_balance(self, migrations: Migrations, balances: FakeBalanceQuery) -> None:
        """Without a balance the user's whole BPT balance is migrated."""
        tx = asyncio.run(migrations.pool2pool(USER, META_STABLE_POOL.id, META_STABLE_POOL.id))

        assert tx.to == RELAYER
        assert balances.calls == [(META_STABLE, USER)]
        (exit_call,) = decoded_calls(tx.data, "exitPool")
        _, _, sender, _, _, _ = exit_call
        assert sender.lower() == USER

    def test_zero_min_bpt_out_builds_peek(self, migrations: Migrations) -> None:
        tx = asyncio.run(migrations.pool2pool(USER, META_STABLE_POOL.id, META_STABLE_POOL.id))
        assert multicall_call_names(tx.data) == ["exitPool", "joinPool", "peekChainedReferenceValue"]

    def test_min_bpt_out_builds_committing_transaction(self, migrations: Migrations) -> None:
        tx = asyncio.run(
            migrations.pool2pool(USER, META_STABLE_POOL.id, META_STABLE_POOL.id, min_bpt_out=MINTED)
        )

        assert multicall_call_names(tx.data) == ["exitPool", "joinPool"]
        assert join_user_data(tx.data)[2] == MINTED

    def test_explicit_balance_skips_query(
        self, migrations: Migrations, balances: FakeBalanceQuery
    ) -> None:
        asyncio.run(migrations.pool2pool(USER, BB_A_USD_POOL.id, BB_A_USD_V2_POOL.id, balance="7"))
        assert balances.calls == []

    def test_unknown_pool(self, migrations: Migrations) -> None:
        with pytest.raises(NotFoundError):
            asyncio.run(migrations.pool2pool(USER, "0x" + "0" * 64, META_STABLE_POOL.id))

    def test_matches_builder(self, migrations: Migrations, composable_tree: PoolNode) -> None:
        """The service builds exactly what the builder builds for the same inputs."""
        tx = asyncio.run(
            migrations.pool2pool(USER, BB_A_USD_POOL.id, BB_A_USD_POOL.id, min_bpt_out=MINTED)
        )
        payload = build_migration(USER, RELAYER, BALANCE, MINTED, composable_tree, composable_tree)
        assert tx.data == payload.data


class TestGauge2Gauge:
    """Tests for Migrations.gauge2gauge()."""

    def test_gauges_resolved_from_pool_ids(
        self, migrations: Migrations, balances: FakeBalanceQuery
    ) -> None:
        tx = asyncio.run(migrations.gauge2gauge(USER, BB_A_USD_POOL.id, BB_A_USD_V2_POOL.id))

        # Staked balance is read from the source gauge
        assert balances.calls == [(BB_A_USD_GAUGE, USER)]
        assert multicall_call_names(tx.data)[0] == "gaugeWithdraw"
        assert multicall_call_names(tx.data)[-1] == "gaugeDeposit"
        (deposit,) = decoded_calls(tx.data, "gaugeDeposit")
        assert deposit[0].lower() == BB_A_USD_V2_GAUGE

    def test_missing_gauge(self, migrations: Migrations) -> None:
        """The weighted pool has no gauge."""
        with pytest.raises(NotFoundError, match="Gauge not found"):
            asyncio.run(migrations.gauge2gauge(USER, BB_A_USD_POOL.id, WEIGHTED_POOL.id))


class TestGetMinBptOut:
    """Tests for the two-phase simulate-then-build flow."""

    def test_requires_simulator(self, migrations: Migrations) -> None:
        with pytest.raises(InvalidInputError, match="call simulator"):
            asyncio.run(migrations.get_min_bpt_out(USER, META_STABLE_POOL.id, META_STABLE_POOL.id))

    def test_simulates_peek_migration(
        self,
        pool_repository: InMemoryPoolRepository,
        gauge_repository: InMemoryGaugeRepository,
        balances: FakeBalanceQuery,
    ) -> None:
        """The simulated payload is the peek migration, sent from the user."""
        simulator = FakeCallSimulator(multicall_return(b"", b"", uint256_result(MINTED)))
        migrations = Migrations(
            RELAYER, pool_repository, gauge_repository, balances, simulator, CONFIG
        )

        min_bpt_out = asyncio.run(
            migrations.get_min_bpt_out(USER, META_STABLE_POOL.id, META_STABLE_POOL.id)
        )

        assert min_bpt_out == MINTED
        ((to, data, sender),) = simulator.calls
        assert (to, sender) == (RELAYER, USER)
        assert multicall_call_names(data)[-1] == "peekChainedReferenceValue"

    def test_round_trip(
        self,
        pool_repository: InMemoryPoolRepository,
        gauge_repository: InMemoryGaugeRepository,
        balances: FakeBalanceQuery,
    ) -> None:
        """Simulate, decode, then rebuild with the decoded minimum."""
        simulator = FakeCallSimulator(
            multicall_return(b"", b"", b"", b"", uint256_result(MINTED), b"")
        )
        migrations = Migrations(
            RELAYER, pool_repository, gauge_repository, balances, simulator, CONFIG
        )

        min_bpt_out = asyncio.run(
            migrations.get_min_bpt_out(USER, BB_A_USD_POOL.id, BB_A_USD_V2_POOL.id, staked=True)
        )
        tx = asyncio.run(
            migrations.gauge2gauge(
                USER, BB_A_USD_POOL.id, BB_A_USD_V2_POOL.id, min_bpt_out=min_bpt_out
            )
        )

        assert min_bpt_out == MINTED - MINTED // 1_000_000
        assert join_user_data(tx.data)[2] == min_bpt_out
        assert "peekChainedReferenceValue" not in multicall_call_names(tx.data)
