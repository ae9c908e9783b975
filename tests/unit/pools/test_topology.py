"""Tests for pool topology resolution."""

import asyncio

import pytest

from migrator.errors import NotFoundError
from migrator.models.pools import PoolRecord, PoolToken
from migrator.pools import InMemoryPoolRepository, PoolNode, resolve_pool
from tests.helpers.constants import (
    B_DAI,
    B_DAI_V2,
    B_USDC,
    B_USDC_V2,
    B_USDT,
    B_USDT_V2,
    BB_A_USD,
    BB_A_USD_V2,
    USDT,
    WETH,
    WSTETH,
)
from tests.helpers.pools import (
    B_USDT_POOL,
    BB_A_USD_POOL,
    META_STABLE_POOL,
    make_pool,
    make_pool_id,
)


def resolve(pool_id: str, repository: InMemoryPoolRepository) -> PoolNode:
    return asyncio.run(resolve_pool(pool_id, repository))


class TestResolvePool:
    """Tests for resolve_pool()."""

    def test_flat_pool_has_leaf_children(self, meta_stable_tree: PoolNode) -> None:
        """A pool of plain tokens resolves to one level of leaves."""
        assert meta_stable_tree.pool_id == META_STABLE_POOL.id
        assert meta_stable_tree.pool_type == "MetaStable"
        assert all(child.is_leaf for child in meta_stable_tree.children)

    def test_children_sorted_by_lowercase_address(self, meta_stable_tree: PoolNode) -> None:
        """Tokens are listed in vault order regardless of the record's order."""
        assert meta_stable_tree.token_addresses == [WSTETH, WETH]

    def test_sorting_is_case_insensitive(self) -> None:
        """Mixed-case addresses sort by their lowercase form."""
        upper = "0x" + "B" * 40
        lower = "0x" + "a" * 40
        pool = make_pool("0x" + "1" * 40, [upper, lower], "Weighted", "1")
        tree = resolve(pool.id, InMemoryPoolRepository([pool]))

        assert tree.token_addresses == [lower, upper]

    @pytest.mark.parametrize(
        "tree_fixture", ["meta_stable_tree", "composable_tree", "composable_v2_tree"]
    )
    def test_every_level_sorted(self, tree_fixture: str, request: pytest.FixtureRequest) -> None:
        """Nested pools are sorted too, not just the root."""
        nodes = [request.getfixturevalue(tree_fixture)]
        levels = 0
        while nodes:
            node = nodes.pop()
            if node.is_leaf:
                continue
            levels += 1
            assert node.token_addresses == sorted(node.token_addresses, key=str.lower)
            nodes.extend(node.children)
        assert levels >= 1

    def test_nested_mixed_case_sorted(self) -> None:
        """A nested pool listed with mixed-case tokens resolves in vault order."""
        inner_address = "0x" + "2" * 40
        upper = "0x" + "D" * 40
        lower = "0x" + "c" * 40
        inner = make_pool(inner_address, [upper, lower, inner_address], "Weighted", "2")
        outer = make_pool("0x" + "1" * 40, [WETH, inner_address], "Weighted", "1")
        tree = resolve(outer.id, InMemoryPoolRepository([outer, inner]))

        (nested,) = [child for child in tree.children if not child.is_leaf]
        assert nested.token_addresses == [inner_address, lower, upper]

    def test_composable_pool_expands_linear_children(self, composable_tree: PoolNode) -> None:
        """Nested pools are resolved recursively with their own metadata."""
        assert composable_tree.token_addresses == [B_USDT, B_DAI, B_USDC, BB_A_USD]

        usdt_slot = composable_tree.children[0]
        assert usdt_slot.pool_id == B_USDT_POOL.id
        assert usdt_slot.is_linear
        assert usdt_slot.main_token is not None
        assert usdt_slot.main_token.address == USDT

    def test_composable_self_token_not_expanded(self, composable_tree: PoolNode) -> None:
        """A composable pool's own BPT stays a leaf."""
        own = composable_tree.children[composable_tree.index_of(BB_A_USD)]
        assert own.is_leaf
        assert own.pool_id is None

    def test_linear_self_token_not_expanded(self, composable_tree: PoolNode) -> None:
        """Linear pools list their own BPT too; it is not expanded again."""
        usdt_slot = composable_tree.children[0]
        own = usdt_slot.children[usdt_slot.index_of(B_USDT)]
        assert own.is_leaf

    def test_root_metadata(self, composable_v2_tree: PoolNode) -> None:
        """Root carries pool id, type and version."""
        assert composable_v2_tree.pool_type == "ComposableStable"
        assert composable_v2_tree.pool_type_version == 3
        assert composable_v2_tree.token_addresses == [B_USDT_V2, B_USDC_V2, B_DAI_V2, BB_A_USD_V2]

    def test_unknown_pool_raises_not_found(self, pool_repository: InMemoryPoolRepository) -> None:
        """An unknown root id fails with NotFoundError."""
        with pytest.raises(NotFoundError, match="not found"):
            resolve(make_pool_id("0x" + "9" * 40, "1"), pool_repository)

    def test_resolution_is_idempotent(self, pool_repository: InMemoryPoolRepository) -> None:
        """Resolving the same id twice yields equal trees."""
        first = resolve(BB_A_USD_POOL.id, pool_repository)
        second = resolve(BB_A_USD_POOL.id, pool_repository)
        assert first == second

    def test_one_lookup_per_token(self, pool_repository: InMemoryPoolRepository) -> None:
        """One root lookup plus one address lookup per token at each expanded level."""
        resolve(BB_A_USD_POOL.id, pool_repository)

        id_lookups = [call for call in pool_repository.calls if call[0] == "id"]
        address_lookups = [call for call in pool_repository.calls if call[0] == "address"]
        assert len(id_lookups) == 1
        # 3 linear slots (own BPT skipped), each with 2 tokens besides its own BPT
        assert len(address_lookups) == 3 + 3 * 2

    def test_cycle_terminates(self) -> None:
        """Pools listing each other's BPT do not recurse forever."""
        a = "0x" + "a" * 40
        b = "0x" + "b" * 40
        pool_a = make_pool(a, [b, WETH], "Weighted", "a")
        pool_b = make_pool(b, [a, WETH], "Weighted", "b")

        tree = resolve(pool_a.id, InMemoryPoolRepository([pool_a, pool_b]))

        nested_b = tree.children[tree.index_of(b)]
        assert nested_b.pool_id == pool_b.id
        # a is an ancestor of b, so it stays a leaf
        assert nested_b.children[nested_b.index_of(a)].is_leaf

    def test_token_address_kept_as_listed(self) -> None:
        """A nested node keeps the address casing used by its parent."""
        nested_address = "0x" + "c" * 40
        nested = make_pool(nested_address, [WETH, USDT], "Weighted", "c")
        parent = PoolRecord(
            id=make_pool_id("0x" + "d" * 40, "d"),
            address="0x" + "d" * 40,
            tokens=[PoolToken(address=nested_address.upper().replace("0X", "0x"))],
            pool_type="Weighted",
        )

        tree = resolve(parent.id, InMemoryPoolRepository([parent, nested]))

        assert tree.children[0].address == "0x" + "C" * 40
        assert tree.children[0].pool_id == nested.id
