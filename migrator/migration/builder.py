"""Migration multicall builder.

Composes unstake, exit, swap, join, peek and restake into one relayer
multicall. Amounts produced by one step are wired into later steps through
chained references, since they are only known when the relayer executes.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

import structlog

from migrator.constants import MAX_INT256
from migrator.errors import InvalidInputError
from migrator.migration.plan import MigrationConditions, StepPlan, plan_steps
from migrator.migration.steps import (
    Amount,
    ExitStep,
    GaugeDepositStep,
    GaugeWithdrawStep,
    JoinStep,
    MigrationStep,
    PeekStep,
    StepKind,
    SwapRoute,
    SwapStep,
)
from migrator.models.types import normalize_address
from migrator.pools.node import PoolNode
from migrator.relayer.encoding import encode_multicall
from migrator.relayer.references import ChainedReference, OutputReference, ReferenceAllocator
from migrator.routing.paths import SwapPath, build_paths

logger = structlog.get_logger()


@dataclass(frozen=True)
class MigrationPayload:
    """The encoded multicall and the steps it was built from.

    Attributes:
        to: Relayer address the transaction is sent to
        data: 0x-prefixed ``multicall`` calldata
        steps: Steps in execution order
        plan: Decision table result the steps follow
        references: Allocator holding producers/consumers of every reference
    """

    to: str
    data: str
    steps: tuple[MigrationStep, ...]
    plan: StepPlan
    references: ReferenceAllocator

    @property
    def calldata(self) -> bytes:
        return bytes.fromhex(self.data[2:])

    @property
    def step_kinds(self) -> tuple[StepKind, ...]:
        return tuple(step.kind for step in self.steps)

    def step(self, kind: StepKind) -> MigrationStep | None:
        """The step of a given kind, None if the migration does not include it."""
        for step in self.steps:
            if step.kind is kind:
                return step
        return None


def parse_amount(value: int | str, name: str) -> int:
    """Accept an int or decimal string amount.

    Raises:
        InvalidInputError: If the value is not a non-negative integer
    """
    try:
        amount = int(value)
    except (TypeError, ValueError) as err:
        raise InvalidInputError(f"{name} must be an integer amount: {value!r}") from err
    if amount < 0:
        raise InvalidInputError(f"{name} cannot be negative: {value}")
    return amount


def build_migration(
    user: str,
    relayer: str,
    bpt_amount: int | str,
    min_bpt_out: int | str,
    from_tree: PoolNode,
    to_tree: PoolNode,
    peek: bool = False,
    from_gauge: str | None = None,
    to_gauge: str | None = None,
    deadline: int = MAX_INT256,
) -> MigrationPayload:
    """Build the relayer multicall migrating ``bpt_amount`` from one pool to another.

    Args:
        user: Owner of the position; receives the new BPT or gauge stake
        relayer: Batch relayer executing the multicall
        bpt_amount: BPT (or staked BPT) to migrate
        min_bpt_out: Minimum BPT minted by the join. 0 leaves the join
            unprotected and is only meant for a peek simulation.
        from_tree: Resolved source pool
        to_tree: Resolved destination pool
        peek: Append a call surfacing the minted amount in the return data
        from_gauge: Source gauge to unstake from, if the position is staked
        to_gauge: Destination gauge to restake into
        deadline: Batch swap deadline (unix seconds)

    Returns:
        MigrationPayload with the encoded multicall

    Raises:
        InvalidPoolError: If either pool lacks id, tokens or pool type
        InvalidInputError: If amounts or step arguments are inconsistent
    """
    from_tree.require_pool_data()
    to_tree.require_pool_data()
    bpt_amount = parse_amount(bpt_amount, "bpt_amount")
    min_bpt_out = parse_amount(min_bpt_out, "min_bpt_out")

    conditions = MigrationConditions(
        has_from_gauge=from_gauge is not None,
        has_to_gauge=to_gauge is not None,
        source_pool_type=from_tree.pool_type,  # type: ignore[arg-type]
        source_pool_type_version=from_tree.pool_type_version,
        peek=peek,
    )
    exit_token_index = conditions.exit_token_index
    exit_slots = (
        [exit_token_index] if exit_token_index > -1 else list(range(len(from_tree.children)))
    )
    paths = build_paths(from_tree, to_tree, exit_token_index)
    plan = plan_steps(replace(conditions, paths_non_empty=any(paths)))

    builder = _StepBuilder(
        user=user,
        relayer=relayer,
        from_tree=from_tree,
        to_tree=to_tree,
        from_gauge=from_gauge,
        to_gauge=to_gauge,
    )
    steps: list[MigrationStep] = []
    for kind in plan.kinds:
        if kind is StepKind.GAUGE_WITHDRAW:
            steps.append(builder.gauge_withdraw(bpt_amount))
        elif kind is StepKind.EXIT:
            steps.append(builder.exit(bpt_amount, exit_token_index, exit_slots))
        elif kind is StepKind.SWAP:
            steps.append(builder.swap(exit_slots, paths, deadline))
        elif kind is StepKind.JOIN:
            steps.append(builder.join(min_bpt_out))
        elif kind is StepKind.PEEK:
            steps.append(builder.peek())
        elif kind is StepKind.GAUGE_DEPOSIT:
            steps.append(builder.gauge_deposit())

    calldata = encode_multicall([step.encode() for step in steps])

    logger.info(
        "migration_built",
        from_pool=from_tree.pool_id,
        to_pool=to_tree.pool_id,
        steps=[kind.value for kind in plan.kinds],
        bpt_amount=bpt_amount,
        min_bpt_out=min_bpt_out,
        peek=peek,
    )

    return MigrationPayload(
        to=relayer,
        data="0x" + calldata.hex(),
        steps=tuple(steps),
        plan=plan,
        references=builder.references,
    )


class _StepBuilder:
    """Per-build state: who sends what, and which references exist."""

    def __init__(
        self,
        user: str,
        relayer: str,
        from_tree: PoolNode,
        to_tree: PoolNode,
        from_gauge: str | None,
        to_gauge: str | None,
    ) -> None:
        self.user = user
        self.relayer = relayer
        self.from_tree = from_tree
        self.to_tree = to_tree
        self.from_gauge = from_gauge
        self.to_gauge = to_gauge
        self.references = ReferenceAllocator()

        self.exit_references: dict[int, ChainedReference] = {}
        self.swap_references: dict[int, ChainedReference] = {}
        # Final asset of each swap route -> its output reference
        self.swap_targets: dict[str, ChainedReference] = {}
        self.swapped_into: dict[int, str] = {}
        self.join_reference: ChainedReference | None = None

    def gauge_withdraw(self, bpt_amount: int) -> GaugeWithdrawStep:
        # The exit always follows, so the relayer takes custody of the BPT
        return GaugeWithdrawStep(
            gauge=self.from_gauge,  # type: ignore[arg-type]
            sender=self.user,
            recipient=self.relayer,
            amount=bpt_amount,
        )

    def exit(self, bpt_amount: int, exit_token_index: int, exit_slots: list[int]) -> ExitStep:
        self.exit_references = {slot: self.references.exit_output(slot) for slot in exit_slots}
        return ExitStep(
            pool_id=self.from_tree.pool_id,  # type: ignore[arg-type]
            assets=tuple(self.from_tree.token_addresses),
            exit_token_index=exit_token_index,
            output_references=tuple(
                OutputReference(index=slot, key=reference)
                for slot, reference in self.exit_references.items()
            ),
            amount=bpt_amount,
            sender=self.relayer if self.from_gauge else self.user,
            recipient=self.relayer,
            is_composable=self.from_tree.is_composable_stable,
        )

    def swap(self, exit_slots: list[int], paths: list[SwapPath], deadline: int) -> SwapStep:
        routes: list[SwapRoute] = []
        # paths line up with exit_slots
        for slot, path in zip(exit_slots, paths, strict=True):
            if not path:
                continue
            output = self.references.swap_output(slot)
            routes.append(
                SwapRoute(
                    path=path,
                    input_amount=self.references.consume(self.exit_references[slot], "swap"),
                    output_reference=output,
                )
            )
            target = normalize_address(path[-1].asset_out)
            self.swap_references[slot] = output
            self.swap_targets[target] = output
            self.swapped_into[slot] = target

        logger.debug("swap_routes_built", route_count=len(routes), slots=list(self.swap_references))
        return SwapStep(
            sender=self.relayer,
            recipient=self.relayer,
            routes=tuple(routes),
            deadline=deadline,
        )

    def _positional_amount(self, token: str) -> ChainedReference | None:
        """Reference left at the source slot holding the same token."""
        from_idx = self.from_tree.index_of(token)
        if from_idx in self.swap_references:
            # A swap spent the exit output; its output is only this token's
            # amount when the route ends in this token.
            if self.swapped_into[from_idx] == normalize_address(token):
                return self.swap_references[from_idx]
            return None
        return self.exit_references.get(from_idx)

    def join_amounts(self, tokens: list[str]) -> tuple[Amount, ...]:
        """Amount available for each destination token.

        Positional matches are taken first, then routes ending in a token
        fill what is left. Each reference is handed to at most one token.
        """
        found = [self._positional_amount(token) for token in tokens]
        taken = {reference.key for reference in found if reference is not None}
        for position, token in enumerate(tokens):
            if found[position] is not None:
                continue
            swapped = self.swap_targets.get(normalize_address(token))
            if swapped is not None and swapped.key not in taken:
                found[position] = swapped
                taken.add(swapped.key)

        amounts: list[Amount] = []
        for token, reference in zip(tokens, found, strict=True):
            if reference is None:
                # Nothing was exited or swapped into this token
                logger.warning(
                    "join_amount_defaulted_to_zero",
                    to_pool=self.to_tree.pool_id,
                    token=token,
                )
                amounts.append(0)
            else:
                amounts.append(self.references.consume(reference, "join"))
        return tuple(amounts)

    def join(self, min_bpt_out: int) -> JoinStep:
        pool_address = normalize_address(self.to_tree.address)
        amounts = self.join_amounts(
            [
                token
                for token in self.to_tree.token_addresses
                if normalize_address(token) != pool_address
            ]
        )
        self.join_reference = self.references.join_output()
        return JoinStep(
            pool_id=self.to_tree.pool_id,  # type: ignore[arg-type]
            pool_address=self.to_tree.address,
            assets=tuple(self.to_tree.token_addresses),
            amounts_in=amounts,
            min_bpt_out=min_bpt_out,
            output_reference=self.join_reference,
            sender=self.relayer,
            recipient=self.relayer if self.to_gauge else self.user,
        )

    def _minted(self, consumer: str, read_only: bool = False) -> ChainedReference:
        if self.join_reference is None:
            raise InvalidInputError(f"{consumer} requires the join output")
        reference = self.join_reference.read_only() if read_only else self.join_reference
        return self.references.consume(reference, consumer)

    def peek(self) -> PeekStep:
        # Read-only so a following gauge deposit still sees the value
        return PeekStep(reference=self._minted("peek", read_only=True))

    def gauge_deposit(self) -> GaugeDepositStep:
        return GaugeDepositStep(
            gauge=self.to_gauge,  # type: ignore[arg-type]
            sender=self.relayer,
            recipient=self.user,
            amount=self._minted("gaugeDeposit"),
        )


__all__ = ["MigrationPayload", "build_migration", "parse_amount"]
