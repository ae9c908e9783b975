"""Step selection for a migration.

Which steps a migration needs is decided once, from the conditions below,
by walking ``STEP_TABLE`` in its fixed causal order. Steps are never
reordered; a row is either included or skipped.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from migrator.constants import COMPOSABLE_V1_EXIT_TOKEN_INDEX
from migrator.migration.steps import StepKind
from migrator.pools.node import COMPOSABLE_STABLE


@dataclass(frozen=True)
class MigrationConditions:
    """Inputs of the step decision table."""

    has_from_gauge: bool
    has_to_gauge: bool
    source_pool_type: str
    source_pool_type_version: int | None = None
    paths_non_empty: bool = False
    peek: bool = False

    @property
    def source_requires_swap(self) -> bool:
        """Composable stable pools hold wrapped tokens that must be swapped."""
        return self.source_pool_type == COMPOSABLE_STABLE

    @property
    def exit_token_index(self) -> int:
        """Single exit token for ComposableStable v1, -1 for a proportional exit.

        V1 composable pools cannot exit proportionally because their own BPT
        is one of the pool tokens.
        """
        if self.source_pool_type == COMPOSABLE_STABLE and self.source_pool_type_version == 1:
            return COMPOSABLE_V1_EXIT_TOKEN_INDEX
        return -1


# Fixed causal order; each row says when the step is included
STEP_TABLE: tuple[tuple[StepKind, Callable[[MigrationConditions], bool]], ...] = (
    (StepKind.GAUGE_WITHDRAW, lambda c: c.has_from_gauge),
    (StepKind.EXIT, lambda c: True),
    (StepKind.SWAP, lambda c: c.source_requires_swap or c.paths_non_empty),
    (StepKind.JOIN, lambda c: True),
    (StepKind.PEEK, lambda c: c.peek),
    (StepKind.GAUGE_DEPOSIT, lambda c: c.has_to_gauge),
)


@dataclass(frozen=True)
class StepPlan:
    """Ordered step kinds chosen for one migration."""

    conditions: MigrationConditions
    kinds: tuple[StepKind, ...]


def plan_steps(conditions: MigrationConditions) -> StepPlan:
    """Select the steps for a migration from the decision table."""
    kinds = tuple(kind for kind, included in STEP_TABLE if included(conditions))
    return StepPlan(conditions=conditions, kinds=kinds)


__all__ = ["MigrationConditions", "STEP_TABLE", "StepPlan", "plan_steps"]
