"""Migration step building, decoding and orchestration."""

from migrator.migration.builder import MigrationPayload, build_migration
from migrator.migration.decoder import decode_min_bpt_out
from migrator.migration.plan import MigrationConditions, StepPlan, plan_steps
from migrator.migration.service import Migrations, MigrationTransaction
from migrator.migration.steps import (
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

__all__ = [
    # Builder
    "MigrationPayload",
    "build_migration",
    # Decoder
    "decode_min_bpt_out",
    # Decision table
    "MigrationConditions",
    "StepPlan",
    "plan_steps",
    # Service
    "Migrations",
    "MigrationTransaction",
    # Steps
    "StepKind",
    "MigrationStep",
    "GaugeWithdrawStep",
    "ExitStep",
    "SwapRoute",
    "SwapStep",
    "JoinStep",
    "PeekStep",
    "GaugeDepositStep",
]
