"""Migration steps.

Each step is one relayer sub-call of the migration multicall. Steps are
plain data; ``encode()`` produces the calldata the relayer executes.
Amounts are either literal integers or chained references.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Union

from eth_abi import encode  # type: ignore[attr-defined]

from migrator.constants import (
    COMPOSABLE_EXACT_BPT_IN_FOR_ALL_TOKENS_OUT,
    EXACT_BPT_IN_FOR_ONE_TOKEN_OUT,
    EXACT_BPT_IN_FOR_TOKENS_OUT,
    EXACT_TOKENS_IN_FOR_BPT_OUT,
    MAX_INT256,
    POOL_KIND_WEIGHTED,
    SWAP_KIND_GIVEN_IN,
)
from migrator.errors import InvalidInputError
from migrator.models.types import normalize_address
from migrator.relayer.encoding import address_bytes, encode_call, pool_id_bytes
from migrator.relayer.references import ChainedReference, OutputReference
from migrator.routing.paths import SwapPath

# A literal amount or a placeholder resolved by the relayer
Amount = Union[int, ChainedReference]


class StepKind(str, Enum):
    """Relayer sub-call kinds, in the order a migration executes them."""

    GAUGE_WITHDRAW = "gaugeWithdraw"
    EXIT = "exit"
    SWAP = "swap"
    JOIN = "join"
    PEEK = "peek"
    GAUGE_DEPOSIT = "gaugeDeposit"


def amount_value(amount: Amount) -> int:
    """The uint256 passed to the relayer for an amount.

    Raises:
        InvalidInputError: If a literal amount is negative
    """
    if isinstance(amount, ChainedReference):
        return amount.value
    if amount < 0:
        raise InvalidInputError(f"Amount cannot be negative: {amount}")
    return amount


@dataclass(frozen=True)
class GaugeWithdrawStep:
    """Unstake BPT from a gauge."""

    kind: ClassVar[StepKind] = StepKind.GAUGE_WITHDRAW

    gauge: str
    sender: str
    recipient: str
    amount: Amount

    def encode(self) -> bytes:
        return encode_call(
            "gaugeWithdraw",
            [
                address_bytes(self.gauge),
                address_bytes(self.sender),
                address_bytes(self.recipient),
                amount_value(self.amount),
            ],
        )


@dataclass(frozen=True)
class GaugeDepositStep:
    """Stake BPT into a gauge on behalf of the recipient."""

    kind: ClassVar[StepKind] = StepKind.GAUGE_DEPOSIT

    gauge: str
    sender: str
    recipient: str
    amount: Amount

    def encode(self) -> bytes:
        return encode_call(
            "gaugeDeposit",
            [
                address_bytes(self.gauge),
                address_bytes(self.sender),
                address_bytes(self.recipient),
                amount_value(self.amount),
            ],
        )


@dataclass(frozen=True)
class ExitStep:
    """Exit a pool with an exact BPT amount.

    With ``exit_token_index >= 0`` the exit pays out a single token,
    otherwise it is proportional across all assets. Output references
    capture the amounts paid out at their asset indexes.
    """

    kind: ClassVar[StepKind] = StepKind.EXIT

    pool_id: str
    assets: tuple[str, ...]
    exit_token_index: int
    output_references: tuple[OutputReference, ...]
    amount: int
    sender: str
    recipient: str
    is_composable: bool = False
    to_internal_balance: bool = True

    def __post_init__(self) -> None:
        if self.exit_token_index >= len(self.assets):
            raise InvalidInputError(
                f"Exit token index {self.exit_token_index} out of range for {len(self.assets)} assets"
            )
        for reference in self.output_references:
            if not 0 <= reference.index < len(self.assets):
                raise InvalidInputError(
                    f"Output reference index {reference.index} out of range "
                    f"for {len(self.assets)} assets"
                )
        if self.amount < 0:
            raise InvalidInputError(f"Exit amount cannot be negative: {self.amount}")

    @property
    def user_data(self) -> bytes:
        if self.exit_token_index > -1:
            return encode(
                ["uint256", "uint256", "uint256"],
                [EXACT_BPT_IN_FOR_ONE_TOKEN_OUT, self.amount, self.exit_token_index],
            )
        exit_kind = (
            COMPOSABLE_EXACT_BPT_IN_FOR_ALL_TOKENS_OUT
            if self.is_composable
            else EXACT_BPT_IN_FOR_TOKENS_OUT
        )
        return encode(["uint256", "uint256"], [exit_kind, self.amount])

    def encode(self) -> bytes:
        request = (
            [address_bytes(asset) for asset in self.assets],
            [0] * len(self.assets),
            self.user_data,
            self.to_internal_balance,
        )
        return encode_call(
            "exitPool",
            [
                pool_id_bytes(self.pool_id),
                POOL_KIND_WEIGHTED,
                address_bytes(self.sender),
                address_bytes(self.recipient),
                request,
                [reference.as_abi() for reference in self.output_references],
            ],
        )


@dataclass(frozen=True)
class SwapRoute:
    """Swap ``input_amount`` along ``path`` and store the result in ``output_reference``."""

    path: SwapPath
    input_amount: Amount
    output_reference: ChainedReference

    def __post_init__(self) -> None:
        if not self.path:
            raise InvalidInputError("Swap route must have at least one hop")


@dataclass(frozen=True)
class SwapStep:
    """One batch swap executing every route (exact amounts in)."""

    kind: ClassVar[StepKind] = StepKind.SWAP

    sender: str
    recipient: str
    routes: tuple[SwapRoute, ...]
    deadline: int = MAX_INT256
    to_internal_balance: bool = True

    def batch(
        self,
    ) -> tuple[list[tuple[bytes, int, int, int, bytes]], list[str], list[int], list[OutputReference]]:
        """Flatten the routes into vault batch swap arguments.

        Each hop contributes its own ``assetIn``/``assetOut`` pair to
        ``assets``; the first hop of a route spends the route input and later
        hops spend the previous hop's output (amount 0).

        Returns:
            Tuple of (swap steps, assets, limits, output references)
        """
        swaps: list[tuple[bytes, int, int, int, bytes]] = []
        assets: list[str] = []
        limits: list[int] = []
        output_references: list[OutputReference] = []

        for route in self.routes:
            offset = len(assets)
            for i, hop in enumerate(route.path):
                assets.extend([hop.asset_in, hop.asset_out])
                limits.extend([MAX_INT256, 0])
                amount = amount_value(route.input_amount) if i == 0 else 0
                swaps.append(
                    (pool_id_bytes(hop.pool_id), offset + i * 2, offset + i * 2 + 1, amount, b"")
                )
            output_references.append(
                OutputReference(index=len(assets) - 1, key=route.output_reference)
            )

        return swaps, assets, limits, output_references

    def encode(self) -> bytes:
        swaps, assets, limits, output_references = self.batch()
        funds = (
            address_bytes(self.sender),
            True,
            address_bytes(self.recipient),
            self.to_internal_balance,
        )
        return encode_call(
            "batchSwap",
            [
                SWAP_KIND_GIVEN_IN,
                swaps,
                [address_bytes(asset) for asset in assets],
                funds,
                limits,
                self.deadline,
                0,
                [reference.as_abi() for reference in output_references],
            ],
        )


@dataclass(frozen=True)
class JoinStep:
    """Join a pool with exact amounts in, capturing the BPT minted.

    ``amounts_in`` covers every asset except the pool's own BPT (listed by
    composable pools).
    """

    kind: ClassVar[StepKind] = StepKind.JOIN

    pool_id: str
    pool_address: str
    assets: tuple[str, ...]
    amounts_in: tuple[Amount, ...]
    min_bpt_out: int
    output_reference: ChainedReference
    sender: str
    recipient: str
    from_internal_balance: bool = True

    def __post_init__(self) -> None:
        pool_address = normalize_address(self.pool_address)
        expected = sum(1 for asset in self.assets if normalize_address(asset) != pool_address)
        if len(self.amounts_in) != expected:
            raise InvalidInputError(
                f"Join expects {expected} amounts for {len(self.assets)} assets, "
                f"got {len(self.amounts_in)}"
            )
        if self.min_bpt_out < 0:
            raise InvalidInputError(f"Minimum BPT out cannot be negative: {self.min_bpt_out}")

    @property
    def user_data(self) -> bytes:
        return encode(
            ["uint256", "uint256[]", "uint256"],
            [
                EXACT_TOKENS_IN_FOR_BPT_OUT,
                [amount_value(amount) for amount in self.amounts_in],
                self.min_bpt_out,
            ],
        )

    def encode(self) -> bytes:
        request = (
            [address_bytes(asset) for asset in self.assets],
            [MAX_INT256] * len(self.assets),
            self.user_data,
            self.from_internal_balance,
        )
        return encode_call(
            "joinPool",
            [
                pool_id_bytes(self.pool_id),
                POOL_KIND_WEIGHTED,
                address_bytes(self.sender),
                address_bytes(self.recipient),
                request,
                0,
                self.output_reference.value,
            ],
        )


@dataclass(frozen=True)
class PeekStep:
    """Surface a chained reference's value in the multicall return data."""

    kind: ClassVar[StepKind] = StepKind.PEEK

    reference: ChainedReference

    def encode(self) -> bytes:
        return encode_call("peekChainedReferenceValue", [self.reference.value])


MigrationStep = Union[
    GaugeWithdrawStep,
    ExitStep,
    SwapStep,
    JoinStep,
    PeekStep,
    GaugeDepositStep,
]


__all__ = [
    "Amount",
    "StepKind",
    "amount_value",
    "GaugeWithdrawStep",
    "GaugeDepositStep",
    "ExitStep",
    "SwapRoute",
    "SwapStep",
    "JoinStep",
    "PeekStep",
    "MigrationStep",
]
