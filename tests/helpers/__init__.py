"""Test helpers module for shared test utilities.

This module consolidates common test utilities to reduce duplication:
- constants: Accounts, token and pool addresses
- pools: Pool and gauge record factories and the test catalogue
- calldata: Decoding helpers for encoded payloads
- fakes: Balance query and call simulator fakes
"""

from tests.helpers.calldata import (
    decoded_calls,
    join_user_data,
    multicall_call_names,
    multicall_return,
    uint256_result,
)
from tests.helpers.constants import RELAYER, USER
from tests.helpers.fakes import FakeBalanceQuery, FakeCallSimulator
from tests.helpers.pools import ALL_GAUGES, ALL_POOLS, make_linear_pool, make_pool

__all__ = [
    # Constants
    "USER",
    "RELAYER",
    # Pools
    "ALL_POOLS",
    "ALL_GAUGES",
    "make_pool",
    "make_linear_pool",
    # Fakes
    "FakeBalanceQuery",
    "FakeCallSimulator",
    # Calldata
    "multicall_call_names",
    "decoded_calls",
    "join_user_data",
    "multicall_return",
    "uint256_result",
]
