"""On-chain capabilities consumed by the migrations service.

Balance queries and static-call simulation are protocols so tests can use
fakes; the Web3 implementations talk to a JSON-RPC node.
"""

from __future__ import annotations

import asyncio
from typing import Any, Protocol

import structlog

from migrator.config import DEFAULT_MIGRATION_CONFIG

logger = structlog.get_logger()


class BalanceQuery(Protocol):
    """Protocol for reading ERC-20 (or gauge) balances."""

    async def balance_of(self, token: str, holder: str) -> int:
        """Balance of ``holder`` in ``token``."""
        ...


class CallSimulator(Protocol):
    """Protocol for executing a transaction as a read-only call."""

    async def call(self, to: str, data: str, sender: str) -> bytes:
        """Return data of ``data`` sent to ``to`` from ``sender``, without committing."""
        ...


# ERC20 ABI - minimal, just balanceOf (gauges expose the same function)
ERC20_BALANCE_OF_ABI = [
    {
        "name": "balanceOf",
        "type": "function",
        "stateMutability": "view",
        "inputs": [{"name": "account", "type": "address"}],
        "outputs": [{"name": "", "type": "uint256"}],
    }
]


def _web3(rpc_url: str) -> Any:
    try:
        from web3 import Web3
    except ImportError as e:
        raise ImportError(
            "web3 package required for RPC access. Install with: pip install bpt-migrator[rpc]"
        ) from e
    return Web3(Web3.HTTPProvider(rpc_url))


class Web3BalanceQuery:
    """Reads balances with ``eth_call`` through a blocking Web3 client."""

    def __init__(self, rpc_url: str) -> None:
        self.w3 = _web3(rpc_url)

    async def balance_of(self, token: str, holder: str) -> int:
        from web3 import Web3

        contract = self.w3.eth.contract(
            address=Web3.to_checksum_address(token),
            abi=ERC20_BALANCE_OF_ABI,
        )
        call = contract.functions.balanceOf(Web3.to_checksum_address(holder)).call
        balance = int(await asyncio.to_thread(call))
        logger.debug("balance_fetched", token=token, holder=holder, balance=balance)
        return balance


class Web3CallSimulator:
    """Simulates a migration with a static ``eth_call``.

    The relayer must already be approved by ``sender`` for the call to
    succeed, as it would for the real transaction.
    """

    def __init__(
        self,
        rpc_url: str,
        gas_limit: int = DEFAULT_MIGRATION_CONFIG.simulation_gas_limit,
    ) -> None:
        self.w3 = _web3(rpc_url)
        self.gas_limit = gas_limit

    async def call(self, to: str, data: str, sender: str) -> bytes:
        from web3 import Web3

        transaction = {
            "to": Web3.to_checksum_address(to),
            "from": Web3.to_checksum_address(sender),
            "data": data,
            "gas": self.gas_limit,
        }
        result = await asyncio.to_thread(self.w3.eth.call, transaction)
        logger.debug("static_call_completed", to=to, sender=sender, size=len(result))
        return bytes(result)


__all__ = [
    "BalanceQuery",
    "CallSimulator",
    "ERC20_BALANCE_OF_ABI",
    "Web3BalanceQuery",
    "Web3CallSimulator",
]
