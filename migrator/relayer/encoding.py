"""Batch relayer calldata encoding.

Only the relayer functions used by migrations are described here. Arguments
are ABI-encoded with eth_abi; selectors are derived from the signatures.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from eth_abi import decode, encode  # type: ignore[attr-defined]
from eth_abi.exceptions import DecodingError
from eth_utils import function_signature_to_4byte_selector

from migrator.errors import InvalidInputError, MigrationDecodeError
from migrator.models.types import is_valid_address, normalize_address

# (address[] assets, uint256[] limits, bytes userData, bool internalBalance)
POOL_REQUEST = "(address[],uint256[],bytes,bool)"
# (uint256 index, uint256 key)[]
OUTPUT_REFERENCES = "(uint256,uint256)[]"
# (bytes32 poolId, uint256 assetInIndex, uint256 assetOutIndex, uint256 amount, bytes userData)[]
BATCH_SWAP_STEPS = "(bytes32,uint256,uint256,uint256,bytes)[]"
# (address sender, bool fromInternalBalance, address recipient, bool toInternalBalance)
FUND_MANAGEMENT = "(address,bool,address,bool)"

# Relayer function name -> argument types
RELAYER_FUNCTIONS: dict[str, tuple[str, ...]] = {
    "multicall": ("bytes[]",),
    "gaugeWithdraw": ("address", "address", "address", "uint256"),
    "gaugeDeposit": ("address", "address", "address", "uint256"),
    "exitPool": ("bytes32", "uint8", "address", "address", POOL_REQUEST, OUTPUT_REFERENCES),
    "joinPool": ("bytes32", "uint8", "address", "address", POOL_REQUEST, "uint256", "uint256"),
    "batchSwap": (
        "uint8",
        BATCH_SWAP_STEPS,
        "address[]",
        FUND_MANAGEMENT,
        "int256[]",
        "uint256",
        "uint256",
        OUTPUT_REFERENCES,
    ),
    "peekChainedReferenceValue": ("uint256",),
}

# Relayer function name -> return types (functions returning nothing are omitted)
RELAYER_RETURNS: dict[str, tuple[str, ...]] = {
    "multicall": ("bytes[]",),
    "batchSwap": ("int256[]",),
    "peekChainedReferenceValue": ("uint256",),
}


def function_signature(name: str) -> str:
    """Canonical signature, e.g. ``gaugeDeposit(address,address,address,uint256)``."""
    try:
        types = RELAYER_FUNCTIONS[name]
    except KeyError as err:
        raise InvalidInputError(f"Unknown relayer function: {name}") from err
    return f"{name}({','.join(types)})"


# Selectors computed once at import time
FUNCTION_SELECTORS: dict[str, bytes] = {
    name: function_signature_to_4byte_selector(function_signature(name))
    for name in RELAYER_FUNCTIONS
}


def address_bytes(address: str) -> bytes:
    """Convert an address (any case) to its 20 raw bytes.

    Raises:
        InvalidInputError: If the address is malformed
    """
    normalized = normalize_address(address)
    if not is_valid_address(normalized):
        raise InvalidInputError(f"Invalid address: {address}")
    return bytes.fromhex(normalized[2:])


def pool_id_bytes(pool_id: str) -> bytes:
    """Convert a 32-byte hex pool id to bytes."""
    raw = hex_to_bytes(pool_id)
    if len(raw) != 32:
        raise InvalidInputError(f"Pool id must be 32 bytes: {pool_id}")
    return raw


def hex_to_bytes(data: str | bytes) -> bytes:
    """Accept raw bytes or a 0x-prefixed hex string.

    Raises:
        InvalidInputError: If the string is not valid hex
    """
    if isinstance(data, bytes | bytearray):
        return bytes(data)
    text = data[2:] if data.startswith(("0x", "0X")) else data
    try:
        return bytes.fromhex(text)
    except ValueError as err:
        raise InvalidInputError(f"Invalid hex data: {data[:20]}...") from err


def encode_call(name: str, args: Sequence[Any]) -> bytes:
    """Encode a relayer call: selector followed by ABI-encoded arguments."""
    types = RELAYER_FUNCTIONS.get(name)
    if types is None:
        raise InvalidInputError(f"Unknown relayer function: {name}")
    if len(args) != len(types):
        raise InvalidInputError(f"{name} expects {len(types)} arguments, got {len(args)}")
    return FUNCTION_SELECTORS[name] + encode(list(types), list(args))


def decode_call(name: str, calldata: str | bytes) -> tuple[Any, ...]:
    """Decode the arguments of an encoded relayer call.

    Raises:
        MigrationDecodeError: If the selector does not match or data is malformed
    """
    raw = hex_to_bytes(calldata)
    selector = FUNCTION_SELECTORS.get(name)
    if selector is None:
        raise InvalidInputError(f"Unknown relayer function: {name}")
    if raw[:4] != selector:
        raise MigrationDecodeError(f"Calldata is not a {name} call")
    try:
        return tuple(decode(list(RELAYER_FUNCTIONS[name]), raw[4:]))
    except (DecodingError, OverflowError, ValueError) as err:
        raise MigrationDecodeError(f"Malformed {name} calldata") from err


def decode_return(name: str, data: str | bytes) -> tuple[Any, ...]:
    """Decode a relayer function's return data.

    Raises:
        MigrationDecodeError: If the data cannot be decoded as the function's outputs
    """
    types = RELAYER_RETURNS.get(name)
    if types is None:
        raise InvalidInputError(f"Relayer function {name} returns nothing")
    try:
        raw = hex_to_bytes(data)
    except InvalidInputError as err:
        raise MigrationDecodeError(str(err)) from err
    try:
        return tuple(decode(list(types), raw))
    except (DecodingError, OverflowError, ValueError) as err:
        raise MigrationDecodeError(f"Malformed {name} return data") from err


def call_name(calldata: bytes) -> str | None:
    """Relayer function name for an encoded call, None if unknown."""
    for name, selector in FUNCTION_SELECTORS.items():
        if calldata[:4] == selector:
            return name
    return None


def encode_multicall(calls: Sequence[bytes]) -> bytes:
    """Batch encoded calls into one atomic ``multicall``."""
    return encode_call("multicall", [list(calls)])


def decode_multicall_calls(calldata: str | bytes) -> list[bytes]:
    """Split a ``multicall`` payload back into its encoded sub-calls."""
    (calls,) = decode_call("multicall", calldata)
    return list(calls)


def decode_multicall_results(return_data: str | bytes) -> list[bytes]:
    """Split a ``multicall`` return value into per-call return blobs."""
    (results,) = decode_return("multicall", return_data)
    return list(results)


__all__ = [
    "FUNCTION_SELECTORS",
    "RELAYER_FUNCTIONS",
    "RELAYER_RETURNS",
    "address_bytes",
    "call_name",
    "decode_call",
    "decode_multicall_calls",
    "decode_multicall_results",
    "decode_return",
    "encode_call",
    "encode_multicall",
    "function_signature",
    "hex_to_bytes",
    "pool_id_bytes",
]
