"""Batch relayer call encoding and chained references."""

from migrator.relayer.encoding import (
    decode_call,
    decode_multicall_calls,
    decode_multicall_results,
    decode_return,
    encode_call,
    encode_multicall,
)
from migrator.relayer.references import (
    ChainedReference,
    OutputReference,
    ReferenceAllocator,
    is_chained_reference,
)

__all__ = [
    "ChainedReference",
    "OutputReference",
    "ReferenceAllocator",
    "is_chained_reference",
    "encode_call",
    "decode_call",
    "decode_return",
    "encode_multicall",
    "decode_multicall_calls",
    "decode_multicall_results",
]
