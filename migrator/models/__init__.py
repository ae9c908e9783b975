"""Pydantic models for migration data structures."""

from migrator.models.pools import GaugeRecord, PoolRecord, PoolToken
from migrator.models.types import Address, Bytes, PoolId, Uint256, normalize_address

__all__ = [
    # Types
    "Address",
    "Bytes",
    "PoolId",
    "Uint256",
    "normalize_address",
    # Repository records
    "PoolRecord",
    "PoolToken",
    "GaugeRecord",
]
