"""Pool and gauge lookup capabilities.

The migration core only needs lookup by id and by a single attribute. Any
data source (subgraph, API, on-chain registry) can implement the protocols;
the in-memory repositories back the HTTP API and the tests.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol

import structlog

from migrator.errors import InvalidInputError
from migrator.models.pools import GaugeRecord, PoolRecord
from migrator.models.types import normalize_address

logger = structlog.get_logger()


class PoolRepository(Protocol):
    """Lookup of pools by id or by attribute."""

    async def find(self, pool_id: str) -> PoolRecord | None:
        """Find a pool by its id, None if unknown."""
        ...

    async def find_by(self, attribute: str, value: str) -> PoolRecord | None:
        """Find the first pool whose ``attribute`` equals ``value``."""
        ...


class GaugeRepository(Protocol):
    """Lookup of liquidity gauges."""

    async def find(self, gauge_id: str) -> GaugeRecord | None:
        ...

    async def find_by(self, attribute: str, value: str) -> GaugeRecord | None:
        ...


# Repository attribute names (camelCase, as in the data sources) to model fields
_POOL_ATTRIBUTES = {
    "id": "id",
    "address": "address",
    "poolType": "pool_type",
    "poolTypeVersion": "pool_type_version",
}

_GAUGE_ATTRIBUTES = {
    "id": "id",
    "poolId": "pool_id",
}


def _matches(actual: object, expected: str) -> bool:
    # Ids and addresses are hex and compared case-insensitively
    if isinstance(actual, str):
        return actual.lower() == expected.lower()
    return actual is not None and str(actual) == expected


class InMemoryPoolRepository:
    """Pool repository over a fixed list of records.

    Records are indexed by lowercase id and address. Lookups are tracked in
    ``calls`` so tests can assert on the number of fetches.
    """

    def __init__(self, pools: Iterable[PoolRecord] | None = None) -> None:
        self._by_id: dict[str, PoolRecord] = {}
        self._by_address: dict[str, PoolRecord] = {}
        self.calls: list[tuple[str, str]] = []

        for pool in pools or ():
            self.add(pool)

    def add(self, pool: PoolRecord) -> None:
        """Add a pool, replacing any previous record with the same id."""
        pool_id = pool.id.lower()
        if pool_id in self._by_id:
            logger.debug("pool_record_replaced", pool_id=pool.id)
        self._by_id[pool_id] = pool
        self._by_address[normalize_address(pool.address)] = pool

    def __len__(self) -> int:
        return len(self._by_id)

    async def find(self, pool_id: str) -> PoolRecord | None:
        self.calls.append(("id", pool_id))
        return self._by_id.get(pool_id.lower())

    async def find_by(self, attribute: str, value: str) -> PoolRecord | None:
        self.calls.append((attribute, value))
        if attribute == "address":
            return self._by_address.get(normalize_address(value))

        field_name = _POOL_ATTRIBUTES.get(attribute)
        if field_name is None:
            raise InvalidInputError(f"Unsupported pool attribute: {attribute}")
        for pool in self._by_id.values():
            if _matches(getattr(pool, field_name), value):
                return pool
        return None


class InMemoryGaugeRepository:
    """Gauge repository over a fixed list of records."""

    def __init__(self, gauges: Iterable[GaugeRecord] | None = None) -> None:
        self._by_id: dict[str, GaugeRecord] = {}
        for gauge in gauges or ():
            self._by_id[normalize_address(gauge.id)] = gauge

    def __len__(self) -> int:
        return len(self._by_id)

    async def find(self, gauge_id: str) -> GaugeRecord | None:
        return self._by_id.get(normalize_address(gauge_id))

    async def find_by(self, attribute: str, value: str) -> GaugeRecord | None:
        field_name = _GAUGE_ATTRIBUTES.get(attribute)
        if field_name is None:
            raise InvalidInputError(f"Unsupported gauge attribute: {attribute}")
        for gauge in self._by_id.values():
            if _matches(getattr(gauge, field_name), value):
                return gauge
        return None


__all__ = [
    "PoolRepository",
    "GaugeRepository",
    "InMemoryPoolRepository",
    "InMemoryGaugeRepository",
]
