"""Pydantic models for pool and gauge records served by the data repositories."""

from pydantic import BaseModel, Field

from migrator.models.types import Address, PoolId, Uint256


class PoolToken(BaseModel):
    """A token listed by a pool."""

    address: Address
    symbol: str | None = None
    balance: str | None = None

    model_config = {"populate_by_name": True, "extra": "ignore"}


class PoolRecord(BaseModel):
    """A pool as returned by a pool repository.

    Composable pools list their own BPT among ``tokens``. Linear pools set
    ``main_index`` to the position of the underlying (main) token.
    """

    id: PoolId
    address: Address
    tokens: list[PoolToken] = Field(default_factory=list)
    pool_type: str = Field(alias="poolType")
    pool_type_version: int | None = Field(default=None, alias="poolTypeVersion")
    main_index: int | None = Field(default=None, alias="mainIndex", ge=0)

    model_config = {"populate_by_name": True, "extra": "ignore"}


class GaugeRecord(BaseModel):
    """A liquidity gauge staking a pool's BPT."""

    id: Address
    pool_id: PoolId | None = Field(default=None, alias="poolId")
    total_supply: Uint256 | None = Field(default=None, alias="totalSupply")

    model_config = {"populate_by_name": True, "extra": "ignore"}
