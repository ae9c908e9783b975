"""Pydantic models for the migration HTTP API."""

from pydantic import BaseModel, Field

from migrator.models.pools import PoolRecord
from migrator.models.types import Address, Bytes, PoolId, Uint256


class BuildMigrationRequest(BaseModel):
    """Build a migration multicall from caller-supplied pool data.

    ``pools`` must contain both pools and every pool nested in them.
    """

    pools: list[PoolRecord]
    user: Address
    relayer: Address | None = None
    from_pool_id: PoolId = Field(alias="fromPoolId")
    to_pool_id: PoolId = Field(alias="toPoolId")
    bpt_amount: Uint256 = Field(alias="bptAmount")
    min_bpt_out: Uint256 = Field(default="0", alias="minBptOut")
    peek: bool | None = Field(
        default=None,
        description="Append a peek of the minted BPT. Defaults to minBptOut == 0.",
    )
    from_gauge: Address | None = Field(default=None, alias="fromGauge")
    to_gauge: Address | None = Field(default=None, alias="toGauge")
    deadline: Uint256 | None = None

    model_config = {"populate_by_name": True}


class BuildMigrationResponse(BaseModel):
    """Transaction request for the relayer."""

    to: Address
    data: Bytes
    steps: list[str]
    min_bpt_out: Uint256 = Field(alias="minBptOut")

    model_config = {"populate_by_name": True}


class MinBptOutRequest(BaseModel):
    """Return data of a simulated peek migration."""

    return_data: Bytes = Field(alias="returnData")

    model_config = {"populate_by_name": True}


class MinBptOutResponse(BaseModel):
    """Safe minimum BPT out for the committing transaction."""

    min_bpt_out: Uint256 = Field(alias="minBptOut")

    model_config = {"populate_by_name": True}
