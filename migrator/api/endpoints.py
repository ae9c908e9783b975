"""API endpoints for building and decoding migrations."""

import asyncio

import structlog
from fastapi import APIRouter, Depends, HTTPException

from migrator.config import MigrationConfig
from migrator.errors import MigrationError, NotFoundError
from migrator.migration.builder import build_migration
from migrator.migration.decoder import decode_min_bpt_out
from migrator.models.api import (
    BuildMigrationRequest,
    BuildMigrationResponse,
    MinBptOutRequest,
    MinBptOutResponse,
)
from migrator.pools.repository import InMemoryPoolRepository
from migrator.pools.topology import resolve_pool

logger = structlog.get_logger()

router = APIRouter(prefix="/migrations")


def get_config() -> MigrationConfig:
    """Dependency provider for the migration config.

    Override this in tests:
        app.dependency_overrides[get_config] = lambda: MigrationConfig(...)
    """
    return MigrationConfig.from_env()


def _error_status(err: MigrationError) -> int:
    return 404 if isinstance(err, NotFoundError) else 422


@router.post("/build", response_model_by_alias=True)
async def build(
    request: BuildMigrationRequest,
    config: MigrationConfig = Depends(get_config),
) -> BuildMigrationResponse:
    """Build the relayer multicall migrating a position between two pools.

    Error Handling:
        - Unknown pool id: 404
        - Missing pool data or inconsistent arguments: 422
    """
    relayer = request.relayer or config.relayer_address
    if relayer is None:
        raise HTTPException(status_code=422, detail="No relayer address configured")

    min_bpt_out = int(request.min_bpt_out)
    peek = request.peek if request.peek is not None else min_bpt_out == 0
    deadline = int(request.deadline) if request.deadline is not None else config.swap_deadline()

    pools = InMemoryPoolRepository(request.pools)
    try:
        from_tree, to_tree = await asyncio.gather(
            resolve_pool(request.from_pool_id, pools),
            resolve_pool(request.to_pool_id, pools),
        )
        payload = build_migration(
            user=request.user,
            relayer=relayer,
            bpt_amount=request.bpt_amount,
            min_bpt_out=min_bpt_out,
            from_tree=from_tree,
            to_tree=to_tree,
            peek=peek,
            from_gauge=request.from_gauge,
            to_gauge=request.to_gauge,
            deadline=deadline,
        )
    except MigrationError as err:
        logger.warning(
            "migration_build_failed",
            from_pool=request.from_pool_id,
            to_pool=request.to_pool_id,
            error=str(err),
        )
        raise HTTPException(status_code=_error_status(err), detail=str(err)) from err

    return BuildMigrationResponse(
        to=payload.to,
        data=payload.data,
        steps=[kind.value for kind in payload.step_kinds],
        min_bpt_out=str(min_bpt_out),
    )


@router.post("/min-bpt-out", response_model_by_alias=True)
async def min_bpt_out(
    request: MinBptOutRequest,
    config: MigrationConfig = Depends(get_config),
) -> MinBptOutResponse:
    """Decode the minimum BPT out from a simulated peek migration."""
    try:
        amount = decode_min_bpt_out(request.return_data, config)
    except MigrationError as err:
        raise HTTPException(status_code=_error_status(err), detail=str(err)) from err
    return MinBptOutResponse(min_bpt_out=str(amount))
