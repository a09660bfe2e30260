"""
Pooling API router.
"""

from fastapi import APIRouter, Depends, Request

from api.middleware import track_operation
from api.dependencies import get_pooling_service
from api.rate_limit import limiter, get_rate_limit_string
from api.schemas.common import ERROR_RESPONSES
from api.schemas.pooling import (
    CreatePoolRequest,
    PoolResponse,
    PoolMemberResponse,
    PoolMembersResponse,
)
from src.compliance.pooling import PoolingService

router = APIRouter(prefix="/api/pools", tags=["Pooling"], responses=ERROR_RESPONSES)


@router.post("", response_model=PoolResponse)
@limiter.limit(get_rate_limit_string())
def create_pool(
    request: Request,
    body: CreatePoolRequest,
    service: PoolingService = Depends(get_pooling_service),
):
    """Pool the ships' balances for a year; each member ends with the average."""
    with track_operation("pool"):
        pool = service.create_pool(body.year, body.ship_ids)
    return PoolResponse.model_validate(pool)


@router.get("/{pool_id}", response_model=PoolResponse)
def get_pool(pool_id: str, service: PoolingService = Depends(get_pooling_service)):
    return PoolResponse.model_validate(service.get_pool(pool_id))


@router.get("/{pool_id}/members", response_model=PoolMembersResponse)
def get_pool_members(pool_id: str, service: PoolingService = Depends(get_pooling_service)):
    """Members with their balance before and after pooling."""
    members = service.get_pool_members(pool_id)
    return PoolMembersResponse(
        pool_id=pool_id,
        members=[PoolMemberResponse.model_validate(m) for m in members],
    )
