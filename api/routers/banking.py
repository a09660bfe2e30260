"""
Banking API router.

Surplus banked for one year can be applied against a deficit in another.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from api.middleware import track_operation
from api.dependencies import get_banking_service
from api.rate_limit import limiter, get_rate_limit_string
from api.schemas.common import ERROR_RESPONSES, MessageResponse
from api.schemas.banking import (
    BankingRequest,
    BankEntryResponse,
    BankedTotalResponse,
    BankingRecordsResponse,
)
from src.compliance.banking import BankingService

router = APIRouter(prefix="/api/banking", tags=["Banking"], responses=ERROR_RESPONSES)


@router.post("/bank", response_model=BankEntryResponse)
@limiter.limit(get_rate_limit_string())
def bank_surplus(
    request: Request,
    body: BankingRequest,
    service: BankingService = Depends(get_banking_service),
):
    """Bank part or all of a positive CB."""
    with track_operation("bank"):
        entry = service.bank_surplus(body.ship_id, body.year, body.amount)
    return BankEntryResponse.model_validate(entry)


@router.post("/apply", response_model=MessageResponse)
@limiter.limit(get_rate_limit_string())
def apply_banked(
    request: Request,
    body: BankingRequest,
    service: BankingService = Depends(get_banking_service),
):
    """Apply banked surplus to a deficit."""
    with track_operation("apply"):
        service.apply_banked(body.ship_id, body.year, body.amount)
    return MessageResponse(message="Banked surplus applied successfully")


@router.get("/records", response_model=BankingRecordsResponse)
def get_banking_records(
    ship_id: str = Query(..., min_length=1),
    year: Optional[int] = Query(None),
    service: BankingService = Depends(get_banking_service),
):
    """Banking history for a ship, newest first."""
    entries = service.get_banking_records(ship_id, year)
    return BankingRecordsResponse(
        ship_id=ship_id,
        records=[BankEntryResponse.model_validate(e) for e in entries],
    )


@router.get("/{ship_id}/total", response_model=BankedTotalResponse)
def get_total_banked(
    ship_id: str,
    service: BankingService = Depends(get_banking_service),
):
    """Net banked surplus across all years."""
    return BankedTotalResponse(ship_id=ship_id, total_banked=service.get_total_banked(ship_id))
