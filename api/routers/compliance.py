"""
Compliance balance API router.

Computes and persists a ship's compliance balance for a reporting year and
reads current balances back.
"""

from fastapi import APIRouter, Depends, Query, Request

from api.middleware import track_operation
from api.dependencies import get_compliance_service
from api.rate_limit import limiter, get_rate_limit_string
from api.schemas.common import ERROR_RESPONSES
from api.schemas.compliance import (
    CalculateBalanceRequest,
    ComplianceResultResponse,
    ShipBalanceResponse,
    YearBalancesResponse,
)
from src.compliance.ledger import ComplianceService

router = APIRouter(prefix="/api/compliance", tags=["Compliance Balance"], responses=ERROR_RESPONSES)


@router.post("/{ship_id}/{year}/calculate", response_model=ComplianceResultResponse)
@limiter.limit(get_rate_limit_string())
def calculate_balance(
    request: Request,
    ship_id: str,
    year: int,
    body: CalculateBalanceRequest,
    service: ComplianceService = Depends(get_compliance_service),
):
    """Compute the CB from measured intensity and fuel, replacing the stored balance."""
    with track_operation("calculate"):
        result = service.calculate_cb(
            ship_id, year, body.actual_intensity, body.fuel_consumption
        )
    return ComplianceResultResponse(
        ship_id=result.ship_id,
        year=result.year,
        target_intensity=result.target_intensity,
        actual_intensity=result.actual_intensity,
        energy_in_scope_mj=result.energy_in_scope_mj,
        compliance_balance=result.compliance_balance,
        is_compliant=result.is_compliant,
    )


@router.get("/{ship_id}/{year}", response_model=ShipBalanceResponse)
def get_balance(
    ship_id: str,
    year: int,
    service: ComplianceService = Depends(get_compliance_service),
):
    """Current CB for the ship-year; 0 when never computed."""
    return ShipBalanceResponse(ship_id=ship_id, year=year, cb_gco2eq=service.get_cb(ship_id, year))


@router.get("", response_model=YearBalancesResponse)
def list_balances(
    year: int = Query(..., description="Reporting year"),
    service: ComplianceService = Depends(get_compliance_service),
):
    """All stored balances for a year, ordered by ship id."""
    balances = service.list_balances(year)
    return YearBalancesResponse(
        year=year,
        balances=[ShipBalanceResponse.model_validate(b) for b in balances],
        total_cb_gco2eq=sum(b.cb_gco2eq for b in balances),
    )
