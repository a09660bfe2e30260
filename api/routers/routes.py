"""
Routes API router.

Route registry, baseline selection and baseline comparison.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request

from api.middleware import track_operation
from api.dependencies import get_route_service
from api.rate_limit import limiter, get_rate_limit_string
from api.schemas.common import ERROR_RESPONSES
from api.schemas.routes import (
    RouteModel,
    RouteComparisonRow,
    BaselineSummaryModel,
    ComparisonResponse,
)
from src.compliance.entities import Route
from src.compliance.routes import RouteService

router = APIRouter(prefix="/api/routes", tags=["Routes"], responses=ERROR_RESPONSES)


@router.get("", response_model=List[RouteModel])
def list_routes(
    vessel_type: Optional[str] = Query(None, description="Case-insensitive contains"),
    fuel_type: Optional[str] = Query(None, description="Case-insensitive contains"),
    year: Optional[int] = Query(None),
    service: RouteService = Depends(get_route_service),
):
    """List routes, newest year first."""
    routes = service.list_routes(vessel_type=vessel_type, fuel_type=fuel_type, year=year)
    return [RouteModel.model_validate(r) for r in routes]


@router.post("", response_model=RouteModel)
@limiter.limit(get_rate_limit_string())
def create_route(
    request: Request,
    body: RouteModel,
    service: RouteService = Depends(get_route_service),
):
    """Register a route; ``is_baseline=true`` moves the baseline to it."""
    with track_operation("create_route"):
        route = service.create_route(Route(**body.model_dump()))
    return RouteModel.model_validate(route)


@router.get("/comparison", response_model=ComparisonResponse)
def compare_routes(service: RouteService = Depends(get_route_service)):
    """Every route's intensity against the baseline and the target."""
    report = service.compare_routes()
    return ComparisonResponse(
        baseline=BaselineSummaryModel.model_validate(report.baseline),
        target_intensity=report.target_intensity,
        routes=[
            RouteComparisonRow(
                route=RouteModel.model_validate(row.route),
                baseline_ghg_intensity=row.baseline_ghg_intensity,
                percent_diff=row.percent_diff,
                compliant=row.compliant,
            )
            for row in report.routes
        ],
        generated_at=report.generated_at,
    )


@router.get("/{route_id}", response_model=RouteModel)
def get_route(route_id: str, service: RouteService = Depends(get_route_service)):
    return RouteModel.model_validate(service.get_route(route_id))


@router.post("/{route_id}/baseline", response_model=RouteModel)
@limiter.limit(get_rate_limit_string())
def set_baseline(
    request: Request,
    route_id: str,
    service: RouteService = Depends(get_route_service),
):
    """Make ``route_id`` the only baseline route."""
    with track_operation("set_baseline"):
        route = service.set_baseline(route_id)
    return RouteModel.model_validate(route)
