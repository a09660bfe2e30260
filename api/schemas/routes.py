"""Route and baseline comparison API schemas."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class RouteModel(BaseModel):
    """Route operating data, used for both requests and responses."""
    model_config = ConfigDict(from_attributes=True)

    route_id: str = Field(..., min_length=1, max_length=64)
    vessel_type: str = Field(..., min_length=1, max_length=100)
    fuel_type: str = Field(..., min_length=1, max_length=100)
    year: int
    ghg_intensity: float = Field(..., gt=0, allow_inf_nan=False, description="gCO2e/MJ")
    fuel_consumption: float = Field(..., ge=0, allow_inf_nan=False, description="tonnes")
    distance: float = Field(..., ge=0, allow_inf_nan=False, description="km")
    total_emissions: float = Field(..., ge=0, allow_inf_nan=False, description="tonnes")
    is_baseline: bool = False


class RouteComparisonRow(BaseModel):
    route: RouteModel
    baseline_ghg_intensity: float
    percent_diff: float
    compliant: bool


class BaselineSummaryModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    route_id: str
    vessel_type: str
    ghg_intensity: float


class ComparisonResponse(BaseModel):
    baseline: BaselineSummaryModel
    target_intensity: float
    routes: List[RouteComparisonRow]
    generated_at: Optional[datetime] = None
