"""Compliance balance API schemas."""

from typing import List

from pydantic import BaseModel, ConfigDict, Field


class CalculateBalanceRequest(BaseModel):
    """Measured performance of one ship for one year."""
    actual_intensity: float = Field(
        ..., gt=0, allow_inf_nan=False, description="Attained GHG intensity (gCO2eq/MJ)"
    )
    fuel_consumption: float = Field(
        ..., ge=0, allow_inf_nan=False, description="Fuel consumed (tonnes)"
    )


class ComplianceResultResponse(BaseModel):
    """Result of a persisted balance calculation."""
    ship_id: str
    year: int
    target_intensity: float
    actual_intensity: float
    energy_in_scope_mj: float
    compliance_balance: float
    is_compliant: bool


class ShipBalanceResponse(BaseModel):
    """Current balance of one ship-year (0 when never computed)."""
    model_config = ConfigDict(from_attributes=True)

    ship_id: str
    year: int
    cb_gco2eq: float


class YearBalancesResponse(BaseModel):
    year: int
    balances: List[ShipBalanceResponse]
    total_cb_gco2eq: float
