"""Banking API schemas."""

from datetime import datetime
from typing import List

from pydantic import BaseModel, ConfigDict, Field


class BankingRequest(BaseModel):
    """Bank or apply ``amount`` gCO2eq for one ship-year."""
    ship_id: str = Field(..., min_length=1, max_length=100)
    year: int
    amount: float = Field(..., gt=0, allow_inf_nan=False, description="gCO2eq")


class BankEntryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    ship_id: str
    year: int
    amount_gco2eq: float
    created_at: datetime


class BankedTotalResponse(BaseModel):
    ship_id: str
    total_banked: float


class BankingRecordsResponse(BaseModel):
    ship_id: str
    records: List[BankEntryResponse]
