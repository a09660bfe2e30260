"""Pooling API schemas."""

from datetime import datetime
from typing import List

from pydantic import BaseModel, ConfigDict, Field


class CreatePoolRequest(BaseModel):
    year: int
    ship_ids: List[str] = Field(..., min_length=2, description="At least two distinct ships")


class PoolResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    year: int
    created_at: datetime


class PoolMemberResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    pool_id: str
    ship_id: str
    cb_before: float
    cb_after: float


class PoolMembersResponse(BaseModel):
    pool_id: str
    members: List[PoolMemberResponse]
