"""Shared schemas used across the ledger routers."""

from typing import Optional

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Body of every 4xx/5xx response raised by the ledger."""
    error: str
    detail: str
    request_id: Optional[str] = None


class MessageResponse(BaseModel):
    message: str


ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Ledger rule violated"},
    404: {"model": ErrorResponse, "description": "Unknown pool or route"},
    503: {"model": ErrorResponse, "description": "Ledger storage unavailable"},
}
