"""
Domain error taxonomy for the compliance ledger.

Every rule violation raised by the ledger services derives from
``ComplianceError``. Boundary code maps the concrete class to a caller-facing
status; storage failures use ``StorageError`` and are kept out of this
hierarchy so they are never reported as a bad request.
"""

from typing import Optional


class ComplianceError(Exception):
    """Base class for all domain rule failures."""

    kind = "compliance_error"

    def __init__(self, message: str, ship_id: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.ship_id = ship_id


class InvalidInput(ComplianceError):
    """Malformed or missing input (e.g. a pool with fewer than 2 ships)."""

    kind = "validation_error"


class InvalidOperation(ComplianceError):
    """Well-formed input that violates a ledger rule."""

    kind = "invalid_operation"


class InsufficientFunds(InvalidOperation):
    """Withdrawal larger than the ship's total banked surplus."""

    kind = "insufficient_funds"

    def __init__(self, ship_id: str, requested: float, available: float):
        super().__init__(
            f"Insufficient banked surplus. Available: {available}",
            ship_id=ship_id,
        )
        self.requested = requested
        self.available = available


class NotFound(ComplianceError):
    """Lookup by id or key failed."""

    kind = "not_found"


class StorageError(Exception):
    """Persistence layer failure (connection loss, constraint error, ...)."""

    kind = "storage_error"
