"""
FuelEU Ledger API Pydantic schemas.

Re-exports all schema classes:
    from api.schemas import BankingRequest, PoolResponse, ...
"""

# Common
from .common import ERROR_RESPONSES, ErrorResponse, MessageResponse  # noqa: F401

# Compliance balances
from .compliance import (  # noqa: F401
    CalculateBalanceRequest,
    ComplianceResultResponse,
    ShipBalanceResponse,
    YearBalancesResponse,
)

# Banking
from .banking import (  # noqa: F401
    BankingRequest,
    BankEntryResponse,
    BankedTotalResponse,
    BankingRecordsResponse,
)

# Pooling
from .pooling import (  # noqa: F401
    CreatePoolRequest,
    PoolResponse,
    PoolMemberResponse,
    PoolMembersResponse,
)

# Routes
from .routes import (  # noqa: F401
    RouteModel,
    RouteComparisonRow,
    BaselineSummaryModel,
    ComparisonResponse,
)
