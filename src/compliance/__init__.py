"""FuelEU compliance ledger: balances, banking, pooling and route baselines."""

from .banking import BankingService
from .entities import (
    BankEntry,
    BaselineSummary,
    ComparisonReport,
    ComplianceResult,
    Pool,
    PoolMember,
    Route,
    RouteComparison,
    ShipCompliance,
)
from .errors import (
    ComplianceError,
    InsufficientFunds,
    InvalidInput,
    InvalidOperation,
    NotFound,
    StorageError,
)
from .fueleu import BalanceCalculator, BalanceResult, ComplianceParameters
from .ledger import ComplianceService
from .locking import BalanceLocks, balance_locks
from .memory import InMemoryComplianceStore
from .pooling import PoolingService
from .routes import RouteService

__all__ = [
    "BalanceCalculator",
    "BalanceLocks",
    "BalanceResult",
    "BankEntry",
    "BankingService",
    "BaselineSummary",
    "ComparisonReport",
    "ComplianceError",
    "ComplianceParameters",
    "ComplianceResult",
    "ComplianceService",
    "InMemoryComplianceStore",
    "InsufficientFunds",
    "InvalidInput",
    "InvalidOperation",
    "NotFound",
    "Pool",
    "PoolMember",
    "PoolingService",
    "Route",
    "RouteComparison",
    "RouteService",
    "ShipCompliance",
    "StorageError",
    "balance_locks",
]
