"""
Ledger entities shared by the services and every storage adapter.

Plain dataclasses: adapters map their rows onto these and the services never
see ORM objects.
"""

import secrets
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def generate_id(prefix: str) -> str:
    """Time-based id with a random suffix, e.g. ``pool_1718000000000_k3j9x0a1b``."""
    return f"{prefix}_{int(time.time() * 1000)}_{secrets.token_hex(5)[:9]}"


@dataclass
class ShipCompliance:
    """Current compliance balance of one ship for one reporting year."""
    ship_id: str
    year: int
    cb_gco2eq: float  # positive=surplus, negative=deficit


@dataclass(frozen=True)
class BankEntry:
    """One banking (+amount) or withdrawal (-amount) event."""
    id: str
    ship_id: str
    year: int
    amount_gco2eq: float
    created_at: datetime


@dataclass(frozen=True)
class Pool:
    id: str
    year: int
    created_at: datetime


@dataclass(frozen=True)
class PoolMember:
    pool_id: str
    ship_id: str
    cb_before: float
    cb_after: float


@dataclass
class Route:
    """Operating data for one voyage/route."""
    route_id: str
    vessel_type: str
    fuel_type: str
    year: int
    ghg_intensity: float  # gCO2e/MJ
    fuel_consumption: float  # tonnes
    distance: float  # km
    total_emissions: float  # tonnes
    is_baseline: bool = False


@dataclass
class ComplianceResult:
    """Result of a persisted balance calculation."""
    ship_id: str
    year: int
    target_intensity: float
    actual_intensity: float
    energy_in_scope_mj: float
    compliance_balance: float
    is_compliant: bool


@dataclass
class RouteComparison:
    """One route measured against the current baseline."""
    route: Route
    baseline_ghg_intensity: float
    percent_diff: float
    compliant: bool


@dataclass
class BaselineSummary:
    route_id: str
    vessel_type: str
    ghg_intensity: float


@dataclass
class ComparisonReport:
    baseline: BaselineSummary
    target_intensity: float
    routes: list = field(default_factory=list)
    generated_at: Optional[datetime] = None
