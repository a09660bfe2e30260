"""
Persistence contract required by the ledger services.

Any storage engine satisfying these protocols can back the services; the
repository ships an in-memory store (``src.compliance.memory``) and a
SQLAlchemy store (``api.repositories``).
"""

from typing import ContextManager, Iterable, List, Optional, Protocol, Tuple

from src.compliance.entities import BankEntry, Pool, PoolMember, Route, ShipCompliance

LedgerKey = Tuple[str, int]


class LedgerStore(Protocol):
    def get(self, ship_id: str, year: int) -> float:
        """Current CB for (ship, year); 0.0 when no record exists."""
        ...

    def set(self, ship_id: str, year: int, cb_gco2eq: float) -> None:
        """Create or overwrite the CB for (ship, year)."""
        ...

    def list_by_year(self, year: int) -> List[ShipCompliance]:
        ...

    def lock(self, keys: Iterable[LedgerKey]) -> None:
        """Take storage-level exclusive locks on existing rows for the current transaction."""
        ...


class BankingLog(Protocol):
    def append(self, entry: BankEntry) -> BankEntry:
        ...

    def list_by_ship(self, ship_id: str) -> List[BankEntry]:
        """All entries for the ship, newest first."""
        ...

    def list_by_ship_and_year(self, ship_id: str, year: int) -> List[BankEntry]:
        """Entries for the ship in one year, newest first."""
        ...

    def lock_ship(self, ship_id: str) -> None:
        """Take storage-level exclusive locks on the ship's entries for the current transaction."""
        ...

    def sum_by_ship(self, ship_id: str) -> float:
        ...


class PoolStore(Protocol):
    def create_pool(self, pool: Pool) -> Pool:
        ...

    def add_member(self, member: PoolMember) -> None:
        ...

    def get_pool(self, pool_id: str) -> Optional[Pool]:
        ...

    def get_members(self, pool_id: str) -> List[PoolMember]:
        ...


class RouteStore(Protocol):
    def list_all(self) -> List[Route]:
        """All routes ordered by year desc, then route id."""
        ...

    def get_by_id(self, route_id: str) -> Optional[Route]:
        ...

    def create(self, route: Route) -> Route:
        ...

    def set_baseline(self, route_id: str) -> None:
        """Clear every baseline flag, then flag ``route_id``."""
        ...


class ComplianceStore(Protocol):
    """Bundle of the four stores sharing one transaction scope."""

    ledger: LedgerStore
    banking: BankingLog
    pools: PoolStore
    routes: RouteStore

    def transaction(self) -> ContextManager["ComplianceStore"]:
        """Commit on clean exit, roll back every write on exception."""
        ...
