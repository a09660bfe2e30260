"""
SQLAlchemy implementation of the ledger persistence contract.

One ``SqlComplianceStore`` wraps one session. ``transaction()`` commits on a
clean exit and rolls back on any exception; driver and constraint failures
surface as ``StorageError`` so the API never reports them as bad input.
"""

import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Iterable, Iterator, List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from api.models import (
    BankEntryRecord,
    PoolMemberRecord,
    PoolRecord,
    RouteRecord,
    ShipComplianceRecord,
)
from src.compliance.entities import BankEntry, Pool, PoolMember, Route, ShipCompliance
from src.compliance.errors import StorageError

logger = logging.getLogger(__name__)


def _aware(value: datetime) -> datetime:
    # SQLite hands back naive datetimes
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class SqlLedgerStore:
    def __init__(self, db: Session):
        self.db = db

    def _record(self, ship_id: str, year: int) -> Optional[ShipComplianceRecord]:
        return self.db.query(ShipComplianceRecord).filter(
            ShipComplianceRecord.ship_id == ship_id,
            ShipComplianceRecord.year == year,
        ).first()

    def get(self, ship_id: str, year: int) -> float:
        record = self._record(ship_id, year)
        return record.cb_gco2eq if record else 0.0

    def set(self, ship_id: str, year: int, cb_gco2eq: float) -> None:
        record = self._record(ship_id, year)
        if record is None:
            record = ShipComplianceRecord(ship_id=ship_id, year=year, cb_gco2eq=cb_gco2eq)
            self.db.add(record)
        else:
            record.cb_gco2eq = cb_gco2eq
        self.db.flush()

    def list_by_year(self, year: int) -> List[ShipCompliance]:
        records = self.db.query(ShipComplianceRecord).filter(
            ShipComplianceRecord.year == year
        ).order_by(ShipComplianceRecord.ship_id).all()
        return [
            ShipCompliance(ship_id=r.ship_id, year=r.year, cb_gco2eq=r.cb_gco2eq)
            for r in records
        ]

    def lock(self, keys: Iterable[Tuple[str, int]]) -> None:
        # FOR UPDATE on existing rows; a no-op on SQLite
        for ship_id, year in sorted(set(keys)):
            self.db.query(ShipComplianceRecord).filter(
                ShipComplianceRecord.ship_id == ship_id,
                ShipComplianceRecord.year == year,
            ).with_for_update().all()


class SqlBankingLog:
    def __init__(self, db: Session):
        self.db = db

    def append(self, entry: BankEntry) -> BankEntry:
        self.db.add(BankEntryRecord(
            id=entry.id,
            ship_id=entry.ship_id,
            year=entry.year,
            amount_gco2eq=entry.amount_gco2eq,
            created_at=entry.created_at,
        ))
        self.db.flush()
        return entry

    def list_by_ship(self, ship_id: str) -> List[BankEntry]:
        query = self.db.query(BankEntryRecord).filter(BankEntryRecord.ship_id == ship_id)
        return self._newest_first(query)

    def list_by_ship_and_year(self, ship_id: str, year: int) -> List[BankEntry]:
        query = self.db.query(BankEntryRecord).filter(
            BankEntryRecord.ship_id == ship_id,
            BankEntryRecord.year == year,
        )
        return self._newest_first(query)

    def lock_ship(self, ship_id: str) -> None:
        # FOR UPDATE on the ship's entries; a no-op on SQLite
        self._ship_entries(ship_id).with_for_update().all()

    def _ship_entries(self, ship_id: str):
        return self.db.query(BankEntryRecord).filter(BankEntryRecord.ship_id == ship_id)

    def sum_by_ship(self, ship_id: str) -> float:
        total = self.db.query(func.sum(BankEntryRecord.amount_gco2eq)).filter(
            BankEntryRecord.ship_id == ship_id
        ).scalar()
        return float(total) if total is not None else 0.0

    @staticmethod
    def _newest_first(query) -> List[BankEntry]:
        records = query.order_by(
            BankEntryRecord.created_at.desc(), BankEntryRecord.seq.desc()
        ).all()
        return [
            BankEntry(
                id=r.id,
                ship_id=r.ship_id,
                year=r.year,
                amount_gco2eq=r.amount_gco2eq,
                created_at=_aware(r.created_at),
            )
            for r in records
        ]


class SqlPoolStore:
    def __init__(self, db: Session):
        self.db = db

    def create_pool(self, pool: Pool) -> Pool:
        self.db.add(PoolRecord(id=pool.id, year=pool.year, created_at=pool.created_at))
        self.db.flush()
        return pool

    def add_member(self, member: PoolMember) -> None:
        self.db.add(PoolMemberRecord(
            pool_id=member.pool_id,
            ship_id=member.ship_id,
            cb_before=member.cb_before,
            cb_after=member.cb_after,
        ))
        self.db.flush()

    def get_pool(self, pool_id: str) -> Optional[Pool]:
        record = self.db.query(PoolRecord).filter(PoolRecord.id == pool_id).first()
        if record is None:
            return None
        return Pool(id=record.id, year=record.year, created_at=_aware(record.created_at))

    def get_members(self, pool_id: str) -> List[PoolMember]:
        records = self.db.query(PoolMemberRecord).filter(
            PoolMemberRecord.pool_id == pool_id
        ).order_by(PoolMemberRecord.seq).all()
        return [
            PoolMember(
                pool_id=r.pool_id,
                ship_id=r.ship_id,
                cb_before=r.cb_before,
                cb_after=r.cb_after,
            )
            for r in records
        ]


class SqlRouteStore:
    def __init__(self, db: Session):
        self.db = db

    def list_all(self) -> List[Route]:
        records = self.db.query(RouteRecord).order_by(
            RouteRecord.year.desc(), RouteRecord.route_id
        ).all()
        return [_to_route(r) for r in records]

    def get_by_id(self, route_id: str) -> Optional[Route]:
        record = self.db.query(RouteRecord).filter(RouteRecord.route_id == route_id).first()
        return _to_route(record) if record else None

    def create(self, route: Route) -> Route:
        self.db.add(RouteRecord(
            route_id=route.route_id,
            vessel_type=route.vessel_type,
            fuel_type=route.fuel_type,
            year=route.year,
            ghg_intensity=route.ghg_intensity,
            fuel_consumption=route.fuel_consumption,
            distance=route.distance,
            total_emissions=route.total_emissions,
            is_baseline=route.is_baseline,
        ))
        self.db.flush()
        return route

    def set_baseline(self, route_id: str) -> None:
        for record in self.db.query(RouteRecord).filter(RouteRecord.is_baseline.is_(True)).all():
            record.is_baseline = False
        target = self.db.query(RouteRecord).filter(RouteRecord.route_id == route_id).first()
        if target is not None:
            target.is_baseline = True
        self.db.flush()


def _to_route(record: RouteRecord) -> Route:
    return Route(
        route_id=record.route_id,
        vessel_type=record.vessel_type,
        fuel_type=record.fuel_type,
        year=record.year,
        ghg_intensity=record.ghg_intensity,
        fuel_consumption=record.fuel_consumption,
        distance=record.distance,
        total_emissions=record.total_emissions,
        is_baseline=record.is_baseline,
    )


class SqlComplianceStore:
    """All four stores on one session, sharing its transaction."""

    def __init__(self, db: Session):
        self.db = db
        self.ledger = SqlLedgerStore(db)
        self.banking = SqlBankingLog(db)
        self.pools = SqlPoolStore(db)
        self.routes = SqlRouteStore(db)
        self._depth = 0

    @contextmanager
    def transaction(self) -> Iterator["SqlComplianceStore"]:
        if self._depth:
            # Nested: the outermost block commits
            self._depth += 1
            try:
                yield self
            finally:
                self._depth -= 1
            return

        self._depth = 1
        try:
            yield self
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Ledger transaction failed: {e}")
            raise StorageError("Storage operation failed") from e
        except BaseException:
            self.db.rollback()
            raise
        finally:
            self._depth = 0
