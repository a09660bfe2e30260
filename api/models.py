"""
SQLAlchemy models for the FuelEU ledger database.
"""

from sqlalchemy import (
    Column,
    String,
    Float,
    Integer,
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from datetime import datetime, timezone

from api.database import Base


def _utcnow():
    return datetime.now(timezone.utc)


class ShipComplianceRecord(Base):
    """Current compliance balance of a ship for one year."""

    __tablename__ = "ship_compliance"

    id = Column(Integer, primary_key=True, autoincrement=True)
    ship_id = Column(String(100), nullable=False, index=True)
    year = Column(Integer, nullable=False, index=True)
    cb_gco2eq = Column(Float, nullable=False, default=0.0)
    updated_at = Column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False
    )

    __table_args__ = (
        UniqueConstraint("ship_id", "year", name="uq_ship_compliance_ship_year"),
    )

    def __repr__(self):
        return f"<ShipComplianceRecord(ship_id='{self.ship_id}', year={self.year}, cb={self.cb_gco2eq})>"


class BankEntryRecord(Base):
    """Append-only banking log row (+banked / -applied)."""

    __tablename__ = "bank_entries"

    seq = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(String(64), nullable=False, unique=True)
    ship_id = Column(String(100), nullable=False, index=True)
    year = Column(Integer, nullable=False)
    amount_gco2eq = Column(Float, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    __table_args__ = (
        Index("ix_bank_entries_ship_year", "ship_id", "year"),
    )

    def __repr__(self):
        return f"<BankEntryRecord(id='{self.id}', ship_id='{self.ship_id}', amount={self.amount_gco2eq})>"


class PoolRecord(Base):
    """A compliance pool formed for one year."""

    __tablename__ = "pools"

    id = Column(String(64), primary_key=True)
    year = Column(Integer, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    # Relationships
    members = relationship(
        "PoolMemberRecord", back_populates="pool", order_by="PoolMemberRecord.seq"
    )

    def __repr__(self):
        return f"<PoolRecord(id='{self.id}', year={self.year})>"


class PoolMemberRecord(Base):
    """Balance of one ship before and after joining a pool."""

    __tablename__ = "pool_members"

    seq = Column(Integer, primary_key=True, autoincrement=True)
    pool_id = Column(String(64), ForeignKey("pools.id"), nullable=False, index=True)
    ship_id = Column(String(100), nullable=False)
    cb_before = Column(Float, nullable=False)
    cb_after = Column(Float, nullable=False)

    __table_args__ = (
        UniqueConstraint("pool_id", "ship_id", name="uq_pool_members_pool_ship"),
    )

    # Relationships
    pool = relationship("PoolRecord", back_populates="members")

    def __repr__(self):
        return f"<PoolMemberRecord(pool_id='{self.pool_id}', ship_id='{self.ship_id}')>"


class RouteRecord(Base):
    """Route operating data with the baseline flag."""

    __tablename__ = "routes"

    route_id = Column(String(64), primary_key=True)
    vessel_type = Column(String(100), nullable=False)
    fuel_type = Column(String(100), nullable=False)
    year = Column(Integer, nullable=False, index=True)
    ghg_intensity = Column(Float, nullable=False)
    fuel_consumption = Column(Float, nullable=False)
    distance = Column(Float, nullable=False)
    total_emissions = Column(Float, nullable=False)
    is_baseline = Column(Boolean, default=False, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    def __repr__(self):
        return f"<RouteRecord(route_id='{self.route_id}', baseline={self.is_baseline})>"
