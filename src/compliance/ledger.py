"""
Balance Ledger service: compute-and-persist and balance reads.

The ledger holds one current CB per (ship, year). ``calculate_cb`` is a
destructive recompute: the new balance replaces whatever is stored,
including earlier banking or pooling adjustments.
"""

import logging
from typing import List, Optional

from src.compliance.entities import ComplianceResult, ShipCompliance
from src.compliance.errors import InvalidInput
from src.compliance.fueleu import BalanceCalculator, ComplianceParameters, is_finite_number
from src.compliance.locking import BalanceLocks, balance_locks, ledger_key
from src.compliance.ports import ComplianceStore

logger = logging.getLogger(__name__)


class ComplianceService:
    """Reads and recomputes ship compliance balances."""

    def __init__(
        self,
        store: ComplianceStore,
        params: Optional[ComplianceParameters] = None,
        locks: Optional[BalanceLocks] = None,
    ):
        self.store = store
        self.calculator = BalanceCalculator(params)
        self.locks = locks or balance_locks

    def calculate_cb(
        self,
        ship_id: str,
        year: int,
        actual_intensity: float,
        fuel_consumption_t: float,
    ) -> ComplianceResult:
        """
        Compute the CB for (ship, year) and overwrite the stored balance.

        Args:
            ship_id: Ship identifier
            year: Reporting year
            actual_intensity: Attained GHG intensity (gCO2eq/MJ)
            fuel_consumption_t: Fuel consumed (tonnes)

        Returns:
            ComplianceResult with the full-precision balance
        """
        _require_ship(ship_id)
        if not is_finite_number(actual_intensity) or actual_intensity <= 0:
            raise InvalidInput("actual_intensity must be a finite number > 0", ship_id=ship_id)
        if not is_finite_number(fuel_consumption_t) or fuel_consumption_t < 0:
            raise InvalidInput("fuel_consumption must be a finite number >= 0", ship_id=ship_id)

        target = self.calculator.params.target_for_year(year)
        balance = self.calculator.calculate_balance(target, actual_intensity, fuel_consumption_t)

        with self.locks.hold([ledger_key(ship_id, year)]):
            with self.store.transaction() as tx:
                tx.ledger.lock([(ship_id, year)])
                previous = tx.ledger.get(ship_id, year)
                if previous != 0:
                    logger.warning(
                        "Recalculation replaces stored CB for %s/%d (%.2f -> %.2f)",
                        ship_id, year, previous, balance.cb,
                    )
                tx.ledger.set(ship_id, year, balance.cb)

        logger.info(
            "CB calculated for %s/%d: %.2f gCO2eq (compliant=%s)",
            ship_id, year, balance.cb, balance.is_compliant,
        )
        return ComplianceResult(
            ship_id=ship_id,
            year=year,
            target_intensity=target,
            actual_intensity=actual_intensity,
            energy_in_scope_mj=balance.energy_in_scope_mj,
            compliance_balance=balance.cb,
            is_compliant=balance.is_compliant,
        )

    def get_cb(self, ship_id: str, year: int) -> float:
        """Current balance, 0.0 when the ship has no record for the year."""
        return self.store.ledger.get(ship_id, year)

    def list_balances(self, year: int) -> List[ShipCompliance]:
        return self.store.ledger.list_by_year(year)


def _require_ship(ship_id: str) -> None:
    if not isinstance(ship_id, str) or not ship_id.strip():
        raise InvalidInput("ship_id is required")
