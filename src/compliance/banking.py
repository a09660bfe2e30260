"""
Banking subsystem: set aside surplus CB and apply it against later deficits.

Rules:
- Only a strictly positive CB can be banked, and never more than the CB.
- Banked surplus is tracked per ship across all years; applying it needs
  enough total banked and a strictly negative CB for the target year.
- Every operation appends an immutable BankEntry (+banked / -applied) and
  writes the new CB back to the ledger in the same transaction.
"""

import logging
from datetime import datetime
from typing import Callable, List, Optional

from src.compliance.entities import BankEntry, generate_id, utcnow
from src.compliance.errors import InsufficientFunds, InvalidInput, InvalidOperation
from src.compliance.fueleu import is_finite_number
from src.compliance.ledger import _require_ship
from src.compliance.locking import BalanceLocks, balance_locks, bank_key, ledger_key
from src.compliance.ports import ComplianceStore

logger = logging.getLogger(__name__)


class BankingService:
    """Bank and withdraw compliance surplus for a ship."""

    def __init__(
        self,
        store: ComplianceStore,
        locks: Optional[BalanceLocks] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.store = store
        self.locks = locks or balance_locks
        self.clock = clock

    def bank_surplus(self, ship_id: str, year: int, amount: float) -> BankEntry:
        """
        Bank ``amount`` of the ship's positive CB for ``year``.

        Raises:
            InvalidOperation: CB <= 0, or amount exceeds the CB
            InvalidInput: amount is not a finite number > 0
        """
        _require_ship(ship_id)

        with self.locks.hold([ledger_key(ship_id, year), bank_key(ship_id)]):
            with self.store.transaction() as tx:
                tx.ledger.lock([(ship_id, year)])
                current_cb = tx.ledger.get(ship_id, year)

                if current_cb <= 0:
                    logger.warning("Bank rejected for %s/%d: CB %.2f", ship_id, year, current_cb)
                    raise InvalidOperation("Cannot bank negative or zero CB", ship_id=ship_id)

                _require_positive_amount(amount, ship_id)

                if amount > current_cb:
                    raise InvalidOperation(
                        f"Cannot bank more than available CB ({current_cb})",
                        ship_id=ship_id,
                    )

                entry = BankEntry(
                    id=generate_id("bank"),
                    ship_id=ship_id,
                    year=year,
                    amount_gco2eq=amount,
                    created_at=self.clock(),
                )
                created = tx.banking.append(entry)
                tx.ledger.set(ship_id, year, current_cb - amount)

        logger.info("Banked %.2f gCO2eq for %s/%d", amount, ship_id, year)
        return created

    def apply_banked(self, ship_id: str, year: int, amount: float) -> None:
        """
        Apply ``amount`` of banked surplus to the ship's deficit for ``year``.

        Raises:
            InsufficientFunds: total banked < amount
            InvalidOperation: CB >= 0, or the result would worsen the CB
            InvalidInput: amount is not a finite number > 0
        """
        _require_ship(ship_id)
        if not is_finite_number(amount):
            raise InvalidInput("amount must be a finite number > 0", ship_id=ship_id)

        with self.locks.hold([ledger_key(ship_id, year), bank_key(ship_id)]):
            with self.store.transaction() as tx:
                # Other processes may apply against the same ship for another year
                tx.banking.lock_ship(ship_id)
                total_banked = tx.banking.sum_by_ship(ship_id)
                if total_banked < amount:
                    logger.warning(
                        "Apply rejected for %s: requested %s, banked %.2f",
                        ship_id, amount, total_banked,
                    )
                    raise InsufficientFunds(ship_id, amount, total_banked)

                tx.ledger.lock([(ship_id, year)])
                current_cb = tx.ledger.get(ship_id, year)
                if current_cb >= 0:
                    raise InvalidOperation(
                        "Cannot apply banked surplus to positive CB", ship_id=ship_id
                    )

                _require_positive_amount(amount, ship_id)

                new_cb = current_cb + amount
                if new_cb < current_cb:
                    raise InvalidOperation(
                        "Application would make deficit worse", ship_id=ship_id
                    )

                tx.banking.append(BankEntry(
                    id=generate_id("apply"),
                    ship_id=ship_id,
                    year=year,
                    amount_gco2eq=-amount,
                    created_at=self.clock(),
                ))
                tx.ledger.set(ship_id, year, new_cb)

        logger.info(
            "Applied %.2f banked gCO2eq to %s/%d (CB %.2f -> %.2f)",
            amount, ship_id, year, current_cb, new_cb,
        )

    def get_total_banked(self, ship_id: str) -> float:
        return self.store.banking.sum_by_ship(ship_id)

    def get_banking_records(self, ship_id: str, year: Optional[int] = None) -> List[BankEntry]:
        """Entries for the ship, optionally one year only, newest first."""
        if year is not None:
            return self.store.banking.list_by_ship_and_year(ship_id, year)
        return self.store.banking.list_by_ship(ship_id)


def _require_positive_amount(amount, ship_id: str) -> None:
    if not is_finite_number(amount) or amount <= 0:
        raise InvalidInput("amount must be a finite number > 0", ship_id=ship_id)
