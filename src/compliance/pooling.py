"""
Pooling subsystem.

A pool redistributes the members' net compliance balance equally. The pool is
only formed when the net total is non-negative and no member is left worse
off: a deficit ship may not end lower than it started, and a surplus ship may
not end negative.
"""

import logging
from datetime import datetime
from typing import Callable, Dict, List, Optional, Sequence

from src.compliance.entities import Pool, PoolMember, generate_id, utcnow
from src.compliance.errors import InvalidInput, InvalidOperation, NotFound
from src.compliance.ledger import _require_ship
from src.compliance.locking import BalanceLocks, balance_locks, ledger_key
from src.compliance.ports import ComplianceStore

logger = logging.getLogger(__name__)


class PoolingService:
    """Creates pools and reads their membership."""

    def __init__(
        self,
        store: ComplianceStore,
        locks: Optional[BalanceLocks] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.store = store
        self.locks = locks or balance_locks
        self.clock = clock

    def create_pool(self, year: int, ship_ids: Sequence[str]) -> Pool:
        """
        Pool the balances of ``ship_ids`` for ``year``.

        Every member ends with ``sum(cb_before) / n``. All checks run before
        the first write; the pool, its members and the new balances are
        persisted in one transaction.

        Raises:
            InvalidInput: fewer than two ships, blank or duplicate ship ids
            InvalidOperation: negative pool sum or an unfair allocation
        """
        ship_ids = list(ship_ids)
        if len(ship_ids) < 2:
            raise InvalidInput("Pool must have at least 2 ships")
        for ship_id in ship_ids:
            _require_ship(ship_id)
        if len(set(ship_ids)) != len(ship_ids):
            raise InvalidInput("Pool ship ids must be unique")

        with self.locks.hold([ledger_key(s, year) for s in ship_ids]):
            with self.store.transaction() as tx:
                tx.ledger.lock([(s, year) for s in ship_ids])
                cb_before: Dict[str, float] = {
                    s: tx.ledger.get(s, year) for s in ship_ids
                }

                total = sum(cb_before.values())
                if total < 0:
                    logger.warning(
                        "Pool rejected for %d: sum %.2f over %s", year, total, ship_ids
                    )
                    raise InvalidOperation(f"Pool sum must be >= 0. Current sum: {total}")

                cb_after = total / len(ship_ids)
                _check_fairness(cb_before, cb_after)

                pool = tx.pools.create_pool(
                    Pool(id=generate_id("pool"), year=year, created_at=self.clock())
                )
                for ship_id in ship_ids:
                    tx.pools.add_member(PoolMember(
                        pool_id=pool.id,
                        ship_id=ship_id,
                        cb_before=cb_before[ship_id],
                        cb_after=cb_after,
                    ))
                    tx.ledger.set(ship_id, year, cb_after)

        logger.info(
            "Pool %s created for %d with %d ships (%.2f each)",
            pool.id, year, len(ship_ids), cb_after,
        )
        return pool

    def get_pool(self, pool_id: str) -> Pool:
        pool = self.store.pools.get_pool(pool_id)
        if pool is None:
            raise NotFound(f"Pool {pool_id} not found")
        return pool

    def get_pool_members(self, pool_id: str) -> List[PoolMember]:
        self.get_pool(pool_id)
        return self.store.pools.get_members(pool_id)


def _check_fairness(cb_before: Dict[str, float], cb_after: float) -> None:
    for ship_id, before in cb_before.items():
        if before < 0 and cb_after < before:
            raise InvalidOperation(f"Deficit ship {ship_id} would exit worse", ship_id=ship_id)
        if before > 0 and cb_after < 0:
            raise InvalidOperation(f"Surplus ship {ship_id} would exit negative", ship_id=ship_id)
