"""
In-memory implementation of the persistence contract.

Used when ``STORAGE_BACKEND=memory`` and throughout the unit tests. Writes
made inside ``transaction()`` are recorded in a per-thread undo log; an
exception inside the block replays the log backwards, so a failed operation
leaves no trace while concurrent transactions on other keys keep their
writes.
"""

import logging
import threading
from contextlib import contextmanager
from dataclasses import replace
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Tuple

from src.compliance.entities import BankEntry, Pool, PoolMember, Route, ShipCompliance
from src.compliance.errors import InvalidOperation

logger = logging.getLogger(__name__)

_MISSING = object()


class _UndoLog(threading.local):
    def __init__(self):
        self.stack: List[List[Callable[[], None]]] = []

    def record(self, undo: Callable[[], None]) -> None:
        if self.stack:
            self.stack[-1].append(undo)


class InMemoryLedgerStore:
    def __init__(self, lock: threading.RLock, undo: _UndoLog):
        self._lock = lock
        self._undo = undo
        self._balances: Dict[Tuple[str, int], float] = {}

    def get(self, ship_id: str, year: int) -> float:
        with self._lock:
            return self._balances.get((ship_id, year), 0.0)

    def set(self, ship_id: str, year: int, cb_gco2eq: float) -> None:
        key = (ship_id, year)
        with self._lock:
            previous = self._balances.get(key, _MISSING)
            self._balances[key] = cb_gco2eq
        self._undo.record(lambda: self._restore(key, previous))

    def list_by_year(self, year: int) -> List[ShipCompliance]:
        with self._lock:
            return [
                ShipCompliance(ship_id=ship, year=yr, cb_gco2eq=cb)
                for (ship, yr), cb in sorted(self._balances.items())
                if yr == year
            ]

    def lock(self, keys: Iterable[Tuple[str, int]]) -> None:
        # Single process: BalanceLocks already serializes writers.
        return None

    def _restore(self, key, previous) -> None:
        with self._lock:
            if previous is _MISSING:
                self._balances.pop(key, None)
            else:
                self._balances[key] = previous


class InMemoryBankingLog:
    def __init__(self, lock: threading.RLock, undo: _UndoLog):
        self._lock = lock
        self._undo = undo
        self._entries: List[BankEntry] = []

    def append(self, entry: BankEntry) -> BankEntry:
        with self._lock:
            self._entries.append(entry)
        self._undo.record(lambda: self._remove(entry))
        return entry

    def list_by_ship(self, ship_id: str) -> List[BankEntry]:
        with self._lock:
            entries = [e for e in self._entries if e.ship_id == ship_id]
        return _newest_first(entries)

    def list_by_ship_and_year(self, ship_id: str, year: int) -> List[BankEntry]:
        with self._lock:
            entries = [
                e for e in self._entries if e.ship_id == ship_id and e.year == year
            ]
        return _newest_first(entries)

    def lock_ship(self, ship_id: str) -> None:
        # Single process: BalanceLocks already serializes writers.
        return None

    def sum_by_ship(self, ship_id: str) -> float:
        with self._lock:
            return sum(e.amount_gco2eq for e in self._entries if e.ship_id == ship_id)

    def _remove(self, entry: BankEntry) -> None:
        with self._lock:
            self._entries.remove(entry)


def _newest_first(entries: List[BankEntry]) -> List[BankEntry]:
    # Insertion order breaks ties between equal timestamps
    indexed = list(enumerate(entries))
    indexed.sort(key=lambda pair: (pair[1].created_at, pair[0]), reverse=True)
    return [e for _, e in indexed]


class InMemoryPoolStore:
    def __init__(self, lock: threading.RLock, undo: _UndoLog):
        self._lock = lock
        self._undo = undo
        self._pools: Dict[str, Pool] = {}
        self._members: Dict[str, List[PoolMember]] = {}

    def create_pool(self, pool: Pool) -> Pool:
        with self._lock:
            if pool.id in self._pools:
                raise InvalidOperation(f"Pool {pool.id} already exists")
            self._pools[pool.id] = pool
            self._members[pool.id] = []
        self._undo.record(lambda: self._drop_pool(pool.id))
        return pool

    def add_member(self, member: PoolMember) -> None:
        with self._lock:
            if member.pool_id not in self._pools:
                raise InvalidOperation(f"Pool {member.pool_id} does not exist")
            self._members[member.pool_id].append(member)
        self._undo.record(lambda: self._drop_member(member))

    def get_pool(self, pool_id: str) -> Optional[Pool]:
        with self._lock:
            return self._pools.get(pool_id)

    def get_members(self, pool_id: str) -> List[PoolMember]:
        with self._lock:
            return list(self._members.get(pool_id, []))

    def count(self) -> int:
        with self._lock:
            return len(self._pools)

    def _drop_pool(self, pool_id: str) -> None:
        with self._lock:
            self._pools.pop(pool_id, None)
            self._members.pop(pool_id, None)

    def _drop_member(self, member: PoolMember) -> None:
        with self._lock:
            members = self._members.get(member.pool_id)
            if members and member in members:
                members.remove(member)


class InMemoryRouteStore:
    def __init__(self, lock: threading.RLock, undo: _UndoLog):
        self._lock = lock
        self._undo = undo
        self._routes: Dict[str, Route] = {}

    def list_all(self) -> List[Route]:
        with self._lock:
            routes = [replace(r) for r in self._routes.values()]
        routes.sort(key=lambda r: r.route_id)
        routes.sort(key=lambda r: r.year, reverse=True)
        return routes

    def get_by_id(self, route_id: str) -> Optional[Route]:
        with self._lock:
            route = self._routes.get(route_id)
            return replace(route) if route else None

    def create(self, route: Route) -> Route:
        with self._lock:
            if route.route_id in self._routes:
                raise InvalidOperation(f"Route {route.route_id} already exists")
            self._routes[route.route_id] = replace(route)
        self._undo.record(lambda: self._drop(route.route_id))
        return replace(route)

    def set_baseline(self, route_id: str) -> None:
        with self._lock:
            previous = {rid: r.is_baseline for rid, r in self._routes.items()}
            for route in self._routes.values():
                route.is_baseline = False
            if route_id in self._routes:
                self._routes[route_id].is_baseline = True
        self._undo.record(lambda: self._restore_flags(previous))

    def _drop(self, route_id: str) -> None:
        with self._lock:
            self._routes.pop(route_id, None)

    def _restore_flags(self, flags: Dict[str, bool]) -> None:
        with self._lock:
            for rid, flag in flags.items():
                if rid in self._routes:
                    self._routes[rid].is_baseline = flag


class InMemoryComplianceStore:
    """All four stores behind one undo-log transaction scope."""

    def __init__(self):
        self._lock = threading.RLock()
        self._undo = _UndoLog()
        self.ledger = InMemoryLedgerStore(self._lock, self._undo)
        self.banking = InMemoryBankingLog(self._lock, self._undo)
        self.pools = InMemoryPoolStore(self._lock, self._undo)
        self.routes = InMemoryRouteStore(self._lock, self._undo)

    @contextmanager
    def transaction(self) -> Iterator["InMemoryComplianceStore"]:
        log: List[Callable[[], None]] = []
        self._undo.stack.append(log)
        try:
            yield self
        except BaseException:
            self._undo.stack.pop()
            for undo in reversed(log):
                undo()
            if log:
                logger.debug(f"Rolled back {len(log)} in-memory write(s)")
            raise
        else:
            self._undo.stack.pop()
            # Nested block: the enclosing transaction owns these writes now
            if self._undo.stack:
                self._undo.stack[-1].extend(log)
