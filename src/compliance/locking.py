"""
Per-key mutual exclusion for ledger writers.

Banking, pooling and recalculation all read a balance, derive a new one and
write it back. ``BalanceLocks`` hands out one re-entrant lock per key so that
two writers on the same (ship, year) balance, or on the same ship's banking
log, never interleave inside one process. Multi-key callers acquire in sorted
order, which rules out lock-order deadlocks.
"""

import threading
from contextlib import ExitStack, contextmanager
from typing import Dict, Hashable, Iterable, Iterator, Tuple


def ledger_key(ship_id: str, year: int) -> Tuple[str, str, int]:
    return ("ledger", ship_id, year)


def bank_key(ship_id: str) -> Tuple[str, str]:
    return ("bank", ship_id)


ROUTES_KEY = ("routes",)


class BalanceLocks:
    """Registry of lazily created per-key locks."""

    def __init__(self):
        self._registry_lock = threading.Lock()
        self._locks: Dict[Hashable, threading.RLock] = {}

    def _lock_for(self, key: Hashable) -> threading.RLock:
        with self._registry_lock:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.RLock()
                self._locks[key] = lock
            return lock

    @contextmanager
    def hold(self, keys: Iterable[Hashable]) -> Iterator[None]:
        """
        Hold the locks for every key until the block exits.

        Usage:
            with locks.hold([ledger_key("SHIP-001", 2025)]):
                ...
        """
        ordered = sorted(set(keys), key=repr)
        with ExitStack() as stack:
            for key in ordered:
                stack.enter_context(self._lock_for(key))
            yield

    def __len__(self) -> int:
        with self._registry_lock:
            return len(self._locks)


# Process-wide registry shared by every service instance
balance_locks = BalanceLocks()
