"""Tests for per-key balance locks and concurrent ledger writers."""

import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from src.compliance.banking import BankingService
from src.compliance.errors import InvalidOperation
from src.compliance.locking import BalanceLocks, bank_key, ledger_key
from src.compliance.pooling import PoolingService


class TestBalanceLocks:
    def test_same_key_same_lock(self, locks):
        assert locks._lock_for(ledger_key("A", 2025)) is locks._lock_for(ledger_key("A", 2025))
        assert len(locks) == 1

    def test_reentrant(self, locks):
        with locks.hold([ledger_key("A", 2025), bank_key("A")]):
            with locks.hold([bank_key("A")]):
                pass

    def test_duplicate_keys_collapsed(self, locks):
        with locks.hold([bank_key("A"), bank_key("A")]):
            pass
        assert len(locks) == 1

    def test_blocks_other_thread(self, locks):
        entered = threading.Event()
        release = threading.Event()
        acquired_by_other = []

        def holder():
            with locks.hold([bank_key("A")]):
                entered.set()
                release.wait(5)

        def contender():
            with locks.hold([bank_key("A")]):
                acquired_by_other.append(True)

        t1 = threading.Thread(target=holder)
        t1.start()
        entered.wait(5)
        t2 = threading.Thread(target=contender)
        t2.start()
        t2.join(0.2)
        assert acquired_by_other == []

        release.set()
        t1.join(5)
        t2.join(5)
        assert acquired_by_other == [True]


class TestConcurrentLedgerWrites:
    def test_concurrent_banking_never_overdraws(self, store):
        """50 threads each try to bank 30 out of 1000: at most 33 succeed."""
        store.ledger.set("SHIP-001", 2024, 1000.0)
        service = BankingService(store, locks=BalanceLocks())

        def attempt(_):
            try:
                service.bank_surplus("SHIP-001", 2024, 30.0)
                return True
            except InvalidOperation:
                return False

        with ThreadPoolExecutor(max_workers=16) as pool:
            results = list(pool.map(attempt, range(50)))

        assert sum(results) == 33
        assert store.ledger.get("SHIP-001", 2024) == pytest.approx(10.0)
        assert service.get_total_banked("SHIP-001") == pytest.approx(990.0)

    def test_concurrent_pools_conserve_total(self, store):
        """Overlapping pools on shared ships keep the fleet total unchanged."""
        ships = ["A", "B", "C", "D"]
        for ship, cb in zip(ships, [1000.0, -10.0, 300.0, 200.0]):
            store.ledger.set(ship, 2025, cb)
        fleet_before = sum(store.ledger.get(s, 2025) for s in ships)

        service = PoolingService(store, locks=BalanceLocks())
        groups = [["A", "B"], ["B", "C"], ["C", "D"], ["D", "A"]] * 5

        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(lambda g: service.create_pool(2025, g), groups))

        fleet_after = sum(store.ledger.get(s, 2025) for s in ships)
        assert fleet_after == pytest.approx(fleet_before)
        assert store.pools.count() == len(groups)
