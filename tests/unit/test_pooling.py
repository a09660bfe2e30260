"""Tests for pool creation, fairness rules and membership lookups."""

import pytest

from src.compliance.errors import InvalidInput, InvalidOperation, NotFound
from src.compliance.pooling import PoolingService


@pytest.fixture
def pooling(store, locks, clock):
    return PoolingService(store, locks=locks, clock=clock)


def _balances(store, year, **cbs):
    for ship_id, cb in cbs.items():
        store.ledger.set(ship_id, year, cb)


class TestCreatePool:
    def test_surplus_covers_deficit(self, pooling, store):
        """A=1000, B=-500: net 500, each member ends at 250."""
        _balances(store, 2025, A=1000.0, B=-500.0)

        pool = pooling.create_pool(2025, ["A", "B"])

        assert pool.year == 2025
        assert pool.id.startswith("pool_")
        assert store.ledger.get("A", 2025) == pytest.approx(250.0)
        assert store.ledger.get("B", 2025) == pytest.approx(250.0)

        members = {m.ship_id: m for m in pooling.get_pool_members(pool.id)}
        assert members["A"].cb_before == 1000.0
        assert members["B"].cb_before == -500.0
        assert all(m.cb_after == pytest.approx(250.0) for m in members.values())

    def test_negative_sum_rejected_and_nothing_persisted(self, pooling, store):
        """A=1000, C=-2000: net -1000, no pool and no balance change."""
        _balances(store, 2025, A=1000.0, C=-2000.0)

        with pytest.raises(InvalidOperation, match="Pool sum must be >= 0"):
            pooling.create_pool(2025, ["A", "C"])

        assert store.pools.count() == 0
        assert store.ledger.get("A", 2025) == 1000.0
        assert store.ledger.get("C", 2025) == -2000.0

    def test_sum_is_conserved(self, pooling, store):
        _balances(store, 2025, A=900.0, B=-300.0, C=150.0, D=-450.0)
        before = sum(store.ledger.get(s, 2025) for s in "ABCD")

        pooling.create_pool(2025, list("ABCD"))

        after = sum(store.ledger.get(s, 2025) for s in "ABCD")
        assert after == pytest.approx(before)

    def test_zero_sum_pool(self, pooling, store):
        _balances(store, 2025, A=500.0, B=-500.0)
        pooling.create_pool(2025, ["A", "B"])
        assert store.ledger.get("A", 2025) == pytest.approx(0.0)
        assert store.ledger.get("B", 2025) == pytest.approx(0.0)

    def test_ship_without_record_counts_as_zero(self, pooling, store):
        _balances(store, 2025, A=600.0)
        pool = pooling.create_pool(2025, ["A", "NEW"])

        members = {m.ship_id: m for m in pooling.get_pool_members(pool.id)}
        assert members["NEW"].cb_before == 0.0
        assert store.ledger.get("NEW", 2025) == pytest.approx(300.0)

    def test_other_years_untouched(self, pooling, store):
        _balances(store, 2025, A=1000.0, B=-500.0)
        _balances(store, 2024, A=-10.0)
        pooling.create_pool(2025, ["A", "B"])
        assert store.ledger.get("A", 2024) == -10.0


class TestPoolInputValidation:
    def test_single_ship_rejected(self, pooling, store):
        _balances(store, 2025, A=1000.0)
        with pytest.raises(InvalidInput, match="at least 2 ships"):
            pooling.create_pool(2025, ["A"])

    def test_empty_rejected(self, pooling):
        with pytest.raises(InvalidInput):
            pooling.create_pool(2025, [])

    def test_duplicate_ship_rejected(self, pooling, store):
        _balances(store, 2025, A=1000.0)
        with pytest.raises(InvalidInput, match="unique"):
            pooling.create_pool(2025, ["A", "A"])
        assert store.ledger.get("A", 2025) == 1000.0

    def test_blank_ship_rejected(self, pooling):
        with pytest.raises(InvalidInput):
            pooling.create_pool(2025, ["A", " "])


class TestFairness:
    def test_fair_allocation_never_hurts(self, pooling, store):
        _balances(store, 2025, A=2000.0, B=-100.0, C=-700.0)
        pool = pooling.create_pool(2025, ["A", "B", "C"])

        for member in pooling.get_pool_members(pool.id):
            if member.cb_before < 0:
                assert member.cb_after >= member.cb_before
            if member.cb_before > 0:
                assert member.cb_after >= 0

    def test_unfair_member_rejects_whole_pool(self, pooling, store, monkeypatch):
        """A violation for any member leaves every balance and the pool store untouched."""
        import src.compliance.pooling as pooling_module

        def strict(cb_before, cb_after):
            raise InvalidOperation("Deficit ship B would exit worse", ship_id="B")

        monkeypatch.setattr(pooling_module, "_check_fairness", strict)
        _balances(store, 2025, A=1000.0, B=-500.0)

        with pytest.raises(InvalidOperation, match="would exit worse"):
            pooling.create_pool(2025, ["A", "B"])

        assert store.pools.count() == 0
        assert store.ledger.get("A", 2025) == 1000.0
        assert store.ledger.get("B", 2025) == -500.0

    def test_failure_mid_write_rolls_back_pool(self, pooling, store, monkeypatch):
        """Pool row, earlier members and their new balances all disappear."""
        _balances(store, 2025, A=1000.0, B=-500.0, C=100.0)
        add_member = store.pools.add_member
        added = []

        def failing_add_member(member):
            if len(added) == 2:
                raise RuntimeError("disk full")
            added.append(member.ship_id)
            add_member(member)

        monkeypatch.setattr(store.pools, "add_member", failing_add_member)

        with pytest.raises(RuntimeError):
            pooling.create_pool(2025, ["A", "B", "C"])

        assert added == ["A", "B"]
        assert store.pools.count() == 0
        assert [store.ledger.get(s, 2025) for s in "ABC"] == [1000.0, -500.0, 100.0]

    def test_check_fairness_names_deficit_ship(self):
        from src.compliance.pooling import _check_fairness

        with pytest.raises(InvalidOperation, match="Deficit ship B would exit worse"):
            _check_fairness({"B": -50.0, "A": 100.0}, -60.0)

    def test_check_fairness_names_surplus_ship(self):
        from src.compliance.pooling import _check_fairness

        with pytest.raises(InvalidOperation, match="Surplus ship A would exit negative"):
            _check_fairness({"A": 100.0, "B": 0.0}, -1.0)


class TestPoolLookups:
    def test_get_pool(self, pooling, store):
        _balances(store, 2025, A=10.0, B=20.0)
        created = pooling.create_pool(2025, ["A", "B"])
        assert pooling.get_pool(created.id) == created

    def test_unknown_pool(self, pooling):
        with pytest.raises(NotFound):
            pooling.get_pool("pool_missing")

    def test_unknown_pool_members(self, pooling):
        with pytest.raises(NotFound):
            pooling.get_pool_members("pool_missing")

    def test_members_keep_request_order(self, pooling, store):
        _balances(store, 2025, C=10.0, A=20.0, B=30.0)
        pool = pooling.create_pool(2025, ["C", "A", "B"])
        assert [m.ship_id for m in pooling.get_pool_members(pool.id)] == ["C", "A", "B"]
