"""Tests for banking surplus and applying it against deficits."""

import pytest

from src.compliance.banking import BankingService
from src.compliance.errors import InsufficientFunds, InvalidInput, InvalidOperation


@pytest.fixture
def banking(store, locks, clock):
    return BankingService(store, locks=locks, clock=clock)


def _set_cb(store, ship_id, year, cb):
    store.ledger.set(ship_id, year, cb)


# =============================================================================
# Banking surplus
# =============================================================================

class TestBankSurplus:
    def test_bank_reduces_cb_and_grows_total(self, banking, store):
        _set_cb(store, "SHIP-001", 2024, 1000.0)

        entry = banking.bank_surplus("SHIP-001", 2024, 400.0)

        assert entry.amount_gco2eq == 400.0
        assert entry.id.startswith("bank_")
        assert store.ledger.get("SHIP-001", 2024) == pytest.approx(600.0)
        assert banking.get_total_banked("SHIP-001") == pytest.approx(400.0)

    def test_bank_entire_cb(self, banking, store):
        _set_cb(store, "SHIP-001", 2024, 1000.0)
        banking.bank_surplus("SHIP-001", 2024, 1000.0)
        assert store.ledger.get("SHIP-001", 2024) == 0.0

    @pytest.mark.parametrize("cb", [0.0, -250.0])
    def test_non_positive_cb_rejected(self, banking, store, cb):
        _set_cb(store, "SHIP-001", 2024, cb)
        with pytest.raises(InvalidOperation, match="negative or zero CB"):
            banking.bank_surplus("SHIP-001", 2024, 10.0)

    def test_unknown_ship_has_nothing_to_bank(self, banking):
        with pytest.raises(InvalidOperation):
            banking.bank_surplus("GHOST", 2024, 10.0)

    def test_more_than_cb_rejected(self, banking, store):
        _set_cb(store, "SHIP-001", 2024, 100.0)
        with pytest.raises(InvalidOperation, match="more than available CB"):
            banking.bank_surplus("SHIP-001", 2024, 100.5)
        assert store.ledger.get("SHIP-001", 2024) == 100.0
        assert banking.get_banking_records("SHIP-001") == []

    @pytest.mark.parametrize("amount", [0, -10.0, float("nan"), float("inf")])
    def test_bad_amount_rejected(self, banking, store, amount):
        _set_cb(store, "SHIP-001", 2024, 100.0)
        with pytest.raises(InvalidInput):
            banking.bank_surplus("SHIP-001", 2024, amount)
        assert store.ledger.get("SHIP-001", 2024) == 100.0

    def test_cb_check_precedes_amount_check(self, banking, store):
        """A deficit ship is refused as an invalid operation whatever the amount."""
        _set_cb(store, "SHIP-001", 2024, -100.0)
        with pytest.raises(InvalidOperation):
            banking.bank_surplus("SHIP-001", 2024, -5.0)


# =============================================================================
# Applying banked surplus
# =============================================================================

class TestApplyBanked:
    def test_apply_improves_deficit(self, banking, store):
        _set_cb(store, "SHIP-001", 2024, 1000.0)
        banking.bank_surplus("SHIP-001", 2024, 800.0)
        _set_cb(store, "SHIP-001", 2025, -500.0)

        banking.apply_banked("SHIP-001", 2025, 300.0)

        assert store.ledger.get("SHIP-001", 2025) == pytest.approx(-200.0)
        assert banking.get_total_banked("SHIP-001") == pytest.approx(500.0)
        latest = banking.get_banking_records("SHIP-001")[0]
        assert latest.amount_gco2eq == -300.0
        assert latest.year == 2025
        assert latest.id.startswith("apply_")

    def test_insufficient_funds(self, banking, store):
        _set_cb(store, "SHIP-001", 2024, 100.0)
        banking.bank_surplus("SHIP-001", 2024, 100.0)
        _set_cb(store, "SHIP-001", 2025, -500.0)

        with pytest.raises(InsufficientFunds) as exc_info:
            banking.apply_banked("SHIP-001", 2025, 150.0)

        assert exc_info.value.available == pytest.approx(100.0)
        assert "Available: 100.0" in exc_info.value.message
        assert store.ledger.get("SHIP-001", 2025) == -500.0

    def test_insufficient_funds_is_invalid_operation(self):
        assert issubclass(InsufficientFunds, InvalidOperation)

    def test_nothing_banked(self, banking, store):
        _set_cb(store, "SHIP-001", 2025, -500.0)
        with pytest.raises(InsufficientFunds):
            banking.apply_banked("SHIP-001", 2025, 1.0)

    @pytest.mark.parametrize("cb", [0.0, 50.0])
    def test_non_negative_cb_rejected(self, banking, store, cb):
        _set_cb(store, "SHIP-001", 2024, 1000.0)
        banking.bank_surplus("SHIP-001", 2024, 500.0)
        _set_cb(store, "SHIP-001", 2025, cb)

        with pytest.raises(InvalidOperation, match="positive CB"):
            banking.apply_banked("SHIP-001", 2025, 100.0)
        assert banking.get_total_banked("SHIP-001") == pytest.approx(500.0)

    @pytest.mark.parametrize("amount", [0, -10.0])
    def test_bad_amount_rejected(self, banking, store, amount):
        _set_cb(store, "SHIP-001", 2024, 1000.0)
        banking.bank_surplus("SHIP-001", 2024, 500.0)
        _set_cb(store, "SHIP-001", 2025, -300.0)
        with pytest.raises(InvalidInput):
            banking.apply_banked("SHIP-001", 2025, amount)

    @pytest.mark.parametrize("amount", [None, "100", float("nan")])
    def test_non_numeric_amount_rejected(self, banking, store, amount):
        _set_cb(store, "SHIP-001", 2024, 1000.0)
        banking.bank_surplus("SHIP-001", 2024, 500.0)
        _set_cb(store, "SHIP-001", 2025, -300.0)

        with pytest.raises(InvalidInput):
            banking.apply_banked("SHIP-001", 2025, amount)
        assert banking.get_total_banked("SHIP-001") == pytest.approx(500.0)
        assert store.ledger.get("SHIP-001", 2025) == -300.0

    def test_ship_locked_before_total_read(self, banking, store, monkeypatch):
        _set_cb(store, "SHIP-001", 2024, 1000.0)
        banking.bank_surplus("SHIP-001", 2024, 500.0)
        _set_cb(store, "SHIP-001", 2025, -300.0)

        calls = []
        lock_ship = store.banking.lock_ship
        sum_by_ship = store.banking.sum_by_ship

        def recording_lock(ship_id):
            calls.append(("lock", ship_id))
            return lock_ship(ship_id)

        def recording_sum(ship_id):
            calls.append(("sum", ship_id))
            return sum_by_ship(ship_id)

        monkeypatch.setattr(store.banking, "lock_ship", recording_lock)
        monkeypatch.setattr(store.banking, "sum_by_ship", recording_sum)

        banking.apply_banked("SHIP-001", 2025, 100.0)
        assert calls[:2] == [("lock", "SHIP-001"), ("sum", "SHIP-001")]

    def test_overshoot_into_surplus_allowed(self, banking, store):
        """Applying more than the deficit lifts the CB above zero."""
        _set_cb(store, "SHIP-001", 2024, 1000.0)
        banking.bank_surplus("SHIP-001", 2024, 1000.0)
        _set_cb(store, "SHIP-001", 2025, -200.0)

        banking.apply_banked("SHIP-001", 2025, 500.0)
        assert store.ledger.get("SHIP-001", 2025) == pytest.approx(300.0)


# =============================================================================
# History
# =============================================================================

class TestBankingRecords:
    def test_newest_first_and_year_filter(self, banking, store):
        _set_cb(store, "SHIP-001", 2024, 1000.0)
        first = banking.bank_surplus("SHIP-001", 2024, 100.0)
        second = banking.bank_surplus("SHIP-001", 2024, 200.0)
        _set_cb(store, "SHIP-001", 2025, -50.0)
        banking.apply_banked("SHIP-001", 2025, 50.0)

        records = banking.get_banking_records("SHIP-001")
        assert [r.amount_gco2eq for r in records] == [-50.0, 200.0, 100.0]

        only_2024 = banking.get_banking_records("SHIP-001", 2024)
        assert [r.id for r in only_2024] == [second.id, first.id]

    def test_other_ships_excluded(self, banking, store):
        _set_cb(store, "SHIP-001", 2024, 1000.0)
        _set_cb(store, "SHIP-002", 2024, 1000.0)
        banking.bank_surplus("SHIP-001", 2024, 100.0)
        banking.bank_surplus("SHIP-002", 2024, 300.0)

        assert banking.get_total_banked("SHIP-001") == pytest.approx(100.0)
        assert len(banking.get_banking_records("SHIP-002")) == 1

    def test_total_for_unknown_ship_is_zero(self, banking):
        assert banking.get_total_banked("GHOST") == 0.0
