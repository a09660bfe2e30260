"""
Unit tests for the request and ledger-operation metrics.
"""

import pytest

from api import middleware
from api.middleware import MetricsCollector, track_operation
from src.compliance.errors import InsufficientFunds


@pytest.fixture
def collector(monkeypatch):
    fresh = MetricsCollector()
    monkeypatch.setattr(middleware, "metrics_collector", fresh)
    return fresh


class TestMetricsCollector:

    def test_request_counts_by_template(self, collector):
        collector.record_request("GET", "/api/pools/{pool_id}", 200, 0.01)
        collector.record_request("GET", "/api/pools/{pool_id}", 200, 0.03)
        collector.record_request("POST", "/api/pools", 500, 0.1)

        data = collector.get_metrics()
        assert data["requests"]["total"] == 3
        assert data["requests"]["by_endpoint"]["GET:/api/pools/{pool_id}:200"] == 2
        assert data["latency"]["sum_seconds"]["GET:/api/pools/{pool_id}:200"] == pytest.approx(0.04)
        assert data["errors"]["by_endpoint"] == {"POST:/api/pools": 1}

    def test_client_errors_not_counted_as_errors(self, collector):
        collector.record_request("POST", "/api/banking/bank", 400, 0.01)
        assert collector.get_metrics()["errors"]["total"] == 0

    def test_prometheus_format(self, collector):
        collector.record_request("GET", "/api/routes", 200, 0.5)
        collector.record_operation("bank", "ok")
        text = collector.get_prometheus_metrics()

        assert "# TYPE fueleu_uptime_seconds gauge" in text
        assert 'fueleu_requests_total{method="GET",path="/api/routes",status="200"} 1' in text
        assert 'fueleu_ledger_operations_total{operation="bank",outcome="ok"} 1' in text
        assert text.endswith("\n")


class TestTrackOperation:

    def test_success_counted_ok(self, collector):
        with track_operation("bank"):
            pass
        assert collector.operation_count == {"bank:ok": 1}

    def test_failure_counted_by_kind(self, collector):
        with pytest.raises(InsufficientFunds):
            with track_operation("apply"):
                raise InsufficientFunds("SHIP-001", 10.0, 0.0)
        assert collector.operation_count == {"apply:insufficient_funds": 1}

    def test_unexpected_failure_counted_as_error(self, collector):
        with pytest.raises(RuntimeError):
            with track_operation("pool"):
                raise RuntimeError("boom")
        assert collector.operation_count == {"pool:error": 1}
