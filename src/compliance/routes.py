"""
Route registry and baseline comparison.

At most one route carries the baseline flag. The comparison measures every
route's GHG intensity against the baseline intensity and against the
regulatory target.
"""

import logging
from dataclasses import replace
from typing import List, Optional

from src.compliance.entities import (
    BaselineSummary,
    ComparisonReport,
    Route,
    RouteComparison,
    utcnow,
)
from src.compliance.errors import InvalidInput, InvalidOperation, NotFound
from src.compliance.fueleu import BalanceCalculator, ComplianceParameters, is_finite_number
from src.compliance.locking import ROUTES_KEY, BalanceLocks, balance_locks
from src.compliance.ports import ComplianceStore

logger = logging.getLogger(__name__)


class RouteService:
    """Route listing, registration and baseline management."""

    def __init__(
        self,
        store: ComplianceStore,
        params: Optional[ComplianceParameters] = None,
        locks: Optional[BalanceLocks] = None,
    ):
        self.store = store
        self.params = params or ComplianceParameters()
        self.locks = locks or balance_locks

    def list_routes(
        self,
        vessel_type: Optional[str] = None,
        fuel_type: Optional[str] = None,
        year: Optional[int] = None,
    ) -> List[Route]:
        """
        List routes ordered by year (newest first), then route id.

        ``vessel_type`` and ``fuel_type`` match case-insensitive substrings;
        ``year`` matches exactly.
        """
        routes = self.store.routes.list_all()
        if vessel_type:
            needle = vessel_type.lower()
            routes = [r for r in routes if needle in r.vessel_type.lower()]
        if fuel_type:
            needle = fuel_type.lower()
            routes = [r for r in routes if needle in r.fuel_type.lower()]
        if year is not None:
            routes = [r for r in routes if r.year == year]
        return routes

    def get_route(self, route_id: str) -> Route:
        route = self.store.routes.get_by_id(route_id)
        if route is None:
            raise NotFound(f"Route {route_id} not found")
        return route

    def create_route(self, route: Route) -> Route:
        """
        Register a new route.

        A route created with ``is_baseline=True`` takes the flag from the
        current baseline.
        """
        _validate_route(route)

        with self.locks.hold([ROUTES_KEY]):
            with self.store.transaction() as tx:
                if tx.routes.get_by_id(route.route_id) is not None:
                    raise InvalidOperation(f"Route {route.route_id} already exists")
                created = tx.routes.create(replace(route, is_baseline=False))
                if route.is_baseline:
                    tx.routes.set_baseline(route.route_id)
                    created = replace(created, is_baseline=True)

        logger.info("Route %s registered (baseline=%s)", route.route_id, route.is_baseline)
        return created

    def set_baseline(self, route_id: str) -> Route:
        """Flag ``route_id`` as the sole baseline route."""
        with self.locks.hold([ROUTES_KEY]):
            with self.store.transaction() as tx:
                route = tx.routes.get_by_id(route_id)
                if route is None:
                    logger.warning("Baseline change rejected: unknown route %s", route_id)
                    raise NotFound(f"Route {route_id} not found")
                tx.routes.set_baseline(route_id)

        logger.info("Baseline set to route %s", route_id)
        return replace(route, is_baseline=True)

    def get_baseline(self) -> Optional[Route]:
        for route in self.store.routes.list_all():
            if route.is_baseline:
                return route
        return None

    def compare_routes(self) -> ComparisonReport:
        """Compare every route against the baseline and the target."""
        routes = self.store.routes.list_all()
        baseline = next((r for r in routes if r.is_baseline), None)

        if baseline is not None:
            summary = BaselineSummary(
                route_id=baseline.route_id,
                vessel_type=baseline.vessel_type,
                ghg_intensity=baseline.ghg_intensity,
            )
        else:
            summary = BaselineSummary(
                route_id="default",
                vessel_type="Reference",
                ghg_intensity=self.params.default_baseline_intensity,
            )

        target = self.params.target_intensity
        rows = [
            RouteComparison(
                route=route,
                baseline_ghg_intensity=summary.ghg_intensity,
                percent_diff=BalanceCalculator.percent_diff(
                    route.ghg_intensity, summary.ghg_intensity
                ),
                compliant=route.ghg_intensity <= target,
            )
            for route in routes
        ]
        return ComparisonReport(
            baseline=summary,
            target_intensity=target,
            routes=rows,
            generated_at=utcnow(),
        )


def _validate_route(route: Route) -> None:
    if not isinstance(route.route_id, str) or not route.route_id.strip():
        raise InvalidInput("route_id is required")
    if not is_finite_number(route.ghg_intensity) or route.ghg_intensity <= 0:
        raise InvalidInput("ghg_intensity must be a finite number > 0")
    for name in ("fuel_consumption", "distance", "total_emissions"):
        value = getattr(route, name)
        if not is_finite_number(value) or value < 0:
            raise InvalidInput(f"{name} must be a finite number >= 0")
