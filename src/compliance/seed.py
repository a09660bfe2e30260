"""
Reference data for demos and local development.

Five routes (R001 is the baseline) and one ship balance per route, computed
from the route's intensity and fuel. Existing routes and balances are left
untouched, so seeding twice is harmless.
"""

import logging
from dataclasses import replace
from typing import Dict

from src.compliance.entities import Route
from src.compliance.fueleu import BalanceCalculator, ComplianceParameters
from src.compliance.ports import ComplianceStore

logger = logging.getLogger(__name__)

REFERENCE_ROUTES = [
    Route("R001", "Container", "HFO", 2024, 91.0, 5000, 12000, 4500, is_baseline=True),
    Route("R002", "Bulk Carrier", "LNG", 2024, 88.0, 4800, 11500, 4200),
    Route("R003", "Tanker", "MGO", 2024, 93.5, 5100, 12500, 4700),
    Route("R004", "RoRo", "HFO", 2025, 89.2, 4900, 11800, 4300),
    Route("R005", "Container", "LNG", 2025, 90.5, 4950, 11900, 4400),
]


def seed_reference_data(store: ComplianceStore, params: ComplianceParameters = None) -> Dict[str, int]:
    """
    Insert the reference routes and SHIP-001..SHIP-005 balances.

    Returns:
        Counts of routes and balances actually created
    """
    calculator = BalanceCalculator(params)
    created = {"routes": 0, "balances": 0}

    with store.transaction() as tx:
        for route in REFERENCE_ROUTES:
            if tx.routes.get_by_id(route.route_id) is None:
                tx.routes.create(replace(route, is_baseline=False))
                if route.is_baseline:
                    tx.routes.set_baseline(route.route_id)
                created["routes"] += 1

        for index, route in enumerate(REFERENCE_ROUTES, start=1):
            ship_id = f"SHIP-{index:03d}"
            existing = {b.ship_id for b in tx.ledger.list_by_year(route.year)}
            if ship_id in existing:
                continue
            balance = calculator.calculate_for_year(
                route.year, route.ghg_intensity, route.fuel_consumption
            )
            tx.ledger.set(ship_id, route.year, balance.cb)
            created["balances"] += 1

    logger.info(
        "Seeded %d route(s) and %d balance(s)", created["routes"], created["balances"]
    )
    return created
