#!/usr/bin/env python3
"""
FuelEU Ledger CLI Tool.

Command-line interface for administrative tasks:
- Database operations (create or drop tables, seed reference data)
- Balance lookup
- Health checks

Usage:
    python -m api.cli init-db
    python -m api.cli drop-db --yes
    python -m api.cli seed
    python -m api.cli show-balance --ship SHIP-001 --year 2024
    python -m api.cli check-health
"""
import argparse
import sys


def init_db() -> None:
    """Initialize the database."""
    from api.database import init_db as do_init

    print("Initializing database...")
    do_init()
    print("Database initialized successfully.")


def drop_db(confirmed: bool) -> None:
    """Drop every ledger table."""
    from api.database import drop_db as do_drop

    if not confirmed:
        print("Refusing to drop tables without --yes.")
        sys.exit(1)
    do_drop()
    print("Ledger tables dropped.")


def seed() -> None:
    """Create the tables if needed and insert the reference routes and balances."""
    from api.config import settings
    from api.database import get_db_context, init_db as do_init
    from api.repositories import SqlComplianceStore
    from src.compliance.seed import seed_reference_data

    do_init()
    with get_db_context() as db:
        created = seed_reference_data(SqlComplianceStore(db), settings.compliance_parameters())

    print(f"\nSeeded {created['routes']} route(s) and {created['balances']} balance(s).")


def show_balance(ship_id: str, year: int) -> None:
    """Print the current CB and banking history of a ship."""
    from api.database import get_db_context
    from api.repositories import SqlComplianceStore

    with get_db_context() as db:
        store = SqlComplianceStore(db)
        cb = store.ledger.get(ship_id, year)
        total_banked = store.banking.sum_by_ship(ship_id)
        entries = store.banking.list_by_ship_and_year(ship_id, year)

    status = "surplus" if cb > 0 else "deficit" if cb < 0 else "balanced"
    print("\n" + "=" * 60)
    print(f"COMPLIANCE BALANCE: {ship_id} / {year}")
    print("=" * 60)
    print(f"CB:           {cb:,.2f} gCO2eq ({status})")
    print(f"Total banked: {total_banked:,.2f} gCO2eq")

    if entries:
        print("-" * 60)
        print(f"{'Entry':<34} {'Amount':>16} {'Created':<10}")
        for entry in entries:
            print(
                f"{entry.id[:33]:<34} "
                f"{entry.amount_gco2eq:>16,.2f} "
                f"{entry.created_at.strftime('%Y-%m-%d'):<10}"
            )
    print("=" * 60 + "\n")


def check_health(url: str) -> None:
    """Check API health."""
    import requests

    try:
        response = requests.get(url, timeout=5)
        if response.status_code == 200:
            data = response.json()
            print(f"\nAPI Status: {data.get('status', 'unknown')}")
            print(f"Version: {data.get('version', 'unknown')}")
            print(f"Storage: {data.get('storage_backend', 'unknown')}")
            print(f"Uptime: {data.get('uptime_seconds', 'unknown')}s")
        else:
            print(f"\nAPI returned status code: {response.status_code}")
            sys.exit(1)
    except requests.exceptions.ConnectionError:
        print("\nError: Could not connect to API. Is the server running?")
        sys.exit(1)
    except requests.exceptions.RequestException as e:
        print(f"\nError: {e}")
        sys.exit(1)


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="FuelEU Ledger CLI Tool",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  Create the ledger tables:
    python -m api.cli init-db

  Drop the ledger tables (destroys all data):
    python -m api.cli drop-db --yes

  Load the five reference routes and their ship balances:
    python -m api.cli seed

  Show a ship's balance and banking history:
    python -m api.cli show-balance --ship SHIP-001 --year 2024

  Check API health:
    python -m api.cli check-health --url http://localhost:8000/api/health
        """
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("init-db", help="Initialize the database")

    drop_parser = subparsers.add_parser("drop-db", help="Drop all ledger tables")
    drop_parser.add_argument("--yes", action="store_true", help="Confirm data loss")

    subparsers.add_parser("seed", help="Insert reference routes and balances")

    balance_parser = subparsers.add_parser("show-balance", help="Show a ship's balance")
    balance_parser.add_argument("--ship", required=True, help="Ship identifier")
    balance_parser.add_argument("--year", required=True, type=int, help="Reporting year")

    health_parser = subparsers.add_parser("check-health", help="Check API health")
    health_parser.add_argument(
        "--url",
        default="http://localhost:8000/api/health",
        help="Health endpoint URL (default: http://localhost:8000/api/health)"
    )

    args = parser.parse_args(argv)

    if args.command == "init-db":
        init_db()
    elif args.command == "drop-db":
        drop_db(args.yes)
    elif args.command == "seed":
        seed()
    elif args.command == "show-balance":
        show_balance(args.ship, args.year)
    elif args.command == "check-health":
        check_health(args.url)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
