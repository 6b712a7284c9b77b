"""Zimship management CLI.

Usage:
    python src/manage.py setup-db       # Create all tables
    python src/manage.py drop-db        # Drop all tables
    python src/manage.py seed-routes    # Register the default collection routes
"""

import argparse
import json
import sys


def _shipping_domain():
    from shipping.domain import shipping

    shipping.init()
    return shipping


def setup_database():
    from shipping.utils.db import setup_db

    domain = _shipping_domain()
    print("Creating shipping database schema...")
    setup_db(domain)
    print("Done.")


def drop_database():
    from shipping.utils.db import drop_db

    domain = _shipping_domain()
    print("Dropping shipping database schema...")
    drop_db(domain)
    print("Done.")


def seed_routes(pickup_date=None):
    """Register every default route that is not registered yet."""
    from shipping.routing.defaults import DEFAULT_ROUTES
    from shipping.routing.management import RegisterRoute
    from shipping.routing.route import CollectionRoute

    domain = _shipping_domain()
    with domain.domain_context():
        repo = domain.repository_for(CollectionRoute)
        created = 0
        for entry in DEFAULT_ROUTES:
            if repo.find_by_name(entry.name) is not None:
                print(f"  {entry.name} already registered, skipping.")
                continue
            domain.process(
                RegisterRoute(
                    name=entry.name,
                    country=entry.country,
                    areas=json.dumps(list(entry.areas)),
                    pickup_date=pickup_date,
                    priority=entry.priority,
                ),
                asynchronous=False,
            )
            created += 1
            print(f"  {entry.name} registered.")
    print(f"Done. {created} route(s) registered.")
    return created


def main():
    parser = argparse.ArgumentParser(description="Zimship management")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")
    seed_parser = subparsers.add_parser("seed-routes", help="Register the default collection routes")
    seed_parser.add_argument("--pickup-date", help="Initial pickup date for every route (YYYY-MM-DD)")

    args = parser.parse_args()

    if args.command == "setup-db":
        setup_database()
    elif args.command == "drop-db":
        drop_database()
    elif args.command == "seed-routes":
        from datetime import date

        pickup_date = date.fromisoformat(args.pickup_date) if args.pickup_date else None
        seed_routes(pickup_date)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
