# src/zen_rewards/scripts/ensure_db.py
"""Utility script to prepare the configured database for local play."""
from __future__ import annotations

import argparse
import sys

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from zen_rewards.core.security import create_access_token
from zen_rewards.db.session import SessionLocal, create_tables, drop_tables
from zen_rewards.models import Customer
from zen_rewards.utils.log import sanitize_email, sanitize_identity


def seed_customer(db: Session, external_id: str, email: str | None = None) -> Customer:
    """Return the customer with ``external_id``, creating it if missing."""
    customer = db.execute(
        select(Customer).where(Customer.external_id == external_id)
    ).scalars().first()
    if customer is not None:
        print(f"[ensure_db] customer {sanitize_identity(external_id)} already exists")
        return customer

    customer = Customer(external_id=external_id, email=email, metadata_json={})
    db.add(customer)
    db.commit()
    db.refresh(customer)
    print(f"[ensure_db] created customer {sanitize_identity(external_id)} ({sanitize_email(email)})")
    return customer


def main() -> None:
    parser = argparse.ArgumentParser(description="Ensure or reset the configured database")
    parser.add_argument(
        "--drop-tables",
        action="store_true",
        help="Drop all tables before creating them again.",
    )
    parser.add_argument(
        "--seed",
        metavar="EXTERNAL_ID",
        default=None,
        help="Create a customer with this external identity and print a bearer token.",
    )
    parser.add_argument("--email", default=None, help="Email for the seeded customer")
    args = parser.parse_args()

    try:
        if args.drop_tables:
            drop_tables()
            print("[ensure_db] dropped all tables")
        create_tables()
        print("[ensure_db] tables are in place")
        if args.seed:
            with SessionLocal() as db:
                seed_customer(db, args.seed, args.email)
            print(f"[ensure_db] bearer token: {create_access_token(args.seed)}")
    except SQLAlchemyError as exc:
        print(f"[ensure_db] ERROR: {exc}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
