#!/usr/bin/env python3
"""CLI script to seed a demo organization with accounts and deals.

Usage:
    python scripts/seed_demo.py
    python scripts/seed_demo.py --name "Acme" --accounts 3 --deals-per-account 4 --seed 7

Connects directly to the database using DATABASE_URL from environment or .env file.
Creates tables if needed, then inserts one organization, its accounts, and
deals spread across every pipeline stage and the last three years.
"""

from __future__ import annotations

import argparse
import asyncio
import os
import random
import sys
from datetime import datetime, timezone

# Ensure project root is on sys.path so we can import src.dealboard
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from dotenv import load_dotenv  # noqa: E402

# Load .env from project root
load_dotenv(os.path.join(os.path.dirname(__file__), "..", ".env"))


async def seed(name: str, accounts: int, deals_per_account: int, seed_value: int) -> None:
    """Insert the demo data through DealRepository."""
    from src.dealboard.core.database import close_db, get_session, init_db
    from src.dealboard.deals.repository import DealRepository
    from src.dealboard.deals.schemas import AccountCreate, DealCreate, OrganizationCreate
    from src.dealboard.deals.stages import STAGES

    await init_db()
    repo = DealRepository(session_factory=get_session)
    rng = random.Random(seed_value)
    this_year = datetime.now(timezone.utc).year

    organization = await repo.create_organization(OrganizationCreate(name=name))
    print(f"Organization created: id={organization.id} name={organization.name}")

    deal_count = 0
    for index in range(1, accounts + 1):
        account = await repo.create_account(
            AccountCreate(name=f"{name} Account {index}", organization_id=organization.id)
        )
        print(f"  Account created: id={account.id} name={account.name}")
        for _ in range(deals_per_account):
            await repo.create_deal(
                DealCreate(
                    account_id=account.id,
                    value=float(rng.randrange(5, 500) * 1000),
                    status=rng.choice(STAGES),
                    year_of_creation=this_year - rng.randrange(0, 3),
                )
            )
            deal_count += 1

    print(f"Seeded {accounts} accounts and {deal_count} deals")
    await close_db()


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed a demo organization")
    parser.add_argument("--name", default="Acme", help="Organization name (default: Acme)")
    parser.add_argument("--accounts", type=int, default=3, help="Number of accounts")
    parser.add_argument("--deals-per-account", type=int, default=4, help="Deals per account")
    parser.add_argument("--seed", type=int, default=42, help="Random seed for deal values")
    args = parser.parse_args()

    if args.accounts < 1 or args.deals_per_account < 0:
        parser.error("--accounts must be >= 1 and --deals-per-account must be >= 0")

    asyncio.run(seed(args.name, args.accounts, args.deals_per_account, args.seed))


if __name__ == "__main__":
    main()
