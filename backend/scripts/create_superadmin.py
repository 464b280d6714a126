#!/usr/bin/env python3
"""
Superadmin bootstrap for the College Abroad API

Superadmin registration over HTTP requires an existing superadmin, so the
first account is created here. The script:
1. Creates any missing tables
2. Creates the superadmin unless one with that email already exists

Usage:
    python scripts/create_superadmin.py --email boss@example.org --name Boss --password 'Secret!1'
    python scripts/create_superadmin.py --tables    # Only create tables
"""

import argparse
import asyncio
import sys

from abroad_api.core.database import close_db, get_session_local, init_db
from abroad_api.core.exceptions import ConflictError
from abroad_api.core.security import password_policy_errors
from abroad_api.services.principal_service import SUPERADMIN, PrincipalService


async def create_superadmin(name: str, email: str, password: str) -> bool:
    async with get_session_local()() as session:
        try:
            superadmin = await PrincipalService(session).register(SUPERADMIN, name, email, password)
        except ConflictError as e:
            print(f"[Bootstrap] Superadmin not created: {e.message}")
            return False
        await session.commit()
        print(f"[Bootstrap] Superadmin created: {superadmin.email} ({superadmin.id})")
        return True


async def main() -> int:
    parser = argparse.ArgumentParser(description="Create the first superadmin")
    parser.add_argument("--email", help="Superadmin email")
    parser.add_argument("--name", help="Superadmin display name")
    parser.add_argument("--password", help="Superadmin password")
    parser.add_argument("--tables", action="store_true", help="Only create tables")
    args = parser.parse_args()

    print("[Bootstrap] Creating/verifying database tables...")
    await init_db()

    try:
        if args.tables:
            return 0

        if not (args.email and args.name and args.password):
            parser.error("--email, --name and --password are required")

        problems = password_policy_errors(args.password)
        if problems:
            for problem in problems:
                print(f"[Bootstrap] ERROR: {problem}")
            return 1

        return 0 if await create_superadmin(args.name, args.email, args.password) else 1
    finally:
        await close_db()


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
