#!/usr/bin/env python3
"""Create the first admin account.

Admins cannot register through the API, so the initial one is created here.

Usage:
    python scripts/create_admin.py --email admin@example.com --password admin12345 \
        --first-name Site --last-name Admin --phone 9876543210
"""

import argparse
import asyncio
import sys
from datetime import date

from pydantic import ValidationError

from shram_setu.database import close_database, init_database, run_migrations
from shram_setu.errors import AppError
from shram_setu.models.auth import RegisterRequest
from shram_setu.models.user import Role
from shram_setu.services.account_service import AccountService
from shram_setu.services.logging_service import configure_logging


async def create_admin(args: argparse.Namespace) -> int:
    # RegisterRequest only accepts self-service roles; create_account stores ADMIN
    request = RegisterRequest(
        first_name=args.first_name,
        last_name=args.last_name,
        email=args.email,
        phone=args.phone,
        password=args.password,
        role="hirer",
        address=args.address,
        city=args.city,
        state=args.state,
        pincode=args.pincode,
        dob=date.fromisoformat(args.dob),
    )

    await init_database()
    try:
        await run_migrations()
        account = await AccountService().create_account(request, role=Role.ADMIN)
    finally:
        await close_database()

    print(f"Created admin {account.email} (id: {account.id})")
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Create a Shram Setu admin account")
    parser.add_argument("--email", required=True)
    parser.add_argument("--password", required=True)
    parser.add_argument("--first-name", default="Site")
    parser.add_argument("--last-name", default="Admin")
    parser.add_argument("--phone", default="9000000000")
    parser.add_argument("--address", default="Head office")
    parser.add_argument("--city", default="Pune")
    parser.add_argument("--state", default="Maharashtra")
    parser.add_argument("--pincode", default="411001")
    parser.add_argument("--dob", default="1990-01-01", help="ISO date")
    args = parser.parse_args()

    configure_logging("WARNING")

    try:
        return asyncio.run(create_admin(args))
    except ValidationError as e:
        print(f"Invalid admin details:\n{e}", file=sys.stderr)
    except AppError as e:
        print(f"Could not create admin: {e.message}", file=sys.stderr)
    return 1


if __name__ == "__main__":
    sys.exit(main())
