#!/usr/bin/env python3
"""
Create (or promote) an administrator account.

Usage:
    python create_admin_user.py --username admin --email admin@example.com --password PASSWORD

Arguments:
    --username: Admin username
    --email: Admin email address
    --password: Admin password (ignored when promoting an existing account)
    --name: Display name (default: Administrator)
    --db-url: Async database URL (default: DATABASE_URL from the environment)
"""

import argparse
import asyncio
import getpass
import sys

from kny_api.core.config import settings
from kny_api.db.base import Database
from kny_api.services.accounts import ensure_admin_user


async def create_admin(args) -> None:
    database = Database(args.db_url)
    try:
        await database.create_all()
        async with database.session() as session:
            user, created = await ensure_admin_user(
                session,
                username=args.username,
                email=args.email,
                password=args.password,
                name=args.name,
            )
            await session.commit()
    finally:
        await database.dispose()

    if created:
        print(f"Admin user created: {user.username} <{user.email}>")
    else:
        print(f"Existing user {user.username} <{user.email}> is now an approved Admin")


def main():
    parser = argparse.ArgumentParser(description="Create or promote an admin user")
    parser.add_argument("--username", required=True, help="Admin username")
    parser.add_argument("--email", required=True, help="Admin email address")
    parser.add_argument("--password", help="Admin password (prompted if omitted)")
    parser.add_argument("--name", default="Administrator", help="Display name")
    parser.add_argument(
        "--db-url",
        default=settings.DATABASE_URL,
        help="Async database URL"
    )
    args = parser.parse_args()

    if not args.password:
        args.password = getpass.getpass("Admin password: ")
    if len(args.password) < settings.PASSWORD_MIN_LENGTH:
        print(f"Error: password must be at least {settings.PASSWORD_MIN_LENGTH} characters")
        sys.exit(1)

    asyncio.run(create_admin(args))


if __name__ == "__main__":
    main()
