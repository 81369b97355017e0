#!/usr/bin/env python3
"""Create the first administrator account for SessionAuth.

Administrative user creation over HTTP requires an admin access token, so
the very first admin has to be created directly against the database.

Usage:
    python scripts/bootstrap_admin.py --username <name>
    python scripts/bootstrap_admin.py --username <name> --password <password>

When --password is omitted the password is read from the terminal.
Reads DATABASE_URL and the password hashing settings from the environment.
"""

import argparse
import asyncio
import getpass
import sys

from sessionauth.core import async_session_maker, engine, settings, setup_logging
from sessionauth.services.auth import SessionLifecycle
from sessionauth.services.errors import BadRequestError, ConflictError
from sessionauth.services.passwords import PasswordHasher
from sessionauth.services.token_codec import TokenCodec


async def _create_admin(username: str, password: str) -> None:
    try:
        async with async_session_maker() as db:
            lifecycle = SessionLifecycle(
                db,
                TokenCodec.from_settings(settings),
                PasswordHasher.from_settings(settings),
            )
            await lifecycle.register_user(username, password, is_admin=True)
    finally:
        await engine.dispose()


def main():
    parser = argparse.ArgumentParser(description="Create a SessionAuth administrator")
    parser.add_argument("--username", required=True, help="Administrator username")
    parser.add_argument("--password", help="Administrator password (prompted if omitted)")
    args = parser.parse_args()

    password = args.password
    if password is None:
        password = getpass.getpass("Password: ")
        if password != getpass.getpass("Confirm password: "):
            print("ERROR: Passwords do not match.")
            sys.exit(1)

    setup_logging(level=settings.log_level)

    try:
        asyncio.run(_create_admin(args.username, password))
    except BadRequestError:
        print("ERROR: Username or password does not satisfy the credential rules.")
        sys.exit(1)
    except ConflictError:
        print(f"ERROR: User '{args.username}' already exists.")
        sys.exit(1)

    print(f"Created administrator '{args.username}'.")


if __name__ == "__main__":
    main()
