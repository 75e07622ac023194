# app/cli/init_roles.py
"""
시스템 역할 초기화 CLI

    python -m app.cli.init_roles
    python -m app.cli.init_roles --owner-email owner@example.com
"""
import argparse
import asyncio
from logging.config import dictConfig

from app.database import get_async_session_context, init_db
from app.services.permissions import PermissionService
from app.utils.logger import app_logger
from app.utils.seed_data import ensure_owner


async def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Create tables and default roles.")
    parser.add_argument("--owner-email", help="Promote an existing user to owner")
    parser.add_argument("--owner-password", help="Create the owner account if it does not exist")
    args = parser.parse_args(argv)

    await init_db()

    async with get_async_session_context() as db:
        created = await PermissionService().create_default_roles(db)
        print(f"Default roles ready ({created} created).")

        if args.owner_email:
            user = await ensure_owner(db, args.owner_email, args.owner_password)
            if user is None:
                print(f"User {args.owner_email} not found. Pass --owner-password to create it.")
                return 1
            print(f"{user.email} is now owner (roles: {', '.join(user.role_ids())}).")

    return 0


if __name__ == "__main__":
    dictConfig(app_logger)
    raise SystemExit(asyncio.run(main()))
