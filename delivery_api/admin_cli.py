"""
Create an admin account from the command line.

Usage:
    python create_admin.py --email=admin@example.com --password=Secret123
    python create_admin.py admin@example.com Secret123
    ADMIN_EMAIL=admin@example.com ADMIN_PASSWORD=Secret123 python create_admin.py

Exit codes: 0 created, 1 bad input or duplicate email, 2 unexpected failure.
"""
import argparse
import asyncio
import json
import logging
import os
import sys
from typing import List, Optional

from pydantic import ValidationError

from delivery_api.core.config import Settings
from delivery_api.core.database import init_db
from delivery_api.core.errors import DuplicateEmailError
from delivery_api.schemas.user import AdminCreateRequest, UserProfileSchema
from delivery_api.services.admin_service import AdminService

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    env = os.environ.get
    parser = argparse.ArgumentParser(description="Create an admin user")
    parser.add_argument("positional", nargs="*", help="email and password, if not given as flags")
    parser.add_argument("--email", default=env("ADMIN_EMAIL"))
    parser.add_argument("--password", default=env("ADMIN_PASSWORD"))
    parser.add_argument("--first-name", default=env("ADMIN_FIRSTNAME", "Admin"))
    parser.add_argument("--last-name", default=env("ADMIN_LASTNAME", "User"))
    parser.add_argument("--phone", default=env("ADMIN_PHONE", "0000000000"))
    parser.add_argument("--department", default=env("ADMIN_DEPARTMENT", "operations"))
    parser.add_argument(
        "--permissions",
        default=env("ADMIN_PERMISSIONS", "view"),
        help="Comma separated, e.g. view,edit",
    )
    return parser


def request_from_args(args: argparse.Namespace) -> AdminCreateRequest:
    email = args.email or (args.positional[0] if len(args.positional) > 0 else None)
    password = args.password or (args.positional[1] if len(args.positional) > 1 else None)
    if not email or not password:
        raise ValueError("email and password are required (flags, ADMIN_* env vars or positional)")

    permissions = [p.strip() for p in args.permissions.split(",") if p.strip()]
    return AdminCreateRequest(
        firstName=args.first_name,
        lastName=args.last_name,
        email=email,
        password=password,
        phone=args.phone,
        department=args.department,
        permissions=permissions or None,
    )


async def create_admin_user(request: AdminCreateRequest, settings: Settings, client=None) -> dict:
    """Connect, create the admin and return its public profile."""
    owns_client = client is None
    client = await init_db(settings, client)
    try:
        admin = await AdminService(settings).create_admin(request)
        return UserProfileSchema.from_user(admin).model_dump(mode="json", exclude_none=True)
    finally:
        if owns_client:
            client.close()


def main(argv: Optional[List[str]] = None, settings: Optional[Settings] = None, client=None) -> int:
    logging.basicConfig(level=logging.INFO)
    args = build_parser().parse_args(argv)

    try:
        request = request_from_args(args)
    except (ValueError, ValidationError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if settings is None:
        from delivery_api.core.config import settings

    try:
        profile = asyncio.run(create_admin_user(request, settings, client))
    except DuplicateEmailError:
        print("A user with that email already exists in the database. Aborting.", file=sys.stderr)
        return 1
    except Exception:
        logger.exception("Error creating admin user")
        return 2

    print("Admin user created successfully:")
    print(json.dumps(profile, indent=2))
    return 0
