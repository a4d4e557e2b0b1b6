"""Create the Inkwell schema and optionally grant a role to an existing user.

Usage:
  python -m inkwell.scripts.init_db [--drop] [--promote USERNAME --role moderator]
"""
from __future__ import annotations

import argparse
import logging
import sys

from sqlalchemy import select

from inkwell.core.logging import configure_logging
from inkwell.db.session import SessionLocal, create_tables, drop_tables
from inkwell.models import User, UserRole

logger = logging.getLogger(__name__)


def promote_user(username: str, role: UserRole) -> bool:
    """Set `role` on the named user. Returns False if no such user exists."""
    with SessionLocal() as db:
        user = db.scalars(select(User).where(User.username == username)).first()
        if user is None:
            return False
        user.role = role
        db.commit()
    return True


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--drop", action="store_true", help="Drop all tables before creating them")
    parser.add_argument("--promote", metavar="USERNAME", help="User whose role should change")
    parser.add_argument(
        "--role",
        choices=[role.value for role in UserRole],
        default=UserRole.MODERATOR.value,
        help="Role granted by --promote (default: moderator)",
    )
    args = parser.parse_args(argv)

    configure_logging()
    if args.drop:
        drop_tables()
        logger.info("Dropped all tables")
    create_tables()
    logger.info("Database initialized")

    if args.promote:
        if not promote_user(args.promote, UserRole(args.role)):
            logger.error("No user named %s", args.promote)
            return 1
        logger.info("Granted %s role to %s", args.role, args.promote)
    return 0


if __name__ == "__main__":
    sys.exit(main())
