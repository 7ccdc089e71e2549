"""Bootstrap a global ADMIN account.

Self-registration only ever creates USER accounts, so the first system
administrator has to be created from the command line.
"""

from __future__ import annotations

import argparse
import asyncio
import os
import sys

ROOT_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT_DIR not in sys.path:
    sys.path.append(ROOT_DIR)

from tribenet.domain.identity import service  # noqa: E402
from tribenet.infra import postgres  # noqa: E402
from tribenet.obs import logging as obs_logging  # noqa: E402


async def ensure_admin(username: str, password: str, name: str, email: str) -> None:
    pool = await postgres.init_pool()
    try:
        await postgres.ensure_schema(pool)
        user, created = await service.ensure_admin(
            username=username,
            password=password,
            name=name,
            email=email,
        )
        if created:
            print(f"Created admin {user.username} ({user.id})")
        elif user.is_admin:
            print(f"Admin {user.username} already exists")
        else:
            print(f"WARNING: {user.username} exists as {user.role.value}; not promoted")
    finally:
        await postgres.close_pool()


def main() -> None:
    parser = argparse.ArgumentParser(description="Create the global admin account if it is missing")
    parser.add_argument("--username", default=os.environ.get("ADMIN_USERNAME", "admin"))
    parser.add_argument("--password", default=os.environ.get("ADMIN_PASSWORD"))
    parser.add_argument("--name", default=os.environ.get("ADMIN_NAME", "System Admin"))
    parser.add_argument("--email", default=os.environ.get("ADMIN_EMAIL", "admin@tribenet.local"))
    args = parser.parse_args()
    if not args.password:
        parser.error("--password (or ADMIN_PASSWORD) is required")
    obs_logging.configure_logging()
    asyncio.run(ensure_admin(args.username, args.password, args.name, args.email))


if __name__ == "__main__":
    main()
