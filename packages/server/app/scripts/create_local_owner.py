"""
Script to create a local user who owns a new organization.

Goes through the same registration workflow as POST /auth/signup.
"""

import argparse
import asyncio

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_session_context, init_db
from app.services import auth as auth_service


async def create_owner(
    session: AsyncSession,
    email: str,
    password: str,
    org_name: str,
    first_name: str | None = None,
    last_name: str | None = None,
):
    """Register the user with their organization. Returns (user, org)."""
    profile = auth_service.Profile(email=email, first_name=first_name, last_name=last_name)
    user, org, _token = await auth_service.register(
        profile, password, org_name, session, open_session=False
    )
    return user, org


async def main(args: argparse.Namespace) -> None:
    if args.init_db:
        await init_db()

    async with get_session_context() as session:
        user, org = await create_owner(
            session,
            args.email,
            args.password,
            args.org,
            first_name=args.first_name,
            last_name=args.last_name,
        )
    print(f"Created {user.email} as Owner of '{org.name}' ({org.id})")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create a local user owning a new organization.")
    parser.add_argument("--email", required=True, help="Email address for the user")
    parser.add_argument("--password", required=True, help="Password for the user")
    parser.add_argument("--org", default="Local Organization", help="Organization name")
    parser.add_argument("--first-name", default=None)
    parser.add_argument("--last-name", default=None)
    parser.add_argument("--init-db", action="store_true", help="Create tables before inserting")

    asyncio.run(main(parser.parse_args()))
