"""Idempotent dev account creation script.

Creates the display profile and company profile of a local account, then
prints a bearer token for it so the API can be exercised without the
identity provider.

Usage (local, from apps/backend/src with the dev environment loaded):
  python ../scripts/create_dev_account.py
"""

from __future__ import annotations

import asyncio
import os
from uuid import UUID

from sqlalchemy import select

from core.security import create_access_token
from dependencies.db import AsyncSessionLocal
from models.profiles import Profile, UserProfile


DEV_USER_ID = UUID(os.getenv("DEV_USER_ID", "00000000-0000-4000-8000-000000000001"))
DEV_EMAIL = os.getenv("DEV_USER_EMAIL", "dev@example.com")
DEV_ROLE = os.getenv("DEV_USER_ROLE", "admin")


async def main() -> None:
    async with AsyncSessionLocal() as session:
        existing = await session.scalar(
            select(Profile.id).where(Profile.user_id == DEV_USER_ID).limit(1)
        )
        if existing is not None:
            print(f"Dev account already exists (user_id={DEV_USER_ID}) - skipping")
        else:
            session.add(UserProfile(id=DEV_USER_ID, name="Dev", email=DEV_EMAIL))
            session.add(
                Profile(
                    user_id=DEV_USER_ID,
                    role=DEV_ROLE,
                    company_name="Dev Studio",
                    is_approved=True,
                )
            )
            await session.commit()
            print(f"Created dev {DEV_ROLE} account <{DEV_EMAIL}>")

    token = create_access_token({"sub": str(DEV_USER_ID), "role": DEV_ROLE})
    print(f"Bearer token: {token}")


if __name__ == "__main__":
    asyncio.run(main())
