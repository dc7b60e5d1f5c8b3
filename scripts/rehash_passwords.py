#!/usr/bin/env python3
"""Replace any plaintext password left in users.password_hash with a bcrypt hash.

Accounts imported from the old portal stored passwords verbatim; after this
runs every stored value is verified through passlib.
"""
import asyncio
import os
import sys

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from sqlalchemy import select

from school_portal.core.database import AsyncSessionLocal, close_db_connections
from school_portal.core.security import hash_password, is_password_hash
from school_portal.models import User


async def rehash_passwords():
    async with AsyncSessionLocal() as db:
        result = await db.execute(select(User).where(User.password_hash.isnot(None)))
        users = result.scalars().all()

        rehashed = 0
        for user in users:
            if not user.password_hash or is_password_hash(user.password_hash):
                continue
            user.password_hash = hash_password(user.password_hash)
            rehashed += 1

        await db.commit()

    print(f"✅ Rehashed {rehashed} of {len(users)} stored passwords")


async def main():
    try:
        await rehash_passwords()
    finally:
        await close_db_connections()


if __name__ == "__main__":
    asyncio.run(main())
