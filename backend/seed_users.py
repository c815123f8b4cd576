"""
Database seeding script for initial users.

Creates one user per role (MANAGER, DISPATCHER, SAFETY_OFFICER,
FINANCIAL_ANALYST) for testing and development.
Run this script after database is set up but before first use.
"""

import asyncio
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from backend.app.db.session import AsyncSessionLocal, engine, Base
from backend.app.models.user import User
from backend.app.models.enums import UserRole
from backend.app.core.security import get_password_hash
from sqlalchemy import select


SEED_USERS = [
    ("manager", "manager@fleetflow.com", "manager123", UserRole.MANAGER),
    ("dispatcher", "dispatcher@fleetflow.com", "dispatcher123", UserRole.DISPATCHER),
    ("safety", "safety@fleetflow.com", "safety123", UserRole.SAFETY_OFFICER),
    ("finance", "finance@fleetflow.com", "finance123", UserRole.FINANCIAL_ANALYST),
]


async def seed_users():
    """Seed one user per role, skipping usernames that already exist."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as db:
        print("🌱 Starting user seeding...")

        for username, email, password, role in SEED_USERS:
            result = await db.execute(select(User).where(User.username == username))
            if result.scalar_one_or_none():
                print(f"ℹ️  {role.value} user '{username}' already exists, skipping")
                continue

            db.add(User(
                email=email,
                username=username,
                hashed_password=get_password_hash(password),
                role=role,
                is_active=True,
            ))
            print(f"✅ Created {role.value} user (username: {username}, password: {password})")

        await db.commit()

    print("\n🎉 User seeding completed successfully!")


if __name__ == "__main__":
    asyncio.run(seed_users())
