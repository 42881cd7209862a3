#!/usr/bin/env python3
"""Seed users and sample rooms, and print access tokens for local testing."""

import asyncio
from decimal import Decimal

from sqlalchemy import select

from app.config import settings
from app.core.security import issue_actor_token
from app.database import async_session_factory, close_db, init_db
from app.models.room import Room
from app.models.user import User

USERS = [
    ("admin@hotel.com", "System Administrator", "admin"),
    ("staff@hotel.com", "Front Desk", "staff"),
    (settings.system_user_email, "System Automated Actor", "system"),
]

# Rooms never start OCCUPIED: that status needs a checked-in booking
ROOMS = [
    ("101", "simple", "50.00", "AVAILABLE"),
    ("102", "simple", "50.00", "AVAILABLE"),
    ("103", "doble", "80.00", "AVAILABLE"),
    ("201", "doble", "85.00", "AVAILABLE"),
    ("202", "suite", "150.00", "AVAILABLE"),
    ("203", "suite", "150.00", "CLEANING"),
    ("301", "simple", "55.00", "AVAILABLE"),
    ("302", "doble", "90.00", "MAINTENANCE"),
]


async def seed(create_tables: bool = False) -> None:
    if create_tables:
        await init_db()

    async with async_session_factory() as session:
        for email, full_name, role in USERS:
            result = await session.execute(select(User).where(User.email == email))
            user = result.scalar_one_or_none()
            if user:
                print(f"User {email} already exists, skipping...")
            else:
                user = User(email=email, full_name=full_name, role=role)
                session.add(user)
                await session.flush()
                print(f"Created {role} user: {email}")
            if role != "system":
                print(f"  token: {issue_actor_token(user.id, role)}")

        for number, room_type, price, status in ROOMS:
            result = await session.execute(select(Room).where(Room.number == number))
            if result.scalar_one_or_none():
                print(f"Room {number} already exists, skipping...")
                continue
            session.add(
                Room(number=number, type=room_type, price_per_night=Decimal(price), status=status)
            )
            print(f"Created room {number} ({room_type}, {status})")

        await session.commit()

    await close_db()


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Seed users and sample rooms")
    parser.add_argument("--create-tables", action="store_true", help="Create tables first")
    args = parser.parse_args()

    asyncio.run(seed(create_tables=args.create_tables))
