#!/usr/bin/env python3
"""Seed database with demo data.

Creates:
- Demo users (and prints a bearer token for each)
- Stores around central London with tags
- Reviews, so the top-stores listing has entries

Seed script is idempotent: users are matched by email, stores by name,
reviews are only added to stores that have none.

Usage:
    python -m scripts.seed
"""

import asyncio
import os
import sys

# Add parent to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dotenv import load_dotenv
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from storefinder.models import Review, Store, User
from storefinder.services.auth import create_access_token
from storefinder.services.slugs import assign_slug
from storefinder.settings import get_settings

load_dotenv()

# ============================================================
# Demo data
# ============================================================

USERS = [
    {"email": "wes@example.com", "name": "Wes"},
    {"email": "debbie@example.com", "name": "Debbie"},
    {"email": "beau@example.com", "name": "Beau"},
]

STORES = [
    {
        "name": "Monmouth Coffee",
        "description": "Single origin coffee roasted on site. Expect a queue.",
        "tags": ["Open Late", "Wifi", "Licensed"],
        "address": "27 Monmouth St, London WC2H 9EU",
        "lng": -0.1267,
        "lat": 51.5142,
        "author": "wes@example.com",
        "ratings": [5, 4, 5],
    },
    {
        "name": "The Coffee Shop",
        "description": "Small neighbourhood coffee shop with cakes baked every morning.",
        "tags": ["Family Friendly", "Vegetarian"],
        "address": "10 Exmouth Market, London EC1R 4QE",
        "lng": -0.1093,
        "lat": 51.5261,
        "author": "debbie@example.com",
        "ratings": [3, 4],
    },
    {
        "name": "The Coffee Shop",
        "description": "Espresso bar next to the market, standing room only.",
        "tags": ["Wifi"],
        "address": "8 Southwark St, London SE1 1TL",
        "lng": -0.0906,
        "lat": 51.5055,
        "author": "beau@example.com",
        "ratings": [4],
    },
    {
        "name": "Cafe Milano",
        "description": "Italian deli and cafe serving fresh pasta at lunch.",
        "tags": ["Licensed", "Family Friendly"],
        "address": "1 Old Compton St, London W1D 5JA",
        "lng": -0.1300,
        "lat": 51.5137,
        "author": "wes@example.com",
        "ratings": [5, 5],
    },
    {
        "name": "Brighton Beach Hut",
        "description": "Ice cream and coffee on the seafront. Well outside London.",
        "tags": ["Family Friendly"],
        "address": "Madeira Drive, Brighton BN2 1TW",
        "lng": -0.1313,
        "lat": 50.8190,
        "author": "debbie@example.com",
        "ratings": [],
    },
]


async def seed_database() -> None:
    """Seed database with demo data."""
    engine = create_async_engine(get_settings().async_database_url, echo=False)
    async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with async_session() as session:
        print("Seeding database...")

        # 1. Users
        print("\nCreating users...")
        user_map = await seed_users(session)

        # 2. Stores (+ reviews)
        print("\nCreating stores...")
        await seed_stores(session, user_map)

        await session.commit()
        print("\nDatabase seeded successfully!")

    print("\nBearer tokens:")
    for email, user_id in user_map.items():
        print(f"  {email}: {create_access_token(user_id)}")

    await engine.dispose()


async def seed_users(session: AsyncSession) -> dict[str, int]:
    """Seed users and return mapping of email -> id."""
    user_map: dict[str, int] = {}

    for u in USERS:
        result = await session.execute(select(User).where(User.email == u["email"]))
        existing = result.scalar_one_or_none()

        if existing:
            print(f"  - {u['email']} (exists)")
            user_map[u["email"]] = existing.id
        else:
            user = User(email=u["email"], name=u["name"])
            session.add(user)
            await session.flush()
            user_map[u["email"]] = user.id
            print(f"  + {u['email']}")

    return user_map


async def seed_stores(session: AsyncSession, user_map: dict[str, int]) -> None:
    """Seed stores and their reviews."""
    reviewers = list(user_map.values())

    for s in STORES:
        author_id = user_map[s["author"]]
        result = await session.execute(
            select(Store).where(Store.name == s["name"], Store.author_id == author_id)
        )
        store = result.scalars().first()

        if store:
            print(f"  - {store.slug} (exists)")
        else:
            store = Store(
                name=s["name"],
                description=s["description"],
                tags=s["tags"],
                location_type="Point",
                lng=s["lng"],
                lat=s["lat"],
                address=s["address"],
                author_id=author_id,
            )
            await assign_slug(session, store)
            session.add(store)
            await session.flush()
            print(f"  + {store.slug}")

        review_count = await session.execute(
            select(func.count()).select_from(Review).where(Review.store_id == store.id)
        )
        if review_count.scalar_one():
            continue

        for i, rating in enumerate(s["ratings"]):
            session.add(
                Review(
                    store_id=store.id,
                    author_id=reviewers[i % len(reviewers)],
                    text=f"Rated {rating}/5",
                    rating=rating,
                )
            )
        if s["ratings"]:
            print(f"    {len(s['ratings'])} reviews")


if __name__ == "__main__":
    asyncio.run(seed_database())
