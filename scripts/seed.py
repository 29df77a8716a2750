"""
Seed Script

Populates an empty database with a small menu and a few reviews so the
frontend has something to show during local development. Collections that
already hold documents are left alone.
Run from project root: python scripts/seed.py [--admin you@example.com]
"""

import argparse
import logging

from bistro.core.config import get_settings, setup_logging
from bistro.database import create_client, init_db
from bistro.models import CollectionName

logger = logging.getLogger("bistro.seed")

FOODS = [
    {"name": "Caesar Salad", "category": "salad", "price": 12.5,
     "recipe": "Romaine, parmesan, croutons, Caesar dressing."},
    {"name": "Tomato Soup", "category": "soup", "price": 6.0,
     "recipe": "Roasted tomatoes, basil, cream."},
    {"name": "Margherita Pizza", "category": "pizza", "price": 14.99,
     "recipe": "Tomato, mozzarella, basil."},
    {"name": "Chocolate Cake", "category": "dessert", "price": 7.25,
     "recipe": "Dark chocolate sponge with ganache."},
    {"name": "Lemonade", "category": "drinks", "price": 3.5,
     "recipe": "Fresh lemons, cane sugar, mint."},
]

REVIEWS = [
    {"name": "Jane Doe", "details": "The soup was wonderful.", "rating": 5},
    {"name": "Mike Ross", "details": "Great pizza, slow delivery.", "rating": 4},
    {"name": "Sara Lee", "details": "Best cake in town!", "rating": 5},
]


def seed_collection(db, name: CollectionName, documents: list[dict]) -> int:
    collection = db[name.value]
    if collection.count_documents({}) > 0:
        logger.info(f"⏭️  {name.value}: already has data, skipping")
        return 0
    collection.insert_many([dict(doc) for doc in documents])
    logger.info(f"✅ {name.value}: inserted {len(documents)} documents")
    return len(documents)


def seed_admin(db, email: str) -> None:
    users = db[CollectionName.USERS.value]
    users.update_one(
        {"email": email},
        {"$set": {"role": "admin"}},
        upsert=True,
    )
    logger.info(f"✅ users: {email} is an admin")


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed the Bistro database")
    parser.add_argument("--admin", help="Email to create or promote as admin")
    args = parser.parse_args()

    setup_logging()
    settings = get_settings()
    client = create_client(settings)
    try:
        db = client[settings.db_name]
        init_db(db)
        seed_collection(db, CollectionName.FOODS, FOODS)
        seed_collection(db, CollectionName.REVIEWS, REVIEWS)
        if args.admin:
            seed_admin(db, args.admin)
    finally:
        client.close()


if __name__ == "__main__":
    main()
