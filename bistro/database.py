"""
Database Connection Module

Handles the MongoDB connection using PyMongo with the Stable API.

One MongoClient is created per process in the application lifespan and
stored on ``app.state``; routes receive the database handle through the
``get_db`` dependency, so tests can swap in another database.
"""

import logging

from fastapi import Request
from pymongo import ASCENDING, MongoClient
from pymongo.database import Database
from pymongo.server_api import ServerApi

from bistro.core.config import Settings
from bistro.models import CART_ITEM_FIELD, CollectionName, EMAIL_FIELD

logger = logging.getLogger(__name__)


def create_client(settings: Settings) -> MongoClient:
    """Create the process-wide client pinned to Stable API v1."""
    return MongoClient(
        settings.mongodb_url,
        server_api=ServerApi("1", strict=True, deprecation_errors=True),
    )


def ping(client: MongoClient) -> None:
    """Round-trip to the deployment; raises if it is unreachable."""
    client.admin.command("ping")
    logger.info("Pinged your deployment. You successfully connected to MongoDB!")


def init_db(db: Database) -> None:
    """
    Create the indexes the API relies on.
    Called once at application startup (and by tests on their fake database).

    The cart index skips entries without ``itemId`` (the older layout keyed
    by ``_id``), so existing data never blocks its creation.
    """
    db[CollectionName.USERS.value].create_index(
        [(EMAIL_FIELD, ASCENDING)], unique=True, name="users_email_unique"
    )
    db[CollectionName.CART.value].create_index(
        [(CART_ITEM_FIELD, ASCENDING), (EMAIL_FIELD, ASCENDING)],
        unique=True,
        partialFilterExpression={CART_ITEM_FIELD: {"$exists": True}},
        name="cart_item_email_unique",
    )
    logger.info("✅ Database indexes ensured")


def get_db(request: Request) -> Database:
    """
    Dependency injection for FastAPI routes.
    Returns the database handle opened at startup.
    """
    return request.app.state.db
