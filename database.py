"""
MongoDB client construction.

The client is created explicitly by whoever owns the store handle and closed
by it; there is no module-level connection.
"""
from pymongo import MongoClient

from config import DatabaseSettings


def create_client(settings: DatabaseSettings) -> MongoClient:
    # Timeouts bound every round trip so an unreachable server fails fast
    return MongoClient(
        settings.url,
        serverSelectionTimeoutMS=settings.timeout_ms,
        connectTimeoutMS=settings.timeout_ms,
        socketTimeoutMS=settings.timeout_ms,
    )
