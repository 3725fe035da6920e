"""
MongoDB Connection Utility

MongoDB stores every portal account in a single `users` collection:
- Admins (placement officers)
- Faculty (created by an admin)
- Students (self-registered through email OTP)

WHY one collection?
- Email must be unique across all roles, which a single unique index enforces
- Login and password reset resolve a user with one lookup instead of probing
  three collections in order
- The role tag on each document keeps the variants apart
"""
import logging

from pymongo import ASCENDING, MongoClient
from pymongo.database import Database
from pymongo.collection import Collection
from placement_portal.core.config import get_settings

logger = logging.getLogger(__name__)

settings = get_settings()

# Global client (connection pooling handled internally by pymongo)
_client: MongoClient = None
_db: Database = None


def get_mongo_client() -> MongoClient:
    """Get or create MongoDB client (singleton pattern)"""
    global _client
    if _client is None:
        _client = MongoClient(settings.mongodb_uri)
    return _client


def get_mongo_db() -> Database:
    """Get the portal database"""
    global _db
    if _db is None:
        client = get_mongo_client()
        _db = client[settings.mongodb_db]
    return _db


def get_collection(name: str) -> Collection:
    """Get a specific collection."""
    db = get_mongo_db()
    return db[name]


def test_mongo_connection() -> bool:
    """
    Test if MongoDB is reachable.
    Returns True if connection successful, False otherwise.
    """
    try:
        client = get_mongo_client()
        # ping command checks connection
        client.admin.command('ping')
        return True
    except Exception as e:
        logger.warning("MongoDB connection failed: %s", e)
        return False


# Collection name constants (avoid typos)
COLLECTIONS = {
    "users": "users",
}


def init_mongo_indexes(db: Database = None):
    """
    Create indexes for the users collection.
    Call this once during app startup.

    The unique email index is what rejects concurrent duplicate
    registrations, so it must exist before the API accepts traffic.
    """
    db = db if db is not None else get_mongo_db()
    users = db[COLLECTIONS["users"]]

    users.create_index([("email", ASCENDING)], unique=True, name="uniq_email")
    users.create_index([("role", ASCENDING), ("reset_token", ASCENDING)], name="role_reset_token")
    users.create_index([("role", ASCENDING), ("created_by", ASCENDING)], name="role_created_by")
    # Only one document may carry the bootstrap marker
    users.create_index(
        [("bootstrap_admin", ASCENDING)], unique=True, sparse=True, name="uniq_bootstrap_admin"
    )

    logger.info("MongoDB indexes created successfully")
