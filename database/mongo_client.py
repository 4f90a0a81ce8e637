"""
MongoDB client and connection handling
"""

from datetime import datetime, timezone

from pymongo import MongoClient, ReturnDocument
from pymongo.database import Database

from app.core.config import settings

COUNTERS_COLLECTION = "counters"


def get_mongo_client() -> Database:
    """
    Get MongoDB database connection

    The client connects lazily, so this does no network I/O. Datetimes
    are stored and returned as naive UTC values.

    Returns:
        MongoDB database instance
    """
    client = MongoClient(settings.MONGODB_URI)
    return client[settings.MONGO_DB_NAME]


def next_sequence(db: Database, name: str) -> int:
    """
    Allocate the next integer id for a collection

    Args:
        db: Database holding the counters collection
        name: Sequence name, usually the collection name

    Returns:
        The new id, starting at 1
    """
    counter = db[COUNTERS_COLLECTION].find_one_and_update(
        {"_id": name},
        {"$inc": {"seq": 1}},
        upsert=True,
        return_document=ReturnDocument.AFTER,
    )
    return int(counter["seq"])


def utc_now() -> datetime:
    """Current time as a naive UTC datetime, the form BSON round-trips"""
    return datetime.now(timezone.utc).replace(tzinfo=None)
