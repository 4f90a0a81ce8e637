"""
MongoDB-backed session store
"""

from datetime import datetime
from typing import Any, Dict, Optional, Tuple

from pymongo.database import Database

from database.mongo_client import utc_now

SESSIONS_COLLECTION = "sessions"


class MongoSessionStore:
    """
    Persists session data keyed by session token

    Each document is ``{"_id": token, "data": {...}, "expiry": datetime}``.
    A TTL index removes expired documents; lookups also filter on expiry
    so a session is unusable the moment it expires.
    """

    def __init__(self, db: Database, collection_name: str = SESSIONS_COLLECTION):
        self.collection = db[collection_name]

    def ensure_indexes(self) -> None:
        self.collection.create_index("expiry", expireAfterSeconds=0, name="sessions_expiry_idx")

    def find(self, token: str) -> Optional[Tuple[Dict[str, Any], datetime]]:
        """
        Look up a live session

        Returns:
            (data, expiry) for the token, or None if unknown or expired
        """
        doc = self.collection.find_one({"_id": token, "expiry": {"$gt": utc_now()}})
        if doc is None:
            return None
        return dict(doc.get("data") or {}), doc["expiry"]

    def commit(self, token: str, data: Dict[str, Any], expiry: datetime, upsert: bool = True) -> bool:
        """
        Save the session stored under token

        Args:
            token: Session token
            data: Session data to store
            expiry: Absolute expiry time
            upsert: Create the document if no session has this token

        Returns:
            False if upsert was off and the token no longer exists
        """
        result = self.collection.replace_one(
            {"_id": token},
            {"_id": token, "data": data, "expiry": expiry},
            upsert=upsert,
        )
        return upsert or result.matched_count > 0

    def delete(self, token: str) -> None:
        """Remove the session stored under token; unknown tokens are ignored"""
        self.collection.delete_one({"_id": token})
