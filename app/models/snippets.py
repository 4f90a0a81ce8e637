"""
Snippet persistence
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, List

from pymongo import DESCENDING
from pymongo.database import Database

from app.models.errors import NoRecordError
from database.mongo_client import next_sequence, utc_now

SNIPPETS_COLLECTION = "snippets"
LATEST_LIMIT = 10


@dataclass
class Snippet:
    id: int
    title: str
    content: str
    created: datetime
    expires: datetime


def _to_snippet(doc: Dict[str, Any]) -> Snippet:
    return Snippet(
        id=int(doc["_id"]),
        title=doc["title"],
        content=doc["content"],
        created=doc["created"],
        expires=doc["expires"],
    )


class SnippetModel:
    """Snippets collection wrapper"""

    def __init__(self, db: Database):
        self.db = db
        self.collection = db[SNIPPETS_COLLECTION]

    def ensure_indexes(self) -> None:
        self.collection.create_index("expires")

    def insert(self, title: str, content: str, expires: int) -> int:
        """
        Store a new snippet

        Args:
            title: Snippet title
            content: Snippet body
            expires: Lifetime in days from now

        Returns:
            The new snippet's id
        """
        now = utc_now()
        snippet_id = next_sequence(self.db, SNIPPETS_COLLECTION)
        self.collection.insert_one({
            "_id": snippet_id,
            "title": title,
            "content": content,
            "created": now,
            "expires": now + timedelta(days=expires),
        })
        return snippet_id

    def get(self, snippet_id: int) -> Snippet:
        """
        Fetch an unexpired snippet by id

        Raises:
            NoRecordError: If no unexpired snippet has this id
        """
        doc = self.collection.find_one({
            "_id": snippet_id,
            "expires": {"$gt": utc_now()},
        })
        if doc is None:
            raise NoRecordError()
        return _to_snippet(doc)

    def latest(self) -> List[Snippet]:
        """Return the most recently created unexpired snippets"""
        cursor = (
            self.collection.find({"expires": {"$gt": utc_now()}})
            .sort("_id", DESCENDING)
            .limit(LATEST_LIMIT)
        )
        return [_to_snippet(doc) for doc in cursor]
