"""
Database setup and initialization scripts
"""

import os
import sys
from pathlib import Path

# loading dot env
from dotenv import load_dotenv
load_dotenv()

# Add the project root to the Python path
project_root = Path(__file__).parent.parent
sys.path.append(str(project_root))

# custom imports
from app.core.logger import get_logger, setup_logging
from app.models.errors import DuplicateEmailError
from app.models.snippets import SnippetModel
from app.models.users import UserModel
from database.mongo_client import get_mongo_client
from database.session_store import MongoSessionStore

logger = get_logger(__name__)

SEED_SNIPPETS = [
    ("An old silent pond", "An old silent pond...\nA frog jumps into the pond,\nsplash! Silence again.\n\n- Matsuo Basho", 365),
    ("Over the wintry forest", "Over the wintry\nforest, winds howl in rage\nwith no leaves to blow.\n\n- Natsume Soseki", 365),
    ("First autumn morning", "First autumn morning\nthe mirror I stare into\nshows my father's face.\n\n- Murakami Kijo", 7),
]


def create_indexes(db):
    """Create the indexes every collection relies on"""
    UserModel(db).ensure_indexes()
    SnippetModel(db).ensure_indexes()
    MongoSessionStore(db).ensure_indexes()
    logger.info("Indexes created")


def seed_snippets(db):
    """Insert sample snippets into an empty snippets collection"""
    snippets = SnippetModel(db)
    if snippets.collection.count_documents({}) > 0:
        logger.info("Snippets already present, skipping seed")
        return
    for title, content, expires in SEED_SNIPPETS:
        snippet_id = snippets.insert(title, content, expires)
        logger.info("Added snippet #%d: %s", snippet_id, title)


def seed_user(db):
    """Create a user from SEED_USER_* environment variables, if set"""
    email = os.getenv("SEED_USER_EMAIL")
    password = os.getenv("SEED_USER_PASSWORD")
    if not email or not password:
        logger.info("SEED_USER_EMAIL/SEED_USER_PASSWORD not set, skipping user seed")
        return

    name = os.getenv("SEED_USER_NAME", email.split("@")[0])
    try:
        user_id = UserModel(db).insert(name, email, password)
    except DuplicateEmailError:
        logger.info("User already exists: %s", email)
        return
    logger.info("Added user #%d: %s", user_id, email)


if __name__ == "__main__":
    setup_logging()
    database = get_mongo_client()
    create_indexes(database)
    seed_snippets(database)
    seed_user(database)
    logger.info("MongoDB initialization complete.")
