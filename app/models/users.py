"""
User persistence and credential verification
"""

from passlib.hash import bcrypt
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from app.core.logger import get_logger
from app.models.errors import DuplicateEmailError, InvalidCredentialsError
from database.mongo_client import next_sequence, utc_now

logger = get_logger(__name__)

USERS_COLLECTION = "users"
EMAIL_INDEX_NAME = "users_uc_email"
DEFAULT_BCRYPT_ROUNDS = 12


def _is_duplicate_email(error: DuplicateKeyError) -> bool:
    details = error.details or {}
    key_pattern = details.get("keyPattern") or {}
    if key_pattern:
        return "email" in key_pattern
    # ids come from the counters collection, so email is the only
    # unique key that can collide when the driver gives no details
    return "_id_" not in str(error)


class UserModel:
    """Users collection wrapper"""

    def __init__(self, db: Database, rounds: int = DEFAULT_BCRYPT_ROUNDS):
        self.db = db
        self.collection = db[USERS_COLLECTION]
        self.rounds = rounds

    def ensure_indexes(self) -> None:
        """Create the unique email index"""
        self.collection.create_index("email", unique=True, name=EMAIL_INDEX_NAME)

    def insert(self, name: str, email: str, password: str) -> int:
        """
        Add a new user with a bcrypt-hashed password

        Args:
            name: Display name
            email: Login email, unique across users
            password: Plaintext password, never stored

        Returns:
            The new user's id

        Raises:
            DuplicateEmailError: If the email is already registered
        """
        hashed_password = bcrypt.using(rounds=self.rounds).hash(password)
        user_id = next_sequence(self.db, USERS_COLLECTION)

        try:
            self.collection.insert_one({
                "_id": user_id,
                "name": name,
                "email": email,
                "hashed_password": hashed_password,
                "created": utc_now(),
            })
        except DuplicateKeyError as e:
            if _is_duplicate_email(e):
                raise DuplicateEmailError() from e
            raise

        logger.info("Created user %d", user_id)
        return user_id

    def authenticate(self, email: str, password: str) -> int:
        """
        Verify an email/password pair

        Args:
            email: Email to look up (exact match)
            password: Plaintext password to check

        Returns:
            The matching user's id

        Raises:
            InvalidCredentialsError: If the email is unknown or the password is wrong
        """
        doc = self.collection.find_one({"email": email}, {"hashed_password": 1})
        if doc is None:
            raise InvalidCredentialsError(reason="unknown email")

        if not bcrypt.verify(password, doc["hashed_password"]):
            raise InvalidCredentialsError(reason="password mismatch")

        return int(doc["_id"])

    def exists(self, user_id: int) -> bool:
        """True if a user with this id currently exists"""
        return self.collection.find_one({"_id": user_id}, {"_id": 1}) is not None
