"""User service for signup, login and password hashing."""

import base64
import hashlib
import logging
import secrets
from datetime import UTC, datetime

from tasktracker.core import db_client
from tasktracker.core.config import Constants
from tasktracker.core.db_client import RecordNotFoundError, sanitize_param
from tasktracker.core.errors import AuthenticationError, InvalidRequestError
from tasktracker.core.logging import span
from tasktracker.domain.create_models import UserCreate
from tasktracker.domain.user import User


logger = logging.getLogger(__name__)

USERS_COLLECTION = "users"
_HASH_ALGORITHM = "pbkdf2_sha256"


def hash_password(password: str, *, iterations: int = Constants.PASSWORD_HASH_ITERATIONS) -> str:
    """Hash a password with PBKDF2-HMAC-SHA256 and a random salt.

    Returns:
        "pbkdf2_sha256$<iterations>$<salt>$<hash>" with base64 salt and hash
    """
    salt = secrets.token_bytes(Constants.PASSWORD_SALT_BYTES)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, iterations)
    return "$".join(
        [
            _HASH_ALGORITHM,
            str(iterations),
            base64.b64encode(salt).decode("ascii"),
            base64.b64encode(digest).decode("ascii"),
        ]
    )


def verify_password(password: str, encoded: str) -> bool:
    """Check a password against a stored hash in constant time."""
    try:
        algorithm, iterations, salt_b64, hash_b64 = encoded.split("$")
        if algorithm != _HASH_ALGORITHM:
            return False
        salt = base64.b64decode(salt_b64)
        expected = base64.b64decode(hash_b64)
        digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, int(iterations))
    except ValueError:
        logger.warning("password_hash_malformed")
        return False
    return secrets.compare_digest(digest, expected)


async def get_user_by_email(email: str) -> dict | None:
    """Find a raw user record by (lowercased) email."""
    return await db_client.get_first_record(
        collection=USERS_COLLECTION,
        filter_query=f'email = "{sanitize_param(email.strip().lower())}"',
    )


async def register_user(data: UserCreate) -> User:
    """Create a new user account.

    Raises:
        InvalidRequestError: If the email is already registered
    """
    with span("user_service.register_user"):
        if await get_user_by_email(data.email):
            raise InvalidRequestError("Email already registered")

        record = await db_client.create_record(
            collection=USERS_COLLECTION,
            data={
                "name": data.name,
                "email": data.email,
                "password_hash": hash_password(data.password),
                "created": datetime.now(UTC).isoformat(timespec="microseconds").replace("+00:00", "Z"),
            },
        )

        logger.info("user_registered", extra={"user_id": record["id"]})
        return User(**record)


async def authenticate(email: str, password: str) -> User:
    """Verify credentials and return the user.

    Unknown email and wrong password fail identically.

    Raises:
        AuthenticationError: If the credentials do not match
    """
    with span("user_service.authenticate"):
        record = await get_user_by_email(email)
        if record is None or not verify_password(password, record["password_hash"]):
            logger.info("login_failed")
            raise AuthenticationError("Invalid credentials")

        logger.info("login_succeeded", extra={"user_id": record["id"]})
        return User(**record)


async def get_user(user_id: str) -> User | None:
    """Look up a user by id, returning None if it no longer exists."""
    try:
        record = await db_client.get_record(collection=USERS_COLLECTION, record_id=user_id)
    except RecordNotFoundError:
        return None
    return User(**record)
