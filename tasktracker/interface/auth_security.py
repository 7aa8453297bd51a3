"""Bearer token issuing and request authentication."""

import logging

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from tasktracker.core.config import settings
from tasktracker.core.errors import AuthenticationError
from tasktracker.core.rate_limiter import rate_limiter
from tasktracker.domain.user import User
from tasktracker.services import user_service


logger = logging.getLogger(__name__)

TOKEN_SALT = "auth-token"
TOKEN_FAILED_MESSAGE = "Not authorized, token failed"

bearer_scheme = HTTPBearer(auto_error=False)


def get_serializer() -> URLSafeTimedSerializer:
    """Build the token serializer from the configured secret."""
    secret = settings.require_credential("secret_key", "Token signing")
    return URLSafeTimedSerializer(secret, salt=TOKEN_SALT)


def issue_token(user_id: str) -> str:
    """Sign a bearer token carrying the user id."""
    return get_serializer().dumps({"sub": user_id})


def read_token(token: str, *, max_age: int | None = None) -> str:
    """Verify a bearer token and return the user id it carries.

    Raises:
        AuthenticationError: If the token is tampered with, expired or malformed
    """
    age = max_age if max_age is not None else settings.token_max_age_seconds
    try:
        payload = get_serializer().loads(token, max_age=age)
    except SignatureExpired as err:
        logger.info("auth_token_expired")
        raise AuthenticationError(TOKEN_FAILED_MESSAGE) from err
    except BadSignature as err:
        logger.warning("auth_token_tampered")
        raise AuthenticationError(TOKEN_FAILED_MESSAGE) from err

    user_id = payload.get("sub") if isinstance(payload, dict) else None
    if not user_id:
        raise AuthenticationError(TOKEN_FAILED_MESSAGE)
    return str(user_id)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> User:
    """Resolve the request's bearer token to an existing user or fail with 401."""
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise AuthenticationError("Not authorized, no token")

    user = await user_service.get_user(read_token(credentials.credentials))
    if user is None:
        logger.warning("auth_token_user_missing")
        raise AuthenticationError(TOKEN_FAILED_MESSAGE)
    return user


async def check_login_rate_limit(request: Request) -> None:
    """Throttle login attempts per client IP."""
    client_ip = request.client.host if request.client else "unknown"
    await rate_limiter.check_login_rate_limit(client_ip)
