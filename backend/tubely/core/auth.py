"""
Tubely Authentication Module

Bearer token handling for the Tubely API. Tokens are HS256-family JWTs
signed with the configured secret whose ``sub`` claim carries the caller's
user id (a UUID).

Usage in FastAPI routes:
    ```python
    from fastapi import Depends
    from tubely.core.auth import get_current_user_id

    @router.get("/videos")
    async def list_videos(user_id: UUID = Depends(get_current_user_id)):
        return {"user_id": str(user_id)}
    ```
"""

import logging

from datetime import UTC, datetime, timedelta
from uuid import UUID

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import ExpiredSignatureError, JWTError, jwt

from tubely.config import Settings, get_settings
from tubely.core.exceptions import InvalidCredentialsError


logger = logging.getLogger(__name__)

TOKEN_ISSUER = "tubely-access"

# auto_error=False so a missing header goes through our own 401 envelope
security = HTTPBearer(auto_error=False)


# =============================================================================
# Token Functions
# =============================================================================


def create_access_token(
    user_id: UUID,
    settings: Settings | None = None,
    expires_in: timedelta | None = None,
) -> str:
    """
    Create a signed access token for ``user_id``.

    Token claims:
    - iss: "tubely-access"
    - sub: User ID
    - iat: Issued at timestamp
    - exp: Expiration timestamp (jwt_expiration_hours unless ``expires_in`` is given)

    Example:
        ```python
        token = create_access_token(uuid4(), expires_in=timedelta(minutes=5))
        ```
    """
    if settings is None:
        settings = get_settings()

    now = datetime.now(UTC)
    expire = now + (expires_in or timedelta(hours=settings.jwt_expiration_hours))

    payload = {
        "iss": TOKEN_ISSUER,
        "sub": str(user_id),
        "iat": now,
        "exp": expire,
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def validate_bearer(token: str, settings: Settings | None = None) -> UUID:
    """
    Validate a bearer token and return the caller's user id.

    Args:
        token: The encoded JWT.
        settings: Settings holding jwt_secret and jwt_algorithm.

    Returns:
        UUID: The ``sub`` claim.

    Raises:
        InvalidCredentialsError: If the token is expired, has a bad signature,
            is malformed, or its subject is not a UUID.
    """
    if settings is None:
        settings = get_settings()

    if not token:
        raise InvalidCredentialsError("Missing bearer token")

    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            issuer=TOKEN_ISSUER,
        )
    except ExpiredSignatureError as e:
        logger.warning("Bearer token has expired")
        raise InvalidCredentialsError("Token has expired") from e
    except JWTError as e:
        logger.warning("Bearer token validation failed: %s", str(e))
        raise InvalidCredentialsError("Couldn't validate JWT") from e

    subject = payload.get("sub")
    try:
        return UUID(str(subject))
    except ValueError as e:
        logger.warning("Bearer token subject is not a user id: %r", subject)
        raise InvalidCredentialsError("Couldn't validate JWT") from e


# =============================================================================
# FastAPI Dependencies
# =============================================================================


async def get_current_user_id(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> UUID:
    """
    FastAPI dependency resolving the authenticated caller's user id.

    Raises:
        InvalidCredentialsError: If the Authorization header is missing or
            the token does not validate. Mapped to 401 by the app.
    """
    if credentials is None:
        raise InvalidCredentialsError("Couldn't find JWT")

    return validate_bearer(credentials.credentials, get_settings())
