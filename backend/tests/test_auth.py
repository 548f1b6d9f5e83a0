"""
Tubely Authentication Module Test Suite

Covers tubely/core/auth.py:
- Access token creation (issuer, subject, expiration)
- Bearer token validation: expiry, signature, malformed tokens and subjects
- The get_current_user_id FastAPI dependency
"""

from datetime import UTC, datetime, timedelta
from uuid import uuid4

import pytest

from fastapi.security import HTTPAuthorizationCredentials
from jose import jwt

from tubely.core.auth import (
    TOKEN_ISSUER,
    create_access_token,
    get_current_user_id,
    validate_bearer,
)
from tubely.core.exceptions import InvalidCredentialsError


class TestCreateAccessToken:
    def test_claims(self, mock_settings) -> None:
        user_id = uuid4()

        token = create_access_token(user_id, mock_settings, expires_in=timedelta(minutes=5))
        claims = jwt.decode(token, mock_settings.jwt_secret, algorithms=["HS256"], issuer=TOKEN_ISSUER)

        assert claims["sub"] == str(user_id)
        assert claims["iss"] == "tubely-access"
        assert claims["exp"] - claims["iat"] == 300

    def test_default_expiration_uses_settings(self, mock_settings) -> None:
        token = create_access_token(uuid4(), mock_settings)
        claims = jwt.get_unverified_claims(token)

        assert claims["exp"] - claims["iat"] == mock_settings.jwt_expiration_hours * 3600


class TestValidateBearer:
    def test_round_trip(self, mock_settings) -> None:
        user_id = uuid4()

        assert validate_bearer(create_access_token(user_id, mock_settings), mock_settings) == user_id

    def test_expired_token(self, mock_settings) -> None:
        token = create_access_token(uuid4(), mock_settings, expires_in=timedelta(seconds=-60))

        with pytest.raises(InvalidCredentialsError, match="expired"):
            validate_bearer(token, mock_settings)

    def test_wrong_secret(self, mock_settings) -> None:
        other = mock_settings.model_copy(update={"jwt_secret": "another-secret-that-is-also-32-chars-long"})
        token = create_access_token(uuid4(), other)

        with pytest.raises(InvalidCredentialsError):
            validate_bearer(token, mock_settings)

    @pytest.mark.parametrize("token", ["", "not.a.jwt", "abc"])
    def test_malformed_token(self, mock_settings, token: str) -> None:
        with pytest.raises(InvalidCredentialsError):
            validate_bearer(token, mock_settings)

    @pytest.mark.parametrize("subject", [None, "user-123"])
    def test_subject_must_be_uuid(self, mock_settings, subject) -> None:
        now = datetime.now(UTC)
        claims = {"iss": TOKEN_ISSUER, "iat": now, "exp": now + timedelta(minutes=5)}
        if subject is not None:
            claims["sub"] = subject
        token = jwt.encode(claims, mock_settings.jwt_secret, algorithm="HS256")

        with pytest.raises(InvalidCredentialsError):
            validate_bearer(token, mock_settings)

    def test_wrong_issuer(self, mock_settings) -> None:
        now = datetime.now(UTC)
        token = jwt.encode(
            {"iss": "someone-else", "sub": str(uuid4()), "iat": now, "exp": now + timedelta(minutes=5)},
            mock_settings.jwt_secret,
            algorithm="HS256",
        )

        with pytest.raises(InvalidCredentialsError):
            validate_bearer(token, mock_settings)


class TestGetCurrentUserId:
    @pytest.mark.asyncio
    async def test_missing_header(self) -> None:
        with pytest.raises(InvalidCredentialsError):
            await get_current_user_id(None)

    @pytest.mark.asyncio
    async def test_valid_bearer(self, mock_settings, monkeypatch) -> None:
        monkeypatch.setattr("tubely.core.auth.get_settings", lambda: mock_settings)
        user_id = uuid4()
        credentials = HTTPAuthorizationCredentials(
            scheme="Bearer", credentials=create_access_token(user_id, mock_settings)
        )

        assert await get_current_user_id(credentials) == user_id
