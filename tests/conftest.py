"""Pytest configuration and fixtures."""

import json
import os
import time
from collections.abc import Callable, Generator
from typing import Any
from unittest.mock import MagicMock, patch
from uuid import UUID

import jwt
import pytest
from cryptography.hazmat.primitives.asymmetric import ec
from fastapi.testclient import TestClient
from jwt.algorithms import ECAlgorithm

# Signing key for test access tokens; its public half is the configured JWK
TEST_SIGNING_KEY = ec.generate_private_key(ec.SECP256R1())
_TEST_JWK = ECAlgorithm.to_jwk(TEST_SIGNING_KEY.public_key(), as_dict=True)
_TEST_JWK.update({"alg": "ES256", "kid": "test-key", "use": "sig"})

TEST_USER_ID = UUID("660e8400-e29b-41d4-a716-446655440000")
TEST_EMAIL = "jane@example.com"

# Set test environment variables before importing application modules
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("SITE_URL", "http://localhost:3000")
os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_SECRET_KEY", "test-secret-key")
os.environ.setdefault("SESSION_COOKIE_SECURE", "false")
os.environ["SUPABASE_SIGNING_KEY_JWK"] = json.dumps(_TEST_JWK)


def create_test_token(
    sub: str = str(TEST_USER_ID),
    email: str | None = TEST_EMAIL,
    role: str | None = "authenticated",
    exp_offset: int = 3600,
    audience: str = "authenticated",
    key: Any = None,
) -> str:
    """Create an ES256 access token shaped like Supabase's.

    Args:
        sub: Subject (user ID).
        email: User email.
        role: User role.
        exp_offset: Seconds from now for expiration (negative for expired).
        audience: Token audience.
        key: Signing key; defaults to the configured test key.

    Returns:
        str: Encoded JWT token.
    """
    now = int(time.time())
    payload = {
        "sub": sub,
        "email": email,
        "role": role,
        "exp": now + exp_offset,
        "iat": now,
        "aud": audience,
        "iss": "https://test-project.supabase.co/auth/v1",
    }
    return jwt.encode(payload, key or TEST_SIGNING_KEY, algorithm="ES256", headers={"kid": "test-key"})


def profile_row(**overrides: Any) -> dict[str, Any]:
    """A profiles table row for the test user."""
    row = {
        "id": 1,
        "user_id": str(TEST_USER_ID),
        "email": TEST_EMAIL,
        "first_name": "Jane",
        "last_name": "Doe",
        "username": "janedoe",
        "dob": None,
        "avatar": None,
        "created_at": "2024-01-01T00:00:00+00:00",
        "updated_at": "2024-01-01T00:00:00+00:00",
    }
    row.update(overrides)
    return row


@pytest.fixture(scope="session")
def test_settings() -> Generator[Any, None, None]:
    """Provide test settings with cleared cache.

    Yields:
        Settings: Test configuration settings.
    """
    from tradepulse.core.config import get_settings

    get_settings.cache_clear()

    settings = get_settings()
    yield settings

    get_settings.cache_clear()


@pytest.fixture
def mock_supabase_client() -> Generator[MagicMock, None, None]:
    """Provide a mocked Supabase client.

    Every client the application builds (the shared data client and the
    per-call auth clients) is this mock.

    Yields:
        MagicMock: Mocked Supabase client for testing.
    """
    from tradepulse.api.middleware.auth import get_signing_key
    from tradepulse.core.supabase import get_supabase_client

    mock_client = MagicMock()

    # Configure default mock responses
    mock_response = MagicMock()
    mock_response.data = []
    mock_client.table.return_value.select.return_value.limit.return_value.execute.return_value = (
        mock_response
    )

    get_supabase_client.cache_clear()
    get_signing_key.cache_clear()
    with patch("tradepulse.core.supabase.create_client", return_value=mock_client):
        yield mock_client
    get_supabase_client.cache_clear()


@pytest.fixture
def client(mock_supabase_client: MagicMock) -> Generator[TestClient, None, None]:
    """Provide a test client for the FastAPI application.

    Args:
        mock_supabase_client: Mocked Supabase client fixture.

    Yields:
        TestClient: FastAPI test client.
    """
    from tradepulse.main import app

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def token_factory() -> Callable[..., str]:
    return create_test_token


@pytest.fixture
def auth_headers() -> dict[str, str]:
    """Authorization header for the test user."""
    return {"Authorization": f"Bearer {create_test_token()}"}


@pytest.fixture
def test_user_id() -> UUID:
    return TEST_USER_ID


@pytest.fixture
def profile_row_factory() -> Callable[..., dict[str, Any]]:
    return profile_row
