"""
Shared test fixtures.

Settings are read from the environment when agapefy_api is first imported,
so the required Supabase variables are set here before any test module
imports the app.
"""
import os
import time

os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "test-service-role-key")
os.environ.setdefault("SUPABASE_JWT_SECRET", "test-jwt-secret-with-enough-length-for-hs256")
os.environ.setdefault("ENVIRONMENT", "test")

import pytest
from fastapi.testclient import TestClient
from jose import jwt

from agapefy_api.core.config import settings
from agapefy_api.dependencies.rate_limit import limiter
from agapefy_api.main import app
from agapefy_api.schemas.auth import UserResponse


def make_token(user_id="user-123", email="maria@example.com", expires_in=3600, **claims):
    """Sign a Supabase-style access token with the test secret."""
    payload = {
        "sub": user_id,
        "email": email,
        "aud": settings.jwt_audience,
        "role": "authenticated",
        "exp": int(time.time()) + expires_in,
        "user_metadata": {"full_name": "Maria Silva"},
    }
    payload.update(claims)
    return jwt.encode(payload, settings.supabase_jwt_secret, algorithm=settings.jwt_algorithm)


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def token_factory():
    return make_token


@pytest.fixture
def auth_token():
    return make_token()


@pytest.fixture
def auth_headers(auth_token):
    return {"Authorization": f"Bearer {auth_token}"}


@pytest.fixture
def test_user():
    return UserResponse(
        id="user-123",
        email="maria@example.com",
        full_name="Maria Silva",
        role="authenticated",
    )


@pytest.fixture(autouse=True)
def reset_rate_limits():
    limiter.reset()
    yield
    app.dependency_overrides.clear()
