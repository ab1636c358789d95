"""
Authentication tests - signup, login and bearer-token enforcement on the
protected and optionally-authenticated endpoints.
"""
import pytest
from httpx import AsyncClient

from app.security import create_access_token, decode_access_token


# ---------------------------------------------------------------------------
# Signup
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_signup_returns_token(async_client: AsyncClient):
    """Signing up returns 201 and a token whose subject is the new user."""
    resp = await async_client.post("/api/v1/auth/signup", json={
        "username": "alice",
        "email": "alice@example.com",
        "password": "wonderland",
    })
    assert resp.status_code == 201
    token = resp.json()["access_token"]
    claims = decode_access_token(token)
    assert claims is not None
    assert claims["email"] == "alice@example.com"
    assert int(claims["sub"]) > 0


@pytest.mark.asyncio
async def test_signup_duplicate_username_returns_409(async_client: AsyncClient, signup):
    await signup("dupe")
    resp = await async_client.post("/api/v1/auth/signup", json={
        "username": "dupe",
        "email": "other@example.com",
        "password": "whatever",
    })
    assert resp.status_code == 409
    body = resp.json()
    assert body["statusCode"] == 409
    assert body["message"] == "Email or username already exists"


@pytest.mark.asyncio
async def test_signup_duplicate_email_returns_409(async_client: AsyncClient, signup):
    await signup("first")
    resp = await async_client.post("/api/v1/auth/signup", json={
        "username": "second",
        "email": "first@example.com",
        "password": "whatever",
    })
    assert resp.status_code == 409


@pytest.mark.asyncio
async def test_signup_invalid_email_returns_422(async_client: AsyncClient):
    resp = await async_client.post("/api/v1/auth/signup", json={
        "username": "bademail",
        "email": "not-an-email",
        "password": "whatever",
    })
    assert resp.status_code == 422


# ---------------------------------------------------------------------------
# Login
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_login_success(async_client: AsyncClient, signup):
    await signup("bob")
    resp = await async_client.post("/api/v1/auth/login", json={
        "email": "bob@example.com",
        "password": "secret-bob",
    })
    assert resp.status_code == 200
    assert decode_access_token(resp.json()["access_token"])["email"] == "bob@example.com"


@pytest.mark.asyncio
async def test_login_wrong_password(async_client: AsyncClient, signup):
    await signup("carol")
    resp = await async_client.post("/api/v1/auth/login", json={
        "email": "carol@example.com",
        "password": "not-it",
    })
    assert resp.status_code == 401
    assert resp.json()["message"] == "Wrong password"
    assert resp.headers["www-authenticate"] == "Bearer"


@pytest.mark.asyncio
async def test_login_unknown_account(async_client: AsyncClient):
    resp = await async_client.post("/api/v1/auth/login", json={
        "email": "ghost@example.com",
        "password": "boo",
    })
    assert resp.status_code == 401
    assert resp.json()["message"] == "Account does not exist"


# ---------------------------------------------------------------------------
# Bearer token enforcement
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_protected_endpoint_requires_token(async_client: AsyncClient):
    resp = await async_client.get("/api/v1/user")
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_protected_endpoint_rejects_garbage_token(async_client: AsyncClient):
    resp = await async_client.get(
        "/api/v1/user", headers={"Authorization": "Bearer not.a.jwt"}
    )
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_token_for_missing_user_is_rejected(async_client: AsyncClient):
    """A correctly signed token whose user does not exist is still 401."""
    token = create_access_token(424242, "nobody@example.com")
    resp = await async_client.get(
        "/api/v1/user", headers={"Authorization": f"Bearer {token}"}
    )
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_optional_auth_endpoint_allows_anonymous(async_client: AsyncClient):
    resp = await async_client.get("/api/v1/articles")
    assert resp.status_code == 200


@pytest.mark.asyncio
async def test_optional_auth_endpoint_rejects_bad_token(async_client: AsyncClient):
    resp = await async_client.get(
        "/api/v1/articles", headers={"Authorization": "Bearer forged"}
    )
    assert resp.status_code == 401
