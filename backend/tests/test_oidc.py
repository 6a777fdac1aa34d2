"""
Tests for the OpenID Connect login flow.

The provider is never contacted: discovery and the token/userinfo calls
are monkeypatched on jobboard.services.oidc.
"""
import base64
import hashlib
from urllib.parse import parse_qs, urlparse

import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from jobboard.config import settings
from jobboard.models.user import User, UserRole
from jobboard.services import oidc

METADATA = {
    "authorization_endpoint": "https://id.example.com/authorize",
    "token_endpoint": "https://id.example.com/token",
    "userinfo_endpoint": "https://id.example.com/userinfo",
}


@pytest.fixture
def oidc_configured(monkeypatch):
    monkeypatch.setattr(settings, "oidc_issuer_url", "https://id.example.com")
    monkeypatch.setattr(settings, "oidc_client_id", "jobboard")

    async def fake_metadata():
        return METADATA

    monkeypatch.setattr(oidc, "get_provider_metadata", fake_metadata)

    claims = {"email": "Satoshi@Example.com", "given_name": "Satoshi", "picture": "https://img.example.com/s.png"}
    exchanged = []

    async def fake_userinfo(code, code_verifier):
        exchanged.append((code, code_verifier))
        return claims

    monkeypatch.setattr(oidc, "fetch_userinfo", fake_userinfo)
    return claims, exchanged


async def start_login(client: AsyncClient) -> dict:
    response = await client.get("/api/login")
    assert response.status_code == 302
    location = urlparse(response.headers["location"])
    assert f"{location.scheme}://{location.netloc}{location.path}" == METADATA["authorization_endpoint"]
    return {k: v[0] for k, v in parse_qs(location.query).items()}


@pytest.mark.asyncio
async def test_login_not_configured(async_client: AsyncClient, monkeypatch):
    monkeypatch.setattr(settings, "oidc_issuer_url", "")

    assert (await async_client.get("/api/login")).status_code == 404
    assert (await async_client.get("/api/callback", params={"code": "x", "state": "y"})).status_code == 404


@pytest.mark.asyncio
async def test_login_redirects_with_pkce(async_client: AsyncClient, oidc_configured):
    params = await start_login(async_client)

    assert params["client_id"] == "jobboard"
    assert params["code_challenge_method"] == "S256"
    assert params["redirect_uri"] == "http://localhost:8000/api/callback"
    assert params["state"]
    assert params["code_challenge"]


def test_pkce_challenge_matches_verifier():
    verifier, challenge = oidc.new_pkce_pair()

    digest = hashlib.sha256(verifier.encode("ascii")).digest()
    assert challenge == base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")
    assert "=" not in challenge


@pytest.mark.asyncio
async def test_callback_creates_guest_and_signs_in(
    async_client: AsyncClient, db: AsyncSession, oidc_configured
):
    """
    Test: First OIDC login

    Verifies:
    - The code is exchanged with the verifier kept in the session
    - A guest account is created from the claims (email lowercased)
    - The browser is sent to the frontend with a live session
    """
    _, exchanged = oidc_configured
    params = await start_login(async_client)

    response = await async_client.get("/api/callback", params={"code": "abc", "state": params["state"]})

    assert response.status_code == 302
    assert response.headers["location"] == "http://localhost:5173/"
    assert exchanged[0][0] == "abc"
    assert exchanged[0][1]

    user = (await db.execute(select(User).where(User.email == "satoshi@example.com"))).scalar_one()
    assert user.role == UserRole.GUEST
    assert user.first_name == "Satoshi"
    assert user.password_hash is None

    me = await async_client.get("/api/auth/user")
    assert me.json()["email"] == "satoshi@example.com"


@pytest.mark.asyncio
async def test_callback_reuses_existing_account(
    async_client: AsyncClient, db: AsyncSession, make_user, oidc_configured
):
    existing = await make_user("satoshi@example.com", UserRole.TALENT)
    params = await start_login(async_client)

    await async_client.get("/api/callback", params={"code": "abc", "state": params["state"]})

    users = (await db.execute(select(User))).scalars().all()
    assert [u.id for u in users] == [existing.id]
    await db.refresh(existing)
    assert existing.profile_image_url == "https://img.example.com/s.png"
    assert existing.last_active_at is not None


@pytest.mark.asyncio
async def test_callback_rejects_state_mismatch(async_client: AsyncClient, oidc_configured):
    await start_login(async_client)

    response = await async_client.get("/api/callback", params={"code": "abc", "state": "forged"})

    assert response.status_code == 400
    assert (await async_client.get("/api/auth/user")).status_code == 401


@pytest.mark.asyncio
async def test_callback_provider_error(async_client: AsyncClient, oidc_configured):
    response = await async_client.get("/api/callback", params={"error": "access_denied"})

    assert response.status_code == 400
    assert "access_denied" in response.json()["detail"]


@pytest.mark.asyncio
async def test_logout_redirect_clears_session(talent_client: AsyncClient):
    response = await talent_client.get("/api/logout")

    assert response.status_code == 302
    assert (await talent_client.get("/api/auth/user")).status_code == 401
