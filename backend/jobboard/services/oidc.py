"""
OpenID Connect login (authorization code flow with PKCE).

Discovery, token exchange and userinfo go over aiohttp. The ID token is
not decoded locally: claims come from the userinfo endpoint using the
freshly issued access token.
"""
import base64
import hashlib
import logging
import secrets
from typing import Any, Dict, Optional
from urllib.parse import urlencode

import aiohttp
from sqlalchemy.ext.asyncio import AsyncSession

from jobboard.config import settings
from jobboard.errors import NotFoundError, UnauthorizedError
from jobboard.models.user import User
from jobboard.services.users import create_user, get_user_by_email, touch_last_active

logger = logging.getLogger(__name__)

SCOPES = "openid email profile"
REQUEST_TIMEOUT_S = 10

_discovery_cache: Dict[str, Dict[str, Any]] = {}


def require_enabled() -> None:
    if not settings.oidc_enabled():
        raise NotFoundError("OIDC login is not configured")


def redirect_uri() -> str:
    return settings.oidc_redirect_uri or f"{settings.app_url.rstrip('/')}/api/callback"


def new_pkce_pair() -> tuple[str, str]:
    """(code_verifier, S256 code_challenge)"""
    verifier = secrets.token_urlsafe(64)
    digest = hashlib.sha256(verifier.encode("ascii")).digest()
    challenge = base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")
    return verifier, challenge


async def _get_json(session: aiohttp.ClientSession, url: str, **kwargs) -> Dict[str, Any]:
    async with session.get(url, **kwargs) as resp:
        if resp.status != 200:
            logger.error(f"OIDC GET {url} failed: {resp.status}")
            raise UnauthorizedError("Identity provider request failed")
        return await resp.json(content_type=None)


async def get_provider_metadata() -> Dict[str, Any]:
    """Issuer discovery document, fetched once per process."""
    issuer = settings.oidc_issuer_url.rstrip("/")
    if issuer not in _discovery_cache:
        timeout = aiohttp.ClientTimeout(total=REQUEST_TIMEOUT_S)
        async with aiohttp.ClientSession(timeout=timeout) as session:
            _discovery_cache[issuer] = await _get_json(session, f"{issuer}/.well-known/openid-configuration")
    return _discovery_cache[issuer]


async def build_authorization_url(state: str, code_challenge: str) -> str:
    metadata = await get_provider_metadata()
    params = {
        "response_type": "code",
        "client_id": settings.oidc_client_id,
        "redirect_uri": redirect_uri(),
        "scope": SCOPES,
        "state": state,
        "code_challenge": code_challenge,
        "code_challenge_method": "S256",
        "prompt": "login consent",
    }
    return f"{metadata['authorization_endpoint']}?{urlencode(params)}"


async def fetch_userinfo(code: str, code_verifier: str) -> Dict[str, Any]:
    """Exchange the authorization code and return the userinfo claims."""
    metadata = await get_provider_metadata()
    form = {
        "grant_type": "authorization_code",
        "code": code,
        "redirect_uri": redirect_uri(),
        "client_id": settings.oidc_client_id,
        "code_verifier": code_verifier,
    }
    if settings.oidc_client_secret:
        form["client_secret"] = settings.oidc_client_secret

    timeout = aiohttp.ClientTimeout(total=REQUEST_TIMEOUT_S)
    async with aiohttp.ClientSession(timeout=timeout) as session:
        async with session.post(metadata["token_endpoint"], data=form) as resp:
            if resp.status != 200:
                logger.error(f"OIDC token exchange failed: {resp.status}")
                raise UnauthorizedError("Login failed")
            tokens = await resp.json(content_type=None)

        return await _get_json(
            session,
            metadata["userinfo_endpoint"],
            headers={"Authorization": f"Bearer {tokens['access_token']}"},
        )


async def upsert_oidc_user(db: AsyncSession, claims: Dict[str, Any]) -> User:
    """
    Find the account by email or create a guest account from the claims.
    Profile fields are refreshed from the provider on every login.
    """
    email: Optional[str] = claims.get("email")
    if not email:
        raise UnauthorizedError("Identity provider did not return an email address")

    user = await get_user_by_email(db, email)
    if user is None:
        user = await create_user(
            db,
            email,
            None,
            first_name=claims.get("given_name") or claims.get("first_name"),
            last_name=claims.get("family_name") or claims.get("last_name"),
            profile_image_url=claims.get("picture") or claims.get("profile_image_url"),
        )
    else:
        user.first_name = claims.get("given_name") or user.first_name
        user.last_name = claims.get("family_name") or user.last_name
        user.profile_image_url = claims.get("picture") or user.profile_image_url
    await touch_last_active(db, user)
    await db.refresh(user)
    return user
