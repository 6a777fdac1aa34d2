"""
Browser login through an external OpenID Connect provider.

GET /api/login redirects to the provider, GET /api/callback completes the
login and GET /api/logout clears the session. The first two answer 404
when OIDC is not configured.
"""
import logging
import secrets

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from jobboard.api.auth import login_session, logout_session
from jobboard.config import settings
from jobboard.database import get_db
from jobboard.services import oidc

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/login")
async def oidc_login(request: Request):
    oidc.require_enabled()
    state = secrets.token_urlsafe(32)
    verifier, challenge = oidc.new_pkce_pair()
    request.session["oidc_state"] = state
    request.session["oidc_code_verifier"] = verifier
    return RedirectResponse(await oidc.build_authorization_url(state, challenge), status_code=302)


@router.get("/callback")
async def oidc_callback(
    request: Request,
    code: str = None,
    state: str = None,
    error: str = None,
    db: AsyncSession = Depends(get_db)
):
    """
    Finish the authorization code flow.

    Returns:
        302: Signed in, redirected to the frontend
        400: Provider error or state mismatch
        404: OIDC not configured
    """
    oidc.require_enabled()
    expected_state = request.session.pop("oidc_state", None)
    verifier = request.session.pop("oidc_code_verifier", None)

    if error:
        logger.warning(f"OIDC provider returned error: {error}")
        raise HTTPException(status_code=400, detail=f"Login failed: {error}")
    if not code or not state or not expected_state or not secrets.compare_digest(state, expected_state):
        raise HTTPException(status_code=400, detail="Invalid login state")

    claims = await oidc.fetch_userinfo(code, verifier)
    user = await oidc.upsert_oidc_user(db, claims)
    login_session(request, user)
    logger.info(f"OIDC login: {user.email}")
    return RedirectResponse(settings.get_frontend_url() + "/", status_code=302)


@router.get("/logout")
async def logout_redirect(request: Request):
    logout_session(request)
    return RedirectResponse(settings.get_frontend_url() + "/", status_code=302)
