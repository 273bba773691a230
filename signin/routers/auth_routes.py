from __future__ import annotations

import logging
from typing import Optional

import httpx

from authlib.integrations.starlette_client import OAuthError
from fastapi import APIRouter, Depends, HTTPException, Request, Response
from fastapi.responses import JSONResponse, RedirectResponse

from ..deps import (
    clear_session_cookie,
    current_user,
    get_session_id,
    get_session_manager,
    set_session_cookie,
)
from ..errors import IdentityUnavailable, StoreUnavailable
from ..oidc import fetch_identity
from ..sessions import SessionManager, UserIdentity
from ..settings import settings

router = APIRouter(tags=["auth"])
log = logging.getLogger("signin.auth")


# ---------------------------------------------------------------------
# Login
# ---------------------------------------------------------------------

@router.get("/login")
async def login(request: Request) -> Response:
    oauth_client = request.app.state.oauth.google
    log.info("[login] redirect_uri=%s", settings.callback_url)
    return await oauth_client.authorize_redirect(request, redirect_uri=settings.callback_url)


# ---------------------------------------------------------------------
# Callback
# ---------------------------------------------------------------------

@router.get("/callback")
async def callback(
    request: Request,
    manager: SessionManager = Depends(get_session_manager),
) -> Response:
    rid = getattr(request.state, "request_id", "-")
    oauth_client = request.app.state.oauth.google

    if not request.query_params.get("code"):
        raise HTTPException(status_code=400, detail="code not found")

    try:
        token = await oauth_client.authorize_access_token(request)
    except (OAuthError, httpx.HTTPError) as e:
        log.warning("[callback] token exchange failed rid=%s err=%s", rid, e)
        raise HTTPException(status_code=500, detail="token exchange failed") from e

    try:
        identity = await fetch_identity(request, token)
    except IdentityUnavailable as e:
        raise HTTPException(status_code=500, detail=str(e)) from e

    try:
        sid = await manager.create_session(identity)
    except StoreUnavailable as e:
        raise HTTPException(status_code=500, detail="failed to store session") from e

    log.info("[callback] rid=%s email=%s logged in", rid, identity.email)

    resp = RedirectResponse("/", status_code=303)
    set_session_cookie(resp, sid)
    return resp


# ---------------------------------------------------------------------
# Session (cookie backed)
# ---------------------------------------------------------------------

@router.get("/auth/session")
async def session(user: Optional[UserIdentity] = Depends(current_user)) -> Response:
    if user is None:
        return JSONResponse({"authenticated": False}, status_code=401)
    return JSONResponse({"authenticated": True, "user": user.model_dump(by_alias=True)})


# ---------------------------------------------------------------------
# Logout
# ---------------------------------------------------------------------

@router.api_route("/logout", methods=["GET", "POST"])
async def logout(
    request: Request,
    manager: SessionManager = Depends(get_session_manager),
) -> Response:
    sid = get_session_id(request)
    if sid:
        try:
            await manager.destroy_session(sid)
        except StoreUnavailable as e:
            # the record still expires via TTL; the browser is logged out either way
            log.warning("[logout] session delete failed err=%s", e)

    resp = RedirectResponse("/", status_code=303)
    clear_session_cookie(resp)
    return resp
