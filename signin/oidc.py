from __future__ import annotations

import logging
from typing import Any, Dict

import httpx
from authlib.integrations.starlette_client import OAuth
from starlette.requests import Request

from .errors import IdentityUnavailable
from .sessions import UserIdentity
from .settings import settings

log = logging.getLogger("signin.oidc")

GOOGLE_AUTHORIZE_URL = "https://accounts.google.com/o/oauth2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_API_BASE_URL = "https://www.googleapis.com/"
GOOGLE_USERINFO_PATH = "oauth2/v2/userinfo"


def build_oauth() -> OAuth:
    oauth = OAuth()

    oauth.register(
        name="google",
        client_id=settings.GOOGLE_CLIENT_ID,
        client_secret=settings.GOOGLE_CLIENT_SECRET,
        authorize_url=GOOGLE_AUTHORIZE_URL,
        access_token_url=GOOGLE_TOKEN_URL,
        api_base_url=GOOGLE_API_BASE_URL,
        authorize_params={"access_type": "offline"},
        client_kwargs={"scope": settings.GOOGLE_SCOPES},
    )

    if not settings.GOOGLE_CLIENT_ID:
        log.warning("oauth registered without client_id; /login will fail at the provider")
    log.info("oauth registered client_id=%s scopes=%s", settings.GOOGLE_CLIENT_ID, settings.GOOGLE_SCOPES)
    return oauth


async def fetch_identity(request: Request, token: Dict[str, Any]) -> UserIdentity:
    rid = getattr(request.state, "request_id", "-")
    client = request.app.state.oauth.google

    try:
        resp = await client.get(GOOGLE_USERINFO_PATH, token=token)
        resp.raise_for_status()
    except httpx.HTTPError as e:
        log.exception("userinfo failed rid=%s err=%s", rid, e)
        raise IdentityUnavailable("failed to get user info") from e

    try:
        data = resp.json()
    except ValueError as e:
        log.warning("userinfo body not json rid=%s err=%s", rid, e)
        raise IdentityUnavailable("failed to decode user info") from e

    if not isinstance(data, dict):
        raise IdentityUnavailable("failed to decode user info")

    try:
        return UserIdentity(
            email=data.get("email") or "",
            name=data.get("name") or "",
            picture=data.get("picture") or "",
        )
    except ValueError as e:
        log.warning("userinfo unusable rid=%s keys=%s", rid, sorted(data.keys()))
        raise IdentityUnavailable("failed to decode user info") from e
