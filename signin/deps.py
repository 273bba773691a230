from __future__ import annotations

from typing import Optional

from fastapi import Request, Response
from itsdangerous import BadSignature, URLSafeSerializer

from .sessions import SessionManager, UserIdentity
from .settings import settings


def _serializer() -> URLSafeSerializer:
    return URLSafeSerializer(settings.SESSION_SIGNING_SECRET, salt="signin-session")


def get_session_manager(request: Request) -> SessionManager:
    return request.app.state.session_manager


def get_session_id(request: Request) -> Optional[str]:
    raw = request.cookies.get(settings.SESSION_COOKIE_NAME)
    if not raw:
        return None
    try:
        sid = _serializer().loads(raw)
    except BadSignature:
        return None
    return sid if isinstance(sid, str) else None


def set_session_cookie(resp: Response, sid: str) -> None:
    resp.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=_serializer().dumps(sid),
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite=settings.COOKIE_SAMESITE,
        domain=settings.COOKIE_DOMAIN,
        max_age=settings.SESSION_TTL_SECONDS,
        path="/",
    )


def clear_session_cookie(resp: Response) -> None:
    # empty value + expiry in the past
    resp.delete_cookie(
        key=settings.SESSION_COOKIE_NAME,
        domain=settings.COOKIE_DOMAIN,
        path="/",
    )


async def current_user(request: Request) -> Optional[UserIdentity]:
    """FastAPI dependency: the logged-in identity, or None when logged out."""
    return await get_session_manager(request).resolve_session(get_session_id(request))
