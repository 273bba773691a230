from __future__ import annotations

import logging
import time
import uuid
from typing import Any, Optional

import uvicorn
from fastapi import FastAPI, Request
from starlette.middleware.sessions import SessionMiddleware
from starlette.responses import Response

from .oidc import build_oauth
from .routers.auth_routes import router as auth_router
from .routers.health_routes import router as health_router
from .routers.home_routes import router as home_router
from .session_store import RedisSessionStore, SessionStore
from .sessions import SessionManager
from .settings import settings

# ----------------------------
# Logging setup
# ----------------------------
log = logging.getLogger("signin")
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
)


def create_app(store: Optional[SessionStore] = None, oauth: Optional[Any] = None) -> FastAPI:
    """Build the app with its collaborators injected (Redis + Google by default)."""
    app = FastAPI(title="Signin Service")

    if store is None:
        store = RedisSessionStore.from_url(settings.REDIS_URL, password=settings.REDIS_PASSWORD)

    app.state.session_manager = SessionManager(store, ttl_seconds=settings.SESSION_TTL_SECONDS)
    app.state.oauth = oauth if oauth is not None else build_oauth()

    # REQUIRED by Authlib (keeps the OAuth state in request.session); own cookie
    # name so it never clashes with the `session` cookie.
    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.SESSION_SIGNING_SECRET,
        session_cookie=settings.OAUTH_STATE_COOKIE_NAME,
        max_age=600,
        same_site=settings.COOKIE_SAMESITE,
        https_only=settings.COOKIE_SECURE,
    )

    # ----------------------------
    # Request/Response logging middleware
    # ----------------------------
    @app.middleware("http")
    async def request_logging_middleware(request: Request, call_next):
        rid = request.headers.get("x-request-id") or str(uuid.uuid4())
        request.state.request_id = rid

        start = time.time()
        path = request.url.path

        log.info(
            "REQ rid=%s method=%s path=%s client=%s",
            rid,
            request.method,
            path,
            request.client.host if request.client else None,
        )

        try:
            resp: Response = await call_next(request)
            dur_ms = int((time.time() - start) * 1000)
            log.info("RES rid=%s status=%s dur_ms=%s path=%s", rid, resp.status_code, dur_ms, path)
            return resp
        except Exception:
            dur_ms = int((time.time() - start) * 1000)
            log.exception("ERR rid=%s dur_ms=%s path=%s", rid, dur_ms, path)
            raise

    @app.on_event("startup")
    async def startup():
        log.info(
            "startup begin base_url=%s client_id=%s ttl=%s cookie_secure=%s samesite=%s",
            settings.BASE_URL,
            settings.GOOGLE_CLIENT_ID,
            settings.SESSION_TTL_SECONDS,
            settings.COOKIE_SECURE,
            settings.COOKIE_SAMESITE,
        )
        # unreachable store aborts startup
        await app.state.session_manager.store.ping()
        log.info("startup complete, session store reachable")

    @app.on_event("shutdown")
    async def shutdown():
        await app.state.session_manager.store.close()

    app.include_router(health_router)
    app.include_router(home_router)
    app.include_router(auth_router)
    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run("signin.main:app", host="0.0.0.0", port=settings.PORT)
