from __future__ import annotations

import logging
import re
import secrets
import time
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import StoreUnavailable
from .session_store import SessionStore

log = logging.getLogger("signin.sessions")

SESSION_KEY_PREFIX = "session:"
DEFAULT_TTL_SECONDS = 3600

# token_urlsafe(32) -> 43 chars of [A-Za-z0-9_-]
_SESSION_ID_BYTES = 32
_SESSION_ID_RE = re.compile(r"[A-Za-z0-9_-]{43}")


class UserIdentity(BaseModel):
    """Verified profile handed back by the identity provider.

    Serialized with the provider's field names (email/name/picture).
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    email: str = Field(min_length=1)
    display_name: str = Field(default="", alias="name")
    picture_url: str = Field(default="", alias="picture")

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)

    @classmethod
    def from_json(cls, raw: str) -> "UserIdentity":
        return cls.model_validate_json(raw)


def session_key(session_id: str) -> str:
    return f"{SESSION_KEY_PREFIX}{session_id}"


def new_session_id() -> str:
    return secrets.token_urlsafe(_SESSION_ID_BYTES)


def is_well_formed(session_id: Optional[str]) -> bool:
    return bool(session_id) and _SESSION_ID_RE.fullmatch(session_id) is not None


class SessionManager:
    """
    Maps opaque session ids to user identities through a TTL store.

    Holds no in-process state: every call is a single store round trip,
    and expiry is whatever the store's TTL says it is (no sliding renewal).
    """

    def __init__(self, store: SessionStore, ttl_seconds: int = DEFAULT_TTL_SECONDS) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self.store = store
        self.ttl_seconds = ttl_seconds

    async def create_session(self, identity: UserIdentity) -> str:
        """Store `identity` under a fresh random id and return the id.

        Raises StoreUnavailable if the write does not complete; the caller
        must not treat the user as logged in.
        """
        sid = new_session_id()
        try:
            await self.store.set(session_key(sid), identity.to_json(), self.ttl_seconds)
        except StoreUnavailable:
            log.exception("session create failed email=%s", identity.email)
            raise

        log.info(
            "session created email=%s ttl=%s expires_at=%d",
            identity.email,
            self.ttl_seconds,
            int(time.time()) + self.ttl_seconds,
        )
        return sid

    async def resolve_session(self, session_id: Optional[str]) -> Optional[UserIdentity]:
        """Return the identity for `session_id`, or None.

        Fails open to logged-out: a missing, malformed or undecodable record
        and a store read error all come back as None. Never raises for
        those, and never returns a default identity.
        """
        if not is_well_formed(session_id):
            return None

        try:
            raw = await self.store.get(session_key(session_id))
        except StoreUnavailable as e:
            log.warning("session read failed, treating as logged out err=%s", e)
            return None

        if raw is None:
            return None

        try:
            return UserIdentity.from_json(raw)
        except (ValidationError, ValueError) as e:
            log.warning("session record undecodable, treating as logged out err=%s", e)
            return None

    async def destroy_session(self, session_id: Optional[str]) -> None:
        """Delete the session if present. Unknown or malformed ids are a no-op."""
        if not is_well_formed(session_id):
            return
        await self.store.delete(session_key(session_id))
        log.info("session destroyed")
