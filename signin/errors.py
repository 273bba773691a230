from __future__ import annotations


class SigninError(Exception):
    """Base class for signin-service failures."""


class StoreUnavailable(SigninError):
    """The session store could not complete a round trip (connect, write, read or delete)."""


class IdentityUnavailable(SigninError):
    """The identity provider did not hand back a usable user profile."""
