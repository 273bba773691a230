from __future__ import annotations

import html
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import HTMLResponse

from ..deps import current_user
from ..sessions import UserIdentity

router = APIRouter(tags=["home"])

LOGGED_OUT_HTML = '<h1>Google Login Demo</h1><a href="/login">Login with Google</a>'


def render_welcome(user: UserIdentity) -> str:
    data = user.model_dump_json(by_alias=True, indent=2)
    return (
        f"<h1>Welcome {html.escape(user.display_name)}</h1>"
        f'<img src="{html.escape(user.picture_url, quote=True)}" style="height:80px;border-radius:50%;">'
        f"<pre>{html.escape(data)}</pre>"
        '<a href="/logout">Logout</a>'
    )


@router.get("/", response_class=HTMLResponse)
async def home(user: Optional[UserIdentity] = Depends(current_user)) -> HTMLResponse:
    if user is None:
        return HTMLResponse(LOGGED_OUT_HTML)
    return HTMLResponse(render_welcome(user))
