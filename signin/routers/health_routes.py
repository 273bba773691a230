from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from ..errors import StoreUnavailable

router = APIRouter(tags=["health"])


@router.get("/healthz")
def healthz():
    return {"ok": True}


@router.get("/readyz")
async def readyz(request: Request):
    try:
        await request.app.state.session_manager.store.ping()
    except StoreUnavailable:
        return JSONResponse({"ready": False}, status_code=503)
    return {"ready": True}
