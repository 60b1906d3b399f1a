from __future__ import annotations

from typing import Iterator, Optional

from fastapi import Request
from fastapi.responses import JSONResponse

from asset_listr.config import get_settings
from asset_listr.controllers.listing import AUTH_PATH
from asset_listr.gateway import PersistenceGateway, get_gateway


SESSION_COOKIE = "asset_listr_session"


def access_token(request: Request) -> Optional[str]:
    auth = request.headers.get("authorization") or ""
    if auth.lower().startswith("bearer "):
        token = auth[7:].strip()
        if token:
            return token
    return request.cookies.get(SESSION_COOKIE) or None


def request_gateway(request: Request) -> Iterator[PersistenceGateway]:
    gateway = get_gateway(get_settings(), access_token(request))
    try:
        yield gateway
    finally:
        gateway.close()


def unauthenticated(message: str = "Not authenticated") -> JSONResponse:
    return JSONResponse(
        status_code=401,
        content={"ok": False, "error": message, "redirect": AUTH_PATH},
    )
