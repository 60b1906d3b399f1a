from __future__ import annotations

import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from asset_listr.api.deps import SESSION_COOKIE, request_gateway, unauthenticated
from asset_listr.api.schemas import SignInBody
from asset_listr.controllers.listing import ListingController
from asset_listr.exceptions import GatewayError, NotAuthenticatedError, http_status_for
from asset_listr.gateway import PersistenceGateway

router = APIRouter(tags=["auth"])

logger = logging.getLogger("asset_listr.api")


@router.post("/auth/sign-in")
def sign_in(body: SignInBody, gateway: PersistenceGateway = Depends(request_gateway)):
    try:
        session = gateway.sign_in(body.email, body.password)
    except NotAuthenticatedError as e:
        return unauthenticated(str(e))
    except GatewayError as e:
        logger.warning("sign-in failed: %s", e)
        return JSONResponse(status_code=http_status_for(e), content={"ok": False, "error": str(e)})

    logger.info("agent %s signed in", session.user.id)
    resp = JSONResponse(
        content={
            "ok": True,
            "session": session.to_dict(),
            "access_token": session.access_token,
        }
    )
    resp.set_cookie(SESSION_COOKIE, session.access_token, httponly=True, samesite="lax")
    return resp


@router.post("/auth/sign-out")
def sign_out(gateway: PersistenceGateway = Depends(request_gateway)):
    controller = ListingController(gateway)
    redirect = controller.sign_out()
    resp = JSONResponse(
        content={
            "ok": not controller.state.notices,
            "redirect": redirect,
            "notices": [n.to_dict() for n in controller.state.notices],
        }
    )
    resp.delete_cookie(SESSION_COOKIE)
    return resp


@router.get("/session")
def current_session(gateway: PersistenceGateway = Depends(request_gateway)):
    try:
        session = gateway.get_session()
    except GatewayError as e:
        return JSONResponse(status_code=http_status_for(e), content={"ok": False, "error": str(e)})
    if session is None:
        return unauthenticated()
    out: Dict[str, Any] = {"ok": True, "session": session.to_dict()}
    return out
