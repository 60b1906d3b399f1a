from __future__ import annotations

from typing import Any, Dict, Literal, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from asset_listr import notices
from asset_listr.api.deps import request_gateway, unauthenticated
from asset_listr.api.schemas import PropertyDraftBody
from asset_listr.controllers.edit_form import SubmitResult
from asset_listr.controllers.listing import ListingController
from asset_listr.gateway import PersistenceGateway
from asset_listr.search.filters import FilterCriteria, price_band_options

router = APIRouter(tags=["properties"])


def _listing_failed(controller: ListingController) -> JSONResponse:
    status = controller.state.error_status or 502
    if status == 401:
        return unauthenticated()
    payload = controller.state.to_dict()
    payload["ok"] = False
    return JSONResponse(status_code=status, content=payload)


def _activate(controller: ListingController) -> Optional[JSONResponse]:
    if controller.activate():
        return None
    if controller.state.redirect_to:
        return unauthenticated()
    return _listing_failed(controller)


def _submitted(result: SubmitResult, controller: ListingController) -> JSONResponse:
    if result.status_code == 401:
        return unauthenticated(result.notice.description)
    payload: Dict[str, Any] = result.to_dict()
    if result.closed:
        # The editor closes on success and the listing reloads.
        controller.close_editor()
        listing = controller.state.to_dict()
        # The save stands even when the reload behind it fails.
        listing["ok"] = controller.state.error_status is None
        listing["error_status"] = controller.state.error_status
        payload["listing"] = listing
    return JSONResponse(status_code=result.status_code, content=payload)


@router.get("/price-bands")
def price_bands() -> Dict[str, Any]:
    return {"ok": True, "price_bands": price_band_options()}


@router.get("/properties")
def list_properties(
    q: str = "",
    type_filter: Literal["all", "Apartment", "Villa", "Plot"] = Query("all", alias="type"),
    price_filter: Literal["all", "low", "mid", "high"] = Query("all", alias="price"),
    gateway: PersistenceGateway = Depends(request_gateway),
):
    criteria = FilterCriteria(search_query=q, type_filter=type_filter, price_filter=price_filter)
    controller = ListingController(gateway, criteria)
    failed = _activate(controller)
    if failed is not None:
        return failed
    payload = controller.state.to_dict()
    payload["ok"] = True
    return payload


@router.get("/properties/{record_id}/draft")
def property_draft(record_id: str, gateway: PersistenceGateway = Depends(request_gateway)):
    controller = ListingController(gateway)
    failed = _activate(controller)
    if failed is not None:
        return failed
    prop = controller.find(record_id)
    if prop is None:
        notice = notices.error(f"No property with id {record_id}")
        return JSONResponse(status_code=404, content={"ok": False, "notice": notice.to_dict()})
    _, draft = controller.open_editor(prop)
    return {"ok": True, "id": prop.id, "draft": draft.to_dict()}


@router.post("/properties")
def create_property(
    body: PropertyDraftBody, gateway: PersistenceGateway = Depends(request_gateway)
):
    controller = ListingController(gateway)
    form, _ = controller.open_editor()
    result = form.submit(body.to_draft())
    return _submitted(result, controller)


@router.put("/properties/{record_id}")
def update_property(
    record_id: str,
    body: PropertyDraftBody,
    gateway: PersistenceGateway = Depends(request_gateway),
):
    controller = ListingController(gateway)
    failed = _activate(controller)
    if failed is not None:
        return failed
    prop = controller.find(record_id)
    if prop is None:
        notice = notices.error(f"No property with id {record_id}")
        return JSONResponse(status_code=404, content={"ok": False, "notice": notice.to_dict()})
    form, _ = controller.open_editor(prop)
    result = form.submit(body.to_draft())
    return _submitted(result, controller)


@router.delete("/properties/{record_id}")
def delete_property(record_id: str, gateway: PersistenceGateway = Depends(request_gateway)):
    controller = ListingController(gateway)
    failed = _activate(controller)
    if failed is not None:
        return failed
    if not controller.delete(record_id):
        return _listing_failed(controller)
    payload = controller.state.to_dict()
    payload["ok"] = True
    return payload
