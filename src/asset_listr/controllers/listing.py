from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional, Tuple

from asset_listr import notices
from asset_listr.exceptions import GatewayError, NotAuthenticatedError, http_status_for
from asset_listr.gateway.base import PersistenceGateway
from asset_listr.models import PROPERTIES, Property, properties_from_rows
from asset_listr.notices import Notice
from asset_listr.search.filters import FilterCriteria, filter_properties

from .edit_form import DraftTarget, EditFormController, EditingListing, NewListing, PropertyDraft


logger = logging.getLogger("asset_listr.listing")

AUTH_PATH = "/auth"


@dataclass
class ListingState:
    properties: List[Property] = field(default_factory=list)
    visible: List[Property] = field(default_factory=list)
    criteria: FilterCriteria = field(default_factory=FilterCriteria)
    loading: bool = True
    editor: Optional[DraftTarget] = None
    notices: List[Notice] = field(default_factory=list)
    redirect_to: Optional[str] = None
    error_status: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "loading": self.loading,
            "total": len(self.properties),
            "count": len(self.visible),
            "criteria": self.criteria.to_dict(),
            "properties": [p.to_dict() for p in self.visible],
            "notices": [n.to_dict() for n in self.notices],
        }


class ListingController:
    """Owns the listing state; every mutation re-derives the visible set."""

    def __init__(
        self, gateway: PersistenceGateway, criteria: Optional[FilterCriteria] = None
    ) -> None:
        self.gateway = gateway
        self.state = ListingState(criteria=criteria or FilterCriteria())

    def _notify(self, notice: Notice) -> None:
        self.state.notices.append(notice)

    def _fail(self, exc: Exception) -> None:
        self.state.error_status = http_status_for(exc)
        self._notify(notices.error(str(exc)))

    def _refresh_visible(self) -> None:
        self.state.visible = filter_properties(self.state.properties, self.state.criteria)

    def activate(self) -> bool:
        """Session gate, then load. True when the listing is ready to show.

        No session sets `redirect_to`; a failed session check or load sets
        `error_status` and a notice instead.
        """
        try:
            session = self.gateway.get_session()
        except GatewayError as e:
            logger.warning("session check failed: %s", e)
            self._fail(e)
            self.state.loading = False
            return False
        if session is None:
            self.state.redirect_to = AUTH_PATH
            self.state.loading = False
            return False
        return self.load()

    def load(self) -> bool:
        self.state.loading = True
        try:
            rows = self.gateway.list(PROPERTIES, order_by="created_at", descending=True)
            self.state.properties = properties_from_rows(rows)
            return True
        except (NotAuthenticatedError, GatewayError) as e:
            logger.warning("loading listings failed: %s", e)
            self._fail(e)
            return False
        finally:
            self.state.loading = False
            self._refresh_visible()

    def set_criteria(self, criteria: FilterCriteria) -> None:
        self.state.criteria = criteria
        self._refresh_visible()

    def set_search_query(self, query: str) -> None:
        self.set_criteria(replace(self.state.criteria, search_query=query))

    def set_type_filter(self, type_filter: str) -> None:
        self.set_criteria(replace(self.state.criteria, type_filter=type_filter))

    def set_price_filter(self, price_filter: str) -> None:
        self.set_criteria(replace(self.state.criteria, price_filter=price_filter))

    def find(self, record_id: str) -> Optional[Property]:
        for prop in self.state.properties:
            if prop.id == record_id:
                return prop
        return None

    def delete(self, record_id: str) -> bool:
        try:
            self.gateway.delete(PROPERTIES, record_id)
        except (NotAuthenticatedError, GatewayError) as e:
            logger.warning("delete of %s failed: %s", record_id, e)
            self._fail(e)
            return False
        self._notify(notices.success("Property deleted successfully"))
        self.load()
        return True

    def open_editor(
        self, prop: Optional[Property] = None
    ) -> Tuple[EditFormController, PropertyDraft]:
        if prop is None:
            target: DraftTarget = NewListing()
            draft = PropertyDraft.empty()
        else:
            target = EditingListing.of(prop)
            draft = PropertyDraft.from_property(prop)
        self.state.editor = target
        return EditFormController(self.gateway, target), draft

    def close_editor(self) -> None:
        self.state.editor = None
        self.load()

    def sign_out(self) -> str:
        try:
            self.gateway.sign_out()
        except GatewayError as e:
            logger.warning("sign-out failed: %s", e)
            self._fail(e)
        self.state.redirect_to = AUTH_PATH
        return AUTH_PATH
