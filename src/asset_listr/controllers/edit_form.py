"""Create/edit form: string draft -> typed listing -> insert or update.

The draft mirrors the form inputs, so every field is a string until submit.
`normalize_draft` is the single place where strings become typed values.
"""

from __future__ import annotations

import logging
import math
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from asset_listr import notices
from asset_listr.exceptions import (
    DraftValidationError,
    GatewayError,
    NotAuthenticatedError,
    http_status_for,
)
from asset_listr.gateway.base import PersistenceGateway
from asset_listr.models import (
    PROPERTIES,
    Property,
    PropertyInput,
    PropertyType,
    format_number,
    property_from_row,
)
from asset_listr.notices import Notice


logger = logging.getLogger("asset_listr.edit_form")


class ValidationFailure(str, Enum):
    MISSING_PROPERTY_ID = "missing_property_id"
    MISSING_TITLE = "missing_title"
    MISSING_LOCATION = "missing_location"
    MISSING_OWNER_CONTACT = "missing_owner_contact"
    INVALID_TYPE = "invalid_type"
    INVALID_AREA = "invalid_area"
    INVALID_PRICE = "invalid_price"
    INVALID_BEDROOMS = "invalid_bedrooms"


@dataclass
class PropertyDraft:
    property_id: str = ""
    title: str = ""
    type: str = PropertyType.APARTMENT.value
    location: str = ""
    area: str = ""
    price: str = ""
    bedrooms: str = ""
    amenities: str = ""
    owner_contact: str = ""
    description: str = ""

    @classmethod
    def empty(cls) -> "PropertyDraft":
        return cls()

    @classmethod
    def from_property(cls, prop: Property) -> "PropertyDraft":
        return cls(
            property_id=prop.property_id,
            title=prop.title,
            type=prop.type.value,
            location=prop.location,
            area=format_number(prop.area),
            price=format_number(prop.price),
            bedrooms="" if prop.bedrooms is None else str(prop.bedrooms),
            amenities=", ".join(prop.amenities or []),
            owner_contact=prop.owner_contact,
            description=prop.description or "",
        )

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)


@dataclass(frozen=True)
class NewListing:
    pass


@dataclass(frozen=True)
class EditingListing:
    id: str
    agent_id: str

    @classmethod
    def of(cls, prop: Property) -> "EditingListing":
        return cls(id=prop.id, agent_id=prop.agent_id)


DraftTarget = Union[NewListing, EditingListing]


@dataclass
class SubmitResult:
    ok: bool
    notice: Notice
    closed: bool
    property: Optional[Property] = None
    failures: List[ValidationFailure] = field(default_factory=list)
    status_code: int = 200

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ok": self.ok,
            "closed": self.closed,
            "notice": self.notice.to_dict(),
            "property": self.property.to_dict() if self.property else None,
            "failures": [f.value for f in self.failures],
        }


def _parse_positive(raw: str) -> Optional[float]:
    try:
        value = float(raw.strip())
    except ValueError:
        return None
    if not math.isfinite(value) or value <= 0:
        return None
    return value


def _parse_amenities(raw: str) -> Optional[List[str]]:
    items = [a.strip() for a in raw.split(",")]
    items = [a for a in items if a]
    return items or None


def normalize_draft(draft: PropertyDraft) -> PropertyInput:
    failures: List[ValidationFailure] = []

    property_id = draft.property_id.strip()
    title = draft.title.strip()
    location = draft.location.strip()
    owner_contact = draft.owner_contact.strip()
    description = draft.description.strip()

    if not property_id:
        failures.append(ValidationFailure.MISSING_PROPERTY_ID)
    if not title:
        failures.append(ValidationFailure.MISSING_TITLE)
    if not location:
        failures.append(ValidationFailure.MISSING_LOCATION)
    if not owner_contact:
        failures.append(ValidationFailure.MISSING_OWNER_CONTACT)

    try:
        ptype: Optional[PropertyType] = PropertyType(draft.type)
    except ValueError:
        ptype = None
        failures.append(ValidationFailure.INVALID_TYPE)

    area = _parse_positive(draft.area)
    if area is None:
        failures.append(ValidationFailure.INVALID_AREA)
    price = _parse_positive(draft.price)
    if price is None:
        failures.append(ValidationFailure.INVALID_PRICE)

    bedrooms: Optional[int] = None
    raw_bedrooms = draft.bedrooms.strip()
    if raw_bedrooms:
        try:
            bedrooms = int(raw_bedrooms)
        except ValueError:
            failures.append(ValidationFailure.INVALID_BEDROOMS)
        else:
            if bedrooms < 0:
                failures.append(ValidationFailure.INVALID_BEDROOMS)

    if failures:
        raise DraftValidationError(failures)

    return PropertyInput(
        property_id=property_id,
        title=title,
        type=ptype,
        location=location,
        area=area,
        price=price,
        bedrooms=bedrooms,
        amenities=_parse_amenities(draft.amenities),
        owner_contact=owner_contact,
        description=description or None,
    )


class EditFormController:
    """Submits a draft as a new listing or as an edit of an existing one."""

    def __init__(self, gateway: PersistenceGateway, target: Optional[DraftTarget] = None) -> None:
        self.gateway = gateway
        self.target: DraftTarget = target if target is not None else NewListing()

    @property
    def is_editing(self) -> bool:
        return isinstance(self.target, EditingListing)

    def submit(self, draft: PropertyDraft) -> SubmitResult:
        try:
            fields = normalize_draft(draft)
        except DraftValidationError as e:
            return SubmitResult(
                ok=False,
                notice=notices.error(str(e)),
                closed=False,
                failures=list(e.failures),
                status_code=http_status_for(e),
            )

        try:
            # Both paths need a signed-in agent; nothing is written otherwise.
            user = self.gateway.get_current_user()
            record = fields.to_record()
            if isinstance(self.target, EditingListing):
                row = self.gateway.update(PROPERTIES, self.target.id, record)
                message = "Property updated successfully"
            else:
                record["agent_id"] = user.id
                row = self.gateway.insert(PROPERTIES, record)
                message = "Property added successfully"
        except (NotAuthenticatedError, GatewayError) as e:
            logger.warning("listing submit failed: %s", e)
            return SubmitResult(
                ok=False,
                notice=notices.error(str(e)),
                closed=False,
                status_code=http_status_for(e),
            )

        try:
            saved: Optional[Property] = property_from_row(row)
        except GatewayError as e:
            # The write went through; the reload after close shows the stored row.
            logger.warning("saved listing could not be decoded: %s", e)
            saved = None
        else:
            logger.info("listing %s saved", saved.id)
        return SubmitResult(ok=True, notice=notices.success(message), closed=True, property=saved)
