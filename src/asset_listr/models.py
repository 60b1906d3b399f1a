from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, ValidationError

from .exceptions import GatewayError


PROPERTIES = "properties"

CARD_AMENITY_LIMIT = 3


def format_number(value: float) -> str:
    # 1200.0 -> "1200", 99.5 -> "99.5"
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


def format_usd(value: float) -> str:
    # At most two fraction digits, trailing zeros dropped.
    text = f"{float(value):,.2f}".rstrip("0").rstrip(".")
    return f"${text}"


class PropertyType(str, Enum):
    APARTMENT = "Apartment"
    VILLA = "Villa"
    PLOT = "Plot"


class Property(BaseModel):
    """A listing as stored by the persistence backend.

    Optional fields that do not apply are `None`: a plot has no bedrooms,
    not zero bedrooms.
    """

    id: str
    property_id: str
    title: str
    type: PropertyType
    location: str
    area: float
    price: float
    bedrooms: Optional[int] = None
    amenities: Optional[List[str]] = None
    owner_contact: str
    description: Optional[str] = None
    images: Optional[List[str]] = None
    agent_id: str
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    def display_price(self) -> str:
        return format_usd(self.price)

    def bedrooms_label(self) -> Optional[str]:
        # Zero bedrooms reads the same as none on a card.
        if not self.bedrooms:
            return None
        return f"{self.bedrooms} Beds"

    def amenity_badges(self, limit: int = CARD_AMENITY_LIMIT) -> List[str]:
        amenities = self.amenities or []
        badges = list(amenities[:limit])
        if len(amenities) > limit:
            badges.append(f"+{len(amenities) - limit} more")
        return badges

    def card(self) -> Dict[str, Any]:
        return {
            "price": self.display_price(),
            "area": f"{format_number(self.area)} sq.ft.",
            "bedrooms": self.bedrooms_label(),
            "amenities": self.amenity_badges(),
        }

    def to_dict(self) -> Dict[str, Any]:
        out = self.model_dump(mode="json")
        out["card"] = self.card()
        return out


class Profile(BaseModel):
    id: str
    full_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class PropertyInput(BaseModel):
    """Typed write payload built from a form draft.

    Carries no `id`, `agent_id` or timestamps; those belong to the backend
    and the caller's session.
    """

    property_id: str = Field(min_length=1)
    title: str = Field(min_length=1)
    type: PropertyType
    location: str = Field(min_length=1)
    area: float = Field(gt=0)
    price: float = Field(gt=0)
    bedrooms: Optional[int] = Field(default=None, ge=0)
    amenities: Optional[List[str]] = None
    owner_contact: str = Field(min_length=1)
    description: Optional[str] = None

    def to_record(self) -> Dict[str, Any]:
        # Absent optionals go out as null so an edit can clear them.
        return self.model_dump(mode="json")


def property_from_row(row: Dict[str, Any]) -> Property:
    """Decode one backend row; a row the model rejects is a backend failure."""

    try:
        return Property.model_validate(row)
    except ValidationError as e:
        raise GatewayError(
            f"Backend returned a malformed {PROPERTIES} row: {e.error_count()} invalid field(s)"
        ) from e


def properties_from_rows(rows: List[Dict[str, Any]]) -> List[Property]:
    return [property_from_row(r) for r in rows]
