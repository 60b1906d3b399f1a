from __future__ import annotations

from pydantic import BaseModel, Field

from asset_listr.controllers.edit_form import PropertyDraft


class SignInBody(BaseModel):
    email: str
    password: str


class PropertyDraftBody(BaseModel):
    """Form payload: every field arrives as the string the input held."""

    property_id: str = ""
    title: str = ""
    type: str = Field(default="Apartment")
    location: str = ""
    area: str = ""
    price: str = ""
    bedrooms: str = ""
    amenities: str = ""
    owner_contact: str = ""
    description: str = ""

    def to_draft(self) -> PropertyDraft:
        return PropertyDraft(**self.model_dump())
