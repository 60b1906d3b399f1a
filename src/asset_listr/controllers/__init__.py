from .edit_form import (
    EditFormController,
    EditingListing,
    NewListing,
    PropertyDraft,
    SubmitResult,
    ValidationFailure,
    normalize_draft,
)
from .listing import AUTH_PATH, ListingController, ListingState

__all__ = [
    "AUTH_PATH",
    "EditFormController",
    "EditingListing",
    "ListingController",
    "ListingState",
    "NewListing",
    "PropertyDraft",
    "SubmitResult",
    "ValidationFailure",
    "normalize_draft",
]
