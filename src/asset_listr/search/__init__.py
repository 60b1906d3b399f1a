"""Client-side listing search."""

from .filters import FilterCriteria, PRICE_BANDS, filter_properties

__all__ = ["FilterCriteria", "PRICE_BANDS", "filter_properties"]
