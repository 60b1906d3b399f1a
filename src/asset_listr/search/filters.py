from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, Iterable, List, Literal, Optional

from asset_listr.models import Property


TypeFilter = Literal["all", "Apartment", "Villa", "Plot"]
PriceFilter = Literal["all", "low", "mid", "high"]

TYPE_FILTERS = ("all", "Apartment", "Villa", "Plot")
PRICE_FILTERS = ("all", "low", "mid", "high")


@dataclass(frozen=True)
class PriceBand:
    name: str
    ui_label: str
    min_price: float
    max_price: float  # exclusive

    def contains(self, price: float) -> bool:
        return self.min_price <= price < self.max_price


# Half-open, mutually exclusive bands used by the price dropdown.
PRICE_BANDS: Dict[str, PriceBand] = {
    "low": PriceBand(name="low", ui_label="Under 500K", min_price=0, max_price=500_000),
    "mid": PriceBand(name="mid", ui_label="500K - 1M", min_price=500_000, max_price=1_000_000),
    "high": PriceBand(name="high", ui_label="Over 1M", min_price=1_000_000, max_price=math.inf),
}


@dataclass(frozen=True)
class FilterCriteria:
    search_query: str = ""
    type_filter: str = "all"
    price_filter: str = "all"

    @property
    def is_identity(self) -> bool:
        return not self.search_query and self.type_filter == "all" and self.price_filter == "all"

    def to_dict(self) -> Dict[str, str]:
        return {
            "search_query": self.search_query,
            "type_filter": self.type_filter,
            "price_filter": self.price_filter,
        }


def matches_text(prop: Property, query: str) -> bool:
    if not query:
        return True
    needle = query.lower()
    return needle in prop.location.lower() or needle in prop.title.lower()


def matches_type(prop: Property, type_filter: str) -> bool:
    if type_filter == "all":
        return True
    return prop.type.value == type_filter


def matches_price(prop: Property, price_filter: str) -> bool:
    if price_filter == "all":
        return True
    band: Optional[PriceBand] = PRICE_BANDS.get(price_filter)
    if band is None:
        # Unknown band names do not restrict.
        return True
    return band.contains(prop.price)


def filter_properties(
    properties: Iterable[Property], criteria: Optional[FilterCriteria] = None
) -> List[Property]:
    """Visible subset of `properties`, original order preserved."""

    c = criteria or FilterCriteria()
    return [
        p
        for p in properties
        if matches_text(p, c.search_query)
        and matches_type(p, c.type_filter)
        and matches_price(p, c.price_filter)
    ]


def price_band_options() -> List[Dict[str, object]]:
    out: List[Dict[str, object]] = [{"value": "all", "label": "All Prices"}]
    for band in PRICE_BANDS.values():
        out.append(
            {
                "value": band.name,
                "label": band.ui_label,
                "min": band.min_price,
                "max": None if math.isinf(band.max_price) else band.max_price,
            }
        )
    return out
