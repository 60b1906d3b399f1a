import pytest

from asset_listr.search.filters import (
    PRICE_BANDS,
    FilterCriteria,
    filter_properties,
    price_band_options,
)

from conftest import make_property


def _listing():
    return [
        make_property(id="a", title="Sea View Apartment", location="Marina Bay", type="Apartment", price=450_000),
        make_property(id="b", title="Garden Villa", location="North Ridge", type="Villa", price=500_000),
        make_property(id="c", title="Corner Plot", location="marina east", type="Plot", price=999_999.99),
        make_property(id="d", title="Penthouse", location="Old Town", type="Apartment", price=1_000_000),
        make_property(id="e", title="Estate", location="Hills", type="Villa", price=2_750_000),
    ]


def _ids(props):
    return [p.id for p in props]


def test_empty_listing_yields_empty_result():
    assert filter_properties([], FilterCriteria(search_query="x", price_filter="low")) == []


def test_inactive_criteria_is_identity_copy():
    props = _listing()
    out = filter_properties(props, FilterCriteria())
    assert out == props
    assert out is not props
    assert FilterCriteria().is_identity


def test_text_match_is_case_insensitive_on_title_or_location():
    props = _listing()
    assert _ids(filter_properties(props, FilterCriteria(search_query="MARINA"))) == ["a", "c"]
    assert _ids(filter_properties(props, FilterCriteria(search_query="villa"))) == ["b"]
    assert _ids(filter_properties(props, FilterCriteria(search_query="nowhere"))) == []


def test_type_filter_is_exact():
    props = _listing()
    assert _ids(filter_properties(props, FilterCriteria(type_filter="Villa"))) == ["b", "e"]
    assert _ids(filter_properties(props, FilterCriteria(type_filter="Plot"))) == ["c"]


@pytest.mark.parametrize(
    "band,expected",
    [
        ("low", ["a"]),
        ("mid", ["b", "c"]),
        ("high", ["d", "e"]),
    ],
)
def test_price_bands_are_half_open(band, expected):
    assert _ids(filter_properties(_listing(), FilterCriteria(price_filter=band))) == expected


def test_band_boundaries():
    at_mid = make_property(price=500_000)
    at_high = make_property(price=1_000_000)
    assert filter_properties([at_mid], FilterCriteria(price_filter="low")) == []
    assert filter_properties([at_mid], FilterCriteria(price_filter="mid")) == [at_mid]
    assert filter_properties([at_high], FilterCriteria(price_filter="mid")) == []
    assert filter_properties([at_high], FilterCriteria(price_filter="high")) == [at_high]


def test_unknown_price_band_does_not_restrict():
    props = _listing()
    assert filter_properties(props, FilterCriteria(price_filter="luxury")) == props


def test_criteria_combine_and_preserve_order():
    props = _listing()
    out = filter_properties(
        props, FilterCriteria(search_query="town", type_filter="Apartment", price_filter="high")
    )
    assert _ids(out) == ["d"]

    # Every result is an order-preserving subsequence of the input.
    for criteria in (
        FilterCriteria(search_query="o"),
        FilterCriteria(type_filter="Villa", price_filter="high"),
        FilterCriteria(search_query="e", price_filter="mid"),
    ):
        result = _ids(filter_properties(props, criteria))
        positions = [_ids(props).index(i) for i in result]
        assert positions == sorted(positions)


def test_price_band_options_expose_labels_for_dropdown():
    options = price_band_options()
    assert options[0] == {"value": "all", "label": "All Prices"}
    values = [o["value"] for o in options[1:]]
    assert values == list(PRICE_BANDS)
    assert options[-1]["max"] is None
    assert options[1]["label"] == "Under 500K"
