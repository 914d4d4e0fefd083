import pytest

from models.table import ASCENDING, DESCENDING, SortState, clamp_page, paginate, sort_records
from tests.conftest import make_sale


def _records():
    return [
        make_sale("a", "2025-01-03", revenue="300", product="Buds", region="Jeddah", customer=("c1", "Sara")),
        make_sale("b", "2025-01-01", revenue="100", product="Watch", region="Riyadh", customer=("c2", "Ahmed")),
        make_sale("c", "2025-01-02", revenue="100", product="Camera", region="Jeddah", customer=("c3", "Noura")),
        make_sale("d", "2025-01-01", revenue="50", product="Buds", region="Dammam", customer=("c4", "Khalid")),
    ]


def _ids(records):
    return [r.id for r in records]


def test_sort_by_each_field():
    records = _records()
    assert _ids(sort_records(records, "product")) == ["a", "d", "c", "b"]
    assert _ids(sort_records(records, "customer")) == ["b", "d", "c", "a"]
    assert _ids(sort_records(records, "date")) == ["b", "d", "c", "a"]
    assert _ids(sort_records(records, "revenue", DESCENDING)) == ["a", "b", "c", "d"]
    assert _ids(sort_records(records, "unitsSold")) == ["a", "b", "c", "d"]


def test_sort_is_stable_in_both_directions():
    records = _records()
    assert _ids(sort_records(records, "region")) == ["d", "a", "c", "b"]
    assert _ids(sort_records(records, "region", DESCENDING)) == ["b", "a", "c", "d"]
    once = sort_records(records, "revenue")
    assert sort_records(once, "revenue") == once
    assert _ids(once) == ["d", "b", "c", "a"]


def test_sort_does_not_mutate_input():
    records = _records()
    sort_records(records, "revenue")
    assert _ids(records) == ["a", "b", "c", "d"]


def test_unknown_sort_field_or_direction():
    with pytest.raises(ValueError):
        sort_records(_records(), "price")
    with pytest.raises(ValueError):
        sort_records(_records(), "date", "sideways")


def test_toggle_same_field_flips_and_new_field_resets():
    state = SortState()
    assert (state.field, state.direction) == ("date", DESCENDING)
    state = state.toggled("revenue")
    assert state == SortState("revenue", ASCENDING)
    state = state.toggled("revenue")
    assert state == SortState("revenue", DESCENDING)
    state = state.toggled("revenue")
    assert state == SortState("revenue", ASCENDING)
    assert state.toggled("product") == SortState("product", ASCENDING)


def test_double_toggle_returns_to_initial_ascending_order():
    records = _records()
    first = SortState("date", DESCENDING).toggled("product")
    initial = sort_records(records, first.field, first.direction)
    again = first.toggled("product").toggled("product")
    assert sort_records(records, again.field, again.direction) == initial


def test_paginate_pages_and_total():
    seq = list(range(12))
    assert paginate(seq, 5, 1) == ([0, 1, 2, 3, 4], 3)
    assert paginate(seq, 5, 3) == ([10, 11], 3)


def test_paginate_clamps_out_of_range_pages():
    seq = list(range(12))
    assert paginate(seq, 5, 99) == ([10, 11], 3)
    assert paginate(seq, 5, 0) == ([0, 1, 2, 3, 4], 3)
    assert paginate(seq, 5, -4) == ([0, 1, 2, 3, 4], 3)


def test_paginate_empty_has_one_page():
    assert paginate([], 5, 1) == ([], 1)
    assert paginate([], 5, 7) == ([], 1)
    assert clamp_page(3, 0) == 1


def test_paginate_rejects_bad_page_size():
    with pytest.raises(ValueError):
        paginate([1], 0, 1)
