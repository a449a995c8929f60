"""Tests for page/limit/sort normalization."""

import pytest

from inventory_kernel.domain.paging import MAX_PAGE, Page, PagePolicy, PageRequest

ALLOWED = frozenset({"id", "created_at", "quantity"})


def normalize(**kwargs):
    return PageRequest.normalize(allowed_sort=ALLOWED, **kwargs)


class TestPageRequest:
    def test_defaults(self):
        request = normalize()
        assert (request.page, request.limit, request.sort_by, request.sort_order) == (1, 10, "id", "desc")
        assert request.offset == 0
        assert request.descending

    @pytest.mark.parametrize("limit, expected", [(0, 1), (-5, 1), (500, 100), ("25", 25), ("abc", 10)])
    def test_limit_clamped(self, limit, expected):
        assert normalize(limit=limit).limit == expected

    @pytest.mark.parametrize("page, expected", [(0, 1), (-2, 1), ("3", 3), (None, 1)])
    def test_page_clamped(self, page, expected):
        assert normalize(page=page).page == expected

    def test_unknown_sort_falls_back_to_id(self):
        assert normalize(sort_by="password").sort_by == "id"

    def test_sort_order(self):
        assert normalize(sort_order="ASC").sort_order == "asc"
        assert normalize(sort_order="sideways").sort_order == "desc"

    @pytest.mark.parametrize("sort_by, sort_order", [(["id"], 1), ({"a": 1}, ["asc"]), (42, b"asc")])
    def test_non_string_sort_values_fall_back(self, sort_by, sort_order):
        request = normalize(sort_by=sort_by, sort_order=sort_order)
        assert (request.sort_by, request.sort_order) == ("id", "desc")

    def test_huge_page_is_capped(self):
        assert normalize(page=10**30).page == MAX_PAGE
        assert normalize(page=float("inf")).page == 1

    def test_offset(self):
        assert normalize(page=3, limit=20).offset == 40

    def test_policy_limits(self):
        policy = PagePolicy(default_limit=5, max_limit=8, default_sort_order="asc")
        request = normalize(limit=50, policy=policy)
        assert request.limit == 8
        assert request.sort_order == "asc"
        assert normalize(policy=policy).limit == 5


class TestPage:
    def test_metadata(self):
        page = Page(items=(1, 2), current_page=2, items_per_page=2, total_items=5)
        assert page.total_pages == 3
        assert page.has_next_page
        assert page.has_prev_page

    def test_empty(self):
        page = Page(items=(), current_page=1, items_per_page=10, total_items=0)
        assert page.total_pages == 0
        assert not page.has_next_page
        assert not page.has_prev_page
