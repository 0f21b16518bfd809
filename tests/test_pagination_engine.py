"""Tests for PaginationEngine and pagination response headers."""

import pytest
from fastapi_api_helper.models import PaginationResult
from fastapi_api_helper.pagination import PaginationEngine
from sqlmodel import select
from starlette.datastructures import URL
from starlette.responses import Response

from tests.main import Item

BASE = "http://testserver/resources"


def link(page, rel, query="page="):
    return f'<{BASE}?{query}{page}>; rel="{rel}"'


class TestCompute:
    """Tests for PaginationEngine.compute."""

    def test_defaults(self):
        state = PaginationEngine.compute(1201)

        assert state.current_page == 1
        assert state.per_page == 20
        assert state.items_count == 1201
        assert state.pages_count == 61

    def test_requested_page(self):
        state = PaginationEngine.compute(1201, "5", "3")

        assert state.per_page == 5
        assert state.current_page == 3
        assert state.pages_count == 241

    def test_per_page_is_clamped(self):
        assert PaginationEngine.compute(1201, "5000").per_page == 100
        assert PaginationEngine.compute(1201, "0").per_page == 1
        assert PaginationEngine.compute(1201, "-3").per_page == 1
        assert PaginationEngine.compute(1201, "abc").per_page == 1

    def test_page_is_clamped(self):
        assert PaginationEngine.compute(1201, None, "0").current_page == 1
        assert PaginationEngine.compute(1201, None, "62").current_page == 61

    def test_leading_integer_is_read(self):
        state = PaginationEngine.compute(1201, "10x", "2nd")

        assert state.per_page == 10
        assert state.current_page == 2

    def test_integer_params(self):
        state = PaginationEngine.compute(100, 10, 4)

        assert state.per_page == 10
        assert state.current_page == 4

    def test_empty_collection_has_one_page(self):
        state = PaginationEngine.compute(0, None, "3")

        assert state.pages_count == 1
        assert state.current_page == 1

    @pytest.mark.parametrize("items_count", [0, 1, 19, 20, 21, 1201])
    @pytest.mark.parametrize("per_page", [None, "-1", "0", "1", "7", "500"])
    @pytest.mark.parametrize("page", [None, "-5", "0", "1", "2", "9999"])
    def test_bounds_hold(self, items_count, per_page, page):
        state = PaginationEngine.compute(items_count, per_page, page, 20, 100)

        assert 1 <= state.per_page <= 100
        assert state.pages_count >= 1
        assert 1 <= state.current_page <= state.pages_count
        assert (state.pages_count - 1) * state.per_page < max(items_count, 1)


class TestLinkHeader:
    """Tests for PaginationEngine.build_link_header."""

    def test_first_page(self):
        engine = PaginationEngine(URL(BASE))

        assert engine.build_link_header(1, 61) == ", ".join([link(2, "next"), link(61, "last")])

    def test_middle_page(self):
        engine = PaginationEngine(URL(f"{BASE}?page=5"))

        assert engine.build_link_header(5, 61) == ", ".join(
            [link(1, "first"), link(4, "prev"), link(6, "next"), link(61, "last")]
        )

    def test_last_page(self):
        engine = PaginationEngine(URL(BASE))

        assert engine.build_link_header(61, 61) == ", ".join([link(1, "first"), link(60, "prev")])

    def test_single_page(self):
        assert PaginationEngine(URL(BASE)).build_link_header(1, 1) == ""

    def test_other_params_are_kept(self):
        engine = PaginationEngine(URL(f"{BASE}?page=2&per_page=5&sort=-id"))

        assert engine.page_url(3) == f"{BASE}?per_page=5&sort=-id&page=3"


class TestPaginationResult:
    """Tests for PaginationResult and PaginationEngine.apply_headers."""

    def test_paginate(self):
        result = PaginationEngine(URL(BASE)).paginate(1201)

        assert result.pages_count == 61
        assert result.link_header == ", ".join([link(2, "next"), link(61, "last")])

    def test_headers(self):
        result = PaginationResult(
            current_page=1, per_page=20, items_count=5, pages_count=1, link_header=""
        )

        assert result.headers() == {"Link": "", "X-Items-Count": "5", "X-Pages-Count": "1"}

    def test_apply_headers(self):
        response = Response()
        result = PaginationEngine(URL(BASE)).paginate(50, "10", "2")

        PaginationEngine.apply_headers(response, result)

        assert response.headers["X-Items-Count"] == "50"
        assert response.headers["X-Pages-Count"] == "5"
        assert 'rel="prev"' in response.headers["Link"]


class TestQueryHelpers:
    """Tests for counting and fetching pages."""

    def test_count_total(self, session):
        query = select(Item).where(Item.integer == 5).order_by(Item.id)

        assert PaginationEngine.count_total(query, session) == 3

    def test_fetch_page(self, session):
        query = select(Item).order_by(Item.id)
        state = PaginationEngine.compute(10, "3", "2")

        items = PaginationEngine(URL(BASE)).fetch_page(query, session, state)

        assert [i.id for i in items] == [4, 5, 6]


class TestPaginationEndpoint:
    """Tests for pagination headers set through a FastAPI endpoint."""

    def test_default_headers(self, client):
        response = client.get("/resources")

        assert response.status_code == 200
        assert response.headers["X-Items-Count"] == "1201"
        assert response.headers["X-Pages-Count"] == "61"
        assert response.headers["Link"] == ", ".join([link(2, "next"), link(61, "last")])

    def test_page(self, client):
        response = client.get("/resources?page=5")

        assert response.headers["Link"] == ", ".join(
            [link(1, "first"), link(4, "prev"), link(6, "next"), link(61, "last")]
        )

    def test_per_page(self, client):
        response = client.get("/resources?per_page=5")

        assert response.headers["X-Pages-Count"] == "241"
        assert response.headers["Link"] == ", ".join(
            [link(2, "next", "per_page=5&page="), link(241, "last", "per_page=5&page=")]
        )

    def test_per_page_over_max(self, client):
        response = client.get("/resources?per_page=5000")

        assert response.headers["X-Pages-Count"] == "13"
        assert response.headers["Link"] == ", ".join(
            [link(2, "next", "per_page=5000&page="), link(13, "last", "per_page=5000&page=")]
        )

    def test_per_page_zero(self, client):
        response = client.get("/resources?per_page=0")

        assert response.headers["X-Pages-Count"] == "1201"

    def test_page_zero(self, client):
        response = client.get("/resources?page=0")

        assert response.headers["Link"] == ", ".join([link(2, "next"), link(61, "last")])

    def test_page_past_the_end(self, client):
        response = client.get("/resources?page=62")

        assert response.headers["Link"] == ", ".join([link(1, "first"), link(60, "prev")])

    def test_paginated_items(self, client):
        response = client.get("/items/?per_page=4&page=3")

        assert [i["id"] for i in response.json()] == [9, 10]
        assert response.headers["X-Items-Count"] == "10"
        assert response.headers["X-Pages-Count"] == "3"
        assert 'rel="next"' not in response.headers["Link"]
