"""Tests for request parameter normalization."""

from fastapi_api_helper.models import SortingOrder
from fastapi_api_helper.params import (
    RequestParameters,
    normalize_name,
    normalize_names,
    parse_int,
    split_list,
    split_names,
    unique,
)


class TestHelpers:
    """Tests for the module-level helpers."""

    def test_normalize_name(self):
        assert normalize_name("post") == "post"
        assert normalize_name(SortingOrder.DESC) == "desc"
        assert normalize_name(3) == "3"

    def test_normalize_names(self):
        assert normalize_names(None) == []
        assert normalize_names(["a", SortingOrder.ASC]) == ["a", "asc"]

    def test_split_list_keeps_empty_items(self):
        assert split_list("a,,b") == ["a", "", "b"]
        assert split_list("") == [""]

    def test_split_names_drops_empty_items(self):
        assert split_names("a,,b,") == ["a", "b"]
        assert split_names("") == []

    def test_unique_keeps_first_occurrence(self):
        assert unique(["b", "a", "b", "c", "a"]) == ["b", "a", "c"]

    def test_parse_int(self):
        assert parse_int(None, 7) == 7
        assert parse_int("12", 7) == 12
        assert parse_int(" 3abc", 7) == 3
        assert parse_int("-2", 7) == -2
        assert parse_int("abc", 7) == 0
        assert parse_int("", 7) == 0


class TestRequestParameters:
    """Tests for RequestParameters."""

    def test_flat_values(self):
        params = RequestParameters({"fields": "title,author", "page": "2"})

        assert params.get("fields") == "title,author"
        assert params.get("page") == "2"
        assert params.get("missing") is None
        assert "page" in params
        assert "missing" not in params

    def test_bracketed_keys_are_grouped(self):
        params = RequestParameters({"fields[post]": "title", "fields[user]": "name"})

        assert params.nested("fields") == {"post": "title", "user": "name"}
        assert params.get("fields") is None
        assert "fields" in params

    def test_nested_falls_back_to_scalar(self):
        params = RequestParameters({"fields": "title"})

        assert params.nested("fields") == "title"
        assert params.nested("include") is None

    def test_for_resource_with_keyed_values(self):
        params = RequestParameters({"fields[post]": "title", "fields": "ignored"})

        assert params.for_resource("fields", "post") == "title"
        assert params.for_resource("fields", "user", default=True) is None

    def test_for_resource_with_plain_value(self):
        params = RequestParameters({"fields": "title"})

        assert params.for_resource("fields", "post", default=True) == "title"
        assert params.for_resource("fields", "post") is None

    def test_from_request_prefers_path_params(self):
        class FakeRequest:
            query_params = {"id": "9", "page": "2"}
            path_params = {"id": 1}

        params = RequestParameters.from_request(FakeRequest())

        assert params.get("id") == "1"
        assert params.get("page") == "2"
