"""Tests for MultigetEngine."""

from fastapi_api_helper.models import MultigetMode, MultigetQuery
from fastapi_api_helper.multiget import MultigetEngine
from sqlmodel import select

from tests.main import Item


class TestParse:
    """Tests for MultigetEngine.parse."""

    def test_batch(self):
        multiget = MultigetEngine.parse("1,4,2,5")

        assert multiget == MultigetQuery(mode=MultigetMode.BATCH, ids=["1", "4", "2", "5"])
        assert multiget.is_batch is True

    def test_excess_ids_are_dropped(self):
        assert MultigetEngine.parse("1,4,2,5", max_count=3).ids == ["1", "4", "2"]

    def test_single(self):
        multiget = MultigetEngine.parse("1")

        assert multiget.mode == MultigetMode.SINGLE
        assert multiget.ids == ["1"]

    def test_maximum_below_one_keeps_one_id(self):
        assert MultigetEngine.parse("1,2,3", max_count=-1).ids == ["1"]
        assert MultigetEngine.parse("1,2,3", max_count=0).ids == ["1"]

    def test_truncated_to_one_is_single(self):
        assert MultigetEngine.parse("1,2", max_count=1).mode == MultigetMode.SINGLE

    def test_missing_param(self):
        multiget = MultigetEngine.parse(None)

        assert multiget.mode == MultigetMode.SINGLE
        assert multiget.ids == [""]

    def test_is_batch(self):
        assert MultigetEngine.is_batch("1,2") is True
        assert MultigetEngine.is_batch("1") is False
        assert MultigetEngine.is_batch("") is False
        assert MultigetEngine.is_batch(None) is False


class TestFetch:
    """Tests for MultigetEngine.fetch."""

    def test_batch(self, session):
        query = select(Item)

        items = MultigetEngine().fetch(
            query, query.selected_columns, session, MultigetEngine.parse("1,4,2,5")
        )

        assert sorted(i.id for i in items) == [1, 2, 4, 5]

    def test_single(self, session):
        query = select(Item)

        item = MultigetEngine().fetch(query, query.selected_columns, session, MultigetEngine.parse("3"))

        assert item.id == 3
        assert item.string == "hello"

    def test_single_not_found(self, session):
        query = select(Item)

        assert (
            MultigetEngine().fetch(query, query.selected_columns, session, MultigetEngine.parse("99"))
            is None
        )

    def test_find_by_other_field(self, session):
        query = select(Item)

        items = MultigetEngine().fetch(
            query, query.selected_columns, session, MultigetEngine.parse("yo,hi"), find_by="string"
        )

        assert sorted(i.id for i in items) == [1, 2]

    def test_unknown_find_by_field(self, session):
        query = select(Item)
        engine = MultigetEngine()

        assert engine.fetch(query, query.selected_columns, session, MultigetEngine.parse("1,2"), "nope") == []
        assert engine.fetch(query, query.selected_columns, session, MultigetEngine.parse("1"), "nope") is None


class TestMultigetEndpoint:
    """Tests for multiget through a FastAPI endpoint."""

    def test_batch(self, client):
        response = client.get("/items/by-id/1,4,2,5")

        assert response.status_code == 200
        assert sorted(i["id"] for i in response.json()) == [1, 2, 4, 5]

    def test_single(self, client):
        response = client.get("/items/by-id/1")

        assert response.status_code == 200
        assert response.json()["id"] == 1

    def test_not_found(self, client):
        response = client.get("/items/by-id/999")

        assert response.status_code == 404

    def test_overflowing_id_is_not_found(self, client):
        response = client.get("/items/by-id/inf")

        assert response.status_code == 404

    def test_configured_maximum(self, client):
        response = client.get("/items/limited/1,4,2,5")

        data = response.json()
        assert data["multiget"] is True
        assert sorted(i["id"] for i in data["items"]) == [1, 2, 4]
