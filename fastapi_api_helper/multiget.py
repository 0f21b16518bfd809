"""Multiget engine for fetching one or many resources by a comma-separated id list."""

from typing import Any, Optional

from sqlalchemy import ColumnCollection, ColumnElement, Select
from sqlmodel import Session
from sqlmodel.ext.asyncio.session import AsyncSession

from fastapi_api_helper.filters import FilterEngine, _coerce_value
from fastapi_api_helper.models import MultigetMode, MultigetQuery
from fastapi_api_helper.params import normalize_name, split_list


class MultigetEngine:
    """
    Engine for multiget requests such as ``GET /posts/3,4,8,9``.

    Excess ids beyond the configured maximum are dropped silently. A request
    without any id looks up the empty string, so it resolves to not found.
    """

    def __init__(self):
        """Initialize MultigetEngine."""
        self._filter_engine = FilterEngine()

    @staticmethod
    def parse(ids_param: Optional[str], max_count: int = 10) -> MultigetQuery:
        """
        Parse an id list parameter.

        Args:
            ids_param: Raw parameter value
            max_count: Maximum number of ids kept, at least one

        Returns:
            MultigetQuery: Lookup mode and ids
        """
        ids = split_list(ids_param or "")[: max(max_count, 1)]
        mode = MultigetMode.BATCH if len(ids) > 1 else MultigetMode.SINGLE
        return MultigetQuery(mode=mode, ids=ids)

    @staticmethod
    def is_batch(ids_param: Optional[str]) -> bool:
        """Whether the raw parameter asks for more than one resource."""
        return bool(ids_param) and "," in ids_param

    def _lookup_query(
        self,
        query: Select,
        columns_map: ColumnCollection[str, ColumnElement[Any]],
        multiget: MultigetQuery,
        find_by: Any,
    ) -> Optional[Select]:
        column = FilterEngine.resolve_column(query, columns_map, normalize_name(find_by))
        if column is None:
            return None
        pytype = self._filter_engine.get_column_type(column)
        ids = [_coerce_value(i, pytype) for i in multiget.ids]
        if multiget.is_batch:
            return query.where(column.in_(ids))
        return query.where(column == ids[0])

    def fetch(
        self,
        query: Select,
        columns_map: ColumnCollection[str, ColumnElement[Any]],
        session: Session,
        multiget: MultigetQuery,
        find_by: Any = "id",
    ) -> Any:
        """
        Run a multiget lookup.

        Args:
            query: Base SQLAlchemy Select query
            columns_map: Map of column names to column elements
            session: Database session
            multiget: Parsed multiget query
            find_by: Field the ids are matched against

        Returns:
            Any: A list of rows in batch mode, otherwise the matching row or None
        """
        lookup = self._lookup_query(query, columns_map, multiget, find_by)
        if lookup is None:
            return [] if multiget.is_batch else None
        result = session.exec(lookup)
        return result.all() if multiget.is_batch else result.first()

    async def fetch_async(
        self,
        query: Select,
        columns_map: ColumnCollection[str, ColumnElement[Any]],
        session: AsyncSession,
        multiget: MultigetQuery,
        find_by: Any = "id",
    ) -> Any:
        """
        Run a multiget lookup asynchronously.

        Args:
            query: Base SQLAlchemy Select query
            columns_map: Map of column names to column elements
            session: Async database session
            multiget: Parsed multiget query
            find_by: Field the ids are matched against

        Returns:
            Any: A list of rows in batch mode, otherwise the matching row or None
        """
        lookup = self._lookup_query(query, columns_map, multiget, find_by)
        if lookup is None:
            return [] if multiget.is_batch else None
        result = await session.exec(lookup)
        return result.all() if multiget.is_batch else result.first()
