"""Sort engine for parsing the sort parameter and applying ordering to queries."""

import logging
import re
from typing import Any, Dict, List, Mapping, Optional, Union

from sqlalchemy import ColumnCollection, ColumnElement, Select

from fastapi_api_helper.filters import FilterEngine
from fastapi_api_helper.models import SortingOrder, SortingQuery
from fastapi_api_helper.params import RequestParameters, normalize_name, split_list

logger = logging.getLogger(__name__)

SORT_PARAMS = ("sort", "sort_by")

_DISALLOWED_CHARS = re.compile(r"[^a-zA-Z0-9\-_,]")

DefaultOrder = Mapping[Any, Union[SortingOrder, str]]


class SortEngine:
    """
    Engine for applying sorting to SQL queries.

    Parses ``sort=-created_at,title`` into sort keys, primary key first, where
    a leading ``-`` means descending.
    """

    @staticmethod
    def sort_param(params: RequestParameters) -> Optional[str]:
        """Raw sort parameter, ``sort`` taking precedence over ``sort_by``."""
        for name in SORT_PARAMS:
            value = params.get(name)
            if value is not None:
                return value
        return None

    @staticmethod
    def compile_sort(
        sort_param: Optional[str], default_order: Optional[DefaultOrder] = None
    ) -> List[SortingQuery]:
        """
        Parse a sort parameter.

        Args:
            sort_param: Raw parameter value, None when absent
            default_order: Field -> direction used when the parameter is absent

        Returns:
            List[SortingQuery]: Sort keys in priority order
        """
        if sort_param is None:
            return [
                SortingQuery(sort_by=normalize_name(field), order=SortingOrder(order))
                for field, order in (default_order or {}).items()
            ]

        order: Dict[str, SortingOrder] = {}
        for token in split_list(_DISALLOWED_CHARS.sub("", sort_param)):
            if token.startswith("-"):
                field, direction = token[1:], SortingOrder.DESC
            else:
                field, direction = token, SortingOrder.ASC
            if field:
                order[field] = direction
        return [SortingQuery(sort_by=field, order=direction) for field, direction in order.items()]

    def apply_sort(
        self,
        query: Select,
        columns_map: ColumnCollection[str, ColumnElement[Any]],
        sorting: Optional[List[SortingQuery]],
    ) -> Select:
        """
        Apply sorting to a query.

        Args:
            query: Base SQLAlchemy Select query
            columns_map: Map of column names to column elements
            sorting: Sort keys in priority order

        Returns:
            Select: Query with sorting applied; unknown fields are skipped
        """
        if not sorting:
            return query

        clauses = []
        for key in sorting:
            column = FilterEngine.resolve_column(query, columns_map, key.sort_by)
            if column is None:
                logger.debug("Ignoring sort on unknown field %r", key.sort_by)
                continue
            clauses.append(column.desc() if key.order == SortingOrder.DESC else column.asc())

        if clauses:
            query = query.order_by(*clauses)
        return query

    @staticmethod
    def param_description(example: Optional[str] = None, default: Optional[str] = None) -> str:
        """Description of the ``sort`` parameter for API docs."""
        desc = "Specify how the returning data should be sorted"
        desc = f"{desc}, defaults to '{default}'." if default else f"{desc}."
        if example:
            return f"{desc} Example value: '{example}'"
        return desc
