"""fastapi-api-helper models"""

from enum import StrEnum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel


class FilterFunction(StrEnum):
    """Function names accepted by the filter grammar, e.g. ``filter[age]=between(2,4)``"""

    NOT = "not"
    GREATER_THEN = "greater_then"
    LESS_THEN = "less_then"
    GREATER_THEN_OR_EQUAL = "greater_then_or_equal"
    LESS_THEN_OR_EQUAL = "less_then_or_equal"
    BETWEEN = "between"
    LIKE = "like"
    CONTAINS = "contains"
    NULL = "null"
    BLANK = "blank"


class FilterOperator(StrEnum):
    """Predicate operators"""

    IN = "in"  # IN (...)
    NOT_IN = "not_in"  # NOT IN (...)
    GT = "gt"  # greater than (>)
    LT = "lt"  # less than (<)
    GTE = "gte"  # greater than or equal (>=)
    LTE = "lte"  # less than or equal (<=)
    BETWEEN = "between"  # BETWEEN x AND y
    LIKE = "like"  # LIKE pattern, wildcards as given
    CONTAINS = "contains"  # LIKE %value%
    IS_NULL = "is_null"  # IS NULL
    IS_BLANK = "is_blank"  # IS NULL OR = ''


class SortingOrder(StrEnum):
    """Sorting orders"""

    ASC = "asc"  # ascending order
    DESC = "desc"  # descending order


class MultigetMode(StrEnum):
    """Multiget modes"""

    SINGLE = "single"
    BATCH = "batch"


class PredicateOp(BaseModel):
    """A structured filter condition.

    The field name and the typed arguments are kept apart so that the query
    layer can bind them as parameters; nothing here is ever formatted into SQL.
    """

    field: str
    operator: FilterOperator
    values: List[Any] = []


class SortingQuery(BaseModel):
    """Sorting query model"""

    sort_by: str
    order: SortingOrder


class RelationDescriptor(BaseModel):
    """How an includable relation maps to its id field and child resource"""

    relation: str
    id_field: str
    resource: Optional[str] = None
    url: Optional[str] = None


class PaginationState(BaseModel):
    """Pagination state model"""

    current_page: int
    per_page: int
    items_count: int
    pages_count: int


class PaginationResult(PaginationState):
    """Pagination state together with its RFC 5988 ``Link`` header value"""

    link_header: str = ""

    def headers(self) -> Dict[str, str]:
        """
        Response headers describing this page.

        Returns:
            Dict[str, str]: ``Link``, ``X-Items-Count`` and ``X-Pages-Count``
        """
        return {
            "Link": self.link_header,
            "X-Items-Count": str(self.items_count),
            "X-Pages-Count": str(self.pages_count),
        }


class MultigetQuery(BaseModel):
    """Multiget query model"""

    mode: MultigetMode
    ids: List[str]

    @property
    def is_batch(self) -> bool:
        return self.mode == MultigetMode.BATCH
