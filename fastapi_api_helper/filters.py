"""Filter grammar compiler and predicate builder."""

import logging
import re
from datetime import date, datetime
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from dateutil.parser import parse
from sqlalchemy import ColumnCollection, ColumnElement, Select, String, TypeDecorator, cast, or_
from sqlalchemy import Enum as SAEnum
from sqlmodel import not_

from fastapi_api_helper.models import FilterFunction, FilterOperator, PredicateOp
from fastapi_api_helper.params import normalize_names, split_list

logger = logging.getLogger(__name__)

FILTER_PARAM = "filter"

# ``name(args)`` anywhere in the condition; the argument list may itself contain parentheses
_FUNCTION_CALL = re.compile(r"(?P<function>[^()]+)\((?P<args>.*)\)", re.DOTALL)

# Type alias for strategy functions turning a predicate into a SQL condition
FilterStrategyFn = Callable[[ColumnElement[Any], List[Any]], Optional[Any]]

# Type alias for functions turning the raw argument list into typed values
ArgumentParserFn = Callable[[str, Optional[type]], Optional[List[Any]]]


def _coerce_value(raw: str, pytype: Optional[type] = None) -> Any:
    """
    Coerce raw string value to a column's Python type.

    Booleans follow a strict rule: only ``"true"`` is true.

    Args:
        raw: Raw string value
        pytype: Python type of the column, None when unknown

    Returns:
        Any: Coerced value, or the raw string when coercion fails
    """
    if pytype is None or isinstance(raw, pytype):
        return raw
    if pytype is bool:
        return raw == "true"
    if pytype is int:
        try:
            return int(raw)
        except ValueError:
            try:
                return int(float(raw))
            except (ValueError, OverflowError):
                return raw
    if pytype is datetime:
        try:
            return datetime.fromisoformat(raw)
        except ValueError:
            try:
                return parse(raw)
            except (ValueError, OverflowError):
                return raw
    if pytype is date:
        try:
            return date.fromisoformat(raw)
        except ValueError:
            try:
                return parse(raw).date()
            except (ValueError, OverflowError):
                return raw
    try:
        return pytype(raw)
    except Exception:
        return raw


def _is_string_column(col: ColumnElement[Any]) -> bool:
    """
    Check if a column has a string type in the database.

    Enum columns are string-backed in SQLAlchemy but not in every database,
    so they do not count.

    Args:
        col: SQLAlchemy column element

    Returns:
        bool: True if the column is a string/text type
    """
    col_type = getattr(col, "type", None)
    if isinstance(col_type, TypeDecorator):
        col_type = col_type.impl
    return isinstance(col_type, String) and not isinstance(col_type, SAEnum)


def _text_column(col: ColumnElement[Any]) -> ColumnElement[Any]:
    """Column usable with LIKE, cast to text when it is not a string column."""
    if _is_string_column(col):
        return col
    return cast(col, String)


# --- Argument parsers for each predicate operator ---


def _args_list(raw: str, pytype: Optional[type]) -> List[Any]:
    return [_coerce_value(v, pytype) for v in split_list(raw)]


def _args_single(raw: str, pytype: Optional[type]) -> List[Any]:
    return [_coerce_value(raw, pytype)]


def _args_pattern(raw: str, pytype: Optional[type]) -> List[Any]:
    return [raw]


def _args_range(raw: str, pytype: Optional[type]) -> Optional[List[Any]]:
    vals = split_list(raw)
    if len(vals) < 2:
        return None
    return [_coerce_value(vals[0], pytype), _coerce_value(vals[-1], pytype)]


def _args_none(raw: str, pytype: Optional[type]) -> List[Any]:
    return []


ARGUMENT_PARSERS: Dict[FilterOperator, ArgumentParserFn] = {
    FilterOperator.IN: _args_list,
    FilterOperator.NOT_IN: _args_list,
    FilterOperator.GT: _args_single,
    FilterOperator.LT: _args_single,
    FilterOperator.GTE: _args_single,
    FilterOperator.LTE: _args_single,
    FilterOperator.BETWEEN: _args_range,
    FilterOperator.LIKE: _args_pattern,
    FilterOperator.CONTAINS: _args_pattern,
    FilterOperator.IS_NULL: _args_none,
    FilterOperator.IS_BLANK: _args_none,
}

# Grammar function -> predicate operator
FUNCTION_OPERATORS: Dict[FilterFunction, FilterOperator] = {
    FilterFunction.NOT: FilterOperator.NOT_IN,
    FilterFunction.GREATER_THEN: FilterOperator.GT,
    FilterFunction.LESS_THEN: FilterOperator.LT,
    FilterFunction.GREATER_THEN_OR_EQUAL: FilterOperator.GTE,
    FilterFunction.LESS_THEN_OR_EQUAL: FilterOperator.LTE,
    FilterFunction.BETWEEN: FilterOperator.BETWEEN,
    FilterFunction.LIKE: FilterOperator.LIKE,
    FilterFunction.CONTAINS: FilterOperator.CONTAINS,
    FilterFunction.NULL: FilterOperator.IS_NULL,
    FilterFunction.BLANK: FilterOperator.IS_BLANK,
}


# --- Strategy functions for each predicate operator ---


def _strategy_in(column: ColumnElement[Any], values: List[Any]) -> Any:
    return column.in_(values)


def _strategy_not_in(column: ColumnElement[Any], values: List[Any]) -> Any:
    return not_(column.in_(values))


def _strategy_gt(column: ColumnElement[Any], values: List[Any]) -> Any:
    return column > values[0]


def _strategy_lt(column: ColumnElement[Any], values: List[Any]) -> Any:
    return column < values[0]


def _strategy_gte(column: ColumnElement[Any], values: List[Any]) -> Any:
    return column >= values[0]


def _strategy_lte(column: ColumnElement[Any], values: List[Any]) -> Any:
    return column <= values[0]


def _strategy_between(column: ColumnElement[Any], values: List[Any]) -> Optional[Any]:
    if len(values) != 2:
        return None
    return column.between(values[0], values[1])


def _strategy_like(column: ColumnElement[Any], values: List[Any]) -> Any:
    return _text_column(column).like(values[0])


def _strategy_contains(column: ColumnElement[Any], values: List[Any]) -> Any:
    return _text_column(column).like(f"%{values[0]}%")


def _strategy_is_null(column: ColumnElement[Any], values: List[Any]) -> Any:
    return column.is_(None)


def _strategy_is_blank(column: ColumnElement[Any], values: List[Any]) -> Any:
    return or_(column.is_(None), _text_column(column) == "")


# Strategy registry: maps FilterOperator -> handler function
FILTER_STRATEGIES: Dict[FilterOperator, FilterStrategyFn] = {
    FilterOperator.IN: _strategy_in,
    FilterOperator.NOT_IN: _strategy_not_in,
    FilterOperator.GT: _strategy_gt,
    FilterOperator.LT: _strategy_lt,
    FilterOperator.GTE: _strategy_gte,
    FilterOperator.LTE: _strategy_lte,
    FilterOperator.BETWEEN: _strategy_between,
    FilterOperator.LIKE: _strategy_like,
    FilterOperator.CONTAINS: _strategy_contains,
    FilterOperator.IS_NULL: _strategy_is_null,
    FilterOperator.IS_BLANK: _strategy_is_blank,
}


class FilterEngine:
    """
    Engine compiling ``filter[field]=condition`` parameters into SQL conditions.

    A condition is either a comma-separated list of accepted values or a
    function call such as ``not(a,b)``, ``between(1,5)`` or ``null()``.
    Compilation produces ``PredicateOp`` objects; only field names found in
    the query's columns are ever turned into conditions, and every value is
    bound as a parameter.
    """

    def __init__(self):
        """Initialize FilterEngine."""
        self._type_cache: dict[int, Optional[type]] = {}

    def get_column_type(self, column: ColumnElement[Any]) -> Optional[type]:
        """
        Get the Python type of a column with caching.

        Args:
            column: SQLAlchemy column element

        Returns:
            Optional[type]: Python type of the column or None
        """
        col_id = id(column)
        if col_id not in self._type_cache:
            try:
                self._type_cache[col_id] = getattr(column.type, "python_type", None)
            except (AttributeError, NotImplementedError):
                self._type_cache[col_id] = None
        return self._type_cache[col_id]

    @staticmethod
    def get_entity_attribute(query: Select, field: str) -> Optional[ColumnElement[Any]]:
        """
        Try to get a column-like attribute from the query's entity.

        This enables filtering/sorting on computed fields like hybrid_property
        that have SQL expressions defined.

        Args:
            query: SQLAlchemy Select query
            field: Name of the field/attribute to get

        Returns:
            Optional[ColumnElement]: The SQL expression if available, None otherwise
        """
        try:
            column_descriptions = query.column_descriptions
            if not column_descriptions:
                return None

            entity = column_descriptions[0].get("entity")
            if entity is None:
                return None

            attr = getattr(entity, field, None)
            if attr is None:
                return None

            if isinstance(attr, ColumnElement):
                return attr

            if hasattr(attr, "__clause_element__"):
                return attr.__clause_element__()

            return None
        except Exception:
            return None

    @classmethod
    def resolve_column(
        cls,
        query: Select,
        columns_map: ColumnCollection[str, ColumnElement[Any]],
        field: str,
    ) -> Optional[ColumnElement[Any]]:
        """
        Find the column of a field, falling back to computed entity attributes.

        Args:
            query: SQLAlchemy Select query
            columns_map: Map of column names to column elements
            field: Field name

        Returns:
            Optional[ColumnElement]: The column, None for unknown fields
        """
        column = columns_map.get(field)
        if column is None:
            column = cls.get_entity_attribute(query, field)
        return column

    @staticmethod
    def parse_condition(
        field: str, condition: str, pytype: Optional[type] = None
    ) -> Optional[PredicateOp]:
        """
        Parse one filter condition.

        Args:
            field: Field name
            condition: Raw condition, e.g. ``red,blue`` or ``greater_then(3)``
            pytype: Python type of the field, used to coerce values

        Returns:
            Optional[PredicateOp]: Predicate, or None for unknown functions
            and malformed arguments
        """
        match = _FUNCTION_CALL.search(condition)
        if match is None:
            return PredicateOp(
                field=field,
                operator=FilterOperator.IN,
                values=_args_list(condition, pytype),
            )

        try:
            function = FilterFunction(match.group("function"))
        except ValueError:
            logger.debug(
                "Ignoring unknown filter function %r on field %r", match.group("function"), field
            )
            return None

        operator = FUNCTION_OPERATORS[function]
        values = ARGUMENT_PARSERS[operator](match.group("args"), pytype)
        if values is None:
            logger.debug("Ignoring malformed %s() condition on field %r", function, field)
            return None
        return PredicateOp(field=field, operator=operator, values=values)

    def compile_filters(
        self,
        filter_params: Mapping[str, str],
        field_types: Mapping[str, Optional[type]],
        filterable_fields: Optional[Iterable[Any]] = None,
    ) -> List[PredicateOp]:
        """
        Compile filter parameters into predicates.

        Args:
            filter_params: Field name -> raw condition
            field_types: Known field names -> Python type (None when unknown);
                fields missing from it are skipped
            filterable_fields: Fields allowed to be filtered, empty allows all

        Returns:
            List[PredicateOp]: Predicates to be AND'ed, in parameter order
        """
        allowed = normalize_names(filterable_fields)
        predicates = []
        for field, condition in filter_params.items():
            if allowed and field not in allowed:
                logger.debug("Ignoring filter on non-filterable field %r", field)
                continue
            if field not in field_types:
                logger.debug("Ignoring filter on unknown field %r", field)
                continue
            predicate = self.parse_condition(field, condition, field_types[field])
            if predicate is not None:
                predicates.append(predicate)
        return predicates

    @staticmethod
    def build_condition(column: ColumnElement[Any], predicate: PredicateOp) -> Optional[Any]:
        """
        Build a SQL condition using strategy pattern dispatch.

        Args:
            column: Column to apply the predicate to
            predicate: Predicate to apply

        Returns:
            Optional[Any]: SQLAlchemy condition or None if invalid
        """
        return FILTER_STRATEGIES[predicate.operator](column, predicate.values)

    def apply_filters(
        self,
        query: Select,
        columns_map: ColumnCollection[str, ColumnElement[Any]],
        filter_params: Optional[Mapping[str, str]],
        filterable_fields: Optional[Iterable[Any]] = None,
    ) -> Select:
        """
        Apply filter parameters to a query.

        Args:
            query: Base SQLAlchemy Select query
            columns_map: Map of column names to column elements
            filter_params: Field name -> raw condition
            filterable_fields: Fields allowed to be filtered, empty allows all

        Returns:
            Select: Query with every valid condition AND'ed
        """
        if not filter_params:
            return query

        columns: Dict[str, ColumnElement[Any]] = {}
        for field in filter_params:
            column = self.resolve_column(query, columns_map, field)
            if column is not None:
                columns[field] = column

        field_types = {field: self.get_column_type(column) for field, column in columns.items()}
        conditions = []
        for predicate in self.compile_filters(filter_params, field_types, filterable_fields):
            condition = self.build_condition(columns[predicate.field], predicate)
            if condition is not None:
                conditions.append(condition)

        if conditions:
            query = query.where(*conditions)

        return query

    @staticmethod
    def param_description(for_field: Optional[str] = None) -> str:
        """Description of a ``filter`` parameter for API docs."""
        if for_field:
            return f"Filter data base on the '{for_field}' field."
        return "Filter the data."
