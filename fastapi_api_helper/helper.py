"""FastAPI request helper bundling fieldsets, inclusion, filtering, sorting, pagination and multiget"""

from typing import Any, Dict, Iterable, List, Optional, Union

from fastapi import Request, Response
from sqlalchemy import Select
from sqlmodel import Session
from sqlmodel.ext.asyncio.session import AsyncSession

from fastapi_api_helper.config import APIHelperConfig
from fastapi_api_helper.context import RequestContext, get_request_context
from fastapi_api_helper.fieldsets import FieldsetEngine
from fastapi_api_helper.filters import FILTER_PARAM, FilterEngine
from fastapi_api_helper.inclusions import InclusionEngine
from fastapi_api_helper.models import (
    MultigetQuery,
    PaginationResult,
    RelationDescriptor,
    SortingQuery,
)
from fastapi_api_helper.multiget import MultigetEngine
from fastapi_api_helper.pagination import PAGE_PARAM, PER_PAGE_PARAM, PaginationEngine
from fastapi_api_helper.params import RequestParameters, normalize_name
from fastapi_api_helper.sorting import DefaultOrder, SortEngine


class APIHelper:
    """
    Request helper for collection endpoints.

    Orchestrates the engines, each reading its own request parameters:
    - FieldsetEngine: ``fields`` / ``fields[resource]``
    - InclusionEngine: ``include`` / ``include[resource]``
    - FilterEngine: ``filter[field]``
    - SortEngine: ``sort`` (alias ``sort_by``)
    - PaginationEngine: ``page`` and ``per_page``, sets ``Link``,
      ``X-Items-Count`` and ``X-Pages-Count`` response headers
    - MultigetEngine: comma-separated ids, ``id`` by default

    Results are kept in the request's ``RequestContext``, so every dependency
    of one request shares them and nothing outlives the request.

    Example:
        @app.get("/posts/")
        def read_posts(
            session: Session = Depends(get_session),
            helper: APIHelper = Depends(APIHelper),
        ):
            helper.fieldset_for("post", default=True, permitted_fields=["id", "title"])
            helper.sortable(default_order={"id": "asc"})
            query = helper.sort(helper.filter(select(Post)))
            return helper.paginate(query, session)
    """

    def __init__(self, request: Request, response: Response):
        """
        Initialize APIHelper.

        Args:
            request: FastAPI Request object
            response: Response whose headers receive pagination data
        """
        self.request = request
        self.response = response
        self.context: RequestContext = get_request_context(request)
        self.params = RequestParameters.from_request(request)
        self.config = APIHelperConfig()

        # Initialize engines
        self._fieldset_engine = FieldsetEngine(self.params)
        self._inclusion_engine = InclusionEngine(self.params)
        self._filter_engine = FilterEngine()
        self._sort_engine = SortEngine()
        self._pagination_engine = PaginationEngine(request.url)
        self._multiget_engine = MultigetEngine()

    def apply_config(self, config: APIHelperConfig) -> "APIHelper":
        """
        Apply a configuration to this APIHelper instance.

        Args:
            config: APIHelperConfig instance with settings

        Returns:
            APIHelper: Self for chaining
        """
        self.config = config
        return self

    # --- Fieldsets ---

    def fieldset_for(
        self,
        resource: Any,
        *,
        default: bool = False,
        permitted_fields: Optional[Iterable[Any]] = None,
        default_fields: Optional[Iterable[Any]] = None,
        defaults_to_permitted_fields: bool = False,
    ) -> List[str]:
        """
        Resolve the fieldset of a resource.

        Delegates to FieldsetEngine.fieldset_for().
        """
        return self._fieldset_engine.fieldset_for(
            self.context,
            resource,
            default=default,
            permitted_fields=permitted_fields,
            default_fields=default_fields,
            defaults_to_permitted_fields=defaults_to_permitted_fields,
        )

    def fieldset(
        self, resource: Any = None, field: Any = None
    ) -> Union[Dict[str, List[str]], List[str], bool]:
        """Read resolved fieldsets. Delegates to FieldsetEngine.fieldset()."""
        return FieldsetEngine.fieldset(self.context, resource, field)

    def set_fieldset(
        self,
        resource: Any,
        default_fields: Optional[Iterable[Any]] = None,
        permitted_fields: Optional[Iterable[Any]] = None,
    ) -> List[str]:
        """Fill in a fieldset at the rendering layer. Delegates to FieldsetEngine.set_fieldset()."""
        return FieldsetEngine.set_fieldset(self.context, resource, default_fields, permitted_fields)

    # --- Inclusion ---

    def inclusion_for(
        self,
        resource: Any,
        *,
        default: bool = False,
        permitted_includes: Optional[Iterable[Any]] = None,
        default_includes: Optional[Iterable[Any]] = None,
        defaults_to_permitted_includes: bool = False,
    ) -> List[str]:
        """
        Resolve the inclusion of a resource.

        Resolve the resource's fieldset first: the inclusion is narrowed to it.
        Delegates to InclusionEngine.inclusion_for().
        """
        return self._inclusion_engine.inclusion_for(
            self.context,
            resource,
            default=default,
            permitted_includes=permitted_includes,
            default_includes=default_includes,
            defaults_to_permitted_includes=defaults_to_permitted_includes,
        )

    def inclusion(
        self, resource: Any = None, relation: Any = None
    ) -> Union[Dict[str, List[str]], List[str], bool]:
        """Read resolved inclusions. Delegates to InclusionEngine.inclusion()."""
        return InclusionEngine.inclusion(self.context, resource, relation)

    def set_inclusion(
        self, resource: Any, default_includes: Optional[Iterable[Any]] = None
    ) -> List[str]:
        """Fill in an inclusion at the rendering layer. Delegates to InclusionEngine.set_inclusion()."""
        return InclusionEngine.set_inclusion(self.context, resource, default_includes)

    def set_inclusion_field(
        self,
        resource: Any,
        relation: Any,
        id_field: Any,
        child_resource: Optional[Any] = None,
        url: Optional[str] = None,
    ) -> RelationDescriptor:
        """
        Describe an includable relation for the rendering layer.

        Delegates to InclusionEngine.register_relation_descriptor().
        """
        return InclusionEngine.register_relation_descriptor(
            self.context, resource, relation, id_field, child_resource, url
        )

    # --- Filtering ---

    def filter_params(self) -> Dict[str, str]:
        """The ``filter[field]`` parameters of the request."""
        value = self.params.nested(FILTER_PARAM)
        return value if isinstance(value, dict) else {}

    def filter(self, query: Select, filterable_fields: Optional[Iterable[Any]] = None) -> Select:
        """
        Apply the request's filters to a query.

        Delegates to FilterEngine.apply_filters().

        Args:
            query: Base SQLAlchemy Select query
            filterable_fields: Fields allowed to be filtered, empty allows all

        Returns:
            Select: Filtered query
        """
        return self._filter_engine.apply_filters(
            query, query.selected_columns, self.filter_params(), filterable_fields
        )

    # --- Sorting ---

    def sortable(self, default_order: Optional[DefaultOrder] = None) -> List[SortingQuery]:
        """
        Parse the request's sort order.

        Delegates to SortEngine.compile_sort().

        Args:
            default_order: Field -> direction used when no sort is requested

        Returns:
            List[SortingQuery]: Sort keys in priority order
        """
        self.context.sort_order = SortEngine.compile_sort(
            SortEngine.sort_param(self.params), default_order
        )
        return list(self.context.sort_order)

    def sort(self, query: Select) -> Select:
        """
        Order a query by the sort keys parsed with ``sortable``.

        Delegates to SortEngine.apply_sort().
        """
        return self._sort_engine.apply_sort(query, query.selected_columns, self.context.sort_order)

    # --- Pagination ---

    def pagination(
        self,
        items_count: int,
        default_per_page: Optional[int] = None,
        max_per_page: Optional[int] = None,
        set_header: Optional[bool] = None,
    ) -> PaginationResult:
        """
        Compute the requested page and set the pagination response headers.

        Delegates to PaginationEngine.paginate().

        Args:
            items_count: Number of items in the collection
            default_per_page: Overrides the configured default items per page
            max_per_page: Overrides the configured maximum items per page
            set_header: Overrides whether response headers are set

        Returns:
            PaginationResult: Pagination state and Link header value
        """
        result = self._pagination_engine.paginate(
            items_count,
            self.params.get(PER_PAGE_PARAM),
            self.params.get(PAGE_PARAM),
            default_per_page or self.config.default_per_page,
            max_per_page or self.config.max_per_page,
        )
        self.context.pagination = result
        if set_header is None:
            set_header = self.config.set_headers
        if set_header:
            PaginationEngine.apply_headers(self.response, result)
        return result

    @property
    def current_page(self) -> Optional[int]:
        """Current page once ``pagination`` ran."""
        return self.context.pagination.current_page if self.context.pagination else None

    @property
    def per_page(self) -> Optional[int]:
        """Items per page once ``pagination`` ran."""
        return self.context.pagination.per_page if self.context.pagination else None

    def paginate(
        self,
        query: Select,
        session: Session,
        default_per_page: Optional[int] = None,
        max_per_page: Optional[int] = None,
    ) -> Any:
        """
        Count a query, paginate it and fetch the requested page.

        Args:
            query: SQLAlchemy Select query, filters and sorting applied
            session: Database session
            default_per_page: Overrides the configured default items per page
            max_per_page: Overrides the configured maximum items per page

        Returns:
            Any: Rows of the requested page
        """
        total = PaginationEngine.count_total(query, session)
        result = self.pagination(total, default_per_page, max_per_page)
        return self._pagination_engine.fetch_page(query, session, result)

    async def paginate_async(
        self,
        query: Select,
        session: AsyncSession,
        default_per_page: Optional[int] = None,
        max_per_page: Optional[int] = None,
    ) -> Any:
        """
        Async version of paginate.

        Args:
            query: SQLAlchemy Select query, filters and sorting applied
            session: Async database session
            default_per_page: Overrides the configured default items per page
            max_per_page: Overrides the configured maximum items per page

        Returns:
            Any: Rows of the requested page
        """
        total = await PaginationEngine.count_total_async(query, session)
        result = self.pagination(total, default_per_page, max_per_page)
        return await self._pagination_engine.fetch_page_async(query, session, result)

    # --- Multiget ---

    def multiget_query(
        self, param: Optional[Any] = None, max_count: Optional[int] = None
    ) -> MultigetQuery:
        """Parse the request's id list. Delegates to MultigetEngine.parse()."""
        name = normalize_name(param or self.config.multiget_param)
        return MultigetEngine.parse(self.params.get(name), max_count or self.config.multiget_max)

    def is_multiget(self, param: Optional[Any] = None) -> bool:
        """Whether the request asks for several resources at once."""
        name = normalize_name(param or self.config.multiget_param)
        return MultigetEngine.is_batch(self.params.get(name))

    def multiget(
        self,
        query: Select,
        session: Session,
        find_by: Optional[Any] = None,
        param: Optional[Any] = None,
        max_count: Optional[int] = None,
    ) -> Any:
        """
        Fetch the resources named by the request's id list.

        Args:
            query: Base SQLAlchemy Select query
            session: Database session
            find_by: Field ids are matched against
            param: Request parameter holding the ids
            max_count: Maximum ids fetched

        Returns:
            Any: A list of rows for several ids, otherwise one row or None
        """
        return self._multiget_engine.fetch(
            query,
            query.selected_columns,
            session,
            self.multiget_query(param, max_count),
            find_by or self.config.multiget_find_by,
        )

    async def multiget_async(
        self,
        query: Select,
        session: AsyncSession,
        find_by: Optional[Any] = None,
        param: Optional[Any] = None,
        max_count: Optional[int] = None,
    ) -> Any:
        """
        Async version of multiget.

        Args:
            query: Base SQLAlchemy Select query
            session: Async database session
            find_by: Field ids are matched against
            param: Request parameter holding the ids
            max_count: Maximum ids fetched

        Returns:
            Any: A list of rows for several ids, otherwise one row or None
        """
        return await self._multiget_engine.fetch_async(
            query,
            query.selected_columns,
            session,
            self.multiget_query(param, max_count),
            find_by or self.config.multiget_find_by,
        )
