"""Pagination engine computing page bounds and RFC 5988 Link headers."""

from math import ceil
from typing import Any, Optional, Union

from sqlalchemy import Select, func
from sqlmodel import Session, select
from sqlmodel.ext.asyncio.session import AsyncSession
from starlette.datastructures import URL
from starlette.responses import Response

from fastapi_api_helper.models import PaginationResult, PaginationState
from fastapi_api_helper.params import parse_int

PAGE_PARAM = "page"
PER_PAGE_PARAM = "per_page"

IntParam = Union[int, str, None]


def _to_int(value: IntParam, default: int) -> int:
    if isinstance(value, int):
        return value
    return parse_int(value, default)


class PaginationEngine:
    """
    Engine for paginating queries and describing pages in response headers.

    Out of range parameters are clamped, never rejected: ``per_page`` into
    ``[1, max_per_page]`` and ``page`` into ``[1, pages_count]``. An empty
    collection still has one page.
    """

    def __init__(self, url: URL):
        """
        Initialize PaginationEngine.

        Args:
            url: URL of the current request, used to build the Link header
        """
        self.url = url

    @staticmethod
    def compute(
        items_count: int,
        per_page_param: IntParam = None,
        page_param: IntParam = None,
        default_per_page: int = 20,
        max_per_page: int = 100,
    ) -> PaginationState:
        """
        Compute the bounds of the requested page.

        Args:
            items_count: Number of items in the collection
            per_page_param: Requested items per page, None when absent
            page_param: Requested page, None when absent
            default_per_page: Items per page when not requested
            max_per_page: Upper bound of items per page

        Returns:
            PaginationState: Clamped pagination state
        """
        per_page = _to_int(per_page_param, default_per_page)
        per_page = max(1, min(per_page, max_per_page))

        items_count = max(0, items_count)
        pages_count = max(1, ceil(items_count / per_page))

        current_page = _to_int(page_param, 1)
        current_page = max(1, min(current_page, pages_count))

        return PaginationState(
            current_page=current_page,
            per_page=per_page,
            items_count=items_count,
            pages_count=pages_count,
        )

    def page_url(self, page: int) -> str:
        """URL of the current request with its ``page`` parameter replaced."""
        return str(self.url.include_query_params(**{PAGE_PARAM: page}))

    def build_link_header(self, current_page: int, pages_count: int) -> str:
        """
        Build the RFC 5988 ``Link`` header value of a page.

        Args:
            current_page: Clamped current page
            pages_count: Number of pages

        Returns:
            str: ``first``/``prev`` links when past page 1 and ``next``/``last``
            links when before the last page, comma separated
        """
        links = []
        if current_page > 1:
            links.append((1, "first"))
            links.append((current_page - 1, "prev"))
        if current_page < pages_count:
            links.append((current_page + 1, "next"))
            links.append((pages_count, "last"))
        return ", ".join(f'<{self.page_url(page)}>; rel="{rel}"' for page, rel in links)

    def paginate(
        self,
        items_count: int,
        per_page_param: IntParam = None,
        page_param: IntParam = None,
        default_per_page: int = 20,
        max_per_page: int = 100,
    ) -> PaginationResult:
        """
        Compute the requested page together with its Link header.

        Args:
            items_count: Number of items in the collection
            per_page_param: Requested items per page, None when absent
            page_param: Requested page, None when absent
            default_per_page: Items per page when not requested
            max_per_page: Upper bound of items per page

        Returns:
            PaginationResult: Pagination state and Link header value
        """
        state = self.compute(
            items_count, per_page_param, page_param, default_per_page, max_per_page
        )
        return PaginationResult(
            **state.model_dump(),
            link_header=self.build_link_header(state.current_page, state.pages_count),
        )

    @staticmethod
    def apply_headers(response: Response, result: PaginationResult) -> None:
        """
        Set the pagination headers on a response.

        Args:
            response: Outgoing response
            result: Pagination result to describe
        """
        for name, value in result.headers().items():
            response.headers[name] = value

    # --- Query helpers ---

    @staticmethod
    def _page_query(query: Select, state: PaginationState) -> Select:
        return query.offset((state.current_page - 1) * state.per_page).limit(state.per_page)

    @staticmethod
    def count_total(query: Select, session: Session) -> int:
        """
        Count total items matching the query.

        Args:
            query: SQLAlchemy Select query with filters applied
            session: Database session

        Returns:
            int: Total count of items
        """
        count_query = select(func.count()).select_from(query.order_by(None).subquery())
        return session.exec(count_query).one()

    def fetch_page(self, query: Select, session: Session, state: PaginationState) -> Any:
        """
        Fetch the rows of a page.

        Args:
            query: SQLAlchemy Select query
            session: Database session
            state: Pagination state

        Returns:
            Any: Query results
        """
        return session.exec(self._page_query(query, state)).all()

    @staticmethod
    async def count_total_async(query: Select, session: AsyncSession) -> int:
        """
        Count total items matching the query asynchronously.

        Args:
            query: SQLAlchemy Select query with filters applied
            session: Async database session

        Returns:
            int: Total count of items
        """
        count_query = select(func.count()).select_from(query.order_by(None).subquery())
        result = await session.exec(count_query)
        return result.one()

    async def fetch_page_async(
        self, query: Select, session: AsyncSession, state: PaginationState
    ) -> Any:
        """
        Fetch the rows of a page asynchronously.

        Args:
            query: SQLAlchemy Select query
            session: Async database session
            state: Pagination state

        Returns:
            Any: Query results
        """
        result = await session.exec(self._page_query(query, state))
        return result.all()

    @staticmethod
    def per_page_param_description() -> str:
        """Description of the ``per_page`` parameter for API docs."""
        return "Specify how many items you want each page to return."

    @staticmethod
    def page_param_description() -> str:
        """Description of the ``page`` parameter for API docs."""
        return "Specify which page you want to get."
