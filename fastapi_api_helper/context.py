"""Per-request state shared by the resolvers."""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from starlette.requests import Request

from fastapi_api_helper.models import PaginationState, RelationDescriptor, SortingQuery

_STATE_KEY = "api_helper_context"


@dataclass
class RequestContext:
    """
    Results computed while handling one request.

    Attributes:
        fieldsets: Resource name -> selected field names, in request order
        inclusion_specified: Resource name -> whether the client sent an include value
        inclusions: Resource name -> relation names to expand
        inclusion_fields: Resource name -> relation name -> RelationDescriptor
        sort_order: Compiled sort keys, primary key first
        pagination: Pagination state once computed
    """

    fieldsets: Dict[str, List[str]] = field(default_factory=dict)
    inclusion_specified: Dict[str, bool] = field(default_factory=dict)
    inclusions: Dict[str, List[str]] = field(default_factory=dict)
    inclusion_fields: Dict[str, Dict[str, RelationDescriptor]] = field(default_factory=dict)
    sort_order: List[SortingQuery] = field(default_factory=list)
    pagination: Optional[PaginationState] = None


def get_request_context(request: Request) -> RequestContext:
    """
    Return the context of a request, creating it on first access.

    Args:
        request: Incoming request

    Returns:
        RequestContext: The request's own context
    """
    context = getattr(request.state, _STATE_KEY, None)
    if context is None:
        context = RequestContext()
        setattr(request.state, _STATE_KEY, context)
    return context
