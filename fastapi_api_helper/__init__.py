"""fastapi-api-helper: fieldsets, inclusion, filtering, sorting, pagination and multiget for FastAPI + SQLModel."""

from . import models as models  # noqa: F401
from .config import APIHelperConfig, APIHelperPresets  # noqa: F401
from .context import RequestContext, get_request_context  # noqa: F401
from .fieldsets import FieldsetEngine  # noqa: F401
from .filters import FILTER_STRATEGIES, FilterEngine  # noqa: F401
from .helper import APIHelper  # noqa: F401
from .inclusions import InclusionEngine  # noqa: F401
from .models import (  # noqa: F401
    FilterFunction,
    FilterOperator,
    MultigetMode,
    MultigetQuery,
    PaginationResult,
    PaginationState,
    PredicateOp,
    RelationDescriptor,
    SortingOrder,
    SortingQuery,
)
from .multiget import MultigetEngine  # noqa: F401
from .pagination import PaginationEngine  # noqa: F401
from .params import RequestParameters  # noqa: F401
from .sorting import SortEngine  # noqa: F401

__all__ = [
    # Main class
    "APIHelper",
    # Engines
    "FieldsetEngine",
    "InclusionEngine",
    "FilterEngine",
    "SortEngine",
    "PaginationEngine",
    "MultigetEngine",
    # Strategy registry
    "FILTER_STRATEGIES",
    # Request state
    "RequestContext",
    "RequestParameters",
    "get_request_context",
    # Configuration
    "APIHelperConfig",
    "APIHelperPresets",
    # Models
    "FilterFunction",
    "FilterOperator",
    "PredicateOp",
    "SortingOrder",
    "SortingQuery",
    "RelationDescriptor",
    "PaginationState",
    "PaginationResult",
    "MultigetMode",
    "MultigetQuery",
    # Module
    "models",
]
