"""Normalization of raw request parameters."""

import re
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from starlette.requests import Request

_BRACKETED_KEY = re.compile(r"^(?P<name>[^\[\]]+)\[(?P<key>[^\[\]]*)\]$")
_LEADING_INT = re.compile(r"^\s*[-+]?\d+")

NestedValue = Union[str, Dict[str, str], None]


def normalize_name(value: Any) -> str:
    """
    Normalize a resource, field or relation identifier to its string form.

    Args:
        value: Identifier given as a string, an enum member or any other object

    Returns:
        str: String form of the identifier
    """
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


def normalize_names(values: Optional[Iterable[Any]]) -> List[str]:
    """Normalize an iterable of identifiers, keeping their order."""
    if not values:
        return []
    return [normalize_name(v) for v in values]


def split_list(raw: str) -> List[str]:
    """
    Split a comma-separated parameter value.

    Args:
        raw: Raw parameter value

    Returns:
        List[str]: Items in request order, not trimmed
    """
    return raw.split(",")


def split_names(raw: str) -> List[str]:
    """Split a comma-separated list of identifiers, dropping empty items."""
    return [name for name in split_list(raw) if name]


def unique(values: Iterable[str]) -> List[str]:
    """Drop repeated items, keeping the first occurrence."""
    return list(dict.fromkeys(values))


def parse_int(raw: Optional[str], default: int) -> int:
    """
    Read the leading integer of a parameter value.

    ``"3abc"`` reads as 3 and ``"abc"`` as 0, so malformed numbers end up
    clamped by the caller instead of failing the request.

    Args:
        raw: Raw parameter value, or None when absent
        default: Value used when the parameter is absent

    Returns:
        int: Parsed integer
    """
    if raw is None:
        return default
    match = _LEADING_INT.match(raw)
    if match is None:
        return 0
    return int(match.group(0))


class RequestParameters:
    """
    Read-only view over the parameters of one request.

    Flat keys are kept as they are, bracketed keys such as ``fields[post]``
    are grouped into a mapping under their base name (``fields``).
    """

    def __init__(self, values: Mapping[str, str]):
        self._flat: Dict[str, str] = {}
        self._nested: Dict[str, Dict[str, str]] = {}
        for key, value in values.items():
            match = _BRACKETED_KEY.match(key)
            if match:
                self._nested.setdefault(match.group("name"), {})[match.group("key")] = value
            else:
                self._flat[key] = value

    @classmethod
    def from_request(cls, request: Request) -> "RequestParameters":
        """
        Build the parameters of a Starlette request.

        Path parameters override query parameters of the same name.

        Args:
            request: Incoming request

        Returns:
            RequestParameters: Normalized parameters
        """
        values: Dict[str, str] = dict(request.query_params.items())
        values.update({k: str(v) for k, v in request.path_params.items()})
        return cls(values)

    def get(self, name: str) -> Optional[str]:
        """Scalar value of a parameter, None when absent."""
        return self._flat.get(name)

    def nested(self, name: str) -> NestedValue:
        """
        Value of a parameter that may be keyed by resource.

        Args:
            name: Base parameter name, e.g. ``fields``

        Returns:
            NestedValue: Mapping of bracketed keys when any were sent,
            otherwise the scalar value or None
        """
        if name in self._nested:
            return dict(self._nested[name])
        return self._flat.get(name)

    def for_resource(self, name: str, resource: str, default: bool = False) -> Optional[str]:
        """
        Value of a resource-keyed parameter for one resource.

        ``fields[post]=...`` is read for ``post``; a plain ``fields=...`` is
        read only for the default resource of the endpoint.

        Args:
            name: Base parameter name
            resource: Resource name
            default: Whether the resource is the endpoint's default resource

        Returns:
            Optional[str]: Raw value, None when the client sent nothing for it
        """
        value = self.nested(name)
        if isinstance(value, dict):
            return value.get(resource)
        if default:
            return value
        return None

    def __contains__(self, name: str) -> bool:
        return name in self._flat or name in self._nested
