"""Sparse fieldset resolution."""

import logging
from typing import Any, Dict, Iterable, List, Optional, Union

from fastapi_api_helper.context import RequestContext
from fastapi_api_helper.params import (
    RequestParameters,
    normalize_name,
    normalize_names,
    split_names,
    unique,
)

logger = logging.getLogger(__name__)

FIELDS_PARAM = "fields"


class FieldsetEngine:
    """
    Engine resolving which fields of each resource a response may contain.

    Reads ``fields=a,b`` (default resource only) and ``fields[resource]=a,b``.
    Unknown resources and unpermitted fields are ignored, never reported.
    """

    def __init__(self, params: RequestParameters):
        """
        Initialize FieldsetEngine.

        Args:
            params: Normalized request parameters
        """
        self.params = params

    def fieldset_for(
        self,
        context: RequestContext,
        resource: Any,
        *,
        default: bool = False,
        permitted_fields: Optional[Iterable[Any]] = None,
        default_fields: Optional[Iterable[Any]] = None,
        defaults_to_permitted_fields: bool = False,
    ) -> List[str]:
        """
        Resolve and store the fieldset of a resource.

        Args:
            context: Context of the current request
            resource: Resource name
            default: Read the plain ``fields`` parameter for this resource
            permitted_fields: Whitelist of fields, empty permits everything
            default_fields: Fields used when the client selects none
            defaults_to_permitted_fields: Fall back to every permitted field
                when the resolved fieldset is empty

        Returns:
            List[str]: Selected fields in request order
        """
        resource = normalize_name(resource)
        permitted = normalize_names(permitted_fields)

        raw = self.params.for_resource(FIELDS_PARAM, resource, default)
        fields = unique(split_names(raw) if raw else normalize_names(default_fields))

        if fields and permitted:
            rejected = [f for f in fields if f not in permitted]
            if rejected:
                logger.debug("Ignoring unpermitted fields %s of %r", rejected, resource)
            fields = [f for f in fields if f in permitted]

        if defaults_to_permitted_fields and not fields and permitted:
            fields = list(permitted)

        context.fieldsets[resource] = fields
        return list(fields)

    @staticmethod
    def set_fieldset(
        context: RequestContext,
        resource: Any,
        default_fields: Optional[Iterable[Any]] = None,
        permitted_fields: Optional[Iterable[Any]] = None,
    ) -> List[str]:
        """
        Make sure a resource has a fieldset at the rendering layer.

        An empty or missing fieldset is filled with ``default_fields``, then
        the result is narrowed to ``permitted_fields`` when one is given.

        Args:
            context: Context of the current request
            resource: Resource name
            default_fields: Fields used when none were resolved
            permitted_fields: Whitelist of fields

        Returns:
            List[str]: The resulting fieldset
        """
        resource = normalize_name(resource)
        fields = context.fieldsets.get(resource) or unique(normalize_names(default_fields))
        permitted = normalize_names(permitted_fields)
        if permitted:
            fields = [f for f in fields if f in permitted]
        context.fieldsets[resource] = fields
        return list(fields)

    @staticmethod
    def fieldset(
        context: RequestContext, resource: Any = None, field: Any = None
    ) -> Union[Dict[str, List[str]], List[str], bool]:
        """
        Read resolved fieldsets.

        Args:
            context: Context of the current request
            resource: Resource name, None for every resource
            field: Field name, None for the whole fieldset

        Returns:
            The mapping of all fieldsets, the fieldset of ``resource`` (empty
            when unknown), or whether ``field`` is part of it
        """
        if resource is None:
            return {name: list(fields) for name, fields in context.fieldsets.items()}
        if field is None:
            return list(context.fieldsets.get(normalize_name(resource), []))
        return FieldsetEngine.has_field(context, resource, field)

    @staticmethod
    def has_field(context: RequestContext, resource: Any, field: Any) -> bool:
        """Whether ``field`` is selected for ``resource``."""
        return normalize_name(field) in context.fieldsets.get(normalize_name(resource), [])

    @staticmethod
    def param_description(example: Optional[str] = None) -> str:
        """Description of the ``fields`` parameter for API docs."""
        if example:
            return f"Choose the fields to be returned. Example value: '{example}'"
        return "Choose the fields to be returned."
