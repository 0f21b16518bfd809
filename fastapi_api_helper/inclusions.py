"""Related-resource inclusion resolution."""

import logging
from typing import Any, Dict, Iterable, List, Optional, Union

from fastapi_api_helper.context import RequestContext
from fastapi_api_helper.models import RelationDescriptor
from fastapi_api_helper.params import (
    RequestParameters,
    normalize_name,
    normalize_names,
    split_names,
    unique,
)

logger = logging.getLogger(__name__)

INCLUDE_PARAM = "include"


class InclusionEngine:
    """
    Engine resolving which relations of each resource are expanded in output.

    Reads ``include=a,b`` (default resource only) and ``include[resource]=a,b``.
    When a fieldset was resolved for the same resource, a relation can only be
    included if it is also one of the selected fields.
    """

    def __init__(self, params: RequestParameters):
        """
        Initialize InclusionEngine.

        Args:
            params: Normalized request parameters
        """
        self.params = params

    def inclusion_for(
        self,
        context: RequestContext,
        resource: Any,
        *,
        default: bool = False,
        permitted_includes: Optional[Iterable[Any]] = None,
        default_includes: Optional[Iterable[Any]] = None,
        defaults_to_permitted_includes: bool = False,
    ) -> List[str]:
        """
        Resolve and store the inclusion of a resource.

        An ``include`` value sent by the client, even an empty one, replaces
        ``default_includes`` and disables the fallback to permitted includes.

        Args:
            context: Context of the current request
            resource: Resource name
            default: Read the plain ``include`` parameter for this resource
            permitted_includes: Whitelist of relations, empty permits everything
            default_includes: Relations included when the client sends nothing
            defaults_to_permitted_includes: Fall back to every permitted
                relation when nothing was sent and the inclusion is empty

        Returns:
            List[str]: Relations to include, without duplicates
        """
        resource = normalize_name(resource)
        permitted = normalize_names(permitted_includes)

        raw = self.params.for_resource(INCLUDE_PARAM, resource, default)
        specified = raw is not None
        context.inclusion_specified[resource] = specified

        includes = unique(split_names(raw) if specified else normalize_names(default_includes))

        if includes and permitted:
            rejected = [i for i in includes if i not in permitted]
            if rejected:
                logger.debug("Ignoring unpermitted includes %s of %r", rejected, resource)
            includes = [i for i in includes if i in permitted]

        if defaults_to_permitted_includes and not includes and permitted and not specified:
            includes = list(permitted)

        includes = self._within_fieldset(context, resource, includes)

        context.inclusions[resource] = includes
        return list(includes)

    @staticmethod
    def set_inclusion(
        context: RequestContext,
        resource: Any,
        default_includes: Optional[Iterable[Any]] = None,
    ) -> List[str]:
        """
        Make sure a resource has an inclusion at the rendering layer.

        Args:
            context: Context of the current request
            resource: Resource name
            default_includes: Relations used when none were resolved

        Returns:
            List[str]: The resulting inclusion
        """
        resource = normalize_name(resource)
        if not context.inclusions.get(resource):
            context.inclusions[resource] = unique(normalize_names(default_includes))
        return list(context.inclusions[resource])

    @staticmethod
    def register_relation_descriptor(
        context: RequestContext,
        resource: Any,
        relation: Any,
        id_field: Any,
        child_resource: Optional[Any] = None,
        child_resource_url: Optional[str] = None,
    ) -> RelationDescriptor:
        """
        Record how a relation of a resource should be rendered.

        Args:
            context: Context of the current request
            resource: Parent resource name
            relation: Relation name
            id_field: Field holding the related id(s) when not included
            child_resource: Resource name of the related object
            child_resource_url: URL of the related resource

        Returns:
            RelationDescriptor: The stored descriptor
        """
        resource = normalize_name(resource)
        descriptor = RelationDescriptor(
            relation=normalize_name(relation),
            id_field=normalize_name(id_field),
            resource=normalize_name(child_resource) if child_resource is not None else None,
            url=child_resource_url,
        )
        context.inclusion_fields.setdefault(resource, {})[descriptor.relation] = descriptor
        return descriptor

    @staticmethod
    def relation_descriptors(context: RequestContext, resource: Any) -> List[RelationDescriptor]:
        """Relation descriptors registered for a resource, in registration order."""
        return list(context.inclusion_fields.get(normalize_name(resource), {}).values())

    @staticmethod
    def inclusion(
        context: RequestContext, resource: Any = None, relation: Any = None
    ) -> Union[Dict[str, List[str]], List[str], bool]:
        """
        Read resolved inclusions.

        Args:
            context: Context of the current request
            resource: Resource name, None for every resource
            relation: Relation name, None for the whole inclusion

        Returns:
            The mapping of all inclusions, the inclusion of ``resource`` (empty
            when unknown), or whether ``relation`` is included
        """
        if resource is None:
            return {
                name: InclusionEngine._within_fieldset(context, name, includes)
                for name, includes in context.inclusions.items()
            }
        if relation is None:
            resource = normalize_name(resource)
            return InclusionEngine._within_fieldset(
                context, resource, context.inclusions.get(resource, [])
            )
        return InclusionEngine.is_included(context, resource, relation)

    @staticmethod
    def is_included(context: RequestContext, resource: Any, relation: Any) -> bool:
        """Whether ``relation`` of ``resource`` is expanded in output."""
        resource = normalize_name(resource)
        includes = context.inclusions.get(resource, [])
        return normalize_name(relation) in InclusionEngine._within_fieldset(
            context, resource, includes
        )

    @staticmethod
    def _within_fieldset(
        context: RequestContext, resource: str, includes: Iterable[str]
    ) -> List[str]:
        # A fieldset resolved after the inclusion still narrows it
        fieldset = context.fieldsets.get(resource)
        if fieldset:
            return [i for i in includes if i in fieldset]
        return list(includes)

    @staticmethod
    def param_description(example: Optional[str] = None, default: Optional[str] = None) -> str:
        """Description of the ``include`` parameter for API docs."""
        desc = "Returning compound documents that include specific associated objects"
        desc = f"{desc}, defaults to '{default}'." if default else f"{desc}."
        if example:
            return f"{desc} Example value: '{example}'"
        return desc
