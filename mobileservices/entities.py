"""
Entity parsing for table results.

The service always names the unique key of a row `id`. Entity types may call it
something else (an `Id` field, an aliased field, or an explicitly designated
identifier), so incoming objects get their `id` moved onto the entity's own
identifier name before validation, and outgoing objects get it moved back.
"""

from __future__ import annotations

import dataclasses
import json
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar, cast

from pydantic import BaseModel, Field

from .exceptions import EntityParseError

logger = logging.getLogger(__name__)

E = TypeVar("E")

SERVICE_ID_PROPERTY = "id"
IDENTIFIER_MARKER = "identifier"


def IdentifierField(default: Any = ..., *, alias: str | None = None, **kwargs: Any) -> Any:
    """
    Declare a pydantic field as the entity identifier.

    Example:
        ```python
        class TodoItem(BaseModel):
            key: int | None = IdentifierField(None)
            text: str
        ```
    """
    extra = dict(kwargs.pop("json_schema_extra", None) or {})
    extra[IDENTIFIER_MARKER] = True
    if alias is not None:
        kwargs["alias"] = alias
    return Field(default, json_schema_extra=extra, **kwargs)


def _identity(value: Any) -> Any:
    return value


def _keyword_factory(entity_type: Any) -> Callable[[Any], Any]:
    def _build(data: Any) -> Any:
        if not isinstance(data, Mapping):
            raise TypeError(f"expected a JSON object for {entity_type.__name__}, got {data!r}")
        return entity_type(**data)

    return _build


def _default_dump(item: Any) -> Mapping[str, Any]:
    if dataclasses.is_dataclass(item) and not isinstance(item, type):
        return dataclasses.asdict(item)
    return vars(item)


@dataclass(frozen=True, slots=True)
class EntityTypeDescriptor(Generic[E]):
    """
    Field layout of an entity type.

    `fields` maps each declared field name to its serialization alias (or None).
    `identifier` optionally names the declared field that holds the unique key.
    `dump` turns an instance back into a mapping keyed by declared field names.
    Pydantic models are dumped by `serialize_entity` itself and leave it unset.
    """

    fields: Mapping[str, str | None]
    factory: Callable[[Any], E]
    identifier: str | None = None
    dump: Callable[[Any], Mapping[str, Any]] | None = None
    identifier_field_name: str = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "identifier_field_name", self._resolve_identifier())

    def _resolve_identifier(self) -> str:
        if self.identifier is not None:
            return self.fields.get(self.identifier) or self.identifier
        for alias in self.fields.values():
            if alias is not None and alias.lower() == SERVICE_ID_PROPERTY:
                return alias
        for name in self.fields:
            if name.lower() == SERVICE_ID_PROPERTY:
                return name
        return ""


def _describe_model(model: type[BaseModel]) -> EntityTypeDescriptor[Any]:
    fields: dict[str, str | None] = {}
    identifier: str | None = None
    for name, info in model.model_fields.items():
        fields[name] = info.alias
        extra = info.json_schema_extra
        if isinstance(extra, dict) and extra.get(IDENTIFIER_MARKER):
            identifier = name
    return EntityTypeDescriptor(fields=fields, factory=model.model_validate, identifier=identifier)


class EntityTypeRegistry:
    """
    Registry mapping entity types to their descriptors.

    Pydantic models are described on first use; other types must be registered.
    Descriptors are computed once per type.
    """

    def __init__(self) -> None:
        self._descriptors: dict[Any, EntityTypeDescriptor[Any]] = {}

    def register(
        self,
        entity_type: Any,
        *,
        fields: Mapping[str, str | None],
        factory: Callable[[Any], Any] | None = None,
        identifier: str | None = None,
        dump: Callable[[Any], Mapping[str, Any]] | None = None,
    ) -> EntityTypeDescriptor[Any]:
        """
        Describe a non-pydantic entity type.

        Args:
            fields: Declared field names mapped to their wire names (None when equal).
            factory: Builds an instance from a decoded JSON object. Defaults to
                calling the type with the object's keys as keyword arguments.
            identifier: Declared field holding the unique key.
            dump: Turns an instance into a mapping of declared field names. Defaults
                to `dataclasses.asdict` for dataclasses and `vars()` otherwise.
        """
        descriptor = EntityTypeDescriptor(
            fields=dict(fields),
            factory=factory if factory is not None else _keyword_factory(entity_type),
            identifier=identifier,
            dump=dump if dump is not None else _default_dump,
        )
        self._descriptors[entity_type] = descriptor
        return descriptor

    def describe(self, entity_type: Any) -> EntityTypeDescriptor[Any]:
        descriptor = self._descriptors.get(entity_type)
        if descriptor is not None:
            return descriptor
        if entity_type is dict or entity_type is Any:
            descriptor = EntityTypeDescriptor(fields={}, factory=_identity)
        elif isinstance(entity_type, type) and issubclass(entity_type, BaseModel):
            descriptor = _describe_model(entity_type)
        else:
            raise TypeError(
                f"Unsupported entity type {entity_type!r}; use a pydantic model or "
                "register the type with register_entity_type()"
            )
        self._descriptors[entity_type] = descriptor
        return descriptor


DEFAULT_ENTITY_REGISTRY = EntityTypeRegistry()


def register_entity_type(
    entity_type: Any,
    *,
    fields: Mapping[str, str | None],
    factory: Callable[[Any], Any] | None = None,
    identifier: str | None = None,
    dump: Callable[[Any], Mapping[str, Any]] | None = None,
) -> EntityTypeDescriptor[Any]:
    """Register a non-pydantic entity type with the default registry."""
    return DEFAULT_ENTITY_REGISTRY.register(
        entity_type, fields=fields, factory=factory, identifier=identifier, dump=dump
    )


def describe(
    entity_type: Any, *, registry: EntityTypeRegistry = DEFAULT_ENTITY_REGISTRY
) -> EntityTypeDescriptor[Any]:
    return registry.describe(entity_type)


def _rename_identifier(element: Any, property_name: str) -> Any:
    if not isinstance(element, Mapping):
        return element
    if not property_name or property_name == SERVICE_ID_PROPERTY:
        return element
    if SERVICE_ID_PROPERTY not in element:
        # Leave the object alone; the factory decides whether a missing key is an error.
        logger.debug(
            "Object has no %r property; not renaming to %r", SERVICE_ID_PROPERTY, property_name
        )
        return element
    renamed = dict(element)
    renamed[property_name] = renamed.pop(SERVICE_ID_PROPERTY)
    return renamed


def _decode(results: str | bytes) -> Any:
    try:
        return json.loads(results)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise EntityParseError("Response body is not valid JSON") from e


def _deserialize(descriptor: EntityTypeDescriptor[E], value: Any) -> E:
    try:
        return descriptor.factory(value)
    except (TypeError, ValueError) as e:
        raise EntityParseError(f"Could not convert result into entity: {e}") from e


def parse_results(
    results: Any,
    entity_type: type[E] | Any,
    *,
    registry: EntityTypeRegistry = DEFAULT_ENTITY_REGISTRY,
) -> list[E]:
    """
    Convert a JSON result (query array or single lookup object) into typed entities.

    Args:
        results: Raw JSON text/bytes, or an already-decoded JSON value.
        entity_type: Pydantic model, `dict`, or a type registered with `registry`.

    Returns:
        The entities in result order; a single object yields a one-element list.

    Raises:
        EntityParseError: If the JSON is invalid or an element fails validation.
    """
    descriptor = cast(EntityTypeDescriptor[E], registry.describe(entity_type))
    data = _decode(results) if isinstance(results, (str, bytes)) else results
    property_name = descriptor.identifier_field_name

    if isinstance(data, list):
        return [_deserialize(descriptor, _rename_identifier(el, property_name)) for el in data]
    return [_deserialize(descriptor, _rename_identifier(data, property_name))]


def serialize_entity(
    item: Any,
    *,
    registry: EntityTypeRegistry = DEFAULT_ENTITY_REGISTRY,
) -> dict[str, Any]:
    """
    Dump `item` to a JSON object using the service's `id` property name.

    Accepts pydantic models, plain mappings, and instances of types registered
    with `registry`. None values are omitted except when `item` is a mapping.
    """
    if isinstance(item, BaseModel):
        data = item.model_dump(by_alias=True, mode="json", exclude_none=True)
        property_name = registry.describe(type(item)).identifier_field_name
    elif isinstance(item, Mapping):
        data = dict(item)
        property_name = ""
    else:
        descriptor = registry.describe(type(item))
        if descriptor.dump is None:
            raise TypeError(f"Cannot serialize {type(item).__name__}; no dump registered")
        data = {
            descriptor.fields.get(name) or name: value
            for name, value in descriptor.dump(item).items()
            if value is not None
        }
        property_name = descriptor.identifier_field_name

    if property_name and property_name != SERVICE_ID_PROPERTY and property_name in data:
        data[SERVICE_ID_PROPERTY] = data.pop(property_name)
    return data
