"""Convert loose OpenAPI schema dicts into the schema AST."""

from typing import Any

from .base import (
    PRIMITIVE_TYPES,
    ArrayType,
    ObjectType,
    PrimitiveType,
    RefType,
    SchemaNode,
    UnresolvedType,
)


def parse_schema(node: Any) -> SchemaNode:
    """Parse a schema object into a :data:`SchemaNode`.

    Never raises: anything that is not understood becomes
    :class:`UnresolvedType` so callers decide whether it is fatal.
    """
    if not isinstance(node, dict):
        return UnresolvedType()

    ref = node.get("$ref")
    if isinstance(ref, str):
        return RefType(ref=ref)

    schema_type = _schema_type(node)

    if schema_type == "array":
        items = node.get("items")
        if items is None:
            return ArrayType(items=UnresolvedType())
        return ArrayType(items=parse_schema(items))

    if schema_type == "object" or isinstance(node.get("properties"), dict):
        properties = node.get("properties")
        if not isinstance(properties, dict):
            properties = {}
        required = node.get("required")
        return ObjectType(
            properties={str(k): parse_schema(v) for k, v in properties.items()},
            required=[str(r) for r in required] if isinstance(required, list) else [],
        )

    if schema_type in PRIMITIVE_TYPES:
        fmt = node.get("format")
        return PrimitiveType(name=schema_type, format=fmt if isinstance(fmt, str) else None)

    return UnresolvedType(raw=schema_type)


def parse_parameter_schema(param: dict) -> SchemaNode:
    """Parse the schema of a parameter object.

    OpenAPI 3 nests it under ``schema``; Swagger 2 puts ``type`` and
    ``items`` directly on the parameter.
    """
    if "schema" in param:
        return parse_schema(param["schema"])
    if "type" in param:
        return parse_schema(param)
    return UnresolvedType()


def is_generic(node: SchemaNode) -> bool:
    """True for containers whose element or property types are unknown."""
    if isinstance(node, ArrayType):
        return isinstance(node.items, (UnresolvedType, RefType))
    if isinstance(node, ObjectType):
        return not node.properties
    return False


def _schema_type(node: dict) -> str | None:
    schema_type = node.get("type")
    # OpenAPI 3.1 allows a list of types, e.g. ["string", "null"]
    if isinstance(schema_type, list):
        non_null = [t for t in schema_type if t != "null"]
        schema_type = non_null[0] if non_null else None
    return schema_type if isinstance(schema_type, str) else None
