"""Parameter collection and merging.

Path-item parameters are collected once per path; each operation's own
parameters are merged over them keyed by ``(name, in)``, the operation-level
declaration replacing the path-level one.
"""

from typing import Any, NamedTuple

from api_client_gen.parser.base import (
    PARAMETER_LOCATIONS,
    ArrayType,
    ObjectType,
    Param,
    PrimitiveType,
    RefType,
    SchemaNode,
    UnresolvedType,
)
from api_client_gen.parser.schema import parse_parameter_schema, parse_schema
from api_client_gen.parser.swagger import deref, resolve_ref

from .descriptor import SkipReason
from .naming import to_arg_name
from .serializer import default_explode, default_style

ParamKey = tuple[str, str]

# Swagger 2 collectionFormat -> (style, explode)
_COLLECTION_FORMATS = {
    "csv": ("form", False),
    "ssv": ("spaceDelimited", False),
    "pipes": ("pipeDelimited", False),
    "multi": ("form", True),
}


class CollectedParameters(NamedTuple):
    params: dict[ParamKey, Param]
    dropped: list[ParamKey]  # declared with an unsupported location
    forced_required: list[str]  # path parameters declared `required: false`


def collect_parameters(node: Any, doc: dict | None = None) -> CollectedParameters:
    """Collect a raw ``parameters`` list into Params keyed by (name, location).

    Entries without a string name or location are ignored; entries in any
    location other than path/query/header/cookie are dropped.
    """
    params: dict[ParamKey, Param] = {}
    dropped: list[ParamKey] = []
    forced_required: list[str] = []

    if not isinstance(node, list):
        return CollectedParameters(params, dropped, forced_required)

    for raw in node:
        if doc is not None:
            raw = deref(doc, raw)
        if not isinstance(raw, dict):
            continue

        name = raw.get("name")
        location = raw.get("in")
        if not isinstance(name, str) or not isinstance(location, str):
            continue
        if location not in PARAMETER_LOCATIONS:
            dropped.append((name, location))
            continue

        if location == "path" and raw.get("required") is False:
            forced_required.append(name)

        style = raw.get("style")
        explode = raw.get("explode")
        # Swagger 2 arrays
        collection_format = raw.get("collectionFormat")
        if not isinstance(style, str) and isinstance(collection_format, str):
            style, explode = _COLLECTION_FORMATS.get(collection_format, (style, explode))
        if not isinstance(style, str):
            style = default_style(location)
        if not isinstance(explode, bool):
            explode = default_explode(style)

        schema = raw.get("schema")
        description = raw.get("description")
        params[(name, location)] = Param(
            name=name,
            location=location,
            required=raw.get("required") is True or location == "path",
            param_type=_parameter_type(raw, doc),
            style=style,
            explode=explode,
            raw_schema=schema if isinstance(schema, dict) else None,
            arg_name=to_arg_name(name),
            description=description if isinstance(description, str) else "",
        )

    return CollectedParameters(params, dropped, forced_required)


def merge_parameters(
    path_level: dict[ParamKey, Param],
    operation_level: dict[ParamKey, Param],
) -> dict[ParamKey, Param]:
    """Merge operation-level parameters over path-level ones."""
    merged = dict(path_level)
    merged.update(operation_level)
    return merged


def check_parameters(params: dict[ParamKey, Param]) -> tuple[SkipReason, str] | None:
    """Return why a merged parameter set invalidates its operation, if it does.

    Path parameters must be primitives. Other locations only fail on an
    unresolved scalar; arrays and objects are accepted as they are.
    """
    for p in params.values():
        if p.location == "path":
            if not isinstance(p.param_type, PrimitiveType):
                return (
                    SkipReason.INVALID_PATH_PARAMETER,
                    f'path parameter "{p.name}" does not resolve to a primitive type',
                )
        elif isinstance(p.param_type, UnresolvedType):
            return (
                SkipReason.UNRESOLVED_PARAMETER_TYPE,
                f'{p.location} parameter "{p.name}" has an unresolved type',
            )
    return None


def degrade_parameter(param: Param) -> Param:
    """Replace a ``$ref`` parameter type by a generic object container.

    Only refs left after collection reach here: object targets and targets
    that cannot be resolved locally.
    """
    if isinstance(param.param_type, RefType):
        return param.model_copy(update={"param_type": ObjectType()})
    return param


def assign_arg_names(params: list[Param]) -> list[Param]:
    """Make argument names unique within one operation.

    A clash gets the location appended (``id`` + ``id_header``), then a
    counter if that is still taken.
    """
    seen: set[str] = set()
    result = []
    for p in params:
        name = p.arg_name
        if name in seen:
            name = f"{p.arg_name}_{p.location}"
            counter = 2
            while name in seen:
                name = f"{p.arg_name}_{p.location}_{counter}"
                counter += 1
            p = p.model_copy(update={"arg_name": name})
        seen.add(name)
        result.append(p)
    return result


def partition(params: dict[ParamKey, Param]) -> dict[str, list[Param]]:
    """Split merged parameters by location, keeping merge order."""
    groups: dict[str, list[Param]] = {location: [] for location in PARAMETER_LOCATIONS}
    for p in params.values():
        groups[p.location].append(p)
    return groups


def _parameter_type(raw: dict, doc: dict | None) -> SchemaNode:
    """Parse a parameter's schema, looking through a local ``$ref`` to a scalar or array."""
    param_type = parse_parameter_schema(raw)
    if not isinstance(param_type, RefType) or doc is None:
        return param_type

    target = resolve_ref(doc, param_type.ref)
    if not isinstance(target, dict):
        return param_type
    resolved = parse_schema(target)
    # objects and nested refs stay refs and are degraded to generic objects later
    if isinstance(resolved, (PrimitiveType, ArrayType)):
        return resolved
    return param_type
