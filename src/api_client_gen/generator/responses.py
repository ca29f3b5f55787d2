"""Response classification.

Works out what an operation returns: nothing, an object or a list, with an
optional resolved model type, plus the response headers exposed alongside
the body.
"""

from typing import Any

from api_client_gen.models.resolver import ModelsResolver
from api_client_gen.parser.base import ObjectType, UnresolvedType
from api_client_gen.parser.schema import parse_parameter_schema
from api_client_gen.parser.swagger import deref

from .descriptor import ResponseHeaderInfo, ResponseInfo, ResponseKind

SUCCESS_CODES = ("200", "201", "202")
NO_CONTENT = "204"


async def classify_response(
    responses: Any,
    resolver: ModelsResolver,
    doc: dict | None = None,
) -> ResponseInfo:
    """Classify an operation's ``responses`` map.

    An explicit 204 wins over everything else. Otherwise the first of
    200/201/202 decides the shape. When no success response is declared at
    all the result is a generic object.
    """
    if not isinstance(responses, dict) or not responses:
        return ResponseInfo(kind=ResponseKind.OBJECT)

    responses = {str(k): _deref(doc, v) for k, v in responses.items()}
    headers = _collect_headers(responses, doc)

    if NO_CONTENT in responses:
        return ResponseInfo(kind=ResponseKind.VOID, status=NO_CONTENT, headers=headers)

    status = next((code for code in SUCCESS_CODES if code in responses), None)
    if status is None:
        return ResponseInfo(kind=ResponseKind.OBJECT, headers=headers)

    schema = _body_schema(responses[status])
    if schema is None:
        return ResponseInfo(kind=ResponseKind.VOID, status=status, headers=headers)

    if schema.get("type") == "array":
        items = schema.get("items")
        model_type = None
        if isinstance(items, dict) and isinstance(items.get("$ref"), str):
            model_type = await resolver.resolve_ref_to_type(items["$ref"])
        return ResponseInfo(
            kind=ResponseKind.ARRAY,
            model_type=model_type,
            is_list=True,
            status=status,
            headers=headers,
        )

    model_type = None
    if isinstance(schema.get("$ref"), str):
        model_type = await resolver.resolve_ref_to_type(schema["$ref"])
    return ResponseInfo(kind=ResponseKind.OBJECT, model_type=model_type, status=status, headers=headers)


def _body_schema(response: Any) -> dict | None:
    """Schema of the first media type of a response, or None when it has no body."""
    if not isinstance(response, dict):
        return None
    content = response.get("content")
    if not isinstance(content, dict) or not content:
        return None
    media = next(iter(content.values()))
    schema = media.get("schema") if isinstance(media, dict) else None
    # content without a schema is still a body
    return schema if isinstance(schema, dict) else {}


def _collect_headers(responses: dict[str, Any], doc: dict | None) -> list[ResponseHeaderInfo]:
    """Headers of the response that decides the body, else of the first response declaring any."""
    order = [NO_CONTENT] if NO_CONTENT in responses else [c for c in SUCCESS_CODES if c in responses][:1]
    order += [code for code in responses if code not in order]

    for code in order:
        response = responses[code]
        raw_headers = response.get("headers") if isinstance(response, dict) else None
        if isinstance(raw_headers, dict) and raw_headers:
            return [_parse_header(str(name), _deref(doc, raw)) for name, raw in raw_headers.items()]
    return []


def _parse_header(name: str, raw: Any) -> ResponseHeaderInfo:
    if not isinstance(raw, dict):
        return ResponseHeaderInfo(name=name, header_type=UnresolvedType())
    header_type = parse_parameter_schema(raw)
    if isinstance(header_type, UnresolvedType) and raw.get("content"):
        header_type = ObjectType()
    description = raw.get("description")
    return ResponseHeaderInfo(
        name=name,
        header_type=header_type,
        required=raw.get("required") is True,
        description=description if isinstance(description, str) else "",
    )


def _deref(doc: dict | None, node: Any) -> Any:
    if doc is None:
        return node
    return deref(doc, node)
