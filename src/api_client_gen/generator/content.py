"""Request body content negotiation.

Selects one media type from ``requestBody.content`` by priority and decides
how the payload is represented and encoded.
"""

from typing import Any, Mapping
from urllib.parse import quote

from api_client_gen.models.resolver import ModelsResolver

from .descriptor import BodyEncoding, ContentTypeInfo, PayloadKind, RequestBodyPlan
from .serializer import stringify

MULTIPART = "multipart/form-data"
FORM_URLENCODED = "application/x-www-form-urlencoded"
JSON = "application/json"
TEXT_PLAIN = "text/plain"
TEXT_HTML = "text/html"
XML = "application/xml"

CONTENT_TYPE_PRIORITY = (MULTIPART, FORM_URLENCODED, JSON, TEXT_PLAIN, TEXT_HTML, XML)

BODY_METHODS = ("post", "put", "patch")


def has_request_body(request_body: Any) -> bool:
    """True when a ``requestBody`` node declares at least one media type."""
    if not isinstance(request_body, dict):
        return False
    content = request_body.get("content")
    return isinstance(content, dict) and bool(content)


def media_type(content_type: str) -> str:
    """``Application/JSON; charset=utf-8`` -> ``application/json``."""
    return content_type.split(";", 1)[0].strip().lower()


def negotiate(content: Mapping[str, Any]) -> ContentTypeInfo | None:
    """Order the available content types and select the default.

    Known types come first in priority order, then everything else in
    declaration order.
    """
    if not content:
        return None

    declared = [str(ct) for ct in content]
    known = [ct for priority in CONTENT_TYPE_PRIORITY for ct in declared if media_type(ct) == priority]
    others = [ct for ct in declared if media_type(ct) not in CONTENT_TYPE_PRIORITY]
    available = known + others

    default = available[0]
    media = content[default]
    schema = media.get("schema") if isinstance(media, dict) else None
    return ContentTypeInfo(
        available=available,
        default=default,
        default_schema=schema if isinstance(schema, dict) else None,
    )


async def plan_request_body(
    request_body: dict,
    resolver: ModelsResolver,
) -> RequestBodyPlan | None:
    """Build the body plan for a declared ``requestBody``."""
    content = request_body.get("content")
    if not isinstance(content, dict):
        return None
    info = negotiate(content)
    if info is None:
        return None

    selected = media_type(info.default)
    schema = info.default_schema or {}
    required = request_body.get("required", True) is not False

    def plan(payload: PayloadKind, encoding: BodyEncoding, **extra) -> RequestBodyPlan:
        return RequestBodyPlan(
            content_type=info.default,
            available_content_types=info.available,
            payload=payload,
            encoding=encoding,
            required=required,
            **extra,
        )

    if selected == MULTIPART:
        return plan(PayloadKind.FIELD_BAG, BodyEncoding.MULTIPART, sets_content_type_header=False)

    if selected == FORM_URLENCODED:
        return plan(PayloadKind.STRING_MAP, BodyEncoding.FORM_URLENCODED)

    if selected in (TEXT_PLAIN, TEXT_HTML):
        return plan(PayloadKind.RAW_STRING, BodyEncoding.PASSTHROUGH)

    if selected == XML and schema.get("type") == "string":
        return plan(PayloadKind.RAW_STRING, BodyEncoding.PASSTHROUGH)

    model_type = await _resolve_model(schema, resolver)

    if selected in (JSON, XML):
        # TODO: real XML serialization; non-string XML bodies are JSON-encoded for now
        approximate = selected == XML
        if model_type is not None:
            return plan(
                PayloadKind.MODEL,
                BodyEncoding.MODEL_ENCODE,
                model_type=model_type,
                approximate=approximate,
            )
        return plan(PayloadKind.JSON_VALUE, BodyEncoding.JSON, approximate=approximate)

    # Any other content type: a model if one resolves, else a plain string
    if model_type is not None:
        return plan(PayloadKind.MODEL, BodyEncoding.MODEL_ENCODE, model_type=model_type)
    return plan(PayloadKind.RAW_STRING, BodyEncoding.PASSTHROUGH)


def encode_form(data: Mapping[str, Any]) -> str:
    """Percent-encode a flat map as ``key=value`` pairs joined by ``&``."""
    return "&".join(
        f"{quote(str(key), safe='')}={quote(stringify(value), safe='')}"
        for key, value in data.items()
    )


async def _resolve_model(schema: dict, resolver: ModelsResolver) -> str | None:
    ref = schema.get("$ref")
    if isinstance(ref, str):
        return await resolver.resolve_ref_to_type(ref)
    return None
