"""OpenAPI / Swagger document loading and operation extraction.

Loads OpenAPI 3.x and Swagger 2.0 documents from YAML or JSON and yields
their operations in declaration order, with Swagger 2 request bodies and
responses rewritten into the OpenAPI 3 ``content`` shape.
"""

import logging
from pathlib import Path
from typing import Any, Iterator

import yaml

from api_client_gen.errors import SpecError

from .detect import SWAGGER2, detect_version

logger = logging.getLogger(__name__)

HTTP_METHODS = ("get", "post", "put", "delete", "patch")

SPEC_EXTENSIONS = (".yaml", ".yml", ".json")

SWAGGER2_BODY_LOCATIONS = ("body", "formData")


def load_spec(file_path: Path) -> dict[str, Any]:
    """Load an OpenAPI/Swagger file into a plain dict."""
    file_path = Path(file_path)
    if not file_path.exists():
        raise SpecError("file does not exist", source=str(file_path))
    if file_path.suffix.lower() not in SPEC_EXTENSIONS:
        raise SpecError(
            f"unsupported spec file extension {file_path.suffix!r}, expected .yaml, .yml or .json",
            source=str(file_path),
        )

    text = file_path.read_text(encoding="utf-8")
    try:
        # JSON is a subset of YAML, one parser covers both
        doc = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise SpecError(f"cannot parse spec: {e}", source=str(file_path)) from e

    if not isinstance(doc, dict):
        raise SpecError(
            f"expected a top-level mapping, got {type(doc).__name__}",
            source=str(file_path),
        )

    logger.debug("Loaded spec %s (%s)", file_path, detect_version(doc) or "unknown version")
    return _stringify_keys(doc)


def get_paths(doc: dict[str, Any]) -> dict[str, Any]:
    """Return the ``paths`` mapping, raising when it is missing or malformed."""
    paths = doc.get("paths")
    if not isinstance(paths, dict):
        raise SpecError('spec must contain a "paths" mapping')
    return paths


def resolve_ref(doc: dict[str, Any], ref: str) -> Any:
    """Follow a single local ``#/...`` JSON pointer.

    Returns None for external or dangling references.
    """
    if not ref.startswith("#/"):
        return None
    node: Any = doc
    for part in ref[2:].split("/"):
        part = part.replace("~1", "/").replace("~0", "~")
        if not isinstance(node, dict) or part not in node:
            return None
        node = node[part]
    return node


def deref(doc: dict[str, Any], node: Any) -> Any:
    """Replace a ``{"$ref": ...}`` node by its target, one level deep."""
    if isinstance(node, dict) and isinstance(node.get("$ref"), str):
        target = resolve_ref(doc, node["$ref"])
        return target if target is not None else node
    return node


def json_pointer(*parts: str) -> str:
    """Build a JSON pointer such as ``/paths/~1users~1{id}/get``."""
    return "".join("/" + p.replace("~", "~0").replace("/", "~1") for p in parts)


def iter_operations(doc: dict[str, Any]) -> Iterator[tuple[str, dict, str, dict]]:
    """Yield ``(path, path_item, method, operation)`` in declaration order.

    Only GET/POST/PUT/DELETE/PATCH are yielded; other path-item keys are
    ignored. Swagger 2 operations come back normalized, and their path item
    without the body/formData parameters folded into each request body.
    """
    swagger2 = detect_version(doc) == SWAGGER2
    for path, path_item in get_paths(doc).items():
        path_item = deref(doc, path_item)
        if not isinstance(path, str) or not isinstance(path_item, dict):
            continue
        yielded_item = _without_body_parameters(doc, path_item) if swagger2 else path_item
        for method, operation in path_item.items():
            if not isinstance(method, str) or method.lower() not in HTTP_METHODS:
                continue
            if not isinstance(operation, dict):
                continue
            if swagger2:
                operation = normalize_swagger2_operation(doc, operation, path_item)
            yield path, yielded_item, method.lower(), operation


def normalize_swagger2_operation(doc: dict[str, Any], operation: dict, path_item: dict | None = None) -> dict:
    """Rewrite a Swagger 2 operation into the OpenAPI 3 body/response shape.

    ``in: body`` and ``in: formData`` parameters, the operation's own and
    those inherited from ``path_item``, become a ``requestBody``; response
    ``schema`` entries move under ``content``. The input is not modified.
    """
    operation = dict(operation)
    consumes = _media_types(operation, doc, "consumes")
    produces = _media_types(operation, doc, "produces")

    params = [deref(doc, p) for p in operation.get("parameters", []) or []]
    body_candidates = params + _inherited_body_parameters(doc, path_item, params)
    body_params = [p for p in body_candidates if isinstance(p, dict) and p.get("in") == "body"]
    form_params = [p for p in body_candidates if isinstance(p, dict) and p.get("in") == "formData"]

    if "requestBody" not in operation:
        if body_params:
            body = body_params[0]
            schema = body.get("schema", {})
            operation["requestBody"] = {
                "required": bool(body.get("required", False)),
                "content": {ct: {"schema": schema} for ct in consumes or ["application/json"]},
            }
        elif form_params:
            operation["requestBody"] = _form_request_body(form_params, consumes)

    if body_params or form_params:
        operation["parameters"] = [p for p in params if not _is_body_parameter(p)]

    responses = operation.get("responses")
    if isinstance(responses, dict):
        normalized = {}
        for status, response in responses.items():
            response = deref(doc, response)
            if isinstance(response, dict) and "schema" in response and "content" not in response:
                response = dict(response)
                media_type = produces[0] if produces else "application/json"
                response["content"] = {media_type: {"schema": response.pop("schema")}}
            normalized[str(status)] = response
        operation["responses"] = normalized

    return operation


def _inherited_body_parameters(doc: dict[str, Any], path_item: dict | None, declared: list) -> list[dict]:
    """Path-item body/formData parameters the operation does not redeclare."""
    if not isinstance(path_item, dict):
        return []
    own = {(p.get("name"), p.get("in")) for p in declared if isinstance(p, dict)}
    inherited = []
    for p in path_item.get("parameters", []) or []:
        p = deref(doc, p)
        if not _is_body_parameter(p):
            continue
        if (p.get("name"), p.get("in")) not in own:
            inherited.append(p)
    return inherited


def _without_body_parameters(doc: dict[str, Any], path_item: dict) -> dict:
    params = path_item.get("parameters")
    if not isinstance(params, list):
        return path_item
    kept = [p for p in params if not _is_body_parameter(deref(doc, p))]
    if len(kept) == len(params):
        return path_item
    return {**path_item, "parameters": kept}


def _is_body_parameter(param: Any) -> bool:
    return isinstance(param, dict) and param.get("in") in SWAGGER2_BODY_LOCATIONS


def _form_request_body(form_params: list[dict], consumes: list[str]) -> dict:
    properties = {}
    required = []
    has_file = False
    for p in form_params:
        name = p.get("name")
        if not isinstance(name, str):
            continue
        if p.get("type") == "file":
            has_file = True
            properties[name] = {"type": "string", "format": "binary"}
        else:
            properties[name] = {k: v for k, v in p.items() if k in ("type", "items", "format", "enum")}
        if p.get("required"):
            required.append(name)

    if has_file or "multipart/form-data" in consumes:
        content_type = "multipart/form-data"
    else:
        content_type = "application/x-www-form-urlencoded"

    return {
        "required": bool(required),
        "content": {
            content_type: {"schema": {"type": "object", "properties": properties, "required": required}},
        },
    }


def _media_types(operation: dict, doc: dict, key: str) -> list[str]:
    value = operation.get(key, doc.get(key))
    if isinstance(value, list):
        return [str(v) for v in value]
    return []


def _stringify_keys(node: Any) -> Any:
    """YAML turns unquoted response codes like 200 into ints; make every key a str."""
    if isinstance(node, dict):
        return {str(k): _stringify_keys(v) for k, v in node.items()}
    if isinstance(node, list):
        return [_stringify_keys(v) for v in node]
    return node
