"""Validates a parsed spec before compilation.

Reports problems as :class:`ValidationIssue` objects instead of raising, so
the CLI can print all of them at once and decide whether to continue.
"""

from collections import Counter

from api_client_gen.parser.base import (
    PARAMETER_LOCATIONS,
    IssueSeverity,
    ValidationIssue,
)
from api_client_gen.parser.detect import SWAGGER2, detect_version
from api_client_gen.parser.security import SCHEME_TYPES
from api_client_gen.parser.swagger import (
    HTTP_METHODS,
    SWAGGER2_BODY_LOCATIONS,
    deref,
    json_pointer,
)

from .content import CONTENT_TYPE_PRIORITY, media_type


def validate_spec(doc: dict) -> list[ValidationIssue]:
    """Check a spec for problems that lead to skipped or degraded operations.

    Returns a list of issues; an empty list means nothing was found.
    """
    issues: list[ValidationIssue] = []

    def error(message: str, path: str) -> None:
        issues.append(ValidationIssue(severity=IssueSeverity.ERROR, message=message, path=path))

    def warning(message: str, path: str) -> None:
        issues.append(ValidationIssue(severity=IssueSeverity.WARNING, message=message, path=path))

    paths = doc.get("paths")
    if not isinstance(paths, dict):
        error('spec must contain a "paths" mapping', "/paths")
        return issues
    if not paths:
        warning("spec declares no paths", "/paths")

    swagger2 = detect_version(doc) == SWAGGER2
    locations = PARAMETER_LOCATIONS + (SWAGGER2_BODY_LOCATIONS if swagger2 else ())
    operation_ids: Counter = Counter()

    for path, path_item in paths.items():
        path_item = deref(doc, path_item)
        if not isinstance(path_item, dict):
            continue
        path_pointer = json_pointer("paths", str(path))

        _check_parameters(doc, path_item.get("parameters"), locations, path_pointer, warning)

        for method, operation in path_item.items():
            if not isinstance(method, str) or method.lower() not in HTTP_METHODS:
                continue
            if not isinstance(operation, dict):
                continue
            pointer = json_pointer("paths", str(path), method.lower())

            operation_id = operation.get("operationId")
            if isinstance(operation_id, str) and operation_id:
                operation_ids[operation_id] += 1
            else:
                warning("operation has no operationId and will be skipped", pointer)

            _check_parameters(doc, operation.get("parameters"), locations, pointer, warning)

            request_body = deref(doc, operation.get("requestBody"))
            content = request_body.get("content") if isinstance(request_body, dict) else None
            if isinstance(content, dict):
                for content_type in content:
                    if media_type(str(content_type)) not in CONTENT_TYPE_PRIORITY:
                        warning(
                            f'request body content type "{content_type}" is not recognised, '
                            "payload falls back to a string",
                            pointer + "/requestBody",
                        )

    for operation_id, count in operation_ids.items():
        if count > 1:
            warning(f'operationId "{operation_id}" is used by {count} operations', "/paths")

    _check_security_schemes(doc, swagger2, warning)
    return issues


def _check_parameters(doc, node, locations, pointer, warning) -> None:
    if not isinstance(node, list):
        return
    for raw in node:
        raw = deref(doc, raw)
        if not isinstance(raw, dict):
            continue
        location = raw.get("in")
        if isinstance(location, str) and location not in locations:
            warning(
                f'parameter "{raw.get("name")}" has unsupported location "{location}" and will be dropped',
                pointer + "/parameters",
            )


def _check_security_schemes(doc, swagger2, warning) -> None:
    if swagger2:
        raw_schemes = doc.get("securityDefinitions")
        pointer = "/securityDefinitions"
        known = SCHEME_TYPES + ("basic",)
    else:
        components = doc.get("components")
        raw_schemes = components.get("securitySchemes") if isinstance(components, dict) else None
        pointer = "/components/securitySchemes"
        known = SCHEME_TYPES

    if not isinstance(raw_schemes, dict):
        return
    for name, raw in raw_schemes.items():
        scheme_type = raw.get("type") if isinstance(raw, dict) else None
        if scheme_type not in known:
            warning(f'security scheme "{name}" has unknown type "{scheme_type}" and is ignored', f"{pointer}/{name}")
