"""Security scheme catalog.

Reads OpenAPI 3 ``components.securitySchemes`` and Swagger 2
``securityDefinitions`` into :class:`SecurityScheme` models, and parses the
``security`` requirement lists found at the document root and on operations.
"""

from typing import Any

from .base import SecurityScheme
from .detect import SWAGGER2, detect_version

SCHEME_TYPES = ("apiKey", "http", "oauth2", "openIdConnect")

# Swagger 2 oauth2 "flow" -> OpenAPI 3 flow object key
_SWAGGER2_FLOWS = {
    "implicit": "implicit",
    "password": "password",
    "application": "clientCredentials",
    "accessCode": "authorizationCode",
}

SecurityRequirement = dict[str, list[str]]


def parse_security_schemes(doc: dict) -> dict[str, SecurityScheme]:
    """Parse every named security scheme the document declares.

    Schemes with an unknown ``type`` are left out.
    """
    if detect_version(doc) == SWAGGER2:
        raw_schemes = doc.get("securityDefinitions")
    else:
        components = doc.get("components")
        raw_schemes = components.get("securitySchemes") if isinstance(components, dict) else None

    if not isinstance(raw_schemes, dict):
        return {}

    schemes: dict[str, SecurityScheme] = {}
    for name, raw in raw_schemes.items():
        if not isinstance(raw, dict):
            continue
        scheme = _parse_scheme(str(name), raw)
        if scheme is not None:
            schemes[scheme.name] = scheme
    return schemes


def parse_security_requirements(node: Any) -> list[SecurityRequirement] | None:
    """Parse a ``security`` list.

    Returns None when the list is absent, so callers can tell "not declared"
    apart from an explicit empty list.
    """
    if not isinstance(node, list):
        return None

    requirements: list[SecurityRequirement] = []
    for item in node:
        if not isinstance(item, dict):
            requirements.append({})
            continue
        requirement: SecurityRequirement = {}
        for scheme_name, scopes in item.items():
            if isinstance(scopes, list):
                requirement[str(scheme_name)] = [str(s) for s in scopes]
            else:
                requirement[str(scheme_name)] = []
        requirements.append(requirement)
    return requirements


def effective_security(
    global_security: list[SecurityRequirement] | None,
    operation: dict,
) -> list[SecurityRequirement]:
    """Pick the requirement list that applies to an operation.

    An operation-level ``security`` key replaces the global list wholesale,
    even when it is empty.
    """
    if "security" in operation:
        return parse_security_requirements(operation["security"]) or []
    return list(global_security or [])


def _parse_scheme(name: str, raw: dict) -> SecurityScheme | None:
    scheme_type = raw.get("type")
    description = raw.get("description") if isinstance(raw.get("description"), str) else ""

    # Swagger 2 spelling of HTTP basic
    if scheme_type == "basic":
        return SecurityScheme(name=name, type="http", scheme="basic", description=description)

    if scheme_type not in SCHEME_TYPES:
        return None

    if scheme_type == "apiKey":
        return SecurityScheme(
            name=name,
            type="apiKey",
            location=_str_or_none(raw.get("in")),
            param_name=_str_or_none(raw.get("name")),
            description=description,
        )

    if scheme_type == "http":
        http_scheme = _str_or_none(raw.get("scheme"))
        return SecurityScheme(
            name=name,
            type="http",
            scheme=http_scheme.lower() if http_scheme else None,
            bearer_format=_str_or_none(raw.get("bearerFormat")),
            description=description,
        )

    if scheme_type == "oauth2":
        flows = raw.get("flows")
        if not isinstance(flows, dict):
            flows = _swagger2_flows(raw)
        return SecurityScheme(name=name, type="oauth2", flows=flows, description=description)

    return SecurityScheme(
        name=name,
        type="openIdConnect",
        open_id_connect_url=_str_or_none(raw.get("openIdConnectUrl")),
        description=description,
    )


def _swagger2_flows(raw: dict) -> dict:
    flow = raw.get("flow")
    if flow not in _SWAGGER2_FLOWS:
        return {}
    flow_object = {"scopes": raw.get("scopes") if isinstance(raw.get("scopes"), dict) else {}}
    for key in ("authorizationUrl", "tokenUrl"):
        if isinstance(raw.get(key), str):
            flow_object[key] = raw[key]
    return {_SWAGGER2_FLOWS[flow]: flow_object}


def _str_or_none(value: Any) -> str | None:
    return value if isinstance(value, str) else None
