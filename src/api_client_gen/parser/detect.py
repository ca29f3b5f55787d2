"""Auto-detect the OpenAPI flavour of a loaded spec document."""

from typing import Any

OPENAPI3 = "openapi3"
SWAGGER2 = "swagger2"


def detect_version(doc: Any) -> str | None:
    """Detect which OpenAPI flavour a spec document uses.

    Returns: 'openapi3', 'swagger2', or None when neither marker is present.
    """
    if not isinstance(doc, dict):
        return None

    openapi = doc.get("openapi")
    if isinstance(openapi, str) and openapi.startswith("3"):
        return OPENAPI3

    swagger = doc.get("swagger")
    if swagger is not None and str(swagger).startswith("2"):
        return SWAGGER2

    # Documents without a version marker: guess from their structure
    if isinstance(doc.get("components"), dict):
        return OPENAPI3
    if isinstance(doc.get("definitions"), dict) or isinstance(doc.get("securityDefinitions"), dict):
        return SWAGGER2

    return None
