"""Security resolution.

Turns the effective security requirement list of an operation into a
:class:`SecurityPlan` of authentication instructions, and applies such a
plan to configured credentials.
"""

import base64
from typing import Iterable

from pydantic import BaseModel

from api_client_gen.config import AuthConfig
from api_client_gen.parser.base import SecurityScheme
from api_client_gen.parser.security import SecurityRequirement

from .descriptor import AuthInstruction, AuthKind, SecurityPlan

AUTHORIZATION = "Authorization"

_API_KEY_KINDS = {
    "header": AuthKind.API_KEY_HEADER,
    "query": AuthKind.API_KEY_QUERY,
    "cookie": AuthKind.API_KEY_COOKIE,
}


def resolve_security(
    requirements: list[SecurityRequirement],
    schemes: dict[str, SecurityScheme],
    query_param_names: Iterable[str] = (),
) -> SecurityPlan:
    """Build the security plan for one operation.

    Only the first alternative of ``requirements`` is used. Scheme names
    missing from the catalog are ignored. When no scheme of the
    alternative is recognised, the plan falls back to the generically
    configured bearer token and header API key.
    """
    query_names = set(query_param_names)
    requirement = requirements[0] if requirements else None

    instructions: list[AuthInstruction] = []
    matched = False
    for scheme_name, scopes in (requirement or {}).items():
        scheme = schemes.get(scheme_name)
        if scheme is None:
            continue
        instruction = _instruction_for(scheme, scopes)
        if instruction is None:
            continue
        matched = True
        # already sent as an ordinary query parameter
        if instruction.kind == AuthKind.API_KEY_QUERY and instruction.key in query_names:
            continue
        instructions.append(instruction)

    if not matched:
        return SecurityPlan(
            requirement=requirement,
            instructions=_legacy_instructions(),
            alternatives=len(requirements),
            legacy_fallback=True,
        )

    return SecurityPlan(
        requirement=requirement,
        instructions=instructions,
        alternatives=len(requirements),
    )


def _instruction_for(scheme: SecurityScheme, scopes: list[str]) -> AuthInstruction | None:
    if scheme.type == "apiKey":
        kind = _API_KEY_KINDS.get(scheme.location or "")
        if kind is None or not scheme.param_name:
            return None
        return AuthInstruction(
            kind=kind,
            scheme_name=scheme.name,
            target=scheme.location,
            key=scheme.param_name,
            credential="api_key",
            conditional=True,
        )

    if scheme.type == "http":
        if scheme.scheme == "basic":
            return AuthInstruction(
                kind=AuthKind.BASIC,
                scheme_name=scheme.name,
                target="header",
                key=AUTHORIZATION,
                prefix="Basic",
                credential="basic_credentials",
            )
        if scheme.scheme == "bearer":
            return AuthInstruction(
                kind=AuthKind.BEARER,
                scheme_name=scheme.name,
                target="header",
                key=AUTHORIZATION,
                prefix=scheme.bearer_format or "Bearer",
                credential="bearer_token",
            )
        if scheme.scheme == "digest":
            return AuthInstruction(
                kind=AuthKind.DIGEST,
                scheme_name=scheme.name,
                target="header",
                key=AUTHORIZATION,
                prefix="Digest",
                credential="digest_credentials",
                implemented=False,
            )
        return None

    if scheme.type in ("oauth2", "openIdConnect"):
        return AuthInstruction(
            kind=AuthKind.OAUTH2 if scheme.type == "oauth2" else AuthKind.OPENID_CONNECT,
            scheme_name=scheme.name,
            target="header",
            key=AUTHORIZATION,
            prefix="Bearer",
            credential="access_token",
            scopes=list(scopes),
        )

    return None


def _legacy_instructions() -> list[AuthInstruction]:
    return [
        AuthInstruction(
            kind=AuthKind.LEGACY_BEARER,
            target="header",
            key=AUTHORIZATION,
            prefix="Bearer",
            credential="bearer_token",
            conditional=True,
        ),
        # header name comes from the configured apiKeyHeader
        AuthInstruction(
            kind=AuthKind.LEGACY_API_KEY_HEADER,
            target="header",
            credential="api_key",
            conditional=True,
        ),
    ]


# -- applying credentials -----------------------------------------------------


class AppliedAuth(BaseModel):
    """Concrete request additions produced from a plan and configured credentials."""

    headers: dict[str, str] = {}
    query: dict[str, str] = {}
    cookies: list[tuple[str, str]] = []


def basic_authorization(username: str, password: str) -> str:
    """``Basic base64(username:password)``"""
    credentials = base64.b64encode(f"{username}:{password}".encode("utf-8")).decode("ascii")
    return f"Basic {credentials}"


def bearer_authorization(token: str, bearer_format: str | None = None) -> str:
    return f"{bearer_format or 'Bearer'} {token}"


def apply_auth(plan: SecurityPlan, auth: AuthConfig | None) -> AppliedAuth:
    """Resolve every instruction of ``plan`` against ``auth``.

    Instructions whose credentials are not configured contribute nothing;
    digest is recognised but never applied.
    """
    applied = AppliedAuth()
    if auth is None:
        return applied

    for instruction in plan.instructions:
        kind = instruction.kind

        if kind in (AuthKind.API_KEY_HEADER, AuthKind.API_KEY_QUERY, AuthKind.API_KEY_COOKIE):
            value = auth.api_key_for(instruction.scheme_name or "")
            if value is None or not instruction.key:
                continue
            if kind == AuthKind.API_KEY_HEADER:
                applied.headers[instruction.key] = value
            elif kind == AuthKind.API_KEY_QUERY:
                applied.query[instruction.key] = value
            else:
                applied.cookies.append((instruction.key, value))

        elif kind == AuthKind.BASIC:
            if auth.username is not None and auth.password is not None:
                applied.headers[AUTHORIZATION] = basic_authorization(auth.username, auth.password)

        elif kind in (AuthKind.BEARER, AuthKind.LEGACY_BEARER):
            token = auth.resolve_bearer_token()
            if token:
                applied.headers[AUTHORIZATION] = bearer_authorization(token, instruction.prefix)

        elif kind in (AuthKind.OAUTH2, AuthKind.OPENID_CONNECT):
            if auth.access_token:
                applied.headers[AUTHORIZATION] = bearer_authorization(auth.access_token)

        elif kind == AuthKind.LEGACY_API_KEY_HEADER:
            if auth.api_key_header and auth.api_key is not None:
                applied.headers[auth.api_key_header] = auth.api_key

    return applied
