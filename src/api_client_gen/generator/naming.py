"""Identifier and path-template helpers.

- ``operationId`` -> method name (``list-users`` -> ``list_users``)
- parameter name -> argument name (``X-Request-ID`` -> ``x_request_id``)
- ``/users/{userId}`` -> ``/users/{user_id}`` with an ordered slot list
"""

import re

from pydantic import BaseModel, ConfigDict

from api_client_gen.parser.base import Param

_IDENTIFIER = re.compile(r"^[A-Za-z_]\w*$", re.ASCII)

_PLACEHOLDER = re.compile(r"\{([^{}]+)\}")


class PathTemplate(BaseModel):
    """A path with each ``{name}`` placeholder rewritten to ``{arg_name}``."""

    model_config = ConfigDict(frozen=True)

    raw: str  # /users/{userId}
    template: str  # /users/{user_id}
    slots: list[str]  # ["user_id"]


def sanitize_method_name(operation_id: str) -> str | None:
    """Turn an operationId into an identifier, or None if that is impossible.

    The first character becomes a lowercase letter, ``m`` + digit, or ``_``;
    every other non-alphanumeric ASCII character becomes ``_``.
    """
    if not operation_id:
        return None

    chars = []
    for i, ch in enumerate(operation_id):
        alnum = ch.isascii() and ch.isalnum()
        if i == 0:
            if alnum and ch.isdigit():
                chars.append(f"m{ch}")
            elif alnum:
                chars.append(ch.lower())
            else:
                chars.append("_")
        else:
            chars.append(ch if alnum else "_")

    name = "".join(chars)
    if not _IDENTIFIER.match(name):
        return None
    return name


def to_arg_name(name: str) -> str:
    """Convert a parameter name to a snake_case identifier."""
    s1 = re.sub(r"([A-Z]+)([A-Z][a-z])", r"\1_\2", name)
    s2 = re.sub(r"([a-z\d])([A-Z])", r"\1_\2", s1).lower()
    s3 = re.sub(r"[^a-z0-9_]", "_", s2, flags=re.ASCII)
    s3 = re.sub(r"_+", "_", s3).strip("_")
    if not s3:
        return "param"
    if s3[0].isdigit():
        return f"p_{s3}"
    return s3


def path_placeholders(path: str) -> list[str]:
    """Placeholder names in order of appearance, duplicates kept."""
    return _PLACEHOLDER.findall(path)


def build_path_template(path: str, path_params: list[Param]) -> PathTemplate | None:
    """Rewrite placeholders to argument slots.

    Returns None unless every path parameter has exactly one ``{name}``
    token and every token has a parameter.
    """
    placeholders = path_placeholders(path)
    declared = {p.name: p for p in path_params}

    if len(placeholders) != len(set(placeholders)):
        return None
    if set(placeholders) != set(declared):
        return None

    template = _PLACEHOLDER.sub(lambda m: "{" + declared[m.group(1)].arg_name + "}", path)
    return PathTemplate(
        raw=path,
        template=template,
        slots=[declared[name].arg_name for name in placeholders],
    )
