"""Normalized data models for parsed OpenAPI / Swagger documents.

Loose spec dicts are converted into these models once, at the boundary,
so the compiler works on a closed set of types instead of raw mappings.
"""

from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

PRIMITIVE_TYPES = ("string", "integer", "number", "boolean")

PARAMETER_LOCATIONS = ("path", "query", "header", "cookie")


class PrimitiveType(BaseModel):
    """A scalar schema: string, integer, number or boolean."""

    model_config = ConfigDict(frozen=True)

    tag: Literal["primitive"] = "primitive"
    name: str  # string / integer / number / boolean
    format: str | None = None


class ArrayType(BaseModel):
    model_config = ConfigDict(frozen=True)

    tag: Literal["array"] = "array"
    items: "SchemaNode"


class ObjectType(BaseModel):
    """An object schema. An empty property map is a generic container."""

    model_config = ConfigDict(frozen=True)

    tag: Literal["object"] = "object"
    properties: dict[str, "SchemaNode"] = {}
    required: list[str] = []


class RefType(BaseModel):
    model_config = ConfigDict(frozen=True)

    tag: Literal["ref"] = "ref"
    ref: str  # #/components/schemas/User


class UnresolvedType(BaseModel):
    """A schema whose type is missing or not supported."""

    model_config = ConfigDict(frozen=True)

    tag: Literal["unresolved"] = "unresolved"
    raw: str | None = None


SchemaNode = Annotated[
    Union[PrimitiveType, ArrayType, ObjectType, RefType, UnresolvedType],
    Field(discriminator="tag"),
]

ArrayType.model_rebuild()
ObjectType.model_rebuild()


class Param(BaseModel):
    """A single merged operation parameter (path, query, header or cookie)."""

    model_config = ConfigDict(frozen=True)

    name: str
    location: str  # path / query / header / cookie
    required: bool
    param_type: SchemaNode
    style: str
    explode: bool
    raw_schema: dict | None = None
    arg_name: str = ""
    description: str = ""

    @property
    def key(self) -> tuple[str, str]:
        return (self.name, self.location)


class SecurityScheme(BaseModel):
    """A named security scheme from ``securitySchemes`` or ``securityDefinitions``."""

    model_config = ConfigDict(frozen=True)

    name: str
    type: str  # apiKey / http / oauth2 / openIdConnect
    location: str | None = None  # apiKey: header / query / cookie
    param_name: str | None = None  # apiKey: header, query or cookie name
    scheme: str | None = None  # http: basic / bearer / digest
    bearer_format: str | None = None
    flows: dict = {}
    open_id_connect_url: str | None = None
    description: str = ""


class IssueSeverity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


class ValidationIssue(BaseModel):
    """A problem found in the spec, reported to the caller instead of logged."""

    model_config = ConfigDict(frozen=True)

    severity: IssueSeverity
    message: str
    path: str  # JSON pointer into the spec, e.g. /paths/~1users/get

    def __str__(self) -> str:
        return f"[{self.severity.value.upper()}] {self.path}: {self.message}"
