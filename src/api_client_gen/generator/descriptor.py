"""Method descriptor IR handed to renderers.

A :class:`MethodDescriptor` describes one callable API operation: its
parameters and how each is encoded, the request body plan, the response
shape, and the authentication instructions. Descriptors are built once per
operation and never modified afterwards.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict

from api_client_gen.parser.base import Param, SchemaNode, ValidationIssue

from .naming import PathTemplate
from .serializer import EncodingPlan


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


# -- request body -------------------------------------------------------------


class PayloadKind(str, Enum):
    FIELD_BAG = "field_bag"  # multipart fields and files
    STRING_MAP = "string_map"  # flat string-keyed map
    RAW_STRING = "raw_string"
    MODEL = "model"  # resolved model type, encoded by the model itself
    JSON_VALUE = "json_value"  # generic structured value


class BodyEncoding(str, Enum):
    MULTIPART = "multipart"
    FORM_URLENCODED = "form_urlencoded"
    PASSTHROUGH = "passthrough"
    MODEL_ENCODE = "model_encode"
    JSON = "json"


class ContentTypeInfo(_Frozen):
    available: list[str]  # priority order
    default: str
    default_schema: dict | None = None


class RequestBodyPlan(_Frozen):
    content_type: str
    available_content_types: list[str]
    payload: PayloadKind
    encoding: BodyEncoding
    model_type: str | None = None
    sets_content_type_header: bool = True  # False for multipart: the transport adds the boundary
    approximate: bool = False  # XML encoded as JSON
    required: bool = True


# -- response -----------------------------------------------------------------


class ResponseKind(str, Enum):
    VOID = "void"
    OBJECT = "object"
    ARRAY = "array"


class ResponseHeaderInfo(_Frozen):
    name: str
    header_type: SchemaNode
    required: bool = False
    description: str = ""


class ResponseInfo(_Frozen):
    kind: ResponseKind
    model_type: str | None = None
    is_list: bool = False
    status: str | None = None  # status code the shape was taken from
    headers: list[ResponseHeaderInfo] = []

    @property
    def has_headers(self) -> bool:
        """True when the return value is wrapped in a ``(data, headers)`` pair."""
        return bool(self.headers)


# -- security -----------------------------------------------------------------


class AuthKind(str, Enum):
    API_KEY_HEADER = "api_key_header"
    API_KEY_QUERY = "api_key_query"
    API_KEY_COOKIE = "api_key_cookie"
    BASIC = "basic"
    BEARER = "bearer"
    DIGEST = "digest"  # recognized, no-op
    OAUTH2 = "oauth2"
    OPENID_CONNECT = "openid_connect"
    LEGACY_BEARER = "legacy_bearer"
    LEGACY_API_KEY_HEADER = "legacy_api_key_header"


class AuthInstruction(_Frozen):
    kind: AuthKind
    scheme_name: str | None = None
    target: str  # header / query / cookie
    key: str | None = None  # header, query parameter or cookie name
    prefix: str | None = None  # "Basic", "Bearer" or the bearer format
    credential: str  # api_key / basic_credentials / bearer_token / access_token
    scopes: list[str] = []
    conditional: bool = False  # only applied when the credential is configured
    implemented: bool = True


class SecurityPlan(_Frozen):
    requirement: dict[str, list[str]] | None = None  # the alternative that was used
    instructions: list[AuthInstruction] = []
    alternatives: int = 0
    legacy_fallback: bool = False


# -- method -------------------------------------------------------------------


class ParameterSpec(_Frozen):
    param: Param
    encoding: EncodingPlan
    generic: bool = False  # container with unknown element or property types


class MethodDescriptor(_Frozen):
    name: str
    operation_id: str
    http_method: str  # GET / POST / PUT / DELETE / PATCH
    path: PathTemplate
    path_params: list[ParameterSpec] = []
    query_params: list[ParameterSpec] = []
    header_params: list[ParameterSpec] = []
    cookie_params: list[ParameterSpec] = []
    request_body: RequestBodyPlan | None = None
    response: ResponseInfo
    security: SecurityPlan
    paginated: bool = False
    summary: str = ""
    description: str = ""
    tags: list[str] = []
    deprecated: bool = False

    @property
    def parameters(self) -> list[ParameterSpec]:
        return self.path_params + self.query_params + self.header_params + self.cookie_params


# -- results ------------------------------------------------------------------


class SkipReason(str, Enum):
    MISSING_OPERATION_ID = "missing_operation_id"
    INVALID_OPERATION_ID = "invalid_operation_id"
    INVALID_PATH_PARAMETER = "invalid_path_parameter"
    UNRESOLVED_PARAMETER_TYPE = "unresolved_parameter_type"
    PATH_MISMATCH = "path_mismatch"
    MISSING_REQUEST_BODY = "missing_request_body"
    UNEXPECTED_REQUEST_BODY = "unexpected_request_body"


class Skip(_Frozen):
    """An operation that produced no descriptor, and why."""

    http_method: str
    path: str
    reason: SkipReason
    detail: str = ""


class CompilationReport(BaseModel):
    methods: list[MethodDescriptor] = []
    imports: list[str] = []
    skipped: list[Skip] = []
    issues: list[ValidationIssue] = []

    def method(self, name: str) -> MethodDescriptor | None:
        for m in self.methods:
            if m.name == name:
                return m
        return None
