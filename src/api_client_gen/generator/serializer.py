"""OpenAPI parameter serialization (``style`` x ``explode``).

:func:`plan_encoding` decides, per parameter, how a value is flattened into
its path/query/header/cookie slot. :func:`serialize_value` applies a plan to
a concrete value; generated clients are expected to reproduce exactly that
output.

Array values::

    form, explode=true     ids=1&ids=2        (repeated key)
    form, explode=false    ids=1,2
    spaceDelimited         ids=1 2
    pipeDelimited          ids=1|2
    simple                 1,2

Object values ``{"a": 1, "b": 2}``::

    deepObject             p[a]=1&p[b]=2
    form, explode=true     a=1&b=2            (keys flattened into the query)
    form, explode=false    p=a,1,b,2
    simple, explode=false  a,1,b,2
    simple, explode=true   a=1,b=2

Headers and cookies always resolve to a single string per parameter.
"""

from enum import Enum
from typing import Any, Iterable
from urllib.parse import quote

from pydantic import BaseModel, ConfigDict

from api_client_gen.parser.base import ArrayType, ObjectType, Param, RefType

_DEFAULT_STYLES = {
    "path": "simple",
    "query": "form",
    "header": "simple",
    "cookie": "form",
}


class EncodingStrategy(str, Enum):
    SCALAR = "scalar"  # str(value) under the parameter's own key
    REPEATED = "repeated"  # key -> list of values, one entry each
    DELIMITED = "delimited"  # items joined by `delimiter`
    DEEP_OBJECT = "deep_object"  # name[prop]=value per property
    FLATTENED = "flattened"  # prop=value per property, no parameter name
    KEY_VALUE_LIST = "key_value_list"  # k,v,k,v under the parameter's key
    KEY_VALUE_PAIRS = "key_value_pairs"  # k=v,k=v under the parameter's key


class EncodingPlan(BaseModel):
    model_config = ConfigDict(frozen=True)

    style: str
    explode: bool
    target: str  # path / query / header / cookie
    strategy: EncodingStrategy
    delimiter: str | None = None


def default_style(location: str) -> str:
    return _DEFAULT_STYLES.get(location, "form")


def default_explode(style: str) -> bool:
    """``form`` explodes by default; every other style does not."""
    return style == "form"


def plan_encoding(param: Param) -> EncodingPlan:
    """Work out how a parameter value is encoded for its location."""
    style, explode, location = param.style, param.explode, param.location
    single_string = location in ("header", "cookie")

    def plan(strategy: EncodingStrategy, delimiter: str | None = None) -> EncodingPlan:
        return EncodingPlan(
            style=style,
            explode=explode,
            target=location,
            strategy=strategy,
            delimiter=delimiter,
        )

    if isinstance(param.param_type, ArrayType):
        if single_string:
            return plan(EncodingStrategy.DELIMITED, ",")
        if style == "form":
            if explode:
                return plan(EncodingStrategy.REPEATED)
            return plan(EncodingStrategy.DELIMITED, ",")
        if style == "spaceDelimited":
            return plan(EncodingStrategy.DELIMITED, " ")
        if style == "pipeDelimited":
            return plan(EncodingStrategy.DELIMITED, "|")
        # simple or unmatched, explode or not
        return plan(EncodingStrategy.DELIMITED, ",")

    if isinstance(param.param_type, (ObjectType, RefType)):
        if not single_string:
            if style == "deepObject":
                return plan(EncodingStrategy.DEEP_OBJECT)
            if style == "form" and explode:
                return plan(EncodingStrategy.FLATTENED)
        if style == "simple" and explode:
            return plan(EncodingStrategy.KEY_VALUE_PAIRS, ",")
        return plan(EncodingStrategy.KEY_VALUE_LIST, ",")

    return plan(EncodingStrategy.SCALAR)


def serialize_value(plan: EncodingPlan, name: str, value: Any) -> dict[str, str | list[str]]:
    """Apply an encoding plan to a value.

    Returns the entries to add to the target: a string per key, or a list
    of strings for repeated keys. None values produce no entries.
    """
    if value is None:
        return {}

    strategy = plan.strategy
    if strategy == EncodingStrategy.SCALAR:
        return {name: stringify(value)}

    if strategy == EncodingStrategy.REPEATED:
        return {name: [stringify(v) for v in _as_list(value)]}

    if strategy == EncodingStrategy.DELIMITED:
        return {name: (plan.delimiter or ",").join(stringify(v) for v in _as_list(value))}

    items = _as_items(value)
    if strategy == EncodingStrategy.DEEP_OBJECT:
        return {f"{name}[{k}]": stringify(v) for k, v in items}
    if strategy == EncodingStrategy.FLATTENED:
        return {k: stringify(v) for k, v in items}
    if strategy == EncodingStrategy.KEY_VALUE_PAIRS:
        return {name: ",".join(f"{k}={stringify(v)}" for k, v in items)}

    flat: list[str] = []
    for k, v in items:
        flat.extend((k, stringify(v)))
    return {name: ",".join(flat)}


def cookie_header(pairs: Iterable[tuple[str, str]]) -> str | None:
    """Join cookie pairs into one ``Cookie`` header value, percent-encoding values."""
    parts = [f"{name}={quote(value, safe='')}" for name, value in pairs]
    if not parts:
        return None
    return "; ".join(parts)


def stringify(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return ""
    return str(value)


def _as_list(value: Any) -> list:
    if isinstance(value, (list, tuple, set)):
        return list(value)
    return [value]


def _as_items(value: Any) -> list[tuple[str, Any]]:
    if isinstance(value, dict):
        return [(str(k), v) for k, v in value.items()]
    return [(str(value), "")]
