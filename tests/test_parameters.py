from api_client_gen.generator.descriptor import SkipReason
from api_client_gen.generator.parameters import (
    assign_arg_names,
    check_parameters,
    collect_parameters,
    degrade_parameter,
    merge_parameters,
    partition,
)
from api_client_gen.parser.base import ArrayType, ObjectType, PrimitiveType, RefType, UnresolvedType


def _param(name, location, schema=None, **extra):
    raw = {"name": name, "in": location, **extra}
    if schema is not None:
        raw["schema"] = schema
    return raw


class TestCollectParameters:
    def test_defaults_per_location(self):
        collected = collect_parameters([
            _param("id", "path", {"type": "string"}, required=True),
            _param("q", "query", {"type": "string"}),
            _param("X-Trace", "header", {"type": "string"}),
            _param("session", "cookie", {"type": "string"}),
        ])
        styles = {key: (p.style, p.explode) for key, p in collected.params.items()}
        assert styles == {
            ("id", "path"): ("simple", False),
            ("q", "query"): ("form", True),
            ("X-Trace", "header"): ("simple", False),
            ("session", "cookie"): ("form", True),
        }

    def test_explicit_style_without_explode(self):
        collected = collect_parameters([_param("ids", "query", {"type": "array"}, style="pipeDelimited")])
        p = collected.params[("ids", "query")]
        assert p.style == "pipeDelimited"
        assert p.explode is False

    def test_path_params_always_required(self):
        collected = collect_parameters([_param("id", "path", {"type": "string"})])
        assert collected.params[("id", "path")].required is True

    def test_path_param_declared_optional_is_reported(self):
        collected = collect_parameters([_param("id", "path", {"type": "string"}, required=False)])
        assert collected.params[("id", "path")].required is True
        assert collected.forced_required == ["id"]

    def test_query_param_optional_by_default(self):
        collected = collect_parameters([_param("page", "query", {"type": "integer"})])
        assert collected.params[("page", "query")].required is False

    def test_unsupported_location_dropped(self):
        collected = collect_parameters([_param("body", "body", {"type": "object"})])
        assert collected.params == {}
        assert collected.dropped == [("body", "body")]

    def test_entries_without_name_ignored(self):
        collected = collect_parameters([{"in": "query"}, "junk", {"name": "x"}])
        assert collected.params == {}
        assert collected.dropped == []

    def test_not_a_list(self):
        assert collect_parameters(None).params == {}

    def test_ref_parameter_is_dereferenced(self):
        doc = {"components": {"parameters": {"Limit": _param("limit", "query", {"type": "integer"})}}}
        collected = collect_parameters([{"$ref": "#/components/parameters/Limit"}], doc)
        assert collected.params[("limit", "query")].param_type == PrimitiveType(name="integer")

    def test_swagger2_collection_format(self):
        collected = collect_parameters([
            {"name": "tags", "in": "query", "type": "array", "items": {"type": "string"}, "collectionFormat": "pipes"},
        ])
        p = collected.params[("tags", "query")]
        assert (p.style, p.explode) == ("pipeDelimited", False)

    def test_arg_name_is_snake_case(self):
        collected = collect_parameters([_param("X-Request-ID", "header", {"type": "string"})])
        assert collected.params[("X-Request-ID", "header")].arg_name == "x_request_id"


class TestMergeParameters:
    def test_operation_level_overwrites_path_level(self):
        path_level = collect_parameters([
            _param("id", "path", {"type": "string"}, description="path level"),
            _param("verbose", "query", {"type": "boolean"}),
        ]).params
        op_level = collect_parameters([
            _param("id", "path", {"type": "integer"}, description="operation level"),
        ]).params

        merged = merge_parameters(path_level, op_level)

        assert len(merged) == 2
        assert merged[("id", "path")] == op_level[("id", "path")]
        assert merged[("id", "path")].description == "operation level"

    def test_same_name_different_location_kept(self):
        merged = merge_parameters(
            collect_parameters([_param("id", "path", {"type": "string"})]).params,
            collect_parameters([_param("id", "header", {"type": "string"})]).params,
        )
        assert set(merged) == {("id", "path"), ("id", "header")}

    def test_partition_by_location(self):
        params = collect_parameters([
            _param("q", "query", {"type": "string"}),
            _param("id", "path", {"type": "string"}),
        ]).params
        groups = partition(params)
        assert [p.name for p in groups["path"]] == ["id"]
        assert [p.name for p in groups["query"]] == ["q"]
        assert groups["cookie"] == []


class TestCheckParameters:
    def test_valid(self):
        params = collect_parameters([_param("id", "path", {"type": "string"})]).params
        assert check_parameters(params) is None

    def test_path_param_without_schema(self):
        params = collect_parameters([_param("id", "path")]).params
        reason, detail = check_parameters(params)
        assert reason == SkipReason.INVALID_PATH_PARAMETER
        assert '"id"' in detail

    def test_path_param_array(self):
        params = collect_parameters([_param("ids", "path", {"type": "array", "items": {"type": "string"}})]).params
        assert check_parameters(params)[0] == SkipReason.INVALID_PATH_PARAMETER

    def test_path_param_ref(self):
        params = collect_parameters([_param("id", "path", {"$ref": "#/components/schemas/Id"})]).params
        assert check_parameters(params)[0] == SkipReason.INVALID_PATH_PARAMETER

    def test_unresolved_query_primitive(self):
        params = collect_parameters([_param("when", "query", {"type": "date"})]).params
        assert check_parameters(params)[0] == SkipReason.UNRESOLVED_PARAMETER_TYPE

    def test_unresolved_array_items_accepted(self):
        params = collect_parameters([_param("ids", "query", {"type": "array"})]).params
        assert params[("ids", "query")].param_type == ArrayType(items=UnresolvedType())
        assert check_parameters(params) is None

    def test_ref_query_param_degrades_to_object(self):
        params = collect_parameters([_param("filter", "query", {"$ref": "#/components/schemas/Filter"})]).params
        assert check_parameters(params) is None
        p = degrade_parameter(params[("filter", "query")])
        assert p.param_type == ObjectType()

    def test_ref_to_primitive_resolved_with_doc(self):
        doc = {"components": {"schemas": {"Status": {"type": "string", "enum": ["on", "off"]}}}}
        params = collect_parameters([_param("status", "query", {"$ref": "#/components/schemas/Status"})], doc).params
        assert params[("status", "query")].param_type == PrimitiveType(name="string")

    def test_ref_to_array_resolved_with_doc(self):
        doc = {"components": {"schemas": {"Ids": {"type": "array", "items": {"type": "integer"}}}}}
        params = collect_parameters([_param("ids", "query", {"$ref": "#/components/schemas/Ids"})], doc).params
        assert params[("ids", "query")].param_type == ArrayType(items=PrimitiveType(name="integer"))

    def test_ref_to_object_stays_ref(self):
        doc = {"components": {"schemas": {"Filter": {"type": "object", "properties": {"q": {"type": "string"}}}}}}
        params = collect_parameters([_param("filter", "query", {"$ref": "#/components/schemas/Filter"})], doc).params
        assert params[("filter", "query")].param_type == RefType(ref="#/components/schemas/Filter")

    def test_dangling_ref_stays_ref(self):
        params = collect_parameters([_param("f", "query", {"$ref": "#/components/schemas/Gone"})], {}).params
        assert isinstance(params[("f", "query")].param_type, RefType)

    def test_degrade_leaves_other_types(self):
        p = collect_parameters([_param("q", "query", {"type": "string"})]).params[("q", "query")]
        assert degrade_parameter(p) is p
        assert not isinstance(p.param_type, RefType)


class TestAssignArgNames:
    def test_collision_gets_location_suffix(self):
        params = collect_parameters([
            _param("id", "path", {"type": "string"}),
            _param("id", "header", {"type": "string"}),
            _param("ID", "query", {"type": "string"}),
        ]).params
        named = assign_arg_names(list(params.values()))
        assert [p.arg_name for p in named] == ["id", "id_header", "id_query"]

    def test_repeated_collision_gets_counter(self):
        params = collect_parameters([
            _param("user-id", "query", {"type": "string"}),
            _param("userId", "query", {"type": "string"}),
            _param("user_id", "query", {"type": "string"}),
        ]).params
        named = assign_arg_names(list(params.values()))
        assert [p.arg_name for p in named] == ["user_id", "user_id_query", "user_id_query_2"]
