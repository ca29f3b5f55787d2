from pathlib import Path

import pytest

from api_client_gen.errors import SpecError
from api_client_gen.parser.detect import OPENAPI3, SWAGGER2, detect_version
from api_client_gen.parser.swagger import (
    deref,
    get_paths,
    iter_operations,
    json_pointer,
    load_spec,
    normalize_swagger2_operation,
    resolve_ref,
)

FIXTURES = Path(__file__).parent / "fixtures"


class TestDetectVersion:
    def test_openapi3(self):
        assert detect_version({"openapi": "3.1.0"}) == OPENAPI3

    def test_swagger2(self):
        assert detect_version({"swagger": "2.0"}) == SWAGGER2

    def test_guess_from_definitions(self):
        assert detect_version({"definitions": {}}) == SWAGGER2

    def test_unknown(self):
        assert detect_version({"paths": {}}) is None


class TestLoadSpec:
    def test_load_yaml(self):
        doc = load_spec(FIXTURES / "petstore.yaml")
        assert doc["info"]["title"] == "Petstore"

    def test_integer_response_codes_become_strings(self):
        doc = load_spec(FIXTURES / "petstore.yaml")
        assert "200" in doc["paths"]["/pets"]["get"]["responses"]

    def test_load_json(self):
        doc = load_spec(FIXTURES / "petstore_v2.json")
        assert doc["swagger"] == "2.0"

    def test_missing_file(self, tmp_path):
        with pytest.raises(SpecError, match="does not exist"):
            load_spec(tmp_path / "nope.yaml")

    def test_unsupported_extension(self, tmp_path):
        f = tmp_path / "spec.txt"
        f.write_text("openapi: 3.0.0")
        with pytest.raises(SpecError, match="unsupported spec file extension"):
            load_spec(f)

    def test_invalid_yaml(self, tmp_path):
        f = tmp_path / "spec.yaml"
        f.write_text("paths: [unclosed")
        with pytest.raises(SpecError, match="cannot parse spec"):
            load_spec(f)

    def test_top_level_list(self, tmp_path):
        f = tmp_path / "spec.yaml"
        f.write_text("- a\n- b\n")
        with pytest.raises(SpecError, match="top-level mapping"):
            load_spec(f)


class TestRefs:
    DOC = {"components": {"schemas": {"Pet": {"type": "object"}, "a/b": {"type": "string"}}}}

    def test_resolve_local_ref(self):
        assert resolve_ref(self.DOC, "#/components/schemas/Pet") == {"type": "object"}

    def test_resolve_escaped_ref(self):
        assert resolve_ref(self.DOC, "#/components/schemas/a~1b") == {"type": "string"}

    def test_dangling_ref(self):
        assert resolve_ref(self.DOC, "#/components/schemas/Missing") is None

    def test_external_ref(self):
        assert resolve_ref(self.DOC, "other.yaml#/Pet") is None

    def test_deref_keeps_unresolvable_node(self):
        node = {"$ref": "#/nowhere"}
        assert deref(self.DOC, node) is node

    def test_json_pointer_escapes(self):
        assert json_pointer("paths", "/users/{id}", "get") == "/paths/~1users~1{id}/get"


class TestIterOperations:
    def test_missing_paths_is_fatal(self):
        with pytest.raises(SpecError, match="paths"):
            get_paths({"openapi": "3.0.0"})

    def test_declaration_order_and_supported_methods(self):
        doc = {
            "openapi": "3.0.0",
            "paths": {
                "/b": {"post": {}, "options": {}, "get": {}},
                "/a": {"head": {}, "DELETE": {}},
            },
        }
        ops = [(path, method) for path, _, method, _ in iter_operations(doc)]
        assert ops == [("/b", "post"), ("/b", "get"), ("/a", "delete")]

    def test_petstore_operation_count(self):
        doc = load_spec(FIXTURES / "petstore.yaml")
        assert len(list(iter_operations(doc))) == 6


class TestSwagger2Normalization:
    def test_body_parameter_becomes_request_body(self):
        doc = load_spec(FIXTURES / "petstore_v2.json")
        op = normalize_swagger2_operation(doc, doc["paths"]["/pet"]["post"])
        assert op["requestBody"]["required"] is True
        assert op["requestBody"]["content"] == {
            "application/json": {"schema": {"$ref": "#/definitions/Pet"}},
        }
        assert op["parameters"] == []

    def test_form_data_becomes_urlencoded_body(self):
        doc = load_spec(FIXTURES / "petstore_v2.json")
        op = normalize_swagger2_operation(doc, doc["paths"]["/pet/{petId}"]["post"])
        schema = op["requestBody"]["content"]["application/x-www-form-urlencoded"]["schema"]
        assert schema["properties"] == {"name": {"type": "string"}}
        assert [p["name"] for p in op["parameters"]] == ["petId"]

    def test_file_parameter_selects_multipart(self):
        op = {"parameters": [{"name": "file", "in": "formData", "type": "file", "required": True}]}
        normalized = normalize_swagger2_operation({"swagger": "2.0"}, op)
        content = normalized["requestBody"]["content"]
        assert list(content) == ["multipart/form-data"]
        assert content["multipart/form-data"]["schema"]["required"] == ["file"]

    def test_response_schema_moves_under_produces(self):
        doc = {"swagger": "2.0", "produces": ["application/xml"]}
        op = {"responses": {"200": {"description": "ok", "schema": {"type": "string"}}}}
        normalized = normalize_swagger2_operation(doc, op)
        assert normalized["responses"]["200"]["content"] == {"application/xml": {"schema": {"type": "string"}}}
        assert "schema" not in normalized["responses"]["200"]

    def test_input_not_modified(self):
        op = {"parameters": [{"name": "body", "in": "body", "schema": {}}]}
        normalize_swagger2_operation({"swagger": "2.0"}, op)
        assert "requestBody" not in op
        assert len(op["parameters"]) == 1

    def test_path_level_body_parameter_inherited(self):
        doc = {"swagger": "2.0"}
        path_item = {"parameters": [{"name": "body", "in": "body", "required": True, "schema": {"type": "object"}}]}
        op = normalize_swagger2_operation(doc, {"operationId": "put"}, path_item)
        assert op["requestBody"]["required"] is True
        assert op["requestBody"]["content"] == {"application/json": {"schema": {"type": "object"}}}
        assert op["parameters"] == []

    def test_operation_form_field_overrides_path_level(self):
        path_item = {"parameters": [
            {"name": "name", "in": "formData", "type": "string"},
            {"name": "tag", "in": "formData", "type": "string"},
        ]}
        op = {"parameters": [{"name": "name", "in": "formData", "type": "integer", "required": True}]}
        normalized = normalize_swagger2_operation({"swagger": "2.0"}, op, path_item)
        schema = normalized["requestBody"]["content"]["application/x-www-form-urlencoded"]["schema"]
        assert schema["properties"] == {"name": {"type": "integer"}, "tag": {"type": "string"}}
        assert schema["required"] == ["name"]

    def test_iter_operations_strips_path_level_body(self):
        doc = {"swagger": "2.0", "paths": {"/pets/{id}": {
            "parameters": [
                {"name": "id", "in": "path", "required": True, "type": "string"},
                {"name": "body", "in": "body", "schema": {"type": "object"}},
            ],
            "put": {"operationId": "updatePet"},
        }}}
        [(_, path_item, method, operation)] = list(iter_operations(doc))
        assert [p["name"] for p in path_item["parameters"]] == ["id"]
        assert "application/json" in operation["requestBody"]["content"]
        assert len(doc["paths"]["/pets/{id}"]["parameters"]) == 2
