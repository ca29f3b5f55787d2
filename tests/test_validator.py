from pathlib import Path

from api_client_gen.generator.validator import validate_spec
from api_client_gen.parser.base import IssueSeverity
from api_client_gen.parser.swagger import load_spec

FIXTURES = Path(__file__).parent / "fixtures"


def _messages(issues):
    return [i.message for i in issues]


class TestValidateSpec:
    def test_missing_paths_is_error(self):
        issues = validate_spec({"openapi": "3.0.0"})
        assert len(issues) == 1
        assert issues[0].severity == IssueSeverity.ERROR
        assert issues[0].path == "/paths"

    def test_empty_paths_warning(self):
        issues = validate_spec({"openapi": "3.0.0", "paths": {}})
        assert [(i.severity, i.path) for i in issues] == [(IssueSeverity.WARNING, "/paths")]

    def test_petstore_only_missing_operation_id(self):
        issues = validate_spec(load_spec(FIXTURES / "petstore.yaml"))
        assert [i.path for i in issues] == ["/paths/~1legacy/get"]
        assert "operationId" in issues[0].message

    def test_swagger2_body_locations_accepted(self):
        assert validate_spec(load_spec(FIXTURES / "petstore_v2.json")) == []

    def test_body_location_rejected_in_openapi3(self):
        doc = {"openapi": "3.0.0", "paths": {"/a": {"post": {
            "operationId": "a",
            "parameters": [{"name": "b", "in": "body"}],
        }}}}
        issues = validate_spec(doc)
        assert issues[0].path == "/paths/~1a/post/parameters"
        assert "unsupported location" in issues[0].message

    def test_duplicate_operation_ids(self):
        doc = {"openapi": "3.0.0", "paths": {
            "/a": {"get": {"operationId": "dup"}},
            "/b": {"get": {"operationId": "dup"}},
        }}
        assert _messages(validate_spec(doc)) == ['operationId "dup" is used by 2 operations']

    def test_unknown_content_type(self):
        doc = {"openapi": "3.0.0", "paths": {"/a": {"post": {
            "operationId": "a",
            "requestBody": {"content": {"application/json": {}, "application/octet-stream": {}}},
        }}}}
        issues = validate_spec(doc)
        assert len(issues) == 1
        assert "application/octet-stream" in issues[0].message
        assert issues[0].path == "/paths/~1a/post/requestBody"

    def test_path_level_parameter_checked(self):
        doc = {"openapi": "3.0.0", "paths": {"/a": {
            "parameters": [{"name": "x", "in": "matrix"}],
            "get": {"operationId": "a"},
        }}}
        assert [i.path for i in validate_spec(doc)] == ["/paths/~1a/parameters"]

    def test_unknown_security_scheme_type(self):
        doc = {
            "openapi": "3.0.0",
            "paths": {},
            "components": {"securitySchemes": {"tls": {"type": "mutualTLS"}, "ok": {"type": "http", "scheme": "basic"}}},
        }
        issues = validate_spec(doc)
        assert [i.path for i in issues] == ["/paths", "/components/securitySchemes/tls"]
