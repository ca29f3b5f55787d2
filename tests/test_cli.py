import json
from pathlib import Path

from click.testing import CliRunner

from api_client_gen.cli import main

FIXTURES = Path(__file__).parent / "fixtures"


def _invoke(*args):
    return CliRunner().invoke(main, list(args))


class TestCliCompile:
    def test_compile_to_file(self, tmp_path):
        output = tmp_path / "out" / "methods.json"
        result = _invoke("compile", str(FIXTURES / "petstore.yaml"), "-o", str(output))

        assert result.exit_code == 0, result.output
        data = json.loads(output.read_text(encoding="utf-8"))
        assert [m["name"] for m in data["methods"]] == [
            "listPets", "createPet", "showPetById", "deletePet", "upload_pet_photo",
        ]
        assert data["skipped"][0]["reason"] == "missing_operation_id"
        assert "Compiled 5 methods, skipped 1." in result.output

    def test_warnings_printed(self, tmp_path):
        result = _invoke("compile", str(FIXTURES / "petstore.yaml"), "-o", str(tmp_path / "m.json"))
        assert "[WARNING] /paths/~1legacy/get" in result.output

    def test_quiet_hides_warnings(self, tmp_path):
        result = _invoke("compile", str(FIXTURES / "petstore.yaml"), "-o", str(tmp_path / "m.json"), "-q")
        assert result.exit_code == 0
        assert "[WARNING]" not in result.output

    def test_swagger2(self, tmp_path):
        output = tmp_path / "methods.json"
        result = _invoke("compile", str(FIXTURES / "petstore_v2.json"), "-o", str(output))
        assert result.exit_code == 0, result.output
        assert len(json.loads(output.read_text())["methods"]) == 4

    def test_missing_spec_file(self, tmp_path):
        result = _invoke("compile", str(tmp_path / "nope.yaml"))
        assert result.exit_code == 1
        assert "does not exist" in result.output

    def test_spec_without_paths_aborts(self, tmp_path):
        spec = tmp_path / "spec.yaml"
        spec.write_text("openapi: 3.0.0\ninfo: {title: t, version: '1'}\n")
        result = _invoke("compile", str(spec))
        assert result.exit_code == 1
        assert "[ERROR] /paths" in result.output

    def test_spec_path_required(self):
        result = _invoke("compile")
        assert result.exit_code == 2

    def test_input_and_output_from_config(self, tmp_path):
        output = tmp_path / "from_config.json"
        config = tmp_path / "api_client.yaml"
        config.write_text(
            f"input: {FIXTURES / 'petstore.yaml'}\noutput: {output}\n",
            encoding="utf-8",
        )
        result = _invoke("compile", "--config", str(config))
        assert result.exit_code == 0, result.output
        assert output.exists()

    def test_unknown_environment(self, tmp_path):
        config = tmp_path / "api_client.yaml"
        config.write_text("environments:\n  dev: {}\n", encoding="utf-8")
        result = _invoke("compile", str(FIXTURES / "petstore.yaml"), "--config", str(config), "--env", "prod")
        assert result.exit_code == 1
        assert 'environment profile "prod" not found' in result.output

    def test_env_requires_config(self):
        result = _invoke("compile", str(FIXTURES / "petstore.yaml"), "--env", "dev")
        assert result.exit_code == 2

    def test_invalid_config(self, tmp_path):
        config = tmp_path / "api_client.yaml"
        config.write_text("client:\n  auth:\n    apiKey: secret\n", encoding="utf-8")
        result = _invoke("compile", str(FIXTURES / "petstore.yaml"), "--config", str(config))
        assert result.exit_code == 1
        assert "apiKey requires" in result.output

    def test_models_dir_resolves_types(self, tmp_path, monkeypatch):
        models = tmp_path / "models"
        models.mkdir()
        (models / "pet.py").write_text("class Pet:\n    pass\n")
        monkeypatch.chdir(tmp_path)
        output = tmp_path / "methods.json"

        result = _invoke(
            "compile", str(FIXTURES / "petstore.yaml"), "--models-dir", "models", "-o", str(output),
        )

        assert result.exit_code == 0, result.output
        data = json.loads(output.read_text())
        assert data["imports"] == ["models.pet"]
        assert data["methods"][1]["request_body"]["model_type"] == "Pet"


class TestCliValidate:
    def test_validate_petstore(self):
        result = _invoke("validate", str(FIXTURES / "petstore.yaml"))
        assert result.exit_code == 0
        assert "Found 1 issues (0 errors)." in result.output

    def test_validate_clean(self):
        result = _invoke("validate", str(FIXTURES / "petstore_v2.json"))
        assert result.exit_code == 0
        assert "No issues found." in result.output

    def test_validate_error_exit_code(self, tmp_path):
        spec = tmp_path / "spec.json"
        spec.write_text('{"openapi": "3.0.0"}')
        result = _invoke("validate", str(spec))
        assert result.exit_code == 1
        assert "[ERROR]" in result.output
