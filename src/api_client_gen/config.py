"""Generator configuration loaded from a YAML file.

Keys may be written in camelCase (``baseUrl``) or snake_case (``base_url``).
Environment profiles override the base client settings when selected.
"""

import os
from pathlib import Path
from urllib.parse import urlparse

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator
from pydantic.alias_generators import to_camel

from api_client_gen.errors import ConfigError


class _ConfigModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AuthConfig(_ConfigModel):
    """Credentials that authentication instructions are resolved against."""

    api_key: str | None = None
    api_key_header: str | None = None  # e.g. X-API-Key
    api_key_query: str | None = None  # e.g. api_key
    api_key_cookie: str | None = None
    api_keys: dict[str, str] = {}  # per security scheme name
    bearer_token: str | None = None
    bearer_token_env: str | None = None
    username: str | None = None
    password: str | None = None
    access_token: str | None = None

    @model_validator(mode="after")
    def _check_consistency(self) -> "AuthConfig":
        targets = (self.api_key_header, self.api_key_query, self.api_key_cookie)
        if self.api_key is not None and not any(targets):
            raise ValueError(
                "apiKey requires one of apiKeyHeader, apiKeyQuery or apiKeyCookie"
            )
        if self.api_key is None and any(targets):
            raise ValueError("apiKeyHeader, apiKeyQuery or apiKeyCookie specified but apiKey is missing")
        if self.bearer_token is not None and self.bearer_token_env is not None:
            raise ValueError("bearerToken and bearerTokenEnv are mutually exclusive")
        return self

    def resolve_bearer_token(self) -> str | None:
        """Return the literal bearer token, else the one from ``bearer_token_env``."""
        if self.bearer_token is not None:
            return self.bearer_token
        if self.bearer_token_env is not None:
            return os.environ.get(self.bearer_token_env)
        return None

    def api_key_for(self, scheme_name: str) -> str | None:
        return self.api_keys.get(scheme_name, self.api_key)


class ClientConfig(_ConfigModel):
    base_url: str | None = None
    headers: dict[str, str] = {}
    auth: AuthConfig | None = None

    @field_validator("base_url")
    @classmethod
    def _check_base_url(cls, value: str | None) -> str | None:
        if value is None:
            return value
        parsed = urlparse(value)
        if not parsed.scheme:
            raise ValueError("baseUrl must include a scheme (http:// or https://)")
        if not parsed.netloc:
            raise ValueError("baseUrl must include a host")
        return value


class EnvironmentProfile(ClientConfig):
    """Per-environment overrides (dev, staging, prod, ...)."""


class SchemaOverride(_ConfigModel):
    class_name: str | None = None


class ModelsConfig(_ConfigModel):
    """Where generated model modules live and how schemas map to classes."""

    output_dir: str = "models"
    schemas: dict[str, SchemaOverride] = {}


class GeneratorConfig(_ConfigModel):
    input: str | None = None
    output: str | None = None
    client: ClientConfig = Field(default_factory=ClientConfig)
    environments: dict[str, EnvironmentProfile] = {}
    models: ModelsConfig | None = None

    def for_environment(self, name: str) -> "GeneratorConfig":
        """Return a copy with the named profile merged over the base client."""
        profile = self.environments.get(name)
        if profile is None:
            available = ", ".join(sorted(self.environments)) or "none"
            raise ConfigError(f'environment profile "{name}" not found (available: {available})')

        client = ClientConfig(
            base_url=profile.base_url or self.client.base_url,
            headers={**self.client.headers, **profile.headers},
            auth=profile.auth or self.client.auth,
        )
        return self.model_copy(update={"client": client})


def load_config(path: Path) -> GeneratorConfig:
    """Load and validate a generator config file."""
    path = Path(path)
    if not path.exists():
        raise ConfigError(f"config file {path} does not exist")

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ConfigError(f"cannot parse config {path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"expected top-level mapping in {path}, got {type(data).__name__}")

    try:
        return GeneratorConfig.model_validate(data)
    except ValidationError as e:
        errors = [f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()]
        raise ConfigError(f"configuration validation failed for {path}", errors=errors) from e
