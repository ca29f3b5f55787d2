"""Resolve OpenAPI ``$ref`` pointers to model type names and import paths.

The compiler only sees the :class:`ModelsResolver` protocol. Three
implementations are provided:

- :class:`NoOpModelsResolver` resolves nothing, so every body and response
  falls back to generic structured values. This is the default.
- :class:`StaticModelsResolver` answers from in-memory mappings.
- :class:`FileBasedModelsResolver` scans a directory of generated Python
  model modules.
"""

import logging
import re
from pathlib import Path
from typing import Protocol

from api_client_gen.config import ModelsConfig

logger = logging.getLogger(__name__)

# Top-level class definitions: `class User(BaseModel):` or `class User:`
_CLASS_PATTERN = re.compile(r"^class\s+([A-Za-z_]\w*)\s*[(:]", re.MULTILINE)


class ModelsResolver(Protocol):
    async def resolve_ref_to_type(self, ref: str) -> str | None:
        """Resolve ``#/components/schemas/User`` to a type name such as ``User``."""
        ...

    async def get_import_path(self, type_name: str) -> str | None:
        """Return the import path of a model type, or None if it needs none."""
        ...

    async def is_model_type(self, type_name: str) -> bool:
        """True if ``type_name`` is a generated model rather than a built-in type."""
        ...


class NoOpModelsResolver:
    """Resolver that never resolves anything."""

    async def resolve_ref_to_type(self, ref: str) -> str | None:
        return None

    async def get_import_path(self, type_name: str) -> str | None:
        return None

    async def is_model_type(self, type_name: str) -> bool:
        return False


class StaticModelsResolver:
    """Resolver backed by explicit schema-name -> type and type -> import maps."""

    def __init__(self, types: dict[str, str], imports: dict[str, str] | None = None):
        self.types = dict(types)
        self.imports = dict(imports or {})

    async def resolve_ref_to_type(self, ref: str) -> str | None:
        return self.types.get(schema_name_from_ref(ref))

    async def get_import_path(self, type_name: str) -> str | None:
        return self.imports.get(type_name)

    async def is_model_type(self, type_name: str) -> bool:
        return type_name in self.types.values()


class FileBasedModelsResolver:
    """Resolver that reads generated model modules from disk.

    Every ``*.py`` file in the models directory is scanned for top-level
    classes. A file ``user_profile.py`` maps the schema name ``UserProfile``
    to its first class, every class name maps to itself, and the import path
    is the dotted module path relative to the project directory.

    The directory is scanned once, when the resolver is created, so the
    async lookups never touch the filesystem.
    """

    def __init__(self, project_dir: Path, models_config: ModelsConfig | None = None):
        self.project_dir = Path(project_dir)
        self.models_config = models_config or ModelsConfig()
        self._schema_to_type: dict[str, str] = {}
        self._type_to_import: dict[str, str] = {}
        self._model_types: set[str] = set()
        self._scan()

    @property
    def models_dir(self) -> Path:
        output_dir = Path(self.models_config.output_dir)
        if output_dir.is_absolute():
            return output_dir
        return self.project_dir / output_dir

    async def resolve_ref_to_type(self, ref: str) -> str | None:
        schema_name = schema_name_from_ref(ref)
        if not schema_name:
            return None

        override = self.models_config.schemas.get(schema_name)
        if override is not None and override.class_name:
            return override.class_name

        found = self._schema_to_type.get(schema_name)
        if found is not None:
            return found
        return self._schema_to_type.get(to_pascal_case(schema_name))

    async def get_import_path(self, type_name: str) -> str | None:
        return self._type_to_import.get(type_name)

    async def is_model_type(self, type_name: str) -> bool:
        return type_name in self._model_types

    def _scan(self) -> None:
        models_dir = self.models_dir
        if not models_dir.is_dir():
            logger.debug("Models directory %s does not exist, nothing to resolve", models_dir)
            return

        for file_path in sorted(models_dir.glob("*.py")):
            if file_path.name == "__init__.py":
                continue
            try:
                content = file_path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                logger.warning("Skipping unreadable model file %s: %s", file_path, e)
                continue
            self._register_file(file_path, content)

        logger.debug("Registered %d model types from %s", len(self._model_types), models_dir)

    def _register_file(self, file_path: Path, content: str) -> None:
        classes = _CLASS_PATTERN.findall(content)
        if not classes:
            return

        import_path = self._module_path(file_path)
        for class_name in classes:
            self._model_types.add(class_name)
            self._type_to_import[class_name] = import_path
            self._schema_to_type[class_name] = class_name

        stem = file_path.stem
        self._schema_to_type.setdefault(to_pascal_case(stem), classes[0])
        self._schema_to_type.setdefault(stem, classes[0])

    def _module_path(self, file_path: Path) -> str:
        try:
            relative = file_path.relative_to(self.project_dir)
        except ValueError:
            relative = Path(file_path.name)
        return ".".join(relative.with_suffix("").parts)


def schema_name_from_ref(ref: str) -> str:
    """``#/components/schemas/User`` or ``#/definitions/User`` -> ``User``."""
    return ref.rsplit("/", 1)[-1]


def to_pascal_case(name: str) -> str:
    """``user_profile`` -> ``UserProfile``; ``userProfile`` -> ``UserProfile``."""
    parts = [p for p in re.split(r"[_\s]+", re.sub(r"[^A-Za-z0-9_]", "_", name)) if p]
    if not parts:
        return name
    return "".join(p[0].upper() + p[1:] for p in parts)
