"""Exceptions raised outside the per-operation soft-skip path."""


class ApiClientGenError(Exception):
    """Base class for all api-client-gen errors."""


class SpecError(ApiClientGenError):
    """The spec document cannot be loaded or has no usable ``paths``."""

    def __init__(self, message: str, *, source: str | None = None):
        self.message = message
        self.source = source
        super().__init__(str(self))

    def __str__(self) -> str:
        if self.source:
            return f"{self.source}: {self.message}"
        return self.message


class ConfigError(ApiClientGenError):
    """The generator configuration file is missing required structure or invalid."""

    def __init__(self, message: str, *, errors: list[str] | None = None):
        self.message = message
        self.errors = errors or []
        super().__init__(str(self))

    def __str__(self) -> str:
        if not self.errors:
            return self.message
        details = "\n".join(f"  - {e}" for e in self.errors)
        return f"{self.message}\n{details}"
