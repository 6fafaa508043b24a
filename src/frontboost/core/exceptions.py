from __future__ import annotations

from pathlib import Path
from typing import Any, NamedTuple


class FrontboostError(Exception):
    """Base exception for all frontboost errors.

    Attributes:
        code: Optional machine-readable error code (e.g. ``"CONFIG_SCHEMA"``).
        details: Arbitrary key/value context about the error.
    """

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.details = details or {}


# ---------------------------------------------------------------------------
# Configuration errors, raised before any file I/O
# ---------------------------------------------------------------------------


class ConfigError(FrontboostError): ...


class MalformedInputError(ConfigError):
    """The raw configuration is not parseable structured data."""


class MissingProjectError(ConfigError):
    """The requested project has no entry in the configuration map."""

    def __init__(self, project: str, available: list[str] | None = None) -> None:
        self.project = project
        self.available = sorted(available or [])
        super().__init__(
            f"Project {project!r} doesn't exist in your configuration file.",
            code="CONFIG_MISSING_PROJECT",
            details={"project": project, "available": self.available},
        )


class FieldViolation(NamedTuple):
    path: str
    message: str

    def __str__(self) -> str:
        return f"{self.path} {self.message}"


class SchemaViolationError(ConfigError):
    """The project entry does not satisfy the configuration schema."""

    def __init__(self, project: str, violations: list[FieldViolation]) -> None:
        self.project = project
        self.violations = list(violations)
        super().__init__(
            f"Configuration for project {project!r} is not valid "
            f"({len(self.violations)} error(s))",
            code="CONFIG_SCHEMA",
            details={"violations": [tuple(v) for v in self.violations]},
        )


class ConflictingOptionError(ConfigError):
    """Mutually exclusive options were enabled together."""

    def __init__(self, project: str, options: tuple[str, ...]) -> None:
        self.project = project
        self.options = options
        super().__init__(
            f"Choose only one of {', '.join(options)} for project {project!r}",
            code="CONFIG_CONFLICT",
            details={"options": list(options)},
        )


# ---------------------------------------------------------------------------
# Build-time errors
# ---------------------------------------------------------------------------


class FileSystemError(FrontboostError):
    """A directory or output file could not be created or written."""

    def __init__(self, message: str, path: Path | str) -> None:
        self.path = Path(path)
        super().__init__(message, code="FS_ERROR", details={"path": str(path)})


class PipelineError(FrontboostError):
    """A core transform step failed; fatal to that pipeline only."""

    def __init__(self, pipeline: str, cause: BaseException | str) -> None:
        self.pipeline = pipeline
        self.cause = cause
        super().__init__(
            f"Pipeline {pipeline!r} failed: {cause}",
            code="PIPELINE_FAILED",
            details={"pipeline": pipeline},
        )


class BuildError(FrontboostError): ...


class TransformError(FrontboostError):
    """Raised by toolchain adapters when an external transform fails."""

    def __init__(self, transform: str, message: str, path: str | None = None) -> None:
        self.transform = transform
        self.path = path
        prefix = f"{transform} ({path})" if path else transform
        super().__init__(
            f"{prefix}: {message}",
            code="TRANSFORM_FAILED",
            details={"transform": transform, "path": path},
        )


class TransformWarning(TransformError):
    """A transform finished with issues that must not block output."""
