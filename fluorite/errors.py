"""Exception hierarchy for the fluorite scaffolder.

Every error carries enough context (file path, operation, offending value)
for the caller to decide whether it is fatal.  Only the generator
orchestrators and the CLI make that decision.
"""

from __future__ import annotations

from pathlib import Path


class FluoriteError(Exception):
    """Base class for every error raised by fluorite."""


# ---------------------------------------------------------------------------
# Validation (raised before any filesystem mutation)
# ---------------------------------------------------------------------------


class ConfigError(FluoriteError):
    """Raised when user input cannot be resolved into a ``ProjectConfig``."""


class InvalidProjectType(ConfigError):
    def __init__(self, project_type: object, supported: list[str]) -> None:
        self.project_type = project_type
        self.supported = supported
        super().__init__(
            f"Invalid project type: {project_type!r} "
            f"(supported: {', '.join(supported)})"
        )


class InvalidTemplate(ConfigError):
    def __init__(self, project_type: str, template: object, available: list[str]) -> None:
        self.project_type = project_type
        self.template = template
        self.available = available
        super().__init__(
            f"Invalid template {template!r} for {project_type} "
            f"(available: {', '.join(available)})"
        )


class InvalidDatabase(ConfigError):
    def __init__(self, database: object, supported: list[str]) -> None:
        self.database = database
        self.supported = supported
        super().__init__(
            f"Invalid database: {database!r} (supported: {', '.join(supported)})"
        )


class InvalidSelection(ConfigError):
    """A feature selection is unknown or inconsistent with the others."""


class DirectoryExists(ConfigError):
    def __init__(self, directory: Path) -> None:
        self.directory = directory
        super().__init__(
            f"Directory already exists: {directory} (use --force to generate into it)"
        )


# ---------------------------------------------------------------------------
# Preconditions (fatal before generation begins)
# ---------------------------------------------------------------------------


class PreconditionError(FluoriteError):
    """A required external tool is missing or too old."""


class PnpmUnavailable(PreconditionError):
    def __init__(self, message: str, version: str | None = None) -> None:
        self.version = version
        super().__init__(message)


# ---------------------------------------------------------------------------
# Generation I/O (propagated to the orchestrator, no rollback)
# ---------------------------------------------------------------------------


class ScaffoldIOError(FluoriteError):
    """A filesystem operation failed part-way through generation.

    Files written before the failure are left in place.
    """

    def __init__(self, path: str | Path, operation: str, message: str = "") -> None:
        self.path = Path(path)
        self.operation = operation
        detail = f": {message}" if message else ""
        super().__init__(f"{operation} failed for {self.path}{detail}")


class TemplateNotFoundError(ScaffoldIOError):
    def __init__(self, path: str | Path) -> None:
        super().__init__(path, "template lookup", "template directory not found")


class TemplateCopyError(ScaffoldIOError):
    pass


class ManifestError(ScaffoldIOError):
    pass


class EnvFileError(ScaffoldIOError):
    pass


class NestedConditionalError(FluoriteError):
    """Raised by strict rendering when ``{{#if}}`` blocks are nested."""

    def __init__(self, flags: list[str]) -> None:
        self.flags = flags
        super().__init__(
            "Nested {{#if}} blocks are not supported "
            f"(outer flag(s): {', '.join(flags)})"
        )


class UnsupportedProjectType(FluoriteError):
    def __init__(self, project_type: str) -> None:
        self.project_type = project_type
        super().__init__(f"No generator registered for project type {project_type!r}")


# ---------------------------------------------------------------------------
# External commands (reported, usually non-fatal)
# ---------------------------------------------------------------------------


class InstallError(FluoriteError):
    """Raised when a package-manager step exits non-zero."""

    def __init__(self, command: str, returncode: int, stderr: str = "") -> None:
        self.command = command
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(f"`{command}` exited with code {returncode}")
