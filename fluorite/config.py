"""Project configuration and input resolution.

Turns raw CLI arguments into a validated, fully-populated ``ProjectConfig``.
All models use Pydantic v2 so they are validated at construction time.  The
resolver performs no filesystem writes: it only checks whether the target
directory exists and, for monorepo layouts, whether pnpm is installed.
"""

from __future__ import annotations

import asyncio
import os
import re
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any, Literal, Optional, get_args

from pydantic import BaseModel, ConfigDict, Field

from fluorite.errors import (
    DirectoryExists,
    InvalidDatabase,
    InvalidProjectType,
    InvalidSelection,
    InvalidTemplate,
    PnpmUnavailable,
)
from fluorite.utils import run_command, to_package_name

# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------

ProjectType = Literal["nextjs", "expo", "tauri", "flutter"]
DatabaseType = Literal["turso", "supabase", "sqlite"]
OrmType = Literal["prisma", "drizzle"]
StorageType = Literal["vercel-blob", "aws-s3", "cloudflare-r2", "supabase-storage"]

PROJECT_TYPES: list[str] = list(get_args(ProjectType))
DATABASES: list[str] = list(get_args(DatabaseType))
ORMS: list[str] = list(get_args(OrmType))
STORAGE_PROVIDERS: list[str] = list(get_args(StorageType))

PROJECT_TEMPLATES: dict[str, list[str]] = {
    "nextjs": ["typescript", "javascript", "app-router", "pages-router", "fullstack-admin"],
    "expo": ["typescript", "javascript", "tabs", "navigation", "fullstack-graphql"],
    "tauri": ["typescript", "javascript", "react", "vanilla", "desktop-admin", "cross-platform"],
    "flutter": ["dart", "material"],
}

DEFAULT_TEMPLATES: dict[str, str] = {
    "nextjs": "typescript",
    "expo": "typescript",
    "tauri": "typescript",
    "flutter": "dart",
}

ADVANCED_TEMPLATES: dict[str, tuple[str, ...]] = {
    "nextjs": ("fullstack-admin",),
    "expo": ("fullstack-graphql",),
    "tauri": ("desktop-admin", "cross-platform"),
}

DEFAULT_PROJECT_NAME = "my-fluorite-project"
MIN_PNPM_MAJOR = 10

# Workspace sub-directory that receives the framework app in monorepo mode.
MONOREPO_APP_DIRS: dict[str, str] = {
    "nextjs": "apps/web",
    "expo": "apps/mobile",
    "tauri": "apps/desktop",
    "flutter": "apps/mobile",
}


def validate_project_type(project_type: object) -> bool:
    """Return ``True`` if *project_type* is a supported type (case-sensitive)."""
    return isinstance(project_type, str) and project_type in PROJECT_TEMPLATES


def validate_template(project_type: str, template: object) -> bool:
    """Return ``True`` if *template* is in the catalog for *project_type*."""
    return isinstance(template, str) and template in PROJECT_TEMPLATES.get(project_type, [])


def validate_database(database: object) -> bool:
    return isinstance(database, str) and database in DATABASES


def is_advanced_template(project_type: str, template: str) -> bool:
    return template in ADVANCED_TEMPLATES.get(project_type, ())


def has_database_feature(template: str) -> bool:
    """Templates named ``*fullstack*`` or ``*admin*`` ship a database layer."""
    return "fullstack" in template or "admin" in template


# ---------------------------------------------------------------------------
# ProjectConfig
# ---------------------------------------------------------------------------


class ProjectConfig(BaseModel):
    """The resolved description of the project to generate.

    Immutable once constructed.  Provisioning steps attach credentials with
    :meth:`enrich`, which returns a new value instead of mutating this one.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(default=DEFAULT_PROJECT_NAME, min_length=1)
    directory: Path = Field(..., description="Target directory for the project")
    type: ProjectType
    template: str
    force: bool = False
    monorepo: bool = True
    database: Optional[DatabaseType] = None
    orm: Optional[OrmType] = None
    storage: Optional[StorageType] = None
    auth: bool = False
    deployment: bool = False
    package_manager: str = Field(default="pnpm")

    # Attached later by provisioning collaborators and carried through.
    database_config: Optional[dict[str, Any]] = None
    database_credentials: Optional[dict[str, Any]] = None
    blob_config: Optional[dict[str, Any]] = None
    pnpm_version: Optional[str] = None
    should_generate_docs: bool = False

    @property
    def slug(self) -> str:
        """npm-compatible package name derived from :attr:`name`."""
        return to_package_name(self.name)

    @property
    def app_directory(self) -> Path:
        """Directory that receives the framework app itself."""
        if self.monorepo:
            return self.directory / MONOREPO_APP_DIRS[self.type]
        return self.directory

    @property
    def is_advanced(self) -> bool:
        return is_advanced_template(self.type, self.template)

    def enrich(self, **fields: Any) -> "ProjectConfig":
        """Return a copy with provisioning fields attached.

        ``type`` is fixed once resolved and cannot be changed here.
        """
        if "type" in fields:
            raise InvalidSelection("Project type is immutable once resolved")
        unknown = set(fields) - set(type(self).model_fields)
        if unknown:
            raise InvalidSelection(f"Unknown config field(s): {', '.join(sorted(unknown))}")
        return self.model_copy(update=fields)


# ---------------------------------------------------------------------------
# Runtime settings
# ---------------------------------------------------------------------------


class Settings(BaseModel):
    """Invocation-wide settings that are not part of the project itself."""

    template_dir: Optional[Path] = Field(
        default=None, description="Override for the template corpus root"
    )
    skip_install: bool = Field(
        default=False, description="Skip package-manager and git-hook steps"
    )
    package_manager: str = Field(default="pnpm")
    locale: str = Field(default="en")
    install_timeout: Optional[int] = Field(
        default=None, ge=1, description="Seconds before an install step is killed"
    )
    verbose: bool = False

    @classmethod
    def from_env(cls) -> "Settings":
        """Build ``Settings`` from environment variables.

        Recognised variables (all optional):
            FLUORITE_TEMPLATE_DIR, FLUORITE_SKIP_INSTALL, FLUORITE_PACKAGE_MANAGER,
            FLUORITE_LOCALE, FLUORITE_INSTALL_TIMEOUT, FLUORITE_VERBOSE.
        """
        kwargs: dict[str, Any] = {}
        if os.environ.get("FLUORITE_TEMPLATE_DIR"):
            kwargs["template_dir"] = Path(os.environ["FLUORITE_TEMPLATE_DIR"])
        if os.environ.get("FLUORITE_SKIP_INSTALL"):
            kwargs["skip_install"] = _env_flag(os.environ["FLUORITE_SKIP_INSTALL"])
        if os.environ.get("FLUORITE_PACKAGE_MANAGER"):
            kwargs["package_manager"] = os.environ["FLUORITE_PACKAGE_MANAGER"]
        if os.environ.get("FLUORITE_LOCALE"):
            kwargs["locale"] = os.environ["FLUORITE_LOCALE"]
        if os.environ.get("FLUORITE_INSTALL_TIMEOUT"):
            kwargs["install_timeout"] = int(os.environ["FLUORITE_INSTALL_TIMEOUT"])
        if os.environ.get("FLUORITE_VERBOSE"):
            kwargs["verbose"] = _env_flag(os.environ["FLUORITE_VERBOSE"])
        return cls(**kwargs)


def _env_flag(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


# ---------------------------------------------------------------------------
# pnpm detection
# ---------------------------------------------------------------------------


class PnpmStatus(BaseModel):
    found: bool
    version: Optional[str] = None
    major: Optional[int] = None

    @property
    def compatible(self) -> bool:
        return self.found and self.major is not None and self.major >= MIN_PNPM_MAJOR


def parse_pnpm_version(output: str) -> PnpmStatus:
    """Parse ``pnpm --version`` output such as ``"10.18.1\\n"``."""
    match = re.search(r"(\d+)\.(\d+)\.(\d+)", output)
    if not match:
        return PnpmStatus(found=False)
    return PnpmStatus(found=True, version=match.group(0), major=int(match.group(1)))


async def query_pnpm(timeout: int = 5) -> PnpmStatus:
    """Run ``pnpm --version`` through :func:`run_command`.  Never raises."""
    try:
        returncode, stdout, _ = await run_command(["pnpm", "--version"], timeout=timeout)
    except OSError:
        return PnpmStatus(found=False)
    if returncode != 0:
        return PnpmStatus(found=False)
    return parse_pnpm_version(stdout)


def detect_pnpm() -> PnpmStatus:
    """Synchronous wrapper around :func:`query_pnpm` for :func:`resolve`.

    Must be called outside a running event loop.
    """
    return asyncio.run(query_pnpm())


# ---------------------------------------------------------------------------
# Resolver
# ---------------------------------------------------------------------------


def resolve_monorepo(simple: bool, monorepo: Optional[bool]) -> bool:
    """``--simple`` forces ``False``; an explicit flag wins next; default ``True``."""
    if simple:
        return False
    if monorepo is not None:
        return bool(monorepo)
    return True


def resolve(
    raw: Mapping[str, Any],
    *,
    pnpm_checker: Optional[Callable[[], PnpmStatus]] = None,
    path_exists: Callable[[Path], bool] = Path.exists,
) -> ProjectConfig:
    """Resolve raw CLI input into a validated ``ProjectConfig``.

    Args:
        raw: Mapping with the keys ``type``, ``name``, ``dir``, ``template``,
            ``force``, ``simple``, ``monorepo``, ``database``, ``orm``,
            ``storage``, ``auth``, ``deployment``, ``docs`` and
            ``package_manager``.
            Missing keys take their defaults.
        pnpm_checker: pnpm version check used when the monorepo layout is selected
            (defaults to :func:`detect_pnpm`).
        path_exists: Existence check for the target directory.

    Raises:
        ConfigError: For any invalid or inconsistent selection.
        PnpmUnavailable: When a monorepo is requested without pnpm >= 10.
    """
    project_type = raw.get("type")
    if not validate_project_type(project_type):
        raise InvalidProjectType(project_type, PROJECT_TYPES)

    name = raw.get("name") or DEFAULT_PROJECT_NAME
    directory = Path(raw.get("dir") or name)
    template = raw.get("template") or DEFAULT_TEMPLATES[project_type]

    if not validate_template(project_type, template):
        raise InvalidTemplate(project_type, template, PROJECT_TEMPLATES[project_type])

    database = raw.get("database") or None
    orm = raw.get("orm") or None
    storage = raw.get("storage") or None
    if storage == "none":
        storage = None
    if database == "none":
        database = None

    if database is not None and not validate_database(database):
        raise InvalidDatabase(database, DATABASES)
    if orm is not None:
        if orm not in ORMS:
            raise InvalidSelection(f"Invalid ORM: {orm!r} (supported: {', '.join(ORMS)})")
        if database is None:
            raise InvalidSelection(f"ORM {orm!r} requires a database selection")
    if storage is not None and storage not in STORAGE_PROVIDERS:
        raise InvalidSelection(
            f"Invalid storage provider: {storage!r} "
            f"(supported: {', '.join(STORAGE_PROVIDERS)})"
        )
    if project_type == "flutter" and (orm is not None or storage is not None):
        raise InvalidSelection("Flutter projects do not support ORM or storage selections")

    force = bool(raw.get("force"))
    monorepo = resolve_monorepo(bool(raw.get("simple")), raw.get("monorepo"))

    pnpm_version: Optional[str] = None
    if monorepo:
        status = (pnpm_checker or detect_pnpm)()
        if not status.found:
            raise PnpmUnavailable(
                "pnpm was not found; it is required for the monorepo layout "
                "(install it with `npm install -g pnpm` or pass --simple)"
            )
        if not status.compatible:
            raise PnpmUnavailable(
                f"pnpm {status.version} is too old; version {MIN_PNPM_MAJOR}.0.0 "
                "or newer is required for the monorepo layout",
                version=status.version,
            )
        pnpm_version = status.version

    if not force and path_exists(directory):
        raise DirectoryExists(directory)

    return ProjectConfig(
        name=name,
        directory=directory,
        type=project_type,
        template=template,
        force=force,
        monorepo=monorepo,
        database=database,
        orm=orm,
        storage=storage,
        auth=bool(raw.get("auth")),
        deployment=bool(raw.get("deployment")),
        package_manager=raw.get("package_manager") or "pnpm",
        pnpm_version=pnpm_version,
        should_generate_docs=bool(raw.get("docs")),
    )
