"""Shared state and the common step sequence for the framework generators.

A :class:`FrameworkGenerator` produces one application directory in a fixed
order::

    create directories -> copy template layers -> render bundled assets
    -> write config files -> write env files -> merge package manifests

Subclasses override the individual steps; none of them branches back.  Every
write goes straight to the target directory, so a failure part-way through
leaves the files written so far in place.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, ClassVar, Optional

from rich.console import Console

from fluorite.config import MONOREPO_APP_DIRS, ProjectConfig, Settings
from fluorite.utils import console as default_console
from fluorite.utils import ensure_dir, make_executable, print_step, print_warning

from .copier import copy_template, resolve_template_root, template_sources
from .envfile import append_env_file, append_env_to_targets
from .features import (
    AUTH_ENV,
    ManifestFragment,
    apply_env_updates,
    auth_fragment,
    database_env,
    database_packages,
    deployment_fragment,
    storage_env,
    storage_packages,
)
from .installer import InstallOutcome
from .manifest import add_postinstall_script, merge_package_json
from .markup import TemplateVariables, build_variables
from .templates import TemplateRenderer, asset_context


# ---------------------------------------------------------------------------
# Invocation context and result
# ---------------------------------------------------------------------------


@dataclass
class GenerationContext:
    """Everything a generator needs besides the project config.

    Built once per CLI invocation and passed down explicitly; nothing in the
    scaffolder reads module-level state.
    """

    console: Console
    settings: Settings
    renderer: TemplateRenderer
    package_manager: str
    locale: str

    @classmethod
    def create(
        cls,
        settings: Settings | None = None,
        *,
        console: Console | None = None,
        package_manager: str | None = None,
    ) -> GenerationContext:
        settings = settings or Settings()
        return cls(
            console=console or default_console,
            settings=settings,
            renderer=TemplateRenderer(),
            package_manager=package_manager or settings.package_manager,
            locale=settings.locale,
        )


@dataclass
class GenerationResult:
    """What a generation run wrote and what went wrong along the way."""

    project_dir: Path
    app_dir: Path
    files: list[Path] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    install: Optional[InstallOutcome] = None

    def record(self, *paths: Path) -> None:
        for path in paths:
            if path not in self.files:
                self.files.append(path)

    def relative_files(self) -> list[str]:
        """Written files as sorted POSIX paths relative to :attr:`project_dir`."""
        return sorted(p.relative_to(self.project_dir).as_posix() for p in self.files)


# ---------------------------------------------------------------------------
# Framework generator base
# ---------------------------------------------------------------------------


class FrameworkGenerator:
    """Base class for the per-framework orchestrators."""

    project_type: ClassVar[str] = ""

    # Apps without a server runtime get the database driver but no ORM.
    supports_orm: ClassVar[bool] = True

    # Created before the template is copied, relative to the app directory.
    directories: ClassVar[tuple[str, ...]] = ()

    # Template files rendered through the markup renderer.
    variable_files: ClassVar[tuple[str, ...]] = ()
    executable_files: ClassVar[tuple[str, ...]] = ()

    # JSON template files merged into an existing copy in the target.
    manifest_files: ClassVar[tuple[str, ...]] = ("tsconfig.json", "jsconfig.json")

    # Base-layer paths dropped when a given template overlay is selected.
    template_excludes: ClassVar[dict[str, tuple[str, ...]]] = {}

    # Paths only copied when the matching feature is selected.
    database_files: ClassVar[tuple[str, ...]] = ()
    prisma_files: ClassVar[tuple[str, ...]] = ()
    drizzle_files: ClassVar[tuple[str, ...]] = ()
    storage_files: ClassVar[tuple[str, ...]] = ()
    auth_files: ClassVar[tuple[str, ...]] = ()

    def __init__(
        self,
        config: ProjectConfig,
        context: GenerationContext,
        result: GenerationResult,
    ) -> None:
        self.config = config
        self.context = context
        self.result = result
        self.root = config.app_directory

    async def generate(self) -> None:
        if self.config.orm is not None and not self.supports_orm:
            self.warn(
                f"ORM {self.config.orm!r} is not used by {self.project_type} apps; "
                "only the database client is installed"
            )
        await self.create_directories()
        await self.copy_template()
        await self.render_assets()
        await self.write_config_files()
        await self.write_env_files()
        await self.merge_manifests()

    # -- Output -------------------------------------------------------------

    def step(self, message: str) -> None:
        print_step(message, out=self.context.console)

    def detail(self, message: str) -> None:
        """Print *message* only when verbose output is enabled."""
        if self.context.settings.verbose:
            self.context.console.print(f"    [dim]{message}[/dim]")

    def warn(self, message: str) -> None:
        self.result.warnings.append(message)
        print_warning(message, out=self.context.console)

    # -- Steps ----------------------------------------------------------------

    async def create_directories(self) -> None:
        await asyncio.to_thread(ensure_dir, self.root)
        for rel in self.directories:
            await asyncio.to_thread(ensure_dir, self.root / rel)

    def variables(self) -> TemplateVariables:
        """Fresh substitutions and flags for this project."""
        variables = build_variables(self.config)
        variables.substitutions["locale"] = self.context.locale
        return variables

    def exclude_patterns(self) -> list[str]:
        config = self.config
        patterns: list[str] = []
        if config.database is None:
            patterns.extend(self.database_files)
        if self.orm != "prisma":
            patterns.extend(self.prisma_files)
        if self.orm != "drizzle":
            patterns.extend(self.drizzle_files)
        if config.storage is None:
            patterns.extend(self.storage_files)
        if not config.auth:
            patterns.extend(self.auth_files)
        return patterns

    async def copy_template(self) -> None:
        corpus = resolve_template_root(self.context.settings.template_dir)
        layers = template_sources(corpus, self.project_type, self.config.template)
        feature_excludes = self.exclude_patterns()
        template_excludes = self.template_excludes.get(self.config.template, ())

        copied = 0
        for layer in layers:
            excludes = list(feature_excludes)
            if layer.name == "base":
                excludes.extend(template_excludes)
            variables = self.variables()
            copy = await copy_template(
                layer,
                self.root,
                variable_files=self.variable_files,
                manifest_files=self.manifest_files,
                substitutions=variables.substitutions,
                flags=variables.flags,
                exclude_patterns=excludes,
                executable_files=self.executable_files,
            )
            self.result.record(*(self.root / rel for rel in copy.files))
            for rel in copy.files:
                self.detail(f"{layer.name}/{rel}")
            copied += len(copy.files)
        self.step(f"Copied {self.project_type}/{self.config.template} template ({copied} files)")

    async def render_assets(self) -> None:
        """Render the bundled README, .gitignore and setup scripts."""
        renderer = self.context.renderer
        ctx = asset_context(self.config, self.context.package_manager)
        ctx["orm"] = self.orm

        if not self.config.monorepo:
            self.result.record(
                await renderer.render_to_file("README.md.j2", self.root / "README.md", ctx),
                await renderer.render_to_file("gitignore.j2", self.root / ".gitignore", ctx),
            )

        for script in self.setup_scripts():
            out = await renderer.render_to_file(
                f"scripts/{script}.j2", self.root / "scripts" / script, ctx
            )
            await asyncio.to_thread(make_executable, out)
            self.result.record(out)

    def setup_scripts(self) -> list[str]:
        scripts: list[str] = []
        if self.config.database in ("turso", "supabase"):
            scripts.append(f"setup-{self.config.database}.sh")
        if self.config.storage == "vercel-blob":
            scripts.append("setup-vercel-blob.sh")
        return scripts

    async def write_config_files(self) -> None:
        """Write generator-owned JSON configs (tsconfig.json, app.json, ...)."""

    def env_snippet(self) -> str:
        """Placeholder env lines for the selected features."""
        parts = [database_env(self.config.database), storage_env(self.config.storage)]
        if self.config.auth:
            parts.append(AUTH_ENV)
        return "\n".join(part for part in parts if part)

    async def write_env_files(self) -> None:
        snippet = self.env_snippet()
        if snippet:
            written = await append_env_to_targets(
                self.root, snippet, framework=self.project_type
            )
            if await append_env_file(self.root / ".env.example", snippet):
                written.append(self.root / ".env.example")
            self.result.record(*written)

        record = self.provisioned_record()
        if record is not None:
            self.result.record(*await apply_env_updates(self.root, record))

        if snippet or record is not None:
            self.step("Wrote environment files")

    def provisioned_record(self) -> dict[str, Any] | None:
        """Credentials attached to the config by a provisioning step, if any."""
        if not (self.config.database_credentials or self.config.blob_config):
            return None
        return {
            "turso": self.config.database_credentials or {},
            "vercelBlob": self.config.blob_config or {},
        }

    # -- Manifests ----------------------------------------------------------

    def package_name(self) -> str:
        if self.config.monorepo:
            return Path(MONOREPO_APP_DIRS[self.project_type]).name
        return self.config.slug

    def package_json(self) -> dict[str, Any]:
        """Baseline package.json for the framework."""
        return {}

    @property
    def orm(self) -> str | None:
        return self.config.orm if self.supports_orm else None

    def feature_fragment(self) -> ManifestFragment:
        config = self.config
        fragment = database_packages(config.database, self.orm)
        fragment |= storage_packages(config.storage)
        if config.auth:
            fragment |= auth_fragment(config.type)
        if config.deployment:
            fragment |= deployment_fragment()
        return fragment

    async def merge_manifests(self) -> None:
        manifest = self.root / "package.json"
        await merge_package_json(self.root, self.package_json())
        additions = self.feature_fragment().as_additions()
        if additions:
            await merge_package_json(self.root, additions)
        if self.orm == "prisma":
            await add_postinstall_script(self.root, "prisma generate")
        self.result.record(manifest)
        self.step("Merged package.json")
