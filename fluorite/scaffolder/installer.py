"""Package-manager, git-hook and Biome steps run after the files are written.

The install shells out with inherited stdio so the user sees the package
manager's own progress output.  None of the steps is fatal: an install
failure is reported back to the orchestrator as an :class:`InstallOutcome`
carrying the command to run manually, and the later steps only print a
warning.
"""

from __future__ import annotations

import asyncio
import re
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from fluorite.errors import InstallError, ManifestError
from fluorite.utils import format_command, print_warning, run_command

from .manifest import read_manifest, write_config_file

if TYPE_CHECKING:
    from fluorite.config import ProjectConfig

    from .base import GenerationContext


@dataclass
class InstallOutcome:
    """Result of the dependency-install step."""

    command: str
    skipped: bool = False
    succeeded: bool = False
    error: str | None = None


def install_command(config: ProjectConfig, package_manager: str) -> list[str]:
    """Return the install command for *config*."""
    if config.type == "flutter":
        return ["flutter", "pub", "get"]
    return [package_manager, "install"]


def install_directory(config: ProjectConfig) -> Path:
    """Workspace installs run from the root; Flutter from the app itself."""
    if config.type == "flutter":
        return config.app_directory
    return config.directory


async def run_install(
    cmd: list[str], cwd: Path, timeout: int | None = None
) -> None:
    """Run *cmd* with inherited stdio.

    Raises:
        InstallError: If the command cannot be started or exits non-zero.
    """
    try:
        returncode, _, stderr = await run_command(cmd, cwd=cwd, timeout=timeout, capture=False)
    except OSError as exc:
        raise InstallError(format_command(cmd), 127, str(exc)) from exc
    if returncode != 0:
        raise InstallError(format_command(cmd), returncode, stderr)


async def install_dependencies(
    config: ProjectConfig, context: GenerationContext
) -> InstallOutcome:
    """Install the generated project's dependencies.

    Skipped when ``settings.skip_install`` is set.  Failures are captured in
    the returned outcome instead of raised.
    """
    cmd = install_command(config, context.package_manager)
    printable = format_command(cmd)
    if context.settings.skip_install:
        return InstallOutcome(command=printable, skipped=True)

    context.console.print(f"[bold]Installing dependencies[/bold] ({printable})")
    try:
        await run_install(cmd, install_directory(config), context.settings.install_timeout)
    except InstallError as exc:
        return InstallOutcome(command=printable, error=str(exc))
    return InstallOutcome(command=printable, succeeded=True)


async def setup_git_hooks(project_dir: Path, context: GenerationContext) -> bool:
    """Initialise git and husky in *project_dir*.

    Returns:
        ``True`` when both steps succeeded.  Failures only print a warning.
    """
    if context.settings.skip_install:
        return False

    steps: list[list[str]] = []
    if not (project_dir / ".git").exists():
        steps.append(["git", "init", "--quiet"])
    steps.append([context.package_manager, "exec", "husky"])

    for cmd in steps:
        try:
            returncode, _, stderr = await run_command(cmd, cwd=project_dir, timeout=60)
        except OSError as exc:
            print_warning(f"Git hook setup skipped: {exc}", out=context.console)
            return False
        if returncode != 0:
            detail = f": {stderr}" if stderr else ""
            print_warning(
                f"Git hook setup skipped: `{format_command(cmd)}` failed{detail}",
                out=context.console,
            )
            return False
    return True


async def installed_biome_version(project_dir: Path, context: GenerationContext) -> str | None:
    """Ask the project's installed Biome for its version; ``None`` if unavailable."""
    cmd = [context.package_manager, "exec", "biome", "--version"]
    try:
        returncode, stdout, _ = await run_command(cmd, cwd=project_dir, timeout=60)
    except OSError:
        return None
    if returncode != 0:
        return None
    match = re.search(r"Version:\s*(\d+\.\d+\.\d+)", stdout)
    return match.group(1) if match else None


async def align_biome_schema(project_dir: Path, context: GenerationContext) -> str | None:
    """Point ``biome.json``'s ``$schema`` at the Biome version actually installed.

    The caret range in package.json can resolve to a newer release than the
    one the config was written for, and Biome rejects a mismatched schema.

    Returns:
        The installed version when the file was updated, otherwise ``None``.
    """
    if context.settings.skip_install:
        return None
    path = project_dir / "biome.json"
    if "$schema" not in await asyncio.to_thread(read_manifest, path):
        return None
    version = await installed_biome_version(project_dir, context)
    if version is None:
        return None
    schema = f"https://biomejs.dev/schemas/{version}/schema.json"
    try:
        await write_config_file(path, {"$schema": schema})
    except ManifestError as exc:
        print_warning(f"biome.json left unchanged: {exc}", out=context.console)
        return None
    return version
