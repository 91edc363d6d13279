"""Command-line entry point: ``fluorite create <type>`` (alias ``new``).

Exit codes:
    0  project generated (possibly with warnings)
    1  invalid input or missing prerequisite; nothing was written
    2  generation failed part-way; files written so far are left in place
"""

from __future__ import annotations

import argparse
import asyncio
import time
from typing import Any, Optional

from rich.console import Console

from fluorite import __version__
from fluorite.config import (
    DATABASES,
    ORMS,
    PROJECT_TYPES,
    STORAGE_PROVIDERS,
    ProjectConfig,
    Settings,
    has_database_feature,
    resolve,
)
from fluorite.errors import ConfigError, FluoriteError, PreconditionError
from fluorite.scaffolder import GenerationContext, GenerationResult, ProjectGenerator
from fluorite.utils import (
    console,
    format_duration,
    print_error,
    print_success,
    print_summary_table,
    print_warning,
)

EXIT_OK = 0
EXIT_INVALID = 1
EXIT_GENERATION_FAILED = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fluorite",
        description="Scaffold Next.js, Expo, Tauri and Flutter projects",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  fluorite create nextjs --name my-app --database turso --orm prisma\n"
            "  fluorite new expo --template tabs --simple\n"
            "  fluorite create tauri --dir ./desktop --force\n"
        ),
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    subparsers = parser.add_subparsers(dest="command", required=True)

    create = subparsers.add_parser(
        "create", aliases=["new"], help="Generate a new project"
    )
    create.add_argument(
        "type",
        help=f"Project type ({', '.join(PROJECT_TYPES)})",
    )
    create.add_argument("--name", default=None, help="Project name")
    create.add_argument(
        "--dir", default=None, help="Target directory (default: the project name)"
    )
    create.add_argument("--template", "-t", default=None, help="Template for the project type")
    create.add_argument(
        "--force", "-f", action="store_true", help="Generate into an existing directory"
    )
    layout = create.add_mutually_exclusive_group()
    layout.add_argument(
        "--monorepo", "-m", dest="monorepo", action="store_true", default=None,
        help="Use the pnpm workspace layout (default)",
    )
    layout.add_argument(
        "--no-monorepo", dest="monorepo", action="store_false",
        help="Generate a single-package project",
    )
    create.add_argument(
        "--simple", action="store_true", help="Shorthand for --no-monorepo; takes precedence"
    )
    create.add_argument("--database", default=None, help=f"Database ({', '.join(DATABASES)}, none)")
    create.add_argument("--orm", default=None, help=f"ORM ({', '.join(ORMS)})")
    create.add_argument(
        "--storage", default=None, help=f"Storage provider ({', '.join(STORAGE_PROVIDERS)}, none)"
    )
    create.add_argument("--auth", action="store_true", help="Add Better Auth")
    create.add_argument("--deployment", action="store_true", help="Add Vercel deployment")
    create.add_argument("--docs", action="store_true", help="Add a Nextra documentation site")
    create.add_argument("--package-manager", default=None, help="Package manager (default: pnpm)")
    create.add_argument(
        "--skip-install", action="store_true", help="Do not install dependencies"
    )
    create.add_argument(
        "--verbose", "-v", action="store_true", help="List every file as it is written"
    )
    return parser


def raw_options(args: argparse.Namespace, settings: Settings) -> dict[str, Any]:
    """Translate parsed arguments into the resolver's raw mapping."""
    return {
        "type": args.type,
        "name": args.name,
        "dir": args.dir,
        "template": args.template,
        "force": args.force,
        "simple": args.simple,
        "monorepo": args.monorepo,
        "database": args.database,
        "orm": args.orm,
        "storage": args.storage,
        "auth": args.auth,
        "deployment": args.deployment,
        "docs": args.docs,
        "package_manager": args.package_manager or settings.package_manager,
    }


def project_summary(config: ProjectConfig) -> dict[str, str]:
    """Key/value rows describing *config* for the summary table."""
    features: list[str] = []
    if config.database:
        features.append(config.database + (f" + {config.orm}" if config.orm else ""))
    elif has_database_feature(config.template):
        features.append("database-ready template")
    if config.storage:
        features.append(config.storage)
    if config.auth:
        features.append("auth")
    if config.deployment:
        features.append("vercel deployment")
    if config.should_generate_docs:
        features.append("docs site")
    return {
        "Project": config.name,
        "Type": config.type,
        "Template": config.template + (" (advanced)" if config.is_advanced else ""),
        "Layout": "pnpm workspace" if config.monorepo else "single package",
        "Directory": str(config.directory),
        "Features": ", ".join(features) or "none",
    }


def report(result: GenerationResult, elapsed: float, out: Console) -> None:
    rows = {
        "Files written": str(len(result.files)),
        "Location": str(result.project_dir),
        "Duration": format_duration(elapsed),
    }
    if result.install is not None:
        if result.install.skipped:
            rows["Install"] = "skipped"
        elif result.install.succeeded:
            rows["Install"] = result.install.command
        else:
            rows["Install"] = "failed"
    print_summary_table(rows, title="Generated", out=out)
    for warning in result.warnings:
        print_warning(f"warning: {warning}", out=out)


def main(argv: Optional[list[str]] = None) -> int:
    """CLI entry point for ``fluorite`` and ``python -m fluorite``."""
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = Settings.from_env()
    if args.skip_install:
        settings = settings.model_copy(update={"skip_install": True})
    if args.package_manager:
        settings = settings.model_copy(update={"package_manager": args.package_manager})
    if args.verbose:
        settings = settings.model_copy(update={"verbose": True})

    try:
        config = resolve(raw_options(args, settings))
    except (ConfigError, PreconditionError) as exc:
        print_error(f"Error: {exc}", out=console)
        return EXIT_INVALID

    print_summary_table(project_summary(config), title="fluorite", out=console)

    context = GenerationContext.create(
        settings, console=console, package_manager=config.package_manager
    )
    started = time.monotonic()
    try:
        result = asyncio.run(ProjectGenerator(config, context).generate())
    except (FluoriteError, OSError) as exc:
        print_error(f"Generation failed: {exc}", out=console)
        print_warning(
            f"Files written before the failure were kept in {config.directory}", out=console
        )
        return EXIT_GENERATION_FAILED

    report(result, time.monotonic() - started, console)
    print_success(f"Created {config.name} in {config.directory}", out=console)
    return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
