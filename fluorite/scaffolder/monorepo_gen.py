"""pnpm + Turborepo workspace generator.

Lays out ``apps/`` and ``packages/`` at the project root and writes the
workspace-level files.  The framework generator then fills in the app
directory (``apps/web``, ``apps/mobile`` or ``apps/desktop``).
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any

import yaml

from fluorite.config import ProjectConfig
from fluorite.errors import ManifestError
from fluorite.utils import ensure_dir, print_step, write_text

from .base import GenerationContext, GenerationResult
from .manifest import merge_package_json, write_config_file
from .templates import asset_context

WORKSPACE_GLOBS: list[str] = ["apps/*", "packages/*"]

TURBO_CONFIG: dict[str, Any] = {
    "$schema": "https://turbo.build/schema.json",
    "globalDependencies": ["**/.env.*local"],
    "ui": "tui",
    "tasks": {
        "build": {
            "dependsOn": ["^build"],
            "outputs": [".next/**", "!.next/cache/**", "dist/**"],
        },
        "dev": {"cache": False, "persistent": True},
        "lint": {"dependsOn": ["^lint"]},
        "test": {"dependsOn": ["^build"]},
    },
}

SHARED_TSCONFIG: dict[str, Any] = {
    "compilerOptions": {
        "target": "ES2020",
        "module": "ESNext",
        "moduleResolution": "bundler",
        "lib": ["ES2020"],
        "declaration": True,
        "outDir": "./dist",
        "rootDir": "./src",
        "strict": True,
        "esModuleInterop": True,
        "skipLibCheck": True,
    },
    "include": ["src"],
    "exclude": ["node_modules", "dist"],
}


def workspace_scope(config: ProjectConfig) -> str:
    """npm scope used for the shared workspace packages."""
    return "@" + config.slug.lstrip("@").replace("/", "-")


def dump_workspace_yaml(packages: list[str]) -> str:
    return yaml.safe_dump({"packages": packages}, default_flow_style=False, sort_keys=False)


class MonorepoGenerator:
    """Writes the workspace skeleton around a framework app."""

    def __init__(self, context: GenerationContext) -> None:
        self.context = context

    async def generate(self, config: ProjectConfig, result: GenerationResult) -> None:
        root = config.directory
        for rel in ("apps", "packages/shared/src"):
            await asyncio.to_thread(ensure_dir, root / rel)

        result.record(await self._write_root_package_json(config))
        result.record(await self._write_workspace_yaml(root))
        result.record(await write_config_file(root / "turbo.json", TURBO_CONFIG))
        result.record(*await self._write_shared_package(config))

        renderer = self.context.renderer
        ctx = asset_context(config, self.context.package_manager)
        result.record(
            await renderer.render_to_file("README.md.j2", root / "README.md", ctx),
            await renderer.render_to_file("gitignore.j2", root / ".gitignore", ctx),
        )
        print_step("Created pnpm workspace (apps/, packages/)", out=self.context.console)

    async def _write_root_package_json(self, config: ProjectConfig) -> Path:
        pm = self.context.package_manager
        manifest: dict[str, Any] = {
            "name": config.slug,
            "version": "0.0.1",
            "private": True,
            "workspaces": list(WORKSPACE_GLOBS),
            "scripts": {
                "dev": "turbo dev",
                "build": "turbo build",
                "lint": "turbo lint",
                "test": "turbo test",
                "clean": "rm -rf apps/*/node_modules packages/*/node_modules node_modules",
            },
            "devDependencies": {
                "turbo": "^2.3.3",
                "prettier": "^3.4.2",
                "typescript": "^5.7.2",
            },
        }
        if config.pnpm_version and pm == "pnpm":
            manifest["packageManager"] = f"pnpm@{config.pnpm_version}"
        await merge_package_json(config.directory, manifest)
        return config.directory / "package.json"

    async def _write_workspace_yaml(self, root: Path) -> Path:
        path = root / "pnpm-workspace.yaml"
        try:
            await asyncio.to_thread(write_text, path, dump_workspace_yaml(WORKSPACE_GLOBS))
        except OSError as exc:
            raise ManifestError(path, "write workspace file", str(exc)) from exc
        return path

    async def _write_shared_package(self, config: ProjectConfig) -> list[Path]:
        shared = config.directory / "packages" / "shared"
        await merge_package_json(
            shared,
            {
                "name": f"{workspace_scope(config)}/shared",
                "version": "0.0.0",
                "private": True,
                "main": "./dist/index.js",
                "types": "./dist/index.d.ts",
                "scripts": {"build": "tsc", "clean": "rm -rf dist"},
                "devDependencies": {"typescript": "^5.7.2"},
            },
        )
        written = [
            shared / "package.json",
            await write_config_file(shared / "tsconfig.json", SHARED_TSCONFIG),
        ]
        ctx = asset_context(config, self.context.package_manager)
        written.extend(
            await self.context.renderer.render_tree("monorepo", config.directory, ctx)
        )
        return written
