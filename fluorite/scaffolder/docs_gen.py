"""Nextra documentation site generator.

Writes a standalone Next.js + Nextra app next to the generated project:
``docs/`` in the single-package layout, ``apps/docs`` inside a workspace
(where the ``apps/*`` glob already picks it up).  The site is optional, so
:class:`~fluorite.scaffolder.generator.ProjectGenerator` reports a failure
here as a warning instead of aborting the run.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from fluorite.config import ProjectConfig
from fluorite.utils import print_step

from .base import GenerationContext, GenerationResult
from .manifest import merge_package_json, write_config_file
from .templates import asset_context

DOCS_NEXT_VERSION = "^15.5.4"
DOCS_REACT_VERSION = "^19.1.0"
NEXTRA_VERSION = "^4.6.0"

DOCS_TSCONFIG: dict[str, Any] = {
    "compilerOptions": {
        "target": "ES2017",
        "lib": ["dom", "dom.iterable", "esnext"],
        "allowJs": True,
        "skipLibCheck": True,
        "strict": True,
        "noEmit": True,
        "esModuleInterop": True,
        "module": "esnext",
        "moduleResolution": "bundler",
        "resolveJsonModule": True,
        "isolatedModules": True,
        "jsx": "preserve",
        "plugins": [{"name": "next"}],
    },
    "include": ["next-env.d.ts", "**/*.ts", "**/*.tsx", "**/*.mdx"],
    "exclude": ["node_modules"],
}


def docs_directory(config: ProjectConfig) -> Path:
    if config.monorepo:
        return config.directory / "apps" / "docs"
    return config.directory / "docs"


def docs_package_name(config: ProjectConfig) -> str:
    return f"{config.slug}-docs"


def docs_package_json(config: ProjectConfig) -> dict[str, Any]:
    """package.json for the docs site.

    Inside a workspace React is declared as a peer so the docs share the
    app's copy.
    """
    dependencies = {
        "next": DOCS_NEXT_VERSION,
        "nextra": NEXTRA_VERSION,
        "nextra-theme-docs": NEXTRA_VERSION,
    }
    react = {"react": DOCS_REACT_VERSION, "react-dom": DOCS_REACT_VERSION}
    manifest: dict[str, Any] = {
        "name": docs_package_name(config),
        "version": "0.1.0",
        "description": f"Documentation site for {config.name}",
        "private": True,
        "scripts": {
            "dev": "next dev",
            "build": "next build",
            "start": "next start",
        },
        "dependencies": dependencies,
        "devDependencies": {
            "@types/node": "^22",
            "@types/react": "^19",
            "@types/react-dom": "^19",
            "typescript": "^5",
        },
        "engines": {"node": ">=20.0.0"},
    }
    if config.monorepo:
        manifest["peerDependencies"] = react
    else:
        dependencies.update(react)
    return manifest


class DocsGenerator:
    """Writes the documentation site for one project."""

    def __init__(self, context: GenerationContext) -> None:
        self.context = context

    def render_context(self, config: ProjectConfig) -> dict[str, Any]:
        ctx = asset_context(config, self.context.package_manager)
        ctx.update(
            docs_title=f"{config.name} Documentation",
            docs_description=f"Documentation for {config.name}",
            docs_package=docs_package_name(config),
            locale=self.context.locale,
        )
        return ctx

    async def generate(self, config: ProjectConfig, result: GenerationResult) -> Path:
        target = docs_directory(config)
        written = await self.context.renderer.render_tree(
            "docs", target, self.render_context(config)
        )
        await merge_package_json(target, docs_package_json(config))
        written.append(target / "package.json")
        written.append(await write_config_file(target / "tsconfig.json", DOCS_TSCONFIG))
        result.record(*written)
        rel = target.relative_to(config.directory).as_posix()
        print_step(f"Created documentation site in {rel}/", out=self.context.console)
        return target
