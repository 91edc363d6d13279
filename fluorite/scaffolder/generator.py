"""Main scaffolding orchestrator.

Takes a resolved ``ProjectConfig`` and produces the project directory: the
workspace skeleton first when the monorepo layout is selected, then the
framework app, then the optional documentation site and dependency install.
"""

from __future__ import annotations

import asyncio

from fluorite.config import ProjectConfig
from fluorite.errors import FluoriteError, UnsupportedProjectType
from fluorite.utils import ensure_dir, print_warning

from .base import FrameworkGenerator, GenerationContext, GenerationResult
from .docs_gen import DocsGenerator, docs_directory
from .expo_gen import ExpoGenerator
from .flutter_gen import FlutterGenerator
from .installer import align_biome_schema, install_dependencies, setup_git_hooks
from .monorepo_gen import MonorepoGenerator
from .nextjs_gen import NextjsGenerator
from .tauri_gen import TauriGenerator

GENERATORS: dict[str, type[FrameworkGenerator]] = {
    "nextjs": NextjsGenerator,
    "expo": ExpoGenerator,
    "tauri": TauriGenerator,
    "flutter": FlutterGenerator,
}


class ProjectGenerator:
    """Runs the generators for one ``ProjectConfig``.

    All steps are awaited strictly in sequence.  Errors raised by a step
    propagate unchanged and nothing already written is removed; a failed
    dependency install is recorded as a warning instead.
    """

    def __init__(self, config: ProjectConfig, context: GenerationContext) -> None:
        self.config = config
        self.context = context

    def framework_generator(self, result: GenerationResult) -> FrameworkGenerator:
        generator_cls = GENERATORS.get(self.config.type)
        if generator_cls is None:
            raise UnsupportedProjectType(self.config.type)
        return generator_cls(self.config, self.context, result)

    async def generate(self) -> GenerationResult:
        config = self.config
        result = GenerationResult(
            project_dir=config.directory, app_dir=config.app_directory
        )
        framework = self.framework_generator(result)

        await asyncio.to_thread(ensure_dir, config.directory)
        if config.monorepo:
            await MonorepoGenerator(self.context).generate(config, result)
        await framework.generate()
        if config.should_generate_docs:
            await self.generate_docs(result)

        result.install = await install_dependencies(config, self.context)
        if result.install.error:
            message = (
                f"Dependency install failed ({result.install.error}); "
                f"run `{result.install.command}` manually"
            )
            result.warnings.append(message)
            print_warning(message, out=self.context.console)
        elif result.install.succeeded and config.type == "nextjs":
            await align_biome_schema(config.app_directory, self.context)
            if not config.monorepo:
                await setup_git_hooks(config.directory, self.context)

        return result

    async def generate_docs(self, result: GenerationResult) -> None:
        """Write the documentation site; a failure only adds a warning."""
        try:
            await DocsGenerator(self.context).generate(self.config, result)
        except (FluoriteError, OSError) as exc:
            rel = docs_directory(self.config).relative_to(self.config.directory).as_posix()
            pm = self.context.package_manager
            command = f"{pm} create next-app@latest {rel} --example blog-starter"
            message = (
                f"Documentation site was not generated ({exc}); "
                f"add one later with `{command}`"
            )
            result.warnings.append(message)
            print_warning(message, out=self.context.console)
