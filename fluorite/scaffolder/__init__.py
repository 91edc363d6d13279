"""fluorite scaffolder -- generates Next.js, Expo, Tauri and Flutter projects.

The primitives (markup renderer, template copier, manifest merger, env file
writers) are composed by one generator per framework, optionally wrapped in a
pnpm workspace.

Quick usage::

    from fluorite.config import resolve
    from fluorite.scaffolder import GenerationContext, ProjectGenerator

    config = resolve({"type": "nextjs", "name": "my-app", "database": "turso",
                      "orm": "prisma", "simple": True})
    context = GenerationContext.create()
    result = await ProjectGenerator(config, context).generate()
"""

from fluorite.scaffolder.base import GenerationContext, GenerationResult
from fluorite.scaffolder.generator import GENERATORS, ProjectGenerator
from fluorite.scaffolder.markup import build_variables, render
from fluorite.scaffolder.templates import TemplateRenderer

__all__ = [
    "GENERATORS",
    "GenerationContext",
    "GenerationResult",
    "ProjectGenerator",
    "TemplateRenderer",
    "build_variables",
    "render",
]
