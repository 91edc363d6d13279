"""Jinja2 rendering for generator-owned assets.

The template corpus under ``fluorite/templates/`` is written in the
``{{...}}`` markup handled by :mod:`fluorite.scaffolder.markup`.  Files that
the generators themselves own (README, ``.gitignore``, database setup scripts,
workspace package stubs) are Jinja2 templates stored next to this module in
``fluorite/scaffolder/templates/`` and rendered through
:class:`TemplateRenderer`.
"""

from __future__ import annotations

import asyncio
import re
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, StrictUndefined, select_autoescape

from fluorite.utils import write_text


# ---------------------------------------------------------------------------
# Template directory discovery
# ---------------------------------------------------------------------------

_DEFAULT_TEMPLATE_DIR = Path(__file__).parent / "templates"


# ---------------------------------------------------------------------------
# TemplateRenderer
# ---------------------------------------------------------------------------


class TemplateRenderer:
    """Renders the bundled ``.j2`` assets.

    Templates are rendered with a context dictionary built by
    :func:`asset_context` (project name, package manager, selected features).
    Undefined variables raise instead of rendering empty, since every asset
    is owned by this package and a missing key is a bug.
    """

    def __init__(self, template_dir: str | Path | None = None) -> None:
        if template_dir is None:
            template_dir = _DEFAULT_TEMPLATE_DIR
        self.template_dir = Path(template_dir)
        self.env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            autoescape=select_autoescape([]),
            undefined=StrictUndefined,
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.env.filters["slugify"] = _slugify_filter
        self.env.filters["title_case"] = _title_case_filter

    # -- Single template rendering -----------------------------------------

    def render(self, template_path: str, context: dict[str, Any]) -> str:
        """Render a single template with the provided context.

        Args:
            template_path: Path relative to the template directory (e.g.
                ``"scripts/setup-turso.sh.j2"``).
            context: Dictionary of variables available inside the template.

        Returns:
            The rendered template content as a string.
        """
        template = self.env.get_template(template_path)
        return template.render(**context)

    # -- File-based rendering (async) --------------------------------------

    async def render_to_file(
        self,
        template_path: str,
        output_path: str | Path,
        context: dict[str, Any],
    ) -> Path:
        """Render a template and write the result to *output_path*.

        Parent directories are created automatically.  Returns the output path.
        """
        content = self.render(template_path, context)
        out = Path(output_path)
        await asyncio.to_thread(write_text, out, content)
        return out

    async def render_tree(
        self,
        template_prefix: str,
        output_dir: str | Path,
        context: dict[str, Any],
    ) -> list[Path]:
        """Render every ``*.j2`` file under *template_prefix* to *output_dir*.

        The directory structure is preserved: a template at
        ``monorepo/packages/shared/src/index.ts.j2`` rendered with
        ``template_prefix="monorepo"`` writes to
        ``<output_dir>/packages/shared/src/index.ts``.

        Returns:
            List of written file paths, in sorted template order.
        """
        prefix_path = self.template_dir / template_prefix
        if not prefix_path.is_dir():
            return []

        written: list[Path] = []
        out_base = Path(output_dir)

        for template_file in sorted(prefix_path.rglob("*.j2")):
            rel = template_file.relative_to(prefix_path).as_posix()
            output_file = out_base / rel[: -len(".j2")]
            template_key = f"{template_prefix}/{rel}"
            written.append(await self.render_to_file(template_key, output_file, context))

        return written


# ---------------------------------------------------------------------------
# Context
# ---------------------------------------------------------------------------


def asset_context(config: Any, package_manager: str) -> dict[str, Any]:
    """Build the Jinja2 context for a :class:`~fluorite.config.ProjectConfig`."""
    run = "npm run" if package_manager == "npm" else package_manager
    return {
        "project_name": config.name,
        "project_slug": config.slug,
        "project_type": config.type,
        "template": config.template,
        "package_manager": package_manager,
        "run": run,
        "monorepo": config.monorepo,
        "database": config.database,
        "orm": config.orm,
        "storage": config.storage,
        "auth": config.auth,
        "deployment": config.deployment,
        "app_path": config.app_directory.relative_to(config.directory).as_posix(),
    }


# ---------------------------------------------------------------------------
# Jinja2 custom filters
# ---------------------------------------------------------------------------

def _slugify_filter(value: str) -> str:
    """Convert a string to a URL/filename-safe slug."""
    slug = re.sub(r"[^a-z0-9]+", "-", value.lower().strip())
    return slug.strip("-")


def _title_case_filter(value: str) -> str:
    """Convert ``vercel-blob`` to ``Vercel Blob``."""
    return " ".join(word.capitalize() for word in re.split(r"[-_\s]+", value) if word)
