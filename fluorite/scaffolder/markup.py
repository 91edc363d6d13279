"""Rendering of the ``{{...}}`` markup used by the template corpus.

Template authors write two constructs:

* ``{{identifier}}`` -- replaced by ``substitutions[identifier]``.  Unknown
  identifiers are left verbatim so partially-parameterised files still render.
* ``{{#if flag}}...{{else}}...{{/if}}`` -- keeps one branch depending on the
  truthiness of ``flags[flag]``; unknown flags are falsy and the ``{{else}}``
  branch is optional.

Conditionals are resolved in a single regex pass before substitution.
Nesting ``{{#if}}`` blocks is not supported: the outer block would close at
the first ``{{/if}}``.  :func:`find_nested_conditionals` detects such input and
``render(..., strict=True)`` refuses it.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from fluorite.config import has_database_feature
from fluorite.errors import NestedConditionalError
from fluorite.utils import to_identifier

_PLACEHOLDER_RE = re.compile(r"\{\{(\w+)\}\}")
_CONDITIONAL_RE = re.compile(
    r"\{\{#if\s+(\w+)\s*\}\}(.*?)(?:\{\{else\}\}(.*?))?\{\{/if\}\}",
    re.DOTALL,
)
_BLOCK_TOKEN_RE = re.compile(r"\{\{#if\s+(\w+)\s*\}\}|\{\{/if\}\}")

# drizzle-orm entry point per database.
_DRIZZLE_DRIVERS = {"turso": "libsql", "supabase": "postgres-js", "sqlite": "better-sqlite3"}


@dataclass
class TemplateVariables:
    """Substitutions and flags for one render call."""

    substitutions: dict[str, Any] = field(default_factory=dict)
    flags: dict[str, bool] = field(default_factory=dict)


def render(
    text: str,
    substitutions: Mapping[str, Any] | None = None,
    flags: Mapping[str, Any] | None = None,
    *,
    strict: bool = False,
) -> str:
    """Render *text* with the given substitutions and conditional flags.

    Args:
        text: Template source.
        substitutions: Values for ``{{identifier}}`` placeholders.
        flags: Truth values for ``{{#if flag}}`` blocks.
        strict: Raise :class:`NestedConditionalError` when the template nests
            ``{{#if}}`` blocks instead of rendering it.

    Returns:
        The rendered text.  Never raises for missing keys.
    """
    substitutions = substitutions or {}
    flags = flags or {}

    if strict:
        nested = find_nested_conditionals(text)
        if nested:
            raise NestedConditionalError(nested)

    def _select_branch(match: re.Match[str]) -> str:
        truthy, falsy = match.group(2), match.group(3)
        if flags.get(match.group(1)):
            return truthy
        return falsy or ""

    def _substitute(match: re.Match[str]) -> str:
        value = substitutions.get(match.group(1))
        if value is None:
            return match.group(0)
        return _stringify(value)

    text = _CONDITIONAL_RE.sub(_select_branch, text)
    return _PLACEHOLDER_RE.sub(_substitute, text)


def placeholders(text: str) -> set[str]:
    """Return every ``{{identifier}}`` name referenced by *text*."""
    return set(_PLACEHOLDER_RE.findall(text))


def find_nested_conditionals(text: str) -> list[str]:
    """Return the flags of ``{{#if}}`` blocks that contain another block."""
    stack: list[str] = []
    nested: list[str] = []
    for match in _BLOCK_TOKEN_RE.finditer(text):
        flag = match.group(1)
        if flag is not None:
            if stack and stack[-1] not in nested:
                nested.append(stack[-1])
            stack.append(flag)
        elif stack:
            stack.pop()
    return nested


def _stringify(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def build_variables(config: Any) -> TemplateVariables:
    """Build a fresh :class:`TemplateVariables` for *config*.

    *config* is a :class:`~fluorite.config.ProjectConfig`; a new mapping pair
    is returned on every call so renders never share mutable state.
    """
    identifier = to_identifier(config.name)
    substitutions: dict[str, Any] = {
        "projectName": config.name,
        "projectSlug": config.slug,
        "projectIdentifier": identifier,
        "bundleId": f"com.{identifier.replace('_', '')}.app",
        "packageManager": config.package_manager,
        "template": config.template,
        "type": config.type,
        "database": config.database or "none",
        "orm": config.orm or "none",
        "storage": config.storage or "none",
        "drizzleDriver": _DRIZZLE_DRIVERS.get(config.database or "", "libsql"),
    }
    flags: dict[str, bool] = {
        "monorepo": config.monorepo,
        "auth": config.auth,
        "deployment": config.deployment,
        "hasDatabase": config.database is not None,
        "hasStorage": config.storage is not None,
        "isPrisma": config.orm == "prisma",
        "isDrizzle": config.orm == "drizzle",
        "hasOrm": config.orm is not None,
        "prismaLibsql": config.orm == "prisma" and config.database == "turso",
        "prismaNative": config.orm == "prisma" and config.database != "turso",
        "isFullstack": has_database_feature(config.template),
    }
    if config.database:
        flags[f"database_{config.database}"] = True
    if config.storage:
        flags[f"storage_{config.storage.replace('-', '_')}"] = True
    return TemplateVariables(substitutions=substitutions, flags=flags)
