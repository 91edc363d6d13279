"""Additive merging of JSON manifests (package.json, tsconfig.json, turbo.json).

Existing keys are never removed.  Nested objects (dependency maps, scripts,
``compilerOptions``, turbo ``tasks``) are merged key by key with new values
winning on conflict; lists and scalars are replaced.  Output is written with
two-space indentation and recursively sorted keys, so merging the same
additions twice yields byte-identical files.
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from fluorite.errors import ManifestError
from fluorite.utils import dump_json, save_json, write_text


def read_manifest(path: str | Path) -> dict[str, Any]:
    """Read a JSON object from *path*.

    A missing file, unparseable content, or a non-object root all yield an
    empty dict; the merge proceeds as if the manifest did not exist.
    """
    try:
        raw = Path(path).read_text(encoding="utf-8")
        data = json.loads(raw)
    except (OSError, ValueError):
        return {}
    return data if isinstance(data, dict) else {}


def merge_fields(existing: Mapping[str, Any], additions: Mapping[str, Any]) -> dict[str, Any]:
    """Return *existing* deep-merged with *additions* (pure).

    Where both sides hold an object the merge recurses; otherwise the value
    from *additions* wins.  Lists are replaced, never appended.
    """
    merged: dict[str, Any] = dict(existing)
    for key, new in additions.items():
        old = existing.get(key)
        if isinstance(old, Mapping) and isinstance(new, Mapping):
            merged[key] = merge_fields(old, new)
        else:
            merged[key] = new
    return merged


def sort_keys(value: Any) -> Any:
    """Recursively sort dict keys; lists keep their order."""
    if isinstance(value, Mapping):
        return {key: sort_keys(value[key]) for key in sorted(value)}
    if isinstance(value, list):
        return [sort_keys(item) for item in value]
    return value


def _merge_sync(path: Path, additions: Mapping[str, Any]) -> dict[str, Any]:
    merged = sort_keys(merge_fields(read_manifest(path), additions))
    try:
        write_text(path, dump_json(merged))
    except OSError as exc:
        raise ManifestError(path, "write manifest", str(exc)) from exc
    return merged


async def merge_manifest(path: str | Path, additions: Mapping[str, Any]) -> dict[str, Any]:
    """Merge *additions* into the JSON manifest at *path* and write it back.

    Returns:
        The merged document as written.

    Raises:
        ManifestError: If the file cannot be written.
    """
    return await asyncio.to_thread(_merge_sync, Path(path), dict(additions))


async def merge_package_json(
    project_dir: str | Path, additions: Mapping[str, Any]
) -> dict[str, Any]:
    """Merge *additions* into ``<project_dir>/package.json``."""
    return await merge_manifest(Path(project_dir) / "package.json", additions)


async def add_scripts(project_dir: str | Path, scripts: Mapping[str, str]) -> dict[str, Any]:
    """Add or replace npm scripts, keeping every other script."""
    return await merge_package_json(project_dir, {"scripts": dict(scripts)})


def _postinstall_sync(path: Path, command: str) -> dict[str, Any]:
    manifest = read_manifest(path)
    scripts = dict(manifest.get("scripts") or {})
    existing = scripts.get("postinstall")
    if not existing:
        scripts["postinstall"] = command
    elif command not in existing:
        scripts["postinstall"] = f"{command} && {existing}"
    else:
        return manifest
    return _merge_sync(path, {"scripts": scripts})


async def add_postinstall_script(
    project_dir: str | Path, command: str = "prisma generate"
) -> dict[str, Any]:
    """Ensure ``scripts.postinstall`` runs *command*.

    An existing postinstall that does not already run *command* is kept and
    *command* is prepended with ``&&``.
    """
    return await asyncio.to_thread(
        _postinstall_sync, Path(project_dir) / "package.json", command
    )


async def write_config_file(
    path: str | Path, data: Mapping[str, Any], *, sort: bool = False
) -> Path:
    """Write a JSON configuration file (tsconfig.json, turbo.json, app.json).

    A file that already exists is deep-merged with *data* so unrelated keys
    survive; a new file is written from *data* in its own key order unless
    *sort* is set.
    """
    target = Path(path)
    payload = merge_fields(await asyncio.to_thread(read_manifest, target), data)
    try:
        await save_json(payload, target, sort_keys=sort)
    except OSError as exc:
        raise ManifestError(target, "write config", str(exc)) from exc
    return target
