"""Recursive copy of a template directory into a project directory.

Only files explicitly listed in ``variable_files`` go through the markup
renderer; everything else (images, fonts, lockfiles) is copied byte-for-byte.
JSON manifests listed in ``manifest_files`` are merged into a file already in
the target rather than replacing it.

The copier never deletes anything in the target.  Writes are not
transactional: if an error interrupts the walk, files already written stay on
disk and the error propagates to the orchestrator.
"""

from __future__ import annotations

import asyncio
import json
import re
import shutil
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Any

from fluorite.errors import TemplateCopyError, TemplateNotFoundError
from fluorite.utils import dump_json

from .manifest import merge_fields, read_manifest
from .markup import render

_PACKAGED_TEMPLATE_ROOT = Path(__file__).resolve().parent.parent / "templates"


@dataclass
class CopyResult:
    """Relative POSIX paths actually written or created by a copy."""

    files: list[str] = field(default_factory=list)
    directories: list[str] = field(default_factory=list)


def resolve_template_root(template_dir: str | Path | None = None) -> Path:
    """Return the root of the template corpus.

    Uses *template_dir* when given (``Settings.template_dir``), otherwise the
    corpus shipped inside the package.
    """
    root = Path(template_dir) if template_dir is not None else _PACKAGED_TEMPLATE_ROOT
    if not root.is_dir():
        raise TemplateNotFoundError(root)
    return root


def template_sources(root: Path, project_type: str, template: str) -> list[Path]:
    """Return the template layers to copy, in order.

    ``<root>/<type>/base`` holds the files every template of a type shares and
    ``<root>/<type>/<template>`` overlays it.  Either may be absent, but not
    both.
    """
    layers = [root / project_type / "base", root / project_type / template]
    found = [layer for layer in layers if layer.is_dir()]
    if not found:
        raise TemplateNotFoundError(layers[-1])
    return found


def is_excluded(relative_path: str, patterns: Iterable[str]) -> bool:
    """Match *relative_path* against simple glob patterns.

    ``*`` matches within one path segment, ``**`` matches across segments.
    A trailing ``/**`` also excludes the directory itself.
    """
    for pattern in patterns:
        if pattern.endswith("/**") and relative_path == pattern[:-3]:
            return True
        regex = (
            re.escape(pattern)
            .replace(r"\*\*", "\0")
            .replace(r"\*", "[^/]*")
            .replace("\0", ".*")
        )
        if re.fullmatch(regex, relative_path):
            return True
    return False


def collect_entries(source_dir: Path, exclude_patterns: Iterable[str] = ()) -> CopyResult:
    """Walk *source_dir* in sorted order and return its files and directories."""
    patterns = tuple(exclude_patterns)
    result = CopyResult()

    def _walk(current: Path, relative: PurePosixPath | None) -> None:
        for entry in sorted(current.iterdir(), key=lambda p: p.name):
            rel = relative / entry.name if relative else PurePosixPath(entry.name)
            rel_str = rel.as_posix()
            if is_excluded(rel_str, patterns):
                continue
            if entry.is_dir():
                result.directories.append(rel_str)
                _walk(entry, rel)
            else:
                result.files.append(rel_str)

    _walk(source_dir, None)
    return result


def _copy_tree(
    source_dir: Path,
    target_dir: Path,
    variable_files: frozenset[str],
    manifest_files: frozenset[str],
    substitutions: Mapping[str, Any],
    flags: Mapping[str, Any],
    exclude_patterns: tuple[str, ...],
    executable_files: tuple[str, ...],
    overwrite: bool,
) -> CopyResult:
    if not source_dir.is_dir():
        raise TemplateNotFoundError(source_dir)

    entries = collect_entries(source_dir, exclude_patterns)
    result = CopyResult()

    try:
        if not target_dir.exists():
            result.directories.append(".")
        target_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise TemplateCopyError(target_dir, "create directory", str(exc)) from exc

    for rel in entries.directories:
        dest = target_dir / rel
        try:
            if not dest.is_dir():
                dest.mkdir(parents=True, exist_ok=True)
                result.directories.append(rel)
        except OSError as exc:
            raise TemplateCopyError(dest, "create directory", str(exc)) from exc

    for rel in entries.files:
        src = source_dir / rel
        dest = target_dir / rel
        if not overwrite and dest.exists():
            continue
        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
            if rel in variable_files:
                text = src.read_text(encoding="utf-8")
                dest.write_text(render(text, substitutions, flags), encoding="utf-8")
            elif rel in manifest_files and dest.exists():
                template = json.loads(src.read_text(encoding="utf-8"))
                dest.write_text(
                    dump_json(merge_fields(read_manifest(dest), template)), encoding="utf-8"
                )
            else:
                shutil.copyfile(src, dest)
        except (OSError, ValueError) as exc:
            raise TemplateCopyError(dest, f"copy {rel}", str(exc)) from exc
        result.files.append(rel)

    written = set(result.files)
    for rel in executable_files:
        if rel not in written:
            continue
        try:
            (target_dir / rel).chmod(0o755)
        except OSError:
            # Filesystems without an executable bit.
            continue

    return result


async def copy_template(
    source_dir: str | Path,
    target_dir: str | Path,
    *,
    variable_files: Iterable[str] = (),
    manifest_files: Iterable[str] = (),
    substitutions: Mapping[str, Any] | None = None,
    flags: Mapping[str, Any] | None = None,
    exclude_patterns: Iterable[str] = (),
    executable_files: Iterable[str] = (),
    overwrite: bool = True,
) -> CopyResult:
    """Copy *source_dir* into *target_dir*, rendering the variable files.

    Args:
        source_dir: Template root to copy from.
        target_dir: Destination; created if missing.  Existing unrelated
            files are left untouched.
        variable_files: Relative POSIX paths rendered through the markup
            renderer.  All other files are copied verbatim.
        manifest_files: Relative paths of JSON manifests (tsconfig.json, ...)
            that are deep-merged into an existing target file instead of
            replacing it.
        substitutions: ``{{identifier}}`` values.
        flags: ``{{#if flag}}`` values.
        exclude_patterns: Glob patterns (``*``/``**``) of paths to skip.
        executable_files: Relative paths to chmod ``0o755`` after copying.
        overwrite: When ``False`` files already present in the target are
            skipped and not reported.

    Returns:
        A :class:`CopyResult` listing the files written and directories
        created (``"."`` when *target_dir* itself was created).

    Raises:
        TemplateNotFoundError: If *source_dir* does not exist.
        TemplateCopyError: On the first I/O failure; nothing is rolled back.
    """
    return await asyncio.to_thread(
        _copy_tree,
        Path(source_dir),
        Path(target_dir),
        frozenset(variable_files),
        frozenset(manifest_files),
        dict(substitutions or {}),
        dict(flags or {}),
        tuple(exclude_patterns),
        tuple(executable_files),
        overwrite,
    )
