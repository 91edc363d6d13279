"""Writing ``KEY=VALUE`` lines into ``.env*`` files.

Two merge policies exist and are not interchangeable:

* :func:`upsert_env_file` -- keyed by variable name.  Lines whose key is being
  updated are replaced; used for provisioned credentials that must override
  placeholders.
* :func:`append_env_file` -- keyed by the full line.  Only lines not already
  present are appended; used for feature snippets (database and storage
  placeholders, comments included) that must not clobber real values.
"""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from pathlib import Path

from fluorite.errors import EnvFileError
from fluorite.utils import write_text

ENV_TARGET_FILES: tuple[str, ...] = (
    ".env",
    ".env.local",
    ".env.development",
    ".env.staging",
    ".env.production",
    ".env.prod",
)


def normalize_env_value(value: str) -> str:
    """Quote *value* when it contains whitespace or a newline.

    Newlines are written as the two-character escape ``\\n`` so every variable
    stays on one physical line.
    """
    if "\n" in value or " " in value:
        escaped = (
            value.replace('"', '\\"').replace("\r\n", "\n").replace("\n", "\\n")
        )
        return f'"{escaped}"'
    return value


def line_key(line: str) -> str | None:
    """Return the variable name of a ``KEY=VALUE`` line, or ``None``."""
    if "=" not in line:
        return None
    return line.split("=", 1)[0].strip()


def parse_env_file(text: str) -> dict[str, str]:
    """Parse ``.env`` content into a mapping.

    Double-quoted values are unquoted and their ``\\n`` and ``\\"`` escapes
    expanded.
    """
    values: dict[str, str] = {}
    for raw in text.splitlines():
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        key = line_key(line)
        if not key:
            continue
        value = line.split("=", 1)[1]
        if len(value) >= 2 and value.startswith('"') and value.endswith('"'):
            value = value[1:-1].replace("\\n", "\n").replace('\\"', '"')
        values[key] = value
    return values


def upsert_lines(existing: str, updates: Mapping[str, str]) -> str:
    """Pure form of :func:`upsert_env_file`."""
    kept = [
        line
        for line in existing.splitlines()
        if line.strip() and line_key(line) not in updates
    ]
    kept.extend(f"{key}={normalize_env_value(value)}" for key, value in updates.items())
    return "\n".join(kept) + "\n"


def _read(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return ""
    except OSError as exc:
        raise EnvFileError(path, "read env file", str(exc)) from exc


def _write(path: Path, content: str) -> None:
    try:
        write_text(path, content)
    except OSError as exc:
        raise EnvFileError(path, "write env file", str(exc)) from exc


def _upsert_sync(path: Path, updates: dict[str, str]) -> None:
    _write(path, upsert_lines(_read(path), updates))


async def upsert_env_file(path: str | Path, updates: Mapping[str, str]) -> None:
    """Replace or add one ``KEY=VALUE`` line per entry in *updates*.

    Blank lines are dropped, every other line whose key is not updated is kept
    in place, and updated keys are appended in *updates* order.  The result
    ends with exactly one newline.  An empty *updates* performs no I/O: the
    file is neither created nor rewritten.
    """
    if not updates:
        return
    await asyncio.to_thread(_upsert_sync, Path(path), dict(updates))


def append_missing_lines(existing: str, snippet: str) -> str | None:
    """Pure form of :func:`append_env_file`; ``None`` when nothing is new."""
    present = {line.strip() for line in existing.splitlines() if line.strip()}
    lines = snippet.strip("\n").splitlines()
    if not any(line.strip() and line.strip() not in present for line in lines):
        return None

    additions: list[str] = []
    for line in lines:
        stripped = line.strip()
        if stripped and stripped in present and line_key(stripped) is not None:
            continue
        additions.append(line)

    separator = ""
    if existing and not existing.endswith("\n"):
        separator = "\n"
    if existing.strip():
        separator += "\n"
    return existing + separator + "\n".join(additions).rstrip("\n") + "\n"


def _append_sync(path: Path, snippet: str) -> bool:
    updated = append_missing_lines(_read(path), snippet)
    if updated is None:
        return False
    _write(path, updated)
    return True


async def append_env_file(path: str | Path, snippet: str) -> bool:
    """Append the lines of *snippet* that are not already in the file.

    Comparison is by full (stripped) line.  Comment and blank lines travel
    with their block when at least one variable line is new.  Creates the
    file if absent.

    Returns:
        ``True`` if the file was written.
    """
    return await asyncio.to_thread(_append_sync, Path(path), snippet)


async def append_env_to_targets(
    project_dir: str | Path, snippet: str, *, framework: str
) -> list[Path]:
    """Append *snippet* to the env files a framework reads.

    Next.js projects receive the snippet in every existing file from
    :data:`ENV_TARGET_FILES`; other frameworks (and Next.js projects with no
    env file yet) get ``.env.local``.

    Returns:
        The files that were modified.
    """
    root = Path(project_dir)
    targets: list[Path] = []
    if framework == "nextjs":
        targets = [root / name for name in ENV_TARGET_FILES if (root / name).exists()]
    if not targets:
        targets = [root / ".env.local"]

    written: list[Path] = []
    for target in targets:
        if await append_env_file(target, snippet):
            written.append(target)
    return written
