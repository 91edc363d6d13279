"""Shared utility functions for the fluorite scaffolder.

Provides async command execution, JSON I/O, naming helpers, and Rich-based
progress reporting.  Output helpers accept an optional ``Console`` so callers
holding a :class:`~fluorite.scaffolder.base.GenerationContext` can route
everything through the console of the current invocation.
"""

from __future__ import annotations

import asyncio
import json
import os
import re
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.table import Table

console = Console()

# ---------------------------------------------------------------------------
# Async command execution
# ---------------------------------------------------------------------------


async def run_command(
    cmd: str | list[str],
    cwd: str | Path | None = None,
    timeout: int | None = None,
    capture: bool = True,
    env: dict[str, str] | None = None,
) -> tuple[int, str, str]:
    """Run a command asynchronously.

    Args:
        cmd: Shell command string or list of arguments.
        cwd: Working directory for the child process.
        timeout: Maximum wall-clock seconds before the process is killed.
            ``None`` waits for the process to exit on its own.
        capture: Whether to capture stdout/stderr (if ``False`` they inherit
            the parent's streams).
        env: Optional extra environment variables merged on top of ``os.environ``.

    Returns:
        A ``(returncode, stdout, stderr)`` tuple.  If *capture* is ``False``
        the stdout/stderr strings will be empty.

    Raises:
        FileNotFoundError: If the executable in a list-form *cmd* does not exist.
    """
    merged_env: dict[str, str] | None = None
    if env:
        merged_env = {**os.environ, **env}

    stdout_pipe = asyncio.subprocess.PIPE if capture else None
    stderr_pipe = asyncio.subprocess.PIPE if capture else None

    if isinstance(cmd, list):
        process = await asyncio.create_subprocess_exec(
            *cmd,
            stdout=stdout_pipe,
            stderr=stderr_pipe,
            cwd=str(cwd) if cwd else None,
            env=merged_env,
        )
    else:
        process = await asyncio.create_subprocess_shell(
            cmd,
            stdout=stdout_pipe,
            stderr=stderr_pipe,
            cwd=str(cwd) if cwd else None,
            env=merged_env,
        )

    try:
        stdout_bytes, stderr_bytes = await asyncio.wait_for(
            process.communicate(), timeout=timeout
        )
    except asyncio.TimeoutError:
        process.kill()
        await process.wait()
        return (
            -1,
            "",
            f"Command timed out after {timeout}s: {format_command(cmd)}",
        )

    stdout_str = (stdout_bytes or b"").decode("utf-8", errors="replace").strip()
    stderr_str = (stderr_bytes or b"").decode("utf-8", errors="replace").strip()
    return (process.returncode or 0, stdout_str, stderr_str)


def format_command(cmd: str | list[str]) -> str:
    """Return a printable form of *cmd*."""
    return cmd if isinstance(cmd, str) else " ".join(cmd)


# ---------------------------------------------------------------------------
# String / name helpers
# ---------------------------------------------------------------------------


def sanitize_name(name: str) -> str:
    """Convert an arbitrary project name to a safe directory/slug name.

    * Lowercases the input.
    * Replaces spaces and non-alphanumeric characters (except hyphens and
      underscores) with hyphens.
    * Collapses consecutive hyphens and strips leading/trailing hyphens.

    Examples::

        sanitize_name("My Cool App") -> "my-cool-app"
        sanitize_name("  Shop (Beta)  ") -> "shop-beta"
    """
    result = re.sub(r"[^a-zA-Z0-9_-]", "-", name.strip().lower())
    result = re.sub(r"-+", "-", result)
    return result.strip("-")


def to_package_name(name: str) -> str:
    """Return an npm-compatible package name for *name*.

    Scoped names (``@scope/pkg``) keep their scope; everything else goes
    through :func:`sanitize_name`.  Falls back to ``"app"`` when nothing
    usable remains.
    """
    if name.startswith("@") and "/" in name:
        scope, _, pkg = name[1:].partition("/")
        return f"@{sanitize_name(scope)}/{sanitize_name(pkg) or 'app'}"
    return sanitize_name(name) or "app"


def to_identifier(name: str) -> str:
    """Return a ``snake_case`` identifier usable as a Cargo crate or Dart package.

    Examples::

        to_identifier("My Cool-App") -> "my_cool_app"
        to_identifier("3d-viewer")   -> "app_3d_viewer"
    """
    base = name.rsplit("/", 1)[-1]
    result = re.sub(r"[^a-z0-9]+", "_", base.lower()).strip("_")
    if not result:
        return "app"
    if result[0].isdigit():
        result = f"app_{result}"
    return result


# ---------------------------------------------------------------------------
# JSON I/O
# ---------------------------------------------------------------------------


def dump_json(data: Any, *, sort_keys: bool = False) -> str:
    """Serialise *data* the way every generated JSON file is written.

    Two-space indentation, non-ASCII preserved, exactly one trailing newline.
    """
    return json.dumps(data, indent=2, ensure_ascii=False, sort_keys=sort_keys) + "\n"


async def save_json(
    data: dict[str, Any] | list[Any],
    path: str | Path,
    *,
    sort_keys: bool = False,
) -> None:
    """Save data as pretty-printed JSON.

    Parent directories are created automatically.  The write itself is
    performed in a worker thread to avoid blocking the event loop.

    Args:
        data: Serialisable data (dict or list).
        path: Destination file path.
        sort_keys: Recursively sort object keys for deterministic output.
    """
    file_path = Path(path)
    content = dump_json(data, sort_keys=sort_keys)
    await asyncio.to_thread(write_text, file_path, content)


# ---------------------------------------------------------------------------
# File-system helpers
# ---------------------------------------------------------------------------


def ensure_dir(path: str | Path) -> Path:
    """Create a directory (and parents) if it does not exist.

    Args:
        path: Directory path.

    Returns:
        The ``Path`` object.
    """
    dir_path = Path(path)
    dir_path.mkdir(parents=True, exist_ok=True)
    return dir_path


def write_text(path: Path, content: str) -> None:
    """Synchronous helper: create parent dirs and write UTF-8 content."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


def make_executable(path: Path) -> None:
    """Set mode ``0o755`` on a file."""
    path.chmod(0o755)


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------


def format_duration(seconds: float) -> str:
    """Format a duration in seconds to a human-readable string.

    Examples::

        format_duration(3.7)    -> "3.7s"
        format_duration(65.2)   -> "1m 5s"
        format_duration(3661.0) -> "1h 1m 1s"
    """
    if seconds < 0:
        return "0.0s"

    hours = int(seconds // 3600)
    minutes = int((seconds % 3600) // 60)
    secs = seconds % 60

    parts: list[str] = []
    if hours > 0:
        parts.append(f"{hours}h")
    if minutes > 0:
        parts.append(f"{minutes}m")

    if hours > 0 or minutes > 0:
        parts.append(f"{int(secs)}s")
    else:
        parts.append(f"{secs:.1f}s")

    return " ".join(parts)


# ---------------------------------------------------------------------------
# Rich output helpers
# ---------------------------------------------------------------------------


def print_summary_table(
    data: dict[str, str],
    title: str = "Summary",
    *,
    out: Console | None = None,
) -> None:
    """Print a two-column key/value summary table.

    Args:
        data: Mapping of label -> value.
        title: Table title.
        out: Console to print to (module console by default).
    """
    target = out or console
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Item", style="dim", no_wrap=True)
    table.add_column("Value")

    for key, value in data.items():
        table.add_row(key, str(value))

    target.print(table)
    target.print()


def print_success(message: str, *, out: Console | None = None) -> None:
    """Print a green success message."""
    (out or console).print(f"[bold green]{message}[/bold green]")


def print_error(message: str, *, out: Console | None = None) -> None:
    """Print a red error message."""
    (out or console).print(f"[bold red]{message}[/bold red]")


def print_warning(message: str, *, out: Console | None = None) -> None:
    """Print a yellow warning message."""
    (out or console).print(f"[bold yellow]{message}[/bold yellow]")


def print_step(message: str, *, out: Console | None = None) -> None:
    """Print an indented progress line for a completed generation step."""
    (out or console).print(f"  [green]+[/green] {message}")
