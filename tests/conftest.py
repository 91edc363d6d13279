"""Shared pytest fixtures for the fluorite test suite.

Provides reusable fixtures for:
- Temporary target directories
- Resolved project configs (single package and workspace layouts)
- A generation context that never shells out and records console output
- A fake pnpm version check
"""

from __future__ import annotations

import io
from pathlib import Path
from typing import Any, Callable

import pytest
from rich.console import Console

from fluorite.config import PnpmStatus, ProjectConfig, Settings, resolve
from fluorite.scaffolder.base import GenerationContext


# ---------------------------------------------------------------------------
# Paths & Directories
# ---------------------------------------------------------------------------


@pytest.fixture
def tmp_project_dir(tmp_path: Path) -> Path:
    """Target directory for a generated project (not created yet)."""
    return tmp_path / "my-app"


# ---------------------------------------------------------------------------
# pnpm version check
# ---------------------------------------------------------------------------


@pytest.fixture
def pnpm_ok() -> Callable[[], PnpmStatus]:
    """pnpm check reporting a supported version."""
    return lambda: PnpmStatus(found=True, version="10.18.1", major=10)


@pytest.fixture
def pnpm_missing() -> Callable[[], PnpmStatus]:
    return lambda: PnpmStatus(found=False)


@pytest.fixture(autouse=True)
def no_real_pnpm(monkeypatch):
    """Never query the pnpm installed on the machine running the tests."""
    monkeypatch.setattr(
        "fluorite.config.detect_pnpm",
        lambda: PnpmStatus(found=True, version="10.18.1", major=10),
    )


# ---------------------------------------------------------------------------
# Configs
# ---------------------------------------------------------------------------


@pytest.fixture
def make_config(tmp_project_dir: Path, pnpm_ok) -> Callable[..., ProjectConfig]:
    """Factory resolving raw options into a ``ProjectConfig`` under tmp_path.

    Defaults to the single-package layout; pass ``simple=False`` for a
    pnpm workspace.
    """

    def _make(project_type: str = "nextjs", **raw: Any) -> ProjectConfig:
        options: dict[str, Any] = {
            "type": project_type,
            "name": "my-app",
            "dir": str(tmp_project_dir),
            "simple": True,
        }
        options.update(raw)
        return resolve(options, pnpm_checker=pnpm_ok)

    return _make


# ---------------------------------------------------------------------------
# Generation context
# ---------------------------------------------------------------------------


@pytest.fixture
def console_buffer() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def quiet_console(console_buffer: io.StringIO) -> Console:
    """Rich console writing to a buffer instead of the terminal."""
    return Console(file=console_buffer, force_terminal=False, width=120)


@pytest.fixture
def context(quiet_console: Console) -> GenerationContext:
    """Context that skips installs and git hooks."""
    return GenerationContext.create(Settings(skip_install=True), console=quiet_console)
