"""Flutter application generator.

Flutter apps have no ``package.json`` and read no ``.env`` files: dependencies
live in ``pubspec.yaml`` (rendered from the template corpus, where the
database client is switched in with ``{{#if database_*}}`` blocks) and the
install step is ``flutter pub get``.
"""

from __future__ import annotations

from .base import FrameworkGenerator


class FlutterGenerator(FrameworkGenerator):
    project_type = "flutter"
    supports_orm = False

    directories = ("lib", "test", "assets")

    variable_files = (
        "pubspec.yaml",
        "lib/main.dart",
        "test/widget_test.dart",
    )

    def setup_scripts(self) -> list[str]:
        return []

    async def write_env_files(self) -> None:
        if self.config.database is not None:
            self.step(
                f"Pass {self.config.database} credentials with --dart-define; "
                "no .env files are written for Flutter"
            )

    async def merge_manifests(self) -> None:
        """``pubspec.yaml`` is fully rendered from the template corpus."""
