"""Expo (React Native) application generator."""

from __future__ import annotations

from typing import Any

from fluorite.utils import to_identifier

from .base import FrameworkGenerator
from .manifest import write_config_file

EXPO_VERSION = "~52.0.23"


class ExpoGenerator(FrameworkGenerator):
    """Generates an Expo Router app."""

    project_type = "expo"
    supports_orm = False

    directories = ("app", "assets", "src/lib")

    variable_files = (
        "app/index.tsx",
        "app/index.jsx",
        "app/(tabs)/index.tsx",
        "app/_layout.tsx",
        "src/lib/auth-client.ts",
        "src/graphql/client.ts",
    )

    template_excludes = {
        "tabs": ("app/index.tsx",),
        "javascript": ("app/*.tsx", "tsconfig.json"),
    }

    auth_files = ("src/lib/auth-client.ts",)

    def exclude_patterns(self) -> list[str]:
        patterns = super().exclude_patterns()
        if self.config.database != "supabase":
            patterns.append("src/lib/supabase.ts")
        return patterns

    def app_json(self) -> dict[str, Any]:
        identifier = to_identifier(self.config.name)
        bundle_id = f"com.{identifier.replace('_', '')}.app"
        return {
            "expo": {
                "name": self.config.name,
                "slug": self.config.slug.lstrip("@").replace("/", "-"),
                "version": "1.0.0",
                "orientation": "portrait",
                "scheme": identifier.replace("_", "-"),
                "userInterfaceStyle": "automatic",
                "newArchEnabled": True,
                "ios": {"supportsTablet": True, "bundleIdentifier": bundle_id},
                "android": {"package": bundle_id},
                "web": {"bundler": "metro", "output": "static"},
                "plugins": ["expo-router"],
                "experiments": {"typedRoutes": self.config.template != "javascript"},
            }
        }

    async def write_config_files(self) -> None:
        app_json = await write_config_file(self.root / "app.json", self.app_json())
        self.result.record(app_json)
        self.step("Wrote app.json")

    def env_snippet(self) -> str:
        # Expo only inlines variables prefixed with EXPO_PUBLIC_ into the bundle.
        base = (
            "# Expo\n"
            f"EXPO_PUBLIC_APP_NAME={self.config.slug}\n"
            "EXPO_PUBLIC_API_URL=http://localhost:3000\n"
        )
        snippet = super().env_snippet().replace("NEXT_PUBLIC_", "EXPO_PUBLIC_")
        return f"{base}\n{snippet}" if snippet else base

    def package_json(self) -> dict[str, Any]:
        dependencies = {
            "expo": EXPO_VERSION,
            "expo-router": "~4.0.15",
            "expo-status-bar": "~2.0.0",
            "expo-linking": "~7.0.3",
            "expo-constants": "~17.0.3",
            "react": "18.3.1",
            "react-native": "0.76.5",
            "react-native-safe-area-context": "4.12.0",
            "react-native-screens": "~4.4.0",
        }
        if self.config.template == "fullstack-graphql":
            dependencies.update({"@apollo/client": "^3.12.4", "graphql": "^16.10.0"})
        dev_dependencies: dict[str, str] = {"@babel/core": "^7.26.0"}
        if self.config.template != "javascript":
            dev_dependencies.update({"typescript": "~5.7.2", "@types/react": "~18.3.12"})
        return {
            "name": self.package_name(),
            "version": "1.0.0",
            "private": True,
            "main": "expo-router/entry",
            "scripts": {
                "dev": "expo start",
                "start": "expo start",
                "android": "expo start --android",
                "ios": "expo start --ios",
                "web": "expo start --web",
                "lint": "expo lint",
            },
            "dependencies": dependencies,
            "devDependencies": dev_dependencies,
        }
