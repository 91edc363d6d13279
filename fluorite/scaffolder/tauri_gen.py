"""Tauri desktop application generator."""

from __future__ import annotations

from typing import Any

from fluorite.utils import to_identifier

from .base import FrameworkGenerator
from .manifest import write_config_file

TAURI_VERSION = "^2.1.1"
DEV_PORT = 1420


class TauriGenerator(FrameworkGenerator):
    """Generates a Tauri 2 app with a Vite frontend and a Rust backend.

    ``src-tauri/Cargo.toml`` and the Rust sources come from the template
    corpus; ``src-tauri/tauri.conf.json`` is generator-owned.
    """

    project_type = "tauri"
    supports_orm = False

    directories = ("src", "src-tauri/src", "src-tauri/icons", "public")

    variable_files = (
        "index.html",
        "src/App.tsx",
        "src/main.ts",
        "src-tauri/Cargo.toml",
        "src-tauri/src/main.rs",
        "src-tauri/src/lib.rs",
    )

    template_excludes = {
        "vanilla": ("src/*.tsx", "src/App.css"),
        "javascript": ("src/*.tsx", "tsconfig.json"),
    }

    @property
    def uses_react(self) -> bool:
        return self.config.template != "vanilla"

    def tauri_conf(self) -> dict[str, Any]:
        identifier = to_identifier(self.config.name)
        run = "npm run" if self.context.package_manager == "npm" else self.context.package_manager
        return {
            "$schema": "https://schema.tauri.app/config/2",
            "productName": self.config.name,
            "version": "0.1.0",
            "identifier": f"com.{identifier.replace('_', '')}.app",
            "build": {
                "beforeDevCommand": f"{run} dev:web",
                "beforeBuildCommand": f"{run} build:web",
                "devUrl": f"http://localhost:{DEV_PORT}",
                "frontendDist": "../dist",
            },
            "app": {
                "windows": [
                    {
                        "title": self.config.name,
                        "width": 800,
                        "height": 600,
                        "minWidth": 400,
                        "minHeight": 300,
                        "resizable": True,
                    }
                ],
                "security": {"csp": None},
            },
            "bundle": {
                "active": True,
                "targets": "all",
                "icon": [
                    "icons/32x32.png",
                    "icons/128x128.png",
                    "icons/128x128@2x.png",
                    "icons/icon.icns",
                    "icons/icon.ico",
                ],
            },
        }

    async def write_config_files(self) -> None:
        conf = await write_config_file(
            self.root / "src-tauri" / "tauri.conf.json", self.tauri_conf()
        )
        self.result.record(conf)
        self.step("Wrote src-tauri/tauri.conf.json")

    def package_json(self) -> dict[str, Any]:
        dev_dependencies = {
            "@tauri-apps/cli": TAURI_VERSION,
            "vite": "^6.0.5",
        }
        dependencies = {
            "@tauri-apps/api": TAURI_VERSION,
            "@tauri-apps/plugin-shell": "^2.2.0",
        }
        if self.config.template != "javascript":
            dev_dependencies["typescript"] = "^5.7.2"
        if self.uses_react:
            dependencies.update({"react": "^18.3.1", "react-dom": "^18.3.1"})
            dev_dependencies.update(
                {
                    "@vitejs/plugin-react": "^4.3.4",
                    "@types/react": "^18.3.17",
                    "@types/react-dom": "^18.3.5",
                }
            )
        return {
            "name": self.package_name(),
            "version": "0.1.0",
            "private": True,
            "type": "module",
            "scripts": {
                "dev": "tauri dev",
                "build": "tauri build",
                "dev:web": "vite",
                "build:web": "vite build",
                "preview": "vite preview",
                "tauri": "tauri",
                "check:rust": "cd src-tauri && cargo check",
            },
            "dependencies": dependencies,
            "devDependencies": dev_dependencies,
        }
