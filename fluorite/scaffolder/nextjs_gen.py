"""Next.js application generator."""

from __future__ import annotations

from typing import Any

from .base import FrameworkGenerator
from .manifest import write_config_file

NEXT_VERSION = "^15.1.0"
REACT_VERSION = "^19.0.0"

BIOME_VERSION = "1.9.4"

BIOME_CONFIG: dict[str, Any] = {
    "$schema": f"https://biomejs.dev/schemas/{BIOME_VERSION}/schema.json",
    "vcs": {"enabled": True, "clientKind": "git", "useIgnoreFile": True},
    "files": {"ignore": ["node_modules", ".next", "dist", "*.min.js", "coverage"]},
    "formatter": {
        "enabled": True,
        "formatWithErrors": False,
        "indentStyle": "space",
        "indentWidth": 2,
        "lineEnding": "lf",
        "lineWidth": 100,
    },
    "organizeImports": {"enabled": True},
    "linter": {
        "enabled": True,
        "rules": {
            "recommended": True,
            "correctness": {"noUnusedVariables": "error"},
            "style": {"noNonNullAssertion": "warn", "useConst": "error"},
            "suspicious": {"noDoubleEquals": "error", "noDebugger": "error"},
        },
    },
    "javascript": {
        "formatter": {
            "quoteStyle": "single",
            "jsxQuoteStyle": "double",
            "trailingCommas": "es5",
            "semicolons": "always",
        },
    },
}

TSCONFIG: dict[str, Any] = {
    "compilerOptions": {
        "target": "ES2017",
        "lib": ["dom", "dom.iterable", "esnext"],
        "allowJs": True,
        "skipLibCheck": True,
        "strict": True,
        "noEmit": True,
        "esModuleInterop": True,
        "module": "esnext",
        "moduleResolution": "bundler",
        "resolveJsonModule": True,
        "isolatedModules": True,
        "jsx": "preserve",
        "incremental": True,
        "plugins": [{"name": "next"}],
        "paths": {"@/*": ["./src/*"]},
    },
    "include": ["next-env.d.ts", "**/*.ts", "**/*.tsx", ".next/types/**/*.ts"],
    "exclude": ["node_modules"],
}


class NextjsGenerator(FrameworkGenerator):
    """Generates a Next.js app (App Router by default)."""

    project_type = "nextjs"

    directories = (
        "src/app",
        "src/components",
        "src/lib",
        "public",
    )

    variable_files = (
        "src/app/layout.tsx",
        "src/app/page.tsx",
        "src/app/layout.jsx",
        "src/app/page.jsx",
        "src/app/admin/page.tsx",
        "src/pages/index.tsx",
        "src/lib/db.ts",
        "src/lib/storage.ts",
        "src/lib/auth.ts",
        "prisma/schema.prisma",
        "drizzle.config.ts",
    )

    template_excludes = {
        "pages-router": ("src/app/**",),
        "javascript": ("src/app/*.tsx", "next.config.ts"),
    }

    database_files = ("src/lib/db.ts",)
    prisma_files = ("prisma/**",)
    drizzle_files = ("drizzle.config.ts", "src/db/**")
    storage_files = ("src/lib/storage.ts",)
    auth_files = ("src/lib/auth.ts", "src/app/api/auth/**")

    @property
    def uses_typescript(self) -> bool:
        return self.config.template != "javascript"

    def tsconfig(self) -> dict[str, Any]:
        tsconfig = dict(TSCONFIG)
        if self.config.should_generate_docs and not self.config.monorepo:
            # The docs site is its own Next.js app with its own dependencies.
            tsconfig["exclude"] = [*TSCONFIG["exclude"], "docs"]
        return tsconfig

    async def write_config_files(self) -> None:
        biome = await write_config_file(self.root / "biome.json", BIOME_CONFIG)
        self.result.record(biome)
        if not self.uses_typescript:
            self.step("Wrote biome.json")
            return
        tsconfig = await write_config_file(self.root / "tsconfig.json", self.tsconfig())
        self.result.record(tsconfig)
        self.step("Wrote biome.json and tsconfig.json")

    def package_json(self) -> dict[str, Any]:
        dev_dependencies = {
            "@biomejs/biome": f"^{BIOME_VERSION}",
            "husky": "^9.1.7",
        }
        if self.uses_typescript:
            dev_dependencies.update(
                {
                    "typescript": "^5.7.2",
                    "@types/node": "^22.10.2",
                    "@types/react": "^19.0.2",
                    "@types/react-dom": "^19.0.2",
                }
            )
        return {
            "name": self.package_name(),
            "version": "0.1.0",
            "private": True,
            "scripts": {
                "dev": "next dev --turbopack",
                "build": "next build",
                "start": "next start",
                "lint": "biome lint .",
                "format": "biome format --write .",
                "check": "biome check .",
                "prepare": "husky",
            },
            "dependencies": {
                "next": NEXT_VERSION,
                "react": REACT_VERSION,
                "react-dom": REACT_VERSION,
            },
            "devDependencies": dev_dependencies,
        }
