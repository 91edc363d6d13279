"""Tests for the template directory copier.

Covers:
- Sorted, deterministic walk and the reported CopyResult
- Variable files rendered, everything else copied byte-for-byte
- Glob exclusion with ``*`` and ``**``
- overwrite=False and untouched unrelated files
- JSON manifests merged into an existing target file
- chmod limited to the files actually written
- Template root and layer lookup errors
"""

from __future__ import annotations

import json
import os
from pathlib import Path

import pytest

from fluorite.errors import TemplateCopyError, TemplateNotFoundError
from fluorite.scaffolder.copier import (
    collect_entries,
    copy_template,
    is_excluded,
    resolve_template_root,
    template_sources,
)

pytestmark = pytest.mark.unit


@pytest.fixture
def source(tmp_path: Path) -> Path:
    """A small template tree with a text file, a binary file and a script."""
    root = tmp_path / "template"
    (root / "src" / "lib").mkdir(parents=True)
    (root / "prisma").mkdir()
    (root / "scripts").mkdir()
    (root / "README.md").write_text("# {{projectName}}\n", encoding="utf-8")
    (root / "src" / "page.tsx").write_text(
        "<h1>{{projectName}}</h1>{{#if auth}}<Login />{{/if}}\n", encoding="utf-8"
    )
    (root / "src" / "lib" / "db.ts").write_text("export const db = 1;\n", encoding="utf-8")
    (root / "prisma" / "schema.prisma").write_text("// {{projectName}}\n", encoding="utf-8")
    (root / "scripts" / "run.sh").write_text("#!/bin/sh\necho hi\n", encoding="utf-8")
    (root / "logo.png").write_bytes(b"\x89PNG\r\n\x1a\n\x00{{projectName}}\xff")
    return root


# ---------------------------------------------------------------------------
# Exclusion patterns
# ---------------------------------------------------------------------------


class TestIsExcluded:
    def test_single_star_stays_in_segment(self):
        assert is_excluded("src/page.tsx", ["src/*.tsx"])
        assert not is_excluded("src/app/page.tsx", ["src/*.tsx"])

    def test_double_star_crosses_segments(self):
        assert is_excluded("src/app/api/auth/route.ts", ["src/app/**"])

    def test_trailing_double_star_matches_directory(self):
        assert is_excluded("prisma", ["prisma/**"])

    def test_literal_path(self):
        assert is_excluded("drizzle.config.ts", ["drizzle.config.ts"])
        assert not is_excluded("drizzle.config.tsx", ["drizzle.config.ts"])

    def test_brackets_are_literal(self):
        assert is_excluded("src/app/api/auth/[...all]/route.ts", ["src/app/api/auth/**"])

    def test_no_patterns(self):
        assert not is_excluded("anything", [])


class TestCollectEntries:
    def test_sorted_walk(self, source):
        entries = collect_entries(source)
        assert entries.directories == ["prisma", "scripts", "src", "src/lib"]
        assert entries.files == [
            "README.md",
            "logo.png",
            "prisma/schema.prisma",
            "scripts/run.sh",
            "src/lib/db.ts",
            "src/page.tsx",
        ]

    def test_excluded_directory_skips_children(self, source):
        entries = collect_entries(source, ["prisma/**"])
        assert "prisma" not in entries.directories
        assert "prisma/schema.prisma" not in entries.files


# ---------------------------------------------------------------------------
# copy_template
# ---------------------------------------------------------------------------


class TestCopyTemplate:
    @pytest.mark.asyncio
    async def test_renders_only_variable_files(self, source, tmp_path):
        target = tmp_path / "out"
        result = await copy_template(
            source,
            target,
            variable_files=["src/page.tsx"],
            substitutions={"projectName": "Demo"},
            flags={"auth": True},
        )
        assert (target / "src" / "page.tsx").read_text(encoding="utf-8") == (
            "<h1>Demo</h1><Login />\n"
        )
        # Not listed, so copied verbatim.
        assert (target / "README.md").read_text(encoding="utf-8") == "# {{projectName}}\n"
        assert "src/page.tsx" in result.files
        assert "." in result.directories

    @pytest.mark.asyncio
    async def test_binary_files_byte_identical(self, source, tmp_path):
        target = tmp_path / "out"
        await copy_template(
            source, target, variable_files=["README.md"], substitutions={"projectName": "X"}
        )
        assert (target / "logo.png").read_bytes() == (source / "logo.png").read_bytes()

    @pytest.mark.asyncio
    async def test_exclude_patterns(self, source, tmp_path):
        target = tmp_path / "out"
        result = await copy_template(source, target, exclude_patterns=["prisma/**", "src/lib/*"])
        assert not (target / "prisma").exists()
        assert not (target / "src" / "lib" / "db.ts").exists()
        assert "prisma/schema.prisma" not in result.files

    @pytest.mark.asyncio
    async def test_existing_target_keeps_unrelated_files(self, source, tmp_path):
        target = tmp_path / "out"
        target.mkdir()
        (target / "notes.txt").write_text("mine", encoding="utf-8")
        result = await copy_template(source, target)
        assert (target / "notes.txt").read_text(encoding="utf-8") == "mine"
        assert "." not in result.directories

    @pytest.mark.asyncio
    async def test_overwrite_false_skips_existing(self, source, tmp_path):
        target = tmp_path / "out"
        target.mkdir()
        (target / "README.md").write_text("custom", encoding="utf-8")
        result = await copy_template(source, target, overwrite=False)
        assert (target / "README.md").read_text(encoding="utf-8") == "custom"
        assert "README.md" not in result.files
        assert "src/page.tsx" in result.files

    @pytest.mark.asyncio
    async def test_overwrite_true_replaces(self, source, tmp_path):
        target = tmp_path / "out"
        target.mkdir()
        (target / "README.md").write_text("custom", encoding="utf-8")
        await copy_template(source, target)
        assert (target / "README.md").read_text(encoding="utf-8") == "# {{projectName}}\n"

    @pytest.mark.asyncio
    @pytest.mark.skipif(os.name == "nt", reason="no executable bit on Windows")
    async def test_executable_files(self, source, tmp_path):
        target = tmp_path / "out"
        await copy_template(source, target, executable_files=["scripts/run.sh", "missing.sh"])
        assert (target / "scripts" / "run.sh").stat().st_mode & 0o111

    @pytest.mark.asyncio
    @pytest.mark.skipif(os.name == "nt", reason="no executable bit on Windows")
    async def test_chmod_only_files_written(self, source, tmp_path):
        target = tmp_path / "out"
        (target / "scripts").mkdir(parents=True)
        kept = target / "scripts" / "run.sh"
        kept.write_text("mine", encoding="utf-8")
        kept.chmod(0o644)
        await copy_template(
            source, target, executable_files=["scripts/run.sh"], overwrite=False
        )
        assert kept.read_text(encoding="utf-8") == "mine"
        assert not kept.stat().st_mode & 0o111

    @pytest.mark.asyncio
    async def test_manifest_merged_into_existing(self, source, tmp_path):
        (source / "tsconfig.json").write_text(
            '{"compilerOptions": {"strict": true, "jsx": "react-jsx"}}', encoding="utf-8"
        )
        target = tmp_path / "out"
        target.mkdir()
        (target / "tsconfig.json").write_text(
            '{"extends": "./base.json", "compilerOptions": {"baseUrl": ".", "strict": false}}',
            encoding="utf-8",
        )
        result = await copy_template(source, target, manifest_files=["tsconfig.json"])
        merged = json.loads((target / "tsconfig.json").read_text(encoding="utf-8"))
        assert merged == {
            "extends": "./base.json",
            "compilerOptions": {"baseUrl": ".", "strict": True, "jsx": "react-jsx"},
        }
        assert "tsconfig.json" in result.files

    @pytest.mark.asyncio
    async def test_manifest_copied_verbatim_when_absent(self, source, tmp_path):
        text = '{"compilerOptions": {"strict": true}}\n'
        (source / "tsconfig.json").write_text(text, encoding="utf-8")
        target = tmp_path / "out"
        await copy_template(source, target, manifest_files=["tsconfig.json"])
        assert (target / "tsconfig.json").read_text(encoding="utf-8") == text

    @pytest.mark.asyncio
    async def test_missing_source(self, tmp_path):
        with pytest.raises(TemplateNotFoundError):
            await copy_template(tmp_path / "nope", tmp_path / "out")

    @pytest.mark.asyncio
    async def test_undecodable_variable_file(self, source, tmp_path):
        with pytest.raises(TemplateCopyError) as exc_info:
            await copy_template(source, tmp_path / "out", variable_files=["logo.png"])
        assert exc_info.value.path.name == "logo.png"


# ---------------------------------------------------------------------------
# Template lookup
# ---------------------------------------------------------------------------


class TestTemplateLookup:
    def test_packaged_root(self):
        root = resolve_template_root()
        assert (root / "nextjs" / "base").is_dir()

    def test_override_root(self, tmp_path):
        assert resolve_template_root(tmp_path) == tmp_path

    def test_missing_root(self, tmp_path):
        with pytest.raises(TemplateNotFoundError):
            resolve_template_root(tmp_path / "missing")

    def test_layers_in_order(self):
        root = resolve_template_root()
        layers = template_sources(root, "nextjs", "fullstack-admin")
        assert [layer.name for layer in layers] == ["base", "fullstack-admin"]

    def test_base_only(self):
        root = resolve_template_root()
        layers = template_sources(root, "nextjs", "typescript")
        assert [layer.name for layer in layers] == ["base"]

    def test_no_layers(self, tmp_path):
        with pytest.raises(TemplateNotFoundError):
            template_sources(tmp_path, "nextjs", "typescript")
