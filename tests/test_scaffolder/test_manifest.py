"""Tests for package.json / JSON config merging.

Covers:
- Missing and unparseable manifests
- Key-union of dependency and script sections
- Sorted, idempotent output
- postinstall handling
- Generator-owned config files
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from fluorite.errors import ManifestError
from fluorite.scaffolder.manifest import (
    add_postinstall_script,
    add_scripts,
    merge_fields,
    merge_manifest,
    merge_package_json,
    read_manifest,
    sort_keys,
    write_config_file,
)

pytestmark = pytest.mark.unit


def _load(path: Path) -> dict:
    return json.loads(path.read_text(encoding="utf-8"))


# ---------------------------------------------------------------------------
# Pure helpers
# ---------------------------------------------------------------------------


class TestMergeFields:
    def test_top_level_replaced(self):
        merged = merge_fields({"name": "a", "version": "1"}, {"name": "b"})
        assert merged == {"name": "b", "version": "1"}

    def test_sections_key_unioned(self):
        merged = merge_fields(
            {"dependencies": {"react": "^18", "zod": "^3"}},
            {"dependencies": {"react": "^19", "next": "^15"}},
        )
        assert merged["dependencies"] == {"react": "^19", "zod": "^3", "next": "^15"}

    def test_lists_replaced(self):
        merged = merge_fields({"workspaces": ["a"]}, {"workspaces": ["b"]})
        assert merged["workspaces"] == ["b"]

    def test_nested_objects_merged(self):
        merged = merge_fields(
            {"compilerOptions": {"baseUrl": ".", "paths": {"~/*": ["./lib/*"]}}},
            {"compilerOptions": {"paths": {"@/*": ["./src/*"]}, "strict": True}},
        )
        assert merged["compilerOptions"] == {
            "baseUrl": ".",
            "paths": {"~/*": ["./lib/*"], "@/*": ["./src/*"]},
            "strict": True,
        }

    def test_object_replaces_scalar(self):
        assert merge_fields({"tasks": "x"}, {"tasks": {"build": {}}}) == {"tasks": {"build": {}}}

    def test_section_added_when_missing(self):
        merged = merge_fields({}, {"scripts": {"dev": "next dev"}})
        assert merged["scripts"] == {"dev": "next dev"}

    def test_sort_keys_recursive(self):
        assert list(sort_keys({"b": {"d": 1, "c": 2}, "a": [{"z": 1, "y": 2}]})) == ["a", "b"]
        assert list(sort_keys({"b": {"d": 1, "c": 2}})["b"]) == ["c", "d"]
        assert list(sort_keys({"a": [{"z": 1, "y": 2}]})["a"][0]) == ["y", "z"]


class TestReadManifest:
    def test_missing(self, tmp_path):
        assert read_manifest(tmp_path / "package.json") == {}

    def test_unparseable(self, tmp_path):
        path = tmp_path / "package.json"
        path.write_text("{not json", encoding="utf-8")
        assert read_manifest(path) == {}

    def test_non_object_root(self, tmp_path):
        path = tmp_path / "package.json"
        path.write_text("[1, 2]", encoding="utf-8")
        assert read_manifest(path) == {}


# ---------------------------------------------------------------------------
# merge_manifest
# ---------------------------------------------------------------------------


class TestMergeManifest:
    @pytest.mark.asyncio
    async def test_creates_missing_file(self, tmp_path):
        path = tmp_path / "package.json"
        await merge_manifest(path, {"name": "demo", "dependencies": {"next": "^15"}})
        assert _load(path) == {"dependencies": {"next": "^15"}, "name": "demo"}

    @pytest.mark.asyncio
    async def test_preserves_existing_entries(self, tmp_path):
        path = tmp_path / "package.json"
        path.write_text(
            json.dumps({"name": "demo", "scripts": {"lint": "eslint ."}, "custom": True}),
            encoding="utf-8",
        )
        merged = await merge_manifest(path, {"scripts": {"dev": "next dev"}})
        assert merged["scripts"] == {"dev": "next dev", "lint": "eslint ."}
        assert merged["custom"] is True

    @pytest.mark.asyncio
    async def test_output_format(self, tmp_path):
        path = tmp_path / "package.json"
        await merge_manifest(path, {"b": 1, "a": {"y": 1, "x": 2}})
        assert path.read_text(encoding="utf-8") == (
            '{\n  "a": {\n    "x": 2,\n    "y": 1\n  },\n  "b": 1\n}\n'
        )

    @pytest.mark.asyncio
    async def test_idempotent(self, tmp_path):
        additions = {"dependencies": {"prisma": "^6"}, "scripts": {"db:push": "prisma db push"}}
        await merge_package_json(tmp_path, additions)
        first = (tmp_path / "package.json").read_bytes()
        await merge_package_json(tmp_path, additions)
        assert (tmp_path / "package.json").read_bytes() == first

    @pytest.mark.asyncio
    async def test_non_ascii_preserved(self, tmp_path):
        await merge_package_json(tmp_path, {"description": "café"})
        assert "café" in (tmp_path / "package.json").read_text(encoding="utf-8")

    @pytest.mark.asyncio
    async def test_write_failure(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("", encoding="utf-8")
        with pytest.raises(ManifestError) as exc_info:
            await merge_manifest(blocker / "package.json", {"name": "x"})
        assert exc_info.value.path == blocker / "package.json"

    @pytest.mark.asyncio
    async def test_add_scripts(self, tmp_path):
        await merge_package_json(tmp_path, {"name": "x", "scripts": {"dev": "vite"}})
        await add_scripts(tmp_path, {"build": "vite build"})
        assert _load(tmp_path / "package.json")["scripts"] == {
            "build": "vite build",
            "dev": "vite",
        }


# ---------------------------------------------------------------------------
# postinstall
# ---------------------------------------------------------------------------


class TestPostinstall:
    @pytest.mark.asyncio
    async def test_sets_when_absent(self, tmp_path):
        await merge_package_json(tmp_path, {"name": "x"})
        await add_postinstall_script(tmp_path)
        assert _load(tmp_path / "package.json")["scripts"]["postinstall"] == "prisma generate"

    @pytest.mark.asyncio
    async def test_prepends_to_existing(self, tmp_path):
        await merge_package_json(tmp_path, {"scripts": {"postinstall": "patch-package"}})
        await add_postinstall_script(tmp_path)
        assert _load(tmp_path / "package.json")["scripts"]["postinstall"] == (
            "prisma generate && patch-package"
        )

    @pytest.mark.asyncio
    async def test_unchanged_when_present(self, tmp_path):
        await merge_package_json(
            tmp_path, {"scripts": {"postinstall": "patch-package && prisma generate"}}
        )
        before = (tmp_path / "package.json").read_bytes()
        await add_postinstall_script(tmp_path)
        assert (tmp_path / "package.json").read_bytes() == before

    @pytest.mark.asyncio
    async def test_custom_command(self, tmp_path):
        await add_postinstall_script(tmp_path, "husky")
        assert _load(tmp_path / "package.json")["scripts"]["postinstall"] == "husky"


# ---------------------------------------------------------------------------
# write_config_file
# ---------------------------------------------------------------------------


class TestWriteConfigFile:
    @pytest.mark.asyncio
    async def test_merges_into_existing(self, tmp_path):
        path = tmp_path / "nested" / "tsconfig.json"
        path.parent.mkdir()
        path.write_text(
            '{"extends": "./base.json", "compilerOptions": {"baseUrl": ".", "strict": false}}',
            encoding="utf-8",
        )
        written = await write_config_file(path, {"compilerOptions": {"strict": True}})
        assert written == path
        assert _load(path) == {
            "extends": "./base.json",
            "compilerOptions": {"baseUrl": ".", "strict": True},
        }

    @pytest.mark.asyncio
    async def test_unparseable_file_replaced(self, tmp_path):
        path = tmp_path / "turbo.json"
        path.write_text("{not json", encoding="utf-8")
        await write_config_file(path, {"tasks": {}})
        assert _load(path) == {"tasks": {}}

    @pytest.mark.asyncio
    async def test_keeps_insertion_order_unless_sorted(self, tmp_path):
        path = tmp_path / "app.json"
        await write_config_file(path, {"z": 1, "a": 2})
        assert list(_load(path)) == ["z", "a"]
        await write_config_file(path, {"z": 1, "a": 2}, sort=True)
        assert list(_load(path)) == ["a", "z"]
