"""Tests for the ``{{...}}`` markup renderer.

Covers:
- Placeholder substitution (known, unknown, booleans, numbers)
- Conditional blocks with and without ``{{else}}``
- Nested-block detection and strict rendering
- Variables derived from a ProjectConfig
"""

from __future__ import annotations

from pathlib import Path

import pytest

from fluorite.config import ProjectConfig
from fluorite.errors import NestedConditionalError
from fluorite.scaffolder.markup import (
    build_variables,
    find_nested_conditionals,
    placeholders,
    render,
)

pytestmark = pytest.mark.unit


def _config(**overrides) -> ProjectConfig:
    fields = {
        "name": "My App",
        "directory": Path("my-app"),
        "type": "nextjs",
        "template": "typescript",
        "monorepo": False,
    }
    fields.update(overrides)
    return ProjectConfig(**fields)


# ---------------------------------------------------------------------------
# Substitution
# ---------------------------------------------------------------------------


class TestSubstitution:
    def test_known_placeholder(self):
        assert render("Hello {{name}}!", {"name": "World"}) == "Hello World!"

    def test_unknown_placeholder_left_verbatim(self):
        assert render("{{missing}} and {{name}}", {"name": "x"}) == "{{missing}} and x"

    def test_booleans_render_lowercase(self):
        assert render("{{a}}/{{b}}", {"a": True, "b": False}) == "true/false"

    def test_numbers_stringified(self):
        assert render("port {{port}}", {"port": 1420}) == "port 1420"

    def test_jsx_double_braces_untouched(self):
        text = "<View style={{ flex: 1 }} />"
        assert render(text, {"flex": "nope"}) == text

    def test_no_arguments(self):
        assert render("plain text") == "plain text"

    def test_placeholders(self):
        assert placeholders("{{a}} {{b}} {{a}} {{#if c}}{{/if}}") == {"a", "b"}


# ---------------------------------------------------------------------------
# Conditionals
# ---------------------------------------------------------------------------


class TestConditionals:
    def test_truthy_branch(self):
        assert render("{{#if on}}yes{{/if}}", flags={"on": True}) == "yes"

    def test_falsy_without_else(self):
        assert render("a{{#if on}}yes{{/if}}b", flags={"on": False}) == "ab"

    def test_else_branch(self):
        text = "{{#if on}}yes{{else}}no{{/if}}"
        assert render(text, flags={"on": False}) == "no"
        assert render(text, flags={"on": True}) == "yes"

    def test_unknown_flag_is_falsy(self):
        assert render("{{#if ghost}}x{{else}}y{{/if}}") == "y"

    def test_multiline_block(self):
        text = "start\n{{#if on}}\nline 1\nline 2\n{{/if}}\nend"
        assert render(text, flags={"on": True}) == "start\n\nline 1\nline 2\n\nend"

    def test_conditionals_before_substitution(self):
        text = "{{#if on}}{{name}}{{/if}}"
        assert render(text, {"name": "x"}, {"on": True}) == "x"

    def test_sibling_blocks(self):
        text = "{{#if a}}A{{/if}}-{{#if b}}B{{/if}}"
        assert render(text, flags={"a": True, "b": True}) == "A-B"

    def test_whitespace_in_opening_tag(self):
        assert render("{{#if  on }}yes{{/if}}", flags={"on": 1}) == "yes"


# ---------------------------------------------------------------------------
# Nesting
# ---------------------------------------------------------------------------


class TestNesting:
    NESTED = "{{#if outer}}a{{#if inner}}b{{/if}}c{{/if}}"

    def test_detects_nested(self):
        assert find_nested_conditionals(self.NESTED) == ["outer"]

    def test_flat_blocks_not_reported(self):
        assert find_nested_conditionals("{{#if a}}x{{/if}}{{#if b}}y{{/if}}") == []

    def test_strict_refuses_nested(self):
        with pytest.raises(NestedConditionalError) as exc_info:
            render(self.NESTED, flags={"outer": True}, strict=True)
        assert exc_info.value.flags == ["outer"]

    def test_strict_accepts_flat(self):
        assert render("{{#if a}}x{{/if}}", flags={"a": True}, strict=True) == "x"


# ---------------------------------------------------------------------------
# build_variables
# ---------------------------------------------------------------------------


class TestBuildVariables:
    def test_substitutions(self):
        variables = build_variables(_config())
        subs = variables.substitutions
        assert subs["projectName"] == "My App"
        assert subs["projectSlug"] == "my-app"
        assert subs["projectIdentifier"] == "my_app"
        assert subs["bundleId"] == "com.myapp.app"
        assert subs["database"] == "none"
        assert subs["orm"] == "none"

    def test_feature_flags_absent(self):
        flags = build_variables(_config()).flags
        assert flags["hasDatabase"] is False
        assert flags["hasOrm"] is False
        assert flags["isFullstack"] is False
        assert not any(key.startswith("database_") for key in flags)

    def test_prisma_turso_flags(self):
        variables = build_variables(_config(database="turso", orm="prisma"))
        flags = variables.flags
        assert flags["database_turso"] is True
        assert flags["isPrisma"] and flags["prismaLibsql"]
        assert flags["prismaNative"] is False
        assert variables.substitutions["drizzleDriver"] == "libsql"

    def test_prisma_supabase_is_native(self):
        flags = build_variables(_config(database="supabase", orm="prisma")).flags
        assert flags["prismaNative"] is True
        assert flags["prismaLibsql"] is False

    def test_drizzle_driver(self):
        variables = build_variables(_config(database="sqlite", orm="drizzle"))
        assert variables.flags["isDrizzle"] is True
        assert variables.substitutions["drizzleDriver"] == "better-sqlite3"

    def test_storage_flag_uses_underscores(self):
        flags = build_variables(_config(storage="cloudflare-r2")).flags
        assert flags["storage_cloudflare_r2"] is True
        assert flags["hasStorage"] is True

    def test_fullstack_template(self):
        flags = build_variables(_config(template="fullstack-admin")).flags
        assert flags["isFullstack"] is True

    def test_fresh_mappings_per_call(self):
        config = _config()
        first = build_variables(config)
        first.substitutions["projectName"] = "mutated"
        first.flags["auth"] = True
        second = build_variables(config)
        assert second.substitutions["projectName"] == "My App"
        assert second.flags["auth"] is False
