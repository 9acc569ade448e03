"""Unit tests for choosing enabled MCP servers."""

from __future__ import annotations

import json

import pytest

from envwizard.mcp.selection import default_enabled, read_existing_enablement, select_servers
from envwizard.mcp.template import load_template
from tests.fakes import ScriptedPrompter


@pytest.fixture
def template(project_dir):
    return load_template(project_dir).template


class TestDefaultEnabled:
    """Tests for default_enabled."""

    def test_built_in_defaults(self, template):
        enabled = default_enabled(template)

        assert enabled == ["filesystem", "github", "slack", "supabase", "memory", "context7", "magic-ui"]

    def test_configured_defaults_keep_required_and_recommended(self, template):
        enabled = default_enabled(template, configured=["render"])

        assert "render" in enabled
        assert "github" not in enabled
        assert {"filesystem", "slack", "supabase", "memory"} <= set(enabled)

    def test_existing_registry_wins(self, template):
        enabled = default_enabled(
            template,
            configured=None,
            existing={"github": False, "render": True, "supabase": False},
        )

        assert "github" not in enabled
        assert "render" in enabled
        # Required servers cannot be disabled
        assert "supabase" in enabled


class TestReadExistingEnablement:
    """Tests for read_existing_enablement."""

    def test_missing_registry(self, project_dir):
        assert read_existing_enablement(project_dir / ".mcp.json") is None

    def test_reads_flags(self, project_dir):
        path = project_dir / ".mcp.json"
        path.write_text(json.dumps({"mcpServers": {"a": {"disabled": True}, "b": {}}}))
        assert read_existing_enablement(path) == {"a": False, "b": True}

    def test_corrupt_registry(self, project_dir):
        path = project_dir / ".mcp.json"
        path.write_text("{")
        assert read_existing_enablement(path) is None


class TestSelectServers:
    """Tests for select_servers."""

    def test_keep_defaults(self, template):
        prompter = ScriptedPrompter(yes_no={"configure which servers": False})
        defaults = default_enabled(template)

        assert select_servers(prompter, template, defaults) == defaults
        assert prompter.questions("yes_no") == ["Would you like to configure which servers to enable?"]

    def test_toggle_servers(self, template):
        prompter = ScriptedPrompter(yes_no={"Enable render?": True, "Enable github?": False})

        selected = select_servers(prompter, template, default_enabled(template))

        assert "render" in selected
        assert "github" not in selected
        assert selected.index("supabase") < selected.index("render")

    def test_required_servers_not_offered(self, template):
        prompter = ScriptedPrompter()

        selected = select_servers(prompter, template, [])

        asked = " ".join(prompter.questions("yes_no"))
        assert "Enable filesystem?" not in asked
        assert "Enable supabase?" not in asked
        assert {"filesystem", "slack", "supabase"} <= set(selected)

    def test_requirement_hint(self, template):
        prompter = ScriptedPrompter()
        select_servers(prompter, template, [])
        assert "Enable render? (requires: RENDER_API_KEY)" in prompter.questions("yes_no")
