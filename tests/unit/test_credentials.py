"""Unit tests for credential values and collection."""

from __future__ import annotations

from envwizard.credentials import (
    Credential,
    CredentialCollector,
    CredentialSet,
    discover_existing,
    is_configured,
    is_placeholder,
)
from envwizard.logging_config import redact
from tests.fakes import ScriptedPrompter


class TestPlaceholders:
    """Tests for sentinel detection."""

    def test_sentinels(self):
        assert is_placeholder("YOUR_GITHUB_PAT_HERE")
        assert is_placeholder("YOUR_TOKEN")
        assert is_placeholder("TOKEN_HERE")
        assert not is_placeholder("ghp_abc123")

    def test_lowercase_sentinels(self):
        assert is_placeholder("your_slack_bot_token")
        assert is_placeholder("paste_token_here")
        assert not is_configured("your_team_id")

    def test_is_configured(self):
        assert is_configured("abc123")
        assert not is_configured("")
        assert not is_configured("   ")
        assert not is_configured(None)
        assert not is_configured("YOUR_TOKEN_HERE")


class TestCredential:
    """Tests for the tagged Credential value."""

    def test_parse_placeholder_is_unset(self):
        assert Credential.parse("YOUR_TOKEN_HERE").is_set is False

    def test_parse_blank_is_unset(self):
        assert Credential.parse("").is_set is False
        assert Credential.parse(None).is_set is False

    def test_parse_strips_value(self):
        assert Credential.parse("  abc123 \n").value == "abc123"

    def test_repr_hides_value(self):
        assert "abc123" not in repr(Credential.of("abc123"))


class TestCredentialSet:
    """Tests for CredentialSet."""

    def test_drops_unset_values(self):
        creds = CredentialSet({"A": "1", "B": "YOUR_B_HERE", "C": ""})
        assert dict(creds) == {"A": "1"}

    def test_merge_returns_new_set(self):
        base = CredentialSet({"A": "1"})
        merged = base.merge({"B": "2"})

        assert dict(base) == {"A": "1"}
        assert dict(merged) == {"A": "1", "B": "2"}

    def test_merge_ignores_placeholders(self):
        merged = CredentialSet({"A": "1"}).merge({"A": "YOUR_A_HERE"})
        assert merged["A"] == "1"

    def test_missing_keeps_order(self):
        creds = CredentialSet({"B": "2"})
        assert creds.missing(["C", "B", "A"]) == ["C", "A"]

    def test_credential_accessor(self):
        creds = CredentialSet({"A": "1"})
        assert creds.credential("A").value == "1"
        assert creds.credential("Z").is_set is False

    def test_repr_lists_names_only(self):
        assert "s3cr3t" not in repr(CredentialSet({"TOKEN": "s3cr3t"}))

    def test_values_are_registered_for_redaction(self):
        CredentialSet({"TOKEN": "s3cr3t-value"})
        assert redact("token=s3cr3t-value") == "token=***"


class TestDiscoverExisting:
    """Tests for discover_existing."""

    def test_reads_env_file(self, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("TOKEN=from-file\nOTHER=x\n")

        creds = discover_existing(["TOKEN"], env_file=env_file, environ={})

        assert dict(creds) == {"TOKEN": "from-file"}

    def test_environment_wins(self, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("TOKEN=from-file\n")

        creds = discover_existing(["TOKEN"], env_file=env_file, environ={"TOKEN": "from-env"})

        assert creds["TOKEN"] == "from-env"

    def test_placeholders_do_not_count(self, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("TOKEN=YOUR_TOKEN_HERE\nTEAM=your_team_id\n")

        creds = discover_existing(["TOKEN", "TEAM"], env_file=env_file, environ={})

        assert len(creds) == 0

    def test_missing_file(self, tmp_path):
        creds = discover_existing(["TOKEN"], env_file=tmp_path / ".env", environ={})
        assert len(creds) == 0


class TestCredentialCollector:
    """Tests for CredentialCollector."""

    def test_configured_variables_are_not_prompted(self):
        prompter = ScriptedPrompter()
        collector = CredentialCollector(prompter)

        current = CredentialSet({"GITHUB_PERSONAL_ACCESS_TOKEN": "ghp_x"})
        delta = collector.collect("github", ["GITHUB_PERSONAL_ACCESS_TOKEN"], current)

        assert delta == {}
        assert prompter.asked == []

    def test_collects_missing_only(self):
        prompter = ScriptedPrompter(secret={"Slack Bot Token": "xoxb-1"}, text={"Slack Team ID": "T123"})
        collector = CredentialCollector(prompter)

        delta = collector.collect("slack", ["SLACK_BOT_TOKEN", "SLACK_TEAM_ID"], CredentialSet())

        assert delta == {"SLACK_BOT_TOKEN": "xoxb-1", "SLACK_TEAM_ID": "T123"}
        # Team ID is an identifier, not a secret
        assert any("Slack Team ID" in q for q in prompter.questions("text"))
        assert any("Slack Bot Token" in q for q in prompter.questions("secret"))

    def test_empty_input_skips(self):
        prompter = ScriptedPrompter()
        delta = CredentialCollector(prompter).collect("render", ["RENDER_API_KEY"], CredentialSet())
        assert delta == {}

    def test_placeholder_input_counts_as_skip(self):
        prompter = ScriptedPrompter(secret={"Render API Key": "YOUR_KEY_HERE"})
        delta = CredentialCollector(prompter).collect("render", ["RENDER_API_KEY"], CredentialSet())
        assert delta == {}

    def test_server_without_variables_asks_nothing(self):
        prompter = ScriptedPrompter()
        assert CredentialCollector(prompter).collect("memory", [], CredentialSet()) == {}
        assert prompter.asked == []


class TestCollectExampleVars:
    """Tests for .env.example driven collection."""

    def test_declined_by_default(self, tmp_path):
        example = tmp_path / ".env.example"
        example.write_text("OPENAI_API_KEY=your_openai_key\n")
        prompter = ScriptedPrompter()

        assert CredentialCollector(prompter).collect_example_vars(example, CredentialSet()) == {}
        assert prompter.questions("secret") == []

    def test_collects_unset_placeholders(self, tmp_path):
        example = tmp_path / ".env.example"
        example.write_text("OPENAI_API_KEY=your_openai_key\nPORT=3000\nSENTRY_DSN=\nSET=YOUR_X\n")
        prompter = ScriptedPrompter(
            yes_no={"other environment variables": True},
            secret={"OPENAI_API_KEY": "sk-1", "SENTRY_DSN": "https://dsn"},
        )

        delta = CredentialCollector(prompter).collect_example_vars(example, CredentialSet({"SET": "done"}))

        assert delta == {"OPENAI_API_KEY": "sk-1", "SENTRY_DSN": "https://dsn"}

    def test_missing_example(self, tmp_path):
        prompter = ScriptedPrompter()
        assert CredentialCollector(prompter).collect_example_vars(tmp_path / ".env.example", CredentialSet()) == {}
        assert prompter.asked == []
