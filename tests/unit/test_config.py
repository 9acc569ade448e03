"""Unit tests for wizard configuration loading."""

from __future__ import annotations

from envwizard.config import (
    DEFAULT_DISCOVERY_RETRIES,
    DEFAULT_PROBE_TIMEOUT,
    WizardConfig,
    load_config,
)


class TestLoadConfig:
    """Tests for load_config."""

    def test_defaults(self, tmp_path):
        config = load_config(tmp_path)

        assert config.probe_timeout == DEFAULT_PROBE_TIMEOUT
        assert config.discovery_retries == DEFAULT_DISCOVERY_RETRIES == 0
        assert config.registry_file == ".mcp.json"
        assert config.env_file == ".env"
        assert config.default_servers is None
        assert config.get_source("probe_timeout") == "default"

    def test_project_config_file(self, tmp_path):
        (tmp_path / "envwizard.yaml").write_text(
            "probe_timeout: 5\n"
            "discovery_retries: 2\n"
            "registry_file: mcp.json\n"
            "default_servers:\n"
            "  - filesystem\n"
            "  - memory\n"
        )

        config = load_config(tmp_path)

        assert config.probe_timeout == 5.0
        assert config.discovery_retries == 2
        assert config.registry_file == "mcp.json"
        assert config.default_servers == ["filesystem", "memory"]
        assert config.get_source("discovery_retries") == "config file"

    def test_explicit_config_path(self, tmp_path):
        path = tmp_path / "custom.yaml"
        path.write_text("env_file: .env.local\n")

        config = load_config(tmp_path, config_path=path)

        assert config.env_file == ".env.local"

    def test_overrides_win(self, tmp_path):
        (tmp_path / "envwizard.yaml").write_text("template_path: from-file.json\n")

        config = load_config(tmp_path, overrides={"template_path": "from-cli.json"})

        assert config.template_path == "from-cli.json"
        assert config.get_source("template_path") == "command line"

    def test_none_override_ignored(self, tmp_path):
        (tmp_path / "envwizard.yaml").write_text("template_path: from-file.json\n")

        config = load_config(tmp_path, overrides={"template_path": None})

        assert config.template_path == "from-file.json"

    def test_malformed_file_falls_back_to_defaults(self, tmp_path):
        (tmp_path / "envwizard.yaml").write_text("probe_timeout: [unclosed\n")
        config = load_config(tmp_path)
        assert config.probe_timeout == DEFAULT_PROBE_TIMEOUT

    def test_invalid_value_ignored(self, tmp_path):
        (tmp_path / "envwizard.yaml").write_text("probe_timeout: soon\ndiscovery_retries: -3\n")

        config = load_config(tmp_path)

        assert config.probe_timeout == DEFAULT_PROBE_TIMEOUT
        assert config.discovery_retries == 0

    def test_dataclass_defaults(self):
        assert WizardConfig().template_path is None
