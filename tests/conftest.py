"""Shared test fixtures for envwizard tests.

Test doubles live in ``tests/fakes.py``.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from envwizard.config import WizardConfig
from envwizard.logging_config import clear_secrets
from envwizard.platform_info import PlatformInfo
from tests.fakes import ALL_TOOLS, FakeRunner, ok

CREDENTIAL_ENV_VARS = (
    "GITHUB_PERSONAL_ACCESS_TOKEN",
    "SLACK_BOT_TOKEN",
    "SLACK_TEAM_ID",
    "SUPABASE_URL",
    "SUPABASE_ANON_KEY",
    "SUPABASE_SERVICE_ROLE_KEY",
    "SUPABASE_PROJECT_REF",
    "NEXT_PUBLIC_SUPABASE_URL",
    "NEXT_PUBLIC_SUPABASE_ANON_KEY",
    "DATABASE_URL",
    "RENDER_API_KEY",
    "CLOUDFLARE_API_TOKEN",
    "MAGIC_API_KEY",
)

# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def _reset_secrets():
    clear_secrets()
    yield
    clear_secrets()


@pytest.fixture
def linux_platform() -> PlatformInfo:
    return PlatformInfo(
        os="linux",
        shell="/bin/bash",
        arch="x86_64",
        os_version="22.04",
        ram_gb=16,
        linux_distro="ubuntu",
        package_managers={"apt-get": True},
    )


@pytest.fixture
def mac_platform() -> PlatformInfo:
    return PlatformInfo(
        os="mac",
        shell="/bin/zsh",
        arch="arm64",
        os_version="14.2",
        ram_gb=16,
        package_managers={"brew": True},
    )


@pytest.fixture
def windows_platform() -> PlatformInfo:
    return PlatformInfo(
        os="windows",
        shell="cmd.exe",
        arch="AMD64",
        os_version="10.0",
        ram_gb=16,
        package_managers={"winget": True},
    )


@pytest.fixture
def config() -> WizardConfig:
    return WizardConfig()


@pytest.fixture
def project_dir(tmp_path) -> Path:
    path = tmp_path / "my-app"
    path.mkdir()
    return path


@pytest.fixture
def clean_environ(monkeypatch):
    """Remove credential variables a developer machine may export."""
    for name in CREDENTIAL_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def ready_runner(project_dir) -> FakeRunner:
    """Runner for a machine where every tool and service is already set up."""
    supabase_dir = project_dir / "supabase"
    (supabase_dir / ".temp").mkdir(parents=True)
    (supabase_dir / "config.toml").write_text("project_id = \"my-app\"\n")
    (supabase_dir / ".temp" / "project-ref").write_text("abcdefghijklmnop\n")

    runner = FakeRunner(tools=set(ALL_TOOLS))
    runner.on(["git", "--version"], ok("git version 2.43.0"))
    runner.on(["node", "--version"], ok("v20.11.0"))
    runner.on(["npm", "--version"], ok("10.2.4"))
    runner.on(["curl", "--version"], ok("curl 8.4.0 (x86_64-pc-linux-gnu)"))
    runner.on(["rg", "--version"], ok("ripgrep 14.1.0"))
    runner.on(["gh", "--version"], ok("gh version 2.42.1 (2024-01-15)"))
    runner.on(["gh", "auth", "status"], ok("✓ Logged in to github.com account octocat (keyring)"))
    runner.on(["git", "config", "--global", "user.name"], ok("Octo Cat\n"))
    runner.on(["git", "config", "--global", "user.email"], ok("octo@example.com\n"))
    runner.on(["git", "rev-parse", "--is-inside-work-tree"], ok("true\n"))
    runner.on(["git", "remote", "get-url", "origin"], ok("https://github.com/octocat/my-app.git\n"))
    runner.on(["supabase", "--version"], ok("1.142.2"))
    runner.on(["supabase", "projects", "list"], ok("[]"))
    return runner
