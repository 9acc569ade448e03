"""GitHub provisioning: gh CLI, authentication, local repo and remote."""

from __future__ import annotations

import structlog

from ..credentials import SERVER_INSTRUCTIONS, CredentialSpec
from ..probes import DiscoveryResult
from ..process import ProcessResult
from ..validators import ValidationResult
from .base import ServiceProvisioner

logger = structlog.get_logger(__name__)


class GitHubProvisioner(ServiceProvisioner):
    """Source control setup.

    Initialization means a configured git identity plus a git work tree;
    linking means an ``origin`` remote pointing at a GitHub repository.
    """

    service = "github"
    display_name = "GitHub"
    cli_tool = "gh"
    ref_label = "repository (owner/name)"
    credential_specs = (
        CredentialSpec(
            "GITHUB_PERSONAL_ACCESS_TOKEN",
            "GitHub PAT for the GitHub MCP server",
            secret=True,
            required=False,
            validated=True,
        ),
    )

    def cli_version(self) -> str | None:
        return self.probes.gh_version()

    def account(self) -> str | None:
        return self.probes.gh_account()

    def login(self) -> ProcessResult:
        return self.runner.interactive(["gh", "auth", "login", "--web"])

    def is_initialized(self) -> bool:
        return self.probes.git_identity().configured and self.probes.is_git_repo()

    def initialize(self) -> ProcessResult:
        identity = self.probes.git_identity()
        if not identity.name:
            name = self.prompter.ask_text("Git user name")
            if name:
                result = self.runner.capture(["git", "config", "--global", "user.name", name])
                if not result.ok:
                    return result
        if not identity.email:
            email = self.prompter.ask_text("Git email")
            if email:
                result = self.runner.capture(["git", "config", "--global", "user.email", email])
                if not result.ok:
                    return result
        if not self.probes.is_git_repo():
            return self.runner.interactive(["git", "init"], cwd=self.probes.project_dir)
        return ProcessResult(exit_code=0)

    def linked_ref(self) -> str | None:
        return self.probes.git_remote()

    def discover(self) -> DiscoveryResult:
        return self.probes.list_github_repos()

    def link(self, ref: str) -> ProcessResult:
        url = ref if ref.startswith(("https://", "git@")) else f"https://github.com/{ref}.git"
        return self.runner.interactive(
            ["git", "remote", "add", "origin", url],
            cwd=self.probes.project_dir,
        )

    def validate(self, values: dict[str, str]) -> ValidationResult | None:
        token = values.get("GITHUB_PERSONAL_ACCESS_TOKEN")
        if not token:
            return None
        return self.validator.validate_github_token(token)

    def credential_help(self, project_ref: str | None) -> str | None:
        return SERVER_INSTRUCTIONS["github"]
