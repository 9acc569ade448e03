"""Supabase provisioning: CLI, login, local project, link and API keys.

Supabase is hard-required: setup cannot finish without a project URL and
anon key.
"""

from __future__ import annotations

from ..credentials import CredentialSpec
from ..probes import DiscoveryResult
from ..process import ProcessResult
from ..validators import ValidationResult
from .base import ServiceProvisioner

DASHBOARD_URL = "https://supabase.com/dashboard"


class SupabaseProvisioner(ServiceProvisioner):
    service = "supabase"
    display_name = "Supabase"
    cli_tool = "supabase"
    hard_required = True
    ref_label = "project reference ID"
    ref_variable = "SUPABASE_PROJECT_REF"
    credential_specs = (
        CredentialSpec(
            "SUPABASE_URL",
            "Project URL, e.g. https://xxxxx.supabase.co",
            secret=False,
            required=True,
            aliases=("NEXT_PUBLIC_SUPABASE_URL",),
            validated=True,
        ),
        CredentialSpec(
            "SUPABASE_ANON_KEY",
            'Project API keys → "anon public"',
            secret=True,
            required=True,
            aliases=("NEXT_PUBLIC_SUPABASE_ANON_KEY",),
            validated=True,
        ),
        CredentialSpec(
            "SUPABASE_SERVICE_ROLE_KEY",
            "service_role key, server-side only (optional)",
            secret=True,
        ),
        CredentialSpec(
            "DATABASE_URL",
            "Database connection string (optional)",
            secret=True,
        ),
    )

    def cli_version(self) -> str | None:
        return self.probes.supabase_version()

    def account(self) -> str | None:
        # The CLI has no whoami; a working project listing means a session
        return "authenticated" if self.probes.supabase_logged_in() else None

    def login(self) -> ProcessResult:
        return self.runner.interactive(["supabase", "login"])

    def is_initialized(self) -> bool:
        return self.probes.supabase_initialized()

    def initialize(self) -> ProcessResult:
        return self.runner.interactive(["supabase", "init"], cwd=self.probes.project_dir)

    def linked_ref(self) -> str | None:
        return self.probes.supabase_linked_ref()

    def discover(self) -> DiscoveryResult:
        return self.probes.list_supabase_projects()

    def link(self, ref: str) -> ProcessResult:
        return self.runner.interactive(
            ["supabase", "link", "--project-ref", ref],
            cwd=self.probes.project_dir,
        )

    def validate(self, values: dict[str, str]) -> ValidationResult | None:
        url = values.get("SUPABASE_URL")
        key = values.get("SUPABASE_ANON_KEY")
        if not url or not key:
            return None
        return self.validator.validate_supabase(url, key)

    def credential_help(self, project_ref: str | None) -> str | None:
        project = project_ref or "[your-project]"
        return (
            "To find these values:\n"
            f"  1. Go to: {DASHBOARD_URL}/project/{project}/settings/api\n"
            "  2. Copy the values from the API Settings page"
        )
