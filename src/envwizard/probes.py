"""Live probes of tool and project state.

Every method answers one question about the machine or project by running
a read-only command or looking at the filesystem. Nothing here is cached:
callers re-probe after every action.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from pathlib import Path

import structlog

from .config import WizardConfig
from .process import ProcessRunner

logger = structlog.get_logger(__name__)

_VERSION = re.compile(r"(\d+(?:\.\d+)+)")
_GH_VERSION = re.compile(r"gh version ([\d.]+)")
_GH_ACCOUNT = re.compile(r"Logged in to github\.com (?:account|as) (\S+)")


@dataclass
class RemoteProject:
    """A project offered during the link step."""

    ref: str
    name: str
    description: str = ""


@dataclass
class DiscoveryResult:
    """Outcome of listing remote projects."""

    success: bool
    projects: list[RemoteProject] = field(default_factory=list)
    error: str | None = None


@dataclass
class GitIdentity:
    name: str | None = None
    email: str | None = None

    @property
    def configured(self) -> bool:
        return bool(self.name and self.email)


def parse_version(output: str, pattern: re.Pattern[str] = _VERSION) -> str | None:
    """Extract a dotted version number from command output."""
    match = pattern.search(output)
    return match.group(1) if match else None


def parse_supabase_table(output: str) -> list[RemoteProject]:
    """Parse the table printed by ``supabase projects list``.

    Rows come after the separator line; columns are split on ``│`` (or
    ``|`` in older releases) as LINKED, ORG ID, REFERENCE ID, NAME, REGION.
    """
    projects: list[RemoteProject] = []
    in_body = False
    for line in output.splitlines():
        if "──" in line or re.match(r"^\s*-+\s*\|", line):
            in_body = True
            continue
        if not in_body or not line.strip():
            continue
        cells = [c.strip() for c in re.split(r"[│|]", line)]
        if len(cells) < 4:
            continue
        # Leading LINKED marker column may be empty
        linked, _org, ref, name = cells[:4]
        region = cells[4] if len(cells) > 4 else ""
        if not ref or ref.upper() == "REFERENCE ID":
            continue
        description = region if not linked else f"{region} (linked)".strip()
        projects.append(RemoteProject(ref=ref, name=name or ref, description=description))
    return projects


def parse_supabase_json(output: str) -> list[RemoteProject] | None:
    """Parse ``supabase projects list -o json``; None when not JSON."""
    try:
        data = json.loads(output)
    except json.JSONDecodeError:
        return None
    if not isinstance(data, list):
        return None
    projects = []
    for item in data:
        if not isinstance(item, dict):
            continue
        ref = item.get("ref") or item.get("id")
        if not ref:
            continue
        projects.append(
            RemoteProject(
                ref=str(ref),
                name=str(item.get("name") or ref),
                description=str(item.get("region") or ""),
            )
        )
    return projects


class ProbeService:
    """Facts about installed tools and the project directory."""

    def __init__(self, runner: ProcessRunner, config: WizardConfig, project_dir: Path):
        self.runner = runner
        self.config = config
        self.project_dir = project_dir

    def _capture(self, args: list[str], timeout: float | None = None):
        return self.runner.capture(
            args,
            timeout=timeout if timeout is not None else self.config.probe_timeout,
            cwd=self.project_dir,
        )

    # --- generic ---------------------------------------------------------

    def command_exists(self, tool: str) -> bool:
        return self.runner.which(tool) is not None

    def command_version(
        self,
        tool: str,
        flag: str = "--version",
        pattern: re.Pattern[str] = _VERSION,
    ) -> str | None:
        """Version of an installed tool, or None if absent or unparseable.

        Args:
            tool: Executable name
            flag: Version flag
            pattern: Regex with one group capturing the version

        Returns:
            Version string, or None
        """
        if not self.command_exists(tool):
            return None
        result = self._capture([tool, flag])
        if not result.ok:
            logger.debug("version_probe_failed", tool=tool, reason=result.failure_message)
            return None
        return parse_version(result.stdout + result.stderr, pattern)

    # --- git / GitHub ----------------------------------------------------

    def gh_version(self) -> str | None:
        return self.command_version("gh", pattern=_GH_VERSION)

    def gh_account(self) -> str | None:
        """Logged-in GitHub account, or None when not authenticated."""
        result = self._capture(["gh", "auth", "status"])
        if not result.ok:
            return None
        # gh prints status to stderr in older releases
        match = _GH_ACCOUNT.search(result.stdout + result.stderr)
        return match.group(1) if match else "unknown"

    def git_identity(self) -> GitIdentity:
        name = self._capture(["git", "config", "--global", "user.name"])
        email = self._capture(["git", "config", "--global", "user.email"])
        return GitIdentity(
            name=name.stdout.strip() if name.ok and name.stdout.strip() else None,
            email=email.stdout.strip() if email.ok and email.stdout.strip() else None,
        )

    def is_git_repo(self) -> bool:
        result = self._capture(["git", "rev-parse", "--is-inside-work-tree"])
        return result.ok and result.stdout.strip() == "true"

    def git_remote(self) -> str | None:
        result = self._capture(["git", "remote", "get-url", "origin"])
        if not result.ok:
            return None
        return result.stdout.strip() or None

    def list_github_repos(self) -> DiscoveryResult:
        result = self._capture(
            ["gh", "repo", "list", "--json", "nameWithOwner,description", "--limit", "50"],
            timeout=self.config.discovery_timeout,
        )
        if not result.ok:
            return DiscoveryResult(success=False, error=result.failure_message)
        try:
            data = json.loads(result.stdout or "[]")
        except json.JSONDecodeError as e:
            return DiscoveryResult(success=False, error=f"Unexpected gh output: {e}")
        projects = [
            RemoteProject(
                ref=item["nameWithOwner"],
                name=item["nameWithOwner"],
                description=item.get("description") or "",
            )
            for item in data
            if isinstance(item, dict) and item.get("nameWithOwner")
        ]
        return DiscoveryResult(success=True, projects=projects)

    # --- Supabase --------------------------------------------------------

    def supabase_version(self) -> str | None:
        return self.command_version("supabase")

    def supabase_logged_in(self) -> bool:
        """True when the CLI can list projects (i.e. has a valid session)."""
        if not self.command_exists("supabase"):
            return False
        return self._capture(["supabase", "projects", "list"]).ok

    def supabase_initialized(self) -> bool:
        return (self.project_dir / "supabase" / "config.toml").exists()

    def supabase_linked_ref(self) -> str | None:
        ref_file = self.project_dir / "supabase" / ".temp" / "project-ref"
        try:
            ref = ref_file.read_text(encoding="utf-8").strip()
        except OSError:
            return None
        return ref or None

    def list_supabase_projects(self) -> DiscoveryResult:
        """List Supabase projects, preferring JSON output over the table."""
        timeout = self.config.discovery_timeout
        result = self._capture(["supabase", "projects", "list", "-o", "json"], timeout=timeout)
        if result.ok:
            projects = parse_supabase_json(result.stdout)
            if projects is not None:
                return DiscoveryResult(success=True, projects=projects)

        # Older CLIs only print a table
        result = self._capture(["supabase", "projects", "list"], timeout=timeout)
        if not result.ok:
            return DiscoveryResult(success=False, error=result.failure_message)
        return DiscoveryResult(success=True, projects=parse_supabase_table(result.stdout))
