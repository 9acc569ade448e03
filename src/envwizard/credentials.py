"""Credential values and interactive collection.

A credential is either unset or a concrete value. Template placeholders
such as ``YOUR_TOKEN_HERE`` and empty strings parse to unset, so the rest
of the wizard never has to string-match sentinels.
"""

from __future__ import annotations

import os
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from pathlib import Path

import structlog

from . import console
from .envfile import is_placeholder, load_env_file, placeholder_keys
from .logging_config import register_secret
from .prompter import Prompter

logger = structlog.get_logger(__name__)

ENV_VAR_DESCRIPTIONS: dict[str, str] = {
    "GITHUB_PERSONAL_ACCESS_TOKEN": "GitHub PAT (https://github.com/settings/tokens)",
    "SLACK_BOT_TOKEN": "Slack Bot Token (https://api.slack.com/apps)",
    "SLACK_TEAM_ID": "Slack Team ID (starts with T)",
    "RENDER_API_KEY": "Render API Key (https://dashboard.render.com/account/settings)",
    "FIRECRAWL_API_KEY": "Firecrawl API key (https://firecrawl.dev/)",
    "CLOUDFLARE_API_TOKEN": "Cloudflare API Token (https://dash.cloudflare.com/profile/api-tokens)",
    "SUPABASE_URL": "Supabase Project URL",
    "SUPABASE_SERVICE_ROLE_KEY": "Supabase Service Role Key",
    "SUPABASE_PROJECT_REF": "Supabase project reference (Settings → General → Project ID)",
    "MAGIC_API_KEY": "21st.dev Magic API key (https://21st.dev/magic/console)",
}

# Identifiers rather than secrets; prompted without masking
PLAIN_TEXT_VARS = frozenset({"SLACK_TEAM_ID", "SUPABASE_PROJECT_REF", "SUPABASE_URL"})

SERVER_INSTRUCTIONS: dict[str, str] = {
    "github": (
        "GitHub MCP requires a Personal Access Token (PAT):\n"
        "  1. Go to: https://github.com/settings/tokens?type=beta\n"
        '  2. Click "Generate new token"\n'
        "  3. Select: Contents (read/write), Pull requests (read/write)\n"
        "  4. Copy the token"
    ),
    "slack": (
        "Slack MCP requires a Bot Token and Team ID:\n"
        "  1. Go to: https://api.slack.com/apps\n"
        "  2. Create/select your app\n"
        '  3. Under "OAuth & Permissions", copy the Bot User OAuth Token\n'
        '  4. Under "Basic Information", copy the Team ID'
    ),
    "supabase": (
        "Supabase MCP requires your project reference:\n"
        "  1. Go to: https://supabase.com/dashboard\n"
        "  2. Select your project\n"
        "  3. Go to Settings → General\n"
        '  4. Copy the "Project ID" value (e.g., abcdefghijklmnopqr)'
    ),
}


def is_configured(value: str | None) -> bool:
    """Check whether a raw value counts as a real, configured credential."""
    return bool(value and value.strip()) and not is_placeholder(value)


def describe(name: str) -> str:
    """Human description for a variable name."""
    return ENV_VAR_DESCRIPTIONS.get(name, name)


@dataclass(frozen=True)
class Credential:
    """A credential value that is either unset or set."""

    value: str | None = None

    @classmethod
    def unset(cls) -> Credential:
        return cls(None)

    @classmethod
    def of(cls, value: str) -> Credential:
        return cls(value)

    @classmethod
    def parse(cls, raw: str | None) -> Credential:
        """Parse a raw string; sentinels and blanks become unset."""
        if raw is None or not is_configured(raw):
            return cls.unset()
        return cls.of(raw.strip())

    @property
    def is_set(self) -> bool:
        return self.value is not None

    def __repr__(self) -> str:
        # Never expose the value in reprs or tracebacks
        return "Credential(<set>)" if self.is_set else "Credential(<unset>)"


@dataclass(frozen=True)
class CredentialSpec:
    """Descriptor for a credential a provisioner collects.

    ``aliases`` are extra names the same value is stored under, e.g. the
    ``NEXT_PUBLIC_`` variants read by frontend code. ``validated`` specs feed the
    service's credential check and are the ones asked again when it fails.
    """

    name: str
    description: str
    secret: bool = True
    required: bool = False
    aliases: tuple[str, ...] = ()
    validated: bool = False

    @property
    def names(self) -> tuple[str, ...]:
        return (self.name, *self.aliases)


class CredentialSet(Mapping[str, str]):
    """Immutable mapping of variable name to configured value.

    Only set values are stored. ``merge`` returns a new set.
    """

    def __init__(self, values: Mapping[str, str | None] | None = None):
        data: dict[str, str] = {}
        for name, raw in (values or {}).items():
            credential = Credential.parse(raw)
            if credential.is_set:
                data[name] = credential.value  # type: ignore[assignment]
                register_secret(credential.value)
        self._data = data

    def __getitem__(self, key: str) -> str:
        return self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"CredentialSet({sorted(self._data)})"

    def credential(self, name: str) -> Credential:
        """Get a variable as a tagged Credential."""
        value = self._data.get(name)
        return Credential.of(value) if value is not None else Credential.unset()

    def is_configured(self, name: str) -> bool:
        return name in self._data

    def missing(self, names: Iterable[str]) -> list[str]:
        """Names from the list that are not configured, in order."""
        return [n for n in names if n not in self._data]

    def merge(self, other: Mapping[str, str | None]) -> CredentialSet:
        """Return a new set with ``other`` layered on top."""
        merged: dict[str, str | None] = dict(self._data)
        for name, value in other.items():
            if is_configured(value):
                merged[name] = value
        return CredentialSet(merged)

    def subset(self, names: Iterable[str]) -> CredentialSet:
        return CredentialSet({n: self._data[n] for n in names if n in self._data})


def discover_existing(
    names: Iterable[str],
    env_file: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> CredentialSet:
    """Find credentials that are already configured.

    Looks at an existing env file first, then the process environment
    (the environment wins). Placeholder values do not count.

    Args:
        names: Variable names of interest
        env_file: Existing env file, if any
        environ: Environment mapping (defaults to os.environ)

    Returns:
        CredentialSet of already-configured values
    """
    environ = os.environ if environ is None else environ
    file_values = load_env_file(env_file) if env_file else {}
    found: dict[str, str | None] = {}
    for name in names:
        value = environ.get(name) or file_values.get(name)
        if is_configured(value):
            found[name] = value
    logger.debug("existing_credentials", names=sorted(found))
    return CredentialSet(found)


class CredentialCollector:
    """Prompt for the variables a server needs, skipping configured ones."""

    def __init__(self, prompter: Prompter):
        self.prompter = prompter

    def collect(
        self,
        server_name: str,
        required_vars: list[str],
        current: CredentialSet,
    ) -> dict[str, str]:
        """Collect missing variables for one server.

        Args:
            server_name: Server the variables belong to (selects instructions)
            required_vars: Variables the server declares
            current: Credentials accumulated so far

        Returns:
            The delta of newly entered values. Skipped variables are absent.
        """
        missing = current.missing(required_vars)
        if not missing:
            if required_vars:
                console.log(f"{server_name}: already configured", "success")
            return {}

        console.subheader(f"{server_name} credentials")
        instructions = SERVER_INSTRUCTIONS.get(server_name)
        if instructions:
            console.dim(instructions)

        delta: dict[str, str] = {}
        for name in missing:
            value = self.ask_variable(name)
            if value:
                delta[name] = value
            else:
                logger.info("credential_skipped", server=server_name, name=name)

        if len(delta) == len(missing):
            console.log(f"{server_name}: fully configured", "success")
        else:
            console.log(f"{server_name}: missing some credentials (may not work)", "warning")
        return delta

    def ask_variable(self, name: str, label: str | None = None, secret: bool | None = None) -> str | None:
        """Ask for one variable; empty input means skip."""
        prompt = f"Enter {label or describe(name)} (or press Enter to skip)"
        if secret is None:
            secret = name not in PLAIN_TEXT_VARS
        if secret:
            raw = self.prompter.ask_secret(prompt)
        else:
            raw = self.prompter.ask_text(prompt)
        credential = Credential.parse(raw)
        if credential.is_set:
            register_secret(credential.value)
        return credential.value

    def collect_example_vars(self, example_path: Path, current: CredentialSet) -> dict[str, str]:
        """Offer to fill placeholder keys from .env.example that are still unset."""
        if not example_path.exists():
            return {}
        missing = current.missing(placeholder_keys(example_path))
        if not missing:
            return {}
        if not self.prompter.ask_yes_no(
            "Do you want to configure other environment variables now?", default=False
        ):
            return {}

        delta: dict[str, str] = {}
        for name in missing:
            value = self.ask_variable(name, label=name)
            if value:
                delta[name] = value
        return delta
