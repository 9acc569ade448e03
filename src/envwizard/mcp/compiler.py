"""Compile the MCP template into the project's server registry.

Compilation is a pure function of the template, the enabled server set,
the collected credentials and the platform, so running the wizard twice
with the same answers produces the same bytes.
"""

from __future__ import annotations

import copy
import json
from collections.abc import Iterable
from typing import Any
from urllib.parse import quote, unquote, urlsplit, urlunsplit

from ..credentials import CredentialSet
from ..platform_info import PlatformInfo
from .template import ENDPOINT_PARAMS, McpTemplate, ServerTemplateEntry


def substitute_endpoint(entry: ServerTemplateEntry, credentials: CredentialSet) -> None:
    """Fill identifier query parameters of an HTTP entry in place.

    A parameter is only replaced when its variable has been collected;
    otherwise the template placeholder stays.
    """
    params = ENDPOINT_PARAMS.get(entry.name)
    if not params or entry.type != "http" or not entry.url:
        return

    parts = urlsplit(entry.url)
    # Only the identifier pairs are rewritten; the rest of the query keeps its text
    pairs = parts.query.split("&") if parts.query else []
    changed = False
    for i, pair in enumerate(pairs):
        key = pair.split("=", 1)[0]
        variable = params.get(unquote(key))
        if variable and credentials.is_configured(variable):
            pairs[i] = f"{key}={quote(credentials[variable], safe='')}"
            changed = True
    if changed:
        entry.url = urlunsplit(parts._replace(query="&".join(pairs)))


def rewrite_for_windows(entry: ServerTemplateEntry) -> None:
    """Wrap ``npx`` in ``cmd /c`` so Windows can launch the .cmd shim."""
    if entry.type == "stdio" and entry.command == "npx":
        entry.command = "cmd"
        entry.args = ["/c", "npx", *entry.args]


def fill_env(entry: ServerTemplateEntry, credentials: CredentialSet) -> None:
    for name in entry.env:
        if credentials.is_configured(name):
            entry.env[name] = credentials[name]


def compile_entry(
    entry: ServerTemplateEntry,
    enabled: bool,
    credentials: CredentialSet,
    platform: PlatformInfo,
) -> ServerTemplateEntry:
    """Compile one entry; the template entry is left untouched."""
    compiled = copy.deepcopy(entry)
    substitute_endpoint(compiled, credentials)
    if platform.is_windows:
        rewrite_for_windows(compiled)
    fill_env(compiled, credentials)
    compiled.disabled = not enabled
    return compiled


def compile_registry(
    template: McpTemplate,
    enabled: Iterable[str],
    credentials: CredentialSet,
    platform: PlatformInfo,
) -> dict[str, Any]:
    """Build the registry document.

    Args:
        template: Parsed MCP template
        enabled: Enabled server names; names not in the template are ignored
        credentials: Collected credentials
        platform: Host platform

    Returns:
        ``{"mcpServers": {...}}`` in template order
    """
    enabled_set = set(enabled)
    servers = {
        name: compile_entry(entry, name in enabled_set, credentials, platform).to_dict()
        for name, entry in template.servers.items()
    }
    return {"mcpServers": servers}


def serialize_registry(registry: dict[str, Any]) -> str:
    """Pretty-printed, newline-terminated JSON."""
    return json.dumps(registry, indent=2, ensure_ascii=False) + "\n"
