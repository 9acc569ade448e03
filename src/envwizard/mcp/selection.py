"""Choosing which MCP servers to enable."""

from __future__ import annotations

import json
from pathlib import Path

import click
import structlog

from .. import console
from ..prompter import Prompter
from .template import DEFAULT_ENABLED, REQUIRED_SERVERS, SERVER_CATEGORIES, McpTemplate, required_vars

logger = structlog.get_logger(__name__)


def read_existing_enablement(registry_path: Path) -> dict[str, bool] | None:
    """Enabled flags from a previously written registry, if readable."""
    try:
        data = json.loads(registry_path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return None
    except (OSError, json.JSONDecodeError) as e:
        logger.info("existing_registry_unreadable", path=str(registry_path), error=str(e))
        return None
    servers = data.get("mcpServers") if isinstance(data, dict) else None
    if not isinstance(servers, dict):
        return None
    return {
        name: not cfg.get("disabled", False)
        for name, cfg in servers.items()
        if isinstance(cfg, dict)
    }


def default_enabled(
    template: McpTemplate,
    configured: list[str] | None = None,
    existing: dict[str, bool] | None = None,
) -> list[str]:
    """Servers enabled before the user changes anything.

    Precedence: a previous registry's flags, then configured defaults, then
    the built-in defaults. Required servers are always enabled.

    Args:
        template: Parsed template
        configured: ``default_servers`` from configuration
        existing: Enabled flags read from an existing registry

    Returns:
        Enabled names in template order
    """
    base = set(configured) if configured is not None else set(DEFAULT_ENABLED)
    enabled = []
    for name, entry in template.servers.items():
        if name in REQUIRED_SERVERS:
            on = True
        elif existing is not None and name in existing:
            on = existing[name]
        else:
            on = name in base or entry.recommended
        if on:
            enabled.append(name)
    return enabled


def _categorized(template: McpTemplate) -> list[tuple[str, list[str]]]:
    groups = []
    seen: set[str] = set()
    for category in SERVER_CATEGORIES.values():
        names = [s for s in category["servers"] if s in template.servers]
        seen.update(names)
        if names:
            groups.append((f"{category['name']} ({category['description']})", names))
    other = [name for name in template.servers if name not in seen]
    if other:
        groups.append(("Other", other))
    return groups


def display_servers(template: McpTemplate, enabled: list[str]) -> None:
    click.secho("Available MCP Servers:", bold=True)
    for title, names in _categorized(template):
        click.echo()
        click.secho(title, fg="cyan")
        for name in names:
            badge = " ⭐" if template.servers[name].recommended else ""
            status = click.style("[enabled]", fg="green") if name in enabled else click.style("[disabled]", dim=True)
            click.echo(f"  {console.ICONS['bullet']} {name}{badge} {status}")


def select_servers(prompter: Prompter, template: McpTemplate, defaults: list[str]) -> list[str]:
    """Show the defaults and let the user toggle optional servers.

    Returns:
        Enabled names in template order
    """
    console.subheader("MCP Servers")
    display_servers(template, defaults)
    click.echo()

    enabled = set(defaults)
    if prompter.ask_yes_no("Would you like to configure which servers to enable?", default=True):
        for title, names in _categorized(template):
            click.echo()
            click.secho(f"{title}:", bold=True)
            for name in names:
                if name in REQUIRED_SERVERS:
                    console.dim(f"  {name}: required (always enabled)")
                    continue
                entry = template.servers[name]
                needs = required_vars(entry)
                if entry.recommended:
                    hint = " (⭐ recommended)"
                elif needs:
                    hint = f" (requires: {', '.join(needs)})"
                else:
                    hint = ""
                if prompter.ask_yes_no(f"Enable {name}?{hint}", default=name in enabled):
                    enabled.add(name)
                else:
                    enabled.discard(name)

    selected = [name for name in template.servers if name in enabled or name in REQUIRED_SERVERS]
    logger.info("servers_selected", enabled=selected)
    return selected
