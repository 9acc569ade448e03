"""Setup results and the final summary.

Results are immutable; the wizard builds a new SetupResults with
``dataclasses.replace`` after each step. The summary reports names,
counts and statuses only, never credential values.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from .platform_info import PlatformInfo
from .prerequisites import PrerequisiteResult
from .project import DependencyResult
from .provisioning import ProvisionResult, ProvisionStatus
from .writer import FileWriteResult


@dataclass(frozen=True)
class McpResult:
    """Server registry outcome."""

    enabled_servers: tuple[str, ...] = ()
    configured_servers: tuple[str, ...] = ()
    missing_vars: dict[str, tuple[str, ...]] = field(default_factory=dict)
    registry_written: bool = False
    registry_path: str | None = None
    template_error: str | None = None


@dataclass(frozen=True)
class EnvResult:
    """Env file outcome; holds variable names only."""

    path: str | None = None
    written: bool = False
    variables: tuple[str, ...] = ()


@dataclass(frozen=True)
class SetupResults:
    platform: PlatformInfo
    prerequisites: PrerequisiteResult | None = None
    services: dict[str, ProvisionResult] = field(default_factory=dict)
    mcp: McpResult = field(default_factory=McpResult)
    env: EnvResult = field(default_factory=EnvResult)
    directories: FileWriteResult | None = None
    config_files: FileWriteResult | None = None
    gitignore: FileWriteResult | None = None
    package_json: FileWriteResult | None = None
    dependencies: DependencyResult | None = None
    write_errors: tuple[str, ...] = ()


def compute_warnings(results: SetupResults) -> list[str]:
    """Warnings to show in the summary, derived from the results alone."""
    warnings: list[str] = list(results.platform.warnings)

    if results.prerequisites:
        warnings.extend(w.message for w in results.prerequisites.warnings)

    for name, service in results.services.items():
        if service.status is ProvisionStatus.UNCONFIGURED:
            warnings.append(f"{name}: not configured")
        elif service.status is ProvisionStatus.PARTIALLY_CONFIGURED:
            warnings.append(f"{name}: partially configured")
        warnings.extend(service.warnings)

    mcp = results.mcp
    if mcp.template_error:
        warnings.append(f"MCP template: {mcp.template_error}")
    if not mcp.enabled_servers:
        warnings.append("No MCP servers enabled")
    for server, names in mcp.missing_vars.items():
        warnings.append(f"{server}: missing {', '.join(names)} (may not work)")
    if not mcp.registry_written:
        warnings.append("Server registry was not written")

    warnings.extend(f"Write failed: {error}" for error in results.write_errors)

    deps = results.dependencies
    if deps is not None and not deps.installed:
        if deps.error:
            warnings.append(f"Dependencies not installed: {deps.error}")
        elif deps.skipped and results.package_json is not None and results.package_json.written:
            warnings.append('Dependencies not installed; run "npm install"')

    return warnings


_STATUS_STYLE = {
    ProvisionStatus.FULLY_CONFIGURED: "green",
    ProvisionStatus.PARTIALLY_CONFIGURED: "yellow",
    ProvisionStatus.UNCONFIGURED: "red",
}


def _service_table(results: SetupResults) -> Table:
    table = Table(title="Services", show_header=True, header_style="bold")
    table.add_column("Service")
    table.add_column("Status")
    table.add_column("CLI")
    table.add_column("Account")
    table.add_column("Project")
    table.add_column("Credentials", justify="right")
    for name, service in results.services.items():
        style = _STATUS_STYLE[service.status]
        table.add_row(
            name,
            f"[{style}]{service.status.value}[/{style}]",
            service.cli_version or "-",
            escape(service.account or "-"),
            escape(service.project_ref or "-"),
            str(len(service.credentials)),
        )
    return table


def _mcp_table(results: SetupResults) -> Table:
    table = Table(title="MCP Servers", show_header=True, header_style="bold")
    table.add_column("Server")
    table.add_column("Status")
    for server in results.mcp.enabled_servers:
        if server in results.mcp.configured_servers:
            table.add_row(server, "[green]ready[/green]")
        else:
            table.add_row(server, "[yellow]needs credentials[/yellow]")
    return table


def _files_lines(results: SetupResults) -> list[str]:
    lines = []
    if results.mcp.registry_written:
        lines.append(f"{results.mcp.registry_path}")
    if results.env.written:
        lines.append(f"{results.env.path} ({len(results.env.variables)} variables)")
    for label, result in (
        (".gitignore", results.gitignore),
        ("directories", results.directories),
        ("config files", results.config_files),
        ("package.json", results.package_json),
    ):
        if result is not None and result.created:
            lines.append(f"{label}: {', '.join(result.created)}")
    return lines


def render_summary(results: SetupResults, console: Console | None = None) -> None:
    """Print the end-of-run summary."""
    console = console or Console()
    console.print()
    console.print(Panel.fit("[bold]Setup Complete[/bold]", border_style="green"))
    console.print(f"Platform: {results.platform.display_name} {results.platform.os_version}")

    if results.services:
        console.print(_service_table(results))
    if results.mcp.enabled_servers:
        console.print(_mcp_table(results))

    files = _files_lines(results)
    if files:
        console.print("[bold]Files written:[/bold]")
        for line in files:
            console.print(f"  • {line}")

    deps = results.dependencies
    if deps is not None and deps.installed:
        console.print(f"[green]Dependencies installed with {deps.package_manager}[/green]")

    warnings = compute_warnings(results)
    if warnings:
        console.print()
        console.print("[yellow bold]Warnings:[/yellow bold]")
        for warning in warnings:
            console.print(f"  [yellow]⚠[/yellow] {escape(warning)}")

    console.print()
    console.print("[bold]Next steps:[/bold]")
    console.print("  1. Review the generated .env and .mcp.json (both are gitignored)")
    console.print("  2. Authenticate MCP servers from your MCP client")
    console.print()
