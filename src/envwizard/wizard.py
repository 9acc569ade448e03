"""Setup orchestration.

The run is strictly sequential: prerequisites, service provisioning,
server selection, credential collection, project decisions, then every
file write, then the optional dependency install. No file is written until
all questions have been answered.
"""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path

import structlog

from . import console
from .config import WizardConfig
from .credentials import CredentialCollector, CredentialSet, discover_existing
from .envfile import placeholder_keys
from .errors import SetupAborted
from .installers import Installer
from .mcp.compiler import compile_registry
from .mcp.selection import default_enabled, read_existing_enablement, select_servers
from .mcp.template import McpTemplate, TemplateLoadResult, load_template, required_vars
from .platform_info import PlatformInfo, detect_platform
from .prerequisites import PrerequisiteChecker, PrerequisiteResult
from .probes import ProbeService
from .process import ProcessRunner
from .project import ProjectPlan, choose_package_manager, install_dependencies, plan_project
from .prompter import Prompter
from .provisioning import GitHubProvisioner, ProvisionResult, ServiceProvisioner, SupabaseProvisioner
from .reporting import EnvResult, McpResult, SetupResults
from .validators import CredentialValidator
from .writer import ENV_EXAMPLE, ConfigWriter

logger = structlog.get_logger(__name__)

PROVISIONERS: tuple[type[ServiceProvisioner], ...] = (GitHubProvisioner, SupabaseProvisioner)


def _print_issues(result: PrerequisiteResult) -> None:
    for issue in result.issues:
        console.log(issue.message, "error")
        if issue.instructions:
            console.dim(f"    {issue.instructions}")
    for warning in result.warnings:
        console.log(warning.message, "warning")
        if warning.instructions:
            console.dim(f"    {warning.instructions}")


def _print_tools(result: PrerequisiteResult) -> None:
    for name, tool in result.tools.items():
        if tool.installed and tool.compatible:
            version = f" v{tool.version}" if tool.version else ""
            console.log(f"{name}{version}", "success")
        elif tool.required:
            console.log(f"{name}: {'incompatible' if tool.installed else 'missing'}", "error")


def check_prerequisites(
    prompter: Prompter,
    checker: PrerequisiteChecker,
    installer: Installer,
    platform: PlatformInfo,
) -> PrerequisiteResult:
    """Gate the run on prerequisites, with one optional auto-install pass.

    Raises:
        SetupAborted: Prerequisites unmet after the user declined, or after
            the single re-check
    """
    console.header("Checking Prerequisites")
    result = checker.check(platform)
    _print_tools(result)
    _print_issues(result)
    if result.passed:
        console.log("All prerequisites met", "success")
        return result

    installable = [tool for tool in result.installable_tools if installer.can_install(tool)]
    if installable and prompter.ask_yes_no(
        "Would you like to attempt automatic installation of missing dependencies?",
        default=True,
    ):
        for tool in installable:
            install = installer.install(tool)
            if install.ok:
                console.log(f"Installed {tool}", "success")
            else:
                console.log(f"Failed to install {tool}: {install.failure_message}", "error")

        result = checker.check(platform)
        if result.passed:
            console.log("All prerequisites met", "success")
            return result
        _print_issues(result)

    raise SetupAborted(
        "Prerequisites not met. Please install the missing tools and run setup again.",
        reason="prerequisites",
    )


def _credential_names(template: McpTemplate | None, project_dir: Path) -> list[str]:
    names: list[str] = []
    for provisioner in PROVISIONERS:
        for spec in provisioner.credential_specs:
            names.extend(spec.names)
        if provisioner.ref_variable:
            names.append(provisioner.ref_variable)
    if template is not None:
        for entry in template.servers.values():
            names.extend(required_vars(entry))
    example = project_dir / ENV_EXAMPLE
    if example.exists():
        names.extend(placeholder_keys(example))
    return list(dict.fromkeys(names))


def provision_services(
    provisioners: list[ServiceProvisioner],
    credentials: CredentialSet,
) -> tuple[dict[str, ProvisionResult], CredentialSet]:
    services: dict[str, ProvisionResult] = {}
    for provisioner in provisioners:
        result = provisioner.run(credentials)
        services[provisioner.service] = result
        credentials = credentials.merge(result.credentials)
    return services, credentials


def configure_servers(
    prompter: Prompter,
    template: McpTemplate,
    config: WizardConfig,
    registry_path: Path,
    credentials: CredentialSet,
) -> tuple[McpResult, CredentialSet]:
    """Select servers and collect the credentials they need."""
    console.header("MCP Server Configuration")
    defaults = default_enabled(template, config.default_servers, read_existing_enablement(registry_path))
    enabled = select_servers(prompter, template, defaults)

    console.subheader("Credential Collection")
    console.dim("These credentials are stored locally in gitignored files.")
    collector = CredentialCollector(prompter)
    for name in enabled:
        delta = collector.collect(name, required_vars(template.servers[name]), credentials)
        credentials = credentials.merge(delta)

    missing = {
        name: tuple(credentials.missing(required_vars(template.servers[name])))
        for name in enabled
        if credentials.missing(required_vars(template.servers[name]))
    }
    mcp = McpResult(
        enabled_servers=tuple(enabled),
        configured_servers=tuple(n for n in enabled if n not in missing),
        missing_vars=missing,
    )
    return mcp, credentials


def write_artifacts(
    results: SetupResults,
    writer: ConfigWriter,
    template: McpTemplate | None,
    credentials: CredentialSet,
    plan: ProjectPlan,
) -> SetupResults:
    """Write every artifact independently and record failures."""
    console.header("Writing Configuration")
    errors: list[str] = []

    gitignore = writer.update_gitignore()
    if gitignore.error:
        errors.append(f".gitignore: {gitignore.error}")

    mcp = results.mcp
    if template is not None:
        registry = compile_registry(template, mcp.enabled_servers, credentials, results.platform)
        written = writer.write_registry(registry)
        if written.error:
            errors.append(f"{writer.registry_path.name}: {written.error}")
        mcp = replace(mcp, registry_written=written.written, registry_path=written.path)

    env = EnvResult(path=str(writer.env_path))
    if len(credentials) > 0 or (writer.project_dir / ENV_EXAMPLE).exists():
        env_write = writer.write_env(credentials)
        if env_write.error:
            errors.append(f"{writer.env_path.name}: {env_write.error}")
        env = EnvResult(path=env_write.path, written=env_write.written, variables=tuple(sorted(credentials)))

    directories = writer.create_directories(plan.directories)
    config_files = writer.create_config_files(plan.config_files)
    package_json = writer.apply_package_json(plan)
    for label, result in (("directories", directories), ("config files", config_files), ("package.json", package_json)):
        if result.error:
            errors.append(f"{label}: {result.error}")

    return replace(
        results,
        mcp=mcp,
        env=env,
        gitignore=gitignore,
        directories=directories,
        config_files=config_files,
        package_json=package_json,
        write_errors=tuple(errors),
    )


def run_setup(
    project_dir: Path,
    config: WizardConfig,
    prompter: Prompter,
    runner: ProcessRunner | None = None,
    platform: PlatformInfo | None = None,
    validator: CredentialValidator | None = None,
) -> SetupResults:
    """Run the whole setup.

    Args:
        project_dir: Directory being set up
        config: Wizard configuration
        prompter: User input
        runner: Subprocess runner
        platform: Host platform (detected when omitted)
        validator: Credential validator

    Returns:
        SetupResults for the summary

    Raises:
        SetupAborted: Prerequisites unmet or hard-required credentials missing
        SetupCancelled: The user interrupted a prompt
    """
    runner = runner or ProcessRunner()
    platform = platform or detect_platform()
    validator = validator or CredentialValidator(timeout=config.validation_timeout)
    probes = ProbeService(runner, config, project_dir)
    installer = Installer(runner, platform)

    console.header("Development Environment Setup")
    console.log(f"Platform: {platform.display_name} {platform.os_version} ({platform.arch})", "info")
    logger.info("setup_started", project_dir=str(project_dir), os=platform.os)

    results = SetupResults(platform=platform)
    prerequisites = check_prerequisites(prompter, PrerequisiteChecker(probes), installer, platform)
    results = replace(results, prerequisites=prerequisites)

    explicit = Path(config.template_path) if config.template_path else None
    loaded: TemplateLoadResult = load_template(project_dir, explicit)
    if not loaded.success:
        console.log(loaded.error or "MCP template could not be loaded", "error")
    template = loaded.template

    env_path = project_dir / config.env_file
    credentials = discover_existing(_credential_names(template, project_dir), env_file=env_path)

    provisioners = [cls(probes, runner, installer, prompter, validator, config) for cls in PROVISIONERS]
    services, credentials = provision_services(provisioners, credentials)
    results = replace(results, services=services)

    if template is not None:
        mcp, credentials = configure_servers(
            prompter, template, config, project_dir / config.registry_file, credentials
        )
        results = replace(results, mcp=mcp)
    else:
        results = replace(results, mcp=McpResult(template_error=loaded.error))

    extra = CredentialCollector(prompter).collect_example_vars(project_dir / ENV_EXAMPLE, credentials)
    credentials = credentials.merge(extra)

    plan = plan_project(prompter, project_dir)
    package_manager = choose_package_manager(prompter, plan, project_dir, prerequisites.package_managers)

    writer = ConfigWriter(project_dir, config.registry_file, config.env_file)
    results = write_artifacts(results, writer, template, credentials, plan)

    dependencies = install_dependencies(runner, project_dir, package_manager)
    results = replace(results, dependencies=dependencies)

    logger.info(
        "setup_finished",
        services={name: r.status.value for name, r in results.services.items()},
        servers=len(results.mcp.enabled_servers),
        write_errors=len(results.write_errors),
    )
    return results
