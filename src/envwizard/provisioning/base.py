"""Generic service provisioning flow.

A provisioner walks one external service through the same ordered steps:
CLI installed, authenticated, project initialized, project linked, and
credentials collected. Every step probes live state first and is skipped
when already satisfied, so running the wizard again is safe.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum

import structlog

from .. import console
from ..config import WizardConfig
from ..credentials import CredentialCollector, CredentialSet, CredentialSpec
from ..errors import SetupAborted
from ..installers import Installer
from ..probes import DiscoveryResult, ProbeService
from ..process import ProcessResult, ProcessRunner
from ..prompter import PromptChoice, Prompter
from ..validators import CredentialValidator, ValidationResult, ValidationStatus

logger = structlog.get_logger(__name__)

MANUAL_ENTRY = "__manual__"


class ProvisionStatus(Enum):
    FULLY_CONFIGURED = "fully-configured"
    PARTIALLY_CONFIGURED = "partially-configured"
    UNCONFIGURED = "unconfigured"


class FailureChoice(Enum):
    RETRY = "retry"
    SKIP = "skip"
    ABORT = "abort"


@dataclass
class ServiceState:
    """Flags re-derived from live probes on every run."""

    cli_installed: bool = False
    logged_in: bool = False
    initialized: bool = False
    linked: bool = False
    credentials_valid: bool = False

    @property
    def complete(self) -> bool:
        return all(
            (self.cli_installed, self.logged_in, self.initialized, self.linked, self.credentials_valid)
        )


@dataclass
class StepOutcome:
    """Result of one provisioning step."""

    step: str
    satisfied: bool
    already: bool = False
    skipped: bool = False
    message: str = ""


@dataclass
class ProvisionResult:
    """Terminal result of a provisioner run."""

    service: str
    status: ProvisionStatus
    state: ServiceState
    credentials: CredentialSet
    project_ref: str | None = None
    cli_version: str | None = None
    account: str | None = None
    warnings: list[str] = field(default_factory=list)
    steps: list[StepOutcome] = field(default_factory=list)


def compute_status(state: ServiceState, credentials: CredentialSet) -> ProvisionStatus:
    """Terminal status from the final state and collected credentials."""
    if state.complete:
        return ProvisionStatus.FULLY_CONFIGURED
    if len(credentials) == 0:
        return ProvisionStatus.UNCONFIGURED
    return ProvisionStatus.PARTIALLY_CONFIGURED


class ServiceProvisioner:
    """Drive a service through install, auth, init, link and credentials.

    Subclasses provide the probes and actions for each step. The flow,
    failure handling and credential validation live here.
    """

    service: str = ""
    display_name: str = ""
    cli_tool: str = ""
    hard_required: bool = False
    credential_specs: tuple[CredentialSpec, ...] = ()
    ref_label: str = "project reference"
    ref_variable: str | None = None

    def __init__(
        self,
        probes: ProbeService,
        runner: ProcessRunner,
        installer: Installer,
        prompter: Prompter,
        validator: CredentialValidator,
        config: WizardConfig,
    ):
        self.probes = probes
        self.runner = runner
        self.installer = installer
        self.prompter = prompter
        self.validator = validator
        self.config = config
        self.collector = CredentialCollector(prompter)

    # --- hooks -----------------------------------------------------------

    def cli_version(self) -> str | None:
        raise NotImplementedError

    def account(self) -> str | None:
        """Authenticated account, or None when not logged in."""
        raise NotImplementedError

    def login(self) -> ProcessResult:
        raise NotImplementedError

    def is_initialized(self) -> bool:
        raise NotImplementedError

    def initialize(self) -> ProcessResult:
        raise NotImplementedError

    def linked_ref(self) -> str | None:
        raise NotImplementedError

    def discover(self) -> DiscoveryResult:
        raise NotImplementedError

    def link(self, ref: str) -> ProcessResult:
        raise NotImplementedError

    def validate(self, values: dict[str, str]) -> ValidationResult | None:
        """Validate collected values; None when there is nothing to check."""
        return None

    def credential_help(self, project_ref: str | None) -> str | None:
        return None

    # --- flow ------------------------------------------------------------

    def install_cli(self) -> ProcessResult:
        return self.installer.install(self.cli_tool)

    def run(self, existing: CredentialSet) -> ProvisionResult:
        """Provision the service.

        Args:
            existing: Credentials already configured in the environment or
                an existing env file

        Returns:
            ProvisionResult with the terminal status

        Raises:
            SetupAborted: The user chose abort, or hard-required credentials
                are still missing
        """
        console.header(f"{self.display_name} Setup")
        state = ServiceState()
        warnings: list[str] = []
        steps: list[StepOutcome] = []
        project_ref: str | None = None
        account: str | None = None

        outcome = self._ensure_step(
            "cli",
            f"{self.display_name} CLI",
            probe=lambda: self.cli_version() is not None,
            action=self.install_cli,
            question=f"Would you like to install the {self.display_name} CLI now?",
            help_text=lambda: self.installer.instructions(self.cli_tool),
        )
        steps.append(outcome)
        state.cli_installed = outcome.satisfied
        cli_version = self.cli_version() if state.cli_installed else None
        if cli_version:
            console.dim(f"  {self.cli_tool} v{cli_version}")

        if state.cli_installed:
            outcome = self._ensure_step(
                "auth",
                f"{self.display_name} Authentication",
                probe=lambda: self.account() is not None,
                action=self.login,
                question="Would you like to login now?",
            )
            steps.append(outcome)
            state.logged_in = outcome.satisfied
            if state.logged_in:
                account = self.account()

        if state.logged_in:
            outcome = self._ensure_step(
                "initialize",
                "Project Initialization",
                probe=self.is_initialized,
                action=self.initialize,
                question=f"Would you like to initialize {self.display_name} here?",
            )
            steps.append(outcome)
            state.initialized = outcome.satisfied

        if state.initialized:
            outcome, project_ref = self._link_step()
            steps.append(outcome)
            state.linked = outcome.satisfied

        for step in steps:
            if step.skipped:
                warnings.append(f"{self.display_name}: {step.step} step skipped")

        values, valid, credential_warnings = self._collect_credentials(existing, project_ref)
        warnings.extend(credential_warnings)
        state.credentials_valid = valid

        credentials = CredentialSet(values)
        status = compute_status(state, credentials)
        logger.info(
            "provision_complete",
            service=self.service,
            status=status.value,
            credentials=sorted(credentials),
        )
        return ProvisionResult(
            service=self.service,
            status=status,
            state=state,
            credentials=credentials,
            project_ref=project_ref,
            cli_version=cli_version,
            account=account,
            warnings=warnings,
            steps=steps,
        )

    def _failure_choice(self, title: str) -> FailureChoice:
        answer = self.prompter.ask_choice(
            f"{title} failed. What would you like to do?",
            [
                PromptChoice(FailureChoice.RETRY.value, "Retry"),
                PromptChoice(FailureChoice.SKIP.value, "Skip", "continue with limited functionality"),
                PromptChoice(FailureChoice.ABORT.value, "Abort", "stop setup"),
            ],
            default=FailureChoice.RETRY.value,
        )
        return FailureChoice(answer)

    def _run_action(
        self,
        step: str,
        title: str,
        action: Callable[[], ProcessResult],
        verify: Callable[[], bool],
        help_text: Callable[[], str] | None = None,
    ) -> StepOutcome:
        """Run an action, re-probe, and handle failure with retry/skip/abort."""
        while True:
            result = action()
            if result.ok and verify():
                console.log(f"{title}: done", "success")
                return StepOutcome(step, satisfied=True)

            message = result.failure_message if not result.ok else "verification failed after the command completed"
            logger.info("step_failed", service=self.service, step=step, reason=message)
            console.log(f"{title} failed: {message}", "error")
            if help_text:
                console.dim(help_text())

            choice = self._failure_choice(title)
            if choice is FailureChoice.RETRY:
                continue
            if choice is FailureChoice.SKIP:
                console.log(f"Skipping: {title}", "warning")
                return StepOutcome(step, satisfied=False, skipped=True, message=message)
            raise SetupAborted(f"{self.display_name} setup aborted: {title} failed ({message})", reason=step)

    def _ensure_step(
        self,
        step: str,
        title: str,
        probe: Callable[[], bool],
        action: Callable[[], ProcessResult],
        question: str,
        help_text: Callable[[], str] | None = None,
    ) -> StepOutcome:
        console.subheader(title)
        if probe():
            console.log(f"{title}: already done", "success")
            return StepOutcome(step, satisfied=True, already=True)

        console.log(f"{title}: not done yet", "warning")
        if not self.prompter.ask_yes_no(question, default=True):
            console.log(f"Skipping: {title}", "info")
            return StepOutcome(step, satisfied=False, skipped=True, message="declined")
        return self._run_action(step, title, action, probe, help_text)

    def _discover_with_retries(self) -> DiscoveryResult:
        attempts = max(0, self.config.discovery_retries) + 1
        discovery = DiscoveryResult(success=False)
        for attempt in range(1, attempts + 1):
            discovery = self.discover()
            if discovery.success:
                break
            logger.info("discovery_failed", service=self.service, attempt=attempt, error=discovery.error)
        return discovery

    def _choose_project(self) -> str | None:
        console.log(f"Fetching your {self.display_name} projects...", "info")
        discovery = self._discover_with_retries()

        if discovery.success and discovery.projects:
            choices = [
                PromptChoice(p.ref, p.name, p.description if p.name == p.ref else f"{p.description} ({p.ref})".strip())
                for p in discovery.projects
            ]
            choices.append(PromptChoice(MANUAL_ENTRY, f"Enter {self.ref_label} manually"))
            selected = self.prompter.ask_choice("Select a project to link:", choices)
            if selected != MANUAL_ENTRY:
                return selected
        else:
            console.log("No projects found or could not fetch projects.", "warning")

        ref = self.prompter.ask_text(f"Enter {self.ref_label} (or press Enter to skip)").strip()
        return ref or None

    def _link_step(self) -> tuple[StepOutcome, str | None]:
        title = "Project Linking"
        console.subheader(title)
        ref = self.linked_ref()
        if ref:
            console.log(f"Project is already linked ({ref})", "success")
            return StepOutcome("link", satisfied=True, already=True), ref

        console.log(f"Project is not linked to a {self.display_name} project", "warning")
        if not self.prompter.ask_yes_no(f"Would you like to link to a {self.display_name} project?", default=True):
            return StepOutcome("link", satisfied=False, skipped=True, message="declined"), None

        ref = self._choose_project()
        if not ref:
            return StepOutcome("link", satisfied=False, skipped=True, message="no project selected"), None

        selected = ref
        outcome = self._run_action(
            "link",
            title,
            action=lambda: self.link(selected),
            verify=lambda: self.linked_ref() is not None,
        )
        return outcome, (self.linked_ref() or ref) if outcome.satisfied else ref

    # --- credentials -----------------------------------------------------

    def _existing_value(self, spec: CredentialSpec, existing: CredentialSet) -> str | None:
        for name in spec.names:
            if existing.is_configured(name):
                return existing[name]
        return None

    def _ask(self, specs: list[CredentialSpec], values: dict[str, str]) -> None:
        for spec in specs:
            label = f"{spec.name} ({spec.description})"
            value = self.collector.ask_variable(spec.name, label=label, secret=spec.secret)
            if value:
                values[spec.name] = value
            else:
                values.pop(spec.name, None)

    def _missing_required(self, values: dict[str, str]) -> list[CredentialSpec]:
        return [s for s in self.credential_specs if s.required and s.name not in values]

    def _collect_credentials(
        self,
        existing: CredentialSet,
        project_ref: str | None,
    ) -> tuple[dict[str, str], bool, list[str]]:
        """Collect, validate and expand credentials for this service.

        Returns:
            (values including aliases, validated, warnings)
        """
        warnings: list[str] = []
        console.subheader(f"{self.display_name} Credentials")

        values: dict[str, str] = {}
        for spec in self.credential_specs:
            value = self._existing_value(spec, existing)
            if value:
                values[spec.name] = value

        missing = [s for s in self.credential_specs if s.name not in values]
        if values:
            console.log(f"Found existing {self.display_name} credentials", "info")
        if missing:
            help_text = self.credential_help(project_ref)
            if help_text:
                console.dim(help_text)
            self._ask(missing, values)

        if self.hard_required and self._missing_required(values):
            names = ", ".join(s.name for s in self._missing_required(values))
            console.log(f"{self.display_name} credentials are required to continue ({names})", "error")
            if not self.prompter.ask_yes_no("Would you like to enter credentials now?", default=True):
                raise SetupAborted(
                    f"{self.display_name} credentials are required to continue setup.", reason="credentials"
                )
            self._ask(self._missing_required(values), values)
            if self._missing_required(values):
                raise SetupAborted(f"{names} are required to continue setup.", reason="credentials")

        valid = False
        while True:
            result = self.validate(values)
            if result is None:
                break
            console.log(f"Validating {self.display_name} credentials...", "info")
            if result.status is ValidationStatus.VALID:
                console.log(result.message or "Credentials validated successfully", "success")
                valid = True
                break
            if result.status is ValidationStatus.UNVERIFIED:
                console.log(f"{result.message} - assuming valid", "warning")
                warnings.append(f"{self.display_name} credentials could not be verified")
                break

            console.log(f"Validation failed: {result.message}", "error")
            if not self.prompter.ask_yes_no("Would you like to re-enter credentials?", default=True):
                console.log("Using credentials without validation", "warning")
                warnings.append(f"{self.display_name} credentials failed validation: {result.message}")
                break
            self._ask([s for s in self.credential_specs if s.validated], values)
            if self.hard_required and self._missing_required(values):
                raise SetupAborted(
                    f"{self.display_name} credentials are required to continue setup.", reason="credentials"
                )

        expanded = dict(values)
        for spec in self.credential_specs:
            if spec.name in values:
                for alias in spec.aliases:
                    expanded[alias] = values[spec.name]
        if project_ref and self.ref_variable:
            expanded[self.ref_variable] = project_ref
        return expanded, valid, warnings
