"""Exceptions that may cross component boundaries.

Components return result dataclasses for recoverable failures. Only the
conditions below propagate to the CLI entry point.
"""

from dataclasses import dataclass


class EnvwizardError(Exception):
    """Base error for envwizard."""


@dataclass
class SetupAborted(EnvwizardError):
    """Setup cannot continue (exit code 1).

    Raised when prerequisites are unmet and the user declines to fix them,
    when hard-required credentials are still missing, or when the user
    chooses "abort" after a failed step.
    """

    message: str
    reason: str = "aborted"

    def __str__(self) -> str:
        return self.message


class SetupCancelled(EnvwizardError):
    """User interrupted a prompt (Ctrl+C)."""

    def __init__(self, message: str = "Setup cancelled by user"):
        self.message = message
        super().__init__(message)


@dataclass
class TemplateError(EnvwizardError):
    """MCP template could not be loaded or parsed."""

    message: str
    path: str | None = None

    def __str__(self) -> str:
        if self.path:
            return f"{self.message} ({self.path})"
        return self.message
