"""Test doubles for envwizard tests.

- ScriptedPrompter: answers prompts by matching question text
- FakeRunner: ProcessRunner double with canned results per command
- StubValidator: credential validator that never touches the network
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from envwizard.process import ProcessResult, ProcessRunner
from envwizard.prompter import PromptChoice
from envwizard.validators import ValidationResult, ValidationStatus

# =============================================================================
# Scripted prompter
# =============================================================================


class ScriptedPrompter:
    """Prompter double.

    Answers are looked up by the first key that is a substring of the
    question. A list value is consumed one answer per question. Unmatched
    questions take the prompt's default (yes/no, choice) or empty input
    (text, secret).
    """

    def __init__(
        self,
        text: dict[str, Any] | None = None,
        yes_no: dict[str, Any] | None = None,
        secret: dict[str, Any] | None = None,
        choice: dict[str, Any] | None = None,
    ):
        self.rules = {
            "text": dict(text or {}),
            "yes_no": dict(yes_no or {}),
            "secret": dict(secret or {}),
            "choice": dict(choice or {}),
        }
        self.asked: list[tuple[str, str]] = []

    def _lookup(self, kind: str, message: str, default: Any) -> Any:
        self.asked.append((kind, message))
        for key, value in self.rules[kind].items():
            if key in message:
                if isinstance(value, list):
                    if not value:
                        return default
                    return value.pop(0)
                if isinstance(value, BaseException):
                    raise value
                return value
        return default

    def ask_text(self, message: str, default: str = "") -> str:
        answer = self._lookup("text", message, default)
        if isinstance(answer, BaseException):
            raise answer
        return answer or default

    def ask_yes_no(self, message: str, default: bool = True) -> bool:
        answer = self._lookup("yes_no", message, default)
        if isinstance(answer, BaseException):
            raise answer
        return answer

    def ask_secret(self, message: str) -> str:
        answer = self._lookup("secret", message, "")
        if isinstance(answer, BaseException):
            raise answer
        return answer

    def ask_choice(self, message: str, choices: list[PromptChoice], default: str | None = None) -> str:
        answer = self._lookup("choice", message, default or choices[0].value)
        if isinstance(answer, BaseException):
            raise answer
        return answer

    def questions(self, kind: str | None = None) -> list[str]:
        return [m for k, m in self.asked if kind is None or k == kind]


# =============================================================================
# Fake process runner
# =============================================================================

Response = ProcessResult | Callable[[list[str]], ProcessResult]


def ok(stdout: str = "", stderr: str = "") -> ProcessResult:
    return ProcessResult(exit_code=0, stdout=stdout, stderr=stderr)


def fail(code: int = 1, stderr: str = "") -> ProcessResult:
    return ProcessResult(exit_code=code, stderr=stderr)


@dataclass
class FakeRunner(ProcessRunner):
    """Runner double.

    Responses are matched on the longest command prefix. Captured probes
    without a response fail; interactive commands without one succeed.
    """

    tools: set[str] = field(default_factory=set)
    responses: dict[tuple[str, ...], Response] = field(default_factory=dict)
    calls: list[tuple[str, list[str]]] = field(default_factory=list)

    def which(self, name: str) -> str | None:
        return f"/usr/bin/{name}" if name in self.tools else None

    def on(self, args: list[str] | tuple[str, ...], response: Response) -> FakeRunner:
        self.responses[tuple(args)] = response
        return self

    def _respond(self, args: list[str], default: ProcessResult) -> ProcessResult:
        best: tuple[str, ...] | None = None
        for prefix in self.responses:
            if tuple(args[: len(prefix)]) == prefix and (best is None or len(prefix) > len(best)):
                best = prefix
        if best is None:
            return default
        response = self.responses[best]
        return response(args) if callable(response) else response

    def capture(self, args: list[str], timeout: float = 10.0, cwd: Path | None = None) -> ProcessResult:
        self.calls.append(("capture", list(args)))
        if args[0] not in self.tools:
            return ProcessResult(exit_code=None, error=f"{args[0]} not found")
        return self._respond(args, fail(stderr="no canned response"))

    def interactive(self, args: list[str], cwd: Path | None = None) -> ProcessResult:
        self.calls.append(("interactive", list(args)))
        return self._respond(args, ok())

    def interactive_calls(self) -> list[list[str]]:
        return [args for kind, args in self.calls if kind == "interactive"]


# =============================================================================
# Validator double
# =============================================================================


class StubValidator:
    """CredentialValidator double that never touches the network."""

    def __init__(
        self,
        github: ValidationResult | None = None,
        supabase: ValidationResult | list[ValidationResult] | None = None,
    ):
        self.github = github or ValidationResult(ValidationStatus.VALID, "ok", account="octocat")
        self.supabase = supabase or ValidationResult(ValidationStatus.VALID, "ok")
        self.calls: list[str] = []

    def validate_github_token(self, token: str) -> ValidationResult:
        self.calls.append("github")
        return self.github

    def validate_supabase(self, url: str, anon_key: str) -> ValidationResult:
        self.calls.append("supabase")
        if isinstance(self.supabase, list):
            return self.supabase.pop(0)
        return self.supabase


ALL_TOOLS = {"git", "node", "npm", "curl", "rg", "gh", "supabase"}
