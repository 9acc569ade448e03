"""User input port.

Every question the wizard asks goes through a ``Prompter``. The default
implementation uses questionary; tests substitute a scripted prompter.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

import questionary
from questionary import Choice, Style

from .errors import SetupCancelled

STYLE = Style(
    [
        ("qmark", "fg:cyan bold"),
        ("question", "bold"),
        ("answer", "fg:green bold"),
        ("pointer", "fg:cyan bold"),
        ("highlighted", "fg:cyan bold"),
        ("selected", "fg:green"),
    ]
)


@dataclass(frozen=True)
class PromptChoice:
    """One option of a single-choice question."""

    value: str
    label: str
    description: str = ""

    @property
    def title(self) -> str:
        if self.description:
            return f"{self.label} - {self.description}"
        return self.label


class Prompter(Protocol):
    """Narrow interface for all user interaction."""

    def ask_text(self, message: str, default: str = "") -> str: ...

    def ask_yes_no(self, message: str, default: bool = True) -> bool: ...

    def ask_secret(self, message: str) -> str: ...

    def ask_choice(self, message: str, choices: list[PromptChoice], default: str | None = None) -> str: ...


class QuestionaryPrompter:
    """Terminal prompter built on questionary.

    A ``None`` answer means the user pressed Ctrl+C and is turned into
    ``SetupCancelled``.
    """

    def __init__(self, style: Style = STYLE):
        self.style = style

    @staticmethod
    def _answer(value):
        if value is None:
            raise SetupCancelled()
        return value

    def ask_text(self, message: str, default: str = "") -> str:
        answer = self._answer(questionary.text(message, default=default, style=self.style).ask())
        return answer.strip() or default

    def ask_yes_no(self, message: str, default: bool = True) -> bool:
        return bool(self._answer(questionary.confirm(message, default=default, style=self.style).ask()))

    def ask_secret(self, message: str) -> str:
        return self._answer(questionary.password(message, style=self.style).ask()).strip()

    def ask_choice(self, message: str, choices: list[PromptChoice], default: str | None = None) -> str:
        q_choices = [Choice(title=c.title, value=c.value) for c in choices]
        return self._answer(
            questionary.select(message, choices=q_choices, default=default, style=self.style).ask()
        )
