"""Interactive input boundary for the init workflow.

The workflow only talks to a Prompter, so tests can drive it with
scripted answers while the CLI uses ConsolePrompter.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

import typer


class EmptyInputError(ValueError):
    """Raised when a required prompt received no input."""

    def __init__(self, label: str) -> None:
        self.label = label
        super().__init__(f"A value is required for '{label}'")


@dataclass
class PromptField:
    """One field of a multi-field prompt."""

    key: str
    label: str
    default: str


def is_yes(answer: str) -> bool:
    """Interpret a (y)-defaulted confirmation answer.

    Empty input means yes; otherwise the answer must start with y/Y.
    """
    answer = answer.strip()
    return not answer or answer[0].lower() == "y"


def require(label: str, value: str) -> str:
    """Return value stripped, raising EmptyInputError if nothing is left."""
    value = value.strip()
    if not value:
        raise EmptyInputError(label)
    return value


class Prompter(ABC):
    """Source of user answers for the init workflow."""

    @abstractmethod
    def ask(self, label: str, default: str | None = None) -> str:
        """Ask a single question.

        Returns the raw answer, or default when the answer is empty and
        a default was given.
        """
        ...

    def ask_many(self, fields: list[PromptField]) -> dict[str, str]:
        """Ask several questions as one prompt, keyed by field.key.

        Empty answers fall back to each field's default.
        """
        return {f.key: self.ask(f"{f.label} ({f.default})", f.default) or f.default for f in fields}

    def confirm(self, label: str) -> bool:
        """Ask a yes/no question whose default answer is yes."""
        return is_yes(self.ask(f"{label} (y)"))


class ConsolePrompter(Prompter):
    """Prompter reading from the terminal via typer.prompt."""

    def ask(self, label: str, default: str | None = None) -> str:
        answer = typer.prompt(label, default="", show_default=False)
        if not answer and default is not None:
            return default
        return answer
