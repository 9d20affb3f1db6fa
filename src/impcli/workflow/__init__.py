"""Interactive workflows behind imp commands."""

from impcli.workflow.init import (
    ConfigConflictError,
    InitContext,
    InitFlags,
    InitWorkflow,
    Stage,
)
from impcli.workflow.prompts import ConsolePrompter, EmptyInputError, Prompter, PromptField

__all__ = [
    "ConfigConflictError",
    "ConsolePrompter",
    "EmptyInputError",
    "InitContext",
    "InitFlags",
    "InitWorkflow",
    "PromptField",
    "Prompter",
    "Stage",
]
