"""
gitpop prompts: user input collaborators backed by rich.prompt.

Contract (any object with these three methods can be handed to a Popup)
- free_text(prompt, default, cancel_value) -> str
  Returns the typed text, "" for empty input (default is only displayed);
  cancel_value when the user aborts (Ctrl-C / EOF).
- select_one(choices, prompt) -> str | None
  Returns one of choices, or None when the user aborts.
- confirm(prompt) -> bool
  False when the user aborts.

Cancellation never raises: the popup keeps the prior value instead.
"""
from rich.console import Console
from rich.prompt import Confirm, IntPrompt, Prompt
from rich.table import Table
from rich.text import Text

from .utils import *


class RichPrompter:
    """
    Prompt collaborators rendered on a rich Console.
    """

    def __init__(self, console=Unset):
        self.console = coalesce(console) or Console()

    def free_text(self, prompt, default="", cancel_value=""):
        # default is shown as a hint only; empty input stays "" so the caller
        # can tell "cleared" apart from "kept".
        if default:
            prompt = Text.assemble(prompt, (f"({default}) ", "prompt.default"))
        try:
            return Prompt.ask(prompt, default="", show_default=False, console=self.console)
        except (EOFError, KeyboardInterrupt):
            return cancel_value

    def select_one(self, choices, prompt=""):
        choices = list(choices)
        table = Table.grid(padding=(0, 1))
        for number, choice in enumerate(choices, 1):
            table.add_row(f"{number}.", choice)
        if prompt:
            self.console.print(prompt)
        self.console.print(table)
        try:
            number = IntPrompt.ask("select (0 to cancel)", default=0, show_default=False, console=self.console)
        except (EOFError, KeyboardInterrupt):
            return None
        if not 1 <= number <= len(choices):
            return None
        return choices[number - 1]

    def confirm(self, prompt):
        try:
            return Confirm.ask(prompt, default=False, console=self.console)
        except (EOFError, KeyboardInterrupt):
            return False


__all__ = (
    "RichPrompter",
)
