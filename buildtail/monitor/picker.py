"""Interactive build picker backed by ``rich.prompt``."""

from __future__ import annotations

from rich.console import Console
from rich.markup import escape
from rich.prompt import Prompt


class RichPicker:
    """Prints a numbered list and asks for a number or a name.

    The default name (if any) is preselected: pressing Enter picks it.
    """

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def pick(self, names: list[str], prompt: str, default: str = "") -> str:
        if not names:
            raise ValueError("nothing to pick from")
        for i, name in enumerate(names, start=1):
            marker = " [dim](default)[/dim]" if name == default else ""
            self.console.print(f"  [cyan]{i:>3}[/cyan]  {escape(name)}{marker}")

        while True:
            answer = Prompt.ask(
                prompt,
                console=self.console,
                default=default or None,
            )
            choice = self._match(names, (answer or "").strip())
            if choice is not None:
                return choice
            self.console.print("[red]Please enter a number or a name from the list.[/red]")

    @staticmethod
    def _match(names: list[str], answer: str) -> str | None:
        if answer in names:
            return answer
        if answer.isdigit():
            index = int(answer) - 1
            if 0 <= index < len(names):
                return names[index]
        return None
