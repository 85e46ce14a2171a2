"""Console output for profile operations: numbered steps and result summaries."""

from __future__ import annotations

from typing import Protocol


class ProgressReporter(Protocol):
    """What operations and the CLI report while they work."""

    def update_status(self, message: str) -> None: ...
    def step(self, step_name: str, current: int, total: int) -> None: ...
    def summary(self, title: str, rows: list[tuple[str, str]]) -> None: ...


class RichProgressReporter:
    """Writes steps and a two-column result table to a rich console."""

    def __init__(self, console=None) -> None:  # type: ignore[no-untyped-def]
        if console is None:
            from rich.console import Console

            console = Console()
        self.console = console

    def update_status(self, message: str) -> None:
        self.console.print(f"[bold green]*[/] {message}")

    def step(self, step_name: str, current: int, total: int) -> None:
        self.console.print(f"  [cyan]{current}/{total}[/] {step_name}", highlight=False)

    def summary(self, title: str, rows: list[tuple[str, str]]) -> None:
        from rich import box
        from rich.table import Table
        from rich.text import Text

        table = Table(title=title, box=box.SIMPLE, show_header=False, title_justify="left")
        table.add_column(style="bold")
        table.add_column()
        for label, value in rows:
            table.add_row(Text(label), Text(value))
        self.console.print(table)


class NullProgressReporter:
    """Discards everything; used for --json output and by the engine's default."""

    def update_status(self, message: str) -> None:
        pass

    def step(self, step_name: str, current: int, total: int) -> None:
        pass

    def summary(self, title: str, rows: list[tuple[str, str]]) -> None:
        pass
