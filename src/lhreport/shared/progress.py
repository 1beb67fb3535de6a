"""Rich spinner that follows one report generation run."""

from __future__ import annotations

from rich.console import Console
from rich.markup import escape
from rich.progress import Progress, SpinnerColumn, TaskID, TextColumn, TimeElapsedColumn

console = Console()


class GenerationProgress:
    """Single-line spinner; pass :meth:`step` as the generator's progress callback."""

    def __init__(self, label: str = "Generating report") -> None:
        self.label = label
        self.steps: list[str] = []
        self._progress = Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            TimeElapsedColumn(),
            console=console,
        )
        self._task: TaskID | None = None

    def __enter__(self) -> "GenerationProgress":
        self._progress.__enter__()
        self._task = self._progress.add_task(f"[cyan]{self.label}[/]", total=None)
        return self

    def __exit__(self, *args: object) -> None:
        self._progress.__exit__(*args)

    def _describe(self, description: str) -> None:
        if self._task is not None:
            self._progress.update(self._task, description=description)

    def step(self, message: str) -> None:
        self.steps.append(message)
        self._describe(f"[cyan]{self.label}[/] ({len(self.steps)}) {message}")

    def done(self) -> None:
        self._describe(f"[green]✓ {self.label}[/]")

    def failed(self, error: str) -> None:
        step = self.steps[-1] if self.steps else "starting"
        self._describe(f"[red]✗ {self.label} while {step.lower()}: {escape(error)}[/]")
