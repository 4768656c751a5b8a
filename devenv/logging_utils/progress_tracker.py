"""
Step-by-step progress display for multi-step operations such as backup.
"""

from typing import List, Optional

from rich.console import Console
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
)


class ProgressTracker:
    """Rich progress bar; finished steps are printed above it as they land."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()
        self._progress: Optional[Progress] = None
        self._task: Optional[TaskID] = None
        self._step_messages: List[str] = []

    @property
    def step_messages(self) -> List[str]:
        return list(self._step_messages)

    def begin(self, total_steps: int, title: str = "🚀 devenv") -> None:
        self.finish()
        self._step_messages = []
        self._progress = Progress(
            SpinnerColumn(),
            TextColumn("[bold blue]{task.description}"),
            BarColumn(),
            MofNCompleteColumn(),
            TimeElapsedColumn(),
            console=self.console,
            transient=True,
        )
        self._task = self._progress.add_task(title, total=total_steps)
        self._progress.start()

    def record_step(self, name: str, success: bool) -> None:
        """Advance the bar by one and print the step with its status glyph."""
        message = f"{name} {'✅' if success else '❌'}"
        self._step_messages.append(message)
        if self._progress is None:
            self.console.print(message)
            return
        self._progress.console.print(message)
        if self._task is not None:
            self._progress.advance(self._task)

    def finish(self) -> None:
        if self._progress is not None:
            self._progress.stop()
        self._progress = None
        self._task = None
