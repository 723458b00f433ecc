"""Terminal progress indicator for long risk-detection runs."""

from __future__ import annotations

from typing import Optional

from rich.console import Console
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    ProgressColumn,
    SpinnerColumn,
    Task,
    TextColumn,
    TimeElapsedColumn,
    TimeRemainingColumn,
)
from rich.text import Text


class ThroughputColumn(ProgressColumn):
    """Render the task's measured speed as items per second."""

    def __init__(self, unit: str = "URLs") -> None:
        super().__init__()
        self.unit = unit

    def render(self, task: "Task") -> Text:
        speed = task.finished_speed or task.speed
        if speed is None:
            return Text(f"-- {self.unit}/s", style="progress.data.speed")
        return Text(f"{speed:,.0f} {self.unit}/s", style="progress.data.speed")


class DetectionProgress:
    """Context manager wrapping a rich progress bar; a no-op when disabled."""

    def __init__(
        self,
        total: int,
        description: str = "Analyzing URLs",
        *,
        enabled: bool = True,
        console: Optional[Console] = None,
    ) -> None:
        self.total = total
        self.enabled = enabled and total > 0
        self._progress: Optional[Progress] = None
        self._task_id = None
        if self.enabled:
            self._progress = Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                BarColumn(),
                MofNCompleteColumn(),
                ThroughputColumn(),
                TimeElapsedColumn(),
                TextColumn("ETA"),
                TimeRemainingColumn(),
                console=console or Console(stderr=True),
                transient=True,
            )
            self._task_id = self._progress.add_task(description, total=total)

    def __enter__(self) -> "DetectionProgress":
        if self._progress is not None:
            self._progress.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        if self._progress is not None:
            self._progress.stop()

    def update(self, completed: int) -> None:
        if self._progress is not None and self._task_id is not None:
            self._progress.update(self._task_id, completed=min(completed, self.total))


__all__ = ["DetectionProgress", "ThroughputColumn"]
