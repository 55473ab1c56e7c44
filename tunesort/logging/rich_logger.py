"""Rich-based progress reporter implementation."""
from __future__ import annotations

import time
from collections import deque
from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.progress import (
    Progress,
    ProgressColumn,
    SpinnerColumn,
    TextColumn,
    BarColumn,
    TimeRemainingColumn,
    TimeElapsedColumn,
    MofNCompleteColumn,
    TaskID,
    Task,
)
from rich.table import Table
from rich.text import Text

from ..core.models import ProgressSnapshot, RunSummary
from ..services.analyzer import LibraryStats


class FilesPerSecondColumn(ProgressColumn):
    """Renders files per second as a rolling average."""

    def __init__(self, window_size: int = 10):
        """Initialize with rolling window size.

        Args:
            window_size: Number of samples for rolling average.
        """
        super().__init__()
        self._samples: deque[tuple[float, int]] = deque(maxlen=window_size)
        self._last_completed = 0

    def render(self, task: Task) -> Text:
        """Render the speed column."""
        completed = int(task.completed)
        now = time.time()

        if completed > self._last_completed:
            self._samples.append((now, completed))
            self._last_completed = completed

        if len(self._samples) >= 2:
            oldest_time, oldest_completed = self._samples[0]
            newest_time, newest_completed = self._samples[-1]
            if newest_time > oldest_time:
                speed = (newest_completed - oldest_completed) / (newest_time - oldest_time)
                return Text(f"{speed:.1f} f/s", style="magenta")

        return Text("-- f/s", style="magenta")


class RichProgressReporter:
    """Progress observer that draws a Rich progress bar.

    Pass an instance as the sorting engine's progress callback; the bar
    is created on the first snapshot and stopped by ``close()``.
    """

    def __init__(
        self,
        description: str = "Sorting",
        verbose: bool = False,
        quiet: bool = False,
        console: Optional[Console] = None,
    ):
        """Initialize the reporter.

        Args:
            description: Label shown next to the bar.
            verbose: Show the current file name.
            quiet: Suppress all non-essential output.
            console: Console to draw on, stderr by default.
        """
        self._console = console or Console(stderr=True)
        self._description = description
        self._verbose = verbose
        self._quiet = quiet
        self._progress: Optional[Progress] = None
        self._task_id: Optional[TaskID] = None

    def __call__(self, snapshot: ProgressSnapshot) -> None:
        """Receive a progress update from the engine."""
        if self._quiet:
            return

        if self._progress is None:
            self._start(snapshot.total)

        description = self._description
        if self._verbose and snapshot.current_file:
            description = f"{self._description} [dim]{escape(snapshot.current_file)}[/dim]"
        if snapshot.failed:
            description = f"{description} [red]({snapshot.failed} failed)[/red]"

        self._progress.update(self._task_id, completed=snapshot.processed, description=description)

    def _start(self, total: int) -> None:
        self._progress = Progress(
            SpinnerColumn(),
            TextColumn("[bold blue]{task.description}"),
            BarColumn(bar_width=40),
            MofNCompleteColumn(),
            TextColumn("[cyan]•"),
            FilesPerSecondColumn(),
            TextColumn("[cyan]•"),
            TimeElapsedColumn(),
            TextColumn("[cyan]•"),
            TimeRemainingColumn(),
            console=self._console,
            transient=False,
        )
        self._progress.start()
        self._task_id = self._progress.add_task(self._description, total=total)

    def close(self) -> None:
        """Stop the live progress bar."""
        if self._progress:
            self._progress.stop()
            self._progress = None
            self._task_id = None

    def print_summary(self, summary: RunSummary, counters: Optional[dict[str, int]] = None) -> None:
        """Print the run summary as a table."""
        if self._quiet:
            return

        table = Table(title=f"Sort {summary.state.value.title()}", show_header=False)
        table.add_column("Metric", style="cyan")
        table.add_column("Count", style="green", justify="right")

        table.add_row("Processed", str(summary.processed))
        table.add_row("Succeeded", str(summary.succeeded))
        table.add_row("Failed", str(summary.failed))

        if counters:
            table.add_row("", "")
            table.add_row("Moved", str(counters.get("moved", 0)))
            table.add_row("Copied", str(counters.get("copied", 0)))

        if summary.elapsed_seconds > 0:
            rate = summary.processed / summary.elapsed_seconds
            table.add_row("", "")
            table.add_row("Time Elapsed", f"{summary.elapsed_seconds:.1f}s")
            table.add_row("Processing Rate", f"{rate:.1f} files/sec")

        self._console.print(table)

    def print_analysis(self, stats: LibraryStats) -> None:
        """Print library statistics and the per-format breakdown."""
        if self._quiet:
            return

        table = Table(title="Library Analysis", show_header=False)
        table.add_column("Metric", style="cyan")
        table.add_column("Value", style="green", justify="right")

        table.add_row("Total Files", str(stats.total_files))
        table.add_row("Total Size", f"{stats.total_size_mb:.2f} MB")
        table.add_row("Unique Artists", str(stats.unique_artists))
        table.add_row("Unique Albums", str(stats.unique_albums))
        table.add_row("Unique Genres", str(stats.unique_genres))

        span = stats.year_span
        table.add_row("Years", f"{span[0]} - {span[1]}" if span else "Unknown")

        if stats.formats:
            table.add_row("", "")
            for ext, count in stats.formats.items():
                table.add_row(escape(ext or "(none)"), str(count))

        self._console.print(table)

    def __enter__(self) -> "RichProgressReporter":
        return self

    def __exit__(self, *args) -> None:
        self.close()


class QuietProgressReporter:
    """Reporter that draws nothing; problems still reach the log."""

    def __call__(self, snapshot: ProgressSnapshot) -> None:
        pass

    def close(self) -> None:
        pass

    def print_summary(self, summary: RunSummary, counters: Optional[dict[str, int]] = None) -> None:
        pass

    def print_analysis(self, stats: LibraryStats) -> None:
        pass

    def __enter__(self) -> "QuietProgressReporter":
        return self

    def __exit__(self, *args) -> None:
        pass
