"""Rich-based progress reporter implementation."""
from __future__ import annotations

import sys
import time
from collections import deque
from typing import Optional

from rich.console import Console
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
from rich.panel import Panel
from rich.text import Text

from ..core.models import BatchManifest, SourceItem


def format_size(num_bytes: int) -> str:
    """Human-readable byte count."""
    size = float(num_bytes)
    for unit in ("B", "KB", "MB", "GB"):
        if size < 1024 or unit == "GB":
            return f"{size:.0f} {unit}" if unit == "B" else f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} GB"


class FilesPerSecondColumn(ProgressColumn):
    """Renders files per second as a rolling average."""

    def __init__(self, window_size: int = 10):
        """Initialize with rolling window size.

        Args:
            window_size: Number of samples for rolling average.
        """
        super().__init__()
        self._window_size = window_size
        self._samples: deque[tuple[float, int]] = deque(maxlen=window_size)
        self._last_completed = 0
        self._start_time: Optional[float] = None

    def render(self, task: Task) -> Text:
        """Render the speed column."""
        completed = int(task.completed)
        current_time = time.time()

        if self._start_time is None:
            self._start_time = current_time
            self._last_completed = completed
            return Text("-- f/s", style="magenta")

        if completed > self._last_completed:
            self._samples.append((current_time, completed))
            self._last_completed = completed

        if len(self._samples) >= 2:
            oldest_time, oldest_completed = self._samples[0]
            newest_time, newest_completed = self._samples[-1]

            time_diff = newest_time - oldest_time
            if time_diff > 0:
                speed = (newest_completed - oldest_completed) / time_diff
                return Text(f"{speed:.1f} f/s", style="magenta")

        # Fallback to overall average
        elapsed = current_time - self._start_time
        if elapsed > 0 and completed > 0:
            return Text(f"{completed / elapsed:.1f} f/s", style="magenta")

        return Text("-- f/s", style="magenta")


class RichProgressReporter:
    """Progress reporter using Rich for terminal output.

    Implements the ProgressSink protocol: pass on_progress/on_complete to
    BatchCoordinator.run.
    """

    def __init__(
        self,
        verbose: bool = False,
        quiet: bool = False,
        console: Optional[Console] = None,
    ):
        """Initialize the reporter.

        Args:
            verbose: Enable verbose output.
            quiet: Suppress all non-essential output.
            console: Console to print to (default: stderr).
        """
        self._console = console or Console(stderr=True)
        self._verbose = verbose
        self._quiet = quiet
        self._progress: Optional[Progress] = None
        self._current_task_id: Optional[TaskID] = None
        self._phase_name: str = ""
        self._manifest: Optional[BatchManifest] = None

    @property
    def console(self) -> Console:
        return self._console

    @property
    def manifest(self) -> Optional[BatchManifest]:
        """Manifest received by on_complete, if any."""
        return self._manifest

    # --- Phase Management ---

    def start_phase(self, name: str, total: int) -> None:
        """Start a new processing phase with progress bar."""
        self._phase_name = name

        if self._quiet:
            return

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
        self._current_task_id = self._progress.add_task(name, total=total)

    def update_phase(self, completed: int, description: Optional[str] = None) -> None:
        """Update phase progress."""
        if self._progress and self._current_task_id is not None:
            if description:
                self._progress.update(self._current_task_id, completed=completed, description=description)
            else:
                self._progress.update(self._current_task_id, completed=completed)

    def end_phase(self) -> None:
        """End the current phase."""
        if self._progress:
            self._progress.stop()
            self._progress = None
            self._current_task_id = None

    # --- ProgressSink ---

    def on_progress(self, done: int, total: int, succeeded: int, failed: int) -> None:
        """Advance the bar; the description shows failures as they happen."""
        if failed:
            description = f"{self._phase_name} [red]({failed} failed)[/red]"
        else:
            description = None
        self.update_phase(done, description)
        self.debug(f"{done}/{total} done, {succeeded} ok, {failed} failed")

    def on_complete(self, manifest: BatchManifest) -> None:
        """Close the bar and print the summary table."""
        self._manifest = manifest
        self.end_phase()
        self.print_manifest(manifest)

    # --- Logging Methods ---

    def info(self, message: str) -> None:
        """Log an info message."""
        if not self._quiet:
            self._console.print(f"[blue]ℹ[/blue] {message}")

    def success(self, message: str) -> None:
        """Log a success message."""
        if not self._quiet:
            self._console.print(f"[green]✓[/green] {message}")

    def warning(self, message: str) -> None:
        """Log a warning message."""
        self._console.print(f"[yellow]⚠[/yellow] {message}")

    def error(self, message: str) -> None:
        """Log an error message."""
        self._console.print(f"[red]✗[/red] {message}", style="red")

    def debug(self, message: str) -> None:
        """Log a debug message (only in verbose mode)."""
        if self._verbose:
            self._console.print(f"[dim]  {message}[/dim]")

    # --- Specialized Output ---

    def print_header(self, title: str) -> None:
        """Print a styled header."""
        if self._quiet:
            return

        text = Text(title, style="bold cyan")
        self._console.print(Panel(text, border_style="cyan"))

    def print_config(self, config_items: dict) -> None:
        """Print configuration as a table."""
        if self._quiet:
            return

        table = Table(title="Configuration", show_header=True, header_style="bold")
        table.add_column("Setting", style="cyan")
        table.add_column("Value", style="white")

        for key, value in config_items.items():
            table.add_row(key, str(value))

        self._console.print(table)

    def print_items(self, items: list[SourceItem]) -> None:
        """Print enumerated source items as a table."""
        if self._quiet:
            return

        table = Table(title=f"{len(items)} item(s)", show_header=True, header_style="bold")
        table.add_column("Name", style="white")
        table.add_column("Group", style="cyan")
        table.add_column("Size", justify="right", style="green")
        table.add_column("Date", style="dim")

        for item in items:
            date = item.date_taken.strftime("%Y-%m-%d %H:%M") if item.date_taken else "unknown"
            table.add_row(item.display_name, item.group_path, format_size(item.size), date)

        self._console.print(table)

    def print_manifest(self, manifest: BatchManifest) -> None:
        """Print batch outcome."""
        if self._quiet:
            return

        title = "Transfer Cancelled" if manifest.cancelled else "Transfer Complete"
        table = Table(title=title, show_header=False)
        table.add_column("Metric", style="cyan")
        table.add_column("Count", style="green", justify="right")

        summary = manifest.summary()
        table.add_row("Items", str(manifest.total))
        table.add_row("Transferred", str(manifest.succeeded))
        table.add_row("Failed", str(manifest.failed))
        if manifest.remaining:
            table.add_row("Not Processed", str(manifest.remaining))
        table.add_row("Bytes Written", format_size(summary["bytes"]))

        for kind, count in manifest.errors_by_kind().items():
            table.add_row(f"  {kind.value}", str(count))

        self._console.print(table)

        if self._verbose:
            for result in manifest.results:
                if not result.success:
                    self._console.print(f"  [red]✗[/red] {result.source_id}: {result.error}")

    # --- Context Managers ---

    def __enter__(self) -> "RichProgressReporter":
        return self

    def __exit__(self, *args) -> None:
        self.end_phase()


class QuietProgressReporter:
    """Minimal progress reporter that only shows errors."""

    def __init__(self) -> None:
        self.manifest: Optional[BatchManifest] = None

    def start_phase(self, name: str, total: int) -> None:
        pass

    def update_phase(self, completed: int, description: Optional[str] = None) -> None:
        pass

    def end_phase(self) -> None:
        pass

    def on_progress(self, done: int, total: int, succeeded: int, failed: int) -> None:
        pass

    def on_complete(self, manifest: BatchManifest) -> None:
        self.manifest = manifest

    def info(self, message: str) -> None:
        pass

    def success(self, message: str) -> None:
        pass

    def warning(self, message: str) -> None:
        print(f"WARNING: {message}", file=sys.stderr)

    def error(self, message: str) -> None:
        print(f"ERROR: {message}", file=sys.stderr)

    def debug(self, message: str) -> None:
        pass

    def print_header(self, title: str) -> None:
        pass

    def print_config(self, config_items: dict) -> None:
        pass

    def print_items(self, items: list[SourceItem]) -> None:
        pass

    def print_manifest(self, manifest: BatchManifest) -> None:
        pass

    def __enter__(self) -> "QuietProgressReporter":
        return self

    def __exit__(self, *args) -> None:
        pass
