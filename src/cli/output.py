"""Terminal output handling using Rich library.

This module provides the OutputHandler class for all CLI terminal output:
colored status messages, a spinner for the tree discovery phase, and the
final per-document report. Supports verbosity levels and --no-color.
"""

from contextlib import contextmanager
from typing import Iterator, List

from rich.console import Console
from rich.live import Live
from rich.markup import escape
from rich.spinner import Spinner

from src.file_mapper.stats import DocLog, DocOutcome, StatsSnapshot


class OutputHandler:
    """Handles all terminal output using Rich library.

    Attributes:
        verbosity: Verbosity level (0=summary, 1=info, 2=debug)
        console: Rich Console instance for output

    Example:
        >>> handler = OutputHandler(verbosity=1, no_color=False)
        >>> handler.success("Mirror completed")
        >>> with handler.spinner("Resolving wiki tree..."):
        ...     pass
    """

    def __init__(self, verbosity: int = 0, no_color: bool = False):
        """Initialize output handler.

        Args:
            verbosity: Verbosity level (0=summary, 1=info, 2=debug)
            no_color: Disable color output if True
        """
        self.verbosity = verbosity
        self.console = Console(
            force_terminal=not no_color,
            no_color=no_color,
            highlight=False,
        )

    def success(self, message: str) -> None:
        """Display success message in green."""
        self.console.print(f"[green]✓[/green] {escape(message)}")

    def error(self, message: str) -> None:
        """Display error message in red."""
        self.console.print(f"[red]✗[/red] {escape(message)}", style="red")

    def warning(self, message: str) -> None:
        """Display warning message in yellow."""
        self.console.print(f"[yellow]⚠[/yellow] {escape(message)}", style="yellow")

    def info(self, message: str) -> None:
        """Display info message (only if verbosity >= 1)."""
        if self.verbosity >= 1:
            self.console.print(escape(message))

    def print(self, message: str) -> None:
        """Display message without formatting."""
        self.console.print(escape(message))

    @contextmanager
    def spinner(self, message: str) -> Iterator[None]:
        """Display spinner for single long-running operations.

        Example:
            >>> with handler.spinner("Resolving wiki tree..."):
            ...     nodes, paths = resolver.resolve_all(root)
        """
        spinner = Spinner("dots", text=message)
        with Live(spinner, console=self.console, refresh_per_second=10, transient=True):
            yield

    def print_report(self, logs: List[DocLog], snapshot: StatsSnapshot) -> None:
        """Display one line per document (sorted by path) and the totals.

        Args:
            logs: Per-document lines, already sorted by path
            snapshot: Run totals
        """
        if logs:
            self.console.print("\n[bold]Documents:[/bold]")
        for log in logs:
            path = escape(log.path)
            images = ""
            if log.new_images or log.cached_images:
                images = f" [dim](images +{log.new_images} / {log.cached_images} cached)[/dim]"
            if log.outcome == DocOutcome.NEW:
                self.console.print(f"  [green]+[/green] {path}{images}")
            elif log.outcome == DocOutcome.CACHED:
                if self.verbosity >= 1:
                    self.console.print(f"  [dim]=[/dim] {path}{images}")
            else:
                self.console.print(f"  [red]✗[/red] {path}: {escape(log.reason)}")

        unchanged = snapshot.total_docs - snapshot.new_docs - snapshot.failed_docs
        self.console.print("\n[bold]Mirror Summary:[/bold]")
        self.console.print(
            f"  Documents: {snapshot.total_docs} total, "
            f"[green]{snapshot.new_docs} new[/green], "
            f"{max(unchanged, 0)} unchanged"
            + (f", [red]{snapshot.failed_docs} failed[/red]" if snapshot.failed_docs else "")
        )
        self.console.print(
            f"  Images: {snapshot.total_images} total, "
            f"[green]{snapshot.new_images} new[/green], "
            f"{snapshot.total_images - snapshot.new_images} cached"
        )
        self.console.print(f"  Elapsed: {snapshot.elapsed:.1f}s")

        if snapshot.failed_docs:
            self.console.print("\n[red]Mirror completed with failures[/red]")
        elif snapshot.new_docs == 0:
            self.console.print("\n[green]Already up to date. No changes written.[/green]")
        else:
            self.console.print("\n[green]Mirror completed successfully[/green]")
