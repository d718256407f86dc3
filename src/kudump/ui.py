"""Rich console UI for kudump.

This module handles all terminal output using the Rich library:
- Banner with the namespace and output directory
- Per-pod progress and per-container saved/failed lines
- Warnings and errors
- Summary table of the collection pass
"""

import logging
from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from kudump.models import CollectionConfig, CollectionReport, ContainerInfo


logger = logging.getLogger(__name__)


class KudumpUI:
    """Rich-based terminal output for a log collection pass.

    Attributes:
        console: The Rich Console instance.

    Example:
        ui = KudumpUI()
        ui.print_banner(config)
        ui.print_summary(report)
    """

    def __init__(self, console: Console | None = None) -> None:
        """Initialize the UI.

        Args:
            console: Optional Rich Console instance.
        """
        self.console = console or Console()

    def print_banner(self, config: CollectionConfig) -> None:
        """Print a header panel describing the collection pass.

        Args:
            config: The collection configuration.
        """
        tail = config.tail_lines if config.tail_lines is not None else "all"
        since = f"{config.since_seconds}s" if config.since_seconds is not None else "-"
        containers = escape(config.container_name) if config.container_name else "all"

        self.console.print()
        self.console.print(
            Panel.fit(
                f"[bold cyan]kudump[/] - Pull pods logs from Kubernetes\n"
                f"[dim]Namespace: {escape(config.namespace)} | "
                f"Pods: {len(config.pod_names)} | Containers: {containers} | "
                f"Tail: {tail} | Since: {since}\n"
                f"Output: {escape(str(config.output_dir))}[/]",
                border_style="cyan",
            )
        )
        self.console.print()

    def print_arguments(self, arguments: list[str]) -> None:
        """Echo positional arguments, which are otherwise ignored."""
        self.console.print(f"Non-flag arguments: {escape(str(arguments))}")

    def print_collecting(self, pod_name: str) -> None:
        """Print a progress line for a pod."""
        self.console.print(f"Collecting logs for pod: [bold]{escape(pod_name)}[/]")

    def print_saved(self, path: Path) -> None:
        """Print a line for a saved log file."""
        self.console.print(f"  [green]✓[/] Saved logs to: {escape(str(path))}")

    def print_container_failure(self, container: ContainerInfo, message: str) -> None:
        """Print a warning attributed to one container."""
        self.print_warning(
            f"failed to collect logs for pod {container.pod_name}, "
            f"container {container.container_name}: {message}"
        )

    def print_pod_failure(self, pod_name: str, message: str) -> None:
        """Print a warning attributed to one pod."""
        self.print_warning(f"failed to get pod {pod_name}: {message}")

    def print_error(self, message: str) -> None:
        """Print an error message.

        Args:
            message: The error message.
        """
        self.console.print(f"[bold red]Error:[/] {escape(message)}")

    def print_warning(self, message: str) -> None:
        """Print a warning message.

        Args:
            message: The warning message.
        """
        self.console.print(f"[bold yellow]Warning:[/] {escape(message)}")

    def print_info(self, message: str) -> None:
        """Print an info message.

        Args:
            message: The info message.
        """
        self.console.print(f"[cyan]Info:[/] {escape(message)}")

    def print_summary(self, report: CollectionReport) -> None:
        """Print a summary table of every attempted container.

        Args:
            report: The report returned by the collector.
        """
        self.console.print()

        if report.results:
            table = Table(
                title="Collected Logs",
                title_style="bold",
                border_style="dim",
                header_style="bold cyan",
            )

            table.add_column("Pod", style="bold")
            table.add_column("Container")
            table.add_column("Type", style="dim")
            table.add_column("Status", justify="center")
            table.add_column("File / Error")

            for result in report.results:
                container = result.container
                if result.ok:
                    status = "[green]saved[/]"
                    detail = escape(str(result.path))
                else:
                    status = "[red]failed[/]"
                    detail = f"[dim]{escape(result.error or '')}[/]"

                table.add_row(
                    escape(container.pod_name),
                    escape(container.container_name),
                    container.container_type,
                    status,
                    detail,
                )

            self.console.print(table)
            self.console.print()

        parts = [f"[green]{report.saved} saved[/]"]
        if report.failed:
            parts.append(f"[red]{report.failed} failed[/]")
        if report.skipped_pods:
            parts.append(f"[yellow]{len(report.skipped_pods)} pods skipped[/]")
        self.console.print(" · ".join(parts))

    def print_completed(self) -> None:
        """Print the final completion line."""
        self.console.print("[bold green]Log collection completed![/]")
