"""kudump - Kubernetes pod log dumper.

Entry point and CLI argument parsing for the kudump application.
Wires the client, the collector and the console UI together.
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import NoReturn

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from kudump import __version__
from kudump.client import KudumpClient, KudumpError, get_pod_names
from kudump.collector import LogCollector
from kudump.models import CollectionConfig
from kudump.ui import KudumpUI
from kudump.utils import DurationParseError, parse_duration

# Configure logging
logging.basicConfig(
    level=logging.WARNING,
    format="%(levelname)s: %(message)s",
)
logger = logging.getLogger(__name__)


DEFAULT_OUTPUT_DIR = "./pod-logs"
DEFAULT_TAIL_LINES = 1000


def print_help() -> None:
    """Print a formatted help message using Rich."""
    console = Console()

    console.print(
        f"\n  [bold cyan]kudump[/] [dim]v{__version__}[/] · Pull pods logs from Kubernetes\n",
        highlight=False,
    )
    console.print(
        "  [italic]Save the logs of every container of every pod in a namespace "
        "to timestamped files.[/]\n"
    )

    console.print("[bold yellow]Usage:[/]")
    console.print("  kudump [OPTIONS] [ARGS...]\n")

    console.print("[bold yellow]Selection:[/]")
    selection_table = Table(show_header=False, box=None, padding=(0, 2), collapse_padding=True)
    selection_table.add_column("Option", style="cyan", no_wrap=True)
    selection_table.add_column("Description")
    selection_table.add_row("-n, --namespace NS", "Namespace to use [dim](default: current context)[/]")
    selection_table.add_row("-c, --container NAME", "Collect only this container [dim](default: all)[/]")
    console.print(selection_table)
    console.print()

    console.print("[bold yellow]Logs:[/]")
    logs_table = Table(show_header=False, box=None, padding=(0, 2), collapse_padding=True)
    logs_table.add_column("Option", style="cyan", no_wrap=True)
    logs_table.add_column("Description")
    logs_table.add_row("-t, --tail N", f"Last lines per container [dim](default: {DEFAULT_TAIL_LINES}, 0=all)[/]")
    logs_table.add_row("-s, --since DURATION", "Only logs newer than duration [dim](e.g., 30s, 5m, 1h)[/]")
    logs_table.add_row("-p, --previous", "Logs of the previous container instance")
    logs_table.add_row("-f, --follow", "Follow the log streams")
    logs_table.add_row("--no-timestamps", "Do not prefix lines with timestamps")
    console.print(logs_table)
    console.print()

    console.print("[bold yellow]Options:[/]")
    options_table = Table(show_header=False, box=None, padding=(0, 2), collapse_padding=True)
    options_table.add_column("Option", style="cyan", no_wrap=True)
    options_table.add_column("Description")
    options_table.add_row("-o, --output-dir DIR", f"Output directory [dim](default: {DEFAULT_OUTPUT_DIR})[/]")
    options_table.add_row("--kubeconfig PATH", "Kubeconfig file [dim](default: $KUBECONFIG or ~/.kube/config)[/]")
    options_table.add_row("--context NAME", "Kubeconfig context [dim](default: current)[/]")
    options_table.add_row("-v, --verbose", "Increase verbosity [dim](-v info, -vv debug)[/]")
    console.print(options_table)
    console.print()

    examples = Text()
    examples.append("kudump ", style="white")
    examples.append("-n", style="cyan")
    examples.append(" backend                # All pods in 'backend'\n")
    examples.append("kudump ", style="white")
    examples.append("-n", style="cyan")
    examples.append(" backend ")
    examples.append("-c", style="cyan")
    examples.append(" api         # Only the 'api' containers\n")
    examples.append("kudump ", style="white")
    examples.append("-n", style="cyan")
    examples.append(" backend ")
    examples.append("-s", style="cyan")
    examples.append(" 1h ")
    examples.append("-t", style="cyan")
    examples.append(" 0       # Last hour, no line limit")

    console.print(Panel(examples, title="[bold]Examples[/]", border_style="dim", padding=(0, 1)))


class RichHelpAction(argparse.Action):
    """Custom help action that prints Rich-formatted help."""

    def __init__(
        self,
        option_strings,
        dest=argparse.SUPPRESS,
        default=argparse.SUPPRESS,
        help="Show this help message and exit",  # noqa: A002
    ):
        super().__init__(
            option_strings=option_strings,
            dest=dest,
            default=default,
            nargs=0,
            help=help,
        )

    def __call__(self, parser, _namespace, _values, _option_string=None):
        print_help()
        parser.exit()


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for kudump.

    Returns:
        Configured ArgumentParser instance.
    """
    parser = argparse.ArgumentParser(
        prog="kudump",
        add_help=False,
    )

    parser.add_argument(
        "-h", "--help",
        action=RichHelpAction,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    parser.add_argument(
        "-n", "--namespace",
        type=str,
        default="",
        metavar="NS",
        help="Namespace to use (default: current context)",
    )

    parser.add_argument(
        "-c", "--container",
        type=str,
        default="",
        metavar="NAME",
        help="Collect only this container (default: all containers)",
    )

    parser.add_argument(
        "-o", "--output-dir",
        type=Path,
        default=Path(DEFAULT_OUTPUT_DIR),
        metavar="DIR",
        help=f"Output directory. Default: {DEFAULT_OUTPUT_DIR}",
    )

    parser.add_argument(
        "-t", "--tail",
        type=int,
        default=DEFAULT_TAIL_LINES,
        metavar="N",
        help=f"Number of most recent lines per container (0 = all). Default: {DEFAULT_TAIL_LINES}",
    )

    parser.add_argument(
        "-s", "--since",
        type=str,
        default=None,
        metavar="DURATION",
        help="Only logs newer than duration (e.g., 10s, 5m, 1h)",
    )

    parser.add_argument(
        "-p", "--previous",
        action="store_true",
        help="Collect logs of the previous container instance",
    )

    parser.add_argument(
        "-f", "--follow",
        action="store_true",
        help="Follow the log streams",
    )

    parser.add_argument(
        "--no-timestamps",
        dest="timestamps",
        action="store_false",
        help="Do not prefix log lines with timestamps",
    )

    parser.add_argument(
        "--kubeconfig",
        type=str,
        default=None,
        metavar="PATH",
        help="Kubeconfig file (default: $KUBECONFIG or ~/.kube/config)",
    )

    parser.add_argument(
        "--context",
        type=str,
        default=None,
        metavar="NAME",
        help="Kubeconfig context (default: current context)",
    )

    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (-v for info, -vv for debug)",
    )

    # Accepted and echoed, never interpreted
    parser.add_argument(
        "arguments",
        nargs="*",
        metavar="ARGS",
        help=argparse.SUPPRESS,
    )

    return parser


def configure_logging(verbosity: int) -> None:
    """Configure logging based on verbosity level.

    Args:
        verbosity: Number of -v flags (0=warning, 1=info, 2=debug).
    """
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity >= 1:
        level = logging.INFO
    else:
        level = logging.WARNING

    logging.getLogger().setLevel(level)
    logging.getLogger("kudump").setLevel(level)

    # Suppress noisy libraries unless very verbose
    if verbosity < 2:
        logging.getLogger("kubernetes_asyncio").setLevel(logging.WARNING)
        logging.getLogger("aiohttp").setLevel(logging.WARNING)
        logging.getLogger("urllib3").setLevel(logging.WARNING)


async def run_kudump(args: argparse.Namespace, ui: KudumpUI | None = None) -> int:
    """Main async entry point for kudump.

    Every fatal failure (credentials, pod listing, output directory,
    invalid arguments) is reported once and mapped to exit code 1.

    Args:
        args: Parsed command-line arguments.
        ui: Optional UI instance, mainly for tests.

    Returns:
        Exit code (0 for full or partial success, non-zero for errors).
    """
    ui = ui or KudumpUI()

    if args.arguments:
        ui.print_arguments(args.arguments)

    since_seconds = None
    if args.since:
        try:
            since_seconds = parse_duration(args.since)
        except DurationParseError as e:
            ui.print_error(str(e))
            return 1

    if args.tail < 0:
        ui.print_error(f"Tail lines cannot be negative, got: {args.tail}")
        return 1
    tail_lines = args.tail or None

    try:
        async with KudumpClient.create(
            kubeconfig=args.kubeconfig,
            context=args.context,
        ) as client:
            namespace = args.namespace or await client.resolve_namespace()
            logger.info(f"Using namespace {namespace}")

            pods = await client.list_pods(namespace)

            config = CollectionConfig(
                namespace=namespace,
                pod_names=tuple(get_pod_names(pods)),
                output_dir=args.output_dir,
                tail_lines=tail_lines,
                follow=args.follow,
                previous=args.previous,
                since_seconds=since_seconds,
                timestamps=args.timestamps,
                container_name=args.container,
            )

            ui.print_banner(config)
            if not pods:
                ui.print_warning(f"No pods found in namespace '{namespace}'")

            collector = LogCollector(client, ui)
            report = await collector.collect_all(config)

            ui.print_summary(report)
            ui.print_completed()
            return 0

    except KudumpError as e:
        ui.print_error(str(e))
        return 1
    except KeyboardInterrupt:
        ui.console.print("\n[dim]Interrupted[/]")
        return 130  # Standard exit code for SIGINT


def main() -> NoReturn:
    """CLI entry point."""
    parser = create_parser()
    args = parser.parse_args()

    configure_logging(args.verbose)

    try:
        exit_code = asyncio.run(run_kudump(args))
    except KeyboardInterrupt:
        print("\nInterrupted")
        exit_code = 130

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
