"""Command-line interface for license_scout.

Provides the main entry point and subcommands for scanning a directory of
archives for license compliance and for validating a run configuration.
"""

import asyncio
import logging
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from license_scout.catalog import load_catalog, load_override_store
from license_scout.config import DEFAULT_CONFIG_FILE, load_parameters
from license_scout.discovery import get_finder
from license_scout.exceptions import LicenseScoutExecutionError
from license_scout.models import ArchiveType
from license_scout.overrides import write_skeleton
from license_scout.pipeline import Executor, ScanResult
from license_scout.reporters import MarkdownReporter

app = typer.Typer(
    name="license-scout",
    help="License compliance auditing for Java archives and npm packages.",
    no_args_is_help=True,
)

console = Console()
err_console = Console(stderr=True)

# Configure logging
logging.basicConfig(
    level=logging.WARNING,
    format="%(levelname)s: %(message)s",
)
logger = logging.getLogger("license_scout")

EXIT_OK = 0
EXIT_FAIL_ON_ERROR = 1
EXIT_EXECUTION_ERROR = 2


def _setup_logging(verbose: bool) -> None:
    """Configure logging level based on verbosity flag."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.getLogger("license_scout").setLevel(level)


def _print_summary(result: ScanResult) -> None:
    """Print the legal status summary table."""
    table = Table(title="Legal status summary")
    table.add_column("Legal status")
    table.add_column("Archives", justify="right")
    for status, count in result.count_by_legal_status().items():
        table.add_row(status, str(count))
    console.print(table)
    console.print(
        f"Scanned [bold]{len(result.archives)}[/bold] archives, "
        f"[bold]{len(result.reportable)}[/bold] reportable"
    )


def _run_scan(
    config: Path,
    scan_dir: Optional[Path],
    archive_type: Optional[ArchiveType],
    output: Optional[Path],
    skeleton: Optional[Path],
    fail_on_error: Optional[bool],
    workers: Optional[int],
    verbose: bool,
) -> int:
    """Implementation of the scan command."""
    _setup_logging(verbose)

    params = load_parameters(config)
    if scan_dir is not None:
        params.scan_directory = scan_dir
    if archive_type is not None:
        params.archive_type = archive_type
    if fail_on_error is not None:
        params.fail_on_error = fail_on_error
    if workers is not None:
        params.workers = workers
    if params.scan_directory is None:
        err_console.print(
            "[red]Error:[/red] No scan directory given in the configuration or with --scan-dir"
        )
        return EXIT_EXECUTION_ERROR

    catalog = load_catalog(params.config_files)
    overrides = load_override_store(params.config_files, catalog)
    finder = get_finder(params.archive_type, params.scan_directory)
    executor = Executor.from_parameters(params, catalog, overrides)
    if verbose:
        console.print(f"[dim]Using finder: {finder.source_name}[/dim]")

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
        transient=True,
    ) as progress:
        task = progress.add_task("Scanning archives...", total=None)
        result = asyncio.run(executor.execute(finder))
        progress.update(task, completed=True)

    if not result.archives:
        console.print("[yellow]No archives found[/yellow]")
    else:
        _print_summary(result)

    if output is not None:
        reporter = MarkdownReporter()
        if not output.suffix:
            output = output.with_suffix(reporter.default_extension)
        reporter.write(result.reportable, output, result.policy_violation)
        console.print(f"[green]Generated {reporter.format_name} report:[/green] {output}")
    if skeleton is not None:
        rows = write_skeleton(result.archives, skeleton)
        console.print(f"[green]Wrote {rows} checked archive rows:[/green] {skeleton}")

    violation = result.policy_violation
    if violation is not None:
        err_console.print(
            f"\n[red]Fail on error condition ({len(violation.archives)} archives):[/red]"
        )
        for archive in violation.archives:
            err_console.print(
                f"  - {archive.file_name} {archive.version}: {archive.legal_status}"
            )
        return EXIT_FAIL_ON_ERROR

    console.print("\n[green]No fail on error condition[/green]")
    return EXIT_OK


@app.command()
def scan(
    config: Annotated[
        Path,
        typer.Option(
            "--config",
            "-c",
            help="Run configuration file",
        ),
    ] = Path(DEFAULT_CONFIG_FILE),
    scan_dir: Annotated[
        Optional[Path],
        typer.Option(
            "--scan-dir",
            "-d",
            help="Directory to scan, overrides the configuration",
        ),
    ] = None,
    archive_type: Annotated[
        Optional[ArchiveType],
        typer.Option(
            "--type",
            "-t",
            help="Kind of archives to scan, overrides the configuration",
        ),
    ] = None,
    output: Annotated[
        Optional[Path],
        typer.Option(
            "--output",
            "-o",
            help="Write a Markdown report of the reportable archives (.md is added if the path has no extension)",
        ),
    ] = None,
    skeleton: Annotated[
        Optional[Path],
        typer.Option(
            "--skeleton",
            help="Write a checked archives CSV skeleton for all archives",
        ),
    ] = None,
    fail_on_error: Annotated[
        Optional[bool],
        typer.Option(
            "--fail-on-error/--no-fail-on-error",
            help="Fail when an archive has an error legal status",
            show_default=False,
        ),
    ] = None,
    workers: Annotated[
        Optional[int],
        typer.Option(
            "--workers",
            "-w",
            min=1,
            help="Number of archives processed concurrently",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Enable verbose output",
        ),
    ] = False,
) -> None:
    """Scan archives and classify their licenses.

    Exit codes:
        0 - Scan passed
        1 - Fail on error condition
        2 - Execution or configuration error
    """
    try:
        exit_code = _run_scan(
            config=config,
            scan_dir=scan_dir,
            archive_type=archive_type,
            output=output,
            skeleton=skeleton,
            fail_on_error=fail_on_error,
            workers=workers,
            verbose=verbose,
        )
    except LicenseScoutExecutionError as e:
        logger.debug("Execution error context: %s", e.context)
        err_console.print(f"[red]Error:[/red] {e.message}")
        exit_code = EXIT_EXECUTION_ERROR
    except (OSError, ValueError) as e:
        err_console.print(f"[red]Error:[/red] {e}")
        exit_code = EXIT_EXECUTION_ERROR
    raise typer.Exit(code=exit_code)


@app.command("check-config")
def check_config(
    config: Annotated[
        Path,
        typer.Option(
            "--config",
            "-c",
            help="Run configuration file",
        ),
    ] = Path(DEFAULT_CONFIG_FILE),
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Enable verbose output",
        ),
    ] = False,
) -> None:
    """Load and validate every configuration source.

    Exit codes:
        0 - Configuration is valid
        2 - Configuration error
    """
    _setup_logging(verbose)

    try:
        params = load_parameters(config)
        catalog = load_catalog(params.config_files)
        overrides = load_override_store(params.config_files, catalog)
    except LicenseScoutExecutionError as e:
        err_console.print(f"[red]Error:[/red] {e.message}")
        raise typer.Exit(code=EXIT_EXECUTION_ERROR)

    table = Table(title=f"Configuration {config}")
    table.add_column("Source")
    table.add_column("Entries", justify="right")
    table.add_row("Licenses", str(len(catalog.licenses)))
    table.add_row("Providers", str(len(catalog.providers)))
    table.add_row("Notices", str(len(catalog.notices)))
    table.add_row("License texts", str(len(catalog.license_texts)))
    table.add_row("Name mappings", str(len(catalog.name_mappings)))
    table.add_row("URL mappings", str(len(catalog.url_mappings)))
    table.add_row("Global filters", str(len(catalog.global_filters)))
    table.add_row("Filtered vendors", str(len(catalog.filtered_vendor_names)))
    table.add_row("Checked archives", str(len(overrides)))
    console.print(table)
    console.print(
        f"Archive type: [bold]{params.archive_type.value}[/bold], "
        f"workers: [bold]{params.workers}[/bold]"
    )
    console.print("[green]Configuration is valid[/green]")


if __name__ == "__main__":
    app()
