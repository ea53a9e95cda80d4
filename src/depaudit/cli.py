"""CLI entry point for depaudit."""

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

# Load .env file if it exists
from dotenv import load_dotenv
load_dotenv()

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from depaudit.analyzers.pipeline import audit_project
from depaudit.config import AuditConfig, load_config
from depaudit.errors import AuditError
from depaudit.models.schemas import AuditReport, HealthStatus, LicenseRisk
from depaudit.report import render_json, render_markdown

app = typer.Typer(help="Audit Rust project dependencies for health, license and footprint risk.")

console = Console()
err_console = Console(stderr=True)

STATUS_STYLES = {
    HealthStatus.HEALTHY: "green",
    HealthStatus.WARNING: "yellow",
    HealthStatus.STALE: "dark_orange",
    HealthStatus.RISKY: "red",
}


class ReportFormat(str, Enum):
    JSON = "json"
    MARKDOWN = "markdown"


@dataclass
class CliOptions:
    """Global options shared by every command."""

    project_path: Path = Path(".")
    config_path: Path | None = None
    ignore: set[str] = field(default_factory=set)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


@app.callback()
def main(
    ctx: typer.Context,
    project_path: Path = typer.Option(
        Path("."), "--project-path", "-p", help="Path to the Rust project to audit"
    ),
    config: Path | None = typer.Option(
        None, "--config", "-c", help="Path to a TOML configuration file"
    ),
    ignore: list[str] | None = typer.Option(
        None, "--ignore", help="Dependency to ignore (repeatable)"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
) -> None:
    """Audit Rust project dependencies for health, license and footprint risk."""
    _configure_logging(verbose)
    ctx.obj = CliOptions(project_path=project_path, config_path=config, ignore=set(ignore or []))


def _load_config(options: CliOptions) -> AuditConfig:
    """Load the configuration and merge command-line ignores into it."""
    try:
        config = load_config(options.config_path) if options.config_path else AuditConfig()
        config.validate_config()
    except AuditError as e:
        err_console.print(f"[red]Failed to load config: {escape(str(e))}[/red]")
        raise typer.Exit(1)

    config.ignored_dependencies |= options.ignore
    return config


def _run_audit(options: CliOptions) -> AuditReport:
    """Run the audit behind a spinner, exiting on fatal errors."""
    config = _load_config(options)
    return asyncio.run(_audit(options.project_path, config))


async def _audit(project_path: Path, config: AuditConfig) -> AuditReport:
    """Async implementation of the audit run."""
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=err_console,
        transient=True,
    ) as progress:
        task = progress.add_task("Auditing dependencies...", total=None)
        done = 0

        def on_result(health) -> None:
            nonlocal done
            done += 1
            progress.update(task, description=f"Audited {done} dependencies ({health.name})")

        try:
            return await audit_project(project_path, config, progress_callback=on_result)
        except AuditError as e:
            err_console.print(f"[red]Audit failed: {escape(str(e))}[/red]")
            raise typer.Exit(1)


@app.command()
def scan(
    ctx: typer.Context,
    fail_threshold: int | None = typer.Option(
        None,
        "--fail-threshold",
        min=0,
        max=100,
        help="Fail if any dependency scores below this threshold",
    ),
    detailed: bool = typer.Option(False, "--detailed", help="Show every dependency"),
) -> None:
    """Run a full audit and display a summary."""
    audit_report = _run_audit(ctx.obj)

    _display_summary(audit_report)
    if detailed:
        console.print()
        _display_detailed(audit_report)

    if fail_threshold is not None:
        failing = [dep for dep in audit_report.dependencies if dep.health_score < fail_threshold]
        if failing:
            err_console.print(
                f"\n[bold red]Failed:[/bold red] {len(failing)} dependencies "
                f"below threshold {fail_threshold}:"
            )
            for dep in failing:
                err_console.print(f"  - {dep.name} v{dep.version}: score {dep.health_score}")
            raise typer.Exit(1)


@app.command()
def report(
    ctx: typer.Context,
    format: ReportFormat = typer.Option(
        ReportFormat.MARKDOWN, "--format", "-f", help="Output format"
    ),
    output: Path | None = typer.Option(None, "--output", "-o", help="Output file (default: stdout)"),
) -> None:
    """Generate a detailed audit report."""
    audit_report = _run_audit(ctx.obj)

    if format == ReportFormat.JSON:
        content = render_json(audit_report)
    else:
        content = render_markdown(audit_report)

    if output:
        try:
            output.write_text(content)
        except OSError as e:
            err_console.print(f"[red]Failed to write report: {escape(str(e))}[/red]")
            raise typer.Exit(1)
        console.print(f"[green]Report written to {output}[/green]")
    else:
        typer.echo(content)


@app.command()
def check(
    ctx: typer.Context,
    min_health_score: int = typer.Option(
        60, "--min-health-score", min=0, max=100, help="Minimum acceptable health score"
    ),
    fail_on_copyleft: bool = typer.Option(
        False, "--fail-on-copyleft", help="Fail on copyleft licenses"
    ),
    fail_on_unknown_license: bool = typer.Option(
        False, "--fail-on-unknown-license", help="Fail on unknown or missing licenses"
    ),
) -> None:
    """Check dependencies against thresholds; exits 1 on any failure."""
    audit_report = _run_audit(ctx.obj)

    failures = []
    for dep in audit_report.dependencies:
        if dep.health_score < min_health_score:
            failures.append(
                f"{dep.name} v{dep.version}: health score {dep.health_score} < {min_health_score}"
            )
        if fail_on_copyleft and dep.license_risk == LicenseRisk.COPYLEFT:
            failures.append(f"{dep.name} v{dep.version}: copyleft license ({dep.license})")
        if fail_on_unknown_license and dep.license_risk == LicenseRisk.UNKNOWN:
            failures.append(f"{dep.name} v{dep.version}: unknown/missing license")

    if failures:
        err_console.print(f"[bold red]Failed:[/bold red] {len(failures)} check failures:")
        for failure in failures:
            err_console.print(f"  - {failure}", markup=False)
        raise typer.Exit(1)

    console.print("[bold green]Success:[/bold green] All checks passed!")


def _display_summary(report: AuditReport) -> None:
    """Print the summary table for a report."""
    summary = report.summary
    total = summary.total_dependencies

    console.print()
    console.print(f"[bold cyan]{report.project_name}[/bold cyan]")
    console.print(f"[dim]{total} dependencies audited[/dim]")
    console.print()

    table = Table(title="Health Status", show_header=False, box=None)
    table.add_column("Status", style="bold")
    table.add_column("Count", justify="right")
    table.add_column("Share", justify="right", style="dim")

    for status, count in (
        (HealthStatus.HEALTHY, summary.healthy),
        (HealthStatus.WARNING, summary.warning),
        (HealthStatus.STALE, summary.stale),
        (HealthStatus.RISKY, summary.risky),
    ):
        share = f"{count / total * 100:.1f}%" if total else "-"
        style = STATUS_STYLES[status]
        table.add_row(f"[{style}]{status.value.title()}[/{style}]", str(count), share)

    console.print(table)
    console.print()
    console.print(f"Average health score: {summary.average_health_score:.1f}")
    console.print(f"License issues: {summary.license_issues}")
    console.print(f"High footprint dependencies: {summary.high_footprint_count}")


def _display_detailed(report: AuditReport) -> None:
    """Print a per-dependency table followed by warnings."""
    table = Table(title="Dependencies")
    table.add_column("Package", style="cyan")
    table.add_column("Version")
    table.add_column("Status")
    table.add_column("Score", justify="right")
    table.add_column("License")
    table.add_column("Footprint", justify="right")

    for dep in report.dependencies:
        style = STATUS_STYLES[dep.status]
        footprint = f"{dep.footprint_risk:.2f}" if dep.footprint_risk is not None else "-"
        table.add_row(
            dep.name,
            dep.version,
            f"[{style}]{dep.status.value}[/{style}]",
            str(dep.health_score),
            f"{dep.license or '-'} ({dep.license_risk.value})",
            footprint,
        )

    console.print(table)

    for dep in report.dependencies:
        if not dep.warnings:
            continue
        console.print(f"\n[bold]{dep.name}[/bold] v{dep.version}")
        for warning in dep.warnings:
            console.print(f"  [yellow]- {escape(warning)}[/yellow]", highlight=False)


if __name__ == "__main__":
    app()
