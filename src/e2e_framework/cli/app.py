"""Command line entry point for running and inspecting test runs."""

import asyncio
import json
import logging
import os
import subprocess
import sys
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import click
from rich.console import Console
from rich.table import Table

from e2e_framework.config.projects import DEFAULT_PROJECT, list_projects
from e2e_framework.config.settings import load_settings
from e2e_framework.data.test_data_manager import TestDataManager
from e2e_framework.helpers.screenshot_helper import remove_files_older_than
from e2e_framework.reporters.custom_reporter import REPORT_DIR
from e2e_framework.utils.logger import configure_logging

logger = logging.getLogger(__name__)

console = Console()

RESULTS_DIR = Path("test-results")
ALLURE_DIR = Path("allure-results")


def project_outputs(project: str) -> Dict[str, Path]:
    """Per-project output locations so consecutive project runs do not overwrite each other."""
    return {
        "junit_xml": RESULTS_DIR / f"junit-{project}.xml",
        "allure_dir": ALLURE_DIR / project,
        "report_dir": REPORT_DIR / project,
    }


def default_workers() -> Optional[str]:
    """One worker on CI, pytest-xdist left off locally unless asked for."""
    return "1" if os.getenv("CI") else None


def build_pytest_args(
    project: str,
    env: Optional[str] = None,
    shard: Optional[str] = None,
    keyword: Optional[str] = None,
    markers: Optional[str] = None,
    headed: bool = False,
    e2e: bool = False,
    paths: Sequence[str] = (),
    workers: Optional[str] = None,
) -> List[str]:
    """Translate CLI options into a pytest argument list for one project."""
    outputs = project_outputs(project)
    args = list(paths) or ["tests"]
    args += [
        "--project",
        project,
        f"--junitxml={outputs['junit_xml']}",
        f"--alluredir={outputs['allure_dir']}",
        f"--report-dir={outputs['report_dir']}",
    ]

    if workers:
        args += ["-n", str(workers)]

    if env:
        args += ["--test-env", env]
    if shard:
        args += ["--shard", shard]
    if keyword:
        args += ["-k", keyword]
    if markers:
        args += ["-m", markers]
    elif e2e:
        args += ["-m", "e2e"]
    if headed:
        args.append("--headed")
    return args


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.option("--config", "config_path", type=click.Path(), help="Config file path")
@click.pass_context
def main(ctx: click.Context, verbose: bool, config_path: Optional[str]) -> None:
    """Playwright E2E framework.

    Run the suite against one or more projects:
        e2e-framework run --project chromium --project firefox --e2e

    Show the last run:
        e2e-framework report
    """
    configure_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path


@main.command()
@click.option(
    "--project",
    "projects",
    multiple=True,
    type=click.Choice(list_projects()),
    help=f"Project to run (repeatable, default: {DEFAULT_PROJECT})",
)
@click.option("--env", help="Target environment (dev, staging, prod)")
@click.option("--shard", help="Run shard i of n, e.g. 1/4")
@click.option("-k", "keyword", help="Only run tests matching the expression")
@click.option("-m", "markers", help="Only run tests matching the marker expression")
@click.option("--headed", is_flag=True, help="Show the browser window")
@click.option("--e2e", is_flag=True, help="Run tests marked e2e (deselected by default)")
@click.option("--update-snapshots", is_flag=True, help="Overwrite visual baselines")
@click.option(
    "--workers",
    default=default_workers,
    help="pytest-xdist worker count or \"auto\" (default: 1 on CI, serial otherwise)",
)
@click.argument("paths", nargs=-1, type=click.Path())
def run(
    projects: Sequence[str],
    env: Optional[str],
    shard: Optional[str],
    keyword: Optional[str],
    markers: Optional[str],
    headed: bool,
    e2e: bool,
    update_snapshots: bool,
    workers: Optional[str],
    paths: Sequence[str],
) -> None:
    """Run pytest once per project and exit with the worst exit code."""
    exit_code = 0
    env_vars = None
    if update_snapshots:
        env_vars = {**os.environ, "UPDATE_SNAPSHOTS": "true"}

    for project in projects or [DEFAULT_PROJECT]:
        args = build_pytest_args(
            project, env, shard, keyword, markers, headed, e2e, paths, workers
        )
        console.print(f"[bold cyan]Running project {project}[/bold cyan]: pytest {' '.join(args)}")
        result = subprocess.run([sys.executable, "-m", "pytest", *args], env=env_vars)
        if result.returncode != 0:
            console.print(f"[red]Project {project} exited with code {result.returncode}[/red]")
            exit_code = exit_code or result.returncode

    sys.exit(exit_code)


@main.command()
@click.option(
    "--project",
    default=DEFAULT_PROJECT,
    show_default=True,
    type=click.Choice(list_projects()),
    help="Project whose last run is summarized",
)
@click.option(
    "--path",
    "report_path",
    type=click.Path(path_type=Path),
    help="Custom report to summarize (overrides --project)",
)
def report(project: str, report_path: Optional[Path]) -> None:
    """Print the summary of the last run."""
    report_path = report_path or project_outputs(project)["report_dir"] / "report.json"
    if not report_path.exists():
        console.print(f"[red]Report not found: {report_path}[/red]")
        sys.exit(1)

    with open(report_path, "r", encoding="utf-8") as f:
        data = json.load(f)

    summary = data["summary"]
    table = Table(title="Test Execution Summary", show_header=True)
    table.add_column("Metric", style="cyan")
    table.add_column("Value")
    table.add_row("Total", str(summary["total"]))
    table.add_row("Passed", f"[green]{summary['passed']}[/green]")
    table.add_row("Failed", f"[red]{summary['failed']}[/red]")
    table.add_row("Skipped", f"[yellow]{summary['skipped']}[/yellow]")
    table.add_row("Success Rate", f"{summary['success_rate']:.2f}%")
    table.add_row("Duration", f"{summary['duration'] / 1000:.2f}s")
    console.print(table)

    failures = [r for r in data.get("results", []) if r["status"] in ("failed", "timedOut")]
    if failures:
        failed_table = Table(title="Failures", show_header=True)
        failed_table.add_column("Test", style="red")
        failed_table.add_column("Project")
        failed_table.add_column("Error", style="dim")
        for result in failures:
            failed_table.add_row(result["title"], result["project_name"], result.get("error") or "-")
        console.print(failed_table)


@main.group()
def data() -> None:
    """Inspect and export test data."""


def _load_manager(env: Optional[str], data_dir: Optional[str]) -> TestDataManager:
    environment = env or load_settings().environment
    manager = TestDataManager(environment, data_dir)
    asyncio.run(manager.initialize())
    return manager


@data.command("validate")
@click.option("--env", help="Environment whose data is validated")
@click.option("--data-dir", type=click.Path(file_okay=False), help="Directory with data files")
def validate_data(env: Optional[str], data_dir: Optional[str]) -> None:
    """Check that the environment's test data is complete."""
    manager = _load_manager(env, data_dir)
    if not manager.validate_test_data():
        console.print("[red]Test data validation failed[/red]")
        sys.exit(1)

    table = Table(title=f"Test data ({manager.environment})", show_header=True)
    table.add_column("Collection", style="cyan")
    table.add_column("Items")
    table.add_row("users", str(len(manager.get_users())))
    table.add_row("searchQueries", str(len(manager.get_search_queries())))
    table.add_row("urls", str(len(manager.get_urls())))
    table.add_row("environments", str(len(manager.get_environments())))
    console.print(table)
    console.print("[green]Test data validation passed[/green]")


@data.command("export")
@click.option("--env", help="Environment whose data is exported")
@click.option("--data-dir", type=click.Path(file_okay=False), help="Directory with data files")
@click.option("--format", "fmt", type=click.Choice(["json", "yaml"]), default="json")
@click.option("--output", required=True, type=click.Path(dir_okay=False), help="Target file")
def export_data(
    env: Optional[str], data_dir: Optional[str], fmt: str, output: str
) -> None:
    """Write the loaded test data to a JSON or YAML file."""
    manager = _load_manager(env, data_dir)
    path = manager.save_test_data(output, format=fmt)
    console.print(f"[green]Test data exported to {path}[/green]")


@main.command()
@click.option("--days", default=7, show_default=True, help="Delete artifacts older than N days")
@click.pass_context
def clean(ctx: click.Context, days: int) -> None:
    """Delete old screenshots and videos."""
    settings = load_settings(ctx.obj.get("config_path"))
    removed = 0
    for name in ("screenshots", "videos"):
        removed += remove_files_older_than(settings.results_dir / name, days)
    console.print(f"Removed {removed} files older than {days} days")


if __name__ == "__main__":
    main()
