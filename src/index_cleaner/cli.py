"""Command line interface for the index cleaner."""

from __future__ import annotations

import json
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from .config import CleanerSettings, load_rules, load_settings
from .exceptions import ConfigError, ListError
from .logger import configure_logging, get_logger

app = typer.Typer(add_completion=False, no_args_is_help=True)
console = Console()
log = get_logger(__name__)


@app.callback()
def main(
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Log level (DEBUG, INFO, WARNING, ERROR)"),
    json_logs: bool = typer.Option(False, "--json-logs", help="Emit JSON log lines"),
) -> None:
    """OpenSearch index cleaner - age based retention for Aiven services."""
    configure_logging(level=log_level, json_output=json_logs)


def _settings(**overrides: object) -> CleanerSettings:
    try:
        return load_settings(**overrides)
    except ConfigError as e:
        console.print(f"❌ {e}")
        raise typer.Exit(1)


@app.command("run")
def run(
    rules_file: Optional[str] = typer.Option(None, "--rules-file", "-r", help="Path to rules YAML (RULES_FILE)"),
    dry_run: Optional[bool] = typer.Option(None, "--dry-run/--apply", help="Simulate deletions (CLEANUP_DRY_RUN)"),
    project: Optional[str] = typer.Option(None, "--project", "-p", help="Aiven project (AIVEN_PROJECT)"),
    as_json: bool = typer.Option(False, "--json", help="Print the run report as JSON"),
) -> None:
    """Apply retention rules to every configured service."""
    from .cleanup import run_cleanup

    settings = _settings(rules_file=rules_file, dry_run=dry_run, project=project)
    try:
        report = run_cleanup(settings)
    except (ConfigError, ListError) as e:
        log.error("Cleanup process failed with error: %s", e)
        raise typer.Exit(1)

    if as_json:
        typer.echo(json.dumps(report.to_dict(), indent=2))
        return
    for _, result in report.results:
        console.print(result.summary_message)
    if settings.dry_run:
        console.print("[DRY-RUN] no index was deleted")


@app.command("check-rules")
def check_rules(
    rules_file: Optional[str] = typer.Option(None, "--rules-file", "-r", help="Path to rules YAML (RULES_FILE)"),
) -> None:
    """Validate the rules file and show what it declares."""
    settings = _settings(rules_file=rules_file)
    try:
        services = load_rules(settings.rules_file)
    except ConfigError as e:
        console.print(f"❌ {e}")
        raise typer.Exit(1)

    table = Table(title=f"Rules ({len(services)} services)")
    table.add_column("Service")
    table.add_column("Index pattern")
    table.add_column("Age threshold (days)", justify="right")
    table.add_column("Date pattern")
    for svc in services:
        for rule in svc.rules:
            table.add_row(svc.service, rule.index_pattern, str(rule.age_threshold), rule.date_pattern)
    console.print(table)
    console.print("✅ Rules file is valid")


@app.command("summary")
def summary(
    rules_file: Optional[str] = typer.Option(None, "--rules-file", "-r", help="Path to rules YAML (RULES_FILE)"),
    project: Optional[str] = typer.Option(None, "--project", "-p", help="Aiven project (AIVEN_PROJECT)"),
    service: Optional[str] = typer.Option(None, "--service", "-s", help="Only this service"),
) -> None:
    """Print pre-cleanup summary reports without applying any rule."""
    from .aiven_client import AivenClient
    from .summary import summarize

    settings = _settings(rules_file=rules_file, project=project)
    try:
        services = load_rules(settings.rules_file)
    except ConfigError as e:
        console.print(f"❌ {e}")
        raise typer.Exit(1)
    if service:
        services = [s for s in services if s.service == service]

    table = Table(title=f"{settings.project} - pre-cleanup summary")
    table.add_column("Service")
    table.add_column("Report")
    table.add_column("Size", justify="right")
    with AivenClient(settings.api_token, base_url=settings.api_url) as client:
        for svc in services:
            try:
                indices = client.list_indexes(settings.project, svc.service)
            except ListError as e:
                console.print(f"❌ {e}")
                raise typer.Exit(1)
            for name, size in summarize(indices, svc.summary_reports):
                table.add_row(svc.service, name, size)
    console.print(table)


def run_cli() -> None:
    app()
