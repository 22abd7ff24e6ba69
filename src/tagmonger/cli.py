"""Command line interface for tagmonger."""

from __future__ import annotations

import difflib
import logging
import shlex
from copy import deepcopy
from typing import Any

import click
import yaml
from click.core import ParameterSource
from rich.console import Console
from rich.logging import RichHandler
from rich.syntax import Syntax
from rich.table import Table

from tagmonger.config import (
    ConfigManager,
    TagMongerConfig,
    flatten_for_env,
    resolve_with_precedence,
)
from tagmonger.errors import (
    BackendError,
    ConfigurationError,
    IterationError,
    TagMongerError,
)
from tagmonger.pipeline import RunReport, build_pipeline

console = Console()

_ERROR_CODES: tuple[tuple[type[TagMongerError], str], ...] = (
    (ConfigurationError, "config_error"),
    (IterationError, "listing_error"),
    (BackendError, "relocation_error"),
)
_SCHEMES = {"aws": "s3", "gcs": "gs"}


def _handle_cli_error(
    message: str,
    *,
    code: str,
    json_output: bool,
    original: Exception | None = None,
) -> None:
    """Emit a standardized error and terminate the command.

    Args:
        message: Human-readable error message.
        code: Machine-readable error identifier.
        json_output: Indicates whether JSON mode is active.
        original: Original exception for chaining when not using JSON.

    Raises:
        SystemExit: When emitting JSON output to terminate the command.
        click.ClickException: For non-JSON flows to surface the error.
    """

    if json_output:
        console.print_json(data={"error": {"code": code, "message": message}})
        raise SystemExit(1)

    raise click.ClickException(message) from original


def _error_code(exc: TagMongerError) -> str:
    for error_type, code in _ERROR_CODES:
        if isinstance(exc, error_type):
            return code
    return "internal_error"


def _configure_logging(level: str) -> None:
    """Route package logs to stderr through Rich at ``level``."""

    package_logger = logging.getLogger("tagmonger")
    for handler in list(package_logger.handlers):
        if isinstance(handler, RichHandler):
            package_logger.removeHandler(handler)
    package_logger.addHandler(RichHandler(console=Console(stderr=True), show_path=False))
    package_logger.setLevel(level)


def _format_summary_line(command: str, target: str, metrics: dict[str, Any]) -> str:
    parts = ", ".join(f"{key}={value}" for key, value in metrics.items())
    return f"[green]{command} summary for {target}: {parts}.[/green]"


def _render_report(report: RunReport, *, provider: str | None, verbose: bool) -> None:
    """Print the human-readable outcome of a run."""

    result = report.classification
    if verbose:
        console.print(f"today: {result.today.isoformat()}")
        console.print(f"expire tags prior to {result.cutoff_date.isoformat()}")

        table = Table(title=f"Tag classification for {report.bucket}")
        table.add_column("Key", overflow="fold")
        table.add_column("State")
        table.add_column("Tag date")
        table.add_column("Target", overflow="fold")
        for record in result.records():
            table.add_row(
                record.key,
                record.state.value,
                record.tag_date.isoformat() if record.tag_date else "-",
                record.target_key or "-",
            )
        console.print(table)

    if verbose or report.dry_run:
        for event in report.events:
            console.print(f"renaming {event.source}")
            console.print(f"    -> {event.destination}")
            if not event.applied:
                console.print("    (noop)")

    if result.unparsable:
        console.print(f"[yellow]{len(result.unparsable)} tag file(s) could not be parsed:[/yellow]")
        for entry in result.errors:
            console.print(f"  - {entry}")

    scheme = _SCHEMES.get(provider or "", "bucket")
    console.print(_format_summary_line("Tag", f"{scheme}://{report.bucket}", report.counts))
    if report.dry_run:
        console.print("[yellow]Dry run: no objects were modified.[/yellow]")


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(package_name="tagmonger")
def cli() -> None:
    """Archive expired daily and weekly tag manifests in S3 or GCS buckets."""


@cli.command()
@click.option("-a", "--aws", is_flag=True, help="Run on AWS S3.")
@click.option("-g", "--gcs", is_flag=True, help="Run on Google Cloud Storage.")
@click.option(
    "-v", "--verbose", is_flag=True, envvar="TAG_MONGER_VERBOSE", help="Show every tag's state."
)
@click.option(
    "-p",
    "--pagesize",
    type=click.IntRange(min=1),
    envvar="TAG_MONGER_PAGESIZE",
    help="Page size of the object listing (default 100).",
)
@click.option(
    "-m",
    "--max",
    "max_objects",
    type=click.IntRange(min=0),
    envvar="TAG_MONGER_MAX",
    help="Maximum number of objects to list, 0 for all (default 1000).",
)
@click.option("-b", "--bucket", envvar="TAG_MONGER_BUCKET", help="Name of the bucket.")
@click.option(
    "-d",
    "--days",
    type=click.IntRange(min=1),
    envvar="TAG_MONGER_DAYS",
    help="Expire tags older than N days (default 30).",
)
@click.option(
    "-n",
    "--noop",
    "--dry-run",
    "dry_run",
    is_flag=True,
    envvar="TAG_MONGER_NOOP",
    help="Do not make any changes.",
)
@click.option("--timezone", help="Time zone that defines 'today' (default America/Los_Angeles).")
@click.option("--archive-dir", help="Directory name expired tags move under (default old_tags).")
@click.option("--json", "json_output", is_flag=True, help="Emit a JSON run report.")
@click.pass_context
def run(
    ctx: click.Context,
    aws: bool,
    gcs: bool,
    verbose: bool,
    pagesize: int | None,
    max_objects: int | None,
    bucket: str | None,
    days: int | None,
    dry_run: bool,
    timezone: str | None,
    archive_dir: str | None,
    json_output: bool,
) -> None:
    """Classify tag manifests and move expired ones under the archive directory.

    Explicit flags and their TAG_MONGER_* environment variables override the
    configuration file.
    """

    if aws and gcs:
        raise click.UsageError("--aws and --gcs are mutually exclusive.")

    overrides: dict[str, Any] = {}
    if aws or gcs:
        overrides["storage.provider"] = "aws" if aws else "gcs"
    for dotted, value in (
        ("storage.page_size", pagesize),
        ("storage.max_objects", max_objects),
        ("storage.bucket", bucket),
        ("retention.days", days),
        ("retention.timezone", timezone),
        ("retention.archive_dir", archive_dir),
    ):
        if value is not None:
            overrides[dotted] = value
    if ctx.get_parameter_source("dry_run") != ParameterSource.DEFAULT:
        overrides["relocation.dry_run"] = dry_run

    try:
        config = ConfigManager().load(cli_overrides=overrides)
        explicit_verbose = ctx.get_parameter_source("verbose") != ParameterSource.DEFAULT
        verbose_enabled = verbose if explicit_verbose else config.cli.verbose_default
        _configure_logging("INFO" if verbose_enabled else config.logging.level)

        pipeline = build_pipeline(config)
        report = pipeline.run(config.storage.bucket or "", dry_run=config.relocation.dry_run)
    except TagMongerError as exc:
        _handle_cli_error(str(exc), code=_error_code(exc), json_output=json_output, original=exc)
        return

    if json_output:
        console.print_json(data=report.to_payload())
        return

    _render_report(report, provider=config.storage.provider, verbose=verbose_enabled)


@cli.group()
def config() -> None:
    """Manage tagmonger configuration files and overrides."""


@config.command("view")
@click.option("--no-env", is_flag=True, help="Ignore environment overrides when displaying output.")
@click.option(
    "--env",
    "as_env",
    is_flag=True,
    help="Print the effective configuration as TAG_MONGER__* environment assignments.",
)
def config_view(no_env: bool, as_env: bool) -> None:
    """Display the effective configuration after applying precedence rules."""
    manager = ConfigManager()
    try:
        manager.ensure_exists()
        effective = manager.load(include_env=not no_env)
    except ConfigurationError as exc:
        raise click.ClickException(str(exc)) from exc

    if as_env:
        for name, value in flatten_for_env(effective).items():
            click.echo(f"{name}={shlex.quote(value)}")
        return

    yaml_text = yaml.safe_dump(effective.model_dump(mode="python"), sort_keys=False)
    console.print(Syntax(yaml_text, "yaml", word_wrap=True))


@config.command("set")
@click.argument("key")
@click.option("--value", required=True, help="Value to assign to KEY.")
def config_set(key: str, value: str) -> None:
    """Persist a configuration value expressed as a dotted KEY (e.g. retention.days)."""
    manager = ConfigManager()
    manager.ensure_exists()

    before = manager.read_text().splitlines()
    segments = [segment.strip() for segment in key.split(".") if segment.strip()]
    if len(segments) < 2:
        raise click.ClickException("KEY must specify a dotted path such as 'retention.days'.")

    try:
        parsed_value = yaml.safe_load(value)
    except yaml.YAMLError as exc:
        raise click.ClickException(f"Unable to parse value: {exc}") from exc

    file_data = manager.load_file_overrides()
    previous = deepcopy(file_data)
    node = file_data
    for segment in segments[:-1]:
        child = node.setdefault(segment, {})
        if not isinstance(child, dict):
            raise click.ClickException(f"Cannot assign into '{segment}'; it is not a mapping.")
        node = child
    node[segments[-1]] = parsed_value

    if file_data == previous:
        console.print("[yellow]No changes applied; value already up to date.[/yellow]")
        return

    try:
        resolve_with_precedence(defaults=TagMongerConfig(), file_overrides=file_data)
    except ConfigurationError as exc:
        raise click.ClickException(str(exc)) from exc

    manager.save(file_data)
    after = manager.read_text().splitlines()

    diff = difflib.unified_diff(
        before,
        after,
        fromfile="config.yaml (before)",
        tofile="config.yaml (after)",
        lineterm="",
    )
    console.print(Syntax("\n".join(diff), "diff", word_wrap=False))
    console.print(f"[green]Updated {'.'.join(segments)}.[/green]")


@config.command("edit")
def config_edit() -> None:
    """Open the configuration file in an interactive editor session."""
    manager = ConfigManager()
    manager.ensure_exists()

    original = manager.read_text()
    edited = click.edit(original, extension=".yaml")

    if edited is None or edited == original:
        console.print("[yellow]No changes detected.[/yellow]")
        return

    try:
        parsed = yaml.safe_load(edited) or {}
    except yaml.YAMLError as exc:
        raise click.ClickException(f"Invalid YAML: {exc}") from exc

    if not isinstance(parsed, dict):
        raise click.ClickException("Configuration file must contain a top-level mapping.")

    try:
        resolve_with_precedence(defaults=TagMongerConfig(), file_overrides=parsed)
    except ConfigurationError as exc:
        raise click.ClickException(str(exc)) from exc

    manager.save(parsed)
    console.print("[green]Configuration updated successfully.[/green]")


def main() -> None:
    """Invoke the Click CLI as the console script entry point."""
    cli()


if __name__ == "__main__":
    main()
