"""eventsrename CLI - propagate renames through a project's events."""

import json
import sys
from pathlib import Path
from typing import Optional

import click
from pydantic import ValidationError
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
import structlog

from eventsrename import __version__
from eventsrename.config import RenameSettings
from eventsrename.errors import EventsRenameError
from eventsrename.expression import parse_expression_or_raise
from eventsrename.finder import find_occurrences
from eventsrename.logging import setup_logging
from eventsrename.metadata import MetadataProvider
from eventsrename.project import Project
from eventsrename.renamer import rename_in_project, rename_link_targets
from eventsrename.request import NameChange, NameChangeRequest

log = structlog.get_logger()

console = Console(stderr=True)


def _fail(error: Exception):
    console.print(f"[red]✗ {error}[/]")
    sys.exit(1)


def _load_metadata(settings: RenameSettings, extra_paths: tuple[str, ...]) -> MetadataProvider:
    return MetadataProvider.from_files(list(settings.metadata_paths) + [Path(p) for p in extra_paths])


def _validated(model: type[NameChange], **values) -> NameChange:
    try:
        return model(**values)
    except ValidationError as e:
        raise click.BadParameter(
            "; ".join(err["msg"] for err in e.errors())
        ) from e


def _make_request(parameter_type: str, old: str, new: str, scope: Optional[str]) -> NameChangeRequest:
    return _validated(
        NameChangeRequest,
        parameter_type=parameter_type,
        old_name=old,
        new_name=new,
        scope_object_name=scope or "",
    )


def _write_project(
    project: Project,
    before: dict,
    project_file: str,
    output: Optional[str],
    dry_run: bool,
    settings: RenameSettings,
):
    after = project.to_dict()
    if after == before:
        console.print("[yellow]No references found, project left unchanged[/]")
        return

    if dry_run:
        click.echo(json.dumps(after, indent=settings.indent, ensure_ascii=False))
        return

    destination = output or project_file
    project.save(destination, indent=settings.indent)
    console.print(f"[green]✓ Saved {destination}[/]")


@click.group()
@click.version_option(version=__version__)
@click.option("--config", "config_path", type=click.Path(), help="Config file (TOML)")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Override the configured log level",
)
@click.pass_context
def cli(ctx, config_path: Optional[str], log_level: Optional[str]):
    """eventsrename - propagate renames through project events"""
    # Settings are not known yet: keep config loading messages off stdout
    setup_logging(level=(log_level or "WARNING").upper())
    try:
        settings = RenameSettings.load(config_path)
    except EventsRenameError as e:
        _fail(e)
    if log_level:
        settings.log_level = log_level.upper()

    setup_logging(
        level=settings.log_level,
        log_file=str(settings.log_file) if settings.log_file else None,
        json_format=settings.json_logs,
    )
    ctx.obj = settings


@cli.command()
@click.argument("project_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--type", "-t", "parameter_type", required=True,
              help="Parameter type of the renamed element (e.g. behavior, layer)")
@click.option("--old", "old_name", required=True, help="Current name")
@click.option("--new", "new_name", required=True, help="New name")
@click.option("--object", "-o", "scope_object", help="Only rename references through this object")
@click.option("--metadata", "-m", "metadata_files", multiple=True,
              type=click.Path(exists=True, dir_okay=False),
              help="Metadata declarations (JSON), repeatable")
@click.option("--output", type=click.Path(dir_okay=False), help="Write here instead of in place")
@click.option("--dry-run", is_flag=True, help="Print the resulting project instead of saving")
@click.option("--all-parameters", is_flag=True,
              help="Also search expressions of parameters of other types")
@click.pass_obj
def rename(
    settings: RenameSettings,
    project_file: str,
    parameter_type: str,
    old_name: str,
    new_name: str,
    scope_object: Optional[str],
    metadata_files: tuple[str, ...],
    output: Optional[str],
    dry_run: bool,
    all_parameters: bool,
):
    """Rename references to a project element in every instruction."""
    request = _make_request(parameter_type, old_name, new_name, scope_object)
    search_all = settings.search_all_parameters or all_parameters

    try:
        metadata = _load_metadata(settings, metadata_files)
        project = Project.load(project_file)
        for extension in project.extensions_metadata():
            metadata.add_extension(extension)

        before = project.to_dict()
        rename_in_project(project, metadata, request, search_all_parameters=search_all)
        _write_project(project, before, project_file, output, dry_run, settings)
    except EventsRenameError as e:
        _fail(e)


@cli.command("rename-link")
@click.argument("project_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--old", "old_name", required=True, help="Current events sheet name")
@click.option("--new", "new_name", required=True, help="New events sheet name")
@click.option("--output", type=click.Path(dir_okay=False), help="Write here instead of in place")
@click.option("--dry-run", is_flag=True, help="Print the resulting project instead of saving")
@click.pass_obj
def rename_link(
    settings: RenameSettings,
    project_file: str,
    old_name: str,
    new_name: str,
    output: Optional[str],
    dry_run: bool,
):
    """Point link events targeting OLD to NEW."""
    change = _validated(NameChange, old_name=old_name, new_name=new_name)

    try:
        project = Project.load(project_file)
        before = project.to_dict()
        rename_link_targets(project, change.old_name, change.new_name)
        _write_project(project, before, project_file, output, dry_run, settings)
    except EventsRenameError as e:
        _fail(e)


@cli.command()
@click.argument("expression")
@click.option("--type", "-t", "parameter_type", required=True, help="Parameter type to match")
@click.option("--old", "old_name", required=True, help="Name to look for")
@click.option("--object", "-o", "scope_object", help="Only consider calls on this object")
@click.option("--metadata", "-m", "metadata_files", multiple=True,
              type=click.Path(exists=True, dir_okay=False),
              help="Metadata declarations (JSON), repeatable")
@click.pass_obj
def find(
    settings: RenameSettings,
    expression: str,
    parameter_type: str,
    old_name: str,
    scope_object: Optional[str],
    metadata_files: tuple[str, ...],
):
    """Show the references to a name found in EXPRESSION."""
    # Placeholder new name: the request model refuses identical names
    request = _make_request(parameter_type, old_name, old_name + "_", scope_object)

    try:
        metadata = _load_metadata(settings, metadata_files)
        root = parse_expression_or_raise(expression)
    except EventsRenameError as e:
        _fail(e)

    occurrences = find_occurrences(root, expression, request, metadata)
    if not occurrences:
        console.print(Panel(expression, title="No references"))
        return

    table = Table(title=f"References to {request.quoted_old_name}")
    table.add_column("Start", justify="right")
    table.add_column("End", justify="right")
    table.add_column("Text")
    for span in occurrences:
        table.add_row(str(span.start), str(span.end), span.slice(expression))
    Console().print(table)


def main():
    cli()


if __name__ == "__main__":
    main()
