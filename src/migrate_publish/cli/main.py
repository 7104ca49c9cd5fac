"""Main CLI entry point for the publish stage tools."""

import sys
from datetime import datetime, timezone
from typing import Optional, Tuple
from pathlib import Path

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ..api.client import GerritApi
from ..api.exceptions import GerritApiError
from ..config.config import Config
from ..destination import Destination, create_destination
from ..models.change import AbandonInput, ChangesQuery, RestoreInput
from ..models.project import ListProjectsInput
from ..models.transform import Author, PathMatcher, TransformResult
from ..publish import PublishCoordinator
from ..utils.logging import setup_logging

console = Console()


@click.group()
@click.version_option(version='0.1.0', prog_name='migrate-publish')
@click.option(
    '--config',
    '-c',
    type=click.Path(exists=True),
    help='Path to configuration file',
)
@click.option(
    '--verbose',
    '-v',
    is_flag=True,
    help='Enable verbose logging',
)
@click.pass_context
def cli(ctx: click.Context, config: Optional[str], verbose: bool) -> None:
    """Migration publish tools - inspect destinations and manage Gerrit changes."""
    ctx.ensure_object(dict)

    if config:
        ctx.obj['config_path'] = config
    ctx.obj['verbose'] = verbose

    log_level = 'DEBUG' if verbose else 'WARNING'
    setup_logging(log_level)


@cli.command()
@click.option(
    '--output',
    '-o',
    default='config.yaml',
    help='Output configuration file path',
)
def init(output: str) -> None:
    """Initialize a new configuration file."""
    console.print(
        Panel.fit(
            '[bold green]Migration Publish[/bold green]\n'
            'Initializing configuration...',
            border_style='green',
        )
    )

    try:
        Config.create_template(output)

        console.print(f'[green]✓[/green] Configuration template created at: {output}')
        console.print(
            f'[yellow]Please edit {output} with your Gerrit and destination details[/yellow]'
        )

    except Exception as e:
        console.print(f'[red]✗[/red] Failed to create configuration: {e}')
        sys.exit(1)


@cli.command()
@click.argument('query')
@click.option('--limit', '-n', type=int, default=None, help='Maximum results')
@click.pass_context
def changes(ctx: click.Context, query: str, limit: Optional[int]) -> None:
    """List Gerrit changes matching QUERY."""
    changes_query = ChangesQuery(query=query, limit=limit)

    def run(client: GerritApi) -> None:
        found = client.get_changes(changes_query)
        if not found:
            console.print(f'[yellow]No changes match {query}[/yellow]')
            return
        _display_changes('Changes', found)

    _with_client(ctx, run)


@cli.command()
@click.argument('change_id')
@click.option('--message', '-m', default=None, help='Abandon comment')
@click.pass_context
def abandon(ctx: click.Context, change_id: str, message: Optional[str]) -> None:
    """Abandon the Gerrit change CHANGE_ID."""
    abandon_input = (
        AbandonInput.create(message) if message else AbandonInput.create_without_comment()
    )

    def run(client: GerritApi) -> None:
        change = client.abandon_change(change_id, abandon_input)
        console.print(f'[green]✓[/green] {change.id} is now {change.status}')

    _with_client(ctx, run)


@cli.command()
@click.argument('change_id')
@click.option('--message', '-m', default=None, help='Restore comment')
@click.pass_context
def restore(ctx: click.Context, change_id: str, message: Optional[str]) -> None:
    """Restore the abandoned Gerrit change CHANGE_ID."""
    restore_input = (
        RestoreInput.create(message) if message else RestoreInput.create_without_comment()
    )

    def run(client: GerritApi) -> None:
        change = client.restore_change(change_id, restore_input)
        console.print(f'[green]✓[/green] {change.id} is now {change.status}')

    _with_client(ctx, run)


@cli.command()
@click.option('--limit', '-n', type=int, default=None, help='Maximum results')
@click.option('--regex', '-r', default=None, help='Project name regex')
@click.option('--prefix', '-p', default=None, help='Project name prefix')
@click.pass_context
def projects(
    ctx: click.Context,
    limit: Optional[int],
    regex: Optional[str],
    prefix: Optional[str],
) -> None:
    """List Gerrit projects."""
    options = ListProjectsInput(limit=limit, regex=regex, prefix=prefix)

    def run(client: GerritApi) -> None:
        found = client.list_projects(options)
        table = Table(title='Projects')
        table.add_column('Name', style='cyan')
        table.add_column('ID', style='blue')
        table.add_column('Description', style='green')
        for name, project in sorted(found.items()):
            table.add_row(name, project.id, project.description or '')
        console.print(table)

    _with_client(ctx, run)


@cli.command()
@click.argument('workdir', type=click.Path(exists=True, file_okay=False))
@click.option('--origin-ref', '-r', required=True, help='Origin reference of the change')
@click.option('--author', '-a', required=True, help='Change author as "Name <email>"')
@click.option('--summary', '-s', required=True, help='Change description')
@click.option(
    '--timestamp',
    '-t',
    type=click.DateTime(),
    default=None,
    help='Change time in UTC (defaults to now)',
)
@click.option(
    '--exclude',
    '-x',
    multiple=True,
    help='Destination path glob to leave untouched (repeatable)',
)
@click.pass_context
def publish(
    ctx: click.Context,
    workdir: str,
    origin_ref: str,
    author: str,
    summary: str,
    timestamp: Optional[datetime],
    exclude: Tuple[str, ...],
) -> None:
    """Publish WORKDIR to the configured destination."""
    try:
        config = _load_config(ctx)
        _setup_logging_with_config(ctx, config)

        if config.destination is None:
            raise click.UsageError('No destination section in configuration')

        result = TransformResult(
            origin_ref=origin_ref,
            author=Author.parse(author),
            timestamp=timestamp or datetime.now(timezone.utc),
            summary=summary,
            path=Path(workdir),
            excluded_destination_paths=PathMatcher.of(*exclude),
        )
        coordinator = PublishCoordinator(
            _create_destination(config), label_name=config.destination.label_name
        )
        publish_summary = coordinator.publish([result])

    except Exception as e:
        console.print(f'[red]✗[/red] Publish failed: {e}')
        if ctx.obj.get('verbose'):
            console.print_exception()
        sys.exit(1)

    if not publish_summary.success:
        console.print(
            f'[red]✗[/red] Publish of {publish_summary.failed} failed: '
            f'{publish_summary.error_message}'
        )
        sys.exit(1)
    if publish_summary.skipped:
        console.print(f'[yellow]{origin_ref} is already published[/yellow]')
    else:
        console.print(f'[green]✓[/green] Published {origin_ref}')


@cli.command(name='last-ref')
@click.option('--label', '-l', default=None, help='Label name (defaults to config)')
@click.pass_context
def last_ref(ctx: click.Context, label: Optional[str]) -> None:
    """Show the origin reference of the last publish to the destination."""
    try:
        config = _load_config(ctx)
        _setup_logging_with_config(ctx, config)

        if config.destination is None:
            raise click.UsageError('No destination section in configuration')

        destination = _create_destination(config)
        label_name = label or config.destination.label_name
        previous = destination.get_previous_ref(label_name)

        if previous is None:
            console.print(f'[yellow]Nothing published with {label_name} yet[/yellow]')
        else:
            console.print(f'{label_name}: [bold]{previous}[/bold]')

    except Exception as e:
        console.print(f'[red]✗[/red] Failed to read destination: {e}')
        if ctx.obj.get('verbose'):
            console.print_exception()
        sys.exit(1)


def _with_client(ctx: click.Context, run) -> None:
    """Load configuration, create a Gerrit client and run a command with it."""
    try:
        config = _load_config(ctx)
        _setup_logging_with_config(ctx, config)

        with _create_client(config) as client:
            run(client)

    except GerritApiError as e:
        console.print(f'[red]✗[/red] Gerrit returned HTTP {e.exit_code}: {e.body}')
        sys.exit(1)
    except Exception as e:
        console.print(f'[red]✗[/red] Gerrit request failed: {e}')
        if ctx.obj.get('verbose'):
            console.print_exception()
        sys.exit(1)


def _load_config(ctx: click.Context) -> Config:
    """Load configuration from file or environment."""
    config_path = ctx.obj.get('config_path')

    if config_path:
        if not Path(config_path).exists():
            raise FileNotFoundError(f'Configuration file not found: {config_path}')
        return Config.from_file(config_path)
    else:
        default_paths = ['config.yaml', 'config.yml', '.migrate-publish.yaml']
        for path in default_paths:
            if Path(path).exists():
                return Config.from_file(path)

        return Config.from_env()


def _setup_logging_with_config(ctx: click.Context, config: Config) -> None:
    """Setup logging with configuration from config file."""
    verbose = ctx.obj.get('verbose', False)

    log_level = 'DEBUG' if verbose else config.logging.level
    setup_logging(
        level=log_level,
        log_file=config.logging.file,
        log_format=config.logging.format,
    )


def _create_client(config: Config) -> GerritApi:
    """Create a Gerrit client from configuration."""
    if config.gerrit is None:
        raise click.UsageError('No gerrit section in configuration')
    return GerritApi.from_config(config.gerrit)


def _create_destination(config: Config) -> Destination:
    """Create the configured destination."""
    return create_destination(config.destination)


def _display_changes(title: str, found) -> None:
    """Display changes as a table."""
    table = Table(title=title)
    table.add_column('Number', style='cyan')
    table.add_column('Status', style='magenta')
    table.add_column('Project', style='blue')
    table.add_column('Branch', style='blue')
    table.add_column('Subject', style='green')

    for change in found:
        table.add_row(
            str(change.number or ''),
            str(change.status),
            change.project,
            change.branch,
            change.subject or '',
        )

    console.print(table)


def main() -> None:
    """Main entry point for the CLI application."""
    try:
        cli()
    except KeyboardInterrupt:
        console.print('\n[red]Interrupted by user[/red]')
        sys.exit(1)


if __name__ == '__main__':
    main()
