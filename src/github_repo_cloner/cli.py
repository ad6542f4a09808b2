"""
Command-line interface for the GitHub Repository Cloner.
"""

import json
import logging
import sys
from pathlib import Path
from typing import Optional, Tuple

import click
import yaml

from . import __version__
from .config import AppConfig, get_config_manager, reset_config_manager
from .error_handling import ClonerError
from .logging import (
    setup_logging, get_logging_manager, register_secret, LoggerConfig,
    BufferedHandler, CompactFormatter
)
from .models import BatchResult, CloneStatus
from .repository import CloneOptions
from .session import ClonerSession
from .token_store import FileTokenStore, MemoryTokenStore

logger = logging.getLogger(__name__)

_STATUS_LABELS = {
    CloneStatus.CLONED: "cloned",
    CloneStatus.SKIPPED_EXISTING: "skipped (already exists)",
    CloneStatus.FAILED_CLONE: "FAILED (clone)",
    CloneStatus.FAILED_LFS: "FAILED (lfs)",
}


@click.group()
@click.version_option(version=__version__)
@click.option(
    '--config', '-c',
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help='Path to configuration file'
)
@click.option(
    '--verbose', '-v',
    count=True,
    help='Increase verbosity (use -v or -vv)'
)
@click.pass_context
def cli(ctx: click.Context, config: Optional[Path], verbose: int) -> None:
    """
    GitHub Repository Cloner - clone your GitHub repositories into a Unity project.

    Lists the repositories of the account behind your token, clones the ones
    you pick into the project's asset folder and scaffolds each of them as a
    Unity package.
    """
    ctx.ensure_object(dict)

    reset_config_manager()
    try:
        app_config = get_config_manager(config).get_config()
    except ClonerError as e:
        raise click.ClickException(str(e))

    configure_logging(app_config, verbose)

    ctx.obj['config'] = app_config
    ctx.obj['verbose'] = verbose
    ctx.obj['token_store'] = FileTokenStore.from_config(app_config.credentials)


def configure_logging(config: AppConfig, verbose: int) -> None:
    """Set up logging based on configuration and verbosity."""
    if verbose == 0:
        level = "WARNING"
    elif verbose == 1:
        level = "INFO"
    else:
        level = "DEBUG"

    setup_logging(LoggerConfig.from_settings(config.logging, level=level), force=True)
    register_secret(config.github.access_token)


def build_session(ctx: click.Context, target: Optional[Path] = None) -> ClonerSession:
    config: AppConfig = ctx.obj['config']
    token_store = ctx.obj['token_store']

    if config.github.access_token and not token_store.get():
        # GITHUB_TOKEN wins over an empty store but is never persisted
        token_store = MemoryTokenStore(config.github.access_token)

    session = ClonerSession(config=config, token_store=token_store, target_directory=target)
    if not session.token:
        raise click.ClickException("No GitHub token stored. Run 'github-repo-cloner token set' first.")
    return session


@cli.group()
def token() -> None:
    """Manage the stored GitHub token."""


@token.command('set')
@click.argument('value', required=False)
@click.option('--verify/--no-verify', default=True, help='Fetch the repository list to check the token')
@click.pass_context
def token_set(ctx: click.Context, value: Optional[str], verify: bool) -> None:
    """Store a GitHub personal access token."""
    if not value:
        value = click.prompt('Enter your GitHub token', hide_input=True)
    value = value.strip()
    if not value:
        raise click.BadParameter("Token must not be empty")

    register_secret(value)
    token_store = ctx.obj['token_store']

    if not verify:
        token_store.set(value)
        click.echo("Token saved.")
        return

    session = ClonerSession(config=ctx.obj['config'], token_store=token_store)
    try:
        repositories = session.save_token(value)
    except ClonerError as e:
        raise click.ClickException(f"Token rejected: {e.message}")

    click.echo(f"Token saved. {len(repositories)} repositories available to clone.")


@token.command('show')
@click.pass_context
def token_show(ctx: click.Context) -> None:
    """Show whether a token is stored (masked)."""
    value = ctx.obj['token_store'].get()
    if not value:
        click.echo("No token stored.")
        return
    click.echo(f"Token: {mask_token(value)}")


@token.command('clear')
@click.pass_context
def token_clear(ctx: click.Context) -> None:
    """Remove the stored token."""
    ctx.obj['token_store'].clear()
    click.echo("Token cleared.")


@cli.command('list')
@click.option('--filter', '-f', 'name_filter', default='', help='Only show repositories whose name contains this text')
@click.option(
    '--target', '-t',
    type=click.Path(file_okay=False, path_type=Path),
    help='Clone target directory (repositories already present below it are hidden)'
)
@click.option(
    '--format',
    'output_format',
    type=click.Choice(['table', 'json'], case_sensitive=False),
    default='table',
    help='Output format'
)
@click.pass_context
def list_repositories(ctx: click.Context, name_filter: str, target: Optional[Path], output_format: str) -> None:
    """List repositories that can be cloned."""
    session = build_session(ctx, target)
    try:
        session.fetch()
    except ClonerError as e:
        raise click.ClickException(e.message)

    displayed = session.filter_by_name(name_filter)

    if output_format == 'json':
        click.echo(json.dumps([identifier.full_name for identifier in displayed], indent=2))
        return

    if not displayed:
        click.echo("No repositories found matching the filter.")
        return

    for index, identifier in enumerate(displayed, start=1):
        click.echo(f"{index:>4}  {identifier.full_name}")


@cli.command()
@click.option('--repo', '-r', 'repos', multiple=True, help='Repository to clone (owner/name or name)')
@click.option('--all', 'select_all', is_flag=True, help='Clone every listed repository')
@click.option('--filter', '-f', 'name_filter', default='', help='Restrict the list to names containing this text')
@click.option(
    '--target', '-t',
    type=click.Path(file_okay=False, path_type=Path),
    help='Directory to clone into (defaults to clone.target_directory)'
)
@click.option('--asmdef/--no-asmdef', default=None, help='Create assembly definitions')
@click.option('--manifest/--no-manifest', default=None, help='Create package manifests')
@click.option('--templates/--no-templates', default=None, help='Copy template files')
@click.option(
    '--template-folder',
    type=click.Path(file_okay=False, path_type=Path),
    help='Template folder to copy from'
)
@click.option('--yes', '-y', is_flag=True, help='Do not ask for confirmation')
@click.option(
    '--format',
    'output_format',
    type=click.Choice(['table', 'json'], case_sensitive=False),
    default='table',
    help='Result format (json prints only the batch result)'
)
@click.pass_context
def clone(
    ctx: click.Context,
    repos: Tuple[str, ...],
    select_all: bool,
    name_filter: str,
    target: Optional[Path],
    asmdef: Optional[bool],
    manifest: Optional[bool],
    templates: Optional[bool],
    template_folder: Optional[Path],
    yes: bool,
    output_format: str
) -> None:
    """
    Clone selected repositories and scaffold them.

    Examples:

        # Clone two repositories into ./Assets
        github-repo-cloner clone -r UnityTimer -r owner/UnityPool

        # Clone everything whose name contains "Unity" without scaffolding
        github-repo-cloner clone --all -f Unity --no-asmdef --no-manifest --no-templates

        # Machine-readable batch result
        github-repo-cloner clone -r UnityTimer --yes --format json
    """
    if not repos and not select_all:
        raise click.UsageError("Select repositories with --repo or --all")

    session = build_session(ctx, target)
    try:
        session.fetch()
    except ClonerError as e:
        raise click.ClickException(e.message)

    session.filter_by_name(name_filter)
    if select_all:
        session.select_all()
    else:
        for name in session.select_by_name(repos):
            click.echo(f"Warning: {name} is not available to clone (unknown or already present)", err=True)

    selected = session.selected_identifiers()
    if not selected:
        raise click.ClickException("Please select at least one repository to clone.")

    options = create_clone_options(ctx.obj['config'], asmdef, manifest, templates, template_folder)

    if not yes and not click.confirm(
        f"Clone {len(selected)} repositories into {session.target_directory}/ ?", default=True
    ):
        raise click.Abort()

    panel = BufferedHandler(level=logging.WARNING)
    panel.setFormatter(CompactFormatter())
    logging_manager = get_logging_manager()
    logging_manager.add_handler('panel', panel)
    try:
        result = session.clone_selected(
            options, progress_callback=echo_progress if output_format == 'table' else None
        )
    except ClonerError as e:
        raise click.ClickException(e.message)
    finally:
        logging_manager.remove_handler('panel')

    if output_format == 'json':
        click.echo(json.dumps(result.to_dict(), indent=2))
    else:
        display_results(result, panel, ctx.obj.get('verbose', 0))

    if result.has_failures:
        sys.exit(1)


def create_clone_options(
    config: AppConfig,
    asmdef: Optional[bool],
    manifest: Optional[bool],
    templates: Optional[bool],
    template_folder: Optional[Path]
) -> CloneOptions:
    """Create clone options from configuration and CLI overrides."""
    options = CloneOptions.from_config(config.clone)

    if asmdef is not None:
        options.create_assembly_definition = asmdef
    if manifest is not None:
        options.create_package_manifest = manifest
    if templates is not None:
        options.copy_template_files = templates
    if template_folder is not None:
        options.template_folder = str(template_folder)

    return options


def echo_progress(index: int, total: int, identifier) -> None:
    click.echo(f"[{index + 1}/{total}] Cloning {identifier.full_name}...")


def display_results(result: BatchResult, panel: BufferedHandler, verbose: int) -> None:
    """Display per-repository outcomes and the collected log panel."""
    click.echo("\n" + "=" * 60)
    click.echo("CLONE RESULTS")
    click.echo("=" * 60)

    for outcome in result.outcomes:
        click.echo(f"{outcome.identifier.full_name:<40} {_STATUS_LABELS[outcome.status]}")
        for warning in outcome.warnings:
            click.echo(f"    warning: {warning}")
        if outcome.failed and outcome.message:
            click.echo(f"    {outcome.message}")

    records = panel.get_records(level='WARNING')
    if records and verbose > 0:
        click.echo("\nLog:")
        for record in records:
            click.echo(f"  {record['message']}")

    click.echo(
        f"\nCloned: {len(result.cloned)}  "
        f"Skipped: {result.count(CloneStatus.SKIPPED_EXISTING)}  "
        f"Failed: {len(result.failures)}"
    )
    click.echo("Clone complete.")
    click.echo("=" * 60)


@cli.command()
@click.option(
    '--format', '-f',
    'output_format',
    type=click.Choice(['table', 'json', 'yaml'], case_sensitive=False),
    default='table',
    help='Output format for configuration display'
)
@click.pass_context
def config(ctx: click.Context, output_format: str) -> None:
    """
    Display current configuration settings.

    The access token is never shown.
    """
    app_config: AppConfig = ctx.obj['config']
    config_dict = app_config.to_dict(include_secrets=False)

    if output_format == 'json':
        click.echo(json.dumps(config_dict, indent=2, default=str))
    elif output_format == 'yaml':
        click.echo(yaml.safe_dump(config_dict, default_flow_style=False))
    else:
        display_config_table(app_config)


def display_config_table(app_config: AppConfig) -> None:
    """Display configuration in table format."""
    click.echo("\nCurrent Configuration:")
    click.echo("-" * 50)

    for section_name, section in app_config.to_dict(include_secrets=True).items():
        click.echo(f"\n[{section_name}]")
        for key, value in section.items():
            if key == 'access_token':
                value = mask_token(value) if value else None
            click.echo(f"  {key}: {value}")


def mask_token(value: str) -> str:
    return f"{value[:4]}{'*' * 8}" if len(value) > 8 else '*' * 8


def main() -> None:
    """Main entry point for the CLI."""
    cli()


if __name__ == '__main__':
    main()
