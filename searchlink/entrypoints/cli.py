"""searchlink CLI entrypoint.

Command-line interface for searching a workspace through its search
coordinator, with direct ripgrep execution as a fallback.
"""

from __future__ import annotations

import asyncio
import functools
import logging
import sys
from pathlib import Path

import click

from searchlink.core.errors import SearchLinkCliError, workspace_not_found_error
from searchlink.domain.exceptions import SearchLinkError
from searchlink.version import __version__

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def handle_cli_errors(command_name: str):
    """Decorator to handle common CLI errors.

    Click exceptions (SearchLinkCliError included) propagate unchanged;
    domain errors are converted keeping their hint; anything else becomes a
    generic CLI error, with a traceback in verbose mode.

    Args:
        command_name: Name of the command for error messages.
    """

    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except click.ClickException:
                raise
            except SearchLinkError as e:
                raise SearchLinkCliError(e.message, hint=e.hint) from e
            except ValueError as e:
                raise SearchLinkCliError(
                    f"Invalid configuration: {e}",
                    hint="Check 'searchlink config show' and fix the reported value",
                ) from e
            except Exception as e:
                ctx = click.get_current_context()
                if ctx.obj.get("verbose", False):
                    import traceback

                    traceback.print_exc()
                raise SearchLinkCliError(
                    f"Unexpected error in {command_name}: {e}",
                    hint="Run with --verbose for more details",
                ) from e

        return wrapper

    return decorator


def _configure_logging(verbose: bool, quiet: bool) -> None:
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.ERROR
    else:
        level = logging.WARNING
    logging.basicConfig(level=level, format=LOG_FORMAT, stream=sys.stderr)


def _get_workspace(ctx: click.Context) -> Path:
    workspace = ctx.obj.get("workspace") or Path.cwd()
    workspace = Path(workspace).resolve()
    if not workspace.is_dir():
        workspace_not_found_error(str(workspace))
    return workspace


def _load_config(workspace: Path):
    """Load the merged global and workspace configuration."""
    from searchlink.adapters.factory import ConfigFactory

    return ConfigFactory().create_config_provider().load(workspace)


@click.group()
@click.version_option(version=__version__, prog_name="searchlink")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option(
    "--workspace",
    "-w",
    type=click.Path(path_type=Path),
    default=None,
    help="Workspace directory (default: current directory).",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, quiet: bool, workspace: Path | None) -> None:
    """searchlink - delegate workspace searches to the search coordinator."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["workspace"] = workspace
    _configure_logging(verbose, quiet)


@cli.command()
@click.argument("pattern", type=str, required=False)
@click.argument("paths", type=str, nargs=-1)
@click.option("--line-number", "-n", is_flag=True, help="Show line numbers.")
@click.option("--no-heading", is_flag=True, help="Print file names on every line.")
@click.option("--with-filename", "-H", is_flag=True, help="Show file names.")
@click.option("--ignore-case", "-i", is_flag=True, help="Case-insensitive search.")
@click.option("--regexp", "-e", type=str, default=None, help="Regex to search for.")
@click.option(
    "--glob", "-g", "globs", multiple=True, help="Include/exclude files (repeatable)."
)
@click.option(
    "--threads", "-j", type=click.IntRange(min=1), default=None, help="Search threads."
)
@click.option(
    "--no-fallback",
    is_flag=True,
    help="Fail instead of running ripgrep directly when the coordinator is unavailable.",
)
@click.pass_context
@handle_cli_errors("grep")
def grep(
    ctx: click.Context,
    pattern: str | None,
    paths: tuple[str, ...],
    line_number: bool,
    no_heading: bool,
    with_filename: bool,
    ignore_case: bool,
    regexp: str | None,
    globs: tuple[str, ...],
    threads: int | None,
    no_fallback: bool,
) -> None:
    """Search PATHS (default: .) for PATTERN.

    With --regexp, PATTERN is omitted and every argument is a path.
    """
    from searchlink.adapters.factory import UseCaseFactory
    from searchlink.adapters.ipc import default_registry
    from searchlink.domain.value_objects import SearchOptions

    if regexp is not None:
        if pattern is not None:
            paths = (pattern, *paths)
        pattern = regexp
    elif pattern is None:
        raise click.UsageError("Missing argument 'PATTERN'.")

    workspace = _get_workspace(ctx)
    config = _load_config(workspace)

    options = SearchOptions(
        line_number=line_number or None,
        no_heading=no_heading or None,
        with_filename=with_filename or None,
        ignore_case=ignore_case or None,
        regexp=regexp,
        globs=list(globs) or None,
        threads=threads,
    )

    default_registry.install_shutdown_hooks()
    factory = UseCaseFactory()
    with factory.create_coordinator_search(workspace, default_registry) as coordinator:
        usecase = factory.create_search_usecase(
            workspace, config, coordinator, allow_fallback=not no_fallback
        )
        response = usecase.execute(pattern, list(paths) or ["."], options)

    if response.via == "direct" and ctx.obj.get("verbose", False):
        click.echo(
            f"Coordinator unavailable, ran ripgrep directly: {response.fallback_reason}",
            err=True,
        )
    click.echo(response.text, nl=False)


@cli.command()
@click.pass_context
@handle_cli_errors("ping")
def ping(ctx: click.Context) -> None:
    """Check that the workspace search coordinator accepts a session."""
    from searchlink.adapters.ipc import ClientRegistry
    from searchlink.adapters.ipc.client import SearchClient

    workspace = _get_workspace(ctx)
    config = _load_config(workspace)
    registry = ClientRegistry(
        client_factory=lambda path: SearchClient(path, config=config.ipc)
    )
    registry.install_shutdown_hooks()
    client = registry.get(workspace)

    async def check_session() -> tuple[str, str | None]:
        try:
            await client.initialize()
            return client.request_socket_path, client.response_socket_path
        finally:
            registry.cleanup_all()

    try:
        request_path, response_path = asyncio.run(check_session())
    finally:
        registry.uninstall_shutdown_hooks()

    if not ctx.obj.get("quiet", False):
        click.echo("✓ Coordinator accepted the session")
        click.echo(f"  Request socket: {request_path}")
        click.echo(f"  Reply socket:   {response_path}")


@cli.group()
def config() -> None:
    """View and edit searchlink configuration.

    Configuration is loaded from (highest priority first):
    1. <workspace>/.searchlink/config.toml
    2. ~/.config/searchlink/config.toml
    3. Built-in defaults
    """
    pass


@config.command(name="show")
@click.pass_context
@handle_cli_errors("config show")
def config_show(ctx: click.Context) -> None:
    """Show the effective configuration for the workspace."""
    import tomli_w

    from searchlink.shared.config_io import config_to_data

    workspace = _get_workspace(ctx)
    click.echo(f"# Effective configuration for {workspace}")
    click.echo(tomli_w.dumps(config_to_data(_load_config(workspace))), nl=False)


@config.command(name="path")
@click.option("--global", "show_global", is_flag=True, help="Show only the global path.")
@click.pass_context
@handle_cli_errors("config path")
def config_path(ctx: click.Context, show_global: bool) -> None:
    """Show config file locations."""
    from searchlink.shared.config_io import get_global_config_path, get_local_config_path

    global_path = get_global_config_path()
    if show_global:
        click.echo(str(global_path))
        return

    local_path = get_local_config_path(_get_workspace(ctx))
    for label, path in (("Global", global_path), ("Local", local_path)):
        status = "exists" if path.exists() else "not found"
        click.echo(f"{label}: {path} ({status})")


@config.command(name="init")
@click.option("--global", "init_global", is_flag=True, help="Create the global config.")
@click.option("--force", "-f", is_flag=True, help="Overwrite an existing file.")
@click.pass_context
@handle_cli_errors("config init")
def config_init(ctx: click.Context, init_global: bool, force: bool) -> None:
    """Write a default config file."""
    from searchlink.shared.config_io import (
        create_default_config_file,
        get_global_config_path,
        get_local_config_path,
    )

    if init_global:
        path = get_global_config_path()
    else:
        path = get_local_config_path(_get_workspace(ctx))

    if path.exists() and not force:
        raise SearchLinkCliError(
            f"Config already exists: {path}",
            hint="Use --force to overwrite it",
        )

    create_default_config_file(path)
    if not ctx.obj.get("quiet", False):
        click.echo(f"✓ Created {path}")


def main() -> int:
    """Main entrypoint for the CLI."""
    try:
        cli(obj={})
        return 0
    except Exception as e:
        click.echo(f"Error: {e}", err=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
