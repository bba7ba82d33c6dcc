import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

import click
from pydantic import ValidationError

from tabkeeper import __version__
from tabkeeper.core.app import StoreConfigurationError, create_repository
from tabkeeper.core.gateway import GatewayUnavailableError, InvalidTabExportError, WebBrowserGateway
from tabkeeper.core.log import setup_logging
from tabkeeper.core.managers.contexts import ContextRepository, InvalidContextNameError
from tabkeeper.core.models.context import Context
from tabkeeper.core.settings import get_settings
from tabkeeper.core.store.base import StorageUnavailableError
from tabkeeper.core.store.collection import CorruptCollectionError
from tabkeeper.core.timeago import format_time_ago

T = TypeVar("T")


def _build_gateway(tabs_file: str | None) -> WebBrowserGateway:
    return WebBrowserGateway(tabs_file)


def _repository(tabs_file: str | None = None) -> ContextRepository:
    settings = get_settings()
    return create_repository(settings, _build_gateway(tabs_file or settings.tabs_file))


def _run(action: Callable[[ContextRepository], Awaitable[T]], tabs_file: str | None = None) -> T:
    """Build the configured repository, run ``action`` on it and map domain errors to CLI errors."""

    async def _main() -> T:
        return await action(_repository(tabs_file))

    try:
        return asyncio.run(_main())
    except (InvalidContextNameError, GatewayUnavailableError, StoreConfigurationError) as exc:
        raise click.ClickException(str(exc)) from None
    except InvalidTabExportError as exc:
        msg = f"Invalid tab export: {exc}"
        raise click.ClickException(msg) from None
    except CorruptCollectionError as exc:
        msg = f"{exc}\nNothing was changed. Run 'tabkeeper reset' to discard the stored workspaces."
        raise click.ClickException(msg) from None
    except StorageUnavailableError as exc:
        msg = f"Storage unavailable: {exc}"
        raise click.ClickException(msg) from None


def _not_found(context_id: str) -> click.ClickException:
    return click.ClickException(f"Workspace {context_id} not found.")


def _parse_selection(_ctx: click.Context, _param: click.Parameter, value: str | None) -> list[int] | None:
    if value is None:
        return None
    try:
        return [int(part) for part in value.split(",") if part.strip()]
    except ValueError:
        msg = "expected comma-separated tab indices, e.g. 0,2,3"
        raise click.BadParameter(msg) from None


def _format_line(context: Context) -> str:
    count = len(context.tabs)
    noun = "tab" if count == 1 else "tabs"
    return f"{context.id}  {context.name}  ({count} {noun}, {format_time_ago(context.timestamp)})"


@click.group()
@click.version_option(__version__, prog_name="tabkeeper")
def main() -> None:
    """tabkeeper - save browser tabs as named workspaces and reopen them later."""
    try:
        settings = get_settings()
    except ValidationError as exc:
        msg = f"Invalid configuration: {exc}"
        raise click.ClickException(msg) from None
    setup_logging(settings.log_level)


@main.command()
@click.option("--name", "-n", default=None, help="Workspace name (default: 'Workspace N').")
@click.option(
    "--tabs-file",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="JSON export of open tabs (default: from TABKEEPER_TABS_FILE).",
)
@click.option("--select", callback=_parse_selection, default=None, help="Only capture these tab indices, e.g. 0,2.")
def capture(name: str | None, tabs_file: str | None, select: list[int] | None) -> None:
    """Save the currently open tabs as a new workspace."""
    context = _run(lambda repo: repo.capture_open_tabs(name, selected=select), tabs_file)
    if not context.tabs:
        click.echo("Warning: no tabs captured.", err=True)
    click.echo(f"Saved workspace {context.id}: {context.name} ({len(context.tabs)} tabs)")


@main.command(name="list")
@click.option("--trash", is_flag=True, default=False, help="List trashed workspaces instead.")
def list_contexts(trash: bool) -> None:
    """List workspaces, newest first."""
    contexts = _run(lambda repo: repo.list(include_trashed=trash))
    if not contexts:
        click.echo("Trash is empty." if trash else "No workspaces.")
        return
    for context in contexts:
        click.echo(_format_line(context))


@main.command()
@click.argument("context_id")
def show(context_id: str) -> None:
    """Show the tabs of a workspace."""
    context = _run(lambda repo: repo.get(context_id))
    if context is None:
        raise _not_found(context_id)
    state = " [trashed]" if context.is_trashed else ""
    click.echo(f"{context.name}{state}")
    for index, tab in enumerate(context.tabs):
        click.echo(f"  {index}. {tab.title} - {tab.url}")


@main.command()
@click.argument("context_id")
@click.argument("name")
def rename(context_id: str, name: str) -> None:
    """Rename a workspace."""
    if not _run(lambda repo: repo.rename(context_id, name)):
        raise _not_found(context_id)
    click.echo(f"Renamed {context_id} to {name.strip()}")


@main.command()
@click.argument("context_id")
def trash(context_id: str) -> None:
    """Move a workspace to the trash."""
    if not _run(lambda repo: repo.move_to_trash(context_id)):
        raise _not_found(context_id)
    click.echo(f"Moved {context_id} to trash")


@main.command()
@click.argument("context_id")
def restore(context_id: str) -> None:
    """Restore a workspace from the trash (does not open its tabs)."""
    if not _run(lambda repo: repo.restore(context_id)):
        raise _not_found(context_id)
    click.echo(f"Restored {context_id}")


@main.command()
@click.argument("context_id")
@click.option("--yes", "-y", is_flag=True, default=False, help="Do not ask for confirmation.")
def purge(context_id: str, yes: bool) -> None:
    """Permanently delete a workspace."""
    if not yes:
        click.confirm("Permanently delete this workspace? This cannot be undone.", abort=True)
    if not _run(lambda repo: repo.purge(context_id)):
        raise _not_found(context_id)
    click.echo(f"Deleted {context_id}")


@main.command(name="empty-trash")
@click.option("--yes", "-y", is_flag=True, default=False, help="Do not ask for confirmation.")
def empty_trash(yes: bool) -> None:
    """Permanently delete every trashed workspace."""
    if not yes:
        click.confirm("Permanently delete all trashed workspaces? This cannot be undone.", abort=True)
    removed = _run(lambda repo: repo.empty_trash())
    click.echo(f"Deleted {removed} workspaces")


@main.command()
@click.option("--yes", "-y", is_flag=True, default=False, help="Do not ask for confirmation.")
def reset(yes: bool) -> None:
    """Delete every stored workspace, active and trashed, even if the data is corrupt."""
    if not yes:
        click.confirm("Delete ALL stored workspaces, including the trash? This cannot be undone.", abort=True)
    _run(lambda repo: repo.reset())
    click.echo("All workspaces deleted")


@main.command(name="open")
@click.argument("context_id")
def open_context(context_id: str) -> None:
    """Open all tabs of a workspace in the browser."""

    async def _open(repo: ContextRepository) -> Context | None:
        context = await repo.get(context_id)
        if context is not None:
            await repo.open_tabs(context)
        return context

    context = _run(_open)
    if context is None:
        raise _not_found(context_id)
    click.echo(f"Opened {len(context.tabs)} tabs from {context.name}")


if __name__ == "__main__":
    main()
