"""CLI entry point for tipjar."""

import logging
import sys
from datetime import date

import click

from .config import Config, load_config
from .exceptions import ConfigError, StorageUnavailable, TipJarError, ValidationError
from .folder_registry import FolderRegistry
from .formatter import format_folder_group, format_tip, format_tip_line
from .models import ANONYMOUS, Tip
from .review import due_notifications, group_by_folder, sort_for_review
from .services import Services, build_services
from .storage import JsonFolderStore, JsonTipStore


class _State:
    def __init__(self, data_dir, provider, model, user, verbose):
        self.data_dir = data_dir
        self.provider = provider
        self.model = model
        self.user = user
        self.verbose = verbose

    def config(self, validate: bool) -> Config:
        try:
            return load_config(
                data_dir=self.data_dir,
                provider=self.provider,
                model=self.model,
                verbose=self.verbose,
                validate=validate,
            )
        except ConfigError as e:
            click.echo(f"Configuration error: {e}", err=True)
            sys.exit(2)

    def services(self) -> Services:
        config = self.config(validate=True)
        try:
            return build_services(config)
        except TipJarError as e:
            click.echo(f"Failed to initialize services: {e}", err=True)
            sys.exit(2)

    def stores(self) -> tuple[JsonTipStore, JsonFolderStore]:
        config = self.config(validate=False)
        return JsonTipStore(config.data_dir), JsonFolderStore(config.data_dir)


def _fail(message: str, code: int = 1):
    click.echo(message, err=True)
    sys.exit(code)


def _resolve_tip(tips: JsonTipStore, identity: str, tip_id: str) -> Tip:
    """Find a tip by full id or unique id prefix."""
    matches = [t for t in tips.list(identity) if t.id.startswith(tip_id)]
    if not matches:
        _fail(f"No tip matching {tip_id!r}")
    if len(matches) > 1:
        _fail(f"Ambiguous id {tip_id!r} matches {len(matches)} tips")
    return matches[0]


@click.group()
@click.option(
    "--data-dir",
    type=click.Path(file_okay=False),
    default=None,
    help="Where tips are stored (default: ./data or TIPJAR_DATA_DIR env var)",
)
@click.option(
    "--provider",
    type=click.Choice(["claude", "openai"]),
    default=None,
    help="LLM provider (default: openai, or LLM_PROVIDER env var)",
)
@click.option("--model", type=str, default=None, help="LLM model to use")
@click.option(
    "--user",
    type=str,
    default=ANONYMOUS,
    show_default=True,
    help="Identity whose tips and folders to use",
)
@click.option("--verbose", "-v", is_flag=True, default=False, help="Enable verbose output")
@click.pass_context
def main(ctx, data_dir, provider, model, user, verbose):
    """Capture tips, let an LLM file them into folders, and review them later.

    Example: tipjar add "try the ramen place on 5th, read https://example.com next week"
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    ctx.obj = _State(data_dir, provider, model, user, verbose)


@main.command()
@click.argument("content", nargs=-1)
@click.option("--folder", type=str, default=None, help="File into this folder without classification")
@click.option("--url", type=str, default=None, help="Source link for a single tip")
@click.option("--no-split", is_flag=True, default=False, help="Treat the content as one tip")
@click.pass_obj
def add(state, content, folder, url, no_split):
    """Capture one or more tips."""
    text = " ".join(content).strip()
    if not text and not url:
        _fail("Nothing to add: give some content or --url.")

    services = state.services()
    try:
        result = services.assembler.submit(
            state.user, text, folder=folder, url=url, split=not no_split
        )
    except (StorageUnavailable, ValidationError) as e:
        _fail(f"Failed to save tips: {e}")

    today = date.today()
    for tip in result.tips:
        click.echo(f"Added to {tip.folder}: {format_tip_line(tip, today)}")
    if result.errors:
        click.echo(f"({result.failed} tip(s) could not be saved)", err=True)
        sys.exit(1)
    if not result.tips:
        click.echo("No tips found in the input.")


@main.command()
@click.argument("content", nargs=-1, required=True)
@click.option("--folder", type=str, default=None, help="Preview filing into this folder")
@click.option("--no-split", is_flag=True, default=False, help="Treat the content as one tip")
@click.pass_obj
def preview(state, content, folder, no_split):
    """Show how content would be split and classified, without saving."""
    services = state.services()
    try:
        tips = services.assembler.build(
            state.user, " ".join(content), folder=folder, split=not no_split
        )
    except (StorageUnavailable, ValidationError) as e:
        _fail(f"Preview failed: {e}")
    today = date.today()
    for tip in tips:
        click.echo(format_tip(tip, today))
        click.echo("")


@main.command(name="list")
@click.option(
    "--view",
    type=click.Choice(["active", "processed", "all"]),
    default="active",
    show_default=True,
)
@click.option("--by-folder", is_flag=True, default=False, help="Group tips by folder")
@click.pass_obj
def list_tips(state, view, by_folder):
    """List tips, most urgent first."""
    tips_store, _ = state.stores()
    try:
        tips = tips_store.list(state.user)
    except StorageUnavailable as e:
        _fail(str(e))
    if view == "active":
        tips = [t for t in tips if not t.is_processed]
    elif view == "processed":
        tips = [t for t in tips if t.is_processed]

    today = date.today()
    if not tips:
        click.echo("No tips.")
        return
    if by_folder:
        for name, members in group_by_folder(tips, today):
            click.echo(format_folder_group(name, members, today))
        return
    for tip in sort_for_review(tips, today):
        click.echo(format_tip_line(tip, today))


@main.command()
@click.argument("tip_id")
@click.pass_obj
def show(state, tip_id):
    """Show one tip in full."""
    tips_store, _ = state.stores()
    click.echo(format_tip(_resolve_tip(tips_store, state.user, tip_id)))


@main.command()
@click.argument("tip_id")
@click.option("--undo", is_flag=True, default=False, help="Mark as active again")
@click.pass_obj
def done(state, tip_id, undo):
    """Mark a tip as processed."""
    tips_store, _ = state.stores()
    tip = _resolve_tip(tips_store, state.user, tip_id)
    try:
        tips_store.update(state.user, tip.id, {"isProcessed": not undo})
    except StorageUnavailable as e:
        _fail(str(e))
    click.echo(f"{'Reopened' if undo else 'Done'}: {tip.title}")


@main.command()
@click.argument("tip_id")
@click.argument("text", nargs=-1, required=True)
@click.pass_obj
def context(state, tip_id, text):
    """Add clarifying context to a tip and classify it again."""
    services = state.services()
    tip = _resolve_tip(services.tips, state.user, tip_id)
    try:
        updated = services.assembler.reanalyze(state.user, tip.id, " ".join(text))
    except (StorageUnavailable, ValidationError) as e:
        _fail(str(e))
    click.echo(format_tip(updated))


@main.command()
@click.argument("tip_id")
@click.pass_obj
def delete(state, tip_id):
    """Delete a tip."""
    tips_store, _ = state.stores()
    tip = _resolve_tip(tips_store, state.user, tip_id)
    try:
        tips_store.delete(state.user, tip.id)
    except StorageUnavailable as e:
        _fail(str(e))
    click.echo(f"Deleted: {tip.title}")


@main.command()
@click.option("--days", type=int, default=7, show_default=True, help="Look-ahead window")
@click.pass_obj
def due(state, days):
    """List active tips that become relevant soon."""
    tips_store, _ = state.stores()
    try:
        tips = tips_store.list(state.user)
    except StorageUnavailable as e:
        _fail(str(e))
    items = due_notifications(tips, date.today(), horizon_days=days)
    if not items:
        click.echo(f"Nothing due in the next {days} days.")
        return
    for item in items:
        click.echo(f"{item['tipId'][:8]}  {item['message']}")


@main.group()
def folders():
    """Manage folders."""


def _registry(state) -> FolderRegistry:
    tips_store, folder_store = state.stores()
    return FolderRegistry(tips_store, folder_store)


@folders.command(name="list")
@click.pass_obj
def folders_list(state):
    """List user folders and folders invented during classification."""
    try:
        available = _registry(state).available(state.user)
    except StorageUnavailable as e:
        _fail(str(e))
    for name in available.user_folders:
        click.echo(name)
    for name in available.ai_generated_folders:
        click.echo(f"{name}  (from tips)")


@folders.command(name="add")
@click.argument("name")
@click.option("--description", type=str, default=None)
@click.option("--color", type=str, default=None, help="Hex colour, e.g. #10B981")
@click.pass_obj
def folders_add(state, name, description, color):
    """Create a folder."""
    try:
        folder = _registry(state).create(state.user, name, description=description, color=color)
    except (StorageUnavailable, ValidationError) as e:
        _fail(str(e))
    click.echo(f"Created folder {folder.name}")


def _folder_id(registry: FolderRegistry, identity: str, name: str) -> str:
    for folder in registry.list_folders(identity):
        if folder.name == name:
            return folder.id
    _fail(f"No folder named {name!r}")


@folders.command(name="rename")
@click.argument("name")
@click.argument("new_name")
@click.pass_obj
def folders_rename(state, name, new_name):
    """Rename a folder (tips keep their current folder name)."""
    registry = _registry(state)
    try:
        registry.rename(state.user, _folder_id(registry, state.user, name), new_name)
    except (StorageUnavailable, ValidationError) as e:
        _fail(str(e))
    click.echo(f"Renamed {name} to {new_name}")


@folders.command(name="delete")
@click.argument("name")
@click.pass_obj
def folders_delete(state, name):
    """Delete a folder record (tips are not touched)."""
    registry = _registry(state)
    try:
        registry.delete(state.user, _folder_id(registry, state.user, name))
    except StorageUnavailable as e:
        _fail(str(e))
    click.echo(f"Deleted folder {name}")


@main.command()
@click.option("--host", type=str, default="127.0.0.1", show_default=True)
@click.option("--port", type=int, default=8000, show_default=True)
@click.pass_obj
def serve(state, host, port):
    """Start the JSON API server."""
    import uvicorn

    from .web import create_app

    services = state.services()
    click.echo(f"Starting tipjar API at http://{host}:{port}")
    click.echo("Press Ctrl+C to stop")
    uvicorn.run(
        create_app(services),
        host=host,
        port=port,
        log_level="debug" if state.verbose else "info",
    )
