"""CLI entry point for Dictanote."""

import asyncio
from pathlib import Path
from typing import Optional

import click
from rich.console import Console

from dictanote import __version__
from dictanote.cli.interactive import (
    confirm_suggestion,
    prompt_for_answer,
    render_document,
    show_error,
    show_success,
    show_suggestion,
    show_warning,
)
from dictanote.config import ConfigManager
from dictanote.models.config import DEFAULT_CONFIG_PATH, Config
from dictanote.models.interaction import GLOBAL_SURFACE, RouteOutcome
from dictanote.services.assistant import LLMAssistant
from dictanote.services.exceptions import PersistenceError
from dictanote.services.llm_client import LLMClient
from dictanote.services.session import EditSession
from dictanote.services.storage import FileDocumentStore, stored_to_document
from dictanote.utils.logging import configure_logging, get_logger


logger = get_logger(__name__)
console = Console()


def load_config(config_path: Optional[Path] = None) -> Config:
    """
    Load configuration from --config or ~/.config/dictanote/config.yaml.

    Raises:
        click.ClickException: If config is missing, has invalid permissions, or validation fails
    """
    path = config_path or DEFAULT_CONFIG_PATH
    try:
        return ConfigManager.load_from_path(path).config
    except (FileNotFoundError, PermissionError) as e:
        raise click.ClickException(str(e))
    except ValueError as e:
        raise click.ClickException(f"Configuration validation failed:\n{e}")


def open_session(config: Config, document_id: str) -> EditSession:
    """Open a document with the configured store and LLM assistant."""
    store = FileDocumentStore(config.storage.path)
    assistant = LLMAssistant(LLMClient(config.llm), config.editor)
    try:
        return EditSession.open(store, document_id, assistant, config)
    except PersistenceError as e:
        logger.error("document_open_failed", document_id=document_id, error=str(e))
        raise click.ClickException(str(e))


@click.group()
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Path to configuration file (default: ~/.config/dictanote/config.yaml)",
)
@click.option("--verbose", is_flag=True, help="Enable debug logging")
@click.version_option(version=__version__, prog_name="dictanote")
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[Path], verbose: bool):
    """Dictanote - dictate or type edits into a note, reconciled by an AI assistant."""
    configure_logging("DEBUG" if verbose else None)

    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["verbose"] = verbose


@cli.command("list")
@click.pass_context
def list_documents(ctx: click.Context):
    """List stored documents."""
    config = load_config(ctx.obj["config_path"])
    document_ids = FileDocumentStore(config.storage.path).list_documents()
    if not document_ids:
        click.echo("No documents yet.")
        return
    for document_id in document_ids:
        click.echo(document_id)


@cli.command()
@click.argument("document_id")
@click.option("--numbered", is_flag=True, help="Prefix blocks with the numbers used by --block")
@click.pass_context
def show(ctx: click.Context, document_id: str, numbered: bool):
    """
    Print a document.

    Examples:
        dictanote show groceries
        dictanote show groceries --numbered
    """
    config = load_config(ctx.obj["config_path"])
    store = FileDocumentStore(config.storage.path)
    try:
        stored = store.load(document_id)
    except PersistenceError as e:
        raise click.ClickException(str(e))

    if stored is None:
        raise click.ClickException(f"Document not found: {document_id}")

    click.echo(render_document(stored_to_document(stored), numbered=numbered))


@cli.command()
@click.argument("document_id")
@click.argument("utterance")
@click.option("--block", "block_number", type=int, default=None, help="Focus block N (see show --numbered)")
@click.pass_context
def say(ctx: click.Context, document_id: str, utterance: str, block_number: Optional[int]):
    """
    Send one utterance to the assistant and apply the result.

    Large rewrites are shown as a diff and applied only if confirmed. If the
    assistant asks a question, answer it at the prompt.

    Examples:
        dictanote say groceries "add eggs and butter"
        dictanote say groceries "change milk to oat milk" --block 1
    """
    logger.info("say_command_started", document_id=document_id, block_number=block_number)

    config = load_config(ctx.obj["config_path"])
    session = open_session(config, document_id)

    focused_block_id = None
    if block_number is not None:
        blocks = session.router.blocks
        if not 1 <= block_number <= len(blocks):
            raise click.BadParameter(
                f"Document has {len(blocks)} block(s)",
                param_hint="--block",
            )
        focused_block_id = blocks[block_number - 1].block_id

    ok = asyncio.run(_run_say(session, utterance, focused_block_id))

    logger.info("say_command_completed", document_id=document_id, ok=ok)
    if not ok:
        ctx.exit(1)


async def _run_say(session: EditSession, utterance: str, focused_block_id: Optional[str]) -> bool:
    """Run one interaction (plus any clarification round-trips) and save."""
    router = session.router
    ok = True

    result = await session.submit(GLOBAL_SURFACE, utterance, focused_block_id)
    while True:
        if not result.ok:
            show_error(result.error)
            ok = False
            break

        if result.outcome == RouteOutcome.CLARIFYING:
            answer = prompt_for_answer(result.response.content)
            if not answer:
                router.clear_conversation()
                break
            result = await session.submit(GLOBAL_SURFACE, answer)
            continue

        if result.outcome == RouteOutcome.STAGED:
            show_suggestion(router.pending_suggestion, console)
            if confirm_suggestion():
                router.confirm()
                show_success("Change applied")
            else:
                router.reject()
                click.echo("Change discarded")
        elif result.outcome == RouteOutcome.IGNORED:
            show_warning("Nothing to add")
        else:
            show_success(f"Note {result.outcome.value}")
        break

    if not await session.close():
        show_warning(f"Document could not be saved: {session.autosaver.last_error}")
        ok = False

    click.echo()
    click.echo(router.text)
    return ok


@cli.command()
@click.argument("document_id")
@click.pass_context
def edit(ctx: click.Context, document_id: str):
    """
    Open a document in the interactive editor.

    Example:
        dictanote edit groceries
    """
    from dictanote.tui.app import DictanoteApp

    config = load_config(ctx.obj["config_path"])
    session = open_session(config, document_id)

    logger.info("launching_tui", document_id=document_id)
    app = DictanoteApp(session, title=document_id)
    app.run()
    logger.info("edit_command_completed", document_id=document_id)


def main():
    """Main entry point for setuptools console script."""
    cli()


if __name__ == "__main__":
    main()
