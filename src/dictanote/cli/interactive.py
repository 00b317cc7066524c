"""Interactive terminal output and prompts for the CLI.

Handles showing documents, staged suggestions and clarifying questions, and
asking the user whether a staged rewrite should be applied.
"""

import click
from rich.console import Console
from rich.syntax import Syntax

from dictanote.models.document import Document
from dictanote.models.suggestion import PendingSuggestion, SuggestionScope


def render_document(document: Document, numbered: bool = False) -> str:
    """Render a document for the terminal.

    Args:
        document: Document to render
        numbered: Prefix each block with its 1-based number (for --block)

    Returns:
        Printable text
    """
    if not numbered:
        return document.render()

    lines = []
    for number, block in enumerate(document, 1):
        content = block.content if not block.is_empty else "(empty)"
        indented = content.replace("\n", "\n    ")
        lines.append(f"[{number}] {indented}")
    return "\n\n".join(lines)


def show_suggestion(suggestion: PendingSuggestion, console: Console) -> None:
    """Show a staged rewrite as a unified diff.

    Args:
        suggestion: The pending suggestion
        console: Rich console to print to
    """
    scope = "this block" if suggestion.scope == SuggestionScope.BLOCK else "the whole note"
    console.print(f"\n[bold]Suggested rewrite of {scope}[/bold] ({suggestion.changed_chars} characters changed)")
    console.print(Syntax(suggestion.diff(), "diff", theme="ansi_dark", background_color="default"))


def confirm_suggestion() -> bool:
    """Ask whether to apply the staged rewrite.

    Returns:
        True if the user accepts, False otherwise
    """
    return click.confirm("\nApply this change?", default=False)


def prompt_for_answer(question: str) -> str:
    """Show a clarifying question and read the user's answer.

    Args:
        question: Question asked by the assistant

    Returns:
        The answer, or "" if the user gave none (ends the conversation)
    """
    click.secho(f"? {question}", fg="cyan")
    return click.prompt("Answer (empty to stop)", default="", show_default=False).strip()


def show_warning(message: str) -> None:
    """Show warning message to user.

    Args:
        message: Warning message to display
    """
    click.secho(f"⚠ Warning: {message}", fg='yellow', err=True)


def show_error(message: str) -> None:
    """Show error message to user.

    Args:
        message: Error message to display
    """
    click.secho(f"✗ Error: {message}", fg='red', err=True)


def show_success(message: str) -> None:
    click.secho(f"✓ {message}", fg='green')
