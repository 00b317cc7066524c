"""ReviewPanel widget showing a staged rewrite as a diff."""

from typing import Optional

from rich.console import Group
from rich.syntax import Syntax
from rich.text import Text
from textual.widgets import Static

from dictanote.models.suggestion import PendingSuggestion, SuggestionScope


class ReviewPanel(Static):
    """Unified diff of the pending suggestion, hidden when nothing is staged."""

    def __init__(self, *args, **kwargs):
        super().__init__("", *args, id="review-panel", **kwargs)
        self.suggestion: Optional[PendingSuggestion] = None

    def show_suggestion(self, suggestion: Optional[PendingSuggestion]) -> None:
        """Display a suggestion, or hide the panel when suggestion is None."""
        self.suggestion = suggestion
        self.display = suggestion is not None
        if suggestion is None:
            self.update("")
            return

        scope = "block" if suggestion.scope == SuggestionScope.BLOCK else "whole note"
        header = Text.assemble(
            ("Suggested rewrite", "bold"),
            f" of {scope} ({suggestion.changed_chars} characters changed)  ",
            ("ctrl+a", "bold green"),
            " accept  ",
            ("ctrl+r", "bold red"),
            " reject",
        )
        self.update(Group(header, Syntax(suggestion.diff(), "diff", theme="ansi_dark")))
