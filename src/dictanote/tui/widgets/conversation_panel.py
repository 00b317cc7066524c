"""ConversationPanel widget for the clarification dialogue."""

from typing import Sequence

from rich.text import Text
from textual.widgets import Static

from dictanote.models.conversation import ConversationTurn


class ConversationPanel(Static):
    """Shows user and assistant turns while the assistant is asking questions.

    Hidden whenever there is no open clarification.
    """

    def __init__(self, *args, **kwargs):
        super().__init__("", *args, id="conversation-panel", **kwargs)
        self.turns: tuple[ConversationTurn, ...] = ()

    def show_turns(self, turns: Sequence[ConversationTurn], clarifying: bool) -> None:
        """Display the turns, or hide the panel if not clarifying."""
        self.turns = tuple(turns)
        self.display = clarifying and bool(self.turns)
        self.update(self._render_turns())

    def _render_turns(self) -> Text:
        text = Text()
        for index, turn in enumerate(self.turns):
            if index:
                text.append("\n")
            if turn.role == "user":
                text.append("You: ", style="bold")
                text.append(turn.text)
            else:
                text.append("Assistant: ", style="bold cyan")
                text.append(turn.text, style="cyan")
        return text
