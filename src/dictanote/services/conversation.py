"""Append-only clarification conversation log."""

from dictanote.models.conversation import ConversationTurn


_ROLE_LABELS = {"user": "User", "assistant": "Assistant"}


class ClarificationConversation:
    """Turn log kept while the AI collaborator is asking clarifying questions.

    The log is ephemeral interaction state: it is not part of undo history and
    is discarded wholesale when the clarification resolves or is cancelled.
    """

    def __init__(self):
        self._turns: list[ConversationTurn] = []
        self._clarifying = False

    @property
    def turns(self) -> tuple[ConversationTurn, ...]:
        return tuple(self._turns)

    @property
    def is_clarifying(self) -> bool:
        return self._clarifying

    def add_user_turn(self, text: str) -> ConversationTurn:
        """Append a user turn."""
        turn = ConversationTurn(role="user", text=text)
        self._turns.append(turn)
        return turn

    def add_assistant_turn(self, text: str) -> ConversationTurn:
        """Append an assistant turn."""
        turn = ConversationTurn(role="assistant", text=text)
        self._turns.append(turn)
        return turn

    def add_exchange(self, user_text: str, assistant_text: str) -> None:
        """Record an utterance and the clarifying question it triggered.

        Enters the clarifying state.

        Args:
            user_text: Echo of what the user said
            assistant_text: The collaborator's question
        """
        self.add_user_turn(user_text)
        self.add_assistant_turn(assistant_text)
        self._clarifying = True

    def clear(self) -> bool:
        """Leave the clarifying state and discard all turns.

        Returns:
            True if there was anything to clear
        """
        had_state = self._clarifying or bool(self._turns)
        self._turns.clear()
        self._clarifying = False
        return had_state

    def as_transcript(self) -> str:
        """Render the log as plain 'User: ...' / 'Assistant: ...' lines.

        Returns:
            Transcript for the AI collaborator ("" when empty)
        """
        return "\n".join(f"{_ROLE_LABELS[turn.role]}: {turn.text}" for turn in self._turns)
