"""Main Dictanote TUI application.

A single screen: the note's blocks, a review panel while a rewrite is staged,
the clarification dialogue while the assistant is asking, an input line for
utterances and a status line. AI requests run as Textual workers on the app's
event loop, so the UI stays responsive while the assistant is thinking.
"""

from typing import Optional

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import VerticalScroll
from textual.widgets import Footer, Header, Input

from dictanote.models.interaction import GLOBAL_SURFACE
from dictanote.services import events as ev
from dictanote.services.exceptions import InteractionBusyError
from dictanote.services.session import EditSession
from dictanote.tui.widgets import BlockView, ConversationPanel, ReviewPanel, StatusPanel
from dictanote.utils.logging import get_logger


logger = get_logger(__name__)


class DictanoteApp(App):
    """Interactive editor for one note."""

    CSS = """
    Screen {
        background: $surface;
    }

    #document-panel {
        height: 1fr;
        border: round $primary;
        padding: 0 1;
    }

    #review-panel {
        height: auto;
        max-height: 50%;
        border: round $warning;
        padding: 0 1;
    }

    #conversation-panel {
        height: auto;
        border: round $accent;
        padding: 0 1;
    }

    #status-panel {
        height: 1;
        padding: 0 1;
    }
    """

    BINDINGS = [
        Binding("ctrl+z", "undo", "Undo", priority=True),
        Binding("ctrl+y", "redo", "Redo", priority=True),
        Binding("up", "focus_previous_block", "Previous block", show=False),
        Binding("down", "focus_next_block", "Next block", show=False),
        Binding("escape", "unfocus", "Whole note", priority=True),
        Binding("ctrl+a", "accept_suggestion", "Accept", priority=True),
        Binding("ctrl+r", "reject_suggestion", "Reject", priority=True),
        Binding("ctrl+n", "predict", "Suggest next", priority=True),
        Binding("ctrl+s", "save", "Save", priority=True),
        Binding("ctrl+q", "quit", "Quit", priority=True),
    ]

    def __init__(self, session: EditSession, title: Optional[str] = None):
        """Initialize the app.

        Args:
            session: Edit session over the open document
            title: Shown in the header (usually the document id)
        """
        super().__init__()
        self.session = session
        self.router = session.router
        self.focused_block_id: Optional[str] = None
        self.error_message: Optional[str] = None
        if title:
            self.title = title

        self.router.events.on(ev.DOCUMENT_CHANGED, self._on_document_changed)
        self.router.events.on(ev.SUGGESTION_STAGED, self._on_suggestion_changed)
        self.router.events.on(ev.SUGGESTION_RESOLVED, self._on_suggestion_changed)
        self.router.events.on(ev.CONVERSATION_UPDATED, self._on_conversation_updated)
        self.router.events.on(ev.INTERACTION_CHANGED, self._on_interaction_changed)
        if session.autosaver is not None:
            session.autosaver.on_status_change = self._refresh_status

    def compose(self) -> ComposeResult:
        yield Header()
        with VerticalScroll(id="document-panel"):
            yield BlockView()
        yield ReviewPanel()
        yield ConversationPanel()
        yield Input(placeholder="Say or type something...", id="utterance")
        yield StatusPanel()
        yield Footer()

    def on_mount(self) -> None:
        self.query_one("#document-panel").border_title = "Note"
        self.query_one(ReviewPanel).border_title = "Review"
        self.query_one(ConversationPanel).border_title = "Assistant"
        self._refresh_all()
        self.query_one("#utterance", Input).focus()
        logger.info("app_mounted", block_count=len(self.router.blocks))

    # ===== Input =====

    def on_input_submitted(self, event: Input.Submitted) -> None:
        utterance = event.value.strip()
        event.input.value = ""
        if not utterance:
            return

        surface = self.focused_block_id or GLOBAL_SURFACE
        self.run_worker(self._submit(surface, utterance), name="interaction", group=surface)

    async def _submit(self, surface: str, utterance: str) -> None:
        """Run one interaction and show any failure inline."""
        try:
            result = await self.session.submit(surface, utterance, self.focused_block_id)
        except InteractionBusyError:
            self.error_message = "Still working on the previous request"
            self._refresh_status()
            return

        self.error_message = result.error
        self._refresh_status()

    # ===== Actions =====

    def action_undo(self) -> None:
        if not self.router.undo():
            self.bell()

    def action_redo(self) -> None:
        if not self.router.redo():
            self.bell()

    def action_focus_next_block(self) -> None:
        self._move_focus(1)

    def action_focus_previous_block(self) -> None:
        self._move_focus(-1)

    def action_unfocus(self) -> None:
        """Return to whole-note focus; a second press ends a clarification."""
        if self.focused_block_id is not None:
            self.focused_block_id = None
            self._refresh_blocks()
        elif self.router.is_clarifying:
            self.router.clear_conversation()

    def action_accept_suggestion(self) -> None:
        if not self.router.confirm():
            self.bell()

    def action_reject_suggestion(self) -> None:
        if not self.router.reject():
            self.bell()

    def action_predict(self) -> None:
        self.run_worker(self._predict(), name="continuation", exclusive=True, group="continuation")

    async def _predict(self) -> None:
        prediction = await self.session.predict_continuation(self.focused_block_id)
        utterance = self.query_one("#utterance", Input)
        if prediction and not utterance.value:
            utterance.value = prediction

    async def action_save(self) -> None:
        await self.session.save()
        self._refresh_status()

    async def action_quit(self) -> None:
        saved = await self.session.close()
        logger.info("app_quit", saved=saved)
        self.exit()

    # ===== Event listeners =====

    def _on_document_changed(self, reason: str) -> None:
        if self.focused_block_id is not None and self.router.document.get(self.focused_block_id) is None:
            self.focused_block_id = None
        self._refresh_blocks()
        self._refresh_status()

    def _on_suggestion_changed(self, **payload) -> None:
        self.query_one(ReviewPanel).show_suggestion(self.router.pending_suggestion)

    def _on_conversation_updated(self, turns, clarifying: bool) -> None:
        self.query_one(ConversationPanel).show_turns(turns, clarifying)

    def _on_interaction_changed(self, **payload) -> None:
        self._refresh_status()

    # ===== Rendering =====

    def _move_focus(self, step: int) -> None:
        blocks = self.router.blocks
        index = self.router.document.index_of(self.focused_block_id) if self.focused_block_id else -1
        if index < 0:
            index = 0 if step > 0 else len(blocks) - 1
        else:
            index = max(0, min(len(blocks) - 1, index + step))
        self.focused_block_id = blocks[index].block_id
        self._refresh_blocks()

    def _refresh_all(self) -> None:
        self._refresh_blocks()
        self.query_one(ReviewPanel).show_suggestion(self.router.pending_suggestion)
        self.query_one(ConversationPanel).show_turns(self.router.conversation_turns, self.router.is_clarifying)
        self._refresh_status()

    def _refresh_blocks(self) -> None:
        self.query_one(BlockView).show_blocks(self.router.blocks, self.focused_block_id)

    def _refresh_status(self) -> None:
        # Also called by the autosaver, possibly after the widgets are gone
        autosaver = self.session.autosaver
        for panel in self.query(StatusPanel):
            panel.set_state(
                processing=self.session.is_processing,
                syncing=autosaver.is_syncing if autosaver else False,
                out_of_sync=autosaver.out_of_sync if autosaver else False,
                unsaved=autosaver.has_unsynced_changes if autosaver else False,
                error_message=self.error_message,
            )
