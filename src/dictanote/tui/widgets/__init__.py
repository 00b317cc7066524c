"""Textual widget components."""

from dictanote.tui.widgets.block_view import BlockView
from dictanote.tui.widgets.conversation_panel import ConversationPanel
from dictanote.tui.widgets.review_panel import ReviewPanel
from dictanote.tui.widgets.status_panel import StatusPanel

__all__ = [
    "BlockView",
    "ConversationPanel",
    "ReviewPanel",
    "StatusPanel",
]
