"""AI response router - the reconciliation state machine.

The router owns the document, its undo history, the review staging area and
the clarification conversation, and is the only component that mutates them.
It consumes classified AI responses (append / review / review_immediate /
inquire) together with the user's current focus and decides what to touch.

Scope resolution (before dispatching on the response kind):
- a focused block with non-empty content -> single-block scope
- otherwise -> whole-document scope

Every mutating action snapshots the document into history strictly before
mutating it.
"""

from typing import Iterable, Optional, Union

from dictanote.models.ai_response import (
    AppendResponse,
    InquireResponse,
    ReviewImmediateResponse,
    ReviewResponse,
)
from dictanote.models.config import EditorConfig
from dictanote.models.conversation import ConversationTurn
from dictanote.models.document import Block, Document, MergeResult
from dictanote.models.interaction import RouteOutcome
from dictanote.models.suggestion import PendingSuggestion, SuggestionScope
from dictanote.services import events as ev
from dictanote.services.conversation import ClarificationConversation
from dictanote.services.diff import ChangeSize, classify_change
from dictanote.services.history import HistoryManager
from dictanote.services.review import ReviewStaging
from dictanote.utils.logging import get_logger


logger = get_logger(__name__)

AnyResponse = Union[AppendResponse, ReviewResponse, ReviewImmediateResponse, InquireResponse]


class ResponseRouter:
    """
    Reconciles classified AI responses into a block-structured document.

    Example:
        >>> router = ResponseRouter(Document.parse("- Buy milk"))
        >>> router.route(AppendResponse(content="- Buy eggs"))
        <RouteOutcome.APPENDED: 'appended'>
        >>> router.text
        '- Buy milk\\n\\n- Buy eggs'
    """

    def __init__(
        self,
        document: Optional[Document] = None,
        config: Optional[EditorConfig] = None,
        history: Optional[HistoryManager] = None,
        staging: Optional[ReviewStaging] = None,
        conversation: Optional[ClarificationConversation] = None,
        events: Optional[ev.EventEmitter] = None,
    ):
        """
        Initialize router.

        Args:
            document: Document to edit (defaults to a single empty block)
            config: Reconciliation policy (threshold, history depth, inquire floor)
            history: Undo/redo history (defaults to config.history_depth)
            staging: Review staging area
            conversation: Clarification conversation log
            events: Event emitter notified after every state transition
        """
        self.config = config or EditorConfig()
        self._document = document if document is not None else Document()
        self._history = history if history is not None else HistoryManager(self.config.history_depth)
        self._staging = staging if staging is not None else ReviewStaging()
        self._conversation = conversation if conversation is not None else ClarificationConversation()
        self.events = events if events is not None else ev.EventEmitter()

    # ===== Read-only accessors =====

    @property
    def text(self) -> str:
        """Current document text."""
        return self._document.render()

    @property
    def blocks(self) -> tuple[Block, ...]:
        return self._document.blocks

    @property
    def document(self) -> Document:
        """The owned document. Callers must mutate it only through the router."""
        return self._document

    @property
    def pending_suggestion(self) -> Optional[PendingSuggestion]:
        return self._staging.pending

    @property
    def conversation_turns(self) -> tuple[ConversationTurn, ...]:
        return self._conversation.turns

    @property
    def conversation_transcript(self) -> str:
        return self._conversation.as_transcript()

    @property
    def is_clarifying(self) -> bool:
        return self._conversation.is_clarifying

    @property
    def can_undo(self) -> bool:
        return self._history.can_undo

    @property
    def can_redo(self) -> bool:
        return self._history.can_redo

    def resolve_target(self, focused_block_id: Optional[str]) -> Optional[Block]:
        """
        Resolve the single-block scope for a response.

        Args:
            focused_block_id: Block the user is focused on, if any

        Returns:
            The focused block if it exists and has non-empty content,
            otherwise None (whole-document scope)
        """
        if focused_block_id is None:
            return None
        block = self._document.get(focused_block_id)
        if block is None or block.is_empty:
            return None
        return block

    def context_text(self, focused_block_id: Optional[str] = None) -> str:
        """
        Text the AI collaborator should see as context.

        Args:
            focused_block_id: Block the user is focused on, if any

        Returns:
            Focused block content for single-block scope, else the whole document
        """
        target = self.resolve_target(focused_block_id)
        if target is not None:
            return target.content
        return self.text

    # ===== AI response entry points =====

    def route(self, response: AnyResponse, focused_block_id: Optional[str] = None) -> RouteOutcome:
        """
        Reconcile one classified AI response into the document.

        Args:
            response: Classified response from the AI collaborator
            focused_block_id: Block focused when the request was made

        Returns:
            What was done with the response; DISCARDED if the focused block
            no longer exists

        Raises:
            TypeError: If response is not one of the four response kinds
        """
        if focused_block_id is not None and self._document.get(focused_block_id) is None:
            logger.info("response_discarded", response_type=response.type, focused_block_id=focused_block_id)
            return RouteOutcome.DISCARDED

        if isinstance(response, InquireResponse):
            outcome = self.apply_inquire(response, focused_block_id)
        elif isinstance(response, AppendResponse):
            outcome = self._resolving_clarification(self.apply_append(response, focused_block_id))
        elif isinstance(response, ReviewImmediateResponse):
            outcome = self._resolving_clarification(self.apply_review_immediate(response, focused_block_id))
        elif isinstance(response, ReviewResponse):
            outcome = self._resolving_clarification(self.apply_review(response, focused_block_id))
        else:
            raise TypeError(f"Unsupported AI response: {type(response).__name__}")

        logger.info(
            "response_routed",
            response_type=response.type,
            outcome=outcome.value,
            focused_block_id=focused_block_id,
        )
        return outcome

    def apply_append(self, response: AppendResponse, focused_block_id: Optional[str] = None) -> RouteOutcome:
        """
        Append new content.

        With a focused block, the content is joined onto that block with a
        blank line (or replaces it if the block is empty). Without one, the
        content is parsed into new blocks at the end of the document; a
        document holding only one empty block is replaced instead.

        Returns:
            APPENDED, or IGNORED for blank content
        """
        content = response.content
        if not content.strip():
            return RouteOutcome.IGNORED

        target = self._document.get(focused_block_id) if focused_block_id else None
        if target is not None:
            self._append_to_block(target, content)
            return RouteOutcome.APPENDED

        self._checkpoint()
        if len(self._document) == 1 and self._document.blocks[0].is_empty:
            self._document.replace_all(content)
        else:
            self._document.extend_from_text(content)
        self._document_changed("append")
        return RouteOutcome.APPENDED

    def apply_review(self, response: ReviewResponse, focused_block_id: Optional[str] = None) -> RouteOutcome:
        """
        Apply a rewrite, or stage it for confirmation if the change is large.

        The changed-character count between the target's current text and
        the proposal is compared against the configured threshold. Small
        changes are applied like review_immediate. Large ones snapshot
        history and stage a PendingSuggestion without touching the document.

        Returns:
            APPLIED or STAGED, or IGNORED if the proposal matches the current text
        """
        target = self.resolve_target(focused_block_id)
        original = target.content if target is not None else self.text
        if response.content == original:
            logger.debug("review_unchanged", scope="block" if target is not None else "document")
            return RouteOutcome.IGNORED

        size, changed = classify_change(
            original,
            response.content,
            self.config.diff_threshold,
            inclusive=self.config.threshold_inclusive,
        )
        logger.debug(
            "review_classified",
            changed_chars=changed,
            threshold=self.config.diff_threshold,
            size=size.value,
            scope="block" if target is not None else "document",
        )

        if size == ChangeSize.SMALL:
            self._replace_target(target, response.content, reason="review")
            return RouteOutcome.APPLIED

        self._checkpoint()
        suggestion = PendingSuggestion(
            scope=SuggestionScope.BLOCK if target is not None else SuggestionScope.DOCUMENT,
            block_id=target.block_id if target is not None else None,
            original=original,
            proposed=response.content,
            changed_chars=changed,
        )
        self._staging.stage(suggestion)
        self.events.emit(ev.SUGGESTION_STAGED, suggestion=suggestion)
        return RouteOutcome.STAGED

    def apply_review_immediate(
        self,
        response: ReviewImmediateResponse,
        focused_block_id: Optional[str] = None,
    ) -> RouteOutcome:
        """
        Apply a rewrite pre-classified as small by the collaborator.

        The tag is trusted for single-block scope. For whole-document scope
        the threshold is always applied, so this behaves like apply_review.

        Returns:
            APPLIED, STAGED for a large whole-document rewrite, or IGNORED
            if nothing changes
        """
        target = self.resolve_target(focused_block_id)
        if target is None:
            return self.apply_review(
                ReviewResponse(content=response.content, user_input=response.user_input),
                focused_block_id,
            )
        if response.content == target.content:
            return RouteOutcome.IGNORED

        self._replace_target(target, response.content, reason="review_immediate")
        return RouteOutcome.APPLIED

    def apply_inquire(self, response: InquireResponse, focused_block_id: Optional[str] = None) -> RouteOutcome:
        """
        Handle a clarifying question.

        Whole-document scope records the echoed utterance and the question in
        the conversation and enters the clarifying state. Single-block scope
        cannot hold a conversation: a question longer than the configured
        floor is appended to the block, anything shorter is dropped.

        Returns:
            CLARIFYING, APPENDED (inline fallback) or IGNORED (inline, too short)
        """
        target = self.resolve_target(focused_block_id)
        if target is not None:
            if len(response.content.strip()) > self.config.inquire_append_min_chars:
                logger.info("inline_inquire_appended", block_id=target.block_id)
                self._append_to_block(target, response.content)
                return RouteOutcome.APPENDED
            logger.info("inline_inquire_dropped", block_id=target.block_id, length=len(response.content))
            return RouteOutcome.IGNORED

        self._conversation.add_exchange(response.user_input, response.content)
        self._conversation_updated()
        return RouteOutcome.CLARIFYING

    # ===== Review confirmation =====

    def confirm(self) -> bool:
        """
        Accept the pending suggestion.

        Block scope replaces the block's content; document scope re-parses
        the proposal into a fresh block sequence. History is not pushed here:
        the snapshot taken at staging time covers stage -> confirm as one
        undoable step.

        Returns:
            True if a suggestion was applied, False if none was pending (or
            its block no longer exists)
        """
        suggestion = self._staging.take()
        if suggestion is None:
            logger.debug("confirm_skipped", reason="no_pending_suggestion")
            return False

        applied = True
        if suggestion.scope == SuggestionScope.BLOCK:
            applied = self._document.update(suggestion.block_id, suggestion.proposed) is not None
        else:
            self._document.replace_all(suggestion.proposed)

        if applied:
            logger.info("suggestion_confirmed", scope=suggestion.scope.value, block_id=suggestion.block_id)
            self._document_changed("confirm")
        else:
            logger.warning("suggestion_target_missing", block_id=suggestion.block_id)

        self.events.emit(ev.SUGGESTION_RESOLVED, suggestion=suggestion, accepted=applied)
        return applied

    def reject(self) -> bool:
        """
        Discard the pending suggestion without touching the document.

        Returns:
            True if a suggestion was discarded
        """
        return self._discard_pending("reject")

    def clear_conversation(self) -> bool:
        """
        Leave the clarifying state and discard the turn log (not undoable).

        Returns:
            True if there was a conversation to clear
        """
        cleared = self._conversation.clear()
        if cleared:
            self._conversation_updated()
        return cleared

    # ===== History =====

    def undo(self) -> bool:
        """
        Restore the state before the last action.

        A pending suggestion is discarded first; its staging snapshot is
        the entry this undo pops.

        Returns:
            True if something was undone, False if history was empty
        """
        self._discard_pending("undo")
        previous = self._history.undo(self._document.snapshot())
        if previous is None:
            return False
        self._document.restore(previous)
        self._document_changed("undo")
        self._history_changed()
        return True

    def redo(self) -> bool:
        """
        Re-apply the last undone action.

        Returns:
            True if something was redone, False if there was nothing to redo
        """
        self._discard_pending("redo")
        following = self._history.redo(self._document.snapshot())
        if following is None:
            return False
        self._document.restore(following)
        self._document_changed("redo")
        self._history_changed()
        return True

    # ===== Manual edits =====

    def add_block(self, content: str = "") -> Block:
        """Append a block at the end of the document."""
        self._checkpoint()
        block = self._document.append(content)
        self._document_changed("add_block")
        return block

    def insert_block_after(self, block_id: str, content: str = "") -> Optional[Block]:
        """Insert a block after block_id (None and no history entry if unknown)."""
        if self._document.get(block_id) is None:
            return None
        self._checkpoint()
        block = self._document.insert_after(block_id, content)
        self._document_changed("insert_block")
        return block

    def edit_block(self, block_id: str, content: str) -> Optional[Block]:
        """Replace a block's content typed by the user.

        Returns:
            The block, or None if block_id is unknown. Unchanged content is a
            no-op that records no history.
        """
        block = self._document.get(block_id)
        if block is None:
            return None
        if block.content == content:
            return block
        self._checkpoint()
        self._document.update(block_id, content)
        self._document_changed("edit_block")
        return block

    def delete_block(self, block_id: str) -> bool:
        """Delete a block (the last block is replaced by an empty one)."""
        if self._document.get(block_id) is None:
            return False
        self._checkpoint()
        self._document.delete(block_id)
        self._document_changed("delete_block")
        return True

    def merge_with_previous(self, block_id: str) -> Optional[MergeResult]:
        """
        Merge a block into its predecessor.

        Returns:
            MergeResult for restoring the cursor, or None for the first block
            (document and history unchanged)
        """
        if self._document.index_of(block_id) <= 0:
            return None
        self._checkpoint()
        result = self._document.merge_with_previous(block_id)
        self._document_changed("merge")
        return result

    def load(self, blocks: Union[Document, Iterable[tuple[str, str]]]) -> None:
        """
        Replace the document and reset history, staging and conversation.

        Args:
            blocks: A Document or (block_id, content) pairs
        """
        self._document = blocks if isinstance(blocks, Document) else Document.from_pairs(blocks)
        self._history.clear()
        self._staging.discard()
        self._conversation.clear()
        logger.info("document_loaded", block_count=len(self._document))
        self._document_changed("load")

    # ===== Internals =====

    def _checkpoint(self) -> None:
        """Snapshot the document into history before a mutation."""
        if self._history.push(self._document.snapshot()):
            self._history_changed()

    def _history_changed(self) -> None:
        self.events.emit(ev.HISTORY_CHANGED, can_undo=self.can_undo, can_redo=self.can_redo)

    def _append_to_block(self, block: Block, content: str) -> None:
        self._checkpoint()
        new_content = content if block.is_empty else block.content + "\n\n" + content
        self._document.update(block.block_id, new_content)
        self._document_changed("append")

    def _replace_target(self, target: Optional[Block], content: str, reason: str) -> None:
        self._checkpoint()
        if target is not None:
            self._document.update(target.block_id, content)
        else:
            self._document.replace_all(content)
        self._document_changed(reason)

    def _discard_pending(self, reason: str) -> bool:
        suggestion = self._staging.take()
        if suggestion is None:
            return False

        logger.info(
            "suggestion_rejected",
            scope=suggestion.scope.value,
            block_id=suggestion.block_id,
            reason=reason,
        )
        self.events.emit(ev.SUGGESTION_RESOLVED, suggestion=suggestion, accepted=False)
        return True

    def _resolving_clarification(self, outcome: RouteOutcome) -> RouteOutcome:
        """A non-question response ends any open clarification."""
        if self._conversation.is_clarifying:
            self._conversation.clear()
            self._conversation_updated()
        return outcome

    def _document_changed(self, reason: str) -> None:
        self.events.emit(ev.DOCUMENT_CHANGED, reason=reason)

    def _conversation_updated(self) -> None:
        self.events.emit(
            ev.CONVERSATION_UPDATED,
            turns=self._conversation.turns,
            clarifying=self._conversation.is_clarifying,
        )
