"""Edit session: dispatches utterances to the AI collaborator and routes the results.

All state lives on one asyncio event loop. The only suspension point is the
collaborator call; each interaction surface (the document-level surface and
every block surface) allows at most one outstanding request.
"""

from typing import Optional, Union

from dictanote.models.config import Config, EditorConfig
from dictanote.models.document import Document
from dictanote.models.interaction import (
    GLOBAL_SURFACE,
    InteractionRequest,
    InteractionResult,
    InteractionState,
    RouteOutcome,
)
from dictanote.services import events as ev
from dictanote.services.assistant import AICollaborator, AssistantRequest
from dictanote.services.autosave import DEFAULT_AUTOSAVE_DELAY, AutoSaver
from dictanote.services.exceptions import CollaboratorError, InteractionBusyError
from dictanote.services.router import ResponseRouter
from dictanote.services.storage import DocumentStore, document_to_stored, stored_to_document
from dictanote.utils.logging import get_logger


logger = get_logger(__name__)


class InteractionLatch:
    """
    Per-surface latch: IDLE -> AWAITING_RESPONSE -> IDLE.

    The request itself ends in RESOLVED; the surface is free again as soon
    as its response has been handled.

    Attributes:
        surface: Surface this latch guards
        state: Current latch state
        request: Request currently awaiting a response (if any)
    """

    def __init__(self, surface: str):
        self.surface = surface
        self.state = InteractionState.IDLE
        self.request: Optional[InteractionRequest] = None

    @property
    def is_busy(self) -> bool:
        return self.state == InteractionState.AWAITING_RESPONSE

    def acquire(self, request: InteractionRequest) -> None:
        """
        Mark the surface as awaiting a response for request.

        Raises:
            InteractionBusyError: If a request is already outstanding on this surface
        """
        if self.is_busy:
            raise InteractionBusyError(self.surface)
        self.state = InteractionState.AWAITING_RESPONSE
        self.request = request
        request.state = InteractionState.AWAITING_RESPONSE

    def resolve(self) -> None:
        """Mark the outstanding request RESOLVED and return the surface to IDLE."""
        if self.request is not None:
            self.request.state = InteractionState.RESOLVED
        self.request = None
        self.state = InteractionState.IDLE


class EditSession:
    """
    One user's editing session over a single document.

    Example:
        >>> session = EditSession(ResponseRouter(Document.parse("- Buy milk")), assistant)
        >>> result = await session.submit(GLOBAL_SURFACE, "and eggs")
        >>> result.outcome
        <RouteOutcome.APPENDED: 'appended'>
    """

    def __init__(
        self,
        router: ResponseRouter,
        collaborator: AICollaborator,
        autosaver: Optional[AutoSaver] = None,
    ):
        """
        Initialize session.

        Args:
            router: Router owning the document
            collaborator: AI collaborator that classifies utterances
            autosaver: Optional autosaver, scheduled on every document change
        """
        self.router = router
        self.collaborator = collaborator
        self.autosaver = autosaver
        self.events = router.events
        self._latches: dict[str, InteractionLatch] = {}

        if autosaver is not None:
            self.events.on(ev.DOCUMENT_CHANGED, self._on_document_changed)

    @classmethod
    def open(
        cls,
        store: DocumentStore,
        document_id: str,
        collaborator: AICollaborator,
        config: Optional[Union[Config, EditorConfig]] = None,
        autosave_delay: Optional[float] = None,
    ) -> "EditSession":
        """
        Load a document from a store (or start an empty one) with autosave.

        Args:
            store: Persistence collaborator
            document_id: Document to open
            collaborator: AI collaborator
            config: Full config or just the editor section
            autosave_delay: Debounce delay (defaults to config.storage.autosave_delay)

        Returns:
            Ready session

        Raises:
            PersistenceError: If the stored document cannot be read
        """
        if isinstance(config, Config):
            editor_config = config.editor
            delay = config.storage.autosave_delay
        else:
            editor_config = config
            delay = DEFAULT_AUTOSAVE_DELAY
        if autosave_delay is not None:
            delay = autosave_delay

        stored = store.load(document_id)
        document = stored_to_document(stored) if stored is not None else Document()
        router = ResponseRouter(document, editor_config)

        autosaver = AutoSaver(
            store,
            document_id,
            lambda: document_to_stored(router.document),
            delay=delay,
        )
        if stored is not None:
            autosaver.mark_synced()

        logger.info(
            "session_opened",
            document_id=document_id,
            found=stored is not None,
            block_count=len(document),
        )
        return cls(router, collaborator, autosaver)

    # ===== Latch state =====

    @property
    def is_processing(self) -> bool:
        """True while any surface is awaiting a collaborator response."""
        return any(latch.is_busy for latch in self._latches.values())

    def is_busy(self, surface: str = GLOBAL_SURFACE) -> bool:
        latch = self._latches.get(surface)
        return latch is not None and latch.is_busy

    def state_of(self, surface: str = GLOBAL_SURFACE) -> InteractionState:
        latch = self._latches.get(surface)
        return latch.state if latch is not None else InteractionState.IDLE

    # ===== Interaction lifecycle =====

    def prepare(
        self,
        surface: str,
        utterance: str,
        focused_block_id: Optional[str] = None,
    ) -> InteractionRequest:
        """
        Create a request without dispatching it.

        A block surface always focuses its own block.
        """
        if surface != GLOBAL_SURFACE:
            focused_block_id = surface
        return InteractionRequest(surface=surface, utterance=utterance, focused_block_id=focused_block_id)

    def cancel(self, request: InteractionRequest) -> bool:
        """
        Cancel a request before it is dispatched.

        Returns:
            True if cancelled; False once dispatched (no mid-flight cancellation)
        """
        if request.state != InteractionState.IDLE:
            logger.debug("interaction_cancel_refused", request_id=request.request_id, state=request.state.value)
            return False
        request.cancelled = True
        logger.info("interaction_cancelled", request_id=request.request_id, surface=request.surface)
        return True

    async def dispatch(self, request: InteractionRequest) -> InteractionResult:
        """
        Send a prepared request to the collaborator and route the response.

        Args:
            request: Request from prepare()

        Returns:
            InteractionResult with the routing outcome, DISCARDED for cancelled
            or abandoned requests, or an error message on collaborator failure

        Raises:
            InteractionBusyError: If the surface already has an outstanding request
            ValueError: If the request was already dispatched
        """
        if request.cancelled:
            return InteractionResult(request=request, outcome=RouteOutcome.DISCARDED)
        if request.state != InteractionState.IDLE:
            raise ValueError(f"Interaction already dispatched: {request.request_id}")

        latch = self._latches.setdefault(request.surface, InteractionLatch(request.surface))
        latch.acquire(request)
        self._interaction_changed(request)

        try:
            assistant_request, focus = self._build_request(request)
            logger.info(
                "interaction_dispatched",
                request_id=request.request_id,
                surface=request.surface,
                inline=assistant_request.inline,
                clarifying=assistant_request.conversation is not None,
            )

            try:
                response = await self.collaborator.respond(assistant_request)
            except CollaboratorError as e:
                logger.warning(
                    "interaction_failed",
                    request_id=request.request_id,
                    surface=request.surface,
                    error=e.message,
                )
                return InteractionResult(request=request, error=e.message)

            if request.abandoned:
                logger.info("interaction_discarded", request_id=request.request_id, surface=request.surface)
                return InteractionResult(request=request, outcome=RouteOutcome.DISCARDED, response=response)

            if assistant_request.inline and self.router.resolve_target(focus) is None:
                logger.info(
                    "interaction_discarded",
                    request_id=request.request_id,
                    surface=request.surface,
                    reason="target_gone",
                )
                return InteractionResult(request=request, outcome=RouteOutcome.DISCARDED, response=response)

            outcome = self.router.route(response, focus)
            return InteractionResult(request=request, outcome=outcome, response=response)

        finally:
            latch.resolve()
            self._interaction_changed(request)

    async def submit(
        self,
        surface: str,
        utterance: str,
        focused_block_id: Optional[str] = None,
    ) -> InteractionResult:
        """Prepare and dispatch in one step."""
        return await self.dispatch(self.prepare(surface, utterance, focused_block_id))

    def abandon(self, surface: str = GLOBAL_SURFACE) -> bool:
        """
        Abandon the outstanding request on a surface (e.g. the user navigated away).

        The response is still awaited but discarded without touching the document.

        Returns:
            True if a request was outstanding
        """
        latch = self._latches.get(surface)
        if latch is None or latch.request is None:
            return False
        latch.request.abandoned = True
        logger.info("interaction_abandoned", request_id=latch.request.request_id, surface=surface)
        return True

    async def predict_continuation(self, focused_block_id: Optional[str] = None) -> str:
        """Ghost-text prediction for the focused block (or the document end)."""
        return await self.collaborator.predict_continuation(self.router.context_text(focused_block_id))

    # ===== Persistence =====

    async def save(self) -> bool:
        """
        Flush pending changes to the store now.

        Returns:
            True if in sync afterwards (or there is no store)
        """
        if self.autosaver is None:
            return True
        return await self.autosaver.flush()

    async def close(self) -> bool:
        """Write outstanding changes before the session ends."""
        if self.autosaver is None:
            return True
        self.events.off(ev.DOCUMENT_CHANGED, self._on_document_changed)
        return await self.autosaver.close()

    # ===== Internals =====

    def _build_request(self, request: InteractionRequest) -> tuple[AssistantRequest, Optional[str]]:
        """Assemble the collaborator request and the focus to route with.

        Answers to a clarifying question are routed at whole-document scope.
        """
        if request.surface == GLOBAL_SURFACE and self.router.is_clarifying:
            return AssistantRequest(
                utterance=request.utterance,
                context=self.router.text,
                conversation=self.router.conversation_transcript,
                request_id=request.request_id,
            ), None

        target = self.router.resolve_target(request.focused_block_id)
        if target is not None:
            return AssistantRequest(
                utterance=request.utterance,
                context=target.content,
                inline=True,
                request_id=request.request_id,
            ), request.focused_block_id

        return AssistantRequest(
            utterance=request.utterance,
            context=self.router.text,
            request_id=request.request_id,
        ), request.focused_block_id

    def _on_document_changed(self, **payload) -> None:
        self.autosaver.schedule()

    def _interaction_changed(self, request: InteractionRequest) -> None:
        self.events.emit(
            ev.INTERACTION_CHANGED,
            surface=request.surface,
            state=self.state_of(request.surface),
            processing=self.is_processing,
        )
