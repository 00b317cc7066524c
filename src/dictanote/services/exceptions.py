"""Custom exceptions for Dictanote services."""

from typing import Optional


class DictanoteError(Exception):
    """Base class for errors raised by Dictanote services."""


class CollaboratorError(DictanoteError):
    """Raised when the AI collaborator fails to produce a response.

    Covers network errors, HTTP errors and model failures. The document is
    never modified when this is raised, and the core does not retry.

    Attributes:
        message: Human-readable error message
        surface: Interaction surface the request was dispatched on (if known)
    """

    def __init__(self, message: str, surface: Optional[str] = None):
        """Initialize CollaboratorError.

        Args:
            message: Human-readable error message
            surface: Interaction surface the request was dispatched on
        """
        self.message = message
        self.surface = surface
        super().__init__(message)


class InteractionBusyError(DictanoteError):
    """Raised when a second AI request is dispatched on a busy surface.

    Each surface (the document-level surface and every block-level surface)
    allows at most one outstanding interaction.

    Attributes:
        surface: The surface that is already awaiting a response
    """

    def __init__(self, surface: str):
        """Initialize InteractionBusyError.

        Args:
            surface: The surface that is already awaiting a response
        """
        self.surface = surface
        super().__init__(f"An AI interaction is already in progress on surface: {surface}")


class PersistenceError(DictanoteError):
    """Raised when a document cannot be saved or loaded.

    Attributes:
        document_id: Identifier of the affected document
        message: Human-readable error message
    """

    def __init__(self, document_id: str, message: str = "Persistence operation failed"):
        """Initialize PersistenceError.

        Args:
            document_id: Identifier of the affected document
            message: Human-readable error message
        """
        self.document_id = document_id
        self.message = message
        super().__init__(f"{message}: {document_id}")
