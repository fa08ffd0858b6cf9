"""
Exceptions raised by the table engine.

Protocol violations (wrong seat, wrong stage, illegal amount) are not
exceptions: the engine drops them silently. Only conditions the caller has
to handle, or programming defects, are raised.
"""


class OrthrusError(Exception):
    """Base class for table errors."""


class EmptyDeck(OrthrusError):
    """Raised when drawing from a deck with no cards left."""


class JoinRejected(OrthrusError):
    """Raised when a seat cannot be granted."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason
