"""
Exceptions raised by the scheduling engine.
"""


class DrillError(Exception):
    """Base class for all drill errors."""


class InvalidInput(DrillError, ValueError):
    """Quality outside 0-5 or negative repetition counters."""


class UnknownAlgorithm(DrillError, ValueError):
    """Algorithm selector that does not name a known strategy."""


class EmptyQueue(DrillError, RuntimeError):
    """A pop was attempted while the queue had nothing poppable."""


class SessionStateError(DrillError, RuntimeError):
    """Operation not allowed in the controller's current state."""


class ItemStoreError(DrillError):
    """
    Reading or writing one item in the document store failed.

    Carries the item reference so the session can drop that item only.
    """

    def __init__(self, item_ref: str, message: str):
        super().__init__(f"{item_ref}: {message}")
        self.item_ref = item_ref
