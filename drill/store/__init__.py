"""
Item storage - the document-store contract and its implementations.
"""

from drill.store.memory import InMemoryItemStore
from drill.store.ports import (
    CheckpointStore,
    ItemContent,
    ItemStore,
    MatrixStore,
    ReviewLogEntry,
)

__all__ = [
    "CheckpointStore",
    "ItemContent",
    "ItemStore",
    "MatrixStore",
    "ReviewLogEntry",
    "InMemoryItemStore",
]
