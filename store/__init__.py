"""Zustands-Kern: Aktionen, Reducer und EntityStore."""

from .actions import Action, ACTION_ADAPTER, ACTION_TYPES, Direction, new_id
from .entity_store import EntityStore
from .errors import IntegrityError, StoreError
from .reducer import reduce

__all__ = [
    "Action",
    "ACTION_ADAPTER",
    "ACTION_TYPES",
    "Direction",
    "new_id",
    "EntityStore",
    "IntegrityError",
    "StoreError",
    "reduce",
]
