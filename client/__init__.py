"""Client-side data layer for the expense sharing API."""

from .http import ApiClient, NetworkOrHttpError
from .mirror import CollectionMirror, EntryState, OptimisticEntry
from .sorting import sort_records

__all__ = [
    "ApiClient",
    "CollectionMirror",
    "EntryState",
    "NetworkOrHttpError",
    "OptimisticEntry",
    "sort_records",
]
