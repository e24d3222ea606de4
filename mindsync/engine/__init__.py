"""Engine components orchestrating fetch → map → reconcile → encode."""

from .fetcher import FetchResponse, Fetcher
from .reconciler import BranchResult, FeedPage, Reconciler
from .store import Item, ItemStore

__all__ = [
    "BranchResult",
    "FeedPage",
    "FetchResponse",
    "Fetcher",
    "Item",
    "ItemStore",
    "Reconciler",
]
