"""Dependency persistence backends.

Three interchangeable DependencyStore implementations: label-encoded edges on
the tracker, the tracker's native relation API, and a local JSON cache.
"""

from issuegraph.storage.base import DependencyStore, ItemStore
from issuegraph.storage.factory import create_store
from issuegraph.storage.label_store import LabelDependencyStore
from issuegraph.storage.local_store import LocalDependencyStore
from issuegraph.storage.native_store import NativeDependencyStore

__all__ = [
    "DependencyStore",
    "ItemStore",
    "LabelDependencyStore",
    "LocalDependencyStore",
    "NativeDependencyStore",
    "create_store",
]
