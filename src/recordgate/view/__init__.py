# recordgate/view/__init__.py
"""Headless views over in-memory collections."""

from recordgate.view.base import Region, View
from recordgate.view.collection import Collection, CollectionPool, Model
from recordgate.view.collection_view import CollectionView
from recordgate.view.source import HttpCollectionSource

__all__ = [
    "Collection",
    "CollectionPool",
    "CollectionView",
    "HttpCollectionSource",
    "Model",
    "Region",
    "View",
]
