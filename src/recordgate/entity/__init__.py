# recordgate/entity/__init__.py
"""Entity pipeline: create, fetch and fetch-collection middleware."""

from recordgate.entity.config import EntityFactoryConfig, EntityHooks
from recordgate.entity.factory import EntityFactory
from recordgate.entity.request import EntityRequest

__all__ = ["EntityFactory", "EntityFactoryConfig", "EntityHooks", "EntityRequest"]
