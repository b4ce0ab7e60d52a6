"""storage/__init__.py"""
from .database import Database
from .repository import EntityRepository, StoreReadError

__all__ = ["Database", "EntityRepository", "StoreReadError"]
