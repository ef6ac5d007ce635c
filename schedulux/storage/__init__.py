# schedulux/storage/__init__.py
from .base import SchedulingStore
from .sqlalchemy_store import SqlAlchemyStore

__all__ = ["SchedulingStore", "SqlAlchemyStore"]
