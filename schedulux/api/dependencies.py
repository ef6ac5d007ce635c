# ============================================================================
# FILE: schedulux/api/dependencies.py
# Request-scoped dependencies shared by the v1 routers
# ============================================================================
from fastapi import Depends
from sqlalchemy.orm import Session

from schedulux.config.database import get_db
from schedulux.storage.sqlalchemy_store import SqlAlchemyStore


def get_store(db: Session = Depends(get_db)) -> SqlAlchemyStore:
    """Scheduling store bound to the request's database session"""
    return SqlAlchemyStore(db)
