"""Database package initialization."""

from .base import Base
from .connection import get_db, get_engine, init_db, SessionLocal

__all__ = [
    'Base',
    'get_db',
    'get_engine',
    'init_db',
    'SessionLocal'
]
