# src/scooterbooter/db/__init__.py
"""Key-value store adapter and supporting utilities."""

from .keys import Key
from .session import Base, build_engine, build_sessionmaker, create_tables, drop_tables
from .store import GraphStore

__all__ = [
    "Base",
    "GraphStore",
    "Key",
    "build_engine",
    "build_sessionmaker",
    "create_tables",
    "drop_tables",
]
