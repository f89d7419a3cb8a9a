"""Database helpers (engine handle and declarative base)."""

from .session import Base, Database

__all__ = ["Base", "Database"]
