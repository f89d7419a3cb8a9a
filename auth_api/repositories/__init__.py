"""
Persistence adapters.

Services depend on these repositories rather than touching SQLAlchemy
sessions directly.
"""

from .user_repository import UserRepository, to_public

__all__ = ["UserRepository", "to_public"]
