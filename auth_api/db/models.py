"""SQLAlchemy models for user documents and pending signups."""
from __future__ import annotations

import secrets

from sqlalchemy import Column, DateTime, String, Text, func

from .session import Base

ROLE_USER = "user"
ROLE_ADMIN = "admin"


def new_user_id() -> str:
    return secrets.token_hex(12)


class User(Base):
    __tablename__ = "users"

    id = Column(String(24), primary_key=True, default=new_user_id)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(Text, nullable=False)
    salt = Column(String(64), nullable=False)
    role = Column(String(16), default=ROLE_USER, nullable=False)
    reset_password_link = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)


class PendingSignup(Base):
    """Email reserved between a signup request and its activation."""

    __tablename__ = "pending_signups"

    email = Column(String(255), primary_key=True)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
