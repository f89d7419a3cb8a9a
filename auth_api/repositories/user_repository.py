"""High-level data access helpers for user documents, backed by SQLAlchemy."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError

from auth_api.core.security import hash_password, make_salt
from auth_api.core.utils import normalize_email
from auth_api.db.models import ROLE_USER, PendingSignup, User, new_user_id
from auth_api.db.session import Database


class DuplicateEmailError(Exception):
    """Another user already owns this email."""


def _iso(value: datetime | None) -> str | None:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


def to_public(user: User) -> dict[str, Any]:
    """Public view of a user: credentials and the reset link never leave the store."""
    return {
        "_id": user.id,
        "name": user.name,
        "email": user.email,
        "role": user.role,
        "createdAt": _iso(user.created_at),
        "updatedAt": _iso(user.updated_at),
    }


class UserRepository:
    """CRUD helpers wrapping the SQLAlchemy session."""

    def __init__(self, database: Database):
        self.database = database

    # -------------------------- users --------------------------
    def get_user(self, user_id: str) -> Optional[User]:
        if not user_id:
            return None
        with self.database.session() as session:
            return session.get(User, user_id)

    def get_user_by_email(self, email: str) -> Optional[User]:
        email = normalize_email(email)
        if not email:
            return None
        with self.database.session() as session:
            stmt = select(User).where(User.email == email)
            return session.execute(stmt).scalar_one_or_none()

    def get_user_by_reset_link(self, link: str) -> Optional[User]:
        if not link:
            return None
        with self.database.session() as session:
            stmt = select(User).where(User.reset_password_link == link)
            return session.execute(stmt).scalars().first()

    def count_users(self) -> int:
        with self.database.session() as session:
            return session.execute(select(func.count()).select_from(User)).scalar_one()

    def create_user(
        self,
        name: str,
        email: str,
        password: str | None = None,
        *,
        hashed_password: str | None = None,
        salt: str | None = None,
        role: str = ROLE_USER,
    ) -> User:
        """Insert a user, hashing ``password`` unless an already hashed credential is supplied."""
        if hashed_password is None or salt is None:
            if password is None:
                raise ValueError("A password or a hashed credential is required")
            salt = make_salt()
            hashed_password = hash_password(password, salt)
        now = datetime.now(timezone.utc)
        entity = User(
            id=new_user_id(),
            name=(name or "").strip(),
            email=normalize_email(email),
            hashed_password=hashed_password,
            salt=salt,
            role=role,
            reset_password_link=None,
            created_at=now,
            updated_at=now,
        )
        with self.database.session() as session:
            session.add(entity)
            try:
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                raise DuplicateEmailError(entity.email) from exc
            session.refresh(entity)
            return entity

    def update_user(self, user_id: str, **fields: Any) -> Optional[User]:
        allowed = {"name", "role", "hashed_password", "salt", "reset_password_link"}
        unknown = set(fields) - allowed
        if unknown:
            raise ValueError(f"Unsupported user fields: {', '.join(sorted(unknown))}")
        with self.database.session() as session:
            user = session.get(User, user_id)
            if not user:
                return None
            for key, value in fields.items():
                setattr(user, key, value)
            user.updated_at = datetime.now(timezone.utc)
            session.commit()
            session.refresh(user)
            return user

    def set_password(self, user_id: str, password: str, *, clear_reset_link: bool = False) -> Optional[User]:
        salt = make_salt()
        fields: dict[str, Any] = {"hashed_password": hash_password(password, salt), "salt": salt}
        if clear_reset_link:
            fields["reset_password_link"] = None
        return self.update_user(user_id, **fields)

    def set_reset_link(self, user_id: str, link: Optional[str]) -> bool:
        with self.database.session() as session:
            stmt = (
                update(User)
                .where(User.id == user_id)
                .values(reset_password_link=link, updated_at=datetime.now(timezone.utc))
            )
            result = session.execute(stmt)
            session.commit()
            return result.rowcount > 0

    def set_role(self, email: str, role: str) -> Optional[User]:
        user = self.get_user_by_email(email)
        if not user:
            return None
        return self.update_user(user.id, role=role)

    # -------------------------- pending signups --------------------------
    def get_pending_signup(self, email: str) -> Optional[PendingSignup]:
        with self.database.session() as session:
            return session.get(PendingSignup, normalize_email(email))

    def upsert_pending_signup(self, email: str, expires_at: datetime) -> PendingSignup:
        email = normalize_email(email)
        now = datetime.now(timezone.utc)
        with self.database.session() as session:
            entity = session.get(PendingSignup, email)
            if not entity:
                entity = PendingSignup(email=email, expires_at=expires_at, created_at=now)
                session.add(entity)
            else:
                entity.expires_at = expires_at
                entity.created_at = now
            session.commit()
            session.refresh(entity)
            return entity

    def delete_pending_signup(self, email: str) -> None:
        with self.database.session() as session:
            session.execute(delete(PendingSignup).where(PendingSignup.email == normalize_email(email)))
            session.commit()
