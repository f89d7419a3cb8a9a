"""
Signup, activation, signin and password reset use cases.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any
import logging

from auth_api.core.config import Settings
from auth_api.core.errors import AuthFailure, NotFoundError, UpstreamFailure, ValidationError
from auth_api.core.mailer import Mailer
from auth_api.core.security import MIN_PASSWORD_LENGTH, make_salt, hash_password, verify_password
from auth_api.core.tokens import InvalidToken, TokenPurpose, TokenService
from auth_api.core.utils import client_url, is_valid_email, normalize_email
from auth_api.repositories.user_repository import DuplicateEmailError, UserRepository, to_public
from auth_api.services.session_service import SessionService

logger = logging.getLogger(__name__)

EMAIL_TAKEN = "Email is taken."


@dataclass
class LoginSuccess:
    token: str
    user: dict[str, Any]

    def as_dict(self) -> dict[str, Any]:
        return {"token": self.token, "user": self.user}


def _as_utc(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    # SQLite hands back naive datetimes; they were written as UTC.
    return value.astimezone(timezone.utc) if value.tzinfo else value.replace(tzinfo=timezone.utc)


@dataclass
class AuthService:
    """Handles signup/activation, signin and forgot/reset password flows."""

    repository: UserRepository
    mailer: Mailer
    tokens: TokenService
    sessions: SessionService
    settings: Settings

    # -------------------------------------- helpers --------------------------------------
    def _now(self) -> datetime:
        return datetime.now(timezone.utc)

    def _email_taken(self, email: str) -> bool:
        if self.repository.get_user_by_email(email):
            return True
        pending = self.repository.get_pending_signup(email)
        return bool(pending and _as_utc(pending.expires_at) > self._now())

    def _activation_email_html(self, activate_url: str) -> str:
        return f"""
        <h1>Please use the following link to activate your account</h1>
        <p><a href="{activate_url}">{activate_url}</a></p>
        <hr />
        <p>This email may contain sensitive information</p>
        <p>{self.settings.client_url}</p>
        """

    def _reset_email_html(self, reset_url: str) -> str:
        return f"""
        <h1>Hi, we have received a request to reset your password.
        If you did not make the request, just ignore this email. Otherwise,
        you can reset your password using this link:</h1>
        <p><a href="{reset_url}">{reset_url}</a></p>
        <hr />
        <p>This email may contain sensitive information</p>
        <p>{self.settings.client_url}</p>
        """

    # -------------------------------------- signup --------------------------------------
    def signup(self, name: str, email: str, password: str) -> str:
        name = (name or "").strip()
        email = normalize_email(email)
        if not name:
            raise ValidationError("Name is required")
        if not is_valid_email(email):
            raise ValidationError("Must be a valid email address")
        if len(password or "") < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")
        if self._email_taken(email):
            raise ValidationError(EMAIL_TAKEN)

        salt = make_salt()
        ttl = timedelta(seconds=self.settings.activation_token_ttl_seconds)
        token = self.tokens.issue(
            TokenPurpose.ACTIVATION,
            {"name": name, "email": email, "hashed_password": hash_password(password, salt), "salt": salt},
            ttl,
        )
        self.repository.upsert_pending_signup(email, self._now() + ttl)
        activate_url = client_url(self.settings.client_url, f"/auth/activate/{token}")
        sent = self.mailer.send(
            "Account activation link",
            email,
            self._activation_email_html(activate_url),
            f"Activate your account: {activate_url}",
        )
        if not sent:
            self.repository.delete_pending_signup(email)
            raise UpstreamFailure("Signup email sent error")
        logger.info("Activation email sent to %s", email)
        return f"Email has been sent to {email}. Follow the instruction to activate your account."

    # -------------------------------------- activation --------------------------------------
    def activate(self, token: str) -> str:
        if not (token or "").strip():
            raise AuthFailure("There is no activation token.", status_code=401)
        try:
            claims = self.tokens.verify(TokenPurpose.ACTIVATION, token)
        except InvalidToken as exc:
            logger.info("Rejected activation token: %s", exc)
            raise AuthFailure("Expired link. Signup again.", status_code=401) from exc

        email = normalize_email(claims.get("email"))
        hashed, salt = claims.get("hashed_password"), claims.get("salt")
        if not (email and hashed and salt):
            raise AuthFailure("Expired link. Signup again.", status_code=401)
        try:
            user = self.repository.create_user(
                claims.get("name") or "",
                email,
                hashed_password=hashed,
                salt=salt,
            )
        except DuplicateEmailError as exc:
            raise ValidationError(EMAIL_TAKEN) from exc
        self.repository.delete_pending_signup(email)
        logger.info("Activated account %s for %s", user.id, email)
        return "Signup Success. Please Sign in."

    # -------------------------------------- signin --------------------------------------
    def signin(self, email: str, password: str) -> LoginSuccess:
        user = self.repository.get_user_by_email(email)
        if not user:
            raise AuthFailure("User does not exist.")
        if not verify_password(password or "", user.hashed_password):
            raise AuthFailure("Email and password do not match")
        return LoginSuccess(token=self.sessions.issue(user.id), user=to_public(user))

    # -------------------------------------- password reset --------------------------------------
    def forgot_password(self, email: str) -> str:
        email = normalize_email(email)
        user = self.repository.get_user_by_email(email)
        if not user:
            raise NotFoundError("User with that email does not exist")
        token = self.tokens.issue(
            TokenPurpose.RESET,
            {"_id": user.id, "name": user.name},
            timedelta(seconds=self.settings.reset_token_ttl_seconds),
        )
        if not self.repository.set_reset_link(user.id, token):
            raise UpstreamFailure("Update user error")
        reset_url = client_url(self.settings.client_url, f"/auth/password/reset/{token}")
        sent = self.mailer.send(
            "Password Reset Link",
            email,
            self._reset_email_html(reset_url),
            f"Reset your password: {reset_url}",
        )
        if not sent:
            raise UpstreamFailure("Reset email sent error")
        return f"Email has been sent to {email}. Follow the instruction to reset your account."

    def reset_password(self, reset_link: str, new_password: str) -> str:
        reset_link = (reset_link or "").strip()
        try:
            self.tokens.verify(TokenPurpose.RESET, reset_link)
        except InvalidToken as exc:
            raise AuthFailure("Expired link. Try again.") from exc
        user = self.repository.get_user_by_reset_link(reset_link)
        if not user:
            raise AuthFailure("Something went wrong. Try later.")
        if len(new_password or "") < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"Password should be min {MIN_PASSWORD_LENGTH} characters long")
        self.repository.set_password(user.id, new_password, clear_reset_link=True)
        logger.info("Password reset for user %s", user.id)
        return "Great! Now you can login with your new password."
