"""Signed, expiring tokens for activation, session and password reset."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Mapping

import jwt

from .config import Settings


class TokenPurpose(str, Enum):
    ACTIVATION = "activation"
    SESSION = "session"
    RESET = "reset"


class InvalidToken(Exception):
    """Signature, expiry or format check failed."""


@dataclass(frozen=True)
class TokenService:
    """Issues and verifies JWTs, one secret per purpose.

    Validity is purely time-bound: there is no revocation list, a token is
    good until its ``exp`` claim passes.
    """

    secrets: Mapping[TokenPurpose, str]
    algorithm: str = "HS256"

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenService":
        return cls(
            secrets={
                TokenPurpose.ACTIVATION: settings.jwt_account_activation,
                TokenPurpose.SESSION: settings.jwt_secret,
                TokenPurpose.RESET: settings.jwt_reset_password,
            },
            algorithm=settings.jwt_algorithm,
        )

    def issue(self, purpose: TokenPurpose, claims: Mapping[str, Any], expires_in: timedelta) -> str:
        now = datetime.now(timezone.utc)
        payload = dict(claims)
        payload.update({"iat": now, "exp": now + expires_in})
        return jwt.encode(payload, self.secrets[purpose], algorithm=self.algorithm)

    def verify(self, purpose: TokenPurpose, token: str | None) -> dict[str, Any]:
        token = (token or "").strip()
        if not token:
            raise InvalidToken("Missing token")
        try:
            return jwt.decode(token, self.secrets[purpose], algorithms=[self.algorithm])
        except jwt.PyJWTError as exc:
            raise InvalidToken(str(exc)) from exc
