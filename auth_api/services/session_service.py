"""Session helpers (issue bearer tokens, resolve them back to an identity)."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

from auth_api.core.config import Settings
from auth_api.core.tokens import InvalidToken, TokenPurpose, TokenService


@dataclass(frozen=True)
class AuthIdentity:
    user_id: str


@dataclass
class SessionService:
    tokens: TokenService
    settings: Settings

    def issue(self, user_id: str, *, federated: bool = False) -> str:
        """Signin sessions last SESSION_TTL_SECONDS, federated ones FEDERATED_SESSION_TTL_SECONDS."""
        ttl = self.settings.federated_session_ttl_seconds if federated else self.settings.session_ttl_seconds
        return self.tokens.issue(TokenPurpose.SESSION, {"_id": user_id}, timedelta(seconds=ttl))

    def resolve(self, token: str | None) -> AuthIdentity:
        claims = self.tokens.verify(TokenPurpose.SESSION, token)
        user_id = claims.get("_id")
        if not user_id or not isinstance(user_id, str):
            raise InvalidToken("Token has no subject")
        return AuthIdentity(user_id=user_id)
