"""
Federated login: Google / Facebook identities mapped onto local accounts.

Both providers expose the same synchronous call, ``fetch_identity``, which
either returns a :class:`FederatedIdentity` or raises :class:`ProviderError`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol
import logging

import requests
from sqlalchemy.exc import SQLAlchemyError
from google.auth.exceptions import GoogleAuthError
from google.auth.transport import requests as google_requests
from google.oauth2 import id_token as google_id_token

from auth_api.core.config import Settings
from auth_api.core.errors import UpstreamFailure
from auth_api.core.utils import normalize_email
from auth_api.repositories.user_repository import DuplicateEmailError, UserRepository
from auth_api.services.session_service import SessionService

logger = logging.getLogger(__name__)


class ProviderError(Exception):
    """Identity provider rejected the credential or could not be reached."""


@dataclass(frozen=True)
class FederatedIdentity:
    email: str
    name: str
    email_verified: bool = True


class IdentityProvider(Protocol):
    label: str

    def fetch_identity(self, **credentials: str) -> FederatedIdentity: ...


class GoogleIdentityProvider:
    label = "Google"

    def __init__(self, client_id: str):
        self.client_id = client_id
        self._transport = google_requests.Request()

    def fetch_identity(self, *, id_token: str = "", **_: str) -> FederatedIdentity:
        if not id_token:
            raise ProviderError("Missing Google ID token")
        if not self.client_id:
            raise ProviderError("GOOGLE_CLIENT_ID is not configured")
        try:
            claims = google_id_token.verify_oauth2_token(id_token, self._transport, audience=self.client_id)
        except (ValueError, GoogleAuthError) as exc:
            raise ProviderError(f"Google token rejected: {exc}") from exc
        return FederatedIdentity(
            email=normalize_email(claims.get("email")),
            name=claims.get("name") or "",
            email_verified=bool(claims.get("email_verified")),
        )


class FacebookIdentityProvider:
    label = "Facebook"

    def __init__(self, graph_url: str, session: requests.Session | None = None):
        self.graph_url = graph_url.rstrip("/")
        self.session = session or requests.Session()

    def fetch_identity(self, *, user_id: str = "", access_token: str = "", **_: str) -> FederatedIdentity:
        if not (user_id and access_token):
            raise ProviderError("Missing Facebook userID or accessToken")
        url = f"{self.graph_url}/{user_id}/"
        try:
            response = self.session.get(url, params={"fields": "id,name,email", "access_token": access_token})
            response.raise_for_status()
            profile: dict[str, Any] = response.json()
        except (requests.RequestException, ValueError) as exc:
            raise ProviderError(f"Facebook profile lookup failed: {exc}") from exc
        email = normalize_email(profile.get("email"))
        if not email:
            raise ProviderError("Facebook profile has no email")
        return FederatedIdentity(email=email, name=profile.get("name") or "", email_verified=True)

    def close(self) -> None:
        self.session.close()


@dataclass
class FederatedLoginService:
    """Find-or-create local accounts for verified third-party identities."""

    repository: UserRepository
    sessions: SessionService
    settings: Settings

    def _derived_password(self, email: str) -> str:
        return email + self.settings.jwt_secret

    def login(self, provider: IdentityProvider, **credentials: str) -> dict[str, Any]:
        failed = f"{provider.label} login failed. Try again"
        try:
            identity = provider.fetch_identity(**credentials)
        except ProviderError as exc:
            logger.warning("%s login rejected: %s", provider.label, exc)
            raise UpstreamFailure(failed) from exc
        if not identity.email_verified or not identity.email:
            raise UpstreamFailure(failed)

        user = self.repository.get_user_by_email(identity.email)
        if not user:
            try:
                user = self.repository.create_user(
                    identity.name or identity.email.split("@", 1)[0],
                    identity.email,
                    self._derived_password(identity.email),
                )
                logger.info("Created %s account %s for %s", provider.label, user.id, identity.email)
            except DuplicateEmailError:
                # Concurrent first login for the same email; reuse the winner's row.
                user = self.repository.get_user_by_email(identity.email)
            except SQLAlchemyError as exc:
                logger.exception("%s signup failed on user save", provider.label)
                raise UpstreamFailure(f"User signup failed with {provider.label}") from exc
            if not user:
                raise UpstreamFailure(f"User signup failed with {provider.label}")

        return {
            "token": self.sessions.issue(user.id, federated=True),
            "user": {"_id": user.id, "email": user.email, "name": user.name, "role": user.role},
        }
