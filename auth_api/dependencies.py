"""FastAPI dependencies: per-request services built from the app's handles, and the access guards."""

from __future__ import annotations

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from auth_api.core.errors import AuthFailure
from auth_api.core.tokens import InvalidToken
from auth_api.db.models import ROLE_ADMIN, User
from auth_api.repositories.user_repository import UserRepository
from auth_api.services.auth_service import AuthService
from auth_api.services.federated_service import FederatedLoginService
from auth_api.services.session_service import AuthIdentity, SessionService
from auth_api.services.user_service import UserService

security = HTTPBearer(auto_error=False)


def get_repository(request: Request) -> UserRepository:
    return UserRepository(request.app.state.database)


def get_sessions(request: Request) -> SessionService:
    state = request.app.state
    return SessionService(tokens=state.tokens, settings=state.settings)


def get_auth_service(
    request: Request,
    repository: UserRepository = Depends(get_repository),
    sessions: SessionService = Depends(get_sessions),
) -> AuthService:
    state = request.app.state
    return AuthService(
        repository=repository,
        mailer=state.mailer,
        tokens=state.tokens,
        sessions=sessions,
        settings=state.settings,
    )


def get_federated_service(
    request: Request,
    repository: UserRepository = Depends(get_repository),
    sessions: SessionService = Depends(get_sessions),
) -> FederatedLoginService:
    return FederatedLoginService(repository=repository, sessions=sessions, settings=request.app.state.settings)


def get_user_service(repository: UserRepository = Depends(get_repository)) -> UserService:
    return UserService(repository=repository)


def require_signin(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    sessions: SessionService = Depends(get_sessions),
) -> AuthIdentity:
    """Verify the bearer session token and attach the identity to ``request.state.auth``."""
    if credentials is None:
        raise AuthFailure("Unauthorized", status_code=401)
    try:
        identity = sessions.resolve(credentials.credentials)
    except InvalidToken as exc:
        raise AuthFailure("Invalid token", status_code=401) from exc
    request.state.auth = identity
    return identity


def require_admin(
    request: Request,
    identity: AuthIdentity = Depends(require_signin),
    repository: UserRepository = Depends(get_repository),
) -> User:
    user = repository.get_user(identity.user_id)
    if user is None:
        raise AuthFailure("User not found")
    if user.role != ROLE_ADMIN:
        raise AuthFailure("Admin only. Access denied.")
    request.state.profile = user
    return user
