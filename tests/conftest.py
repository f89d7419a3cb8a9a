from __future__ import annotations

from dataclasses import replace
import re
import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

# Make the auth_api package importable when running tests from a checkout
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from auth_api.app import create_app  # noqa: E402
from auth_api.core import config as core_config  # noqa: E402
from auth_api.core.tokens import TokenService  # noqa: E402
from auth_api.db.session import Database  # noqa: E402
from auth_api.repositories.user_repository import UserRepository  # noqa: E402
from auth_api.services.auth_service import AuthService  # noqa: E402
from auth_api.services.federated_service import FederatedIdentity, ProviderError  # noqa: E402
from auth_api.services.session_service import SessionService  # noqa: E402


class FakeMailer:
    def __init__(self, ok: bool = True):
        self.ok = ok
        self.sent: list[dict] = []
        self.closed = False

    def send(self, subject, to_email, html_body, text_body=None):
        self.sent.append({"subject": subject, "to": to_email, "html": html_body, "text": text_body})
        return self.ok

    def close(self):
        self.closed = True

    def last_link_token(self, path: str) -> str:
        match = re.search(re.escape(path) + r"([A-Za-z0-9_\-\.]+)", self.sent[-1]["text"])
        assert match, self.sent[-1]
        return match.group(1)


class FakeProvider:
    def __init__(self, label: str, identity: FederatedIdentity | None = None, error: str | None = None):
        self.label = label
        self.identity = identity
        self.error = error
        self.calls: list[dict] = []

    def fetch_identity(self, **credentials):
        self.calls.append(credentials)
        if self.error:
            raise ProviderError(self.error)
        return self.identity


@pytest.fixture()
def settings(tmp_path, monkeypatch):
    """Settings pointed at a temporary SQLite database, with long test secrets."""
    monkeypatch.setenv("ENV_FILE", str(tmp_path / "missing.env"))
    monkeypatch.setenv("APP_ENV", "test")
    core_config.get_settings.cache_clear()
    base = core_config.get_settings()
    core_config.get_settings.cache_clear()
    return replace(
        base,
        database_url=f"sqlite:///{tmp_path / 'test.db'}",
        client_url="http://client.test",
        jwt_secret="session-secret-for-tests-0123456789abcdef",
        jwt_account_activation="activation-secret-for-tests-0123456789abcdef",
        jwt_reset_password="reset-secret-for-tests-0123456789abcdef",
    )


@pytest.fixture()
def database(settings):
    db = Database(settings.database_url)
    db.create_all()
    yield db
    db.dispose()


@pytest.fixture()
def repo(database):
    return UserRepository(database)


@pytest.fixture()
def tokens(settings):
    return TokenService.from_settings(settings)


@pytest.fixture()
def sessions(tokens, settings):
    return SessionService(tokens=tokens, settings=settings)


@pytest.fixture()
def mailer():
    return FakeMailer()


@pytest.fixture()
def auth_service(repo, mailer, tokens, sessions, settings):
    return AuthService(repository=repo, mailer=mailer, tokens=tokens, sessions=sessions, settings=settings)


@pytest.fixture()
def google():
    return FakeProvider("Google", FederatedIdentity(email="g@example.com", name="Gina", email_verified=True))


@pytest.fixture()
def facebook():
    return FakeProvider("Facebook", FederatedIdentity(email="f@example.com", name="Fred"))


@pytest.fixture()
def app(settings, mailer, google, facebook):
    return create_app(settings, mailer=mailer, google=google, facebook=facebook)


@pytest.fixture()
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def app_repo(client):
    return UserRepository(client.app.state.database)
