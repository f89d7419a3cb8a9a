from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from auth_api.core.errors import AuthFailure, NotFoundError, UpstreamFailure, ValidationError
from auth_api.core.security import verify_password
from auth_api.core.tokens import TokenPurpose


def _signup_and_get_token(auth_service, mailer, email="a@x.com", password="secret1", name="A"):
    auth_service.signup(name, email, password)
    return mailer.last_link_token("/auth/activate/")


def test_signup_sends_activation_link_without_creating_user(auth_service, mailer, repo):
    message = auth_service.signup("A", "a@x.com", "secret1")

    assert "a@x.com" in message
    assert mailer.sent[-1]["to"] == "a@x.com"
    assert "http://client.test/auth/activate/" in mailer.sent[-1]["html"]
    assert repo.get_user_by_email("a@x.com") is None
    assert repo.get_pending_signup("a@x.com") is not None


def test_activation_token_never_carries_plaintext_password(auth_service, mailer, tokens):
    token = _signup_and_get_token(auth_service, mailer)

    claims = tokens.verify(TokenPurpose.ACTIVATION, token)

    assert claims["email"] == "a@x.com"
    assert claims["name"] == "A"
    assert "password" not in claims
    assert verify_password("secret1", claims["hashed_password"])


@pytest.mark.parametrize(
    "name,email,password,error",
    [
        ("", "a@x.com", "secret1", "Name is required"),
        ("A", "not-an-email", "secret1", "Must be a valid email address"),
        ("A", "a@x.com", "short", "Password must be at least 6 characters long"),
    ],
)
def test_signup_validation(auth_service, mailer, name, email, password, error):
    with pytest.raises(ValidationError) as exc:
        auth_service.signup(name, email, password)

    assert exc.value.message == error
    assert mailer.sent == []


def test_signup_rejects_existing_user_without_issuing_token(auth_service, mailer, repo):
    repo.create_user("A", "a@x.com", "secret1")

    with pytest.raises(ValidationError) as exc:
        auth_service.signup("A", "A@X.com", "secret1")

    assert exc.value.message == "Email is taken."
    assert mailer.sent == []


def test_repeated_signup_is_rejected_while_pending(auth_service, mailer):
    auth_service.signup("A", "a@x.com", "secret1")

    with pytest.raises(ValidationError) as exc:
        auth_service.signup("A", "a@x.com", "secret1")

    assert exc.value.message == "Email is taken."
    assert len(mailer.sent) == 1


def test_expired_pending_signup_does_not_block(auth_service, mailer, repo):
    repo.upsert_pending_signup("a@x.com", datetime.now(timezone.utc) - timedelta(minutes=1))

    auth_service.signup("A", "a@x.com", "secret1")

    assert len(mailer.sent) == 1


def test_signup_email_failure_releases_reservation(auth_service, mailer, repo):
    mailer.ok = False

    with pytest.raises(UpstreamFailure) as exc:
        auth_service.signup("A", "a@x.com", "secret1")

    assert exc.value.message == "Signup email sent error"
    assert repo.get_pending_signup("a@x.com") is None


def test_activation_creates_exactly_one_user(auth_service, mailer, repo):
    token = _signup_and_get_token(auth_service, mailer)

    assert auth_service.activate(token) == "Signup Success. Please Sign in."

    user = repo.get_user_by_email("a@x.com")
    assert user.name == "A"
    assert verify_password("secret1", user.hashed_password)
    assert repo.get_pending_signup("a@x.com") is None

    with pytest.raises(ValidationError) as exc:
        auth_service.activate(token)
    assert exc.value.message == "Email is taken."
    assert repo.count_users() == 1


def test_activation_rejects_missing_expired_and_tampered_tokens(auth_service, tokens, repo):
    with pytest.raises(AuthFailure) as missing:
        auth_service.activate("")
    assert missing.value.status_code == 401
    assert missing.value.message == "There is no activation token."

    expired = tokens.issue(
        TokenPurpose.ACTIVATION,
        {"name": "A", "email": "a@x.com", "hashed_password": "h", "salt": "00"},
        timedelta(seconds=-1),
    )
    with pytest.raises(AuthFailure) as exc:
        auth_service.activate(expired)
    assert exc.value.message == "Expired link. Signup again."

    claims = {"name": "A", "email": "a@x.com", "hashed_password": "h", "salt": "00"}
    valid = tokens.issue(TokenPurpose.ACTIVATION, claims, timedelta(days=3))
    other = tokens.issue(TokenPurpose.ACTIVATION, dict(claims, email="evil@x.com"), timedelta(days=3))
    header, _, signature = valid.split(".")
    tampered = ".".join([header, other.split(".")[1], signature])
    with pytest.raises(AuthFailure):
        auth_service.activate(tampered)
    assert repo.count_users() == 0


def test_signin(auth_service, repo, tokens):
    user = repo.create_user("A", "a@x.com", "secret1")

    result = auth_service.signin("a@x.com", "secret1")

    assert tokens.verify(TokenPurpose.SESSION, result.token)["_id"] == user.id
    assert result.user["_id"] == user.id
    assert "hashed_password" not in result.user


def test_signin_failures(auth_service, repo):
    repo.create_user("A", "a@x.com", "secret1")

    with pytest.raises(AuthFailure) as unknown:
        auth_service.signin("b@x.com", "secret1")
    assert unknown.value.message == "User does not exist."

    with pytest.raises(AuthFailure) as mismatch:
        auth_service.signin("a@x.com", "wrong-password")
    assert mismatch.value.message == "Email and password do not match"


def test_forgot_password_persists_link_and_emails_it(auth_service, mailer, repo):
    user = repo.create_user("A", "a@x.com", "secret1")

    message = auth_service.forgot_password("a@x.com")

    assert "a@x.com" in message
    token = mailer.last_link_token("/auth/password/reset/")
    assert repo.get_user(user.id).reset_password_link == token


def test_forgot_password_unknown_email(auth_service, mailer):
    with pytest.raises(NotFoundError) as exc:
        auth_service.forgot_password("nobody@x.com")

    assert exc.value.status_code == 404
    assert mailer.sent == []


def test_forgot_password_email_failure(auth_service, mailer, repo):
    repo.create_user("A", "a@x.com", "secret1")
    mailer.ok = False

    with pytest.raises(UpstreamFailure) as exc:
        auth_service.forgot_password("a@x.com")

    assert exc.value.message == "Reset email sent error"


def test_reset_password_is_single_use(auth_service, mailer, repo):
    user = repo.create_user("A", "a@x.com", "secret1")
    auth_service.forgot_password("a@x.com")
    link = mailer.last_link_token("/auth/password/reset/")

    assert auth_service.reset_password(link, "newsecret") == "Great! Now you can login with your new password."
    assert verify_password("newsecret", repo.get_user(user.id).hashed_password)
    assert repo.get_user(user.id).reset_password_link is None

    with pytest.raises(AuthFailure) as exc:
        auth_service.reset_password(link, "anothersecret")
    assert exc.value.message == "Something went wrong. Try later."


def test_reset_password_rejects_expired_link(auth_service, repo, tokens):
    user = repo.create_user("A", "a@x.com", "secret1")
    link = tokens.issue(TokenPurpose.RESET, {"_id": user.id, "name": "A"}, timedelta(seconds=-1))
    repo.set_reset_link(user.id, link)

    with pytest.raises(AuthFailure) as exc:
        auth_service.reset_password(link, "newsecret")

    assert exc.value.message == "Expired link. Try again."
    assert verify_password("secret1", repo.get_user(user.id).hashed_password)


def test_reset_password_enforces_min_length(auth_service, mailer, repo):
    repo.create_user("A", "a@x.com", "secret1")
    auth_service.forgot_password("a@x.com")
    link = mailer.last_link_token("/auth/password/reset/")

    with pytest.raises(ValidationError) as exc:
        auth_service.reset_password(link, "123")

    assert exc.value.message == "Password should be min 6 characters long"
    assert repo.get_user_by_reset_link(link) is not None
