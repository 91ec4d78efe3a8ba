# app/api/auth/test_auth_service.py
import pytest
from flask_jwt_extended import decode_token

from app.api.auth.services import AuthService
from app.core.exceptions import AuthenticationError, ConflictError


@pytest.fixture
def service(user_repo):
    return AuthService(user_repo)


def test_signup_stores_hash_and_issues_token(app, service, user_repo):
    with app.app_context():
        user, token = service.signup("Alice", "Alice@Example.com", "secret123", "Alice Kim")
        assert decode_token(token)['sub'] == user.user_id

    stored = user_repo.get(user.user_id)
    assert stored.email == "alice@example.com"
    assert stored.password_hash != "secret123"
    assert user_repo.docs[user.user_id]['username_lower'] == "alice"

def test_signup_duplicates_are_conflicts(app, service):
    with app.app_context():
        service.signup("alice", "alice@example.com", "secret123", "Alice")
        with pytest.raises(ConflictError):
            service.signup("other", "ALICE@example.com", "secret123", "Other")
        with pytest.raises(ConflictError):
            service.signup("ALICE", "new@example.com", "secret123", "Other")

def test_login_checks_password(app, service):
    with app.app_context():
        created, _ = service.signup("alice", "alice@example.com", "secret123", "Alice")
        user, token = service.login("alice@example.com", "secret123")
        assert user.user_id == created.user_id
        assert token

        with pytest.raises(AuthenticationError):
            service.login("alice@example.com", "wrong")
        with pytest.raises(AuthenticationError):
            service.login("nobody@example.com", "secret123")

def test_me_includes_email(service, make_user):
    alice = make_user("alice")
    profile = service.me(alice.user_id)
    assert profile['email'] == "alice@example.com"
    assert profile['followers_count'] == 0
