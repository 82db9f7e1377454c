"""Pytest configuration and fixtures."""

import pytest
from flask_jwt_extended import create_access_token

from questboard import create_app, db
from questboard.models import Challenge, User


@pytest.fixture
def app():
    """Create and configure a test application instance."""
    app = create_app("testing")

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    """Create a test client."""
    return app.test_client()


@pytest.fixture
def make_user(app):
    """Factory for users."""
    counter = {"n": 0}

    def _make(**overrides):
        counter["n"] += 1
        fields = {
            "email": f"user{counter['n']}@example.com",
            "username": f"user{counter['n']}",
            "level": 1,
        }
        fields.update(overrides)
        user = User(**fields)
        db.session.add(user)
        db.session.commit()
        return user

    return _make


@pytest.fixture
def test_user(make_user):
    """Create a test user in the database."""
    return make_user(username="test_user", display_name="Test User")


@pytest.fixture
def make_challenge(app):
    """Factory for challenges. Defaults to an active global challenge."""
    counter = {"n": 0}

    def _make(**overrides):
        counter["n"] += 1
        fields = {
            "kind": "global",
            "title": f"Challenge {counter['n']}",
            "description": "Do the thing",
            "category": "health",
            "difficulty": 1,
            "points": 10,
            "is_active": True,
            "tags": [],
        }
        fields.update(overrides)
        challenge = Challenge(**fields)
        db.session.add(challenge)
        db.session.commit()
        return challenge

    return _make


@pytest.fixture
def global_challenges(make_challenge):
    """Five eligible global challenges."""
    return [make_challenge(points=10 * (i + 1)) for i in range(5)]


def _headers_for(user):
    token = create_access_token(identity=str(user.id))
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers(app, test_user):
    """Get authorization headers with JWT token."""
    return _headers_for(test_user)


class AuthenticatedClient:
    def __init__(self, client, headers):
        self._client = client
        self._headers = headers

    def get(self, *args, **kwargs):
        kwargs.setdefault("headers", {}).update(self._headers)
        return self._client.get(*args, **kwargs)

    def post(self, *args, **kwargs):
        kwargs.setdefault("headers", {}).update(self._headers)
        return self._client.post(*args, **kwargs)

    def put(self, *args, **kwargs):
        kwargs.setdefault("headers", {}).update(self._headers)
        return self._client.put(*args, **kwargs)

    def delete(self, *args, **kwargs):
        kwargs.setdefault("headers", {}).update(self._headers)
        return self._client.delete(*args, **kwargs)


@pytest.fixture
def auth_client(client, auth_headers):
    """Create an authenticated test client wrapper."""
    return AuthenticatedClient(client, auth_headers)


@pytest.fixture
def admin_client(app, client, make_user):
    """Authenticated client for a user listed in ADMIN_USER_IDS."""
    admin = make_user(username="admin")
    app.config["ADMIN_USER_IDS"] = [admin.id]
    return AuthenticatedClient(client, _headers_for(admin))
