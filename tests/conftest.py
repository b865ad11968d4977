"""Shared fixtures: a fresh in-memory app per test, a controllable UTC clock
for token/code expiry and a fake monotonic clock for the rate limiter."""
from datetime import datetime, timedelta

import pytest

from api import create_app
from models import storage
from models.secret_store import SecretStore
from models.user import User
from utils import security
from utils.rate_limit import FixedWindowRateLimiter


class FrozenClock:
    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


class FakeMonotonic:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


@pytest.fixture
def clock(monkeypatch):
    """Freeze utils.security.utcnow; advance with clock.advance(minutes=...)."""
    frozen = FrozenClock(datetime(2026, 1, 15, 12, 0, 0))
    monkeypatch.setattr(security, "utcnow", frozen)
    return frozen


@pytest.fixture
def limiter_clock():
    return FakeMonotonic()


@pytest.fixture
def app(clock, limiter_clock):
    app = create_app(
        "testing",
        rate_limiter=FixedWindowRateLimiter(max_attempts=5, window_seconds=60, clock=limiter_clock),
    )
    with app.app_context():
        yield app
    storage.close()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def store(app):
    return SecretStore(storage)


@pytest.fixture
def user(app):
    user = User(email="ada@example.com", password_hash=security.hash_password("correct-horse"), name="Ada")
    storage.new(user)
    storage.save()
    return user


@pytest.fixture
def other_user(app):
    user = User(email="grace@example.com", password_hash=security.hash_password("battery-staple"), name="Grace")
    storage.new(user)
    storage.save()
    return user


@pytest.fixture
def session_headers(app, user):
    """Authorization header of a signed-in web session for `user`."""
    return {"Authorization": f"Bearer {security.create_session_token(user.id)}"}
