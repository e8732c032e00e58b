"""Shared pytest fixtures for back-office engine tests."""

import pytest

from backoffice.core.config import get_settings
from backoffice.core.session import Session
from backoffice.services.dashboard import AdminDashboard
from backoffice.services.notifications import NotificationQueue
from backoffice.services.remote.mock import MockRemoteStore

SETTINGS_ENV = (
    "BACKOFFICE_ENV_MODE",
    "BACKOFFICE_DEBUG",
    "BACKOFFICE_API_BASE_URL",
    "BACKOFFICE_REQUEST_TIMEOUT_SECONDS",
    "BACKOFFICE_NOTIFICATION_TTL_SECONDS",
    "BACKOFFICE_NOTIFICATION_HISTORY_SIZE",
    "BACKOFFICE_MOCK_FAILURE_RATE",
    "BACKOFFICE_MOCK_MIN_LATENCY",
    "BACKOFFICE_MOCK_MAX_LATENCY",
)


class FakeClock:
    """Monotonic clock the tests move by hand."""

    def __init__(self):
        self.now = 0.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch):
    """Every test starts from default settings."""
    for name in SETTINGS_ENV:
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def session() -> Session:
    return Session()


@pytest.fixture
def remote(session: Session) -> MockRemoteStore:
    """Empty in-memory backend, no latency, no random failures."""
    return MockRemoteStore(session=session)


@pytest.fixture
def catalog(remote: MockRemoteStore) -> MockRemoteStore:
    """Backend pre-filled with a small menu and three orders."""
    remote.seed("/categories", [
        {"_id": "c1", "name": "Pizza", "description": "Stone-baked"},
        {"_id": "c2", "name": "Drinks", "description": ""},
    ])
    remote.seed("/menu-items", [
        {
            "_id": "m1",
            "name": "Margherita",
            "description": "Classic",
            "price": 9.5,
            "category": "c1",
            "image": "/uploads/margherita.png",
        },
    ])
    remote.seed("/ingredients", [
        {"_id": "i9", "name": "Basil", "price": 0.5},
    ])
    remote.seed("/orders", [
        {"_id": "o1", "status": "pending", "total": 24.5, "user": {"name": "Ann"}},
        {"_id": "o2", "status": "accepted", "total": 12, "user": None},
        {"_id": "o3", "status": "completed", "total": 8},
    ])
    return remote


@pytest.fixture
def notifications(clock: FakeClock) -> NotificationQueue:
    return NotificationQueue(ttl=4.0, clock=clock)


@pytest.fixture
def dashboard(
    remote: MockRemoteStore,
    session: Session,
    notifications: NotificationQueue,
) -> AdminDashboard:
    return AdminDashboard(remote, session, notifications=notifications)
