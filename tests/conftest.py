from __future__ import annotations

import sys
from pathlib import Path
from urllib.parse import parse_qs, urlparse

import pytest

# Make the storeapi package importable when running tests from a checkout
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from storeapi.core import config as core_config  # noqa: E402
from storeapi.db import models  # noqa: E402
from storeapi.db.create_tables import create_all  # noqa: E402
from storeapi.db import session as db_session  # noqa: E402


class FakeNotifier:
    """Records every notification instead of sending email."""

    def __init__(self, deliver: bool = True):
        self.deliver = deliver
        self.welcome: list[tuple[str, str]] = []
        self.resets: list[tuple[str, str]] = []

    @property
    def calls(self) -> int:
        return len(self.welcome) + len(self.resets)

    def send_welcome(self, email: str, name: str) -> bool:
        self.welcome.append((email, name))
        return self.deliver

    def send_password_reset(self, email: str, reset_link: str) -> bool:
        self.resets.append((email, reset_link))
        return self.deliver

    def last_reset_token(self) -> str:
        _, link = self.resets[-1]
        return parse_qs(urlparse(link).query)["token"][0]


class RaisingNotifier(FakeNotifier):
    """Notifier whose transport blows up, like SMTP refusing a non-ASCII address."""

    def _fail(self):
        raise UnicodeEncodeError("ascii", "josé@example.com", 3, 4, "ordinal not in range(128)")

    def send_welcome(self, email: str, name: str) -> bool:
        super().send_welcome(email, name)
        self._fail()

    def send_password_reset(self, email: str, reset_link: str) -> bool:
        super().send_password_reset(email, reset_link)
        self._fail()


@pytest.fixture()
def db_env(tmp_path, monkeypatch):
    """Point the app at a temporary SQLite file and reset settings/engine caches."""
    db_file = tmp_path / "test.db"
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{db_file}")
    monkeypatch.setenv("JWT_SECRET", "test-secret-key-that-is-long-enough-123")
    monkeypatch.setenv("FRONTEND_URL", "https://shop.example")
    monkeypatch.setenv("APP_ENV", "test")
    core_config.get_settings.cache_clear()
    db_session.get_engine.cache_clear()
    db_session._get_sessionmaker.cache_clear()  # type: ignore[attr-defined]

    engine = db_session.get_engine()
    models.Base.metadata.drop_all(bind=engine)
    create_all()

    yield db_file

    models.Base.metadata.drop_all(bind=engine)
    engine.dispose()
    core_config.get_settings.cache_clear()
    db_session.get_engine.cache_clear()
    db_session._get_sessionmaker.cache_clear()  # type: ignore[attr-defined]


@pytest.fixture()
def settings(db_env):
    return core_config.get_settings()


@pytest.fixture()
def notifier():
    return FakeNotifier()
