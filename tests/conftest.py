import re
from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from vidshare.config import Settings, get_settings
from vidshare.db import get_db, init_db
from vidshare.main import app
from vidshare.models.account import Role
from vidshare.models.video import Video
from vidshare.services import accounts
from vidshare.services.mailer import get_mailer
from vidshare.services.storage import LocalMediaHost, get_media_host
from vidshare.services.tokens import TokenKind, TokenService

ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "admin-pass"


class RecordingMailer:
    def __init__(self) -> None:
        self.sent: list[dict] = []

    def send(self, to: str, subject: str, html: str) -> bool:
        self.sent.append({"to": to, "subject": subject, "html": html})
        return True

    def last_token(self) -> str:
        match = re.search(r"token=([^\"&<\s]+)", self.sent[-1]["html"])
        assert match, "no login link in mail"
        return match.group(1)


@pytest.fixture
def settings(tmp_path):
    return Settings(
        database_url="sqlite://",
        session_secret="test-session-secret-0123456789abcdef",
        invitation_secret="test-invitation-secret-0123456789abcdef",
        admin_id="admin-1",
        admin_email=ADMIN_EMAIL,
        admin_password=ADMIN_PASSWORD,
        client_url="http://client.test",
        media_dir=str(tmp_path / "videos"),
        media_base_url="/storage/videos",
    )


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # Enforce foreign keys the way PostgreSQL does.
    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    init_db(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def tokens(settings):
    return TokenService(settings)


@pytest.fixture
def mailer():
    return RecordingMailer()


@pytest.fixture
def media_host(settings):
    return LocalMediaHost(settings.media_dir, settings.media_base_url)


@pytest.fixture
def client(settings, session_factory, mailer, media_host):
    def override_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_db
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_mailer] = lambda: mailer
    app.dependency_overrides[get_media_host] = lambda: media_host
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def make_account(db):
    def _make(username: str, role: Role = Role.CONSUMER, password: str = "secret-pass"):
        return accounts.create_account(db, username, f"{username}@example.com", password, role)

    return _make


@pytest.fixture
def session_token(tokens):
    def _issue(account) -> str:
        return tokens.issue(account.id, Role(account.role), TokenKind.SESSION)

    return _issue


@pytest.fixture
def admin_token(tokens, settings):
    return tokens.issue(settings.admin_id, Role.ADMIN, TokenKind.SESSION)


@pytest.fixture
def make_video(db):
    base = datetime(2024, 1, 1, 12, 0, 0)

    def _make(creator, title: str = "clip", minutes: int = 0, tags: str = "", hashtags: str = ""):
        video = Video(
            title=title,
            description=f"about {title}",
            tags=tags,
            hashtags=hashtags,
            url=f"/storage/videos/{title}.mp4",
            public_id=f"{title}.mp4",
            creator_id=creator.id,
            created_at=base + timedelta(minutes=minutes),
        )
        db.add(video)
        db.commit()
        db.refresh(video)
        return video

    return _make
