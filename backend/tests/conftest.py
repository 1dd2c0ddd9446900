import pytest
from fastapi.testclient import TestClient

from makermusic import create_app
from makermusic.config import Settings
from makermusic.database import build_engine
from makermusic.mailer import MailResult, Mailer
from makermusic.models import UserRole
from makermusic.security import SessionClaims
from makermusic.services.users import create_user

DEFAULT_PASSWORD = "segredo123"


class RecordingMailer(Mailer):
    """Keeps outgoing mail in memory instead of talking to SMTP."""

    def __init__(self):
        super().__init__("localhost", 25, "escola@makermusic.test", "unused")
        self.sent = []
        self.fail = False

    async def send(self, to_email, subject, html):
        self.sent.append({"to": to_email, "subject": subject, "html": html})
        if self.fail:
            return MailResult(success=False, error="SMTP indisponível")
        return MailResult(success=True)


@pytest.fixture
def settings(tmp_path):
    return Settings(
        jwt_secret="test-secret",
        database_url="sqlite://",
        upload_dir=str(tmp_path / "uploads"),
        max_upload_mb=1,
    )


@pytest.fixture
def mailer():
    return RecordingMailer()


@pytest.fixture
def app(settings, mailer):
    return create_app(settings, engine=build_engine(settings.database_url), mailer=mailer)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def db(app, client):
    session = app.state.context.session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make(role=UserRole.STUDENT, name=None, email=None, password=DEFAULT_PASSWORD, teacher=None):
        counter["n"] += 1
        n = counter["n"]
        return create_user(
            db,
            name=name or f"{role.value.title()} {n}",
            email=email or f"{role.value.lower()}{n}@makermusic.test",
            raw_password=password,
            role=role,
            teacher_id=teacher.id if teacher else None,
        )

    return _make


@pytest.fixture
def auth_headers(app):
    def _headers(user):
        claims = SessionClaims(user_id=user.id, name=user.name, role=user.role)
        return {"Authorization": f"Bearer {app.state.context.tokens.issue(claims)}"}

    return _headers
