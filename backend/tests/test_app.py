import dataclasses

import pytest
from fastapi.testclient import TestClient

from makermusic import create_app
from makermusic.config import ConfigError, Settings
from makermusic.database import build_engine
from makermusic.models import User, UserRole


def test_liveness(client):
    response = client.get("/")
    assert response.status_code == 200
    assert "message" in response.json()


def test_unknown_route_uses_message_body(client):
    response = client.get("/api/nao-existe")
    assert response.status_code == 404
    assert "message" in response.json()


def test_settings_require_jwt_secret(monkeypatch, tmp_path):
    monkeypatch.setenv("JWT_SECRET", "")

    with pytest.raises(ConfigError):
        Settings.from_env(env_file=str(tmp_path / "missing.env"))


def test_settings_from_env(monkeypatch, tmp_path):
    env_file = tmp_path / ".env"
    env_file.write_text("JWT_SECRET=abc\nPORT=4000\nEMAIL_PASS=abcd efgh\nCORS_ORIGINS=http://a.test, http://b.test\n")
    for name in ("JWT_SECRET", "PORT", "EMAIL_PASS", "CORS_ORIGINS"):
        # setenv first so the values loaded from the file are undone afterwards
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)

    settings = Settings.from_env(env_file=str(env_file))

    assert settings.jwt_secret == "abc"
    assert settings.port == 4000
    assert settings.smtp_password == "abcdefgh"
    assert settings.cors_origins == ("http://a.test", "http://b.test")
    assert settings.max_upload_bytes == 100 * 1024 * 1024


def test_startup_seeds_administrator(settings, mailer):
    settings = dataclasses.replace(settings, admin_email="Diretora@MakerMusic.test", admin_password="segredo123")
    app = create_app(settings, engine=build_engine(settings.database_url), mailer=mailer)

    with TestClient(app) as client:
        response = client.post(
            "/api/users/login", json={"email": "diretora@makermusic.test", "password": "segredo123"}
        )
        assert response.status_code == 200
        assert response.json()["user"]["role"] == "ADMIN"

        db = app.state.context.session_factory()
        try:
            assert db.query(User).filter(User.role == UserRole.ADMIN).count() == 1
        finally:
            db.close()
