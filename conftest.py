import pytest
from fastapi.testclient import TestClient

from app.config import Settings
from app.main import create_app
from app.models import Task
from app.utils import current_week_start, utcnow


@pytest.fixture
def settings(tmp_path):
    return Settings(
        database_url=f"sqlite:///{tmp_path / 'taskflow-test.db'}",
        secret_key="test-secret",
        frontend_url="http://frontend.test",
        log_level="WARNING",
    )


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def session_factory(app, client):
    return app.state.session_factory


@pytest.fixture
def sent_emails(app):
    """Capture outgoing mail instead of talking to SMTP."""
    outbox = []

    def fake_send(to, subject, body):
        outbox.append({"to": to, "subject": subject, "body": body})

    app.state.mailer.send = fake_send
    return outbox


@pytest.fixture
def register(client):
    def _register(username, password="secret123", email=None):
        response = client.post(
            "/api/auth/register",
            json={
                "username": username,
                "email": email or f"{username}@example.com",
                "password": password,
            },
        )
        assert response.status_code == 201, response.text
        body = response.json()
        body["headers"] = {"Authorization": f"Bearer {body['token']}"}
        return body

    return _register


@pytest.fixture
def add_task(session_factory):
    """Insert a personal task directly, bypassing the API defaults."""

    def _add_task(user_id, **fields):
        fields.setdefault("title", "Task")
        fields.setdefault("week_start", current_week_start())
        fields.setdefault("created_at", utcnow())
        with session_factory() as db:
            task = Task(user_id=user_id, assigned_to=user_id, **fields)
            db.add(task)
            db.commit()
            db.refresh(task)
            return task.id

    return _add_task
