import smtplib
from datetime import timedelta

from app.models import PasswordResetToken, Task, User
from app.security import create_access_token
from app.services.auth import RESET_REQUESTED_MESSAGE
from app.utils import as_utc, utcnow


def test_register_returns_user_and_token(client, sent_emails):
    response = client.post(
        "/api/auth/register",
        json={"username": "alice", "email": "Alice@Example.com", "password": "secret123"},
    )

    assert response.status_code == 201
    body = response.json()
    assert body["message"] == "User created successfully"
    assert body["user"]["username"] == "alice"
    assert body["user"]["email"] == "alice@example.com"
    assert body["token"]
    assert sent_emails[0]["to"] == "alice@example.com"
    assert sent_emails[0]["subject"] == "Welcome to TaskFlow!"


def test_register_same_email_twice_conflicts(client, register):
    register("alice")

    response = client.post(
        "/api/auth/register",
        json={"username": "alice2", "email": "alice@example.com", "password": "secret123"},
    )

    assert response.status_code == 400
    assert response.json() == {"error": "User already exists with this email or username"}


def test_register_same_username_twice_conflicts(client, register):
    register("alice")

    response = client.post(
        "/api/auth/register",
        json={"username": "alice", "email": "other@example.com", "password": "secret123"},
    )

    assert response.status_code == 400


def test_register_rejects_bad_input(client):
    response = client.post(
        "/api/auth/register",
        json={"username": "al", "email": "not-an-email", "password": "123"},
    )

    assert response.status_code == 400
    assert "error" in response.json()


def test_register_survives_failed_welcome_email(app, client):
    def broken_send(to, subject, body):
        raise smtplib.SMTPException("relay down")

    app.state.mailer.send = broken_send

    response = client.post(
        "/api/auth/register",
        json={"username": "alice", "email": "alice@example.com", "password": "secret123"},
    )

    assert response.status_code == 201


def test_login_success(client, register):
    register("alice")

    response = client.post("/api/auth/login", json={"email": "alice@example.com", "password": "secret123"})

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Login successful"
    assert body["user"]["username"] == "alice"
    assert body["token"]


def test_login_failures_are_indistinguishable(client, register):
    register("alice")

    wrong_password = client.post("/api/auth/login", json={"email": "alice@example.com", "password": "nope123"})
    unknown_email = client.post("/api/auth/login", json={"email": "ghost@example.com", "password": "secret123"})

    assert wrong_password.status_code == 401
    assert unknown_email.status_code == 401
    assert wrong_password.json() == unknown_email.json() == {"error": "Invalid email or password"}


def test_protected_route_requires_token(client):
    assert client.get("/api/tasks").status_code == 401
    response = client.get("/api/tasks", headers={"Authorization": "Bearer garbage"})
    assert response.status_code == 401
    assert "error" in response.json()


def test_expired_token_is_rejected(client, settings, session_factory, register):
    alice = register("alice")
    with session_factory() as db:
        user = db.get(User, alice["user"]["id"])
        token = create_access_token(user, settings, expires_delta=timedelta(minutes=-5))

    response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401


def test_me_returns_current_user(client, register):
    alice = register("alice")

    response = client.get("/api/auth/me", headers=alice["headers"])

    assert response.status_code == 200
    assert response.json() == alice["user"]


def test_forgot_password_requires_email(client):
    response = client.post("/api/auth/forgot-password", json={})

    assert response.status_code == 400
    assert response.json() == {"error": "Email is required"}


def test_forgot_password_does_not_reveal_accounts(client, register, sent_emails):
    register("alice")
    sent_emails.clear()

    unknown = client.post("/api/auth/forgot-password", json={"email": "ghost@example.com"})
    known = client.post("/api/auth/forgot-password", json={"email": "alice@example.com"})

    assert unknown.status_code == known.status_code == 200
    assert unknown.json() == known.json() == {"message": RESET_REQUESTED_MESSAGE}
    assert [mail["to"] for mail in sent_emails] == ["alice@example.com"]
    assert "http://frontend.test/reset-password?token=" in sent_emails[0]["body"]


def test_new_reset_request_replaces_previous_token(client, register, session_factory, sent_emails):
    alice = register("alice")

    client.post("/api/auth/forgot-password", json={"email": "alice@example.com"})
    with session_factory() as db:
        first = db.query(PasswordResetToken).filter(PasswordResetToken.user_id == alice["user"]["id"]).one().token

    client.post("/api/auth/forgot-password", json={"email": "alice@example.com"})
    with session_factory() as db:
        tokens = db.query(PasswordResetToken).filter(PasswordResetToken.user_id == alice["user"]["id"]).all()

    assert len(tokens) == 1
    assert tokens[0].token != first


def test_reset_password_with_emailed_token(client, register, session_factory, sent_emails):
    alice = register("alice")
    client.post("/api/auth/forgot-password", json={"email": "alice@example.com"})
    with session_factory() as db:
        token = db.query(PasswordResetToken).filter(PasswordResetToken.user_id == alice["user"]["id"]).one().token

    response = client.post("/api/auth/reset-password", json={"token": token, "password": "brandnew1"})
    assert response.status_code == 200

    old = client.post("/api/auth/login", json={"email": "alice@example.com", "password": "secret123"})
    new = client.post("/api/auth/login", json={"email": "alice@example.com", "password": "brandnew1"})
    assert old.status_code == 401
    assert new.status_code == 200

    reused = client.post("/api/auth/reset-password", json={"token": token, "password": "another1"})
    assert reused.status_code == 400


def test_register_survives_unexpected_mailer_error(app, client):
    def broken_send(to, subject, body):
        raise ValueError("bad header")

    app.state.mailer.send = broken_send

    response = client.post(
        "/api/auth/register",
        json={"username": "alice", "email": "alice@example.com", "password": "secret123"},
    )

    assert response.status_code == 201


def test_forgot_password_survives_failed_email(app, client, register):
    register("alice")

    def broken_send(to, subject, body):
        raise smtplib.SMTPException("relay down")

    app.state.mailer.send = broken_send

    response = client.post("/api/auth/forgot-password", json={"email": "alice@example.com"})

    assert response.status_code == 200
    assert response.json() == {"message": RESET_REQUESTED_MESSAGE}


def test_expired_reset_token_is_rejected(client, register, session_factory, sent_emails):
    alice = register("alice")
    client.post("/api/auth/forgot-password", json={"email": "alice@example.com"})
    with session_factory() as db:
        reset = db.query(PasswordResetToken).filter(PasswordResetToken.user_id == alice["user"]["id"]).one()
        reset.expires_at = utcnow() - timedelta(minutes=1)
        db.add(reset)
        db.commit()
        token = reset.token

    response = client.post("/api/auth/reset-password", json={"token": token, "password": "brandnew1"})

    assert response.status_code == 400
    assert response.json() == {"error": "Invalid or expired reset token"}
    login = client.post("/api/auth/login", json={"email": "alice@example.com", "password": "secret123"})
    assert login.status_code == 200


def test_timestamps_round_trip_through_the_database(client, register, session_factory, sent_emails):
    alice = register("alice")
    task_id = client.post(
        "/api/tasks", json={"title": "Done", "status": "completed"}, headers=alice["headers"]
    ).json()["id"]
    client.post("/api/auth/forgot-password", json={"email": "alice@example.com"})

    with session_factory() as db:
        task = db.get(Task, task_id)
        reset = db.query(PasswordResetToken).filter(PasswordResetToken.user_id == alice["user"]["id"]).one()
        completed_at = as_utc(task.completed_at)
        expires_in = as_utc(reset.expires_at) - utcnow()

    assert completed_at <= utcnow()
    assert timedelta(minutes=59) < expires_in <= timedelta(hours=1)
