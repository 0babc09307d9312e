# /tests/test_auth_api.py

from unittest.mock import AsyncMock

import pytest

from app.services import password_reset_service


@pytest.fixture
def sent_codes(mocker):
    """Captures the reset codes that would have been e-mailed, keyed by address."""
    codes = {}

    async def capture(to_email, otp, name):
        codes[to_email] = otp
        return True

    mocker.patch("app.services.password_reset_service.email_service.send_otp_email", new=AsyncMock(side_effect=capture))
    return codes


# --- Registration & login ---

def test_register_creates_a_student(client):
    response = client.post("/api/auth/register", json={
        "username": "ada",
        "email": "Ada@Uni.edu",
        "fullName": "Ada Lovelace",
        "password": "analytical",
        "studentId": "S1815",
    })

    assert response.status_code == 201
    body = response.json()
    assert body["role"] == "STUDENT"
    assert body["email"] == "ada@uni.edu"
    assert "hashedPassword" not in body


def test_register_rejects_duplicates(client, student):
    response = client.post("/api/auth/register", json={
        "username": student.username,
        "email": "someone.else@uni.edu",
        "fullName": "Someone Else",
        "password": "secret123",
    })
    assert response.status_code == 400
    assert response.json()["detail"] == "Username already exists"


def test_register_validates_payload(client):
    response = client.post("/api/auth/register", json={
        "username": "ab", "email": "not-an-email", "fullName": "X", "password": "123",
    })
    assert response.status_code == 422


def test_login_with_username_or_email(client, student):
    by_username = client.post("/api/auth/login", json={"username": student.username, "password": "secret123"})
    by_email = client.post("/api/auth/token", data={"username": student.email, "password": "secret123"})

    assert by_username.status_code == 200
    assert by_username.json()["token_type"] == "bearer"
    assert by_email.status_code == 200

    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {by_email.json()['access_token']}"})
    assert me.json()["id"] == student.id


def test_wrong_password_is_401(client, student):
    response = client.post("/api/auth/login", json={"username": student.username, "password": "wrong"})
    assert response.status_code == 401


def test_inactive_account_cannot_log_in(client, make_user):
    user = make_user(is_active=False)
    response = client.post("/api/auth/login", json={"username": user.username, "password": "secret123"})
    assert response.status_code == 401


def test_me_requires_a_valid_token(client):
    assert client.get("/api/auth/me").status_code == 401
    assert client.get("/api/auth/me", headers={"Authorization": "Bearer nonsense"}).status_code == 401


# --- Forgot password ---

def test_full_password_reset_flow(client, student, sent_codes):
    requested = client.post("/api/auth/forgot-password", json={"email": student.email})
    assert requested.status_code == 200
    assert requested.json()["message"] == password_reset_service.RESET_REQUESTED_MESSAGE

    verified = client.post("/api/auth/verify-otp", json={"email": student.email, "otp": sent_codes[student.email]})
    assert verified.status_code == 200
    token = verified.json()["resetToken"]

    reset = client.post("/api/auth/reset-password", json={"token": token, "newPassword": "brand-new-pass"})
    assert reset.status_code == 200

    assert client.post("/api/auth/login", json={"username": student.username, "password": "brand-new-pass"}).status_code == 200
    assert client.post("/api/auth/login", json={"username": student.username, "password": "secret123"}).status_code == 401
    again = client.post("/api/auth/reset-password", json={"token": token, "newPassword": "another-pass"})
    assert again.status_code == 400


def test_unknown_email_gets_the_same_answer(client, sent_codes):
    response = client.post("/api/auth/forgot-password", json={"email": "nobody@uni.edu"})

    assert response.status_code == 200
    assert response.json()["message"] == password_reset_service.RESET_REQUESTED_MESSAGE
    assert sent_codes == {}


def test_wrong_code_is_rejected(client, student, sent_codes):
    client.post("/api/auth/forgot-password", json={"email": student.email})
    wrong = "000000" if sent_codes[student.email] != "000000" else "111111"

    response = client.post("/api/auth/verify-otp", json={"email": student.email, "otp": wrong})

    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid verification code. 4 attempt(s) remaining."


def test_repeated_reset_requests_are_throttled(client, student, sent_codes):
    assert client.post("/api/auth/forgot-password", json={"email": student.email}).status_code == 200

    response = client.post("/api/auth/forgot-password", json={"email": student.email})

    assert response.status_code == 429
    assert int(response.headers["Retry-After"]) > 0


def test_reset_with_bogus_token(client):
    response = client.post("/api/auth/reset-password", json={"token": "f" * 64, "newPassword": "whatever1"})
    assert response.status_code == 400
