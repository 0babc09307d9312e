# /tests/test_users_api.py

from app.core import security
from app.services import notification_service, user_service
from app.models.notification_model import NotificationType


# --- Security helpers ---

def test_password_hash_round_trip():
    hashed = security.get_password_hash("secret123")

    assert hashed != "secret123"
    assert security.verify_password("secret123", hashed)
    assert not security.verify_password("wrong", hashed)
    assert not security.verify_password("secret123", "not-a-bcrypt-hash")


def test_access_token_carries_the_user_id():
    assert security.decode_access_token(security.create_access_token(subject="usr_1")) == "usr_1"
    assert security.decode_access_token("garbage") is None


# --- Admin account management ---

def test_user_management_is_admin_only(client, librarian, auth_headers):
    assert client.get("/api/users", headers=auth_headers(librarian)).status_code == 403


def test_admin_creates_staff_and_changes_roles(client, admin, auth_headers):
    created = client.post("/api/users", json={
        "username": "shelver", "email": "shelver@uni.edu", "fullName": "Sam Shelver",
        "password": "secret123", "role": "LIBRARIAN",
    }, headers=auth_headers(admin))

    assert created.status_code == 201
    assert created.json()["role"] == "LIBRARIAN"

    promoted = client.put(f"/api/users/{created.json()['id']}/role", json={"role": "ADMIN"}, headers=auth_headers(admin))
    assert promoted.json()["role"] == "ADMIN"
    assert client.put("/api/users/usr_missing/role", json={"role": "ADMIN"}, headers=auth_headers(admin)).status_code == 404


def test_admin_cannot_delete_self_or_members_with_loans(client, admin, student, make_book, make_loan, auth_headers):
    make_loan(student, make_book())

    assert client.delete(f"/api/users/{admin.id}", headers=auth_headers(admin)).status_code == 400
    assert client.delete(f"/api/users/{student.id}", headers=auth_headers(admin)).status_code == 400
    assert client.delete("/api/users/usr_missing", headers=auth_headers(admin)).status_code == 404


def test_admin_deletes_member_without_loans(client, admin, student, auth_headers):
    assert client.delete(f"/api/users/{student.id}", headers=auth_headers(admin)).status_code == 204
    assert all(u["id"] != student.id for u in client.get("/api/users", headers=auth_headers(admin)).json())


def test_staff_list_students(client, librarian, student, auth_headers):
    students = client.get("/api/students", headers=auth_headers(librarian)).json()
    assert [s["id"] for s in students] == [student.id]


# --- Profile ---

def test_profile_update_checks_email_uniqueness(client, student, librarian, auth_headers):
    clash = client.put("/api/profile", json={"email": librarian.email}, headers=auth_headers(student))
    updated = client.put("/api/profile", json={"fullName": "New Name", "phone": "555-0100"}, headers=auth_headers(student))

    assert clash.status_code == 400
    assert updated.json()["fullName"] == "New Name"
    assert updated.json()["phone"] == "555-0100"


def test_profile_nulls_keep_required_fields(client, student, auth_headers):
    response = client.put("/api/profile", json={"fullName": None, "email": None}, headers=auth_headers(student))

    assert response.status_code == 200
    assert response.json()["fullName"] == student.full_name
    assert response.json()["email"] == student.email


def test_blank_student_ids_do_not_collide(client, student, make_user, auth_headers):
    other = make_user()

    first = client.put("/api/profile", json={"studentId": ""}, headers=auth_headers(student))
    second = client.put("/api/profile", json={"studentId": "  "}, headers=auth_headers(other))

    assert first.status_code == 200
    assert second.status_code == 200
    assert first.json()["studentId"] is None
    assert second.json()["studentId"] is None


def test_change_password_requires_current_password(client, student, auth_headers):
    wrong = client.put(
        "/api/profile/password", json={"currentPassword": "nope", "newPassword": "another1"}, headers=auth_headers(student)
    )
    right = client.put(
        "/api/profile/password", json={"currentPassword": "secret123", "newPassword": "another1"}, headers=auth_headers(student)
    )

    assert wrong.status_code == 400
    assert right.status_code == 200
    assert client.post("/api/auth/login", json={"username": student.username, "password": "another1"}).status_code == 200


def test_default_accounts_are_seeded_once(db):
    assert user_service.seed_default_users(db) == 2
    assert user_service.seed_default_users(db) == 0


# --- Notifications ---

def test_notification_endpoints(client, student, make_user, auth_headers, db):
    headers = auth_headers(student)
    first = notification_service.notify(db, student.id, NotificationType.GENERAL, "Welcome", "Hello")
    notification_service.notify(db, student.id, NotificationType.GENERAL, "Reminder", "Bring your card")
    notification_service.notify(db, make_user().id, NotificationType.GENERAL, "Other", "Not yours")

    assert len(client.get("/api/notifications", headers=headers).json()) == 2
    assert client.get("/api/notifications/unread-count", headers=headers).json() == {"count": 2}

    marked = client.put(f"/api/notifications/{first.id}/read", headers=headers)
    assert marked.json()["isRead"] is True
    assert client.get("/api/notifications/unread-count", headers=headers).json() == {"count": 1}

    assert client.put("/api/notifications/read-all", headers=headers).json() == {"updated": 1}
    assert client.delete("/api/notifications/clear-all", headers=headers).json() == {"updated": 2}
    assert client.get("/api/notifications", headers=headers).json() == []


def test_cannot_mark_someone_elses_notification(client, student, make_user, auth_headers, db):
    theirs = notification_service.notify(db, make_user().id, NotificationType.GENERAL, "Private", "Not yours")

    response = client.put(f"/api/notifications/{theirs.id}/read", headers=auth_headers(student))

    assert response.status_code == 404
