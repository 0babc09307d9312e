# /tests/test_circulation.py

from datetime import timedelta

import pytest

from app.core.clock import utcnow
from app.models.circulation_model import BookRequestCreate, ExtensionRequestCreate
from app.services import request_service, transaction_service


def _types(db, user):
    return [n.type for n in db.get_notifications_by_user(user.id)]


# --- Borrowing and returning ---

def test_borrow_takes_a_copy_and_notifies(db, student, make_book):
    book = make_book(copies=1)

    loan = transaction_service.borrow_book(book.id, student.id, db)

    assert loan.status == "BORROWED"
    assert (loan.due_date - loan.borrowed_date).days == 14
    assert db.get_book_by_id(book.id).available_copies == 0
    assert "BOOK_BORROWED" in _types(db, student)


def test_borrow_with_no_copies_left_fails(db, student, make_user, make_book, make_loan):
    book = make_book(copies=1)
    make_loan(make_user(), book)

    with pytest.raises(ValueError, match="available"):
        transaction_service.borrow_book(book.id, student.id, db)
    assert db.get_book_by_id(book.id).available_copies == 0


def test_borrow_rejects_past_due_date(db, student, make_book):
    with pytest.raises(ValueError):
        transaction_service.borrow_book(make_book().id, student.id, db, due_date=utcnow() - timedelta(days=1))


def test_borrow_unknown_book_or_user(db, student, make_book):
    with pytest.raises(LookupError):
        transaction_service.borrow_book("book_missing", student.id, db)
    with pytest.raises(LookupError):
        transaction_service.borrow_book(make_book().id, "usr_missing", db)


def test_return_restores_copy_and_cannot_repeat(db, student, make_book, make_loan):
    book = make_book(copies=1)
    loan = make_loan(student, book)

    returned = transaction_service.return_book(loan.id, student, db)

    assert returned.status == "RETURNED"
    assert returned.returned_date is not None
    assert db.get_book_by_id(book.id).available_copies == 1
    with pytest.raises(ValueError):
        transaction_service.return_book(loan.id, student, db)


def test_overdue_loans_can_be_returned(db, student, make_book, make_loan):
    loan = make_loan(student, make_book(), borrowed_days_ago=20, due_in_days=-6, status="OVERDUE")

    assert transaction_service.return_book(loan.id, student, db).status == "RETURNED"


def test_students_cannot_return_other_members_loans(db, student, make_user, make_book, make_loan):
    loan = make_loan(make_user(), make_book())

    with pytest.raises(PermissionError):
        transaction_service.return_book(loan.id, student, db)


def test_staff_can_return_on_behalf_of_members(db, student, librarian, make_book, make_loan):
    loan = make_loan(student, make_book())
    assert transaction_service.return_book(loan.id, librarian, db).status == "RETURNED"


# --- Overdue sweep ---

def test_sweep_flags_overdue_and_reminds_due_soon_once(db, student, make_book, make_loan):
    late = make_loan(student, make_book(title="Late"), borrowed_days_ago=20, due_in_days=-1)
    soon = make_loan(student, make_book(title="Soon"), due_in_days=2)
    later = make_loan(student, make_book(title="Later"), due_in_days=10)

    first = transaction_service.run_overdue_sweep(db)
    second = transaction_service.run_overdue_sweep(db)

    assert first == {"marked_overdue": 1, "due_soon_reminders": 1}
    assert second == {"marked_overdue": 0, "due_soon_reminders": 0}
    assert db.get_transaction_by_id(late.id).status == "OVERDUE"
    assert db.get_transaction_by_id(soon.id).reminder_sent_at is not None
    assert db.get_transaction_by_id(later.id).status == "BORROWED"
    assert sorted(_types(db, student)) == ["BOOK_DUE_SOON", "BOOK_OVERDUE"]


# --- Book requests ---

def test_book_request_lifecycle(db, student, librarian, make_book):
    book = make_book(copies=1)
    request = request_service.create_book_request(BookRequestCreate(book_id=book.id, notes="For my thesis"), student, db)

    assert request.status == "PENDING"
    assert request.requested_by == student.full_name

    loan = request_service.approve_book_request(request.id, librarian, db)

    fulfilled = db.get_book_request_by_id(request.id)
    assert fulfilled.status == "FULFILLED"
    assert fulfilled.transaction_id == loan.id
    assert fulfilled.processed_by == librarian.id
    assert loan.user_id == student.id
    assert db.get_book_by_id(book.id).available_copies == 0
    assert "BOOK_REQUEST_APPROVED" in _types(db, student)


def test_duplicate_pending_request_is_rejected(db, student, make_book):
    book = make_book()
    request_service.create_book_request(BookRequestCreate(book_id=book.id), student, db)

    with pytest.raises(ValueError):
        request_service.create_book_request(BookRequestCreate(book_id=book.id), student, db)


def test_only_students_request_books(db, librarian, make_book):
    with pytest.raises(PermissionError):
        request_service.create_book_request(BookRequestCreate(book_id=make_book().id), librarian, db)


def test_approval_without_copies_leaves_request_pending(db, student, librarian, make_user, make_book, make_loan):
    book = make_book(copies=1)
    request = request_service.create_book_request(BookRequestCreate(book_id=book.id), student, db)
    make_loan(make_user(), book)

    with pytest.raises(ValueError):
        request_service.approve_book_request(request.id, librarian, db)
    assert db.get_book_request_by_id(request.id).status == "PENDING"


def test_rejected_request_cannot_be_approved(db, student, librarian, make_book):
    request = request_service.create_book_request(BookRequestCreate(book_id=make_book().id), student, db)

    rejected = request_service.reject_book_request(request.id, librarian, db)

    assert rejected.status == "REJECTED"
    assert "BOOK_REQUEST_REJECTED" in _types(db, student)
    with pytest.raises(ValueError):
        request_service.approve_book_request(request.id, librarian, db)


# --- Extension requests ---

def test_extension_defaults_to_seven_more_days(db, student, librarian, make_book, make_loan):
    loan = make_loan(student, make_book(), due_in_days=2)
    original_due = loan.due_date
    extension = request_service.create_extension_request(
        ExtensionRequestCreate(transaction_id=loan.id, reason="Exams"), student, db
    )

    approved = request_service.approve_extension_request(extension.id, librarian, db)

    assert approved.status == "APPROVED"
    assert db.get_transaction_by_id(loan.id).due_date == original_due + timedelta(days=7)
    assert "EXTENSION_REQUEST_APPROVED" in _types(db, student)


def test_extension_revives_overdue_loan(db, student, librarian, make_book, make_loan):
    loan = make_loan(student, make_book(), borrowed_days_ago=20, due_in_days=-2, status="OVERDUE")
    extension = request_service.create_extension_request(
        ExtensionRequestCreate(transaction_id=loan.id, reason="Was ill"), student, db
    )

    request_service.approve_extension_request(
        extension.id, librarian, db, custom_due_date=utcnow() + timedelta(days=5)
    )

    assert db.get_transaction_by_id(loan.id).status == "BORROWED"


def test_one_pending_extension_per_loan(db, student, make_book, make_loan):
    loan = make_loan(student, make_book())
    request_service.create_extension_request(ExtensionRequestCreate(transaction_id=loan.id, reason="a"), student, db)

    with pytest.raises(ValueError):
        request_service.create_extension_request(ExtensionRequestCreate(transaction_id=loan.id, reason="b"), student, db)


def test_extension_rules(db, student, make_user, make_book, make_loan):
    someone_elses = make_loan(make_user(), make_book())
    returned = make_loan(student, make_book(), borrowed_days_ago=10, returned_days_ago=1)
    mine = make_loan(student, make_book())

    with pytest.raises(LookupError):
        request_service.create_extension_request(ExtensionRequestCreate(transaction_id="txn_missing", reason="x"), student, db)
    with pytest.raises(PermissionError):
        request_service.create_extension_request(ExtensionRequestCreate(transaction_id=someone_elses.id, reason="x"), student, db)
    with pytest.raises(ValueError):
        request_service.create_extension_request(ExtensionRequestCreate(transaction_id=returned.id, reason="x"), student, db)
    with pytest.raises(ValueError):
        request_service.create_extension_request(
            ExtensionRequestCreate(transaction_id=mine.id, reason="x", requested_due_date=mine.due_date - timedelta(days=1)),
            student, db,
        )


# --- API ---

def test_borrow_endpoint_is_staff_only(client, student, librarian, make_book, auth_headers):
    book = make_book()
    payload = {"bookId": book.id, "userId": student.id}

    assert client.post("/api/transactions/borrow", json=payload, headers=auth_headers(student)).status_code == 403
    response = client.post("/api/transactions/borrow", json=payload, headers=auth_headers(librarian))

    assert response.status_code == 201
    assert response.json()["book"]["title"] == book.title


def test_members_only_see_their_own_loans(client, student, make_user, make_book, make_loan, auth_headers):
    other = make_user()
    make_loan(student, make_book())

    assert len(client.get("/api/transactions/my", headers=auth_headers(student)).json()) == 1
    assert client.get(f"/api/transactions/user/{other.id}", headers=auth_headers(student)).status_code == 403


def test_book_request_endpoints(client, student, librarian, make_book, auth_headers):
    book = make_book()

    created = client.post("/api/book-requests", json={"bookId": book.id}, headers=auth_headers(student))
    duplicate = client.post("/api/book-requests", json={"bookId": book.id}, headers=auth_headers(student))
    pending = client.get("/api/book-requests/pending", headers=auth_headers(librarian)).json()
    approved = client.post(f"/api/book-requests/{created.json()['id']}/approve", headers=auth_headers(librarian))

    assert created.status_code == 201
    assert duplicate.status_code == 409
    assert [r["id"] for r in pending] == [created.json()["id"]]
    assert approved.status_code == 200
    assert approved.json()["status"] == "BORROWED"


def test_extension_request_endpoints(client, student, librarian, make_book, make_loan, auth_headers):
    loan = make_loan(student, make_book())
    custom = (loan.due_date + timedelta(days=3)).isoformat()

    created = client.post(
        "/api/extension-requests", json={"transactionId": loan.id, "reason": "Research"}, headers=auth_headers(student)
    )
    approved = client.post(
        f"/api/extension-requests/{created.json()['id']}/approve",
        json={"customDueDate": custom},
        headers=auth_headers(librarian),
    )

    assert created.status_code == 201
    assert approved.json()["status"] == "APPROVED"
    assert approved.json()["transaction"]["dueDate"].startswith(custom[:10])


def test_client_dates_with_a_utc_offset_are_accepted(client, student, librarian, make_book, make_loan, auth_headers):
    due = (utcnow() + timedelta(days=10)).replace(microsecond=0)

    borrowed = client.post(
        "/api/transactions/borrow",
        json={"bookId": make_book().id, "userId": student.id, "dueDate": due.isoformat() + ".000Z"},
        headers=auth_headers(librarian),
    )
    loan = make_loan(student, make_book())
    later = (loan.due_date + timedelta(days=5)).replace(microsecond=0)
    extension = client.post(
        "/api/extension-requests",
        json={"transactionId": loan.id, "reason": "Exams", "requestedDueDate": later.isoformat() + "+02:00"},
        headers=auth_headers(student),
    )
    request = client.post("/api/book-requests", json={"bookId": make_book().id}, headers=auth_headers(student))
    approved = client.post(
        f"/api/book-requests/{request.json()['id']}/approve",
        json={"dueDate": due.isoformat() + "Z"},
        headers=auth_headers(librarian),
    )

    assert borrowed.status_code == 201
    assert borrowed.json()["dueDate"].startswith(due.isoformat())
    assert extension.status_code == 201
    assert extension.json()["requestedDueDate"].startswith((later - timedelta(hours=2)).isoformat())
    assert approved.status_code == 200
    assert approved.json()["dueDate"].startswith(due.isoformat())
