# /tests/conftest.py

import uuid
from datetime import timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core import security
from app.core.clock import utcnow
from app.core.config import settings
from app.db import base
from app.db.database import get_db
from app.db.models.circulation_models import Transaction
from app.main import app
from app.services.database_service import DatabaseService
from app.services.otp_service import otp_store
from app.services.rate_limiter import rate_limiter


@pytest.fixture(autouse=True)
def offline_services(monkeypatch):
    """
    No test talks to Gemini or an SMTP server: without an API key every AI
    call takes its fallback path, and without an SMTP host e-mails are dropped.
    """
    monkeypatch.setattr(settings, "google_api_key", None)
    monkeypatch.setattr(settings, "smtp_host", "")
    otp_store.clear_all()
    rate_limiter.clear_all()
    yield
    otp_store.clear_all()
    rate_limiter.clear_all()


@pytest.fixture
def session():
    """A fresh in-memory SQLite database with every table, per test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    base.Base.metadata.create_all(bind=engine)
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    db_session = TestingSession()
    try:
        yield db_session
    finally:
        db_session.close()
        engine.dispose()


@pytest.fixture
def db(session):
    return DatabaseService(session)


@pytest.fixture
def client(session):
    """A TestClient whose requests share the test's database session."""
    def override_get_db():
        yield session

    app.dependency_overrides[get_db] = override_get_db
    # Not used as a context manager, so the lifespan (real DB, seeding, maintenance loop) never runs.
    yield TestClient(app)
    app.dependency_overrides.clear()


# --- Factories ---

@pytest.fixture
def make_user(db):
    def _make_user(role="STUDENT", password="secret123", **overrides):
        suffix = uuid.uuid4().hex[:8]
        record = {
            "id": f"usr_{suffix}",
            "username": f"{role.lower()}_{suffix}",
            "email": f"{role.lower()}_{suffix}@uni.edu",
            "full_name": f"Test {role.title()} {suffix}",
            "student_id": f"S{suffix}" if role == "STUDENT" else None,
            "hashed_password": security.get_password_hash(password),
            "role": role,
        }
        record.update(overrides)
        return db.add_user(record)
    return _make_user


@pytest.fixture
def make_book(db):
    def _make_book(title="Clean Code", author="Robert C. Martin", category="Technology", copies=2, **overrides):
        record = {
            "id": f"book_{uuid.uuid4().hex[:12]}",
            "title": title,
            "author": author,
            "category": category,
            "total_copies": copies,
            "available_copies": copies,
        }
        record.update(overrides)
        return db.add_book(record)
    return _make_book


@pytest.fixture
def make_loan(db, session):
    """
    Records a loan `borrowed_days_ago` days ago, due `due_in_days` from now
    (negative for past due). Active loans take a copy off the shelf; pass
    `returned_days_ago` for a closed loan.
    """
    def _make_loan(user, book, borrowed_days_ago=5, due_in_days=9, returned_days_ago=None, status="BORROWED"):
        now = utcnow()
        record = {
            "id": f"txn_{uuid.uuid4().hex[:12]}",
            "user_id": user.id,
            "book_id": book.id,
            "borrowed_date": now - timedelta(days=borrowed_days_ago),
            "due_date": now + timedelta(days=due_in_days),
            "status": status,
        }
        if returned_days_ago is None:
            return db.create_loan(record)

        record["status"] = "RETURNED"
        record["returned_date"] = now - timedelta(days=returned_days_ago)
        transaction = Transaction(**record)
        session.add(transaction)
        session.commit()
        return transaction
    return _make_loan


@pytest.fixture
def student(make_user):
    return make_user("STUDENT")


@pytest.fixture
def librarian(make_user):
    return make_user("LIBRARIAN")


@pytest.fixture
def admin(make_user):
    return make_user("ADMIN")


@pytest.fixture
def auth_headers():
    def _auth_headers(user):
        return {"Authorization": f"Bearer {security.create_access_token(subject=user.id)}"}
    return _auth_headers
