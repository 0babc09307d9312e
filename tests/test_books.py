# /tests/test_books.py

import io
from unittest.mock import AsyncMock

import pandas as pd
import pytest

from app.models.book_model import BookCreate, BookUpdate
from app.services import book_service
from app.services.book_helpers import bulk_upload, search


# --- Inventory rules ---

def test_create_book_starts_fully_available(db):
    book = book_service.create_book(BookCreate(title="Dune", author="Frank Herbert", category="Fiction", total_copies=3), db)

    assert book.id.startswith("book_")
    assert book.available_copies == 3


def test_raising_total_copies_shifts_availability(db, make_book, make_user, make_loan):
    book = make_book(copies=2)
    make_loan(make_user(), book)

    updated = book_service.update_book(book.id, BookUpdate(total_copies=5), db)

    assert updated.total_copies == 5
    assert updated.available_copies == 4


def test_total_copies_cannot_drop_below_copies_on_loan(db, make_book, make_user, make_loan):
    book = make_book(copies=3)
    make_loan(make_user(), book)
    make_loan(make_user(), book)

    with pytest.raises(ValueError):
        book_service.update_book(book.id, BookUpdate(total_copies=1), db)


def test_update_missing_book_returns_none(db):
    assert book_service.update_book("book_missing", BookUpdate(title="X"), db) is None


def test_book_with_active_loan_cannot_be_deleted(db, make_book, make_user, make_loan):
    book = make_book()
    make_loan(make_user(), book)

    with pytest.raises(ValueError):
        book_service.delete_book(book.id, db)


def test_book_without_loans_is_deleted(db, make_book):
    book = make_book()
    assert book_service.delete_book(book.id, db) is True
    assert db.get_book_by_id(book.id) is None


# --- Bulk upload parsing ---

def test_headers_are_normalised_and_bad_rows_reported():
    df = pd.DataFrame([
        {"Title": "Dune", "Author": "Frank Herbert", "Category": "Fiction", "Total Copies": "2"},
        {"Title": "", "Author": "Nobody", "Category": "Fiction", "Total Copies": "1"},
        {"Title": "SICP", "Author": "Abelson", "Category": "Technology", "Total Copies": "many"},
        {"Title": "Emma", "Author": "Jane Austen", "Category": "Fiction", "Total Copies": None},
    ])
    df = df.rename(columns=bulk_upload._normalise_header).astype(object)
    df = df.where(pd.notna(df), None)

    books, errors = bulk_upload.parse_rows(df)

    assert [b.title for b in books] == ["Dune", "Emma"]
    assert books[0].total_copies == 2
    assert books[1].total_copies == 1
    assert [e["row"] for e in errors] == [3, 4]


def test_missing_required_column_is_rejected():
    df = pd.DataFrame([{"title": "Dune", "author": "Frank Herbert"}])
    with pytest.raises(ValueError, match="category"):
        bulk_upload.parse_rows(df)


def test_blank_cells_and_infinite_copies_are_row_errors():
    df = bulk_upload.read_table(
        b"title,author,category,totalCopies\n,Nobody,Fiction,1\nDune,Frank Herbert,Fiction,inf\nEmma,Jane Austen,Fiction,\n",
        "books.csv",
        "text/csv",
    )

    books, errors = bulk_upload.parse_rows(df)

    assert [b.title for b in books] == ["Emma"]
    assert errors == [
        {"row": 2, "error": "Invalid or missing value for: title"},
        {"row": 3, "error": "totalCopies must be a whole number"},
    ]


def test_unsupported_file_type_is_rejected():
    with pytest.raises(ValueError):
        bulk_upload.read_table(b"%PDF-1.4", "catalogue.pdf", "application/pdf")


async def test_import_books_inserts_valid_rows(db):
    csv = b"title,author,category,totalCopies\nDune,Frank Herbert,Fiction,2\n,Nobody,Fiction,1\n"
    upload = AsyncMock()
    upload.read.return_value = csv
    upload.filename = "books.csv"
    upload.content_type = "text/csv"

    result = await bulk_upload.import_books(upload, db)

    assert result["imported"] == 1
    assert result["errors"][0]["row"] == 3
    assert db.get_all_books()[0].title == "Dune"


async def test_import_rejects_empty_file(db):
    upload = AsyncMock()
    upload.read.return_value = b""
    upload.filename = "books.csv"
    upload.content_type = "text/csv"

    with pytest.raises(ValueError, match="empty"):
        await bulk_upload.import_books(upload, db)


# --- Search ---

def test_keyword_rank_prefers_title_matches(make_book):
    title_match = make_book(title="Python Crash Course", author="Eric Matthes", category="Technology")
    description_match = make_book(title="Fluent Code", author="Someone", category="Technology",
                                  description="Examples in python")
    make_book(title="Emma", author="Jane Austen", category="Fiction")

    ranked = search.keyword_rank([title_match, description_match], "a book about python")

    assert [r["book"].id for r in ranked] == [title_match.id, description_match.id]
    assert ranked[0]["relevance"] > ranked[1]["relevance"]


async def test_intelligent_search_falls_back_to_keywords(db, make_book):
    book = make_book(title="Astronomy for Beginners", category="Science")

    result = await search.intelligent_search("astronomy", db)

    assert result["ai_powered"] is False
    assert result["results"][0]["book"].id == book.id


async def test_intelligent_search_uses_ai_ranking(db, make_book, mocker):
    book = make_book(title="Cosmos", author="Carl Sagan", category="Science")
    mocker.patch(
        "app.services.book_helpers.search.gemini_service.generate_json",
        new=AsyncMock(return_value={"results": [
            {"id": book.id, "relevance": 0.92, "reason": "Popular science classic"},
            {"id": "book_unknown", "relevance": 0.99},
        ]}),
    )

    result = await search.intelligent_search("something about space for a curious teenager", db)

    assert result["ai_powered"] is True
    assert len(result["results"]) == 1
    assert result["results"][0]["reason"] == "Popular science classic"


# --- API ---

def test_students_can_list_but_not_create_books(client, student, make_book, auth_headers):
    make_book()

    assert client.get("/api/books", headers=auth_headers(student)).status_code == 200
    response = client.post(
        "/api/books",
        json={"title": "Dune", "author": "Frank Herbert", "category": "Fiction"},
        headers=auth_headers(student),
    )
    assert response.status_code == 403


def test_librarian_creates_book_with_camel_case_payload(client, librarian, auth_headers):
    response = client.post(
        "/api/books",
        json={"title": "Dune", "author": "Frank Herbert", "category": "Fiction", "totalCopies": 4},
        headers=auth_headers(librarian),
    )

    assert response.status_code == 201
    body = response.json()
    assert body["totalCopies"] == 4
    assert body["availableCopies"] == 4


def test_zero_copies_is_a_validation_error(client, librarian, auth_headers):
    response = client.post(
        "/api/books",
        json={"title": "Dune", "author": "Frank Herbert", "category": "Fiction", "totalCopies": 0},
        headers=auth_headers(librarian),
    )
    assert response.status_code == 422


def test_available_books_excludes_fully_lent_titles(client, student, make_book, make_user, make_loan, auth_headers):
    lent = make_book(title="Only Copy", copies=1)
    make_loan(make_user(), lent)
    shelved = make_book(title="On Shelf", copies=1)

    response = client.get("/api/books/available", headers=auth_headers(student))

    ids = [b["id"] for b in response.json()]
    assert shelved.id in ids
    assert lent.id not in ids


def test_search_endpoint_rejects_blank_query(client, student, make_book, auth_headers):
    make_book(title="Cosmos", category="Science")

    blank = client.get("/api/books/search/intelligent", params={"q": "   "}, headers=auth_headers(student))
    found = client.get("/api/books/search/intelligent", params={"q": "cosmos"}, headers=auth_headers(student))

    assert blank.status_code == 400
    assert blank.json()["detail"] == "Search query must not be empty."
    assert found.status_code == 200
    assert found.json()["aiPowered"] is False


def test_bulk_upload_endpoint(client, librarian, auth_headers):
    csv = io.BytesIO(b"Title,Author,Category\nDune,Frank Herbert,Fiction\n")

    response = client.post(
        "/api/books/bulk-upload",
        files={"file": ("books.csv", csv, "text/csv")},
        headers=auth_headers(librarian),
    )

    assert response.status_code == 200
    assert response.json()["imported"] == 1


def test_ai_content_falls_back_to_templates_and_is_cached(client, student, make_book, auth_headers):
    book = make_book(title="Emma", author="Jane Austen", category="Fiction")

    assert client.get(f"/api/books/{book.id}/ai-content", headers=auth_headers(student)).status_code == 404
    first = client.post(f"/api/books/{book.id}/ai-content", headers=auth_headers(student)).json()
    second = client.get(f"/api/books/{book.id}/ai-content", headers=auth_headers(student)).json()

    assert "Jane Austen" in first["summary"]
    assert first["quotes"]
    assert first["comprehensionQa"]
    assert second["summary"] == first["summary"]


def test_ask_about_unknown_book_is_404(client, student, auth_headers):
    response = client.post("/api/books/book_missing/ask", json={"question": "Is it long?"}, headers=auth_headers(student))
    assert response.status_code == 404
