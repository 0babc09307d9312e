# /app/services/book_helpers/crud.py

"""
Low-level catalogue operations. Copy counts are kept consistent here:
`available_copies` always equals `total_copies` minus the copies on loan.
"""

import uuid
from typing import Dict, Optional

from app.db.models.book_models import Book
from ...models import book_model
from ..database_service import DatabaseService


def new_book_record(book_data: book_model.BookCreate) -> Dict:
    record = book_data.model_dump()
    record["id"] = f"book_{uuid.uuid4().hex[:12]}"
    record["available_copies"] = record["total_copies"]
    return record


def create_book(book_data: book_model.BookCreate, db: DatabaseService) -> Book:
    return db.add_book(new_book_record(book_data))


def update_book(book_id: str, book_update: book_model.BookUpdate, db: DatabaseService) -> Optional[Book]:
    book = db.get_book_by_id(book_id)
    if not book:
        return None

    update_data = book_update.model_dump(exclude_unset=True, exclude_none=True)
    new_total = update_data.get("total_copies")
    if new_total is not None and new_total != book.total_copies:
        on_loan = book.total_copies - book.available_copies
        if new_total < on_loan:
            raise ValueError(
                f"Cannot reduce total copies to {new_total}: {on_loan} copies are currently on loan."
            )
        update_data["available_copies"] = new_total - on_loan

    return db.update_book(book_id, update_data)


def delete_book(book_id: str, db: DatabaseService) -> bool:
    if not db.get_book_by_id(book_id):
        return False
    if db.count_active_transactions(book_id=book_id):
        raise ValueError("Cannot delete a book that has copies on loan.")
    return db.delete_book(book_id)
