# /app/services/database_helpers/book_repository_sql.py

"""
Raw SQLAlchemy queries for the catalogue (`books`) and the cached AI study
material attached to each book (`bookaicontents`).

Copy availability is only ever changed through `adjust_availability`, which
performs a single guarded UPDATE so concurrent loans cannot push the count
below zero or above the number of copies owned.
"""

import uuid
from typing import Dict, List, Optional

from sqlalchemy import func, update
from sqlalchemy.orm import Session

from app.db.models.book_models import Book, BookAIContent


class BookRepositorySQL:
    def __init__(self, db_session: Session):
        self.db = db_session

    # --- Book Methods ---

    def get_book_by_id(self, book_id: str) -> Optional[Book]:
        return self.db.query(Book).filter(Book.id == book_id).first()

    def get_all_books(self) -> List[Book]:
        return self.db.query(Book).order_by(Book.created_at.desc()).all()

    def get_available_books(self) -> List[Book]:
        return (
            self.db.query(Book)
            .filter(Book.available_copies > 0)
            .order_by(Book.created_at.desc())
            .all()
        )

    def get_inventory_totals(self) -> Dict[str, int]:
        titles, copies, available = self.db.query(
            func.count(Book.id),
            func.coalesce(func.sum(Book.total_copies), 0),
            func.coalesce(func.sum(Book.available_copies), 0),
        ).one()
        return {"titles": titles or 0, "copies": int(copies), "available": int(available)}

    def add_book(self, record: Dict) -> Book:
        new_book = Book(**record)
        self.db.add(new_book)
        self.db.commit()
        self.db.refresh(new_book)
        return new_book

    def add_books(self, records: List[Dict]) -> List[Book]:
        """Inserts a batch of books in one commit."""
        new_books = [Book(**record) for record in records]
        self.db.add_all(new_books)
        self.db.commit()
        for book in new_books:
            self.db.refresh(book)
        return new_books

    def update_book(self, book_id: str, data: Dict) -> Optional[Book]:
        db_book = self.get_book_by_id(book_id)
        if db_book:
            for key, value in data.items():
                setattr(db_book, key, value)
            self.db.commit()
            self.db.refresh(db_book)
        return db_book

    def delete_book(self, book_id: str) -> bool:
        db_book = self.get_book_by_id(book_id)
        if db_book:
            self.db.delete(db_book)
            self.db.commit()
            return True
        return False

    def adjust_availability(self, book_id: str, change: int, commit: bool = True) -> bool:
        """
        Adds `change` (positive or negative) to a book's available copies.
        Returns False, without touching the row, if the result would leave the
        0..total_copies range.
        """
        new_value = Book.available_copies + change
        result = self.db.execute(
            update(Book)
            .where(Book.id == book_id, new_value >= 0, new_value <= Book.total_copies)
            .values(available_copies=new_value)
            .execution_options(synchronize_session=False)
        )
        if commit:
            self.db.commit()
        # Refresh any copy of the row already loaded in this session.
        db_book = self.db.get(Book, book_id)
        if db_book is not None:
            self.db.refresh(db_book)
        return result.rowcount == 1

    # --- AI Content Methods ---

    def get_book_ai_content(self, book_id: str) -> Optional[BookAIContent]:
        return self.db.query(BookAIContent).filter(BookAIContent.book_id == book_id).first()

    def upsert_book_ai_content(self, book_id: str, record: Dict) -> BookAIContent:
        content = self.get_book_ai_content(book_id)
        if content is None:
            content = BookAIContent(id=f"aic_{uuid.uuid4().hex[:12]}", book_id=book_id, **record)
            self.db.add(content)
        else:
            for key, value in record.items():
                setattr(content, key, value)
        self.db.commit()
        self.db.refresh(content)
        return content
