# /app/services/book_service.py

"""
Business logic facade for the catalogue. Routers call this module; it
delegates to the specialist helpers in `book_helpers`.
"""

from typing import Dict, List, Optional

from fastapi import UploadFile

from app.db.models.book_models import Book
from ..models import book_model
from .database_service import DatabaseService
from .book_helpers import bulk_upload, crud, search


def get_all_books(db: DatabaseService) -> List[Book]:
    return db.get_all_books()


def get_available_books(db: DatabaseService) -> List[Book]:
    return db.get_available_books()


def get_book(book_id: str, db: DatabaseService) -> Optional[Book]:
    return db.get_book_by_id(book_id)


def create_book(book_data: book_model.BookCreate, db: DatabaseService) -> Book:
    return crud.create_book(book_data=book_data, db=db)


def update_book(book_id: str, book_update: book_model.BookUpdate, db: DatabaseService) -> Optional[Book]:
    return crud.update_book(book_id=book_id, book_update=book_update, db=db)


def delete_book(book_id: str, db: DatabaseService) -> bool:
    return crud.delete_book(book_id=book_id, db=db)


async def bulk_upload_books(file: UploadFile, db: DatabaseService) -> Dict:
    return await bulk_upload.import_books(file=file, db=db)


async def intelligent_search(query: str, db: DatabaseService) -> Dict:
    return await search.intelligent_search(query=query, db=db)
