# /app/models/book_model.py

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import Field

from .base_model import APIModel


class BookBase(APIModel):
    title: str = Field(..., min_length=1)
    author: str = Field(..., min_length=1)
    isbn: Optional[str] = None
    category: str = Field(..., min_length=1)
    description: Optional[str] = None
    publisher: Optional[str] = None


class BookCreate(BookBase):
    total_copies: int = Field(1, ge=1)


class BookUpdate(APIModel):
    title: Optional[str] = Field(None, min_length=1)
    author: Optional[str] = Field(None, min_length=1)
    isbn: Optional[str] = None
    category: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    publisher: Optional[str] = None
    total_copies: Optional[int] = Field(None, ge=1)


class Book(BookBase):
    id: str
    total_copies: int
    available_copies: int
    created_at: datetime


class BookSummary(APIModel):
    id: str
    title: str
    author: str
    category: str
    isbn: Optional[str] = None


class BulkUploadError(APIModel):
    row: int
    error: str


class BulkUploadResponse(APIModel):
    message: str
    imported: int
    errors: List[BulkUploadError]
    books: List[Book]


class IntelligentSearchResult(APIModel):
    book: Book
    relevance: float
    reason: Optional[str] = None


class IntelligentSearchResponse(APIModel):
    query: str
    results: List[IntelligentSearchResult]
    ai_powered: bool


class BookAIContent(APIModel):
    book_id: str
    summary: Optional[str] = None
    study_guide: Optional[str] = None
    quotes: List[Any] = []
    comprehension_qa: List[Dict[str, Any]] = []
    updated_at: Optional[datetime] = None


class BookQuestion(APIModel):
    question: str = Field(..., min_length=1)


class BookAnswer(APIModel):
    book_id: str
    question: str
    answer: str
