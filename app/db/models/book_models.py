# /app/db/models/book_models.py

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from app.core.clock import utcnow
from ..base_class import Base


class Book(Base):
    """A catalogue title and its copy counts."""
    id = Column(String, primary_key=True, index=True)
    title = Column(String, index=True, nullable=False)
    author = Column(String, index=True, nullable=False)
    isbn = Column(String, index=True, nullable=True)
    category = Column(String, index=True, nullable=False)
    description = Column(Text, nullable=True)
    publisher = Column(String, nullable=True)
    total_copies = Column(Integer, nullable=False, default=1)
    available_copies = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    transactions = relationship("Transaction", back_populates="book", cascade="all, delete-orphan")
    book_requests = relationship("BookRequest", back_populates="book", cascade="all, delete-orphan")
    ai_content = relationship("BookAIContent", back_populates="book", uselist=False, cascade="all, delete-orphan")


class BookAIContent(Base):
    """Cached AI-generated study material for a single book."""
    __tablename__ = "bookaicontents"

    id = Column(String, primary_key=True, index=True)
    book_id = Column(String, ForeignKey("books.id"), unique=True, nullable=False)
    summary = Column(Text, nullable=True)
    study_guide = Column(Text, nullable=True)
    quotes = Column(JSON, nullable=True)
    comprehension_qa = Column(JSON, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    book = relationship("Book", back_populates="ai_content")
