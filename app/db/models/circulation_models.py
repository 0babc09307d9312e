# /app/db/models/circulation_models.py

"""
SQLAlchemy models for the circulation desk: loans (`Transaction`), students'
borrow requests (`BookRequest`) and due-date extension requests
(`ExtensionRequest`). Status values are stored as plain strings; the allowed
values live in the matching Pydantic enums.
"""

from sqlalchemy import Column, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import relationship

from app.core.clock import utcnow
from ..base_class import Base


class Transaction(Base):
    id = Column(String, primary_key=True, index=True)
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    book_id = Column(String, ForeignKey("books.id"), nullable=False, index=True)
    borrowed_date = Column(DateTime, default=utcnow, nullable=False)
    due_date = Column(DateTime, nullable=False)
    returned_date = Column(DateTime, nullable=True)
    status = Column(String, nullable=False, default="BORROWED", index=True)
    # Set once a due-soon reminder has gone out for the current due date.
    reminder_sent_at = Column(DateTime, nullable=True)

    user = relationship("User", back_populates="transactions")
    book = relationship("Book", back_populates="transactions")
    extension_requests = relationship("ExtensionRequest", back_populates="transaction", cascade="all, delete-orphan")


class BookRequest(Base):
    id = Column(String, primary_key=True, index=True)
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    book_id = Column(String, ForeignKey("books.id"), nullable=False, index=True)
    requested_by = Column(String, nullable=False)
    notes = Column(Text, nullable=True)
    request_date = Column(DateTime, default=utcnow, nullable=False)
    status = Column(String, nullable=False, default="PENDING", index=True)
    processed_by = Column(String, nullable=True)
    processed_date = Column(DateTime, nullable=True)
    transaction_id = Column(String, ForeignKey("transactions.id"), nullable=True)

    user = relationship("User", back_populates="book_requests")
    book = relationship("Book", back_populates="book_requests")


class ExtensionRequest(Base):
    id = Column(String, primary_key=True, index=True)
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    transaction_id = Column(String, ForeignKey("transactions.id"), nullable=False, index=True)
    request_date = Column(DateTime, default=utcnow, nullable=False)
    requested_due_date = Column(DateTime, nullable=True)
    reason = Column(Text, nullable=False)
    status = Column(String, nullable=False, default="PENDING", index=True)
    processed_by = Column(String, nullable=True)
    processed_date = Column(DateTime, nullable=True)

    user = relationship("User", back_populates="extension_requests")
    transaction = relationship("Transaction", back_populates="extension_requests")
