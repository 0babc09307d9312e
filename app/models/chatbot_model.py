# /app/models/chatbot_model.py

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import Field

from .base_model import APIModel


class LinkType(str, Enum):
    FREE = "free"
    PURCHASE = "purchase"


class BookLink(APIModel):
    """A legal place to read or buy a book, suggested by the assistant."""
    title: str
    url: str
    type: LinkType
    platform: Optional[str] = None
    price: Optional[str] = None


class ChatRequest(APIModel):
    message: str = Field(..., min_length=1, max_length=2000)
    session_id: Optional[str] = None


class ChatResponse(APIModel):
    response: str
    book_links: Optional[List[BookLink]] = None
    session_id: str


class ChatMessage(APIModel):
    """A single persisted message of a conversation."""
    role: str = Field(..., description="Either 'user' or 'assistant'.")
    content: str
    book_links: Optional[List[BookLink]] = None
    created_at: Optional[datetime] = None


class ChatSessionSummary(APIModel):
    id: str
    name: str
    created_at: datetime


class ChatSessionDetail(ChatSessionSummary):
    history: List[ChatMessage]
