# /app/db/models/chat_models.py

from sqlalchemy import JSON, Column, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import relationship

from app.core.clock import utcnow
from ..base_class import Base


class ChatSession(Base):
    __tablename__ = "chatsessions"
    id = Column(String, primary_key=True, index=True)
    user_id = Column(String, ForeignKey("users.id"), index=True, nullable=False)
    name = Column(String, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    user = relationship("User", back_populates="chat_sessions")
    messages = relationship("ChatMessage", back_populates="session", cascade="all, delete-orphan")


class ChatMessage(Base):
    __tablename__ = "chatmessages"
    id = Column(String, primary_key=True, index=True)
    session_id = Column(String, ForeignKey("chatsessions.id"), nullable=False)
    role = Column(String, nullable=False)  # 'user' or 'assistant'
    content = Column(Text, nullable=False)
    book_links = Column(JSON, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    session = relationship("ChatSession", back_populates="messages")
