# /app/services/database_helpers/chat_repository_sql.py

from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from app.db.models.chat_models import ChatMessage, ChatSession


class ChatRepositorySQL:
    def __init__(self, db_session: Session):
        self.db = db_session

    # --- Chat Session Methods ---
    def create_session(self, record: Dict) -> ChatSession:
        new_session = ChatSession(**record)
        self.db.add(new_session)
        self.db.commit()
        self.db.refresh(new_session)
        return new_session

    def get_sessions_by_user_id(self, user_id: str) -> List[ChatSession]:
        return (
            self.db.query(ChatSession)
            .filter(ChatSession.user_id == user_id)
            .order_by(ChatSession.created_at.desc())
            .all()
        )

    def get_session_by_id(self, session_id: str) -> Optional[ChatSession]:
        return self.db.query(ChatSession).filter(ChatSession.id == session_id).first()

    def delete_session_by_id(self, session_id: str) -> bool:
        session = self.get_session_by_id(session_id)
        if session:
            self.db.delete(session)
            self.db.commit()
            return True
        return False

    # --- Chat Message Methods ---
    def add_message(self, record: Dict) -> ChatMessage:
        new_message = ChatMessage(**record)
        self.db.add(new_message)
        self.db.commit()
        return new_message

    def get_messages_by_session_id(self, session_id: str, limit: Optional[int] = None) -> List[ChatMessage]:
        """Messages oldest first; with `limit`, only the most recent ones."""
        query = self.db.query(ChatMessage).filter(ChatMessage.session_id == session_id)
        if limit:
            recent = query.order_by(ChatMessage.created_at.desc()).limit(limit).all()
            return list(reversed(recent))
        return query.order_by(ChatMessage.created_at.asc()).all()
