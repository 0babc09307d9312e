# /app/services/database_helpers/user_repository_sql.py

"""
Raw SQLAlchemy queries for the `users` table.
"""

from typing import Dict, List, Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from app.db.models.user_models import User


class UserRepositorySQL:
    def __init__(self, db_session: Session):
        self.db = db_session

    def get_user_by_id(self, user_id: str) -> Optional[User]:
        return self.db.query(User).filter(User.id == user_id).first()

    def get_user_by_username(self, username: str) -> Optional[User]:
        return self.db.query(User).filter(User.username == username).first()

    def get_user_by_email(self, email: str) -> Optional[User]:
        """E-mail lookups are case-insensitive."""
        return self.db.query(User).filter(func.lower(User.email) == email.lower()).first()

    def get_user_by_login(self, identifier: str) -> Optional[User]:
        """Matches either the username or the e-mail address."""
        return (
            self.db.query(User)
            .filter(or_(User.username == identifier, func.lower(User.email) == identifier.lower()))
            .first()
        )

    def get_user_by_student_id(self, student_id: str) -> Optional[User]:
        return self.db.query(User).filter(User.student_id == student_id).first()

    def get_all_users(self) -> List[User]:
        return self.db.query(User).order_by(User.created_at.desc()).all()

    def get_users_by_role(self, role: str) -> List[User]:
        return self.db.query(User).filter(User.role == role).order_by(User.full_name.asc()).all()

    def count_users(self, role: Optional[str] = None) -> int:
        query = self.db.query(func.count(User.id))
        if role:
            query = query.filter(User.role == role)
        return query.scalar() or 0

    def add_user(self, record: Dict) -> User:
        new_user = User(**record)
        self.db.add(new_user)
        self.db.commit()
        self.db.refresh(new_user)
        return new_user

    def update_user(self, user_id: str, data: Dict) -> Optional[User]:
        db_user = self.get_user_by_id(user_id)
        if db_user:
            for key, value in data.items():
                setattr(db_user, key, value)
            self.db.commit()
            self.db.refresh(db_user)
        return db_user

    def delete_user(self, user_id: str) -> bool:
        """Deletes a user; the model's cascades remove everything they own."""
        db_user = self.get_user_by_id(user_id)
        if db_user:
            self.db.delete(db_user)
            self.db.commit()
            return True
        return False
