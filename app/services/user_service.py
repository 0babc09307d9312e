# /app/services/user_service.py

"""
Business logic for library accounts: registration, authentication, role and
profile management, and the seeding of the default staff accounts.

Uniqueness violations and other rule breaks raise `ValueError`; missing
records are reported by returning `None`/`False`.
"""

import logging
import uuid
from typing import Dict, List, Optional

from app.core import security
from app.core.config import settings
from app.db.models.user_models import User
from app.models.user_model import AdminUserCreate, PasswordChange, ProfileUpdate, Role, UserCreate
from .database_service import DatabaseService

logger = logging.getLogger(__name__)


def _new_user_id() -> str:
    return f"usr_{uuid.uuid4().hex[:12]}"


def _ensure_unique(db: DatabaseService, username: Optional[str] = None, email: Optional[str] = None,
                   student_id: Optional[str] = None, exclude_user_id: Optional[str] = None) -> None:
    if username:
        existing = db.get_user_by_username(username)
        if existing and existing.id != exclude_user_id:
            raise ValueError("Username already exists")
    if email:
        existing = db.get_user_by_email(email)
        if existing and existing.id != exclude_user_id:
            raise ValueError("Email already registered")
    if student_id:
        existing = db.get_user_by_student_id(student_id)
        if existing and existing.id != exclude_user_id:
            raise ValueError("Student ID already registered")


def create_user(db: DatabaseService, user: UserCreate, role: Role = Role.STUDENT) -> User:
    """Creates an account after checking username, e-mail and student id are free."""
    _ensure_unique(db, username=user.username, email=user.email, student_id=user.student_id)
    record = {
        "id": _new_user_id(),
        "username": user.username,
        "email": user.email.lower(),
        "full_name": user.full_name,
        "student_id": user.student_id or None,
        "phone": user.phone,
        "hashed_password": security.get_password_hash(user.password),
        "role": role.value,
    }
    new_user = db.add_user(record)
    logger.info("Created %s account %s", role.value, new_user.username)
    return new_user


def create_user_as_admin(db: DatabaseService, user: AdminUserCreate) -> User:
    return create_user(db, user, role=user.role)


def authenticate_user(db: DatabaseService, identifier: str, password: str) -> Optional[User]:
    """Returns the active user matching the username/e-mail and password, else None."""
    user = db.get_user_by_login(identifier)
    if not user or not security.verify_password(password, user.hashed_password):
        return None
    if not user.is_active:
        return None
    return user


def get_all_users(db: DatabaseService) -> List[User]:
    return db.get_all_users()


def get_students(db: DatabaseService) -> List[User]:
    return db.get_users_by_role(Role.STUDENT.value)


def update_user_role(db: DatabaseService, user_id: str, role: Role) -> Optional[User]:
    return db.update_user(user_id, {"role": role.value})


def delete_user(db: DatabaseService, user_id: str, acting_user_id: str) -> bool:
    if user_id == acting_user_id:
        raise ValueError("You cannot delete your own account")
    if not db.get_user_by_id(user_id):
        return False
    if db.count_active_transactions(user_id=user_id):
        raise ValueError("User still has borrowed books")
    return db.delete_user(user_id)


def update_profile(db: DatabaseService, user: User, profile: ProfileUpdate) -> User:
    data: Dict = profile.model_dump(exclude_unset=True)
    # full_name and email are NOT NULL; an explicit null means "leave unchanged".
    data = {key: value for key, value in data.items() if value is not None or key not in ("full_name", "email")}
    if data.get("email"):
        data["email"] = data["email"].lower()
    if "student_id" in data:
        data["student_id"] = (data["student_id"] or "").strip() or None
    _ensure_unique(
        db,
        email=data.get("email"),
        student_id=data.get("student_id"),
        exclude_user_id=user.id,
    )
    return db.update_user(user.id, data)


def change_password(db: DatabaseService, user: User, change: PasswordChange) -> None:
    if not security.verify_password(change.current_password, user.hashed_password):
        raise ValueError("Current password is incorrect")
    db.update_user(user.id, {"hashed_password": security.get_password_hash(change.new_password)})


def set_password_by_email(db: DatabaseService, email: str, new_password: str) -> bool:
    user = db.get_user_by_email(email)
    if not user:
        return False
    db.update_user(user.id, {"hashed_password": security.get_password_hash(new_password)})
    logger.info("Password reset for user %s", user.username)
    return True


def seed_default_users(db: DatabaseService) -> int:
    """Creates the default admin and librarian accounts if they are missing."""
    defaults = [
        (settings.default_admin_username, settings.default_admin_email,
         settings.default_admin_password, "System Administrator", Role.ADMIN),
        (settings.default_librarian_username, settings.default_librarian_email,
         settings.default_librarian_password, "Head Librarian", Role.LIBRARIAN),
    ]
    created = 0
    for username, email, password, full_name, role in defaults:
        if db.get_user_by_username(username) or db.get_user_by_email(email):
            continue
        db.add_user({
            "id": _new_user_id(),
            "username": username,
            "email": email,
            "full_name": full_name,
            "hashed_password": security.get_password_hash(password),
            "role": role.value,
        })
        logger.info("Seeded default %s account '%s'", role.value, username)
        created += 1
    return created
