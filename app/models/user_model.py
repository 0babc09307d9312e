# /app/models/user_model.py

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, EmailStr, Field

from .base_model import APIModel


class Role(str, Enum):
    STUDENT = "STUDENT"
    LIBRARIAN = "LIBRARIAN"
    ADMIN = "ADMIN"


class UserCreate(APIModel):
    """Self-service registration. Always produces a STUDENT account."""
    username: str = Field(..., min_length=3, max_length=50)
    email: EmailStr
    full_name: str = Field(..., min_length=1)
    password: str = Field(..., min_length=6)
    student_id: Optional[str] = None
    phone: Optional[str] = None


class AdminUserCreate(UserCreate):
    role: Role = Role.STUDENT


class User(APIModel):
    id: str
    username: str
    email: str
    full_name: str
    student_id: Optional[str] = None
    phone: Optional[str] = None
    role: Role
    is_active: bool
    created_at: datetime


class UserSummary(APIModel):
    """Embedded in loan and request listings."""
    id: str
    username: str
    full_name: str
    email: str
    student_id: Optional[str] = None


class RoleUpdate(APIModel):
    role: Role


class ProfileUpdate(APIModel):
    full_name: Optional[str] = Field(None, min_length=1)
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    student_id: Optional[str] = None


class PasswordChange(APIModel):
    current_password: str
    new_password: str = Field(..., min_length=6)


class LoginRequest(APIModel):
    username: str = Field(..., description="Username or e-mail address.")
    password: str


class Token(BaseModel):
    # OAuth2 clients expect these exact snake_case keys.
    access_token: str
    token_type: str = "bearer"
