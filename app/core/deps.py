# /app/core/deps.py

"""
Authentication and authorisation dependencies shared by the routers.
"""

from typing import Callable

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from app.db.models.user_models import User
from app.models.user_model import Role
from app.services.database_service import DatabaseService, get_db_service
from . import security

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/token")


def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: DatabaseService = Depends(get_db_service),
) -> User:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    user_id = security.decode_access_token(token)
    if not user_id:
        raise credentials_exception
    user = db.get_user_by_id(user_id)
    if user is None:
        raise credentials_exception
    return user


def get_current_active_user(current_user: User = Depends(get_current_user)) -> User:
    if not current_user.is_active:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Inactive user")
    return current_user


def require_roles(*roles: Role) -> Callable[..., User]:
    """Builds a dependency that admits only users holding one of `roles`."""
    allowed = {role.value for role in roles}

    def dependency(current_user: User = Depends(get_current_active_user)) -> User:
        if current_user.role not in allowed:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")
        return current_user

    return dependency


require_staff = require_roles(Role.LIBRARIAN, Role.ADMIN)
require_admin = require_roles(Role.ADMIN)


def is_staff(user: User) -> bool:
    return user.role in (Role.LIBRARIAN.value, Role.ADMIN.value)
