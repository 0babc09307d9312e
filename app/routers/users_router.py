# /app/routers/users_router.py

"""
Account management. Mounted at `/api`:

- `/users` for admins (list, create with a role, change role, delete)
- `/students` for library staff
- `/profile` for the signed-in user
"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Response, status

from ..core.deps import get_current_active_user, require_admin, require_staff
from ..models import auth_model, user_model
from ..services import user_service
from ..services.database_service import DatabaseService, get_db_service

router = APIRouter()


# --- ADMIN: USER ACCOUNTS ---

@router.get("/users", response_model=List[user_model.User], summary="Get All Users")
def get_all_users(db: DatabaseService = Depends(get_db_service), _admin=Depends(require_admin)):
    return user_service.get_all_users(db)


@router.post("/users", response_model=user_model.User, status_code=status.HTTP_201_CREATED, summary="Create a User With Any Role")
def create_user(user_in: user_model.AdminUserCreate, db: DatabaseService = Depends(get_db_service), _admin=Depends(require_admin)):
    try:
        return user_service.create_user_as_admin(db, user_in)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.put("/users/{user_id}/role", response_model=user_model.User, summary="Change a User's Role")
def update_user_role(user_id: str, body: user_model.RoleUpdate, db: DatabaseService = Depends(get_db_service), _admin=Depends(require_admin)):
    updated = user_service.update_user_role(db, user_id, body.role)
    if updated is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"User with ID {user_id} not found")
    return updated


@router.delete("/users/{user_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a User")
def delete_user(user_id: str, db: DatabaseService = Depends(get_db_service), admin=Depends(require_admin)):
    try:
        was_deleted = user_service.delete_user(db, user_id, acting_user_id=admin.id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    if not was_deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"User with ID {user_id} not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# --- STAFF: STUDENTS ---

@router.get("/students", response_model=List[user_model.User], summary="Get All Students")
def get_students(db: DatabaseService = Depends(get_db_service), _staff=Depends(require_staff)):
    return user_service.get_students(db)


# --- SELF: PROFILE ---

@router.put("/profile", response_model=user_model.User, summary="Update My Profile")
def update_profile(profile: user_model.ProfileUpdate, db: DatabaseService = Depends(get_db_service), current_user=Depends(get_current_active_user)):
    try:
        return user_service.update_profile(db, current_user, profile)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.put("/profile/password", response_model=auth_model.MessageResponse, summary="Change My Password")
def change_password(change: user_model.PasswordChange, db: DatabaseService = Depends(get_db_service), current_user=Depends(get_current_active_user)):
    try:
        user_service.change_password(db, current_user, change)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return auth_model.MessageResponse(message="Password updated successfully.")
