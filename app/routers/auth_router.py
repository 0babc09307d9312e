# /app/routers/auth_router.py

"""
Public authentication endpoints.

- Registration (`/register`) of student accounts
- Login, both the OAuth2 password flow (`/token`) and JSON (`/login`)
- The current user's profile (`/me`)
- The forgot-password flow (`/forgot-password`, `/verify-otp`, `/reset-password`)

The router only translates between HTTP and the services: business rules live
in `user_service` and `password_reset_service`.
"""

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordRequestForm

from app.core import security
from app.core.deps import get_current_active_user
from app.db.models.user_models import User as UserModel
from app.models.auth_model import (
    ForgotPasswordRequest,
    MessageResponse,
    ResetPasswordRequest,
    VerifyOtpRequest,
    VerifyOtpResponse,
)
from app.models.user_model import LoginRequest, Token, User, UserCreate
from app.services import password_reset_service, user_service
from app.services.database_service import DatabaseService, get_db_service
from app.services.password_reset_service import RateLimitExceeded

router = APIRouter()


def _client_ip(request: Request):
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None


def _too_many_requests(e: RateLimitExceeded) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        detail=str(e),
        headers={"Retry-After": str(e.retry_after)},
    )


def _issue_token(db: DatabaseService, identifier: str, password: str) -> Token:
    user = user_service.authenticate_user(db, identifier=identifier, password=password)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return Token(access_token=security.create_access_token(subject=user.id), token_type="bearer")


@router.post("/register", response_model=User, status_code=status.HTTP_201_CREATED)
def register_user(user_in: UserCreate, db: DatabaseService = Depends(get_db_service)):
    """Creates a STUDENT account. Duplicate username, e-mail or student id is a 400."""
    try:
        return user_service.create_user(db=db, user=user_in)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.post("/token", response_model=Token)
def login_for_access_token(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: DatabaseService = Depends(get_db_service),
):
    """OAuth2 password flow; `username` may hold the username or the e-mail."""
    return _issue_token(db, form_data.username, form_data.password)


@router.post("/login", response_model=Token)
def login(credentials: LoginRequest, db: DatabaseService = Depends(get_db_service)):
    return _issue_token(db, credentials.username, credentials.password)


@router.get("/me", response_model=User)
def read_current_user(current_user: UserModel = Depends(get_current_active_user)):
    return current_user


# --- Forgot password ---

@router.post("/forgot-password", response_model=MessageResponse)
async def forgot_password(
    body: ForgotPasswordRequest,
    request: Request,
    db: DatabaseService = Depends(get_db_service),
):
    try:
        message = await password_reset_service.request_reset(db, body.email.lower(), _client_ip(request))
    except RateLimitExceeded as e:
        raise _too_many_requests(e)
    return MessageResponse(message=message)


@router.post("/verify-otp", response_model=VerifyOtpResponse)
def verify_otp(body: VerifyOtpRequest, request: Request):
    try:
        token = password_reset_service.verify_code(body.email.lower(), body.otp, _client_ip(request))
    except RateLimitExceeded as e:
        raise _too_many_requests(e)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return VerifyOtpResponse(message="Code verified. You can now choose a new password.", reset_token=token)


@router.post("/reset-password", response_model=MessageResponse)
def reset_password(body: ResetPasswordRequest, db: DatabaseService = Depends(get_db_service)):
    try:
        password_reset_service.reset_password(db, body.token, body.new_password)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return MessageResponse(message="Password has been reset successfully.")
