# /app/models/auth_model.py

"""Request and response contracts for the OTP-based password reset flow."""

from pydantic import EmailStr, Field

from .base_model import APIModel


class ForgotPasswordRequest(APIModel):
    email: EmailStr


class VerifyOtpRequest(APIModel):
    email: EmailStr
    otp: str = Field(..., pattern=r"^\d{6}$")


class VerifyOtpResponse(APIModel):
    message: str
    reset_token: str


class ResetPasswordRequest(APIModel):
    token: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=6)


class MessageResponse(APIModel):
    message: str
