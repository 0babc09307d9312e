# /app/services/password_reset_service.py

"""
The three-step forgot-password flow:

1. `request_reset`: e-mail a 6-digit code to the account's address.
2. `verify_code`: exchange a correct code for a single-use reset token.
3. `reset_password`: redeem the token and store the new password.

Steps 1 and 2 are rate limited per client IP and per e-mail address. Step 1
answers identically whether or not the address belongs to an account.
"""

import logging
from typing import Optional

from .database_service import DatabaseService
from . import email_service, user_service
from .otp_service import OtpStore, otp_store
from .rate_limiter import RateLimiter, rate_limiter
from .reset_token_service import ResetTokenStore, reset_token_store

logger = logging.getLogger(__name__)

RESET_REQUESTED_MESSAGE = "If an account exists for this e-mail, a verification code has been sent."


class RateLimitExceeded(Exception):
    def __init__(self, retry_after: int):
        super().__init__(f"Too many requests. Try again in {retry_after} seconds.")
        self.retry_after = retry_after


def _check(limiter: RateLimiter, limit_type: str, identifier: Optional[str]) -> None:
    if not identifier:
        return
    limited, retry_after = limiter.hit(limit_type, identifier)
    if limited:
        logger.warning("Rate limit %s hit for %s", limit_type, identifier)
        raise RateLimitExceeded(retry_after)


async def request_reset(db: DatabaseService, email: str, client_ip: Optional[str],
                        otps: OtpStore = otp_store, limiter: RateLimiter = rate_limiter) -> str:
    _check(limiter, "forgot_password_ip", client_ip)
    _check(limiter, "forgot_password_email", email)

    user = db.get_user_by_email(email)
    if user is None:
        logger.info("Password reset requested for unknown address")
        return RESET_REQUESTED_MESSAGE

    otp = otps.create_otp(email)
    sent = await email_service.send_otp_email(user.email, otp, user.full_name)
    if not sent:
        logger.warning("Could not deliver reset code to user %s", user.username)
    return RESET_REQUESTED_MESSAGE


def verify_code(email: str, otp: str, client_ip: Optional[str],
                otps: OtpStore = otp_store, tokens: ResetTokenStore = reset_token_store,
                limiter: RateLimiter = rate_limiter) -> str:
    """Returns a reset token; raises ValueError for a wrong, expired or exhausted code."""
    _check(limiter, "verify_otp_ip", client_ip)
    _check(limiter, "verify_otp_email", email)

    result = otps.verify_otp(email, otp)
    if not result.valid:
        raise ValueError(result.message)
    return tokens.store_token(email)


def reset_password(db: DatabaseService, token: str, new_password: str,
                   tokens: ResetTokenStore = reset_token_store) -> None:
    email = tokens.verify_and_consume(token)
    if not email:
        raise ValueError("Invalid or expired reset token")
    if not user_service.set_password_by_email(db, email, new_password):
        raise ValueError("Invalid or expired reset token")
