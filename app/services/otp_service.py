# /app/services/otp_service.py

"""
One-time passcodes for the forgot-password flow.

One active 6-digit code per e-mail address. A code is removed when it is
used, when it expires, or once `max_attempts` wrong guesses have been made.
"""

import logging
import math
import secrets
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from app.core.config import settings

logger = logging.getLogger(__name__)


@dataclass
class _OtpEntry:
    otp: str
    expires_at: float
    attempts: int = 0


@dataclass
class OtpVerification:
    valid: bool
    message: str
    remaining_attempts: Optional[int] = None


class OtpStore:
    def __init__(self, expiry_minutes: int = None, max_attempts: int = None,
                 clock: Callable[[], float] = time.time):
        self.expiry_seconds = (expiry_minutes or settings.otp_expiry_minutes) * 60
        self.max_attempts = max_attempts or settings.otp_max_attempts
        self._clock = clock
        self._entries: Dict[str, _OtpEntry] = {}
        self._lock = threading.Lock()

    @staticmethod
    def generate_otp() -> str:
        return f"{secrets.randbelow(1_000_000):06d}"

    def create_otp(self, email: str) -> str:
        """Issues a fresh code for `email`, replacing any previous one."""
        otp = self.generate_otp()
        with self._lock:
            self._entries[email.strip().lower()] = _OtpEntry(
                otp=otp, expires_at=self._clock() + self.expiry_seconds
            )
        return otp

    def verify_otp(self, email: str, otp: str) -> OtpVerification:
        key = email.strip().lower()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return OtpVerification(False, "No verification code found. Please request a new one.")
            if entry.expires_at <= self._clock():
                del self._entries[key]
                return OtpVerification(False, "Verification code has expired. Please request a new one.")
            if entry.attempts >= self.max_attempts:
                del self._entries[key]
                return OtpVerification(False, "Too many failed attempts. Please request a new code.")

            entry.attempts += 1
            if secrets.compare_digest(entry.otp, otp.strip()):
                del self._entries[key]
                return OtpVerification(True, "Verification code accepted.")

            remaining = self.max_attempts - entry.attempts
            if remaining <= 0:
                del self._entries[key]
                return OtpVerification(False, "Too many failed attempts. Please request a new code.", 0)
            return OtpVerification(False, f"Invalid verification code. {remaining} attempt(s) remaining.", remaining)

    def has_active_otp(self, email: str) -> bool:
        return self.get_remaining_seconds(email) > 0

    def get_remaining_seconds(self, email: str) -> int:
        with self._lock:
            entry = self._entries.get(email.strip().lower())
            if entry is None:
                return 0
            return max(0, math.ceil(entry.expires_at - self._clock()))

    def cleanup_expired(self) -> int:
        now = self._clock()
        with self._lock:
            expired = [key for key, entry in self._entries.items() if entry.expires_at <= now]
            for key in expired:
                del self._entries[key]
        return len(expired)

    def stats(self) -> Dict[str, int]:
        now = self._clock()
        with self._lock:
            active = sum(1 for entry in self._entries.values() if entry.expires_at > now)
            return {"total": len(self._entries), "active": active, "expired": len(self._entries) - active}

    def clear_all(self) -> None:
        with self._lock:
            self._entries.clear()


otp_store = OtpStore()
