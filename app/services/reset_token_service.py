# /app/services/reset_token_service.py

"""
In-memory store of password-reset tokens.

A token is 32 random bytes, hex encoded, bound to a lower-cased e-mail address
and valid for a fixed number of minutes. It can be redeemed exactly once:
`verify_and_consume` removes it whether it succeeds or finds it expired.
Tokens live only in this process, so a restart invalidates every pending
reset.
"""

import logging
import secrets
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from app.core.config import settings

logger = logging.getLogger(__name__)


@dataclass
class _TokenEntry:
    email: str
    expires_at: float


class ResetTokenStore:
    def __init__(self, expiry_minutes: int = None, clock: Callable[[], float] = time.time):
        self.expiry_seconds = (expiry_minutes or settings.reset_token_expiry_minutes) * 60
        self._clock = clock
        self._tokens: Dict[str, _TokenEntry] = {}
        self._lock = threading.Lock()

    def generate_token(self) -> str:
        return secrets.token_hex(32)

    def store_token(self, email: str) -> str:
        """Issues a new token for `email` and returns it."""
        token = self.generate_token()
        with self._lock:
            self._purge_expired_locked()
            self._tokens[token] = _TokenEntry(
                email=email.strip().lower(),
                expires_at=self._clock() + self.expiry_seconds,
            )
        return token

    def verify_and_consume(self, token: str) -> Optional[str]:
        """Returns the token's e-mail once; None if unknown, used or expired."""
        with self._lock:
            entry = self._tokens.pop(token, None)
        if entry is None:
            return None
        if entry.expires_at <= self._clock():
            return None
        return entry.email

    def is_token_valid(self, token: str) -> bool:
        with self._lock:
            entry = self._tokens.get(token)
            if entry is None:
                return False
            if entry.expires_at <= self._clock():
                del self._tokens[token]
                return False
            return True

    def cleanup_expired(self) -> int:
        with self._lock:
            return self._purge_expired_locked()

    def __len__(self) -> int:
        with self._lock:
            return len(self._tokens)

    def _purge_expired_locked(self) -> int:
        now = self._clock()
        expired = [token for token, entry in self._tokens.items() if entry.expires_at <= now]
        for token in expired:
            del self._tokens[token]
        if expired:
            logger.debug("Purged %d expired reset tokens", len(expired))
        return len(expired)


reset_token_store = ResetTokenStore()
