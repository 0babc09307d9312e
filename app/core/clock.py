# /app/core/clock.py

from datetime import datetime, timezone


def utcnow() -> datetime:
    """Naive UTC timestamp; SQLite drops tzinfo so every stored datetime is naive UTC."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
