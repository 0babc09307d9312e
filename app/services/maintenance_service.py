# /app/services/maintenance_service.py

"""
Periodic housekeeping run by the application's lifespan:

- flag overdue loans and send due-soon reminders;
- purge expired reset tokens, OTPs and rate-limit windows;
- drop stale AI predictions and analytics.
"""

import asyncio
import logging
from datetime import datetime
from typing import Dict, Optional

from app.core.clock import utcnow
from app.core.config import settings
from app.db.database import SessionLocal
from .database_service import DatabaseService
from . import ai_analytics_service, ai_predictive_service, transaction_service
from .otp_service import otp_store
from .rate_limiter import rate_limiter
from .reset_token_service import reset_token_store

logger = logging.getLogger(__name__)


def purge_in_memory_stores() -> Dict[str, int]:
    return {
        "reset_tokens": reset_token_store.cleanup_expired(),
        "otps": otp_store.cleanup_expired(),
        "rate_limits": rate_limiter.cleanup(),
    }


def run_once(db: DatabaseService, now: Optional[datetime] = None) -> Dict[str, int]:
    now = now or utcnow()
    results = dict(transaction_service.run_overdue_sweep(db, now))
    results.update(purge_in_memory_stores())
    results["predictions"] = ai_predictive_service.cleanup_old_predictions(db, now)
    results["analytics"] = ai_analytics_service.cleanup_old_analytics(db, now)
    return results


def _run_with_new_session() -> Dict[str, int]:
    session = SessionLocal()
    try:
        return run_once(DatabaseService(session))
    finally:
        session.close()


async def maintenance_loop(interval_seconds: Optional[int] = None) -> None:
    interval = interval_seconds or settings.maintenance_interval_seconds
    logger.info("Maintenance loop started (every %ss)", interval)
    while True:
        try:
            results = await asyncio.to_thread(_run_with_new_session)
            if any(results.values()):
                logger.info("Maintenance: %s", results)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error("Maintenance run failed: %s", e, exc_info=True)
        await asyncio.sleep(interval)
