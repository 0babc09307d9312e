# /app/services/ai_predictive_service.py

"""
Predictive models for circulation.

The scores are deterministic heuristics over the borrowing history; Gemini is
only used to phrase the free-text risk assessment. The `calculate_*`
functions are pure (they take the rows and `now` explicitly); the public
functions load data, run them, and persist the significant results.
"""

import json
import logging
import math
import uuid
from collections import Counter
from datetime import datetime, timedelta
from typing import Dict, List, Optional

from app.core.clock import utcnow
from app.db.models.ai_models import AIPrediction
from app.db.models.book_models import Book
from app.db.models.circulation_models import Transaction
from app.db.models.user_models import User
from ..models.ai_model import PredictionType
from ..models.circulation_model import ACTIVE_TRANSACTION_STATUSES
from ..models.user_model import Role
from .database_service import DatabaseService
from . import gemini_service, prompt_library

logger = logging.getLogger(__name__)

RISK_STORE_THRESHOLD = 0.3
FORECAST_STORE_THRESHOLD = 0.5
FORECAST_BOOK_LIMIT = 20
FORECAST_VALID_DAYS = 90
DUE_DATE_VALID_DAYS = 7
PREDICTION_RETENTION_DAYS = 7
EXAM_MONTHS = (5, 12)

TECHNICAL_MARKERS = ("textbook", "reference", "technical")
ACADEMIC_MARKERS = ("textbook", "academic")
FICTION_MARKERS = ("fiction", "novel")


def _category_has(book: Book, markers) -> bool:
    category = (book.category or "").lower()
    return any(marker in category for marker in markers)


def _is_active(transaction: Transaction) -> bool:
    return transaction.status in ACTIVE_TRANSACTION_STATUSES


def _completed(history: List[Transaction]) -> List[Transaction]:
    return [t for t in history if t.returned_date is not None]


def _late_returns(completed: List[Transaction]) -> int:
    return sum(1 for t in completed if t.returned_date > t.due_date)


def _is_exam_period(user: User, now: datetime) -> bool:
    return user.role == Role.STUDENT.value and now.month in EXAM_MONTHS


def _new_id() -> str:
    return f"pred_{uuid.uuid4().hex[:12]}"


# --- Pure scoring functions ---

def calculate_overdue_risk(transaction: Transaction, user_history: List[Transaction], now: datetime) -> Dict:
    days_until_due = math.ceil((transaction.due_date - now).total_seconds() / 86400)
    completed = _completed(user_history)

    risk = 0.1
    factors: List[str] = []

    if completed:
        late_rate = _late_returns(completed) / len(completed)
        risk += late_rate * 0.4
        if late_rate > 0.3:
            factors.append(f"high historical overdue rate ({late_rate * 100:.0f}%)")

    if days_until_due <= 2:
        risk += 0.3
        factors.append("book due very soon")
    elif days_until_due <= 5:
        risk += 0.15
        factors.append("book due soon")

    if _category_has(transaction.book, TECHNICAL_MARKERS):
        risk += 0.1
        factors.append("complex subject matter")

    if sum(1 for t in user_history if _is_active(t)) > 3:
        risk += 0.15
        factors.append("multiple active borrowings")

    if _is_exam_period(transaction.user, now):
        risk += 0.1
        factors.append("exam period timing")

    risk = round(min(risk, 1.0), 4)

    if risk > 0.7:
        actions = ["Send immediate reminder", "Consider extension offer"]
    elif risk > 0.5:
        actions = ["Send early reminder", "Monitor closely"]
    elif risk > 0.3:
        actions = ["Standard reminder schedule"]
    else:
        actions = []

    return {
        "user_id": transaction.user_id,
        "transaction_id": transaction.id,
        "book_id": transaction.book_id,
        "risk_score": risk,
        "factors": factors,
        "recommended_actions": actions,
        "days_until_due": days_until_due,
        "confidence": min(0.9, 0.5 + len(completed) * 0.05),
    }


def seasonal_factors(book: Book, now: datetime) -> List[str]:
    factors = []
    month = now.month
    if _category_has(book, ACADEMIC_MARKERS):
        if 9 <= month <= 12:
            factors.append("academic semester peak")
        elif 1 <= month <= 5:
            factors.append("spring semester demand")
    if _category_has(book, FICTION_MARKERS):
        if 6 <= month <= 8:
            factors.append("summer reading season")
        elif 11 <= month <= 12:
            factors.append("holiday reading period")
    return factors


def calculate_popularity_forecast(book: Book, book_transactions: List[Transaction], now: datetime) -> Dict:
    window_start = now - timedelta(days=180)
    recent = [t for t in book_transactions if t.borrowed_date >= window_start]

    per_month = Counter(t.borrowed_date.strftime("%Y-%m") for t in recent)
    demand = [per_month[month] for month in sorted(per_month)]
    average = sum(demand) / len(demand) if demand else 0.0

    trend = "stable"
    if len(demand) >= 3:
        latest = sum(demand[-2:]) / 2
        older = sum(demand[:-2]) / max(1, len(demand) - 2)
        if latest > older * 1.2:
            trend = "increasing"
        elif latest < older * 0.8:
            trend = "decreasing"

    factors = seasonal_factors(book, now)
    expected = average
    if factors:
        expected *= 1.3
    if trend == "increasing":
        expected *= 1.2
    elif trend == "decreasing":
        expected *= 0.8

    utilisation = (book.total_copies - book.available_copies) / book.total_copies if book.total_copies else 0
    recommended = book.total_copies
    if expected > book.total_copies * 0.8:
        recommended = math.ceil(expected * 1.2)
    elif utilisation < 0.3 and trend == "decreasing":
        recommended = max(1, math.floor(book.total_copies * 0.8))

    return {
        "book_id": book.id,
        "expected_demand": round(expected, 1),
        "trend_direction": trend,
        "seasonal_factors": factors,
        "recommended_copies": recommended,
        "confidence": min(0.9, 0.3 + len(recent) * 0.1),
    }


def calculate_optimal_due_date(user: User, book: Book, user_history: List[Transaction], now: datetime) -> Dict:
    completed = _completed(user_history)

    days = 14.0
    if completed:
        days = sum((t.returned_date - t.borrowed_date).total_seconds() / 86400 for t in completed) / len(completed)

    reasoning: List[str] = []
    if _category_has(book, TECHNICAL_MARKERS):
        days *= 1.5
        reasoning.append("Technical/reference material requires extended reading time")
    elif _category_has(book, FICTION_MARKERS):
        days *= 0.9
        reasoning.append("Fiction typically has faster reading pace")

    profile = "regular reader"
    if len(completed) > 10:
        profile = "frequent reader"
        days *= 0.9
        reasoning.append("Frequent reader with established reading habits")
    elif len(completed) < 3:
        profile = "new reader"
        days *= 1.2
        reasoning.append("New user needs additional time to establish reading routine")

    if completed and _late_returns(completed) > len(completed) * 0.3:
        days *= 1.3
        reasoning.append("User history shows tendency for extended reading periods")

    if sum(1 for t in user_history if _is_active(t)) > 2:
        days *= 1.2
        reasoning.append("Multiple active borrowings may extend reading time")

    if _is_exam_period(user, now):
        days *= 1.4
        reasoning.append("Exam period requires extended due dates")

    loan_days = max(7, min(30, round(days)))
    return {
        "user_id": user.id,
        "book_id": book.id,
        "loan_days": loan_days,
        "suggested_due_date": now + timedelta(days=loan_days),
        "reasoning": reasoning,
        "user_profile": profile,
        "confidence": min(0.9, 0.5 + len(completed) * 0.05),
    }


# --- Persisted predictions ---

def predict_overdue_risk(db: DatabaseService, user_id: Optional[str] = None,
                         now: Optional[datetime] = None) -> List[AIPrediction]:
    now = now or utcnow()
    active = db.get_active_transactions()
    if user_id:
        active = [t for t in active if t.user_id == user_id]

    histories: Dict[str, List[Transaction]] = {}
    records = []
    for transaction in active:
        if transaction.user_id not in histories:
            histories[transaction.user_id] = db.get_transactions_by_user(transaction.user_id)
        risk = calculate_overdue_risk(transaction, histories[transaction.user_id], now)
        if risk["risk_score"] <= RISK_STORE_THRESHOLD:
            continue
        records.append({
            "id": _new_id(),
            "type": PredictionType.OVERDUE_RISK.value,
            "target_id": transaction.user_id,
            "prediction": risk,
            "confidence": risk["confidence"],
            "reasoning": (
                f'User has {risk["risk_score"] * 100:.0f}% risk of returning "{transaction.book.title}" late. '
                f'Key factors: {", ".join(risk["factors"]) or "none"}'
            ),
            "valid_until": transaction.due_date,
        })
    stored = db.add_predictions(records) if records else []
    logger.info("Overdue risk: %d loans scored, %d stored", len(active), len(stored))
    return stored


def forecast_book_popularity(db: DatabaseService, book_id: Optional[str] = None,
                             now: Optional[datetime] = None) -> List[AIPrediction]:
    now = now or utcnow()
    books = db.get_all_books()
    if book_id:
        books = [b for b in books if b.id == book_id]

    records = []
    for book in books[:FORECAST_BOOK_LIMIT]:
        forecast = calculate_popularity_forecast(book, db.get_transactions_by_book(book.id), now)
        if forecast["confidence"] <= FORECAST_STORE_THRESHOLD:
            continue
        records.append({
            "id": _new_id(),
            "type": PredictionType.POPULARITY_FORECAST.value,
            "target_id": book.id,
            "prediction": forecast,
            "confidence": forecast["confidence"],
            "reasoning": (
                f'"{book.title}" is predicted to have {forecast["trend_direction"]} demand '
                f'({forecast["expected_demand"]} loans/month). '
                f'Factors: {", ".join(forecast["seasonal_factors"]) or "none"}'
            ),
            "valid_until": now + timedelta(days=FORECAST_VALID_DAYS),
        })
    stored = db.add_predictions(records) if records else []
    logger.info("Popularity forecast: %d books scored, %d stored", min(len(books), FORECAST_BOOK_LIMIT), len(stored))
    return stored


def suggest_optimal_due_date(db: DatabaseService, user_id: str, book_id: str,
                             now: Optional[datetime] = None) -> Dict:
    user = db.get_user_by_id(user_id)
    book = db.get_book_by_id(book_id)
    if not user or not book:
        raise LookupError("User or book not found")

    now = now or utcnow()
    suggestion = calculate_optimal_due_date(user, book, db.get_transactions_by_user(user_id), now)
    db.add_predictions([{
        "id": _new_id(),
        "type": PredictionType.OPTIMAL_DUE_DATE.value,
        "target_id": f"{user_id}-{book_id}",
        "prediction": {**suggestion, "suggested_due_date": suggestion["suggested_due_date"].isoformat()},
        "confidence": suggestion["confidence"],
        "reasoning": f'User profile: {suggestion["user_profile"]}. ' + " ".join(suggestion["reasoning"]),
        "valid_until": now + timedelta(days=DUE_DATE_VALID_DAYS),
    }])
    return suggestion


async def generate_risk_assessment(db: DatabaseService, user_id: str) -> Optional[str]:
    user = db.get_user_by_id(user_id)
    if not user:
        return None

    history = db.get_transactions_by_user(user_id)
    completed = _completed(history)
    active = [t for t in history if _is_active(t)]
    record = {
        "member": user.full_name,
        "role": user.role,
        "total_loans": len(history),
        "completed_loans": len(completed),
        "active_loans": [{"title": t.book.title, "due": t.due_date.strftime("%Y-%m-%d")} for t in active],
        "late_return_rate_percent": round(_late_returns(completed) / len(completed) * 100, 1) if completed else 0,
        "stored_risk_predictions": len(db.get_predictions_by_target(user_id)),
    }
    try:
        prompt = prompt_library.RISK_ASSESSMENT_PROMPT.format(data=json.dumps(record, indent=2))
        return (await gemini_service.generate_text(prompt, temperature=0.3)).strip()
    except Exception as e:
        logger.warning("Risk assessment fell back to template for %s: %s", user_id, e)
        return (
            f"Risk assessment for {user.full_name}: based on available data, standard monitoring and "
            "reminder procedures should be sufficient. Regular check-ins are recommended for active loans."
        )


# --- Queries & housekeeping ---

def get_all_predictions(db: DatabaseService) -> List[AIPrediction]:
    return db.get_all_predictions()


def get_predictions_by_type(db: DatabaseService, prediction_type: PredictionType) -> List[AIPrediction]:
    return db.get_predictions_by_type(prediction_type.value)


def get_predictions_by_target(db: DatabaseService, target_id: str) -> List[AIPrediction]:
    return db.get_predictions_by_target(target_id)


def cleanup_old_predictions(db: DatabaseService, now: Optional[datetime] = None) -> int:
    cutoff = (now or utcnow()) - timedelta(days=PREDICTION_RETENTION_DAYS)
    return db.delete_predictions_before(cutoff)
