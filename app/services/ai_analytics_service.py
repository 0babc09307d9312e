# /app/services/ai_analytics_service.py

"""
Library-wide analytics snapshots.

Each report is computed from the database, handed to Gemini for a short list
of staff-facing insights, and stored with a validity window. If Gemini is
unavailable the insights are written from a template instead.
"""

import json
import logging
import uuid
from collections import Counter, defaultdict
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional

from app.core.clock import utcnow
from app.db.models.ai_models import AIAnalytics
from ..models.ai_model import AnalyticsType, PredictionType
from ..models.circulation_model import BookRequestStatus, TransactionStatus
from ..models.user_model import Role
from .database_service import DatabaseService
from . import gemini_service, prompt_library

logger = logging.getLogger(__name__)

RECENT_DAYS = 30
TREND_MONTHS = 6
ANALYTICS_RETENTION_DAYS = 30
TOP_N = 10

VALIDITY_DAYS = {
    AnalyticsType.USAGE_PATTERNS: 7,
    AnalyticsType.INVENTORY_INSIGHTS: 14,
    AnalyticsType.USER_BEHAVIOR: 7,
    AnalyticsType.PERFORMANCE_METRICS: 3,
}

TITLES = {
    AnalyticsType.USAGE_PATTERNS: (
        "Library Usage Patterns Analysis",
        "Borrowing volume, popular categories, peak hours and top borrowers over the last 30 days",
    ),
    AnalyticsType.INVENTORY_INSIGHTS: (
        "Inventory Analysis & Purchase Recommendations",
        "Collection usage by title and category with purchase recommendations",
    ),
    AnalyticsType.USER_BEHAVIOR: (
        "User Behavior & Engagement Analysis",
        "Member activity, engagement and reading preferences",
    ),
    AnalyticsType.PERFORMANCE_METRICS: (
        "Library System Performance Metrics",
        "Borrowing trend and key circulation rates",
    ),
}


def _pct(part: float, whole: float) -> float:
    return round(part / whole * 100, 1) if whole else 0.0


def _is_overdue(transaction, now: datetime) -> bool:
    if transaction.status == TransactionStatus.OVERDUE.value:
        return True
    return transaction.status == TransactionStatus.BORROWED.value and transaction.due_date < now


# --- Deterministic analyses ---

def analyze_usage_patterns(transactions, books, users, now: datetime) -> Dict:
    since = now - timedelta(days=RECENT_DAYS)
    recent = [t for t in transactions if t.borrowed_date >= since]
    categories = {b.id: b.category for b in books}
    names = {u.id: u.full_name for u in users}

    returned = [t for t in recent if t.returned_date]
    average_duration = 14.0
    if returned:
        average_duration = sum(
            (t.returned_date - t.borrowed_date).total_seconds() / 86400 for t in returned
        ) / len(returned)

    category_counts = Counter(categories[t.book_id] for t in recent if t.book_id in categories)
    hour_counts = Counter(t.borrowed_date.hour for t in recent)
    borrower_counts = Counter(t.user_id for t in recent)

    return {
        "total_borrowed": len(recent),
        "total_returned": len(returned),
        "currently_borrowed": sum(1 for t in recent if t.returned_date is None),
        "overdue_books": sum(1 for t in recent if _is_overdue(t, now)),
        "popular_categories": [
            {"category": c, "count": n} for c, n in category_counts.most_common(TOP_N)
        ],
        "peak_borrowing_hours": [
            {"hour": h, "count": n} for h, n in hour_counts.most_common(6)
        ],
        "average_borrowing_duration": round(average_duration, 1),
        "top_borrowers": [
            {"user_id": uid, "full_name": names.get(uid, "Unknown"), "count": n}
            for uid, n in borrower_counts.most_common(TOP_N)
        ],
    }


def purchase_recommendations(book_stats: List[Dict], distribution: List[Dict]) -> List[Dict]:
    recommendations = []

    high_demand = [b for b in book_stats if b["borrow_count"] > 5 and b["available_copies"] == 0]
    if high_demand:
        recommendations.append({
            "category": high_demand[0]["category"],
            "reason": f"High demand with {len(high_demand)} books having zero availability",
            "priority": 1,
        })

    if distribution:
        average = sum(c["total_books"] for c in distribution) / len(distribution)
        for category in distribution:
            if category["total_books"] < average * 0.7:
                recommendations.append({
                    "category": category["category"],
                    "reason": f"Category is underrepresented with only {category['total_books']} books",
                    "priority": 2,
                })

    return recommendations[:5]


def analyze_inventory(transactions, books) -> Dict:
    borrow_counts = Counter(t.book_id for t in transactions)
    book_stats = [
        {
            "book_id": b.id,
            "title": b.title,
            "author": b.author,
            "category": b.category,
            "borrow_count": borrow_counts.get(b.id, 0),
            "available_copies": b.available_copies,
            "total_copies": b.total_copies,
        }
        for b in books
    ]
    by_popularity = sorted(book_stats, key=lambda b: b["borrow_count"], reverse=True)
    least_popular = sorted(
        (b for b in book_stats if b["borrow_count"] > 0), key=lambda b: b["borrow_count"]
    )

    per_category = defaultdict(lambda: {"total": 0, "available": 0})
    for b in books:
        per_category[b.category]["total"] += b.total_copies
        per_category[b.category]["available"] += b.available_copies
    distribution = sorted(
        (
            {"category": c, "total_books": s["total"], "available_books": s["available"]}
            for c, s in per_category.items()
        ),
        key=lambda c: c["total_books"],
        reverse=True,
    )

    return {
        "total_books": sum(b.total_copies for b in books),
        "available_books": sum(b.available_copies for b in books),
        "most_popular_books": by_popularity[:TOP_N],
        "least_popular_books": least_popular[:TOP_N],
        "category_distribution": distribution,
        "recommended_purchases": purchase_recommendations(by_popularity, distribution),
    }


def analyze_user_behavior(users, transactions, now: datetime) -> Dict:
    since = now - timedelta(days=RECENT_DAYS)
    active_ids = {t.user_id for t in transactions if t.borrowed_date >= since}

    readers_per_category = defaultdict(set)
    for t in transactions:
        if t.book is not None:
            readers_per_category[t.book.category].add(t.user_id)
    preferences = sorted(
        ({"category": c, "user_count": len(ids)} for c, ids in readers_per_category.items()),
        key=lambda p: p["user_count"],
        reverse=True,
    )

    total = len(users)
    return {
        "total_users": total,
        "active_users": len(active_ids),
        "students_count": sum(1 for u in users if u.role == Role.STUDENT.value),
        "librarians_count": sum(1 for u in users if u.role == Role.LIBRARIAN.value),
        "average_books_per_user": round(len(transactions) / total, 1) if total else 0.0,
        "reading_preferences": preferences,
        "retention_rate": _pct(len(active_ids), total),
        "engagement_score": round(min(100.0, len(active_ids) / max(1, total) * 150), 1),
    }


def analyze_performance(transactions, requests, books, now: datetime) -> Dict:
    trend_since = now - timedelta(days=TREND_MONTHS * 30)
    monthly = Counter(
        t.borrowed_date.strftime("%Y-%m") for t in transactions if t.borrowed_date >= trend_since
    )

    since = now - timedelta(days=RECENT_DAYS)
    recent = [t for t in transactions if t.borrowed_date >= since]
    recent_requests = [r for r in requests if r.request_date >= since]
    fulfilled = [
        r for r in recent_requests
        if r.status in (BookRequestStatus.FULFILLED.value, BookRequestStatus.APPROVED.value)
    ]

    capacity = sum(b.total_copies for b in books)
    in_use = sum(b.total_copies - b.available_copies for b in books)

    return {
        "borrowing_trend": [{"month": m, "count": monthly[m]} for m in sorted(monthly)],
        "return_rate": _pct(sum(1 for t in recent if t.returned_date), len(recent)),
        "overdue_rate": _pct(sum(1 for t in recent if _is_overdue(t, now)), len(recent)),
        "request_fulfillment_rate": _pct(len(fulfilled), len(recent_requests)),
        "system_utilization": _pct(in_use, capacity),
    }


# --- Insight text ---

def _fallback_usage(data: Dict) -> str:
    categories = ", ".join(c["category"] for c in data["popular_categories"][:3]) or "none yet"
    return (
        "**Key Findings:**\n"
        f"- {data['total_borrowed']} borrowings in the last 30 days, {data['currently_borrowed']} still out\n"
        f"- {data['overdue_books']} books are overdue and need attention\n"
        f"- Average borrowing duration is {data['average_borrowing_duration']} days\n\n"
        "**Recommendations:**\n"
        f"- Focus on popular categories: {categories}\n"
        "- Keep overdue reminders running to improve return rates"
    )


def _fallback_inventory(data: Dict) -> str:
    priorities = " and ".join(r["category"] for r in data["recommended_purchases"][:2]) or "high-demand"
    return (
        f"**Collection Status:** {data['available_books']} of {data['total_books']} copies currently available\n\n"
        "**Strategic Recommendations:**\n"
        "- Consider additional copies for popular titles\n"
        "- Review underused sections for potential deselection\n\n"
        f"**Budget Priority:** Focus on {priorities} categories"
    )


def _fallback_behavior(data: Dict) -> str:
    return (
        f"**Current Status:** {data['active_users']} of {data['total_users']} users are active "
        f"({data['retention_rate']}% retention)\n\n"
        f"- Engagement score is {data['engagement_score']}/100\n"
        f"- Members borrow {data['average_books_per_user']} books on average\n"
        "- Reach out to inactive members and promote the most read categories"
    )


def _fallback_performance(data: Dict) -> str:
    return_note = (
        "Implement automated return reminders" if data["return_rate"] < 90
        else "Maintain current return processes"
    )
    overdue_note = (
        "Review overdue policies and enforcement" if data["overdue_rate"] > 15
        else "Current overdue management is effective"
    )
    return (
        "**Key Metrics:**\n"
        f"- Return rate: {data['return_rate']}% (target: >90%)\n"
        f"- Overdue rate: {data['overdue_rate']}% (target: <10%)\n"
        f"- System utilization: {data['system_utilization']}%\n\n"
        "**Operational Recommendations:**\n"
        f"- {return_note}\n"
        f"- {overdue_note}"
    )


FALLBACKS: Dict[AnalyticsType, Callable[[Dict], str]] = {
    AnalyticsType.USAGE_PATTERNS: _fallback_usage,
    AnalyticsType.INVENTORY_INSIGHTS: _fallback_inventory,
    AnalyticsType.USER_BEHAVIOR: _fallback_behavior,
    AnalyticsType.PERFORMANCE_METRICS: _fallback_performance,
}


async def generate_insights(analytics_type: AnalyticsType, data: Dict) -> str:
    title = TITLES[analytics_type][0]
    try:
        prompt = prompt_library.ANALYTICS_INSIGHTS_PROMPT.format(
            title=title, data=json.dumps(data, indent=2, default=str)
        )
        return (await gemini_service.generate_text(prompt, temperature=0.4)).strip()
    except Exception as e:
        logger.warning("Falling back to template insights for %s: %s", analytics_type.value, e)
        return FALLBACKS[analytics_type](data)


# --- Report generation ---

async def _store(db: DatabaseService, analytics_type: AnalyticsType, data: Dict, now: datetime) -> AIAnalytics:
    title, description = TITLES[analytics_type]
    insights = await generate_insights(analytics_type, data)
    report = db.add_analytics({
        "id": f"ana_{uuid.uuid4().hex[:12]}",
        "type": analytics_type.value,
        "title": title,
        "description": description,
        "data": data,
        "insights": insights,
        "valid_until": now + timedelta(days=VALIDITY_DAYS[analytics_type]),
    })
    logger.info("Stored %s analytics %s", analytics_type.value, report.id)
    return report


async def generate_usage_patterns(db: DatabaseService, now: Optional[datetime] = None) -> AIAnalytics:
    now = now or utcnow()
    data = analyze_usage_patterns(db.get_all_transactions(), db.get_all_books(), db.get_all_users(), now)
    return await _store(db, AnalyticsType.USAGE_PATTERNS, data, now)


async def generate_inventory_insights(db: DatabaseService, now: Optional[datetime] = None) -> AIAnalytics:
    now = now or utcnow()
    data = analyze_inventory(db.get_all_transactions(), db.get_all_books())
    return await _store(db, AnalyticsType.INVENTORY_INSIGHTS, data, now)


async def generate_user_behavior(db: DatabaseService, now: Optional[datetime] = None) -> AIAnalytics:
    now = now or utcnow()
    data = analyze_user_behavior(db.get_all_users(), db.get_all_transactions(), now)
    return await _store(db, AnalyticsType.USER_BEHAVIOR, data, now)


async def generate_performance_metrics(db: DatabaseService, now: Optional[datetime] = None) -> AIAnalytics:
    now = now or utcnow()
    data = analyze_performance(db.get_all_transactions(), db.get_all_book_requests(), db.get_all_books(), now)
    return await _store(db, AnalyticsType.PERFORMANCE_METRICS, data, now)


GENERATORS = {
    AnalyticsType.USAGE_PATTERNS: generate_usage_patterns,
    AnalyticsType.INVENTORY_INSIGHTS: generate_inventory_insights,
    AnalyticsType.USER_BEHAVIOR: generate_user_behavior,
    AnalyticsType.PERFORMANCE_METRICS: generate_performance_metrics,
}


async def generate_analytics(db: DatabaseService, analytics_type: AnalyticsType) -> AIAnalytics:
    return await GENERATORS[analytics_type](db)


# --- Queries & housekeeping ---

def get_all_analytics(db: DatabaseService) -> List[AIAnalytics]:
    return db.get_all_analytics()


def get_analytics_by_type(db: DatabaseService, analytics_type: AnalyticsType) -> List[AIAnalytics]:
    return db.get_analytics_by_type(analytics_type.value)


def get_dashboard(db: DatabaseService, now: Optional[datetime] = None) -> Dict:
    """Latest report of each type plus the currently valid predictions."""
    now = now or utcnow()
    overdue_risks = db.get_valid_predictions_by_type(PredictionType.OVERDUE_RISK.value, now)
    return {
        "analytics": {t.value: db.get_latest_analytics(t.value) for t in AnalyticsType},
        "high_risk_loans": sum(1 for p in overdue_risks if p.prediction.get("risk_score", 0) > 0.7),
        "stored_predictions": db.count_predictions(),
        "popularity_forecasts": db.get_valid_predictions_by_type(PredictionType.POPULARITY_FORECAST.value, now)[:TOP_N],
        "overdue_risks": overdue_risks[:TOP_N],
    }


def cleanup_old_analytics(db: DatabaseService, now: Optional[datetime] = None) -> int:
    cutoff = (now or utcnow()) - timedelta(days=ANALYTICS_RETENTION_DAYS)
    return db.delete_analytics_before(cutoff)
