# /app/models/ai_model.py

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import Field

from .base_model import APIModel


class PredictionType(str, Enum):
    OVERDUE_RISK = "overdue_risk"
    POPULARITY_FORECAST = "popularity_forecast"
    OPTIMAL_DUE_DATE = "optimal_due_date"


class AnalyticsType(str, Enum):
    USAGE_PATTERNS = "usage_patterns"
    INVENTORY_INSIGHTS = "inventory_insights"
    USER_BEHAVIOR = "user_behavior"
    PERFORMANCE_METRICS = "performance_metrics"


class Prediction(APIModel):
    id: str
    type: PredictionType
    target_id: str
    prediction: Dict[str, Any]
    confidence: float
    reasoning: Optional[str] = None
    valid_until: datetime
    created_at: datetime


class Analytics(APIModel):
    id: str
    type: AnalyticsType
    title: str
    description: Optional[str] = None
    data: Dict[str, Any]
    insights: Optional[str] = None
    valid_until: datetime
    created_at: datetime


class PredictionRunRequest(APIModel):
    user_id: Optional[str] = None


class OptimalDueDateRequest(APIModel):
    user_id: str
    book_id: str


class OptimalDueDate(APIModel):
    user_id: str
    book_id: str
    loan_days: int = Field(..., ge=7, le=30)
    suggested_due_date: datetime
    reasoning: List[str]
    user_profile: str
    confidence: float


class RiskAssessment(APIModel):
    user_id: str
    assessment: str


class AIDashboard(APIModel):
    analytics: Dict[str, Optional[Analytics]]
    high_risk_loans: int
    stored_predictions: int
    popularity_forecasts: List[Prediction]
    overdue_risks: List[Prediction]


class CleanupResult(APIModel):
    predictions_removed: int
    analytics_removed: int
