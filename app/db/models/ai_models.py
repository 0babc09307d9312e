# /app/db/models/ai_models.py

"""
Stored outputs of the predictive and analytics engines.

Both tables are append-only snapshots with a `valid_until` horizon; old rows
are purged by the maintenance task.
"""

from sqlalchemy import JSON, Column, DateTime, Float, String, Text

from app.core.clock import utcnow
from ..base_class import Base


class AIPrediction(Base):
    __tablename__ = "aipredictions"

    id = Column(String, primary_key=True, index=True)
    type = Column(String, nullable=False, index=True)  # overdue_risk | popularity_forecast | optimal_due_date
    target_id = Column(String, nullable=False, index=True)
    prediction = Column(JSON, nullable=False)
    confidence = Column(Float, nullable=False)
    reasoning = Column(Text, nullable=True)
    valid_until = Column(DateTime, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)


class AIAnalytics(Base):
    __tablename__ = "aianalytics"

    id = Column(String, primary_key=True, index=True)
    type = Column(String, nullable=False, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    data = Column(JSON, nullable=False)
    insights = Column(Text, nullable=True)
    valid_until = Column(DateTime, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)
