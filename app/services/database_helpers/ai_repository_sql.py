# /app/services/database_helpers/ai_repository_sql.py

from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.db.models.ai_models import AIAnalytics, AIPrediction


class AIRepositorySQL:
    def __init__(self, db_session: Session):
        self.db = db_session

    # --- Prediction Methods ---

    def add_predictions(self, records: List[Dict]) -> List[AIPrediction]:
        predictions = [AIPrediction(**record) for record in records]
        self.db.add_all(predictions)
        self.db.commit()
        return predictions

    def get_all_predictions(self) -> List[AIPrediction]:
        return self.db.query(AIPrediction).order_by(AIPrediction.created_at.desc()).all()

    def get_predictions_by_type(self, prediction_type: str) -> List[AIPrediction]:
        return (
            self.db.query(AIPrediction)
            .filter(AIPrediction.type == prediction_type)
            .order_by(AIPrediction.created_at.desc())
            .all()
        )

    def get_predictions_by_target(self, target_id: str) -> List[AIPrediction]:
        return (
            self.db.query(AIPrediction)
            .filter(AIPrediction.target_id == target_id)
            .order_by(AIPrediction.created_at.desc())
            .all()
        )

    def get_valid_predictions_by_type(self, prediction_type: str, now: datetime) -> List[AIPrediction]:
        return (
            self.db.query(AIPrediction)
            .filter(AIPrediction.type == prediction_type, AIPrediction.valid_until > now)
            .order_by(AIPrediction.confidence.desc())
            .all()
        )

    def count_predictions(self) -> int:
        return self.db.query(func.count(AIPrediction.id)).scalar() or 0

    def delete_predictions_before(self, cutoff: datetime) -> int:
        deleted = (
            self.db.query(AIPrediction)
            .filter(AIPrediction.created_at < cutoff)
            .delete(synchronize_session=False)
        )
        self.db.commit()
        return deleted

    # --- Analytics Methods ---

    def add_analytics(self, record: Dict) -> AIAnalytics:
        analytics = AIAnalytics(**record)
        self.db.add(analytics)
        self.db.commit()
        self.db.refresh(analytics)
        return analytics

    def get_all_analytics(self) -> List[AIAnalytics]:
        return self.db.query(AIAnalytics).order_by(AIAnalytics.created_at.desc()).all()

    def get_analytics_by_type(self, analytics_type: str) -> List[AIAnalytics]:
        return (
            self.db.query(AIAnalytics)
            .filter(AIAnalytics.type == analytics_type)
            .order_by(AIAnalytics.created_at.desc())
            .all()
        )

    def get_latest_analytics(self, analytics_type: str) -> Optional[AIAnalytics]:
        return (
            self.db.query(AIAnalytics)
            .filter(AIAnalytics.type == analytics_type)
            .order_by(AIAnalytics.created_at.desc())
            .first()
        )

    def delete_analytics_before(self, cutoff: datetime) -> int:
        deleted = (
            self.db.query(AIAnalytics)
            .filter(AIAnalytics.created_at < cutoff)
            .delete(synchronize_session=False)
        )
        self.db.commit()
        return deleted
