# /app/routers/ai_router.py

"""
Staff-only endpoints for the predictive models and the analytics reports.
"""

from typing import List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query, status

from ..core.deps import require_staff
from ..models import ai_model
from ..services import ai_analytics_service, ai_predictive_service
from ..services.database_service import DatabaseService, get_db_service

router = APIRouter(dependencies=[Depends(require_staff)])


# --- PREDICTIONS ---

@router.get("/predictions", response_model=List[ai_model.Prediction], summary="Get Stored Predictions")
def get_predictions(
    type: Optional[ai_model.PredictionType] = Query(None),
    target_id: Optional[str] = Query(None, alias="targetId"),
    db: DatabaseService = Depends(get_db_service),
):
    if target_id:
        return ai_predictive_service.get_predictions_by_target(db, target_id)
    if type:
        return ai_predictive_service.get_predictions_by_type(db, type)
    return ai_predictive_service.get_all_predictions(db)


@router.post("/predictions/overdue-risk", response_model=List[ai_model.Prediction], summary="Score Active Loans for Late Return")
def run_overdue_risk(body: Optional[ai_model.PredictionRunRequest] = Body(None), db: DatabaseService = Depends(get_db_service)):
    user_id = body.user_id if body else None
    return ai_predictive_service.predict_overdue_risk(db, user_id=user_id)


@router.post("/predictions/popularity", response_model=List[ai_model.Prediction], summary="Forecast Book Demand")
def run_popularity_forecast(book_id: Optional[str] = Query(None, alias="bookId"), db: DatabaseService = Depends(get_db_service)):
    return ai_predictive_service.forecast_book_popularity(db, book_id=book_id)


@router.post("/predictions/optimal-due-date", response_model=ai_model.OptimalDueDate, summary="Suggest a Loan Length")
def suggest_optimal_due_date(body: ai_model.OptimalDueDateRequest, db: DatabaseService = Depends(get_db_service)):
    try:
        return ai_predictive_service.suggest_optimal_due_date(db, body.user_id, body.book_id)
    except LookupError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.get("/risk-assessment/{user_id}", response_model=ai_model.RiskAssessment, summary="Describe a Member's Late-Return Risk")
async def get_risk_assessment(user_id: str, db: DatabaseService = Depends(get_db_service)):
    assessment = await ai_predictive_service.generate_risk_assessment(db, user_id)
    if assessment is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"User with ID {user_id} not found")
    return ai_model.RiskAssessment(user_id=user_id, assessment=assessment)


# --- ANALYTICS ---

@router.get("/analytics", response_model=List[ai_model.Analytics], summary="Get Stored Analytics Reports")
def get_analytics(type: Optional[ai_model.AnalyticsType] = Query(None), db: DatabaseService = Depends(get_db_service)):
    if type:
        return ai_analytics_service.get_analytics_by_type(db, type)
    return ai_analytics_service.get_all_analytics(db)


@router.post("/analytics/{analytics_type}", response_model=ai_model.Analytics, status_code=status.HTTP_201_CREATED, summary="Generate an Analytics Report")
async def generate_analytics(analytics_type: ai_model.AnalyticsType, db: DatabaseService = Depends(get_db_service)):
    return await ai_analytics_service.generate_analytics(db, analytics_type)


@router.get("/dashboard", response_model=ai_model.AIDashboard, summary="Get the AI Insights Dashboard")
def get_ai_dashboard(db: DatabaseService = Depends(get_db_service)):
    return ai_analytics_service.get_dashboard(db)


@router.post("/cleanup", response_model=ai_model.CleanupResult, summary="Purge Old Predictions and Reports")
def cleanup(db: DatabaseService = Depends(get_db_service)):
    return ai_model.CleanupResult(
        predictions_removed=ai_predictive_service.cleanup_old_predictions(db),
        analytics_removed=ai_analytics_service.cleanup_old_analytics(db),
    )
