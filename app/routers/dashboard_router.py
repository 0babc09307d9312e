# /app/routers/dashboard_router.py

from fastapi import APIRouter, Depends

from ..core.deps import require_staff
from ..models.dashboard_model import DashboardSummary
from ..services import dashboard_service
from ..services.database_service import DatabaseService, get_db_service

router = APIRouter()


@router.get(
    "/summary",
    response_model=DashboardSummary,
    summary="Get Dashboard Summary",
    description="Headline inventory, member and circulation counts for the staff dashboard."
)
def get_dashboard_summary(
    db: DatabaseService = Depends(get_db_service),
    _staff=Depends(require_staff),
):
    return dashboard_service.get_summary_data(db=db)
