# /app/routers/extension_requests_router.py

from typing import List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, status

from ..core.deps import get_current_active_user, require_staff
from ..models import circulation_model
from ..services import request_service
from ..services.database_service import DatabaseService, get_db_service

router = APIRouter()


def _not_found(request_id: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Extension request with ID {request_id} not found")


@router.post("", response_model=circulation_model.ExtensionRequest, status_code=status.HTTP_201_CREATED, summary="Ask for a Later Due Date")
def create_extension_request(request: circulation_model.ExtensionRequestCreate, db: DatabaseService = Depends(get_db_service), current_user=Depends(get_current_active_user)):
    try:
        return request_service.create_extension_request(request, current_user, db)
    except LookupError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except PermissionError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get("/my", response_model=List[circulation_model.ExtensionRequest], summary="Get My Extension Requests")
def get_my_extension_requests(db: DatabaseService = Depends(get_db_service), current_user=Depends(get_current_active_user)):
    return request_service.get_my_extension_requests(current_user, db)


@router.get("", response_model=List[circulation_model.ExtensionRequest], summary="Get All Extension Requests")
def get_all_extension_requests(db: DatabaseService = Depends(get_db_service), _staff=Depends(require_staff)):
    return request_service.get_all_extension_requests(db)


@router.get("/pending", response_model=List[circulation_model.ExtensionRequest], summary="Get Pending Extension Requests")
def get_pending_extension_requests(db: DatabaseService = Depends(get_db_service), _staff=Depends(require_staff)):
    return request_service.get_pending_extension_requests(db)


@router.post("/{request_id}/approve", response_model=circulation_model.ExtensionRequest, summary="Approve an Extension")
def approve_extension_request(
    request_id: str,
    body: Optional[circulation_model.ApproveExtension] = Body(None),
    db: DatabaseService = Depends(get_db_service),
    librarian=Depends(require_staff),
):
    custom_due_date = body.custom_due_date if body else None
    try:
        updated = request_service.approve_extension_request(request_id, librarian, db, custom_due_date=custom_due_date)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    if updated is None:
        raise _not_found(request_id)
    return updated


@router.post("/{request_id}/reject", response_model=circulation_model.ExtensionRequest, summary="Reject an Extension")
def reject_extension_request(request_id: str, db: DatabaseService = Depends(get_db_service), librarian=Depends(require_staff)):
    try:
        updated = request_service.reject_extension_request(request_id, librarian, db)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    if updated is None:
        raise _not_found(request_id)
    return updated
