# /app/routers/book_requests_router.py

from typing import List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, status

from ..core.deps import get_current_active_user, require_staff
from ..models import circulation_model
from ..services import request_service
from ..services.database_service import DatabaseService, get_db_service

router = APIRouter()


def _not_found(request_id: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Book request with ID {request_id} not found")


@router.post("", response_model=circulation_model.BookRequest, status_code=status.HTTP_201_CREATED, summary="Request a Book")
def create_book_request(request: circulation_model.BookRequestCreate, db: DatabaseService = Depends(get_db_service), current_user=Depends(get_current_active_user)):
    try:
        return request_service.create_book_request(request, current_user, db)
    except PermissionError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    except LookupError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


@router.get("/my", response_model=List[circulation_model.BookRequest], summary="Get My Book Requests")
def get_my_book_requests(db: DatabaseService = Depends(get_db_service), current_user=Depends(get_current_active_user)):
    return request_service.get_my_book_requests(current_user, db)


@router.get("", response_model=List[circulation_model.BookRequest], summary="Get All Book Requests")
def get_all_book_requests(db: DatabaseService = Depends(get_db_service), _staff=Depends(require_staff)):
    return request_service.get_all_book_requests(db)


@router.get("/pending", response_model=List[circulation_model.BookRequest], summary="Get Pending Book Requests")
def get_pending_book_requests(db: DatabaseService = Depends(get_db_service), _staff=Depends(require_staff)):
    return request_service.get_pending_book_requests(db)


@router.post("/{request_id}/approve", response_model=circulation_model.Transaction, summary="Approve a Book Request")
def approve_book_request(
    request_id: str,
    body: Optional[circulation_model.ApproveBookRequest] = Body(None),
    db: DatabaseService = Depends(get_db_service),
    librarian=Depends(require_staff),
):
    due_date = body.due_date if body else None
    try:
        transaction = request_service.approve_book_request(request_id, librarian, db, due_date=due_date)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    if transaction is None:
        raise _not_found(request_id)
    return transaction


@router.post("/{request_id}/reject", response_model=circulation_model.BookRequest, summary="Reject a Book Request")
def reject_book_request(request_id: str, db: DatabaseService = Depends(get_db_service), librarian=Depends(require_staff)):
    try:
        updated = request_service.reject_book_request(request_id, librarian, db)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    if updated is None:
        raise _not_found(request_id)
    return updated
