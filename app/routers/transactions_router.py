# /app/routers/transactions_router.py

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from ..core.deps import get_current_active_user, require_staff
from ..models import circulation_model
from ..services import transaction_service
from ..services.database_service import DatabaseService, get_db_service

router = APIRouter()


@router.get("", response_model=List[circulation_model.Transaction], summary="Get All Loans")
def get_all_transactions(db: DatabaseService = Depends(get_db_service), _staff=Depends(require_staff)):
    return transaction_service.get_all_transactions(db)


@router.get("/active", response_model=List[circulation_model.Transaction], summary="Get Loans Still Out")
def get_active_transactions(db: DatabaseService = Depends(get_db_service), _staff=Depends(require_staff)):
    return transaction_service.get_active_transactions(db)


@router.get("/my", response_model=List[circulation_model.Transaction], summary="Get My Loans")
def get_my_transactions(db: DatabaseService = Depends(get_db_service), current_user=Depends(get_current_active_user)):
    return transaction_service.get_user_transactions(current_user.id, current_user, db)


@router.get("/user/{user_id}", response_model=List[circulation_model.Transaction], summary="Get a Member's Loans")
def get_user_transactions(user_id: str, db: DatabaseService = Depends(get_db_service), current_user=Depends(get_current_active_user)):
    try:
        return transaction_service.get_user_transactions(user_id, current_user, db)
    except PermissionError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))


@router.post("/borrow", response_model=circulation_model.Transaction, status_code=status.HTTP_201_CREATED, summary="Lend a Book to a Member")
def borrow_book(request: circulation_model.BorrowRequest, db: DatabaseService = Depends(get_db_service), _staff=Depends(require_staff)):
    try:
        return transaction_service.borrow_book(request.book_id, request.user_id, db, due_date=request.due_date)
    except LookupError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.post("/overdue-sweep", response_model=circulation_model.OverdueSweepResult, summary="Flag Overdue Loans Now")
def run_overdue_sweep(db: DatabaseService = Depends(get_db_service), _staff=Depends(require_staff)):
    return transaction_service.run_overdue_sweep(db)


@router.post("/{transaction_id}/return", response_model=circulation_model.Transaction, summary="Return a Book")
def return_book(transaction_id: str, db: DatabaseService = Depends(get_db_service), current_user=Depends(get_current_active_user)):
    try:
        transaction = transaction_service.return_book(transaction_id, current_user, db)
    except PermissionError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    if transaction is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Transaction with ID {transaction_id} not found")
    return transaction
