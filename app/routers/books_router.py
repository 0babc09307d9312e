# /app/routers/books_router.py

from typing import List

from fastapi import APIRouter, Depends, File, HTTPException, Query, Response, UploadFile, status

from ..core.deps import get_current_active_user, require_staff
from ..models import book_model
from ..services import ai_content_service, book_service
from ..services.database_service import DatabaseService, get_db_service

router = APIRouter()


def _not_found(book_id: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Book with ID {book_id} not found")


# --- BOOK COLLECTION ENDPOINTS (/api/books) ---

@router.get("", response_model=List[book_model.Book], summary="Get All Books")
def get_all_books(db: DatabaseService = Depends(get_db_service), _user=Depends(get_current_active_user)):
    return book_service.get_all_books(db)


@router.get("/available", response_model=List[book_model.Book], summary="Get Books With Copies on the Shelf")
def get_available_books(db: DatabaseService = Depends(get_db_service), _user=Depends(get_current_active_user)):
    return book_service.get_available_books(db)


@router.post("", response_model=book_model.Book, status_code=status.HTTP_201_CREATED, summary="Add a Book")
def create_book(book_create: book_model.BookCreate, db: DatabaseService = Depends(get_db_service), _staff=Depends(require_staff)):
    return book_service.create_book(book_create, db)


@router.post("/bulk-upload", response_model=book_model.BulkUploadResponse, summary="Import Books from CSV or Excel")
async def bulk_upload_books(file: UploadFile = File(...), db: DatabaseService = Depends(get_db_service), _staff=Depends(require_staff)):
    try:
        return await book_service.bulk_upload_books(file, db)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get("/search/intelligent", response_model=book_model.IntelligentSearchResponse, summary="Natural-Language Catalogue Search")
async def intelligent_search(
    q: str = Query(..., min_length=1, description="What the member is looking for, in plain words."),
    db: DatabaseService = Depends(get_db_service),
    _user=Depends(get_current_active_user),
):
    try:
        return await book_service.intelligent_search(q, db)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


# --- INDIVIDUAL BOOK ENDPOINTS (/api/books/{book_id}) ---

@router.get("/{book_id}", response_model=book_model.Book, summary="Get a Single Book")
def get_book(book_id: str, db: DatabaseService = Depends(get_db_service), _user=Depends(get_current_active_user)):
    book = book_service.get_book(book_id, db)
    if book is None:
        raise _not_found(book_id)
    return book


@router.put("/{book_id}", response_model=book_model.Book, summary="Update a Book")
def update_book(book_id: str, book_update: book_model.BookUpdate, db: DatabaseService = Depends(get_db_service), _staff=Depends(require_staff)):
    try:
        updated = book_service.update_book(book_id, book_update, db)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    if updated is None:
        raise _not_found(book_id)
    return updated


@router.delete("/{book_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a Book")
def delete_book(book_id: str, db: DatabaseService = Depends(get_db_service), _staff=Depends(require_staff)):
    try:
        was_deleted = book_service.delete_book(book_id, db)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    if not was_deleted:
        raise _not_found(book_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# --- AI CONTENT SUB-RESOURCE ---

@router.get("/{book_id}/ai-content", response_model=book_model.BookAIContent, summary="Get Cached AI Study Material")
def get_book_ai_content(book_id: str, db: DatabaseService = Depends(get_db_service), _user=Depends(get_current_active_user)):
    content = ai_content_service.get_book_content(book_id, db)
    if content is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No AI content has been generated for this book yet")
    return content


@router.post("/{book_id}/ai-content", response_model=book_model.BookAIContent, summary="Generate AI Study Material")
async def generate_book_ai_content(
    book_id: str,
    regenerate: bool = Query(False, description="Discard the cached material and generate it again."),
    db: DatabaseService = Depends(get_db_service),
    _user=Depends(get_current_active_user),
):
    content = await ai_content_service.generate_book_content(book_id, db, regenerate=regenerate)
    if content is None:
        raise _not_found(book_id)
    return content


@router.post("/{book_id}/ask", response_model=book_model.BookAnswer, summary="Ask a Question About a Book")
async def ask_about_book(
    book_id: str,
    body: book_model.BookQuestion,
    db: DatabaseService = Depends(get_db_service),
    _user=Depends(get_current_active_user),
):
    answer = await ai_content_service.answer_question(book_id, body.question, db)
    if answer is None:
        raise _not_found(book_id)
    return book_model.BookAnswer(book_id=book_id, question=body.question, answer=answer)
