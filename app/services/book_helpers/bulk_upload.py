# /app/services/book_helpers/bulk_upload.py

"""
Catalogue import from CSV or Excel spreadsheets.

Column headers are matched case-insensitively and ignoring spaces, dashes and
underscores, so "Total Copies", "total_copies" and "totalCopies" are all
accepted. Rows that fail validation are reported by their spreadsheet row
number (header = row 1) and skipped; the rest are inserted in one batch.
"""

import io
import logging
from typing import Dict, List, Tuple

import pandas as pd
from fastapi import UploadFile
from pydantic import ValidationError

from app.core.config import settings
from ...models import book_model
from ..database_service import DatabaseService
from . import crud

logger = logging.getLogger(__name__)

EXCEL_TYPES = {
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "application/vnd.ms-excel",
}
CSV_TYPES = {"text/csv", "application/csv", "text/plain"}

COLUMN_ALIASES = {
    "title": "title",
    "booktitle": "title",
    "author": "author",
    "authors": "author",
    "isbn": "isbn",
    "category": "category",
    "genre": "category",
    "description": "description",
    "publisher": "publisher",
    "totalcopies": "total_copies",
    "copies": "total_copies",
    "quantity": "total_copies",
}


def _normalise_header(header: str) -> str:
    key = "".join(ch for ch in str(header).lower() if ch.isalnum())
    return COLUMN_ALIASES.get(key, key)


def read_table(file_bytes: bytes, filename: str, content_type: str) -> pd.DataFrame:
    name = (filename or "").lower()
    if name.endswith((".xlsx", ".xls")) or content_type in EXCEL_TYPES:
        df = pd.read_excel(io.BytesIO(file_bytes), dtype=str)
    elif name.endswith(".csv") or content_type in CSV_TYPES:
        df = pd.read_csv(io.BytesIO(file_bytes), dtype=str)
    else:
        raise ValueError("Unsupported file type. Please upload a CSV or Excel file.")
    df = df.rename(columns=_normalise_header)
    return df.astype(object).where(pd.notna(df), None)


def parse_rows(df: pd.DataFrame) -> Tuple[List[book_model.BookCreate], List[Dict]]:
    missing = [column for column in ("title", "author", "category") if column not in df.columns]
    if missing:
        raise ValueError(f"Missing required column(s): {', '.join(missing)}")

    books, errors = [], []
    for position, row in enumerate(df.to_dict(orient="records")):
        row_number = position + 2
        data = {key: (None if pd.isna(value) else str(value).strip()) for key, value in row.items()
                if key in book_model.BookCreate.model_fields}
        data = {key: value for key, value in data.items() if value not in (None, "")}
        if not data:
            continue
        if "total_copies" in data:
            try:
                data["total_copies"] = int(float(data["total_copies"]))
            except (ValueError, OverflowError):
                errors.append({"row": row_number, "error": "totalCopies must be a whole number"})
                continue
        try:
            books.append(book_model.BookCreate(**data))
        except ValidationError as e:
            fields = ", ".join(str(err["loc"][0]) for err in e.errors())
            errors.append({"row": row_number, "error": f"Invalid or missing value for: {fields}"})
    return books, errors


async def import_books(file: UploadFile, db: DatabaseService) -> Dict:
    file_bytes = await file.read()
    if len(file_bytes) > settings.max_upload_size:
        raise ValueError("File is too large. The maximum size is 5 MB.")
    if not file_bytes:
        raise ValueError("The uploaded file is empty.")

    try:
        df = read_table(file_bytes, file.filename, file.content_type)
    except ValueError:
        raise
    except Exception as e:
        logger.warning("Could not parse uploaded catalogue %s: %s", file.filename, e)
        raise ValueError("Could not read the file. Please check that it is a valid CSV or Excel file.")

    books, errors = parse_rows(df)
    created = db.add_books([crud.new_book_record(book) for book in books]) if books else []
    logger.info("Bulk upload %s: %d imported, %d rejected", file.filename, len(created), len(errors))
    return {
        "message": f"Successfully imported {len(created)} book(s)",
        "imported": len(created),
        "errors": errors,
        "books": created,
    }
