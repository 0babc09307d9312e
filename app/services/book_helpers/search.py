# /app/services/book_helpers/search.py

"""
Natural-language catalogue search.

Gemini ranks the catalogue against the query; if the model is unavailable or
returns nothing usable, a weighted keyword score over title, author,
category and description is used instead.
"""

import logging
import re
from typing import Dict, List

from app.db.models.book_models import Book
from .. import gemini_service, prompt_library
from ..database_service import DatabaseService

logger = logging.getLogger(__name__)

MAX_RESULTS = 10
MAX_CATALOGUE_FOR_AI = 200

STOP_WORDS = {
    "a", "an", "and", "about", "any", "book", "books", "by", "do", "find", "for", "have", "i",
    "in", "is", "me", "of", "on", "or", "some", "something", "the", "to", "want", "with", "you",
}

FIELD_WEIGHTS = {"title": 3.0, "author": 2.5, "category": 2.0, "description": 1.0}


def extract_terms(query: str) -> List[str]:
    words = re.findall(r"[a-z0-9']+", query.lower())
    return [word for word in words if word not in STOP_WORDS and len(word) > 1]


def keyword_rank(books: List[Book], query: str, limit: int = MAX_RESULTS) -> List[Dict]:
    terms = extract_terms(query)
    if not terms:
        return []
    max_score = sum(FIELD_WEIGHTS.values()) * len(terms)
    scored = []
    for book in books:
        score = 0.0
        matched = set()
        for field, weight in FIELD_WEIGHTS.items():
            text = (getattr(book, field) or "").lower()
            for term in terms:
                if term in text:
                    score += weight
                    matched.add(term)
        if score:
            scored.append({
                "book": book,
                "relevance": round(min(1.0, score / max_score), 3),
                "reason": f"Matches: {', '.join(sorted(matched))}",
            })
    scored.sort(key=lambda item: item["relevance"], reverse=True)
    return scored[:limit]


async def ai_rank(books: List[Book], query: str, limit: int = MAX_RESULTS) -> List[Dict]:
    by_id = {book.id: book for book in books}
    catalogue = "\n".join(
        f"{book.id} | {book.title} | {book.author} | {book.category} | {(book.description or '')[:160]}"
        for book in books[:MAX_CATALOGUE_FOR_AI]
    )
    prompt = prompt_library.INTELLIGENT_SEARCH_PROMPT.format(query=query, catalogue=catalogue, limit=limit)
    response = await gemini_service.generate_json(prompt, temperature=0.1)

    ranked = []
    for item in response.get("results", []):
        book = by_id.get(str(item.get("id")))
        if book is None:
            continue
        try:
            relevance = max(0.0, min(1.0, float(item.get("relevance", 0.5))))
        except (TypeError, ValueError):
            relevance = 0.5
        ranked.append({"book": book, "relevance": relevance, "reason": item.get("reason")})
    ranked.sort(key=lambda item: item["relevance"], reverse=True)
    return ranked[:limit]


async def intelligent_search(query: str, db: DatabaseService) -> Dict:
    query = query.strip()
    if not query:
        raise ValueError("Search query must not be empty.")

    books = db.get_all_books()
    if not books:
        return {"query": query, "results": [], "ai_powered": False}

    try:
        results = await ai_rank(books, query)
        if results:
            return {"query": query, "results": results, "ai_powered": True}
    except Exception as e:
        logger.info("AI search unavailable, falling back to keyword search: %s", e)

    return {"query": query, "results": keyword_rank(books, query), "ai_powered": False}
