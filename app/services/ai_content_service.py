# /app/services/ai_content_service.py

"""
AI study material for a book: summary, study guide, quotes and comprehension
questions. Generated once with a single JSON call and cached in
`bookaicontents`; any part the model does not return usable data for is
filled from a template.
"""

import logging
from typing import Dict, List, Optional

from app.db.models.book_models import Book, BookAIContent
from .database_service import DatabaseService
from . import gemini_service, prompt_library

logger = logging.getLogger(__name__)

MAX_QUOTES = 7
MAX_QA = 8


# --- Fallback templates ---

def fallback_summary(book: Book) -> str:
    description = book.description or (
        "This book offers valuable insights and knowledge for readers interested in the subject matter."
    )
    return f"A {book.category.lower()} book by {book.author}. {description}"


def fallback_study_guide(book: Book) -> str:
    return (
        f"## Study Guide for {book.title}\n\n"
        "**Key Themes:**\n"
        f"- Explore the main concepts presented in this {book.category.lower()} book\n"
        "- Analyze the author's perspective and approach\n\n"
        "**Discussion Questions:**\n"
        "1. What are the main arguments or themes presented?\n"
        "2. How does this work relate to other works in the field?\n\n"
        "**Further Study:**\n"
        f"- Research additional works by {book.author}\n"
        f"- Explore related topics in the {book.category} category"
    )


def fallback_quotes(book: Book) -> List[str]:
    return [
        f"Knowledge is power, and {book.title} offers valuable insights for personal growth.",
        "Every great book opens new doors to understanding and wisdom.",
        f"The ideas in this work by {book.author} have the potential to transform perspectives.",
    ]


def fallback_comprehension_qa(book: Book) -> List[Dict[str, str]]:
    return [
        {
            "question": f'What is the main focus of "{book.title}"?',
            "answer": (
                f"This {book.category.lower()} book by {book.author} explores important themes "
                "and concepts relevant to its field."
            ),
        },
        {
            "question": "Who would benefit from reading this book?",
            "answer": f"Readers interested in {book.category.lower()} topics who want to deepen their knowledge.",
        },
    ]


def fallback_answer(book: Book) -> str:
    return (
        f'I\'d be happy to help you learn more about "{book.title}" by {book.author}. '
        "For the most accurate and detailed information, I recommend checking the book out from the library."
    )


# --- Parsing ---

def _text(value) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _quotes(value) -> List[str]:
    if not isinstance(value, list):
        return []
    quotes = [q.strip().strip('"') for q in value if isinstance(q, str) and len(q.strip()) > 10]
    return quotes[:MAX_QUOTES]


def _qa_pairs(value) -> List[Dict[str, str]]:
    if not isinstance(value, list):
        return []
    pairs = []
    for item in value:
        if not isinstance(item, dict):
            continue
        question, answer = _text(item.get("question")), _text(item.get("answer"))
        if question and answer:
            pairs.append({"question": question, "answer": answer})
    return pairs[:MAX_QA]


def build_content(book: Book, payload: Dict) -> Dict:
    """Turns a (possibly partial) model payload into a complete content record."""
    payload = payload if isinstance(payload, dict) else {}
    return {
        "summary": _text(payload.get("summary")) or fallback_summary(book),
        "study_guide": _text(payload.get("studyGuide")) or fallback_study_guide(book),
        "quotes": _quotes(payload.get("quotes")) or fallback_quotes(book),
        "comprehension_qa": _qa_pairs(payload.get("comprehensionQA")) or fallback_comprehension_qa(book),
    }


async def _generate(book: Book) -> Dict:
    try:
        prompt = prompt_library.BOOK_CONTENT_PROMPT.format(
            title=book.title,
            author=book.author,
            category=book.category,
            description=book.description or "(none)",
        )
        payload = await gemini_service.generate_json(prompt, temperature=0.6)
    except Exception as e:
        logger.warning("AI content generation failed for %s, using templates: %s", book.id, e)
        payload = {}
    return build_content(book, payload)


# --- Public API ---

def get_book_content(book_id: str, db: DatabaseService) -> Optional[BookAIContent]:
    return db.get_book_ai_content(book_id)


async def generate_book_content(book_id: str, db: DatabaseService, regenerate: bool = False) -> Optional[BookAIContent]:
    """Returns the cached content, generating it first if missing (or if `regenerate`)."""
    book = db.get_book_by_id(book_id)
    if not book:
        return None
    if not regenerate:
        existing = db.get_book_ai_content(book_id)
        if existing:
            return existing

    logger.info("Generating AI content for '%s' by %s", book.title, book.author)
    return db.save_book_ai_content(book_id, await _generate(book))


async def answer_question(book_id: str, question: str, db: DatabaseService) -> Optional[str]:
    book = db.get_book_by_id(book_id)
    if not book:
        return None

    description = book.description or "(none)"
    cached = db.get_book_ai_content(book_id)
    if cached and cached.summary:
        description += f"\nSummary: {cached.summary}"

    try:
        prompt = prompt_library.BOOK_QUESTION_PROMPT.format(
            title=book.title,
            author=book.author,
            category=book.category,
            description=description,
            question=question,
        )
        return (await gemini_service.generate_text(prompt, temperature=0.5)).strip()
    except Exception as e:
        logger.warning("Book question fell back to template for %s: %s", book_id, e)
        return fallback_answer(book)
