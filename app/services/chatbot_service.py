# /app/services/chatbot_service.py

"""
The AI library assistant.

Each member message is answered by Gemini with the member's own account
(loans, due dates, pending requests) and the recent conversation in the
prompt. When the message looks like a search for a specific book, the
assistant also returns up to six legal places to read or buy it.

Conversations are persisted as chat sessions, reachable over REST
(`process_user_query`) or streamed over a WebSocket
(`add_new_message_to_session`).
"""

import logging
import re
import uuid
from datetime import datetime, timedelta
from typing import Dict, List, Optional
from urllib.parse import quote_plus

from fastapi import WebSocket

from app.core.clock import utcnow
from app.core.config import settings
from app.db.models.chat_models import ChatSession
from app.db.models.user_models import User
from ..models.chatbot_model import BookLink, LinkType
from ..models.circulation_model import ACTIVE_TRANSACTION_STATUSES, BookRequestStatus
from .database_service import DatabaseService
from . import gemini_service, prompt_library

logger = logging.getLogger(__name__)

ERROR_RESPONSE = (
    "I'm experiencing some technical difficulties right now. Please try again in a moment, "
    "or contact the library staff for immediate assistance."
)
LINKS_FOUND_SUFFIX = "\n\nI found some resources for the book you're looking for:"
MAX_BOOK_LINKS = 6
HISTORY_LIMIT = 10

BOOK_SEARCH_PHRASES = (
    "download", "find book", "get book", "book copy", "e-book", "ebook", "pdf",
    "read online", "free book", "buy book", "purchase book", "book link",
    "where can i find", "looking for", "need book", "want to read", "book about",
    "search for",
)
_BOOK_TERM = re.compile(r"\b(book|novel|story|text|title)\b", re.IGNORECASE)
_SEARCH_CUE = re.compile(r"\b(about|on|by|called|titled|named)\b", re.IGNORECASE)

_VERBS = r"(?:find|get|download|buy|looking for|need|want|book about|read)"
TITLE_PATTERNS = [
    re.compile(_VERBS + r"\s+[\"']([^\"']+)[\"']", re.IGNORECASE),
    re.compile(r"[\"“]([^\"”]+)[\"”]"),
    re.compile(_VERBS + r"\s+(?:book\s+)?(?:called\s+)?([A-Z][a-zA-Z\s&:,-]+?)\s+(?:by|author|written by)\b", re.IGNORECASE),
    re.compile(r"book about\s+([^,?.!]+?)(?:\s+(?:by|author|book|link|download|pdf)\b|[,?.!]|$)", re.IGNORECASE),
    re.compile(_VERBS + r"\s+(?:book\s+)?(?:called\s+)?([A-Z][a-zA-Z\s&:,-]+?)\s+(?:book|novel|story|text|pdf|ebook|link|download)\b", re.IGNORECASE),
    re.compile(r"(?:called|titled|named)\s+([A-Za-z][a-zA-Z\s&:,'-]+)", re.IGNORECASE),
]
NON_TITLE_WORDS = {
    "book", "download", "find", "get", "want", "need", "looking", "called", "about", "link",
    "pdf", "ebook", "free", "buy", "purchase", "the", "a", "an",
}


# --- Intent & title helpers ---

def is_book_search_query(message: str) -> bool:
    lower = message.lower()
    if any(re.search(r"\b" + re.escape(phrase) + r"\b", lower) for phrase in BOOK_SEARCH_PHRASES):
        return True
    return bool(_BOOK_TERM.search(message) and _SEARCH_CUE.search(message))


def _clean_title(raw: str) -> Optional[str]:
    words = [word for word in raw.strip().split() if word.lower() not in NON_TITLE_WORDS and len(word) > 1]
    if not words:
        return None
    title = " ".join(word[:1].upper() + word[1:] for word in words).strip(" ,:-")
    return title if len(title) > 2 else None


def extract_book_title(message: str) -> Optional[str]:
    for pattern in TITLE_PATTERNS:
        match = pattern.search(message)
        if match:
            title = _clean_title(match.group(1))
            if title:
                return title
    return None


def fallback_book_links(title: str) -> List[Dict]:
    encoded = quote_plus(title)
    return [
        BookLink(
            title=f'Search "{title}" on Project Gutenberg',
            url=f"https://www.gutenberg.org/ebooks/search/?query={encoded}",
            type=LinkType.FREE, platform="Project Gutenberg",
        ).model_dump(mode="json"),
        BookLink(
            title=f'Search "{title}" on Internet Archive',
            url=f"https://archive.org/search?query={encoded}&and[]=mediatype%3A%22texts%22",
            type=LinkType.FREE, platform="Internet Archive",
        ).model_dump(mode="json"),
        BookLink(
            title=f'Search "{title}" on Amazon',
            url=f"https://www.amazon.com/s?k={encoded}&i=digital-text",
            type=LinkType.PURCHASE, platform="Amazon Kindle", price="Varies",
        ).model_dump(mode="json"),
    ]


def _parse_links(payload: Dict) -> List[Dict]:
    links = []
    for item in payload.get("links", []) if isinstance(payload, dict) else []:
        url = str(item.get("url") or "")
        if not url.startswith(("http://", "https://")) or not item.get("title"):
            continue
        link_type = LinkType.PURCHASE if str(item.get("type", "")).lower() == "purchase" else LinkType.FREE
        links.append(BookLink(
            title=str(item["title"]),
            url=url,
            type=link_type,
            platform=item.get("platform"),
            price=str(item["price"]) if item.get("price") else None,
        ).model_dump(mode="json"))
    return links


async def search_book_links(message: str) -> List[Dict]:
    title = extract_book_title(message)
    if not title:
        return []
    try:
        prompt = prompt_library.BOOK_LINKS_PROMPT.format(book_title=title)
        links = _parse_links(await gemini_service.generate_json(prompt, temperature=0.2))
    except Exception as e:
        logger.info("Book link lookup failed for '%s': %s", title, e)
        links = []
    return (links or fallback_book_links(title))[:MAX_BOOK_LINKS]


# --- Context ---

def build_user_context(user: User, db: DatabaseService, now: Optional[datetime] = None) -> str:
    now = now or utcnow()
    lines = [f"Member: {user.full_name} (Student ID: {user.student_id or 'n/a'})", "Library Account Status:"]

    active = [t for t in db.get_transactions_by_user(user.id) if t.status in ACTIVE_TRANSACTION_STATUSES]
    if active:
        lines.append(f"Currently Borrowed Books ({len(active)}):")
        for loan in active:
            lines.append(f'- "{loan.book.title}" by {loan.book.author} (Due: {loan.due_date:%Y-%m-%d})')
        overdue = [loan for loan in active if loan.due_date < now]
        if overdue:
            lines.append(f"Overdue Books: {len(overdue)}")
        horizon = now + timedelta(days=settings.due_soon_days)
        due_soon = [loan for loan in active if now <= loan.due_date <= horizon]
        if due_soon:
            lines.append(f"Books Due Soon (within {settings.due_soon_days} days): {len(due_soon)}")
    else:
        lines.append("No books currently borrowed.")

    pending = [r for r in db.get_book_requests_by_user(user.id) if r.status == BookRequestStatus.PENDING.value]
    if pending:
        lines.append(f"Pending Book Requests ({len(pending)}):")
        for request in pending:
            lines.append(f'- "{request.book.title}" by {request.book.author}')

    return "\n".join(lines)


def _format_history(messages) -> str:
    if not messages:
        return "(no previous messages)"
    return "\n".join(f"{message.role}: {message.content}" for message in messages)


def _build_prompt(user: User, message: str, session_id: str, db: DatabaseService) -> str:
    history = db.get_messages_by_session_id(session_id, limit=HISTORY_LIMIT)
    return prompt_library.LIBRARY_ASSISTANT_PROMPT.format(
        loan_period_days=settings.loan_period_days,
        user_context=build_user_context(user, db),
        history=_format_history(history),
        message=message,
    )


# --- Sessions ---

def _generate_chat_name(first_message: str) -> str:
    words = first_message.split()
    return " ".join(words[:5]) + ("..." if len(words) > 5 else "")


def _get_or_create_session(user: User, message: str, session_id: Optional[str],
                           db: DatabaseService) -> ChatSession:
    if session_id:
        session = db.get_chat_session_by_id(session_id)
        if not session or session.user_id != user.id:
            raise LookupError("Chat session not found")
        return session
    return db.create_chat_session({
        "id": f"session_{uuid.uuid4().hex[:12]}",
        "user_id": user.id,
        "name": _generate_chat_name(message),
    })


def _save_message(db: DatabaseService, session_id: str, role: str, content: str,
                  book_links: Optional[List[Dict]] = None) -> None:
    db.add_chat_message({
        "id": f"msg_{uuid.uuid4().hex[:12]}",
        "session_id": session_id,
        "role": role,
        "content": content,
        "book_links": book_links or None,
    })


async def process_user_query(user: User, message: str, db: DatabaseService,
                             session_id: Optional[str] = None) -> Dict:
    """Answers one message and returns `{response, book_links, session_id}`."""
    session = _get_or_create_session(user, message, session_id, db)
    prompt = _build_prompt(user, message, session.id, db)
    _save_message(db, session.id, "user", message)

    book_links: List[Dict] = []
    try:
        response_text = await gemini_service.generate_text(prompt, temperature=0.7)
        if is_book_search_query(message):
            book_links = await search_book_links(message)
            if book_links:
                response_text += LINKS_FOUND_SUFFIX
    except Exception as e:
        logger.error("Assistant failed for user %s: %s", user.id, e)
        response_text = ERROR_RESPONSE

    _save_message(db, session.id, "assistant", response_text, book_links)
    return {"response": response_text, "book_links": book_links or None, "session_id": session.id}


async def add_new_message_to_session(session_id: str, user: User, message_text: str,
                                     db: DatabaseService, websocket: WebSocket) -> None:
    """Streams the assistant's answer over the socket, then sends any book links."""
    prompt = _build_prompt(user, message_text, session_id, db)
    _save_message(db, session_id, "user", message_text)

    response_text = await gemini_service.generate_text_streaming(prompt, websocket)
    book_links: List[Dict] = []
    if response_text and is_book_search_query(message_text):
        book_links = await search_book_links(message_text)
        if book_links:
            await websocket.send_json({"type": "book_links", "payload": {"bookLinks": book_links}})

    _save_message(db, session_id, "assistant", response_text or ERROR_RESPONSE, book_links)


def get_chat_sessions(user: User, db: DatabaseService) -> List[ChatSession]:
    return db.get_chat_sessions_by_user_id(user.id)


def get_chat_session_details_logic(session_id: str, user_id: str, db: DatabaseService) -> Optional[Dict]:
    session = db.get_chat_session_by_id(session_id)
    if not session or session.user_id != user_id:
        return None
    return {
        "id": session.id,
        "name": session.name,
        "created_at": session.created_at,
        "history": db.get_messages_by_session_id(session_id),
    }


def delete_chat_session_logic(session_id: str, user_id: str, db: DatabaseService) -> bool:
    session = db.get_chat_session_by_id(session_id)
    if not session or session.user_id != user_id:
        return False
    return db.delete_chat_session(session_id)
