# /tests/test_chatbot.py

from unittest.mock import AsyncMock

import pytest
from starlette.websockets import WebSocketDisconnect

from app.core import security
from app.core.config import settings
from app.models.circulation_model import BookRequestCreate
from app.services import chatbot_service, request_service


# --- Intent detection ---

@pytest.mark.parametrize("message, expected", [
    ('Where can I find "Dune"?', True),
    ("Is there a PDF of Moby Dick?", True),
    ("I want to read something new", True),
    ("Do you have a novel by Tolstoy?", True),
    ("What time does the library close?", False),
    ("I need a textbook for my course", False),
    ("Can I renew my loan?", False),
])
def test_is_book_search_query(message, expected):
    assert chatbot_service.is_book_search_query(message) is expected


@pytest.mark.parametrize("message, expected", [
    ('Can you find "the great gatsby" for me?', "Great Gatsby"),
    ("I am looking for Pride and Prejudice by Jane Austen", "Pride And Prejudice"),
    ("Do you have a book about machine learning?", "Machine Learning"),
    ("Is there something titled Brave New World", "Brave New World"),
    ("Hello there", None),
])
def test_extract_book_title(message, expected):
    assert chatbot_service.extract_book_title(message) == expected


# --- Book links ---

def test_fallback_links_point_to_free_and_paid_sources():
    links = chatbot_service.fallback_book_links("War and Peace")

    assert [link["type"] for link in links] == ["free", "free", "purchase"]
    assert "query=War+and+Peace" in links[0]["url"]
    assert links[2]["price"] == "Varies"


def test_parse_links_drops_unusable_entries():
    payload = {"links": [
        {"title": "Gutenberg", "url": "https://www.gutenberg.org/ebooks/2600", "type": "free"},
        {"title": "Shop", "url": "https://shop.example/b", "type": "Purchase", "price": 9.99},
        {"title": "No scheme", "url": "www.example.com"},
        {"url": "https://untitled.example"},
    ]}

    links = chatbot_service._parse_links(payload)

    assert [link["title"] for link in links] == ["Gutenberg", "Shop"]
    assert links[1]["type"] == "purchase"
    assert links[1]["price"] == "9.99"


async def test_search_book_links_falls_back_without_ai():
    links = await chatbot_service.search_book_links('Where can I find "Dune"?')

    assert len(links) == 3
    assert "Dune" in links[0]["title"]


async def test_search_book_links_without_a_title():
    assert await chatbot_service.search_book_links("Where can I find things") == []


# --- Member context ---

def test_user_context_lists_loans_and_pending_requests(db, student, make_book, make_loan):
    make_loan(student, make_book(title="Late Book"), borrowed_days_ago=20, due_in_days=-2, status="OVERDUE")
    make_loan(student, make_book(title="Soon Book"), due_in_days=1)
    request_service.create_book_request(BookRequestCreate(book_id=make_book(title="Wanted Book").id), student, db)

    context = chatbot_service.build_user_context(student, db)

    assert "Currently Borrowed Books (2):" in context
    assert "Overdue Books: 1" in context
    assert "Books Due Soon (within 3 days): 1" in context
    assert '- "Wanted Book"' in context


def test_user_context_follows_the_reminder_window(db, student, make_book, make_loan, monkeypatch):
    monkeypatch.setattr(settings, "due_soon_days", 5)
    make_loan(student, make_book(title="Four Days Left"), due_in_days=4)

    context = chatbot_service.build_user_context(student, db)

    assert "Books Due Soon (within 5 days): 1" in context


def test_user_context_without_loans(db, student):
    assert "No books currently borrowed." in chatbot_service.build_user_context(student, db)


# --- Conversations ---

async def test_ai_failure_returns_apology_and_keeps_the_conversation(db, student):
    result = await chatbot_service.process_user_query(student, "Hello, what can you do?", db)

    assert result["response"] == chatbot_service.ERROR_RESPONSE
    assert result["book_links"] is None
    history = db.get_messages_by_session_id(result["session_id"])
    assert [m.role for m in history] == ["user", "assistant"]
    assert db.get_chat_session_by_id(result["session_id"]).name == "Hello, what can you do?"


async def test_book_search_reply_carries_links(db, student, mocker):
    mocker.patch(
        "app.services.chatbot_service.gemini_service.generate_text",
        new=AsyncMock(return_value="Dune is a classic science fiction novel."),
    )

    result = await chatbot_service.process_user_query(student, 'Where can I find "Dune"?', db)

    assert result["response"].endswith(chatbot_service.LINKS_FOUND_SUFFIX)
    assert len(result["book_links"]) == 3
    assert db.get_messages_by_session_id(result["session_id"])[-1].book_links == result["book_links"]


async def test_follow_up_uses_the_same_session(db, student, mocker):
    generate = mocker.patch(
        "app.services.chatbot_service.gemini_service.generate_text",
        new=AsyncMock(return_value="Sure."),
    )
    first = await chatbot_service.process_user_query(student, "Recommend a mystery", db)

    second = await chatbot_service.process_user_query(student, "Another one", db, session_id=first["session_id"])

    assert second["session_id"] == first["session_id"]
    assert "user: Recommend a mystery" in generate.await_args.args[0]


async def test_cannot_continue_someone_elses_session(db, student, make_user):
    first = await chatbot_service.process_user_query(student, "Hi", db)

    with pytest.raises(LookupError):
        await chatbot_service.process_user_query(make_user(), "Hi", db, session_id=first["session_id"])


def test_session_name_is_truncated():
    assert chatbot_service._generate_chat_name("one two three four five six seven") == "one two three four five..."


# --- API ---

def test_chat_session_endpoints(client, student, make_user, auth_headers):
    headers = auth_headers(student)

    reply = client.post("/api/ai-chat", json={"message": "Hi there"}, headers=headers).json()
    session_id = reply["sessionId"]

    assert [s["id"] for s in client.get("/api/ai-chat/sessions", headers=headers).json()] == [session_id]
    detail = client.get(f"/api/ai-chat/sessions/{session_id}", headers=headers).json()
    assert len(detail["history"]) == 2
    assert client.get(f"/api/ai-chat/sessions/{session_id}", headers=auth_headers(make_user())).status_code == 404
    assert client.delete(f"/api/ai-chat/sessions/{session_id}", headers=headers).status_code == 204
    assert client.get("/api/ai-chat/sessions", headers=headers).json() == []


def test_unknown_session_is_404(client, student, auth_headers):
    response = client.post(
        "/api/ai-chat", json={"message": "Hi", "sessionId": "session_missing"}, headers=auth_headers(student)
    )
    assert response.status_code == 404


def test_websocket_rejects_bad_token(client, student, db):
    session = db.create_chat_session({"id": "session_ws", "user_id": student.id, "name": "ws"})

    with pytest.raises(WebSocketDisconnect):
        with client.websocket_connect(f"/api/ai-chat/ws/{session.id}?token=not-a-jwt") as websocket:
            websocket.receive_json()


def test_websocket_reports_generation_errors(client, student, db):
    session = db.create_chat_session({"id": "session_ws", "user_id": student.id, "name": "ws"})
    token = security.create_access_token(subject=student.id)

    with client.websocket_connect(f"/api/ai-chat/ws/{session.id}?token={token}") as websocket:
        websocket.send_json({"type": "user_message", "payload": {"text": "Hello"}})
        message = websocket.receive_json()

    assert message["type"] == "error"
    roles = [m.role for m in db.get_messages_by_session_id(session.id)]
    assert roles[0] == "user"
