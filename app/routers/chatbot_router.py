# /app/routers/chatbot_router.py

import json
import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, Response, WebSocket, WebSocketDisconnect, status

from ..core import security
from ..core.deps import get_current_active_user
from ..models import chatbot_model
from ..services import chatbot_service
from ..services.database_service import DatabaseService, get_db_service

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "",
    response_model=chatbot_model.ChatResponse,
    summary="Ask the Library Assistant",
    description="Answers one message. Omit `sessionId` to start a new conversation."
)
async def chat(
    request: chatbot_model.ChatRequest,
    db: DatabaseService = Depends(get_db_service),
    current_user=Depends(get_current_active_user),
):
    try:
        return await chatbot_service.process_user_query(current_user, request.message, db, session_id=request.session_id)
    except LookupError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


# --- REST ENDPOINTS FOR SESSION MANAGEMENT ---

@router.get(
    "/sessions",
    response_model=List[chatbot_model.ChatSessionSummary],
    summary="Get Chat History",
    description="Retrieves all past chat session summaries for the current user."
)
def get_chat_sessions(db: DatabaseService = Depends(get_db_service), current_user=Depends(get_current_active_user)):
    return chatbot_service.get_chat_sessions(current_user, db)


@router.get(
    "/sessions/{session_id}",
    response_model=chatbot_model.ChatSessionDetail,
    summary="Get a Single Chat Session with History",
)
def get_chat_session_details(session_id: str, db: DatabaseService = Depends(get_db_service), current_user=Depends(get_current_active_user)):
    details = chatbot_service.get_chat_session_details_logic(session_id, current_user.id, db)
    if not details:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Chat session with ID {session_id} not found or user does not have permission.",
        )
    return details


@router.delete(
    "/sessions/{session_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a Chat Session",
    description="Permanently deletes a chat session and all of its messages."
)
def delete_chat_session(session_id: str, db: DatabaseService = Depends(get_db_service), current_user=Depends(get_current_active_user)):
    was_deleted = chatbot_service.delete_chat_session_logic(session_id, current_user.id, db)
    if not was_deleted:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Chat session with ID {session_id} not found or user does not have permission.",
        )
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# --- REAL-TIME WEBSOCKET ENDPOINT ---

@router.websocket("/ws/{session_id}")
async def websocket_endpoint(
    websocket: WebSocket,
    session_id: str,
    token: str = Query(...),
    db: DatabaseService = Depends(get_db_service),
):
    # Browsers cannot set headers on a WebSocket handshake, so the bearer token travels as a query parameter.
    user_id = security.decode_access_token(token)
    user = db.get_user_by_id(user_id) if user_id else None
    session = db.get_chat_session_by_id(session_id)
    if not user or not user.is_active or not session or session.user_id != user.id:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()

    try:
        while True:
            data = await websocket.receive_text()
            message_data = json.loads(data)

            if message_data.get("type") == "user_message":
                message_text = message_data.get("payload", {}).get("text")
                if message_text:
                    await chatbot_service.add_new_message_to_session(
                        session_id=session_id,
                        user=user,
                        message_text=message_text,
                        db=db,
                        websocket=websocket,
                    )

    except WebSocketDisconnect:
        logger.info("Client disconnected from chat session %s", session_id)
    except Exception as e:
        logger.error("Unexpected error in WebSocket for session %s: %s", session_id, e)
        try:
            await websocket.send_json({
                "type": "error",
                "payload": {"message": "A server error occurred. Please try reconnecting."}
            })
        except Exception:
            logger.debug("WebSocket for session %s already closed", session_id)
