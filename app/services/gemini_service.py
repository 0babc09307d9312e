# /app/services/gemini_service.py

"""
Thin async wrapper around the Gemini API.

The client is configured on first use so the application (and its tests) can
start without an API key; calls made without one raise `ValueError`, which
every caller turns into a fallback answer.
"""

import json
import logging
from typing import Dict

import google.generativeai as genai
from fastapi import WebSocket
from google.generativeai.types import GenerationConfig

from app.core.config import settings

logger = logging.getLogger(__name__)

_configured = False


def _get_model() -> genai.GenerativeModel:
    global _configured
    if not settings.google_api_key:
        raise ValueError("GOOGLE_API_KEY environment variable is not set.")
    if not _configured:
        genai.configure(api_key=settings.google_api_key)
        _configured = True
    return genai.GenerativeModel(settings.gemini_model)


# --- CORE GENERATIVE FUNCTIONS ---

async def generate_text(prompt: str, temperature: float = 0.5) -> str:
    """The workhorse for text-only, non-streaming tasks."""
    try:
        model = _get_model()
        config = GenerationConfig(temperature=temperature)
        response = await model.generate_content_async(prompt, generation_config=config)
        if not response.parts:
            raise ValueError("AI model returned an empty response.")
        return response.text
    except Exception as e:
        logger.error("generate_text failed: %s", e)
        raise


async def generate_text_streaming(prompt: str, websocket: WebSocket) -> str:
    """
    Streams the response token-by-token over a WebSocket and returns the
    complete text for persistence.
    """
    full_response = []
    try:
        model = _get_model()
        stream = await model.generate_content_async(prompt, stream=True)

        is_stream_started = False
        async for chunk in stream:
            if chunk.text:
                full_response.append(chunk.text)
                if not is_stream_started:
                    await websocket.send_json({"type": "stream_start", "payload": {}})
                    is_stream_started = True
                await websocket.send_json({"type": "stream_token", "payload": {"token": chunk.text}})

        if is_stream_started:
            await websocket.send_json({"type": "stream_end", "payload": {}})

    except Exception as e:
        logger.error("Streaming generation failed: %s", e)
        try:
            await websocket.send_json({
                "type": "error",
                "payload": {"message": "Sorry, an error occurred while generating the response."}
            })
        except Exception as ws_error:
            logger.warning("Failed to send streaming error over WebSocket: %s", ws_error)

    return "".join(full_response)


async def generate_json(prompt: str, temperature: float = 0.1) -> Dict:
    """
    Generates a response in Gemini's JSON mode and returns it parsed.
    """
    try:
        model = _get_model()
        config = GenerationConfig(
            temperature=temperature,
            response_mime_type="application/json"
        )
        response = await model.generate_content_async(prompt, generation_config=config)
        if not response.text:
            raise ValueError("AI model returned an empty response.")
        return json.loads(response.text)
    except Exception as e:
        logger.error("generate_json failed: %s", e)
        raise ValueError(f"Failed to get a valid JSON response from the AI. Error: {e}")
