"""
Chat Routes.

- POST /api/chat/save → append a raw message ({"success": true})
- GET /api/chat/history → stored messages, oldest first
- POST /api/chat/message → persist + answer a text message
- POST /api/chat/voice → transcribe + persist + answer a voice message
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile
from pydantic import BaseModel

from sonia.app.providers.base import ProviderError
from sonia.app.routes.deps import get_current_user_id, http_error, provider_http_error
from sonia.app.services.chat import ChatService
from sonia.app.services.voice import DEFAULT_MAX_AUDIO_BYTES, validate_audio
from sonia.domain.errors import WellnessError
from sonia.domain.schemas import Message

logger = logging.getLogger(__name__)

router = APIRouter()


class SaveMessageRequest(BaseModel):
    role: str | None = None
    text: str | None = None


class SendMessageRequest(BaseModel):
    text: str | None = None


def get_chat(request: Request) -> ChatService:
    return request.app.state.chat


def _max_audio_bytes(request: Request) -> int:
    voice_config = request.app.state.config.get("voice", {}) or {}
    return int(voice_config.get("max_audio_bytes", DEFAULT_MAX_AUDIO_BYTES))


def _exchange(user_message: Message, reply: Message | None) -> dict[str, Any]:
    return {
        "userMessage": user_message.to_dict(),
        "assistantMessage": reply.to_dict() if reply is not None else None,
    }


@router.post("/save")
async def save_message(
    body: SaveMessageRequest,
    request: Request,
    user_id: str = Depends(get_current_user_id),
) -> dict[str, Any]:
    try:
        get_chat(request).save(user_id, body.role, body.text)
    except WellnessError as e:
        raise http_error(e) from e
    return {"success": True}


@router.get("/history")
async def history(
    request: Request,
    user_id: str = Depends(get_current_user_id),
) -> list[dict[str, Any]]:
    try:
        messages = get_chat(request).history(user_id)
    except WellnessError as e:
        raise http_error(e) from e
    return [m.to_dict() for m in messages]


@router.post("/message")
async def send_message(
    body: SendMessageRequest,
    request: Request,
    user_id: str = Depends(get_current_user_id),
) -> dict[str, Any]:
    try:
        user_message, reply = await get_chat(request).send_text(user_id, body.text)
    except WellnessError as e:
        raise http_error(e) from e
    except ProviderError as e:
        raise provider_http_error(e) from e
    return _exchange(user_message, reply)


@router.post("/voice")
async def send_voice(
    request: Request,
    audio: UploadFile = File(...),
    mime_type: str | None = Form(default=None),
    user_id: str = Depends(get_current_user_id),
) -> dict[str, Any]:
    """
    Voice message (multipart).

    mime_type defaults to the upload's content type, then audio/webm.
    At most max_audio_bytes + 1 bytes are read; anything longer is rejected.
    """
    max_bytes = _max_audio_bytes(request)
    data = await audio.read(max_bytes + 1)
    resolved_mime = mime_type or audio.content_type or "audio/webm"

    try:
        validate_audio(data, max_bytes)
        transcription = await request.app.state.provider.transcribe(data, resolved_mime)
        user_message, reply = await get_chat(request).send_voice(
            user_id, transcription.text or ""
        )
    except WellnessError as e:
        raise http_error(e) from e
    except ProviderError as e:
        raise provider_http_error(e) from e

    logger.info(f"Voice message from {user_id} ({len(data)} bytes, {resolved_mime})")
    return _exchange(user_message, reply)
