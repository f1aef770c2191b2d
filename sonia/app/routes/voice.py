"""
Voice Call Routes.

- GET /api/voice/config → realtime call configuration
- WS /api/voice/call?token=... → turn-based voice call

Client events: audio {data, mime_type}, mute, unmute, interrupt, end
Server events: ready, transcription, response, audio, interrupted, ended, error

Malformed frames (non-JSON, binary) get an INVALID_EVENT error; the call
continues.
"""

import asyncio
import logging
from typing import Any

from fastapi import APIRouter, Depends, Request, WebSocket, WebSocketDisconnect, status

from sonia.app.routes.deps import get_current_user_id, get_store, http_error, resolve_user_id
from sonia.app.services.voice import (
    DEFAULT_MAX_AUDIO_BYTES,
    VoiceCallSession,
    voice_call_config,
)
from sonia.domain.constants import LIVE_MODEL, VOICE_NAME
from sonia.domain.errors import ErrorCodes, WellnessError

logger = logging.getLogger(__name__)

router = APIRouter()


async def _error_event(websocket: WebSocket, code: str, message: str) -> None:
    await websocket.send_json({"type": "error", "code": code, "message": message})


async def _finish(worker: asyncio.Task[None]) -> None:
    await asyncio.wait({worker})
    if not worker.cancelled() and worker.exception() is not None:
        logger.warning(f"Voice call worker stopped with an error: {worker.exception()}")


def _voice_settings(config: dict[str, Any]) -> dict[str, Any]:
    return config.get("voice", {}) or {}


@router.get("/config")
async def call_config(
    request: Request,
    user_id: str = Depends(get_current_user_id),
) -> dict[str, Any]:
    try:
        context = get_store(request).get_context(user_id)
    except WellnessError as e:
        raise http_error(e) from e
    settings = _voice_settings(request.app.state.config)
    return voice_call_config(
        context,
        model=settings.get("live_model", LIVE_MODEL),
        voice_name=settings.get("voice_name", VOICE_NAME),
    )


@router.websocket("/call")
async def voice_call(websocket: WebSocket, token: str | None = None) -> None:
    state = websocket.app.state
    try:
        user_id = resolve_user_id(state.auth, token)
        context = state.store.get_context(user_id)
    except WellnessError as e:
        logger.info(f"Voice call rejected: {e.code}")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    settings = _voice_settings(state.config)
    session = VoiceCallSession(
        state.provider,
        state.emotion,
        context,
        max_audio_bytes=int(settings.get("max_audio_bytes", DEFAULT_MAX_AUDIO_BYTES)),
        speak=bool(settings.get("speak_responses", True)),
        voice_name=settings.get("voice_name", VOICE_NAME),
    )
    worker = asyncio.create_task(session.run(websocket.send_json))
    logger.info(f"Voice call started for {user_id}")

    disconnected = False
    try:
        await websocket.send_json({"type": "ready"})
        while True:
            try:
                event = await websocket.receive_json()
            except (ValueError, KeyError, TypeError) as e:
                logger.info(f"Malformed voice call frame from {user_id}: {e}")
                await _error_event(
                    websocket, ErrorCodes.INVALID_EVENT, "Events must be JSON text frames"
                )
                continue

            kind = event.get("type") if isinstance(event, dict) else None

            if kind == "audio":
                try:
                    seq = session.submit_audio(event.get("data"), event.get("mime_type"))
                except WellnessError as e:
                    await websocket.send_json({"type": "error", **e.to_dict()})
                    continue
                if seq is None:
                    logger.debug("Audio ignored (muted)")
            elif kind == "mute":
                session.mute()
            elif kind == "unmute":
                session.unmute()
            elif kind == "interrupt":
                dropped = session.interrupt()
                await websocket.send_json({"type": "interrupted", "dropped": dropped})
            elif kind == "end":
                break
            else:
                await _error_event(
                    websocket, ErrorCodes.UNKNOWN_EVENT, f"Unknown event type: {kind}"
                )
    except WebSocketDisconnect:
        disconnected = True
        logger.info(f"Voice call disconnected for {user_id}")
    finally:
        duration = session.end()
        await _finish(worker)

    if disconnected:
        return
    await websocket.send_json({"type": "ended", "duration": duration})
    await websocket.close()
    logger.info(f"Voice call ended for {user_id} ({duration})")
