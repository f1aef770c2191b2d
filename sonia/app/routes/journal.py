"""
Journal Routes.

- POST /api/journal → analyze + store an entry
- GET /api/journal → entries, newest first
- DELETE /api/journal/{entry_id}
"""

from typing import Any

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel

from sonia.app.providers.base import ProviderError
from sonia.app.routes.deps import get_current_user_id, http_error, provider_http_error
from sonia.app.services.journal import JournalService
from sonia.domain.errors import WellnessError

router = APIRouter()


class JournalRequest(BaseModel):
    title: str | None = None
    content: str | None = None


def get_journal(request: Request) -> JournalService:
    return request.app.state.journal


@router.post("")
async def create_entry(
    body: JournalRequest,
    request: Request,
    user_id: str = Depends(get_current_user_id),
) -> dict[str, Any]:
    try:
        entry = await get_journal(request).add_entry(user_id, body.content, body.title)
    except WellnessError as e:
        raise http_error(e) from e
    except ProviderError as e:
        raise provider_http_error(e) from e
    return entry.to_dict()


@router.get("")
async def list_entries(
    request: Request,
    user_id: str = Depends(get_current_user_id),
) -> list[dict[str, Any]]:
    try:
        entries = get_journal(request).list_entries(user_id)
    except WellnessError as e:
        raise http_error(e) from e
    return [e.to_dict() for e in entries]


@router.delete("/{entry_id}")
async def delete_entry(
    entry_id: str,
    request: Request,
    user_id: str = Depends(get_current_user_id),
) -> dict[str, Any]:
    try:
        get_journal(request).delete_entry(user_id, entry_id)
    except WellnessError as e:
        raise http_error(e) from e
    return {"success": True}
