"""
Context Routes (settings): life context + preferred language.

- GET /api/context
- PATCH /api/context {role?, language?}
"""

from typing import Any

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel

from sonia.app.routes.deps import get_current_user_id, get_store, http_error
from sonia.domain.errors import WellnessError

router = APIRouter()


class ContextUpdate(BaseModel):
    role: str | None = None
    language: str | None = None


@router.get("")
async def get_context(
    request: Request,
    user_id: str = Depends(get_current_user_id),
) -> dict[str, Any]:
    try:
        return get_store(request).get_context(user_id).to_dict()
    except WellnessError as e:
        raise http_error(e) from e


@router.patch("")
async def update_context(
    body: ContextUpdate,
    request: Request,
    user_id: str = Depends(get_current_user_id),
) -> dict[str, Any]:
    partial = body.model_dump(exclude_none=True)
    try:
        return get_store(request).update_context(user_id, partial).to_dict()
    except WellnessError as e:
        raise http_error(e) from e
