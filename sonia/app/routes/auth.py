"""
Auth Routes.

- POST /api/auth/signup → {"msg": "Signup successful"}
- POST /api/auth/login → {token, userId, email, name}
- GET /api/auth/me → profile of the token's user
"""

from typing import Any

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel

from sonia.app.routes.deps import get_auth, get_current_user_id, http_error
from sonia.domain.errors import WellnessError

router = APIRouter()


class SignupRequest(BaseModel):
    name: str | None = None
    email: str | None = None
    password: str | None = None


class LoginRequest(BaseModel):
    email: str | None = None
    password: str | None = None


@router.post("/signup")
def signup(body: SignupRequest, request: Request) -> dict[str, Any]:
    try:
        get_auth(request).signup(body.name, body.email, body.password)
    except WellnessError as e:
        raise http_error(e) from e
    return {"msg": "Signup successful"}


@router.post("/login")
def login(body: LoginRequest, request: Request) -> dict[str, Any]:
    try:
        return get_auth(request).login(body.email, body.password)
    except WellnessError as e:
        raise http_error(e) from e


@router.get("/me")
async def me(
    request: Request,
    user_id: str = Depends(get_current_user_id),
) -> dict[str, Any]:
    try:
        user = get_auth(request).get_profile(user_id)
    except WellnessError as e:
        raise http_error(e) from e
    return user.to_public_dict()
