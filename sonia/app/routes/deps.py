"""
Shared route dependencies: app state access, auth, error mapping.

Errors leave the API as HTTPException(detail={"code", "message"}).
"""

import logging

from fastapi import Header, HTTPException, Request

from sonia.app.providers.base import ProviderError
from sonia.app.services.auth import AuthService, extract_token
from sonia.core.store import UserStore
from sonia.domain.errors import ErrorCodes, WellnessError

logger = logging.getLogger(__name__)

# Provider failures surface as a gateway error
PROVIDER_ERROR_STATUS = 502


def http_error(error: WellnessError) -> HTTPException:
    return HTTPException(status_code=error.status_code, detail=error.to_dict())


def provider_http_error(error: ProviderError) -> HTTPException:
    logger.warning(f"Provider failure: {error}")
    return HTTPException(
        status_code=PROVIDER_ERROR_STATUS,
        detail={"code": error.code, "message": error.message},
    )


def get_store(request: Request) -> UserStore:
    return request.app.state.store


def get_auth(request: Request) -> AuthService:
    return request.app.state.auth


def resolve_user_id(auth: AuthService, token: str | None) -> str:
    """
    Token → id of an existing user.

    Raises:
        WellnessError: NO_TOKEN, INVALID_TOKEN (also for tokens of deleted users)
    """
    user_id = auth.decode_token(token)
    if auth.store.get_user(user_id) is None:
        raise WellnessError(ErrorCodes.INVALID_TOKEN, "Invalid token")
    return user_id


def get_current_user_id(
    request: Request,
    authorization: str | None = Header(default=None),
) -> str:
    """Authorization header (raw token or "Bearer <token>") → user_id."""
    try:
        return resolve_user_id(get_auth(request), extract_token(authorization))
    except WellnessError as e:
        raise http_error(e) from e
