"""
Wellness Routes: dashboard, wellness path, history, report.

- GET /api/wellness/dashboard
- GET /api/wellness/path
- GET /api/wellness/history
- POST /api/wellness/report?scope=dashboard|path
"""

from typing import Any

from fastapi import APIRouter, Depends, Query, Request

from sonia.app.providers.base import ProviderError
from sonia.app.routes.deps import (
    get_current_user_id,
    get_store,
    http_error,
    provider_http_error,
)
from sonia.app.services import analytics
from sonia.app.services.report import SCOPE_PATH, ReportService
from sonia.domain.errors import WellnessError

router = APIRouter()


def get_reports(request: Request) -> ReportService:
    return request.app.state.reports


@router.get("/dashboard")
async def dashboard(
    request: Request,
    user_id: str = Depends(get_current_user_id),
) -> dict[str, Any]:
    try:
        messages = get_store(request).list_messages(user_id)
    except WellnessError as e:
        raise http_error(e) from e
    return analytics.dashboard_summary(messages)


@router.get("/path")
async def wellness_path(
    request: Request,
    user_id: str = Depends(get_current_user_id),
) -> dict[str, Any]:
    store = get_store(request)
    try:
        messages = store.list_messages(user_id)
        entries = store.list_journal_entries(user_id)
    except WellnessError as e:
        raise http_error(e) from e
    return analytics.wellness_path(messages, entries)


@router.get("/history")
async def history(
    request: Request,
    user_id: str = Depends(get_current_user_id),
) -> list[dict[str, Any]]:
    store = get_store(request)
    try:
        messages = store.list_messages(user_id)
        entries = store.list_journal_entries(user_id)
    except WellnessError as e:
        raise http_error(e) from e
    return [h.to_dict() for h in analytics.history_by_date(messages, entries)]


@router.post("/report")
async def report(
    request: Request,
    scope: str = Query(default=SCOPE_PATH),
    user_id: str = Depends(get_current_user_id),
) -> dict[str, Any]:
    try:
        result = await get_reports(request).generate(user_id, scope)
    except WellnessError as e:
        raise http_error(e) from e
    except ProviderError as e:
        raise provider_http_error(e) from e
    return result.to_dict()
