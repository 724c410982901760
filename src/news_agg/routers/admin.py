"""Admin-only view of upstream news API usage."""
from datetime import timedelta

from fastapi import APIRouter, Query, status

from news_agg.auth.gate import AdminUser
from news_agg.deps import ApiLogStoreDep
from news_agg.errors import ValidationFailed
from news_agg.routers.articles import date_param
from news_agg.schemas import ApiLogIn, ApiLogOut, ok
from news_agg.utils import utcnow

router = APIRouter(prefix="/api/admin", tags=["admin"])


@router.get("/api-logs")
def list_api_logs(
    logs: ApiLogStoreDep,
    _: AdminUser,
    start: str | None = Query(default=None, alias="startDate"),
    end: str | None = Query(default=None, alias="endDate"),
    source: str | None = None,
) -> dict:
    """Logged calls in a date range (default: the last 24 hours), newest first."""
    end_at = date_param(end, "endDate", upper=True) or utcnow()
    start_at = date_param(start, "startDate") or end_at - timedelta(days=1)
    if start_at > end_at:
        raise ValidationFailed.for_field("endDate", "End date must not be before start date")
    rows = logs.by_date_range(start_at, end_at, source)
    return ok([ApiLogOut.model_validate(r).model_dump(mode="json") for r in rows])


@router.post("/api-logs", status_code=status.HTTP_201_CREATED)
def record_api_log(body: ApiLogIn, logs: ApiLogStoreDep, _: AdminUser) -> dict:
    entry = logs.log_request(**body.model_dump())
    return ok(ApiLogOut.model_validate(entry).model_dump(mode="json"), "API call logged")


@router.get("/api-logs/stats")
def api_log_stats(
    logs: ApiLogStoreDep, _: AdminUser, days: int = Query(default=7, ge=1, le=365)
) -> dict:
    return ok({"days": days, "sources": logs.stats(days)})
