"""Usage log of calls made to upstream news APIs."""
from datetime import datetime, timedelta

from sqlalchemy import func
from sqlmodel import Session, col, select

from news_agg.db.models import ApiLog
from news_agg.utils import utcnow


class ApiLogStore:
    def __init__(self, session: Session) -> None:
        self._session = session

    def log_request(
        self,
        api_source: str,
        endpoint: str | None = None,
        status_code: int | None = None,
        response_time_ms: int | None = None,
    ) -> ApiLog:
        entry = ApiLog(
            api_source=api_source,
            endpoint=endpoint,
            status_code=status_code,
            response_time_ms=response_time_ms,
        )
        self._session.add(entry)
        self._session.flush()
        self._session.refresh(entry)
        return entry

    def by_date_range(
        self, start: datetime, end: datetime, api_source: str | None = None
    ) -> list[ApiLog]:
        statement = select(ApiLog).where(
            col(ApiLog.created_at) >= start, col(ApiLog.created_at) <= end
        )
        if api_source:
            statement = statement.where(ApiLog.api_source == api_source)
        statement = statement.order_by(col(ApiLog.created_at).desc())
        return list(self._session.exec(statement).all())

    def stats(self, days: int = 7) -> list[dict]:
        """Per-source request count and response times over the last ``days`` days."""
        since = utcnow() - timedelta(days=days)
        statement = (
            select(
                ApiLog.api_source,
                func.count(col(ApiLog.id)),
                func.avg(col(ApiLog.response_time_ms)),
                func.max(col(ApiLog.response_time_ms)),
            )
            .where(col(ApiLog.created_at) >= since)
            .group_by(col(ApiLog.api_source))
            .order_by(col(ApiLog.api_source))
        )
        return [
            {
                "api_source": source,
                "request_count": count,
                "avg_response_time": float(avg) if avg is not None else None,
                "max_response_time": maximum,
            }
            for source, count, avg, maximum in self._session.exec(statement).all()
        ]
