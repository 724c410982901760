"""Article routes: filtered listing, search, personalized feed and detail."""
from fastapi import APIRouter, Query

from news_agg.auth.gate import CurrentUser, OptionalUser
from news_agg.db.models import Article
from news_agg.deps import ArticleServiceDep
from news_agg.errors import ValidationFailed
from news_agg.schemas import ArticleOut, ok, page_payload
from news_agg.stores import Page
from news_agg.stores.article_queries import ArticleFilters, Pagination
from news_agg.utils import parse_date_bound

router = APIRouter(prefix="/api/articles", tags=["articles"])


def date_param(value: str | None, field: str, *, upper: bool = False):  # noqa: ANN202
    try:
        return parse_date_bound(value, upper=upper)
    except ValueError:
        raise ValidationFailed.for_field(field, "Invalid date format") from None


def _filters(
    source: str | None,
    category: str | None,
    author: str | None,
    start_date: str | None,
    end_date: str | None,
) -> ArticleFilters:
    return ArticleFilters(
        source=source or None,
        category=category or None,
        author=author or None,
        start_date=date_param(start_date, "startDate"),
        end_date=date_param(end_date, "endDate", upper=True),
    )


def article_dict(article: Article) -> dict:
    return ArticleOut.model_validate(article).model_dump(mode="json")


def _page(result: Page[Article]) -> dict:
    return page_payload(
        [article_dict(a) for a in result.rows],
        result.total,
        result.pagination.limit,
        result.pagination.offset,
    )


@router.get("")
def list_articles(
    service: ArticleServiceDep,
    _: OptionalUser,
    source: str | None = None,
    category: str | None = None,
    author: str | None = None,
    start_date: str | None = Query(default=None, alias="startDate"),
    end_date: str | None = Query(default=None, alias="endDate"),
    limit: int | None = None,
    offset: int | None = None,
    page: int | None = None,
) -> dict:
    """Articles matching every given filter, newest first."""
    pagination = Pagination.from_params(limit, offset, page)
    filters = _filters(source, category, author, start_date, end_date)
    return ok(_page(service.filter(filters, pagination)))


@router.get("/search")
def search_articles(
    service: ArticleServiceDep,
    _: OptionalUser,
    q: str = "",
    source: str | None = None,
    category: str | None = None,
    author: str | None = None,
    start_date: str | None = Query(default=None, alias="startDate"),
    end_date: str | None = Query(default=None, alias="endDate"),
    limit: int | None = None,
    offset: int | None = None,
    page: int | None = None,
) -> dict:
    pagination = Pagination.from_params(limit, offset, page)
    filters = _filters(source, category, author, start_date, end_date)
    return ok(_page(service.search(q, filters, pagination)))


@router.get("/personalized")
def personalized_articles(
    service: ArticleServiceDep,
    user: CurrentUser,
    limit: int | None = None,
    offset: int | None = None,
    page: int | None = None,
) -> dict:
    """Articles matching any of the caller's preferences."""
    pagination = Pagination.from_params(limit, offset, page)
    return ok(_page(service.personalized(user.id, pagination)))


@router.get("/{article_id}")
def get_article(article_id: int, service: ArticleServiceDep, user: OptionalUser) -> dict:
    article, is_saved = service.get(article_id, user.id if user else None)
    data = article_dict(article)
    if is_saved is not None:
        data["is_saved"] = is_saved
    return ok(data)
