"""Bookmarks: list, save and unsave articles for the current user."""
from fastapi import APIRouter, Response, status

from news_agg.auth.gate import CurrentUser
from news_agg.deps import ArticleServiceDep
from news_agg.errors import NotFound
from news_agg.routers.articles import article_dict
from news_agg.schemas import ok, page_payload
from news_agg.stores.article_queries import Pagination

router = APIRouter(prefix="/api/saved-articles", tags=["saved-articles"])


@router.get("")
def list_saved(
    user: CurrentUser,
    service: ArticleServiceDep,
    limit: int | None = None,
    offset: int | None = None,
    page: int | None = None,
) -> dict:
    result = service.saved_for_user(user.id, Pagination.from_params(limit, offset, page))
    items = [
        {**article_dict(article), "saved_at": saved.saved_at.isoformat()}
        for saved, article in result.rows
    ]
    return ok(page_payload(items, result.total, result.pagination.limit, result.pagination.offset))


@router.post("/{article_id}", status_code=status.HTTP_201_CREATED)
def save_article(
    article_id: int, user: CurrentUser, service: ArticleServiceDep, response: Response
) -> dict:
    """Saving twice is not an error: the existing bookmark is returned with 200."""
    saved, created = service.save(user.id, article_id)
    data = {"id": saved.id, "article_id": saved.article_id, "saved_at": saved.saved_at.isoformat()}
    if not created:
        response.status_code = status.HTTP_200_OK
        return ok(data, "Article already saved")
    return ok(data, "Article saved successfully")


@router.delete("/{article_id}")
def unsave_article(article_id: int, user: CurrentUser, service: ArticleServiceDep) -> dict:
    if not service.unsave(user.id, article_id):
        raise NotFound("Saved article not found")
    return ok(None, "Article removed from saved articles")
