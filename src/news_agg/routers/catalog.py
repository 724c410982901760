"""News sources and categories: public listing, admin bulk initialisation."""
from fastapi import APIRouter, status

from news_agg.auth.gate import AdminUser
from news_agg.deps import CategoryStoreDep, SourceStoreDep
from news_agg.schemas import (CategoryIn, CategoryOut, NewsSourceIn,
                              NewsSourceOut, ok)

router = APIRouter(prefix="/api", tags=["catalog"])


@router.get("/sources")
def list_sources(sources: SourceStoreDep, api_source: str | None = None) -> dict:
    rows = sources.active_sources(api_source)
    return ok([NewsSourceOut.model_validate(s).model_dump() for s in rows])


@router.post("/sources", status_code=status.HTTP_201_CREATED)
def initialize_sources(body: list[NewsSourceIn], sources: SourceStoreDep, _: AdminUser) -> dict:
    created = sources.initialize([item.model_dump() for item in body])
    return ok(
        [NewsSourceOut.model_validate(s).model_dump() for s in created],
        f"{len(created)} sources created",
    )


@router.get("/categories")
def list_categories(categories: CategoryStoreDep) -> dict:
    return ok([CategoryOut.model_validate(c).model_dump() for c in categories.all()])


@router.post("/categories", status_code=status.HTTP_201_CREATED)
def initialize_categories(
    body: list[CategoryIn], categories: CategoryStoreDep, _: AdminUser
) -> dict:
    created = categories.initialize([item.model_dump() for item in body])
    return ok(
        [CategoryOut.model_validate(c).model_dump() for c in created],
        f"{len(created)} categories created",
    )
