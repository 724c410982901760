import pytest

from news_agg.db.models import Preference
from news_agg.errors import ValidationFailed
from news_agg.stores import ArticleStore
from news_agg.stores.article_queries import (ArticleFilters, Pagination,
                                             filter_clauses,
                                             personalized_clauses,
                                             preference_clauses,
                                             search_clauses)
from news_agg.utils import parse_date_bound

NEWEST_FIRST = [
    "Quantum computing breakthrough",
    "New phone review",
    "Election night recap",
    "Chip rally lifts markets",
    "Football final",
]


@pytest.fixture()
def store(session, article_ids) -> ArticleStore:
    return ArticleStore(session)


def titles(page) -> list[str]:
    return [article.title for article in page.rows]


def test_no_filters_returns_everything_newest_first(store):
    page = store.query(filter_clauses(ArticleFilters()), Pagination())
    assert titles(page) == NEWEST_FIRST
    assert page.total == 5


def test_filters_are_anded(store):
    filters = ArticleFilters(source="Reuters", category="technology")
    assert titles(store.query(filter_clauses(filters), Pagination())) == [
        "Chip rally lifts markets"
    ]


def test_author_filter_is_case_insensitive_substring(store):
    page = store.query(filter_clauses(ArticleFilters(author="jane")), Pagination())
    assert titles(page) == ["Quantum computing breakthrough", "Chip rally lifts markets"]


def test_date_only_range_is_inclusive(store):
    filters = ArticleFilters(
        start_date=parse_date_bound("2024-01-10"),
        end_date=parse_date_bound("2024-01-31", upper=True),
    )
    assert titles(store.query(filter_clauses(filters), Pagination())) == [
        "New phone review",
        "Election night recap",
        "Chip rally lifts markets",
    ]


def test_start_after_end_is_rejected():
    filters = ArticleFilters(
        start_date=parse_date_bound("2024-02-01"), end_date=parse_date_bound("2024-01-01")
    )
    with pytest.raises(ValidationFailed):
        filter_clauses(filters)


def test_pagination_slices_after_ordering(store):
    page = store.query(filter_clauses(ArticleFilters()), Pagination(limit=2, offset=2))
    assert titles(page) == NEWEST_FIRST[2:4]
    assert page.total == 5


def test_pagination_from_params():
    assert Pagination.from_params() == Pagination(limit=20, offset=0)
    assert Pagination.from_params(limit=10, page=3) == Pagination(limit=10, offset=20)
    assert Pagination.from_params(limit=10, offset=5).page == 1
    for bad in ({"limit": 0}, {"limit": 101}, {"offset": -1}, {"page": 0}):
        with pytest.raises(ValidationFailed):
            Pagination.from_params(**bad)


def test_personalized_matches_any_preference(store):
    clauses = personalized_clauses(sources=["BBC News"], categories=["technology"])
    assert titles(store.query(clauses, Pagination())) == [
        "New phone review",
        "Election night recap",
        "Chip rally lifts markets",
        "Football final",
    ]


def test_personalized_by_category_only(store):
    page = store.query(personalized_clauses(categories=["technology"]), Pagination())
    assert {a.category for a in page.rows} == {"technology"}
    assert page.total == 2


def test_personalized_by_author(store):
    page = store.query(personalized_clauses(authors=["patel"]), Pagination())
    assert titles(page) == ["New phone review"]


def test_empty_preferences_match_everything(store):
    assert personalized_clauses() == []
    assert preference_clauses(None) == []
    assert preference_clauses(Preference(user_id=1)) == []
    assert store.query(preference_clauses(Preference(user_id=1)), Pagination()).total == 5


def test_search_title_and_description(store):
    assert titles(store.query(search_clauses("QUANTUM"), Pagination())) == [
        "Quantum computing breakthrough"
    ]
    assert titles(store.query(search_clauses("every district"), Pagination())) == [
        "Election night recap"
    ]


def test_search_treats_wildcards_literally(store):
    assert titles(store.query(search_clauses("100%"), Pagination())) == ["New phone review"]
    assert store.query(search_clauses("_%_"), Pagination()).total == 0


@pytest.mark.parametrize("q", ["", " ", "a"])
def test_search_needs_two_characters(q):
    with pytest.raises(ValidationFailed):
        search_clauses(q)
