import pytest
from sqlmodel import select

from news_agg.db.models import Preference, SavedArticle
from news_agg.errors import NotFound
from news_agg.services import ArticleService
from news_agg.stores import (ArticleStore, PreferenceStore,
                             SavedArticleStore)
from news_agg.stores.article_queries import Pagination

from conftest import PASSWORD


@pytest.fixture()
def reader(users, session):
    user = users.create(email="reader@newsmail.io", name="Reader", password=PASSWORD)
    session.commit()
    return user


@pytest.fixture()
def preferences(session) -> PreferenceStore:
    return PreferenceStore(session)


@pytest.fixture()
def service(session, article_ids) -> ArticleService:
    return ArticleService(ArticleStore(session), PreferenceStore(session), SavedArticleStore(session))


def test_get_or_create_creates_once(preferences, reader):
    first, created = preferences.get_or_create(reader.id)
    assert created is True
    assert first.preferred_sources == []
    second, created = preferences.get_or_create(reader.id)
    assert created is False
    assert second.id == first.id


def test_update_stores_sorted_sets(preferences, reader):
    preference = preferences.update(
        reader.id,
        preferred_sources=["Reuters", "BBC News", "Reuters", " "],
        preferred_categories=["technology"],
    )
    assert preference.preferred_sources == ["BBC News", "Reuters"]
    assert preference.preferred_categories == ["technology"]

    preference = preferences.update(reader.id, preferred_authors=["Jane Doe"], preferred_sources=None)
    assert preference.preferred_sources == ["BBC News", "Reuters"]
    assert preference.preferred_authors == ["Jane Doe"]


def test_update_rejects_unknown_field(preferences, reader):
    with pytest.raises(ValueError):
        preferences.update(reader.id, favourite_colour=["blue"])


def test_preferences_are_deleted_with_user(preferences, reader, session):
    preferences.get_or_create(reader.id)
    session.commit()
    session.delete(reader)
    session.commit()
    assert session.exec(select(Preference)).all() == []


def test_personalized_uses_stored_preferences(service, preferences, reader):
    assert service.personalized(reader.id, Pagination()).total == 5
    preferences.update(reader.id, preferred_categories=["technology"])
    page = service.personalized(reader.id, Pagination())
    assert [a.title for a in page.rows] == ["New phone review", "Chip rally lifts markets"]


def test_save_is_idempotent(service, reader, article_ids):
    article_id = article_ids["Election night recap"]
    saved, created = service.save(reader.id, article_id)
    assert created is True
    again, created = service.save(reader.id, article_id)
    assert created is False
    assert again.id == saved.id

    _, is_saved = service.get(article_id, reader.id)
    assert is_saved is True
    _, anonymous = service.get(article_id)
    assert anonymous is None


def test_save_missing_article(service, reader):
    with pytest.raises(NotFound):
        service.save(reader.id, 9999)


def test_saved_list_and_unsave(service, reader, article_ids, session):
    service.save(reader.id, article_ids["Chip rally lifts markets"])
    service.save(reader.id, article_ids["Football final"])

    page = service.saved_for_user(reader.id, Pagination())
    assert page.total == 2
    assert {article.title for _, article in page.rows} == {"Chip rally lifts markets", "Football final"}

    assert service.unsave(reader.id, article_ids["Football final"]) is True
    assert service.unsave(reader.id, article_ids["Football final"]) is False
    assert len(session.exec(select(SavedArticle)).all()) == 1
