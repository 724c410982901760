"""Per-user personalization preferences."""
from fastapi import APIRouter

from news_agg.auth.gate import CurrentUser
from news_agg.deps import CategoryStoreDep, PreferenceStoreDep
from news_agg.errors import ValidationFailed
from news_agg.schemas import PreferenceOut, PreferenceUpdate, ok

router = APIRouter(prefix="/api/preferences", tags=["preferences"])


@router.get("")
def get_preferences(user: CurrentUser, preferences: PreferenceStoreDep) -> dict:
    preference, _ = preferences.get_or_create(user.id)
    return ok(PreferenceOut.model_validate(preference).model_dump(mode="json"))


@router.put("")
def update_preferences(
    body: PreferenceUpdate,
    user: CurrentUser,
    preferences: PreferenceStoreDep,
    categories: CategoryStoreDep,
) -> dict:
    """Replace the given preference sets.

    Categories are checked against the catalog once the catalog has been
    initialised; before that any name is accepted.
    """
    if body.preferred_categories and categories.all():
        unknown = categories.unknown_names(body.preferred_categories)
        if unknown:
            raise ValidationFailed.for_field(
                "preferred_categories", f"Unknown categories: {', '.join(unknown)}"
            )
    preference = preferences.update(user.id, **body.model_dump(exclude_none=True))
    return ok(
        PreferenceOut.model_validate(preference).model_dump(mode="json"),
        "Preferences updated successfully",
    )
