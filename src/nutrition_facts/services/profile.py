"""User profile persistence."""

from dataclasses import dataclass

from pydantic import ValidationError

from nutrition_facts.domain.profile import UserProfile
from nutrition_facts.services.ledger import LedgerStore
from nutrition_facts.services.storage import (
    USER_PROFILE_KEY,
    KeyValueStore,
    discard_blob,
    read_blob,
    write_blob,
)

ACTIVITY_LEVEL_LABELS = {
    "minimal": "Минимальная (сидячая работа, нет тренировок)",
    "light": "Легкая (тренировки 1-3 раза в неделю)",
    "moderate": "Средняя (тренировки 3-5 раз в неделю)",
    "high": "Высокая (интенсивные тренировки 6-7 раз в неделю)",
    "extreme": "Очень высокая (физическая работа + интенсивные тренировки)",
}

GOAL_LABELS = {
    "lose": "Снизить вес",
    "maintain": "Поддерживать вес",
    "gain": "Набрать вес",
}


@dataclass
class UserProfileService:
    """Stores the profile and keeps ledger progress in sync with its goals."""

    store: KeyValueStore
    ledger: LedgerStore

    def load(self) -> UserProfile | None:
        """Return the stored profile, if any."""
        blob = read_blob(self.store, USER_PROFILE_KEY)
        if blob is None:
            return None
        try:
            return UserProfile.model_validate(blob.data)
        except ValidationError as exc:
            discard_blob(self.store, USER_PROFILE_KEY, exc)
            return None

    def save(self, profile: UserProfile) -> UserProfile:
        """Persist a profile and recompute progress against its goals."""
        write_blob(
            self.store,
            USER_PROFILE_KEY,
            profile.model_dump(mode="json", by_alias=True, exclude_none=True),
        )
        self.ledger.apply_goals(profile.daily_goals)
        return profile


def activity_level_label(level: str) -> str:
    """Return a human-readable activity level."""
    return ACTIVITY_LEVEL_LABELS.get(level, level)


def goal_label(goal: str) -> str:
    """Return a human-readable goal."""
    return GOAL_LABELS.get(goal, goal)
