"""User preferences: favorite tools, recently used tools and theme.

Preferences are plain values. The update functions return a new
``UserPreferences`` and never touch storage; ``PreferencesStore`` loads and
persists them.
"""

import logging
import os
import tempfile
from typing import List, Literal

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

DEFAULT_RECENT_LIMIT = 10


class UserPreferences(BaseModel):
    """Preferences kept between sessions."""
    favorites: List[str] = Field(default_factory=list, description="Favorite tool IDs")
    recently_used: List[str] = Field(
        default_factory=list, description="Tool IDs, most recent first"
    )
    theme: Literal["light", "dark"] = "light"


def toggle_favorite(preferences: UserPreferences, tool_id: str) -> UserPreferences:
    favorites = list(preferences.favorites)
    if tool_id in favorites:
        favorites.remove(tool_id)
    else:
        favorites.append(tool_id)
    return preferences.model_copy(update={"favorites": favorites})


def add_to_recently_used(
    preferences: UserPreferences,
    tool_id: str,
    limit: int = DEFAULT_RECENT_LIMIT,
) -> UserPreferences:
    """Move ``tool_id`` to the front of the recent list, keeping ``limit`` entries."""
    recent = [existing for existing in preferences.recently_used if existing != tool_id]
    recent.insert(0, tool_id)
    return preferences.model_copy(update={"recently_used": recent[:limit]})


def set_theme(preferences: UserPreferences, theme: str) -> UserPreferences:
    if theme not in ("light", "dark"):
        raise ValueError(f"Invalid theme: {theme}")
    return preferences.model_copy(update={"theme": theme})


def is_favorite(preferences: UserPreferences, tool_id: str) -> bool:
    return tool_id in preferences.favorites


class PreferencesStore:
    """JSON file storage for user preferences."""

    def __init__(self, path: str):
        self.path = path

    def load(self) -> UserPreferences:
        """Read stored preferences; missing or unreadable data gives the defaults."""
        if not os.path.exists(self.path):
            return UserPreferences()

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                return UserPreferences.model_validate_json(f.read())
        except (OSError, ValueError) as e:
            logger.error(f"Failed to parse user preferences at {self.path}: {e}")
            return UserPreferences()

    def save(self, preferences: UserPreferences) -> None:
        """Write preferences to a temporary file, then replace the stored file."""
        directory = os.path.dirname(self.path) or "."
        os.makedirs(directory, exist_ok=True)

        fd, temp_path = tempfile.mkstemp(dir=directory, prefix=".preferences-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(preferences.model_dump_json(indent=2))
            os.replace(temp_path, self.path)
        except Exception:
            if os.path.exists(temp_path):
                os.unlink(temp_path)
            raise
