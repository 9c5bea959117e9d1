"""Settings collection; the source of the externally configured retention window."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any

from .json_store import JsonCollection


@dataclass
class Settings:
    """User-adjustable settings.

    Attributes:
        news_feed_days: Retention window in days for cached news
    """

    news_feed_days: int = 2


class SettingsStore:
    """Persisted settings with defaults for missing keys."""

    def __init__(self, path: Path, default_news_feed_days: int = 2):
        self._collection = JsonCollection(path, dict)
        self._defaults = Settings(news_feed_days=default_news_feed_days)

    def get(self) -> Settings:
        raw = self._collection.read()
        return self._merge(raw if isinstance(raw, dict) else {})

    def save(self, **patch: Any) -> Settings:
        """Update the given fields and return the resulting settings."""
        if "news_feed_days" in patch:
            patch["news_feed_days"] = _validate_days(patch["news_feed_days"])

        def apply(current: Any) -> dict[str, Any]:
            data = asdict(self._merge(current if isinstance(current, dict) else {}))
            data.update({k: v for k, v in patch.items() if k in data})
            return data

        return self._merge(self._collection.update(apply))

    def retention_days(self) -> int:
        return self.get().news_feed_days

    def _merge(self, raw: dict[str, Any]) -> Settings:
        data = asdict(self._defaults)
        data.update({k: v for k, v in raw.items() if k in data})
        try:
            data["news_feed_days"] = _validate_days(data["news_feed_days"])
        except ValueError:
            data["news_feed_days"] = self._defaults.news_feed_days
        return Settings(**data)


def _validate_days(value: Any) -> int:
    days = int(value)
    if days < 1:
        raise ValueError("news_feed_days must be at least 1")
    return days
