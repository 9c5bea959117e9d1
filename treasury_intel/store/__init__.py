"""
Persistent state: news records, briefings and settings.

Each collection is a JSON file in the configured data directory.
"""

from pathlib import Path

from ..config import StorageConfig
from .briefing_cache import BriefingCache
from .json_store import JsonCollection
from .news_cache import NewsCache
from .settings import Settings, SettingsStore

__all__ = [
    "BriefingCache",
    "JsonCollection",
    "NewsCache",
    "Settings",
    "SettingsStore",
    "open_stores",
]


def open_stores(cfg: StorageConfig) -> tuple[NewsCache, BriefingCache, SettingsStore]:
    """Open the three collections under ``cfg.data_dir``."""
    data_dir = Path(cfg.data_dir)
    settings = SettingsStore(data_dir / "settings.json", cfg.default_news_feed_days)
    news = NewsCache(
        data_dir / "news.json",
        retention_days=settings.retention_days,
        max_records=cfg.max_news_records,
    )
    briefings = BriefingCache(data_dir / "briefings.json", cfg.max_briefings)
    return news, briefings, settings
