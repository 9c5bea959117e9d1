import json

import pytest

from treasury_intel.config import StorageConfig
from treasury_intel.store import open_stores
from treasury_intel.store.settings import SettingsStore


def test_defaults_when_file_missing(tmp_path):
    store = SettingsStore(tmp_path / "settings.json", default_news_feed_days=3)
    assert store.get().news_feed_days == 3
    assert store.retention_days() == 3


def test_save_persists_and_validates(tmp_path):
    store = SettingsStore(tmp_path / "settings.json")

    assert store.save(news_feed_days=7).news_feed_days == 7
    assert SettingsStore(tmp_path / "settings.json").retention_days() == 7

    with pytest.raises(ValueError):
        store.save(news_feed_days=0)
    assert store.retention_days() == 7


def test_invalid_stored_value_falls_back_to_default(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"news_feed_days": -4, "theme": "dark"}), encoding="utf-8")
    assert SettingsStore(path).get().news_feed_days == 2


def test_news_cache_follows_settings_changes(tmp_path, now, make_record):
    news, _, settings = open_stores(StorageConfig(data_dir=str(tmp_path)))
    news.clock = lambda: now
    settings.save(news_feed_days=3)
    news.upsert([make_record(1, hours_old=1), make_record(2, hours_old=60)])
    assert {r.id for r in news.query()} == {"id-1", "id-2"}

    settings.save(news_feed_days=2)
    assert [r.id for r in news.query()] == ["id-1"]
