"""Tests for the age-bounded news cache."""

from __future__ import annotations

import threading

from treasury_intel.core.types import Category, Classification
from treasury_intel.store.news_cache import NewsCache


def _cache(tmp_path, now, days, **kwargs):
    holder = {"days": days}
    cache = NewsCache(
        tmp_path / "news.json",
        retention_days=lambda: holder["days"],
        clock=lambda: now,
        **kwargs,
    )
    return cache, holder


def _assert_ranked(records):
    for a, b in zip(records, records[1:]):
        assert a.urgency > b.urgency or (
            a.urgency == b.urgency and a.published_at >= b.published_at
        )


def test_upsert_twice_keeps_each_url_once(tmp_path, now, make_record):
    cache, _ = _cache(tmp_path, now, 2)
    batch = [make_record(i) for i in range(5)]

    assert cache.upsert(batch) == 5
    assert cache.upsert(batch) == 0

    urls = [r.source_url for r in cache.query()]
    assert len(urls) == 5
    assert len(set(urls)) == 5


def test_upsert_treats_tracking_variants_as_same_url(tmp_path, now, make_record):
    cache, _ = _cache(tmp_path, now, 2)
    cache.upsert([make_record(1, url="https://news.example.com/a")])
    added = cache.upsert(
        [
            make_record(2, url="https://news.example.com/a?utm_source=rss"),
            make_record(3, url="https://news.example.com/b"),
            make_record(4, url="https://news.example.com/b#comments"),
        ]
    )
    assert added == 1
    assert cache.count() == 2


def test_upsert_discards_records_without_url(tmp_path, now, make_record):
    cache, _ = _cache(tmp_path, now, 2)
    record = make_record(1)
    record.source_url = ""
    assert cache.upsert([record]) == 0
    assert cache.count() == 0


def test_query_returns_only_records_inside_retention(tmp_path, now, make_record):
    cache, holder = _cache(tmp_path, now, 7)
    fresh = [make_record(i, hours_old=i + 1, urgency=(i % 5) + 1) for i in range(35)]
    stale = [make_record(100 + i, hours_old=72 + i) for i in range(10)]
    cache.upsert(fresh + stale)
    assert cache.count() == 45

    holder["days"] = 2
    result = cache.query()

    assert len(result) == 35
    assert {r.id for r in result} == {r.id for r in fresh}
    _assert_ranked(result)


def test_upsert_applies_retention_to_whole_store(tmp_path, now, make_record):
    cache, holder = _cache(tmp_path, now, 7)
    cache.upsert([make_record(1, hours_old=100), make_record(2, hours_old=1)])

    holder["days"] = 2
    cache.upsert([make_record(3, hours_old=2)])

    raw = cache._collection.read()
    assert {item["id"] for item in raw} == {"id-2", "id-3"}


def test_shrinking_retention_never_grows_result(tmp_path, now, make_record):
    cache, holder = _cache(tmp_path, now, 10)
    cache.upsert([make_record(i, hours_old=i * 10) for i in range(25)])

    previous = None
    for days in (10, 7, 5, 3, 2, 1):
        holder["days"] = days
        ids = {r.id for r in cache.query()}
        if previous is not None:
            assert ids <= previous
        previous = ids


def test_query_sorts_by_urgency_then_recency(tmp_path, now, make_record):
    cache, _ = _cache(tmp_path, now, 2)
    cache.upsert(
        [
            make_record(1, hours_old=5, urgency=3),
            make_record(2, hours_old=1, urgency=3),
            make_record(3, hours_old=10, urgency=5),
            make_record(4, hours_old=2, urgency=1),
        ]
    )
    assert [r.id for r in cache.query()] == ["id-3", "id-2", "id-1", "id-4"]


def test_query_filters_and_limit(tmp_path, now, make_record):
    cache, _ = _cache(tmp_path, now, 2)
    cache.upsert(
        [
            make_record(1, category=Category.FX_RATES, title="Dollar rallies"),
            make_record(2, category=Category.MACRO, description="Inflation cools in the euro area"),
            make_record(3, category=Category.FX_RATES, title="Yen slides"),
        ]
    )

    assert {r.id for r in cache.query(category="fx-rates")} == {"id-1", "id-3"}
    assert len(cache.query(category="all")) == 3
    assert [r.id for r in cache.query(search="INFLATION")] == ["id-2"]
    assert [r.id for r in cache.query(search="example wire", limit=1)] != []
    assert len(cache.query(limit=2)) == 2


def test_upsert_caps_store_keeping_newest_merge_first(tmp_path, now, make_record):
    cache, _ = _cache(tmp_path, now, 2, max_records=5)
    cache.upsert([make_record(i) for i in range(3)])
    cache.upsert([make_record(10 + i) for i in range(4)])

    stored = [item["id"] for item in cache._collection.read()]
    assert stored == ["id-10", "id-11", "id-12", "id-13", "id-0"]


def test_apply_classifications_only_touches_pending(tmp_path, now, make_record):
    cache, _ = _cache(tmp_path, now, 2)
    cache.upsert([make_record(1), make_record(2, summary="Already done", urgency=2)])

    applied = cache.apply_classifications(
        [
            Classification("id-1", Category.RISK, 5, "Counterparty stress"),
            Classification("id-2", Category.RISK, 5, "Should not overwrite"),
            Classification("missing", Category.RISK, 5, "Unknown id"),
        ]
    )

    assert applied == 1
    by_id = {r.id: r for r in cache.query()}
    assert by_id["id-1"].category == Category.RISK
    assert by_id["id-1"].urgency == 5
    assert by_id["id-1"].ai_summary == "Counterparty stress"
    assert by_id["id-2"].ai_summary == "Already done"
    assert by_id["id-2"].urgency == 2


def test_pending_excludes_classified(tmp_path, now, make_record):
    cache, _ = _cache(tmp_path, now, 2)
    cache.upsert([make_record(1), make_record(2, summary="done"), make_record(3)])
    assert {r.id for r in cache.pending(10)} == {"id-1", "id-3"}
    assert len(cache.pending(1)) == 1


def test_corrupt_store_file_reads_as_empty(tmp_path, now, make_record):
    (tmp_path / "news.json").write_text("{not json", encoding="utf-8")
    cache, _ = _cache(tmp_path, now, 2)

    assert cache.query() == []
    cache.upsert([make_record(1)])
    assert cache.count() == 1


def test_concurrent_upserts_from_separate_caches_keep_every_record(tmp_path, now, make_record):
    writers, per_writer = 6, 50
    barrier = threading.Barrier(writers)
    added: list[int] = []

    def write(worker: int) -> None:
        cache, _ = _cache(tmp_path, now, 2)
        records = [make_record(worker * 1000 + i) for i in range(per_writer)]
        barrier.wait()
        for record in records:
            added.append(cache.upsert([record]))

    threads = [threading.Thread(target=write, args=(w,)) for w in range(writers)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    cache, _ = _cache(tmp_path, now, 2)
    assert sum(added) == writers * per_writer
    assert cache.count() == writers * per_writer
    assert len({r.source_url for r in cache.query(limit=1000)}) == writers * per_writer
