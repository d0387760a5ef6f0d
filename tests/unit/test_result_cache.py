from __future__ import annotations

from down_pattern_server.models import AnswerMatch
from down_pattern_server.result_cache import CacheLookupResult, NoopResultCache, ResultCacheStore


def _rows(*pairs: tuple[str, int]) -> list[AnswerMatch]:
    return [AnswerMatch(answer=a, count=c) for a, c in pairs]


def test_result_cache_hit_and_miss() -> None:
    store = ResultCacheStore(max_keep=10, ttl_sec=60)
    store.put("A?PLE", _rows(("APPLE", 12)), limit=50)

    hit = store.get("A?PLE")
    miss = store.get("B?PLE")

    assert hit.hit is True
    assert hit.results == _rows(("APPLE", 12))
    assert hit.limit == 50
    assert miss.hit is False


def test_result_cache_ttl_expiry_on_read() -> None:
    now = {"value": 1000.0}
    store = ResultCacheStore(max_keep=10, ttl_sec=300, now_fn=lambda: now["value"])
    store.put("A?PLE", _rows(("APPLE", 12)))

    now["value"] = 1300.0
    assert store.get("A?PLE").hit is True

    now["value"] = 1300.001
    assert store.get("A?PLE").hit is False
    assert store.size == 0


def test_result_cache_evicts_oldest_inserted() -> None:
    store = ResultCacheStore(max_keep=100, ttl_sec=60)
    for i in range(105):
        store.put(f"P{i}", _rows(("X", i)))

    assert store.size == 100
    assert store.get("P0").hit is False
    assert store.get("P4").hit is False
    assert store.get("P5").hit is True
    assert store.keys()[-1] == "P104"


def test_result_cache_read_does_not_refresh_position() -> None:
    store = ResultCacheStore(max_keep=2, ttl_sec=60)
    store.put("q1", _rows(("A", 1)))
    store.put("q2", _rows(("B", 1)))
    _ = store.get("q1")
    store.put("q3", _rows(("C", 1)))

    assert store.get("q1").hit is False
    assert store.get("q2").hit is True
    assert store.get("q3").hit is True


def test_result_cache_copies_on_put_and_get() -> None:
    store = ResultCacheStore(max_keep=10, ttl_sec=60)
    rows = _rows(("APPLE", 12), ("AMPLE", 7))
    store.put("A?PLE", rows)
    rows.clear()

    first = store.get("A?PLE").results
    first.append(AnswerMatch(answer="ZZZZZ", count=1))
    second = store.get("A?PLE").results

    assert [m.answer for m in second] == ["APPLE", "AMPLE"]


def test_cache_lookup_serves_rules() -> None:
    full = CacheLookupResult(hit=True, results=_rows(("A", 1), ("B", 1)), limit=2)
    partial = CacheLookupResult(hit=True, results=_rows(("A", 1)), limit=2)

    assert full.serves(2) is True
    assert full.serves(1) is True
    # computed with a smaller limit and may have been truncated
    assert full.serves(10) is False
    # fewer rows than its limit, so nothing was cut off
    assert partial.serves(10) is True
    assert CacheLookupResult(hit=False).serves(1) is False


def test_noop_result_cache_never_hits() -> None:
    store = NoopResultCache()
    store.put("A", _rows(("A", 1)))
    assert store.get("A").hit is False
    assert store.size == 0
