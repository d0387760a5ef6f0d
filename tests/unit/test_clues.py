from __future__ import annotations

import random
from collections import Counter

from conftest import PREFIX, link_outside_root
from down_pattern_server.clues import ClueRetriever, dedupe, shuffled
from down_pattern_server.manifest import ManifestLoader
from down_pattern_server.shard_cache import ShardCache


def _retriever(store, rng: random.Random | None = None) -> ClueRetriever:
    return ClueRetriever(
        manifest=ManifestLoader(store, prefix=PREFIX),
        shards=ShardCache(store, prefix=PREFIX),
        rng=rng,
    )


def test_clues_are_deduplicated(counting_store) -> None:
    out = _retriever(counting_store).clues("apple", 10)

    assert sorted(out) == sorted(["Fruit", "Big ___", "Newton's inspiration"])
    assert len(out) == len(set(out))


def test_clues_duplicate_pair_collapses(data_root, counting_store) -> None:
    path = data_root / PREFIX / "chunk_5_B.json"
    path.write_text('{"answers": [{"answer": "BAGEL", "count": 5}], "clues": {"BAGEL": ["a", "a", "b"]}}')

    out = _retriever(counting_store).clues("BAGEL", 10)

    assert set(out) <= {"a", "b"}
    assert len(out) == len(set(out))
    assert len(out) <= 2


def test_clues_truncated_to_max(counting_store) -> None:
    assert len(_retriever(counting_store).clues("APPLE", 2)) == 2


def test_clues_for_unknown_answer_in_known_shard(counting_store) -> None:
    assert _retriever(counting_store).clues("ADOPT", 10) == []


def test_clues_for_missing_bucket(counting_store) -> None:
    retriever = _retriever(counting_store)
    assert retriever.clues("ZEBRA", 10) == []
    assert retriever.clues("ABCDEFGHIJKL", 10) == []


def test_clues_degrade_on_shard_failure(data_root, make_counting_store) -> None:
    store = make_counting_store(data_root, fail_keys={f"{PREFIX}/chunk_5_A.json"})
    assert _retriever(store).clues("APPLE", 10) == []


def test_clues_degrade_on_manifest_failure(tmp_path, make_counting_store) -> None:
    assert _retriever(make_counting_store(tmp_path)).clues("APPLE", 10) == []


def test_clues_use_single_owning_shard(counting_store) -> None:
    _retriever(counting_store).clues("APPLES", 10)
    shard_calls = [key for key in counting_store.calls if not key.endswith("manifest.json")]
    assert shard_calls == [f"{PREFIX}/chunk_6_A.json"]


def test_dedupe_keeps_first_occurrence_order() -> None:
    assert dedupe(["b", "a", "b", "c", "a"]) == ["b", "a", "c"]


def test_shuffled_is_a_permutation_and_leaves_input() -> None:
    items = ["a", "b", "c", "d"]
    out = shuffled(items, random.Random(7))
    assert sorted(out) == items
    assert items == ["a", "b", "c", "d"]
    assert shuffled([], random.Random(7)) == []


def test_shuffled_is_uniform_over_permutations() -> None:
    rng = random.Random(12345)
    runs = 6000
    seen = Counter(tuple(shuffled(["a", "b", "c"], rng)) for _ in range(runs))

    assert len(seen) == 6
    for count in seen.values():
        assert abs(count - runs / 6) < 200


def test_clues_degrade_when_store_rejects_shard_key(tmp_path, data_root, counting_store) -> None:
    link_outside_root(data_root, "chunk_5_A.json", tmp_path / "outside")
    assert _retriever(counting_store).clues("APPLE", 10) == []


def test_clues_degrade_when_store_rejects_manifest_key(tmp_path, data_root, counting_store) -> None:
    link_outside_root(data_root, "manifest.json", tmp_path / "outside")
    assert _retriever(counting_store).clues("APPLE", 10) == []
