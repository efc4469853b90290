"""Tests for the ChromaDB vector store."""

import math
import shutil
import tempfile
import threading
import unittest
from pathlib import Path

import pytest

from mnemo.errors import (
    DimensionMismatch,
    InvalidVector,
    MetricMismatch,
    StoreClosed,
    StoreUnavailable,
)
from mnemo.tools.memory import vector_store
from mnemo.tools.memory.vector_store import VectorStore


class TestVectorStore(unittest.TestCase):
    """Test cases for VectorStore."""

    def setUp(self):
        self.temp_dir = Path(tempfile.mkdtemp())
        self.store = VectorStore(self.temp_dir, name="unit-test", dimension=3, metric="l2")

    def tearDown(self):
        self.store.close()
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_ids_are_assigned_in_order(self):
        first = self.store.add([1.0, 0.0, 0.0], {"content": "a"})
        second = self.store.add([0.0, 1.0, 0.0], {"content": "b"})

        self.assertEqual(second, first + 1)
        self.assertEqual(self.store.count(), 2)

    def test_query_orders_by_distance_then_id(self):
        a = self.store.add([1.0, 0.0, 0.0], {"content": "a"})
        b = self.store.add([0.0, 1.0, 0.0], {"content": "b"})
        c = self.store.add([1.0, 0.0, 0.0], {"content": "c"})

        results = self.store.query([1.0, 0.0, 0.0], k=3)

        self.assertEqual([r.id for r in results], [a, c, b])
        self.assertAlmostEqual(results[0].distance, 0.0, places=5)
        self.assertAlmostEqual(results[2].distance, 2.0, places=4)
        self.assertTrue(all(r.distance >= 0.0 for r in results))

    def test_query_returns_at_most_count_results(self):
        self.store.add([1.0, 0.0, 0.0], {"content": "only"})

        results = self.store.query([0.0, 0.0, 1.0], k=10)

        self.assertEqual(len(results), 1)
        self.assertEqual(results[0].metadata, {"content": "only"})

    def test_query_limits_to_k(self):
        for i in range(5):
            self.store.add([1.0, float(i), 0.0], {"content": str(i)})

        self.assertEqual(len(self.store.query([1.0, 0.0, 0.0], k=2)), 2)

    def test_query_on_empty_store(self):
        self.assertEqual(self.store.query([1.0, 0.0, 0.0], k=5), [])

    def test_query_rejects_non_positive_k(self):
        with self.assertRaises(ValueError):
            self.store.query([1.0, 0.0, 0.0], k=0)

    def test_wrong_length_vector_is_rejected(self):
        with self.assertRaises(InvalidVector):
            self.store.add([1.0, 0.0], {"content": "short"})
        with self.assertRaises(InvalidVector):
            self.store.query([1.0, 0.0, 0.0, 0.0], k=1)
        self.assertEqual(self.store.count(), 0)

    def test_non_finite_vector_is_rejected(self):
        with self.assertRaises(InvalidVector):
            self.store.add([1.0, math.nan, 0.0], {})
        with self.assertRaises(InvalidVector):
            self.store.add([math.inf, 0.0, 0.0], {})

    def test_metadata_round_trips(self):
        metadata = {
            "content": "Paris has many museums.",
            "tags": ["travel", "france"],
            "rating": 4.5,
            "nested": {"visited": True, "notes": None},
        }
        record_id = self.store.add([0.5, 0.5, 0.0], metadata)

        self.assertEqual(self.store.get(record_id), metadata)
        self.assertEqual(self.store.query([0.5, 0.5, 0.0], k=1)[0].metadata, metadata)

    def test_get_missing_record(self):
        self.assertIsNone(self.store.get(999))

    def test_delete(self):
        record_id = self.store.add([1.0, 0.0, 0.0], {"content": "gone"})

        self.assertTrue(self.store.delete(record_id))
        self.assertFalse(self.store.delete(record_id))
        self.assertEqual(self.store.count(), 0)

    def test_clear_keeps_ids_increasing(self):
        last = self.store.add([1.0, 0.0, 0.0], {})
        self.store.clear()

        self.assertEqual(self.store.count(), 0)
        self.assertGreater(self.store.add([1.0, 0.0, 0.0], {}), last)

    def test_operations_after_close_raise(self):
        self.store.close()

        self.assertTrue(self.store.closed)
        with self.assertRaises(StoreClosed):
            self.store.add([1.0, 0.0, 0.0], {})
        with self.assertRaises(StoreUnavailable):
            self.store.query([1.0, 0.0, 0.0], k=1)
        with self.assertRaises(StoreClosed):
            self.store.count()

    def test_concurrent_adds_get_unique_ids(self):
        ids = []
        ids_lock = threading.Lock()

        def worker(offset):
            for i in range(10):
                record_id = self.store.add([1.0, float(offset), float(i)], {"content": f"{offset}-{i}"})
                with ids_lock:
                    ids.append(record_id)

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        self.assertEqual(len(set(ids)), 40)
        self.assertEqual(self.store.count(), 40)

    def test_ties_beyond_k_resolve_to_lowest_ids(self):
        tied = [self.store.add([1.0, 0.0, 0.0], {"content": f"same-{i}"}) for i in range(30)]
        for i in range(20):
            self.store.add([0.0, 1.0, float(i)], {"content": f"far-{i}"})

        results = self.store.query([1.0, 0.0, 0.0], k=3)

        self.assertEqual([r.id for r in results], tied[:3])

    def test_queries_during_writes_see_whole_records(self):
        for i in range(5):
            self.store.add([1.0, 0.0, float(i)], {"content": f"seed-{i}", "tags": ["seed"]})

        errors = []
        done = threading.Event()

        def writer(offset):
            for i in range(20):
                self.store.add([1.0, float(offset), float(i)], {"content": f"{offset}-{i}", "tags": ["new"]})

        def reader():
            try:
                while not done.is_set():
                    results = self.store.query([1.0, 0.0, 0.0], k=4)
                    assert len(results) <= 4
                    for result in results:
                        assert "content" in result.metadata
                        assert isinstance(result.metadata["tags"], list)
            except Exception as e:
                errors.append(e)

        readers = [threading.Thread(target=reader) for _ in range(2)]
        writers = [threading.Thread(target=writer, args=(n,)) for n in range(3)]
        for thread in readers + writers:
            thread.start()
        for thread in writers:
            thread.join()
        done.set()
        for thread in readers:
            thread.join()

        self.assertEqual(errors, [])
        self.assertEqual(self.store.count(), 65)

    def test_handles_on_same_store_share_the_id_counter(self):
        other = VectorStore(self.temp_dir, name="unit-test", dimension=3, metric="l2")
        try:
            first = self.store.add([1.0, 0.0, 0.0], {})
            second = other.add([0.0, 1.0, 0.0], {})
            third = self.store.add([0.0, 0.0, 1.0], {})
        finally:
            other.close()

        self.assertEqual([first, second, third], [first, first + 1, first + 2])


def test_reopen_persists_records(tmp_path):
    with VectorStore(tmp_path, name="persisted", dimension=4) as store:
        record_id = store.add([0.1, 0.2, 0.3, 0.4], {"content": "kept"})

    with VectorStore(tmp_path, name="persisted", dimension=4) as reopened:
        assert reopened.count() == 1
        assert reopened.get(record_id) == {"content": "kept"}


def test_id_counter_resumes_from_stored_records(tmp_path):
    with VectorStore(tmp_path, name="resumed", dimension=2) as store:
        store.add([1.0, 0.0], {})
        last = store.add([0.0, 1.0], {})

    # Forget the in-process counter, as after a restart
    vector_store._states.pop((str(tmp_path.resolve()), "resumed"))

    with VectorStore(tmp_path, name="resumed", dimension=2) as reopened:
        assert reopened.add([1.0, 1.0], {}) == last + 1


def test_deleted_ids_are_not_reused_after_restart(tmp_path):
    key = (str(tmp_path.resolve()), "high-water")
    with VectorStore(tmp_path, name="high-water", dimension=2) as store:
        store.add([1.0, 0.0], {})
        last = store.add([0.0, 1.0], {})
        store.delete(last)

    vector_store._states.pop(key)

    with VectorStore(tmp_path, name="high-water", dimension=2) as reopened:
        assert reopened.add([1.0, 1.0], {}) == last + 1
        reopened.clear()

    vector_store._states.pop(key)

    with VectorStore(tmp_path, name="high-water", dimension=2) as cleared:
        assert cleared.count() == 0
        assert cleared.add([1.0, 1.0], {}) == last + 2


def test_reopen_with_other_dimension_fails(tmp_path):
    VectorStore(tmp_path, name="embeddings", dimension=384).close()

    with pytest.raises(DimensionMismatch) as exc_info:
        VectorStore(tmp_path, name="embeddings", dimension=256)

    assert exc_info.value.expected == 384
    assert exc_info.value.actual == 256


def test_reopen_with_other_metric_fails(tmp_path):
    VectorStore(tmp_path, name="metrics", dimension=3, metric="cosine").close()

    with pytest.raises(MetricMismatch):
        VectorStore(tmp_path, name="metrics", dimension=3, metric="l2")


def test_stores_with_different_names_are_independent(tmp_path):
    with VectorStore(tmp_path, name="first-store", dimension=2) as first, \
            VectorStore(tmp_path, name="second-store", dimension=5) as second:
        first.add([1.0, 0.0], {"content": "one"})

        assert first.count() == 1
        assert second.count() == 0


def test_cosine_distance(tmp_path):
    with VectorStore(tmp_path, name="cosine-store", dimension=2, metric="cosine") as store:
        store.add([1.0, 0.0], {"content": "same"})
        store.add([0.0, 1.0], {"content": "orthogonal"})

        results = store.query([2.0, 0.0], k=2)

    assert [r.metadata["content"] for r in results] == ["same", "orthogonal"]
    assert results[0].distance == pytest.approx(0.0, abs=1e-5)
    assert results[1].distance == pytest.approx(1.0, abs=1e-4)


@pytest.mark.parametrize("dimension, metric", [(0, "cosine"), (-3, "l2"), (3, "ip"), (3, "manhattan")])
def test_invalid_configuration(tmp_path, dimension, metric):
    with pytest.raises(ValueError):
        VectorStore(tmp_path, dimension=dimension, metric=metric)


def test_embedded_texts_find_themselves(store, embedder):
    texts = [
        "Paris is rainy in winter",
        "The museum opens at nine",
        "Bring an umbrella in November",
    ]
    for text in texts:
        store.add(embedder.vector(text), {"content": text})

    for text in texts:
        assert store.query(embedder.vector(text), k=1)[0].metadata["content"] == text
