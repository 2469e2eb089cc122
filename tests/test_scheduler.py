"""
Unit tests for batching and BatchIngestor.
"""
import threading
import time
from typing import List

import pytest

from domain.errors import (
    BatchSubmissionError,
    ConfigurationError,
    StoreUnavailableError,
)
from domain.models import FileDocument
from ingestion.batching import batch_count, iter_batches
from ingestion.scheduler import BatchIngestor


class RecordingCollection:
    """Collection double that records every add() call"""

    name = "test"

    def __init__(self, fail_when=None, error=None, delay=0.0):
        self.fail_when = fail_when
        self.error = error or RuntimeError("rejected")
        self.delay = delay
        self.calls: List[List[str]] = []
        self.active = 0
        self.max_active = 0
        self._lock = threading.Lock()

    def add(self, ids, texts, metadatas):
        with self._lock:
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        try:
            if self.delay:
                time.sleep(self.delay)
            if self.fail_when is not None and self.fail_when(ids):
                raise self.error
            assert len(ids) == len(texts) == len(metadatas)
            with self._lock:
                self.calls.append(list(ids))
        finally:
            with self._lock:
                self.active -= 1


def _docs(n):
    return [
        FileDocument(id=f"id-{i:04d}", content=f"text {i}", metadata={"i": i})
        for i in range(n)
    ]


class TestBatching:
    """Tests para iter_batches y batch_count"""

    def test_iter_batches_sizes(self):
        batches = list(iter_batches(list(range(250)), 100))
        assert [len(b) for b in batches] == [100, 100, 50]

    def test_iter_batches_preserves_order(self):
        items = list(range(23))
        batches = list(iter_batches(items, 5))
        assert [x for b in batches for x in b] == items

    def test_iter_batches_empty(self):
        assert list(iter_batches([], 10)) == []

    @pytest.mark.parametrize("total,size,expected", [
        (0, 10, 0), (1, 10, 1), (10, 10, 1), (11, 10, 2), (250, 100, 3),
    ])
    def test_batch_count(self, total, size, expected):
        assert batch_count(total, size) == expected
        assert len(list(iter_batches(list(range(total)), size))) == expected

    def test_invalid_batch_size(self):
        with pytest.raises(ConfigurationError):
            list(iter_batches([1], 0))
        with pytest.raises(ConfigurationError):
            batch_count(1, -1)


class TestBatchIngestor:
    """Tests para BatchIngestor.submit"""

    def test_all_batches_ingested(self):
        collection = RecordingCollection()
        ingestor = BatchIngestor(collection, batch_size=100, max_concurrency=2)

        result = ingestor.submit(_docs(250))

        assert result.ingested == 250
        assert result.error is None
        assert result.success
        assert result.total_batches == 3
        assert result.completed_batches == 3
        assert sorted(len(c) for c in collection.calls) == [50, 100, 100]

    def test_batches_reconstruct_input_order(self):
        collection = RecordingCollection()
        docs = _docs(37)

        BatchIngestor(collection, batch_size=5, max_concurrency=4).submit(docs)

        calls = sorted(collection.calls, key=lambda ids: ids[0])
        assert [i for ids in calls for i in ids] == [d.id for d in docs]

    def test_zero_items(self):
        collection = RecordingCollection()

        result = BatchIngestor(collection).submit([])

        assert result.ingested == 0
        assert result.error is None
        assert result.total_batches == 0
        assert collection.calls == []

    def test_one_failing_batch(self):
        collection = RecordingCollection(fail_when=lambda ids: ids[0] == "id-0100")
        ingestor = BatchIngestor(collection, batch_size=100, max_concurrency=3)

        result = ingestor.submit(_docs(250))

        assert result.ingested == 150
        assert result.failed_batches == 1
        assert result.completed_batches == 2
        assert isinstance(result.error, BatchSubmissionError)
        assert result.error.batch_index == 1
        assert result.error.batch_size == 100

    def test_failure_does_not_cancel_other_batches(self):
        collection = RecordingCollection(fail_when=lambda ids: ids[0] == "id-0000")
        ingestor = BatchIngestor(collection, batch_size=10, max_concurrency=1)

        result = ingestor.submit(_docs(50))

        assert result.ingested == 40
        assert len(collection.calls) == 4
        assert result.skipped_batches == 0

    def test_first_error_is_kept(self):
        collection = RecordingCollection(fail_when=lambda ids: True)
        ingestor = BatchIngestor(collection, batch_size=10, max_concurrency=1)

        result = ingestor.submit(_docs(30))

        assert result.ingested == 0
        assert result.failed_batches == 3
        assert isinstance(result.error, BatchSubmissionError)

    def test_fail_fast_on_unavailable_store(self):
        collection = RecordingCollection(
            fail_when=lambda ids: True, error=StoreUnavailableError("down")
        )
        ingestor = BatchIngestor(collection, batch_size=10, max_concurrency=1, fail_fast=True)

        result = ingestor.submit(_docs(30))

        assert isinstance(result.error, StoreUnavailableError)
        assert result.failed_batches == 1
        assert result.skipped_batches == 2
        assert not result.success

    def test_no_fail_fast_keeps_dispatching(self):
        collection = RecordingCollection(
            fail_when=lambda ids: True, error=StoreUnavailableError("down")
        )
        ingestor = BatchIngestor(collection, batch_size=10, max_concurrency=1, fail_fast=False)

        result = ingestor.submit(_docs(30))

        assert result.failed_batches == 3
        assert result.skipped_batches == 0

    def test_cancel_event_stops_dispatch(self):
        collection = RecordingCollection()
        cancel = threading.Event()
        cancel.set()

        result = BatchIngestor(collection, batch_size=10).submit(_docs(30), cancel_event=cancel)

        assert collection.calls == []
        assert result.ingested == 0
        assert result.skipped_batches == 3
        assert result.error is None

    def test_concurrency_bound(self):
        collection = RecordingCollection(delay=0.02)
        ingestor = BatchIngestor(collection, batch_size=1, max_concurrency=3)

        result = ingestor.submit(_docs(12))

        assert result.ingested == 12
        assert collection.max_active <= 3

    def test_serialize_writes(self):
        collection = RecordingCollection(delay=0.01)
        ingestor = BatchIngestor(
            collection, batch_size=1, max_concurrency=4, serialize_writes=True
        )

        result = ingestor.submit(_docs(8))

        assert result.ingested == 8
        assert collection.max_active == 1

    def test_overrides_per_call(self):
        collection = RecordingCollection()
        ingestor = BatchIngestor(collection, batch_size=100)

        result = ingestor.submit(_docs(10), batch_size=3)

        assert result.total_batches == 4
        assert result.ingested == 10

    def test_duplicate_ids_rejected(self):
        docs = _docs(2)
        docs[1].id = docs[0].id

        with pytest.raises(ConfigurationError, match="Duplicate"):
            BatchIngestor(RecordingCollection()).submit(docs)

    def test_empty_id_rejected(self):
        docs = _docs(1)
        docs[0].id = ""

        with pytest.raises(ConfigurationError, match="empty"):
            BatchIngestor(RecordingCollection()).submit(docs)

    @pytest.mark.parametrize("batch_size,max_concurrency", [(0, 1), (1, 0), (-5, 2)])
    def test_invalid_limits(self, batch_size, max_concurrency):
        with pytest.raises(ConfigurationError):
            BatchIngestor(RecordingCollection(), batch_size, max_concurrency)

    def test_invalid_override(self):
        with pytest.raises(ConfigurationError):
            BatchIngestor(RecordingCollection()).submit(_docs(3), batch_size=0)


class TestSubmitColumns:
    """Tests para BatchIngestor.submit_columns"""

    def test_submit_columns(self):
        collection = RecordingCollection()
        ingestor = BatchIngestor(collection, batch_size=2)

        result = ingestor.submit_columns(["a", "b", "c"], ["1", "2", "3"], [{}, None, {"k": 1}])

        assert result.ingested == 3
        assert sorted(i for ids in collection.calls for i in ids) == ["a", "b", "c"]

    def test_length_mismatch(self):
        with pytest.raises(ConfigurationError, match="same length"):
            BatchIngestor(RecordingCollection()).submit_columns(["a", "b"], ["1"], [{}, {}])


class TestSubmitPaths:
    """Tests para BatchIngestor.submit_paths"""

    def test_unreadable_files_skipped(self, tmp_path):
        good = []
        for name in ("a.txt", "b.txt"):
            path = tmp_path / name
            path.write_text(name)
            good.append(str(path))
        missing = str(tmp_path / "missing.txt")
        collection = RecordingCollection()

        result = BatchIngestor(collection, batch_size=2).submit_paths([good[0], missing, good[1]])

        assert result.ingested == 2
        assert result.skipped_items == 1
        assert result.error is None

    def test_batch_without_readable_files_not_added(self, tmp_path):
        collection = RecordingCollection()

        result = BatchIngestor(collection, batch_size=1).submit_paths([str(tmp_path / "gone.txt")])

        assert collection.calls == []
        assert result.ingested == 0
        assert result.skipped_items == 1

    def test_same_path_twice_rejected(self, tmp_path):
        path = tmp_path / "a.txt"
        path.write_text("a")

        with pytest.raises(ConfigurationError):
            BatchIngestor(RecordingCollection()).submit_paths([str(path), str(path)])
