"""
Unit tests for the file watcher.
"""
from unittest.mock import Mock, patch

import pytest
from watchdog.events import (
    DirCreatedEvent,
    FileCreatedEvent,
    FileDeletedEvent,
    FileModifiedEvent,
    FileMovedEvent,
)

from domain.models import ExtractorConfig, document_id_for
from embeddings.base import DummyEmbedding, EmbeddingConfig
from etl.watcher import FileWatcher, _IndexEventHandler, reindex_file
from extraction.extractor import DirectoryExtractor
from ingestion.pipeline import IndexingPipeline
from ingestion.scheduler import BatchIngestor
from vectorstore.base import InMemoryCollection


@pytest.fixture
def collection():
    return InMemoryCollection("files", DummyEmbedding(EmbeddingConfig(dimension=16)))


@pytest.fixture
def pipeline(collection):
    return IndexingPipeline(BatchIngestor(collection), config=ExtractorConfig(extensions={".txt"}))


@pytest.fixture
def extractor(tmp_path, pipeline):
    return DirectoryExtractor.build(tmp_path, pipeline.config)


@pytest.fixture
def handler(extractor, pipeline, collection):
    return _IndexEventHandler(extractor, pipeline, collection, debounce_seconds=0)


class TestReindexFile:
    """Tests para reindex_file"""

    def test_replaces_stored_content(self, tmp_path, pipeline, collection):
        path = tmp_path / "a.txt"
        path.write_text("first version")
        pipeline.index_path(tmp_path)

        path.write_text("second version")
        assert reindex_file(str(path), pipeline, collection) is True

        raw = collection.query("second version", 5)
        assert collection.count() == 1
        assert raw["documents"][0] == ["second version"]

    def test_unreadable_file(self, tmp_path, pipeline, collection):
        path = tmp_path / "gone.txt"

        assert reindex_file(str(path), pipeline, collection) is False
        assert collection.count() == 0

    def test_store_failure(self, tmp_path, pipeline):
        path = tmp_path / "a.txt"
        path.write_text("content")
        collection = Mock()
        collection.delete.side_effect = RuntimeError("store down")

        assert reindex_file(str(path), pipeline, collection) is False


class TestIndexEventHandler:
    """Tests para _IndexEventHandler"""

    def test_flush_indexes_file(self, tmp_path, handler, collection):
        path = tmp_path / "new.txt"
        path.write_text("fresh")

        handler._flush(str(path))

        assert collection.count() == 1

    def test_filtered_file_not_scheduled(self, tmp_path, handler):
        with patch("etl.watcher.threading.Timer") as mock_timer:
            handler.on_created(FileCreatedEvent(str(tmp_path / "image.png")))
        mock_timer.assert_not_called()

    def test_repeated_events_restart_timer(self, tmp_path, handler):
        path = str(tmp_path / "a.txt")
        with patch("etl.watcher.threading.Timer") as mock_timer:
            handler.on_created(FileCreatedEvent(path))
            handler.on_modified(FileModifiedEvent(path))

        timer = mock_timer.return_value
        assert mock_timer.call_count == 2
        assert timer.start.call_count == 2
        assert timer.cancel.call_count == 1
        assert list(handler._timers) == [path]

    def test_directory_events_ignored(self, tmp_path, handler):
        with patch("etl.watcher.threading.Timer") as mock_timer:
            handler.dispatch(DirCreatedEvent(str(tmp_path / "sub")))
        mock_timer.assert_not_called()

    def test_deleted_file_removed(self, tmp_path, pipeline, handler, collection):
        path = tmp_path / "a.txt"
        path.write_text("content")
        pipeline.index_path(tmp_path)

        handler.on_deleted(FileDeletedEvent(str(path)))

        assert collection.count() == 0

    def test_delete_cancels_pending_reindex(self, tmp_path, handler):
        path = str(tmp_path / "a.txt")
        with patch("etl.watcher.threading.Timer") as mock_timer:
            handler.on_modified(FileModifiedEvent(path))
            handler.on_deleted(FileDeletedEvent(path))

        mock_timer.return_value.cancel.assert_called_once()
        assert handler._timers == {}

    def test_moved_file(self, tmp_path, handler):
        src = str(tmp_path / "a.txt")
        dest = str(tmp_path / "b.txt")
        handler._collection = Mock()

        with patch.object(handler, "_changed") as mock_changed:
            handler.on_moved(FileMovedEvent(src, dest))

        handler._collection.delete.assert_called_once_with([document_id_for(src)])
        mock_changed.assert_called_once_with(dest)

    def test_vanished_file_skipped(self, tmp_path, handler, collection):
        handler._flush(str(tmp_path / "gone.txt"))
        assert collection.count() == 0

    def test_cancel_pending(self, tmp_path, handler):
        with patch("etl.watcher.threading.Timer") as mock_timer:
            handler.on_created(FileCreatedEvent(str(tmp_path / "a.txt")))
            handler.on_created(FileCreatedEvent(str(tmp_path / "b.txt")))
        mock_timer.return_value.cancel.reset_mock()

        handler.cancel_pending()

        assert mock_timer.return_value.cancel.call_count == 2
        assert handler._timers == {}


class TestFileWatcher:
    """Tests para FileWatcher"""

    def test_start_and_stop(self, extractor, pipeline, collection):
        watcher = FileWatcher(extractor, pipeline, collection, debounce_seconds=0.1)

        with watcher:
            assert watcher.running

        assert not watcher.running

    def test_stop_without_start(self, extractor, pipeline, collection):
        FileWatcher(extractor, pipeline, collection).stop()

    def test_root(self, tmp_path, extractor, pipeline, collection):
        watcher = FileWatcher(extractor, pipeline, collection)
        assert watcher.root == str(tmp_path)
