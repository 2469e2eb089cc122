"""
File watcher: keeps a collection in sync with a directory tree.

Monitors a directory with watchdog and, whenever a file that passes the
discovery filters is created, modified or moved in, re-indexes it:

  Event  →  debounce  →  delete old entry  →  load  →  batch submit

Deleted or moved-away files are removed from the collection.

Uso programático:
    watcher = FileWatcher(extractor, pipeline, collection)
    watcher.run_forever()
"""
from __future__ import annotations

import logging
import os
import threading
import time
from typing import Dict

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from domain.models import document_id_for
from extraction.extractor import DirectoryExtractor
from ingestion.pipeline import IndexingPipeline
from vectorstore.base import BaseCollection

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_SECONDS: float = 2.0


class _IndexEventHandler(FileSystemEventHandler):
    """
    Turns watchdog events for accepted files into index updates.

    Every change (re)starts a per-path timer, so a burst of writes to one
    file ends in a single re-index once the file has been quiet for
    debounce_seconds.
    """

    def __init__(
        self,
        extractor: DirectoryExtractor,
        pipeline: IndexingPipeline,
        collection: BaseCollection,
        debounce_seconds: float,
    ) -> None:
        super().__init__()
        self._extractor = extractor
        self._pipeline = pipeline
        self._collection = collection
        self._debounce = debounce_seconds
        self._timers: Dict[str, threading.Timer] = {}
        self._timers_lock = threading.Lock()

    def dispatch(self, event: FileSystemEvent) -> None:
        # Directory events are implied by the file events beneath them
        if event.is_directory:
            return
        super().dispatch(event)

    def on_created(self, event: FileSystemEvent) -> None:
        self._changed(str(event.src_path))

    def on_modified(self, event: FileSystemEvent) -> None:
        self._changed(str(event.src_path))

    def on_moved(self, event: FileSystemEvent) -> None:
        self._removed(str(event.src_path))
        self._changed(str(event.dest_path))

    def on_deleted(self, event: FileSystemEvent) -> None:
        self._removed(str(event.src_path))

    def cancel_pending(self) -> None:
        """Drop every re-index that has not fired yet."""
        with self._timers_lock:
            timers = list(self._timers.values())
            self._timers.clear()
        for timer in timers:
            timer.cancel()

    def _changed(self, path: str) -> None:
        if not self._extractor.is_accepted(path):
            return

        timer = threading.Timer(self._debounce, self._flush, args=(path,))
        timer.daemon = True
        with self._timers_lock:
            previous = self._timers.get(path)
            self._timers[path] = timer
        if previous is not None:
            previous.cancel()
        timer.start()
        logger.debug("Change queued: %s", path)

    def _flush(self, path: str) -> None:
        with self._timers_lock:
            if self._timers.get(path) is threading.current_thread():
                del self._timers[path]

        if not os.path.isfile(path):
            logger.debug("Skipping %s, it no longer exists", path)
            return
        reindex_file(path, self._pipeline, self._collection)

    def _removed(self, path: str) -> None:
        if not self._extractor.is_accepted(path):
            return

        with self._timers_lock:
            pending = self._timers.pop(path, None)
        if pending is not None:
            pending.cancel()

        try:
            self._collection.delete([document_id_for(path)])
        except Exception as exc:
            logger.warning("Could not remove %s from index: %s", path, exc)
            return
        logger.info("Removed from index: %s", path)


def reindex_file(path: str, pipeline: IndexingPipeline, collection: BaseCollection) -> bool:
    """
    Replace the stored entry for one file.

    Returns:
        True if the file ended up in the collection
    """
    start = time.perf_counter()
    try:
        collection.delete([document_id_for(path)])
        report = pipeline.index_files([path])
    except Exception as exc:
        logger.error("Re-indexing %s failed: %s", path, exc)
        return False

    elapsed = time.perf_counter() - start
    if report.error is not None or report.ingested == 0:
        logger.error(
            "✗ %s  →  %s  (%.2fs)", path, report.error or "nothing ingested", elapsed
        )
        return False

    logger.info("✓ %s  (%.2fs)", path, elapsed)
    return True


class FileWatcher:
    """
    Watches a directory tree and re-indexes files as they change.

    >>> watcher = FileWatcher(extractor, pipeline, collection)
    >>> watcher.start()          # no bloquea
    >>> watcher.stop()
    """

    def __init__(
        self,
        extractor: DirectoryExtractor,
        pipeline: IndexingPipeline,
        collection: BaseCollection,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
    ) -> None:
        self.extractor = extractor
        self.pipeline = pipeline
        self.collection = collection
        self.debounce_seconds = debounce_seconds
        self._observer: Observer | None = None
        self._handler: _IndexEventHandler | None = None

    @property
    def root(self) -> str:
        return self.extractor.root

    @property
    def running(self) -> bool:
        return self._observer is not None and self._observer.is_alive()

    def start(self) -> None:
        """Start observing in a background thread (non-blocking)."""
        if self.running:
            logger.warning("FileWatcher for %s is already running", self.root)
            return

        self._handler = _IndexEventHandler(
            self.extractor, self.pipeline, self.collection, self.debounce_seconds
        )
        observer = Observer()
        observer.schedule(self._handler, self.root, recursive=True)
        observer.start()
        self._observer = observer
        logger.info("Watching %s (debounce %.1fs)", self.root, self.debounce_seconds)

    def stop(self) -> None:
        """Stop the observer and drop re-indexes that have not fired."""
        observer, self._observer = self._observer, None
        if observer is None:
            return
        observer.stop()
        observer.join()
        if self._handler is not None:
            self._handler.cancel_pending()
            self._handler = None
        logger.info("Stopped watching %s", self.root)

    def run_forever(self) -> None:
        """Block while watching. Ctrl+C to exit."""
        self.start()
        observer = self._observer
        try:
            while observer is not None and observer.is_alive():
                observer.join(1)
        except KeyboardInterrupt:
            logger.info("Interrupted")
        finally:
            self.stop()

    def __enter__(self) -> "FileWatcher":
        self.start()
        return self

    def __exit__(self, *_: object) -> None:
        self.stop()
