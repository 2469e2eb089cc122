"""
Batch scheduler for submitting documents to a collection.

Items are split into fixed-size batches and each batch is added to the
collection with a single call, with at most `max_concurrency` batches in
flight. A failing batch never cancels the others; the first error by
completion order is reported together with the number of documents that
made it into the store.
"""
from concurrent.futures import ThreadPoolExecutor, as_completed
from contextlib import nullcontext
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple
import logging
import threading

from domain.errors import (
    BatchSubmissionError,
    BoundaryUnavailableError,
    ConfigurationError,
)
from domain.models import FileDocument, IngestionResult, document_id_for
from ingestion.batching import iter_batches
from ingestion.loader import TextFileLoader
from vectorstore.base import BaseCollection

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 100
DEFAULT_MAX_CONCURRENCY = 50

# Turns one batch of raw items into (documents, skipped items)
Preparer = Callable[[List[Any]], Tuple[List[FileDocument], List[Any]]]


@dataclass
class _BatchOutcome:
    """What happened to one batch"""
    index: int
    size: int
    ingested: int = 0
    skipped_items: int = 0
    dispatched: bool = True
    error: Optional[Exception] = None


class BatchIngestor:
    """
    Bounded-concurrency batch submission to a collection.

    The collection is expected to be safe for concurrent use. When it is
    not, pass serialize_writes=True and every add() goes through one lock.

    Example:
        ingestor = BatchIngestor(collection, batch_size=100, max_concurrency=8)
        result = ingestor.submit(documents)
        if result.error:
            ...
    """

    def __init__(
        self,
        collection: BaseCollection,
        batch_size: int = DEFAULT_BATCH_SIZE,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
        fail_fast: bool = True,
        serialize_writes: bool = False,
        loader: Optional[TextFileLoader] = None,
    ):
        """
        Initialize the ingestor.

        Args:
            collection: Target collection (anything with add(ids, texts, metadatas))
            batch_size: Default maximum documents per add() call
            max_concurrency: Default maximum batches in flight
            fail_fast: Stop dispatching new batches once the store or the
                embedding service is unreachable
            serialize_writes: Guard add() with a lock for non thread-safe clients
            loader: Loader used by submit_paths (default: TextFileLoader())

        Raises:
            ConfigurationError: If batch_size or max_concurrency is not positive
        """
        _check_limits(batch_size, max_concurrency)

        self.collection = collection
        self.batch_size = batch_size
        self.max_concurrency = max_concurrency
        self.fail_fast = fail_fast
        self.loader = loader or TextFileLoader()
        self._write_lock = threading.Lock() if serialize_writes else nullcontext()

        logger.info(
            f"BatchIngestor initialized with batch_size={batch_size}, "
            f"max_concurrency={max_concurrency}, fail_fast={fail_fast}, "
            f"serialize_writes={serialize_writes}"
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def submit(
        self,
        items: Sequence[FileDocument],
        batch_size: Optional[int] = None,
        max_concurrency: Optional[int] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> IngestionResult:
        """
        Submit already loaded documents.

        Args:
            items: Documents in submission order
            batch_size: Overrides the default batch size
            max_concurrency: Overrides the default concurrency limit
            cancel_event: Once set, batches that have not started are not dispatched

        Returns:
            IngestionResult with the ingested count and the first error

        Raises:
            ConfigurationError: If an id is empty or duplicated, or limits are invalid
        """
        _check_ids([item.id for item in items])
        return self._run(items, _as_documents, batch_size, max_concurrency, cancel_event)

    def submit_columns(
        self,
        ids: Sequence[str],
        texts: Sequence[str],
        metadatas: Sequence[Optional[Dict[str, Any]]],
        batch_size: Optional[int] = None,
        max_concurrency: Optional[int] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> IngestionResult:
        """
        Submit parallel lists of ids, texts and metadatas.

        Raises:
            ConfigurationError: If the lists differ in length
        """
        if not (len(ids) == len(texts) == len(metadatas)):
            raise ConfigurationError(
                f"ids, texts and metadatas must have the same length, got "
                f"{len(ids)}, {len(texts)} and {len(metadatas)}"
            )

        items = [
            FileDocument(id=doc_id, content=text, metadata=dict(metadata or {}))
            for doc_id, text, metadata in zip(ids, texts, metadatas)
        ]
        return self.submit(items, batch_size, max_concurrency, cancel_event)

    def submit_paths(
        self,
        paths: Sequence[str],
        batch_size: Optional[int] = None,
        max_concurrency: Optional[int] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> IngestionResult:
        """
        Submit files by path; each batch worker reads its own files.

        Unreadable files are dropped from their batch with a warning and the
        rest of the batch is still submitted.
        """
        _check_ids([document_id_for(p) for p in paths])
        return self._run(
            paths, self.loader.load_many, batch_size, max_concurrency, cancel_event
        )

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _run(
        self,
        items: Sequence[Any],
        prepare: Preparer,
        batch_size: Optional[int],
        max_concurrency: Optional[int],
        cancel_event: Optional[threading.Event],
    ) -> IngestionResult:
        size = batch_size if batch_size is not None else self.batch_size
        concurrency = max_concurrency if max_concurrency is not None else self.max_concurrency
        _check_limits(size, concurrency)

        result = IngestionResult()
        if not items:
            logger.info("Nothing to ingest")
            return result

        batches = list(iter_batches(items, size))
        result.total_batches = len(batches)
        stop = threading.Event()

        logger.info(
            f"Submitting {len(items)} items in {len(batches)} batches "
            f"(batch_size={size}, max_concurrency={concurrency})"
        )

        with ThreadPoolExecutor(
            max_workers=min(concurrency, len(batches)),
            thread_name_prefix="ingest",
        ) as executor:
            futures = [
                executor.submit(self._submit_batch, index, batch, prepare, stop, cancel_event)
                for index, batch in enumerate(batches)
            ]
            for future in as_completed(futures):
                _record(result, future.result())

        logger.info(
            f"Ingestion finished: {result.ingested} documents ingested, "
            f"{result.completed_batches}/{result.total_batches} batches completed, "
            f"{result.failed_batches} failed, {result.skipped_batches} not dispatched"
        )
        return result

    def _submit_batch(
        self,
        index: int,
        batch: List[Any],
        prepare: Preparer,
        stop: threading.Event,
        cancel_event: Optional[threading.Event],
    ) -> _BatchOutcome:
        if stop.is_set() or (cancel_event is not None and cancel_event.is_set()):
            logger.debug(f"Batch {index} not dispatched")
            return _BatchOutcome(index=index, size=len(batch), dispatched=False)

        documents, skipped = prepare(batch)
        if not documents:
            logger.warning(f"Batch {index} has no readable documents, nothing to add")
            return _BatchOutcome(index=index, size=len(batch), skipped_items=len(skipped))

        try:
            with self._write_lock:
                self.collection.add(
                    ids=[doc.id for doc in documents],
                    texts=[doc.content for doc in documents],
                    metadatas=[doc.metadata for doc in documents],
                )
        except BoundaryUnavailableError as e:
            logger.error(f"Batch {index}: store boundary unavailable: {e}")
            if self.fail_fast:
                stop.set()
            return _BatchOutcome(
                index=index, size=len(batch), skipped_items=len(skipped), error=e
            )
        except Exception as e:
            error = BatchSubmissionError(index, len(documents), e)
            logger.error(str(error))
            return _BatchOutcome(
                index=index, size=len(batch), skipped_items=len(skipped), error=error
            )

        logger.debug(f"Batch {index}: added {len(documents)} documents")
        return _BatchOutcome(
            index=index,
            size=len(batch),
            ingested=len(documents),
            skipped_items=len(skipped),
        )


def _as_documents(batch: List[FileDocument]) -> Tuple[List[FileDocument], List[Any]]:
    return batch, []


def _record(result: IngestionResult, outcome: _BatchOutcome) -> None:
    if not outcome.dispatched:
        result.skipped_batches += 1
        return

    result.skipped_items += outcome.skipped_items
    if outcome.error is None:
        result.completed_batches += 1
        result.ingested += outcome.ingested
        return

    result.failed_batches += 1
    if result.error is None:
        result.error = outcome.error
    else:
        logger.debug(f"Discarding later error from batch {outcome.index}: {outcome.error}")


def _check_limits(batch_size: int, max_concurrency: int) -> None:
    if batch_size <= 0:
        raise ConfigurationError(f"batch_size must be greater than 0, got {batch_size}")
    if max_concurrency <= 0:
        raise ConfigurationError(
            f"max_concurrency must be greater than 0, got {max_concurrency}"
        )


def _check_ids(ids: Sequence[str]) -> None:
    seen = set()
    for doc_id in ids:
        if not doc_id:
            raise ConfigurationError("Document ids cannot be empty")
        if doc_id in seen:
            raise ConfigurationError(f"Duplicate document id: {doc_id}")
        seen.add(doc_id)
