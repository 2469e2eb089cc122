"""
Ingestion module.

Loading and batched submission of discovered files:

  ingestion.loader     — file → FileDocument
  ingestion.batching   — positional batch splitting
  ingestion.scheduler  — bounded-concurrency batch submission
  ingestion.pipeline   — discovery + loading + submission for a directory
"""
from ingestion.loader import TextFileLoader
from ingestion.batching import batch_count, iter_batches
from ingestion.scheduler import (
    DEFAULT_BATCH_SIZE,
    DEFAULT_MAX_CONCURRENCY,
    BatchIngestor,
)
from ingestion.pipeline import IndexingPipeline

__all__ = [
    # Loader
    "TextFileLoader",
    # Batching
    "batch_count",
    "iter_batches",
    # Scheduler
    "DEFAULT_BATCH_SIZE",
    "DEFAULT_MAX_CONCURRENCY",
    "BatchIngestor",
    # Pipeline
    "IndexingPipeline",
]
