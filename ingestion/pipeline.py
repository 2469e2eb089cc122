"""
Indexing pipeline for directory trees.
Orchestrates discovery, loading and batched submission:

  DirectoryExtractor → TextFileLoader → BatchIngestor
"""
from typing import Callable, List, Optional, Sequence
from pathlib import Path
import logging
import threading

from domain.errors import FileReadError
from domain.models import ExtractorConfig, FileDocument, IndexingReport
from extraction.extractor import DirectoryExtractor
from ingestion.loader import TextFileLoader
from ingestion.scheduler import BatchIngestor

logger = logging.getLogger(__name__)


class IndexingPipeline:
    """
    End-to-end indexing of a file or directory.

    Files are discovered lazily but read before submission, so the
    ingestion result always refers to documents that were actually loaded.
    Unreadable files are skipped with a warning and listed in the report.
    """

    def __init__(
        self,
        ingestor: BatchIngestor,
        config: Optional[ExtractorConfig] = None,
        loader: Optional[TextFileLoader] = None,
    ):
        """
        Initialize the pipeline.

        Args:
            ingestor: BatchIngestor bound to the target collection
            config: Filter options for discovery. If None, uses defaults.
            loader: Loader for file content (default: the ingestor's loader)
        """
        self.ingestor = ingestor
        self.config = config or ExtractorConfig()
        self.loader = loader or ingestor.loader

        logger.info(
            f"IndexingPipeline initialized with "
            f"ingestor={ingestor.__class__.__name__}, "
            f"extensions={sorted(self.config.extensions) if self.config.extensions else 'all'}"
        )

    def extractor_for(self, root: str | Path) -> DirectoryExtractor:
        """
        Build the extractor used for root.

        Raises:
            ConfigurationError: If an ignore pattern is invalid
        """
        return DirectoryExtractor.build(root, self.config)

    def index_path(
        self,
        root: str | Path,
        on_document: Optional[Callable[[FileDocument], None]] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> IndexingReport:
        """
        Discover, load and submit every accepted file under root.

        Args:
            root: File or directory to index
            on_document: Called for each document once it has been read
            cancel_event: Stops dispatching batches that have not started

        Returns:
            IndexingReport with discovery counts and the ingestion result

        Raises:
            ConfigurationError: If the filter configuration is invalid
            TraversalError: If a directory cannot be read
        """
        extractor = self.extractor_for(root)
        paths = list(extractor.files())

        logger.info(f"Found {len(paths)} files under {extractor.root}")

        report = IndexingReport(root=extractor.root, files_found=len(paths))
        if not paths:
            logger.warning(f"No files to index in {extractor.root}")
            return report

        return self._load_and_submit(paths, report, on_document, cancel_event)

    def index_files(
        self,
        paths: Sequence[str | Path],
        on_document: Optional[Callable[[FileDocument], None]] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> IndexingReport:
        """
        Load and submit an explicit list of files, bypassing discovery.
        """
        report = IndexingReport(root="", files_found=len(paths))
        if not paths:
            return report
        return self._load_and_submit(
            [str(p) for p in paths], report, on_document, cancel_event
        )

    def _load_and_submit(
        self,
        paths: List[str],
        report: IndexingReport,
        on_document: Optional[Callable[[FileDocument], None]],
        cancel_event: Optional[threading.Event],
    ) -> IndexingReport:
        documents: List[FileDocument] = []
        for path in paths:
            try:
                document = self.loader.load(path)
            except FileReadError as e:
                logger.warning(f"Could not read file {e.path}: {e.reason}")
                report.files_skipped.append(path)
                continue
            if on_document:
                on_document(document)
            documents.append(document)

        report.files_read = len(documents)
        report.ingestion = self.ingestor.submit(documents, cancel_event=cancel_event)

        logger.info(
            f"Indexing completed: {report.ingested}/{report.files_found} files ingested, "
            f"{len(report.files_skipped)} skipped"
        )
        return report
