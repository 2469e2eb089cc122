"""
Plain-text file loader.
Reads a discovered file into a FileDocument ready for the store.
"""
from pathlib import Path
from typing import Iterable, List, Optional, Tuple
import logging

from domain.errors import FileReadError
from domain.models import FileDocument, document_id_for

logger = logging.getLogger(__name__)


class TextFileLoader:
    """
    Loader for text files of any extension.

    Content is decoded as UTF-8 with replacement characters, so binary noise
    never aborts a run. Empty files load with empty content.
    """

    def __init__(self, encoding: str = "utf-8", max_file_bytes: Optional[int] = None):
        self.encoding = encoding
        self.max_file_bytes = max_file_bytes

    def load(self, file_path: str | Path) -> FileDocument:
        """
        Load a file as a FileDocument.

        Raises:
            FileReadError: If the file is missing, unreadable or too large
        """
        path = Path(file_path).absolute()

        try:
            size = path.stat().st_size
        except OSError as e:
            raise FileReadError(str(path), str(e)) from e

        if not path.is_file():
            raise FileReadError(str(path), "not a regular file")
        if self.max_file_bytes is not None and size > self.max_file_bytes:
            raise FileReadError(
                str(path), f"file too large ({size} > {self.max_file_bytes} bytes)"
            )

        try:
            content = path.read_text(encoding=self.encoding, errors="replace")
        except OSError as e:
            raise FileReadError(str(path), str(e)) from e

        logger.debug("TextFileLoader: loaded '%s' (%d bytes)", path.name, size)

        return FileDocument(
            id=document_id_for(str(path)),
            content=content,
            metadata={
                "filename": path.name,
                "path": str(path),
                "size": size,
            },
        )

    def load_many(self, paths: Iterable[str | Path]) -> Tuple[List[FileDocument], List[str]]:
        """
        Load every path, skipping the ones that cannot be read.

        Returns:
            (documents, skipped paths), documents in input order
        """
        documents: List[FileDocument] = []
        skipped: List[str] = []
        for p in paths:
            try:
                documents.append(self.load(p))
            except FileReadError as e:
                logger.warning("Could not read file %s: %s", e.path, e.reason)
                skipped.append(str(p))
        return documents, skipped
